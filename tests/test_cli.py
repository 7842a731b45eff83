"""Tests for the command-line validator."""

from unittest.mock import patch

import pytest

import cli
from eps_agent.config import AgentSettings
from eps_agent.ollama_client import ConnectivityError


@pytest.fixture
def inputs(tmp_path):
    log = tmp_path / "checkout.log"
    log.write_text("12:00:01 CHECKOUT START\n", encoding="utf-8")
    case = tmp_path / "case.txt"
    case.write_text("StepNo: 1 expect CHECKOUT START", encoding="utf-8")
    return log, case


@pytest.fixture(autouse=True)
def default_settings():
    with patch.object(cli, "load_settings", return_value=AgentSettings()):
        yield


def test_writes_markdown_report(inputs, tmp_path):
    log, case = inputs
    out = tmp_path / "report.md"
    with patch(
        "eps_agent.ollama_client.OllamaClient.send_chat",
        return_value="Overall Result: PASS\nReasoning and Evidence:\n- found it",
    ):
        cli.main([str(log), str(case), "--output", str(out)])
    report = out.read_text(encoding="utf-8")
    assert "**File:** checkout.log" in report
    assert "**Overall Result:** PASS" in report


def test_prompt_only_does_not_call_model(inputs, capsys):
    log, case = inputs
    with patch("eps_agent.ollama_client.OllamaClient.send_chat") as send_chat:
        cli.main([str(log), str(case), "--prompt-only", "--max-chars", "20000"])
    send_chat.assert_not_called()
    printed = capsys.readouterr().out
    assert "12:00:01 CHECKOUT START" in printed
    assert "Validate the test case against the EPS log now." in printed


def test_failed_validation_exits_non_zero(inputs, capsys):
    log, case = inputs
    with patch(
        "eps_agent.ollama_client.OllamaClient.send_chat",
        side_effect=ConnectivityError("http://localhost:11434/api/chat", "refused"),
    ):
        with pytest.raises(SystemExit) as excinfo:
            cli.main([str(log), str(case)])
    assert excinfo.value.code == 1
    assert "Validation failed." in capsys.readouterr().out


def test_empty_test_case_is_rejected(inputs, tmp_path):
    log, _ = inputs
    empty = tmp_path / "empty.txt"
    empty.write_text("  \n", encoding="utf-8")
    with pytest.raises(SystemExit) as excinfo:
        cli.main([str(log), str(empty)])
    assert "test case" in str(excinfo.value.code)


def test_zero_max_chars_is_applied(inputs, capsys):
    log, case = inputs
    cli.main([str(log), str(case), "--prompt-only", "--max-chars", "0"])
    printed = capsys.readouterr().out
    assert "12:00:01 CHECKOUT START" not in printed
    assert "[Content truncated: Original length 24 exceeds limit of 0 characters." in printed
