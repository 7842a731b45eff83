"""Tests for verdict extraction and report export."""

import io
from datetime import datetime

import pytest
from docx import Document

from eps_agent.export import (
    ExportError,
    build_docx_report,
    build_markdown_report,
    build_summary_text,
    export_filename,
)
from eps_agent.results import extract_validation_result
from eps_agent.session import Task


class TestExtractValidationResult:
    def test_fail_with_reasoning(self):
        result = extract_validation_result("Overall Result: FAIL\nReasoning and Evidence:\nstep details")
        assert result.overall_result == "FAIL"
        assert result.reasoning == "step details"

    def test_verdict_is_case_insensitive(self):
        assert extract_validation_result("overall result:   pass").overall_result == "PASS"

    def test_missing_verdict_is_unknown(self):
        result = extract_validation_result("The log looks fine to me.")
        assert result.overall_result == "Unknown"
        assert result.reasoning == "The log looks fine to me."

    def test_missing_marker_shows_whole_justification(self):
        text = "Overall Result: PASS\n- step 1 ok"
        assert extract_validation_result(text).reasoning == text

    def test_empty_justification(self):
        result = extract_validation_result(None)
        assert result.overall_result == "Unknown"
        assert result.reasoning == "No justification provided"


COMPLETED_AT = datetime(2025, 3, 1, 14, 30, 5)


@pytest.fixture
def completed_task():
    return Task(
        id="t-1",
        description="Validate test case against EPS log",
        completed=True,
        justification="Overall Result: PASS\nReasoning and Evidence:\n- Step 1: START at 12:00:01\n- Step 2: DONE at 12:00:02",
        completed_at=COMPLETED_AT,
        log_content="12:00:01 START\n12:00:02 DONE\x07",
        test_case_content="StepNo: 1 START\nStepNo: 2 DONE",
    )


class TestMarkdownReport:
    def test_contains_all_sections(self, completed_task):
        report = build_markdown_report(completed_task, "checkout.log", COMPLETED_AT)
        assert report.startswith("# EPS Validation Results")
        assert "**File:** checkout.log" in report
        assert "**Completed At:** 2025-03-01 14:30:05" in report
        assert "## Task: Validate test case against EPS log" in report
        assert "**Overall Result:** PASS" in report
        assert "- Step 2: DONE at 12:00:02" in report
        assert "12:00:01 START" in report
        assert "StepNo: 2 DONE" in report

    def test_requires_completed_task(self):
        pending = Task(id="t", description="d")
        with pytest.raises(ExportError):
            build_markdown_report(pending, "a.log", COMPLETED_AT)
        with pytest.raises(ExportError):
            build_summary_text(None, "a.log", COMPLETED_AT)


class TestSummaryAndDocx:
    def test_summary_omits_raw_content(self, completed_task):
        summary = build_summary_text(completed_task, "checkout.log", COMPLETED_AT)
        assert "Overall Result: PASS" in summary
        assert "Task: Validate test case against EPS log" in summary
        assert "StepNo: 2 DONE" not in summary

    def test_docx_round_trips_through_python_docx(self, completed_task):
        data = build_docx_report(completed_task, "checkout.log", COMPLETED_AT)
        doc = Document(io.BytesIO(data))
        texts = [p.text for p in doc.paragraphs]
        assert "EPS Validation Results" in texts
        assert "Overall Result: PASS" in texts
        assert "Step 1: START at 12:00:01" in texts
        assert "12:00:02 DONE" in texts

    def test_export_filename_is_sanitised(self):
        name = export_filename("logs/run 1.log", ".md", now=datetime(2025, 1, 1))
        assert name.startswith("eps_validation_logs_run_1.log_")
        assert name.endswith(".md")
