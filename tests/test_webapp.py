"""Tests for the Flask single-page app and its JSON API."""

import io

import pytest

import webapp
from eps_agent.ollama_client import TransportError
from eps_agent.orchestrator import ChatOrchestrator
from eps_agent.session import MessageSubmitted, SessionState, apply_event

from conftest import ScriptedClient


@pytest.fixture
def client_factory():
    def _make(*outcomes, state=None):
        scripted = ScriptedClient(*outcomes)
        webapp.app.config["ORCHESTRATOR"] = ChatOrchestrator(scripted, state=state)
        webapp.app.config["TESTING"] = True
        return webapp.app.test_client(), scripted

    return _make


def _confirm(http, log=b"12:00:01 START", name="checkout.log", test_case="StepNo: 1 START"):
    return http.post(
        "/api/confirm",
        data={"log_file": (io.BytesIO(log), name), "test_case": test_case},
        content_type="multipart/form-data",
    )


class TestPages:
    def test_index_renders(self, client_factory):
        http, _ = client_factory()
        resp = http.get("/")
        assert resp.status_code == 200
        assert b"EPS Agent" in resp.data
        assert b"test-model" in resp.data

    def test_state_snapshot(self, client_factory):
        http, _ = client_factory()
        data = http.get("/api/state").get_json()
        assert data["state"]["mode"] == "chatting"
        assert data["state"]["messages"] == []


class TestChatApi:
    def test_chat_round_trip(self, client_factory):
        http, scripted = client_factory("Hello!")
        resp = http.post("/api/chat", json={"message": "Hi"})
        data = resp.get_json()
        assert resp.status_code == 200
        assert [m["content"] for m in data["state"]["messages"]] == ["Hi", "Hello!"]
        assert data["notification"]["title"] == "Message sent"

    def test_chat_failure_returns_destructive_notification(self, client_factory):
        http, _ = client_factory(TransportError(503))
        data = http.post("/api/chat", json={"message": "Hi"}).get_json()
        assert data["notification"]["variant"] == "destructive"
        assert data["state"]["is_loading"] is False

    def test_chat_while_busy_is_conflict(self, client_factory):
        busy = apply_event(SessionState(), MessageSubmitted("pending"))
        http, scripted = client_factory(state=busy)
        resp = http.post("/api/chat", json={"message": "again"})
        assert resp.status_code == 409
        assert len(resp.get_json()["state"]["messages"]) == 1
        assert scripted.calls == []

    def test_empty_chat_is_bad_request(self, client_factory):
        http, _ = client_factory()
        assert http.post("/api/chat", json={"message": "  "}).status_code == 400


class TestValidationApi:
    def test_confirm_runs_validation(self, client_factory):
        http, scripted = client_factory("Overall Result: PASS\nReasoning and Evidence:\n- ok")
        resp = _confirm(http)
        data = resp.get_json()
        assert resp.status_code == 200
        assert data["state"]["mode"] == "tasks_completed"
        assert data["state"]["current_file"] == "checkout.log"
        assert data["state"]["tasks"][0]["overall_result"] == "PASS"
        assert scripted.calls[0]["log_content"] == "12:00:01 START"

    def test_empty_log_is_rejected_before_orchestrator(self, client_factory):
        http, scripted = client_factory()
        resp = _confirm(http, log=b"")
        assert resp.status_code == 400
        assert "EPS log file" in resp.get_json()["error"]
        assert resp.get_json()["state"]["mode"] == "chatting"
        assert scripted.calls == []

    def test_missing_test_case_is_rejected(self, client_factory):
        http, _ = client_factory()
        resp = _confirm(http, test_case="")
        assert resp.status_code == 400
        assert "test case" in resp.get_json()["error"]

    def test_new_task_outside_completed_is_conflict(self, client_factory):
        http, _ = client_factory()
        assert http.post("/api/new-task").status_code == 409

    def test_exports_after_completion(self, client_factory):
        http, _ = client_factory("Overall Result: FAIL\nReasoning and Evidence:\nstep details")
        assert http.get("/export/markdown").status_code == 404
        _confirm(http)

        md = http.get("/export/markdown")
        assert md.status_code == 200
        assert b"**Overall Result:** FAIL" in md.data
        assert "eps_validation_checkout.log_" in md.headers["Content-Disposition"]

        summary = http.get("/export/summary")
        assert summary.mimetype == "text/plain"
        assert b"step details" in summary.data

        docx = http.get("/export/docx")
        assert docx.status_code == 200
        assert docx.data[:2] == b"PK"

    def test_new_task_after_completion(self, client_factory):
        http, _ = client_factory("Overall Result: PASS")
        _confirm(http)
        data = http.post("/api/new-task").get_json()
        assert data["state"]["mode"] == "chatting"
        assert data["state"]["tasks"] == []


class TestNavigationApi:
    def test_new_task_and_cancel(self, client_factory):
        http, _ = client_factory()
        assert http.post("/api/navigate", json={"action": "new-task"}).get_json()["state"]["show_confirmation"]
        assert not http.post("/api/confirm/cancel").get_json()["state"]["show_confirmation"]

    def test_history(self, client_factory):
        http, _ = client_factory()
        data = http.post("/api/navigate", json={"action": "history"}).get_json()
        assert data["notification"]["title"] == "Message History"
        assert "0 messages" in data["notification"]["description"]
