"""Shared fixtures: a scripted stand-in for the Ollama client."""

import pytest

from eps_agent.orchestrator import ChatOrchestrator


class ScriptedClient:
    """Returns queued replies (or raises queued errors) and records every call."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []
        self.model = "test-model"

    def send_chat(self, message, log_content=None, test_case_content=None):
        self.calls.append(
            {
                "message": message,
                "log_content": log_content,
                "test_case_content": test_case_content,
            }
        )
        outcome = self.outcomes.pop(0) if self.outcomes else "ok"
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


@pytest.fixture
def scripted_client():
    return ScriptedClient()


@pytest.fixture
def make_orchestrator():
    def _make(*outcomes):
        client = ScriptedClient(*outcomes)
        return ChatOrchestrator(client), client

    return _make
