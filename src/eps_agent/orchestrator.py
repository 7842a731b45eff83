from __future__ import annotations
import logging
import threading
from dataclasses import dataclass
from typing import Optional, Protocol
from .confirmation import ConfirmationPayload
from .ollama_client import ConnectivityError, ModelClientError
from .prompt_builder import looks_like_test_case
from .session import (
    AppMode,
    AssistantNotice,
    ConfirmationCancelled,
    ConfirmationOpened,
    Event,
    FileConfirmed,
    MessageSubmitted,
    NewTaskStarted,
    PastedTestCase,
    ReplyFailed,
    ReplyReceived,
    SessionState,
    ValidationFailed,
    ValidationSucceeded,
    apply_event,
)
logger = logging.getLogger(__name__)
CHAT_ERROR_REPLY = "Sorry, I encountered an error processing your message. Please try again."
CONNECTIVITY_ERROR_REPLY = (
    "Sorry, I cannot connect to the local AI service. Please ensure Ollama is running "
    "at {url} and the model is loaded."
)
FEATURE_REQUEST_REPLY = (
    "I'd be happy to help with feature requests! Please describe what functionality "
    "you'd like to see added to the EPS Agent system."
)
PRIVACY_REPLY = (
    "Privacy Information: EPS Agent runs entirely on your local machine. All file "
    "processing, AI conversations, and data analysis happen locally. No data is sent "
    "to external servers, ensuring complete privacy and security of your documents."
)
NAVIGATION_ACTIONS = ("new-task", "history", "request-feature", "privacy")
class ChatClient(Protocol):
    def send_chat(
        self,
        message: str,
        log_content: str | None = None,
        test_case_content: str | None = None,
    ) -> str:
        ...
@dataclass(frozen=True)
class Notification:
    title: str
    description: str
    destructive: bool = False
    def to_dict(self) -> dict:
        return {
            "title": self.title,
            "description": self.description,
            "variant": "destructive" if self.destructive else "default",
        }
def apology_for(exc: Exception) -> str:
    if isinstance(exc, ConnectivityError):
        return CONNECTIVITY_ERROR_REPLY.format(url=exc.url)
    return CHAT_ERROR_REPLY
class ChatOrchestrator:
    """Owns the session and sequences chat, confirmation, validation and reset.

    Events are applied one at a time under ``_lock``; the model call itself
    runs outside the lock so readers can observe the busy state.
    """
    def __init__(self, client: ChatClient, state: Optional[SessionState] = None) -> None:
        self.client = client
        self._state = state or SessionState()
        self._lock = threading.Lock()
    @property
    def state(self) -> SessionState:
        return self._state
    def _dispatch(self, event: Event) -> SessionState:
        with self._lock:
            previous = self._state
            self._state = apply_event(previous, event)
            if previous.mode is not self._state.mode:
                logger.info(
                    "Mode transition: %s -> %s (%s)",
                    previous.mode.value,
                    self._state.mode.value,
                    type(event).__name__,
                )
            return self._state
    def _try_begin(self, event: Event) -> bool:
        with self._lock:
            if self._state.is_loading:
                logger.info("Ignoring %s while a request is in flight", type(event).__name__)
                return False
            self._state = apply_event(self._state, event)
            return True
    def send_message(self, text: str) -> Optional[Notification]:
        if not text or not text.strip():
            return None
        if looks_like_test_case(text):
            if not self._try_begin(PastedTestCase(text)):
                return None
            logger.info("Structured test case detected in chat input (length=%s)", len(text))
            return Notification(
                "Test case detected",
                "Upload the matching EPS log file to start validation.",
            )
        if not self._try_begin(MessageSubmitted(text)):
            return None
        logger.info("Processing user message (length=%s, mode=%s)", len(text), self._state.mode.value)
        try:
            reply = self.client.send_chat(text)
        except Exception as exc:
            if isinstance(exc, ModelClientError):
                logger.error("Chat request failed: %s", exc)
            else:
                logger.exception("Unexpected error from model client")
            self._dispatch(ReplyFailed(apology_for(exc)))
            return Notification(
                "Error",
                "Failed to send message. Please check your connection.",
                destructive=True,
            )
        self._dispatch(ReplyReceived(reply))
        return Notification("Message sent", "EPS Agent has responded to your message.")
    def confirm_file(self, payload: ConfirmationPayload) -> Optional[Notification]:
        with self._lock:
            if self._state.is_loading:
                logger.info("Ignoring file confirmation while a request is in flight")
                return None
            if self._state.mode is AppMode.TASKS_COMPLETED:
                self._state = apply_event(self._state, NewTaskStarted())
            confirmed = FileConfirmed(
                file_name=payload.file_name,
                log_content=payload.log_content,
                test_case_content=payload.test_case_content,
            )
            self._state = apply_event(self._state, confirmed)
        logger.info(
            "File confirmed: name=%s log_length=%s test_case_length=%s",
            payload.file_name,
            len(payload.log_content),
            len(payload.test_case_content),
        )
        return self._run_validation()
    def _run_validation(self) -> Notification:
        task = self._state.tasks[0]
        try:
            reply = self.client.send_chat(
                "",
                log_content=task.log_content,
                test_case_content=task.test_case_content,
            )
        except Exception as exc:
            if isinstance(exc, ModelClientError):
                logger.error("Validation failed for %s: %s", self._state.current_file, exc)
            else:
                logger.exception("Unexpected error validating %s", self._state.current_file)
            detail = f"Error: {exc}"
            if isinstance(exc, ConnectivityError):
                detail = f"{detail}. {CONNECTIVITY_ERROR_REPLY.format(url=exc.url)}"
            state = self._dispatch(ValidationFailed(detail))
            return Notification(
                "Validation failed",
                f"Could not validate {state.current_file}. See the task justification for details.",
                destructive=True,
            )
        state = self._dispatch(ValidationSucceeded(reply))
        return Notification(
            "Validation complete",
            f"Finished validating {state.current_file}.",
        )
    def start_new_task(self) -> Notification:
        self._dispatch(NewTaskStarted())
        return Notification("New Task Ready", "You can now upload a new file for processing.")
    def cancel_confirmation(self) -> None:
        self._dispatch(ConfirmationCancelled())
    def navigate(self, action: str) -> Optional[Notification]:
        logger.info("Sidebar navigation: action=%s mode=%s", action, self._state.mode.value)
        if action == "new-task":
            self._dispatch(ConfirmationOpened())
            return None
        if action == "history":
            count = len(self._state.messages)
            return Notification(
                "Message History",
                f"You have {count} messages in your current session.",
            )
        if action == "request-feature":
            self._dispatch(AssistantNotice(FEATURE_REQUEST_REPLY))
            return None
        if action == "privacy":
            self._dispatch(AssistantNotice(PRIVACY_REPLY))
            return None
        logger.warning("Unknown navigation action: %s", action)
        return None
