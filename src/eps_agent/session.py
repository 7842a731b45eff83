"""In-memory session state for the EPS chat workflow.

``SessionState`` is an immutable snapshot. Every change goes through
``apply_event(state, event)``, which returns a new snapshot and performs no
I/O. The orchestrator runs the model call between events and feeds the
outcome back in as a follow-up event.
"""
from __future__ import annotations
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple, Union
from .results import extract_validation_result
VALIDATION_TASK_DESCRIPTION = "Validate test case against EPS log"
TEST_CASE_DETECTED_REPLY = (
    "It looks like you've pasted a test case. Please upload the EPS log file it "
    "should be validated against, and I'll run the validation."
)
FILE_RECEIVED_REPLY = (
    'File "{file_name}" received. I\'ve generated 1 task for processing. '
    "I'll now begin validating the test case against the EPS log."
)
NEW_TASK_READY_REPLY = "Ready to start a new task! You can upload a new file or continue chatting."
VALIDATION_FAILED_REPLY = (
    "Validation of \"{file_name}\" could not be completed. {detail}"
)
def _now() -> datetime:
    return datetime.now()
class AppMode(str, Enum):
    CHATTING = "chatting"
    TASK_MODE = "task_mode"
    TASKS_COMPLETED = "tasks_completed"
class InvalidTransition(Exception):
    """Raised when an event is not allowed in the current mode."""
@dataclass(frozen=True)
class Message:
    id: int
    role: str
    content: str
    timestamp: datetime = field(default_factory=_now)
    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "role": self.role,
            "content": self.content,
            "timestamp": self.timestamp.isoformat(),
        }
@dataclass(frozen=True)
class Task:
    id: str
    description: str
    completed: bool = False
    justification: Optional[str] = None
    completed_at: Optional[datetime] = None
    log_content: Optional[str] = None
    test_case_content: Optional[str] = None
    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "id": self.id,
            "description": self.description,
            "completed": self.completed,
            "justification": self.justification,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
        }
        if self.completed:
            result = extract_validation_result(self.justification)
            data["overall_result"] = result.overall_result
            data["reasoning"] = result.reasoning
        return data
@dataclass(frozen=True)
class SessionState:
    mode: AppMode = AppMode.CHATTING
    messages: Tuple[Message, ...] = ()
    tasks: Tuple[Task, ...] = ()
    completed_count: int = 0
    current_file: str = ""
    is_loading: bool = False
    completion_timestamp: datetime = field(default_factory=_now)
    show_confirmation: bool = False
    draft_test_case: str = ""
    @property
    def completed_task(self) -> Optional[Task]:
        if self.mode is not AppMode.TASKS_COMPLETED or not self.tasks:
            return None
        return self.tasks[0]
    def to_dict(self) -> Dict[str, Any]:
        return {
            "mode": self.mode.value,
            "messages": [m.to_dict() for m in self.messages],
            "tasks": [t.to_dict() for t in self.tasks],
            "completed_count": self.completed_count,
            "total_count": len(self.tasks),
            "current_file": self.current_file,
            "is_loading": self.is_loading,
            "completion_timestamp": self.completion_timestamp.isoformat(),
            "show_confirmation": self.show_confirmation,
            "draft_test_case": self.draft_test_case,
        }
@dataclass(frozen=True)
class MessageSubmitted:
    content: str
    at: datetime = field(default_factory=_now)
@dataclass(frozen=True)
class ReplyReceived:
    content: str
    at: datetime = field(default_factory=_now)
@dataclass(frozen=True)
class ReplyFailed:
    apology: str
    at: datetime = field(default_factory=_now)
@dataclass(frozen=True)
class PastedTestCase:
    content: str
    at: datetime = field(default_factory=_now)
@dataclass(frozen=True)
class FileConfirmed:
    file_name: str
    log_content: str
    test_case_content: str
    task_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    at: datetime = field(default_factory=_now)
@dataclass(frozen=True)
class ValidationSucceeded:
    reply: str
    at: datetime = field(default_factory=_now)
@dataclass(frozen=True)
class ValidationFailed:
    detail: str
    at: datetime = field(default_factory=_now)
@dataclass(frozen=True)
class NewTaskStarted:
    at: datetime = field(default_factory=_now)
@dataclass(frozen=True)
class ConfirmationOpened:
    pass
@dataclass(frozen=True)
class ConfirmationCancelled:
    pass
@dataclass(frozen=True)
class AssistantNotice:
    content: str
    at: datetime = field(default_factory=_now)
Event = Union[
    MessageSubmitted,
    ReplyReceived,
    ReplyFailed,
    PastedTestCase,
    FileConfirmed,
    ValidationSucceeded,
    ValidationFailed,
    NewTaskStarted,
    ConfirmationOpened,
    ConfirmationCancelled,
    AssistantNotice,
]
def _append(state: SessionState, role: str, content: str, at: datetime) -> Tuple[Message, ...]:
    message = Message(id=len(state.messages) + 1, role=role, content=content, timestamp=at)
    return state.messages + (message,)
def _require_loading(state: SessionState, event: Event) -> None:
    if not state.is_loading:
        raise InvalidTransition(f"{type(event).__name__} received with no request in flight")
def _require_idle(state: SessionState, event: Event) -> None:
    if state.is_loading:
        raise InvalidTransition(f"{type(event).__name__} rejected while a request is in flight")
def _complete_task(state: SessionState, justification: str, at: datetime) -> Tuple[Task, ...]:
    if state.mode is not AppMode.TASK_MODE or not state.tasks:
        raise InvalidTransition(f"No pending task to complete in mode {state.mode.value}")
    task = state.tasks[0]
    done = replace(task, completed=True, justification=justification, completed_at=at)
    return (done,) + state.tasks[1:]
def apply_event(state: SessionState, event: Event) -> SessionState:
    if isinstance(event, MessageSubmitted):
        _require_idle(state, event)
        return replace(
            state,
            messages=_append(state, "user", event.content, event.at),
            is_loading=True,
        )
    if isinstance(event, ReplyReceived):
        _require_loading(state, event)
        return replace(
            state,
            messages=_append(state, "assistant", event.content, event.at),
            is_loading=False,
        )
    if isinstance(event, ReplyFailed):
        _require_loading(state, event)
        return replace(
            state,
            messages=_append(state, "assistant", event.apology, event.at),
            is_loading=False,
        )
    if isinstance(event, PastedTestCase):
        _require_idle(state, event)
        with_user = replace(state, messages=_append(state, "user", event.content, event.at))
        return replace(
            with_user,
            messages=_append(with_user, "assistant", TEST_CASE_DETECTED_REPLY, event.at),
            show_confirmation=True,
            draft_test_case=event.content,
        )
    if isinstance(event, FileConfirmed):
        _require_idle(state, event)
        if state.mode is not AppMode.CHATTING:
            raise InvalidTransition(
                f"Cannot start a validation task in mode {state.mode.value}"
            )
        task = Task(
            id=event.task_id,
            description=VALIDATION_TASK_DESCRIPTION,
            log_content=event.log_content,
            test_case_content=event.test_case_content,
        )
        return replace(
            state,
            mode=AppMode.TASK_MODE,
            tasks=(task,),
            completed_count=0,
            current_file=event.file_name,
            show_confirmation=False,
            draft_test_case="",
            messages=_append(
                state,
                "assistant",
                FILE_RECEIVED_REPLY.format(file_name=event.file_name),
                event.at,
            ),
            is_loading=True,
        )
    if isinstance(event, ValidationSucceeded):
        _require_loading(state, event)
        return replace(
            state,
            tasks=_complete_task(state, event.reply, event.at),
            completed_count=1,
            mode=AppMode.TASKS_COMPLETED,
            completion_timestamp=event.at,
            messages=_append(state, "assistant", event.reply, event.at),
            is_loading=False,
        )
    if isinstance(event, ValidationFailed):
        _require_loading(state, event)
        return replace(
            state,
            tasks=_complete_task(state, f"Validation failed. {event.detail}", event.at),
            completed_count=1,
            mode=AppMode.TASKS_COMPLETED,
            completion_timestamp=event.at,
            messages=_append(
                state,
                "assistant",
                VALIDATION_FAILED_REPLY.format(file_name=state.current_file, detail=event.detail),
                event.at,
            ),
            is_loading=False,
        )
    if isinstance(event, NewTaskStarted):
        if state.mode is not AppMode.TASKS_COMPLETED:
            raise InvalidTransition(
                f"A new task can only be started once tasks are completed (mode {state.mode.value})"
            )
        return replace(
            state,
            mode=AppMode.CHATTING,
            tasks=(),
            completed_count=0,
            current_file="",
            completion_timestamp=event.at,
            messages=_append(state, "assistant", NEW_TASK_READY_REPLY, event.at),
        )
    if isinstance(event, ConfirmationOpened):
        return replace(state, show_confirmation=True)
    if isinstance(event, ConfirmationCancelled):
        return replace(state, show_confirmation=False, draft_test_case="")
    if isinstance(event, AssistantNotice):
        return replace(state, messages=_append(state, "assistant", event.content, event.at))
    raise InvalidTransition(f"Unknown event: {event!r}")
