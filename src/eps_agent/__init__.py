from .config import AgentSettings, load_settings, save_settings
from .confirmation import ConfirmationPayload, ConfirmationRejected, build_confirmation
from .document_loader import DocumentLoadError, load_text_document, load_uploaded_text
from .export import ExportError, build_docx_report, build_markdown_report, build_summary_text
from .ollama_client import ConnectivityError, ModelClientError, OllamaClient, TransportError
from .orchestrator import ChatOrchestrator, Notification
from .prompt_builder import (
    DEFAULT_MAX_CONTENT_CHARS,
    build_validation_prompt,
    looks_like_test_case,
    truncate_content,
)
from .results import ValidationResult, extract_validation_result
from .session import AppMode, InvalidTransition, Message, SessionState, Task, apply_event
__all__ = [
    "AgentSettings",
    "AppMode",
    "ChatOrchestrator",
    "ConfirmationPayload",
    "ConfirmationRejected",
    "ConnectivityError",
    "DEFAULT_MAX_CONTENT_CHARS",
    "DocumentLoadError",
    "ExportError",
    "InvalidTransition",
    "Message",
    "ModelClientError",
    "Notification",
    "OllamaClient",
    "SessionState",
    "Task",
    "TransportError",
    "ValidationResult",
    "apply_event",
    "build_confirmation",
    "build_docx_report",
    "build_markdown_report",
    "build_summary_text",
    "build_validation_prompt",
    "extract_validation_result",
    "load_settings",
    "load_text_document",
    "load_uploaded_text",
    "looks_like_test_case",
    "save_settings",
    "truncate_content",
]
__version__ = "2025.1.0"
