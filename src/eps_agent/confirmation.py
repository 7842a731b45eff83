from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
MISSING_LOG_MESSAGE = "Please select a valid EPS log file to process"
MISSING_TEST_CASE_MESSAGE = "Please paste a valid test case to validate against"
class ConfirmationRejected(ValueError):
    """Raised at the form boundary when a log or test case is missing."""
@dataclass(frozen=True)
class ConfirmationPayload:
    file_name: str
    log_content: str
    test_case_content: str
    timestamp: datetime = field(default_factory=datetime.now)
def build_confirmation(
    file_name: str | None,
    log_content: str | None,
    test_case_content: str | None,
) -> ConfirmationPayload:
    if not (file_name or "").strip() or not (log_content or "").strip():
        raise ConfirmationRejected(MISSING_LOG_MESSAGE)
    if not (test_case_content or "").strip():
        raise ConfirmationRejected(MISSING_TEST_CASE_MESSAGE)
    return ConfirmationPayload(
        file_name=file_name.strip(),
        log_content=log_content,
        test_case_content=test_case_content,
    )
