from __future__ import annotations
import re
from dataclasses import dataclass
from typing import Optional
OVERALL_RESULT_PATTERN = re.compile(r"Overall Result:\s*(PASS|FAIL)", re.IGNORECASE)
REASONING_MARKER = "Reasoning and Evidence:"
UNKNOWN_RESULT = "Unknown"
NO_JUSTIFICATION = "No justification provided"
@dataclass(frozen=True)
class ValidationResult:
    overall_result: str
    reasoning: str
def extract_validation_result(justification: Optional[str]) -> ValidationResult:
    """Pull the PASS/FAIL verdict and the evidence body out of a model reply.

    A reply without a verdict line reports ``Unknown``; a reply without the
    ``Reasoning and Evidence:`` marker is shown whole.
    """
    text = justification or ""
    match = OVERALL_RESULT_PATTERN.search(text)
    overall = match.group(1).upper() if match else UNKNOWN_RESULT
    reasoning = ""
    if REASONING_MARKER in text:
        reasoning = text.split(REASONING_MARKER, 1)[1].strip()
    if not reasoning:
        reasoning = text or NO_JUSTIFICATION
    return ValidationResult(overall_result=overall, reasoning=reasoning)
