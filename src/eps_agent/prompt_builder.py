from __future__ import annotations
import logging
import re
logger = logging.getLogger(__name__)
DEFAULT_MAX_CONTENT_CHARS = 50_000
TRUNCATION_HEADROOM = 100
VALIDATION_USER_INSTRUCTION = "Validate the test case against the EPS log now."
TEST_CASE_PATTERN = re.compile(r"\{TestCaseID|\bStepNo\b|<StepNo", re.IGNORECASE)
def truncate_content(content: str, max_length: int = DEFAULT_MAX_CONTENT_CHARS) -> str:
    if len(content) <= max_length:
        return content
    keep = max(max_length - TRUNCATION_HEADROOM, 0)
    truncated = (
        f"{content[:keep]}...\n[Content truncated: Original length {len(content)} "
        f"exceeds limit of {max_length} characters. "
        "Please use a smaller input or a larger model.]"
    )
    logger.warning(
        "Content truncated: original_length=%s max_length=%s truncated_length=%s",
        len(content),
        max_length,
        len(truncated),
    )
    return truncated
def build_validation_prompt(log_content: str, test_case_content: str) -> str:
    prompt_sections = [
        "System: You are an EPS log validator.",
        "Parse and analyze the raw EPS log content below, then validate it against the test case that follows it.",
        "\n## Raw EPS log\n[" + log_content + "]",
        "\n## Test case\n[" + test_case_content + "]",
        "\n## Response rules\n"
        "- Check every step of the test case against the log in order.\n"
        "- For each step, cite concrete evidence from the log (timestamps, message IDs, event names, values).\n"
        "- If the log or the test case is malformed, note the issue but attempt validation anyway.\n"
        "- Start with a single verdict line formatted exactly as `Overall Result: PASS` or `Overall Result: FAIL`.\n"
        "- Follow it with a `Reasoning and Evidence:` section containing one bullet per test-case step.",
        "User: " + VALIDATION_USER_INSTRUCTION,
    ]
    prompt = "\n\n".join(prompt_sections)
    logger.debug(
        "Built EPS validation prompt: log_length=%s test_case_length=%s prompt_length=%s",
        len(log_content),
        len(test_case_content),
        len(prompt),
    )
    return prompt
def looks_like_test_case(text: str) -> bool:
    """True when chat input carries structured test-case markup rather than prose."""
    return bool(TEST_CASE_PATTERN.search(text or ""))
