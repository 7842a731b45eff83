from __future__ import annotations
import re
from datetime import datetime
from io import BytesIO
from docx import Document
from docx.shared import Pt
from .results import extract_validation_result
from .session import Task
NOT_AVAILABLE = "N/A"
XML_INVALID_CHARS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f]")
class ExportError(RuntimeError):
    """Raised when there is no completed validation to export."""
def _require_completed(task: Task | None) -> Task:
    if task is None or not task.completed:
        raise ExportError("No completed validation task to export.")
    return task
def _format_timestamp(value: datetime) -> str:
    return value.strftime("%Y-%m-%d %H:%M:%S")
def export_filename(file_name: str, suffix: str, now: datetime | None = None) -> str:
    stamp = int((now or datetime.now()).timestamp() * 1000)
    safe_name = re.sub(r"[^A-Za-z0-9._-]+", "_", file_name or "results").strip("_") or "results"
    return f"eps_validation_{safe_name}_{stamp}{suffix}"
def build_markdown_report(task: Task | None, file_name: str, completed_at: datetime) -> str:
    task = _require_completed(task)
    result = extract_validation_result(task.justification)
    return (
        "# EPS Validation Results\n\n"
        f"**File:** {file_name}\n"
        f"**Completed At:** {_format_timestamp(completed_at)}\n\n"
        f"## Task: {task.description}\n\n"
        f"**Overall Result:** {result.overall_result}\n\n"
        "**Reasoning and Evidence:**\n"
        f"{result.reasoning}\n\n"
        "**Raw EPS Log Content:**\n"
        f"{task.log_content or NOT_AVAILABLE}\n\n"
        "**Test Case Content:**\n"
        f"{task.test_case_content or NOT_AVAILABLE}"
    )
def build_summary_text(task: Task | None, file_name: str, completed_at: datetime) -> str:
    task = _require_completed(task)
    result = extract_validation_result(task.justification)
    return (
        "EPS Validation Results\n"
        f"File: {file_name}\n"
        f"Completed At: {_format_timestamp(completed_at)}\n"
        f"Task: {task.description}\n"
        f"Overall Result: {result.overall_result}\n"
        "Reasoning and Evidence:\n"
        f"{result.reasoning}"
    )
def _add_monospace_block(doc: Document, text: str) -> None:
    for line in XML_INVALID_CHARS.sub("", text or NOT_AVAILABLE).splitlines() or [""]:
        p = doc.add_paragraph(line)
        for run in p.runs:
            run.font.name = "Courier New"
            run.font.size = Pt(9)
def build_docx_report(task: Task | None, file_name: str, completed_at: datetime) -> bytes:
    task = _require_completed(task)
    result = extract_validation_result(task.justification)
    doc = Document()
    doc.add_heading("EPS Validation Results", level=1)
    p = doc.add_paragraph()
    p.add_run("File: ").bold = True
    p.add_run(file_name)
    p = doc.add_paragraph()
    p.add_run("Completed At: ").bold = True
    p.add_run(_format_timestamp(completed_at))
    doc.add_heading(f"Task: {task.description}", level=2)
    p = doc.add_paragraph()
    p.add_run("Overall Result: ").bold = True
    p.add_run(result.overall_result)
    doc.add_heading("Reasoning and Evidence", level=2)
    for line in XML_INVALID_CHARS.sub("", result.reasoning).splitlines():
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.startswith(("- ", "* ", "• ")):
            doc.add_paragraph(stripped[2:].strip(), style="List Bullet")
        else:
            doc.add_paragraph(stripped)
    doc.add_heading("Raw EPS Log Content", level=2)
    _add_monospace_block(doc, task.log_content or "")
    doc.add_heading("Test Case Content", level=2)
    _add_monospace_block(doc, task.test_case_content or "")
    bio = BytesIO()
    doc.save(bio)
    return bio.getvalue()
