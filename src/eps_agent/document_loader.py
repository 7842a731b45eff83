from __future__ import annotations
import io
import logging
import xml.etree.ElementTree as ET
from pathlib import Path
import zipfile
from pypdf import PdfReader
from pypdf.errors import PdfReadError
logger = logging.getLogger(__name__)
SUPPORTED_TEXT_SUFFIXES = {".log", ".txt", ".xml", ".json", ".md", ".markdown", ".csv", ""}
DOCX_SUFFIXES = {".docx"}
PDF_SUFFIXES = {".pdf"}
WORD_NS = "{http://schemas.openxmlformats.org/wordprocessingml/2006/main}"
WORD_BREAKS = {f"{WORD_NS}tab": "\t", f"{WORD_NS}br": "\n", f"{WORD_NS}cr": "\n"}
class DocumentLoadError(ValueError):
    """Raised when an uploaded log or test case cannot be read as text."""
def _unreadable(filename: str) -> DocumentLoadError:
    return DocumentLoadError(
        f"Failed to read file: {filename}. Please ensure it is a valid text-based file."
    )
def load_uploaded_text(filename: str, raw_bytes: bytes) -> str:
    suffix = Path(filename or "").suffix.lower()
    if suffix in DOCX_SUFFIXES:
        text = _extract_docx_text(raw_bytes, filename)
    elif suffix in PDF_SUFFIXES:
        text = _extract_pdf_text(raw_bytes, filename)
    else:
        if suffix not in SUPPORTED_TEXT_SUFFIXES:
            logger.info("Reading %s with unrecognised suffix %r as text", filename, suffix)
        text = _decode_text(raw_bytes)
    logger.info("File content read: name=%s length=%s", filename, len(text))
    return text
def load_text_document(path: Path) -> str:
    return load_uploaded_text(path.name, path.read_bytes())
def _decode_text(raw_bytes: bytes) -> str:
    if raw_bytes.startswith(b"\xef\xbb\xbf"):
        return raw_bytes[3:].decode("utf-8", errors="replace")
    if raw_bytes.startswith((b"\xff\xfe", b"\xfe\xff")):
        return raw_bytes.decode("utf-16", errors="replace")
    return raw_bytes.decode("utf-8", errors="replace")
def _word_paragraph_text(paragraph: ET.Element) -> str:
    pieces = []
    for node in paragraph.iter():
        if node.tag == f"{WORD_NS}t":
            pieces.append(node.text or "")
        elif node.tag in WORD_BREAKS:
            pieces.append(WORD_BREAKS[node.tag])
    return "".join(pieces).strip()
def _extract_docx_text(raw_bytes: bytes, filename: str) -> str:
    try:
        with zipfile.ZipFile(io.BytesIO(raw_bytes)) as archive:
            root = ET.fromstring(archive.read("word/document.xml"))
    except (zipfile.BadZipFile, KeyError, ET.ParseError) as exc:
        raise _unreadable(filename) from exc
    # Steps in a test case document are separated by blank lines.
    paragraphs = (_word_paragraph_text(p) for p in root.iter(f"{WORD_NS}p"))
    return "\n\n".join(text for text in paragraphs if text)
def _extract_pdf_text(raw_bytes: bytes, filename: str) -> str:
    try:
        reader = PdfReader(io.BytesIO(raw_bytes))
        pages = [(page.extract_text() or "").strip() for page in reader.pages]
    except (PdfReadError, ValueError) as exc:
        raise _unreadable(filename) from exc
    return "\n\n".join(page for page in pages if page)
