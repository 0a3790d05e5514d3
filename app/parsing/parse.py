from __future__ import annotations

import hashlib
import logging
import re
from typing import Callable

from app.analysis.errors import ExtractionTooShort, FileParsingError, UnsupportedFormat
from app.parsing.decode import decode_transport_payload
from app.parsing.models import ExtractedDocument
from app.parsing.sanitize import MIN_TEXT_LENGTH, collapse_whitespace, has_minimum_length, sanitize_text

logger = logging.getLogger(__name__)

# Literal-string operands of an uncompressed content stream, e.g. "(Senior Engineer) Tj".
_PDF_LITERAL_RE = re.compile(r"\(([^)]+)\)")
_PDF_ESCAPE_RE = re.compile(r"\\[nrt]")
# Text between any closing and opening tag in the container.
_XML_TEXT_NODE_RE = re.compile(r">([^<]+)<")

PDF_TOO_SHORT_MESSAGE = (
    "Could not extract sufficient text from PDF. Please try uploading as TXT "
    "or ensure the PDF contains selectable text."
)
DOCX_TOO_SHORT_MESSAGE = "Could not extract sufficient text from DOCX. Please try uploading as TXT."


def _compute_doc_id(text: str, filename: str) -> str:
    seed = text if text.strip() else filename
    digest = hashlib.sha256(seed.encode("utf-8", errors="ignore")).hexdigest()
    return digest[:16]


def _decode_container(content: bytes) -> str:
    return content.decode("utf-8", errors="replace")


def _extract_txt(content: bytes) -> str:
    return _decode_container(content)


def _extract_pdf(content: bytes) -> str:
    raw = _decode_container(content)
    literals = _PDF_LITERAL_RE.findall(raw)
    text = collapse_whitespace(_PDF_ESCAPE_RE.sub(" ", " ".join(literals)))
    if len(text) < MIN_TEXT_LENGTH:
        raise ExtractionTooShort(PDF_TOO_SHORT_MESSAGE)
    return text


def _extract_docx(content: bytes) -> str:
    raw = _decode_container(content)
    nodes = [node for node in _XML_TEXT_NODE_RE.findall(raw) if len(node.strip()) > 2]
    text = collapse_whitespace(" ".join(nodes))
    if len(text) < MIN_TEXT_LENGTH:
        raise ExtractionTooShort(DOCX_TOO_SHORT_MESSAGE)
    return text


_EXTRACTORS: dict[str, tuple[str, Callable[[bytes], str]]] = {
    ".txt": ("txt", _extract_txt),
    ".pdf": ("pdf", _extract_pdf),
    ".docx": ("docx", _extract_docx),
}


def _resolve_extractor(filename: str) -> tuple[str, Callable[[bytes], str]]:
    for suffix, entry in _EXTRACTORS.items():
        if filename.endswith(suffix):
            return entry
    raise UnsupportedFormat()


def resolve_source_type(filename: str) -> str:
    return _resolve_extractor(filename)[0]


def extract_text(content: bytes, filename: str) -> str:
    """Pull human-readable text out of an uploaded resume.

    The strategy is picked from the filename suffix (case-sensitive). Every
    failure surfaces as a FileParsingError carrying a remediation hint.
    """
    source_type, extractor = _resolve_extractor(filename)
    try:
        return extractor(content)
    except FileParsingError:
        raise
    except Exception as exc:
        logger.warning("resume_extraction_failed source_type=%s: %s", source_type, exc)
        raise FileParsingError() from exc


def parse_upload(payload: str, filename: str) -> ExtractedDocument:
    """Decode, extract and sanitize an uploaded resume in one step."""
    content = decode_transport_payload(payload)
    source_type = resolve_source_type(filename)
    text = sanitize_text(extract_text(content, filename))
    if not has_minimum_length(text):
        if source_type == "pdf":
            raise ExtractionTooShort(PDF_TOO_SHORT_MESSAGE)
        if source_type == "docx":
            raise ExtractionTooShort(DOCX_TOO_SHORT_MESSAGE)
        raise ExtractionTooShort()

    return ExtractedDocument(
        doc_id=_compute_doc_id(text=text, filename=filename),
        filename=filename,
        source_type=source_type,
        text=text,
    )
