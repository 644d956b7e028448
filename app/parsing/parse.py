from __future__ import annotations

from io import BytesIO
from pathlib import Path

from docx import Document
from pypdf import PdfReader

from .models import ParsedDoc

SUPPORTED_EXTENSIONS = {".txt": "txt", ".pdf": "pdf", ".docx": "docx"}


def _parse_txt(content: bytes) -> tuple[str, list[str]]:
    return content.decode("utf-8", errors="replace"), []


def _parse_pdf(content: bytes) -> tuple[str, list[str]]:
    warnings: list[str] = []

    try:
        reader = PdfReader(BytesIO(content))
        text_parts = [(page.extract_text() or "").strip() for page in reader.pages]
        text_parts = [part for part in text_parts if part]
        if not text_parts:
            warnings.append("No extractable text found in PDF.")
        return "\n".join(text_parts), warnings
    except Exception as exc:
        warnings.append(f"PDF parsing failed: {exc}")
        return "", warnings


def _parse_docx(content: bytes) -> tuple[str, list[str]]:
    warnings: list[str] = []

    try:
        document = Document(BytesIO(content))
        paragraphs = [p.text.strip() for p in document.paragraphs if p.text and p.text.strip()]
        if not paragraphs:
            warnings.append("No extractable text found in DOCX.")
        return "\n".join(paragraphs), warnings
    except Exception as exc:
        warnings.append(f"DOCX parsing failed: {exc}")
        return "", warnings


def parse_bytes(content: bytes, filename: str) -> ParsedDoc:
    """Extract resume text from an uploaded .txt, .pdf or .docx payload.

    Unreadable files come back with empty text and a warning; unsupported
    extensions raise ``NotImplementedError``.
    """
    extension = Path(filename).suffix.lower()
    source_type = SUPPORTED_EXTENSIONS.get(extension)
    if source_type is None:
        raise NotImplementedError(
            f"Unsupported file type '{extension}'. Supported types: .txt, .pdf, .docx"
        )

    if source_type == "txt":
        text, warnings = _parse_txt(content)
    elif source_type == "pdf":
        text, warnings = _parse_pdf(content)
    else:
        text, warnings = _parse_docx(content)

    return ParsedDoc(source_type=source_type, filename=filename, text=text, parsing_warnings=warnings)
