"""Extract plain text from uploaded documents."""

from __future__ import annotations

import html
import logging
import os
import zipfile
from pathlib import Path
from typing import Union

from langchain_community.document_loaders import PyPDFLoader

from .errors import ParseError, UnsupportedFileType

logger = logging.getLogger(__name__)


# Extension -> type tag understood by parse_file
EXTENSION_TYPES = {
    "pdf": "pdf",
    "docx": "docx",
    "doc": "docx",
    "txt": "txt",
    "md": "txt",
}

SUPPORTED_TYPES = {"pdf", "docx", "txt", "md"}

DOCX_BODY_PART = "word/document.xml"

# Tags that start a new line in the recovered text
_DOCX_BREAK_TAGS = {"w:p", "w:br"}


def detect_file_type(path: Union[str, Path]) -> str:
    """Map a file's extension to a type tag."""
    ext = os.path.splitext(str(path))[1].lstrip(".").lower()
    file_type = EXTENSION_TYPES.get(ext)
    if file_type is None:
        raise UnsupportedFileType(f"Unsupported file type: {ext or '(none)'}", path)
    return file_type


def _tag_name(tag: str) -> str:
    """Return the element name of a raw tag body like ``w:p w:rsidR="..."/``."""
    body = tag.strip().rstrip("/")
    if not body:
        return ""
    return body.split()[0]


def strip_docx_markup(xml: str) -> str:
    """
    Recover body text from WordprocessingML by dropping tags.

    Character data outside tags is kept; a newline is emitted whenever a
    paragraph or line-break start tag is seen. Formatting is lost.
    """
    parts = []
    tag = []
    in_tag = False

    for ch in xml:
        if ch == "<":
            in_tag = True
            tag = []
        elif ch == ">":
            in_tag = False
            if _tag_name("".join(tag)) in _DOCX_BREAK_TAGS:
                parts.append("\n")
        elif in_tag:
            tag.append(ch)
        else:
            parts.append(ch)

    return html.unescape("".join(parts))


def _parse_docx(path: Path) -> str:
    try:
        with zipfile.ZipFile(path) as archive:
            try:
                raw = archive.read(DOCX_BODY_PART)
            except KeyError:
                raise ParseError(f"Missing {DOCX_BODY_PART} in document", path) from None
    except zipfile.BadZipFile as exc:
        raise ParseError(f"Failed to open docx: {exc}", path) from exc
    except OSError as exc:
        raise ParseError(f"Failed to read docx: {exc}", path) from exc

    try:
        content = raw.decode("utf-8")
    except UnicodeDecodeError as exc:
        raise ParseError(f"Document XML is not valid UTF-8: {exc}", path) from exc

    return strip_docx_markup(content)


def _parse_pdf(path: Path) -> str:
    logger.info("Extracting text from PDF: %s", path.name)
    try:
        pages = PyPDFLoader(str(path)).load()
    except Exception as exc:
        raise ParseError(f"PDF extraction error: {exc}", path) from exc

    text = "\n".join(page.page_content for page in pages)
    logger.info("PDF extraction complete: pages=%d, chars=%d", len(pages), len(text))
    return text


def _parse_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise ParseError(f"File is not valid UTF-8 text: {exc}", path) from exc
    except OSError as exc:
        raise ParseError(f"Failed to read file: {exc}", path) from exc


def parse_file(path: Union[str, Path], file_type: str) -> str:
    """
    Extract the text content of a document.

    Args:
        path: Path to the document on disk
        file_type: One of ``pdf``, ``docx``, ``txt`` or ``md``

    Returns:
        Extracted text; may be blank, callers decide whether that is an error

    Raises:
        UnsupportedFileType: If ``file_type`` is not recognized
        ParseError: If the file is missing, unreadable or corrupt
    """
    path = Path(path)
    if file_type not in SUPPORTED_TYPES:
        raise UnsupportedFileType(f"Unsupported file type: {file_type}", path)
    if not path.is_file():
        raise ParseError("File not found", path)

    if file_type == "pdf":
        return _parse_pdf(path)
    if file_type == "docx":
        return _parse_docx(path)
    return _parse_text(path)
