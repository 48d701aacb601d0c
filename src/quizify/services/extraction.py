"""Text extraction for uploaded documents.

Extraction branches on the stored content type: PDFs go through PyMuPDF,
Word documents through python-docx, plain text is decoded directly, and
anything else is handed to the chat model as an attached file.
"""

from __future__ import annotations

import base64
import importlib
import io
import logging
import re
from dataclasses import dataclass
from typing import Callable

from quizify.core.ai import ChatClient

from .storage import StoredObject

__all__ = [
    "DOCX_CONTENT_TYPE",
    "PDF_CONTENT_TYPE",
    "DependencyError",
    "ExtractionError",
    "ExtractorDependencies",
    "build_dependencies",
    "extract_text",
    "failure_message",
]

PDF_CONTENT_TYPE = "application/pdf"
DOCX_CONTENT_TYPE = (
    "application/vnd.openxmlformats-officedocument.wordprocessingml.document"
)

_GENERIC_PROMPT = "Extract text from the following document."


class ExtractionError(RuntimeError):
    """Raised when no text could be extracted from a stored object."""


class DependencyError(ExtractionError):
    """Raised when a parsing backend is not installed."""


@dataclass(frozen=True)
class ExtractorDependencies:
    """Callable seams for backend-specific extraction logic."""

    pdf: Callable[[bytes], str]
    docx: Callable[[bytes], str]
    generic: Callable[[StoredObject], str]


def failure_message(reason: str) -> str:
    return f"Failed to extract text from the file: {reason}"


def extract_text(
    stored: StoredObject,
    *,
    dependencies: ExtractorDependencies,
    logger: logging.Logger,
) -> str:
    """Return the text content of ``stored``.

    Every failure is raised as :class:`ExtractionError` carrying the single
    user-facing message.
    """

    backend = _backend_for(stored.content_type)
    logger.info(
        "Extracting text",
        extra={
            "file_path": stored.file_path,
            "content_type": stored.content_type,
            "bytes": stored.size,
            "backend": backend,
        },
    )
    try:
        if backend == "pdf":
            text = dependencies.pdf(stored.data)
        elif backend == "docx":
            text = dependencies.docx(stored.data)
        elif backend == "plain":
            text = stored.data.decode("utf-8", errors="replace")
        else:
            text = dependencies.generic(stored)
    except Exception as exc:
        logger.exception(
            "Text extraction failed",
            extra={"file_path": stored.file_path, "backend": backend},
        )
        reason = str(exc) or type(exc).__name__
        raise ExtractionError(failure_message(reason)) from exc

    text = _tidy(text or "")
    if not text:
        raise ExtractionError(
            failure_message("no text found in the document.")
        )
    logger.info(
        "Extracted text",
        extra={"file_path": stored.file_path, "text_chars": len(text)},
    )
    return text


def build_dependencies(
    client: ChatClient | None = None,
) -> ExtractorDependencies:
    """Return the default extraction backends.

    Parsing libraries are imported on first use so a missing optional backend
    only fails the uploads that need it.
    """

    def extract_pdf(data: bytes) -> str:
        fitz = _import_module("fitz", "open")
        with fitz.open(stream=data, filetype="pdf") as document:
            return "\n".join(page.get_text("text") for page in document)

    def extract_docx(data: bytes) -> str:
        docx = _import_module("docx", "Document")
        document = docx.Document(io.BytesIO(data))
        return "\n".join(paragraph.text for paragraph in document.paragraphs)

    def extract_generic(stored: StoredObject) -> str:
        if client is None:
            raise DependencyError(
                "no AI client is configured for this file type."
            )
        encoded = base64.b64encode(stored.data).decode("ascii")
        data_uri = f"data:{stored.content_type};base64,{encoded}"
        return client.complete(
            [
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": _GENERIC_PROMPT},
                        {
                            "type": "file",
                            "file": {
                                "filename": stored.file_name,
                                "file_data": data_uri,
                            },
                        },
                    ],
                }
            ]
        )

    return ExtractorDependencies(
        pdf=extract_pdf,
        docx=extract_docx,
        generic=extract_generic,
    )


def _backend_for(content_type: str) -> str:
    if content_type == PDF_CONTENT_TYPE:
        return "pdf"
    if content_type == DOCX_CONTENT_TYPE:
        return "docx"
    if content_type.startswith("text/"):
        return "plain"
    return "generic"


def _import_module(module: str, required_attribute: str):
    try:
        imported = importlib.import_module(module)
    except ImportError as exc:
        raise DependencyError(
            f"the '{module}' backend is not installed."
        ) from exc
    if not hasattr(imported, required_attribute):
        raise DependencyError(
            f"the '{module}' backend is missing '{required_attribute}'."
        )
    return imported


def _tidy(text: str) -> str:
    text = re.sub(r"[ \t]+\n", "\n", text)
    text = re.sub(r"\n{3,}", "\n\n", text)
    return text.strip()
