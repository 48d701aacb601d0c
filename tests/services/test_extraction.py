from __future__ import annotations

import base64
import io
import sys

import pytest

from fixtures import FakeChatClient
from quizify.services.extraction import (
    DOCX_CONTENT_TYPE,
    PDF_CONTENT_TYPE,
    ExtractionError,
    ExtractorDependencies,
    build_dependencies,
    extract_text,
    failure_message,
)
from quizify.services.storage import StoredObject


def _stored(content_type: str, data: bytes = b"payload") -> StoredObject:
    return StoredObject(
        file_path="abc/notes",
        file_name="notes",
        content_type=content_type,
        data=data,
    )


def _fake_dependencies(calls):
    def pdf(data: bytes) -> str:
        calls.append(("pdf", data))
        return "pdf text"

    def docx(data: bytes) -> str:
        calls.append(("docx", data))
        return "docx text"

    def generic(stored: StoredObject) -> str:
        calls.append(("generic", stored.content_type))
        return "generic text"

    return ExtractorDependencies(pdf=pdf, docx=docx, generic=generic)


@pytest.mark.parametrize(
    ("content_type", "backend"),
    [
        (PDF_CONTENT_TYPE, "pdf"),
        (DOCX_CONTENT_TYPE, "docx"),
        ("image/png", "generic"),
        ("application/octet-stream", "generic"),
    ],
)
def test_backend_follows_content_type(logger, content_type, backend):
    calls = []

    text = extract_text(
        _stored(content_type),
        dependencies=_fake_dependencies(calls),
        logger=logger,
    )

    assert text == f"{backend} text"
    assert calls[0][0] == backend


def test_plain_text_is_decoded_and_tidied(logger):
    calls = []
    data = "Line one   \n\n\n\n\nLine two\n".encode("utf-8")

    text = extract_text(
        _stored("text/plain", data),
        dependencies=_fake_dependencies(calls),
        logger=logger,
    )

    assert text == "Line one\n\nLine two"
    assert calls == []


def test_empty_document_is_reported(logger):
    with pytest.raises(ExtractionError) as excinfo:
        extract_text(
            _stored("text/plain", b"  \n\n "),
            dependencies=_fake_dependencies([]),
            logger=logger,
        )

    assert str(excinfo.value) == failure_message(
        "no text found in the document."
    )


def test_backend_errors_are_wrapped(logger):
    def broken(data: bytes) -> str:
        raise ValueError("cannot open broken document")

    dependencies = ExtractorDependencies(
        pdf=broken, docx=broken, generic=lambda stored: ""
    )

    with pytest.raises(ExtractionError) as excinfo:
        extract_text(
            _stored(PDF_CONTENT_TYPE),
            dependencies=dependencies,
            logger=logger,
        )

    assert str(excinfo.value) == (
        "Failed to extract text from the file: cannot open broken document"
    )


def test_generic_backend_sends_file_to_model(logger):
    client = FakeChatClient("Text read from the image.")
    data = b"\x89PNG fake"

    text = extract_text(
        _stored("image/png", data),
        dependencies=build_dependencies(client),
        logger=logger,
    )

    assert text == "Text read from the image."
    content = client.calls[0]["messages"][0]["content"]
    assert content[0] == {
        "type": "text",
        "text": "Extract text from the following document.",
    }
    attached = content[1]["file"]
    assert attached["filename"] == "notes"
    assert attached["file_data"] == (
        "data:image/png;base64," + base64.b64encode(data).decode("ascii")
    )


def test_generic_backend_without_client(logger):
    with pytest.raises(ExtractionError) as excinfo:
        extract_text(
            _stored("image/png"),
            dependencies=build_dependencies(None),
            logger=logger,
        )

    assert "no AI client is configured" in str(excinfo.value)


def test_missing_pdf_backend_is_reported(logger, monkeypatch):
    monkeypatch.setitem(sys.modules, "fitz", None)

    with pytest.raises(ExtractionError) as excinfo:
        extract_text(
            _stored(PDF_CONTENT_TYPE),
            dependencies=build_dependencies(),
            logger=logger,
        )

    assert "'fitz' backend is not installed" in str(excinfo.value)


def test_pdf_backend_reads_pages(logger):
    fitz = pytest.importorskip("fitz")
    document = fitz.open()
    page = document.new_page()
    page.insert_text((72, 72), "Chlorophyll absorbs light.")
    data = document.tobytes()
    document.close()

    text = extract_text(
        _stored(PDF_CONTENT_TYPE, data),
        dependencies=build_dependencies(),
        logger=logger,
    )

    assert "Chlorophyll absorbs light." in text


def test_docx_backend_reads_paragraphs(logger):
    docx = pytest.importorskip("docx")
    document = docx.Document()
    document.add_paragraph("Stomata let gases in.")
    document.add_paragraph("Roots take up water.")
    buffer = io.BytesIO()
    document.save(buffer)

    text = extract_text(
        _stored(DOCX_CONTENT_TYPE, buffer.getvalue()),
        dependencies=build_dependencies(),
        logger=logger,
    )

    assert "Stomata let gases in.\nRoots take up water." in text
