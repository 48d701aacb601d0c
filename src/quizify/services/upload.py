"""Client side of the three-step upload: sign, put, extract.

``UploadBroker`` talks to the quizify HTTP API with an ``httpx.Client`` (a
FastAPI ``TestClient`` works too) and collapses every failing step into one
:class:`UploadError` carrying a single user-facing message.
"""

from __future__ import annotations

import logging
import mimetypes
from dataclasses import dataclass
from typing import Any, Mapping

import httpx

__all__ = [
    "UPLOAD_FAILED_MESSAGE",
    "UploadBroker",
    "UploadError",
    "UploadResult",
    "guess_content_type",
]

UPLOAD_FAILED_MESSAGE = "File upload failed."


class UploadError(RuntimeError):
    """Raised when any step of the upload sequence fails."""


@dataclass(frozen=True)
class UploadResult:
    file_path: str
    text: str


def guess_content_type(file_name: str) -> str:
    guessed, _ = mimetypes.guess_type(file_name)
    return guessed or "application/octet-stream"


class UploadBroker:
    def __init__(
        self,
        http: httpx.Client,
        *,
        logger: logging.Logger,
    ) -> None:
        self._http = http
        self._logger = logger

    def upload(
        self,
        file_name: str,
        data: bytes,
        *,
        content_type: str,
    ) -> UploadResult:
        """Run sign, put and extract in order; stop at the first failure.

        Objects written before a later step fails are left in storage.
        """

        signed = self._post(
            "/api/uploads/sign",
            {"fileName": file_name, "contentType": content_type},
        )
        url = signed.get("url")
        file_path = signed.get("filePath")
        if not url or not file_path:
            raise UploadError(UPLOAD_FAILED_MESSAGE)

        try:
            response = self._http.put(
                url,
                content=data,
                headers={"Content-Type": content_type},
            )
        except httpx.HTTPError as exc:
            self._logger.exception(
                "Upload transfer failed", extra={"file_path": file_path}
            )
            raise UploadError(UPLOAD_FAILED_MESSAGE) from exc
        if response.status_code >= 400:
            self._logger.warning(
                "Upload rejected",
                extra={
                    "file_path": file_path,
                    "status": response.status_code,
                },
            )
            raise UploadError(UPLOAD_FAILED_MESSAGE)
        self._logger.info(
            "Uploaded file",
            extra={"file_path": file_path, "bytes": len(data)},
        )

        extracted = self._post("/api/extract", {"filePath": file_path})
        text = extracted.get("text")
        if not isinstance(text, str) or not text:
            raise UploadError(UPLOAD_FAILED_MESSAGE)
        return UploadResult(file_path=file_path, text=text)

    def _post(self, url: str, payload: Mapping[str, Any]) -> Mapping[str, Any]:
        try:
            response = self._http.post(url, json=dict(payload))
        except httpx.HTTPError as exc:
            self._logger.exception("Upload request failed", extra={"url": url})
            raise UploadError(UPLOAD_FAILED_MESSAGE) from exc
        body = _json_body(response)
        if response.status_code >= 400 or body.get("error"):
            self._logger.warning(
                "Upload step failed",
                extra={"url": url, "status": response.status_code},
            )
            raise UploadError(
                str(body.get("error") or UPLOAD_FAILED_MESSAGE)
            )
        return body


def _json_body(response: httpx.Response) -> Mapping[str, Any]:
    try:
        body = response.json()
    except ValueError:
        return {}
    return body if isinstance(body, dict) else {}
