"""Local object storage with signed, time-limited upload tokens.

Uploads follow a three-step contract: the client asks for a write token for
a file name and content type, sends the bytes to the tokenised URL, then
refers to the stored object by its path. Objects live under
``<workspace>/uploads/<id>/<name>`` with a JSON sidecar that records the
declared content type.
"""

from __future__ import annotations

import json
import re
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

__all__ = [
    "DEFAULT_CONTENT_TYPE",
    "ObjectNotFoundError",
    "PendingUpload",
    "StorageError",
    "StoredObject",
    "UploadStore",
    "UploadTooLargeError",
    "UploadUrlError",
]

DEFAULT_CONTENT_TYPE = "application/octet-stream"

_META_FILENAME = ".meta.json"
_SALT = "quizify-upload"
_unsafe_name_re = re.compile(r"[^A-Za-z0-9._-]+")


class StorageError(RuntimeError):
    """Base class for storage failures."""


class UploadUrlError(StorageError):
    """The upload token is invalid, expired, or used with the wrong type."""


class UploadTooLargeError(StorageError):
    """The upload exceeds the configured size ceiling."""


class ObjectNotFoundError(StorageError):
    """No stored object exists at the requested path."""


@dataclass(frozen=True)
class PendingUpload:
    """A signed write grant for one object path."""

    token: str
    file_path: str
    content_type: str
    expires_in: int


@dataclass(frozen=True)
class StoredObject:
    file_path: str
    file_name: str
    content_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class UploadStore:
    def __init__(
        self,
        root: Path,
        *,
        secret: str,
        ttl_seconds: int,
        max_bytes: int,
    ) -> None:
        self.root = root
        self.ttl_seconds = ttl_seconds
        self.max_bytes = max_bytes
        self._serializer = URLSafeTimedSerializer(secret, salt=_SALT)

    def create_upload(
        self, file_name: str, content_type: str
    ) -> PendingUpload:
        """Reserve an object path and sign a write token for it."""

        if not file_name or not file_name.strip():
            raise StorageError("A file name is required.")
        normalized_type = _normalize_content_type(content_type)
        file_path = f"{uuid.uuid4().hex}/{safe_file_name(file_name)}"
        token = self._serializer.dumps(
            {"path": file_path, "type": normalized_type}
        )
        return PendingUpload(
            token=token,
            file_path=file_path,
            content_type=normalized_type,
            expires_in=self.ttl_seconds,
        )

    def accept_upload(
        self,
        token: str,
        data: bytes,
        *,
        content_type: str | None = None,
    ) -> StoredObject:
        """Store ``data`` under the path granted by ``token``."""

        grant = self._load_token(token)
        declared = grant["type"]
        if content_type is not None and declared != DEFAULT_CONTENT_TYPE:
            if _normalize_content_type(content_type) != declared:
                raise UploadUrlError(
                    "Upload content type does not match the signed URL."
                )
        if len(data) > self.max_bytes:
            raise UploadTooLargeError(_too_large_message(self.max_bytes))

        target = self._resolve(grant["path"])
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        meta = {"content_type": declared, "file_name": target.name}
        (target.parent / _META_FILENAME).write_text(
            json.dumps(meta), encoding="utf-8"
        )
        return StoredObject(
            file_path=grant["path"],
            file_name=target.name,
            content_type=declared,
            data=data,
        )

    def read(self, file_path: str) -> StoredObject:
        target = self._resolve(file_path)
        if not target.is_file():
            raise ObjectNotFoundError(f"No uploaded file at '{file_path}'.")
        meta = _read_meta(target.parent / _META_FILENAME)
        content_type = meta.get("content_type") or DEFAULT_CONTENT_TYPE
        return StoredObject(
            file_path=file_path,
            file_name=str(meta.get("file_name") or target.name),
            content_type=str(content_type),
            data=target.read_bytes(),
        )

    def _load_token(self, token: str) -> Mapping[str, str]:
        try:
            payload = self._serializer.loads(token, max_age=self.ttl_seconds)
        except SignatureExpired as exc:
            raise UploadUrlError("The upload URL has expired.") from exc
        except BadSignature as exc:
            raise UploadUrlError("The upload URL is not valid.") from exc
        if not isinstance(payload, dict) or not {"path", "type"} <= set(
            payload
        ):
            raise UploadUrlError("The upload URL is not valid.")
        return payload

    def _resolve(self, file_path: str) -> Path:
        root = self.root.resolve()
        candidate = (root / file_path).resolve()
        if candidate == root or not candidate.is_relative_to(root):
            raise ObjectNotFoundError(f"No uploaded file at '{file_path}'.")
        if candidate.name == _META_FILENAME:
            raise ObjectNotFoundError(f"No uploaded file at '{file_path}'.")
        return candidate


def safe_file_name(name: str) -> str:
    base = Path(name.replace("\\", "/")).name
    cleaned = _unsafe_name_re.sub("-", base).strip(".-")
    return cleaned or "upload"


def _normalize_content_type(value: str | None) -> str:
    cleaned = (value or "").split(";", 1)[0].strip().lower()
    return cleaned or DEFAULT_CONTENT_TYPE


def _read_meta(path: Path) -> Mapping[str, Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (FileNotFoundError, ValueError):
        return {}
    return data if isinstance(data, dict) else {}


def _too_large_message(max_bytes: int) -> str:
    megabytes = max_bytes / (1024 * 1024)
    return f"File exceeds the {megabytes:g} MB upload limit."
