"""Request body ceiling applied to every route.

Declared ``Content-Length`` values over the limit are refused before the app
runs. Bodies without one (chunked uploads) are counted as they stream in and
abort with :class:`RequestTooLargeError` once the ceiling is crossed.
"""

from __future__ import annotations

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

__all__ = [
    "BodySizeLimitMiddleware",
    "RequestTooLargeError",
    "too_large_handler",
]


def _too_large_message(max_bytes: int) -> str:
    megabytes = max_bytes / (1024 * 1024)
    return f"Request body exceeds the {megabytes:g} MB limit."


class RequestTooLargeError(HTTPException):
    """Raised from the wrapped ``receive`` when a streamed body is too big."""

    def __init__(self, max_bytes: int) -> None:
        super().__init__(
            status_code=413, detail=_too_large_message(max_bytes)
        )


async def too_large_handler(
    request: Request, exc: RequestTooLargeError
) -> JSONResponse:
    return JSONResponse({"error": exc.detail}, status_code=413)


class BodySizeLimitMiddleware:
    def __init__(self, app: ASGIApp, *, max_bytes: int) -> None:
        self.app = app
        self.max_bytes = max_bytes

    async def __call__(
        self, scope: Scope, receive: Receive, send: Send
    ) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        declared = Headers(scope=scope).get("content-length", "")
        if declared.isdigit() and int(declared) > self.max_bytes:
            response = JSONResponse(
                {"error": _too_large_message(self.max_bytes)},
                status_code=413,
            )
            await response(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_bytes:
                    raise RequestTooLargeError(self.max_bytes)
            return message

        await self.app(scope, limited_receive, send)
