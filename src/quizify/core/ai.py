"""OpenAI client loading and the chat adapter used by every AI flow."""

from __future__ import annotations

import os
from typing import Any, Mapping, Protocol, Sequence

from dotenv import load_dotenv

try:  # Allow module import even when the OpenAI dependency is absent.
    from openai import OpenAI  # type: ignore
except Exception:  # pragma: no cover - optional dependency guard
    OpenAI = None  # type: ignore

__all__ = ["ChatClient", "OpenAIChatClient", "load_client"]


def load_client(*, api_base: str | None = None) -> Any:
    """Initialize an OpenAI client using environment-derived credentials."""
    if OpenAI is None:
        raise RuntimeError(
            "The 'openai' package is required to create a client. "
            "Install it and retry."
        )
    load_dotenv()
    api_key = os.getenv("OPENAI_API_KEY")
    if not api_key:
        raise RuntimeError(
            "OPENAI_API_KEY not found in environment. Set it or add to .env"
        )
    if api_base:
        return OpenAI(api_key=api_key, base_url=api_base)
    return OpenAI(api_key=api_key)


class ChatClient(Protocol):
    """Protocol satisfied by model adapters."""

    def complete(
        self,
        messages: Sequence[Mapping[str, Any]],
        *,
        max_tokens: int | None = None,
        json_mode: bool = False,
    ) -> str:
        """Return the assistant response for ``messages``."""


class OpenAIChatClient:
    """Adapter for OpenAI chat completions.

    Exceptions from the SDK propagate; the flows built on top convert them
    into their own user-facing errors.
    """

    def __init__(
        self,
        *,
        model: str,
        temperature: float,
        max_output_tokens: int,
        request_timeout: int,
        api_base: str | None = None,
        client: Any | None = None,
    ) -> None:
        self.model = model
        self._temperature = temperature
        self._max_output_tokens = max_output_tokens
        self._timeout = request_timeout
        self._client = (
            client if client is not None else load_client(api_base=api_base)
        )

    def complete(
        self,
        messages: Sequence[Mapping[str, Any]],
        *,
        max_tokens: int | None = None,
        json_mode: bool = False,
    ) -> str:
        options: dict[str, Any] = {}
        if json_mode:
            options["response_format"] = {"type": "json_object"}
        response = self._client.chat.completions.create(
            model=self.model,
            messages=[dict(message) for message in messages],
            temperature=self._temperature,
            max_tokens=max_tokens or self._max_output_tokens,
            timeout=self._timeout,
            **options,
        )
        content = response.choices[0].message.content or ""
        return content.strip()
