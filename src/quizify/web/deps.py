"""Shared collaborators for the route modules."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Sequence

from fastapi import Request
from fastapi.templating import Jinja2Templates

from quizify.config import QuizifyConfig
from quizify.core.ai import ChatClient
from quizify.services.extraction import ExtractorDependencies
from quizify.services.storage import UploadStore

from .sessions import SessionRegistry, WebSession

__all__ = [
    "UnavailableChatClient",
    "WebServices",
    "services",
    "web_session",
]


class UnavailableChatClient:
    """Stands in when no API key is configured; every call fails."""

    def __init__(self, reason: str) -> None:
        self.reason = reason

    def complete(
        self,
        messages: Sequence[Mapping[str, Any]],
        *,
        max_tokens: int | None = None,
        json_mode: bool = False,
    ) -> str:
        raise RuntimeError(self.reason)


@dataclass
class WebServices:
    """Collaborators hung off ``app.state.services``."""

    config: QuizifyConfig
    client: ChatClient
    store: UploadStore
    extractors: ExtractorDependencies
    sessions: SessionRegistry
    templates: Jinja2Templates
    logger: logging.Logger


def services(request: Request) -> WebServices:
    return request.app.state.services


def web_session(request: Request) -> WebSession:
    return services(request).sessions.for_request(request)
