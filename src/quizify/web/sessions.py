"""Per-browser quiz state, keyed by the session-cookie id."""

from __future__ import annotations

import secrets
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Optional

from fastapi import Request

from quizify.quiz.flow import QuizFlow

__all__ = ["SessionRegistry", "WebSession", "sid"]


def sid(request: Request) -> str:
    value = request.session.get("sid")
    if not value:
        value = secrets.token_urlsafe(16)
        request.session["sid"] = value
    return value


@dataclass
class WebSession:
    """Everything the pages render for one browser."""

    num_questions: int
    flow: QuizFlow = field(default_factory=QuizFlow)
    text: str = ""
    error: Optional[str] = None

    def flash(self, message: str) -> None:
        self.error = message

    def take_error(self) -> Optional[str]:
        message, self.error = self.error, None
        return message


class SessionRegistry:
    """In-memory map of session id -> :class:`WebSession`.

    The least recently used session is evicted once ``max_sessions`` is
    exceeded.
    """

    def __init__(
        self, *, default_questions: int, max_sessions: int = 1000
    ) -> None:
        self.default_questions = default_questions
        self.max_sessions = max_sessions
        self._sessions: OrderedDict[str, WebSession] = OrderedDict()

    def get(self, key: str) -> WebSession:
        session = self._sessions.get(key)
        if session is None:
            session = WebSession(num_questions=self.default_questions)
            self._sessions[key] = session
            while len(self._sessions) > self.max_sessions:
                self._sessions.popitem(last=False)
        else:
            self._sessions.move_to_end(key)
        return session

    def for_request(self, request: Request) -> WebSession:
        return self.get(sid(request))

    def __contains__(self, key: object) -> bool:
        return key in self._sessions

    def __len__(self) -> int:
        return len(self._sessions)
