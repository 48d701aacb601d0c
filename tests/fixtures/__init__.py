"""Shared testing fixtures for the quizify test suite."""

from .chat import FakeChatClient  # noqa: F401
from .openai import FakeOpenAI  # noqa: F401
from .quizzes import (  # noqa: F401
    SAMPLE_TEXT,
    make_question,
    make_quiz,
    quiz_json,
)

__all__ = [
    "FakeChatClient",
    "FakeOpenAI",
    "SAMPLE_TEXT",
    "make_question",
    "make_quiz",
    "quiz_json",
]
