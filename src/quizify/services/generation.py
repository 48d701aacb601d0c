"""Quiz generation: request validation, prompting and response parsing."""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from typing import Any, List

from quizify.core.ai import ChatClient
from quizify.quiz.models import (
    MAX_QUESTIONS,
    MIN_QUESTIONS,
    MIN_SOURCE_CHARS,
    Quiz,
    parse_quiz,
)

__all__ = [
    "EMPTY_QUIZ_MESSAGE",
    "EMPTY_CONTINUATION_MESSAGE",
    "UNEXPECTED_MESSAGE",
    "UNEXPECTED_CONTINUATION_MESSAGE",
    "GenerationError",
    "GenerationRequest",
    "QuizValidationError",
    "continuation_count",
    "generate_quiz",
    "response_token_budget",
    "validate_request",
]

TEXT_TOO_SHORT_MESSAGE = (
    "Please provide at least 50 characters of content to generate a quiz."
)
COUNT_OUT_OF_RANGE_MESSAGE = (
    "Number of questions must be between {0} and {1}.".format(
        MIN_QUESTIONS, MAX_QUESTIONS
    )
)
EMPTY_QUIZ_MESSAGE = (
    "Could not generate a quiz from the provided content. "
    "Please try with different content."
)
EMPTY_CONTINUATION_MESSAGE = (
    "Could not generate more questions from the provided content. "
    "Please try again."
)
UNEXPECTED_MESSAGE = (
    "An unexpected error occurred while generating the quiz. "
    "Please try again later."
)
UNEXPECTED_CONTINUATION_MESSAGE = (
    "An unexpected error occurred while generating more questions. "
    "Please try again later."
)

# Output budget per requested question (stem, four answers, solution, keys)
TOKENS_PER_QUESTION = 200
_RESPONSE_OVERHEAD_TOKENS = 200

# A fence is only stripped when it wraps the whole reply
_fenced_reply_re = re.compile(
    r"^\s*```(?:json)?\s*(.*?)\s*```\s*$", re.DOTALL
)

_SYSTEM_PROMPT = (
    "You are a quiz generator. You write multiple-choice questions from the "
    "text the user provides and reply with JSON only."
)


class QuizValidationError(ValueError):
    """Raised before any provider call when the request is invalid."""


class GenerationError(RuntimeError):
    """Raised when the provider fails or yields no usable questions."""


@dataclass(frozen=True)
class GenerationRequest:
    text: str
    num_questions: int


def validate_request(text: Any, num_questions: Any) -> GenerationRequest:
    """Check the generation preconditions and normalize the inputs.

    Every failing rule is reported, joined with ``", "``.
    """

    problems: List[str] = []
    body = text if isinstance(text, str) else ""
    if len(body) < MIN_SOURCE_CHARS:
        problems.append(TEXT_TOO_SHORT_MESSAGE)
    count = _coerce_count(num_questions)
    if count is None or not MIN_QUESTIONS <= count <= MAX_QUESTIONS:
        problems.append(COUNT_OUT_OF_RANGE_MESSAGE)
    if problems:
        raise QuizValidationError(", ".join(problems))
    assert count is not None
    return GenerationRequest(text=body, num_questions=count)


def continuation_count(current_length: int) -> int:
    """Question count for "continue": the current length, kept in range."""

    return max(MIN_QUESTIONS, min(MAX_QUESTIONS, current_length))


def generate_quiz(
    request: GenerationRequest,
    *,
    client: ChatClient,
    logger: logging.Logger,
    continuation: bool = False,
) -> Quiz:
    """Ask the model for ``request.num_questions`` questions.

    Raises :class:`GenerationError` with a user-facing message when the call
    fails or nothing usable comes back.
    """

    empty_message = (
        EMPTY_CONTINUATION_MESSAGE if continuation else EMPTY_QUIZ_MESSAGE
    )
    failure_message = (
        UNEXPECTED_CONTINUATION_MESSAGE if continuation else UNEXPECTED_MESSAGE
    )
    logger.info(
        "Requesting quiz generation",
        extra={
            "text_chars": len(request.text),
            "num_questions": request.num_questions,
            "continuation": continuation,
        },
    )
    try:
        content = client.complete(
            [
                {"role": "system", "content": _SYSTEM_PROMPT},
                {"role": "user", "content": build_prompt(request)},
            ],
            max_tokens=response_token_budget(request.num_questions),
            json_mode=True,
        )
    except Exception as exc:
        logger.exception(
            "Quiz generation call failed",
            extra={"error_type": type(exc).__name__},
        )
        raise GenerationError(failure_message) from exc

    quiz = parse_quiz(
        _extract_records(content), limit=request.num_questions
    )
    if len(quiz) == 0:
        logger.warning(
            "Quiz generation returned no usable questions",
            extra={"response_chars": len(content)},
        )
        raise GenerationError(empty_message)
    logger.info(
        "Generated quiz",
        extra={
            "requested": request.num_questions,
            "received": len(quiz),
        },
    )
    return quiz


def response_token_budget(num_questions: int) -> int:
    """Completion token ceiling large enough for `num_questions` items."""

    return _RESPONSE_OVERHEAD_TOKENS + TOKENS_PER_QUESTION * num_questions


def build_prompt(request: GenerationRequest) -> str:
    schema_line = (
        '{"quiz": [{"question": str, "answers": [str, str, str, str], '
        '"correctAnswerIndex": int, "solution": str}]}'
    )
    return (
        "Generate a quiz from the given text.\n"
        "The quiz should have the number of questions specified below.\n"
        "Every question is multiple choice with exactly 4 possible answers.\n"
        "One and only one answer is correct; correctAnswerIndex is its "
        "zero-based position in answers.\n"
        "For each question, also provide the solution.\n\n"
        f"Schema:\n{schema_line}\n\n"
        f"Number of questions: {request.num_questions}\n\n"
        f"Text:\n{request.text}"
    )


def _coerce_count(value: Any) -> int | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return None
    return None


def _extract_records(content: str) -> List[Any]:
    if not content:
        return []
    try:
        data = json.loads(content)
    except ValueError:
        fenced = _fenced_reply_re.match(content)
        if fenced is None:
            return []
        try:
            data = json.loads(fenced.group(1))
        except ValueError:
            return []
    if isinstance(data, dict):
        data = data.get("quiz")
    return data if isinstance(data, list) else []
