"""AI explanations for wrong answers."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from quizify.core.ai import ChatClient

__all__ = [
    "EXPLANATION_FAILED_MESSAGE",
    "ExplanationError",
    "ExplanationRequest",
    "explain_solution",
]

EXPLANATION_FAILED_MESSAGE = "Failed to get explanation."

_SYSTEM_PROMPT = "You are an expert tutor explaining quiz solutions."


class ExplanationError(RuntimeError):
    """Raised when no explanation could be produced."""


@dataclass(frozen=True)
class ExplanationRequest:
    question: str
    user_answer: str
    correct_answer: str
    context_text: str


def explain_solution(
    request: ExplanationRequest,
    *,
    client: ChatClient,
    logger: logging.Logger,
    max_context_chars: int | None = None,
) -> str:
    context = request.context_text
    if max_context_chars is not None:
        context = context[:max_context_chars]
    prompt = (
        "Provide a clear and concise explanation of the correct answer to "
        "the question, and explain why the user's answer was incorrect, "
        "using the provided context text.\n\n"
        f"Question: {request.question}\n"
        f"User's Answer: {request.user_answer or '(no answer)'}\n"
        f"Correct Answer: {request.correct_answer}\n"
        f"Context Text: {context}"
    )
    try:
        explanation = client.complete(
            [
                {"role": "system", "content": _SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ]
        )
    except Exception as exc:
        logger.exception(
            "Explanation call failed",
            extra={"error_type": type(exc).__name__},
        )
        raise ExplanationError(EXPLANATION_FAILED_MESSAGE) from exc
    if not explanation:
        logger.warning("Explanation call returned no text")
        raise ExplanationError(EXPLANATION_FAILED_MESSAGE)
    logger.info(
        "Explanation generated",
        extra={"explanation_chars": len(explanation)},
    )
    return explanation
