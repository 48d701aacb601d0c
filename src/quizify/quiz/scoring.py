"""Scoring and per-question review for a finished quiz."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Sequence

from .models import Question, Quiz

__all__ = [
    "AnswerReview",
    "ScoreReport",
    "is_correct",
    "percentage",
    "review_answers",
    "score",
    "score_report",
]


@dataclass(frozen=True)
class AnswerReview:
    """How one question was answered."""

    index: int
    question: str
    user_answer: str
    correct_answer: str
    is_correct: bool
    solution: str

    @property
    def answered(self) -> bool:
        return self.user_answer != ""


@dataclass(frozen=True)
class ScoreReport:
    """Score, display percentage and reviews for a quiz attempt."""

    score: int
    total: int
    percentage: int
    reviews: tuple[AnswerReview, ...]

    @property
    def wrong(self) -> tuple[AnswerReview, ...]:
        return tuple(
            review for review in self.reviews if not review.is_correct
        )


def is_correct(question: Question, answer: str) -> bool:
    """Return whether ``answer`` is the correct one.

    An empty answer means unanswered and never counts, even against a
    malformed question whose correct answer is itself empty.
    """

    return answer != "" and answer == question.correct_answer


def score(quiz: Quiz, answers: Sequence[str]) -> int:
    _check_lengths(quiz, answers)
    return sum(
        1
        for question, answer in zip(quiz, answers)
        if is_correct(question, answer)
    )


def percentage(correct: int, total: int) -> int:
    """Round ``100 * correct / total`` half-up; an empty quiz scores 0."""

    if total <= 0:
        return 0
    return int(math.floor(100 * correct / total + 0.5))


def review_answers(
    quiz: Quiz, answers: Sequence[str]
) -> tuple[AnswerReview, ...]:
    _check_lengths(quiz, answers)
    return tuple(
        AnswerReview(
            index=index,
            question=question.question,
            user_answer=answer,
            correct_answer=question.correct_answer,
            is_correct=is_correct(question, answer),
            solution=question.solution,
        )
        for index, (question, answer) in enumerate(zip(quiz, answers))
    )


def score_report(quiz: Quiz, answers: Sequence[str]) -> ScoreReport:
    reviews = review_answers(quiz, answers)
    correct = sum(1 for review in reviews if review.is_correct)
    return ScoreReport(
        score=correct,
        total=len(quiz),
        percentage=percentage(correct, len(quiz)),
        reviews=reviews,
    )


def _check_lengths(quiz: Quiz, answers: Sequence[str]) -> None:
    if len(answers) != len(quiz):
        raise ValueError(
            "Expected {0} answers, got {1}.".format(len(quiz), len(answers))
        )
