"""Quiz-taking state machine: Config -> Quiz -> Results.

``QuizFlow`` owns everything one user session needs: the current quiz, the
parallel answer list, the source text, the question pointer and the
per-question explanation map. It performs no IO; the web and terminal
surfaces drive it and run the network calls themselves.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .models import Question, Quiz
from .scoring import ScoreReport, score_report
from .tracking import OperationTracker

__all__ = [
    "AppState",
    "QuizFlow",
    "QuizFlowError",
]


class AppState(Enum):
    CONFIG = "config"
    QUIZ = "quiz"
    RESULTS = "results"


class QuizFlowError(RuntimeError):
    """Raised when an operation is not valid in the current state."""


@dataclass
class QuizFlow:
    """Mutable session state for one quiz run."""

    state: AppState = AppState.CONFIG
    quiz: Optional[Quiz] = None
    answers: list[str] = field(default_factory=list)
    source_text: str = ""
    index: int = 0
    explanations: OperationTracker[str] = field(
        default_factory=OperationTracker
    )
    operations: OperationTracker[object] = field(
        default_factory=OperationTracker
    )

    @property
    def total_questions(self) -> int:
        return len(self.quiz) if self.quiz is not None else 0

    @property
    def current(self) -> Question:
        self._require(AppState.QUIZ)
        assert self.quiz is not None
        return self.quiz[self.index]

    @property
    def current_answer(self) -> str:
        self._require(AppState.QUIZ)
        return self.answers[self.index]

    @property
    def is_first(self) -> bool:
        return self.index == 0

    @property
    def is_last(self) -> bool:
        return self.index == self.total_questions - 1

    @property
    def can_advance(self) -> bool:
        return (
            self.state is AppState.QUIZ
            and not self.is_last
            and self.answers[self.index] != ""
        )

    @property
    def can_submit(self) -> bool:
        return (
            self.state is AppState.QUIZ
            and self.is_last
            and self.answers[self.index] != ""
        )

    def answered_count(self) -> int:
        return sum(1 for answer in self.answers if answer)

    def start(self, quiz: Quiz, source_text: str) -> None:
        """Enter the Quiz state with a fresh quiz and empty answers."""

        if len(quiz) == 0:
            raise QuizFlowError("Cannot start an empty quiz.")
        self.quiz = quiz
        self.source_text = source_text
        self.answers = [""] * len(quiz)
        self.index = 0
        self.explanations.reset()
        self.state = AppState.QUIZ

    def set_answer(self, index: int, value: str) -> bool:
        """Record the answer for the displayed question.

        Returns ``False`` when the question already has an answer: the first
        write locks it. ``IndexError`` signals an index outside the quiz.
        """

        self._require(AppState.QUIZ)
        if not 0 <= index < self.total_questions:
            raise IndexError(
                "Question index {0} outside [0, {1}].".format(
                    index, self.total_questions - 1
                )
            )
        if index != self.index:
            raise QuizFlowError(
                "Only the displayed question can be answered."
            )
        if value not in self.current.answers:
            raise QuizFlowError(
                f"'{value}' is not an answer to this question."
            )
        if self.answers[index]:
            return False
        self.answers[index] = value
        return True

    def answer_current(self, value: str) -> bool:
        return self.set_answer(self.index, value)

    def advance(self) -> bool:
        """Move to the next question; returns whether the pointer moved.

        A no-op at the last question. Refused while the current question is
        unanswered.
        """

        self._require(AppState.QUIZ)
        if self.is_last:
            return False
        if not self.answers[self.index]:
            raise QuizFlowError("Answer the current question first.")
        self.index += 1
        return True

    def retreat(self) -> bool:
        self._require(AppState.QUIZ)
        if self.is_first:
            return False
        self.index -= 1
        return True

    def submit(self) -> tuple[str, ...]:
        """Finish the quiz and return the full answer sequence."""

        self._require(AppState.QUIZ)
        if not self.can_submit:
            raise QuizFlowError(
                "Submit is only available on the last question once answered."
            )
        self.state = AppState.RESULTS
        return tuple(self.answers)

    def report(self) -> ScoreReport:
        self._require(AppState.RESULTS)
        assert self.quiz is not None
        return score_report(self.quiz, self.answers)

    def restart(self) -> None:
        """Return to Config, dropping the quiz, answers and source text."""

        self.quiz = None
        self.answers = []
        self.source_text = ""
        self.index = 0
        self.explanations.reset()
        self.operations.reset()
        self.state = AppState.CONFIG

    def continue_with(self, quiz: Quiz) -> None:
        """Replace the finished quiz with ``quiz`` over the same text."""

        self._require(AppState.RESULTS)
        self.start(quiz, self.source_text)

    def _require(self, state: AppState) -> None:
        if self.state is not state:
            raise QuizFlowError(
                "Operation requires the {0} state; currently {1}.".format(
                    state.value, self.state.value
                )
            )
