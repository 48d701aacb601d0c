"""Quiz and question records plus the parser for generated payloads."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, MutableMapping, Sequence

__all__ = [
    "ANSWERS_PER_QUESTION",
    "MIN_SOURCE_CHARS",
    "MIN_QUESTIONS",
    "MAX_QUESTIONS",
    "Question",
    "Quiz",
    "parse_question",
    "parse_quiz",
]

ANSWERS_PER_QUESTION = 4
MIN_SOURCE_CHARS = 50
MIN_QUESTIONS = 5
MAX_QUESTIONS = 50


@dataclass(frozen=True)
class Question:
    """A single multiple-choice question with exactly one correct answer."""

    question: str
    answers: tuple[str, ...]
    correct_answer_index: int
    solution: str

    def __post_init__(self) -> None:
        if not 0 <= self.correct_answer_index < len(self.answers):
            raise ValueError(
                "correct_answer_index {0} out of range for {1} answers".format(
                    self.correct_answer_index, len(self.answers)
                )
            )

    @property
    def correct_answer(self) -> str:
        return self.answers[self.correct_answer_index]

    def to_dict(self) -> MutableMapping[str, Any]:
        return {
            "question": self.question,
            "answers": list(self.answers),
            "correctAnswerIndex": self.correct_answer_index,
            "solution": self.solution,
        }


@dataclass(frozen=True)
class Quiz:
    """Ordered, immutable sequence of questions."""

    questions: tuple[Question, ...]

    def __len__(self) -> int:
        return len(self.questions)

    def __getitem__(self, index: int) -> Question:
        return self.questions[index]

    def __iter__(self):
        return iter(self.questions)

    @classmethod
    def of(cls, questions: Iterable[Question]) -> "Quiz":
        return cls(tuple(questions))

    def to_list(self) -> list[MutableMapping[str, Any]]:
        return [question.to_dict() for question in self.questions]


def parse_question(record: Any) -> Question | None:
    """Normalize one generated record, or return ``None`` when unusable.

    Accepts the camelCase wire shape and the snake_case field names. A record
    must carry a question, exactly four non-empty answers, and an integer
    ``correctAnswerIndex`` pointing at one of them.
    """

    if not isinstance(record, Mapping):
        return None
    text = str(record.get("question") or "").strip()
    if not text:
        return None
    raw_answers = record.get("answers")
    if not isinstance(raw_answers, Sequence) or isinstance(
        raw_answers, (str, bytes)
    ):
        return None
    answers = tuple(str(answer).strip() for answer in raw_answers)
    if len(answers) != ANSWERS_PER_QUESTION or not all(answers):
        return None
    raw_index = record.get(
        "correctAnswerIndex", record.get("correct_answer_index")
    )
    if isinstance(raw_index, bool) or not isinstance(raw_index, int):
        return None
    if not 0 <= raw_index < len(answers):
        return None
    solution = str(record.get("solution") or "").strip()
    return Question(
        question=text,
        answers=answers,
        correct_answer_index=raw_index,
        solution=solution,
    )


def parse_quiz(records: Iterable[Any], *, limit: int | None = None) -> Quiz:
    """Build a quiz from raw records, skipping invalid items."""

    questions: list[Question] = []
    for record in records:
        if limit is not None and len(questions) >= limit:
            break
        question = parse_question(record)
        if question is not None:
            questions.append(question)
    return Quiz.of(questions)
