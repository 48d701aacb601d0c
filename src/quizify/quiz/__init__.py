from .flow import AppState, QuizFlow, QuizFlowError
from .models import (
    MAX_QUESTIONS,
    MIN_QUESTIONS,
    MIN_SOURCE_CHARS,
    Question,
    Quiz,
    parse_question,
    parse_quiz,
)
from .scoring import (
    AnswerReview,
    ScoreReport,
    is_correct,
    percentage,
    score,
    score_report,
)
from .tracking import Operation, OperationState, OperationTracker, Ticket

__all__ = [
    "AppState",
    "QuizFlow",
    "QuizFlowError",
    "MAX_QUESTIONS",
    "MIN_QUESTIONS",
    "MIN_SOURCE_CHARS",
    "Question",
    "Quiz",
    "parse_question",
    "parse_quiz",
    "AnswerReview",
    "ScoreReport",
    "is_correct",
    "percentage",
    "score",
    "score_report",
    "Operation",
    "OperationState",
    "OperationTracker",
    "Ticket",
]
