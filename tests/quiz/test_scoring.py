from __future__ import annotations

import pytest

from fixtures import make_quiz
from quizify.quiz.models import Question, Quiz
from quizify.quiz.scoring import (
    is_correct,
    percentage,
    score,
    score_report,
)

ARITHMETIC = Quiz.of(
    [Question("2+2?", ("3", "4", "5", "6"), 1, "4 is correct")]
)


def test_single_correct_answer_scores_full_marks():
    report = score_report(ARITHMETIC, ["4"])

    assert report.score == 1
    assert report.percentage == 100


def test_single_wrong_answer_scores_zero():
    report = score_report(ARITHMETIC, ["3"])

    assert report.score == 0
    assert report.percentage == 0
    assert report.wrong[0].correct_answer == "4"
    assert report.wrong[0].solution == "4 is correct"


def test_all_correct_and_all_empty():
    quiz = make_quiz(5)
    correct = [question.correct_answer for question in quiz]

    assert score(quiz, correct) == len(quiz)
    assert score(quiz, [""] * len(quiz)) == 0


def test_score_stays_within_bounds_for_mixed_answers():
    quiz = make_quiz(4)
    answers = [
        quiz[0].correct_answer,
        quiz[1].answers[0],
        "",
        quiz[3].correct_answer,
    ]

    assert 0 <= score(quiz, answers) <= len(quiz)
    assert score(quiz, answers) == 2


def test_empty_answer_never_matches_even_an_empty_correct_answer():
    question = Question("blank?", ("", "x", "y", "z"), 0, "")

    assert is_correct(question, "") is False


def test_length_mismatch_is_rejected():
    with pytest.raises(ValueError):
        score(make_quiz(2), ["only one"])


@pytest.mark.parametrize(
    "correct, total, expected",
    [
        (1, 8, 13),
        (1, 3, 33),
        (2, 3, 67),
        (1, 200, 1),
        (1, 40, 3),
        (0, 0, 0),
    ],
)
def test_percentage_rounds_half_up(correct, total, expected):
    assert percentage(correct, total) == expected


def test_reviews_mark_unanswered_questions():
    quiz = make_quiz(2)

    report = score_report(quiz, [quiz[0].correct_answer, ""])

    first, second = report.reviews
    assert first.is_correct and first.answered
    assert not second.is_correct and not second.answered
    assert report.wrong == (second,)
