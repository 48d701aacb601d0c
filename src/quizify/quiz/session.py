"""Rich-powered terminal session over :class:`QuizFlow`.

The loop renders one question at a time, reads commands from an injected
input provider, and drives the same state machine as the web surface. Once
the quiz is submitted it shows the score and review table, fetches
explanations for wrong answers on request, and can continue with a fresh
set of questions over the same source text.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Literal

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from quizify.services.explanation import ExplanationError, ExplanationRequest
from quizify.services.generation import (
    GenerationError,
    GenerationRequest,
    continuation_count,
)

from .flow import AppState, QuizFlow, QuizFlowError
from .models import Quiz
from .scoring import ScoreReport
from .tracking import OperationState

InputProvider = Callable[[], str]
Explainer = Callable[[ExplanationRequest], str]
Generator = Callable[[GenerationRequest], Quiz]
ExitAction = Literal["done", "quit"]

CHOICE_KEYS = "ABCD"

__all__ = [
    "QuizSessionResult",
    "SessionCommand",
    "parse_results_command",
    "parse_session_command",
    "run_quiz_session",
]


@dataclass(frozen=True)
class SessionCommand:
    """Normalized user command parsed from console input."""

    type: Literal[
        "next",
        "prev",
        "submit",
        "quit",
        "select",
        "explain",
        "continue",
        "done",
    ]
    choice: str | None = None
    index: int | None = None


@dataclass(frozen=True)
class QuizSessionResult:
    """Return value from ``run_quiz_session``."""

    report: ScoreReport | None
    exit_action: ExitAction
    rounds: int


def parse_session_command(raw: str | None) -> SessionCommand | None:
    """Parse input typed while a question is displayed."""

    if raw is None:
        return None
    text = raw.strip()
    if not text:
        return None
    lowered = text.lower()
    if lowered in {"n", "next"}:
        return SessionCommand("next")
    if lowered in {"p", "prev", "previous"}:
        return SessionCommand("prev")
    if lowered in {"submit", "s"}:
        return SessionCommand("submit")
    if lowered in {"quit", "q", "exit"}:
        return SessionCommand("quit")
    if len(text) != 1:
        return None
    key = text.upper()
    if key.isdigit() and 1 <= int(key) <= len(CHOICE_KEYS):
        key = CHOICE_KEYS[int(key) - 1]
    if key in CHOICE_KEYS:
        return SessionCommand("select", key)
    return None


def parse_results_command(raw: str | None) -> SessionCommand | None:
    """Parse input typed on the results screen.

    ``e 3`` (or ``explain 3``) asks for the explanation of question 3.
    """

    if raw is None:
        return None
    parts = raw.strip().lower().split()
    if not parts:
        return None
    head = parts[0]
    if head in {"c", "continue"} and len(parts) == 1:
        return SessionCommand("continue")
    if head in {"d", "done", "q", "quit", "exit"} and len(parts) == 1:
        return SessionCommand("done")
    if head in {"e", "explain"} and len(parts) == 2 and parts[1].isdigit():
        return SessionCommand("explain", index=int(parts[1]) - 1)
    return None


def run_quiz_session(
    flow: QuizFlow,
    console: Console,
    input_provider: InputProvider,
    *,
    explain: Explainer | None = None,
    generate_more: Generator | None = None,
) -> QuizSessionResult:
    """Take the quiz held by ``flow`` in the terminal.

    ``flow`` must already be in the Quiz state. Quitting mid-quiz returns
    without a report; finishing on the results screen returns the last
    report shown.
    """

    if flow.state is not AppState.QUIZ:
        raise QuizFlowError("Start a quiz before running a session.")

    rounds = 1
    while True:
        if not _take_quiz(flow, console, input_provider):
            return QuizSessionResult(None, "quit", rounds)
        report = flow.report()
        action = _review_results(
            flow,
            report,
            console,
            input_provider,
            explain=explain,
            generate_more=generate_more,
        )
        if action == "done":
            return QuizSessionResult(report, "done", rounds)
        rounds += 1


def _take_quiz(
    flow: QuizFlow,
    console: Console,
    input_provider: InputProvider,
) -> bool:
    """Run the question loop; ``False`` means the user quit."""

    while flow.state is AppState.QUIZ:
        _render_question(console, flow)
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print("\n[bold yellow]Session interrupted.[/]")
            return False
        command = parse_session_command(raw)
        if command is None:
            console.print("[red]Unrecognized command. Try again.[/]")
            continue
        if command.type == "quit":
            console.print(
                "\n[bold yellow]Ending session without submission.[/]"
            )
            return False
        _apply_command(command, flow, console)
    return True


def _apply_command(
    command: SessionCommand,
    flow: QuizFlow,
    console: Console,
) -> None:
    if command.type == "select" and command.choice:
        answers = flow.current.answers
        position = CHOICE_KEYS.index(command.choice)
        if position >= len(answers):
            console.print(
                "[red]'%s' is not a valid choice for this question.[/red]"
                % command.choice,
            )
            return
        if flow.answer_current(answers[position]):
            console.print(f"Selected [bold]{command.choice}[/].")
        else:
            console.print(
                "[yellow]This question is already answered.[/yellow]"
            )
        return
    try:
        if command.type == "next":
            flow.advance()
        elif command.type == "prev":
            flow.retreat()
        elif command.type == "submit":
            flow.submit()
    except QuizFlowError as exc:
        console.print(f"[red]{exc}[/red]")


def _review_results(
    flow: QuizFlow,
    report: ScoreReport,
    console: Console,
    input_provider: InputProvider,
    *,
    explain: Explainer | None,
    generate_more: Generator | None,
) -> ExitAction | Literal["continue"]:
    _render_report(console, report)
    while True:
        _render_results_hint(console, report, explain, generate_more)
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            return "done"
        command = parse_results_command(raw)
        if command is None:
            console.print("[red]Unrecognized command. Try again.[/]")
            continue
        if command.type == "done":
            return "done"
        if command.type == "explain" and command.index is not None:
            _explain(flow, report, command.index, console, explain)
            continue
        if command.type == "continue":
            if _continue(flow, console, generate_more):
                return "continue"


def _explain(
    flow: QuizFlow,
    report: ScoreReport,
    index: int,
    console: Console,
    explain: Explainer | None,
) -> None:
    if explain is None:
        console.print("[red]Explanations are not available.[/red]")
        return
    if not 0 <= index < len(report.reviews):
        console.print("[red]No question with that number.[/red]")
        return
    review = report.reviews[index]
    if review.is_correct:
        console.print("[yellow]That question was answered correctly.[/yellow]")
        return
    operation = flow.explanations.get(index)
    if operation.state is not OperationState.DONE:
        ticket = flow.explanations.begin(index)
        console.print("[dim]Getting explanation...[/dim]")
        try:
            text = explain(
                ExplanationRequest(
                    question=review.question,
                    user_answer=review.user_answer,
                    correct_answer=review.correct_answer,
                    context_text=flow.source_text,
                )
            )
        except ExplanationError as exc:
            flow.explanations.fail(ticket, str(exc))
        else:
            flow.explanations.complete(ticket, text)
        operation = flow.explanations.get(index)
    if operation.state is OperationState.FAILED:
        console.print(f"[red]{operation.error}[/red]")
        return
    console.print(
        Panel(
            operation.result or "",
            title=f"Explanation for question {index + 1}",
            border_style="red",
        )
    )


def _continue(
    flow: QuizFlow,
    console: Console,
    generate_more: Generator | None,
) -> bool:
    if generate_more is None:
        console.print("[red]Generating more questions is not available.[/red]")
        return False
    request = GenerationRequest(
        text=flow.source_text,
        num_questions=continuation_count(flow.total_questions),
    )
    ticket = flow.operations.begin("generate")
    console.print("[dim]Generating more questions...[/dim]")
    try:
        quiz = generate_more(request)
    except GenerationError as exc:
        flow.operations.fail(ticket, str(exc))
        console.print(f"[red]{exc}[/red]")
        return False
    if not flow.operations.complete(ticket, quiz):
        return False
    flow.continue_with(quiz)
    return True


def _render_question(console: Console, flow: QuizFlow) -> None:
    question = flow.current
    header = Text.assemble(
        (f"Question {flow.index + 1}", "bold cyan"),
        (f" / {flow.total_questions}", "dim"),
    )
    console.print()
    console.rule(header)
    console.print(Text(question.question, style="bold"))

    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="center", style="cyan")
    table.add_column("Choice")

    selected = flow.current_answer
    for key, answer in zip(CHOICE_KEYS, question.answers):
        indicator, style = _choice_marker(
            answer, selected, question.correct_answer
        )
        choice_text = Text(answer)
        if style:
            choice_text.stylize(style)
        row_text = Text(indicator + " ", style=style or "")
        row_text += choice_text
        table.add_row(key, row_text)

    console.print(table)
    if selected:
        if selected == question.correct_answer:
            console.print(Text("Correct!", style="bold green"))
        else:
            console.print(
                Text(
                    "Incorrect. The correct answer is "
                    f"{question.correct_answer}.",
                    style="bold red",
                )
            )
    commands = ["choices [A-D or 1-4]", "p (prev)"]
    if flow.can_advance:
        commands.append("n (next)")
    if flow.can_submit:
        commands.append("submit")
    commands.append("quit")
    console.print(
        Text(
            f"Answered {flow.answered_count()}/{flow.total_questions} | "
            f"Commands: {', '.join(commands)}",
            style="dim",
        )
    )


def _render_report(console: Console, report: ScoreReport) -> None:
    console.print()
    console.rule(Text("Quiz Results", style="bold magenta"))
    console.print(
        Text.assemble(
            (f"{report.percentage}%", "bold"),
            f"  You answered {report.score} out of {report.total} "
            "questions correctly.",
        )
    )

    table = Table(title="Responses", box=box.SIMPLE, expand=True)
    table.add_column("#", justify="right")
    table.add_column("Question", overflow="fold")
    table.add_column("Your answer", overflow="fold")
    table.add_column("Correct answer", overflow="fold")
    table.add_column("Result", justify="center")
    for review in report.reviews:
        table.add_row(
            str(review.index + 1),
            review.question,
            review.user_answer or "-",
            review.correct_answer,
            "✅" if review.is_correct else "❌",
        )
    console.print(table)

    for review in report.wrong:
        if review.solution:
            console.print(
                Panel(
                    review.solution,
                    title=f"Solution for question {review.index + 1}",
                    border_style="yellow",
                )
            )


def _render_results_hint(
    console: Console,
    report: ScoreReport,
    explain: Explainer | None,
    generate_more: Generator | None,
) -> None:
    commands = []
    if explain is not None and report.wrong:
        commands.append("e <number> (explain)")
    if generate_more is not None:
        commands.append("c (continue)")
    commands.append("d (done)")
    console.print(Text(f"Commands: {', '.join(commands)}", style="dim"))


def _choice_marker(answer: str, selected: str, correct: str):
    """Return the row marker and style; unanswered rows stay plain."""

    if not selected:
        return " ", None
    if answer == correct:
        return "✓", "bold green"
    if answer == selected:
        return "✗", "bold red"
    return " ", "dim"
