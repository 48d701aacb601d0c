"""``quizify take``: generate a quiz from a local file and take it."""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Callable, Sequence

import httpx
from rich.console import Console

from quizify.config import (
    ConfigError,
    QuizifyConfig,
    build_chat_client,
    load_config,
)
from quizify.core.ai import ChatClient
from quizify.core.logging import configure_logger
from quizify.core.workspace import WorkspaceError, ensure_workspace
from quizify.services.explanation import (
    ExplanationRequest,
    explain_solution,
)
from quizify.services.extraction import (
    ExtractionError,
    build_dependencies,
    extract_text,
)
from quizify.services.generation import (
    GenerationError,
    GenerationRequest,
    QuizValidationError,
    generate_quiz,
    validate_request,
)
from quizify.services.storage import StoredObject
from quizify.services.upload import (
    UploadBroker,
    UploadError,
    guess_content_type,
)

from .flow import QuizFlow
from .session import InputProvider, run_quiz_session

ClientFactory = Callable[[QuizifyConfig], ChatClient]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quizify take",
        description=(
            "Generate a multiple-choice quiz from a document and take it in "
            "the terminal."
        ),
    )
    parser.add_argument(
        "source",
        type=Path,
        help="Text, Markdown, PDF or Word file to build the quiz from.",
    )
    parser.add_argument(
        "-n",
        "--num",
        type=int,
        help="Number of questions (5-50; defaults to quiz.default_questions).",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to quizify.toml (defaults to the workspace config).",
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        help="Override the workspace root for this run.",
    )
    parser.add_argument(
        "--server",
        metavar="URL",
        help=(
            "Upload the source to a running quizify server and use the text "
            "it extracts."
        ),
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Mirror log output to stderr.",
    )
    return parser


def read_source(
    path: Path,
    *,
    client: ChatClient | None,
    logger: logging.Logger,
) -> str:
    """Return the text of ``path`` using the upload extraction backends."""

    stored = StoredObject(
        file_path=str(path),
        file_name=path.name,
        content_type=_content_type_for(path),
        data=path.read_bytes(),
    )
    return extract_text(
        stored,
        dependencies=build_dependencies(client),
        logger=logger,
    )


def read_remote_source(
    path: Path,
    *,
    http: httpx.Client,
    logger: logging.Logger,
) -> str:
    """Upload ``path`` through a quizify server and return its text."""

    broker = UploadBroker(http, logger=logger)
    result = broker.upload(
        path.name,
        path.read_bytes(),
        content_type=_content_type_for(path),
    )
    logger.info(
        "Source extracted by server", extra={"file_path": result.file_path}
    )
    return result.text


def main(
    argv: Sequence[str] | None = None,
    *,
    console: Console | None = None,
    input_provider: InputProvider | None = None,
    client_factory: ClientFactory | None = None,
    http_client: httpx.Client | None = None,
) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    console = console or Console()

    try:
        config = load_config(
            explicit_path=args.config, workspace=args.workspace
        )
        layout = ensure_workspace(path=args.workspace)
    except (ConfigError, WorkspaceError) as exc:
        parser.error(str(exc))

    logger, log_path = configure_logger(
        "quizify.take",
        log_dir=layout.path_for("logs"),
        level=config.logging.level,
        verbose=args.verbose or config.logging.verbose,
    )
    logger.debug("take CLI invoked", extra={"source": str(args.source)})

    factory = client_factory or (
        lambda cfg: build_chat_client(cfg.openai)
    )
    try:
        client = factory(config)
    except RuntimeError as exc:
        sys.stderr.write(str(exc) + "\n")
        return 1

    http = http_client
    if args.server and http is None:
        http = httpx.Client(
            base_url=args.server,
            timeout=config.openai.request_timeout_seconds,
        )
    try:
        if args.server:
            text = read_remote_source(args.source, http=http, logger=logger)
        else:
            text = read_source(args.source, client=client, logger=logger)
    except OSError as exc:
        console.print(f"[red]Unable to read {args.source}: {exc}[/red]")
        return 1
    except (ExtractionError, UploadError) as exc:
        console.print(f"[red]{exc}[/red]")
        return 1
    finally:
        if http is not None and http_client is None:
            http.close()

    num_questions = (
        args.num if args.num is not None else config.quiz.default_questions
    )
    try:
        request = validate_request(text, num_questions)
    except QuizValidationError as exc:
        console.print(f"[red]{exc}[/red]")
        return 2

    console.print("[dim]Generating quiz...[/dim]")
    try:
        quiz = generate_quiz(request, client=client, logger=logger)
    except GenerationError as exc:
        console.print(f"[red]{exc}[/red]")
        return 1

    def explain(explanation: ExplanationRequest) -> str:
        return explain_solution(
            explanation,
            client=client,
            logger=logger,
            max_context_chars=config.quiz.explanation_context_chars,
        )

    def generate_more(more: GenerationRequest):
        return generate_quiz(
            more, client=client, logger=logger, continuation=True
        )

    flow = QuizFlow()
    flow.start(quiz, request.text)
    result = run_quiz_session(
        flow,
        console,
        input_provider or (lambda: console.input("> ")),
        explain=explain,
        generate_more=generate_more,
    )
    logger.info(
        "Quiz session finished",
        extra={
            "exit_action": result.exit_action,
            "rounds": result.rounds,
            "score": result.report.score if result.report else None,
        },
    )
    console.print(f"[dim]Log file: {log_path}[/dim]")
    return 0


def _content_type_for(path: Path) -> str:
    if path.suffix.lower() in {".md", ".markdown", ".txt"}:
        return "text/plain"
    return guess_content_type(path.name)


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
