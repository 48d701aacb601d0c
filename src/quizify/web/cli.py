"""``quizify serve``: run the web app with uvicorn."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Callable, Sequence

import uvicorn

from quizify.config import ConfigError, load_config
from quizify.core.logging import configure_logger
from quizify.core.workspace import WorkspaceError, ensure_workspace

from .app import create_app

Runner = Callable[..., None]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="quizify serve",
        description="Serve the quizify web UI and JSON API.",
    )
    parser.add_argument(
        "--host",
        help="Bind address (defaults to server.host).",
    )
    parser.add_argument(
        "--port",
        type=int,
        help="Port to listen on (defaults to server.port).",
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
        "--verbose",
        action="store_true",
        help="Mirror log output to stderr.",
    )
    return parser


def main(
    argv: Sequence[str] | None = None, *, runner: Runner | None = None
) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        config = load_config(
            explicit_path=args.config, workspace=args.workspace
        )
        layout = ensure_workspace(path=args.workspace)
    except (ConfigError, WorkspaceError) as exc:
        parser.error(str(exc))

    logger, log_path = configure_logger(
        "quizify.web",
        log_dir=layout.path_for("logs"),
        level=config.logging.level,
        verbose=args.verbose or config.logging.verbose,
    )
    app = create_app(config, layout=layout, logger=logger)

    host = args.host or config.server.host
    port = args.port if args.port is not None else config.server.port
    sys.stdout.write(
        f"Serving quizify on http://{host}:{port} (logs: {log_path})\n"
    )
    (runner or uvicorn.run)(app, host=host, port=port)
    return 0


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
