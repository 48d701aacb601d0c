"""FastAPI application factory for the quizify web UI and JSON API."""

from __future__ import annotations

import logging
import secrets
from pathlib import Path

from fastapi import FastAPI
from fastapi.templating import Jinja2Templates
from starlette.middleware.sessions import SessionMiddleware
from starlette.staticfiles import StaticFiles

from quizify.config import QuizifyConfig, build_chat_client
from quizify.core.ai import ChatClient
from quizify.core.logging import configure_logger
from quizify.core.workspace import WorkspaceLayout, ensure_workspace
from quizify.quiz.models import MAX_QUESTIONS, MIN_QUESTIONS
from quizify.services.extraction import build_dependencies
from quizify.services.storage import UploadStore

from .deps import UnavailableChatClient, WebServices
from .limits import (
    BodySizeLimitMiddleware,
    RequestTooLargeError,
    too_large_handler,
)
from .routes.api import router as api_router
from .routes.pages import router as pages_router
from .sessions import SessionRegistry

WEB_DIR = Path(__file__).resolve().parent
TEMPLATES_DIR = WEB_DIR / "templates"
STATIC_DIR = WEB_DIR / "static"

__all__ = ["create_app"]


def create_app(
    config: QuizifyConfig,
    *,
    client: ChatClient | None = None,
    store: UploadStore | None = None,
    layout: WorkspaceLayout | None = None,
    logger: logging.Logger | None = None,
) -> FastAPI:
    """Build the app. Collaborators not passed in are built from config."""

    layout = layout or ensure_workspace()
    if logger is None:
        logger, _ = configure_logger(
            "quizify.web",
            log_dir=layout.path_for("logs"),
            level=config.logging.level,
            verbose=config.logging.verbose,
        )

    secret = config.server.session_secret or secrets.token_urlsafe(32)
    if client is None:
        try:
            client = build_chat_client(config.openai)
        except RuntimeError as exc:
            logger.warning(
                "AI client unavailable; AI endpoints will fail",
                extra={"reason": str(exc)},
            )
            client = UnavailableChatClient(str(exc))
    if store is None:
        store = UploadStore(
            layout.path_for("uploads"),
            secret=secret,
            ttl_seconds=config.storage.upload_url_ttl_seconds,
            max_bytes=config.storage.max_upload_bytes,
        )

    templates = Jinja2Templates(directory=str(TEMPLATES_DIR))
    templates.env.globals.update(
        min_questions=MIN_QUESTIONS,
        max_questions=MAX_QUESTIONS,
        max_upload_bytes=config.storage.max_upload_bytes,
    )

    app = FastAPI(title="Quizify")
    app.add_middleware(
        SessionMiddleware,
        secret_key=secret,
        same_site="lax",
        max_age=60 * 60 * 24,
    )
    app.add_middleware(BodySizeLimitMiddleware, max_bytes=store.max_bytes)
    app.add_exception_handler(RequestTooLargeError, too_large_handler)
    app.mount("/static", StaticFiles(directory=str(STATIC_DIR)), name="static")
    app.state.services = WebServices(
        config=config,
        client=client,
        store=store,
        extractors=build_dependencies(client),
        sessions=SessionRegistry(
            default_questions=config.quiz.default_questions
        ),
        templates=templates,
        logger=logger,
    )

    app.include_router(pages_router)
    app.include_router(api_router)
    logger.info(
        "Web app created",
        extra={"uploads": str(store.root), "model": config.openai.model},
    )
    return app
