"""Core shared helpers for quizify surfaces."""

from __future__ import annotations

from .ai import ChatClient, OpenAIChatClient, load_client
from .logging import JsonLogFormatter, configure_logger
from .workspace import (
    WORKSPACE_ENV,
    WorkspaceError,
    WorkspaceLayout,
    ensure_workspace,
    describe_layout,
)

__all__ = [
    "ChatClient",
    "OpenAIChatClient",
    "load_client",
    "configure_logger",
    "JsonLogFormatter",
    "ensure_workspace",
    "describe_layout",
    "WorkspaceLayout",
    "WorkspaceError",
    "WORKSPACE_ENV",
]
