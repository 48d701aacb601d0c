from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Iterator

import pytest

TESTS_DIR = Path(__file__).resolve().parent
ROOT = TESTS_DIR.parent
for extra in (TESTS_DIR, ROOT / "src"):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from fixtures import FakeChatClient  # noqa: E402

from quizify.config import QuizifyConfig, default_config  # noqa: E402
from quizify.core.workspace import (  # noqa: E402
    WorkspaceLayout,
    ensure_workspace,
)


@pytest.fixture(autouse=True)
def _isolate_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("QUIZIFY_DATA_HOME", str(tmp_path / "home"))
    monkeypatch.delenv("QUIZIFY_CONFIG", raising=False)


@pytest.fixture
def chat_client() -> FakeChatClient:
    return FakeChatClient()


@pytest.fixture
def logger() -> Iterator[logging.Logger]:
    test_logger = logging.getLogger("quizify.tests")
    test_logger.setLevel(logging.DEBUG)
    yield test_logger
    test_logger.handlers.clear()


@pytest.fixture
def layout(tmp_path: Path) -> WorkspaceLayout:
    return ensure_workspace(path=tmp_path / "workspace")


@pytest.fixture
def config() -> QuizifyConfig:
    return default_config()
