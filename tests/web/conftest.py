from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from quizify.services.storage import UploadStore
from quizify.web import create_app


@pytest.fixture
def store(tmp_path) -> UploadStore:
    return UploadStore(
        tmp_path / "uploads",
        secret="test-secret",
        ttl_seconds=60,
        max_bytes=1024,
    )


@pytest.fixture
def app(config, chat_client, store, layout, logger):
    return create_app(
        config,
        client=chat_client,
        store=store,
        layout=layout,
        logger=logger,
    )


@pytest.fixture
def http(app) -> TestClient:
    with TestClient(app) as client:
        yield client
