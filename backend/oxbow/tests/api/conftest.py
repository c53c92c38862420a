from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from oxbow.api.deps import get_db, get_llm_factory, get_push_gateway
from oxbow.core.config import settings
from oxbow.main import app
from oxbow.tests.fakes import FakeLLMClient, standard_script


@pytest.fixture
def fake_llm() -> FakeLLMClient:
    return FakeLLMClient(standard_script())


@pytest.fixture
def push_gateway() -> MagicMock:
    gateway = MagicMock()
    gateway.send = AsyncMock(return_value={"data": {"status": "ok"}})
    return gateway


@pytest.fixture
def client(engine, fake_llm, push_gateway):
    def _get_db():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_db] = _get_db
    app.dependency_overrides[get_llm_factory] = lambda: fake_llm.factory
    app.dependency_overrides[get_push_gateway] = lambda: push_gateway
    with patch.object(settings, "MIRROR_RETRY_DELAY_SECONDS", 0):
        yield TestClient(app)
    app.dependency_overrides.clear()
