"""
Shared test fixtures and configuration.
"""

import pytest
import os
from unittest.mock import AsyncMock

# Set test environment variables before importing app modules
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-testing")
os.environ.setdefault("DEBUG", "true")
os.environ.setdefault("LOCAL_STORAGE_PATH", "/tmp/nexusai_test_data")
os.environ.setdefault("LOG_FILE_ENABLED", "false")
os.environ.setdefault("LLM_API_KEY", "")
os.environ.setdefault("OPENAI_API_KEY", "")

from fastapi.testclient import TestClient

from nexusai.llm.base import LLMProvider, LLMResponse
from nexusai.main import app
from nexusai.services.answer_generator import AnswerGenerator, get_answer_generator
from nexusai.storage import LocalChatStore, LocalStorage, UserStorage, init_chat_store, init_user_storage

ANSWER_TEXT = "Blue is the colour, and here is your answer."


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def storage(tmp_path):
    return LocalStorage(str(tmp_path / "data"))


@pytest.fixture
def chat_store(storage):
    return LocalChatStore(storage)


@pytest.fixture
def user_storage(storage):
    return UserStorage(storage)


@pytest.fixture
def answer_text():
    return ANSWER_TEXT


@pytest.fixture
def llm_provider():
    """LLM provider whose chat_completion is an AsyncMock returning ANSWER_TEXT."""
    provider = AsyncMock(spec=LLMProvider)
    provider.chat_completion.return_value = LLMResponse(content=ANSWER_TEXT, model="test-model")
    return provider


@pytest.fixture
def answer_generator(llm_provider):
    return AnswerGenerator(llm_provider)


@pytest.fixture
def client(storage, answer_generator):
    """TestClient over fresh storage with the LLM replaced by the mock provider."""
    init_user_storage(storage)
    init_chat_store(storage)
    app.dependency_overrides[get_answer_generator] = lambda: answer_generator
    yield TestClient(app)
    app.dependency_overrides.clear()
