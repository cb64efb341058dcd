"""Global test fixtures."""
import pytest
from loguru import logger

from aiflow.api import LLMClient
from tests.fakes import FakeOpenAI


@pytest.fixture
def log_messages():
    """Collects (level, message) pairs emitted through loguru during a test."""
    messages = []
    handler_id = logger.add(lambda m: messages.append((m.record["level"].name, m.record["message"])), level="DEBUG")
    yield messages
    logger.remove(handler_id)


@pytest.fixture
def make_llm():

    def _make(replies=(), model="gpt-4o-mini", base_url="https://api.example.com/v1"):
        fake = FakeOpenAI(replies)
        return LLMClient("sk-test", base_url, model, client=fake), fake

    return _make
