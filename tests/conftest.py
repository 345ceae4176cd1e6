"""Stand-ins for the OpenAI client used across the tests."""

from pathlib import Path
from types import SimpleNamespace

import pytest

from capture_assistant.config import AssistantConfig
from capture_assistant.llm import ChatCompletionClient


class FakeCompletions:
    def __init__(self, replies):
        self.replies = list(replies)
        self.calls = []

    def create(self, **kwargs):
        self.calls.append(kwargs)
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if reply is None:
            return SimpleNamespace(choices=[])
        return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=reply))])


class FakeOpenAI:
    def __init__(self, *replies):
        self.completions = FakeCompletions(replies)
        self.chat = SimpleNamespace(completions=self.completions)


@pytest.fixture
def config():
    return AssistantConfig(api_key="test-key", session_db=Path(":memory:"))


@pytest.fixture
def make_llm(config):
    def factory(*replies):
        fake = FakeOpenAI(*replies)
        return ChatCompletionClient(config, client=fake), fake.completions

    return factory
