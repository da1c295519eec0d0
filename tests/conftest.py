"""
Shared test fixtures.

Provides: settings with a dummy Gemini key, a deterministic bag-of-words
embedder, a scripted chat model, and a ``RAGService`` wired to them over
an in-memory store.  No test talks to Gemini, LanceDB servers, or MongoDB.
"""

from __future__ import annotations

import re

import pytest

from mira.config.settings import Settings
from mira.src.core.rag_engine import RAGService
from mira.src.database.chunk_store import InMemoryChunkStore

FAKE_API_KEY = "AIza-test-key-0123456789abcdef"

VOCABULARY = ["sky", "blue", "grass", "green", "color", "contract", "termination", "invoice", "audio", "meeting"]


class FakeEmbedder:
    """Bag-of-words vectors over ``VOCABULARY``; records every call."""

    def __init__(self) -> None:
        self.document_calls: list[list[str]] = []
        self.query_calls: list[str] = []

    @staticmethod
    def vectorise(text: str) -> list[float]:
        tokens = re.findall(r"[a-z]+", text.lower())
        return [float(tokens.count(word)) for word in VOCABULARY]

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        self.document_calls.append(list(texts))
        return [self.vectorise(t) for t in texts]

    def embed_query(self, text: str) -> list[float]:
        self.query_calls.append(text)
        return self.vectorise(text)


class FakeMessage:
    def __init__(self, content: object) -> None:
        self.content = content


class FakeChatModel:
    """Returns a fixed reply and records the prompts it received."""

    def __init__(self, reply: object = "Generated answer.") -> None:
        self.reply = reply
        self.prompts: list[str] = []

    async def ainvoke(self, input: object) -> FakeMessage:
        self.prompts.append(input[0].content)  # type: ignore[index]
        return FakeMessage(self.reply)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(_env_file=None, GOOGLE_API_KEY=FAKE_API_KEY, ENV="dev", STORE_BACKEND="memory")


@pytest.fixture
def unconfigured_settings() -> Settings:
    return Settings(_env_file=None, GOOGLE_API_KEY=None)


@pytest.fixture
def fake_embedder() -> FakeEmbedder:
    return FakeEmbedder()


@pytest.fixture
def fake_chat_model() -> FakeChatModel:
    return FakeChatModel()


@pytest.fixture
def memory_store() -> InMemoryChunkStore:
    return InMemoryChunkStore()


@pytest.fixture
def rag_service(memory_store, test_settings, fake_embedder, fake_chat_model) -> RAGService:
    return RAGService(memory_store, config=test_settings, embedder_factory=lambda key: fake_embedder, chat_model_factory=lambda key: fake_chat_model)
