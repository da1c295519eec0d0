"""
Mira - Gemini Gateways
=======================
Thin adapters over the two externally hosted capabilities the core
consumes:

``EmbeddingGateway``
    ``embed_one(text)`` / ``embed_many(texts)`` on top of any
    LangChain-compatible embedder (``GoogleGenerativeAIEmbeddings`` in
    production).  Malformed or missing per-item vectors degrade to ``[]``
    instead of failing the batch.

``AnswerGenerator``
    ``generate(prompt, fallback)`` on top of a LangChain chat model
    (``ChatGoogleGenerativeAI``).  Returns the first candidate's text or
    *fallback* when the model produced nothing usable.

Any exception raised by the underlying client is logged and re-raised as
``ProviderError``.  No retries, no timeouts.

The LangChain clients are blocking or async depending on the call; the
embedder is driven through ``asyncio.to_thread`` so the FastAPI event
loop is never blocked.
"""

from __future__ import annotations

import asyncio
import math
from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from mira.config.settings import settings
from mira.src.core.errors import ProviderError
from mira.src.utils.logger import get_logger

logger = get_logger(__name__)

Vector = list[float]


# ══════════════════════════════════════════════════════════════════════
#  PROTOCOLS
# ══════════════════════════════════════════════════════════════════════


@runtime_checkable
class Embedder(Protocol):
    """Structural type for any LangChain-compatible embedding model."""

    def embed_documents(self, texts: list[str]) -> list[list[float]]: ...

    def embed_query(self, text: str) -> list[float]: ...


@runtime_checkable
class ChatModel(Protocol):
    """Structural type for a LangChain chat model."""

    async def ainvoke(self, input: object) -> object: ...


# ══════════════════════════════════════════════════════════════════════
#  FACTORIES
# ══════════════════════════════════════════════════════════════════════


def build_embedder(api_key: str) -> Embedder:
    """Create the Gemini embedding client."""
    from langchain_google_genai import GoogleGenerativeAIEmbeddings

    logger.info("Embedder initialised: %s", settings.EMBEDDING_MODEL)
    return GoogleGenerativeAIEmbeddings(model=settings.EMBEDDING_MODEL, google_api_key=api_key)


def build_chat_model(api_key: str) -> ChatModel:
    """Create the Gemini chat client."""
    from langchain_google_genai import ChatGoogleGenerativeAI

    llm = ChatGoogleGenerativeAI(model=settings.LLM_MODEL, temperature=settings.LLM_TEMPERATURE, google_api_key=api_key)
    logger.info("LLM initialised: %s (temperature=%.1f)", settings.LLM_MODEL, settings.LLM_TEMPERATURE)
    return llm


# ══════════════════════════════════════════════════════════════════════
#  EMBEDDING GATEWAY
# ══════════════════════════════════════════════════════════════════════


def coerce_vector(value: object) -> Vector:
    """Return *value* as a list of finite floats, or ``[]`` if it is not one."""
    if not isinstance(value, Sequence) or isinstance(value, (str, bytes)):
        return []
    try:
        vector = [float(x) for x in value]
    except (TypeError, ValueError):
        return []
    if not all(math.isfinite(x) for x in vector):
        return []
    return vector


class EmbeddingGateway:
    """
    Order-preserving embedding access with per-item degradation.

    Parameters
    ----------
    embedder
        Any object satisfying the ``Embedder`` protocol.
    """

    __slots__ = ("_embedder",)

    def __init__(self, embedder: Embedder) -> None:
        self._embedder = embedder


    async def embed_one(self, text: str) -> Vector:
        try:
            raw = await asyncio.to_thread(self._embedder.embed_query, text)
        except Exception as exc:
            logger.error("[EMBED] Query embedding failed: %s", exc)
            raise ProviderError(f"Query embedding failed: {exc!r}") from exc
        return coerce_vector(raw)


    async def embed_many(self, texts: list[str]) -> list[Vector]:
        """
        Embed *texts* in one batched call.

        ``output[i]`` always corresponds to ``texts[i]``; a short or
        malformed provider response is padded / replaced with ``[]``.
        """
        if not texts:
            return []

        try:
            raw = await asyncio.to_thread(self._embedder.embed_documents, texts)
        except Exception as exc:
            logger.error("[EMBED] Batch embedding of %d text(s) failed: %s", len(texts), exc)
            raise ProviderError(f"Batch embedding of {len(texts)} text(s) failed: {exc!r}") from exc

        raw_list = list(raw) if isinstance(raw, Sequence) else []
        if len(raw_list) != len(texts):
            logger.warning("[EMBED] Provider returned %d vector(s) for %d text(s).", len(raw_list), len(texts))

        vectors = [coerce_vector(raw_list[i]) if i < len(raw_list) else [] for i in range(len(texts))]
        return vectors


# ══════════════════════════════════════════════════════════════════════
#  ANSWER GENERATOR
# ══════════════════════════════════════════════════════════════════════


def extract_text(response: object) -> str:
    """
    Pull the first candidate's text out of a chat-model response.

    Handles plain strings, ``AIMessage.content`` as a string, and
    ``content`` as a list of parts (strings or ``{"text": ...}`` dicts).
    Returns ``""`` when nothing usable is present.
    """
    if response is None:
        return ""
    if isinstance(response, str):
        return response.strip()

    content = getattr(response, "content", None)
    if isinstance(content, str):
        return content.strip()
    if isinstance(content, list):
        for part in content:
            if isinstance(part, str) and part.strip():
                return part.strip()
            if isinstance(part, dict):
                text = part.get("text")
                if isinstance(text, str) and text.strip():
                    return text.strip()
    return ""


class AnswerGenerator:
    """
    One LLM call per query with a never-failing empty-output fallback.

    Parameters
    ----------
    llm
        Any object satisfying the ``ChatModel`` protocol.
    """

    __slots__ = ("_llm",)

    def __init__(self, llm: ChatModel) -> None:
        self._llm = llm


    async def generate(self, prompt: str, fallback: str) -> str:
        from langchain_core.messages import HumanMessage

        try:
            response = await self._llm.ainvoke([HumanMessage(content=prompt)])
        except Exception as exc:
            logger.error("[GENERATE] LLM call failed: %s", exc)
            raise ProviderError(f"Generation failed: {exc!r}") from exc

        text = extract_text(response)
        if not text:
            logger.warning("[GENERATE] Empty model output, using fallback answer.")
            return fallback
        return text
