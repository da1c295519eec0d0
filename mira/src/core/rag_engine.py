"""
Mira - RAG Engine
==================
Orchestrates both pipelines behind one stateless service.

Ingestion flow
--------------
    1. Validate  → text required, non-blank
    2. Config    → Gemini key present (before any provider call)
    3. Chunk     → fixed-size character slices
    4. Embed     → one batched call; empty vectors tolerated per chunk
    5. Store     → one ``insert_many`` for the whole request
    6. Return    → number of chunks created

Query flow
----------
    1. Validate  → message required, non-blank
    2. Config    → Gemini key present
    3. Classify  → greeting or question
    4. GREETING  → greeting prompt → LLM → answer, no chunks
    5. QUESTION  → embed → scan + rank every stored chunk → top-K
                 → context block → grounded prompt → LLM → answer

Provider clients are created lazily on first use so the service can be
constructed (and report ``ConfigurationError`` per request) without a
Gemini key.  Unexpected exceptions from collaborators become
``ProviderError``; the HTTP layer answers those with a generic message.

Usage:
    from mira.src.core.rag_engine import RAGService
    service = RAGService(store)
    result  = await service.answer("what color is the sky")
"""

from __future__ import annotations

import time
from collections.abc import Callable

from mira.config.prompt_templates import GREETING_FALLBACK_ANSWER, NO_ANSWER_FALLBACK
from mira.config.settings import Settings, settings
from mira.src.core.classifier import QueryClassifier
from mira.src.core.context import build_context, build_greeting_prompt, build_rag_prompt
from mira.src.core.errors import MiraError, ProviderError, ValidationError
from mira.src.core.models import IngestResult, NewChunk, QueryKind, QueryResult, SourceType
from mira.src.core.providers import AnswerGenerator, ChatModel, Embedder, EmbeddingGateway, build_chat_model, build_embedder
from mira.src.core.similarity import SimilarityRanker
from mira.src.database.chunk_store import ChunkStore
from mira.src.utils.logger import get_logger
from mira.src.utils.text_utils import chunk_text, is_blank

logger = get_logger(__name__)


class RAGService:
    """
    Ingestion + query orchestration.

    Parameters
    ----------
    store
        Any ``ChunkStore`` backend.
    config
        Settings instance; defaults to the module singleton.
    embedder_factory / chat_model_factory
        Called with the API key on first use.  Tests inject fakes here.
    classifier / ranker
        Optional custom components.
    """

    __slots__ = ("_store", "_config", "_embedder_factory", "_chat_model_factory", "_classifier", "_ranker", "_embeddings", "_generator")

    def __init__(
        self,
        store: ChunkStore,
        config: Settings | None = None,
        embedder_factory: Callable[[str], Embedder] = build_embedder,
        chat_model_factory: Callable[[str], ChatModel] = build_chat_model,
        classifier: QueryClassifier | None = None,
        ranker: SimilarityRanker | None = None,
    ) -> None:
        self._store = store
        self._config = config or settings
        self._embedder_factory = embedder_factory
        self._chat_model_factory = chat_model_factory
        self._classifier = classifier or QueryClassifier(self._config.GREETING_WORDS, self._config.GREETING_MAX_WORDS)
        self._ranker = ranker or SimilarityRanker(enforce_dimension=self._config.ENFORCE_EMBEDDING_DIM)
        self._embeddings: EmbeddingGateway | None = None
        self._generator: AnswerGenerator | None = None


    @property
    def store(self) -> ChunkStore:
        return self._store


    @property
    def config(self) -> Settings:
        return self._config

    # ══════════════════════════════════════════════════════════════════
    #  LAZY PROVIDERS
    # ══════════════════════════════════════════════════════════════════

    def _embedding_gateway(self) -> EmbeddingGateway:
        if self._embeddings is None:
            self._embeddings = EmbeddingGateway(self._embedder_factory(self._config.require_api_key()))
        return self._embeddings


    def _answer_generator(self) -> AnswerGenerator:
        if self._generator is None:
            self._generator = AnswerGenerator(self._chat_model_factory(self._config.require_api_key()))
        return self._generator

    # ══════════════════════════════════════════════════════════════════
    #  INGESTION
    # ══════════════════════════════════════════════════════════════════

    async def ingest(self, text: str | None, source_type: str | None = None, source_name: str | None = None) -> IngestResult:
        """Chunk, embed, and store *text*.  Returns the number of chunks created."""
        if is_blank(text):
            raise ValidationError("Missing text")
        self._config.require_api_key()

        text = str(text)
        source_type = source_type or SourceType.DOC.value
        source_name = source_name or "unknown"

        t_start = time.perf_counter()
        chunks = chunk_text(text, self._config.CHUNK_MAX_CHARS)
        logger.info("[INGEST] %s:%s → %d chunk(s) from %d chars.", source_type, source_name, len(chunks), len(text))

        try:
            t_embed = time.perf_counter()
            vectors = await self._embedding_gateway().embed_many(chunks)
            embed_ms = (time.perf_counter() - t_embed) * 1000

            degraded = sum(1 for v in vectors if not v)
            if degraded:
                logger.warning("[INGEST] %d/%d chunk(s) stored without an embedding.", degraded, len(chunks))

            new_chunks = [NewChunk(text=c, embedding=v, source_type=source_type, source_name=source_name) for c, v in zip(chunks, vectors)]

            t_store = time.perf_counter()
            await self._store.insert_many(new_chunks)
            store_ms = (time.perf_counter() - t_store) * 1000
        except MiraError:
            raise
        except Exception as exc:
            logger.exception("[INGEST] Unexpected failure while storing chunks.")
            raise ProviderError(f"Ingestion failed: {exc!r}") from exc

        total_ms = (time.perf_counter() - t_start) * 1000
        logger.info("[INGEST] Done in %.1fms (embed=%.1f, store=%.1f).", total_ms, embed_ms, store_ms)
        return IngestResult(chunks=len(chunks), degraded=degraded)

    # ══════════════════════════════════════════════════════════════════
    #  QUERY
    # ══════════════════════════════════════════════════════════════════

    async def answer(self, message: str | None) -> QueryResult:
        """Answer *message*, with or without retrieval depending on its kind."""
        if is_blank(message):
            raise ValidationError("Missing message")
        self._config.require_api_key()

        message = str(message)
        kind = self._classifier.classify(message)

        try:
            if kind is QueryKind.GREETING:
                return await self._answer_greeting(message)
            return await self._answer_with_context(message)
        except MiraError:
            raise
        except Exception as exc:
            logger.exception("[RAG] Unexpected failure while answering.")
            raise ProviderError(f"Query failed: {exc!r}") from exc


    async def _answer_greeting(self, message: str) -> QueryResult:
        logger.info("[RAG] Greeting detected, skipping retrieval.")
        answer = await self._answer_generator().generate(build_greeting_prompt(message), GREETING_FALLBACK_ANSWER)
        return QueryResult(kind=QueryKind.GREETING, answer=answer, top_chunks=[])


    async def _answer_with_context(self, message: str) -> QueryResult:
        t_start = time.perf_counter()

        query_vector = await self._embedding_gateway().embed_one(message)
        if not query_vector:
            logger.warning("[RAG] Query embedding came back empty; every chunk will score 0.")

        t_search = time.perf_counter()
        records = await self._store.list_all()
        top = self._ranker.rank(query_vector, records, self._config.TOP_K)
        search_ms = (time.perf_counter() - t_search) * 1000
        logger.info("[RAG] Ranked %d record(s) → top %d in %.1fms.", len(records), len(top), search_ms)

        prompt = build_rag_prompt(message, build_context(top))

        t_llm = time.perf_counter()
        answer = await self._answer_generator().generate(prompt, NO_ANSWER_FALLBACK)
        llm_ms = (time.perf_counter() - t_llm) * 1000

        total_ms = (time.perf_counter() - t_start) * 1000
        logger.info("[RAG] Pipeline total: %.1fms (search=%.1f, llm=%.1f)", total_ms, search_ms, llm_ms)
        return QueryResult(kind=QueryKind.QUESTION, answer=answer, top_chunks=top)
