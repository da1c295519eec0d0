"""
Mira - API Routes
==================
    POST /ingestText  → chunk + embed + store text harvested by the client
    POST /chatRag     → answer a message (greeting shortcut or full RAG)
    GET  /health      → liveness, stored chunk count, key presence

Each handler is a thin controller: it unpacks the body, delegates to
``RAGService``, and maps ``MiraError`` subclasses to HTTP status codes.
Provider failures are logged here and answered with a generic message;
provider internals never reach the client.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Request, status

from mira.src.api.schemas import ChatRequest, ChatResponse, HealthResponse, IngestRequest, IngestResponse, TopChunk
from mira.src.core.errors import MiraError, ProviderError
from mira.src.core.rag_engine import RAGService
from mira.src.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter()

_INGEST_FAILURE = "Error ingesting text"
_CHAT_FAILURE = "Error generating answer"


def get_rag_service(request: Request) -> RAGService:
    """Return the service created at startup (see ``mira.src.main``)."""
    return request.app.state.rag_service


@router.post("/ingestText", response_model=IngestResponse)
async def ingest_text(payload: IngestRequest | None = None, service: RAGService = Depends(get_rag_service)) -> IngestResponse:
    payload = payload or IngestRequest()
    try:
        result = await service.ingest(payload.text, payload.sourceType, payload.sourceName)
    except ProviderError as exc:
        logger.error("Error in /ingestText: %s", exc.message)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=_INGEST_FAILURE) from exc
    except MiraError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc

    return IngestResponse(chunks=result.chunks)


@router.post("/chatRag", response_model=ChatResponse)
async def chat_rag(payload: ChatRequest | None = None, service: RAGService = Depends(get_rag_service)) -> ChatResponse:
    payload = payload or ChatRequest()
    try:
        result = await service.answer(payload.message)
    except ProviderError as exc:
        logger.error("Error in /chatRag: %s", exc.message)
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=_CHAT_FAILURE) from exc
    except MiraError as exc:
        raise HTTPException(status_code=exc.status_code, detail=exc.message) from exc

    return ChatResponse(answer=result.answer, topChunks=[TopChunk.from_candidate(c) for c in result.top_chunks])


@router.get("/health", response_model=HealthResponse)
async def health(service: RAGService = Depends(get_rag_service)) -> HealthResponse:
    return HealthResponse(chunks=await service.store.count(), geminiConfigured=service.config.api_key_configured)
