"""
Mira - Application Entry Point
================================
FastAPI application factory.  Registers the routes from
``mira.src.api.routes``, configures CORS, and builds the shared
``RAGService`` (plus its chunk store) once at startup.

Run locally:
    uvicorn mira.src.main:app --reload --port 3000
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from mira.config.settings import settings
from mira.src.api.routes import router
from mira.src.core.rag_engine import RAGService
from mira.src.database.chunk_store import build_chunk_store
from mira.src.utils.logger import get_logger

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the service before the first request unless one was injected."""
    logger.info("Mira backend starting up…")
    if getattr(app.state, "rag_service", None) is None:
        app.state.rag_service = RAGService(build_chunk_store(settings))

    if not settings.api_key_configured:
        logger.warning("GEMINI_API_KEY is not configured. Ingest and chat requests will fail with 500.")

    logger.info("Ready (store=%r).", app.state.rag_service.store)
    yield
    logger.info("Mira backend shutting down.")


def create_app(service: RAGService | None = None) -> FastAPI:
    """
    Create the FastAPI app.

    Args:
        service: Pre-built service (tests, scripts).  When omitted the
                 lifespan handler builds one from ``settings``.
    """
    app = FastAPI(title="Mira RAG API", description="Multimodal retrieval-augmented chat over uploaded text, OCR output, and audio transcripts.", version="1.0.0", lifespan=lifespan)
    app.state.rag_service = service

    app.add_middleware(CORSMiddleware, allow_origins=settings.CORS_ORIGINS, allow_methods=["*"], allow_headers=["*"])
    app.include_router(router)
    return app


app = create_app()
