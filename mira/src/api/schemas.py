"""
Mira - HTTP Schemas
====================
Request / response bodies for the two RAG endpoints.  Field names are
camelCase on the wire to stay compatible with existing frontends.

Required fields are declared optional here on purpose: a missing or
blank ``text`` / ``message`` must come back as a 400 with a readable
message from ``RAGService``, not as FastAPI's generic 422.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from mira.src.core.models import ScoredCandidate


class IngestRequest(BaseModel):
    text: str | None = None
    sourceType: str | None = Field(default=None, description="doc | image | audio")
    sourceName: str | None = Field(default=None, description="Filename or other provenance label")


class IngestResponse(BaseModel):
    ok: bool = True
    chunks: int


class ChatRequest(BaseModel):
    message: str | None = None


class TopChunk(BaseModel):
    id: str
    sourceType: str
    sourceName: str
    score: float

    @classmethod
    def from_candidate(cls, candidate: ScoredCandidate) -> TopChunk:
        return cls(id=candidate.id, sourceType=candidate.source_type, sourceName=candidate.source_name, score=candidate.score)


class ChatResponse(BaseModel):
    answer: str
    topChunks: list[TopChunk] = Field(default_factory=list)


class HealthResponse(BaseModel):
    status: str = "ok"
    chunks: int
    geminiConfigured: bool
