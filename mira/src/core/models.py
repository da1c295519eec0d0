"""
Mira - Domain Models
=====================
Pydantic models shared by the pipelines and the chunk stores.

``ChunkRecord``      the atomic retrievable unit (immutable once created).
``ScoredCandidate``  a record plus its cosine score for one query; never persisted.
``IngestResult`` / ``QueryResult``  what ``RAGService`` hands back to callers.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class SourceType(str, Enum):
    """Known provenance kinds.  Stores accept any non-empty label."""

    DOC = "doc"
    IMAGE = "image"
    AUDIO = "audio"


class QueryKind(str, Enum):
    GREETING = "greeting"
    QUESTION = "question"


class ChunkRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    text: str
    embedding: list[float] = Field(default_factory=list)
    source_type: str = SourceType.DOC.value
    source_name: str = "unknown"
    created_at: datetime


class NewChunk(BaseModel):
    """A chunk that has been embedded but not yet assigned an id."""

    model_config = ConfigDict(frozen=True)

    text: str
    embedding: list[float] = Field(default_factory=list)
    source_type: str = SourceType.DOC.value
    source_name: str = "unknown"


class ScoredCandidate(BaseModel):
    model_config = ConfigDict(frozen=True)

    record: ChunkRecord
    score: float

    @property
    def id(self) -> str:
        return self.record.id

    @property
    def text(self) -> str:
        return self.record.text

    @property
    def source_type(self) -> str:
        return self.record.source_type

    @property
    def source_name(self) -> str:
        return self.record.source_name


class IngestResult(BaseModel):
    chunks: int
    degraded: int = 0


class QueryResult(BaseModel):
    kind: QueryKind
    answer: str
    top_chunks: list[ScoredCandidate] = Field(default_factory=list)
