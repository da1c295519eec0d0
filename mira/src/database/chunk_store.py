"""
Mira - Chunk Stores
====================
Append-only persistence for ``ChunkRecord`` objects behind one async
interface:

    insert_many(chunks) -> list[ChunkRecord]   # assigns id + created_at
    list_all()          -> list[ChunkRecord]   # insertion order
    count()             -> int

Backends
--------
``InMemoryChunkStore``
    Process-local list with an auto-incrementing id.  Single instance
    only: every worker process sees its own store.
``LanceDBChunkStore``
    Local on-disk LanceDB table with a strict PyArrow schema.  The DB
    connection is cached per path to avoid file-lock contention.
``MongoChunkStore``
    Shared MongoDB collection via ``motor``; use this when several API
    instances must see the same chunks.

The core never updates or deletes a record.  ``list_all`` is a
snapshot: a query ranks against whatever the store returns at read time.
"""

from __future__ import annotations

import asyncio
import threading
import uuid
from datetime import datetime, timezone
from typing import Protocol, runtime_checkable

import lancedb
import motor.motor_asyncio
import pyarrow as pa

from mira.config.settings import Settings, settings
from mira.src.core.errors import ConfigurationError
from mira.src.core.models import ChunkRecord, NewChunk
from mira.src.utils.logger import get_logger

logger = get_logger(__name__)

# ── Type Aliases ──────────────────────────────────────────────────────
ChunkRow = dict[str, str | int | datetime | list[float]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _embedding_or_empty(value: object) -> list[float]:
    """Stored embeddings that are not a list read back as ``[]``."""
    if isinstance(value, (list, tuple)):
        return [float(x) for x in value]
    return []


# ══════════════════════════════════════════════════════════════════════
#  STORE PROTOCOL
# ══════════════════════════════════════════════════════════════════════


@runtime_checkable
class ChunkStore(Protocol):
    """Structural type for every chunk-store backend."""

    async def insert_many(self, chunks: list[NewChunk]) -> list[ChunkRecord]: ...

    async def list_all(self) -> list[ChunkRecord]: ...

    async def count(self) -> int: ...


# ══════════════════════════════════════════════════════════════════════
#  IN-MEMORY
# ══════════════════════════════════════════════════════════════════════


class InMemoryChunkStore:
    """
    Lock-guarded in-process store.

    Ids are ``"1"``, ``"2"``, … in insertion order.  All records of one
    batch share a timestamp that never goes backwards, even if the wall
    clock does.
    """

    __slots__ = ("_records", "_next_id", "_last_created_at", "_lock")

    def __init__(self) -> None:
        self._records: list[ChunkRecord] = []
        self._next_id = 1
        self._last_created_at: datetime | None = None
        self._lock = threading.Lock()


    async def insert_many(self, chunks: list[NewChunk]) -> list[ChunkRecord]:
        with self._lock:
            now = _utcnow()
            if self._last_created_at is not None and now < self._last_created_at:
                now = self._last_created_at
            self._last_created_at = now

            created: list[ChunkRecord] = []
            for chunk in chunks:
                created.append(ChunkRecord(id=str(self._next_id), created_at=now, **chunk.model_dump()))
                self._next_id += 1
            self._records.extend(created)

        logger.debug("[STORE] Inserted %d record(s) in memory (total=%d).", len(created), len(self._records))
        return created


    async def list_all(self) -> list[ChunkRecord]:
        with self._lock:
            return list(self._records)


    async def count(self) -> int:
        with self._lock:
            return len(self._records)


    def __repr__(self) -> str:
        return f"InMemoryChunkStore(rows={len(self._records)})"


# ══════════════════════════════════════════════════════════════════════
#  LANCEDB
# ══════════════════════════════════════════════════════════════════════

CHUNK_SCHEMA = pa.schema([
    pa.field("id", pa.utf8()),
    pa.field("seq", pa.int64()),
    pa.field("text", pa.utf8()),
    pa.field("embedding", pa.list_(pa.float64())),
    pa.field("source_type", pa.utf8()),
    pa.field("source_name", pa.utf8()),
    pa.field("created_at", pa.timestamp("us", tz="UTC")),
])

_DB_LOCK = threading.Lock()
_db_connection_cache: dict[str, lancedb.DBConnection] = {}


def _get_connection(db_path: str) -> lancedb.DBConnection:
    """Return a **singleton** ``lancedb.DBConnection`` for *db_path*."""
    if db_path not in _db_connection_cache:
        with _DB_LOCK:
            if db_path not in _db_connection_cache:
                logger.info("Opening new LanceDB connection: %s", db_path)
                _db_connection_cache[db_path] = lancedb.connect(db_path)
    return _db_connection_cache[db_path]


class LanceDBChunkStore:
    """
    On-disk chunk table.

    LanceDB is used purely as durable columnar storage: ranking stays an
    exact scan in ``SimilarityRanker``, so no vector index is built and
    variable-length (including empty) embeddings are accepted.

    Parameters
    ----------
    db_path
        Override the database directory.  Defaults to ``settings.LANCEDB_PATH``.
    table_name
        Override the table name.  Defaults to ``settings.LANCEDB_TABLE_NAME``.
    """

    __slots__ = ("_db_path", "_table_name", "db", "table", "_write_lock")

    def __init__(self, db_path: str | None = None, table_name: str | None = None) -> None:
        self._db_path: str = str(db_path or settings.LANCEDB_PATH)
        self._table_name: str = table_name or settings.LANCEDB_TABLE_NAME
        self.db: lancedb.DBConnection | None = None
        self.table: lancedb.table.Table | None = None
        self._write_lock = threading.Lock()
        self._connect()


    def _connect(self) -> None:
        """Open (or re-use) the LanceDB connection and initialise the table."""
        try:
            self.db = _get_connection(self._db_path)
            if self._table_name in self.db.table_names():
                self.table = self.db.open_table(self._table_name)
                logger.info("Opened existing table '%s' (%d rows).", self._table_name, self.table.count_rows())
            else:
                self.table = self.db.create_table(self._table_name, schema=CHUNK_SCHEMA)
                logger.info("Created new table '%s'.", self._table_name)
        except OSError as exc:
            logger.error("LanceDB filesystem error at %s: %s", self._db_path, exc)
            raise


    def _require_table(self) -> lancedb.table.Table:
        if self.table is None:
            raise RuntimeError("Chunk table is not initialised. Call _connect() first.")
        return self.table


    def _insert_sync(self, chunks: list[NewChunk]) -> list[ChunkRecord]:
        table = self._require_table()

        with self._write_lock:
            now = _utcnow()
            start_seq = table.count_rows()
            rows: list[ChunkRow] = [
                {"id": uuid.uuid4().hex, "seq": start_seq + i, "text": c.text, "embedding": list(c.embedding), "source_type": c.source_type, "source_name": c.source_name, "created_at": now}
                for i, c in enumerate(chunks)
            ]
            table.add(rows)

        logger.info("[STORE] Added %d chunk(s). Table '%s' now has %d rows.", len(rows), self._table_name, table.count_rows())
        return [self._row_to_record(row) for row in rows]


    def _list_sync(self) -> list[ChunkRecord]:
        rows = self._require_table().to_arrow().to_pylist()
        rows.sort(key=lambda r: (r["created_at"], r["seq"]))
        return [self._row_to_record(row) for row in rows]


    @staticmethod
    def _row_to_record(row: dict) -> ChunkRecord:
        return ChunkRecord(id=row["id"], text=row["text"], embedding=_embedding_or_empty(row.get("embedding")), source_type=row["source_type"], source_name=row["source_name"], created_at=row["created_at"])


    async def insert_many(self, chunks: list[NewChunk]) -> list[ChunkRecord]:
        if not chunks:
            return []
        return await asyncio.to_thread(self._insert_sync, chunks)


    async def list_all(self) -> list[ChunkRecord]:
        return await asyncio.to_thread(self._list_sync)


    async def count(self) -> int:
        return await asyncio.to_thread(self._require_table().count_rows)


    def __repr__(self) -> str:
        return f"LanceDBChunkStore(db='{self._db_path}', table='{self._table_name}')"


# ══════════════════════════════════════════════════════════════════════
#  MONGODB
# ══════════════════════════════════════════════════════════════════════


class MongoChunkStore:
    """
    Shared chunk collection backed by MongoDB via ``motor``.

    Collection schema (``rag_chunks``)::

        {
            "_id": ObjectId,
            "text": str,
            "embedding": [float, ...],
            "source_type": str,
            "source_name": str,
            "created_at": datetime
        }

    One ``insert_many`` per ingestion call.  Records are listed by
    ``created_at`` then ``_id`` (ObjectIds from one client are
    monotonic), which keeps ingestion order for tie-breaking.
    """

    __slots__ = ("_collection",)

    def __init__(self, collection: motor.motor_asyncio.AsyncIOMotorCollection) -> None:
        self._collection = collection


    @classmethod
    def from_settings(cls, config: Settings) -> MongoChunkStore:
        if config.MONGO_URI is None:
            raise ConfigurationError("MONGO_URI is required when STORE_BACKEND is 'mongo'")
        client = motor.motor_asyncio.AsyncIOMotorClient(config.MONGO_URI.get_secret_value())
        logger.info("MongoDB async client created (db=%s, collection=%s).", config.MONGO_DB_NAME, config.MONGO_COLLECTION)
        return cls(client[config.MONGO_DB_NAME][config.MONGO_COLLECTION])


    async def insert_many(self, chunks: list[NewChunk]) -> list[ChunkRecord]:
        if not chunks:
            return []

        now = _utcnow()
        docs = [{"text": c.text, "embedding": list(c.embedding), "source_type": c.source_type, "source_name": c.source_name, "created_at": now} for c in chunks]
        result = await self._collection.insert_many(docs, ordered=True)

        logger.info("[STORE] Inserted %d chunk(s) into MongoDB.", len(result.inserted_ids))
        return [
            ChunkRecord(id=str(oid), text=c.text, embedding=list(c.embedding), source_type=c.source_type, source_name=c.source_name, created_at=now)
            for oid, c in zip(result.inserted_ids, chunks)
        ]


    async def list_all(self) -> list[ChunkRecord]:
        cursor = self._collection.find({}).sort([("created_at", 1), ("_id", 1)])
        docs = await cursor.to_list(length=None)
        return [
            ChunkRecord(id=str(doc["_id"]), text=doc.get("text", ""), embedding=_embedding_or_empty(doc.get("embedding")), source_type=doc.get("source_type", "doc"), source_name=doc.get("source_name", "unknown"), created_at=doc.get("created_at") or _utcnow())
            for doc in docs
        ]


    async def count(self) -> int:
        return await self._collection.count_documents({})


# ══════════════════════════════════════════════════════════════════════
#  FACTORY
# ══════════════════════════════════════════════════════════════════════


def build_chunk_store(config: Settings | None = None) -> ChunkStore:
    """Instantiate the backend selected by ``STORE_BACKEND``."""
    config = config or settings
    backend = config.STORE_BACKEND

    if backend == "lancedb":
        store: ChunkStore = LanceDBChunkStore(db_path=str(config.LANCEDB_PATH), table_name=config.LANCEDB_TABLE_NAME)
    elif backend == "mongo":
        store = MongoChunkStore.from_settings(config)
    else:
        store = InMemoryChunkStore()

    logger.info("Chunk store backend: %s", backend)
    return store
