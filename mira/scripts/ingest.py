"""
Mira - Command-Line Ingestion
==============================
CLI entry point that:
    1. Validates that ``GEMINI_API_KEY`` is set (fail-fast).
    2. Builds the configured chunk store (``STORE_BACKEND``).
    3. Ingests each file through ``RAGService`` (one request per file).
    4. Optionally asks one question against the freshly populated store.
    5. Prints an execution summary with a timing breakdown.

The in-memory backend only lives for the duration of the process, so
``--ask`` is the way to try it; use ``STORE_BACKEND=lancedb`` or
``mongo`` to keep the chunks.

Usage:
    python -m mira.scripts.ingest notes.txt
    python -m mira.scripts.ingest call.txt --source-type audio --source-name call.m4a
    python -m mira.scripts.ingest notes.txt --ask "what color is the sky"
"""

from __future__ import annotations

import argparse
import asyncio
import sys
import time
from pathlib import Path


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog="mira-ingest", description="Mira: ingest text files into the chunk store.")
    parser.add_argument("files", nargs="+", type=Path, help="UTF-8 text files (document text, OCR output, transcripts).")
    parser.add_argument("--source-type", default="doc", help="Provenance kind stored with every chunk (doc, image, audio).")
    parser.add_argument("--source-name", default=None, help="Provenance label; defaults to each file's name.")
    parser.add_argument("--ask", default=None, help="Ask one question after ingestion and print the answer.")
    return parser.parse_args(argv)


def _read_file(filepath: Path) -> str:
    """Read a text file as UTF-8, falling back to latin-1."""
    try:
        return filepath.read_text(encoding="utf-8")
    except UnicodeDecodeError:
        return filepath.read_text(encoding="latin-1")


async def _run(args: argparse.Namespace) -> int:
    t_start = time.perf_counter()

    # ── 0. Load settings (timed) ───────────────────────────────────────
    t_settings = time.perf_counter()
    try:
        from mira.config.settings import settings
    except Exception as exc:
        print("\n[FATAL] Configuration error, check your .env file:\n")
        print(f"  {exc}")
        print()
        return 1
    settings_ms = (time.perf_counter() - t_settings) * 1000

    from mira.src.core.errors import MiraError, ProviderError
    from mira.src.core.rag_engine import RAGService
    from mira.src.database.chunk_store import build_chunk_store
    from mira.src.utils.logger import get_logger

    logger = get_logger(__name__)

    if not settings.api_key_configured:
        print("\n[FATAL] GEMINI_API_KEY is not configured.\n")
        return 1

    _print_header(settings)

    # ── 1. Build store + service (timed) ───────────────────────────────
    t_store = time.perf_counter()
    service = RAGService(build_chunk_store(settings), config=settings)
    store_ms = (time.perf_counter() - t_store) * 1000
    logger.info("Chunk store ready in %.1fms (%d existing rows).", store_ms, await service.store.count())

    # ── 2. Ingest files ────────────────────────────────────────────────
    total_chunks = 0
    failed = 0
    for filepath in args.files:
        if not filepath.is_file():
            logger.warning("Skipping missing file: %s", filepath)
            failed += 1
            continue
        try:
            result = await service.ingest(_read_file(filepath), args.source_type, args.source_name or filepath.name)
        except ProviderError as exc:
            logger.error("Failed to ingest %s: %s", filepath.name, exc.message)
            failed += 1
            continue
        except MiraError as exc:
            logger.warning("Skipping %s: %s", filepath.name, exc.message)
            failed += 1
            continue
        total_chunks += result.chunks
        logger.info("File '%s' → %d chunk(s) (%d without embedding).", filepath.name, result.chunks, result.degraded)

    # ── 3. Optional question ───────────────────────────────────────────
    if args.ask:
        try:
            answer = await service.answer(args.ask)
        except MiraError as exc:
            logger.error("Question failed: %s", exc.message)
        else:
            print()
            print(f"  Q: {args.ask}")
            print(f"  A: {answer.answer}")
            for rank, candidate in enumerate(answer.top_chunks, 1):
                print(f"     #{rank} {candidate.source_type}:{candidate.source_name} score={candidate.score:.3f}")

    elapsed = time.perf_counter() - t_start
    _print_footer(len(args.files), failed, total_chunks, elapsed, settings_ms, store_ms)
    return 0 if failed == 0 else 2


# ── Pretty-print helpers ──────────────────────────────────────────────

def _print_header(settings: object) -> None:
    api_key_val = settings.require_api_key()  # type: ignore[attr-defined]
    masked = f"****{api_key_val[-4:]}"

    print()
    print("=" * 60)
    print("  MIRA — Text Ingestion")
    print("=" * 60)
    print(f"  Environment  : {settings.ENV}")                 # type: ignore[attr-defined]
    print(f"  Embedding    : {settings.EMBEDDING_MODEL}")     # type: ignore[attr-defined]
    print(f"  Store        : {settings.STORE_BACKEND}")       # type: ignore[attr-defined]
    print(f"  Chunk size   : {settings.CHUNK_MAX_CHARS} chars")  # type: ignore[attr-defined]
    print(f"  API Key      : {masked}")
    print("=" * 60)
    print()


def _print_footer(total_files: int, failed: int, total_chunks: int, elapsed: float, settings_ms: float, store_ms: float) -> None:
    print()
    print("=" * 60)
    print("  EXECUTION SUMMARY")
    print("-" * 60)
    print(f"  Files given          : {total_files}")
    print(f"  Files ingested       : {total_files - failed}")
    print(f"  Files failed/skipped : {failed}")
    print(f"  Total chunks stored  : {total_chunks}")
    print("-" * 60)
    print("  TIMING BREAKDOWN")
    print("-" * 60)
    print(f"  Settings load        : {settings_ms:>8.1f}ms")
    print(f"  Store init           : {store_ms:>8.1f}ms")
    print(f"  Total elapsed        : {elapsed:>8.2f}s")
    print("=" * 60)
    print()


def main(argv: list[str] | None = None) -> None:
    sys.exit(asyncio.run(_run(_parse_args(argv))))


if __name__ == "__main__":
    main()
