"""
Mira - Centralized Configuration
=================================
Uses ``pydantic-settings`` (``BaseSettings``) to load *all* configuration
from environment variables and the project-level ``.env`` file.

Security
--------
- ``GOOGLE_API_KEY`` (also accepted as ``GEMINI_API_KEY``) is typed as
  ``SecretStr``.  It is optional at startup so the HTTP layer can answer
  every request with a clear configuration error instead of refusing to
  boot.  Call ``settings.require_api_key()`` right before any Gemini call.
- ``MONGO_URI`` is also ``SecretStr`` since connection strings contain
  credentials and must never leak into logs.

Paths
-----
All filesystem paths are ``Path.resolve()``-d at class level so they
work identically on Windows, WSL, and Linux.
"""

from __future__ import annotations

from pathlib import Path
from typing import Literal

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mira.src.core.errors import ConfigurationError

# Keys shorter than this are treated as placeholders, never sent to Gemini.
_MIN_API_KEY_LENGTH = 20


class Settings(BaseSettings):
    """
    Application-wide settings.

    Every field is loaded from environment variables (or ``.env``).

    Attributes
    ----------
    GOOGLE_API_KEY : SecretStr | None
        API key for Google AI Studio (Gemini).  Access the raw value with
        ``settings.require_api_key()``.
    ENV : Literal["dev", "prod"]
        Environment mode controlling logging verbosity.
    LOG_LEVEL : str | None
        Explicit log level; overrides the level derived from ``ENV``.
    EMBEDDING_MODEL : str
        Model identifier passed to ``GoogleGenerativeAIEmbeddings``.
    LLM_MODEL : str
        Model identifier for the answer-generation LLM.
    CHUNK_MAX_CHARS : int
        Maximum characters per stored chunk.
    TOP_K : int
        Number of chunks handed to the LLM as context.
    GREETING_WORDS : list[str]
        Openers that route a short message to the greeting branch.  A
        trailing ``+`` lets the final letter repeat (``"hi+"`` matches
        ``"hiii"``); multi-word entries match on any whitespace run.
    GREETING_MAX_WORDS : int
        Messages longer than this are never treated as greetings.
    ENFORCE_EMBEDDING_DIM : bool
        Reject a query when stored vectors and the query vector disagree
        on dimensionality instead of scoring over the shared prefix.
    STORE_BACKEND : Literal["memory", "lancedb", "mongo"]
        Which ``ChunkStore`` implementation backs the service.
    """

    # ── Resolved Absolute Paths ────────────────────────────────────────
    BASE_DIR: Path = Path(__file__).resolve().parent.parent
    LANCEDB_PATH: Path = BASE_DIR / "data" / "lancedb"

    # ── Environment Mode ───────────────────────────────────────────────
    ENV: Literal["dev", "prod"] = "dev"
    LOG_LEVEL: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] | None = None

    # ── API Keys ───────────────────────────────────────────────────────
    GOOGLE_API_KEY: SecretStr | None = Field(default=None, validation_alias=AliasChoices("GOOGLE_API_KEY", "GEMINI_API_KEY"))

    # ── Model Configuration ────────────────────────────────────────────
    EMBEDDING_MODEL: str = "models/text-embedding-004"
    LLM_MODEL: str = "gemini-2.0-flash"
    LLM_TEMPERATURE: float = 0.3

    # ── Retrieval Parameters ───────────────────────────────────────────
    CHUNK_MAX_CHARS: int = 800
    TOP_K: int = 5
    ENFORCE_EMBEDDING_DIM: bool = False

    # ── Greeting Classifier ────────────────────────────────────────────
    GREETING_WORDS: list[str] = ["hi+", "hello+", "hey+", "yo+", "sup", "good morning", "good evening", "good afternoon", "good night"]
    GREETING_MAX_WORDS: int = 5

    # ── Chunk Store ────────────────────────────────────────────────────
    STORE_BACKEND: Literal["memory", "lancedb", "mongo"] = "memory"
    LANCEDB_TABLE_NAME: str = "rag_chunks"
    MONGO_URI: SecretStr | None = None
    MONGO_DB_NAME: str = "mira"
    MONGO_COLLECTION: str = "rag_chunks"

    # ── HTTP ───────────────────────────────────────────────────────────
    CORS_ORIGINS: list[str] = ["*"]

    # ── Validators ─────────────────────────────────────────────────────

    @field_validator("CHUNK_MAX_CHARS", "TOP_K", "GREETING_MAX_WORDS")
    @classmethod
    def _positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"value must be ≥ 1, got {v}")
        return v


    @field_validator("GREETING_WORDS")
    @classmethod
    def _normalise_greetings(cls, v: list[str]) -> list[str]:
        words = [w.strip().lower() for w in v if w.strip()]
        if not words:
            raise ValueError("GREETING_WORDS must contain at least one entry")
        return words

    # ── Helpers ────────────────────────────────────────────────────────

    @property
    def api_key_configured(self) -> bool:
        """True when a plausible Gemini key is present."""
        if self.GOOGLE_API_KEY is None:
            return False
        return len(self.GOOGLE_API_KEY.get_secret_value().strip()) >= _MIN_API_KEY_LENGTH


    def require_api_key(self) -> str:
        """Return the raw Gemini key or raise ``ConfigurationError``."""
        if not self.api_key_configured:
            raise ConfigurationError("GEMINI_API_KEY is not configured on the server")
        return self.GOOGLE_API_KEY.get_secret_value().strip()  # type: ignore[union-attr]

    # ── Pydantic Settings Configuration ────────────────────────────────
    model_config = SettingsConfigDict(env_file=Path(__file__).resolve().parent.parent.parent / ".env", env_file_encoding="utf-8", extra="ignore", populate_by_name=True)


# ── Singleton Instance ─────────────────────────────────────────────────
# Import this throughout the project:
#     from mira.config.settings import settings
settings = Settings()
