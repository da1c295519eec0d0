"""Tests for environment-driven configuration."""

import pytest
from pydantic import ValidationError as PydanticValidationError

from mira.config.settings import Settings
from mira.src.core.errors import ConfigurationError


class TestApiKey:
    def test_gemini_alias_is_accepted(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
        monkeypatch.setenv("GEMINI_API_KEY", "AIza-from-the-gemini-variable-123")

        config = Settings(_env_file=None)

        assert config.require_api_key() == "AIza-from-the-gemini-variable-123"

    @pytest.mark.parametrize("value", [None, "", "   ", "short-key"])
    def test_placeholder_keys_are_not_configured(self, value) -> None:
        config = Settings(_env_file=None, GOOGLE_API_KEY=value)

        assert config.api_key_configured is False
        with pytest.raises(ConfigurationError, match="GEMINI_API_KEY is not configured on the server"):
            config.require_api_key()

    def test_key_is_masked_in_repr(self) -> None:
        config = Settings(_env_file=None, GOOGLE_API_KEY="AIza-this-must-not-leak-0000")

        assert "this-must-not-leak" not in repr(config)


class TestDefaults:
    def test_retrieval_defaults(self) -> None:
        config = Settings(_env_file=None)

        assert config.CHUNK_MAX_CHARS == 800
        assert config.TOP_K == 5
        assert config.GREETING_MAX_WORDS == 5
        assert config.ENFORCE_EMBEDDING_DIM is False
        assert "hi+" in config.GREETING_WORDS


class TestValidators:
    @pytest.mark.parametrize("field", ["CHUNK_MAX_CHARS", "TOP_K", "GREETING_MAX_WORDS"])
    def test_non_positive_values_are_rejected(self, field: str) -> None:
        with pytest.raises(PydanticValidationError):
            Settings(_env_file=None, **{field: 0})

    def test_greeting_words_are_normalised(self) -> None:
        config = Settings(_env_file=None, GREETING_WORDS=["  Hola+ ", "", "Buenos Dias"])

        assert config.GREETING_WORDS == ["hola+", "buenos dias"]

    def test_empty_greeting_vocabulary_is_rejected(self) -> None:
        with pytest.raises(PydanticValidationError):
            Settings(_env_file=None, GREETING_WORDS=["  "])
