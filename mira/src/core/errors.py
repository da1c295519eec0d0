"""
Mira - Error Taxonomy
======================
Every failure the pipelines can report to a caller.  The HTTP layer maps
each class to a status code; nothing else in the codebase inspects
provider exceptions directly.

``ValidationError``     client-caused, 400, message shown verbatim.
``ConfigurationError``  missing credential, 500, raised before any provider call.
``ProviderError``       embedding / generation / storage failure, 500.  The
                        message is for logs only; callers get a generic text.
"""

from __future__ import annotations


class MiraError(Exception):
    """Base class for all errors raised by the Mira core."""

    status_code: int = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(MiraError):
    """A required request field is missing or blank."""

    status_code = 400


class ConfigurationError(MiraError):
    """A required external credential or capability is absent."""

    status_code = 500


class ProviderError(MiraError):
    """An external call (Gemini or the chunk store) failed or returned malformed data."""

    status_code = 500


class DimensionMismatchError(ProviderError):
    """Stored embeddings and the query embedding disagree on dimensionality."""
