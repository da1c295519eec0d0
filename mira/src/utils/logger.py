"""
Mira - Logging
===============
Pre-configured logger factory for consistent, readable log output
across all Mira modules.

Level resolution (first match wins):
  • explicit ``level`` argument
  • ``settings.LOG_LEVEL`` (e.g. ``"INFO"``)
  • ``settings.ENV``: ``"dev"`` → DEBUG, ``"prod"`` → WARNING

Every handler carries a redaction filter: provider exceptions can echo
request URLs, so the Gemini key is masked before a record is emitted.

Usage:
    from mira.src.utils.logger import get_logger
    logger = get_logger(__name__)
    logger.info("Something happened")
"""

import logging
import sys

from mira.config.settings import settings

_ENV_LEVEL_MAP = {
    "dev": logging.DEBUG,
    "prod": logging.WARNING,
}

_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _default_level() -> int:
    if settings.LOG_LEVEL:
        return logging.getLevelName(settings.LOG_LEVEL.upper())
    return _ENV_LEVEL_MAP.get(settings.ENV, logging.INFO)


class SecretRedactionFilter(logging.Filter):
    """
    Replace the configured Gemini key with ``****<last 4>`` in log output.

    Covers the message, the traceback of ``logger.exception`` calls, and
    ``stack_info``.  The traceback is rendered here (into ``exc_text``) so
    the handler's formatter emits the masked copy instead of re-rendering it.
    """

    _traceback_formatter = logging.Formatter()

    def filter(self, record: logging.LogRecord) -> bool:
        if settings.GOOGLE_API_KEY is None:
            return True
        secret = settings.GOOGLE_API_KEY.get_secret_value().strip()
        if len(secret) < 8:
            return True
        masked = f"****{secret[-4:]}"

        message = record.getMessage()
        if secret in message:
            record.msg = message.replace(secret, masked)
            record.args = None

        if record.exc_info and not record.exc_text:
            record.exc_text = self._traceback_formatter.formatException(record.exc_info)
        if record.exc_text and secret in record.exc_text:
            record.exc_text = record.exc_text.replace(secret, masked)
        if record.stack_info and secret in record.stack_info:
            record.stack_info = record.stack_info.replace(secret, masked)
        return True


def get_logger(name: str, level: int | None = None) -> logging.Logger:
    """
    Create and return a named logger with a standardised formatter.

    Args:
        name:  Typically ``__name__`` of the calling module.
        level: Explicit logging level override.

    Returns:
        A configured ``logging.Logger`` instance.
    """
    resolved_level = level if level is not None else _default_level()
    logger = logging.getLogger(name)

    if not logger.handlers:
        logger.setLevel(resolved_level)

        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(resolved_level)
        console_handler.setFormatter(logging.Formatter(fmt=_FORMAT, datefmt=_DATEFMT))
        console_handler.addFilter(SecretRedactionFilter())
        logger.addHandler(console_handler)

        # Keep records out of the root logger (avoids duplicates under uvicorn)
        logger.propagate = False

    return logger
