"""Rendering of log records into Telegram messages.

The default renderer prefixes the record's message with a glyph for its level
and, when the record carries an exception, appends a Markdown block with the
exception message, type name and traceback.

Any callable matching ``MessageRenderer`` can replace it. Returning None from
a renderer drops the record without a delivery attempt, which is how
sampling, deduplication or content filters are plugged in.

Example:
    >>> import logging
    >>> record = logging.LogRecord("app", logging.ERROR, __file__, 1, "disk full", None, None)
    >>> render_message(record).text
    '❗ disk full\\n'

"""

from __future__ import annotations

import logging
import traceback
from typing import Protocol

from telegram_log_sink.message import TelegramMessage

__all__ = [
    "LEVEL_GLYPHS",
    "VERBOSE",
    "MessageRenderer",
    "format_exception_block",
    "level_glyph",
    "render_message",
]

# Level below DEBUG for very chatty diagnostics; not registered with logging.
VERBOSE = 5

LEVEL_GLYPHS: dict[int, str] = {
    VERBOSE: "⚡",
    logging.DEBUG: "👉",
    logging.INFO: "ℹ",
    logging.WARNING: "⚠",
    logging.ERROR: "❗",
    logging.CRITICAL: "‼",
}


class MessageRenderer(Protocol):
    """Callable turning a log record into a message, or None to drop it."""

    def __call__(self, record: logging.LogRecord) -> TelegramMessage | None: ...


def level_glyph(levelno: int) -> str:
    """Return the glyph for an exact level number, or "" for custom levels."""
    return LEVEL_GLYPHS.get(levelno, "")


def _record_exception(record: logging.LogRecord) -> BaseException | None:
    if not record.exc_info:
        return None
    if isinstance(record.exc_info, BaseException):
        return record.exc_info
    return record.exc_info[1]


def format_exception_block(exc: BaseException) -> str:
    """Format an exception as the Markdown block appended to rendered messages.

    Args:
        exc: Exception attached to the log record.

    Returns:
        Block with the message in bold, the message and type name as inline
        code and the full traceback as a fenced code block.

    """
    detail = "".join(traceback.format_exception(exc)).rstrip("\n")
    return (
        f"\n*{exc}*\n\n"
        f"Message: `{exc}`\n"
        f"Type: `{type(exc).__name__}`\n\n"
        f"Stack Trace\n```{detail}```\n"
    )


def render_message(record: logging.LogRecord) -> TelegramMessage:
    """Render a log record with the default layout.

    The first line is ``"<glyph> <message>"``. For levels without a glyph the
    line starts with the message itself.

    Args:
        record: Log record to render.

    Returns:
        Markdown message for the record.

    """
    glyph = level_glyph(record.levelno)
    message = record.getMessage()
    text = f"{glyph} {message}\n" if glyph else f"{message}\n"

    exc = _record_exception(record)
    if exc is not None:
        text += format_exception_block(exc)

    return TelegramMessage(text=text)
