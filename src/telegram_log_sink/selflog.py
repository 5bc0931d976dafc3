"""Diagnostic channel for the handler's own operational messages.

Delivery attempts, response codes and delivery failures are written to a
dedicated logger that does not propagate, so they never flow back into the
application's handlers (including a TelegramHandler on the root logger).
The channel is silent until ``enable_selflog()`` is called.

Example:
    >>> from telegram_log_sink import enable_selflog
    >>> handler = enable_selflog()  # writes to stderr
    >>> disable_selflog()

"""

from __future__ import annotations

import logging
import sys
from typing import TextIO

SELFLOG_NAME = "telegram_log_sink.selflog"
SELFLOG_FORMAT = "%(asctime)s telegram-log-sink: %(message)s"

selflog = logging.getLogger(SELFLOG_NAME)
selflog.propagate = False
selflog.setLevel(logging.DEBUG)
selflog.addHandler(logging.NullHandler())

_handler: logging.Handler | None = None


def enable_selflog(stream: TextIO | None = None) -> logging.Handler:
    """Start writing diagnostic lines to a stream.

    Replaces the stream enabled by a previous call.

    Args:
        stream: Target stream, stderr by default.

    Returns:
        The handler attached to the diagnostic logger.

    """
    global _handler

    disable_selflog()
    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(logging.Formatter(SELFLOG_FORMAT))
    selflog.addHandler(handler)
    _handler = handler
    return handler


def disable_selflog() -> None:
    """Stop writing diagnostic lines."""
    global _handler

    if _handler is not None:
        selflog.removeHandler(_handler)
        _handler = None


def write_line(msg: str, *args: object, level: int = logging.INFO) -> None:
    """Write one diagnostic line (%-style formatting)."""
    selflog.log(level, msg, *args)
