"""Exception hierarchy for telegram-log-sink.

Only construction-time problems are raised to callers. Everything that goes
wrong while a record is being emitted is written to the diagnostic channel
instead (see ``telegram_log_sink.selflog``).
"""

from __future__ import annotations


class TelegramSinkError(Exception):
    """Base exception for telegram-log-sink.

    All package specific exceptions inherit from this class.
    """

    pass


class ConfigError(TelegramSinkError):
    """Invalid or missing configuration.

    Raised when:
    - The bot token or chat id is empty
    - The delivery timeout is not positive
    - A configuration file cannot be read, parsed or validated

    Attributes:
        field: Name of the offending setting (if applicable).

    """

    def __init__(self, message: str, field: str | None = None) -> None:
        """Initialize ConfigError with context.

        Args:
            message: Human-readable error message.
            field: Name of the offending setting.

        """
        super().__init__(message)
        self.field = field
