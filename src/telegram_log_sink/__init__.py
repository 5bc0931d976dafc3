"""telegram-log-sink - logging handler delivering records to Telegram."""

from importlib.metadata import version

from telegram_log_sink.client import (
    DEFAULT_API_URL,
    DEFAULT_TIMEOUT,
    DeliveryOutcome,
    TelegramClient,
)
from telegram_log_sink.config import TelegramSinkConfig, load_config
from telegram_log_sink.exceptions import ConfigError, TelegramSinkError
from telegram_log_sink.factory import DefaultTelegramClientFactory, TelegramClientFactory
from telegram_log_sink.markup import MarkdownCheck, find_markdown_violations, validate_markup
from telegram_log_sink.message import ParseMode, TelegramMessage
from telegram_log_sink.rendering import VERBOSE, MessageRenderer, level_glyph, render_message
from telegram_log_sink.selflog import disable_selflog, enable_selflog
from telegram_log_sink.sink import TelegramHandler, add_telegram_handler

try:
    __version__ = version("telegram-log-sink")
except Exception:
    __version__ = "0.0.0-dev"

__all__ = [
    # Message model
    "ParseMode",
    "TelegramMessage",
    # Markup validation
    "MarkdownCheck",
    "find_markdown_violations",
    "validate_markup",
    # Rendering
    "VERBOSE",
    "MessageRenderer",
    "level_glyph",
    "render_message",
    # Delivery
    "DEFAULT_API_URL",
    "DEFAULT_TIMEOUT",
    "DeliveryOutcome",
    "TelegramClient",
    "DefaultTelegramClientFactory",
    "TelegramClientFactory",
    # Handler
    "TelegramHandler",
    "add_telegram_handler",
    # Configuration
    "TelegramSinkConfig",
    "load_config",
    # Diagnostics
    "disable_selflog",
    "enable_selflog",
    # Exceptions
    "ConfigError",
    "TelegramSinkError",
]
