"""Logging handler that delivers records to Telegram.

``TelegramHandler`` is the entry point plugged into ``logging``. For each
record it:

1. Builds a message, either from the handler's formatter as plain text or
   through the configured renderer (which may return None to drop it).
2. Sends it through a client obtained once from the client factory, on a
   private event loop thread, and blocks until the send has finished so
   delivery order follows call order.
3. Writes the attempt and its outcome to the diagnostic channel.

Nothing raised while emitting reaches the caller; a logging failure must not
interrupt the application being logged.

Example:
    >>> import logging
    >>> handler = add_telegram_handler(token="123:abc", chat_id="-100123", level=logging.ERROR)
    >>> logging.getLogger("app").error("disk full")

"""

from __future__ import annotations

import asyncio
import logging
import threading
from collections.abc import Coroutine
from typing import Any, Self, TypeVar

import httpx

from telegram_log_sink.client import DEFAULT_TIMEOUT, DeliveryOutcome, TelegramClient, mask_token
from telegram_log_sink.config import TelegramSinkConfig
from telegram_log_sink.exceptions import ConfigError
from telegram_log_sink.factory import DefaultTelegramClientFactory, TelegramClientFactory
from telegram_log_sink.message import ParseMode, TelegramMessage
from telegram_log_sink.rendering import MessageRenderer
from telegram_log_sink.rendering import render_message as default_render_message
from telegram_log_sink.selflog import write_line

__all__ = ["TelegramHandler", "add_telegram_handler"]

T = TypeVar("T")

# Set on every delivery loop thread, whichever handler owns it
_delivery_thread = threading.local()


def _on_delivery_thread() -> bool:
    return getattr(_delivery_thread, "active", False)


class _DeliveryLoop:
    """Event loop running on a daemon thread.

    Coroutines are submitted from logging threads and awaited there with a
    blocking wait.
    """

    def __init__(self, name: str) -> None:
        self._loop = asyncio.new_event_loop()
        self._thread = threading.Thread(target=self._run, name=name, daemon=True)
        self._thread.start()

    def _run(self) -> None:
        _delivery_thread.active = True
        asyncio.set_event_loop(self._loop)
        self._loop.run_forever()

    def run(self, coro: Coroutine[Any, Any, T]) -> T:
        return asyncio.run_coroutine_threadsafe(coro, self._loop).result()

    def stop(self) -> None:
        self._loop.call_soon_threadsafe(self._loop.stop)
        self._thread.join()
        self._loop.close()


class TelegramHandler(logging.Handler):
    """Logging handler sending each record as a Telegram message.

    The handler level is the minimum severity filter. Setting a formatter
    switches to plain-text messages built from ``self.format(record)`` and
    bypasses the renderer.
    """

    def __init__(
        self,
        token: str,
        chat_id: str,
        render_message: MessageRenderer | None = None,
        level: int | str = logging.NOTSET,
        formatter: logging.Formatter | None = None,
        client_factory: TelegramClientFactory | None = None,
        proxy: str | httpx.Proxy | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        """Initialize the handler.

        Args:
            token: Bot token.
            chat_id: Destination chat or channel id.
            render_message: Replacement renderer; None uses the default one.
            level: Minimum level handled.
            formatter: Format override producing plain-text messages.
            client_factory: Factory for delivery clients.
            proxy: Optional outbound proxy URL.
            timeout: Request timeout in seconds.

        Raises:
            ConfigError: If token or chat id is blank or timeout is not positive.

        """
        if not token or not str(token).strip():
            raise ConfigError("Bot token can't be empty", field="token")
        if chat_id is None or not str(chat_id).strip():
            raise ConfigError("Chat id can't be empty", field="chat_id")
        if timeout <= 0:
            raise ConfigError(f"Timeout must be positive, got {timeout}", field="timeout")

        super().__init__(level)
        if formatter is not None:
            self.setFormatter(formatter)

        self._token = token
        self._chat_id = str(chat_id)
        self._render_message: MessageRenderer = render_message or default_render_message
        self._client_factory = client_factory or DefaultTelegramClientFactory()
        self._proxy = proxy
        self._timeout = timeout

        self._client: TelegramClient | None = None
        self._loop: _DeliveryLoop | None = None
        self._local = threading.local()

        self.addFilter(self._accept_record)

    @classmethod
    def from_config(cls, config: TelegramSinkConfig, **overrides: Any) -> Self:
        """Create a handler from a validated config.

        Args:
            config: Handler settings.
            **overrides: Extra constructor arguments (renderer, formatter,
                client_factory, ...), applied on top of the config.

        """
        kwargs: dict[str, Any] = {
            "token": config.token.get_secret_value(),
            "chat_id": config.chat_id,
            "level": config.level,
            "proxy": config.proxy,
            "timeout": config.timeout,
        }
        if "client_factory" not in overrides:
            kwargs["client_factory"] = DefaultTelegramClientFactory(api_url=config.api_url)
        kwargs.update(overrides)
        return cls(**kwargs)

    @property
    def chat_id(self) -> str:
        return self._chat_id

    def _accept_record(self, record: logging.LogRecord) -> bool:
        # Runs before the handler lock is taken. Drops records logged on any
        # handler's delivery thread and records logged re-entrantly while
        # this handler is emitting.
        if _on_delivery_thread():
            return False
        return not getattr(self._local, "emitting", False)

    def build_message(self, record: logging.LogRecord) -> TelegramMessage | None:
        """Turn a record into a message, or None if it should be dropped."""
        if self.formatter is not None:
            return TelegramMessage(text=self.format(record), parse_mode=ParseMode.PLAIN)
        return self._render_message(record)

    def emit(self, record: logging.LogRecord) -> None:
        self._local.emitting = True
        try:
            message = self.build_message(record)
            if message is None:
                return
            self._deliver(message)
        except Exception as e:
            write_line(
                "failed to deliver record to %s: %s",
                self._chat_id,
                mask_token(repr(e), self._token),
                level=logging.ERROR,
            )
        finally:
            self._local.emitting = False

    def _deliver(self, message: TelegramMessage) -> None:
        write_line("attempting delivery to %s: %s", self._chat_id, message.text)

        client = self._get_client()
        outcome: DeliveryOutcome = self._get_loop().run(client.send(message, self._chat_id))

        if outcome.error is not None:
            write_line(
                "delivery to %s failed: %s",
                self._chat_id,
                mask_token(repr(outcome.error), self._token),
                level=logging.WARNING,
            )
            return

        write_line("delivered to %s: %s", self._chat_id, outcome.status_code)
        if not outcome.ok:
            write_line(
                "rejected by Telegram for %s: %s",
                self._chat_id,
                outcome.description or "no description",
                level=logging.WARNING,
            )

    def _get_client(self) -> TelegramClient:
        if self._client is None:
            self._client = self._client_factory.create_client(
                self._token, self._timeout, self._proxy
            )
        return self._client

    def _get_loop(self) -> _DeliveryLoop:
        if self._loop is None:
            self._loop = _DeliveryLoop(name=f"telegram-log-sink-{self._chat_id}")
        return self._loop

    def close(self) -> None:
        """Close the delivery client and stop the delivery thread."""
        with self.lock:
            loop, client = self._loop, self._client
            self._loop = None
            self._client = None
            if loop is not None:
                if client is not None:
                    try:
                        loop.run(client.aclose())
                    except Exception as e:
                        write_line("failed to close client: %s", e, level=logging.WARNING)
                loop.stop()
        super().close()


def add_telegram_handler(
    token: str,
    chat_id: str,
    logger: logging.Logger | None = None,
    **kwargs: Any,
) -> TelegramHandler:
    """Create a TelegramHandler and attach it to a logger.

    Args:
        token: Bot token.
        chat_id: Destination chat or channel id.
        logger: Logger to attach to, the root logger by default.
        **kwargs: Further TelegramHandler arguments (level, render_message,
            formatter, client_factory, proxy, timeout).

    Returns:
        The attached handler.

    Raises:
        ConfigError: If the handler configuration is invalid.

    """
    handler = TelegramHandler(token, chat_id, **kwargs)
    (logger or logging.getLogger()).addHandler(handler)
    return handler
