"""Client factory used by the logging handler.

The handler never constructs ``TelegramClient`` directly; it asks a factory,
so tests and applications can substitute their own client.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

import httpx

from telegram_log_sink.client import DEFAULT_API_URL, DEFAULT_TIMEOUT, TelegramClient


class TelegramClientFactory(ABC):
    """Abstract factory for delivery clients.

    Returned clients must provide ``async send(message, chat_id)`` returning a
    ``DeliveryOutcome``, ``async aclose()`` and ``mask(text)``.
    """

    @abstractmethod
    def create_client(
        self,
        token: str,
        timeout: float = DEFAULT_TIMEOUT,
        proxy: str | httpx.Proxy | None = None,
    ) -> TelegramClient:
        """Create a configured client.

        Raises:
            ConfigError: If the token or timeout is invalid.

        """
        ...


class DefaultTelegramClientFactory(TelegramClientFactory):
    """Creates ``TelegramClient`` instances for one Bot API server."""

    def __init__(
        self,
        api_url: str = DEFAULT_API_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_url = api_url
        self._transport = transport

    def create_client(
        self,
        token: str,
        timeout: float = DEFAULT_TIMEOUT,
        proxy: str | httpx.Proxy | None = None,
    ) -> TelegramClient:
        return TelegramClient(
            token,
            timeout,
            proxy,
            api_url=self._api_url,
            transport=self._transport,
        )
