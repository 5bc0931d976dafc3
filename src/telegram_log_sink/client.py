"""Telegram Bot API delivery client.

``TelegramClient`` owns one pooled ``httpx.AsyncClient`` configured with the
delivery timeout and optional proxy, and posts messages to the bot's
``sendMessage`` endpoint.

Payload shaping: when the message is PLAIN, or its text fails markup
validation, the ``parse_mode`` key is left out entirely. Telegram treats the
presence of the key as a request to parse markup even if its value is empty.

``post()`` propagates transport errors. ``send()`` never raises and reports
the result as a ``DeliveryOutcome``, following the fire-and-forget contract of
notification providers.

Example:
    >>> async with TelegramClient("123:abc") as client:
    ...     outcome = await client.send(TelegramMessage(text="hi"), "-100123")
    ...     outcome.ok
    True

"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from telegram_log_sink.exceptions import ConfigError
from telegram_log_sink.markup import find_markdown_violations, validate_markup
from telegram_log_sink.message import ParseMode, TelegramMessage
from telegram_log_sink.selflog import write_line

DEFAULT_API_URL = "https://api.telegram.org"
DEFAULT_TIMEOUT = 10.0

_MASK = "***"


def mask_token(text: str, token: str) -> str:
    """Replace every occurrence of the bot token in text."""
    if not token:
        return text
    return text.replace(token, _MASK)


@dataclass(frozen=True)
class DeliveryOutcome:
    """Result of one delivery attempt.

    Attributes:
        status_code: HTTP status of the response, None if no response arrived.
        error: Exception raised while sending, None if a response arrived.
        description: Telegram's ``description`` field for rejected requests.

    """

    status_code: int | None = None
    error: BaseException | None = None
    description: str | None = None

    @property
    def ok(self) -> bool:
        """True if Telegram answered with a 2xx status."""
        return self.error is None and self.status_code is not None and 200 <= self.status_code < 300


class TelegramClient:
    """Async client for the Bot API ``sendMessage`` call.

    Transport configuration is fixed at construction and the underlying
    connection pool is reused for every send until ``aclose()``.
    """

    def __init__(
        self,
        token: str,
        timeout: float = DEFAULT_TIMEOUT,
        proxy: str | httpx.Proxy | None = None,
        *,
        api_url: str = DEFAULT_API_URL,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            token: Bot token issued by BotFather.
            timeout: Request timeout in seconds.
            proxy: Optional outbound proxy URL.
            api_url: Base URL of the Bot API server.
            transport: Custom httpx transport (mainly for tests).

        Raises:
            ConfigError: If the token is empty or the timeout is not positive.

        """
        if not token or not token.strip():
            raise ConfigError("Bot token can't be empty", field="token")
        if timeout <= 0:
            raise ConfigError(f"Timeout must be positive, got {timeout}", field="timeout")

        self._token = token
        self._timeout = timeout
        self._endpoint = f"{api_url.rstrip('/')}/bot{token}/sendMessage"
        self._http = httpx.AsyncClient(timeout=timeout, proxy=proxy, transport=transport)

    def __repr__(self) -> str:
        return f"TelegramClient(endpoint={self.mask(self._endpoint)!r}, timeout={self._timeout})"

    @property
    def endpoint(self) -> str:
        """Full ``sendMessage`` URL, including the token."""
        return self._endpoint

    @property
    def timeout(self) -> float:
        return self._timeout

    def mask(self, text: str) -> str:
        """Hide this client's token in text meant for diagnostics."""
        return mask_token(text, self._token)

    def build_payload(self, message: TelegramMessage, chat_id: str) -> dict[str, Any]:
        """Build the JSON body for a message.

        Args:
            message: Message to deliver.
            chat_id: Destination chat or channel.

        Returns:
            ``{chat_id, text}`` for plain or invalid markup text, otherwise
            ``{chat_id, text, parse_mode}``.

        """
        payload: dict[str, Any] = {"chat_id": chat_id, "text": message.text}

        if message.parse_mode == ParseMode.PLAIN:
            return payload

        if not validate_markup(message.text, message.parse_mode):
            violations = [check.value for check in find_markdown_violations(message.text)]
            write_line(
                "text for %s is not valid %s (unbalanced: %s), sending as plain text",
                chat_id,
                message.parse_mode.value,
                ", ".join(violations) or "unknown",
                level=logging.DEBUG,
            )
            return payload

        payload["parse_mode"] = message.parse_mode.value
        return payload

    async def post(self, message: TelegramMessage, chat_id: str) -> httpx.Response:
        """POST a message to Telegram.

        Raises:
            httpx.HTTPError: On timeout or connection failure.

        """
        body = json.dumps(self.build_payload(message, chat_id), ensure_ascii=False)
        return await self._http.post(
            self._endpoint,
            content=body.encode("utf-8"),
            headers={"Content-Type": "application/json; charset=utf-8"},
        )

    async def send(self, message: TelegramMessage, chat_id: str) -> DeliveryOutcome:
        """Deliver a message. Never raises.

        Args:
            message: Message to deliver.
            chat_id: Destination chat or channel.

        Returns:
            DeliveryOutcome with the status code, or with the error that
            prevented a response.

        """
        try:
            response = await self.post(message, chat_id)
        except Exception as e:
            return DeliveryOutcome(error=e)

        description = None
        if not response.is_success:
            description = _error_description(response)

        return DeliveryOutcome(status_code=response.status_code, description=description)

    async def aclose(self) -> None:
        """Close the connection pool."""
        await self._http.aclose()

    async def __aenter__(self) -> TelegramClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()


def _error_description(response: httpx.Response) -> str | None:
    try:
        data = response.json()
    except ValueError:
        return response.text[:200] or None
    if isinstance(data, dict) and data.get("description"):
        return str(data["description"])
    return None
