"""Pytest configuration and fixtures for telegram-log-sink tests."""

import io
import logging
from collections.abc import Callable, Iterator

import httpx
import pytest

from telegram_log_sink.client import TelegramClient
from telegram_log_sink.factory import DefaultTelegramClientFactory
from telegram_log_sink.selflog import disable_selflog, enable_selflog

TransportHandler = Callable[[httpx.Request], httpx.Response]


class RecordingTransport(httpx.MockTransport):
    """MockTransport that keeps every request it receives.

    The response is produced by ``respond`` (200 ``{"ok": true}`` by default)
    and can be swapped per test.
    """

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.respond: TransportHandler = lambda request: httpx.Response(
            200, json={"ok": True, "result": {"message_id": 1}}
        )
        super().__init__(self._handle)

    def _handle(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)


class ProxyRecordingFactory(DefaultTelegramClientFactory):
    """Factory remembering the proxy each client was requested with.

    Clients are built without the proxy so requests still reach the
    recording transport.
    """

    def __init__(self, transport: httpx.AsyncBaseTransport) -> None:
        super().__init__(transport=transport)
        self.proxies: list[object] = []

    def create_client(  # type: ignore[no-untyped-def]
        self, token, timeout=10.0, proxy=None
    ) -> TelegramClient:
        self.proxies.append(proxy)
        return super().create_client(token, timeout)


@pytest.fixture
def transport() -> RecordingTransport:
    """Recording transport answering 200 OK."""
    return RecordingTransport()


@pytest.fixture
def selflog_stream() -> Iterator[io.StringIO]:
    """Capture the diagnostic channel into a string buffer."""
    stream = io.StringIO()
    enable_selflog(stream)
    yield stream
    disable_selflog()


def make_record(
    level: int = logging.INFO,
    msg: str = "hi",
    args: tuple[object, ...] | None = None,
    exc_info: object = None,
    name: str = "test",
) -> logging.LogRecord:
    """Build a LogRecord without going through a logger."""
    return logging.LogRecord(name, level, __file__, 1, msg, args, exc_info)  # type: ignore[arg-type]
