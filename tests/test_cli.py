"""Tests for the telegram-log-sink CLI."""

import json

import pytest
from typer.testing import CliRunner

from conftest import ProxyRecordingFactory, RecordingTransport
from telegram_log_sink import sink
from telegram_log_sink.cli import EXIT_CONFIG_ERROR, EXIT_ERROR, EXIT_SUCCESS, app
from telegram_log_sink.factory import DefaultTelegramClientFactory

runner = CliRunner()


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in (
        "TELEGRAM_BOT_TOKEN",
        "TELEGRAM_CHAT_ID",
        "TELEGRAM_LOG_LEVEL",
        "TELEGRAM_TIMEOUT",
        "TELEGRAM_PROXY",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def mocked_factory(monkeypatch: pytest.MonkeyPatch, transport: RecordingTransport) -> None:
    """Route handlers built from config through the recording transport."""

    def factory(api_url: str = "https://api.telegram.org") -> DefaultTelegramClientFactory:
        return DefaultTelegramClientFactory(api_url=api_url, transport=transport)

    monkeypatch.setattr(sink, "DefaultTelegramClientFactory", factory)


class TestCheckCommand:
    """check command."""

    def test_valid_markdown(self) -> None:
        result = runner.invoke(app, ["check", "*bold* text"])
        assert result.exit_code == EXIT_SUCCESS
        assert "valid" in result.output

    def test_invalid_markdown(self) -> None:
        result = runner.invoke(app, ["check", "*bold"])
        assert result.exit_code == EXIT_ERROR
        assert "bold" in result.output
        assert "plain text" in result.output

    def test_plain_mode(self) -> None:
        result = runner.invoke(app, ["check", "*bold", "--mode", "plain"])
        assert result.exit_code == EXIT_SUCCESS


class TestSendCommand:
    """send command."""

    def test_missing_credentials(self, clean_env: None) -> None:
        result = runner.invoke(app, ["send", "hello"])
        assert result.exit_code == EXIT_CONFIG_ERROR

    def test_unknown_level(self, clean_env: None) -> None:
        result = runner.invoke(app, ["send", "hello", "--level", "LOUD"])
        assert result.exit_code == EXIT_CONFIG_ERROR

    def test_send_with_options(
        self, clean_env: None, mocked_factory: None, transport: RecordingTransport
    ) -> None:
        result = runner.invoke(app, ["send", "hello", "--token", "T", "--chat-id", "C1"])

        assert result.exit_code == EXIT_SUCCESS
        assert len(transport.requests) == 1
        assert json.loads(transport.requests[0].content) == {
            "chat_id": "C1",
            "text": "ℹ hello\n",
            "parse_mode": "markdown",
        }


    def test_send_passes_proxy(
        self,
        clean_env: None,
        monkeypatch: pytest.MonkeyPatch,
        transport: RecordingTransport,
    ) -> None:
        recording = ProxyRecordingFactory(transport)
        monkeypatch.setattr(sink, "DefaultTelegramClientFactory", lambda **kwargs: recording)

        result = runner.invoke(
            app,
            ["send", "hello", "--token", "T", "--chat-id", "C1"]
            + ["--proxy", "http://proxy.local:3128"],
        )

        assert result.exit_code == EXIT_SUCCESS
        assert recording.proxies == ["http://proxy.local:3128"]
        assert len(transport.requests) == 1

    def test_send_from_environment(
        self,
        clean_env: None,
        mocked_factory: None,
        transport: RecordingTransport,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "T")
        monkeypatch.setenv("TELEGRAM_CHAT_ID", "C7")

        result = runner.invoke(app, ["send", "node down", "--level", "critical"])

        assert result.exit_code == EXIT_SUCCESS
        assert json.loads(transport.requests[0].content)["text"] == "‼ node down\n"

    def test_send_from_config_file(
        self,
        clean_env: None,
        mocked_factory: None,
        transport: RecordingTransport,
        tmp_path,
    ) -> None:
        path = tmp_path / "telegram.yaml"
        path.write_text("telegram:\n  token: T\n  chat_id: C3\n  level: ERROR\n", encoding="utf-8")

        result = runner.invoke(app, ["send", "hello", "--config", str(path)])

        # The CLI sends regardless of the configured handler level
        assert result.exit_code == EXIT_SUCCESS
        assert json.loads(transport.requests[0].content)["chat_id"] == "C3"
