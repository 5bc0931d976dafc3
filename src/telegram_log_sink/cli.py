"""Command line interface for telegram-log-sink.

Commands:
    check: Report whether text would be accepted under a parse mode.
    send: Emit one log record through a TelegramHandler.
"""

import logging

import typer
from rich.console import Console

from telegram_log_sink.config import TelegramSinkConfig, load_config
from telegram_log_sink.exceptions import ConfigError
from telegram_log_sink.markup import find_markdown_violations, validate_markup
from telegram_log_sink.message import ParseMode
from telegram_log_sink.selflog import disable_selflog, enable_selflog
from telegram_log_sink.sink import TelegramHandler

EXIT_SUCCESS = 0
EXIT_ERROR = 1
EXIT_CONFIG_ERROR = 2

app = typer.Typer(
    name="telegram-log-sink",
    help="Deliver log records to Telegram",
    no_args_is_help=True,
)
console = Console()
err_console = Console(stderr=True)


def _error(message: str) -> None:
    err_console.print(f"[red]Error:[/red] {message}")


def _resolve_config(config: str, token: str, chat_id: str) -> TelegramSinkConfig:
    """Pick the config source: explicit credentials, then file, then environment."""
    if token or chat_id:
        return TelegramSinkConfig.from_mapping({"token": token, "chat_id": chat_id})
    if config:
        return load_config(config)
    return TelegramSinkConfig.from_env()


@app.command("check")
def check_command(
    text: str = typer.Argument(..., help="Message text to validate"),
    mode: ParseMode = typer.Option(
        ParseMode.MARKDOWN,
        "--mode",
        "-m",
        help="Parse mode the text is meant for",
        case_sensitive=False,
    ),
) -> None:
    """Check whether Telegram would accept the text under a parse mode."""
    if validate_markup(text, mode):
        console.print(f"[green]valid[/green] {mode.value}")
        raise typer.Exit(code=EXIT_SUCCESS)

    console.print(f"[yellow]invalid[/yellow] {mode.value}, would be sent as plain text")
    for check in find_markdown_violations(text):
        console.print(f"  unbalanced: {check.value}")
    raise typer.Exit(code=EXIT_ERROR)


@app.command("send")
def send_command(
    message: str = typer.Argument(..., help="Log message to send"),
    config: str = typer.Option(
        "",
        "--config",
        "-c",
        help="YAML config file (otherwise TELEGRAM_* environment variables)",
    ),
    token: str = typer.Option("", "--token", help="Bot token"),
    chat_id: str = typer.Option("", "--chat-id", help="Destination chat id"),
    level: str = typer.Option("INFO", "--level", "-l", help="Level of the emitted record"),
    timeout: float = typer.Option(
        0.0,
        "--timeout",
        help="Request timeout in seconds (0 keeps the configured value)",
    ),
    proxy: str = typer.Option("", "--proxy", help="Outbound proxy URL"),
) -> None:
    """Send one log record to Telegram, printing diagnostics to stderr."""
    levelno = logging.getLevelName(level.upper())
    if not isinstance(levelno, int):
        _error(f"Unknown level: {level}")
        raise typer.Exit(code=EXIT_CONFIG_ERROR)

    overrides: dict[str, object] = {"level": logging.NOTSET}
    if timeout:
        overrides["timeout"] = timeout
    if proxy:
        overrides["proxy"] = proxy

    try:
        sink_config = _resolve_config(config, token, chat_id)
        handler = TelegramHandler.from_config(sink_config, **overrides)
    except ConfigError as e:
        _error(str(e))
        raise typer.Exit(code=EXIT_CONFIG_ERROR) from None

    record = logging.LogRecord("telegram_log_sink.cli", levelno, __file__, 0, message, None, None)

    enable_selflog()
    try:
        handler.handle(record)
    finally:
        handler.close()
        disable_selflog()

    console.print(f"[green]Emitted[/green] {level.upper()} record to {sink_config.chat_id}")
