"""Telegram message model.

A ``TelegramMessage`` is the rendered text of one log record together with the
markup mode Telegram should use to parse it. Messages are frozen so they can
be handed to the delivery thread without copying.

Example:
    >>> from telegram_log_sink.message import ParseMode, TelegramMessage
    >>> TelegramMessage(text="*done*").parse_mode
    <ParseMode.MARKDOWN: 'markdown'>
    >>> TelegramMessage(text="<b>done</b>", parse_mode=ParseMode.HTML).parse_mode.value
    'html'

"""

from enum import StrEnum

from pydantic import BaseModel, ConfigDict


class ParseMode(StrEnum):
    """Markup syntax Telegram is asked to parse in the message body.

    The value is sent as the ``parse_mode`` field, except for PLAIN which is
    expressed by leaving the field out of the payload.
    """

    PLAIN = "plain"
    MARKDOWN = "markdown"
    HTML = "html"


class TelegramMessage(BaseModel):
    """Rendered message ready for delivery.

    Attributes:
        text: Message body.
        parse_mode: Markup mode, Markdown unless stated otherwise.

    """

    model_config = ConfigDict(frozen=True)

    text: str
    parse_mode: ParseMode = ParseMode.MARKDOWN

    def __str__(self) -> str:
        return self.text
