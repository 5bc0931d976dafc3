"""Markup validation for Telegram parse modes.

Telegram rejects a ``sendMessage`` request with HTTP 400 when the text cannot
be parsed under the requested ``parse_mode``, instead of falling back to
literal text. The checks here catch the common cause of that (unbalanced
Markdown delimiters) so the client can send such text as plain text.

This is a heuristic, not a Markdown parser:
- Each delimiter kind is counted independently over the whole text.
- A delimiter preceded by a backslash is escaped and not counted.
- Triple-backtick fences are counted as one token and removed before single
  backticks are counted.
- Nesting, link and mention syntax are not modelled.

HTML validation is a placeholder that accepts everything; the conditions under
which Telegram rejects HTML bodies are not modelled.

Example:
    >>> validate_markup("*bold* and _italic_", ParseMode.MARKDOWN)
    True
    >>> validate_markup("*unclosed", ParseMode.MARKDOWN)
    False
    >>> find_markdown_violations("```open fence")
    [<MarkdownCheck.CODE_BLOCK: 'code_block'>]

"""

import re
from enum import StrEnum

from telegram_log_sink.message import ParseMode

__all__ = [
    "MarkdownCheck",
    "find_markdown_violations",
    "validate_markup",
]


class MarkdownCheck(StrEnum):
    """Independent delimiter balance checks applied to Markdown text."""

    BOLD = "bold"  # *
    ITALIC = "italic"  # _
    INLINE_CODE = "inline_code"  # `
    CODE_BLOCK = "code_block"  # ```


_FENCE_RE = re.compile(r"(?<!\\)```")

_SINGLE_DELIMITERS: tuple[tuple[MarkdownCheck, re.Pattern[str]], ...] = (
    (MarkdownCheck.BOLD, re.compile(r"(?<!\\)\*")),
    (MarkdownCheck.ITALIC, re.compile(r"(?<!\\)_")),
)

_BACKTICK_RE = re.compile(r"(?<!\\)`")


def _is_odd(pattern: re.Pattern[str], text: str) -> bool:
    return len(pattern.findall(text)) % 2 == 1


def find_markdown_violations(text: str) -> list[MarkdownCheck]:
    """Return the Markdown checks that the text fails.

    Args:
        text: Raw message text.

    Returns:
        Failed checks in check order; an empty list means the text is valid.

    """
    violations = [check for check, pattern in _SINGLE_DELIMITERS if _is_odd(pattern, text)]

    without_fences = _FENCE_RE.sub("", text)
    if _is_odd(_BACKTICK_RE, without_fences):
        violations.append(MarkdownCheck.INLINE_CODE)

    if _is_odd(_FENCE_RE, text):
        violations.append(MarkdownCheck.CODE_BLOCK)

    return violations


def _validate_markdown(text: str) -> bool:
    return not find_markdown_violations(text)


def _validate_html(text: str) -> bool:
    # Telegram's HTML rejection rules are not modelled yet.
    return True


def validate_markup(text: str, parse_mode: ParseMode) -> bool:
    """Report whether Telegram would accept the text under the parse mode.

    Args:
        text: Raw message text.
        parse_mode: Markup mode the text is meant to be parsed with.

    Returns:
        True if the text can be sent with this parse mode, False if it
        should be downgraded to plain text.

    """
    if parse_mode == ParseMode.MARKDOWN:
        return _validate_markdown(text)
    if parse_mode == ParseMode.HTML:
        return _validate_html(text)
    return True
