"""Tests for Markdown/HTML markup validation.

Tests cover:
- Delimiter balance for *, _ and `
- Triple-backtick fences as a single token
- Backslash-escaped delimiters
- Plain and HTML modes always valid
"""

import pytest

from telegram_log_sink.markup import MarkdownCheck, find_markdown_violations, validate_markup
from telegram_log_sink.message import ParseMode


class TestMarkdownDelimiterBalance:
    """Even delimiter counts are valid, odd counts are not."""

    @pytest.mark.parametrize("delimiter", ["*", "_", "`"])
    def test_even_count_is_valid(self, delimiter: str) -> None:
        text = f"a {delimiter}b{delimiter} c {delimiter}d{delimiter}"
        assert validate_markup(text, ParseMode.MARKDOWN) is True

    @pytest.mark.parametrize("delimiter", ["*", "_", "`"])
    def test_odd_count_is_invalid(self, delimiter: str) -> None:
        text = f"a {delimiter}b{delimiter} c {delimiter}d"
        assert validate_markup(text, ParseMode.MARKDOWN) is False

    def test_text_without_delimiters_is_valid(self) -> None:
        assert validate_markup("❗ disk full\n", ParseMode.MARKDOWN) is True

    def test_empty_text_is_valid(self) -> None:
        assert validate_markup("", ParseMode.MARKDOWN) is True

    def test_checks_are_independent(self) -> None:
        # Balanced asterisks do not make up for an unbalanced underscore
        assert validate_markup("*bold* snake_case", ParseMode.MARKDOWN) is False

    def test_unclosed_bold_reported(self) -> None:
        assert find_markdown_violations("*This is rejected") == [MarkdownCheck.BOLD]

    def test_all_violations_reported_in_check_order(self) -> None:
        assert find_markdown_violations("* _ `") == [
            MarkdownCheck.BOLD,
            MarkdownCheck.ITALIC,
            MarkdownCheck.INLINE_CODE,
        ]


class TestCodeFences:
    """Triple backticks count as one delimiter token."""

    def test_single_open_fence_is_invalid(self) -> None:
        assert validate_markup("```\ncode", ParseMode.MARKDOWN) is False
        assert find_markdown_violations("```\ncode") == [MarkdownCheck.CODE_BLOCK]

    def test_matching_fences_are_valid(self) -> None:
        assert validate_markup("```\ncode\n```", ParseMode.MARKDOWN) is True

    def test_fences_and_inline_code_together(self) -> None:
        assert validate_markup("```block``` and `inline`", ParseMode.MARKDOWN) is True

    def test_stray_backtick_next_to_fences(self) -> None:
        assert find_markdown_violations("```block``` and `") == [MarkdownCheck.INLINE_CODE]


class TestEscapedDelimiters:
    """Backslash-escaped delimiters are not counted."""

    def test_escaped_asterisk_is_ignored(self) -> None:
        assert validate_markup(r"2 \* 3 = 6", ParseMode.MARKDOWN) is True

    def test_escaped_underscore_is_ignored(self) -> None:
        assert validate_markup(r"snake\_case", ParseMode.MARKDOWN) is True


class TestOtherModes:
    """Plain and HTML modes never reject text."""

    @pytest.mark.parametrize("text", ["*", "_", "`", "```", "* _ ` ```"])
    def test_plain_is_always_valid(self, text: str) -> None:
        assert validate_markup(text, ParseMode.PLAIN) is True

    def test_html_is_always_valid(self) -> None:
        assert validate_markup("<b>unclosed *", ParseMode.HTML) is True
