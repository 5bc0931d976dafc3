"""Configuration model and loaders for the Telegram handler.

Settings can come from keyword arguments, a YAML file or environment
variables. All sources end up in a frozen ``TelegramSinkConfig`` which
rejects empty credentials at construction time.

YAML layout (either under a ``telegram:`` key or at the top level)::

    telegram:
      token: ${TELEGRAM_BOT_TOKEN}
      chat_id: "-100123456"
      level: ERROR
      timeout: 5
      proxy: http://proxy.local:3128

``${VAR}`` references are replaced from the environment before validation.

Usage:
    config = load_config("logging.yaml")
    handler = TelegramHandler.from_config(config)
"""

from __future__ import annotations

import logging
import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Self

import yaml
from pydantic import BaseModel, ConfigDict, Field, SecretStr, ValidationError, field_validator

from telegram_log_sink.client import DEFAULT_API_URL, DEFAULT_TIMEOUT
from telegram_log_sink.exceptions import ConfigError

logger = logging.getLogger(__name__)

# Config files are small; anything larger is almost certainly the wrong file
MAX_CONFIG_SIZE = 64 * 1024

ENV_TOKEN = "TELEGRAM_BOT_TOKEN"
ENV_CHAT_ID = "TELEGRAM_CHAT_ID"
ENV_LEVEL = "TELEGRAM_LOG_LEVEL"
ENV_TIMEOUT = "TELEGRAM_TIMEOUT"
ENV_PROXY = "TELEGRAM_PROXY"

_ENV_REF_RE = re.compile(r"\$\{([A-Za-z_][A-Za-z0-9_]*)\}")


class TelegramSinkConfig(BaseModel):
    """Settings for a TelegramHandler.

    Attributes:
        token: Bot token (kept out of reprs).
        chat_id: Destination chat or channel id.
        level: Minimum level handled, as a number or level name.
        timeout: Request timeout in seconds.
        proxy: Optional outbound proxy URL.
        api_url: Base URL of the Bot API server.

    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    token: SecretStr
    chat_id: str
    level: int | str = logging.NOTSET
    timeout: float = Field(default=DEFAULT_TIMEOUT, gt=0)
    proxy: str | None = None
    api_url: str = DEFAULT_API_URL

    @field_validator("token", mode="after")
    @classmethod
    def validate_token(cls, v: SecretStr) -> SecretStr:
        """Reject empty or whitespace-only tokens."""
        if not v.get_secret_value().strip():
            raise ValueError("token must not be empty")
        return v

    @field_validator("chat_id", mode="before")
    @classmethod
    def validate_chat_id(cls, v: Any) -> Any:
        """Accept numeric chat ids and reject empty ones."""
        if isinstance(v, int) and not isinstance(v, bool):
            v = str(v)
        if isinstance(v, str) and not v.strip():
            raise ValueError("chat_id must not be empty")
        return v

    @field_validator("level", mode="after")
    @classmethod
    def validate_level(cls, v: int | str) -> int | str:
        """Normalize level names and reject unknown ones."""
        if isinstance(v, int):
            return v
        name = v.strip().upper()
        if name.isdigit():
            return int(name)
        if not isinstance(logging.getLevelName(name), int):
            raise ValueError(f"unknown log level: {v!r}")
        return name

    @classmethod
    def from_mapping(cls, data: dict[str, Any]) -> Self:
        """Validate a raw mapping, raising ConfigError instead of ValidationError."""
        try:
            return cls.model_validate(data)
        except ValidationError as e:
            raise ConfigError(f"Invalid Telegram sink configuration: {e}") from e

    @classmethod
    def from_env(cls, environ: Mapping[str, str] | None = None) -> Self:
        """Build a config from TELEGRAM_* environment variables.

        Args:
            environ: Mapping to read instead of os.environ.

        Raises:
            ConfigError: If the token or chat id is missing or invalid.

        """
        env = os.environ if environ is None else environ

        data: dict[str, Any] = {
            "token": env.get(ENV_TOKEN, ""),
            "chat_id": env.get(ENV_CHAT_ID, ""),
        }
        if env.get(ENV_LEVEL):
            data["level"] = env[ENV_LEVEL]
        if env.get(ENV_TIMEOUT):
            data["timeout"] = env[ENV_TIMEOUT]
        if env.get(ENV_PROXY):
            data["proxy"] = env[ENV_PROXY]

        return cls.from_mapping(data)


def _substitute_env(value: Any, environ: Mapping[str, str]) -> Any:
    """Replace ${VAR} references in string values, recursively."""
    if isinstance(value, str):

        def replace(match: re.Match[str]) -> str:
            name = match.group(1)
            if name not in environ:
                raise ConfigError(f"Environment variable {name} is not set", field=name)
            return environ[name]

        return _ENV_REF_RE.sub(replace, value)
    if isinstance(value, dict):
        return {k: _substitute_env(v, environ) for k, v in value.items()}
    if isinstance(value, list):
        return [_substitute_env(v, environ) for v in value]
    return value


def load_config(path: str | Path, environ: Mapping[str, str] | None = None) -> TelegramSinkConfig:
    """Load handler settings from a YAML file.

    Args:
        path: YAML file path.
        environ: Mapping used for ${VAR} substitution (os.environ by default).

    Returns:
        Validated configuration.

    Raises:
        ConfigError: If the file is missing, too large, not valid YAML, or
            fails validation.

    """
    path = Path(path)
    try:
        size = path.stat().st_size
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    if size > MAX_CONFIG_SIZE:
        raise ConfigError(f"Config file {path} exceeds {MAX_CONFIG_SIZE} bytes")

    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax in {path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(
            f"Config root must be a mapping, got {type(data).__name__}"
        )

    section = data.get("telegram", data)
    if not isinstance(section, dict):
        raise ConfigError(f"'telegram' must be a mapping, got {type(section).__name__}")

    section = _substitute_env(section, os.environ if environ is None else environ)
    logger.debug("Loaded Telegram sink config from %s", path)
    return TelegramSinkConfig.from_mapping(section)
