"""Configuration loader: .env, optional YAML with env-var interpolation, Pydantic validation."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any
from urllib.parse import urlsplit, urlunsplit

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_RECEIVER_URL = "http://localhost:3000/api/receiver/image"


class ConfigError(Exception):
    """Raised when required configuration is missing or invalid."""


class DiscordConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    token: str = ""

    @field_validator("token", mode="before")
    @classmethod
    def _blank_token(cls, value: Any) -> Any:
        return "" if value is None else value


class ReceiverConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    url: str = DEFAULT_RECEIVER_URL
    token: str = ""
    image_path: str = "/api/receiver/image"
    status_path: str = "/api/discord/register"
    oauth_path: str = "/api/auth/oauth/initiate"

    @field_validator("url", mode="before")
    @classmethod
    def _default_url(cls, value: Any) -> Any:
        return DEFAULT_RECEIVER_URL if value is None else value

    @field_validator("token", mode="before")
    @classmethod
    def _blank_token(cls, value: Any) -> Any:
        return "" if value is None else value

    @property
    def status_url(self) -> str:
        """Registration-check endpoint on the receiver's host."""
        return _swap_path(self.url, self.image_path, self.status_path)

    @property
    def oauth_initiate_url(self) -> str:
        return _swap_path(self.url, self.image_path, self.oauth_path)


class AppConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    log_level: str = "INFO"
    log_json: bool = False
    discord: DiscordConfig = Field(default_factory=DiscordConfig)
    receiver: ReceiverConfig = Field(default_factory=ReceiverConfig)
    allowed_channels: tuple[str, ...] = ()

    @field_validator("allowed_channels", mode="before")
    @classmethod
    def _split_channels(cls, value: Any) -> Any:
        if value is None:
            return ()
        if isinstance(value, (str, int)):
            value = str(value).split(",")
        if isinstance(value, (list, tuple)):
            return tuple(s for s in (str(v).strip() for v in value) if s)
        return value

    def check_required(self) -> None:
        """Fail fast if any value needed to start the bot is absent."""
        if not self.discord.token:
            raise ConfigError("Missing DISCORD_BOT_TOKEN in configuration")
        if not self.receiver.token:
            raise ConfigError("Missing IMAGE_RECEIVER_TOKEN in configuration")
        if not self.receiver.url:
            raise ConfigError("Missing RECEIVER_URL in configuration")

    def is_channel_allowed(self, channel_id: str) -> bool:
        return not self.allowed_channels or channel_id in self.allowed_channels


def _swap_path(url: str, image_path: str, path: str) -> str:
    """Replace the image endpoint suffix with path, keeping any base path in front of it."""
    parts = urlsplit(url)
    base = parts.path
    if image_path and base.endswith(image_path):
        base = base[: -len(image_path)]
    else:
        base = ""
    return urlunsplit((parts.scheme, parts.netloc, base.rstrip("/") + path, "", ""))


_ENV_VAR_PATTERN = re.compile(r"\$\{(\w+)\}")


def _interpolate_env_vars(text: str) -> str:
    """Replace ${VAR_NAME} patterns with environment variable values (empty if unset)."""

    def _replace(match: re.Match) -> str:
        return os.environ.get(match.group(1), "")

    return _ENV_VAR_PATTERN.sub(_replace, text)


def _from_environment() -> dict[str, Any]:
    return {
        "log_level": os.environ.get("LOG_LEVEL", "INFO"),
        "log_json": os.environ.get("LOG_JSON", "").lower() in ("1", "true", "yes"),
        "discord": {"token": os.environ.get("DISCORD_BOT_TOKEN", "")},
        "receiver": {
            "url": os.environ.get("RECEIVER_URL") or DEFAULT_RECEIVER_URL,
            "token": os.environ.get("IMAGE_RECEIVER_TOKEN", ""),
        },
        "allowed_channels": os.environ.get("ALLOWED_CHANNELS", ""),
    }


def load_config(config_path: str | Path = "config.yaml", env_path: str | Path = ".env") -> AppConfig:
    """Load configuration from a YAML file if present, else from the environment.

    Raises ConfigError if the file cannot be parsed or the values fail validation.
    Presence of required values is checked separately by AppConfig.check_required().
    """
    env_file = Path(env_path)
    if env_file.exists():
        load_dotenv(env_file)

    config_file = Path(config_path)
    if config_file.exists():
        raw_text = config_file.read_text(encoding="utf-8")
        try:
            data = yaml.safe_load(_interpolate_env_vars(raw_text)) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Invalid YAML in {config_file}: {e}") from e
    else:
        data = _from_environment()

    try:
        return AppConfig(**data)
    except (TypeError, ValueError) as e:
        raise ConfigError(str(e)) from e
