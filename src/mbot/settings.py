from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    SecretStr,
    ValidationError,
    field_validator,
    model_validator,
)
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.sources import TomlConfigSettingsSource

from .config import ConfigError, read_config, resolve_config_path

DEFAULT_PREFIX = "m!"
DEFAULT_CANCEL_KEYWORDS = ("cancel", "stop", "quit", "exit")


class GuessSettings(BaseModel):
    model_config = ConfigDict(extra="forbid")

    low: int = 1
    high: int = 100
    max_attempts: int = 7
    timeout_s: float = 15.0
    cancel_keywords: list[str] = Field(
        default_factory=lambda: list(DEFAULT_CANCEL_KEYWORDS)
    )

    @field_validator("max_attempts")
    @classmethod
    def _validate_attempts(cls, value: int) -> int:
        if value < 1:
            raise ValueError("max_attempts must be at least 1")
        return value

    @field_validator("timeout_s")
    @classmethod
    def _validate_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("timeout_s must be positive")
        return value

    @field_validator("cancel_keywords", mode="before")
    @classmethod
    def _normalize_keywords(cls, value: Any) -> Any:
        if not isinstance(value, list):
            raise ValueError("cancel_keywords must be a list of strings")
        cleaned: list[str] = []
        for item in value:
            if not isinstance(item, str) or not item.strip():
                raise ValueError("cancel_keywords must be non-empty strings")
            cleaned.append(item.strip().casefold())
        return cleaned

    @model_validator(mode="after")
    def _validate_range(self) -> GuessSettings:
        if self.low < 0:
            raise ValueError("low must not be negative")
        if self.high < self.low:
            raise ValueError("high must be greater than or equal to low")
        return self


class MbotSettings(BaseSettings):
    model_config = SettingsConfigDict(
        extra="ignore",
        env_prefix="MBOT__",
        env_nested_delimiter="__",
        env_file=".env",
        env_file_encoding="utf-8",
    )

    token: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("token", "MBOT__TOKEN", "TOKEN"),
    )
    prefix: str = DEFAULT_PREFIX
    owners: list[int] = Field(default_factory=list)
    dispatch_during_wait: bool = True
    guess: GuessSettings = Field(default_factory=GuessSettings)

    @field_validator("prefix", mode="before")
    @classmethod
    def _validate_prefix(cls, value: Any) -> Any:
        if not isinstance(value, str):
            raise ValueError("prefix must be a string")
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("prefix must be a non-empty string")
        return cleaned

    @field_validator("owners", mode="before")
    @classmethod
    def _validate_owners(cls, value: Any) -> Any:
        if not isinstance(value, list):
            raise ValueError("owners must be a list of user ids")
        for item in value:
            if isinstance(item, bool) or not isinstance(item, int):
                raise ValueError("owners must contain integer user ids")
        return value

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    @property
    def owner_ids(self) -> frozenset[int]:
        return frozenset(self.owners)


def load_settings(path: str | Path | None = None) -> tuple[MbotSettings, Path]:
    """Load settings from the TOML file (when present) and the environment."""
    cfg_path = resolve_config_path(path)
    if cfg_path.exists():
        if not cfg_path.is_file():
            raise ConfigError(
                f"Config path {cfg_path} exists but is not a file."
            ) from None
        # surfaces malformed TOML as ConfigError before pydantic sees it
        read_config(cfg_path)
    elif path is not None:
        raise ConfigError(f"Missing config file {cfg_path}.") from None
    return _load_settings_from_path(cfg_path), cfg_path


def require_token(settings: MbotSettings, config_path: Path) -> str:
    token = settings.token
    if token is None or not token.get_secret_value().strip():
        raise ConfigError(
            f"Missing bot token; set `token` in {config_path} or the TOKEN "
            "environment variable."
        )
    return token.get_secret_value().strip()


def _load_settings_from_path(cfg_path: Path) -> MbotSettings:
    cfg = dict(MbotSettings.model_config)
    cfg["toml_file"] = cfg_path
    Bound = type(
        "MbotSettingsBound",
        (MbotSettings,),
        {"model_config": SettingsConfigDict(**cfg)},
    )
    try:
        return Bound()
    except ValidationError as exc:
        raise ConfigError(f"Invalid config in {cfg_path}: {exc}") from exc
