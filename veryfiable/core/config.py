"""veryfiable.core.config

Two config surfaces only:
1) `config/default.yaml` (or `config/user.yaml` when present)
2) Environment variables, prefixed `VERYFIABLE_`, nested with `__`

Environment variables (and `.env`) win over YAML.

Secrets (the signing key, database password) belong in the environment.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource

from veryfiable.core.exceptions import ConfigError

ENV_PREFIX = "VERYFIABLE_"
ENV_NESTED_DELIMITER = "__"


def env_name(section: str, field: str) -> str:
    """Environment variable that feeds ``<section>.<field>``."""

    return f"{ENV_PREFIX}{section}{ENV_NESTED_DELIMITER}{field}".upper()


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


class LoggingConfig(BaseModel):
    level: str = "INFO"
    json_output: bool = False

    @field_validator("level")
    @classmethod
    def level_is_upper(cls, v: str) -> str:
        return v.upper()


class ApiConfig(BaseModel):
    host: str = "0.0.0.0"
    port: int = 3001
    environment: Literal["development", "production", "test"] = "development"
    cors_origins: list[str] = ["*"]


class DatabaseConfig(BaseModel):
    url: str = "postgresql://localhost:5432/veryfiable"
    min_size: int = 1
    max_size: int = 10
    timeout_s: float = 5.0

    @field_validator("max_size")
    @classmethod
    def max_size_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError("database.max_size must be >= 1")
        return v


class EASConfig(BaseModel):
    rpc_url: str = ""
    private_key: str = ""  # env only
    schema_registry_address: str = ""
    schema_uid: str = ""  # Set after `veryfiable register-schema`
    request_timeout_s: float = 30.0
    confirmation_timeout_s: float = 180.0
    poll_interval_s: float = 2.0


class Config(BaseSettings):
    """Root configuration. Built once at process start and passed down."""

    debug: bool = False

    api: ApiConfig = Field(default_factory=ApiConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    eas: EASConfig = Field(default_factory=EASConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {
        "env_prefix": ENV_PREFIX,
        "env_nested_delimiter": ENV_NESTED_DELIMITER,
        "env_file": ".env",
        "extra": "ignore",
    }

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # YAML values arrive as init kwargs; the environment overrides them.
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    @classmethod
    def from_yaml(cls, path: Path) -> Config:
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")

        try:
            raw = yaml.safe_load(path.read_text()) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Config file is not valid YAML: {path}: {e}") from e

        if not isinstance(raw, dict):
            raise ConfigError(f"Config file must contain a mapping: {path}")

        # user.yaml overlays default.yaml when both exist side by side.
        default_path = path.parent / "default.yaml"
        if path.name != "default.yaml" and default_path.exists():
            base = yaml.safe_load(default_path.read_text()) or {}
            raw = _deep_merge(base, raw)

        return cls(**raw)


def load_config(repo_root: Path | None = None) -> Config:
    """`config/user.yaml`, else `config/default.yaml`, else environment only."""

    root = repo_root or Path.cwd()
    user_path = root / "config" / "user.yaml"
    if user_path.exists():
        return Config.from_yaml(user_path)
    default_path = root / "config" / "default.yaml"
    if default_path.exists():
        return Config.from_yaml(default_path)
    return Config()
