"""Typed configuration — single source of truth for all pathselector settings.

Loading priority (highest to lowest):
  1. Explicit init kwargs (programmatic overrides, tests)
  2. Environment variables: PATHSELECTOR_<SECTION>__<KEY>  (double-underscore separator)
  3. Config file: PATHSELECTOR_CONFIG_FILE env var, or conf/settings.toml at project root
  4. Model field defaults

Example env overrides:
  PATHSELECTOR_SOURCE__ROOT_PATH=/data/landing
  PATHSELECTOR_SOURCE__IGNORE_PREFIXES='[".", "_", "~"]'
  PATHSELECTOR_BATCH__SOURCE_LIMIT=536870912
  PATHSELECTOR_LOGGING__LEVEL=DEBUG
"""

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

# Derive project root from this file's location: src/pathselector/config.py → ../../..
_PROJECT_ROOT = Path(__file__).parent.parent.parent
_DEFAULT_CONFIG = _PROJECT_ROOT / "conf" / "settings.toml"


def _config_file() -> Path:
    """Resolve the config file path.

    Returns PATHSELECTOR_CONFIG_FILE if set (raises FileNotFoundError if
    missing), otherwise returns the bundled default at conf/settings.toml.
    """
    if env_val := os.environ.get("PATHSELECTOR_CONFIG_FILE"):
        p = Path(env_val)
        if not p.is_file():
            raise FileNotFoundError(f"PATHSELECTOR_CONFIG_FILE not found: {p}")
        return p
    return _DEFAULT_CONFIG


# ---------------------------------------------------------------------------
# Section models — each maps to a [section] in conf/settings.toml
# ---------------------------------------------------------------------------


class SourceSettings(BaseModel):
    """Where to look for new files and which entries to skip."""

    # Plain path or file:// URI; the scheme selects the filesystem handle.
    root_path: str = "."
    # Entry names starting with any of these are skipped at every depth.
    ignore_prefixes: list[str] = [".", "_"]
    # Threads used to list sibling directories; 1 walks sequentially.
    max_workers: int = 1

    @field_validator("ignore_prefixes")
    @classmethod
    def _no_empty_prefixes(cls, v: list[str]) -> list[str]:
        if any(not p for p in v):
            raise ValueError("ignore_prefixes must not contain empty strings")
        return v

    @field_validator("max_workers")
    @classmethod
    def _positive_workers(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"max_workers must be >= 1, got {v}")
        return v


class BatchSettings(BaseModel):
    """Default byte budget for one selection."""

    # Exclusive upper bound on the cumulative size of a batch.
    source_limit: int = 1024 * 1024 * 1024

    @field_validator("source_limit")
    @classmethod
    def _positive_limit(cls, v: int) -> int:
        if v <= 0:
            raise ValueError(f"source_limit must be positive, got {v}")
        return v


class LoggingSettings(BaseModel):
    """Logging verbosity and output format."""

    level: str = "INFO"
    format: Literal["json", "text"] = "json"

    @field_validator("level", mode="before")
    @classmethod
    def _normalise_level(cls, v: str) -> str:
        valid = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        if v.upper() not in valid:
            raise ValueError(f"level must be one of {sorted(valid)}, got {v!r}")
        return v.upper()


# ---------------------------------------------------------------------------
# Root settings class
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    """All pathselector runtime settings, fully resolved and validated."""

    source: SourceSettings = SourceSettings()
    batch: BatchSettings = BatchSettings()
    logging: LoggingSettings = LoggingSettings()

    model_config = SettingsConfigDict(
        env_prefix="PATHSELECTOR_",
        env_nested_delimiter="__",  # PATHSELECTOR_SOURCE__ROOT_PATH → source.root_path
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # TOML + env only; no dotenv or secrets directory.
        return (
            init_settings,
            env_settings,
            TomlConfigSettingsSource(settings_cls, toml_file=_config_file()),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide Settings instance (loaded once, cached thereafter).

    Tests should call ``get_settings.cache_clear()`` before each test that
    patches environment variables or the config file.
    """
    return Settings()
