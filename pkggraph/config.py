"""Runtime configuration for the pkggraph command line.

Priority (highest first):
  1. Keyword overrides, i.e. CLI flags passed by click
  2. ``PKGGRAPH_*`` environment variables
  3. A ``.env`` file (``./.env`` unless another path is given)
  4. Field defaults

The graph-building functions never read the environment themselves; the
CLI loads a ``BuildConfig`` and passes its values down explicitly.
"""

from pathlib import Path
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_PREFIX = "PKGGRAPH_"


class ConfigError(ValueError):
    """Invalid configuration value."""

    pass


class BuildConfig(BaseSettings):
    """Settings for a graph build run."""

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
    )

    workers: int | None = Field(
        default=None,
        ge=1,
        description="Worker threads for edge resolution (None = CPU count)",
    )
    parallel_threshold: int = Field(
        default=2000,
        ge=1,
        description="Minimum number of package versions before resolving in parallel",
    )
    log_level: str = Field(default="INFO", description="Logging level name")
    use_cache: bool = Field(default=True, description="Read/write the msgpack graph cache")
    cache_dir: Path | None = Field(
        default=None,
        description="Directory for the graph cache (default: next to the dump)",
    )

    @field_validator("log_level")
    @classmethod
    def _upper_level(cls, value: str) -> str:
        value = value.upper()
        if value not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"unknown log level {value!r}")
        return value


def load_config(dotenv_path: str | Path | None = None, **overrides: Any) -> BuildConfig:
    """Build a BuildConfig from the environment plus explicit overrides.

    Args:
        dotenv_path: .env file to read instead of ``./.env``.
        **overrides: Field values that win over the environment. ``None``
            values are ignored so CLI options can be passed straight through.

    Returns:
        Validated BuildConfig.

    Raises:
        ConfigError: If any value fails validation.
    """
    kwargs = {k: v for k, v in overrides.items() if v is not None}
    if dotenv_path is not None:
        kwargs["_env_file"] = dotenv_path

    try:
        return BuildConfig(**kwargs)
    # ValidationError and pydantic-settings parse errors are both ValueErrors
    except ValueError as e:
        raise ConfigError(str(e)) from e
