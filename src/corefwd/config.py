"""Application settings and logging setup."""

import logging
from pathlib import Path
from typing import Any

import yaml
from pydantic_settings import BaseSettings, SettingsConfigDict
from rich.logging import RichHandler

DEFAULT_CONFIG_PATH = "config.yaml"


class Settings(BaseSettings):
    """Settings read from an optional YAML file, overridden by COREFWD_* env vars."""

    model_config = SettingsConfigDict(env_prefix="COREFWD_", extra="ignore")

    # Server
    host: str = "0.0.0.0"
    port: int = 8080

    # Storage
    data_dir: str = "./data"

    # Remote calls
    request_timeout: float = 10.0
    probe_timeout: float = 5.0
    serialize_writes: bool = False

    log_level: str = "info"

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        # File values arrive as init kwargs; the environment wins over them
        return env_settings, init_settings, dotenv_settings, file_secret_settings


def load_settings(path: str | Path | None = None, **overrides: Any) -> Settings:
    """
    Load settings from a YAML file. A missing file yields the defaults.

    Keyword overrides (e.g. from CLI flags) take precedence over everything.
    """
    data: dict[str, Any] = {}
    config_path = Path(path or DEFAULT_CONFIG_PATH)

    if config_path.exists():
        loaded = yaml.safe_load(config_path.read_text())
        if loaded:
            if not isinstance(loaded, dict):
                raise ValueError(f"Config file {config_path} must contain a mapping")
            data.update(loaded)

    settings = Settings(**data)
    updates = {k: v for k, v in overrides.items() if v is not None}
    if updates:
        settings = settings.model_copy(update=updates)
    return settings


def configure_logging(level: str = "info") -> None:
    """Route log records through rich."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )
