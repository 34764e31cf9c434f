from __future__ import annotations

from pathlib import Path
from typing import Any

import yaml
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Runtime configuration sourced from environment variables."""

    api_base_url: str = "http://localhost:3001"
    request_timeout: float = 10.0
    storage_path: str = "shop_state.db"

    class Config:
        env_file = "config/.env"
        env_file_encoding = "utf-8"
        extra = "ignore"  # Ignore extra fields from .env file


def load_settings() -> Settings:
    """Provide a reusable settings singleton."""

    return Settings()


def load_yaml(path: str | Path) -> dict[str, Any]:
    """Load a YAML mapping from disk.

    Raises FileNotFoundError when the file is missing; an empty file yields {}.
    """

    cfg_path = Path(path)
    if not cfg_path.exists():
        raise FileNotFoundError(f"YAML file not found at {cfg_path}")

    with cfg_path.open("r", encoding="utf-8") as handle:
        data = yaml.safe_load(handle) or {}

    if not isinstance(data, dict):
        raise ValueError(f"{cfg_path} must contain a mapping at the top level.")

    return data


settings = load_settings()
