from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

ENV_PATH = Path(".env")
CONFIG_PATH = Path("crates-io-utils.yaml")

DEFAULT_BASE_URL = "https://crates.io/api"
DEFAULT_USER_AGENT = "crates-io-utils (maintenance scripts)"
DEFAULT_LOG_LEVEL = "WARNING"


@dataclass(frozen=True)
class Settings:
    base_url: str = DEFAULT_BASE_URL
    user_agent: str = DEFAULT_USER_AGENT
    log_level: str = DEFAULT_LOG_LEVEL
    log_file: Path | None = None


def validate_base_url(value: Any) -> str:
    """Return the API root without a trailing slash; it must be an http(s) URL."""
    url = str(value).strip()
    if not url.startswith(("http://", "https://")):
        raise ValueError(f"base url must be http(s): {url!r}")
    return url.rstrip("/")


def load_settings(env_path: Path | None = None, config_path: Path | None = None) -> Settings:
    env_path = env_path or ENV_PATH
    config_path = config_path or CONFIG_PATH

    # 1) .env, if present (does not override variables already set)
    if env_path.exists():
        load_dotenv(env_path)

    # 2) yaml file, if present
    if config_path.exists():
        config_data: Any = yaml.safe_load(config_path.read_text(encoding="utf-8")) or {}
    else:
        config_data = {}
    if not isinstance(config_data, dict):
        raise ValueError(f"{config_path}: expected a mapping, got {type(config_data).__name__}")

    # 3) environment wins over the file
    base_url = os.getenv("CRATES_IO_URL_BASE") or config_data.get("base_url") or DEFAULT_BASE_URL
    log_file = os.getenv("CRATES_IO_LOG_FILE") or config_data.get("log_file")

    return Settings(
        base_url=validate_base_url(base_url),
        user_agent=os.getenv("CRATES_IO_USER_AGENT") or config_data.get("user_agent") or DEFAULT_USER_AGENT,
        log_level=os.getenv("CRATES_IO_LOG_LEVEL") or config_data.get("log_level") or DEFAULT_LOG_LEVEL,
        log_file=Path(log_file) if log_file else None,
    )
