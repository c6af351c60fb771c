"""Configuration utilities for environment-based settings."""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path
from typing import Optional, Tuple

from dotenv import load_dotenv


def load_env(dotenv_path: Optional[str] = None) -> None:
    """Load environment variables from a .env file without overriding existing values."""
    path = Path(dotenv_path or ".env")
    load_dotenv(dotenv_path=str(path), override=False)


DEFAULT_BASE_URL = "https://www.trainline.eu/api/v5/"

# 默认HTTP超时时间（秒）
DEFAULT_HTTP_TIMEOUT = 30.0

DEFAULT_SESSION_FILE = Path.home() / ".trainline" / "session.json"

# Only this fare flexibility is kept in search results
DEFAULT_FLEXIBILITY = "nonflexi"

DEFAULT_SYSTEMS: Tuple[str, ...] = (
    "sncf",
    "db",
    "busbud",
    "idtgv",
    "ouigo",
    "trenitalia",
    "ntv",
    "hkx",
    "renfe",
    "benerail",
    "ocebo",
    "timetable",
)


def normalise_base_url(base_url: str) -> str:
    """确保 base_url 以 `/` 结尾，避免路径连接异常。"""
    return base_url if base_url.endswith("/") else f"{base_url}/"


@dataclass(frozen=True)
class Settings:
    """Structured configuration values for the Trainline API client."""

    base_url: str = DEFAULT_BASE_URL
    http_timeout: float = DEFAULT_HTTP_TIMEOUT
    session_file: Path = DEFAULT_SESSION_FILE
    flexibility: str = DEFAULT_FLEXIBILITY
    systems: Tuple[str, ...] = DEFAULT_SYSTEMS
    log_level: str = "WARNING"


def _parse_timeout(value: str) -> float:
    if not value:
        return DEFAULT_HTTP_TIMEOUT
    try:
        parsed = float(value)
    except ValueError:
        return DEFAULT_HTTP_TIMEOUT
    return parsed if parsed > 0 else DEFAULT_HTTP_TIMEOUT


def _parse_systems(value: str) -> Tuple[str, ...]:
    systems = tuple(item.strip() for item in value.split(",") if item.strip())
    return systems or DEFAULT_SYSTEMS


@lru_cache(maxsize=1)
def get_settings(dotenv_path: Optional[str] = None) -> Settings:
    """Return cached settings, ensuring environment variables are loaded once."""
    load_env(dotenv_path)
    session_file = os.getenv("TRAINLINE_SESSION_FILE", "")
    return Settings(
        base_url=normalise_base_url(os.getenv("TRAINLINE_API_BASE_URL", DEFAULT_BASE_URL)),
        http_timeout=_parse_timeout(os.getenv("TRAINLINE_HTTP_TIMEOUT", "")),
        session_file=Path(session_file).expanduser() if session_file else DEFAULT_SESSION_FILE,
        flexibility=os.getenv("TRAINLINE_FLEXIBILITY", DEFAULT_FLEXIBILITY),
        systems=_parse_systems(os.getenv("TRAINLINE_SYSTEMS", "")),
        log_level=os.getenv("TRAINLINE_LOG_LEVEL", "WARNING").upper(),
    )
