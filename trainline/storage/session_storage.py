"""Simple JSON-based session storage for the signed-in account."""

from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from ..config import get_settings

logger = logging.getLogger(__name__)


@dataclass
class SessionBlob:
    """What is kept between two CLI runs.

    Its absence means "logged out".
    """

    token: str
    user: Dict[str, Any] = field(default_factory=dict)
    stations: List[Dict[str, Any]] = field(default_factory=list)
    passengers: List[Dict[str, Any]] = field(default_factory=list)

    @property
    def user_id(self) -> Optional[str]:
        user_id = self.user.get("id")
        return None if user_id is None else str(user_id)

    @property
    def display_name(self) -> str:
        name = f"{self.user.get('first_name', '')} {self.user.get('last_name', '')}".strip()
        return name or self.user.get("email", "")


def _session_file(path: Optional[Path]) -> Path:
    return path or get_settings().session_file


def load_session(path: Optional[Path] = None) -> Optional[SessionBlob]:
    """Load the saved session.

    Returns:
        The session, or ``None`` when the file is missing or unreadable
    """
    session_file = _session_file(path)
    if not session_file.exists():
        return None

    with session_file.open("r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError:
            logger.warning(f"Ignoring corrupt session file {session_file}")
            return None

    if not isinstance(data, dict) or not data.get("token"):
        return None

    return SessionBlob(
        token=str(data["token"]),
        user=data.get("user") or {},
        stations=list(data.get("stations") or []),
        passengers=list(data.get("passengers") or []),
    )


def save_session(blob: SessionBlob, path: Optional[Path] = None) -> None:
    """Persist the session to the JSON file."""
    session_file = _session_file(path)
    session_file.parent.mkdir(parents=True, exist_ok=True)
    # The token grants access to the account
    fd = os.open(session_file, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
    # O_CREAT 的权限对已存在的文件无效
    os.fchmod(fd, 0o600)
    with os.fdopen(fd, "w", encoding="utf-8") as f:
        json.dump(asdict(blob), f, ensure_ascii=False, indent=2)


def clear_session(path: Optional[Path] = None) -> bool:
    """Delete the saved session; returns whether there was one."""
    session_file = _session_file(path)
    if not session_file.exists():
        return False
    session_file.unlink()
    return True


__all__ = ["SessionBlob", "load_session", "save_session", "clear_session"]
