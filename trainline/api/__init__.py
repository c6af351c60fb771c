"""Trainline API 访问层：传输客户端与各接口封装。"""

from __future__ import annotations

from . import resources
from .client import ApiSession, TrainlineClient, create_client

__all__ = ["ApiSession", "TrainlineClient", "create_client", "resources"]
