"""存储模块 - 本地会话文件"""

from .session_storage import SessionBlob, clear_session, load_session, save_session

__all__ = ["SessionBlob", "load_session", "save_session", "clear_session"]
