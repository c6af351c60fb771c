"""httpx 客户端封装，访问 Trainline JSON API。"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx

from ..config import Settings, get_settings, normalise_base_url
from ..errors import HTTPStatusError, MalformedResponseError, NetworkError

logger = logging.getLogger(__name__)

ALLOWED_METHODS = ("GET", "POST", "PUT")


@dataclass
class ApiSession:
    """Credentials shared by every call of one CLI run.

    ``token`` is set once after sign-in (or read from the session file)
    and only read afterwards.
    """

    token: Optional[str] = None
    user_id: Optional[str] = None


def _auth_header(token: str) -> str:
    return f'Token token="{token}"'


class TrainlineClient:
    """Thin JSON request/response layer over :class:`httpx.AsyncClient`."""

    def __init__(
        self,
        session: Optional[ApiSession] = None,
        settings: Optional[Settings] = None,
        *,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        settings = settings or get_settings()
        self.session = session or ApiSession()
        self.base_url = normalise_base_url(base_url or settings.base_url)
        resolved_timeout = timeout if timeout is not None else settings.http_timeout
        self._http = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=resolved_timeout,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    async def __aenter__(self) -> "TrainlineClient":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    def _headers(self) -> Dict[str, str]:
        if self.session.token:
            return {"Authorization": _auth_header(self.session.token)}
        return {}

    async def request(
        self,
        path: str,
        method: str = "GET",
        json_body: Optional[Dict[str, Any]] = None,
        *,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Send one request and return the decoded JSON object.

        Parameters
        ----------
        path:
            Resource path relative to the API base URL, e.g. ``"pnrs"``.
        method:
            ``GET``, ``POST`` or ``PUT``.
        json_body:
            Optional body, encoded as JSON.
        params:
            Optional query-string parameters.

        Raises
        ------
        NetworkError
            No response was received.
        HTTPStatusError
            The API answered with a non-2xx status.
        MalformedResponseError
            The body is not a JSON object.
        """
        method = method.upper()
        if method not in ALLOWED_METHODS:
            raise ValueError(f"Unsupported HTTP method: {method}")

        logger.debug(f"{method} {path}")
        try:
            response = await self._http.request(
                method,
                path.lstrip("/"),
                json=json_body,
                params=params,
                headers=self._headers(),
            )
        except httpx.HTTPError as exc:
            logger.warning(f"{method} {path} failed: {exc}")
            raise NetworkError(status=None, message=str(exc) or type(exc).__name__) from exc

        if not response.is_success:
            logger.warning(f"{method} {path} -> HTTP {response.status_code}")
            raise HTTPStatusError(
                status=response.status_code,
                message=response.reason_phrase or "HTTP error",
                details=_safe_body(response),
            )

        if not response.content:
            return {}
        try:
            payload = response.json()
        except (json.JSONDecodeError, UnicodeDecodeError) as exc:
            raise MalformedResponseError(
                status=response.status_code,
                message="Response body is not valid JSON",
                details=response.text[:200],
            ) from exc
        if not isinstance(payload, dict):
            raise MalformedResponseError(
                status=response.status_code,
                message=f"Expected a JSON object, got {type(payload).__name__}",
                details=payload,
            )
        return payload


def _safe_body(response: httpx.Response) -> Any:
    """Best-effort decoding of an error body, for diagnostics only."""
    try:
        return response.json()
    except ValueError:
        return response.text[:200]


def create_client(
    session: Optional[ApiSession] = None,
    settings: Optional[Settings] = None,
    **kwargs: Any,
) -> TrainlineClient:
    """根据配置初始化异步 Trainline 客户端。"""
    return TrainlineClient(session=session, settings=settings, **kwargs)


__all__ = ["ApiSession", "TrainlineClient", "create_client"]
