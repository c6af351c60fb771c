"""Exception hierarchy shared by the transport, the aggregation core and the CLI."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Optional

if TYPE_CHECKING:  # pragma: no cover
    from .booking.orchestrator import PaymentResult


class TrainlineError(Exception):
    """Base class for every error raised by this package."""


@dataclass
class TransportError(TrainlineError):
    """统一封装 HTTP 层的异常（网络错误、非 2xx 状态、无法解析的响应）。"""

    status: Optional[int]
    message: str
    details: Optional[Any] = None

    def __str__(self) -> str:  # pragma: no cover - trivial
        code = self.status if self.status is not None else "-"
        return f"[{code}] {self.message}"


class NetworkError(TransportError):
    """No response was received (DNS, connection reset, timeout...)."""


class HTTPStatusError(TransportError):
    """The API answered with a non-2xx status."""


class MalformedResponseError(TransportError):
    """The API answered 2xx but the body is not a JSON object."""


class AuthError(TrainlineError):
    """Sign-in was rejected.

    The message is deliberately generic: it never tells whether the email
    or the password was wrong.
    """

    def __init__(self, message: str = "Wrong password or wrong email address") -> None:
        super().__init__(message)


class DataIntegrityError(TrainlineError):
    """An API payload references an id that cannot be resolved, or is otherwise inconsistent."""


class ValidationError(TrainlineError):
    """User input failed a local precondition; nothing was sent to the API."""


class PaymentDeclined(TrainlineError):
    """The payment calls succeeded but the payment itself was not accepted."""

    def __init__(self, result: "PaymentResult") -> None:
        super().__init__(f"Payment {result.payment_id or '-'} declined (status: {result.status})")
        self.result = result


class SelectionError(TrainlineError):
    """A basket selection sequence stopped part-way through."""

    def __init__(self, applied: int, total: int, cause: Exception) -> None:
        super().__init__(f"Basket selection failed after {applied}/{total} changes: {cause}")
        self.applied = applied
        self.total = total
        self.cause = cause


__all__ = [
    "TrainlineError",
    "TransportError",
    "NetworkError",
    "HTTPStatusError",
    "MalformedResponseError",
    "AuthError",
    "DataIntegrityError",
    "ValidationError",
    "PaymentDeclined",
    "SelectionError",
]
