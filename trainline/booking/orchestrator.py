"""编排预订相关的远程调用 - 购物篮选择与支付"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Collection, Iterable, List, Mapping, Optional, Set

from ..api import resources
from ..api.client import TrainlineClient
from ..errors import (
    MalformedResponseError,
    PaymentDeclined,
    SelectionError,
    TrainlineError,
    ValidationError,
)
from ..models import Trip

logger = logging.getLogger(__name__)

CVV_LENGTH = 3
PAYMENT_SUCCESS = "success"


@dataclass(frozen=True)
class SelectionToggle:
    """One ``PUT pnrs/<id>`` call."""
    pnr_id: str
    is_selected: bool


@dataclass
class PaymentResult:
    """支付结果

    ``success`` 为 False 表示接口调用成功但支付未被接受；网络或 HTTP 错误
    不会走到这里，而是直接抛出 TransportError。
    """

    success: bool
    status: str
    payment_id: Optional[str] = None
    total_cents: int = 0
    currency: str = ""
    pnr_ids: List[str] = field(default_factory=list)

    def raise_for_outcome(self) -> "PaymentResult":
        if not self.success:
            raise PaymentDeclined(self)
        return self


def plan_selection(trips: Iterable[Trip], desired_pnr_ids: Collection[str]) -> List[SelectionToggle]:
    """Minimal set of toggles bringing the basket to ``desired_pnr_ids``.

    At most one toggle per PNR, in the order the PNRs first appear.
    """
    desired = set(desired_pnr_ids)
    seen: Set[str] = set()
    toggles: List[SelectionToggle] = []
    for trip in trips:
        if trip.pnr_id in seen:
            continue
        seen.add(trip.pnr_id)
        wanted = trip.pnr_id in desired
        if trip.is_selected != wanted:
            toggles.append(SelectionToggle(pnr_id=trip.pnr_id, is_selected=wanted))
    return toggles


async def apply_selection(
    client: TrainlineClient,
    trips: Iterable[Trip],
    desired_pnr_ids: Collection[str],
    booker_id: Optional[str] = None,
) -> int:
    """
    Select exactly ``desired_pnr_ids`` in the basket.

    The API rejects concurrent mutations of one basket, so each call is
    awaited before the next one is sent.

    Returns:
        Number of PNRs toggled

    Raises:
        SelectionError: a call failed; ``applied`` tells how many went through
    """
    toggles = plan_selection(trips, desired_pnr_ids)
    booker_id = booker_id or client.session.user_id
    for applied, toggle in enumerate(toggles):
        try:
            await resources.select_pnr(client, toggle.pnr_id, toggle.is_selected, booker_id)
        except TrainlineError as exc:
            logger.error(f"Toggling pnr {toggle.pnr_id} failed after {applied}/{len(toggles)}: {exc}")
            raise SelectionError(applied=applied, total=len(toggles), cause=exc) from exc
        logger.info(f"pnr {toggle.pnr_id} is_selected={toggle.is_selected}")
    return len(toggles)


def _payment_field(payload: Mapping[str, Any], key: str) -> Any:
    payment = payload.get("payment")
    if isinstance(payment, Mapping) and key in payment:
        return payment[key]
    return payload.get(key)


async def pay_for_selection(
    client: TrainlineClient,
    card_id: str,
    cvv: str,
    trips: Iterable[Trip],
) -> PaymentResult:
    """
    Create then confirm one payment covering ``trips``.

    Every trip is assumed to share the first trip's currency.

    Raises:
        ValidationError: ``cvv`` is not 3 characters long (nothing is sent)
        TransportError: a call failed
    """
    if cvv is None or len(cvv) != CVV_LENGTH:
        raise ValidationError(f"The CVV must be exactly {CVV_LENGTH} characters long")

    trips = list(trips)
    if not trips:
        return PaymentResult(success=True, status="nothing to pay")

    total_cents = sum(trip.cents for trip in trips)
    currency = trips[0].currency
    pnr_ids = list(dict.fromkeys(trip.pnr_id for trip in trips))

    logger.info(f"Paying {total_cents} {currency} for {len(pnr_ids)} pnr(s)")
    created = await resources.create_payment(client, card_id, cvv, total_cents, currency, pnr_ids)
    payment_id = _payment_field(created, "id")
    if payment_id is None:
        raise MalformedResponseError(status=None, message="Payment created without an id", details=created)
    payment_id = str(payment_id)

    confirmed = await resources.confirm_payment(client, payment_id, card_id, cvv, total_cents, currency, pnr_ids)
    status = str(_payment_field(confirmed, "status") or "unknown")
    success = status == PAYMENT_SUCCESS
    if not success:
        logger.warning(f"Payment {payment_id} ended with status {status}")

    return PaymentResult(
        success=success,
        status=status,
        payment_id=payment_id,
        total_cents=total_cents,
        currency=currency,
        pnr_ids=pnr_ids,
    )


__all__ = [
    "SelectionToggle",
    "PaymentResult",
    "plan_selection",
    "apply_selection",
    "pay_for_selection",
]
