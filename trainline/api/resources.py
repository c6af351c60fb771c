"""One coroutine per Trainline API endpoint used by the client.

These return the decoded JSON untouched; joining and aggregation live in
:mod:`trainline.booking`.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from ..errors import AuthError, HTTPStatusError, MalformedResponseError
from ..storage import SessionBlob
from .client import TrainlineClient

logger = logging.getLogger(__name__)

# Statuses the sign-in endpoint uses to reject credentials
AUTH_REJECTED_STATUSES = (400, 401, 403, 422)


def _extract_token(payload: Dict[str, Any]) -> Optional[str]:
    meta = payload.get("meta")
    if isinstance(meta, dict) and meta.get("token"):
        return str(meta["token"])
    token = payload.get("token")
    return str(token) if token else None


async def sign_in(client: TrainlineClient, email: str, password: str) -> SessionBlob:
    """Authenticate and store the token on ``client.session``."""
    try:
        payload = await client.request(
            "account/signin",
            "POST",
            {"email": email, "password": password},
        )
    except HTTPStatusError as exc:
        if exc.status in AUTH_REJECTED_STATUSES:
            raise AuthError() from exc
        raise

    token = _extract_token(payload)
    if not token:
        raise MalformedResponseError(status=None, message="Sign-in response carries no token")

    blob = SessionBlob(
        token=token,
        user=payload.get("user") or {},
        stations=list(payload.get("stations") or []),
        passengers=list(payload.get("passengers") or []),
    )
    client.session.token = blob.token
    client.session.user_id = blob.user_id
    logger.info(f"Signed in as user {blob.user_id}")
    return blob


async def fetch_reservations(client: TrainlineClient) -> Dict[str, Any]:
    """``GET pnrs``: stations, passengers, folders, pnrs and trips."""
    return await client.request("pnrs", "GET")


async def search_stations(client: TrainlineClient, query: str) -> List[Dict[str, Any]]:
    """Stations matching ``query``."""
    payload = await client.request("stations", "GET", params={"context": "search", "q": query})
    return list(payload.get("stations") or [])


async def search_journeys(
    client: TrainlineClient,
    departure_station_id: str,
    arrival_station_id: str,
    departure_date: str,
    passenger_ids: Sequence[str],
    card_ids: Sequence[str],
    *,
    systems: Sequence[str],
) -> Dict[str, Any]:
    """``POST search``."""
    body = {
        "search": {
            "arrival_station_id": arrival_station_id,
            "departure_date": departure_date,
            "departure_station_id": departure_station_id,
            "passenger_ids": list(passenger_ids),
            "card_ids": list(card_ids),
            "systems": list(systems),
        }
    }
    return await client.request("search", "POST", body)


async def book_trip(client: TrainlineClient, search_id: str, folder_id: str) -> Dict[str, Any]:
    """Put a searched fare in the basket."""
    return await client.request(
        "book",
        "POST",
        {"book": {"search_id": search_id, "outward_folder_id": folder_id}},
    )


async def select_pnr(
    client: TrainlineClient,
    pnr_id: str,
    is_selected: bool,
    booker_id: Optional[str],
) -> Dict[str, Any]:
    """(Un)select one PNR of the basket."""
    return await client.request(
        f"pnrs/{pnr_id}",
        "PUT",
        {"pnr": {"is_selected": is_selected, "booker_id": booker_id, "inquiry_id": None}},
    )


async def payment_cards(client: TrainlineClient) -> List[Dict[str, Any]]:
    """Payment cards registered on the account."""
    payload = await client.request("payment_cards", "GET")
    return list(payload.get("payment_cards") or [])


def _payment_body(
    card_id: str,
    cvv: str,
    cents: int,
    currency: str,
    pnr_ids: Sequence[str],
) -> Dict[str, Any]:
    return {
        "payment": {
            "cents": cents,
            "currency": currency,
            "mean": "payment_card",
            "payment_card_id": card_id,
            "cvv_code": cvv,
            "pnr_ids": list(pnr_ids),
        }
    }


async def create_payment(
    client: TrainlineClient,
    card_id: str,
    cvv: str,
    cents: int,
    currency: str,
    pnr_ids: Sequence[str],
) -> Dict[str, Any]:
    """``POST payments``."""
    return await client.request("payments", "POST", _payment_body(card_id, cvv, cents, currency, pnr_ids))


async def confirm_payment(
    client: TrainlineClient,
    payment_id: str,
    card_id: str,
    cvv: str,
    cents: int,
    currency: str,
    pnr_ids: Sequence[str],
) -> Dict[str, Any]:
    """``POST payments/<id>/confirm`` with the body used to create it."""
    return await client.request(
        f"payments/{payment_id}/confirm",
        "POST",
        _payment_body(card_id, cvv, cents, currency, pnr_ids),
    )


__all__ = [
    "sign_in",
    "fetch_reservations",
    "search_stations",
    "search_journeys",
    "book_trip",
    "select_pnr",
    "payment_cards",
    "create_payment",
    "confirm_payment",
]
