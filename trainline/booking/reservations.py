"""Join the flat ``pnrs`` payload into trips and filter them by booking status."""

from __future__ import annotations

import logging
from typing import Any, Iterable, List, Mapping, Union

from ..api import resources
from ..api.client import TrainlineClient
from ..errors import ValidationError
from ..models import BookingStatus, Trip
from ..models.serialization import (
    as_id,
    from_dict_folder,
    from_dict_passenger,
    from_dict_pnr,
    from_dict_station,
    index_by_id,
    lookup,
    parse_cents,
    parse_datetime,
    require_field,
)

logger = logging.getLogger(__name__)

FILTERABLE_STATUSES = (BookingStatus.BOOKED, BookingStatus.EMITTED)


def join_reservations(raw: Mapping[str, Any]) -> List[Trip]:
    """
    Resolve every raw trip row of a ``GET pnrs`` response.

    Each trip gets its stations, passenger and the reference, status and
    selection flag of the PNR that owns its folder. One unresolvable id
    fails the whole call with :class:`DataIntegrityError`.
    """
    stations = index_by_id(raw.get("stations"), from_dict_station)
    passengers = index_by_id(raw.get("passengers"), from_dict_passenger)
    folders = index_by_id(raw.get("folders"), from_dict_folder)
    pnrs = index_by_id(raw.get("pnrs"), from_dict_pnr)

    trips: List[Trip] = []
    for row in raw.get("trips") or ():
        folder = lookup(folders, as_id(row.get("folder_id")), "folder")
        pnr = lookup(pnrs, folder.pnr_id, "pnr")
        trips.append(
            Trip(
                id=as_id(row.get("id")),
                reference=pnr.code,
                departure_station=lookup(stations, as_id(row.get("departure_station_id")), "station"),
                arrival_station=lookup(stations, as_id(row.get("arrival_station_id")), "station"),
                departure_date=parse_datetime(require_field(row, "departure_date", "trip")),
                arrival_date=parse_datetime(require_field(row, "arrival_date", "trip")),
                passenger=lookup(passengers, as_id(row.get("passenger_id")), "passenger"),
                cents=parse_cents(row, "trip"),
                currency=require_field(row, "currency", "trip"),
                booking_status=pnr.booking_status,
                pnr_id=pnr.id,
                is_selected=pnr.is_selected,
            )
        )
    return trips


def filter_by_status(
    trips: Iterable[Trip],
    status: Union[BookingStatus, str],
) -> List[Trip]:
    """Keep the trips with ``status``, in their original order."""
    try:
        wanted = BookingStatus(status)
    except ValueError:
        wanted = None
    if wanted not in FILTERABLE_STATUSES:
        raise ValidationError(f"Cannot filter trips by status {status!r}")
    return [trip for trip in trips if trip.booking_status == wanted]


async def trips_with_status(client: TrainlineClient, status: Union[BookingStatus, str]) -> List[Trip]:
    """Fetch the reservations and keep those with ``status``."""
    raw = await resources.fetch_reservations(client)
    trips = filter_by_status(join_reservations(raw), status)
    logger.info(f"{len(trips)} trip(s) with status {BookingStatus(status).value}")
    return trips


async def list_trips(client: TrainlineClient) -> List[Trip]:
    """Ticketed trips."""
    return await trips_with_status(client, BookingStatus.EMITTED)


async def list_basket(client: TrainlineClient) -> List[Trip]:
    """Trips sitting in the basket."""
    return await trips_with_status(client, BookingStatus.BOOKED)


__all__ = [
    "join_reservations",
    "filter_by_status",
    "trips_with_status",
    "list_trips",
    "list_basket",
]
