"""Turn a flat ``search`` response into deduplicated itineraries."""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any, Dict, List, Mapping, Optional, Sequence

from ..api import resources
from ..api.client import TrainlineClient
from ..config import get_settings
from ..errors import DataIntegrityError
from ..models import BookingHandle, Fare, Itinerary, SegmentView, Station, Stop
from ..models.serialization import (
    as_id,
    from_dict_folder,
    from_dict_segment,
    from_dict_station,
    from_dict_trip_candidate,
    index_by_id,
    lookup,
    require_field,
)

logger = logging.getLogger(__name__)


def build_stops(segments: Sequence[SegmentView]) -> List[Stop]:
    """Connections between consecutive segments.

    The stop is at the departure station of the next segment and lasts
    from the previous arrival to the next departure.
    """
    stops: List[Stop] = []
    for previous, current in zip(segments, segments[1:]):
        try:
            duration = current.departure_date - previous.arrival_date
        except TypeError as exc:
            # 一个带时区一个不带
            raise DataIntegrityError(
                f"Cannot compare dates around {current.departure_station}: {exc}"
            ) from exc
        if duration < timedelta(0):
            raise DataIntegrityError(
                f"Segment {current.train_name or '?'} leaves {current.departure_station} "
                f"before the previous one arrives ({duration})"
            )
        stops.append(
            Stop(
                station=current.departure_station,
                train_name=current.train_name,
                duration=duration,
            )
        )
    return stops


def aggregate_search(raw: Mapping[str, Any], flexibility: str) -> List[Itinerary]:
    """
    Group search candidates into itineraries.

    Parameters
    ----------
    raw:
        Decoded ``POST search`` response.
    flexibility:
        Only candidates whose folder has this flexibility are kept.

    Returns
    -------
    One itinerary per digest, in first-seen order, each carrying one
    fare per travel class.
    """
    stations: Dict[str, Station] = index_by_id(raw.get("stations"), from_dict_station)
    folders = index_by_id(raw.get("folders"), from_dict_folder)
    # 只解析被保留的候选所用到的区段
    segment_rows = {as_id(row.get("id")): row for row in raw.get("segments") or ()}
    search_id: Optional[str] = None

    itineraries: Dict[str, Itinerary] = {}
    skipped = 0
    for row in raw.get("trips") or ():
        folder = lookup(folders, as_id(row.get("folder_id")), "folder")
        if folder.flexibility != flexibility:
            skipped += 1
            continue
        candidate = from_dict_trip_candidate(row)
        if search_id is None:
            search_id = as_id(require_field(raw.get("search") or {}, "id", "search"))

        itinerary = itineraries.get(candidate.digest)
        if itinerary is None:
            segment_views = []
            for segment_id in candidate.segment_ids:
                segment = from_dict_segment(lookup(segment_rows, segment_id, "segment"))
                segment_views.append(
                    SegmentView(
                        departure_station=lookup(stations, segment.departure_station_id, "station").name,
                        arrival_station=lookup(stations, segment.arrival_station_id, "station").name,
                        departure_date=segment.departure_date,
                        arrival_date=segment.arrival_date,
                        train_name=segment.train_name,
                    )
                )
            itinerary = Itinerary(
                digest=candidate.digest,
                departure_station=lookup(stations, candidate.departure_station_id, "station").name,
                arrival_station=lookup(stations, candidate.arrival_station_id, "station").name,
                departure_date=candidate.departure_date,
                arrival_date=candidate.arrival_date,
                segments=segment_views,
                stops=build_stops(segment_views),
            )
            itineraries[candidate.digest] = itinerary

        # 同一 digest 同一舱位的候选应当相同，后者覆盖前者
        itinerary.travel_classes[folder.travel_class] = Fare(
            cents=candidate.cents,
            currency=candidate.currency,
            booking_handle=BookingHandle(search_id=search_id, folder_id=folder.id),
        )

    logger.info(f"{len(itineraries)} itinerary(ies), {skipped} candidate(s) not {flexibility}")
    return list(itineraries.values())


async def search_itineraries(
    client: TrainlineClient,
    departure_station_id: str,
    arrival_station_id: str,
    departure_date: str,
    passenger_ids: Sequence[str],
    card_ids: Sequence[str] = (),
    *,
    flexibility: Optional[str] = None,
    systems: Optional[Sequence[str]] = None,
) -> List[Itinerary]:
    """Run a journey search and aggregate the result."""
    settings = get_settings()
    raw = await resources.search_journeys(
        client,
        departure_station_id,
        arrival_station_id,
        departure_date,
        passenger_ids,
        card_ids,
        systems=systems or settings.systems,
    )
    return aggregate_search(raw, flexibility or settings.flexibility)


__all__ = ["aggregate_search", "build_stops", "search_itineraries"]
