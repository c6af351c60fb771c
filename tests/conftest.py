"""Shared fixtures: raw API payloads and a recording fake client."""

from __future__ import annotations

import asyncio
import copy
from typing import Any, Callable, Dict, List, Optional, Tuple

import pytest

from trainline.api.client import ApiSession
from trainline.config import Settings

RESERVATIONS: Dict[str, Any] = {
    "stations": [
        {"id": 1, "name": "Paris Gare de Lyon"},
        {"id": 2, "name": "Lyon Part-Dieu"},
        {"id": 3, "name": "Marseille Saint-Charles"},
    ],
    "passengers": [
        {"id": "p1", "first_name": "Ada", "last_name": "Lovelace", "card_ids": ["c1", "c2"]},
        {"id": "p2", "first_name": "Alan", "last_name": "Turing", "card_ids": []},
    ],
    "folders": [
        {"id": "f1", "pnr_id": "pnr1"},
        {"id": "f2", "pnr_id": "pnr2"},
        {"id": "f3", "pnr_id": "pnr3"},
        {"id": "f4", "pnr_id": "pnr4"},
    ],
    "pnrs": [
        {"id": "pnr1", "code": "ABC123", "booking_status": "emitted", "is_selected": False},
        {"id": "pnr2", "code": "DEF456", "booking_status": "booked", "is_selected": True},
        {"id": "pnr3", "code": "GHI789", "booking_status": "booked", "is_selected": False},
        {"id": "pnr4", "code": "JKL012", "booking_status": "emitted", "is_selected": False},
    ],
    "trips": [
        {
            "id": "t1",
            "folder_id": "f1",
            "passenger_id": "p1",
            "departure_station_id": 1,
            "arrival_station_id": 2,
            "departure_date": "2017-06-01T08:00:00+02:00",
            "arrival_date": "2017-06-01T10:00:00+02:00",
            "cents": 4500,
            "currency": "EUR",
        },
        {
            "id": "t2",
            "folder_id": "f2",
            "passenger_id": "p1",
            "departure_station_id": 2,
            "arrival_station_id": 3,
            "departure_date": "2017-06-02T08:00:00+02:00",
            "arrival_date": "2017-06-02T09:40:00+02:00",
            "cents": 3900,
            "currency": "EUR",
        },
        {
            "id": "t3",
            "folder_id": "f3",
            "passenger_id": "p2",
            "departure_station_id": 3,
            "arrival_station_id": 1,
            "departure_date": "2017-06-03T18:00:00+02:00",
            "arrival_date": "2017-06-03T21:20:00+02:00",
            "cents": 8200,
            "currency": "EUR",
        },
        {
            "id": "t4",
            "folder_id": "f4",
            "passenger_id": "p2",
            "departure_station_id": 1,
            "arrival_station_id": 3,
            "departure_date": "2017-06-04T07:00:00+02:00",
            "arrival_date": "2017-06-04T10:20:00+02:00",
            "cents": 9900,
            "currency": "EUR",
        },
    ],
}


def _segment(sid: str, dep: str, arr: str, dep_date: str, arr_date: str, train: str) -> Dict[str, Any]:
    return {
        "id": sid,
        "departure_station_id": dep,
        "arrival_station_id": arr,
        "departure_date": dep_date,
        "arrival_date": arr_date,
        "train_name": train,
    }


def _candidate(tid: str, digest: str, folder_id: str, segment_ids: List[str], cents: int, **extra: Any) -> Dict[str, Any]:
    row = {
        "id": tid,
        "digest": digest,
        "folder_id": folder_id,
        "segment_ids": segment_ids,
        "cents": cents,
        "currency": "EUR",
        "departure_date": "2017-06-01T08:00:00+02:00",
        "arrival_date": "2017-06-01T11:00:00+02:00",
        "departure_station_id": "A",
        "arrival_station_id": "D",
    }
    row.update(extra)
    return row


SEARCH: Dict[str, Any] = {
    "search": {"id": "search-42"},
    "stations": [
        {"id": "A", "name": "Paris"},
        {"id": "B", "name": "Dijon"},
        {"id": "C", "name": "Lyon"},
        {"id": "D", "name": "Marseille"},
    ],
    "passengers": [{"id": "p1", "first_name": "Ada", "last_name": "Lovelace"}],
    "folders": [
        {"id": "fx-eco", "pnr_id": None, "flexibility": "nonflexi", "travel_class": "economy"},
        {"id": "fx-first", "pnr_id": None, "flexibility": "nonflexi", "travel_class": "first"},
        {"id": "fy-flexi", "pnr_id": None, "flexibility": "flexi", "travel_class": "economy"},
        {"id": "fz-eco", "pnr_id": None, "flexibility": "nonflexi", "travel_class": "economy"},
    ],
    "segments": [
        _segment("s1", "A", "B", "2017-06-01T08:00:00+02:00", "2017-06-01T09:00:00+02:00", "TGV 6601"),
        _segment("s2", "B", "C", "2017-06-01T09:10:00+02:00", "2017-06-01T10:00:00+02:00", "TER 881"),
        _segment("s3", "C", "D", "2017-06-01T10:30:00+02:00", "2017-06-01T11:00:00+02:00", "TGV 6105"),
        _segment("s4", "A", "D", "2017-06-01T12:00:00+02:00", "2017-06-01T15:20:00+02:00", "TGV 6111"),
    ],
    "trips": [
        _candidate("c1", "X", "fx-eco", ["s1", "s2", "s3"], 5000),
        _candidate("c2", "Y", "fy-flexi", ["s4"], 7000,
                   departure_date="2017-06-01T12:00:00+02:00", arrival_date="2017-06-01T15:20:00+02:00"),
        _candidate("c3", "X", "fx-first", ["s1", "s2", "s3"], 12000),
        _candidate("c4", "Z", "fz-eco", ["s4"], 6400,
                   departure_date="2017-06-01T12:00:00+02:00", arrival_date="2017-06-01T15:20:00+02:00"),
    ],
}


@pytest.fixture
def reservations_payload() -> Dict[str, Any]:
    return copy.deepcopy(RESERVATIONS)


@pytest.fixture
def search_payload() -> Dict[str, Any]:
    return copy.deepcopy(SEARCH)


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(base_url="https://api.test/v5/", session_file=tmp_path / "session.json")


Responder = Callable[[str, str, Optional[Dict[str, Any]]], Dict[str, Any]]


class FakeClient:
    """Records every request and answers through ``responder``.

    ``max_in_flight`` tells whether two requests ever overlapped.
    """

    def __init__(self, responder: Optional[Responder] = None, user_id: str = "u1") -> None:
        self.session = ApiSession(token="tok", user_id=user_id)
        self.responder = responder or (lambda path, method, body: {})
        self.calls: List[Tuple[str, str, Optional[Dict[str, Any]]]] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def request(self, path, method="GET", json_body=None, *, params=None):
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            self.calls.append((path, method, json_body))
            return self.responder(path, method, json_body)
        finally:
            self.in_flight -= 1


@pytest.fixture
def fake_client_factory():
    return FakeClient
