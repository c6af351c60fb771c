import asyncio
from datetime import datetime

import pytest

from trainline.booking.orchestrator import (
    PaymentResult,
    SelectionToggle,
    apply_selection,
    pay_for_selection,
    plan_selection,
)
from trainline.errors import (
    HTTPStatusError,
    MalformedResponseError,
    NetworkError,
    PaymentDeclined,
    SelectionError,
    ValidationError,
)
from trainline.models import BookingStatus, Passenger, Station, Trip


def make_trip(pnr_id, is_selected, cents=1000, currency="EUR", trip_id=None):
    return Trip(
        id=trip_id or f"trip-{pnr_id}",
        reference=pnr_id.upper(),
        departure_station=Station("1", "Paris"),
        arrival_station=Station("2", "Lyon"),
        departure_date=datetime(2017, 6, 1, 8, 0),
        arrival_date=datetime(2017, 6, 1, 10, 0),
        passenger=Passenger("p1", "Ada", "Lovelace"),
        cents=cents,
        currency=currency,
        booking_status=BookingStatus.BOOKED,
        pnr_id=pnr_id,
        is_selected=is_selected,
    )


@pytest.fixture
def basket():
    return [make_trip("pnr1", True), make_trip("pnr2", False), make_trip("pnr3", True)]


def test_plan_only_toggles_disagreeing_pnrs(basket):
    # Everything already matches except the second reservation
    toggles = plan_selection(basket, {"pnr1", "pnr2", "pnr3"})

    assert toggles == [SelectionToggle("pnr2", True)]


def test_plan_selecting_only_the_second_deselects_the_others(basket):
    toggles = plan_selection(basket, {"pnr2"})

    assert toggles == [
        SelectionToggle("pnr1", False),
        SelectionToggle("pnr2", True),
        SelectionToggle("pnr3", False),
    ]


def test_plan_issues_one_toggle_per_pnr():
    trips = [make_trip("pnr1", False, trip_id="a"), make_trip("pnr1", False, trip_id="b")]

    assert plan_selection(trips, ["pnr1"]) == [SelectionToggle("pnr1", True)]


def test_apply_selection_sends_one_put(basket, fake_client_factory):
    client = fake_client_factory()

    applied = asyncio.run(apply_selection(client, basket, {"pnr1", "pnr2", "pnr3"}))

    assert applied == 1
    assert client.calls == [
        ("pnrs/pnr2", "PUT", {"pnr": {"is_selected": True, "booker_id": "u1", "inquiry_id": None}}),
    ]


def test_apply_selection_is_sequential(basket, fake_client_factory):
    client = fake_client_factory()

    applied = asyncio.run(apply_selection(client, basket, set(), booker_id="booker"))

    assert applied == 2
    assert [call[0] for call in client.calls] == ["pnrs/pnr1", "pnrs/pnr3"]
    assert client.max_in_flight == 1
    assert all(call[2]["pnr"]["booker_id"] == "booker" for call in client.calls)


def test_apply_selection_stops_at_first_failure(basket, fake_client_factory):
    def responder(path, method, body):
        if path == "pnrs/pnr2":
            raise HTTPStatusError(status=422, message="Unprocessable")
        return {}

    client = fake_client_factory(responder)

    with pytest.raises(SelectionError) as info:
        asyncio.run(apply_selection(client, basket, {"pnr2"}))

    assert info.value.applied == 1
    assert info.value.total == 3
    assert isinstance(info.value.cause, HTTPStatusError)
    # pnr3 was never attempted
    assert [call[0] for call in client.calls] == ["pnrs/pnr1", "pnrs/pnr2"]


def test_short_cvv_fails_before_any_call(basket, fake_client_factory):
    client = fake_client_factory()

    with pytest.raises(ValidationError):
        asyncio.run(pay_for_selection(client, "card1", "12", basket))

    assert client.calls == []


def test_empty_selection_is_a_noop(fake_client_factory):
    client = fake_client_factory()

    result = asyncio.run(pay_for_selection(client, "card1", "123", []))

    assert result.success
    assert client.calls == []


def _payment_responder(status):
    def responder(path, method, body):
        if path == "payments":
            return {"payment": {"id": 77, "status": "pending"}}
        if path == "payments/77/confirm":
            return {"payment": {"id": 77, "status": status}}
        raise AssertionError(path)

    return responder


def test_pay_creates_then_confirms(fake_client_factory):
    trips = [make_trip("pnr1", True, cents=4500), make_trip("pnr2", True, cents=3900)]
    client = fake_client_factory(_payment_responder("success"))

    result = asyncio.run(pay_for_selection(client, "card1", "123", trips))

    assert result == PaymentResult(
        success=True,
        status="success",
        payment_id="77",
        total_cents=8400,
        currency="EUR",
        pnr_ids=["pnr1", "pnr2"],
    )
    assert [(path, method) for path, method, _ in client.calls] == [
        ("payments", "POST"),
        ("payments/77/confirm", "POST"),
    ]
    body = client.calls[0][2]["payment"]
    assert body == {
        "cents": 8400,
        "currency": "EUR",
        "mean": "payment_card",
        "payment_card_id": "card1",
        "cvv_code": "123",
        "pnr_ids": ["pnr1", "pnr2"],
    }
    assert result.raise_for_outcome() is result


def test_declined_payment_is_a_result_not_an_exception(fake_client_factory):
    client = fake_client_factory(_payment_responder("failure"))

    result = asyncio.run(pay_for_selection(client, "card1", "123", [make_trip("pnr1", True)]))

    assert not result.success
    assert result.status == "failure"
    with pytest.raises(PaymentDeclined) as info:
        result.raise_for_outcome()
    assert info.value.result is result


def test_transport_failure_propagates(fake_client_factory):
    def responder(path, method, body):
        raise NetworkError(status=None, message="connection reset")

    client = fake_client_factory(responder)

    with pytest.raises(NetworkError):
        asyncio.run(pay_for_selection(client, "card1", "123", [make_trip("pnr1", True)]))


def test_payment_without_id_is_malformed(fake_client_factory):
    client = fake_client_factory(lambda path, method, body: {"payment": {}})

    with pytest.raises(MalformedResponseError):
        asyncio.run(pay_for_selection(client, "card1", "123", [make_trip("pnr1", True)]))

    assert len(client.calls) == 1
