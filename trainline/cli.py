"""Command-line entry point: ``trainline <command>``."""

from __future__ import annotations

import argparse
import asyncio
import getpass
import logging
import sys
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Dict, List, Optional, Sequence

from . import __version__
from .api import ApiSession, TrainlineClient, resources
from .booking import (
    apply_selection,
    list_basket,
    list_trips,
    pay_for_selection,
    search_itineraries,
)
from .config import Settings, get_settings
from .errors import (
    AuthError,
    DataIntegrityError,
    PaymentDeclined,
    SelectionError,
    TransportError,
    ValidationError,
)
from .models import Itinerary, Trip
from .models.serialization import to_json
from .storage import SessionBlob, clear_session, load_session, save_session

logger = logging.getLogger(__name__)

DATE_FORMAT = "%d/%m/%Y %H:%M"


# ==================== 输出格式 ====================

def _price(cents: int, currency: str) -> str:
    return f"{cents / 100:.2f} {currency}".strip()


def _date(value: datetime) -> str:
    return value.strftime(DATE_FORMAT)


def _duration(value: timedelta) -> str:
    minutes = int(value.total_seconds()) // 60
    return f"{minutes // 60}h{minutes % 60:02d}"


def format_trip(trip: Trip) -> str:
    mark = "[x]" if trip.is_selected else "[ ]"
    return (
        f"{mark} {trip.reference:<8} {_date(trip.departure_date)} "
        f"{trip.departure_station.name} -> {trip.arrival_station.name} "
        f"({trip.passenger.full_name}) {_price(trip.cents, trip.currency)}  pnr={trip.pnr_id}"
    )


def format_itinerary(index: int, itinerary: Itinerary) -> List[str]:
    lines = [
        f"{index}. {_date(itinerary.departure_date)} {itinerary.departure_station} -> "
        f"{_date(itinerary.arrival_date)} {itinerary.arrival_station} "
        f"({_duration(itinerary.duration)}, {len(itinerary.stops)} stop(s))"
    ]
    for stop in itinerary.stops:
        lines.append(f"     change at {stop.station} for {stop.train_name} ({_duration(stop.duration)})")
    for travel_class, fare in itinerary.travel_classes.items():
        handle = fare.booking_handle
        lines.append(
            f"     {travel_class:<10} {_price(fare.cents, fare.currency):>12}  "
            f"book: {handle.search_id} {handle.folder_id}"
        )
    return lines


# ==================== 会话 ====================

def _require_session(settings: Settings) -> SessionBlob:
    blob = load_session(settings.session_file)
    if blob is None:
        raise ValidationError("You are not logged in, run `trainline login EMAIL` first")
    return blob


def _client(settings: Settings, blob: Optional[SessionBlob] = None) -> TrainlineClient:
    session = ApiSession(token=blob.token, user_id=blob.user_id) if blob else ApiSession()
    return TrainlineClient(session=session, settings=settings)


# ==================== 命令 ====================

async def cmd_login(args: argparse.Namespace, settings: Settings) -> int:
    password = await asyncio.to_thread(getpass.getpass, "Trainline password: ")
    if not password:
        return 1
    async with _client(settings) as client:
        blob = await resources.sign_in(client, args.email, password)
    save_session(blob, settings.session_file)
    print(f"You are now connected as {blob.display_name}!")
    return 0


async def cmd_logout(args: argparse.Namespace, settings: Settings) -> int:
    if clear_session(settings.session_file):
        print("You are now logged out.")
    else:
        print("You were not logged in.")
    return 0


def _print_trips(trips: Sequence[Trip], empty: str, as_json: bool = False) -> None:
    if as_json:
        print(to_json(list(trips)))
        return
    if not trips:
        print(empty)
        return
    for trip in trips:
        print(format_trip(trip))


async def cmd_trips(args: argparse.Namespace, settings: Settings) -> int:
    async with _client(settings, _require_session(settings)) as client:
        trips = await list_trips(client)
    # 最近的行程排在最上面
    _print_trips(list(reversed(trips)), "No trips.", args.json)
    return 0


async def cmd_basket(args: argparse.Namespace, settings: Settings) -> int:
    async with _client(settings, _require_session(settings)) as client:
        trips = await list_basket(client)
    _print_trips(trips, "Your basket is empty.", args.json)
    if trips and not args.json:
        selected = [trip for trip in trips if trip.is_selected]
        total = sum(trip.cents for trip in selected)
        currency = selected[0].currency if selected else ""
        print(f"Selected: {len(selected)} trip(s), {_price(total, currency)}")
    return 0


async def cmd_stations(args: argparse.Namespace, settings: Settings) -> int:
    async with _client(settings, load_session(settings.session_file)) as client:
        stations = await resources.search_stations(client, args.query)
    if not stations:
        print("No station found.")
    for station in stations:
        print(f"{station.get('id')}\t{station.get('name')}")
    return 0


async def _resolve_station(client: TrainlineClient, query: str) -> Dict[str, str]:
    stations = await resources.search_stations(client, query)
    if not stations:
        raise ValidationError(f"No station matches {query!r}")
    return {"id": str(stations[0].get("id")), "name": stations[0].get("name") or query}


async def cmd_search(args: argparse.Namespace, settings: Settings) -> int:
    blob = _require_session(settings)
    passenger_ids = [str(p["id"]) for p in blob.passengers if p.get("id") is not None]
    card_ids = sorted({str(card) for p in blob.passengers for card in p.get("card_ids") or ()})
    if not passenger_ids:
        raise ValidationError("No passenger is registered on this account")

    async with _client(settings, blob) as client:
        departure = await _resolve_station(client, args.departure)
        arrival = await _resolve_station(client, args.arrival)
        print(f"{departure['name']} -> {arrival['name']}")
        itineraries = await search_itineraries(
            client,
            departure["id"],
            arrival["id"],
            args.date,
            passenger_ids,
            card_ids,
            flexibility=args.flexibility,
        )
    if args.json:
        print(to_json(itineraries))
        return 0
    if not itineraries:
        print("No journey found.")
    for index, itinerary in enumerate(itineraries, start=1):
        print("\n".join(format_itinerary(index, itinerary)))
    return 0


async def cmd_book(args: argparse.Namespace, settings: Settings) -> int:
    async with _client(settings, _require_session(settings)) as client:
        await resources.book_trip(client, args.search_id, args.folder_id)
    print("The trip has been added to your basket.")
    return 0


async def cmd_select(args: argparse.Namespace, settings: Settings) -> int:
    async with _client(settings, _require_session(settings)) as client:
        basket = await list_basket(client)
        unknown = set(args.pnr_ids) - {trip.pnr_id for trip in basket}
        if unknown:
            raise ValidationError(f"Not in your basket: {', '.join(sorted(unknown))}")
        changed = await apply_selection(client, basket, args.pnr_ids)
    print(f"{changed} reservation(s) updated.")
    return 0


async def cmd_cards(args: argparse.Namespace, settings: Settings) -> int:
    async with _client(settings, _require_session(settings)) as client:
        cards = await resources.payment_cards(client)
    if not cards:
        print("No payment card registered.")
    for card in cards:
        print(f"{card.get('id')}\t{card.get('label') or card.get('number') or ''}")
    return 0


async def cmd_pay(args: argparse.Namespace, settings: Settings) -> int:
    async with _client(settings, _require_session(settings)) as client:
        selected = [trip for trip in await list_basket(client) if trip.is_selected]
        if not selected:
            print("Nothing is selected in your basket.")
            return 0
        cvv = await asyncio.to_thread(getpass.getpass, "CVV: ")
        result = await pay_for_selection(client, args.card_id, cvv, selected)
    result.raise_for_outcome()
    print(f"Payment {result.payment_id} accepted: {_price(result.total_cents, result.currency)}")
    return 0


Command = Callable[[argparse.Namespace, Settings], Awaitable[int]]


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="trainline", description="Book train tickets on Trainline")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="log debug information")
    parser.add_argument("--json", action="store_true", help="print trips and journeys as JSON")
    sub = parser.add_subparsers(dest="command", required=True)

    login = sub.add_parser("login", help="log in to your Trainline account")
    login.add_argument("email")
    login.set_defaults(handler=cmd_login)

    sub.add_parser("logout", help="log out").set_defaults(handler=cmd_logout)
    sub.add_parser("trips", help="list your ticketed trips").set_defaults(handler=cmd_trips)
    sub.add_parser("basket", help="list the trips in your basket").set_defaults(handler=cmd_basket)
    sub.add_parser("cards", help="list your payment cards").set_defaults(handler=cmd_cards)

    stations = sub.add_parser("stations", help="search a station")
    stations.add_argument("query")
    stations.set_defaults(handler=cmd_stations)

    search = sub.add_parser("search", help="search journeys")
    search.add_argument("departure", help="departure station name")
    search.add_argument("arrival", help="arrival station name")
    search.add_argument("date", help="departure date, e.g. 2017-06-01T08:00:00+02:00")
    search.add_argument("--flexibility", default=None, help="fare flexibility to keep")
    search.set_defaults(handler=cmd_search)

    book = sub.add_parser("book", help="add a searched fare to your basket")
    book.add_argument("search_id")
    book.add_argument("folder_id")
    book.set_defaults(handler=cmd_book)

    select = sub.add_parser("select", help="choose which basket reservations to pay")
    select.add_argument("pnr_ids", nargs="*")
    select.set_defaults(handler=cmd_select)

    pay = sub.add_parser("pay", help="pay for the selected reservations")
    pay.add_argument("card_id")
    pay.set_defaults(handler=cmd_pay)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    # 配置日志
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else settings.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    handler: Command = args.handler
    try:
        return asyncio.run(handler(args, settings))
    except AuthError as exc:
        print(str(exc), file=sys.stderr)
    except ValidationError as exc:
        print(str(exc), file=sys.stderr)
    except PaymentDeclined as exc:
        print(f"Your payment was declined: {exc}", file=sys.stderr)
    except SelectionError as exc:
        print(
            f"Only {exc.applied} of {exc.total} basket change(s) were applied, please try again.",
            file=sys.stderr,
        )
    except DataIntegrityError as exc:
        logger.error(f"Inconsistent API data: {exc}")
        print("Trainline sent data this client does not understand.", file=sys.stderr)
    except TransportError as exc:
        logger.error(f"Request failed: {exc}")
        print("Could not reach Trainline, please try again.", file=sys.stderr)
    except KeyboardInterrupt:
        print(file=sys.stderr)
    return 1


if __name__ == "__main__":
    sys.exit(main())
