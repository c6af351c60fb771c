"""
Trainline 命令行客户端
登录、查看行程与购物篮、搜索车票、选择并支付

Quickstart::

    import asyncio
    from trainline import TrainlineClient, ApiSession, list_trips

    async def main():
        async with TrainlineClient(ApiSession(token="...")) as client:
            for trip in await list_trips(client):
                print(trip.reference, trip.departure_station.name)

    asyncio.run(main())
"""

__version__ = "1.0.0"

from .api import ApiSession, TrainlineClient, create_client
from .booking import (
    aggregate_search,
    apply_selection,
    filter_by_status,
    join_reservations,
    list_basket,
    list_trips,
    pay_for_selection,
    search_itineraries,
)
from .config import Settings, get_settings, load_env
from .errors import (
    AuthError,
    DataIntegrityError,
    PaymentDeclined,
    TrainlineError,
    TransportError,
    ValidationError,
)

__all__ = [
    "ApiSession",
    "TrainlineClient",
    "create_client",
    "Settings",
    "get_settings",
    "load_env",
    "join_reservations",
    "filter_by_status",
    "aggregate_search",
    "list_trips",
    "list_basket",
    "search_itineraries",
    "apply_selection",
    "pay_for_selection",
    "TrainlineError",
    "TransportError",
    "AuthError",
    "DataIntegrityError",
    "ValidationError",
    "PaymentDeclined",
    "__version__",
]
