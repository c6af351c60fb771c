"""行程模型 - 聚合后供展示和预订使用的视图对象"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from .base import BookingStatus, Passenger, Station


@dataclass(frozen=True)
class Trip:
    """A reservation trip with every id resolved against the reference tables."""

    id: str
    reference: str  # PNR code
    departure_station: Station
    arrival_station: Station
    departure_date: datetime
    arrival_date: datetime
    passenger: Passenger
    cents: int
    currency: str
    booking_status: BookingStatus
    pnr_id: str
    is_selected: bool = False


@dataclass(frozen=True)
class BookingHandle:
    """Opaque token turning a chosen fare into a basket booking."""
    search_id: str
    folder_id: str


@dataclass(frozen=True)
class Fare:
    """某一舱位的价格"""
    cents: int
    currency: str
    booking_handle: BookingHandle


@dataclass(frozen=True)
class SegmentView:
    """Segment with station names resolved."""
    departure_station: str
    arrival_station: str
    departure_date: datetime
    arrival_date: datetime
    train_name: str = ""


@dataclass(frozen=True)
class Stop:
    """换乘停靠：在 station 换乘 train_name，等待 duration"""
    station: str
    train_name: str
    duration: timedelta


@dataclass
class Itinerary:
    """搜索结果行程

    一个 Itinerary 聚合 digest 相同的所有候选结果，不同舱位记录在
    ``travel_classes`` 中。``segments`` 和 ``stops`` 按实际乘车顺序排列。
    """

    digest: str
    departure_station: str
    arrival_station: str
    departure_date: datetime
    arrival_date: datetime
    segments: List[SegmentView] = field(default_factory=list)
    stops: List[Stop] = field(default_factory=list)
    travel_classes: Dict[str, Fare] = field(default_factory=dict)

    @property
    def duration(self) -> timedelta:
        return self.arrival_date - self.departure_date

    @property
    def cheapest(self) -> Optional[Fare]:
        """Lowest fare across travel classes, ``None`` when there is none."""
        if not self.travel_classes:
            return None
        return min(self.travel_classes.values(), key=lambda fare: fare.cents)


__all__ = [
    "Trip",
    "BookingHandle",
    "Fare",
    "SegmentView",
    "Stop",
    "Itinerary",
]
