"""基础模型 - Trainline API 返回的扁平参考数据"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import FrozenSet, Tuple


class BookingStatus(str, Enum):
    """PNR 预订状态"""
    BOOKED = "booked"  # 购物篮中，尚未出票
    EMITTED = "emitted"  # 已出票
    OTHER = "other"

    @classmethod
    def parse(cls, value: object) -> "BookingStatus":
        """Map an upstream status string, folding anything unknown into ``OTHER``."""
        if isinstance(value, cls):
            return value
        for member in cls:
            if member.value == value:
                return member
        return cls.OTHER


@dataclass(frozen=True)
class Station:
    """车站"""
    id: str
    name: str


@dataclass(frozen=True)
class Passenger:
    """乘客"""
    id: str
    first_name: str = ""
    last_name: str = ""
    card_ids: FrozenSet[str] = field(default_factory=frozenset)  # 优惠卡ID

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()


@dataclass(frozen=True)
class Folder:
    """One fare-class leg grouped under a reservation."""
    id: str
    pnr_id: str = ""
    flexibility: str = ""  # nonflexi | semiflexi | flexi
    travel_class: str = ""  # economy | first ...


@dataclass(frozen=True)
class Pnr:
    """预订记录（PNR）"""
    id: str
    code: str  # 人类可读的预订编号
    booking_status: BookingStatus = BookingStatus.OTHER
    is_selected: bool = False


@dataclass(frozen=True)
class Segment:
    """一段实际乘车区间（单一车次）"""
    id: str
    departure_station_id: str
    arrival_station_id: str
    departure_date: datetime
    arrival_date: datetime
    train_name: str = ""


@dataclass(frozen=True)
class TripCandidate:
    """Raw search result row; rows sharing a digest differ only by fare class."""
    id: str
    digest: str
    folder_id: str
    segment_ids: Tuple[str, ...]
    cents: int
    currency: str
    departure_date: datetime
    arrival_date: datetime
    departure_station_id: str
    arrival_station_id: str


__all__ = [
    "BookingStatus",
    "Station",
    "Passenger",
    "Folder",
    "Pnr",
    "Segment",
    "TripCandidate",
]
