"""序列化工具 - API 原始数据解析与 JSON 编码"""

from __future__ import annotations

import json
from dataclasses import asdict, is_dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable, Dict, Iterable, Mapping, TypeVar

from ..errors import DataIntegrityError
from .base import BookingStatus, Folder, Passenger, Pnr, Segment, Station, TripCandidate

T = TypeVar("T")


# ==================== JSON编码器 ====================

class TrainlineJSONEncoder(json.JSONEncoder):
    """自定义JSON编码器，处理dataclass、datetime、timedelta、Enum等类型"""

    def default(self, obj: Any) -> Any:
        if isinstance(obj, datetime):
            return obj.isoformat()
        elif isinstance(obj, timedelta):
            return obj.total_seconds()
        elif isinstance(obj, Enum):
            return obj.value
        elif is_dataclass(obj):
            return asdict(obj)
        elif isinstance(obj, (set, frozenset)):
            return sorted(obj)
        return super().default(obj)


# ==================== 序列化函数 ====================

def to_dict(obj: Any) -> Dict[str, Any]:
    """将dataclass对象转换为可JSON化的字典"""
    if not is_dataclass(obj):
        raise TypeError(f"Expected dataclass, got {type(obj)}")
    return json.loads(to_json(obj))


def to_json(obj: Any, indent: int = 2) -> str:
    """将对象序列化为JSON字符串"""
    return json.dumps(obj, cls=TrainlineJSONEncoder, ensure_ascii=False, indent=indent)


# ==================== 反序列化函数 ====================

def require_field(data: Mapping[str, Any], key: str, kind: str) -> Any:
    value = data.get(key)
    if value is None:
        raise DataIntegrityError(f"{kind} {data.get('id', '?')} has no '{key}'")
    return value


def as_id(value: Any) -> str:
    """Ids come back as ints or strings depending on the collection."""
    return "" if value is None else str(value)


def parse_cents(data: Mapping[str, Any], kind: str) -> int:
    """Prices are integer cents, a missing price is not free."""
    value = require_field(data, "cents", kind)
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise DataIntegrityError(f"{kind} {data.get('id', '?')} has bad cents {value!r}") from exc


def parse_datetime(value: Any) -> datetime:
    """解析 ISO-8601 日期"""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError as exc:
            raise DataIntegrityError(f"Cannot parse date {value!r}") from exc
    else:
        raise DataIntegrityError(f"Cannot parse datetime from {type(value).__name__}")
    # 无时区的日期不能与带时区的日期相减
    if parsed.tzinfo is None:
        raise DataIntegrityError(f"Date {value!r} has no UTC offset")
    return parsed


def from_dict_station(data: Mapping[str, Any]) -> Station:
    """从字典创建Station对象"""
    return Station(
        id=as_id(require_field(data, "id", "station")),
        name=data.get("name") or "",
    )


def from_dict_passenger(data: Mapping[str, Any]) -> Passenger:
    """从字典创建Passenger对象"""
    return Passenger(
        id=as_id(require_field(data, "id", "passenger")),
        first_name=data.get("first_name") or "",
        last_name=data.get("last_name") or "",
        card_ids=frozenset(as_id(card) for card in data.get("card_ids") or ()),
    )


def from_dict_folder(data: Mapping[str, Any]) -> Folder:
    """从字典创建Folder对象"""
    return Folder(
        id=as_id(require_field(data, "id", "folder")),
        pnr_id=as_id(data.get("pnr_id")),
        flexibility=data.get("flexibility") or "",
        travel_class=data.get("travel_class") or "",
    )


def from_dict_pnr(data: Mapping[str, Any]) -> Pnr:
    """从字典创建Pnr对象"""
    return Pnr(
        id=as_id(require_field(data, "id", "pnr")),
        code=data.get("code") or "",
        booking_status=BookingStatus.parse(data.get("booking_status")),
        is_selected=bool(data.get("is_selected", False)),
    )


def from_dict_segment(data: Mapping[str, Any]) -> Segment:
    """从字典创建Segment对象"""
    return Segment(
        id=as_id(require_field(data, "id", "segment")),
        departure_station_id=as_id(require_field(data, "departure_station_id", "segment")),
        arrival_station_id=as_id(require_field(data, "arrival_station_id", "segment")),
        departure_date=parse_datetime(require_field(data, "departure_date", "segment")),
        arrival_date=parse_datetime(require_field(data, "arrival_date", "segment")),
        train_name=data.get("train_name") or "",
    )


def from_dict_trip_candidate(data: Mapping[str, Any]) -> TripCandidate:
    """从字典创建TripCandidate对象"""
    return TripCandidate(
        id=as_id(data.get("id")),
        digest=as_id(require_field(data, "digest", "trip")),
        folder_id=as_id(require_field(data, "folder_id", "trip")),
        segment_ids=tuple(as_id(s) for s in data.get("segment_ids") or ()),
        cents=parse_cents(data, "trip"),
        currency=require_field(data, "currency", "trip"),
        departure_date=parse_datetime(require_field(data, "departure_date", "trip")),
        arrival_date=parse_datetime(require_field(data, "arrival_date", "trip")),
        departure_station_id=as_id(require_field(data, "departure_station_id", "trip")),
        arrival_station_id=as_id(require_field(data, "arrival_station_id", "trip")),
    )


def index_by_id(rows: Iterable[Mapping[str, Any]], parser: Callable[[Mapping[str, Any]], T]) -> Dict[str, T]:
    """Parse a flat API collection into an insertion-ordered ``id -> entity`` map."""
    index: Dict[str, T] = {}
    for row in rows or ():
        entity = parser(row)
        index[entity.id] = entity  # type: ignore[attr-defined]
    return index


def lookup(index: Mapping[str, T], key: str, kind: str) -> T:
    """Resolve ``key`` in ``index`` or fail the whole operation."""
    try:
        return index[key]
    except KeyError:
        raise DataIntegrityError(f"Unknown {kind} id {key!r}") from None


__all__ = [
    "TrainlineJSONEncoder",
    "to_dict",
    "to_json",
    "require_field",
    "as_id",
    "parse_cents",
    "parse_datetime",
    "from_dict_station",
    "from_dict_passenger",
    "from_dict_folder",
    "from_dict_pnr",
    "from_dict_segment",
    "from_dict_trip_candidate",
    "index_by_id",
    "lookup",
]
