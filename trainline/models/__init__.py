"""数据模型模块 - Trainline 客户端的核心数据结构

目录结构：
- base.py: API 参考数据（Station、Passenger、Folder、Pnr、Segment、TripCandidate）
- trip.py: 聚合后的视图对象（Trip、Itinerary、Stop、Fare、BookingHandle）
- serialization.py: 序列化工具
"""

# 基础模型
from .base import BookingStatus, Folder, Passenger, Pnr, Segment, Station, TripCandidate

# 行程模型
from .trip import BookingHandle, Fare, Itinerary, SegmentView, Stop, Trip

__all__ = [
    # 基础模型
    "BookingStatus",
    "Station",
    "Passenger",
    "Folder",
    "Pnr",
    "Segment",
    "TripCandidate",
    # 行程模型
    "Trip",
    "BookingHandle",
    "Fare",
    "SegmentView",
    "Stop",
    "Itinerary",
]
