"""预订核心 - 行程聚合、筛选与支付编排"""

from .orchestrator import (
    PaymentResult,
    SelectionToggle,
    apply_selection,
    pay_for_selection,
    plan_selection,
)
from .reservations import filter_by_status, join_reservations, list_basket, list_trips
from .search import aggregate_search, build_stops, search_itineraries

__all__ = [
    # 预订记录
    "join_reservations",
    "filter_by_status",
    "list_trips",
    "list_basket",
    # 搜索
    "aggregate_search",
    "build_stops",
    "search_itineraries",
    # 编排
    "SelectionToggle",
    "PaymentResult",
    "plan_selection",
    "apply_selection",
    "pay_for_selection",
]
