from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from datetime import date, datetime, timedelta
from enum import Enum

from pressia.errors import ValidationError
from pressia.models import Order, OrderStatus

URGENT_WINDOW_DAYS = 3
WEEK_WINDOW_DAYS = 7


class OrderPriority(str, Enum):
    OVERDUE = 'overdue'
    TODAY = 'today'
    TOMORROW = 'tomorrow'
    URGENT = 'urgent'
    NORMAL = 'normal'


class DateFilter(str, Enum):
    OVERDUE = 'overdue'
    TODAY = 'today'
    TOMORROW = 'tomorrow'
    THIS_WEEK = 'this_week'


PRIORITY_RANK = {priority: rank for rank, priority in enumerate(OrderPriority)}


@dataclass(frozen=True)
class TrackedOrder:
    order: Order
    priority: OrderPriority


def _today(now: datetime | date) -> date:
    return now.date() if isinstance(now, datetime) else now


def classify_order_priority(*, pickup_date: date, status: OrderStatus, now: datetime | date) -> OrderPriority:
    if status != OrderStatus.PENDING:
        return OrderPriority.NORMAL

    today = _today(now)
    if pickup_date < today:
        return OrderPriority.OVERDUE
    if pickup_date == today:
        return OrderPriority.TODAY
    if pickup_date == today + timedelta(days=1):
        return OrderPriority.TOMORROW
    if pickup_date <= today + timedelta(days=URGENT_WINDOW_DAYS):
        return OrderPriority.URGENT
    return OrderPriority.NORMAL


def order_priority(order: Order, *, now: datetime | date) -> OrderPriority:
    return classify_order_priority(pickup_date=order.pickup_date, status=order.status, now=now)


def parse_date_filter(value) -> DateFilter | None:
    if value is None or value == '' or value == 'all':
        return None
    try:
        return DateFilter(str(value))
    except ValueError as exc:
        raise ValidationError(f'Invalid date filter: {value}') from exc


def _matches_search(order: Order, needle: str) -> bool:
    return (
        needle.casefold() in order.customer_name.casefold()
        or needle in (order.customer_phone or '')
        or needle in order.id
    )


def _matches_date_filter(order: Order, date_filter: DateFilter, today: date) -> bool:
    if order.status != OrderStatus.PENDING:
        return False
    if date_filter == DateFilter.OVERDUE:
        return order.pickup_date < today
    if date_filter == DateFilter.TODAY:
        return order.pickup_date == today
    if date_filter == DateFilter.TOMORROW:
        return order.pickup_date == today + timedelta(days=1)
    return today <= order.pickup_date <= today + timedelta(days=WEEK_WINDOW_DAYS)


def filter_orders(
    orders: list[Order],
    *,
    now: datetime | date,
    search: str | None = None,
    status=None,
    date_filter=None,
) -> list[Order]:
    today = _today(now)
    needle = str(search).strip() if search is not None else ''
    wanted_status = None
    if status not in (None, '', 'all'):
        try:
            wanted_status = OrderStatus(str(status))
        except ValueError as exc:
            raise ValidationError(f'Invalid order status: {status}') from exc
    window = parse_date_filter(date_filter)

    filtered = []
    for order in orders:
        if needle and not _matches_search(order, needle):
            continue
        if wanted_status is not None and order.status != wanted_status:
            continue
        if window is not None and not _matches_date_filter(order, window, today):
            continue
        filtered.append(order)
    return filtered


def track_orders(
    orders: list[Order],
    *,
    now: datetime | date,
    search: str | None = None,
    status=None,
    date_filter=None,
) -> list[TrackedOrder]:
    tracked = [
        TrackedOrder(order=order, priority=order_priority(order, now=now))
        for order in filter_orders(orders, now=now, search=search, status=status, date_filter=date_filter)
    ]
    tracked.sort(key=lambda row: (PRIORITY_RANK[row.priority], row.order.pickup_date))
    return tracked


def count_by_priority(orders: list[Order], *, now: datetime | date) -> dict[OrderPriority, int]:
    counts = Counter(order_priority(order, now=now) for order in orders)
    return {priority: counts.get(priority, 0) for priority in OrderPriority}
