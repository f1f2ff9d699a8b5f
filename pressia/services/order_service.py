from __future__ import annotations

import logging
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import select
from sqlalchemy.orm import Session

from pressia.errors import NotFoundError, ValidationError
from pressia.models import Customer, LineItem, Order, OrderStatus
from pressia.services.customer_service import find_matching_customer, split_full_name
from pressia.services.validation import optional_text, parse_date, positive_decimal, positive_int, required_text

logger = logging.getLogger(__name__)

# Only enforced when strict transitions are switched on.
ALLOWED_TRANSITIONS: dict[OrderStatus, frozenset[OrderStatus]] = {
    OrderStatus.PENDING: frozenset({OrderStatus.COMPLETED, OrderStatus.CANCELLED}),
    OrderStatus.COMPLETED: frozenset({OrderStatus.PICKED_UP}),
    OrderStatus.PICKED_UP: frozenset(),
    OrderStatus.CANCELLED: frozenset(),
}


def parse_status(value) -> OrderStatus:
    if isinstance(value, OrderStatus):
        return value
    try:
        return OrderStatus(str(value).strip().lower())
    except ValueError as exc:
        raise ValidationError(f'Invalid order status: {value}') from exc


def is_transition_allowed(current: OrderStatus, new: OrderStatus) -> bool:
    return current == new or new in ALLOWED_TRANSITIONS[current]


def parse_line_items(raw_items) -> list[LineItem]:
    if not raw_items:
        raise ValidationError('Select at least one item')
    if not isinstance(raw_items, (list, tuple)):
        raise ValidationError('Order items must be a list')

    items: list[LineItem] = []
    for raw in raw_items:
        if isinstance(raw, LineItem):
            raw = raw.to_dict()
        if not isinstance(raw, dict):
            raise ValidationError('Invalid order item')
        name = required_text(raw.get('name'), 'Item name')
        items.append(
            LineItem(
                item_type_id=optional_text(raw.get('id')),
                name=name,
                category=optional_text(raw.get('category')) or '',
                price=positive_decimal(raw.get('price'), f'Price for {name}'),
                quantity=positive_int(raw.get('quantity'), f'Quantity for {name}'),
            )
        )
    return items


def compute_total(items: list[LineItem]) -> Decimal:
    return sum((item.line_total for item in items), Decimal('0'))


def list_orders(db: Session) -> list[Order]:
    return db.execute(select(Order).order_by(Order.created_at.desc())).scalars().all()


def list_recent_orders(db: Session, *, limit: int = 5) -> list[Order]:
    if limit <= 0:
        raise ValidationError('Limit must be greater than zero')
    return db.execute(select(Order).order_by(Order.created_at.desc()).limit(limit)).scalars().all()


def get_order(db: Session, order_id: str) -> Order | None:
    return db.execute(select(Order).where(Order.id == order_id)).scalar_one_or_none()


def create_order(
    db: Session,
    *,
    customer_name: str,
    customer_phone: str | None,
    items,
    pickup_date: date | str,
    now: datetime,
) -> Order:
    clean_name = required_text(customer_name, 'Customer name')
    line_items = parse_line_items(items)
    pickup = parse_date(pickup_date, 'Pickup date')

    order = Order(
        customer_name=clean_name,
        customer_phone=optional_text(customer_phone),
        items=line_items,
        total_amount=compute_total(line_items),
        pickup_date=pickup,
        status=OrderStatus.PENDING,
        created_at=now,
        updated_at=now,
    )
    db.add(order)
    db.flush()
    logger.info('Created order %s for %s (total %s)', order.id, clean_name, order.total_amount)
    return order


def ensure_order_customer(
    db: Session,
    *,
    customer_name: str,
    customer_phone: str | None,
    now: datetime,
) -> Customer:
    existing = find_matching_customer(db, full_name=customer_name, phone=customer_phone)
    if existing:
        return existing

    first_name, last_name = split_full_name(customer_name)
    customer = Customer(
        first_name=first_name,
        last_name=last_name,
        phone=(customer_phone or '').strip(),
        created_at=now,
    )
    db.add(customer)
    db.flush()
    logger.info('Added %s to the address book from a new order', customer.full_name)
    return customer


def update_order_status(
    db: Session,
    *,
    order_id: str,
    status,
    now: datetime,
    strict: bool = False,
) -> Order:
    new_status = parse_status(status)
    order = get_order(db, order_id)
    if not order:
        raise NotFoundError(f'Order not found: {order_id}')

    current = order.status
    if strict and not is_transition_allowed(current, new_status):
        raise ValidationError(f'Cannot move order from {current.value} to {new_status.value}')

    order.status = new_status
    order.updated_at = now
    db.flush()
    logger.info('Order %s status %s -> %s', order.id, current.value, new_status.value)
    return order
