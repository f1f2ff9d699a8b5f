from __future__ import annotations

import datetime as dt
import json
import uuid
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum

from sqlalchemy import Date, DateTime, Enum as SQLEnum, Numeric, String, Text, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class Base(DeclarativeBase):
    pass


def new_id() -> str:
    return str(uuid.uuid4())


class OrderStatus(str, Enum):
    PENDING = 'pending'
    COMPLETED = 'completed'
    PICKED_UP = 'picked_up'
    CANCELLED = 'cancelled'


@dataclass(frozen=True)
class LineItem:
    item_type_id: str | None
    name: str
    category: str
    price: Decimal
    quantity: int

    @property
    def line_total(self) -> Decimal:
        return self.price * self.quantity

    def to_dict(self) -> dict:
        return {
            'id': self.item_type_id,
            'name': self.name,
            'category': self.category,
            'price': self.price,
            'quantity': self.quantity,
        }

    @classmethod
    def from_dict(cls, raw: dict) -> LineItem:
        return cls(
            item_type_id=raw.get('id'),
            name=raw.get('name', ''),
            category=raw.get('category', ''),
            price=Decimal(str(raw.get('price', 0))),
            quantity=int(raw.get('quantity', 0)),
        )


def _json_number(value: Decimal) -> int | float:
    if value == value.to_integral_value():
        return int(value)
    return float(value)


class LineItemList(TypeDecorator):
    """Order lines persisted as a JSON text list of {id, name, category, price, quantity}."""

    impl = Text
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        payload = []
        for item in value:
            raw = item.to_dict()
            raw['price'] = _json_number(item.price)
            payload.append(raw)
        return json.dumps(payload, ensure_ascii=False)

    def process_result_value(self, value, dialect):
        if not value:
            return []
        return [LineItem.from_dict(raw) for raw in json.loads(value)]


class Order(Base):
    __tablename__ = 'orders'

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_id)
    customer_name: Mapped[str] = mapped_column(Text, nullable=False)
    customer_phone: Mapped[str | None] = mapped_column(Text)
    items: Mapped[list[LineItem]] = mapped_column(LineItemList, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    pickup_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[OrderStatus] = mapped_column(
        SQLEnum(OrderStatus, native_enum=False, values_callable=lambda enum: [member.value for member in enum]),
        nullable=False,
        default=OrderStatus.PENDING,
        server_default=OrderStatus.PENDING.value,
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.current_timestamp())
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.current_timestamp())


class Expense(Base):
    __tablename__ = 'expenses'

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_id)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    category: Mapped[str] = mapped_column(Text, nullable=False)
    # `date` shadows the type inside the class body
    date: Mapped[dt.date] = mapped_column(Date, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.current_timestamp())


class ItemType(Base):
    __tablename__ = 'item_types'

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_id)
    name: Mapped[str] = mapped_column(Text, nullable=False)
    price: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    category: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.current_timestamp())


class Customer(Base):
    __tablename__ = 'customers'

    id: Mapped[str] = mapped_column(String, primary_key=True, default=new_id)
    first_name: Mapped[str] = mapped_column(Text, nullable=False)
    last_name: Mapped[str] = mapped_column(Text, nullable=False)
    phone: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.current_timestamp())

    @property
    def full_name(self) -> str:
        return f'{self.first_name} {self.last_name}'.strip()


class Setting(Base):
    __tablename__ = 'settings'

    key: Mapped[str] = mapped_column(Text, primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime, nullable=False, server_default=func.current_timestamp())
