from __future__ import annotations

import re
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from pressia.models import Customer
from pressia.services.validation import required_text

WS_RE = re.compile(r'\s+')


def normalize_name(value: str | None) -> str:
    return WS_RE.sub(' ', (value or '').strip()).casefold()


def split_full_name(value: str) -> tuple[str, str]:
    parts = WS_RE.sub(' ', value.strip()).split(' ', 1)
    if len(parts) == 1:
        return parts[0], ''
    return parts[0], parts[1]


def _clean_fields(data: dict) -> dict:
    return {
        'first_name': required_text(data.get('first_name'), 'First name'),
        'last_name': required_text(data.get('last_name'), 'Last name'),
        'phone': required_text(data.get('phone'), 'Phone'),
    }


def list_customers(db: Session) -> list[Customer]:
    return db.execute(select(Customer).order_by(Customer.first_name.asc(), Customer.last_name.asc())).scalars().all()


def get_customer(db: Session, customer_id: str) -> Customer | None:
    return db.execute(select(Customer).where(Customer.id == customer_id)).scalar_one_or_none()


def search_customers(db: Session, term: str | None) -> list[Customer]:
    # SQLite's LIKE only folds ASCII case, so accented names are matched here instead.
    needle = str(term or '').strip().casefold()
    customers = list_customers(db)
    if not needle:
        return customers
    return [
        customer
        for customer in customers
        if needle in customer.first_name.casefold()
        or needle in customer.last_name.casefold()
        or needle in customer.phone.casefold()
    ]


def find_matching_customer(db: Session, *, full_name: str, phone: str | None) -> Customer | None:
    phone = (phone or '').strip()
    if phone:
        by_phone = db.execute(select(Customer).where(Customer.phone == phone).limit(1)).scalar_one_or_none()
        if by_phone:
            return by_phone

    wanted = normalize_name(full_name)
    if not wanted:
        return None
    for customer in list_customers(db):
        if normalize_name(customer.full_name) == wanted:
            return customer
    return None


def create_customer(db: Session, *, data: dict, now: datetime) -> Customer:
    fields = _clean_fields(data)
    customer = Customer(created_at=now, **fields)
    db.add(customer)
    db.flush()
    return customer


def update_customer(db: Session, *, customer_id: str, data: dict) -> Customer | None:
    fields = _clean_fields(data)
    customer = get_customer(db, customer_id)
    if not customer:
        return None
    for key, value in fields.items():
        setattr(customer, key, value)
    db.flush()
    return customer


def delete_customer(db: Session, *, customer_id: str) -> bool:
    customer = get_customer(db, customer_id)
    if not customer:
        return False
    db.delete(customer)
    db.flush()
    return True
