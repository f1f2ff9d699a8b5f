from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from pressia.models import ItemType
from pressia.services.validation import positive_decimal, required_text

ITEM_CATEGORIES = (
    'Vêtements Homme',
    'Vêtements Femme',
    'Vêtements Général',
    'Linge de maison',
    'Autres',
)

DEFAULT_ITEM_TYPES = (
    ('Chemise Homme', Decimal('500'), 'Vêtements Homme'),
    ('Pantalon Homme', Decimal('600'), 'Vêtements Homme'),
    ('Costume', Decimal('1200'), 'Vêtements Homme'),
    ('Robe', Decimal('800'), 'Vêtements Femme'),
    ('Jupe', Decimal('500'), 'Vêtements Femme'),
    ('Blouse', Decimal('400'), 'Vêtements Femme'),
    ('T-shirt', Decimal('300'), 'Vêtements Général'),
    ('Jeans', Decimal('700'), 'Vêtements Général'),
    ('Drap de lit', Decimal('800'), 'Linge de maison'),
    ('Serviette', Decimal('400'), 'Linge de maison'),
    ('Nappe', Decimal('600'), 'Linge de maison'),
)


def _clean_fields(data: dict) -> dict:
    return {
        'name': required_text(data.get('name'), 'Name'),
        'price': positive_decimal(data.get('price'), 'Price'),
        'category': required_text(data.get('category'), 'Category'),
    }


def list_item_types(db: Session) -> list[ItemType]:
    return db.execute(select(ItemType).order_by(ItemType.category.asc(), ItemType.name.asc())).scalars().all()


def get_item_type(db: Session, item_type_id: str) -> ItemType | None:
    return db.execute(select(ItemType).where(ItemType.id == item_type_id)).scalar_one_or_none()


def create_item_type(db: Session, *, data: dict, now: datetime) -> ItemType:
    fields = _clean_fields(data)
    item_type = ItemType(created_at=now, **fields)
    db.add(item_type)
    db.flush()
    return item_type


def update_item_type(db: Session, *, item_type_id: str, data: dict) -> ItemType | None:
    fields = _clean_fields(data)
    item_type = get_item_type(db, item_type_id)
    if not item_type:
        # Unknown ids are a silent no-op.
        return None
    item_type.name = fields['name']
    item_type.price = fields['price']
    item_type.category = fields['category']
    db.flush()
    return item_type


def delete_item_type(db: Session, *, item_type_id: str) -> bool:
    item_type = get_item_type(db, item_type_id)
    if not item_type:
        return False
    db.delete(item_type)
    db.flush()
    return True


def seed_default_item_types(db: Session, *, now: datetime | None = None) -> int:
    existing = db.execute(select(func.count()).select_from(ItemType)).scalar_one()
    if existing:
        return 0
    created_at = now or datetime.now()
    for name, price, category in DEFAULT_ITEM_TYPES:
        db.add(ItemType(name=name, price=price, category=category, created_at=created_at))
    db.flush()
    return len(DEFAULT_ITEM_TYPES)
