from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from pressia.models import Expense
from pressia.services.validation import parse_date, positive_decimal, required_text

# Suggested categories; any non-empty category is accepted.
EXPENSE_CATEGORIES = (
    'Électricité',
    'Eau',
    'Produits de nettoyage',
    'Maintenance',
    'Salaire',
    'Transport',
    'Marketing',
    'Fournitures',
    'Autres',
)


def _clean_fields(data: dict) -> dict:
    return {
        'description': required_text(data.get('description'), 'Description'),
        'amount': positive_decimal(data.get('amount'), 'Amount'),
        'category': required_text(data.get('category'), 'Category'),
        'date': parse_date(data.get('date'), 'Date'),
    }


def list_expenses(db: Session) -> list[Expense]:
    return db.execute(select(Expense).order_by(Expense.date.desc(), Expense.created_at.desc())).scalars().all()


def get_expense(db: Session, expense_id: str) -> Expense | None:
    return db.execute(select(Expense).where(Expense.id == expense_id)).scalar_one_or_none()


def create_expense(db: Session, *, data: dict, now: datetime) -> Expense:
    fields = _clean_fields(data)
    expense = Expense(created_at=now, **fields)
    db.add(expense)
    db.flush()
    return expense


def update_expense(db: Session, *, expense_id: str, data: dict) -> Expense | None:
    fields = _clean_fields(data)
    expense = get_expense(db, expense_id)
    if not expense:
        return None
    for key, value in fields.items():
        setattr(expense, key, value)
    db.flush()
    return expense


def delete_expense(db: Session, *, expense_id: str) -> bool:
    expense = get_expense(db, expense_id)
    if not expense:
        return False
    db.delete(expense)
    db.flush()
    return True
