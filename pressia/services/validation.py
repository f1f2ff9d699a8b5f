from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal, InvalidOperation

from pressia.errors import ValidationError

CENT = Decimal('0.01')


def required_text(value, label: str) -> str:
    clean = str(value).strip() if value is not None else ''
    if not clean:
        raise ValidationError(f'{label} is required')
    return clean


def optional_text(value) -> str | None:
    if value is None:
        return None
    clean = str(value).strip()
    return clean or None


def positive_decimal(value, label: str) -> Decimal:
    if value is None or isinstance(value, bool) or str(value).strip() == '':
        raise ValidationError(f'{label} is required')
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except InvalidOperation as exc:
        raise ValidationError(f'Invalid {label.lower()}') from exc
    if not amount.is_finite():
        raise ValidationError(f'Invalid {label.lower()}')
    try:
        whole_cents = amount == amount.quantize(CENT)
    except InvalidOperation as exc:
        raise ValidationError(f'Invalid {label.lower()}') from exc
    if not whole_cents:
        # Money columns keep two decimal places.
        raise ValidationError(f'{label} cannot have more than two decimal places')
    if amount <= 0:
        raise ValidationError(f'{label} must be greater than zero')
    return amount


def positive_int(value, label: str) -> int:
    if isinstance(value, bool):
        raise ValidationError(f'Invalid {label.lower()}')
    try:
        number = int(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f'Invalid {label.lower()}') from exc
    if number != value and not isinstance(value, str):
        # 1.5 would otherwise be truncated silently.
        raise ValidationError(f'Invalid {label.lower()}')
    if number <= 0:
        raise ValidationError(f'{label} must be greater than zero')
    return number


def parse_date(value, label: str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    raw = str(value).strip() if value is not None else ''
    if not raw:
        raise ValidationError(f'{label} is required')
    try:
        # Accept full ISO timestamps as well; only the calendar day is kept.
        return date.fromisoformat(raw[:10])
    except ValueError as exc:
        raise ValidationError(f'Invalid {label.lower()}: {raw}') from exc
