from __future__ import annotations

from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from pressia.models import Setting
from pressia.services.validation import required_text


def list_settings(db: Session) -> dict[str, str]:
    rows = db.execute(select(Setting.key, Setting.value).order_by(Setting.key.asc())).all()
    return {row.key: row.value for row in rows}


def get_setting(db: Session, key: str, default: str | None = None) -> str | None:
    value = db.execute(select(Setting.value).where(Setting.key == key)).scalar_one_or_none()
    return default if value is None else value


def set_setting(db: Session, *, key: str, value, now: datetime) -> Setting:
    clean_key = required_text(key, 'Setting key')
    row = db.execute(select(Setting).where(Setting.key == clean_key)).scalar_one_or_none()
    if row is None:
        row = Setting(key=clean_key, value='', updated_at=now)
        db.add(row)
    row.value = '' if value is None else str(value)
    row.updated_at = now
    db.flush()
    return row
