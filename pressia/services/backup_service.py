from __future__ import annotations

import logging
import shutil
from datetime import date
from pathlib import Path

from pressia.db import Storage
from pressia.errors import ValidationError

logger = logging.getLogger(__name__)

SQLITE_HEADER = b'SQLite format 3\x00'


def default_export_filename(today: date) -> str:
    return f'pressia-backup-{today.isoformat()}.sqlite'


def is_sqlite_file(path: Path) -> bool:
    if not path.is_file():
        return False
    with path.open('rb') as handle:
        return handle.read(len(SQLITE_HEADER)) == SQLITE_HEADER


def export_database(storage: Storage, destination: str | Path) -> Path:
    target = Path(destination).expanduser()
    if target.is_dir():
        raise ValidationError(f'Export destination is a directory: {target}')
    if target.resolve() == storage.path.resolve():
        raise ValidationError('Cannot export the database onto itself')

    target.parent.mkdir(parents=True, exist_ok=True)
    storage.release_connections()
    shutil.copy2(storage.path, target)
    logger.info('Exported database to %s', target)
    return target


def import_database(storage: Storage, source: str | Path) -> Path:
    origin = Path(source).expanduser()
    if not origin.is_file():
        raise ValidationError(f'Import file not found: {origin}')
    if not is_sqlite_file(origin):
        raise ValidationError(f'Not a SQLite database: {origin}')
    if origin.resolve() == storage.path.resolve():
        raise ValidationError('Cannot import the active database onto itself')

    storage.close()
    try:
        shutil.copyfile(origin, storage.path)
    finally:
        # Reopen even when the copy fails. The imported file is taken as is, without
        # refilling an empty price list.
        storage.open(seed_defaults=False)
    logger.info('Imported database from %s', origin)
    return storage.path
