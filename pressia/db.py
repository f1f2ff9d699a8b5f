from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from pressia.errors import StorageError
from pressia.models import Base
from pressia.services.item_type_service import seed_default_item_types

logger = logging.getLogger(__name__)


class Storage:
    """Owns the engine and session factory for one local SQLite file.

    The handle is passed explicitly to whatever needs the database. After the file is
    replaced on disk (see ``backup_service.import_database``) call :meth:`reopen` so the
    next session sees the new content.
    """

    def __init__(self, path: str | Path, *, seed_defaults: bool = True, echo: bool = False) -> None:
        self.path = Path(path)
        self.seed_defaults = seed_defaults
        self.echo = echo
        self._engine: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None
        self.open()

    @property
    def url(self) -> str:
        return f'sqlite:///{self.path}'

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise StorageError('Storage is closed')
        return self._engine

    def open(self, *, seed_defaults: bool | None = None) -> None:
        if self._engine is not None:
            return
        if seed_defaults is None:
            seed_defaults = self.seed_defaults
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self._engine = create_engine(self.url, echo=self.echo)
        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)
        Base.metadata.create_all(self._engine)
        logger.info('Opened database %s', self.path)

        if seed_defaults:
            with self.session() as db:
                created = seed_default_item_types(db)
            if created:
                logger.info('Seeded %d default item types', created)

    def close(self) -> None:
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info('Closed database %s', self.path)

    def reopen(self, *, seed_defaults: bool | None = None) -> None:
        self.close()
        self.open(seed_defaults=seed_defaults)

    def release_connections(self) -> None:
        """Return pooled connections so the file can be copied consistently."""
        if self._engine is not None:
            self._engine.dispose()

    @contextmanager
    def session(self) -> Iterator[Session]:
        if self._session_factory is None:
            raise StorageError('Storage is closed')
        with self._session_factory() as db:
            try:
                yield db
                db.commit()
            except Exception:
                db.rollback()
                raise
