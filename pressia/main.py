from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from pressia.bridge import Bridge
from pressia.config import settings
from pressia.db import Storage
from pressia.routers import bridge as bridge_router

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    logging.basicConfig(
        level=settings.log_level.upper(),
        format='%(asctime)s %(levelname)s %(name)s: %(message)s',
    )


def create_app(bridge: Bridge | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        configure_logging()
        owned_storage = None
        if app.state.bridge is None:
            owned_storage = Storage(
                settings.database_path_resolved,
                seed_defaults=settings.seed_default_item_types,
                echo=settings.sql_echo,
            )
            app.state.bridge = Bridge(owned_storage, strict_status_transitions=settings.strict_status_transitions)
        try:
            yield
        finally:
            if owned_storage is not None:
                owned_storage.close()
                app.state.bridge = None

    app = FastAPI(title='Pressia', lifespan=lifespan)
    app.state.bridge = bridge
    app.include_router(bridge_router.router)

    @app.get('/health')
    def health() -> dict:
        return {'status': 'ok'}

    return app


app = create_app()
