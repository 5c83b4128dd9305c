from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from auth import router as auth_router
from categories import router as categories_router
from core import settings
from core.db import Database
from core.errors import register_error_handlers
from core.log import configure_logging
from listings import router as listings_router

logger = logging.getLogger(__name__)


def create_app(db: Database | None = None) -> FastAPI:
    """
    Build the application. Pass `db` to inject a store handle (tests do; a
    `Database` is still connected and closed by the lifespan);
    otherwise one is built from DATABASE_URL when the app starts.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "db", None) is None:
            app.state.db = Database.from_env()
        handle = app.state.db
        if not isinstance(handle, Database):
            # In-memory stores have no pool to manage.
            yield
            return

        # One pool per process, owned by the handle.
        await handle.connect()
        if settings.db_auto_migrate():
            await handle.apply_schema()
        try:
            yield
        finally:
            await handle.close()

    app = FastAPI(title="marketplace-api", lifespan=lifespan)
    app.state.db = db

    # Allow the browser client's dev server to call this API.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)

    app.include_router(auth_router.router, tags=["auth"])
    app.include_router(categories_router.router, tags=["categories"])
    app.include_router(listings_router.router, tags=["listings"])

    @app.get("/health")
    def health() -> dict:
        return {"status": "ok"}

    @app.get("/")
    def root() -> dict:
        return {"message": "marketplace api"}

    return app


configure_logging()
app = create_app()
