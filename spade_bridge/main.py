from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.responses import ORJSONResponse

from spade_bridge.config import settings
from spade_bridge.db import init_db
from spade_bridge.routers import auth, billing, catalog_sync, fedex, orders, products, webhooks


@asynccontextmanager
async def _app_lifespan(_app: FastAPI) -> AsyncIterator[None]:
    init_db()
    yield


def create_app() -> FastAPI:
    logging.basicConfig(
        level=settings.LOG_LEVEL.upper(),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )
    app = FastAPI(
        title="Spade Shopify Bridge",
        default_response_class=ORJSONResponse,
        lifespan=_app_lifespan,
    )

    @app.get("/health")
    def health() -> dict[str, bool]:
        return {"ok": True}

    app.include_router(auth.router)
    app.include_router(products.router)
    app.include_router(catalog_sync.router)
    app.include_router(orders.router)
    app.include_router(billing.router)
    app.include_router(fedex.router)
    app.include_router(webhooks.router)
    return app


app = create_app()
