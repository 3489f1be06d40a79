"""
FastAPI application entry point for the recipe backend.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import Optional

import uvicorn
from fastapi import FastAPI

from recipe_backend.config import Settings, get_settings
from recipe_backend.db import RecipeStore
from recipe_backend.dependencies import build_recipe_store, build_storage_client
from recipe_backend.errors import install_error_handlers
from recipe_backend.routes import router
from recipe_backend.storage import BlobStorageClient

logger = logging.getLogger(__name__)


def create_app(
    settings: Optional[Settings] = None,
    recipe_store: Optional[RecipeStore] = None,
    storage_client: Optional[BlobStorageClient] = None,
) -> FastAPI:
    """
    Build the app. Clients passed in are used as-is and left open at
    shutdown; clients built here from settings are closed at shutdown.
    """
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = []
        if getattr(app.state, "recipe_store", None) is None:
            app.state.recipe_store = build_recipe_store(settings)
            owned.append(app.state.recipe_store)
        if getattr(app.state, "storage_client", None) is None:
            app.state.storage_client = build_storage_client(settings)
            owned.append(app.state.storage_client)
        try:
            yield
        finally:
            for client in owned:
                client.close()
            app.state.recipe_store = recipe_store
            app.state.storage_client = storage_client

    app = FastAPI(title="Recipe Backend", version="0.1.0", lifespan=lifespan)
    app.state.settings = settings
    app.state.recipe_store = recipe_store
    app.state.storage_client = storage_client
    install_error_handlers(app)
    app.include_router(router)
    return app


def main() -> None:
    settings = get_settings()
    logging.basicConfig(
        level=settings.log_level.upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    logger.info("Server is running on port %s", settings.port)
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    main()
