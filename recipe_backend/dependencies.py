"""
Client construction and dependency wiring for the FastAPI app.

Clients are built once by ``build_recipe_store``/``build_storage_client`` at
startup, kept on ``app.state`` and handed to routes through ``Depends``.
"""

from __future__ import annotations

import logging

from fastapi import Request

from recipe_backend.config import Settings, get_settings
from recipe_backend.db import InMemoryRecipeStore, RecipeStore, SqlRecipeStore
from recipe_backend.storage import (
    BlobStorageClient,
    InMemoryBlobStorageClient,
    S3BlobStorageClient,
)

logger = logging.getLogger(__name__)


def build_recipe_store(settings: Settings) -> RecipeStore:
    database_url = settings.resolved_database_url()
    if settings.use_in_memory_backends or not database_url:
        logger.info("Using in-memory recipe store")
        return InMemoryRecipeStore()
    return SqlRecipeStore(database_url)


def build_storage_client(settings: Settings) -> BlobStorageClient:
    if settings.use_in_memory_backends or not settings.storage_connection_string:
        logger.info("Using in-memory blob storage")
        return InMemoryBlobStorageClient()
    return S3BlobStorageClient(
        connection_string=settings.storage_connection_string,
        container=settings.storage_container,
    )


def get_recipe_store(request: Request) -> RecipeStore:
    return request.app.state.recipe_store


def get_storage_client(request: Request) -> BlobStorageClient:
    return request.app.state.storage_client


def get_app_settings(request: Request) -> Settings:
    return getattr(request.app.state, "settings", None) or get_settings()
