"""
Error taxonomy for the recipe backend and its translation to HTTP responses.

Handlers raise these types (or let store/storage clients raise them); the
exception handler registered by ``install_error_handlers`` is the only place
that turns an error kind into a status code and JSON body.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class RecipeServiceError(Exception):
    """Base class for every error the API reports to clients."""

    status_code: int = 500

    def __init__(self, message: str, detail: str | None = None):
        super().__init__(message)
        self.message = message
        self.detail = detail

    def to_body(self) -> dict:
        if self.status_code < 500:
            return {"message": self.message}
        return {"message": self.message, "error": self.detail or self.message}


class ValidationError(RecipeServiceError):
    status_code = 400


class PayloadTooLargeError(RecipeServiceError):
    status_code = 413


class NotFoundError(RecipeServiceError):
    status_code = 404


class StorageError(RecipeServiceError):
    """Blob store failure (connectivity, authentication, quota)."""

    status_code = 500


class StoreError(RecipeServiceError):
    """Relational store failure (connectivity, constraint violation)."""

    status_code = 500


class UpstreamFailure(RecipeServiceError):
    """
    A failure inside a handler, reported under the handler's own message.

    ``detail`` carries the underlying error text so clients see the raw cause.
    """

    status_code = 500

    def __init__(self, message: str, cause: BaseException):
        detail = cause.detail if isinstance(cause, RecipeServiceError) else None
        super().__init__(message, detail or str(cause))
        self.__cause__ = cause


async def _handle_service_error(request: Request, exc: RecipeServiceError):
    if exc.status_code >= 500:
        logger.error(
            "%s %s failed: %s",
            request.method,
            request.url.path,
            exc.detail or exc.message,
            exc_info=exc.__cause__ or exc,
        )
    return JSONResponse(status_code=exc.status_code, content=exc.to_body())


def install_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(RecipeServiceError, _handle_service_error)
