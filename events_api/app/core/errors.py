"""
Error taxonomy and global exception handlers.

Every failure that ends a request early is an ``ApiError`` subclass.  The
error carries its HTTP status and knows how to render its own JSON body:
single errors use ``{"error": <message>}`` and aggregated validation
failures use ``{"errors": [{"field": ..., "message": ...}, ...]}``.
Anything else escaping a handler is logged and turned into a generic 500
without internal details.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FieldError:
    """A single validation failure for one request field.

    ``kind`` separates ordinary invalid input from a missing resource; it
    decides the checkpoint status code and is not part of the response.
    """

    field: str
    message: str
    kind: str = "invalid"

    def to_dict(self) -> Dict[str, str]:
        return {"field": self.field, "message": self.message}


NOT_FOUND = "not_found"


class ApiError(Exception):
    """Base class for errors that terminate a request with a JSON body."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    default_message: str = "Internal server error"

    def __init__(self, message: Optional[str] = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return None

    def to_response(self) -> dict:
        return {"error": self.message}


class BadRequestError(ApiError):
    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "Bad request"


class AuthenticationError(ApiError):
    """Missing, malformed, expired or otherwise invalid credentials."""

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "invalid token"

    @property
    def headers(self) -> Optional[Dict[str, str]]:
        return {"WWW-Authenticate": "Bearer"}


class AuthorizationError(ApiError):
    """The principal is known but lacks rights on the target.

    Reported as 401 rather than 403 so that clients see the same status
    for "not logged in as someone allowed" in every guarded route.
    """

    status_code = status.HTTP_401_UNAUTHORIZED
    default_message = "insufficient authorization"


class NotFoundError(ApiError):
    status_code = status.HTTP_404_NOT_FOUND
    default_message = "Not found"


class ValidationFailed(ApiError):
    """Aggregated validation errors collected by the validator chain."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_message = "validation failed"

    def __init__(self, errors: Iterable[FieldError]) -> None:
        self.errors: List[FieldError] = list(errors)
        super().__init__()
        if any(error.kind == NOT_FOUND for error in self.errors):
            self.status_code = status.HTTP_404_NOT_FOUND

    def to_response(self) -> dict:
        return {"errors": [error.to_dict() for error in self.errors]}


def register_error_handlers(app: FastAPI) -> None:
    """Register all global error handlers on the FastAPI app."""

    @app.exception_handler(ApiError)
    async def api_error_handler(request: Request, exc: ApiError) -> JSONResponse:
        logger.info(
            "%s %s -> %s (%s)", request.method, request.url.path, exc.status_code, exc.message
        )
        return JSONResponse(
            status_code=exc.status_code,
            content=exc.to_response(),
            headers=exc.headers,
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        message = "Not found" if exc.status_code == status.HTTP_404_NOT_FOUND else str(exc.detail)
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": message},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.error(
            "Unhandled exception on %s %s", request.method, request.url.path, exc_info=exc
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "Internal server error"},
        )
