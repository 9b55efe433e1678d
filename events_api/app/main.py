"""
Main entrypoint for the Events API.

This module assembles the FastAPI application: it sets up logging,
builds the service container from an explicit ``Settings`` value,
registers the error handlers and includes the versioned routers.
``create_app`` returns a fully configured application; ``app`` is
created at import time so ASGI servers can find it, e.g.::

    uvicorn events_api.app.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from .api.v1.router import router as v1_router
from .core.config import Settings
from .core.errors import register_error_handlers
from .core.logging_config import setup_logging
from .services import Services


logger = logging.getLogger(__name__)

JSON_BODY_METHODS = {"POST", "PATCH"}


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Create and configure a FastAPI application.

    Parameters
    ----------
    settings : Optional[Settings]
        Configuration for this application instance.  Defaults to a
        ``Settings`` read from the environment.

    Returns
    -------
    FastAPI
        A configured FastAPI application instance.
    """
    settings = settings or Settings()
    setup_logging(settings.log_level, settings.log_file or None)
    if settings.uses_placeholder_secret:
        logger.warning("SECRET_KEY is not set, tokens are signed with the placeholder secret")

    services = Services.build(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        services.db.init_db()
        yield
        services.db.close()

    app = FastAPI(
        title=settings.project_name,
        version=settings.api_version,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.services = services

    @app.middleware("http")
    async def require_json_body(request: Request, call_next):
        content_type = request.headers.get("content-type")
        if (
            request.method in JSON_BODY_METHODS
            and content_type
            and not content_type.lower().startswith("application/json")
        ):
            return JSONResponse(status_code=400, content={"error": "body must be json"})
        return await call_next(request)

    register_error_handlers(app)
    app.include_router(v1_router, prefix=settings.api_prefix)
    return app


app = create_app()
