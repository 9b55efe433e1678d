"""
User endpoints for API v1.

Registration, login, the current user and the admin-only user listing.
Responses always go through ``UserRead``, which has no password field.

Example login response::

    {
        "user": {"id": 2, "name": "Kari", "username": "KariK", "admin": false},
        "token": "eyJhbGciOiJIUzI1NiIsInR5cCI6IkpXVCJ9...",
        "expiresIn": 3600
    }
"""

import logging
from typing import Any, Dict

from fastapi import APIRouter, Depends, status

from events_api.app.api.deps import get_context, get_services
from events_api.app.core.errors import AuthenticationError
from events_api.app.pipeline import (
    RequestContext,
    authenticate,
    checkpoint,
    paginate,
    require_admin,
    resource_exists,
    run_pipeline,
    sanitize,
    validate,
)
from events_api.app.pipeline.validators import (
    credentials_valid,
    name_validator,
    paging_query_validator,
    password_validator,
    username_available,
    username_validator,
)
from events_api.app.schemas.user import UserRead
from events_api.app.services import Services


logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def list_users(
    ctx: RequestContext = Depends(get_context),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    """List users ordered by id (admin only)."""
    ctx = await run_pipeline(
        ctx,
        authenticate(services.users, services.credentials),
        require_admin,
        validate(paging_query_validator),
        checkpoint,
    )
    return await paginate(ctx, services.users.list_users, services.settings.default_page_limit)


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def register_user(
    ctx: RequestContext = Depends(get_context),
    services: Services = Depends(get_services),
) -> UserRead:
    """Register a new, non-admin user."""
    ctx = await run_pipeline(
        ctx,
        sanitize("name"),
        validate(
            name_validator,
            username_validator,
            password_validator,
            username_available(services.users),
        ),
        checkpoint,
        sanitize("name"),
    )
    return await services.users.create_user(
        ctx.body["name"],
        ctx.body["username"],
        ctx.body["password"],
    )


@router.post("/login")
async def login_user(
    ctx: RequestContext = Depends(get_context),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    """Exchange a username and password for a session token."""
    ctx = await run_pipeline(
        ctx,
        validate(
            username_validator,
            password_validator,
            credentials_valid(services.users, services.credentials),
        ),
        checkpoint,
    )
    user = await services.users.find_by_username(ctx.body["username"])
    if user is None:
        # Deleted between the credential check and now.
        raise AuthenticationError("username or password incorrect")
    logger.info("User %s logged in", user.id)
    issued = services.credentials.issue_token(user.id)
    return {
        "user": user.public().model_dump(),
        "token": issued["token"],
        "expiresIn": issued["expiresIn"],
    }


@router.get("/me", response_model=UserRead)
async def current_user(
    ctx: RequestContext = Depends(get_context),
    services: Services = Depends(get_services),
) -> UserRead:
    """Return the authenticated user."""
    ctx = await run_pipeline(ctx, authenticate(services.users, services.credentials))
    return ctx.principal.public()


@router.get("/{id}", response_model=UserRead)
async def get_user(
    ctx: RequestContext = Depends(get_context),
    services: Services = Depends(get_services),
) -> UserRead:
    """Retrieve a single user (admin only)."""
    ctx = await run_pipeline(
        ctx,
        authenticate(services.users, services.credentials),
        require_admin,
        resource_exists(services.users.get_user),
        checkpoint,
    )
    return ctx.resource
