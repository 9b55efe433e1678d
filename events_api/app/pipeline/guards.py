"""
Authentication, existence and authorization guards.

Guards fail fast: the first failing guard raises and the remaining
stages never run.  The one exception is ``resource_exists``, which
records a not-found error on the context and lets the validation
checkpoint report it together with any other validation errors.
"""

import logging
from typing import Any, Awaitable, Callable, Optional

from fastapi.security.utils import get_authorization_scheme_param

from ..core.errors import NOT_FOUND, AuthenticationError, AuthorizationError, FieldError
from ..core.security import CredentialManager
from ..schemas.user import UserInDB
from ..services.user_service import UserService
from .context import RequestContext, Stage


logger = logging.getLogger(__name__)

Resolver = Callable[[int], Awaitable[Optional[Any]]]


async def resolve_principal(
    authorization: Optional[str],
    users: UserService,
    credentials: CredentialManager,
) -> UserInDB:
    """Turn an ``Authorization`` header into a stored principal.

    Raises ``AuthenticationError`` when the header is missing, is not a
    bearer token, fails verification, or names a principal that no
    longer exists.
    """
    scheme, token = get_authorization_scheme_param(authorization)
    if not authorization or scheme.lower() != "bearer" or not token:
        raise AuthenticationError("Not authenticated")

    payload = credentials.decode_token(token)
    if payload is None or not isinstance(payload.get("id"), int):
        raise AuthenticationError("Invalid or expired token")

    principal = await users.find_by_id(payload["id"])
    if principal is None:
        logger.info("Token subject %s no longer exists", payload["id"])
        raise AuthenticationError("Invalid or expired token")
    return principal


def authenticate(
    users: UserService,
    credentials: CredentialManager,
    required: bool = True,
) -> Stage:
    """Build the authentication guard.

    With ``required`` a missing or invalid token ends the request with
    401.  Otherwise the request continues anonymously, which is what
    routes that only personalise their output want.
    """

    async def authentication_stage(ctx: RequestContext) -> RequestContext:
        try:
            principal = await resolve_principal(ctx.authorization, users, credentials)
        except AuthenticationError:
            if required:
                raise
            return ctx
        return ctx.with_principal(principal)

    return authentication_stage


def resource_exists(resolver: Resolver, param: str = "id") -> Stage:
    """Resolve the ``param`` path parameter and attach it as ``resource``."""

    async def existence_stage(ctx: RequestContext) -> RequestContext:
        identifier = ctx.path_id(param)
        resource = None if identifier is None else await resolver(identifier)
        if resource is None:
            return ctx.with_errors([FieldError(param, "not found", kind=NOT_FOUND)])
        return ctx.with_resource(resource)

    return existence_stage


async def require_owner_or_admin(ctx: RequestContext) -> RequestContext:
    """Allow admins and the resource's creator, nobody else.

    Must run after a required ``authenticate`` and after
    ``resource_exists`` plus the checkpoint.
    """
    principal = ctx.principal
    if principal is None:
        raise AuthenticationError("Not authenticated")
    if principal.admin or principal.id == getattr(ctx.resource, "creator_id", None):
        return ctx
    logger.info("User %s denied on %s %s", principal.id, ctx.method, ctx.path)
    raise AuthorizationError()


async def require_admin(ctx: RequestContext) -> RequestContext:
    principal = ctx.principal
    if principal is None:
        raise AuthenticationError("Not authenticated")
    if not principal.admin:
        raise AuthorizationError()
    return ctx
