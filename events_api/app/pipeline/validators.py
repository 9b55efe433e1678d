"""
Validator chain and validation checkpoint.

A validator is a plain or ``async`` callable taking a ``RequestContext``
and returning a list of ``FieldError`` (empty when the input is fine).
``validate`` turns an ordered list of validators into one pipeline
stage: each validator is run, and awaited if needed, strictly in
declaration order, and its errors are appended to the context.
Validators never raise for invalid input; only store failures escape.

``checkpoint`` is the stage that ends the request with every collected
error at once, so clients see all field problems in one response.
"""

import inspect
import logging
from typing import Awaitable, Callable, List, Union

from ..core.errors import FieldError, ValidationFailed
from ..core.security import CredentialManager
from ..services.event_service import EventService, slugify
from ..services.registration_service import RegistrationService
from ..services.user_service import UserService
from .context import RequestContext, Stage
from .pagination import query_int


logger = logging.getLogger(__name__)

Errors = List[FieldError]
Validator = Callable[[RequestContext], Union[Errors, Awaitable[Errors]]]


def validate(*validators: Validator) -> Stage:
    """Build a stage running ``validators`` in order and collecting errors."""

    async def validation_stage(ctx: RequestContext) -> RequestContext:
        for validator in validators:
            result = validator(ctx)
            if inspect.isawaitable(result):
                result = await result
            ctx = ctx.with_errors(result)
        return ctx

    return validation_stage


async def checkpoint(ctx: RequestContext) -> RequestContext:
    """Terminate the request if any validator or guard recorded an error."""
    if ctx.errors:
        raise ValidationFailed(ctx.errors)
    return ctx


# ---------------------------------------------------------------------------
# Field rules
# ---------------------------------------------------------------------------

def length(
    field: str,
    min_length: int,
    max_length: int,
    message: str,
    optional: bool = False,
    unless_patch: bool = False,
) -> Validator:
    """Require ``field`` to be a string of ``min_length``..``max_length`` chars.

    ``optional`` skips the rule when the field is absent or null.
    ``unless_patch`` does the same but only for partial updates.
    """

    def length_rule(ctx: RequestContext) -> Errors:
        value = ctx.body.get(field)
        if value is None and (optional or (unless_patch and ctx.is_patch)):
            return []
        if not isinstance(value, str) or not min_length <= len(value) <= max_length:
            return [FieldError(field, message)]
        return []

    return length_rule


name_validator = length(
    "name", 1, 64, "name is required, max 64 characters", unless_patch=True
)
username_validator = length(
    "username", 1, 256, "username is required, max 256 characters"
)
password_validator = length(
    "password",
    10,
    256,
    "password is required, min 10 characters, max 256 characters",
    unless_patch=True,
)


def text_validator(field: str, max_length: int = 400) -> Validator:
    return length(field, 0, max_length, f"{field} must be at most {max_length} characters", optional=True)


def at_least_one_of(*fields: str) -> Validator:
    def at_least_one_rule(ctx: RequestContext) -> Errors:
        if any(ctx.body.get(name) is not None for name in fields):
            return []
        return [FieldError("body", f"require at least one value of: {', '.join(fields)}")]

    return at_least_one_rule


def paging_query_validator(ctx: RequestContext) -> Errors:
    """Strict check of the ``offset``/``limit`` query parameters.

    Values beyond what the store can hold are valid; ``query_int``
    saturates them.
    """
    errors: Errors = []
    if "offset" in ctx.query:
        offset = query_int(ctx.query["offset"])
        if offset is None or offset < 0:
            errors.append(FieldError("offset", 'query parameter "offset" must be an int, 0 or larger'))
    if "limit" in ctx.query:
        limit = query_int(ctx.query["limit"])
        if limit is None or limit < 1:
            errors.append(FieldError("limit", 'query parameter "limit" must be an int, larger than 0'))
    return errors


# ---------------------------------------------------------------------------
# Store-backed rules
# ---------------------------------------------------------------------------

def username_available(users: UserService) -> Validator:
    async def username_available_rule(ctx: RequestContext) -> Errors:
        username = ctx.body.get("username")
        if not isinstance(username, str) or not username:
            return []
        if await users.find_by_username(username):
            return [FieldError("username", "username already exists")]
        return []

    return username_available_rule


def credentials_valid(users: UserService, credentials: CredentialManager) -> Validator:
    """Accept only a username/password pair matching a stored principal.

    An unknown username and a wrong password give the same message, and
    both cost one password verification.
    Missing values are left to the length rules.
    """

    async def credentials_rule(ctx: RequestContext) -> Errors:
        username = ctx.body.get("username")
        password = ctx.body.get("password")
        if not isinstance(username, str) or not isinstance(password, str) or not username or not password:
            return []
        user = await users.find_by_username(username)
        digest = user.password if user is not None else credentials.dummy_digest
        matches = await credentials.verify_password_async(password, digest)
        if user is None or not matches:
            logger.info("invalid login attempt for %s", username)
            return [FieldError("username", "username or password incorrect")]
        return []

    return credentials_rule


def event_name_available(events: EventService) -> Validator:
    """Reject a name whose slug already belongs to another event."""

    async def event_name_rule(ctx: RequestContext) -> Errors:
        name = ctx.body.get("name")
        if not isinstance(name, str) or not name:
            return []
        existing = await events.find_by_slug(slugify(name))
        if existing is not None and existing.id != ctx.path_id():
            return [FieldError("name", "event name already exists")]
        return []

    return event_name_rule


def not_registered(registrations: RegistrationService) -> Validator:
    async def not_registered_rule(ctx: RequestContext) -> Errors:
        event_id = ctx.path_id()
        if ctx.principal is None or event_id is None:
            return []
        if await registrations.is_registered(event_id, ctx.principal.id):
            return [FieldError("event", "already registered for this event")]
        return []

    return not_registered_rule
