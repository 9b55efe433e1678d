"""
The per-request context and the pipeline runner.

``RequestContext`` is frozen: stages never mutate it, they return a new
value built with one of the ``with_*`` helpers.  ``build_context`` reads
everything a stage may need from the incoming request once, so stages
stay independent of Starlette and can be unit tested with a hand-made
context.
"""

import json
import logging
from dataclasses import dataclass, field, replace
from typing import Any, Awaitable, Callable, Iterable, Mapping, Optional, Tuple

from fastapi import Request

from ..core.db import SQLITE_MAX_INT
from ..core.errors import BadRequestError, FieldError
from ..schemas.user import UserInDB


logger = logging.getLogger(__name__)

BODY_METHODS = {"POST", "PUT", "PATCH"}


@dataclass(frozen=True)
class RequestContext:
    method: str = "GET"
    path: str = "/"
    params: Mapping[str, str] = field(default_factory=dict)
    query: Mapping[str, str] = field(default_factory=dict)
    body: Mapping[str, Any] = field(default_factory=dict)
    authorization: Optional[str] = None
    principal: Optional[UserInDB] = None
    resource: Any = None
    errors: Tuple[FieldError, ...] = ()

    @property
    def is_patch(self) -> bool:
        return self.method.upper() == "PATCH"

    def with_errors(self, errors: Iterable[FieldError]) -> "RequestContext":
        errors = tuple(errors)
        if not errors:
            return self
        return replace(self, errors=self.errors + errors)

    def with_body(self, body: Mapping[str, Any]) -> "RequestContext":
        return replace(self, body=body)

    def with_principal(self, principal: UserInDB) -> "RequestContext":
        return replace(self, principal=principal)

    def with_resource(self, resource: Any) -> "RequestContext":
        return replace(self, resource=resource)

    def path_id(self, param: str = "id") -> Optional[int]:
        """Return path parameter ``param`` as a storable row id, or ``None``."""
        try:
            identifier = int(self.params[param])
        except (KeyError, TypeError, ValueError):
            return None
        if not 0 <= identifier <= SQLITE_MAX_INT:
            return None
        return identifier


Stage = Callable[[RequestContext], Awaitable[RequestContext]]


async def build_context(request: Request) -> RequestContext:
    """Snapshot the parts of ``request`` the pipeline works on.

    Bodies are parsed as JSON for methods that carry one; an empty body
    counts as ``{}``.  Anything that is not a JSON object is rejected
    with 400 ``Invalid json``.
    """
    body: Mapping[str, Any] = {}
    if request.method in BODY_METHODS:
        raw = await request.body()
        if raw.strip():
            try:
                body = json.loads(raw)
            except ValueError as e:
                raise BadRequestError("Invalid json") from e
            if not isinstance(body, dict):
                raise BadRequestError("Invalid json")
    return RequestContext(
        method=request.method,
        path=request.url.path,
        params=dict(request.path_params),
        query=dict(request.query_params),
        body=body,
        authorization=request.headers.get("Authorization"),
    )


async def run_pipeline(ctx: RequestContext, *stages: Stage) -> RequestContext:
    """Run ``stages`` in order, threading the context through them."""
    for stage in stages:
        ctx = await stage(ctx)
    return ctx
