"""
Request validation and authorization pipeline.

A request is turned into an immutable ``RequestContext`` and passed
through an ordered list of stages.  Each stage is an async callable
that returns an extended copy of the context or raises an ``ApiError``
to terminate the request.  The building blocks live in submodules:

* ``context``    – the context value and the pipeline runner.
* ``validators`` – validator units, the chain stage and the checkpoint.
* ``sanitize``   – the idempotent free-text sanitization stage.
* ``guards``     – authentication, existence and authorization guards.
* ``pagination`` – limit/offset coercion and the page envelope builder.
"""

from .context import RequestContext, Stage, build_context, run_pipeline
from .guards import (
    authenticate,
    require_admin,
    require_owner_or_admin,
    resource_exists,
)
from .pagination import paginate
from .sanitize import sanitize
from .validators import checkpoint, validate

__all__ = [
    "RequestContext",
    "Stage",
    "authenticate",
    "build_context",
    "checkpoint",
    "paginate",
    "require_admin",
    "require_owner_or_admin",
    "resource_exists",
    "run_pipeline",
    "sanitize",
    "validate",
]
