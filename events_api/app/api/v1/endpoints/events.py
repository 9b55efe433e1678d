"""
Event endpoints for API v1.

Every handler first runs its pipeline: authentication, sanitization of
free-text fields, the validator chain, the existence guard, the
validation checkpoint and, on mutating routes, the ownership guard.
Only a request that made it through reaches the storage calls below.
"""

from typing import Any, Dict

from fastapi import APIRouter, Depends, status

from events_api.app.api.deps import get_context, get_services
from events_api.app.core.errors import NotFoundError
from events_api.app.pipeline import (
    RequestContext,
    authenticate,
    checkpoint,
    paginate,
    require_owner_or_admin,
    resource_exists,
    run_pipeline,
    sanitize,
    validate,
)
from events_api.app.pipeline.validators import (
    at_least_one_of,
    event_name_available,
    name_validator,
    not_registered,
    paging_query_validator,
    text_validator,
)
from events_api.app.schemas.event import EventDetail, EventRead
from events_api.app.schemas.registration import RegistrationRead
from events_api.app.services import Services


router = APIRouter()

EVENT_TEXT_FIELDS = ("name", "description")


@router.get("")
async def list_events(
    ctx: RequestContext = Depends(get_context),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    """List events ordered by id, ``limit``/``offset`` paginated."""
    ctx = await run_pipeline(ctx, validate(paging_query_validator), checkpoint)
    return await paginate(ctx, services.events.list_events, services.settings.default_page_limit)


@router.get("/{id}", response_model=EventDetail)
async def get_event(
    ctx: RequestContext = Depends(get_context),
    services: Services = Depends(get_services),
) -> EventDetail:
    """Retrieve a single event with its registrations.

    Login is optional; when the caller is authenticated the response
    also says whether they are registered for the event.
    """
    ctx = await run_pipeline(
        ctx,
        authenticate(services.users, services.credentials, required=False),
        resource_exists(services.events.get_event),
        checkpoint,
    )
    event: EventRead = ctx.resource
    registrations = await services.registrations.list_for_event(event.id)
    registered = None
    if ctx.principal is not None:
        registered = any(r.user_id == ctx.principal.id for r in registrations)
    return EventDetail(
        **event.model_dump(),
        registrations=registrations,
        registered=registered,
    )


@router.post("", response_model=EventRead, status_code=status.HTTP_201_CREATED)
async def create_event(
    ctx: RequestContext = Depends(get_context),
    services: Services = Depends(get_services),
) -> EventRead:
    """Create an event owned by the authenticated user."""
    ctx = await run_pipeline(
        ctx,
        authenticate(services.users, services.credentials),
        sanitize(*EVENT_TEXT_FIELDS),
        validate(
            name_validator,
            text_validator("description"),
            event_name_available(services.events),
        ),
        checkpoint,
        sanitize(*EVENT_TEXT_FIELDS),
    )
    return await services.events.create_event(
        ctx.body["name"],
        ctx.body.get("description"),
        ctx.principal.id,
    )


@router.patch("/{id}", response_model=EventRead)
async def update_event(
    ctx: RequestContext = Depends(get_context),
    services: Services = Depends(get_services),
) -> EventRead:
    """Partially update an event (creator or admin only)."""
    ctx = await run_pipeline(
        ctx,
        authenticate(services.users, services.credentials),
        sanitize(*EVENT_TEXT_FIELDS),
        validate(
            name_validator,
            text_validator("description"),
            at_least_one_of(*EVENT_TEXT_FIELDS),
            event_name_available(services.events),
        ),
        resource_exists(services.events.get_event),
        checkpoint,
        require_owner_or_admin,
        sanitize(*EVENT_TEXT_FIELDS),
    )
    return await services.events.update_event(ctx.resource, ctx.body)


@router.delete("/{id}")
async def delete_event(
    ctx: RequestContext = Depends(get_context),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    """Delete an event and its registrations (creator or admin only)."""
    ctx = await run_pipeline(
        ctx,
        authenticate(services.users, services.credentials),
        resource_exists(services.events.get_event),
        checkpoint,
        require_owner_or_admin,
    )
    if await services.events.delete_event(ctx.resource.id) == 0:
        raise NotFoundError("Event not found")
    return {}


@router.post(
    "/{id}/register",
    response_model=RegistrationRead,
    status_code=status.HTTP_201_CREATED,
)
async def register_for_event(
    ctx: RequestContext = Depends(get_context),
    services: Services = Depends(get_services),
) -> RegistrationRead:
    """Register the authenticated user for an event, with an optional comment."""
    ctx = await run_pipeline(
        ctx,
        authenticate(services.users, services.credentials),
        sanitize("comment"),
        validate(
            text_validator("comment"),
            not_registered(services.registrations),
        ),
        resource_exists(services.events.get_event),
        checkpoint,
        sanitize("comment"),
    )
    return await services.registrations.register(
        ctx.resource.id,
        ctx.principal.public(),
        ctx.body.get("comment"),
    )


@router.delete("/{id}/register")
async def unregister_from_event(
    ctx: RequestContext = Depends(get_context),
    services: Services = Depends(get_services),
) -> Dict[str, Any]:
    """Remove the authenticated user's registration for an event."""
    ctx = await run_pipeline(
        ctx,
        authenticate(services.users, services.credentials),
        resource_exists(services.events.get_event),
        checkpoint,
    )
    if await services.registrations.unregister(ctx.resource.id, ctx.principal.id) == 0:
        raise NotFoundError("Registration not found")
    return {}
