"""
FastAPI dependencies shared by every router.
"""

from fastapi import Request

from ..pipeline import RequestContext, build_context
from ..services import Services


def get_services(request: Request) -> Services:
    """Return the service container built by ``create_app``."""
    return request.app.state.services


async def get_context(request: Request) -> RequestContext:
    return await build_context(request)
