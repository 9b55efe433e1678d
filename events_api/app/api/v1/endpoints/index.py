"""
Index endpoint listing the entry points of the API.
"""

from typing import Dict

from fastapi import APIRouter, Depends

from events_api.app.api.deps import get_services
from events_api.app.services import Services

router = APIRouter()


@router.get("/")
async def index(services: Services = Depends(get_services)) -> Dict[str, str]:
    prefix = services.settings.api_prefix
    return {
        "register": f"{prefix}/users/register",
        "login": f"{prefix}/users/login",
        "users": f"{prefix}/users",
        "events": f"{prefix}/events",
    }
