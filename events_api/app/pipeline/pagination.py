"""
Pagination and hypermedia links for list endpoints.

``limit``/``offset`` are coerced permissively here: anything that is not
a positive integer falls back to the default.  Routes still run the
strict ``paging_query_validator`` first, so in practice the coercion
only ever sees missing or valid values.
"""

import re
from typing import Any, Awaitable, Callable, Dict, List, Mapping, Optional, Tuple

from pydantic import BaseModel

from ..core.db import SQLITE_MAX_INT
from .context import RequestContext


DEFAULT_LIMIT = 10
DEFAULT_OFFSET = 0

INTEGER = re.compile(r"^-?\d+$")
MAX_DIGITS = len(str(SQLITE_MAX_INT))

Fetch = Callable[..., Awaitable[List[BaseModel]]]


def query_int(value: Any) -> Optional[int]:
    """Parse a decimal query value, saturating at the store's integer range.

    Returns ``None`` for anything that is not a plain decimal integer.
    """
    if not isinstance(value, str) or not INTEGER.match(value):
        return None
    negative = value.startswith("-")
    if len(value.lstrip("-").lstrip("0")) > MAX_DIGITS:
        return -SQLITE_MAX_INT if negative else SQLITE_MAX_INT
    return max(-SQLITE_MAX_INT, min(int(value), SQLITE_MAX_INT))


def to_positive_int_or_default(value: Any, default: int) -> int:
    number = query_int(value)
    return number if number is not None and number > 0 else default


def page_params(query: Mapping[str, str], default_limit: int = DEFAULT_LIMIT) -> Tuple[int, int]:
    """Return the effective ``(limit, offset)`` for a query string.

    Both saturate at the largest integer the store accepts, so a huge
    offset simply yields an empty page.
    """
    limit = to_positive_int_or_default(query.get("limit"), default_limit)
    offset = to_positive_int_or_default(query.get("offset"), DEFAULT_OFFSET)
    return limit, offset


def _href(path: str, offset: int, limit: int) -> Dict[str, str]:
    return {"href": f"{path}?offset={offset}&limit={limit}"}


def page_links(path: str, offset: int, limit: int, length: int) -> Dict[str, Dict[str, str]]:
    links = {"self": _href(path, offset, limit)}
    if offset > 0:
        links["prev"] = _href(path, max(offset - limit, 0), limit)
    if length >= limit:
        links["next"] = _href(path, offset + limit, limit)
    return links


def page_envelope(
    items: List[BaseModel],
    path: str,
    offset: int,
    limit: int,
) -> Dict[str, Any]:
    items = items[:limit]
    return {
        "limit": limit,
        "offset": offset,
        "items": [item.model_dump(mode="json") for item in items],
        "_links": page_links(path, offset, limit, len(items)),
    }


async def paginate(
    ctx: RequestContext,
    fetch: Fetch,
    default_limit: Optional[int] = None,
) -> Dict[str, Any]:
    """Fetch one page with ``fetch(offset=..., limit=...)`` and wrap it."""
    limit, offset = page_params(ctx.query, default_limit or DEFAULT_LIMIT)
    items = await fetch(offset=offset, limit=limit)
    return page_envelope(items, ctx.path, offset, limit)
