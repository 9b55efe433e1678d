"""
Free-text sanitization.

Runs as its own stage, before and after validation, on the free-text
fields of a route.  ``sanitize_text`` unescapes, trims and escapes
again, so applying it to already sanitized text is a no-op.
"""

import html
from typing import Any, Dict

from .context import RequestContext, Stage


def sanitize_text(value: str) -> str:
    return html.escape(html.unescape(value).strip(), quote=True)


def sanitize(*fields: str) -> Stage:
    """Build a stage sanitizing the string values of ``fields``."""

    async def sanitize_stage(ctx: RequestContext) -> RequestContext:
        body: Dict[str, Any] = dict(ctx.body)
        for name in fields:
            value = body.get(name)
            if isinstance(value, str):
                body[name] = sanitize_text(value)
        return ctx.with_body(body)

    return sanitize_stage
