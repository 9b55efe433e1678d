"""
Tests for free-text sanitization.
"""

import asyncio

from events_api.app.pipeline import RequestContext, sanitize
from events_api.app.pipeline.sanitize import sanitize_text


def test_escapes_markup_and_trims():
    assert sanitize_text("  <b>Party</b> & co ") == "&lt;b&gt;Party&lt;/b&gt; &amp; co"


def test_quotes_are_escaped():
    assert sanitize_text('say "hi"') == "say &quot;hi&quot;"


def test_sanitizing_twice_is_a_no_op():
    for value in ["<script>alert(1)</script>", " a & b ", "plain", "&amp;lt;", ""]:
        once = sanitize_text(value)
        assert sanitize_text(once) == once


def test_stage_only_touches_named_string_fields():
    ctx = RequestContext(
        method="POST",
        body={"name": " <i>x</i> ", "description": "<p>", "count": 3, "comment": None},
    )
    result = asyncio.run(sanitize("name", "count", "comment")(ctx))
    assert result.body == {"name": "&lt;i&gt;x&lt;/i&gt;", "description": "<p>", "count": 3, "comment": None}
    # The input context is left untouched.
    assert ctx.body["name"] == " <i>x</i> "
