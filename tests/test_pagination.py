"""
Tests for pagination parameters, envelopes and hypermedia links.
"""

import asyncio

from pydantic import BaseModel

from events_api.app.pipeline import RequestContext, paginate
from events_api.app.pipeline.pagination import (
    page_envelope,
    page_links,
    page_params,
    query_int,
    to_positive_int_or_default,
)


class Item(BaseModel):
    id: int


def items(*ids):
    return [Item(id=i) for i in ids]


class TestParams:
    def test_coercion(self):
        assert to_positive_int_or_default("5", 10) == 5
        assert to_positive_int_or_default(None, 10) == 10
        assert to_positive_int_or_default("0", 10) == 10
        assert to_positive_int_or_default("-3", 10) == 10
        assert to_positive_int_or_default("abc", 10) == 10
        assert to_positive_int_or_default("1.5", 10) == 10

    def test_defaults(self):
        assert page_params({}) == (10, 0)
        assert page_params({}, default_limit=25) == (25, 0)
        assert page_params({"limit": "2", "offset": "4"}) == (2, 4)

    def test_saturates_at_storable_range(self):
        assert page_params({"limit": str(2**64), "offset": "9" * 5000}) == (2**63 - 1, 2**63 - 1)
        assert query_int("-" + "9" * 30) == -(2**63 - 1)
        assert query_int("0000000000000000000000042") == 42


class TestLinks:
    def test_first_full_page(self):
        assert page_links("/events", 0, 10, 10) == {
            "self": {"href": "/events?offset=0&limit=10"},
            "next": {"href": "/events?offset=10&limit=10"},
        }

    def test_middle_page(self):
        links = page_links("/events", 10, 10, 10)
        assert links["prev"] == {"href": "/events?offset=0&limit=10"}
        assert links["next"] == {"href": "/events?offset=20&limit=10"}

    def test_last_partial_page(self):
        links = page_links("/events", 20, 10, 3)
        assert set(links) == {"self", "prev"}

    def test_prev_never_goes_negative(self):
        assert page_links("/users", 3, 10, 0)["prev"] == {"href": "/users?offset=0&limit=10"}


class TestEnvelope:
    def test_shape(self):
        envelope = page_envelope(items(1, 2), "/events", 0, 2)
        assert envelope == {
            "limit": 2,
            "offset": 0,
            "items": [{"id": 1}, {"id": 2}],
            "_links": {
                "self": {"href": "/events?offset=0&limit=2"},
                "next": {"href": "/events?offset=2&limit=2"},
            },
        }

    def test_never_returns_more_than_limit(self):
        assert len(page_envelope(items(1, 2, 3), "/events", 0, 2)["items"]) == 2

    def test_paginate_passes_effective_window_to_fetch(self):
        seen = {}

        async def fetch(offset, limit):
            seen.update(offset=offset, limit=limit)
            return []

        ctx = RequestContext(path="/events", query={"offset": "30", "limit": "5"})
        envelope = asyncio.run(paginate(ctx, fetch))
        assert seen == {"offset": 30, "limit": 5}
        assert envelope["items"] == []
        assert set(envelope["_links"]) == {"self", "prev"}
