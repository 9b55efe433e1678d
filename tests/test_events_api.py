"""
Tests for the event endpoints and event registrations.
"""

import asyncio


class TestListEvents:
    """Test GET /events pagination."""

    def test_empty_list(self, client):
        response = client.get("/events")
        assert response.status_code == 200
        assert response.json() == {
            "limit": 10,
            "offset": 0,
            "items": [],
            "_links": {"self": {"href": "/events?offset=0&limit=10"}},
        }

    def test_pages(self, client, user_headers, create_event):
        for name in ["First", "Second", "Third"]:
            create_event(user_headers, name)

        first = client.get("/events?limit=2").json()
        assert [e["name"] for e in first["items"]] == ["First", "Second"]
        assert first["_links"] == {
            "self": {"href": "/events?offset=0&limit=2"},
            "next": {"href": "/events?offset=2&limit=2"},
        }

        last = client.get("/events?limit=2&offset=2").json()
        assert [e["name"] for e in last["items"]] == ["Third"]
        assert last["_links"] == {
            "self": {"href": "/events?offset=2&limit=2"},
            "prev": {"href": "/events?offset=0&limit=2"},
        }

    def test_offset_past_the_end(self, client, user_headers, create_event):
        create_event(user_headers, "Only")
        data = client.get("/events?offset=50").json()
        assert data["items"] == []
        assert "next" not in data["_links"]

    def test_offset_beyond_storable_range(self, client, user_headers, create_event):
        create_event(user_headers, "Only")
        response = client.get(f"/events?offset={2**64}")
        assert response.status_code == 200
        assert response.json()["items"] == []

    def test_limit_beyond_storable_range(self, client, user_headers, create_event):
        create_event(user_headers, "Only")
        response = client.get(f"/events?limit={2**64}")
        assert response.status_code == 200
        data = response.json()
        assert [e["name"] for e in data["items"]] == ["Only"]
        assert data["limit"] == 2**63 - 1

    def test_bad_paging_parameters(self, client):
        response = client.get("/events?offset=-1&limit=abc")
        assert response.status_code == 400
        assert [e["field"] for e in response.json()["errors"]] == ["offset", "limit"]


class TestCreateEvent:
    """Test POST /events."""

    def test_requires_login(self, client):
        response = client.post("/events", json={"name": "Party"})
        assert response.status_code == 401
        assert response.json() == {"error": "Not authenticated"}

    def test_create(self, client, user_headers):
        response = client.post(
            "/events",
            json={"name": "Forritarahittingur í febrúar", "description": "Monthly meetup"},
            headers=user_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["id"] == 1
        assert data["slug"] == "forritarahittingur-i-februar"
        assert data["description"] == "Monthly meetup"
        assert data["creator_id"] == 1
        assert data["created"] == data["updated"]

    def test_create_sanitizes(self, client, user_headers):
        response = client.post(
            "/events",
            json={"name": " <script>x</script> ", "description": "a & b"},
            headers=user_headers,
        )
        data = response.json()
        assert data["name"] == "&lt;script&gt;x&lt;/script&gt;"
        assert data["description"] == "a &amp; b"

    def test_create_validation(self, client, user_headers):
        response = client.post(
            "/events",
            json={"name": "", "description": "x" * 401},
            headers=user_headers,
        )
        assert response.status_code == 400
        assert [e["field"] for e in response.json()["errors"]] == ["name", "description"]

    def test_duplicate_name(self, client, user_headers, create_event):
        create_event(user_headers, "Party")
        response = client.post("/events", json={"name": "party!"}, headers=user_headers)
        assert response.status_code == 400
        assert response.json() == {"errors": [{"field": "name", "message": "event name already exists"}]}


class TestGetEvent:
    """Test GET /events/{id}."""

    def test_get_anonymous(self, client, user_headers, create_event):
        event = create_event(user_headers, "Party")
        response = client.get(f"/events/{event['id']}")
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Party"
        assert data["registrations"] == []
        assert data["registered"] is None

    def test_get_missing(self, client):
        response = client.get("/events/404")
        assert response.status_code == 404
        assert response.json() == {"errors": [{"field": "id", "message": "not found"}]}

    def test_get_id_beyond_storable_range(self, client):
        response = client.get(f"/events/{2**64}")
        assert response.status_code == 404
        assert response.json() == {"errors": [{"field": "id", "message": "not found"}]}

    def test_get_non_numeric_id(self, client):
        assert client.get("/events/party").status_code == 404

    def test_invalid_token_is_ignored(self, client, user_headers, create_event):
        event = create_event(user_headers, "Party")
        response = client.get(f"/events/{event['id']}", headers={"Authorization": "Bearer junk"})
        assert response.status_code == 200
        assert response.json()["registered"] is None


class TestUpdateEvent:
    """Test PATCH /events/{id}."""

    def test_owner_updates(self, client, user_headers, create_event):
        event = create_event(user_headers, "Party", "Old")
        response = client.patch(f"/events/{event['id']}", json={"name": "New Party"}, headers=user_headers)
        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "New Party"
        assert data["slug"] == "new-party"
        assert data["description"] == "Old"
        assert data["created"] == event["created"]
        assert client.get(f"/events/{event['id']}").json()["slug"] == "new-party"

    def test_keep_own_name(self, client, user_headers, create_event):
        event = create_event(user_headers, "Party")
        response = client.patch(
            f"/events/{event['id']}",
            json={"name": "Party", "description": "Now with cake"},
            headers=user_headers,
        )
        assert response.status_code == 200

    def test_empty_description_clears_it(self, client, user_headers, create_event):
        event = create_event(user_headers, "Party", "Old")
        response = client.patch(f"/events/{event['id']}", json={"description": ""}, headers=user_headers)
        assert response.status_code == 200
        assert response.json()["description"] is None
        assert client.get(f"/events/{event['id']}").json()["description"] is None

    def test_other_user_denied(self, client, user_headers, other_headers, create_event):
        event = create_event(user_headers, "Party")
        response = client.patch(f"/events/{event['id']}", json={"description": "mine"}, headers=other_headers)
        assert response.status_code == 401
        assert response.json() == {"error": "insufficient authorization"}

    def test_admin_allowed(self, client, user_headers, admin_headers, create_event):
        event = create_event(user_headers, "Party")
        response = client.patch(f"/events/{event['id']}", json={"description": "admin"}, headers=admin_headers)
        assert response.status_code == 200
        assert response.json()["description"] == "admin"

    def test_empty_patch(self, client, user_headers, create_event):
        event = create_event(user_headers, "Party")
        response = client.patch(f"/events/{event['id']}", json={}, headers=user_headers)
        assert response.status_code == 400
        assert response.json() == {
            "errors": [{"field": "body", "message": "require at least one value of: name, description"}]
        }

    def test_rename_to_taken_name(self, client, user_headers, create_event):
        create_event(user_headers, "Party")
        event = create_event(user_headers, "Picnic")
        response = client.patch(f"/events/{event['id']}", json={"name": "Party"}, headers=user_headers)
        assert response.status_code == 400
        assert response.json()["errors"][0]["message"] == "event name already exists"

    def test_huge_id_with_name(self, client, user_headers, create_event):
        create_event(user_headers, "Party")
        response = client.patch(f"/events/{2**64}", json={"name": "Party"}, headers=user_headers)
        assert response.status_code == 404
        assert [e["field"] for e in response.json()["errors"]] == ["name", "id"]

    def test_missing_event(self, client, user_headers):
        response = client.patch("/events/404", json={"name": "Nothing"}, headers=user_headers)
        assert response.status_code == 404


class TestDeleteEvent:
    """Test DELETE /events/{id}."""

    def test_owner_deletes(self, client, user_headers, create_event):
        event = create_event(user_headers, "Party")
        response = client.delete(f"/events/{event['id']}", headers=user_headers)
        assert response.status_code == 200
        assert response.json() == {}
        assert client.get(f"/events/{event['id']}").status_code == 404

    def test_other_user_denied(self, client, user_headers, other_headers, create_event):
        event = create_event(user_headers, "Party")
        assert client.delete(f"/events/{event['id']}", headers=other_headers).status_code == 401
        assert client.get(f"/events/{event['id']}").status_code == 200

    def test_admin_deletes(self, client, user_headers, admin_headers, create_event):
        event = create_event(user_headers, "Party")
        assert client.delete(f"/events/{event['id']}", headers=admin_headers).status_code == 200

    def test_delete_missing(self, client, user_headers):
        assert client.delete("/events/404", headers=user_headers).status_code == 404

    def test_delete_cascades_registrations(self, client, services, user_headers, create_event):
        event = create_event(user_headers, "Party")
        client.post(f"/events/{event['id']}/register", headers=user_headers)
        client.delete(f"/events/{event['id']}", headers=user_headers)
        assert asyncio.run(services.registrations.list_for_event(event["id"])) == []


class TestRegistrations:
    """Test POST and DELETE /events/{id}/register."""

    def test_register(self, client, user_headers, create_event):
        event = create_event(user_headers, "Party")
        response = client.post(
            f"/events/{event['id']}/register",
            json={"comment": "<b>see you</b>"},
            headers=user_headers,
        )
        assert response.status_code == 201
        data = response.json()
        assert data["name"] == "Kari"
        assert data["user_id"] == 1
        assert data["event_id"] == event["id"]
        assert data["comment"] == "&lt;b&gt;see you&lt;/b&gt;"

        detail = client.get(f"/events/{event['id']}", headers=user_headers).json()
        assert detail["registered"] is True
        assert [r["user_id"] for r in detail["registrations"]] == [1]

    def test_register_without_body(self, client, user_headers, create_event):
        event = create_event(user_headers, "Party")
        response = client.post(f"/events/{event['id']}/register", headers=user_headers)
        assert response.status_code == 201
        assert response.json()["comment"] is None

    def test_register_twice(self, client, user_headers, create_event):
        event = create_event(user_headers, "Party")
        client.post(f"/events/{event['id']}/register", headers=user_headers)
        response = client.post(f"/events/{event['id']}/register", headers=user_headers)
        assert response.status_code == 400
        assert response.json() == {
            "errors": [{"field": "event", "message": "already registered for this event"}]
        }

    def test_register_requires_login(self, client, user_headers, create_event):
        event = create_event(user_headers, "Party")
        assert client.post(f"/events/{event['id']}/register").status_code == 401

    def test_register_huge_id(self, client, user_headers):
        assert client.post(f"/events/{2**64}/register", headers=user_headers).status_code == 404

    def test_register_missing_event(self, client, user_headers):
        assert client.post("/events/404/register", headers=user_headers).status_code == 404

    def test_registered_false_for_other_user(self, client, user_headers, other_headers, create_event):
        event = create_event(user_headers, "Party")
        client.post(f"/events/{event['id']}/register", headers=user_headers)
        assert client.get(f"/events/{event['id']}", headers=other_headers).json()["registered"] is False

    def test_unregister(self, client, user_headers, create_event):
        event = create_event(user_headers, "Party")
        client.post(f"/events/{event['id']}/register", headers=user_headers)
        response = client.delete(f"/events/{event['id']}/register", headers=user_headers)
        assert response.status_code == 200
        assert response.json() == {}

        again = client.delete(f"/events/{event['id']}/register", headers=user_headers)
        assert again.status_code == 404
        assert again.json() == {"error": "Registration not found"}
