"""
Integration Tests for Notes API.

Tests the notes API endpoints with a real database, including the
visibility rules for private notes.
"""

import pytest
from httpx import AsyncClient


class TestCreateNote:
    """Tests for POST /api/v1/notes."""

    @pytest.mark.asyncio
    async def test_create_note_success(self, client: AsyncClient, api, alice):
        """Should create a note and return it."""
        response = await client.post(
            "/api/v1/notes",
            json={
                "title": "  Test Note  ",
                "summary": "Short",
                "content": "<p>Body</p>",
                "tags": ["Python", " python ", "Web", ""],
            },
            headers=alice,
        )

        data = api.assert_success(response, expected_status=201)
        note = data["data"]
        assert note["title"] == "Test Note"
        assert note["content"] == "<p>Body</p>"
        assert note["is_private"] is False
        assert sorted(note["tags"]) == ["python", "web"]
        assert "id" in note
        assert "created_at" in note

    @pytest.mark.asyncio
    async def test_create_note_requires_auth(self, client: AsyncClient, api):
        response = await client.post("/api/v1/notes", json={"title": "Anon"})

        api.assert_error(response, 401, "AUTH_UNAUTHORIZED")
        assert response.headers["www-authenticate"] == "Bearer"

    @pytest.mark.asyncio
    async def test_invalid_token_rejected(self, client: AsyncClient, api):
        response = await client.get(
            "/api/v1/notes",
            headers={"Authorization": "Bearer not-a-token"},
        )

        api.assert_error(response, 401, "AUTH_UNAUTHORIZED")

    @pytest.mark.asyncio
    async def test_blank_title_fails(self, client: AsyncClient, api, alice):
        response = await client.post("/api/v1/notes", json={"title": "   "}, headers=alice)

        api.assert_validation_error(response, field="title")

    @pytest.mark.asyncio
    async def test_missing_title_fails(self, client: AsyncClient, api, alice):
        response = await client.post(
            "/api/v1/notes",
            json={"content": "Content without title"},
            headers=alice,
        )

        api.assert_validation_error(response, field="title")

    @pytest.mark.asyncio
    async def test_title_too_long_fails(self, client: AsyncClient, api, alice):
        response = await client.post("/api/v1/notes", json={"title": "x" * 501}, headers=alice)

        api.assert_validation_error(response, field="title")

    @pytest.mark.asyncio
    async def test_too_many_tags_fails(self, client: AsyncClient, api, alice):
        response = await client.post(
            "/api/v1/notes",
            json={"title": "Tagged", "tags": [f"t{i}" for i in range(11)]},
            headers=alice,
        )

        api.assert_error(response, 400, "VAL_VALIDATION_ERROR")

    @pytest.mark.asyncio
    async def test_tag_too_long_fails(self, client: AsyncClient, api, alice):
        response = await client.post(
            "/api/v1/notes",
            json={"title": "Tagged", "tags": ["x" * 51]},
            headers=alice,
        )

        api.assert_error(response, 400, "VAL_VALIDATION_ERROR")


class TestNoteVisibility:
    """Private notes are invisible to everyone but their owner."""

    @pytest.mark.asyncio
    async def test_private_note_hidden_from_anonymous(self, client: AsyncClient, api, alice, create_note):
        note = await create_note(alice, "Secret", is_private=True)

        response = await client.get(f"/api/v1/notes/{note['id']}")

        api.assert_error(response, 404, "RES_NOT_FOUND")

    @pytest.mark.asyncio
    async def test_private_note_hidden_from_other_user(self, client: AsyncClient, api, alice, bob, create_note):
        note = await create_note(alice, "Secret", is_private=True)

        response = await client.get(f"/api/v1/notes/{note['id']}", headers=bob)

        api.assert_error(response, 404, "RES_NOT_FOUND")

    @pytest.mark.asyncio
    async def test_private_note_visible_to_owner(self, client: AsyncClient, api, alice, create_note):
        note = await create_note(alice, "Secret", is_private=True)

        response = await client.get(f"/api/v1/notes/{note['id']}", headers=alice)

        data = api.assert_success(response)
        assert data["data"]["title"] == "Secret"

    @pytest.mark.asyncio
    async def test_public_note_visible_to_anonymous(self, client: AsyncClient, api, alice, create_note):
        note = await create_note(alice, "Open")

        response = await client.get(f"/api/v1/notes/{note['id']}")

        api.assert_success(response)

    @pytest.mark.asyncio
    async def test_list_omits_other_users_private_notes(self, client: AsyncClient, api, alice, bob, create_note):
        await create_note(alice, "Alice public")
        await create_note(alice, "Alice private", is_private=True)
        await create_note(bob, "Bob private", is_private=True)

        as_bob = api.assert_success(await client.get("/api/v1/notes", headers=bob))
        anonymous = api.assert_success(await client.get("/api/v1/notes"))

        assert {n["title"] for n in as_bob["data"]} == {"Alice public", "Bob private"}
        assert {n["title"] for n in anonymous["data"]} == {"Alice public"}

    @pytest.mark.asyncio
    async def test_anonymous_reads_rejected_when_auth_required(
        self, client: AsyncClient, api, monkeypatch
    ):
        from notegraph.backend.core.config import get_app_config

        monkeypatch.setattr(get_app_config().features, "auth_require_api_authentication", True)

        response = await client.get("/api/v1/notes")

        api.assert_error(response, 401, "AUTH_UNAUTHORIZED")

    @pytest.mark.asyncio
    async def test_anonymous_reads_allowed_by_default(self, client: AsyncClient, api):
        from notegraph.backend.core.config import get_app_config

        assert get_app_config().features.auth_require_api_authentication is False

        api.assert_success(await client.get("/api/v1/notes"))
        api.assert_error(await client.post("/api/v1/notes", json={"title": "x"}), 401)


class TestListNotes:
    """Tests for GET /api/v1/notes."""

    @pytest.mark.asyncio
    async def test_pagination(self, client: AsyncClient, api, alice, create_note):
        for i in range(3):
            await create_note(alice, f"Note {i}")

        first = api.assert_success(await client.get("/api/v1/notes?page=1&limit=2"))
        second = api.assert_success(await client.get("/api/v1/notes?page=2&limit=2"))

        assert len(first["data"]) == 2
        assert first["pagination"] == {"page": 1, "limit": 2, "has_more": True}
        assert len(second["data"]) == 1
        assert second["pagination"]["has_more"] is False
        titles = {n["title"] for n in first["data"] + second["data"]}
        assert titles == {"Note 0", "Note 1", "Note 2"}

    @pytest.mark.asyncio
    async def test_invalid_page_rejected(self, client: AsyncClient, api):
        response = await client.get("/api/v1/notes?page=0")

        api.assert_validation_error(response, field="page")


class TestUpdateNote:
    """Tests for PUT /api/v1/notes/{id}."""

    @pytest.mark.asyncio
    async def test_partial_update_keeps_other_fields(self, client: AsyncClient, api, alice, create_note):
        note = await create_note(alice, "Original", content="Body", tags=["a", "b"])

        response = await client.put(
            f"/api/v1/notes/{note['id']}",
            json={"title": "Renamed"},
            headers=alice,
        )

        data = api.assert_success(response)["data"]
        assert data["title"] == "Renamed"
        assert data["content"] == "Body"
        assert data["tags"] == ["a", "b"]

    @pytest.mark.asyncio
    async def test_tags_replaced_as_set(self, client: AsyncClient, api, alice, create_note):
        note = await create_note(alice, "Tagged", tags=["keep", "drop"])

        response = await client.put(
            f"/api/v1/notes/{note['id']}",
            json={"tags": ["KEEP", "new"]},
            headers=alice,
        )

        assert api.assert_success(response)["data"]["tags"] == ["keep", "new"]

    @pytest.mark.asyncio
    async def test_non_owner_gets_forbidden_on_public_note(self, client: AsyncClient, api, alice, bob, create_note):
        note = await create_note(alice, "Public")

        response = await client.put(
            f"/api/v1/notes/{note['id']}",
            json={"title": "Hijacked"},
            headers=bob,
        )

        api.assert_error(response, 403, "AUTHZ_FORBIDDEN")

    @pytest.mark.asyncio
    async def test_non_owner_gets_not_found_on_private_note(self, client: AsyncClient, api, alice, bob, create_note):
        note = await create_note(alice, "Private", is_private=True)

        response = await client.put(
            f"/api/v1/notes/{note['id']}",
            json={"title": "Hijacked"},
            headers=bob,
        )

        api.assert_error(response, 404, "RES_NOT_FOUND")

    @pytest.mark.asyncio
    async def test_update_missing_note(self, client: AsyncClient, api, alice):
        response = await client.put(
            "/api/v1/notes/does-not-exist",
            json={"title": "x"},
            headers=alice,
        )

        api.assert_error(response, 404)


class TestDeleteNote:
    """Tests for DELETE /api/v1/notes/{id}."""

    @pytest.mark.asyncio
    async def test_delete_note(self, client: AsyncClient, api, alice, create_note):
        note = await create_note(alice, "Doomed")

        response = await client.delete(f"/api/v1/notes/{note['id']}", headers=alice)
        assert response.status_code == 204

        api.assert_error(await client.get(f"/api/v1/notes/{note['id']}"), 404)

    @pytest.mark.asyncio
    async def test_non_owner_cannot_delete(self, client: AsyncClient, api, alice, bob, create_note):
        note = await create_note(alice, "Mine")

        response = await client.delete(f"/api/v1/notes/{note['id']}", headers=bob)

        api.assert_error(response, 403)


class TestTagsAndSearch:
    """Tests for tag aggregation, tag filtering and search."""

    @pytest.mark.asyncio
    async def test_tag_counts_exclude_hidden_notes(self, client: AsyncClient, api, alice, bob, create_note):
        await create_note(alice, "One", tags=["python", "web"])
        await create_note(alice, "Two", tags=["python"])
        await create_note(alice, "Hidden", tags=["python", "secret"], is_private=True)

        data = api.assert_success(await client.get("/api/v1/notes/tags", headers=bob))["data"]

        assert data == [{"tag": "python", "count": 2}, {"tag": "web", "count": 1}]

    @pytest.mark.asyncio
    async def test_list_by_tag_is_case_insensitive(self, client: AsyncClient, api, alice, create_note):
        await create_note(alice, "Tagged", tags=["python"])
        await create_note(alice, "Other", tags=["rust"])

        data = api.assert_success(await client.get("/api/v1/notes/tag/PYTHON"))

        assert [n["title"] for n in data["data"]] == ["Tagged"]

    @pytest.mark.asyncio
    async def test_search_ranks_title_before_content(self, client: AsyncClient, api, alice, create_note):
        await create_note(alice, "Unrelated", content="mentions graph in passing")
        await create_note(alice, "Graph theory")
        await create_note(alice, "Nothing here")

        data = api.assert_success(await client.get("/api/v1/notes/search?q=graph"))["data"]

        assert [n["title"] for n in data] == ["Graph theory", "Unrelated"]

    @pytest.mark.asyncio
    async def test_search_matches_tags(self, client: AsyncClient, api, alice, create_note):
        await create_note(alice, "Tagged", tags=["async"])

        data = api.assert_success(await client.get("/api/v1/notes/search?q=async"))["data"]

        assert [n["title"] for n in data] == ["Tagged"]

    @pytest.mark.asyncio
    async def test_search_hides_private_notes(self, client: AsyncClient, api, alice, bob, create_note):
        await create_note(alice, "Secret graph", is_private=True)

        data = api.assert_success(await client.get("/api/v1/notes/search?q=graph", headers=bob))["data"]

        assert data == []

    @pytest.mark.asyncio
    async def test_blank_search_returns_empty(self, client: AsyncClient, api, alice, create_note):
        await create_note(alice, "Anything")

        data = api.assert_success(await client.get("/api/v1/notes/search?q=%20%20"))["data"]

        assert data == []


class TestImportNotes:
    """Tests for POST /api/v1/notes/import."""

    @pytest.mark.asyncio
    async def test_import_reports_per_item_errors(self, client: AsyncClient, api, alice):
        response = await client.post(
            "/api/v1/notes/import",
            json={
                "notes": [
                    {"title": "First", "tags": ["imported"]},
                    {"content": "no title"},
                    {"title": "Third", "is_private": True},
                    "not an object",
                ]
            },
            headers=alice,
        )

        result = api.assert_success(response)["data"]
        assert result["total"] == 4
        assert result["imported"] == 2
        assert result["failed"] == 2
        assert [e["index"] for e in result["errors"]] == [2, 4]
        assert result["errors"][0]["title"] is None

        listed = api.assert_success(await client.get("/api/v1/notes", headers=alice))
        assert {n["title"] for n in listed["data"]} == {"First", "Third"}

    @pytest.mark.asyncio
    async def test_import_requires_auth(self, client: AsyncClient, api):
        response = await client.post("/api/v1/notes/import", json={"notes": []})

        api.assert_error(response, 401)
