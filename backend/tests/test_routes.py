"""
Notecard — HTTP Endpoint Tests
================================

What:  End-to-end requests against the app: pages, auth, JSON API, signed
       media and health.
How:   test_client (conftest) runs the real app over ASGITransport with a
       SQLite database and local storage under tmp_path.
"""

from urllib.parse import urlsplit

import pytest

from notecard.config import settings


def _png_upload(content: bytes, filename: str = "cat.png"):
    return {"image": (filename, content, "image/png")}


class TestAuthGate:

    @pytest.mark.asyncio
    async def test_signed_out_page_shows_challenge(self, test_client):
        response = await test_client.get("/")

        assert response.status_code == 200
        assert "My Notes App" in response.text
        assert 'action="/auth/session"' in response.text
        assert "Current Notes" not in response.text

    @pytest.mark.asyncio
    async def test_api_requires_session(self, test_client):
        response = await test_client.get("/api/notes")

        assert response.status_code == 401
        body = response.json()
        assert body["error"] == "unauthenticated"
        assert body["request_id"] == response.headers["X-Request-ID"]

    @pytest.mark.asyncio
    async def test_session_exchange_sets_cookie(self, test_client, session_token):
        response = await test_client.post("/auth/session", data={"token": session_token})

        assert response.status_code == 303
        assert response.headers["location"] == "/"
        assert settings.session_cookie_name in response.cookies

        page = await test_client.get("/")
        assert "Current Notes" in page.text

    @pytest.mark.asyncio
    async def test_bad_token_rerenders_challenge(self, test_client):
        response = await test_client.post("/auth/session", data={"token": "nope"})

        assert response.status_code == 401
        assert "Invalid session token" in response.text

    @pytest.mark.asyncio
    async def test_session_info(self, test_client, auth_headers):
        response = await test_client.get("/api/session", headers=auth_headers)

        assert response.status_code == 200
        assert response.json() == {"owner": "alice", "identity_id": "eu-west-1:alice"}

    @pytest.mark.asyncio
    async def test_sign_out_clears_cookie(self, test_client, session_token):
        test_client.cookies.set(settings.session_cookie_name, session_token)

        response = await test_client.post("/auth/sign-out")

        assert response.status_code == 303
        assert settings.session_cookie_name in response.headers["set-cookie"]
        assert "Max-Age=0" in response.headers["set-cookie"]


class TestNotesApi:

    @pytest.mark.asyncio
    async def test_create_list_delete(self, test_client, auth_headers):
        created = await test_client.post(
            "/api/notes",
            data={"name": "Groceries", "description": "milk, eggs"},
            headers=auth_headers,
        )
        assert created.status_code == 201
        note_id = created.json()["note"]["id"]
        assert created.json()["note"]["owner"] == "alice"

        listed = await test_client.get("/api/notes", headers=auth_headers)
        assert listed.status_code == 200
        assert listed.headers["Cache-Control"] == "private, no-store"
        assert [n["id"] for n in listed.json()["notes"]] == [note_id]

        deleted = await test_client.delete(f"/api/notes/{note_id}", headers=auth_headers)
        assert deleted.status_code == 200
        assert deleted.json()["notes"] == []

    @pytest.mark.asyncio
    async def test_image_served_through_signed_url(
        self, test_client, auth_headers, sample_png_bytes
    ):
        created = await test_client.post(
            "/api/notes",
            data={"name": "Cat", "description": "a cat"},
            files=_png_upload(sample_png_bytes),
            headers=auth_headers,
        )
        assert created.status_code == 201
        assert created.json()["note"]["image_key"] == "cat.png"

        image_url = created.json()["notes"][0]["image_url"]
        assert image_url != "cat.png"
        assert "token=" in image_url

        image = await test_client.get(image_url)
        assert image.status_code == 200
        assert image.content == sample_png_bytes
        assert image.headers["content-type"] == "image/png"

    @pytest.mark.asyncio
    async def test_tampered_signature_rejected(self, test_client, auth_headers, sample_png_bytes):
        created = await test_client.post(
            "/api/notes",
            data={"name": "Cat", "description": "a cat"},
            files=_png_upload(sample_png_bytes),
            headers=auth_headers,
        )
        path = urlsplit(created.json()["notes"][0]["image_url"]).path

        response = await test_client.get(path, params={"token": "forged"})

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_unsupported_image_rejected(self, test_client, auth_headers):
        response = await test_client.post(
            "/api/notes",
            data={"name": "Gif", "description": "animated"},
            files={"image": ("anim.gif", b"GIF89a", "image/gif")},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["error"] == "validation_error"

        listed = await test_client.get("/api/notes", headers=auth_headers)
        assert listed.json()["notes"] == []

    @pytest.mark.asyncio
    async def test_renamed_non_image_rejected(self, test_client, auth_headers):
        response = await test_client.post(
            "/api/notes",
            data={"name": "Evil", "description": "not a picture"},
            files={"image": ("evil.png", b"<html><script>alert(1)</script></html>", "application/octet-stream")},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert response.json()["details"]["detected_mime"] == "text/html"

        listed = await test_client.get("/api/notes", headers=auth_headers)
        assert listed.json()["notes"] == []

    @pytest.mark.asyncio
    async def test_oversized_upload_refused(self, test_client, auth_headers, monkeypatch):
        monkeypatch.setattr(settings, "max_file_size", 1024)

        response = await test_client.post(
            "/api/notes",
            data={"name": "Huge", "description": "too big"},
            files={"image": ("huge.png", b"\x89PNG\r\n\x1a\n" + b"\x00" * 4096, "image/png")},
            headers=auth_headers,
        )

        assert response.status_code == 400
        assert "exceeds maximum" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_notes_are_owner_scoped(self, test_client, auth_headers, other_session_token):
        await test_client.post(
            "/api/notes",
            data={"name": "Private", "description": "alice only"},
            headers=auth_headers,
        )

        response = await test_client.get(
            "/api/notes",
            headers={"Authorization": f"Bearer {other_session_token}"},
        )

        assert response.json()["notes"] == []

    @pytest.mark.asyncio
    async def test_delete_unknown_note(self, test_client, auth_headers):
        response = await test_client.delete(
            "/api/notes/00000000-0000-0000-0000-000000000000",
            headers=auth_headers,
        )
        assert response.status_code == 200
        assert response.json()["notes"] == []


class TestPages:

    @pytest.mark.asyncio
    async def test_form_create_redirects_and_lists(self, test_client, session_token, sample_png_bytes):
        test_client.cookies.set(settings.session_cookie_name, session_token)

        response = await test_client.post(
            "/notes",
            data={"name": "Whiteboard", "description": "sprint plan"},
            files=_png_upload(sample_png_bytes, "board.png"),
        )
        assert response.status_code == 303

        page = await test_client.get("/")
        assert "Whiteboard" in page.text
        assert 'alt="visual aid for Whiteboard"' in page.text

    @pytest.mark.asyncio
    async def test_form_failure_keeps_input(self, test_client, session_token):
        test_client.cookies.set(settings.session_cookie_name, session_token)

        response = await test_client.post(
            "/notes",
            data={"name": "Half typed", "description": ""},
        )

        assert response.status_code == 400
        assert 'value="Half typed"' in response.text
        assert "Give the note a description." in response.text

    @pytest.mark.asyncio
    async def test_form_oversized_upload_keeps_input(self, test_client, session_token, monkeypatch):
        monkeypatch.setattr(settings, "max_file_size", 1024)
        test_client.cookies.set(settings.session_cookie_name, session_token)

        response = await test_client.post(
            "/notes",
            data={"name": "Big scan", "description": "whiteboard"},
            files={"image": ("scan.png", b"\x89PNG\r\n\x1a\n" + b"\x00" * 4096, "image/png")},
        )

        assert response.status_code == 400
        assert 'value="Big scan"' in response.text
        assert "exceeds maximum" in response.text

    @pytest.mark.asyncio
    async def test_delete_button(self, test_client, session_token, auth_headers):
        created = await test_client.post(
            "/api/notes",
            data={"name": "Temporary", "description": "remove me"},
            headers=auth_headers,
        )
        note_id = created.json()["note"]["id"]
        test_client.cookies.set(settings.session_cookie_name, session_token)

        response = await test_client.post(f"/notes/{note_id}/delete")

        assert response.status_code == 303
        page = await test_client.get("/")
        assert "Temporary" not in page.text

    @pytest.mark.asyncio
    async def test_signed_out_form_post_redirects(self, test_client):
        response = await test_client.post("/notes", data={"name": "x", "description": "y"})
        assert response.status_code == 303


class TestHealth:

    @pytest.mark.asyncio
    async def test_health(self, test_client):
        response = await test_client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["database"] == "connected"
        assert body["storage"] == "available"
