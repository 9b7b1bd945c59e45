"""
Snippetbox: Middleware Tests
============================

What we test:
    ✅ Security headers on every response, body and status passed through
    ✅ /ping bypasses sessions (no cookie)
    ✅ Session cookie attributes
    ✅ CSRF: missing or wrong token → 400, header token accepted
    ✅ Authentication state: Cache-Control, stale user ids
    ✅ Panic recovery: 500 with Connection: close, security headers, request
       ID and access log line; debug traces
"""

import logging

import pytest
from httpx import ASGITransport, AsyncClient

from snippetbox.exceptions import DatabaseError
from snippetbox.main import create_app
from tests.conftest import extract_csrf_token


class TestSecurityHeaders:

    @pytest.mark.asyncio
    async def test_headers_set_and_body_passed_through(self, test_client):
        response = await test_client.get("/ping")

        assert response.status_code == 200
        assert response.text == "OK"
        assert response.headers["Content-Security-Policy"] == (
            "default-src 'self'; style-src 'self' fonts.googleapis.com; "
            "font-src fonts.gstatic.com"
        )
        assert response.headers["Referrer-Policy"] == "origin-when-cross-origin"
        assert response.headers["X-Content-Type-Options"] == "nosniff"
        assert response.headers["X-Frame-Options"] == "deny"
        assert response.headers["X-XSS-Protection"] == "0"

    @pytest.mark.asyncio
    async def test_headers_on_not_found(self, test_client):
        response = await test_client.get("/missing")
        assert response.status_code == 404
        assert response.headers["X-Frame-Options"] == "deny"

    @pytest.mark.asyncio
    async def test_request_id_echoed(self, test_client):
        response = await test_client.get("/ping", headers={"X-Request-ID": "abc123"})
        assert response.headers["X-Request-ID"] == "abc123"


class TestSessionMiddleware:

    @pytest.mark.asyncio
    async def test_ping_sets_no_cookie(self, test_client):
        response = await test_client.get("/ping")
        assert "set-cookie" not in response.headers

    @pytest.mark.asyncio
    async def test_page_with_form_sets_session_cookie(self, test_client):
        response = await test_client.get("/user/login")

        cookie = response.headers["set-cookie"]
        assert cookie.startswith("session=")
        assert "HttpOnly" in cookie
        assert "SameSite=lax" in cookie
        assert "Path=/" in cookie
        assert "Cookie" in response.headers["vary"]


class TestCSRFMiddleware:

    @pytest.mark.asyncio
    async def test_missing_token_rejected(self, test_client):
        await test_client.get("/user/login")
        response = await test_client.post(
            "/user/login", data={"email": "alice@example.com", "password": "pa$$word"}
        )
        assert response.status_code == 400

    @pytest.mark.asyncio
    async def test_wrong_token_rejected_even_with_valid_credentials(self, test_client):
        await test_client.get("/user/login")
        response = await test_client.post(
            "/user/login",
            data={"email": "alice@example.com", "password": "pa$$word", "csrf_token": "wrong"},
        )
        assert response.status_code == 400

        still_anonymous = await test_client.get("/account/view")
        assert still_anonymous.status_code == 303

    @pytest.mark.asyncio
    async def test_token_from_header_accepted(self, test_client):
        page = await test_client.get("/user/login")
        response = await test_client.post(
            "/user/login",
            data={"email": "alice@example.com", "password": "pa$$word"},
            headers={"X-CSRF-Token": extract_csrf_token(page.text)},
        )
        assert response.status_code == 303

    @pytest.mark.asyncio
    async def test_token_survives_login_rotation(self, logged_in_client):
        page = await logged_in_client.get("/snippet/create")
        token = extract_csrf_token(page.text)
        response = await logged_in_client.post("/user/logout", data={"csrf_token": token})
        assert response.status_code == 303


class TestAuthenticateMiddleware:

    @pytest.mark.asyncio
    async def test_anonymous_pages_cacheable(self, test_client):
        response = await test_client.get("/")
        assert "cache-control" not in response.headers

    @pytest.mark.asyncio
    async def test_authenticated_pages_not_stored(self, logged_in_client):
        response = await logged_in_client.get("/")
        assert response.headers["Cache-Control"] == "no-store"

    @pytest.mark.asyncio
    async def test_deleted_user_treated_as_anonymous(self, logged_in_client, application):
        application.users.existing_ids.clear()

        response = await logged_in_client.get("/account/view")

        assert response.status_code == 303
        assert response.headers["location"] == "/user/login"


class FailingSnippetService:

    async def latest(self):
        raise RuntimeError("boom")


class TestErrorHandling:

    @pytest.mark.asyncio
    async def test_unhandled_error_is_500(self, application, caplog):
        application.snippets = FailingSnippetService()
        app = create_app(application)
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        with caplog.at_level(logging.ERROR, logger="snippetbox.access"):
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                response = await client.get("/", headers={"X-Request-ID": "req500"})

        assert response.status_code == 500
        assert response.text == "Internal Server Error"
        assert response.headers["connection"] == "close"
        # The 500 still passes back through the outer middleware
        assert response.headers["X-Frame-Options"] == "deny"
        assert response.headers["Content-Security-Policy"].startswith("default-src 'self'")
        assert response.headers["X-Request-ID"] == "req500"
        access = [r for r in caplog.records if r.name == "snippetbox.access"]
        assert len(access) == 1
        assert access[0].status == 500

    @pytest.mark.asyncio
    async def test_traceback_logged(self, application, caplog):
        application.snippets = FailingSnippetService()
        app = create_app(application)
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        with caplog.at_level(logging.ERROR, logger="snippetbox.middleware.recover"):
            async with AsyncClient(transport=transport, base_url="http://test") as client:
                await client.get("/")

        errors = [r for r in caplog.records if r.name == "snippetbox.middleware.recover"]
        assert len(errors) == 1
        assert errors[0].exc_info is not None

    @pytest.mark.asyncio
    async def test_database_error_in_middleware_keeps_headers(self, logged_in_client, application):
        async def exists(user_id):
            raise DatabaseError(context={"user_id": user_id})

        application.users.exists = exists

        response = await logged_in_client.get("/")

        assert response.status_code == 500
        assert response.text == "Internal Server Error"
        assert response.headers["connection"] == "close"
        assert response.headers["X-Frame-Options"] == "deny"
        assert "X-Request-ID" in response.headers

    @pytest.mark.asyncio
    async def test_debug_mode_writes_trace(self, application):
        application.snippets = FailingSnippetService()
        application.settings = application.settings.model_copy(update={"debug": True})
        app = create_app(application)
        transport = ASGITransport(app=app, raise_app_exceptions=False)
        async with AsyncClient(transport=transport, base_url="http://test") as client:
            response = await client.get("/")

        assert response.status_code == 500
        assert "Traceback" in response.text
        assert "RuntimeError: boom" in response.text
        assert response.headers["X-Content-Type-Options"] == "nosniff"
