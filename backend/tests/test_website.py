"""
TIL Backend — Website Tests
===========================

What:  HTML pages and form flows through the ASGI app: session login,
       CSRF, create/edit with category tags, register, Google OAuth.

What we test:
    ✅ Anonymous visitors are redirected to /login for data-changing pages
    ✅ Create/edit reconcile the submitted `categories` field
    ✅ CSRF mismatch is refused with 403
    ✅ Register, login, logout round trip
    ✅ Google OAuth happy path, state mismatch, re-authorization redirect
"""

import re
from urllib.parse import parse_qs, urlparse

import httpx
import pytest

from tilapp.main import app
from tilapp.routes.website import get_oauth_service
from tilapp.services.oauth_service import GoogleOAuthService

CSRF_PATTERN = re.compile(r'name="csrf_token" value="([^"]+)"')


async def _csrf(client, path="/acronyms/create"):
    page = await client.get(path)
    assert page.status_code == 200
    match = CSRF_PATTERN.search(page.text)
    assert match, "form has no csrf_token field"
    return match.group(1)


async def _create_acronym(client, short="OMG", long="Oh My God", categories=()):
    token = await _csrf(client)
    response = await client.post(
        "/acronyms/create",
        data={"short": short, "long": long, "categories": list(categories), "csrf_token": token},
    )
    assert response.status_code == 303, response.text
    location = response.headers["location"]
    assert location.startswith("/acronyms/")
    return location.rsplit("/", 1)[-1]


async def _category_names(client, acronym_id):
    response = await client.get(f"/api/acronyms/{acronym_id}/categories")
    return {c["name"] for c in response.json()}


class TestAnonymousVisitor:

    @pytest.mark.asyncio
    async def test_home_page_renders(self, client):
        response = await client.get("/")

        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "There aren't any acronyms yet!" in response.text

    @pytest.mark.asyncio
    @pytest.mark.parametrize("path", ["/acronyms/create", "/acronyms/00000000-0000-0000-0000-000000000000/edit"])
    async def test_edit_pages_redirect_to_login(self, client, path):
        response = await client.get(path)

        assert response.status_code == 303
        assert response.headers["location"] == "/login"

    @pytest.mark.asyncio
    async def test_create_post_redirects_to_login(self, client):
        response = await client.post(
            "/acronyms/create", data={"short": "OMG", "long": "Oh My God"}
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/login"
        assert (await client.get("/api/acronyms")).json() == []

    @pytest.mark.asyncio
    async def test_login_with_wrong_password(self, client, make_user):
        await make_user("alice")

        response = await client.post("/login", data={"username": "alice", "password": "wrong"})
        page = await client.get(response.headers["location"])

        assert response.headers["location"] == "/login?error=1"
        assert "User authentication error" in page.text


class TestCreateAndEdit:

    @pytest.mark.asyncio
    async def test_create_with_categories(self, web_client):
        acronym_id = await _create_acronym(web_client, categories=["Funny", "Tech"])

        assert await _category_names(web_client, acronym_id) == {"Funny", "Tech"}
        page = await web_client.get(f"/acronyms/{acronym_id}")
        assert "Oh My God" in page.text
        assert "Web User" in page.text

    @pytest.mark.asyncio
    async def test_create_reuses_existing_categories(self, web_client):
        await _create_acronym(web_client, "OMG", "Oh My God", ["Funny"])
        await _create_acronym(web_client, "LOL", "Laugh Out Loud", ["Funny"])

        categories = (await web_client.get("/api/categories")).json()
        assert [c["name"] for c in categories] == ["Funny"]

    @pytest.mark.asyncio
    async def test_create_without_categories(self, web_client):
        acronym_id = await _create_acronym(web_client)

        assert await _category_names(web_client, acronym_id) == set()

    @pytest.mark.asyncio
    async def test_csrf_mismatch_is_403(self, web_client):
        await _csrf(web_client)

        response = await web_client.post(
            "/acronyms/create",
            data={"short": "OMG", "long": "Oh My God", "csrf_token": "forged"},
        )

        assert response.status_code == 403
        assert (await web_client.get("/api/acronyms")).json() == []

    @pytest.mark.asyncio
    async def test_edit_reconciles_categories(self, web_client):
        acronym_id = await _create_acronym(web_client, categories=["Funny", "Tech"])
        token = await _csrf(web_client, f"/acronyms/{acronym_id}/edit")

        response = await web_client.post(
            f"/acronyms/{acronym_id}/edit",
            data={"short": "OMG", "long": "Oh My Gosh", "categories": ["Tech", "Chat"], "csrf_token": token},
        )

        assert response.status_code == 303
        assert response.headers["location"] == f"/acronyms/{acronym_id}"
        assert await _category_names(web_client, acronym_id) == {"Tech", "Chat"}
        assert (await web_client.get(f"/api/acronyms/{acronym_id}")).json()["long"] == "Oh My Gosh"
        names = {c["name"] for c in (await web_client.get("/api/categories")).json()}
        assert names == {"Funny", "Tech", "Chat"}

    @pytest.mark.asyncio
    async def test_edit_page_preselects_categories(self, web_client):
        acronym_id = await _create_acronym(web_client, categories=["Tech"])

        page = await web_client.get(f"/acronyms/{acronym_id}/edit")

        assert '<option value="Tech" selected="selected">Tech</option>' in page.text

    @pytest.mark.asyncio
    async def test_edit_with_no_categories_detaches_all(self, web_client):
        acronym_id = await _create_acronym(web_client, categories=["Funny", "Tech"])
        token = await _csrf(web_client, f"/acronyms/{acronym_id}/edit")

        await web_client.post(
            f"/acronyms/{acronym_id}/edit",
            data={"short": "OMG", "long": "Oh My God", "csrf_token": token},
        )

        assert await _category_names(web_client, acronym_id) == set()

    @pytest.mark.asyncio
    async def test_delete(self, web_client):
        acronym_id = await _create_acronym(web_client)
        token = await _csrf(web_client, f"/acronyms/{acronym_id}")

        response = await web_client.post(
            f"/acronyms/{acronym_id}/delete", data={"csrf_token": token}
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/"
        assert (await web_client.get(f"/api/acronyms/{acronym_id}")).status_code == 404

    @pytest.mark.asyncio
    async def test_delete_missing_acronym_is_404(self, web_client):
        acronym_id = await _create_acronym(web_client)
        token = await _csrf(web_client, f"/acronyms/{acronym_id}")
        await web_client.post(f"/acronyms/{acronym_id}/delete", data={"csrf_token": token})

        response = await web_client.post(
            f"/acronyms/{acronym_id}/delete", data={"csrf_token": token}
        )

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


class TestBrowsingPages:

    @pytest.mark.asyncio
    async def test_user_and_category_pages(self, web_client):
        acronym_id = await _create_acronym(web_client, categories=["Tech"])
        user = (await web_client.get(f"/api/acronyms/{acronym_id}/user")).json()
        category = (await web_client.get("/api/categories")).json()[0]

        all_users = await web_client.get("/users")
        user_page = await web_client.get(f"/users/{user['id']}")
        all_categories = await web_client.get("/categories")
        category_page = await web_client.get(f"/categories/{category['id']}")

        assert "webuser" in all_users.text
        assert "OMG" in user_page.text
        assert "Tech" in all_categories.text
        assert "OMG" in category_page.text

    @pytest.mark.asyncio
    async def test_missing_acronym_is_404(self, client):
        response = await client.get("/acronyms/00000000-0000-0000-0000-000000000000")

        assert response.status_code == 404


class TestSessionLifecycle:

    @pytest.mark.asyncio
    async def test_logout_ends_session(self, web_client):
        response = await web_client.post("/logout")

        assert response.status_code == 303
        assert (await web_client.get("/acronyms/create")).headers["location"] == "/login"

    @pytest.mark.asyncio
    async def test_register_logs_in(self, client):
        response = await client.post(
            "/register",
            data={
                "name": "New Person",
                "username": "newbie",
                "password": "long-enough",
                "confirm_password": "long-enough",
            },
        )

        assert response.status_code == 303
        assert response.headers["location"] == "/"
        assert (await client.get("/acronyms/create")).status_code == 200

    @pytest.mark.asyncio
    async def test_register_password_mismatch(self, client):
        response = await client.post(
            "/register",
            data={"name": "N", "username": "n", "password": "long-enough", "confirm_password": "different"},
        )

        assert response.headers["location"].startswith("/register?message=")
        page = await client.get(response.headers["location"])
        assert "Passwords do not match" in page.text

    @pytest.mark.asyncio
    async def test_register_taken_username(self, client, make_user):
        await make_user("alice")

        response = await client.post(
            "/register",
            data={"name": "A", "username": "alice", "password": "long-enough", "confirm_password": "long-enough"},
        )

        assert "already+taken" in response.headers["location"]


def _fake_google(profile_status=200) -> GoogleOAuthService:
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("/token"):
            return httpx.Response(200, json={"access_token": "access"})
        return httpx.Response(
            profile_status, json={"id": "77", "email": "grace@example.com", "name": "Grace Hopper"}
        )

    return GoogleOAuthService(
        client_id="id",
        client_secret="secret",
        callback_url="http://testserver/oauth/google",
        transport=httpx.MockTransport(handler),
    )


class TestGoogleLogin:

    @pytest.fixture
    def google(self):
        service = _fake_google()
        app.dependency_overrides[get_oauth_service] = lambda: service
        yield service
        app.dependency_overrides.pop(get_oauth_service, None)

    async def _start(self, client):
        response = await client.get("/login-google")
        assert response.status_code == 303
        location = urlparse(response.headers["location"])
        assert location.netloc == "accounts.google.com"
        return parse_qs(location.query)["state"][0]

    @pytest.mark.asyncio
    async def test_disabled_without_credentials(self, client):
        response = await client.get("/login-google")

        assert response.status_code == 303
        assert response.headers["location"] == "/login?error=google"

    @pytest.mark.asyncio
    async def test_callback_logs_in_new_user(self, client, google):
        state = await self._start(client)

        response = await client.get("/oauth/google", params={"code": "c", "state": state})

        assert response.status_code == 303
        assert response.headers["location"] == "/"
        assert (await client.get("/acronyms/create")).status_code == 200
        users = (await client.get("/api/users")).json()
        assert [(u["name"], u["username"]) for u in users] == [("Grace Hopper", "grace@example.com")]

    @pytest.mark.asyncio
    async def test_state_mismatch_is_403(self, client, google):
        await self._start(client)

        response = await client.get("/oauth/google", params={"code": "c", "state": "forged"})

        assert response.status_code == 403
        assert (await client.get("/api/users")).json() == []

    @pytest.mark.asyncio
    async def test_rejected_token_restarts_flow(self, client):
        service = _fake_google(profile_status=401)
        app.dependency_overrides[get_oauth_service] = lambda: service
        try:
            state = await self._start(client)
            response = await client.get("/oauth/google", params={"code": "c", "state": state})
        finally:
            app.dependency_overrides.pop(get_oauth_service, None)

        assert response.status_code == 303
        assert response.headers["location"] == "/login-google"
