"""HTTP flows for register / login / refresh-token / logout and the request gate."""
from flask import g
from sqlalchemy import inspect

from channel_accounts.models import storage
from channel_accounts.utils.decorators import jwt_required
from channel_accounts.utils.exceptions import RequestValidationError
from tests.conftest import ALICE, bearer

API = "/api/v1/users"


def _login(client, identifier="alice", password="secret123"):
    return client.post(f"{API}/login", json={"username": identifier, "password": password})


def _set_cookies(resp) -> list:
    return resp.headers.getlist("Set-Cookie")


class TestRegister:
    def test_register(self, client):
        resp = client.post(f"{API}/register", json={**ALICE, "avatar": "https://cdn.example.com/a.png"})

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["statusCode"] == 201
        assert body["success"] is True
        assert body["data"]["username"] == "alice"
        assert body["data"]["avatar"] == "https://cdn.example.com/a.png"
        assert "password" not in body["data"]
        assert "password_hash" not in body["data"]
        assert "refresh_token_hash" not in body["data"]

    def test_register_normalizes_case(self, client):
        resp = client.post(f"{API}/register", json={**ALICE, "username": "Alice", "email": "Alice@X.com"})

        assert resp.status_code == 201
        assert resp.get_json()["data"]["email"] == "alice@x.com"

    def test_duplicate_username_or_email(self, client, alice_id):
        by_name = client.post(f"{API}/register", json={**ALICE, "email": "other@x.com"})
        by_email = client.post(f"{API}/register", json={**ALICE, "username": "alice2"})

        assert by_name.status_code == 409
        assert by_email.status_code == 409
        assert by_name.get_json()["success"] is False

    def test_missing_fields(self, client):
        resp = client.post(f"{API}/register", json={"username": "alice"})

        assert resp.status_code == 400
        body = resp.get_json()
        assert set(body) == {"statusCode", "success", "message", "errors"}
        assert body["message"] == RequestValidationError.message
        fields = {e["field"] for e in body["errors"]}
        assert {"email", "password", "display_name"} <= fields

    def test_short_password(self, client):
        resp = client.post(f"{API}/register", json={**ALICE, "password": "short"})

        assert resp.status_code == 400


class TestLogin:
    def test_alice_scenario(self, client, alice_id):
        resp = _login(client)

        assert resp.status_code == 200
        body = resp.get_json()
        assert body["success"] is True
        assert body["data"]["user"]["username"] == "alice"
        cookies = _set_cookies(resp)
        assert any(c.startswith("access_token=") and "HttpOnly" in c for c in cookies)
        assert any(c.startswith("refresh_token=") and "HttpOnly" in c for c in cookies)

        access = body["data"]["access_token"]
        me = client.get(f"{API}/me", headers=bearer(access))
        assert me.status_code == 200
        assert me.get_json()["data"]["username"] == "alice"

        truncated = client.get(f"{API}/me", headers=bearer(access[:-1]))
        assert truncated.status_code == 401
        assert truncated.get_json()["message"] == "Invalid access token"

    def test_login_with_email_identifier(self, client, alice_id):
        resp = client.post(f"{API}/login", json={"identifier": "ALICE@x.com", "password": "secret123"})

        assert resp.status_code == 200

    def test_wrong_password_does_not_reveal_existence(self, client, alice_id):
        wrong = _login(client, password="wrongpass")
        unknown = _login(client, identifier="nobody")

        assert wrong.status_code == 401
        assert unknown.status_code == 401
        assert wrong.get_json() == unknown.get_json()
        assert wrong.get_json()["message"] == "Invalid credentials"

    def test_requires_identifier(self, client):
        resp = client.post(f"{API}/login", json={"password": "secret123"})

        assert resp.status_code == 400

    def test_secure_cookies_when_configured(self, app, client, alice_id):
        app.config["COOKIE_SECURE"] = True

        cookies = _set_cookies(_login(client))

        assert all("Secure" in c for c in cookies)

    def test_corrupt_stored_hash_is_server_error(self, app, client, alice_id):
        with app.app_context():
            storage.update(alice_id, {"password_hash": "$argon2id$corrupt"})

        resp = _login(client)

        assert resp.status_code == 500
        assert resp.get_json()["success"] is False


class TestRefresh:
    def test_refresh_from_body_rotates(self, client, alice_id):
        first = _login(client).get_json()["data"]

        resp = client.post(f"{API}/refresh-token", json={"refresh_token": first["refresh_token"]})
        assert resp.status_code == 200
        second = resp.get_json()["data"]
        assert second["refresh_token"] != first["refresh_token"]
        assert any(c.startswith("refresh_token=") for c in _set_cookies(resp))

        replay = client.post(f"{API}/refresh-token", json={"refresh_token": first["refresh_token"]})
        assert replay.status_code == 401
        assert replay.get_json()["message"] == "Refresh token is expired or has been used"

    def test_refresh_from_cookie(self, app, alice_id):
        browser = app.test_client()
        _login(browser)
        old = browser.get_cookie("refresh_token").value

        resp = browser.post(f"{API}/refresh-token")

        assert resp.status_code == 200
        assert browser.get_cookie("refresh_token").value != old

    def test_missing_refresh_token(self, client):
        resp = client.post(f"{API}/refresh-token", json={})

        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Unauthorized request"

    def test_invalid_refresh_token(self, client):
        resp = client.post(f"{API}/refresh-token", json={"refresh_token": "abc.def.ghi"})

        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Invalid refresh token"


class TestLogout:
    def test_logout_revokes_and_clears_cookies(self, client, alice_id):
        tokens = _login(client).get_json()["data"]

        resp = client.post(f"{API}/logout", headers=bearer(tokens["access_token"]))
        assert resp.status_code == 200
        cleared = _set_cookies(resp)
        assert any(c.startswith("access_token=;") for c in cleared)
        assert any(c.startswith("refresh_token=;") for c in cleared)

        again = client.post(f"{API}/refresh-token", json={"refresh_token": tokens["refresh_token"]})
        assert again.status_code == 401
        assert again.get_json()["message"] == "Refresh token is expired or has been used"

    def test_logout_requires_token(self, client):
        resp = client.post(f"{API}/logout")

        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Unauthorized request"


class TestGate:
    def test_cookie_takes_precedence_over_header(self, app, alice_id):
        browser = app.test_client()
        access = _login(browser).get_json()["data"]["access_token"]

        assert browser.get(f"{API}/me", headers=bearer("garbage")).status_code == 200

        browser.set_cookie("access_token", "garbage")
        assert browser.get(f"{API}/me", headers=bearer(access)).status_code == 401

    def test_non_bearer_header_is_ignored(self, client, alice_id):
        access = _login(client).get_json()["data"]["access_token"]

        resp = client.get(f"{API}/me", headers={"Authorization": f"Token {access}"})

        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Unauthorized request"

    def test_refresh_token_is_not_accepted_as_access_token(self, client, alice_id):
        refresh = _login(client).get_json()["data"]["refresh_token"]

        assert client.get(f"{API}/me", headers=bearer(refresh)).status_code == 401

    def test_expired_access_token(self, app, client, alice_id):
        app.config["ACCESS_TOKEN_EXPIRES"] = app.config["ACCESS_TOKEN_EXPIRES"] * -1
        access = _login(client).get_json()["data"]["access_token"]

        resp = client.get(f"{API}/me", headers=bearer(access))

        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Access token expired"

    def test_deleted_account(self, app, client, alice_id):
        access = _login(client).get_json()["data"]["access_token"]
        with app.app_context():
            storage.get_session().delete(storage.find_by_id(alice_id))
            storage.save()

        resp = client.get(f"{API}/me", headers=bearer(access))

        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Invalid access token"

    def test_gate_does_not_touch_session_state(self, app, client, alice_id):
        access = _login(client).get_json()["data"]["access_token"]
        with app.app_context():
            before = storage.find_by_id(alice_id).refresh_token_hash

        client.get(f"{API}/me", headers=bearer(access))

        with app.app_context():
            assert storage.find_by_id(alice_id).refresh_token_hash == before

    def test_gate_leaves_credentials_unloaded(self, app, client, alice_id):
        seen = {}

        @app.get("/_whoami")
        @jwt_required()
        def whoami():
            seen["unloaded"] = set(inspect(g.current_user).unloaded)
            return {"id": g.current_user.id}

        access = _login(client).get_json()["data"]["access_token"]
        resp = client.get("/_whoami", headers=bearer(access))

        assert resp.status_code == 200
        assert {"password_hash", "refresh_token_hash"} <= seen["unloaded"]


class TestEnvelope:
    def test_health(self, client):
        resp = client.get("/api/v1/health")

        assert resp.status_code == 200
        assert resp.get_json()["data"]["status"] == "ok"

    def test_unknown_route(self, client):
        resp = client.get("/api/v1/nope")

        assert resp.status_code == 404
        assert resp.get_json()["success"] is False


class TestDocs:
    def test_swagger_document(self, client):
        resp = client.get("/swagger.json")

        assert resp.status_code == 200
        spec = resp.get_json()
        assert {"Bearer", "CookieAuth"} <= set(spec["securityDefinitions"])
        assert f"{API}/login" in spec["paths"]
        assert f"{API}/me" in spec["paths"]

    def test_root_links_docs(self, client):
        body = client.get("/").get_json()

        assert body["docs"] == "/apidocs/"
        assert body["health"] == "/api/v1/health"
