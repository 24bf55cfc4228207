"""
tests/test_api_routes.py -- Integration tests for the auth and ticket routes.

These tests exercise the full stack: FastAPI routing -> auth dependency
injection -> TokenAuthority/TicketStore -> response model serialization.

Coverage:
  - Login: valid 200 with both tokens, case-insensitive username, 401 otherwise
  - Refresh: rotation returns a new pair, replay of the old token is 401
  - Tickets: 401 without token, 403 for the wrong role, 404 for unknown ids,
    CRUD happy paths for Admin, read access for User

Fixtures used (from conftest.py):
  - api_client: ApiHarness with users alice/pw1 (Admin) and bob/pw2 (User)
    and three sample tickets T-1..T-3.
"""

from __future__ import annotations

from datetime import datetime

from jose import jwt

from tests.conftest import ApiHarness


class TestLogin:
    def test_valid_credentials(self, api_client: ApiHarness) -> None:
        resp = api_client.client.post("/api/v1/auth/login", json={"username": "alice", "password": "pw1"})
        assert resp.status_code == 200, resp.text
        data = resp.json()
        assert data["username"] == "alice"
        assert data["role"] == "Admin"
        assert data["token"]
        assert data["refresh_token"]
        assert datetime.fromisoformat(data["refresh_expires_at"]) > datetime.fromisoformat(data["expires_at"])
        assert resp.headers["Cache-Control"] == "no-store"

    def test_username_is_case_insensitive(self, api_client: ApiHarness) -> None:
        resp = api_client.client.post("/api/v1/auth/login", json={"username": "ALICE", "password": "pw1"})
        assert resp.status_code == 200
        assert resp.json()["role"] == "Admin"

    def test_access_token_claims(self, api_client: ApiHarness) -> None:
        resp = api_client.client.post("/api/v1/auth/login", json={"username": "bob", "password": "pw2"})
        claims = jwt.get_unverified_claims(resp.json()["token"])
        assert claims["sub"] == "bob"
        assert claims["role"] == "User"

    def test_wrong_password(self, api_client: ApiHarness) -> None:
        resp = api_client.client.post("/api/v1/auth/login", json={"username": "alice", "password": "wrong"})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "unauthenticated"

    def test_unknown_user_looks_like_wrong_password(self, api_client: ApiHarness) -> None:
        unknown = api_client.client.post("/api/v1/auth/login", json={"username": "mallory", "password": "pw1"})
        wrong = api_client.client.post("/api/v1/auth/login", json={"username": "alice", "password": "nope"})
        assert unknown.status_code == wrong.status_code == 401
        assert unknown.json() == wrong.json()

    def test_password_is_not_trimmed(self, api_client: ApiHarness) -> None:
        resp = api_client.client.post("/api/v1/auth/login", json={"username": "alice", "password": "pw1   "})
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "unauthenticated"

    def test_blank_password_rejected(self, api_client: ApiHarness) -> None:
        resp = api_client.client.post("/api/v1/auth/login", json={"username": "alice", "password": "   "})
        assert resp.status_code == 422

    def test_missing_fields_rejected(self, api_client: ApiHarness) -> None:
        resp = api_client.client.post("/api/v1/auth/login", json={"username": "alice"})
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "validation_error"


class TestRefresh:
    def _login(self, api_client: ApiHarness) -> dict:
        return api_client.client.post("/api/v1/auth/login", json={"username": "bob", "password": "pw2"}).json()

    def test_refresh_rotates_tokens(self, api_client: ApiHarness) -> None:
        first = self._login(api_client)
        resp = api_client.client.post("/api/v1/auth/refresh", json={"refresh_token": first["refresh_token"]})
        assert resp.status_code == 200, resp.text
        second = resp.json()
        assert second["username"] == "bob"
        assert second["role"] == "User"
        assert second["refresh_token"] != first["refresh_token"]
        assert second["token"] != first["token"]

    def test_old_refresh_token_cannot_be_replayed(self, api_client: ApiHarness) -> None:
        first = self._login(api_client)
        assert api_client.client.post("/api/v1/auth/refresh", json={"refresh_token": first["refresh_token"]}).status_code == 200
        replay = api_client.client.post("/api/v1/auth/refresh", json={"refresh_token": first["refresh_token"]})
        assert replay.status_code == 401
        assert replay.json()["error"]["code"] == "unauthenticated"

    def test_new_refresh_token_works(self, api_client: ApiHarness) -> None:
        first = self._login(api_client)
        second = api_client.client.post("/api/v1/auth/refresh", json={"refresh_token": first["refresh_token"]}).json()
        third = api_client.client.post("/api/v1/auth/refresh", json={"refresh_token": second["refresh_token"]})
        assert third.status_code == 200

    def test_unknown_refresh_token(self, api_client: ApiHarness) -> None:
        resp = api_client.client.post("/api/v1/auth/refresh", json={"refresh_token": "bm90LWEtdG9rZW4="})
        assert resp.status_code == 401

    def test_refreshed_access_token_is_accepted(self, api_client: ApiHarness) -> None:
        first = self._login(api_client)
        second = api_client.client.post("/api/v1/auth/refresh", json={"refresh_token": first["refresh_token"]}).json()
        resp = api_client.client.get("/api/v1/auth/me", headers=api_client.headers(second["token"]))
        assert resp.status_code == 200
        assert resp.json() == {"username": "bob", "role": "User"}


class TestTicketAuth:
    def test_list_requires_token(self, api_client: ApiHarness) -> None:
        resp = api_client.client.get("/api/v1/tickets")
        assert resp.status_code == 401
        assert resp.json()["error"]["code"] == "unauthenticated"
        assert resp.headers["WWW-Authenticate"] == "Bearer"

    def test_garbage_token_rejected(self, api_client: ApiHarness) -> None:
        resp = api_client.client.get("/api/v1/tickets", headers=api_client.headers("not-a-jwt"))
        assert resp.status_code == 401

    def test_refresh_token_is_not_an_access_token(self, api_client: ApiHarness) -> None:
        refresh_token, _ = api_client.authority.issue_refresh_token("alice", "Admin")
        resp = api_client.client.get("/api/v1/tickets", headers=api_client.headers(refresh_token))
        assert resp.status_code == 401

    def test_user_role_can_read(self, api_client: ApiHarness) -> None:
        resp = api_client.client.get("/api/v1/tickets", headers=api_client.headers(api_client.user_token))
        assert resp.status_code == 200

    def test_user_role_cannot_write(self, api_client: ApiHarness) -> None:
        headers = api_client.headers(api_client.user_token)
        create = api_client.client.post("/api/v1/tickets", json={"ticket_id": "T-9"}, headers=headers)
        update = api_client.client.put("/api/v1/tickets/T-1", json={"status": "Closed"}, headers=headers)
        delete = api_client.client.delete("/api/v1/tickets/T-1", headers=headers)
        assert create.status_code == update.status_code == delete.status_code == 403
        assert delete.json()["error"]["code"] == "forbidden"
        assert len(api_client.store) == 3

    def test_unknown_role_cannot_read(self, api_client: ApiHarness) -> None:
        token = api_client.authority.issue_access_token("eve", "Auditor")
        resp = api_client.client.get("/api/v1/tickets", headers=api_client.headers(token))
        assert resp.status_code == 403


class TestTicketCrud:
    def test_list_in_load_order(self, api_client: ApiHarness) -> None:
        resp = api_client.client.get("/api/v1/tickets", headers=api_client.headers(api_client.admin_token))
        assert [t["ticket_id"] for t in resp.json()] == ["T-1", "T-2", "T-3"]
        assert resp.json()[1]["description"] == "Export to CSV, PDF"

    def test_get_by_id(self, api_client: ApiHarness) -> None:
        resp = api_client.client.get("/api/v1/tickets/T-2", headers=api_client.headers(api_client.user_token))
        assert resp.status_code == 200
        assert resp.json()["email"] == "ben@example.com"

    def test_get_unknown_is_404(self, api_client: ApiHarness) -> None:
        resp = api_client.client.get("/api/v1/tickets/T-404", headers=api_client.headers(api_client.admin_token))
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "not_found"

    def test_create(self, api_client: ApiHarness) -> None:
        body = {"ticket_id": "T-9", "email": "dan@example.com", "type": "Bug", "status": "Open"}
        resp = api_client.client.post("/api/v1/tickets", json=body, headers=api_client.headers(api_client.admin_token))
        assert resp.status_code == 201, resp.text
        assert resp.json()["ticket_id"] == "T-9"
        assert resp.headers["Location"].endswith("/api/v1/tickets/T-9")
        assert api_client.store.get_all()[-1].email == "dan@example.com"

    def test_create_duplicate_id_is_allowed(self, api_client: ApiHarness) -> None:
        headers = api_client.headers(api_client.admin_token)
        resp = api_client.client.post("/api/v1/tickets", json={"ticket_id": "T-1", "email": "dup@example.com"}, headers=headers)
        assert resp.status_code == 201
        fetched = api_client.client.get("/api/v1/tickets/T-1", headers=headers).json()
        assert fetched["email"] == "ann@example.com"

    def test_create_requires_ticket_id(self, api_client: ApiHarness) -> None:
        resp = api_client.client.post(
            "/api/v1/tickets", json={"email": "x@example.com"}, headers=api_client.headers(api_client.admin_token)
        )
        assert resp.status_code == 422

    def test_update(self, api_client: ApiHarness) -> None:
        headers = api_client.headers(api_client.admin_token)
        body = {"email": "ann@example.com", "type": "Bug", "description": "Login fails", "status": "Closed", "resolution": "Fixed"}
        resp = api_client.client.put("/api/v1/tickets/T-1", json=body, headers=headers)
        assert resp.status_code == 200
        fetched = api_client.client.get("/api/v1/tickets/T-1", headers=headers).json()
        assert fetched["status"] == "Closed"
        assert fetched["resolution"] == "Fixed"
        assert fetched["ticket_id"] == "T-1"

    def test_update_unknown_is_404_and_changes_nothing(self, api_client: ApiHarness) -> None:
        before = api_client.store.get_all()
        resp = api_client.client.put(
            "/api/v1/tickets/T-404", json={"status": "Closed"}, headers=api_client.headers(api_client.admin_token)
        )
        assert resp.status_code == 404
        assert api_client.store.get_all() == before

    def test_delete(self, api_client: ApiHarness) -> None:
        headers = api_client.headers(api_client.admin_token)
        assert api_client.client.delete("/api/v1/tickets/T-2", headers=headers).status_code == 200
        assert api_client.client.get("/api/v1/tickets/T-2", headers=headers).status_code == 404

    def test_delete_unknown_is_404(self, api_client: ApiHarness) -> None:
        resp = api_client.client.delete("/api/v1/tickets/T-404", headers=api_client.headers(api_client.admin_token))
        assert resp.status_code == 404

    def test_create_id_with_path_separator(self, api_client: ApiHarness) -> None:
        resp = api_client.client.post(
            "/api/v1/tickets",
            json={"ticket_id": "A/1", "email": "a@example.com"},
            headers=api_client.headers(api_client.admin_token),
        )
        assert resp.status_code == 201, resp.text
        assert resp.headers["Location"].endswith("/api/v1/tickets/A%2F1")
        assert api_client.store.get_all()[-1].ticket_id == "A/1"
