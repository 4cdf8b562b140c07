from __future__ import annotations

from datetime import timedelta
from pathlib import Path

import pytest
import sqlalchemy as sa
from alembic.config import Config
from fastapi.testclient import TestClient

from account_auth.application.services.auth_service import AuthService
from account_auth.application.services.session_service import SessionService
from account_auth.infrastructure.db.account_repository import SqlAlchemyAccountRepository
from account_auth.infrastructure.db.session import create_session_factory
from account_auth.infrastructure.security.password_hasher import BcryptPasswordHasher
from alembic import command
from apps.api.main import create_app
from tests.fakes import MutableClock, build_token_codec


def _upgrade_head(tmp_path: Path, filename: str) -> tuple[str, str]:
    db_path = tmp_path / filename
    sync_url = f"sqlite+pysqlite:///{db_path}"
    async_url = f"sqlite+aiosqlite:///{db_path}"

    alembic_config = Config("alembic.ini")
    alembic_config.set_main_option("sqlalchemy.url", sync_url)
    command.upgrade(alembic_config, "head")

    return sync_url, async_url


def _build_client(async_url: str, *, clock: MutableClock) -> TestClient:
    accounts = SqlAlchemyAccountRepository(create_session_factory(async_url))
    auth_service = AuthService(
        accounts=accounts,
        password_hasher=BcryptPasswordHasher(rounds=4),
        token_codec=build_token_codec(clock),
        now=clock,
    )
    session_service = SessionService(auth_service=auth_service, accounts=accounts)
    return TestClient(create_app(session_service=session_service))


def _register(client: TestClient, username: str = "alice", password: str = "pw-1") -> dict:
    response = client.post(
        "/api/v1/register",
        json={"username": username, "password": password},
    )
    assert response.status_code == 200
    return response.json()


def test_welcome_and_version_routes(tmp_path: Path) -> None:
    _, async_url = _upgrade_head(tmp_path, "api_root.db")

    with _build_client(async_url, clock=MutableClock()) as client:
        assert client.get("/api").json() == ["Welcome to API"]
        assert client.get("/api/v1").json() == {"version": "1"}


def test_register_returns_public_user_and_token_pair(tmp_path: Path) -> None:
    sync_url, async_url = _upgrade_head(tmp_path, "api_register.db")

    with _build_client(async_url, clock=MutableClock()) as client:
        body = _register(client)

    assert body["user"]["username"] == "alice"
    assert set(body["user"]) == {"id", "username", "created_at"}
    assert set(body["token"]) == {"access_token", "refresh_token", "expires_in_seconds"}
    assert body["token"]["expires_in_seconds"] == 900

    engine = sa.create_engine(sync_url)
    with engine.begin() as connection:
        row = connection.execute(
            sa.text("SELECT password_hash, access_token, refresh_token FROM accounts")
        ).mappings().one()
    assert row["password_hash"].startswith("$2")
    assert row["access_token"] == body["token"]["access_token"]
    assert row["refresh_token"] == body["token"]["refresh_token"]


def test_register_duplicate_username_returns_conflict(tmp_path: Path) -> None:
    sync_url, async_url = _upgrade_head(tmp_path, "api_duplicate.db")

    with _build_client(async_url, clock=MutableClock()) as client:
        _register(client)
        response = client.post(
            "/api/v1/register",
            json={"username": "alice", "password": "other"},
        )

    assert response.status_code == 409
    assert response.json() == {"detail": "username already taken"}
    engine = sa.create_engine(sync_url)
    with engine.begin() as connection:
        count = connection.execute(sa.text("SELECT COUNT(*) FROM accounts")).scalar_one()
    assert count == 1


@pytest.mark.parametrize(
    "payload",
    [{"username": "alice"}, {"password": "pw"}, {"username": "", "password": "pw"}],
)
def test_register_with_missing_fields_is_rejected(tmp_path: Path, payload: dict) -> None:
    _, async_url = _upgrade_head(tmp_path, "api_invalid.db")

    with _build_client(async_url, clock=MutableClock()) as client:
        response = client.post("/api/v1/register", json=payload)

    assert response.status_code == 422


def test_register_blank_password_is_rejected(tmp_path: Path) -> None:
    _, async_url = _upgrade_head(tmp_path, "api_blank.db")

    with _build_client(async_url, clock=MutableClock()) as client:
        response = client.post("/api/v1/register", json={"username": "alice", "password": "  "})

    assert response.status_code == 422
    assert response.json() == {"detail": "password cannot be blank"}


def test_login_success_and_uniform_failures(tmp_path: Path) -> None:
    _, async_url = _upgrade_head(tmp_path, "api_login.db")

    with _build_client(async_url, clock=MutableClock()) as client:
        registered = _register(client)
        ok = client.post("/api/v1/login", json={"username": "alice", "password": "pw-1"})
        wrong = client.post("/api/v1/login", json={"username": "alice", "password": "nope"})
        unknown = client.post("/api/v1/login", json={"username": "bob", "password": "pw-1"})

    assert ok.status_code == 200
    assert ok.json()["token"] == registered["token"]
    assert wrong.status_code == unknown.status_code == 401
    assert wrong.json() == unknown.json() == {"detail": "invalid username or password"}


def test_login_after_access_expiry_issues_fresh_pair(tmp_path: Path) -> None:
    _, async_url = _upgrade_head(tmp_path, "api_login_expired.db")
    clock = MutableClock()

    with _build_client(async_url, clock=clock) as client:
        registered = _register(client)
        clock.advance(timedelta(minutes=16))
        response = client.post("/api/v1/login", json={"username": "alice", "password": "pw-1"})
        validation = client.post(
            "/api/v1/validate",
            json={"access_token": response.json()["token"]["access_token"]},
        )

    assert response.status_code == 200
    assert response.json()["token"]["access_token"] != registered["token"]["access_token"]
    assert response.json()["token"]["expires_in_seconds"] == 900
    assert validation.json() == {"valid": True}


def test_refresh_rotates_pair_and_rejects_reuse(tmp_path: Path) -> None:
    _, async_url = _upgrade_head(tmp_path, "api_refresh.db")

    with _build_client(async_url, clock=MutableClock()) as client:
        registered = _register(client)
        old_refresh = registered["token"]["refresh_token"]
        first = client.post("/api/v1/refresh", json={"refresh_token": old_refresh})
        reused = client.post("/api/v1/refresh", json={"refresh_token": old_refresh})

    assert first.status_code == 200
    assert first.json()["refresh_token"] != old_refresh
    assert reused.status_code == 401
    assert reused.json() == {"detail": "invalid refresh token"}


def test_refresh_malformed_and_expired_tokens(tmp_path: Path) -> None:
    _, async_url = _upgrade_head(tmp_path, "api_refresh_errors.db")
    clock = MutableClock()

    with _build_client(async_url, clock=clock) as client:
        registered = _register(client)
        malformed = client.post("/api/v1/refresh", json={"refresh_token": "not-a-jwt"})
        clock.advance(timedelta(days=31))
        expired = client.post(
            "/api/v1/refresh",
            json={"refresh_token": registered["token"]["refresh_token"]},
        )

    assert malformed.status_code == 400
    assert malformed.json() == {"detail": "malformed refresh token"}
    assert expired.status_code == 401
    assert expired.json() == {"detail": "refresh token expired"}


def test_logout_invalidates_access_token(tmp_path: Path) -> None:
    sync_url, async_url = _upgrade_head(tmp_path, "api_logout.db")

    with _build_client(async_url, clock=MutableClock()) as client:
        registered = _register(client)
        access_token = registered["token"]["access_token"]
        headers = {"Authorization": f"Bearer {access_token}"}

        me = client.get("/api/v1/users/me", headers=headers)
        logout = client.post("/api/v1/logout", headers=headers)
        validation = client.post("/api/v1/validate", json={"access_token": access_token})
        me_after = client.get("/api/v1/users/me", headers=headers)
        logout_again = client.post("/api/v1/logout", headers=headers)

    assert me.status_code == 200
    assert me.json()["username"] == "alice"
    assert logout.json() == {"ok": True}
    assert validation.json() == {"valid": False}
    assert me_after.status_code == 401
    assert logout_again.status_code == 401

    engine = sa.create_engine(sync_url)
    with engine.begin() as connection:
        row = connection.execute(
            sa.text("SELECT access_token, refresh_token FROM accounts")
        ).mappings().one()
    assert row["access_token"] is None
    assert row["refresh_token"] is None


def test_protected_routes_require_bearer_header(tmp_path: Path) -> None:
    _, async_url = _upgrade_head(tmp_path, "api_bearer.db")

    with _build_client(async_url, clock=MutableClock()) as client:
        missing = client.get("/api/v1/users/me")
        malformed = client.get("/api/v1/users/me", headers={"Authorization": "Token abc"})

    assert missing.status_code == 401
    assert missing.json() == {"detail": "missing bearer token"}
    assert malformed.status_code == 401
    assert malformed.json() == {"detail": "invalid bearer token header"}


def test_users_resource_lists_and_shows_accounts_for_bearer_callers(tmp_path: Path) -> None:
    _, async_url = _upgrade_head(tmp_path, "api_users.db")

    with _build_client(async_url, clock=MutableClock()) as client:
        alice = _register(client, "alice")
        bob = _register(client, "bob")
        headers = {"Authorization": f"Bearer {alice['token']['access_token']}"}

        listing = client.get("/api/v1/users", headers=headers)
        shown = client.get(f"/api/v1/users/{bob['user']['id']}", headers=headers)
        me = client.get("/api/v1/users/me", headers=headers)

    assert listing.status_code == 200
    assert [user["username"] for user in listing.json()] == ["alice", "bob"]
    assert all(set(user) == {"id", "username", "created_at"} for user in listing.json())
    assert shown.status_code == 200
    assert shown.json() == bob["user"]
    assert me.json() == alice["user"]


def test_users_resource_requires_bearer_and_reports_unknown_ids(tmp_path: Path) -> None:
    _, async_url = _upgrade_head(tmp_path, "api_users_errors.db")

    with _build_client(async_url, clock=MutableClock()) as client:
        alice = _register(client)
        headers = {"Authorization": f"Bearer {alice['token']['access_token']}"}

        anonymous_list = client.get("/api/v1/users")
        anonymous_show = client.get(f"/api/v1/users/{alice['user']['id']}")
        unknown = client.get(
            "/api/v1/users/00000000-0000-0000-0000-000000000000",
            headers=headers,
        )
        client.post("/api/v1/logout", headers=headers)
        after_logout = client.get("/api/v1/users", headers=headers)

    assert anonymous_list.status_code == 401
    assert anonymous_show.status_code == 401
    assert unknown.status_code == 404
    assert unknown.json() == {"detail": "user not found"}
    assert after_logout.status_code == 401
