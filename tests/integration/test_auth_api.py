"""Integration tests for the auth HTTP API."""

from datetime import timedelta

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.exc import OperationalError

from latchkey.infrastructure.api.app import app
from latchkey.domain.services.auth_service import AuthService
from latchkey.infrastructure.api.dependencies import get_auth_service, get_db_session, get_notifier
from latchkey.infrastructure.persistence.repositories import UserRepository
from tests.factories import DEFAULT_PASSWORD, create_user, last_link_token


@pytest_asyncio.fixture
async def client(db_session, notifier):
    async def override_get_db_session():
        yield db_session

    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[get_notifier] = lambda: notifier

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


class TestSignUp:
    @pytest.mark.asyncio
    async def test_sign_up(self, client, email_provider):
        response = await client.post(
            "/auth/sign_up",
            json={"firstName": "Ada", "email": "ada@example.com", "password": "Passw0rdOk"},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["message"] == "User successfully signed up"
        assert body["token"]
        assert body["user"]["email"] == "ada@example.com"
        assert body["user"]["email_verified"] is False
        email_provider.send.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_weak_password(self, client):
        response = await client.post(
            "/auth/sign_up",
            json={"firstName": "Ada", "email": "passing@example.com", "password": "password"},
        )

        assert response.status_code == 400
        assert "password is not strong enough" in response.json()["error"]
        assert response.json()["reason"] == "password_too_weak"

    @pytest.mark.asyncio
    async def test_missing_first_name(self, client):
        response = await client.post(
            "/auth/sign_up", json={"email": "ada@example.com", "password": "Passw0rdOk"}
        )

        assert response.status_code == 400
        assert response.json()["reason"] == "validation_error"
        assert response.json()["details"][0]["field"] == "first_name"

    @pytest.mark.asyncio
    async def test_email_taken(self, client, db_session):
        await create_user(db_session, email="taken@example.com")

        response = await client.post(
            "/auth/sign_up",
            json={"first_name": "Ada", "email": "taken@example.com", "password": "Passw0rdOk"},
        )

        assert response.status_code == 400
        assert "already registered" in response.json()["error"]


class TestLogIn:
    @pytest.mark.asyncio
    async def test_log_in(self, client, db_session):
        fixture = await create_user(db_session, verified=True)

        response = await client.post(
            "/auth/log_in", json={"email": fixture.email, "password": DEFAULT_PASSWORD}
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Login successful"
        assert response.json()["user"]["id"] == fixture.user.id

    @pytest.mark.asyncio
    async def test_expires_in_matches_the_issuing_service(self, client, db_session, notifier, settings):
        short = settings.model_copy(update={"access_token_expire_minutes": 5})
        app.dependency_overrides[get_auth_service] = lambda: AuthService(
            session=db_session, notifier=notifier, settings=short
        )
        fixture = await create_user(db_session, verified=True)

        response = await client.post(
            "/auth/log_in", json={"email": fixture.email, "password": DEFAULT_PASSWORD}
        )

        assert response.status_code == 200
        assert response.json()["expires_in"] == 300

    @pytest.mark.asyncio
    async def test_wrong_password(self, client, db_session):
        fixture = await create_user(db_session, verified=True)

        response = await client.post(
            "/auth/log_in", json={"email": fixture.email, "password": "Wrong-passw0rd"}
        )

        assert response.status_code == 401
        assert "Unauthorized" in response.json()["error"]

    @pytest.mark.asyncio
    async def test_unverified_user_gets_partial_content(self, client, db_session):
        fixture = await create_user(db_session, verified=False)

        response = await client.post(
            "/auth/log_in", json={"email": fixture.email, "password": DEFAULT_PASSWORD}
        )

        assert response.status_code == 206
        assert "confirm email" in response.json()["message"]
        assert "token" not in response.json()


class TestEmailCheck:
    @pytest.mark.asyncio
    async def test_without_token(self, client):
        response = await client.get("/auth/email_check", params={"email": "ada@example.com"})

        assert response.status_code == 400
        assert "No token specified" in response.text

    @pytest.mark.asyncio
    async def test_already_confirmed(self, client, db_session):
        fixture = await create_user(db_session, verified=True)

        response = await client.get(
            "/auth/email_check",
            params={"email": fixture.email, "token": fixture.email_check_token.value},
        )

        assert response.status_code == 206
        assert "You have already confirmed your email" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_outdated_link(self, client, db_session):
        fixture = await create_user(db_session, email_check_age=timedelta(days=2))

        response = await client.get(
            "/auth/email_check",
            params={"email": fixture.email, "token": fixture.email_check_token.value},
        )

        assert response.status_code == 400
        assert "link is outdated" in response.json()["error"]

    @pytest.mark.asyncio
    async def test_confirms_email(self, client, db_session):
        fixture = await create_user(db_session)

        response = await client.get(
            "/auth/email_check",
            params={"email": fixture.email, "token": fixture.email_check_token.value},
        )

        assert response.status_code == 200
        assert "Your email has been verified with success" in response.json()["message"]

    @pytest.mark.asyncio
    async def test_resend(self, client, db_session, email_provider):
        fixture = await create_user(db_session)

        response = await client.post("/auth/resend_email_check", json={"email": fixture.email})
        token = last_link_token(email_provider)
        confirm = await client.get(
            "/auth/email_check", params={"email": fixture.email, "token": token}
        )

        assert response.status_code == 200
        assert confirm.status_code == 200


class TestPasswordRecovery:
    @pytest.mark.asyncio
    async def test_forgotten_password_messages(self, client, db_session):
        unconfirmed = await create_user(db_session, verified=False)

        missing = await client.post("/auth/forgotten_password", json={})
        unknown = await client.post("/auth/forgotten_password", json={"email": "nobody@example.com"})
        not_confirmed = await client.post(
            "/auth/forgotten_password", json={"email": unconfirmed.email}
        )

        assert missing.status_code == 400
        assert "No email specified" in missing.json()["error"]
        assert unknown.status_code == 400
        assert "We don't have a user with this email" in unknown.json()["error"]
        assert not_confirmed.status_code == 400
        assert not_confirmed.json()["reason"] == "email_not_confirmed"

    @pytest.mark.asyncio
    async def test_full_reset_flow(self, client, db_session, email_provider):
        fixture = await create_user(db_session, verified=True)

        forgot = await client.post("/auth/forgotten_password", json={"email": fixture.email})
        assert forgot.status_code == 200
        assert "An email has been sent" in forgot.json()["message"]
        token = last_link_token(email_provider)
        params = {"email": fixture.email, "token": token}

        check = await client.get("/auth/reset_password", params=params)
        assert check.status_code == 200

        no_password = await client.post("/auth/reset_password", params=params, json={})
        assert no_password.status_code == 400
        assert "No password provided" in no_password.json()["error"]

        mismatch = await client.post(
            "/auth/reset_password",
            params=params,
            json={"newPassword": "newpassword", "newPasswordConfirmation": "somethingElse"},
        )
        assert mismatch.status_code == 400
        assert "Password and confirmation are different" in mismatch.json()["error"]

        reset = await client.post(
            "/auth/reset_password",
            params=params,
            json={"newPassword": "brandNewPassw0rd", "newPasswordConfirmation": "brandNewPassw0rd"},
        )
        assert reset.status_code == 200
        assert reset.json()["message"] == "Password reset successfully"

        reused = await client.post(
            "/auth/reset_password",
            params=params,
            json={"newPassword": "OtherPassw0rd", "newPasswordConfirmation": "OtherPassw0rd"},
        )
        assert reused.status_code == 400
        assert reused.json()["reason"] == "link_already_used"

        log_in = await client.post(
            "/auth/log_in", json={"email": fixture.email, "password": "brandNewPassw0rd"}
        )
        assert log_in.status_code == 200

    @pytest.mark.asyncio
    @pytest.mark.parametrize("method", ["get", "post"])
    async def test_reset_link_errors(self, client, db_session, method):
        unconfirmed = await create_user(db_session, verified=False, password_change=True)

        no_email = await client.request(method, "/auth/reset_password", params={"token": "x"})
        no_token = await client.request(
            method, "/auth/reset_password", params={"email": unconfirmed.email}
        )
        not_confirmed = await client.request(
            method,
            "/auth/reset_password",
            params={"email": unconfirmed.email, "token": unconfirmed.password_change_token.value},
        )

        assert no_email.json()["reason"] == "no_email_given"
        assert no_token.json()["reason"] == "no_token_given"
        assert not_confirmed.json()["reason"] == "email_not_confirmed"
        assert {r.status_code for r in (no_email, no_token, not_confirmed)} == {400}


@pytest.mark.asyncio
async def test_store_outage_is_service_unavailable(client, monkeypatch):
    async def broken_find_by_email(self, email):
        raise OperationalError("SELECT", {}, Exception("database is locked"))

    monkeypatch.setattr(UserRepository, "find_by_email", broken_find_by_email)

    response = await client.post(
        "/auth/log_in", json={"email": "ada@example.com", "password": DEFAULT_PASSWORD}
    )

    assert response.status_code == 503
    assert response.json()["reason"] == "service_unavailable"
    assert "database is locked" not in response.text


@pytest.mark.asyncio
async def test_correlation_id_is_echoed(client):
    response = await client.get("/health", headers={"X-Correlation-ID": "cid_from_client"})

    assert response.status_code == 200
    assert response.headers["X-Correlation-ID"] == "cid_from_client"
