from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, patch

import pytest
from sqlalchemy import select, update

from vidify.exceptions import EmailDeliveryError
from vidify.models import OTPCode, User
from vidify.services.jwt_service import JWTService
from vidify.services.otp_service import OTPService


async def _latest_code(session, email: str) -> str:
    res = await session.execute(
        select(OTPCode.code)
        .join(User, User.id == OTPCode.user_id)
        .where(User.email == email, OTPCode.is_used == False)
        .order_by(OTPCode.id.desc())
    )
    return res.scalars().first()


class TestRegistration:
    """Registration and OTP delivery."""

    async def test_register_new_user(self, client, test_session):
        response = await client.post(
            "/auth/register",
            json={"username": "maria", "email": "maria@example.com"}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["expires_in_minutes"] == 10
        # Codes are only echoed in debug mode
        assert data["otp"] is None

        res = await test_session.execute(select(User).where(User.email == "maria@example.com"))
        user = res.scalar_one()
        assert user.username == "maria"
        assert user.is_verified is False
        assert user.followers_count == 0
        assert user.following_count == 0

    async def test_register_duplicate_email(self, client):
        payload = {"username": "maria", "email": "maria@example.com"}
        await client.post("/auth/register", json=payload)

        response = await client.post("/auth/register", json=payload)

        assert response.status_code == 409
        assert response.json()["error"]["message"] == "Email already registered"

    async def test_register_invalid_email(self, client):
        response = await client.post(
            "/auth/register", json={"username": "maria", "email": "not-an-email"})
        assert response.status_code == 422

    async def test_register_sends_otp_email(self, client):
        with patch("vidify.services.otp_service.send_otp_email", new_callable=AsyncMock) as send:
            response = await client.post(
                "/auth/register",
                json={"username": "maria", "email": "maria@example.com"}
            )

        assert response.status_code == 200
        send.assert_awaited_once()
        email, code = send.await_args.args
        assert email == "maria@example.com"
        assert len(code) == 6 and code.isdigit()

    async def test_email_failure_returns_503(self, client, test_session):
        failing = AsyncMock(side_effect=EmailDeliveryError("Email service temporarily unavailable"))
        with patch("vidify.services.otp_service.send_otp_email", failing):
            response = await client.post(
                "/auth/register",
                json={"username": "maria", "email": "maria@example.com"}
            )

        assert response.status_code == 503
        # Nothing is kept for a registration whose OTP never went out
        res = await test_session.execute(select(User.id).where(User.email == "maria@example.com"))
        assert res.all() == []

        response = await client.post(
            "/auth/register",
            json={"username": "maria", "email": "maria@example.com"}
        )
        assert response.status_code == 200

    async def test_login_email_failure_keeps_previous_code(self, client, test_session):
        await client.post("/auth/register", json={"username": "maria", "email": "maria@example.com"})
        code = await _latest_code(test_session, "maria@example.com")

        failing = AsyncMock(side_effect=EmailDeliveryError("Email service temporarily unavailable"))
        with patch("vidify.services.otp_service.send_otp_email", failing):
            response = await client.post("/auth/login", json={"email": "maria@example.com"})
        assert response.status_code == 503

        response = await client.post(
            "/auth/verify-otp", json={"email": "maria@example.com", "otp": code})
        assert response.status_code == 200


class TestLoginAndVerify:
    """Login OTP requests and verification."""

    async def test_login_unknown_email(self, client):
        response = await client.post("/auth/login", json={"email": "ghost@example.com"})
        assert response.status_code == 404
        assert response.json()["error"]["message"] == "Email not registered"

    async def test_full_flow(self, client, test_session):
        await client.post("/auth/register", json={"username": "maria", "email": "maria@example.com"})
        code = await _latest_code(test_session, "maria@example.com")

        response = await client.post(
            "/auth/verify-otp", json={"email": "maria@example.com", "otp": code})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["user"]["email"] == "maria@example.com"
        assert data["user"]["is_verified"] is True

        payload = JWTService.verify_token(data["token"])
        assert payload["sub"] == str(data["user"]["id"])

        response = await client.get(
            "/users/me", headers={"Authorization": f"Bearer {data['token']}"})
        assert response.status_code == 200
        assert response.json()["username"] == "maria"

    async def test_verify_sets_username(self, client, test_session):
        await client.post("/auth/register", json={"username": "maria", "email": "maria@example.com"})
        code = await _latest_code(test_session, "maria@example.com")

        response = await client.post(
            "/auth/verify-otp",
            json={"email": "maria@example.com", "otp": code, "username": "maria_v"})

        assert response.json()["user"]["username"] == "maria_v"

    async def test_otp_single_use(self, client, test_session):
        await client.post("/auth/register", json={"username": "maria", "email": "maria@example.com"})
        code = await _latest_code(test_session, "maria@example.com")
        body = {"email": "maria@example.com", "otp": code}

        assert (await client.post("/auth/verify-otp", json=body)).status_code == 200
        response = await client.post("/auth/verify-otp", json=body)
        assert response.status_code == 400
        assert response.json()["error"]["message"] == "Invalid or expired OTP code"

    async def test_login_invalidates_previous_code(self, client, test_session):
        await client.post("/auth/register", json={"username": "maria", "email": "maria@example.com"})
        first = await _latest_code(test_session, "maria@example.com")

        response = await client.post("/auth/login", json={"email": "maria@example.com"})
        assert response.status_code == 200
        second = await _latest_code(test_session, "maria@example.com")

        if first != second:
            response = await client.post(
                "/auth/verify-otp", json={"email": "maria@example.com", "otp": first})
            assert response.status_code == 400

        response = await client.post(
            "/auth/verify-otp", json={"email": "maria@example.com", "otp": second})
        assert response.status_code == 200

    async def test_expired_otp(self, client, test_session):
        await client.post("/auth/register", json={"username": "maria", "email": "maria@example.com"})
        code = await _latest_code(test_session, "maria@example.com")

        await test_session.execute(
            update(OTPCode).values(expires_at=datetime.now(timezone.utc) - timedelta(minutes=1))
        )
        await test_session.commit()

        response = await client.post(
            "/auth/verify-otp", json={"email": "maria@example.com", "otp": code})
        assert response.status_code == 400

    async def test_unverified_user_rejected(self, client, make_user, auth_headers):
        pending = await make_user("pending", verified=False)

        response = await client.get("/users/me", headers=auth_headers(pending))

        assert response.status_code == 401

    async def test_invalid_token_rejected(self, client):
        response = await client.get("/users/me", headers={"Authorization": "Bearer garbage"})
        assert response.status_code == 401


def test_generate_otp_is_six_digits():
    code = OTPService.generate_otp()
    assert len(code) == 6
    assert code.isdigit()
