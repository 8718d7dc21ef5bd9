"""
Integration tests for the verify-email flow
"""
from datetime import datetime, timedelta
from unittest.mock import patch

import pytest

from crud.user import UserRepository
from crud.verification_code import VerificationCodeRepository
from tests.conftest import auth_headers


async def _store_code(test_db, user, code="123456", expires_in=timedelta(minutes=10)):
    verification_code = await VerificationCodeRepository(test_db).create_code(
        user_id=user.id,
        code=code,
        expires=datetime.utcnow() + expires_in,
    )
    await test_db.commit()
    return verification_code


@pytest.mark.asyncio
async def test_page_redirects_anonymous_to_login(async_client):
    response = await async_client.get("/api/auth/verify-email")

    assert response.status_code == 302
    assert response.headers["location"] == "/login"


@pytest.mark.asyncio
async def test_page_redirects_verified_user_to_dashboard(async_client, create_user):
    user = await create_user(email_verified=True)

    response = await async_client.get("/api/auth/verify-email", headers=auth_headers(user))

    assert response.status_code == 302
    assert response.headers["location"] == "/dashboard"


@pytest.mark.asyncio
async def test_page_reports_no_code(async_client, create_user):
    user = await create_user()

    response = await async_client.get("/api/auth/verify-email", headers=auth_headers(user))

    assert response.status_code == 200
    assert response.json()["data"] == {"code_available_with_user": False, "email": user.email}


@pytest.mark.asyncio
async def test_page_reports_active_code(async_client, test_db, create_user):
    user = await create_user()
    await _store_code(test_db, user)

    response = await async_client.get("/api/auth/verify-email", headers=auth_headers(user))

    assert response.json()["data"]["code_available_with_user"] is True


@pytest.mark.asyncio
async def test_expired_code_is_deleted_and_reported_absent(async_client, test_db, create_user):
    user = await create_user()
    await _store_code(test_db, user, expires_in=timedelta(minutes=-1))

    response = await async_client.get("/api/auth/verify-email", headers=auth_headers(user))

    assert response.status_code == 200
    assert response.json()["data"]["code_available_with_user"] is False
    assert await VerificationCodeRepository(test_db).get_latest_for_user(user.id) is None


@pytest.mark.asyncio
async def test_request_code_emails_new_code(async_client, test_db, create_user):
    user = await create_user()

    with patch("services.email_service.send_email") as send_email:
        response = await async_client.post(
            "/api/auth/verify-email",
            data={"intent": "requestCode", "email": user.email},
            headers=auth_headers(user),
        )

    assert response.status_code == 200
    assert response.json()["data"] == {"verified": False}

    stored = await VerificationCodeRepository(test_db).get_latest_for_user(user.id)
    assert stored is not None
    assert len(stored.code) == 6
    send_email.assert_called_once()
    assert send_email.call_args.args[0] == user.email
    assert stored.code in send_email.call_args.args[2]


@pytest.mark.asyncio
async def test_request_code_ignores_existing_code(async_client, test_db, create_user):
    """A second request issues another code; the newest one is the one checked"""
    user = await create_user()
    user_id = user.id
    previous = await _store_code(test_db, user, code="111111")
    previous_id = previous.id

    with patch("services.email_service.send_email") as send_email:
        response = await async_client.post(
            "/api/auth/verify-email",
            data={"intent": "requestCode", "email": user.email},
            headers=auth_headers(user),
        )

    assert response.status_code == 200
    send_email.assert_called_once()
    test_db.expire_all()
    stored = await VerificationCodeRepository(test_db).get_latest_for_user(user_id)
    assert stored.id != previous_id


@pytest.mark.asyncio
async def test_request_code_validates_email(async_client, create_user):
    user = await create_user()

    with patch("services.email_service.send_email") as send_email:
        missing = await async_client.post(
            "/api/auth/verify-email",
            data={"intent": "requestCode"},
            headers=auth_headers(user),
        )
        invalid = await async_client.post(
            "/api/auth/verify-email",
            data={"intent": "requestCode", "email": "nope"},
            headers=auth_headers(user),
        )

    assert missing.json()["data"]["errors"] == {"email": ["Please enter email to continue"]}
    assert invalid.json()["data"]["errors"] == {"email": ["Please enter a valid email"]}
    send_email.assert_not_called()


@pytest.mark.asyncio
async def test_matching_code_verifies_user_and_clears_codes(async_client, test_db, create_user):
    user = await create_user()
    await _store_code(test_db, user, code="111111")
    await _store_code(test_db, user, code="654321")

    response = await async_client.post(
        "/api/auth/verify-email",
        data={"intent": "verifyCode", "code": "654321"},
        headers=auth_headers(user),
    )

    assert response.status_code == 200
    assert response.json()["data"] == {"verified": True}

    user_id = user.id
    test_db.expire_all()
    refreshed = await UserRepository(test_db).get_user_by_id(user_id)
    assert refreshed.email_verified is True
    assert await VerificationCodeRepository(test_db).get_latest_for_user(user_id) is None


@pytest.mark.asyncio
async def test_mismatched_code_returns_field_error(async_client, test_db, create_user):
    user = await create_user()
    await _store_code(test_db, user, code="654321")

    response = await async_client.post(
        "/api/auth/verify-email",
        data={"intent": "verifyCode", "code": "000000"},
        headers=auth_headers(user),
    )

    assert response.status_code == 400
    assert response.json()["data"]["errors"] == {"code": ["Please enter a valid code"]}

    user_id = user.id
    test_db.expire_all()
    refreshed = await UserRepository(test_db).get_user_by_id(user_id)
    assert refreshed.email_verified is False
    assert await VerificationCodeRepository(test_db).get_latest_for_user(user_id) is not None


@pytest.mark.asyncio
async def test_non_ascii_code_returns_field_error(async_client, test_db, create_user):
    user = await create_user()
    user_id = user.id
    await _store_code(test_db, user, code="123456")

    response = await async_client.post(
        "/api/auth/verify-email",
        data={"intent": "verifyCode", "code": "12345é"},
        headers=auth_headers(user),
    )

    assert response.status_code == 400
    assert response.json()["data"]["errors"] == {"code": ["Please enter a valid code"]}

    test_db.expire_all()
    refreshed = await UserRepository(test_db).get_user_by_id(user_id)
    assert refreshed.email_verified is False


@pytest.mark.asyncio
async def test_expired_code_does_not_verify(async_client, test_db, create_user):
    user = await create_user()
    await _store_code(test_db, user, code="654321", expires_in=timedelta(seconds=-5))

    response = await async_client.post(
        "/api/auth/verify-email",
        data={"intent": "verifyCode", "code": "654321"},
        headers=auth_headers(user),
    )

    assert response.status_code == 400
    user_id = user.id
    test_db.expire_all()
    refreshed = await UserRepository(test_db).get_user_by_id(user_id)
    assert refreshed.email_verified is False
    assert await VerificationCodeRepository(test_db).get_latest_for_user(user_id) is None


@pytest.mark.asyncio
async def test_missing_code_field(async_client, create_user):
    user = await create_user()

    response = await async_client.post(
        "/api/auth/verify-email",
        data={"intent": "verifyCode"},
        headers=auth_headers(user),
    )

    assert response.status_code == 400
    assert response.json()["data"]["errors"] == {"code": ["Please enter a verification code"]}


@pytest.mark.asyncio
async def test_unknown_intent(async_client, create_user):
    user = await create_user()

    response = await async_client.post(
        "/api/auth/verify-email",
        data={"intent": "somethingElse"},
        headers=auth_headers(user),
    )

    assert response.status_code == 400
    assert "intent" in response.json()["data"]["errors"]


@pytest.mark.asyncio
async def test_post_requires_authentication(async_client):
    response = await async_client.post(
        "/api/auth/verify-email",
        data={"intent": "verifyCode", "code": "123456"},
    )

    assert response.status_code == 401
