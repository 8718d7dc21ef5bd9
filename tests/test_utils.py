"""
Unit tests for auth utilities, form parsing and currency resolution
"""
from datetime import datetime, timedelta, timezone

from starlette.requests import Request

from auth_utils import (
    create_jwt,
    create_password_reset_token,
    decode_jwt,
    decode_password_reset_token,
    generate_verification_code,
    hash_password,
    is_within_expiration,
    reset_token_matches_password,
)
from schemas import ForgotPasswordForm, VerifyCodeForm
from utils.currency import get_user_currency_from_request
from utils.forms import parse_form
from utils.security_utils import csrf_token_valid


def _request(headers=None, query_string=b"", cookies=None):
    raw_headers = [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()]
    if cookies:
        raw_headers.append((b"cookie", "; ".join(f"{k}={v}" for k, v in cookies.items()).encode()))
    return Request({
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": raw_headers,
        "query_string": query_string,
    })


def test_is_within_expiration():
    now = datetime(2024, 6, 1, 12, 0, 0)

    assert is_within_expiration(now + timedelta(seconds=1), now=now) is True
    assert is_within_expiration(now, now=now) is False
    assert is_within_expiration(now - timedelta(minutes=5), now=now) is False
    assert is_within_expiration(None, now=now) is False


def test_is_within_expiration_aware_timestamp():
    now = datetime(2024, 6, 1, 12, 0, 0)
    # 13:30 at UTC+2 is 11:30 UTC
    expires = datetime(2024, 6, 1, 13, 30, tzinfo=timezone(timedelta(hours=2)))

    assert is_within_expiration(expires, now=now) is False


def test_verification_code_is_numeric():
    code = generate_verification_code()

    assert len(code) == 6
    assert code.isdigit()


def test_reset_token_is_not_a_session_token():
    password_hash = hash_password("StrongPass123!")
    token = create_password_reset_token(42, password_hash)

    assert decode_password_reset_token(token) == 42
    assert decode_jwt(token) is None
    assert reset_token_matches_password(token, password_hash) is True
    assert reset_token_matches_password(token, hash_password("OtherPass123!")) is False


def test_session_token_is_not_a_reset_token():
    token = create_jwt("42")

    assert decode_jwt(token)["sub"] == "42"
    assert decode_password_reset_token(token) is None


def test_parse_form_collects_field_errors():
    value, errors = parse_form(ForgotPasswordForm, {"email": "  User@Example.COM "})
    assert errors == {}
    assert value.email == "user@example.com"

    value, errors = parse_form(VerifyCodeForm, {"intent": "verifyCode", "code": "   "})
    assert value is None
    assert errors == {"code": ["Please enter a verification code"]}


def test_currency_defaults_to_usd():
    assert get_user_currency_from_request(_request()) == "usd"


def test_currency_from_country_header():
    assert get_user_currency_from_request(_request({"CF-IPCountry": "NL"})) == "eur"
    assert get_user_currency_from_request(_request({"CF-IPCountry": "GB"})) == "usd"


def test_currency_from_accept_language():
    assert get_user_currency_from_request(_request({"Accept-Language": "de-DE,de;q=0.9,en;q=0.8"})) == "eur"
    assert get_user_currency_from_request(_request({"Accept-Language": "en-US,en;q=0.9"})) == "usd"


def test_currency_explicit_choice_wins():
    request = _request({"CF-IPCountry": "US"}, query_string=b"currency=EUR")
    assert get_user_currency_from_request(request) == "eur"

    request = _request({"CF-IPCountry": "FR"}, cookies={"currency": "usd"})
    assert get_user_currency_from_request(request) == "usd"

    # Unsupported currencies fall through to detection
    request = _request({"CF-IPCountry": "FR"}, query_string=b"currency=gbp")
    assert get_user_currency_from_request(request) == "eur"


def test_csrf_token_valid():
    request = _request(cookies={"csrf_token": "abc123"})

    assert csrf_token_valid(request, "abc123") is True
    assert csrf_token_valid(request, "forged") is False
    assert csrf_token_valid(request, None) is False
    assert csrf_token_valid(_request(), "abc123") is False


def test_csrf_non_ascii_submission_is_rejected():
    request = _request(cookies={"csrf_token": "abc123"})
    assert csrf_token_valid(request, "abc12é") is False

    # Header fallback when the form field is absent
    request = _request({"X-CSRF-Token": "abc12é"}, cookies={"csrf_token": "abc123"})
    assert csrf_token_valid(request, None) is False
