"""
Security utilities: email/password validation and CSRF tokens
"""
import re
import secrets
from typing import Optional

from fastapi import Request
from fastapi.responses import Response


EMAIL_PATTERN = re.compile(r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$')

# Double-submit CSRF cookie
CSRF_COOKIE_NAME = "csrf_token"
CSRF_FORM_FIELD = "csrf"
CSRF_HEADER_NAME = "X-CSRF-Token"
CSRF_TOKEN_BYTES = 32


def validate_email(email: str) -> bool:
    """Validate email format"""
    return EMAIL_PATTERN.match(email or "") is not None


def validate_password_strength(password: str) -> None:
    """
    Validate password strength according to security requirements.

    Enforces:
    - Minimum length: 12 characters
    - At least one uppercase letter (A-Z)
    - At least one lowercase letter (a-z)
    - At least one digit (0-9)
    - At least one special character (!@#$%^&*(),.?":{}|<>])

    Raises:
        ValueError: If password does not meet strength requirements
    """
    if not password:
        raise ValueError("Password cannot be empty")

    if len(password) < 12:
        raise ValueError("Password must be at least 12 characters long")

    if not re.search(r'[A-Z]', password):
        raise ValueError("Password must contain at least one uppercase letter (A-Z)")

    if not re.search(r'[a-z]', password):
        raise ValueError("Password must contain at least one lowercase letter (a-z)")

    if not re.search(r'[0-9]', password):
        raise ValueError("Password must contain at least one digit (0-9)")

    if not re.search(r'[!@#$%&*(),.?":{}|<>\[\]^]', password):
        raise ValueError("Password must contain at least one special character (!@#$%^&*(),.?\":{}|<>[])")


def get_or_create_csrf_token(request: Request) -> str:
    """Reuse the CSRF token already held in the cookie, or mint a new one"""
    return request.cookies.get(CSRF_COOKIE_NAME) or secrets.token_urlsafe(CSRF_TOKEN_BYTES)


def set_csrf_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=CSRF_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=True,
        samesite="Lax",
    )


def csrf_token_valid(request: Request, submitted: Optional[str]) -> bool:
    """Compare the submitted token (form field, else header) with the cookie"""
    cookie_token = request.cookies.get(CSRF_COOKIE_NAME)
    submitted = submitted or request.headers.get(CSRF_HEADER_NAME)
    if not cookie_token or not submitted:
        return False
    return secrets.compare_digest(cookie_token.encode(), submitted.encode())
