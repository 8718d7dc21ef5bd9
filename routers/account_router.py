"""
Account Router - password reset and email verification
"""

import logging
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user, get_optional_user
from backend.utils.responses import error_response, success_response, validation_error_response
from database import get_db
from database_models import User
from schemas import ForgotPasswordForm, ResetPasswordForm, VERIFY_EMAIL_INTENTS, VerifyCodeForm
from services.email_service import EmailService
from services.password_reset_service import InvalidResetToken, PasswordResetService
from services.verification_service import EmailVerificationService
from utils.forms import parse_form, read_form
from utils.security_utils import (
    CSRF_FORM_FIELD,
    csrf_token_valid,
    get_or_create_csrf_token,
    set_csrf_cookie,
    validate_password_strength,
)
from utils.shared_utils import log_endpoint_event, redirect_to

logger = logging.getLogger(__name__)

account_router = APIRouter(prefix="/api/auth", tags=["account"])


# ---------------------------------------------------------------------------
# Password reset
# ---------------------------------------------------------------------------

@account_router.get("/forgot-password")
async def forgot_password_page(
    request: Request,
    user: Optional[User] = Depends(get_optional_user),
):
    """Signed-in users are sent home; everyone else gets a CSRF token for the form"""
    if user is not None:
        return redirect_to("/")

    token = get_or_create_csrf_token(request)
    response = success_response({"csrf": token, "email_sent": False})
    set_csrf_cookie(response, token)
    return response


@account_router.post("/forgot-password")
async def forgot_password(
    request: Request,
    background_tasks: BackgroundTasks,
    db: AsyncSession = Depends(get_db),
):
    """
    Request a password reset link.

    The response is the same whether or not the email belongs to an
    account; a link is only emailed when it does.
    """
    form = await read_form(request)
    if not csrf_token_valid(request, form.get(CSRF_FORM_FIELD)):
        log_endpoint_event("/api/auth/forgot-password", result="csrf_invalid")
        return error_response("csrf_invalid", status=403, message="Invalid or missing CSRF token")

    submission, errors = parse_form(ForgotPasswordForm, form)
    if submission is None:
        return validation_error_response(errors)

    service = PasswordResetService(db, EmailService(background_tasks))
    sent = await service.request_reset(submission.email)
    log_endpoint_event("/api/auth/forgot-password", result="success", details={"matched": sent})
    return success_response({"email_sent": True}, message="If the account exists, a reset link has been sent")


@account_router.post("/reset-password")
async def reset_password(request: Request, db: AsyncSession = Depends(get_db)):
    """Set a new password using the token from a reset link"""
    form = await read_form(request)
    submission, errors = parse_form(ResetPasswordForm, form)
    if submission is None:
        return validation_error_response(errors)

    try:
        validate_password_strength(submission.password)
    except ValueError as e:
        return validation_error_response({"password": [str(e)]})

    try:
        user = await PasswordResetService(db).reset_password(submission.token, submission.password)
    except InvalidResetToken as e:
        log_endpoint_event("/api/auth/reset-password", result="invalid_token")
        return validation_error_response({"token": [str(e)]})

    log_endpoint_event("/api/auth/reset-password", user.id)
    return success_response({"password_reset": True}, message="Password updated")


# ---------------------------------------------------------------------------
# Email verification
# ---------------------------------------------------------------------------

@account_router.get("/verify-email")
async def verify_email_page(
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Report whether the signed-in user has a usable verification code.
    Anonymous users go to /login, verified users to /dashboard.
    """
    if user is None:
        return redirect_to("/login")
    if user.email_verified:
        return redirect_to("/dashboard")

    has_code = await EmailVerificationService(db).has_active_code(user)
    return success_response({
        "code_available_with_user": has_code,
        "email": user.email,
    })


@account_router.post("/verify-email")
async def verify_email(
    request: Request,
    background_tasks: BackgroundTasks,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Two actions selected by the `intent` form field:
    - requestCode: email a fresh code to the signed-in user
    - verifyCode: check a submitted code and mark the email verified
    """
    form = await read_form(request)
    intent = form.get("intent")
    schema = VERIFY_EMAIL_INTENTS.get(intent)
    if schema is None:
        return validation_error_response({"intent": ["Unknown action"]})

    submission, errors = parse_form(schema, form)
    if submission is None:
        return validation_error_response(errors)

    service = EmailVerificationService(db, EmailService(background_tasks))

    if isinstance(submission, VerifyCodeForm):
        if not await service.verify_code(user, submission.code):
            log_endpoint_event("/api/auth/verify-email", user.id, "invalid_code")
            return validation_error_response({"code": ["Please enter a valid code"]})
        log_endpoint_event("/api/auth/verify-email", user.id, "verified")
        return success_response({"verified": True}, message="Email has been verified successfully!")

    await service.request_code(user)
    log_endpoint_event("/api/auth/verify-email", user.id, "code_sent")
    return success_response({"verified": False}, message="Verification code sent")
