"""
Password reset service: email reset links and apply new passwords
"""
import logging
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from auth_utils import (
    create_password_reset_token,
    decode_password_reset_token,
    hash_password,
    reset_token_matches_password,
)
from crud.user import UserRepository
from database_models import User
from services.email_service import EmailService

logger = logging.getLogger(__name__)


class InvalidResetToken(Exception):
    """Reset token is malformed, expired, or already used"""


class PasswordResetService:

    def __init__(self, db: AsyncSession, email_service: Optional[EmailService] = None):
        self.db = db
        self.user_repo = UserRepository(db)
        self.email_service = email_service or EmailService()

    async def request_reset(self, email: str) -> bool:
        """
        Email a reset link if an account exists for the address.

        Returns:
            True if an email was sent, False if no account matched
        """
        user = await self.user_repo.get_user_by_email(email)
        if user is None or not user.is_active:
            logger.info("Password reset requested for unknown or inactive email")
            return False

        token = create_password_reset_token(user.id, user.hashed_password)
        self.email_service.send_reset_password_link(user, token)
        logger.info(f"Password reset link sent for user {user.id}")
        return True

    async def reset_password(self, token: str, new_password: str) -> User:
        """
        Store a new password for the user the token was issued to.
        The caller is responsible for validating password strength.

        Raises:
            InvalidResetToken: token invalid, expired, or already used
        """
        user_id = decode_password_reset_token(token)
        if user_id is None:
            raise InvalidResetToken("Reset link is invalid or has expired")

        user = await self.user_repo.get_user_by_id(user_id)
        if user is None or not reset_token_matches_password(token, user.hashed_password):
            raise InvalidResetToken("Reset link is invalid or has expired")

        user = await self.user_repo.update_user(user, {"hashed_password": hash_password(new_password)})
        logger.info(f"Password reset completed for user {user.id}")
        return user
