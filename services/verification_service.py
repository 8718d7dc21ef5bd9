"""
Email verification service: issue and check emailed verification codes
"""
import logging
import secrets
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from auth_utils import generate_verification_code, is_within_expiration, verification_code_expiry
from crud.user import UserRepository
from crud.verification_code import VerificationCodeRepository
from database_models import User, VerificationCode
from services.email_service import EmailService

logger = logging.getLogger(__name__)


class EmailVerificationService:
    """
    Service for the verify-email flow.

    No locking is done around the code lookup: concurrent requests for the
    same user can interleave, and the newest stored code is the one checked.
    """

    def __init__(self, db: AsyncSession, email_service: Optional[EmailService] = None):
        self.db = db
        self.user_repo = UserRepository(db)
        self.code_repo = VerificationCodeRepository(db)
        self.email_service = email_service or EmailService()

    async def get_active_code(self, user: User) -> Optional[VerificationCode]:
        """
        Newest usable code for the user.
        An expired code is deleted (with any others for the user) and None is returned.
        """
        verification_code = await self.code_repo.get_latest_for_user(user.id)
        if verification_code is None:
            return None
        if not is_within_expiration(verification_code.expires):
            removed = await self.code_repo.delete_for_user(user.id)
            logger.info(f"Removed {removed} expired verification code(s) for user {user.id}")
            return None
        return verification_code

    async def has_active_code(self, user: User) -> bool:
        return await self.get_active_code(user) is not None

    async def request_code(self, user: User) -> VerificationCode:
        """
        Create a new code and email it to the user.
        Earlier codes are left in place; the newest one is used for verification.
        """
        verification_code = await self.code_repo.create_code(
            user_id=user.id,
            code=generate_verification_code(),
            expires=verification_code_expiry(),
        )
        self.email_service.send_verification_code(user, verification_code.code)
        logger.info(f"Issued verification code for user {user.id}")
        return verification_code

    async def verify_code(self, user: User, submitted_code: str) -> bool:
        """
        Check a submitted code against the newest stored one.
        On a match the user is marked verified and all their codes are removed.
        """
        verification_code = await self.get_active_code(user)
        if verification_code is None:
            return False
        if not secrets.compare_digest(verification_code.code.encode(), submitted_code.strip().encode()):
            return False

        await self.user_repo.mark_email_verified(user)
        await self.code_repo.delete_for_user(user.id)
        logger.info(f"Email verified for user {user.id}")
        return True
