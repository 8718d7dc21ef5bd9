"""
VerificationCodeRepository for email verification codes
"""

from datetime import datetime
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from database_models import VerificationCode


class VerificationCodeRepository:
    """
    Codes are looked up by user only. When several rows exist for a user
    the newest one wins.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_latest_for_user(self, user_id: int) -> Optional[VerificationCode]:
        result = await self.db.execute(
            select(VerificationCode)
            .where(VerificationCode.user_id == user_id)
            .order_by(VerificationCode.created_at.desc(), VerificationCode.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def create_code(self, user_id: int, code: str, expires: datetime) -> VerificationCode:
        verification_code = VerificationCode(user_id=user_id, code=code, expires=expires)
        self.db.add(verification_code)
        await self.db.flush()
        await self.db.refresh(verification_code)
        return verification_code

    async def delete_for_user(self, user_id: int) -> int:
        """
        Delete every code stored for a user.

        Returns:
            Number of rows removed
        """
        result = await self.db.execute(
            delete(VerificationCode).where(VerificationCode.user_id == user_id)
        )
        await self.db.flush()
        return result.rowcount or 0
