"""
Account lookups and writes for the User model
"""

from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from database_models import User

# Columns callers may change after signup
UPDATABLE_FIELDS = frozenset({"name", "hashed_password", "is_active", "email_verified", "customer_id"})


class UserRepository:
    """
    Account queries used by signup/login, password reset and email verification.
    Writes are flushed, never committed; the request's get_db owns the transaction.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Emails are stored lower-cased, so the lookup is case-insensitive"""
        result = await self.db.execute(
            select(User).where(User.email == email.lower())
        )
        return result.scalar_one_or_none()

    async def get_user_by_id(self, user_id: int) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.id == user_id)
        )
        return result.scalar_one_or_none()

    async def create_user(self, user_data: dict) -> User:
        """
        Insert an account.

        Args:
            user_data: `email` and `hashed_password` are required. `name`,
                `customer_id` (Stripe customer), `is_active` (default True)
                and `email_verified` (default False) are optional.

        Returns:
            The new User, with its id assigned
        """
        user = User(
            email=user_data["email"].lower(),
            hashed_password=user_data["hashed_password"],
            name=user_data.get("name"),
            is_active=user_data.get("is_active", True),
            email_verified=user_data.get("email_verified", False),
            customer_id=user_data.get("customer_id"),
        )
        self.db.add(user)
        await self.db.flush()
        await self.db.refresh(user)
        return user

    async def update_user(self, user: User, updates: dict) -> User:
        """
        Apply account changes such as a new password hash or a Stripe customer id.

        Raises:
            ValueError: if `updates` names a column outside UPDATABLE_FIELDS
        """
        unknown = set(updates) - UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Cannot update user field(s): {', '.join(sorted(unknown))}")

        for key, value in updates.items():
            setattr(user, key, value)

        await self.db.flush()
        await self.db.refresh(user)
        return user

    async def mark_email_verified(self, user: User) -> User:
        return await self.update_user(user, {"email_verified": True})
