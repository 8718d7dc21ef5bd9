"""
SubscriptionRepository for the local mirror of Stripe subscriptions
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database_models import Subscription


class SubscriptionRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_subscription_by_user_id(self, user_id: int) -> Optional[Subscription]:
        result = await self.db.execute(
            select(Subscription)
            .where(Subscription.user_id == user_id)
            .order_by(Subscription.id.desc())
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def create_subscription(self, subscription_data: dict) -> Subscription:
        """
        Insert a subscription row.

        Args:
            subscription_data: column values; see `database_models.Subscription`
        """
        subscription = Subscription(**subscription_data)
        self.db.add(subscription)
        await self.db.flush()
        await self.db.refresh(subscription)
        return subscription
