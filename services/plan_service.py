"""
Plan Service - seed the catalog tables and Stripe products/prices from
`services.plans_config.DEFAULT_PLANS`
"""
import logging
from typing import List

import stripe
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from crud.plan import PlanRepository
from database_models import Plan
from services.billing_service import BillingError
from services.plans_config import DEFAULT_PLANS

logger = logging.getLogger(__name__)


def serialize_plan(plan: Plan) -> dict:
    """JSON-friendly view of a plan with its limits and active prices"""
    limits = plan.limits
    return {
        "id": plan.id,
        "name": plan.name,
        "description": plan.description,
        "features": plan.list_of_features or [],
        "limits": {
            "allowed_users_count": limits.allowed_users_count,
            "allowed_projects_count": limits.allowed_projects_count,
            "allowed_storage_size": limits.allowed_storage_size,
        } if limits else None,
        "prices": [
            {
                "id": price.id,
                "amount": price.amount,
                "currency": price.currency,
                "interval": price.interval,
            }
            for price in plan.prices
            if price.is_active
        ],
    }


class PlanService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.plan_repo = PlanRepository(db)

    async def list_plans(self) -> List[dict]:
        return [serialize_plan(plan) for plan in await self.plan_repo.list_active_plans()]

    async def seed_plans(self) -> List[str]:
        """
        Create the Stripe product and prices for every catalog plan that is
        not in the database yet, then store the plan rows.

        Returns:
            Ids of the plans that were created
        """
        if not settings.stripe_secret_key:
            raise BillingError("STRIPE_SECRET_KEY is not set. Cannot seed plans.")

        created = []
        for plan_type, definition in DEFAULT_PLANS.items():
            if await self.plan_repo.get_plan_by_id(definition["id"]) is not None:
                logger.info(f"Plan '{definition['id']}' already exists, skipping")
                continue

            product = stripe.Product.create(
                name=definition["name"],
                description=definition["description"],
                metadata={"plan_id": definition["id"]},
            )

            prices = []
            for interval, amounts in definition["prices"].items():
                for currency, amount in amounts.items():
                    stripe_price = stripe.Price.create(
                        product=product["id"],
                        currency=currency.value,
                        unit_amount=amount * 100,
                        tax_behavior="inclusive",
                        recurring={"interval": interval.value},
                    )
                    prices.append({
                        "stripe_price_id": stripe_price["id"],
                        "amount": amount,
                        "currency": currency.value,
                        "interval": interval.value,
                    })

            await self.plan_repo.create_plan(
                plan_data={
                    "id": definition["id"],
                    "name": definition["name"],
                    "description": definition["description"],
                    "is_active": definition["is_active"],
                    "stripe_plan_id": product["id"],
                    "list_of_features": definition["list_of_features"],
                },
                limits=dict(definition["limits"]),
                prices=prices,
            )
            created.append(plan_type.value)
            logger.info(f"Seeded plan '{definition['id']}' with {len(prices)} prices")

        return created
