"""
Billing Service - Stripe customers and subscription bootstrap
"""

import logging
from datetime import datetime, timezone
from typing import Optional

import stripe
from sqlalchemy.ext.asyncio import AsyncSession

from config.settings import settings
from crud.plan import PlanRepository
from crud.subscription import SubscriptionRepository
from database_models import Price, Subscription, User
from services.plans_config import PlanInterval

logger = logging.getLogger(__name__)

# Initialize Stripe client
if settings.stripe_secret_key:
    stripe.api_key = settings.stripe_secret_key
else:
    logger.warning("STRIPE_SECRET_KEY is not set. Stripe functionality will be unavailable.")


class BillingError(Exception):
    """Unrecoverable billing failure; surfaced to the client as a 500"""


def _timestamp_to_datetime(value) -> Optional[datetime]:
    """Stripe epoch seconds -> naive UTC datetime"""
    if value is None:
        return None
    return datetime.fromtimestamp(int(value), tz=timezone.utc).replace(tzinfo=None)


def _field(stripe_object, key):
    """Subscript lookup that works on both dicts and StripeObjects, None when absent"""
    if stripe_object is None:
        return None
    try:
        return stripe_object[key]
    except KeyError:
        return None


def _first_item(stripe_subscription):
    data = _field(_field(stripe_subscription, "items"), "data") or []
    return data[0] if data else None


def create_stripe_customer(email: str, user_id: int, name: Optional[str] = None) -> str:
    """
    Create a Stripe customer for a user.

    Returns:
        Stripe customer id
    """
    if not settings.stripe_secret_key:
        raise BillingError("STRIPE_SECRET_KEY is not set. Cannot create Stripe customer.")
    params = {"email": email, "metadata": {"user_id": str(user_id)}}
    if name:
        params["name"] = name
    customer = stripe.Customer.create(**params)
    return customer["id"]


def create_stripe_subscription(customer_id: str, price_id: str):
    """
    Create a Stripe subscription for an existing customer at a price.

    Returns:
        The Stripe subscription object, or None if Stripe returned nothing
    """
    if not settings.stripe_secret_key:
        raise BillingError("STRIPE_SECRET_KEY is not set. Cannot create Stripe subscription.")
    return stripe.Subscription.create(
        customer=customer_id,
        items=[{"price": price_id}],
    )


class BillingService:
    """
    Service class for subscription bootstrap.
    Every failure aborts with BillingError; nothing is retried or rolled
    back on the Stripe side.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.plan_repo = PlanRepository(db)
        self.subscription_repo = SubscriptionRepository(db)

    async def get_subscription(self, user: User) -> Optional[Subscription]:
        return await self.subscription_repo.get_subscription_by_user_id(user.id)

    async def find_free_plan_price(self, currency: str) -> Optional[Price]:
        """Monthly price of the free plan in the given currency"""
        plan = await self.plan_repo.get_free_plan()
        if plan is None:
            return None
        for price in plan.prices:
            if price.interval == PlanInterval.MONTHLY.value and price.currency == currency.lower():
                return price
        return None

    async def bootstrap_subscription(self, user: User, currency: str) -> Subscription:
        """
        Subscribe the user to the free plan and store the local mirror row.

        Args:
            user: user with an existing Stripe customer id
            currency: currency code resolved from the request

        Raises:
            BillingError: missing customer id, missing price, or Stripe failure
        """
        if not user.customer_id:
            raise BillingError("User does not have a Stripe Customer ID.")

        free_plan_price = await self.find_free_plan_price(currency)
        if free_plan_price is None:
            raise BillingError("Unable to find Free Plan Price")

        try:
            stripe_subscription = create_stripe_subscription(
                user.customer_id,
                free_plan_price.stripe_price_id,
            )
        except stripe.StripeError as e:
            logger.error(f"Stripe subscription creation failed for user {user.id}: {e}", exc_info=True)
            raise BillingError("Unable to create Stripe Subscription.") from e
        if not stripe_subscription:
            raise BillingError("Unable to create Stripe Subscription.")

        item = _first_item(stripe_subscription)
        plan = _field(item, "plan")
        # Newer Stripe API versions report the billing period on the item
        period_start = _field(stripe_subscription, "current_period_start") or _field(item, "current_period_start")
        period_end = _field(stripe_subscription, "current_period_end") or _field(item, "current_period_end")

        stored_subscription = await self.subscription_repo.create_subscription({
            "customer_id": user.customer_id,
            "user_id": user.id,
            "is_active": True,
            "subscription_id": str(stripe_subscription["id"]),
            "plan_id": str(free_plan_price.plan_id),
            "price_id": free_plan_price.id,
            "interval": str(_field(plan, "interval") or free_plan_price.interval),
            "status": stripe_subscription["status"],
            "current_period_start": _timestamp_to_datetime(period_start),
            "current_period_end": _timestamp_to_datetime(period_end),
            "cancel_at_period_end": bool(_field(stripe_subscription, "cancel_at_period_end")),
        })
        if stored_subscription is None:
            raise BillingError("Unable to create Subscription.")

        logger.info(
            f"Created subscription {stored_subscription.subscription_id} for user {user.id} "
            f"({free_plan_price.plan_id}/{free_plan_price.currency})"
        )
        return stored_subscription
