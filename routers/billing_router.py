"""
Billing Router - plan catalog and Stripe subscription bootstrap
"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from auth import get_current_user, get_optional_user
from backend.utils.responses import error_response, success_response
from database import get_db
from database_models import Subscription, User
from services.billing_service import BillingService
from services.plan_service import PlanService
from utils.currency import get_user_currency_from_request
from utils.shared_utils import log_endpoint_event, redirect_to

logger = logging.getLogger(__name__)

# Create billing router
billing_router = APIRouter(prefix="/api/billing", tags=["billing"])


def serialize_subscription(subscription: Subscription) -> dict:
    return {
        "subscription_id": subscription.subscription_id,
        "plan_id": subscription.plan_id,
        "interval": subscription.interval,
        "status": subscription.status,
        "is_active": subscription.is_active,
        "current_period_start": subscription.current_period_start.isoformat() if subscription.current_period_start else None,
        "current_period_end": subscription.current_period_end.isoformat() if subscription.current_period_end else None,
        "cancel_at_period_end": subscription.cancel_at_period_end,
    }


@billing_router.get("/create-subscription")
async def create_subscription(
    request: Request,
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """
    Put a newly signed-up user on the free plan.

    Redirects to /dashboard once the user has a subscription. Missing
    Stripe customer, missing free price, or a Stripe failure raise
    BillingError (500).
    """
    # Anonymous, or the session outlived the account
    if user is None:
        return redirect_to("/login")

    billing_service = BillingService(db)
    if await billing_service.get_subscription(user):
        return redirect_to("/dashboard")

    currency = get_user_currency_from_request(request)
    subscription = await billing_service.bootstrap_subscription(user, currency)
    log_endpoint_event(
        "/api/billing/create-subscription",
        user.id,
        details={"subscription_id": subscription.subscription_id, "currency": currency},
    )
    return redirect_to("/dashboard")


@billing_router.get("/subscription")
async def get_subscription(
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    """Local mirror of the signed-in user's subscription"""
    subscription = await BillingService(db).get_subscription(user)
    if subscription is None:
        return error_response("subscription_not_found", status=404, message="No subscription for this user")
    return success_response(serialize_subscription(subscription))


@billing_router.get("/plans")
async def list_plans(db: AsyncSession = Depends(get_db)):
    """Active plans with limits and prices"""
    return success_response({"plans": await PlanService(db).list_plans()})
