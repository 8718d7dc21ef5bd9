"""
Static plan catalog. This table is the authoritative description of the
plans; the database rows and Stripe prices are seeded from it.
"""
from enum import Enum
from typing import Dict


class PlanType(str, Enum):
    FREE = "free"
    BASIC = "basic"
    PRO = "pro"


class PlanInterval(str, Enum):
    MONTHLY = "month"
    YEARLY = "year"


class Currency(str, Enum):
    USD = "usd"
    EUR = "eur"


SUPPORTED_CURRENCIES = {currency.value for currency in Currency}


def _features(*names: str) -> list:
    return [{"name": name, "is_available": True, "in_progress": False} for name in names]


DEFAULT_PLANS: Dict[PlanType, dict] = {
    PlanType.FREE: {
        "id": PlanType.FREE.value,
        "name": "Free",
        "description": "Free plan",
        "is_active": True,
        "stripe_plan_id": "free",
        "list_of_features": _features("1 user", "1 project", "1GB storage"),
        "limits": {
            "allowed_users_count": 1,
            "allowed_projects_count": 1,
            "allowed_storage_size": 1,
        },
        "prices": {
            PlanInterval.MONTHLY: {Currency.USD: 0, Currency.EUR: 0},
            PlanInterval.YEARLY: {Currency.USD: 0, Currency.EUR: 0},
        },
    },
    PlanType.BASIC: {
        "id": PlanType.BASIC.value,
        "name": "Basic",
        "description": "Basic plan",
        "is_active": True,
        "stripe_plan_id": "basic",
        "list_of_features": _features("5 users", "5 projects", "5GB storage"),
        "limits": {
            "allowed_users_count": 5,
            "allowed_projects_count": 5,
            "allowed_storage_size": 5,
        },
        "prices": {
            PlanInterval.MONTHLY: {Currency.USD: 10, Currency.EUR: 10},
            PlanInterval.YEARLY: {Currency.USD: 100, Currency.EUR: 100},
        },
    },
    PlanType.PRO: {
        "id": PlanType.PRO.value,
        "name": "Pro",
        "description": "Pro plan",
        "is_active": True,
        "stripe_plan_id": "pro",
        "list_of_features": _features("10 users", "10 projects", "10GB storage"),
        "limits": {
            "allowed_users_count": 10,
            "allowed_projects_count": 10,
            "allowed_storage_size": 10,
        },
        "prices": {
            PlanInterval.MONTHLY: {Currency.USD: 20, Currency.EUR: 20},
            PlanInterval.YEARLY: {Currency.USD: 200, Currency.EUR: 200},
        },
    },
}


def get_default_plan(plan_type: str) -> dict:
    """Catalog entry for a plan type; raises KeyError for unknown plans"""
    try:
        return DEFAULT_PLANS[PlanType(plan_type)]
    except ValueError as e:
        raise KeyError(plan_type) from e


def get_catalog_price(plan_type: str, interval: str, currency: str) -> int:
    """
    Price of a plan in whole currency units.

    Raises:
        KeyError: for an unknown plan, interval or currency
    """
    try:
        plan = get_default_plan(plan_type)
        return plan["prices"][PlanInterval(interval)][Currency(currency.lower())]
    except ValueError as e:
        raise KeyError(str(e)) from e
