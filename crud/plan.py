"""
PlanRepository for the plan catalog tables (plans, plan_limits, prices)
"""

from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from database_models import Plan, PlanLimit, Price
from services.plans_config import PlanType


class PlanRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_plan_by_id(self, plan_id: str) -> Optional[Plan]:
        """Plan with its limits and prices eagerly loaded"""
        result = await self.db.execute(
            select(Plan)
            .where(Plan.id == plan_id)
            .options(selectinload(Plan.prices), selectinload(Plan.limits))
        )
        return result.scalar_one_or_none()

    async def get_free_plan(self) -> Optional[Plan]:
        return await self.get_plan_by_id(PlanType.FREE.value)

    async def list_active_plans(self) -> List[Plan]:
        result = await self.db.execute(
            select(Plan)
            .where(Plan.is_active.is_(True))
            .options(selectinload(Plan.prices), selectinload(Plan.limits))
            .order_by(Plan.created_at, Plan.id)
        )
        return list(result.scalars().all())

    async def create_plan(self, plan_data: dict, limits: dict, prices: List[dict]) -> Plan:
        """
        Insert a plan together with its limits and prices.

        Args:
            plan_data: Plan column values
            limits: PlanLimit column values (without plan_id)
            prices: list of Price column values (without plan_id)
        """
        plan = Plan(**plan_data)
        plan.limits = PlanLimit(**limits)
        plan.prices = [Price(**price) for price in prices]
        self.db.add(plan)
        await self.db.flush()
        return plan
