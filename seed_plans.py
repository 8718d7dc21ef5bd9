"""
Seed the plan catalog into the database and Stripe.

Usage:
    python seed_plans.py
"""
import asyncio
import logging

from database import AsyncSessionLocal, init_db
from services.plan_service import PlanService

logging.basicConfig(level=logging.INFO, format='%(asctime)s - %(name)s - %(levelname)s - %(message)s')
logger = logging.getLogger(__name__)


async def seed() -> list:
    await init_db()
    async with AsyncSessionLocal() as session:
        try:
            created = await PlanService(session).seed_plans()
            await session.commit()
        except Exception:
            await session.rollback()
            raise
    return created


if __name__ == "__main__":
    created = asyncio.run(seed())
    logger.info(f"Seeded plans: {', '.join(created) if created else 'none (already present)'}")
