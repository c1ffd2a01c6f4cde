"""Repository layer for shop and usage-counter database operations.

This module contains ONLY database access logic - no business rules.
Every write is a single statement so that concurrent requests for the same
shop cannot lose updates.

Key Concepts:
- Shop: A merchant store keyed by its domain, created lazily
- Plan: The subscription tier stored on the shop row
- Usage counter: recommendations_used, reset at the start of each billing cycle
"""

from datetime import datetime, timedelta
from typing import Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import dialect_insert
from app.models.models import Shop
from app.models.shop_enums import ShopPlan


class ShopRepository:
    """Repository for shop database operations."""

    @staticmethod
    async def ensure_shop(db: AsyncSession, shop_domain: str, now: datetime) -> None:
        """
        Create the shop row if it does not exist yet.

        Idempotent: concurrent callers race on the primary key and the losers
        become no-ops.

        Args:
            db: Database session
            shop_domain: Shop domain (primary key)
            now: Start of the first billing cycle
        """
        stmt = (
            dialect_insert(db, Shop.__table__)
            .values(
                id=shop_domain,
                plan=ShopPlan.FREE,
                recommendations_used=0,
                billing_cycle_start=now,
                updated_date=now,
            )
            .on_conflict_do_nothing(index_elements=["id"])
        )
        await db.execute(stmt)

    @staticmethod
    async def get_shop(db: AsyncSession, shop_domain: str) -> Optional[Shop]:
        """
        Fetch a shop, always re-reading the row from the database.

        Args:
            db: Database session
            shop_domain: Shop domain

        Returns:
            Shop model if found, None otherwise
        """
        result = await db.execute(
            select(Shop)
            .where(Shop.id == shop_domain)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def reset_cycle_if_elapsed(
        db: AsyncSession, shop_domain: str, now: datetime, cycle_days: int
    ) -> bool:
        """
        Zero the usage counter when the billing cycle has run its course.

        The elapsed check lives in the WHERE clause, so a second caller in the
        same tick sees the advanced cycle start and updates nothing.

        Args:
            db: Database session
            shop_domain: Shop domain
            now: Current time, becomes the new cycle start
            cycle_days: Billing cycle length in days

        Returns:
            True if a reset happened
        """
        result = await db.execute(
            update(Shop)
            .where(
                Shop.id == shop_domain,
                Shop.billing_cycle_start <= now - timedelta(days=cycle_days),
            )
            .values(recommendations_used=0, billing_cycle_start=now, updated_date=now)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount > 0

    @staticmethod
    async def increment_used(
        db: AsyncSession, shop_domain: str, now: datetime, amount: int = 1
    ) -> Optional[int]:
        """
        Atomically add to the usage counter.

        Args:
            db: Database session
            shop_domain: Shop domain
            now: Update timestamp
            amount: Increment (defaults to one event)

        Returns:
            The new counter value, or None when the shop does not exist
        """
        result = await db.execute(
            update(Shop)
            .where(Shop.id == shop_domain)
            .values(
                recommendations_used=Shop.recommendations_used + amount,
                updated_date=now,
            )
            .returning(Shop.recommendations_used)
            .execution_options(synchronize_session=False)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def upsert_plan(
        db: AsyncSession, shop_domain: str, plan: ShopPlan, now: datetime
    ) -> None:
        """
        Set the plan of a shop, creating the shop if needed.

        Usage counter and cycle start are left untouched on existing rows.

        Args:
            db: Database session
            shop_domain: Shop domain
            plan: New plan
            now: Cycle start for a newly created shop
        """
        stmt = dialect_insert(db, Shop.__table__).values(
            id=shop_domain,
            plan=plan,
            recommendations_used=0,
            billing_cycle_start=now,
            updated_date=now,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["id"],
            set_={"plan": stmt.excluded.plan, "updated_date": stmt.excluded.updated_date},
        )
        await db.execute(stmt)
