"""Repository layer for recommendation analytics counters.

Counters are daily aggregates keyed by (shop, source product, recommended
product, event type, day). Writes go through a single INSERT ... ON CONFLICT
statement; reads aggregate on the database side.
"""

import logging
from datetime import date
from typing import Any, Sequence

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import dialect_insert
from app.models.models import AnalyticsCounter
from app.models.shop_enums import EventType

logger = logging.getLogger(__name__)

_COUNTER_KEY = [
    "shop_domain",
    "source_product_id",
    "recommended_product_id",
    "event_type",
    "event_date",
]


class AnalyticsRepository:
    """Repository for analytics counter database operations."""

    @staticmethod
    async def increment_counter(
        db: AsyncSession,
        handle: str,
        shop_domain: str,
        source_product_id: str,
        recommended_product_id: str,
        event_type: EventType,
        event_date: date,
    ) -> int:
        """
        Create the counter with count 1, or add one to the existing counter.

        Returns:
            The counter value after the write
        """
        table = AnalyticsCounter.__table__
        stmt = dialect_insert(db, table).values(
            handle=handle,
            shop_domain=shop_domain,
            source_product_id=source_product_id,
            recommended_product_id=recommended_product_id,
            event_type=event_type,
            event_date=event_date,
            count=1,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=_COUNTER_KEY,
            set_={"count": table.c.count + 1},
        ).returning(table.c.count)

        result = await db.execute(stmt)
        return result.scalar_one()

    @staticmethod
    async def get_totals_by_type(
        db: AsyncSession, shop_domain: str, recent_since: date
    ) -> Sequence[Any]:
        """
        Sum counters per event type, overall and from ``recent_since`` on (inclusive).

        Returns:
            Rows of (event_type, total, recent_total)
        """
        result = await db.execute(
            select(
                AnalyticsCounter.event_type,
                func.sum(AnalyticsCounter.count).label("total"),
                func.sum(
                    case(
                        (AnalyticsCounter.event_date >= recent_since, AnalyticsCounter.count),
                        else_=0,
                    )
                ).label("recent_total"),
            )
            .where(AnalyticsCounter.shop_domain == shop_domain)
            .group_by(AnalyticsCounter.event_type)
        )
        return result.all()

    @staticmethod
    async def get_top_clicked(
        db: AsyncSession, shop_domain: str, limit: int
    ) -> Sequence[Any]:
        """
        Recommended products with the most clicks.

        Equal totals keep the order in which the products were first counted.

        Returns:
            Rows of (recommended_product_id, clicks)
        """
        clicks = func.sum(AnalyticsCounter.count).label("clicks")
        result = await db.execute(
            select(AnalyticsCounter.recommended_product_id, clicks)
            .where(
                AnalyticsCounter.shop_domain == shop_domain,
                AnalyticsCounter.event_type == EventType.CLICK,
            )
            .group_by(AnalyticsCounter.recommended_product_id)
            .order_by(clicks.desc(), func.min(AnalyticsCounter.id).asc())
            .limit(limit)
        )
        return result.all()
