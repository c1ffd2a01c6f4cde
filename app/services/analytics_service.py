"""Recommendation analytics: event counting and reporting summaries.

Key Concepts:
- Counter: one row per (shop, source product, recommended product, event
  type, UTC day) holding how many times the event happened
- Summary: all-time and trailing-window totals per event type plus the most
  clicked recommended products, computed from the counters
"""

import logging
import re
from datetime import date, datetime, timedelta
from typing import Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.database.analytics_repo import AnalyticsRepository
from app.models.shop_enums import EventType
from app.schemas.analytics import AnalyticsSummary, ConversionRates, EventTotals, TopProduct
from app.utils.datetime_utils import utc_day, utc_now
from app.utils.exceptions import ValidationException

logger = logging.getLogger(__name__)

_HANDLE_UNSAFE = re.compile(r"[^a-z0-9-]", re.IGNORECASE)

_TOTALS_FIELD = {
    EventType.IMPRESSION: "impressions",
    EventType.CLICK: "clicks",
    EventType.ADD_TO_CART: "add_to_carts",
}


def parse_event_type(value: str) -> EventType:
    """Validate an event type name against the fixed set."""
    try:
        return EventType(value)
    except ValueError as exc:
        valid = EventType.values()
        raise ValidationException(
            message=f"Invalid event_type. Must be one of: {', '.join(valid)}",
            details={"event_type": value, "valid": valid},
        ) from exc


def build_counter_handle(
    shop_domain: str,
    source_product_id: str,
    recommended_product_id: str,
    event_type: EventType,
    event_date: date,
) -> str:
    """Readable key of a counter; characters outside [a-z0-9-] become dashes."""
    raw = f"{shop_domain}-{source_product_id}-{recommended_product_id}-{event_type.value}-{event_date.isoformat()}"
    return _HANDLE_UNSAFE.sub("-", raw).lower()


def _percentage(numerator: int, denominator: int) -> float:
    if denominator <= 0:
        return 0.0
    return round(numerator / denominator * 100, 1)


class AnalyticsEventStore:
    """Idempotent per-day counters for storefront interactions."""

    clock: Callable[[], datetime] = staticmethod(utc_now)

    @staticmethod
    async def record(
        db: AsyncSession,
        shop_domain: str,
        source_product_id: str,
        recommended_product_id: str,
        event_type: str,
        occurred_at: Optional[datetime] = None,
    ) -> int:
        """
        Count one event.

        Events sharing shop, products, type and UTC day land on the same
        counter, which is created at 1 or incremented in a single statement.

        Returns:
            The counter value after this event
        """
        parsed_type = parse_event_type(event_type)
        event_date = utc_day(occurred_at or AnalyticsEventStore.clock())
        handle = build_counter_handle(
            shop_domain, source_product_id, recommended_product_id, parsed_type, event_date
        )

        count = await AnalyticsRepository.increment_counter(
            db,
            handle=handle,
            shop_domain=shop_domain,
            source_product_id=source_product_id,
            recommended_product_id=recommended_product_id,
            event_type=parsed_type,
            event_date=event_date,
        )
        await db.commit()

        logger.info(
            "Recorded analytics event",
            extra={"shop": shop_domain, "event_type": parsed_type.value, "count": count},
        )
        return count


class AnalyticsAggregator:
    """Read-only reporting over the analytics counters."""

    clock: Callable[[], datetime] = staticmethod(utc_now)

    @staticmethod
    async def summarize(db: AsyncSession, shop_domain: str) -> AnalyticsSummary:
        """
        Totals per event type, all-time and for the trailing window, plus the
        top clicked recommended products.

        A counter is recent when its day is on or after today minus
        ANALYTICS_RECENT_DAYS, comparing UTC calendar days.
        """
        today = utc_day(AnalyticsAggregator.clock())
        recent_since = today - timedelta(days=settings.ANALYTICS_RECENT_DAYS)

        all_time = EventTotals()
        recent = EventTotals()
        for event_type, total, recent_total in await AnalyticsRepository.get_totals_by_type(
            db, shop_domain, recent_since
        ):
            field = _TOTALS_FIELD.get(EventType(event_type))
            if field is None:
                continue
            setattr(all_time, field, int(total or 0))
            setattr(recent, field, int(recent_total or 0))

        top_rows = await AnalyticsRepository.get_top_clicked(
            db, shop_domain, settings.TOP_PRODUCTS_LIMIT
        )
        top_products = [
            TopProduct(productId=product_id, clicks=int(clicks)) for product_id, clicks in top_rows
        ]

        return AnalyticsSummary(allTime=all_time, last30Days=recent, topProducts=top_products)

    @staticmethod
    def conversion_rates(summary: AnalyticsSummary) -> ConversionRates:
        """Click-through and add-to-cart rates over the trailing window."""
        recent = summary.last_30_days
        return ConversionRates(
            clickThroughRate=_percentage(recent.clicks, recent.impressions),
            addToCartRate=_percentage(recent.add_to_carts, recent.clicks),
        )
