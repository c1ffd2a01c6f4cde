"""Analytics and reporting routes."""

import logging

from fastapi import APIRouter

from app.api.deps import CurrentShop, DB
from app.schemas.analytics import AnalyticsSummary
from app.services.analytics_service import AnalyticsAggregator
from app.utils.envelopes import api_success

logger = logging.getLogger(__name__)

router = APIRouter(tags=["analytics"])


@router.get("/analytics/summary", response_model=dict)
async def get_analytics_summary(
    shop: CurrentShop,
    db: DB,
):
    """All-time and last-30-day totals with the most clicked products.

    Falls back to empty totals when the counters cannot be read.
    """
    try:
        summary = await AnalyticsAggregator.summarize(db, shop)
    except Exception:
        logger.warning("Analytics summary unavailable", extra={"shop": shop}, exc_info=True)
        await db.rollback()
        summary = AnalyticsSummary()

    rates = AnalyticsAggregator.conversion_rates(summary)
    return api_success(
        {
            **summary.model_dump(by_alias=True),
            "rates": rates.model_dump(by_alias=True),
        }
    )
