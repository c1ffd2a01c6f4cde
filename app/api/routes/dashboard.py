"""Dashboard overview routes."""

import logging

from fastapi import APIRouter

from app.api.deps import CurrentShop, DB, Ledger
from app.schemas.analytics import AnalyticsSummary, DashboardResponse
from app.services.analytics_service import AnalyticsAggregator
from app.utils.envelopes import api_success

logger = logging.getLogger(__name__)

router = APIRouter(tags=["dashboard"])


@router.get("/dashboard", response_model=dict)
async def get_dashboard_overview(
    shop: CurrentShop,
    db: DB,
    ledger: Ledger,
):
    """Plan, usage and analytics for the admin landing page.

    Analytics are informational; if they cannot be computed the dashboard
    still renders with empty totals.
    """
    usage = await ledger.check_usage_limit(db, shop)

    try:
        analytics = await AnalyticsAggregator.summarize(db, shop)
    except Exception:
        logger.warning("Analytics summary unavailable", extra={"shop": shop}, exc_info=True)
        await db.rollback()
        analytics = AnalyticsSummary()

    response_data = DashboardResponse(
        currentPlan=usage.plan.value,
        usage=usage,
        analytics=analytics,
        rates=AnalyticsAggregator.conversion_rates(analytics),
    )
    return api_success(response_data.model_dump(by_alias=True, mode="json"))
