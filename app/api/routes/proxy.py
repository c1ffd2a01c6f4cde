"""Storefront routes reached through the app proxy.

These endpoints answer the storefront widget directly, so they return bare
JSON bodies rather than the admin envelope.
"""

import logging
from typing import Optional

from fastapi import APIRouter, Query, Request, status
from fastapi.responses import JSONResponse

from app.api.deps import DB, Ledger, ProxyShop
from app.core.config import settings
from app.models.shop_enums import EventType
from app.services.analytics_service import AnalyticsEventStore
from app.services.recommendation_resolver import RecommendationResolver
from app.utils.exceptions import QuotaExceededException

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/proxy", tags=["proxy"])

REQUIRED_EVENT_FIELDS = ("event_type", "source_product_id", "recommended_product_id")


def _parse_limit(raw: Optional[str]) -> int:
    try:
        value = int(raw) if raw is not None else settings.DEFAULT_PROXY_LIMIT
    except ValueError:
        return settings.DEFAULT_PROXY_LIMIT
    return max(0, value)


@router.get("/recommendations")
async def get_recommendations(
    shop: ProxyShop,
    db: DB,
    product_id: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
):
    """Curated recommendations for a product page; never fails the storefront."""
    if not product_id:
        return {"recommendations": [], "error": "product_id required"}

    try:
        recommendations = await RecommendationResolver.resolve(db, shop, product_id)
    except Exception:
        logger.exception(
            "Error fetching recommendations",
            extra={"shop": shop, "product_id": product_id},
        )
        return {"recommendations": [], "source": "none", "error": "fetch_failed"}

    limited = recommendations[: _parse_limit(limit)]
    return {
        "recommendations": [product.model_dump(by_alias=True) for product in limited],
        "source": "custom" if limited else "none",
    }


@router.post("/recommendations")
async def track_event(
    request: Request,
    shop: ProxyShop,
    db: DB,
    ledger: Ledger,
):
    """Count an impression, click or add-to-cart against the shop's quota."""
    try:
        body = await request.json()
    except ValueError:
        body = None
    if not isinstance(body, dict):
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"error": "Invalid JSON body"})

    missing = [field for field in REQUIRED_EVENT_FIELDS if not body.get(field)]
    if missing:
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": f"Missing required fields: {', '.join(missing)}"},
        )

    event_type = str(body["event_type"])
    if event_type not in EventType.values():
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content={"error": f"Invalid event_type. Must be one of: {', '.join(EventType.values())}"},
        )

    try:
        await ledger.require_capacity(db, shop)

        await AnalyticsEventStore.record(
            db,
            shop_domain=shop,
            source_product_id=str(body["source_product_id"]),
            recommended_product_id=str(body["recommended_product_id"]),
            event_type=event_type,
        )

        await ledger.increment_usage(db, shop)
    except QuotaExceededException as exc:
        return JSONResponse(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            content={"error": "limit_reached", **exc.details},
        )
    except Exception:
        logger.exception("Error tracking analytics", extra={"shop": shop, "event_type": event_type})
        await db.rollback()
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "tracking_failed"},
        )

    return {"success": True}
