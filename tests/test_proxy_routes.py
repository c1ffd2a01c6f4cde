"""Integration tests for the storefront proxy endpoints."""

import pytest
from sqlalchemy import update

from app.models import Shop
from app.schemas.catalog import CatalogProductIn
from app.schemas.recommendations import RecommendationUpsert
from app.services.catalog_service import CatalogService
from app.services.recommendation_resolver import RecommendationResolver
from app.services.recommendation_service import RecommendationService
from app.utils.exceptions import UpstreamException
from tests.conftest import SHOP, signed_proxy_params

PATH = "/proxy/recommendations"
EVENT = {
    "event_type": "impression",
    "source_product_id": "gid://shopify/Product/1001",
    "recommended_product_id": "gid://shopify/Product/2",
}


async def _seed_override(db_session, recommended) -> None:
    await RecommendationService.upsert(
        db_session,
        SHOP,
        RecommendationUpsert(
            sourceProductId="gid://shopify/Product/1001",
            recommendedProductIds=recommended,
            priority=1,
        ),
    )


# ---------------------------------------------------------------------------
# GET recommendations
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_get_requires_valid_signature(client):
    params = signed_proxy_params(product_id="1001")
    params["signature"] = "0" * 64

    response = await client.get(PATH, params=params)

    assert response.status_code == 401


@pytest.mark.asyncio
@pytest.mark.integration
async def test_get_without_product_id(client):
    response = await client.get(PATH, params=signed_proxy_params())

    assert response.status_code == 200
    assert response.json() == {"recommendations": [], "error": "product_id required"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_get_without_override_falls_back(client):
    response = await client.get(PATH, params=signed_proxy_params(product_id="1001"))

    assert response.status_code == 200
    assert response.json() == {"recommendations": [], "source": "none"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_get_returns_custom_recommendations_with_limit(client, db_session, clock):
    await CatalogService.sync_products(
        db_session,
        SHOP,
        [
            CatalogProductIn(
                id="gid://shopify/Product/2",
                title="Socks",
                handle="socks",
                price="9.50",
                currencyCode="USD",
            )
        ],
    )
    await _seed_override(db_session, [f"gid://shopify/Product/{n}" for n in range(2, 8)])

    response = await client.get(PATH, params=signed_proxy_params(product_id="1001"))

    assert response.status_code == 200
    body = response.json()
    assert body["source"] == "custom"
    assert len(body["recommendations"]) == 4
    assert body["recommendations"][0] == {
        "id": "gid://shopify/Product/2",
        "title": "Socks",
        "handle": "socks",
        "imageUrl": None,
        "imageAlt": None,
        "price": "9.50",
        "currencyCode": "USD",
        "variantId": None,
    }

    limited = await client.get(PATH, params=signed_proxy_params(product_id="1001", limit=2))
    assert len(limited.json()["recommendations"]) == 2


@pytest.mark.asyncio
@pytest.mark.integration
async def test_get_degrades_on_storage_failure(client, monkeypatch):
    async def _broken(db, shop_domain, product_id):
        raise UpstreamException(message="Failed to resolve recommendations")

    monkeypatch.setattr(RecommendationResolver, "resolve", staticmethod(_broken))

    response = await client.get(PATH, params=signed_proxy_params(product_id="1001"))

    assert response.status_code == 200
    assert response.json() == {"recommendations": [], "source": "none", "error": "fetch_failed"}


# ---------------------------------------------------------------------------
# POST tracking
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
@pytest.mark.integration
async def test_track_event_counts_and_meters(client, ledger, db_session):
    response = await client.post(PATH, params=signed_proxy_params(), json=EVENT)

    assert response.status_code == 200, response.text
    assert response.json() == {"success": True}

    usage = await ledger.check_usage_limit(db_session, SHOP)
    assert usage.used == 1


@pytest.mark.asyncio
@pytest.mark.integration
async def test_track_event_rejects_invalid_json(client):
    response = await client.post(
        PATH,
        params=signed_proxy_params(),
        content=b"{not json",
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 400
    assert response.json() == {"error": "Invalid JSON body"}


@pytest.mark.asyncio
@pytest.mark.integration
async def test_track_event_lists_missing_fields(client):
    response = await client.post(
        PATH, params=signed_proxy_params(), json={"event_type": "click"}
    )

    assert response.status_code == 400
    assert response.json() == {
        "error": "Missing required fields: source_product_id, recommended_product_id"
    }


@pytest.mark.asyncio
@pytest.mark.integration
async def test_track_event_rejects_unknown_type(client, ledger, db_session):
    response = await client.post(
        PATH, params=signed_proxy_params(), json={**EVENT, "event_type": "purchase"}
    )

    assert response.status_code == 400
    assert response.json() == {
        "error": "Invalid event_type. Must be one of: impression, click, add_to_cart"
    }
    assert (await ledger.check_usage_limit(db_session, SHOP)).used == 0


@pytest.mark.asyncio
@pytest.mark.integration
async def test_track_event_at_limit_returns_429(client, ledger, db_session):
    await ledger.ensure_shop(db_session, SHOP)
    await db_session.execute(update(Shop).where(Shop.id == SHOP).values(recommendations_used=99))
    await db_session.commit()

    first = await client.post(PATH, params=signed_proxy_params(), json=EVENT)
    assert first.status_code == 200

    second = await client.post(PATH, params=signed_proxy_params(), json=EVENT)
    assert second.status_code == 429
    assert second.json() == {"error": "limit_reached", "used": 100, "limit": 100, "plan": "Free"}

    assert (await ledger.check_usage_limit(db_session, SHOP)).used == 100


@pytest.mark.asyncio
@pytest.mark.integration
async def test_track_event_failure_returns_500(client, monkeypatch):
    async def _broken(*args, **kwargs):
        raise RuntimeError("database went away")

    from app.services.analytics_service import AnalyticsEventStore

    monkeypatch.setattr(AnalyticsEventStore, "record", staticmethod(_broken))

    response = await client.post(PATH, params=signed_proxy_params(), json=EVENT)

    assert response.status_code == 500
    assert response.json() == {"error": "tracking_failed"}
