"""Seed database with a demo shop, cached catalog products and one override."""

import asyncio

from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker

from app.core.config import settings
from app.core.db import _ensure_async_url
from app.models.models import RecommendationOverride
from app.models.shop_enums import ShopPlan
from app.schemas.catalog import CatalogProductIn
from app.schemas.recommendations import RecommendationUpsert
from app.services.catalog_service import CatalogService
from app.services.recommendation_service import RecommendationService
from app.services.usage_ledger import UsageLedger

DEMO_SHOP = "demo-store.myshopify.com"

DEMO_PRODUCTS = [
    {
        "id": "gid://shopify/Product/1001",
        "title": "Trail Running Shoe",
        "handle": "trail-running-shoe",
        "price": "89.00",
        "currencyCode": "USD",
        "variantId": "gid://shopify/ProductVariant/5001",
    },
    {
        "id": "gid://shopify/Product/1002",
        "title": "Merino Running Socks",
        "handle": "merino-running-socks",
        "price": "14.00",
        "currencyCode": "USD",
        "variantId": "gid://shopify/ProductVariant/5002",
    },
    {
        "id": "gid://shopify/Product/1003",
        "title": "Hydration Vest",
        "handle": "hydration-vest",
        "price": "64.50",
        "currencyCode": "USD",
        "variantId": "gid://shopify/ProductVariant/5003",
    },
]


async def seed_shop(session: AsyncSession) -> None:
    """Provision the demo shop on the Standard plan."""
    ledger = UsageLedger(cycle_days=settings.BILLING_CYCLE_DAYS)
    await ledger.ensure_shop(session, DEMO_SHOP)
    await ledger.update_plan(session, DEMO_SHOP, ShopPlan.STANDARD)
    print(f"✓ Shop ready: {DEMO_SHOP} ({ShopPlan.STANDARD.value})")


async def seed_catalog(session: AsyncSession) -> None:
    products = [CatalogProductIn(**product) for product in DEMO_PRODUCTS]
    synced = await CatalogService.sync_products(session, DEMO_SHOP, products)
    print(f"✓ Synced {synced} catalog products")


async def seed_override(session: AsyncSession) -> None:
    """Recommend socks and a vest alongside the shoe."""
    source_id = DEMO_PRODUCTS[0]["id"]
    result = await session.execute(
        select(RecommendationOverride).where(
            RecommendationOverride.shop_domain == DEMO_SHOP,
            RecommendationOverride.source_product == source_id,
        )
    )
    existing = result.scalars().first()

    payload = RecommendationUpsert(
        handle=existing.handle if existing else None,
        sourceProductId=source_id,
        recommendedProductIds=[DEMO_PRODUCTS[1]["id"], DEMO_PRODUCTS[2]["id"]],
        priority=10,
        isActive=True,
    )
    saved = await RecommendationService.upsert(session, DEMO_SHOP, payload)
    action = "Updated" if existing else "Created"
    print(f"✓ {action} override: {saved['handle']}")


async def main() -> None:
    """Run all seed operations."""
    print("🌱 Seeding database...")

    database_url = _ensure_async_url(settings.DATABASE_URL)

    engine = create_async_engine(database_url, echo=False)
    async_session = async_sessionmaker(engine, expire_on_commit=False)

    async with async_session() as session:
        await seed_shop(session)
        await seed_catalog(session)
        await seed_override(session)

    await engine.dispose()

    print("✅ Database seeding completed!")


if __name__ == "__main__":
    asyncio.run(main())
