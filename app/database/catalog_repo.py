"""Repository layer for cached product detail."""

import logging
from datetime import datetime
from typing import Iterable, Sequence

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import dialect_insert
from app.models.models import CatalogProduct

logger = logging.getLogger(__name__)


class CatalogRepository:
    """Repository for catalog product database operations."""

    @staticmethod
    async def get_products(
        db: AsyncSession, shop_domain: str, product_ids: Iterable[str]
    ) -> dict[str, CatalogProduct]:
        """
        Fetch cached products by id.

        Args:
            db: Database session
            shop_domain: Shop domain
            product_ids: Product ids to look up

        Returns:
            Mapping of product id to CatalogProduct; unknown ids are absent
        """
        ids = list(dict.fromkeys(product_ids))
        if not ids:
            return {}
        result = await db.execute(
            select(CatalogProduct).where(
                CatalogProduct.shop_domain == shop_domain,
                CatalogProduct.product_id.in_(ids),
            )
        )
        return {product.product_id: product for product in result.scalars().all()}

    @staticmethod
    async def upsert_products(
        db: AsyncSession, shop_domain: str, products: Sequence[dict], now: datetime
    ) -> int:
        """
        Insert or refresh cached products.

        Args:
            db: Database session
            shop_domain: Shop domain
            products: Dicts keyed by CatalogProduct column names (without shop_domain)
            now: Refresh timestamp

        Returns:
            Number of products written
        """
        if not products:
            return 0
        rows = [{**product, "shop_domain": shop_domain, "updated_date": now} for product in products]
        stmt = dialect_insert(db, CatalogProduct.__table__).values(rows)
        stmt = stmt.on_conflict_do_update(
            index_elements=["shop_domain", "product_id"],
            set_={
                column: stmt.excluded[column]
                for column in (
                    "title",
                    "handle",
                    "image_url",
                    "image_alt",
                    "price_amount",
                    "currency_code",
                    "variant_id",
                    "updated_date",
                )
            },
        )
        await db.execute(stmt)
        logger.info(f"Catalog sync for {shop_domain}: {len(rows)} products")
        return len(rows)
