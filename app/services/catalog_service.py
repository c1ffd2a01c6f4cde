"""Service layer for cached product detail."""

from typing import Iterable, Mapping, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.database.catalog_repo import CatalogRepository
from app.models.models import CatalogProduct
from app.schemas.catalog import CatalogProductIn
from app.schemas.recommendations import ProductDetail
from app.utils.datetime_utils import utc_now


def product_detail(product_id: str, catalog: Mapping[str, CatalogProduct]) -> ProductDetail:
    """Detail for a product id; bare ``{id}`` when the product is not cached."""
    product: Optional[CatalogProduct] = catalog.get(product_id)
    if product is None:
        return ProductDetail(id=product_id)
    return ProductDetail(
        id=product.product_id,
        title=product.title,
        handle=product.handle,
        imageUrl=product.image_url,
        imageAlt=product.image_alt,
        price=product.price_amount,
        currencyCode=product.currency_code,
        variantId=product.variant_id,
    )


class CatalogService:
    """Service for catalog lookups and sync."""

    @staticmethod
    async def resolve_products(
        db: AsyncSession, shop_domain: str, product_ids: Iterable[str]
    ) -> list[ProductDetail]:
        """Resolve ids to detail, keeping the given order."""
        ids = list(product_ids)
        catalog = await CatalogRepository.get_products(db, shop_domain, ids)
        return [product_detail(product_id, catalog) for product_id in ids]

    @staticmethod
    async def sync_products(
        db: AsyncSession, shop_domain: str, products: list[CatalogProductIn]
    ) -> int:
        rows = [
            {
                "product_id": product.id,
                "title": product.title,
                "handle": product.handle,
                "image_url": product.image_url,
                "image_alt": product.image_alt,
                "price_amount": product.price,
                "currency_code": product.currency_code,
                "variant_id": product.variant_id,
            }
            for product in products
        ]
        written = await CatalogRepository.upsert_products(db, shop_domain, rows, utc_now())
        await db.commit()
        return written
