"""Selection of the authoritative override for a product at request time."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from app.database.recommendation_repo import RecommendationRepository
from app.schemas.recommendations import ProductDetail
from app.services.catalog_service import CatalogService

logger = logging.getLogger(__name__)


class RecommendationResolver:
    """Resolves a storefront product id to its curated recommendations."""

    @staticmethod
    async def resolve(db: AsyncSession, shop_domain: str, product_id: str) -> list[ProductDetail]:
        """
        Recommended products of the best matching active override.

        An empty list means no override applies and the storefront should fall
        back to the platform's own recommendations. Storage failures propagate
        as UpstreamException; the caller decides how to degrade.
        """
        override = await RecommendationRepository.find_best_match(db, shop_domain, product_id)
        if override is None:
            logger.debug(f"No active override for product {product_id} in {shop_domain}")
            return []

        return await CatalogService.resolve_products(
            db, shop_domain, override.recommended_product_ids
        )
