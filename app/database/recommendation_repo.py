"""
Repository layer for recommendation override database operations.
"""

import json
import logging
import uuid
from datetime import datetime
from typing import Optional, Sequence

from sqlalchemy import and_, delete, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.db import dialect_insert
from app.models.models import CatalogProduct, RecommendationOverride
from app.utils.exceptions import UpstreamException

logger = logging.getLogger(__name__)


class RecommendationRepository:
    """Repository for recommendation override database operations."""

    @staticmethod
    async def upsert_override(
        db: AsyncSession,
        shop_domain: str,
        handle: str,
        source_product_id: str,
        recommended_product_ids: Sequence[str],
        priority: int,
        is_active: bool,
        now: datetime,
    ) -> dict:
        """Insert or wholesale-replace the override stored under ``handle``."""
        try:
            logger.info(f"Request for upsert_override: shop={shop_domain}, handle={handle}")

            table = RecommendationOverride.__table__
            stmt = dialect_insert(db, table).values(
                id=uuid.uuid4(),
                shop_domain=shop_domain,
                handle=handle,
                source_product=source_product_id,
                recommended_products=json.dumps(list(recommended_product_ids)),
                priority=priority,
                is_active=is_active,
                updated_date=now,
            )
            stmt = stmt.on_conflict_do_update(
                index_elements=["shop_domain", "handle"],
                set_={
                    "source_product": stmt.excluded.source_product,
                    "recommended_products": stmt.excluded.recommended_products,
                    "priority": stmt.excluded.priority,
                    "is_active": stmt.excluded.is_active,
                    "updated_date": stmt.excluded.updated_date,
                },
            ).returning(table.c.id, table.c.handle)

            result = await db.execute(stmt)
            row = result.one()

            override = {"id": str(row.id), "handle": row.handle}
            logger.info(f"Response for upsert_override: {override}")
            return override

        except Exception as e:
            logger.error("A system failure occurred @upsert_override", exc_info=True)
            raise UpstreamException(
                message="Failed to save recommendation", details={"error": str(e)}
            ) from e

    @staticmethod
    async def delete_override(db: AsyncSession, shop_domain: str, override_id: uuid.UUID) -> bool:
        """Delete an override; returns False when nothing matched."""
        try:
            logger.info(f"Request for delete_override: shop={shop_domain}, id={override_id}")

            result = await db.execute(
                delete(RecommendationOverride)
                .where(
                    RecommendationOverride.id == override_id,
                    RecommendationOverride.shop_domain == shop_domain,
                )
                .execution_options(synchronize_session=False)
            )
            deleted = result.rowcount > 0

            logger.info(f"Response for delete_override: deleted={deleted}")
            return deleted

        except Exception as e:
            logger.error("A system failure occurred @delete_override", exc_info=True)
            raise UpstreamException(
                message="Failed to delete recommendation", details={"error": str(e)}
            ) from e

    @staticmethod
    async def set_active(
        db: AsyncSession,
        shop_domain: str,
        override_id: uuid.UUID,
        is_active: bool,
        now: datetime,
    ) -> bool:
        """Write only the active flag; returns False when nothing matched."""
        try:
            logger.info(f"Request for set_active: id={override_id}, is_active={is_active}")

            result = await db.execute(
                update(RecommendationOverride)
                .where(
                    RecommendationOverride.id == override_id,
                    RecommendationOverride.shop_domain == shop_domain,
                )
                .values(is_active=is_active, updated_date=now)
                .execution_options(synchronize_session=False)
            )
            updated = result.rowcount > 0

            logger.info(f"Response for set_active: updated={updated}")
            return updated

        except Exception as e:
            logger.error("A system failure occurred @set_active", exc_info=True)
            raise UpstreamException(
                message="Failed to toggle recommendation", details={"error": str(e)}
            ) from e

    @staticmethod
    async def list_overrides(
        db: AsyncSession,
        shop_domain: str,
        limit: int,
        after: Optional[tuple[datetime, uuid.UUID]] = None,
        search: Optional[str] = None,
    ) -> list[RecommendationOverride]:
        """
        Fetch overrides newest-updated first using keyset pagination.

        ``after`` is the (updated_date, id) of the last row of the previous page.
        ``search`` matches the override handle and the source product's
        catalog title or handle.
        """
        try:
            logger.info(f"Request for list_overrides: shop={shop_domain}, search={search!r}")

            query = select(RecommendationOverride).where(
                RecommendationOverride.shop_domain == shop_domain
            )

            if search:
                pattern = f"%{search}%"
                query = query.outerjoin(
                    CatalogProduct,
                    and_(
                        CatalogProduct.shop_domain == RecommendationOverride.shop_domain,
                        CatalogProduct.product_id == RecommendationOverride.source_product,
                    ),
                ).where(
                    or_(
                        RecommendationOverride.handle.ilike(pattern),
                        CatalogProduct.title.ilike(pattern),
                        CatalogProduct.handle.ilike(pattern),
                    )
                )

            if after is not None:
                after_updated, after_id = after
                query = query.where(
                    or_(
                        RecommendationOverride.updated_date < after_updated,
                        and_(
                            RecommendationOverride.updated_date == after_updated,
                            RecommendationOverride.id < after_id,
                        ),
                    )
                )

            query = query.order_by(
                RecommendationOverride.updated_date.desc(),
                RecommendationOverride.id.desc(),
            ).limit(limit)

            result = await db.execute(query)
            overrides = list(result.scalars().all())

            logger.info(f"Response for list_overrides: {len(overrides)} overrides found")
            return overrides

        except Exception as e:
            logger.error("A system failure occurred @list_overrides", exc_info=True)
            raise UpstreamException(
                message="Failed to list recommendations", details={"error": str(e)}
            ) from e

    @staticmethod
    async def find_best_match(
        db: AsyncSession, shop_domain: str, product_id: str
    ) -> Optional[RecommendationOverride]:
        """
        Highest-priority active override whose source id contains ``product_id``.

        Containment rather than equality: storefronts send bare numeric ids
        while overrides store the platform's global id. Priority ties go to the
        most recently updated override.
        """
        try:
            logger.info(f"Request for find_best_match: shop={shop_domain}, product_id={product_id}")

            result = await db.execute(
                select(RecommendationOverride)
                .where(
                    RecommendationOverride.shop_domain == shop_domain,
                    RecommendationOverride.is_active.is_(True),
                    RecommendationOverride.source_product.contains(product_id, autoescape=True),
                )
                .order_by(
                    RecommendationOverride.priority.desc(),
                    RecommendationOverride.updated_date.desc(),
                    RecommendationOverride.id.desc(),
                )
                .limit(1)
            )
            override = result.scalar_one_or_none()

            logger.info(
                f"Response for find_best_match: {override.handle if override else None}"
            )
            return override

        except Exception as e:
            logger.error("A system failure occurred @find_best_match", exc_info=True)
            raise UpstreamException(
                message="Failed to resolve recommendations", details={"error": str(e)}
            ) from e
