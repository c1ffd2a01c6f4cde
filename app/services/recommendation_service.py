"""Service layer for recommendation override business logic.

Architecture:
- Repository: Fetches and writes override rows
- Service: Generates handles, paginates, resolves product detail
- Route: Orchestrates service calls and returns HTTP responses
"""

import base64
import binascii
import json
import logging
import uuid
from datetime import datetime
from typing import Any, Callable, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.database.catalog_repo import CatalogRepository
from app.database.recommendation_repo import RecommendationRepository
from app.models.models import RecommendationOverride
from app.schemas.recommendations import (
    PageInfo,
    RecommendationPage,
    RecommendationRecord,
    RecommendationUpsert,
)
from app.services.catalog_service import product_detail
from app.utils.datetime_utils import ensure_utc, utc_now
from app.utils.envelopes import user_error
from app.utils.exceptions import ValidationException

logger = logging.getLogger(__name__)


def generate_handle(source_product_id: str, now: datetime) -> str:
    """Handle for a new override: ``rec-<last id segment>-<epoch millis>``.

    Two creates for the same source product within the same millisecond get
    the same handle, so the second one replaces the first.
    """
    tail = source_product_id.rstrip("/").split("/")[-1]
    return f"rec-{tail}-{int(now.timestamp() * 1000)}"


def encode_cursor(override: RecommendationOverride) -> str:
    payload = {"u": ensure_utc(override.updated_date).isoformat(), "i": str(override.id)}
    return base64.urlsafe_b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")


def decode_cursor(cursor: str) -> tuple[datetime, uuid.UUID]:
    """Inverse of encode_cursor; raises ValidationException on tampered input."""
    try:
        payload = json.loads(base64.urlsafe_b64decode(cursor.encode("ascii")))
        return ensure_utc(datetime.fromisoformat(payload["u"])), uuid.UUID(payload["i"])
    except (binascii.Error, ValueError, KeyError, TypeError, UnicodeError) as exc:
        raise ValidationException(message="Invalid cursor", details={"cursor": cursor}) from exc


def _parse_override_id(override_id: str) -> Optional[uuid.UUID]:
    try:
        return uuid.UUID(str(override_id))
    except ValueError:
        return None


class RecommendationService:
    """Service for recommendation override business logic."""

    clock: Callable[[], datetime] = staticmethod(utc_now)

    @staticmethod
    async def upsert(
        db: AsyncSession, shop_domain: str, payload: RecommendationUpsert
    ) -> dict[str, Any]:
        """
        Create or replace an override.

        Without a handle a new one is generated, so callers editing an
        existing record must pass its handle to avoid a duplicate.
        """
        now = RecommendationService.clock()
        handle = payload.handle or generate_handle(payload.source_product_id, now)

        result = await RecommendationRepository.upsert_override(
            db=db,
            shop_domain=shop_domain,
            handle=handle,
            source_product_id=payload.source_product_id,
            recommended_product_ids=payload.recommended_product_ids,
            priority=payload.priority,
            is_active=payload.is_active,
            now=now,
        )
        await db.commit()
        return result

    @staticmethod
    async def delete(db: AsyncSession, shop_domain: str, override_id: str) -> dict[str, Any]:
        """
        Delete an override.

        Deleting an unknown id is not fatal: it is reported back as a user error.
        """
        parsed_id = _parse_override_id(override_id)
        deleted = False
        if parsed_id is not None:
            deleted = await RecommendationRepository.delete_override(db, shop_domain, parsed_id)
            await db.commit()

        if not deleted:
            return {
                "deletedId": None,
                "userErrors": [user_error("id", "Recommendation does not exist")],
            }
        return {"deletedId": str(parsed_id), "userErrors": []}

    @staticmethod
    async def toggle(
        db: AsyncSession, shop_domain: str, override_id: str, current_value: bool
    ) -> dict[str, Any]:
        """
        Flip ``is_active`` based on the value the caller believes is current.

        Last write wins: two concurrent toggles from the same stale value both
        write the same flag.
        """
        parsed_id = _parse_override_id(override_id)
        new_value = not current_value
        updated = False
        if parsed_id is not None:
            updated = await RecommendationRepository.set_active(
                db, shop_domain, parsed_id, new_value, RecommendationService.clock()
            )
            await db.commit()

        if not updated:
            return {
                "id": None,
                "isActive": None,
                "userErrors": [user_error("id", "Recommendation does not exist")],
            }
        return {"id": str(parsed_id), "isActive": new_value, "userErrors": []}

    @staticmethod
    async def list_page(
        db: AsyncSession,
        shop_domain: str,
        cursor: Optional[str] = None,
        search: Optional[str] = None,
    ) -> RecommendationPage:
        """One page of overrides, newest-updated first, with product detail."""
        page_size = settings.OVERRIDE_PAGE_SIZE
        after = decode_cursor(cursor) if cursor else None
        search = (search or "").strip() or None

        rows = await RecommendationRepository.list_overrides(
            db, shop_domain, limit=page_size + 1, after=after, search=search
        )
        has_next_page = len(rows) > page_size
        rows = rows[:page_size]

        product_ids: list[str] = []
        for row in rows:
            product_ids.append(row.source_product)
            product_ids.extend(row.recommended_product_ids)
        catalog = await CatalogRepository.get_products(db, shop_domain, product_ids)

        records = []
        for row in rows:
            records.append(
                RecommendationRecord(
                    id=str(row.id),
                    handle=row.handle,
                    cursor=encode_cursor(row),
                    sourceProduct=product_detail(row.source_product, catalog),
                    recommendedProducts=[
                        product_detail(product_id, catalog)
                        for product_id in row.recommended_product_ids
                    ],
                    priority=row.priority,
                    isActive=row.is_active,
                    updatedAt=ensure_utc(row.updated_date),
                )
            )

        return RecommendationPage(
            recommendations=records,
            pageInfo=PageInfo(
                hasNextPage=has_next_page,
                hasPreviousPage=cursor is not None,
                endCursor=records[-1].cursor if records else None,
            ),
        )
