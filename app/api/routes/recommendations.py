"""Recommendation override management routes.
"""

from typing import Optional

from fastapi import APIRouter, Query

from app.api.deps import CurrentShop, DB
from app.schemas.recommendations import RecommendationUpsert, ToggleRequest
from app.services.recommendation_service import RecommendationService
from app.utils.envelopes import api_success

router = APIRouter(tags=["recommendations"])


@router.get("/recommendations", response_model=dict)
async def list_recommendations(
    shop: CurrentShop,
    db: DB,
    cursor: Optional[str] = Query(None),
    search: Optional[str] = Query(None, max_length=200),
):
    """One page of overrides, most recently updated first."""
    page = await RecommendationService.list_page(db, shop, cursor=cursor, search=search)
    return api_success(page.model_dump(by_alias=True, mode="json"))


@router.post("/recommendations", response_model=dict)
async def upsert_recommendation(
    payload: RecommendationUpsert,
    shop: CurrentShop,
    db: DB,
):
    """
    Create an override, or replace the one stored under ``handle``.

    Omit ``handle`` to create; pass the existing handle to update.
    """
    result = await RecommendationService.upsert(db, shop, payload)
    return api_success(result)


@router.post("/recommendations/{override_id}/toggle", response_model=dict)
async def toggle_recommendation(
    override_id: str,
    payload: ToggleRequest,
    shop: CurrentShop,
    db: DB,
):
    """Flip the active flag relative to the value the caller last saw."""
    result = await RecommendationService.toggle(db, shop, override_id, payload.current_value)
    return api_success(result)


@router.delete("/recommendations/{override_id}", response_model=dict)
async def delete_recommendation(
    override_id: str,
    shop: CurrentShop,
    db: DB,
):
    """Delete an override; unknown ids come back as user errors."""
    result = await RecommendationService.delete(db, shop, override_id)
    return api_success(result)
