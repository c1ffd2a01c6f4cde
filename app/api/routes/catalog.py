"""Catalog sync routes."""

from fastapi import APIRouter

from app.api.deps import CurrentShop, DB
from app.schemas.catalog import CatalogSyncRequest
from app.services.catalog_service import CatalogService
from app.utils.envelopes import api_success

router = APIRouter(prefix="/catalog", tags=["catalog"])


@router.put("/products", response_model=dict)
async def sync_products(
    payload: CatalogSyncRequest,
    shop: CurrentShop,
    db: DB,
):
    """Insert or refresh cached product detail used to render recommendations."""
    synced = await CatalogService.sync_products(db, shop, payload.products)
    return api_success({"synced": synced})
