"""
Recommendation override schemas for API operations.
"""

import json
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator


# ---------- Create / Update Schemas ----------

class RecommendationUpsert(BaseModel):
    """Schema for creating or replacing a recommendation override.

    Omitting ``handle`` creates a new record; passing an existing handle
    replaces that record wholesale.
    """

    handle: Optional[str] = Field(None, min_length=1, max_length=255)
    source_product_id: str = Field(..., min_length=1, alias="sourceProductId")
    recommended_product_ids: List[str] = Field(
        ...,
        min_length=1,
        alias="recommendedProductIds",
        description="Ordered product ids; also accepted as a JSON-serialized list",
    )
    priority: int = Field(default=0)
    is_active: bool = Field(default=True, alias="isActive")

    class Config:
        populate_by_name = True
        extra = "forbid"

    @field_validator("recommended_product_ids", mode="before")
    @classmethod
    def _decode_serialized_list(cls, value):
        if isinstance(value, str):
            try:
                value = json.loads(value or "[]")
            except ValueError as exc:
                raise ValueError("recommendedProductIds must be a JSON list") from exc
        if isinstance(value, list):
            return [str(item) for item in value]
        return value


class ToggleRequest(BaseModel):
    """The active flag the caller believes is current."""

    current_value: bool = Field(..., alias="currentValue")

    class Config:
        populate_by_name = True


# ---------- Response Schemas ----------

class ProductDetail(BaseModel):
    """Product detail resolved from the catalog; only ``id`` when uncached."""

    id: str
    title: Optional[str] = None
    handle: Optional[str] = None
    image_url: Optional[str] = Field(None, alias="imageUrl")
    image_alt: Optional[str] = Field(None, alias="imageAlt")
    price: Optional[str] = None
    currency_code: Optional[str] = Field(None, alias="currencyCode")
    variant_id: Optional[str] = Field(None, alias="variantId")

    class Config:
        populate_by_name = True


class RecommendationRecord(BaseModel):
    """One override as shown in the admin list."""

    id: str
    handle: str
    cursor: str
    source_product: ProductDetail = Field(..., alias="sourceProduct")
    recommended_products: List[ProductDetail] = Field(..., alias="recommendedProducts")
    priority: int
    is_active: bool = Field(..., alias="isActive")
    updated_at: datetime = Field(..., alias="updatedAt")

    class Config:
        populate_by_name = True


class PageInfo(BaseModel):
    has_next_page: bool = Field(..., alias="hasNextPage")
    has_previous_page: bool = Field(..., alias="hasPreviousPage")
    end_cursor: Optional[str] = Field(None, alias="endCursor")

    class Config:
        populate_by_name = True


class RecommendationPage(BaseModel):
    recommendations: List[RecommendationRecord]
    page_info: PageInfo = Field(..., alias="pageInfo")

    class Config:
        populate_by_name = True
