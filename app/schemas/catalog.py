"""Catalog sync schemas."""

from typing import List, Optional

from pydantic import BaseModel, Field


class CatalogProductIn(BaseModel):
    """Product detail pushed from the platform."""

    id: str = Field(..., min_length=1)
    title: str
    handle: str
    image_url: Optional[str] = Field(None, alias="imageUrl")
    image_alt: Optional[str] = Field(None, alias="imageAlt")
    price: Optional[str] = None
    currency_code: Optional[str] = Field(None, max_length=3, alias="currencyCode")
    variant_id: Optional[str] = Field(None, alias="variantId")

    class Config:
        populate_by_name = True


class CatalogSyncRequest(BaseModel):
    products: List[CatalogProductIn] = Field(..., min_length=1)

    class Config:
        extra = "forbid"
