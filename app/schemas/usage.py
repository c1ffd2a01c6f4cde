"""Usage and plan schemas."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from app.models.shop_enums import ShopPlan


class UsageSnapshot(BaseModel):
    """Quota state of a shop for the current billing cycle."""

    used: int = Field(..., ge=0)
    limit: Optional[int] = Field(None, description="null means unlimited")
    remaining: Optional[int] = Field(None, ge=0, description="null means unlimited")
    has_capacity: bool = Field(..., alias="hasCapacity")
    plan: ShopPlan
    billing_cycle_start: Optional[datetime] = Field(None, alias="billingCycleStart")

    class Config:
        populate_by_name = True


class PlanUpdate(BaseModel):
    """Schema for changing a shop's plan."""

    plan: ShopPlan

    class Config:
        extra = "forbid"


class PlanInfo(BaseModel):
    """Plan details for the pricing screen."""

    name: ShopPlan
    price: int = Field(..., ge=0)
    limit: Optional[int] = Field(None, description="null means unlimited")
    features: list[str]
    current: bool = False
