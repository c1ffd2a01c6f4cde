"""Analytics schemas."""

from pydantic import BaseModel, Field

from app.schemas.usage import UsageSnapshot


class EventTotals(BaseModel):
    """Event counts per type."""

    impressions: int = Field(default=0, ge=0)
    clicks: int = Field(default=0, ge=0)
    add_to_carts: int = Field(default=0, ge=0, alias="addToCarts")

    class Config:
        populate_by_name = True


class TopProduct(BaseModel):
    product_id: str = Field(..., alias="productId")
    clicks: int = Field(..., ge=0)

    class Config:
        populate_by_name = True


class AnalyticsSummary(BaseModel):
    """All-time and trailing-window totals plus the most clicked products."""

    all_time: EventTotals = Field(default_factory=EventTotals, alias="allTime")
    last_30_days: EventTotals = Field(default_factory=EventTotals, alias="last30Days")
    top_products: list[TopProduct] = Field(default_factory=list, alias="topProducts")

    class Config:
        populate_by_name = True


class ConversionRates(BaseModel):
    """Percentages over the trailing window, one decimal."""

    click_through_rate: float = Field(..., ge=0, alias="clickThroughRate")
    add_to_cart_rate: float = Field(..., ge=0, alias="addToCartRate")

    class Config:
        populate_by_name = True


class DashboardResponse(BaseModel):
    """Dashboard overview response."""

    current_plan: str = Field(..., alias="currentPlan")
    usage: UsageSnapshot
    analytics: AnalyticsSummary
    rates: ConversionRates

    class Config:
        populate_by_name = True
