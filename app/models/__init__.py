from app.models.base import Base
from app.models.models import AnalyticsCounter, CatalogProduct, RecommendationOverride, Shop
from app.models.shop_enums import EventType, ShopPlan

__all__ = [
    "AnalyticsCounter",
    "Base",
    "CatalogProduct",
    "EventType",
    "RecommendationOverride",
    "Shop",
    "ShopPlan",
]
