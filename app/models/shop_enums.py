"""Shop- and analytics-related enums.

This module contains enums used by the persistence models:
- ShopPlan: Subscription tier that decides the monthly quota
- EventType: Kind of storefront interaction with a recommended product
"""

import enum


class ShopPlan(str, enum.Enum):
    """Subscription tier of a shop."""

    FREE = "Free"
    STANDARD = "Standard"
    ENTERPRISE = "Enterprise"


class EventType(str, enum.Enum):
    """Storefront interaction with a recommended product."""

    IMPRESSION = "impression"
    CLICK = "click"
    ADD_TO_CART = "add_to_cart"

    @classmethod
    def values(cls) -> list[str]:
        return [member.value for member in cls]
