"""Plan limits and the pricing catalog.

Limits are recommendation events per billing cycle; ``None`` means unbounded.
"""

from typing import Optional

from app.models.shop_enums import ShopPlan

PLAN_LIMITS: dict[ShopPlan, Optional[int]] = {
    ShopPlan.FREE: 100,
    ShopPlan.STANDARD: 1000,
    ShopPlan.ENTERPRISE: None,
}

PLAN_CATALOG = [
    {
        "plan": ShopPlan.FREE,
        "price": 0,
        "features": [
            "100 recommendations per month",
            "Default platform recommendations",
            "Basic analytics",
            "Product page recommendation block",
        ],
    },
    {
        "plan": ShopPlan.STANDARD,
        "price": 29,
        "features": [
            "1,000 recommendations per month",
            "Custom recommendation overrides",
            "Full analytics dashboard",
            "Product page and checkout blocks",
            "Priority support",
        ],
    },
    {
        "plan": ShopPlan.ENTERPRISE,
        "price": 59,
        "features": [
            "Unlimited recommendations",
            "Custom recommendation overrides",
            "Full analytics dashboard",
            "Product page and checkout blocks",
            "Priority support",
            "Dedicated account manager",
        ],
    },
]


def parse_plan(value: Optional[str]) -> ShopPlan:
    """Map a stored or requested plan name to a ShopPlan, defaulting to Free.

    Matching is case-insensitive so legacy lower-case values ("free") resolve.
    """
    if isinstance(value, ShopPlan):
        return value
    if value:
        for plan in ShopPlan:
            if plan.value.lower() == str(value).strip().lower():
                return plan
    return ShopPlan.FREE


def plan_limit(plan: ShopPlan) -> Optional[int]:
    return PLAN_LIMITS.get(plan, PLAN_LIMITS[ShopPlan.FREE])
