"""Usage metering against the rolling billing cycle.

Every shop gets a quota of recommendation events per billing cycle according
to its plan. The ledger re-reads the shop row on every call; nothing is
cached between requests.
"""

import logging
from datetime import datetime
from typing import Callable, Optional, Union

from sqlalchemy.ext.asyncio import AsyncSession

from app.core.plans import parse_plan, plan_limit
from app.database.shop_repo import ShopRepository
from app.models.shop_enums import ShopPlan
from app.schemas.usage import UsageSnapshot
from app.utils.datetime_utils import ensure_utc, utc_now
from app.utils.exceptions import QuotaExceededException

logger = logging.getLogger(__name__)


class UsageLedger:
    """Per-shop usage counter with plan limits and billing-cycle resets."""

    def __init__(self, cycle_days: int = 30, clock: Callable[[], datetime] = utc_now):
        self.cycle_days = cycle_days
        self.clock = clock

    async def ensure_shop(self, db: AsyncSession, shop_domain: str) -> None:
        """Provision the shop row if this is the first time we see the shop."""
        await ShopRepository.ensure_shop(db, shop_domain, self.clock())
        await db.commit()

    async def reset_billing_cycle_if_needed(self, db: AsyncSession, shop_domain: str) -> bool:
        """Zero the counter once ``cycle_days`` have elapsed since the cycle start."""
        now = self.clock()
        reset = await ShopRepository.reset_cycle_if_elapsed(db, shop_domain, now, self.cycle_days)
        await db.commit()
        if reset:
            logger.info(
                "Billing cycle reset",
                extra={"shop": shop_domain, "cycle_start": now.isoformat()},
            )
        return reset

    async def check_usage_limit(
        self,
        db: AsyncSession,
        shop_domain: str,
        plan: Optional[Union[ShopPlan, str]] = None,
    ) -> UsageSnapshot:
        """
        Report usage against the plan limit for the current cycle.

        When ``plan`` is omitted the plan stored on the shop is used. Unknown
        plan names are metered as Free.
        """
        await self.ensure_shop(db, shop_domain)
        await self.reset_billing_cycle_if_needed(db, shop_domain)

        shop = await ShopRepository.get_shop(db, shop_domain)
        used = shop.recommendations_used if shop else 0
        effective_plan = parse_plan(plan if plan is not None else (shop.plan if shop else None))
        limit = plan_limit(effective_plan)

        if limit is None:
            remaining = None
            has_capacity = True
        else:
            remaining = max(0, limit - used)
            has_capacity = used < limit

        return UsageSnapshot(
            used=used,
            limit=limit,
            remaining=remaining,
            hasCapacity=has_capacity,
            plan=effective_plan,
            billingCycleStart=ensure_utc(shop.billing_cycle_start) if shop else None,
        )

    async def require_capacity(
        self,
        db: AsyncSession,
        shop_domain: str,
        plan: Optional[Union[ShopPlan, str]] = None,
    ) -> UsageSnapshot:
        """Like check_usage_limit, but raises QuotaExceededException when exhausted."""
        usage = await self.check_usage_limit(db, shop_domain, plan)
        if not usage.has_capacity:
            logger.warning(
                "Usage limit reached",
                extra={"shop": shop_domain, "used": usage.used, "limit": usage.limit},
            )
            raise QuotaExceededException(used=usage.used, limit=usage.limit, plan=usage.plan.value)
        return usage

    async def increment_usage(self, db: AsyncSession, shop_domain: str) -> int:
        """Add exactly one to the counter in a single atomic statement."""
        now = self.clock()
        await ShopRepository.ensure_shop(db, shop_domain, now)
        used = await ShopRepository.increment_used(db, shop_domain, now)
        await db.commit()
        return used or 0

    async def update_plan(
        self, db: AsyncSession, shop_domain: str, plan: Union[ShopPlan, str]
    ) -> ShopPlan:
        """Store the shop's plan without touching usage or the cycle start."""
        new_plan = parse_plan(plan)
        await ShopRepository.upsert_plan(db, shop_domain, new_plan, self.clock())
        await db.commit()
        logger.info("Plan updated", extra={"shop": shop_domain, "plan": new_plan.value})
        return new_plan
