"""Plan and usage routes."""

from fastapi import APIRouter

from app.api.deps import CurrentShop, DB, Ledger
from app.core.plans import PLAN_CATALOG, plan_limit
from app.schemas.usage import PlanInfo, PlanUpdate
from app.utils.envelopes import api_success

router = APIRouter(prefix="/billing", tags=["billing"])


@router.get("/usage", response_model=dict)
async def get_usage(
    shop: CurrentShop,
    db: DB,
    ledger: Ledger,
):
    """Current shop's plan, usage and remaining quota for this billing cycle."""
    usage = await ledger.check_usage_limit(db, shop)
    return api_success(usage.model_dump(by_alias=True, mode="json"))


@router.get("/plans", response_model=dict)
async def list_plans(
    shop: CurrentShop,
    db: DB,
    ledger: Ledger,
):
    """Available plans, flagging the shop's current one."""
    usage = await ledger.check_usage_limit(db, shop)
    plans_data = [
        PlanInfo(
            name=entry["plan"],
            price=entry["price"],
            limit=plan_limit(entry["plan"]),
            features=entry["features"],
            current=entry["plan"] == usage.plan,
        )
        for entry in PLAN_CATALOG
    ]
    return api_success(
        {
            "currentPlan": usage.plan.value,
            "usage": usage.model_dump(by_alias=True, mode="json"),
            "plans": [p.model_dump(mode="json") for p in plans_data],
        }
    )


@router.put("/plan", response_model=dict)
async def update_plan(
    payload: PlanUpdate,
    shop: CurrentShop,
    db: DB,
    ledger: Ledger,
):
    """Record the plan the shop is subscribed to."""
    plan = await ledger.update_plan(db, shop, payload.plan)
    usage = await ledger.check_usage_limit(db, shop)
    return api_success({"plan": plan.value, "usage": usage.model_dump(by_alias=True, mode="json")})
