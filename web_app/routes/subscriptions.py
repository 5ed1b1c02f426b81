from fastapi import APIRouter

from utils.subscription_plans import get_active_plans, plan_summary

router = APIRouter(prefix="/api/subscriptions")


@router.get("/plans")
async def list_plans():
    return {"success": True, "plans": [plan_summary(plan) for plan in get_active_plans()]}
