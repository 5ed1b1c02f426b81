"""Subscription tiers, their features and limits.

The plan catalog is static; the payment provider mirrors it. Subscription and
user records come from the identity and persistence layers as plain objects
or dicts and are only read here.
"""

from __future__ import annotations

from typing import Any, Literal, Optional

from pydantic import BaseModel

from utils.currency import format_price

SubscriptionTier = Literal["free", "pro", "enterprise"]

TIER_LEVELS: dict[str, int] = {"free": 0, "pro": 1, "enterprise": 2}


class PlanFeature(BaseModel):
    name: str
    description: str | None = None
    included: bool


class PlanLimits(BaseModel):
    # None = без ограничений
    quotes: int | None = None
    products: int | None = None
    storage: str | None = None
    emails: int | None = None
    users: int | None = None
    api_calls: int | None = None


class SubscriptionPlan(BaseModel):
    id: str
    name: str
    slug: str
    description: str
    price: float
    yearly_price: float | None = None
    currency: str = "USD"
    billing_period: Literal["monthly", "yearly"] = "monthly"
    trial_days: int = 0
    features: list[PlanFeature]
    limits: PlanLimits
    is_popular: bool = False
    display_order: int


SUBSCRIPTION_PLANS: list[SubscriptionPlan] = [
    SubscriptionPlan(
        id="free",
        name="Free",
        slug="free",
        description="Perfect for trying out our platform",
        price=0,
        display_order=1,
        features=[
            PlanFeature(name="Basic quote generation", included=True),
            PlanFeature(name="Email quotes to customers", included=True),
            PlanFeature(name="PDF export", included=True),
            PlanFeature(name="Product catalog access", included=True),
            PlanFeature(name="Square payment links", included=False),
            PlanFeature(name="Priority support", included=False),
            PlanFeature(name="Team collaboration", included=False),
            PlanFeature(name="Advanced analytics", included=False),
        ],
        # quotes: 5 всего, не в месяц
        limits=PlanLimits(quotes=5, products=50, storage="100MB", emails=10, users=1),
    ),
    SubscriptionPlan(
        id="pro",
        name="Pro",
        slug="pro",
        description="For growing businesses",
        price=29,
        yearly_price=290,
        trial_days=14,
        is_popular=True,
        display_order=2,
        features=[
            PlanFeature(name="Unlimited quotes", included=True),
            PlanFeature(name="Email quotes to customers", included=True),
            PlanFeature(name="PDF export", included=True),
            PlanFeature(name="Product catalog access", included=True),
            PlanFeature(name="Square payment links", included=True),
            PlanFeature(name="Priority support", included=True),
            PlanFeature(name="Advanced analytics", included=True),
            PlanFeature(name="Custom branding", included=True),
            PlanFeature(name="API access", included=True),
        ],
        limits=PlanLimits(quotes=None, storage="5GB", emails=500, api_calls=10000),
    ),
    SubscriptionPlan(
        id="enterprise",
        name="Enterprise",
        slug="enterprise",
        description="For large teams and high-volume businesses",
        price=99,
        yearly_price=990,
        trial_days=30,
        display_order=3,
        features=[
            PlanFeature(name="Unlimited quotes", included=True),
            PlanFeature(name="Email quotes to customers", included=True),
            PlanFeature(name="PDF export", included=True),
            PlanFeature(name="Product catalog access", included=True),
            PlanFeature(name="Square payment links", included=True),
            PlanFeature(name="Priority support", included=True),
            PlanFeature(name="Team collaboration", included=True),
            PlanFeature(name="Advanced analytics", included=True),
            PlanFeature(name="Custom branding", included=True),
            PlanFeature(name="API access", included=True),
            PlanFeature(name="Dedicated account manager", included=True),
            PlanFeature(name="Custom integrations", included=True),
            PlanFeature(name="SLA guarantee", included=True),
        ],
        limits=PlanLimits(storage="50GB"),
    ),
]


def get_plan_by_slug(slug: str) -> Optional[SubscriptionPlan]:
    return next((plan for plan in SUBSCRIPTION_PLANS if plan.slug == slug), None)


def get_plan_by_id(plan_id: str) -> Optional[SubscriptionPlan]:
    return next((plan for plan in SUBSCRIPTION_PLANS if plan.id == plan_id), None)


def get_active_plans() -> list[SubscriptionPlan]:
    return sorted(SUBSCRIPTION_PLANS, key=lambda plan: plan.display_order)


def is_plan_feature_included(plan_slug: str, feature_name: str) -> bool:
    plan = get_plan_by_slug(plan_slug)
    if not plan:
        return False
    feature = next((f for f in plan.features if f.name == feature_name), None)
    return bool(feature and feature.included)


def get_plan_limit(plan_slug: str, metric: str) -> Optional[int]:
    """Numeric limit for ``metric``; ``None`` means unlimited.

    Unknown plans get ``0`` so nothing is allowed. String limits such as
    ``"5GB"`` are not numeric and come back as ``None``; use
    :func:`utils.feature_gating.parse_storage_limit` for those.
    """
    plan = get_plan_by_slug(plan_slug)
    if not plan:
        return 0
    limit = getattr(plan.limits, metric, None)
    if isinstance(limit, int):
        return limit
    return None


def get_yearly_savings(plan: SubscriptionPlan) -> float:
    if not plan.yearly_price:
        return 0
    return plan.price * 12 - plan.yearly_price


def get_plan_tier(plan_slug: Optional[str]) -> SubscriptionTier:
    if plan_slug == "enterprise":
        return "enterprise"
    if plan_slug == "pro":
        return "pro"
    return "free"


def meets_tier(current: str, required: str) -> bool:
    return TIER_LEVELS.get(current, 0) >= TIER_LEVELS.get(required, 0)


def plan_summary(plan: SubscriptionPlan) -> dict[str, Any]:
    """Plan as shown on the pricing page."""
    data = plan.model_dump()
    data["formatted_price"] = format_price(plan.price, plan.currency)
    data["yearly_savings"] = get_yearly_savings(plan)
    return data


def _read(record: Any, name: str) -> Any:
    if isinstance(record, dict):
        return record.get(name)
    return getattr(record, name, None)


def get_user_subscription_info(user: Any = None, subscription: Any = None) -> dict[str, Any]:
    """Tier, features and limits for the current user.

    ``user`` only needs an ``id``; ``subscription`` needs a ``plan_id`` that
    names a plan slug. A subscription pointing to an unknown plan is a data
    error and raises :class:`LookupError`.
    """

    if not user:
        return {
            "is_authenticated": False,
            "tier": "free",
            "features": [],
            "limits": {},
        }

    user_id = _read(user, "id")

    if not subscription:
        free_plan = get_plan_by_slug("free")
        return {
            "is_authenticated": True,
            "user_id": user_id,
            "tier": "free",
            "subscription": None,
            "features": [f.model_dump() for f in free_plan.features] if free_plan else [],
            "limits": free_plan.limits.model_dump() if free_plan else {},
        }

    plan_id = _read(subscription, "plan_id")
    plan = get_plan_by_slug(plan_id)
    if not plan:
        raise LookupError(f"Plan not found for subscription: {plan_id}")

    return {
        "is_authenticated": True,
        "user_id": user_id,
        "tier": get_plan_tier(plan.slug),
        "subscription": subscription,
        "plan": plan,
        "features": [f.model_dump() for f in plan.features],
        "limits": plan.limits.model_dump(),
    }
