"""Feature and usage-limit gating by subscription plan.

``subscription`` is ``None`` for users without a subscription record; they
are treated as the Free plan.
"""

from __future__ import annotations

import re
from typing import Literal, Optional

from pydantic import BaseModel

from utils.subscription_plans import SubscriptionPlan

FeatureName = Literal[
    "unlimited_quotes",
    "square_payment_links",
    "advanced_analytics",
    "custom_branding",
    "api_access",
    "priority_support",
    "team_collaboration",
    "custom_integrations",
]

UsageMetric = Literal["quotes", "products", "emails", "users", "storage"]

USAGE_METRICS: tuple[str, ...] = ("quotes", "products", "emails", "users", "storage")

FREE_FEATURES = frozenset({"square_payment_links"})
PRO_FEATURES = frozenset(
    {
        "unlimited_quotes",
        "square_payment_links",
        "advanced_analytics",
        "custom_branding",
        "api_access",
        "priority_support",
    }
)

# Лимиты Free-плана, storage в MB
FREE_LIMITS: dict[str, int] = {
    "quotes": 5,
    "products": 50,
    "emails": 10,
    "users": 1,
    "storage": 100,
}

FREE_LIMIT_LABELS: dict[str, int | str] = {**FREE_LIMITS, "storage": "100MB"}

FEATURE_MESSAGES: dict[str, str] = {
    "unlimited_quotes": "Upgrade to Pro for unlimited quotes",
    "square_payment_links": "Square payment links are available on all plans",
    "advanced_analytics": "Upgrade to Pro to access advanced analytics and reporting",
    "custom_branding": "Upgrade to Pro to customize your quote branding",
    "api_access": "Upgrade to Pro to access the API",
    "priority_support": "Upgrade to Pro for priority customer support",
    "team_collaboration": "Upgrade to Enterprise for team collaboration features",
    "custom_integrations": "Upgrade to Enterprise for custom integrations",
}

METRIC_MESSAGES: dict[str, str] = {
    "quotes": "Upgrade to Pro for unlimited quotes",
    "products": "Upgrade to Pro for access to all products in our catalog",
    "emails": "Upgrade to Pro for 500 emails per month",
    "users": "Upgrade to Pro for more team members",
    "storage": "Upgrade to Pro for 5GB of storage",
}

_STORAGE_RE = re.compile(r"^(\d+(?:\.\d+)?)(MB|GB|TB)$", re.IGNORECASE)
_STORAGE_UNITS = {"MB": 1, "GB": 1024, "TB": 1024 * 1024}


class UserSubscription(BaseModel):
    plan: SubscriptionPlan
    status: str = "active"
    current_period_start: str | None = None
    current_period_end: str | None = None


class UsageData(BaseModel):
    metric: str
    current: int
    limit: float | None  # None = без ограничений
    percentage: int


def parse_storage_limit(limit: str) -> float:
    """``"5GB"`` -> ``5120`` (MB). Unparsable values give ``0``."""
    match = _STORAGE_RE.match(limit.strip())
    if not match:
        return 0
    value, unit = match.groups()
    return float(value) * _STORAGE_UNITS[unit.upper()]


def _plan_slug(subscription: Optional[UserSubscription]) -> str:
    if subscription is None:
        return "free"
    return subscription.plan.slug.lower()


def get_plan_name(subscription: Optional[UserSubscription]) -> str:
    return subscription.plan.name if subscription else "Free"


def _numeric_limit(subscription: Optional[UserSubscription], metric: str) -> Optional[float]:
    if subscription is None:
        return FREE_LIMITS[metric]
    limit = getattr(subscription.plan.limits, metric, None)
    if limit is None:
        return None
    if isinstance(limit, str):
        return parse_storage_limit(limit)
    return limit


def has_feature_access(subscription: Optional[UserSubscription], feature: FeatureName) -> bool:
    slug = _plan_slug(subscription)
    if slug == "enterprise":
        return True
    if slug == "pro":
        return feature in PRO_FEATURES
    if slug == "free":
        return feature in FREE_FEATURES
    return False


def has_reached_limit(
    subscription: Optional[UserSubscription], metric: UsageMetric, current_usage: float
) -> bool:
    limit = _numeric_limit(subscription, metric)
    if limit is None:
        return False
    return current_usage >= limit


def get_usage_percentage(
    subscription: Optional[UserSubscription], metric: UsageMetric, current_usage: float
) -> int:
    limit = _numeric_limit(subscription, metric)
    if limit is None:
        return 0
    if limit <= 0:
        return 100
    return min(100, round(current_usage / limit * 100))


def can_perform_action(
    subscription: Optional[UserSubscription],
    feature: Optional[FeatureName] = None,
    metric: Optional[UsageMetric] = None,
    current_usage: Optional[float] = None,
) -> tuple[bool, Optional[str]]:
    """Feature check first, then the usage limit. Returns ``(allowed, reason)``."""

    if feature and not has_feature_access(subscription, feature):
        return False, (
            "This feature requires a Pro plan. "
            f"You are currently on the {get_plan_name(subscription)} plan."
        )

    if metric and current_usage is not None and has_reached_limit(subscription, metric, current_usage):
        if subscription is None:
            limit = FREE_LIMIT_LABELS[metric]
        else:
            limit = getattr(subscription.plan.limits, metric, None)
        return False, (
            f"You have reached your {metric} limit ({limit}). "
            f"Upgrade to Pro for unlimited {metric}."
        )

    return True, None


def get_upgrade_message(feature: Optional[str] = None, metric: Optional[str] = None) -> str:
    if feature:
        return FEATURE_MESSAGES.get(feature, "Upgrade to Pro to unlock this feature")
    if metric:
        return METRIC_MESSAGES.get(metric, "Upgrade to Pro to unlock this feature")
    return "Upgrade to Pro to unlock this feature"


def get_all_usage_data(
    subscription: Optional[UserSubscription], current_usage: dict[str, int]
) -> list[UsageData]:
    data = []
    for metric in USAGE_METRICS:
        current = current_usage.get(metric) or 0
        data.append(
            UsageData(
                metric=metric,
                current=current,
                limit=_numeric_limit(subscription, metric),
                percentage=get_usage_percentage(subscription, metric, current),
            )
        )
    return data
