import pytest

from utils.feature_gating import (
    UserSubscription,
    can_perform_action,
    get_all_usage_data,
    get_plan_name,
    get_upgrade_message,
    get_usage_percentage,
    has_feature_access,
    has_reached_limit,
    parse_storage_limit,
)
from utils.subscription_plans import get_plan_by_slug


def subscription(slug: str) -> UserSubscription:
    return UserSubscription(plan=get_plan_by_slug(slug))


@pytest.mark.parametrize(
    "slug, feature, expected",
    [
        (None, "square_payment_links", True),
        (None, "api_access", False),
        ("free", "custom_branding", False),
        ("pro", "api_access", True),
        ("pro", "team_collaboration", False),
        ("enterprise", "custom_integrations", True),
    ],
)
def test_has_feature_access(slug, feature, expected) -> None:
    sub = subscription(slug) if slug else None
    assert has_feature_access(sub, feature) is expected


def test_unknown_plan_has_no_features() -> None:
    plan = get_plan_by_slug("pro").model_copy(update={"slug": "legacy"})

    assert has_feature_access(UserSubscription(plan=plan), "square_payment_links") is False


def test_parse_storage_limit() -> None:
    assert parse_storage_limit("100MB") == 100
    assert parse_storage_limit("5GB") == 5120
    assert parse_storage_limit("1.5tb") == 1.5 * 1024 * 1024
    assert parse_storage_limit("lots") == 0


def test_has_reached_limit_free_defaults() -> None:
    assert has_reached_limit(None, "quotes", 4) is False
    assert has_reached_limit(None, "quotes", 5) is True
    assert has_reached_limit(None, "storage", 100) is True


def test_has_reached_limit_plans() -> None:
    pro = subscription("pro")

    assert has_reached_limit(pro, "quotes", 10_000) is False
    assert has_reached_limit(pro, "emails", 499) is False
    assert has_reached_limit(pro, "emails", 500) is True
    assert has_reached_limit(pro, "storage", 5119) is False
    assert has_reached_limit(pro, "storage", 5120) is True
    assert has_reached_limit(subscription("free"), "products", 50) is True


def test_usage_percentage() -> None:
    assert get_usage_percentage(subscription("pro"), "quotes", 1000) == 0
    assert get_usage_percentage(subscription("pro"), "emails", 125) == 25
    assert get_usage_percentage(subscription("pro"), "emails", 900) == 100
    assert get_usage_percentage(None, "quotes", 2) == 40


def test_can_perform_action() -> None:
    allowed, reason = can_perform_action(None, feature="api_access")
    assert allowed is False
    assert "Free plan" in reason

    allowed, reason = can_perform_action(None, metric="storage", current_usage=150)
    assert allowed is False
    assert reason == "You have reached your storage limit (100MB). Upgrade to Pro for unlimited storage."

    allowed, reason = can_perform_action(subscription("free"), metric="quotes", current_usage=5)
    assert allowed is False
    assert "(5)" in reason

    assert can_perform_action(subscription("pro"), feature="api_access", metric="quotes", current_usage=99) == (True, None)


def test_plan_name_and_upgrade_message() -> None:
    assert get_plan_name(None) == "Free"
    assert get_plan_name(subscription("enterprise")) == "Enterprise"
    assert get_upgrade_message(feature="team_collaboration").startswith("Upgrade to Enterprise")
    assert get_upgrade_message(metric="storage") == "Upgrade to Pro for 5GB of storage"
    assert get_upgrade_message() == "Upgrade to Pro to unlock this feature"


def test_all_usage_data() -> None:
    data = {item.metric: item for item in get_all_usage_data(subscription("pro"), {"emails": 250})}

    assert list(data) == ["quotes", "products", "emails", "users", "storage"]
    assert data["quotes"].limit is None
    assert data["quotes"].percentage == 0
    assert data["emails"].current == 250
    assert data["emails"].percentage == 50
    assert data["storage"].limit == 5120

    free = {item.metric: item for item in get_all_usage_data(None, {"quotes": 5})}
    assert free["quotes"].limit == 5
    assert free["quotes"].percentage == 100
