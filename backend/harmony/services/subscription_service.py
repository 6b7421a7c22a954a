"""
Subscription tiers and feature entitlements.
"""

from typing import Any, Optional

from pydantic import ValidationError

from harmony.core.logger import setup_logger
from harmony.models.enums import SubscriptionPlan, SubscriptionStatus
from harmony.models.subscription import SubscriptionInfo

logger = setup_logger(__name__)

PLAN_FEATURES: dict[SubscriptionPlan, list[str]] = {
    SubscriptionPlan.FREE: [
        "Up to 3 team members",
        "Basic workspace features",
        "Community support",
        "5GB storage",
    ],
    SubscriptionPlan.PRO: [
        "Up to 25 team members",
        "Advanced collaboration tools",
        "Priority email support",
        "100GB storage",
        "Advanced integrations",
        "Analytics dashboard",
    ],
    SubscriptionPlan.EDUCATION: [
        "Up to 50 team members",
        "Educational features",
        "Priority support",
        "50GB storage",
        "Student-friendly tools",
    ],
    SubscriptionPlan.ENTERPRISE: [
        "Unlimited team members",
        "Enterprise-grade security",
        "Dedicated account manager",
        "Unlimited storage",
        "Custom integrations",
        "24/7 phone support",
    ],
}

DEFAULT_FEATURES = ["Basic features", "Community support"]

FEATURE_PLANS: dict[str, set[SubscriptionPlan]] = {
    "advanced_analytics": {SubscriptionPlan.PRO, SubscriptionPlan.ENTERPRISE},
    "custom_integrations": {SubscriptionPlan.ENTERPRISE},
    "priority_support": {
        SubscriptionPlan.PRO,
        SubscriptionPlan.EDUCATION,
        SubscriptionPlan.ENTERPRISE,
    },
}


def get_subscription_info(public_metadata: Optional[dict[str, Any]]) -> SubscriptionInfo:
    """Read subscription state from user metadata, defaulting to an active free plan."""
    raw = (public_metadata or {}).get("subscription")
    if isinstance(raw, dict):
        try:
            return SubscriptionInfo.model_validate(raw)
        except ValidationError as exc:
            logger.warning(f"Ignoring malformed subscription metadata: {exc}")
    return SubscriptionInfo(
        plan=SubscriptionPlan.FREE,
        status=SubscriptionStatus.ACTIVE,
        features=list(DEFAULT_FEATURES),
    )


def has_feature_access(plan: SubscriptionPlan, feature: str) -> bool:
    if plan == SubscriptionPlan.ENTERPRISE:
        return True
    allowed = FEATURE_PLANS.get(feature)
    if allowed is None:
        return True
    return plan in allowed
