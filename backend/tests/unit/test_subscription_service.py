"""
Unit tests for subscription plans and feature access.
"""

import pytest

from harmony.models.enums import BillingPeriod, SubscriptionPlan, SubscriptionStatus
from harmony.services.subscription_service import (
    DEFAULT_FEATURES,
    PLAN_FEATURES,
    get_subscription_info,
    has_feature_access,
)


class TestSubscriptionInfo:
    def test_missing_metadata_is_free_plan(self):
        info = get_subscription_info(None)

        assert info.plan == SubscriptionPlan.FREE
        assert info.status == SubscriptionStatus.ACTIVE
        assert info.features == DEFAULT_FEATURES

    def test_reads_subscription_metadata(self):
        info = get_subscription_info(
            {
                "subscription": {
                    "plan": "pro",
                    "status": "trial",
                    "billingPeriod": "yearly",
                    "features": ["Analytics dashboard"],
                }
            }
        )

        assert info.plan == SubscriptionPlan.PRO
        assert info.status == SubscriptionStatus.TRIAL
        assert info.billing_period == BillingPeriod.YEARLY
        assert info.features == ["Analytics dashboard"]

    def test_malformed_metadata_is_free_plan(self):
        info = get_subscription_info({"subscription": {"plan": "platinum"}})

        assert info.plan == SubscriptionPlan.FREE

    def test_every_plan_lists_features(self):
        assert set(PLAN_FEATURES) == set(SubscriptionPlan)


class TestFeatureAccess:
    @pytest.mark.parametrize(
        "plan, feature, expected",
        [
            (SubscriptionPlan.FREE, "advanced_analytics", False),
            (SubscriptionPlan.PRO, "advanced_analytics", True),
            (SubscriptionPlan.PRO, "custom_integrations", False),
            (SubscriptionPlan.EDUCATION, "priority_support", True),
            (SubscriptionPlan.FREE, "priority_support", False),
            (SubscriptionPlan.ENTERPRISE, "custom_integrations", True),
            (SubscriptionPlan.ENTERPRISE, "anything", True),
            (SubscriptionPlan.FREE, "chat", True),
        ],
    )
    def test_access(self, plan, feature, expected):
        assert has_feature_access(plan, feature) is expected
