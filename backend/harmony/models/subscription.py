"""
Subscription plan models.
"""

from typing import Optional

from pydantic import Field

from harmony.models.chat import CamelModel
from harmony.models.enums import BillingPeriod, SubscriptionPlan, SubscriptionStatus


class SubscriptionInfo(CamelModel):
    """Subscription state read from the identity provider's user metadata."""

    plan: SubscriptionPlan = SubscriptionPlan.FREE
    status: SubscriptionStatus = SubscriptionStatus.ACTIVE
    billing_period: Optional[BillingPeriod] = None
    next_billing_date: Optional[str] = None
    features: list[str] = Field(default_factory=list)
