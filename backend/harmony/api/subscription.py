"""
Subscription API endpoints.
"""

from fastapi import APIRouter

from harmony.api.deps import CurrentUser
from harmony.models.subscription import SubscriptionInfo
from harmony.services.subscription_service import PLAN_FEATURES, get_subscription_info, has_feature_access

router = APIRouter()


@router.get("", response_model=SubscriptionInfo)
async def get_subscription(user: CurrentUser):
    """Get the user's subscription state."""
    info = get_subscription_info(user.public_metadata)
    if not info.features:
        info.features = list(PLAN_FEATURES[info.plan])
    return info


@router.get("/plans")
async def list_plans():
    """Feature lists per plan."""
    return {plan.value: features for plan, features in PLAN_FEATURES.items()}


@router.get("/features/{feature}")
async def check_feature_access(feature: str, user: CurrentUser):
    plan = get_subscription_info(user.public_metadata).plan
    return {"feature": feature, "plan": plan.value, "hasAccess": has_feature_access(plan, feature)}
