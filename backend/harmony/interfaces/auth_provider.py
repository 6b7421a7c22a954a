"""
Auth provider interface.

Defines the identity contract: the current user and plan checks.
"""

from abc import ABC, abstractmethod
from typing import Any, Optional

from pydantic import BaseModel, Field

from harmony.models.enums import SubscriptionPlan


class User(BaseModel):
    """Authenticated user."""

    id: str = Field(..., description="Stable username used to scope stored data")
    email: Optional[str] = None
    display_name: Optional[str] = None
    image_url: Optional[str] = None
    plan: SubscriptionPlan = SubscriptionPlan.FREE
    public_metadata: dict[str, Any] = Field(default_factory=dict)

    def has_plan(self, plan_key: str) -> bool:
        """Check the user's entitlement to a plan."""
        return self.plan.value == plan_key


class IAuthProvider(ABC):
    """Abstract interface for authentication providers."""

    @abstractmethod
    async def verify_token(self, token: str) -> User:
        """
        Verify a bearer token.

        Raises:
            AuthenticationError: invalid token
        """
        pass

    @abstractmethod
    async def get_user(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        pass

    @abstractmethod
    def is_enabled(self) -> bool:
        """Check if authentication is enabled."""
        pass
