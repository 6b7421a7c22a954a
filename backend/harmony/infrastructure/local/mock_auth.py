"""
Mock authentication provider for local development.
"""

from typing import Optional

from harmony.interfaces.auth_provider import IAuthProvider, User
from harmony.models.enums import SubscriptionPlan


class MockAuthProvider(IAuthProvider):
    """Mock auth provider: the bearer token is the username."""

    def __init__(self, enabled: bool = False):
        """
        Initialize mock auth provider.

        Args:
            enabled: Whether authentication is required
        """
        self._enabled = enabled
        self._mock_users = {
            "dev_user": User(
                id="dev_user",
                email="dev@example.com",
                display_name="Developer",
            ),
            "pro_user": User(
                id="pro_user",
                email="pro@example.com",
                display_name="Pro User",
                plan=SubscriptionPlan.PRO,
                public_metadata={"subscription": {"plan": "pro", "status": "active"}},
            ),
        }

    async def verify_token(self, token: str) -> User:
        """
        Verify token - in mock mode, token is treated as the username.

        Args:
            token: Username (in mock mode)

        Returns:
            Mock user
        """
        if token in self._mock_users:
            return self._mock_users[token]
        if "@" in token:
            return User(id=token.split("@")[0], email=token, display_name=token)
        return User(id=token, email=f"{token}@example.com", display_name=token)

    async def get_user(self, user_id: str) -> Optional[User]:
        """Get user by ID."""
        return self._mock_users.get(user_id)

    def is_enabled(self) -> bool:
        """Check if authentication is enabled."""
        return self._enabled
