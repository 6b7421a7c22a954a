"""
Clerk session-token authentication provider.
"""

from __future__ import annotations

import time
from typing import Any, Optional

import httpx
from jose import JWTError, jwt

from harmony.core.config import Settings
from harmony.core.exceptions import AuthenticationError
from harmony.interfaces.auth_provider import IAuthProvider, User
from harmony.models.enums import SubscriptionPlan


def plan_from_claims(claims: dict[str, Any], public_metadata: dict[str, Any]) -> SubscriptionPlan:
    """Resolve the plan from public metadata, then from the "pla" claim ("u:pro")."""
    subscription = public_metadata.get("subscription")
    candidates = []
    if isinstance(subscription, dict):
        candidates.append(subscription.get("plan"))
    pla = claims.get("pla")
    if isinstance(pla, str):
        candidates.append(pla.split(":")[-1])
    for candidate in candidates:
        try:
            return SubscriptionPlan(candidate)
        except ValueError:
            continue
    return SubscriptionPlan.FREE


class ClerkAuthProvider(IAuthProvider):
    """Clerk authentication provider with JWKS validation."""

    def __init__(self, settings: Settings, jwks_ttl_seconds: int = 3600):
        self._settings = settings
        self._jwks_ttl_seconds = jwks_ttl_seconds
        self._jwks_cache: dict[str, Any] | None = None
        self._jwks_cache_expiry: float = 0.0
        self._known_users: dict[str, User] = {}
        if not self._settings.CLERK_ISSUER and not self._settings.CLERK_JWKS_URL:
            raise ValueError("CLERK_ISSUER or CLERK_JWKS_URL must be set for Clerk auth")

    def _resolve_jwks_url(self) -> str:
        if self._settings.CLERK_JWKS_URL:
            return self._settings.CLERK_JWKS_URL
        issuer = self._settings.CLERK_ISSUER.rstrip("/")
        return f"{issuer}/.well-known/jwks.json"

    async def _get_jwks(self) -> dict[str, Any]:
        now = time.time()
        if self._jwks_cache and now < self._jwks_cache_expiry:
            return self._jwks_cache

        jwks_url = self._resolve_jwks_url()
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(jwks_url)
            response.raise_for_status()
            jwks = response.json()

        self._jwks_cache = jwks
        self._jwks_cache_expiry = now + self._jwks_ttl_seconds
        return jwks

    async def _decode_token(self, token: str) -> dict[str, Any]:
        header = jwt.get_unverified_header(token)
        jwks = await self._get_jwks()
        key = None
        for candidate in jwks.get("keys", []):
            if candidate.get("kid") == header.get("kid"):
                key = candidate
                break
        if not key:
            raise JWTError("Signing key not found")

        options = {
            "verify_aud": bool(self._settings.CLERK_AUDIENCE),
            "verify_iss": bool(self._settings.CLERK_ISSUER),
        }
        return jwt.decode(
            token,
            key,
            algorithms=[header.get("alg", "RS256")],
            audience=self._settings.CLERK_AUDIENCE or None,
            issuer=self._settings.CLERK_ISSUER or None,
            options=options,
        )

    async def verify_token(self, token: str) -> User:
        try:
            claims = await self._decode_token(token)
        except (JWTError, httpx.HTTPError) as exc:
            raise AuthenticationError(f"Invalid session token: {exc}") from exc

        username = claims.get("username") or claims.get("sub")
        if not username:
            raise AuthenticationError("Session token has no subject")

        public_metadata = claims.get("public_metadata") or claims.get("metadata") or {}
        if not isinstance(public_metadata, dict):
            public_metadata = {}

        user = User(
            id=username,
            email=claims.get("email"),
            display_name=claims.get("name") or username,
            image_url=claims.get("image_url") or claims.get("picture"),
            plan=plan_from_claims(claims, public_metadata),
            public_metadata=public_metadata,
        )
        self._known_users[user.id] = user
        return user

    async def get_user(self, user_id: str) -> Optional[User]:
        return self._known_users.get(user_id)

    def is_enabled(self) -> bool:
        return True
