"""Caller authorization for scrape endpoints.

Admins may scrape any owner. Other users need an `owner` or `editor`
membership on the organizer (or venue) in `user_organizers`.
"""

import asyncio
from dataclasses import dataclass, field
from typing import Optional, Protocol

from rich.console import Console
from supabase import Client

from agenda_pipeline.errors import AuthorizationError
from agenda_pipeline.models import Owner
from agenda_pipeline.stores.supabase import get_supabase_client

console = Console()

MEMBERSHIPS_TABLE = "user_organizers"
SCRAPING_ROLES = ("owner", "editor")


@dataclass
class AuthUser:
    id: str
    user_metadata: dict = field(default_factory=dict)
    app_metadata: dict = field(default_factory=dict)

    @property
    def is_admin(self) -> bool:
        role = self.user_metadata.get("role") or self.app_metadata.get("role")
        return role == "admin"


class Authorizer(Protocol):
    def get_user(self, token: str) -> Optional[AuthUser]:
        """User for a session token, None when the session is invalid."""
        ...

    def get_membership_role(self, user_id: str, owner_id: str) -> Optional[str]:
        ...


class SupabaseAuthorizer:
    """Resolves sessions and memberships through Supabase auth and tables."""

    def __init__(self, client: Optional[Client] = None):
        self.client = client or get_supabase_client()

    def get_user(self, token: str) -> Optional[AuthUser]:
        try:
            response = self.client.auth.get_user(token)
        except Exception as e:
            console.print(f"[yellow]Session lookup failed: {e}[/yellow]")
            return None
        user = response.user if response else None
        if user is None:
            return None
        return AuthUser(
            id=user.id,
            user_metadata=user.user_metadata or {},
            app_metadata=user.app_metadata or {},
        )

    def get_membership_role(self, user_id: str, owner_id: str) -> Optional[str]:
        result = (
            self.client.table(MEMBERSHIPS_TABLE)
            .select("role")
            .eq("user_id", user_id)
            .eq("organizer_id", owner_id)
            .limit(1)
            .execute()
        )
        rows = result.data or []
        return rows[0].get("role") if rows else None


def bearer_token(authorization: Optional[str]) -> Optional[str]:
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


async def authenticate(authorizer: Authorizer, authorization: Optional[str]) -> AuthUser:
    """Raises AuthorizationError(401) without a valid session."""
    token = bearer_token(authorization)
    if token is None:
        raise AuthorizationError("Not authenticated", status=401)
    user = await asyncio.to_thread(authorizer.get_user, token)
    if user is None:
        raise AuthorizationError("Not authenticated", status=401)
    return user


async def authorize_owner(authorizer: Authorizer, user: AuthUser, owner: Owner) -> None:
    """Raises AuthorizationError(403) unless the user may scrape for this owner."""
    if user.is_admin:
        return
    role = await asyncio.to_thread(authorizer.get_membership_role, user.id, owner.id)
    if role is None:
        raise AuthorizationError(f"No access to {owner.label}")
    if role not in SCRAPING_ROLES:
        raise AuthorizationError("Only owners and editors can trigger scraping")


def require_admin(user: AuthUser) -> None:
    if not user.is_admin:
        raise AuthorizationError("Admin access required")
