"""User, auth and registration schemas."""

from datetime import datetime

from pydantic import EmailStr, Field

from personahub.db.models import User
from personahub.domain.entitlements import SubscriptionState, ensure_utc, subscription_state
from personahub.domain.permissions import Permission
from personahub.schemas.common import CamelModel
from personahub.services.user_service import user_permissions


class UserResponse(CamelModel):
    """A user without secrets: the password hash and key values never leave the server."""

    id: int
    email: str
    name: str
    avatar_url: str | None = None
    is_admin: bool
    is_active: bool
    coins: int | None = Field(None, description="None means unlimited")
    subscription_plan_id: int | None = None
    subscription_expires_at: datetime | None = None
    subscription_state: SubscriptionState
    api_key_providers: list[str] = Field(default_factory=list, description="Providers with a personal key")
    api_token: str | None = None
    role_ids: list[int] = Field(default_factory=list)
    permissions: list[Permission] = Field(default_factory=list)

    @classmethod
    def from_user(cls, user: User, now: datetime | None = None) -> "UserResponse":
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            avatar_url=user.avatar_url,
            is_admin=user.is_admin,
            is_active=user.is_active,
            coins=user.coins,
            subscription_plan_id=user.subscription_plan_id,
            subscription_expires_at=ensure_utc(user.subscription_expires_at),
            subscription_state=subscription_state(
                user.subscription_plan_id, user.subscription_expires_at, now
            ),
            api_key_providers=sorted(k for k, v in (user.api_keys or {}).items() if v),
            api_token=user.api_token,
            role_ids=sorted(role.id for role in user.roles),
            permissions=sorted(user_permissions(user)),
        )


class LoginRequest(CamelModel):
    email: str
    password: str


class LoginResponse(UserResponse):
    access_token: str


class RegisterRequest(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    email: EmailStr
    password: str = Field(..., min_length=6)


class UserCreate(RegisterRequest):
    is_admin: bool = False
    is_active: bool = True
    avatar_url: str | None = None
    role_ids: list[int] = Field(default_factory=list)


class UserUpdate(CamelModel):
    """Admin edit of a user. Balances only change through the ledger."""

    name: str | None = Field(None, min_length=1, max_length=255)
    email: EmailStr | None = None
    password: str | None = Field(None, min_length=6)
    avatar_url: str | None = None
    is_admin: bool | None = None
    is_active: bool | None = None
    role_ids: list[int] | None = None


class ApiKeysUpdate(CamelModel):
    """Personal provider keys; an empty string removes a key."""

    gemini: str | None = None
    gpt: str | None = None
    grok: str | None = None
