"""Subscription state and AI visibility rules.

Pure domain functions:
- No DB access
- Deterministic given ``now``
- Operate on any object exposing the relevant attributes
"""

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import StrEnum
from typing import Protocol


class SubscriptionState(StrEnum):
    NONE = "none"
    ACTIVE_TIMED = "active_timed"
    ACTIVE_PERPETUAL = "active_perpetual"
    EXPIRED = "expired"


ACTIVE_STATES = frozenset({SubscriptionState.ACTIVE_TIMED, SubscriptionState.ACTIVE_PERPETUAL})


class VisibilityFlags(Protocol):
    name: str
    owner_id: int | None
    is_public: bool
    is_trial_allowed: bool
    requires_subscription: bool


@dataclass(frozen=True)
class Viewer:
    """An authenticated user as seen by the visibility rules."""

    user_id: int
    subscribed: bool


def ensure_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def subscription_state(
    plan_id: int | None,
    expires_at: datetime | None,
    now: datetime | None = None,
) -> SubscriptionState:
    """Derive the subscription state from the two persisted fields."""
    if plan_id is None:
        return SubscriptionState.NONE
    if expires_at is None:
        return SubscriptionState.ACTIVE_PERPETUAL
    now = now or datetime.now(UTC)
    if ensure_utc(expires_at) > now:
        return SubscriptionState.ACTIVE_TIMED
    return SubscriptionState.EXPIRED


def is_active(state: SubscriptionState) -> bool:
    return state in ACTIVE_STATES


def extended_expiry(
    current_expiry: datetime | None,
    duration_days: int | None,
    now: datetime | None = None,
) -> datetime | None:
    """Compute the expiry after purchasing a plan.

    Renewing before expiry extends from the current expiry; otherwise the
    new period starts now. Perpetual plans (``duration_days is None``) have
    no expiry.
    """
    if duration_days is None:
        return None
    now = now or datetime.now(UTC)
    current_expiry = ensure_utc(current_expiry)
    base = current_expiry if current_expiry is not None and current_expiry > now else now
    return base + timedelta(days=duration_days)


def is_visible(config: VisibilityFlags, viewer: Viewer | None) -> bool:
    if viewer is None:
        return config.is_public and config.is_trial_allowed and not config.requires_subscription
    owned = config.owner_id == viewer.user_id
    if viewer.subscribed:
        return config.is_public or owned
    return owned or (config.is_public and not config.requires_subscription)


def visible_configs(viewer: Viewer | None, configs: Iterable[VisibilityFlags]) -> list:
    """Filter configs down to the ones the viewer may see, sorted by name."""
    return sorted((c for c in configs if is_visible(c, viewer)), key=lambda c: c.name)


def count_user_messages(messages: Sequence) -> int:
    return sum(1 for m in messages if m.role == "user")


def exceeds_guest_limit(messages: Sequence, limit: int) -> bool:
    """True when a guest history holds more user messages than allowed."""
    return count_user_messages(messages) > limit
