"""Closed set of back-office permissions granted through roles."""

from collections.abc import Iterable
from enum import StrEnum


class Permission(StrEnum):
    DASHBOARD = "dashboard"
    AI = "ai"
    USERS = "users"
    ROLES = "roles"
    CONVERSATIONS = "conversations"
    PRICING = "pricing"
    USER_BILLING = "user-billing"
    MANUAL_BILLING = "manual-billing"
    TEMPLATES = "templates"
    FINETUNE = "finetune"
    SETTINGS = "settings"


class ManageScope(StrEnum):
    """Which AI configs a user may manage in the back-office."""

    ALL = "all"
    OWN = "own"
    NONE = "none"


def resolve_permissions(is_admin: bool, role_permissions: Iterable[Iterable[str]]) -> frozenset[Permission]:
    """Union the permissions of every role; admins hold all of them.

    Raises ValueError on a tag outside the enum.
    """
    if is_admin:
        return frozenset(Permission)
    return frozenset(Permission(tag) for tags in role_permissions for tag in tags)


def ai_manage_scope(is_admin: bool, permissions: frozenset[Permission]) -> ManageScope:
    if is_admin:
        return ManageScope.ALL
    if Permission.AI in permissions:
        return ManageScope.OWN
    return ManageScope.NONE
