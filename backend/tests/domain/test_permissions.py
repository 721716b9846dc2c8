"""Tests for the closed permission set and AI manage scope."""

import pytest

from personahub.domain.permissions import ManageScope, Permission, ai_manage_scope, resolve_permissions

pytestmark = pytest.mark.unit


def test_admin_holds_every_permission():
    assert resolve_permissions(True, []) == frozenset(Permission)


def test_role_permissions_are_unioned():
    permissions = resolve_permissions(False, [["ai"], ["conversations", "ai"], []])
    assert permissions == {Permission.AI, Permission.CONVERSATIONS}


def test_unknown_permission_tag_is_rejected():
    with pytest.raises(ValueError):
        resolve_permissions(False, [["ai", "launch-missiles"]])


def test_hyphenated_tags_map_to_enum_members():
    assert Permission("user-billing") is Permission.USER_BILLING
    assert Permission("manual-billing") is Permission.MANUAL_BILLING


class TestAiManageScope:
    def test_admin_manages_all(self):
        assert ai_manage_scope(True, frozenset()) is ManageScope.ALL

    def test_ai_permission_manages_own(self):
        assert ai_manage_scope(False, frozenset({Permission.AI})) is ManageScope.OWN

    def test_other_permissions_manage_nothing(self):
        assert ai_manage_scope(False, frozenset({Permission.DASHBOARD})) is ManageScope.NONE
