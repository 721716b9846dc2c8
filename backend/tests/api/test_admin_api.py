"""Tests for back-office routes: users, roles, system config, conversations, dashboard."""

import pytest

from personahub.db.models import User
from personahub.domain.permissions import Permission

pytestmark = pytest.mark.integration


@pytest.fixture
async def admin(make_user):
    return await make_user(name="Admin", is_admin=True, coins=None)


# ---------------------------------------------------------------------------
# Users
# ---------------------------------------------------------------------------


class TestUsers:
    async def test_admin_creates_user_with_roles(self, client, admin, bearer):
        role = await client.post(
            "/api/roles",
            json={"name": "Moderator", "permissions": ["conversations"]},
            headers=bearer(admin),
        )

        response = await client.post(
            "/api/users",
            json={
                "name": "Mod",
                "email": "mod@example.com",
                "password": "secret123",
                "roleIds": [role.json()["id"]],
            },
            headers=bearer(admin),
        )

        assert response.status_code == 201
        body = response.json()
        assert body["coins"] == 0
        assert body["permissions"] == ["conversations"]

    async def test_update_can_not_touch_coins(self, client, admin, make_user, bearer):
        user = await make_user(coins=5)

        response = await client.put(
            f"/api/users/{user.id}",
            json={"name": "Renamed", "coins": 100000},
            headers=bearer(admin),
        )

        assert response.status_code == 200
        assert response.json()["name"] == "Renamed"
        assert response.json()["coins"] == 5

    async def test_update_email_conflict(self, client, admin, make_user, bearer):
        await make_user(email="first@example.com")
        second = await make_user(email="second@example.com")

        response = await client.put(
            f"/api/users/{second.id}",
            json={"email": "FIRST@example.com"},
            headers=bearer(admin),
        )

        assert response.status_code == 409

    async def test_regenerate_token(self, client, admin, make_user, bearer):
        user = await make_user()

        response = await client.post(f"/api/users/{user.id}/regenerate-token", headers=bearer(admin))

        assert len(response.json()["apiToken"]) == 48

    async def test_users_permission_required(self, client, make_user, bearer):
        user = await make_user(permissions=[Permission.DASHBOARD.value])

        assert (await client.get("/api/users", headers=bearer(user))).status_code == 403

    async def test_delete_user(self, client, admin, make_user, bearer):
        user = await make_user()

        assert (await client.delete(f"/api/users/{user.id}", headers=bearer(admin))).status_code == 204
        listed = await client.get("/api/users", headers=bearer(admin))
        assert [u["id"] for u in listed.json()] == [admin.id]

    async def test_admin_can_not_delete_themselves(self, client, admin, bearer):
        response = await client.delete(f"/api/users/{admin.id}", headers=bearer(admin))
        assert response.status_code == 400


class TestUserManagerLimits:
    @pytest.fixture
    async def manager(self, make_user):
        return await make_user(name="Manager", permissions=[Permission.USERS.value])

    async def test_manager_can_not_make_themselves_admin(self, client, manager, bearer, session_factory):
        response = await client.put(f"/api/users/{manager.id}", json={"isAdmin": True}, headers=bearer(manager))

        assert response.status_code == 403
        async with session_factory() as session:
            assert (await session.get(User, manager.id)).is_admin is False

    async def test_manager_can_not_create_admins(self, client, manager, bearer):
        response = await client.post(
            "/api/users",
            json={"name": "Root", "email": "root@example.com", "password": "secret123", "isAdmin": True},
            headers=bearer(manager),
        )

        assert response.status_code == 403

    async def test_manager_can_not_edit_or_delete_admins(self, client, manager, admin, bearer):
        edit = await client.put(f"/api/users/{admin.id}", json={"password": "taken-over"}, headers=bearer(manager))
        delete = await client.delete(f"/api/users/{admin.id}", headers=bearer(manager))
        token = await client.post(f"/api/users/{admin.id}/regenerate-token", headers=bearer(manager))

        assert [edit.status_code, delete.status_code, token.status_code] == [403, 403, 403]

    async def test_manager_can_not_grant_permissions_they_lack(
        self, client, manager, make_user, admin, bearer
    ):
        settings_role = (
            await client.post("/api/roles", json={"name": "Ops", "permissions": ["settings"]}, headers=bearer(admin))
        ).json()
        user = await make_user()

        response = await client.put(
            f"/api/users/{manager.id}",
            json={"roleIds": [settings_role["id"]]},
            headers=bearer(manager),
        )
        created = await client.post(
            "/api/users",
            json={
                "name": "Ops",
                "email": "ops@example.com",
                "password": "secret123",
                "roleIds": [settings_role["id"]],
            },
            headers=bearer(manager),
        )

        assert response.status_code == 403
        assert created.status_code == 403
        assert (await client.get("/api/system-config", headers=bearer(manager))).status_code == 403
        renamed = await client.put(f"/api/users/{user.id}", json={"name": "Fine"}, headers=bearer(manager))
        assert renamed.status_code == 200

    async def test_admin_can_promote(self, client, admin, make_user, bearer):
        user = await make_user()

        response = await client.put(f"/api/users/{user.id}", json={"isAdmin": True}, headers=bearer(admin))

        assert response.json()["isAdmin"] is True


class TestPersonalApiKeys:
    async def test_set_and_clear_keys(self, client, make_user, bearer):
        user = await make_user(api_keys={"grok": "old"})

        response = await client.put(
            "/api/users/me/api-keys",
            json={"gemini": "g-key", "grok": ""},
            headers=bearer(user),
        )

        assert response.status_code == 200
        assert response.json()["apiKeyProviders"] == ["gemini"]
        assert "g-key" not in response.text


# ---------------------------------------------------------------------------
# Roles
# ---------------------------------------------------------------------------


class TestRoles:
    async def test_unknown_permission_is_rejected(self, client, admin, bearer):
        response = await client.post(
            "/api/roles",
            json={"name": "Weird", "permissions": ["ai", "root"]},
            headers=bearer(admin),
        )

        assert response.status_code == 400

    async def test_duplicate_name_conflicts(self, client, admin, bearer):
        await client.post("/api/roles", json={"name": "Dup", "permissions": []}, headers=bearer(admin))

        response = await client.post("/api/roles", json={"name": "Dup", "permissions": []}, headers=bearer(admin))

        assert response.status_code == 409

    async def test_role_grants_take_effect(self, client, admin, make_user, bearer):
        role = (
            await client.post("/api/roles", json={"name": "Billing", "permissions": []}, headers=bearer(admin))
        ).json()
        user = await make_user()
        await client.put(f"/api/users/{user.id}", json={"roleIds": [role["id"]]}, headers=bearer(admin))

        assert (await client.get("/api/transactions", headers=bearer(user))).status_code == 403

        await client.put(
            f"/api/roles/{role['id']}",
            json={"permissions": ["user-billing"]},
            headers=bearer(admin),
        )

        assert (await client.get("/api/transactions", headers=bearer(user))).status_code == 200


# ---------------------------------------------------------------------------
# System config
# ---------------------------------------------------------------------------


class TestSystemConfig:
    async def test_update_hides_key_values(self, client, admin, bearer, set_system_config):
        await set_system_config(guest_message_limit=10, system_keys={"grok": "xai-key"})

        response = await client.put(
            "/api/system-config",
            json={"guestMessageLimit": 3, "systemKeys": {"gemini": "g-sys", "grok": ""}},
            headers=bearer(admin),
        )

        assert response.json() == {"guestMessageLimit": 3, "systemKeyProviders": ["gemini"]}
        assert (await client.get("/api/system-config", headers=bearer(admin))).json()["guestMessageLimit"] == 3

    async def test_unknown_provider_key_is_rejected(self, client, admin, bearer):
        response = await client.put(
            "/api/system-config",
            json={"systemKeys": {"claude": "nope"}},
            headers=bearer(admin),
        )
        assert response.status_code == 400

    async def test_settings_permission_required(self, client, make_user, bearer):
        user = await make_user(permissions=[Permission.AI.value])
        assert (await client.get("/api/system-config", headers=bearer(user))).status_code == 403


# ---------------------------------------------------------------------------
# Conversations
# ---------------------------------------------------------------------------


class TestConversations:
    async def test_owner_lists_updates_and_deletes(self, client, make_user, make_ai_config, bearer):
        user = await make_user()
        config = await make_ai_config()

        created = await client.post(
            "/api/conversations",
            json={"userId": user.id, "aiConfigId": config.id, "messages": [{"role": "user", "text": "hi"}]},
        )
        assert created.status_code == 201
        conversation_id = created.json()["id"]

        listed = await client.get("/api/conversations", params={"userId": user.id})
        assert [c["id"] for c in listed.json()] == [conversation_id]

        updated = await client.put(
            f"/api/conversations/{conversation_id}",
            json={"messages": [{"role": "user", "text": "edited"}]},
            headers=bearer(user),
        )
        assert updated.json()["messages"][0]["text"] == "edited"

        deleted = await client.delete(f"/api/conversations/{conversation_id}", headers=bearer(user))
        assert deleted.status_code == 204

    async def test_list_without_user_is_empty(self, client):
        assert (await client.get("/api/conversations")).json() == []

    async def test_other_users_can_not_delete(self, client, make_user, make_ai_config, bearer):
        owner = await make_user()
        other = await make_user()
        config = await make_ai_config()
        created = await client.post(
            "/api/conversations",
            json={"userId": owner.id, "aiConfigId": config.id, "messages": []},
        )

        response = await client.delete(f"/api/conversations/{created.json()['id']}", headers=bearer(other))

        assert response.status_code == 403

    async def test_all_conversations_requires_permission(self, client, make_user, bearer):
        moderator = await make_user(permissions=[Permission.CONVERSATIONS.value])
        plain = await make_user()

        assert (await client.get("/api/conversations/all", headers=bearer(plain))).status_code == 403
        assert (await client.get("/api/conversations/all", headers=bearer(moderator))).status_code == 200


# ---------------------------------------------------------------------------
# Dashboard
# ---------------------------------------------------------------------------


async def test_dashboard_stats(client, admin, make_ai_config, bearer):
    await make_ai_config(name="Solo")

    response = await client.get("/api/dashboard/stats", headers=bearer(admin))

    body = response.json()
    assert body["totalUsers"] == 1
    assert body["totalAiConfigs"] == 1
    assert body["topAis"] == [{"name": "Solo", "avatarUrl": None, "conversationCount": 0}]
    assert body["recentConversations"] == []
