"""Back-office schemas: roles and system settings."""

from pydantic import Field

from personahub.domain.permissions import Permission
from personahub.schemas.common import CamelModel

# ---------- Roles ----------


class RoleResponse(CamelModel):
    id: int
    name: str
    permissions: list[Permission]


class RoleCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    permissions: list[Permission] = Field(default_factory=list)


class RoleUpdate(CamelModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    permissions: list[Permission] | None = None


# ---------- System config ----------


class SystemConfigResponse(CamelModel):
    guest_message_limit: int
    system_key_providers: list[str] = Field(default_factory=list, description="Providers with a system key")


class SystemConfigUpdate(CamelModel):
    guest_message_limit: int | None = Field(None, ge=0)
    system_keys: dict[str, str] | None = None
