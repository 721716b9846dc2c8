"""Global settings: guest message limit and system provider keys."""

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from personahub.api.schemas.admin import SystemConfigResponse, SystemConfigUpdate
from personahub.core.auth import Principal, require_permission
from personahub.core.config import get_settings
from personahub.core.exceptions import ValidationError
from personahub.db.base import get_session
from personahub.db.models import SYSTEM_CONFIG_ID, SystemConfig
from personahub.domain.permissions import Permission
from personahub.domain.providers import ModelProvider

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/system-config")


async def _load(session: AsyncSession) -> SystemConfig:
    config = await session.get(SystemConfig, SYSTEM_CONFIG_ID)
    if config is None:
        config = SystemConfig(
            id=SYSTEM_CONFIG_ID,
            guest_message_limit=get_settings().default_guest_message_limit,
            system_keys={},
        )
        session.add(config)
    return config


def _response(config: SystemConfig) -> SystemConfigResponse:
    return SystemConfigResponse(
        guest_message_limit=config.guest_message_limit,
        system_key_providers=sorted(k for k, v in (config.system_keys or {}).items() if v),
    )


@router.get("", response_model=SystemConfigResponse)
async def get_system_config(
    _: Principal = Depends(require_permission(Permission.SETTINGS)),
    session: AsyncSession = Depends(get_session),
):
    return _response(await _load(session))


@router.put("", response_model=SystemConfigResponse)
async def update_system_config(
    body: SystemConfigUpdate,
    principal: Principal = Depends(require_permission(Permission.SETTINGS)),
    session: AsyncSession = Depends(get_session),
):
    """Empty key strings remove a system key."""
    config = await _load(session)
    if body.guest_message_limit is not None:
        config.guest_message_limit = body.guest_message_limit
    if body.system_keys is not None:
        system_keys = dict(config.system_keys or {})
        for provider, key in body.system_keys.items():
            if provider not in {p.value for p in ModelProvider}:
                raise ValidationError("chat.unsupported_provider", provider=provider)
            if key:
                system_keys[provider] = key
            else:
                system_keys.pop(provider, None)
        config.system_keys = system_keys
    await session.commit()

    logger.info(
        "system_config_updated",
        user_id=principal.user_id,
        guest_message_limit=config.guest_message_limit,
    )
    return _response(config)
