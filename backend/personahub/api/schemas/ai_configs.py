"""AI config schemas."""

from datetime import datetime

from pydantic import Field

from personahub.domain.providers import ModelProvider
from personahub.schemas.common import CamelModel


class UserRef(CamelModel):
    user_id: int | None = None


class AIConfigResponse(CamelModel):
    id: int
    owner_id: int | None = None
    name: str
    description: str | None = None
    avatar_url: str | None = None
    model_type: ModelProvider
    model_name: str | None = None
    training_content: str | None = None
    suggested_questions: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    is_public: bool
    is_trial_allowed: bool
    requires_subscription: bool
    created_at: datetime | None = None


class AIConfigCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    avatar_url: str | None = None
    model_type: ModelProvider
    model_name: str | None = None
    training_content: str | None = None
    suggested_questions: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    is_public: bool = False
    is_trial_allowed: bool = False
    requires_subscription: bool = False


class AIConfigUpdate(CamelModel):
    name: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    avatar_url: str | None = None
    model_type: ModelProvider | None = None
    model_name: str | None = None
    training_content: str | None = None
    suggested_questions: list[str] | None = None
    tags: list[str] | None = None
    is_public: bool | None = None
    is_trial_allowed: bool | None = None
    requires_subscription: bool | None = None
