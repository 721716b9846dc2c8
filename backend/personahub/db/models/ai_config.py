"""AIConfig model: a chat persona and its visibility flags."""

from datetime import UTC, datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Text

from personahub.db.base import Base


class AIConfig(Base):
    __tablename__ = "ai_configs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    avatar_url = Column(String(500), nullable=True)

    # Provider: gemini | gpt | grok
    model_type = Column(String(20), nullable=False)
    model_name = Column(String(100), nullable=True)
    training_content = Column(Text, nullable=True)

    suggested_questions = Column(JSON, nullable=False, default=list)
    tags = Column(JSON, nullable=False, default=list)

    # Visibility flags (independent booleans)
    is_public = Column(Boolean, nullable=False, default=False)
    is_trial_allowed = Column(Boolean, nullable=False, default=False)
    requires_subscription = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))
