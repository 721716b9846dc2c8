"""Conversation model: message history between a user (or guest) and an AI."""

from datetime import UTC, datetime

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String

from personahub.db.base import Base


class Conversation(Base):
    __tablename__ = "conversations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)  # NULL = guest
    user_name = Column(String(255), nullable=False, default="Guest")
    # Secret the guest client echoes back to continue its conversation; NULL for users
    guest_token = Column(String(64), nullable=True)
    ai_config_id = Column(Integer, ForeignKey("ai_configs.id", ondelete="CASCADE"), nullable=False, index=True)

    # [{"role": "user" | "ai", "text": "...", "imageUrl": "...", "timestamp": 1700000000000}]
    messages = Column(JSON, nullable=False, default=list)

    start_time = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC), index=True)
