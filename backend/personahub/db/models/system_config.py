"""SystemConfig model: single-row global settings."""

from sqlalchemy import JSON, Column, Integer

from personahub.db.base import Base

SYSTEM_CONFIG_ID = 1


class SystemConfig(Base):
    __tablename__ = "system_config"

    id = Column(Integer, primary_key=True, default=SYSTEM_CONFIG_ID)
    guest_message_limit = Column(Integer, nullable=False, default=10)

    # System provider keys used for guests: {"gemini": "...", "gpt": "...", "grok": "..."}
    system_keys = Column(JSON, nullable=False, default=dict)
