"""User model: identity plus the entitlement snapshot (coins, subscription)."""

from datetime import UTC, datetime

from sqlalchemy import JSON, Boolean, Column, DateTime, ForeignKey, Integer, String, Table
from sqlalchemy.orm import relationship

from personahub.db.base import Base

user_roles = Table(
    "user_roles",
    Base.metadata,
    Column("user_id", Integer, ForeignKey("users.id", ondelete="CASCADE"), primary_key=True),
    Column("role_id", Integer, ForeignKey("roles.id", ondelete="CASCADE"), primary_key=True),
)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, autoincrement=True)
    email = Column(String(255), unique=True, nullable=False, index=True)  # stored lower-cased
    password_hash = Column(String(255), nullable=False)
    name = Column(String(255), nullable=False)
    avatar_url = Column(String(500), nullable=True)

    # Flags
    is_admin = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)

    # Balance (NULL = unlimited, always set explicitly on insert)
    coins = Column(Integer, nullable=True)

    # Subscription (plan set + NULL expiry = perpetual)
    subscription_plan_id = Column(
        Integer, ForeignKey("pricing_plans.id", ondelete="SET NULL"), nullable=True
    )
    subscription_expires_at = Column(DateTime(timezone=True), nullable=True)

    # Personal provider keys: {"gpt": "...", "gemini": "...", "grok": "..."}
    api_keys = Column(JSON, nullable=False, default=dict)
    api_token = Column(String(64), nullable=True, unique=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC))

    roles = relationship("Role", secondary=user_roles, lazy="selectin")
