"""PricingPlan model: subscription catalog."""

from sqlalchemy import JSON, Boolean, Column, Integer, String

from personahub.db.base import Base


class PricingPlan(Base):
    __tablename__ = "pricing_plans"

    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(100), nullable=False)
    display_price = Column(String(100), nullable=False, default="")

    # 0 = trial tier
    coin_cost = Column(Integer, nullable=False, default=0)
    # NULL = perpetual
    duration_days = Column(Integer, nullable=True)

    features = Column(JSON, nullable=False, default=list)
    is_active = Column(Boolean, nullable=False, default=True)
