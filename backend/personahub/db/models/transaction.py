"""Transaction model: append-only coin ledger rows."""

from datetime import UTC, datetime

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from personahub.db.base import Base


class Transaction(Base):
    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # NULL for system-triggered changes (subscription debit, crypto top-up)
    admin_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    coins = Column(Integer, nullable=False)  # signed delta
    type = Column(String(20), nullable=False)  # domain.billing.TransactionType

    timestamp = Column(DateTime(timezone=True), nullable=False, default=lambda: datetime.now(UTC), index=True)
