"""Billing schemas: subscriptions, coin transactions, pricing plans, crypto top-ups."""

from datetime import datetime

from pydantic import Field

from personahub.domain.billing import TransactionType
from personahub.domain.entitlements import SubscriptionState
from personahub.schemas.common import CamelModel

# ---------- Subscriptions ----------


class PurchaseRequest(CamelModel):
    user_id: int
    plan_id: int


class SubscriptionStatusResponse(CamelModel):
    user_id: int
    state: SubscriptionState
    active: bool
    plan_id: int | None = None
    expires_at: datetime | None = None


# ---------- Transactions ----------


class ManualTopUpRequest(CamelModel):
    user_id: int
    coins: int = Field(..., description="Signed delta")
    admin_id: int | None = Field(None, description="Ignored; the caller is recorded as the admin")


class TransactionResponse(CamelModel):
    id: int
    user_id: int
    user_name: str | None = None
    admin_id: int | None = None
    admin_name: str | None = None
    coins: int
    type: TransactionType
    timestamp: datetime


# ---------- Pricing plans ----------


class PricingPlanResponse(CamelModel):
    id: int
    name: str
    display_price: str
    coin_cost: int
    duration_days: int | None = None
    features: list[str] = Field(default_factory=list)
    is_active: bool


class PricingPlanCreate(CamelModel):
    name: str = Field(..., min_length=1, max_length=100)
    display_price: str = ""
    coin_cost: int = Field(..., ge=0)
    duration_days: int | None = Field(None, gt=0)
    features: list[str] = Field(default_factory=list)
    is_active: bool = True


class PricingPlanUpdate(CamelModel):
    name: str | None = Field(None, min_length=1, max_length=100)
    display_price: str | None = None
    coin_cost: int | None = Field(None, ge=0)
    duration_days: int | None = Field(None, gt=0)
    features: list[str] | None = None
    is_active: bool | None = None


# ---------- Crypto (mock) ----------


class CryptoInitiateRequest(CamelModel):
    user_id: int
    coins: int
    crypto: str


class CryptoInitiateResponse(CamelModel):
    payment_address: str
    amount: str
    currency: str
    transaction_id: str


class CryptoConfirmRequest(CamelModel):
    user_id: int
    transaction_id: str
