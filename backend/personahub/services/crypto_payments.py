"""Mock crypto top-ups.

Pending payments live only in Redis under ``crypto:pending:{transaction_id}``
with a TTL. Nothing here is durable: an entry that expires or is flushed is
simply gone, and there is no chain or gateway behind the payment address.
Confirmation claims the entry (DELETE) before crediting coins, so a payment
credits at most once.
"""

import json
import uuid
from dataclasses import asdict, dataclass

import structlog
from redis.asyncio import Redis

from personahub.core.config import Settings, get_settings
from personahub.core.exceptions import ValidationError
from personahub.db.models import User
from personahub.domain.billing import TransactionType
from personahub.services.ledger_service import CoinLedger

logger = structlog.get_logger(__name__)

KEY_PREFIX = "crypto:pending:"


@dataclass(frozen=True)
class PendingPayment:
    transaction_id: str
    user_id: int
    coins: int
    currency: str
    amount: str
    payment_address: str


class CryptoPaymentStore:
    """TTL'd store of pending mock payments."""

    def __init__(self, redis: Redis, settings: Settings | None = None):
        self.redis = redis
        self.settings = settings or get_settings()

    @staticmethod
    def _key(transaction_id: str) -> str:
        return f"{KEY_PREFIX}{transaction_id}"

    async def initiate(self, user_id: int, coins: int, currency: str) -> PendingPayment:
        """Quote a payment and remember it until the TTL lapses."""
        rate = self.settings.crypto_rates.get(currency)
        if coins <= 0 or rate is None:
            raise ValidationError("billing.invalid_crypto_request")

        payment = PendingPayment(
            transaction_id=f"crypto_tx_{uuid.uuid4().hex}",
            user_id=user_id,
            coins=coins,
            currency=currency,
            amount=f"{coins * rate:.6f}",
            payment_address=self.settings.crypto_payment_address,
        )
        await self.redis.set(
            self._key(payment.transaction_id),
            json.dumps(asdict(payment)),
            ex=self.settings.crypto_payment_ttl_seconds,
        )
        logger.info(
            "crypto_payment_initiated",
            user_id=user_id,
            transaction_id=payment.transaction_id,
            coins=coins,
            currency=currency,
        )
        return payment

    async def get(self, transaction_id: str) -> PendingPayment | None:
        raw = await self.redis.get(self._key(transaction_id))
        if raw is None:
            return None
        return PendingPayment(**json.loads(raw))

    async def confirm(self, user_id: int, transaction_id: str, ledger: CoinLedger) -> User:
        """Credit a pending payment to its owner and forget it.

        If the credit fails the entry is put back so the payment can be
        confirmed again.

        Raises:
            ValidationError: Unknown, expired, foreign or already-claimed payment
        """
        key = self._key(transaction_id)
        raw = await self.redis.get(key)
        if raw is None:
            raise ValidationError("billing.invalid_crypto_transaction")

        payment = PendingPayment(**json.loads(raw))
        if payment.user_id != user_id:
            raise ValidationError("billing.invalid_crypto_transaction")

        ttl = await self.redis.ttl(key)
        if not await self.redis.delete(key):
            raise ValidationError("billing.invalid_crypto_transaction")

        try:
            user = await ledger.add_coins(
                user_id,
                payment.coins,
                admin_id=None,
                transaction_type=TransactionType.CRYPTO,
            )
        except Exception:
            await self.redis.set(key, raw, ex=max(ttl, 1))
            raise

        logger.info("crypto_payment_confirmed", user_id=user_id, transaction_id=transaction_id, coins=payment.coins)
        return user
