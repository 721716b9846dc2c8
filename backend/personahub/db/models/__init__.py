"""Re-export all models so Base.metadata sees them."""

from personahub.db.models.ai_config import AIConfig
from personahub.db.models.conversation import Conversation
from personahub.db.models.pricing_plan import PricingPlan
from personahub.db.models.role import Role
from personahub.db.models.system_config import SYSTEM_CONFIG_ID, SystemConfig
from personahub.db.models.transaction import Transaction
from personahub.db.models.user import User, user_roles

__all__ = [
    "AIConfig",
    "Conversation",
    "PricingPlan",
    "Role",
    "SYSTEM_CONFIG_ID",
    "SystemConfig",
    "Transaction",
    "User",
    "user_roles",
]
