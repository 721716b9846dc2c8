from fastapi import APIRouter

from personahub.api.routes import (
    ai_configs,
    auth,
    chat,
    conversations,
    crypto,
    dashboard,
    health,
    pricing_plans,
    roles,
    subscriptions,
    system_config,
    transactions,
    users,
)

api_router = APIRouter()

api_router.include_router(health.router, tags=["health"])
api_router.include_router(auth.router, tags=["auth"])
api_router.include_router(subscriptions.router, tags=["billing"])
api_router.include_router(transactions.router, tags=["billing"])
api_router.include_router(pricing_plans.router, tags=["billing"])
api_router.include_router(crypto.router, tags=["billing"])
api_router.include_router(ai_configs.router, tags=["ai-configs"])
api_router.include_router(chat.router, tags=["chat"])
api_router.include_router(conversations.router, tags=["conversations"])
api_router.include_router(users.router, tags=["users"])
api_router.include_router(roles.router, tags=["admin"])
api_router.include_router(system_config.router, tags=["admin"])
api_router.include_router(dashboard.router, tags=["admin"])
