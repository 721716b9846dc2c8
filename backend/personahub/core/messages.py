"""Localized user-facing messages keyed by message key."""

from personahub.core.config import get_settings

FALLBACK_LOCALE = "en"

CATALOG: dict[str, dict[str, str]] = {
    "vi": {
        "error.internal": "Lỗi máy chủ nội bộ.",
        "error.validation": "Dữ liệu yêu cầu không hợp lệ.",
        "error.not_found": "Không tìm thấy dữ liệu.",
        "error.conflict": "Dữ liệu đã tồn tại.",
        "auth.invalid_credentials": "Email hoặc mật khẩu không chính xác.",
        "auth.account_disabled": "Tài khoản không hợp lệ hoặc đã bị vô hiệu hóa.",
        "auth.missing_token": "Yêu cầu xác thực.",
        "auth.invalid_token": "Phiên đăng nhập không hợp lệ hoặc đã hết hạn.",
        "auth.forbidden": "Bạn không có quyền thực hiện thao tác này.",
        "auth.email_taken": "Email đã được sử dụng.",
        "user.not_found": "Không tìm thấy người dùng.",
        "ai.not_found": "Không tìm thấy AI.",
        "conversation.not_found": "Không tìm thấy hội thoại.",
        "role.not_found": "Không tìm thấy vai trò.",
        "billing.plan_not_found": "Không tìm thấy gói.",
        "billing.insufficient_funds": "Không đủ coin. Số dư hiện tại: {balance}, cần: {required}.",
        "billing.subscription_required": "Gói của bạn đã hết hạn hoặc bạn chưa đăng ký gói. Vui lòng mua gói để sử dụng AI này.",
        "billing.invalid_crypto_request": "Yêu cầu không hợp lệ.",
        "billing.invalid_crypto_transaction": "Giao dịch không hợp lệ.",
        "chat.guest_limit_exceeded": "Bạn đã hết lượt nhắn tin cho khách ({limit}). Vui lòng đăng nhập.",
        "chat.missing_api_key": "Chưa cấu hình API key cho {provider}.",
        "chat.personal_key_missing": "Vui lòng thêm API key cá nhân cho {provider} trong Cài đặt để có thể trò chuyện.",
        "chat.system_key_missing": "API Key hệ thống cho {provider} chưa được cấu hình.",
        "chat.provider_error": "Lỗi từ nhà cung cấp AI: {detail}",
        "chat.provider_api_key_error": "Lỗi API Key cho nhà cung cấp {provider}. Vui lòng kiểm tra lại API Key.",
        "chat.unsupported_provider": "Nhà cung cấp không được hỗ trợ: {provider}.",
        "chat.persist_failed": "Không thể lưu hội thoại.",
    },
    "en": {
        "error.internal": "Internal server error.",
        "error.validation": "Invalid request data.",
        "error.not_found": "Not found.",
        "error.conflict": "Already exists.",
        "auth.invalid_credentials": "Incorrect email or password.",
        "auth.account_disabled": "This account is invalid or has been disabled.",
        "auth.missing_token": "Authentication required.",
        "auth.invalid_token": "Invalid or expired session.",
        "auth.forbidden": "You are not allowed to perform this action.",
        "auth.email_taken": "Email is already in use.",
        "user.not_found": "User not found.",
        "ai.not_found": "AI not found.",
        "conversation.not_found": "Conversation not found.",
        "role.not_found": "Role not found.",
        "billing.plan_not_found": "Plan not found.",
        "billing.insufficient_funds": "Insufficient coins. Balance: {balance}, required: {required}.",
        "billing.subscription_required": "Your plan has expired or you have no plan. Purchase a plan to use this AI.",
        "billing.invalid_crypto_request": "Invalid request.",
        "billing.invalid_crypto_transaction": "Invalid transaction.",
        "chat.guest_limit_exceeded": "Guest message limit ({limit}) reached. Please log in.",
        "chat.missing_api_key": "No API key configured for {provider}.",
        "chat.personal_key_missing": "Add a personal {provider} API key in Settings to chat.",
        "chat.system_key_missing": "The system API key for {provider} is not configured.",
        "chat.provider_error": "AI provider error: {detail}",
        "chat.provider_api_key_error": "API key error for provider {provider}. Please check the API key.",
        "chat.unsupported_provider": "Unsupported provider: {provider}.",
        "chat.persist_failed": "Could not save the conversation.",
    },
}


def render(message_key: str, locale: str | None = None, **params) -> str:
    """Render a message key for a locale, falling back to English then the key itself."""
    locale = locale or get_settings().message_locale
    template = CATALOG.get(locale, {}).get(message_key)
    if template is None:
        template = CATALOG[FALLBACK_LOCALE].get(message_key, message_key)
    try:
        return template.format(**params)
    except KeyError:
        return template
