"""Domain exceptions.

Each error carries an HTTP status and a message key. The key is rendered into
user-facing text by ``personahub.core.messages`` at the API boundary, so the
services never hardcode prose.
"""


class PersonaHubError(Exception):
    """Base exception for Persona Hub."""

    status_code: int = 500
    message_key: str = "error.internal"

    def __init__(self, message_key: str | None = None, **params):
        if message_key is not None:
            self.message_key = message_key
        self.params = params
        super().__init__(self.message_key)


class ValidationError(PersonaHubError):
    """Raised when request data is missing or malformed."""

    status_code = 400
    message_key = "error.validation"


class AuthenticationError(PersonaHubError):
    """Raised on bad credentials, bad tokens or disabled accounts."""

    status_code = 401
    message_key = "auth.invalid_credentials"


class AuthorizationError(PersonaHubError):
    """Raised when the caller lacks the permission an endpoint requires."""

    status_code = 403
    message_key = "auth.forbidden"


class NotFoundError(PersonaHubError):
    status_code = 404
    message_key = "error.not_found"


class ConflictError(PersonaHubError):
    status_code = 409
    message_key = "error.conflict"


class PlanNotFoundError(NotFoundError):
    """Raised when a purchase names an unknown or inactive plan.

    Reported as 400 on the purchase endpoint.
    """

    status_code = 400
    message_key = "billing.plan_not_found"


class InsufficientFundsError(PersonaHubError):
    """Raised when a finite balance can not cover a debit."""

    status_code = 400
    message_key = "billing.insufficient_funds"

    def __init__(self, balance: int, required: int):
        self.balance = balance
        self.required = required
        super().__init__(balance=balance, required=required)


class SubscriptionRequiredError(PersonaHubError):
    status_code = 403
    message_key = "billing.subscription_required"


class GuestLimitExceededError(PersonaHubError):
    status_code = 403
    message_key = "chat.guest_limit_exceeded"

    def __init__(self, limit: int):
        self.limit = limit
        super().__init__(limit=limit)


class InsufficientConfigurationError(PersonaHubError):
    """Raised when no API key is configured for the requested provider."""

    status_code = 400
    message_key = "chat.missing_api_key"


class UpstreamProviderError(PersonaHubError):
    """Raised when an LLM provider call fails."""

    status_code = 502
    message_key = "chat.provider_error"
