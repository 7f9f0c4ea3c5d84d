"""Error taxonomy shared by services and the HTTP layer.

Every error carries an HTTP status, a stable machine code and a message that
is safe to show to the caller. Details that must stay server-side go in
``context`` and are only ever logged.
"""


class AppError(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"
    message = "Internal server error"

    def __init__(self, message: str | None = None, **context) -> None:
        if message is not None:
            self.message = message
        self.context = context
        super().__init__(self.message)


class InternalError(AppError):
    pass


# --- auth -------------------------------------------------------------------

class AuthError(AppError):
    status_code = 401
    code = "AUTH_ERROR"
    message = "Authentication required"

    def __init__(self, **context) -> None:
        # The client never learns why a credential was rejected.
        super().__init__(None, **context)


class MissingOrMalformedCredential(AuthError):
    code = "AUTH_MISSING"


class InvalidCredential(AuthError):
    code = "AUTH_INVALID"


class ForbiddenError(AppError):
    status_code = 403
    code = "FORBIDDEN"
    message = "Forbidden"


# --- validation -------------------------------------------------------------

class ValidationError(AppError):
    status_code = 400
    code = "VALIDATION_ERROR"
    message = "Invalid request"


class MissingParameters(ValidationError):
    code = "MISSING_PARAMETERS"
    message = "Missing required parameters"


class InvalidPreferences(ValidationError):
    code = "INVALID_PREFERENCES"
    message = "Invalid preferences"


class EventExpired(ValidationError):
    code = "EVENT_EXPIRED"
    message = "This event has already ended"


class InsufficientPoints(ValidationError):
    code = "INSUFFICIENT_POINTS"
    message = "Not enough points to purchase a verification code for this event"


class PaymentNotCompleted(ValidationError):
    code = "PAYMENT_NOT_COMPLETED"
    message = "Payment has not been completed for this purchase"


class InvalidPackage(ValidationError):
    code = "INVALID_PACKAGE"
    message = "Unknown points package"


class InvalidCheckValue(ValidationError):
    code = "INVALID_CHECK_VALUE"
    message = "CheckMacValue verification failed"


# --- not found ----------------------------------------------------------------

class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND"
    message = "Not found"


class CodeNotFound(NotFoundError):
    # Shared by "no such code" and "not your code" so callers cannot probe for codes.
    code = "CODE_NOT_FOUND"
    message = "Invalid verification code or no access"


class EventNotFound(NotFoundError):
    code = "EVENT_NOT_FOUND"
    message = "Event not found"


class UserNotFound(NotFoundError):
    code = "USER_NOT_FOUND"
    message = "User not found"


class OrderNotFound(NotFoundError):
    code = "ORDER_NOT_FOUND"
    message = "Order not found"


# --- conflicts ------------------------------------------------------------------

class ConflictError(AppError):
    status_code = 409
    code = "CONFLICT"
    message = "Conflict"


class BindingConflict(ConflictError):
    code = "BINDING_CONFLICT"
    message = "This verification code is already bound to another account"


class CodeAlreadyIssued(ConflictError):
    code = "CODE_ALREADY_ISSUED"
    message = "You already have a verification code for this event"


class ModificationLimitExceeded(ConflictError):
    status_code = 403
    code = "MODIFICATION_LIMIT_EXCEEDED"
    message = "Preference modification limit reached for this verification code"


class CodeExpired(ConflictError):
    status_code = 403
    code = "CODE_EXPIRED"
    message = "This verification code has expired"


# --- dependencies ---------------------------------------------------------------

class DependencyError(AppError):
    status_code = 400
    code = "DEPENDENCY_ERROR"
    message = "A required setting is missing"


class NoApiKeyConfigured(DependencyError):
    code = "NO_API_KEY"
    message = "Set your external API key in settings first"
