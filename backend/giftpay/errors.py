"""Error types raised by the redemption and withdrawal logic.

Every business-rule violation has its own exception class carrying a
stable machine-readable ``code``, the HTTP status used when it reaches the
API boundary, and a default human-readable message.  Route handlers let
these propagate; ``giftpay.main`` renders them as JSON.
"""


class GiftPayError(Exception):
    code = "error"
    status_code = 400
    message = "Request could not be completed"

    def __init__(self, message: str | None = None, errors: list | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.errors = errors

    def to_dict(self) -> dict:
        body = {"code": self.code, "message": self.message}
        if self.errors is not None:
            body["errors"] = self.errors
        return body


class NotFound(GiftPayError):
    code = "not_found"
    status_code = 404
    message = "Not found"


# Gift-code rule violations


class Inactive(GiftPayError):
    code = "gift_code_inactive"
    message = "Gift code is inactive"


class Expired(GiftPayError):
    code = "gift_code_expired"
    message = "Gift code has expired"


class LimitReached(GiftPayError):
    code = "gift_code_limit_reached"
    message = "Gift code usage limit reached"


class AlreadyRedeemed(GiftPayError):
    code = "gift_code_already_redeemed"
    message = "You have already redeemed this code"


# Withdrawal rule violations


class BelowMinimum(GiftPayError):
    code = "withdrawal_below_minimum"
    message = "Minimum withdrawal amount is 5.00"


class InsufficientBalance(GiftPayError):
    code = "insufficient_balance"
    message = "Insufficient balance"


class InvalidPayoutAddress(GiftPayError):
    code = "invalid_payout_address"
    message = "A UPI ID is required"


class InvalidTransition(GiftPayError):
    code = "invalid_transition"
    status_code = 409
    message = "Withdrawal request has already been resolved"


# Access control


class Unauthorized(GiftPayError):
    code = "unauthorized"
    status_code = 401
    message = "Unauthorized"


class Forbidden(GiftPayError):
    code = "forbidden"
    status_code = 403
    message = "Forbidden"


class ValidationError(GiftPayError):
    code = "validation_error"
    message = "Invalid input"


class Conflict(GiftPayError):
    code = "conflict"
    message = "Already exists"


class InternalError(GiftPayError):
    code = "internal_server_error"
    status_code = 500
    message = "An unexpected error occurred"
