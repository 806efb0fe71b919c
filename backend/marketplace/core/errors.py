from __future__ import annotations


class MarketplaceError(Exception):
    """Base for every error the order/ledger/payout services raise.

    ``status_code`` is the HTTP status the API layer answers with.
    """

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(MarketplaceError):
    status_code = 400


class EmptyCartError(ValidationError):
    def __init__(self, message: str = "Cart is empty"):
        super().__init__(message)


class InvalidVendorError(ValidationError):
    def __init__(self, message: str = "Invalid vendor in cart"):
        super().__init__(message)


class InvalidStatusError(ValidationError):
    pass


class NotFoundError(MarketplaceError):
    status_code = 404


class AuthorizationError(MarketplaceError):
    status_code = 403


class StateConflictError(MarketplaceError):
    status_code = 409


class InsufficientBalanceError(MarketplaceError):
    status_code = 400

    def __init__(self, message: str = "Insufficient balance"):
        super().__init__(message)
