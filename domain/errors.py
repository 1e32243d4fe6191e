# billing/domain/errors.py


class BillingError(Exception):
    """
    Base class for every failure the billing core reports to its caller.
    `kind` is what the request handlers put in the failure envelope.
    """
    kind = "BillingError"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(BillingError):
    """Missing or malformed input (customer name, empty item list, price)."""
    kind = "ValidationError"


class DuplicateError(BillingError):
    """A bill with the same bill number already exists."""
    kind = "DuplicateError"


class NotFoundError(BillingError):
    kind = "NotFoundError"


class UpstreamError(BillingError):
    """Storage or image service unreachable or misconfigured."""
    kind = "UpstreamError"
