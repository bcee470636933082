"""Billing error taxonomy.

Each error carries the HTTP status the adapter layer answers with, so the
API can render any of them the same way it renders an HTTPException.
"""


class BillingError(Exception):
    """Base class for billing failures."""

    status_code: int = 400

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class ConfigurationError(BillingError):
    """Building or rate configuration makes the computation impossible."""

    status_code = 422


class ValidationError(BillingError):
    """An input value violates a billing invariant."""

    status_code = 422


class NotFoundError(BillingError):
    """A required record (reading, building) does not exist."""

    status_code = 404


class UnsupportedMethodError(BillingError):
    """A utility type names a calculation method the engine does not know."""

    status_code = 422
