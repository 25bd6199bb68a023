# backend/finance_engine/services/exceptions.py
"""
Service layer exceptions.

These exceptions represent domain-specific errors and contain NO transport
knowledge. The host (HTTP layer, job runner) maps them to responses.

Only invalid numeric input is raised to callers during a calculation.
Insufficient data, zero denominators and solver non-convergence are NOT
exceptional: calculators return neutral results flagged on the result
object instead.

Exception Hierarchy:
    ServiceError (base)
    ├── ValidationError
    │   ├── InvalidIntervalError
    │   └── InvalidPeriodError
    ├── NotFoundError
    │   └── AccountNotFoundError
    └── AnalyticsError
"""


class ServiceError(Exception):
    """
    Base exception for all service layer errors.

    Attributes:
        message: Human-readable error description
    """

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(self.message)

    def __str__(self) -> str:
        return self.message


# =============================================================================
# VALIDATION ERRORS
# =============================================================================


class ValidationError(ServiceError):
    """
    Raised when a numeric input is outside its valid domain.

    Examples: non-positive loan principal, APR above 100%, negative
    quantity, selling more shares than are held.

    Attributes:
        field: The field that failed validation
        value: The offending value (optional)
    """

    def __init__(self, message: str, field: str | None = None, value: object = None) -> None:
        self.field = field
        self.value = value
        super().__init__(message)


class InvalidIntervalError(ValidationError):
    """
    Raised when an invalid sampling interval is requested.

    Valid intervals are: daily, weekly, monthly
    """

    def __init__(self, interval: str) -> None:
        self.interval = interval
        super().__init__(
            f"Invalid interval: '{interval}'. Valid options: daily, weekly, monthly",
            field="interval",
            value=interval,
        )


class InvalidPeriodError(ValidationError):
    """
    Raised when a period code cannot be mapped to a date range.

    Valid periods are: 1M, 3M, 6M, YTD, 1Y, 3Y, 5Y, ALL
    """

    def __init__(self, period: str) -> None:
        self.period = period
        super().__init__(
            f"Invalid period: '{period}'. Valid options: 1M, 3M, 6M, YTD, 1Y, 3Y, 5Y, ALL",
            field="period",
            value=period,
        )


# =============================================================================
# NOT FOUND ERRORS
# =============================================================================


class NotFoundError(ServiceError):
    """
    Base exception for resource not found errors.

    Attributes:
        resource_type: Type of resource (e.g., "Account")
        resource_id: Identifier of the resource
    """

    def __init__(
            self,
            message: str,
            resource_type: str | None = None,
            resource_id: int | str | None = None,
    ) -> None:
        self.resource_type = resource_type
        self.resource_id = resource_id
        super().__init__(message)


class AccountNotFoundError(NotFoundError):
    """Raised by a repository when an account has no snapshot."""

    def __init__(self, account_id: int) -> None:
        self.account_id = account_id
        super().__init__(
            f"Account {account_id} not found",
            resource_type="Account",
            resource_id=account_id,
        )


# =============================================================================
# ANALYTICS ERRORS
# =============================================================================


class AnalyticsError(ServiceError):
    """
    Raised when inputs are internally inconsistent in a way the engine
    cannot report as a warning (e.g. a benchmark series for an unknown
    symbol).
    """
    pass


__all__ = [
    "ServiceError",
    "ValidationError",
    "InvalidIntervalError",
    "InvalidPeriodError",
    "NotFoundError",
    "AccountNotFoundError",
    "AnalyticsError",
]
