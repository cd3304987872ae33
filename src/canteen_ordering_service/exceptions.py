"""Domain exceptions raised by the canteen services.

Each exception maps to one HTTP status in the API handler. Messages are
returned to the caller as-is, so they must never contain credentials.
"""


class CanteenServiceError(Exception):
    """Base class for all service-level errors."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(CanteenServiceError):
    """A referenced user, shop, food item or order does not exist."""

    status_code = 404


class InvalidArgumentError(CanteenServiceError):
    """The request is well-formed but violates a business rule."""

    status_code = 400


class AuthenticationError(CanteenServiceError):
    """Login credentials were rejected."""

    status_code = 401


class ForbiddenError(CanteenServiceError):
    """The acting user lacks the role or ownership required."""

    status_code = 403


class ConcurrentModificationError(CanteenServiceError):
    """Optimistic commit retries were exhausted."""

    status_code = 409


class PersistenceError(CanteenServiceError):
    """A DynamoDB write failed for a reason other than a condition check."""

    status_code = 500
