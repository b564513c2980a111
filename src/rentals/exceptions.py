"""Error taxonomy for the rentals domain.

Input validation failures use Protean's ``ValidationError`` like the rest of
the domain model; the classes below cover the remaining outcomes the API
maps to distinct HTTP statuses.
"""


class RentalsError(Exception):
    """Base class for rentals domain errors."""

    status_code = 500

    def __init__(self, message: str, **context) -> None:
        super().__init__(message)
        self.message = message
        self.context = context


class NotFoundError(RentalsError):
    status_code = 404


class ConflictError(RentalsError):
    """Version mismatch, or a state that forbids the requested operation."""

    status_code = 409


class StateTransitionError(ConflictError):
    """Attempted move between statuses that the state machine does not allow."""


class SignatureVerificationError(RentalsError):
    status_code = 401


class ExternalServiceError(RentalsError):
    """Payment gateway or signature provider was unreachable or returned an error."""

    status_code = 502


class PermissionDeniedError(RentalsError):
    status_code = 403
