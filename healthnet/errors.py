"""
Error kinds raised by the HealthNet components.

Every error carries a `kind` name and an HTTP-like `status_code` so that the
facade can turn it into a failure envelope the UI knows how to map.
"""
# healthnet/errors.py


class ServiceError(Exception):
    """Base class for all domain errors."""
    kind = 'ServiceError'
    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_dict(self) -> dict:
        return {"kind": self.kind, "message": self.message, "status_code": self.status_code}


class ValidationError(ServiceError):
    """A required field is missing or malformed."""
    kind = 'ValidationError'
    status_code = 400


class Unauthenticated(ServiceError):
    """There is no valid session."""
    kind = 'Unauthenticated'
    status_code = 401


class Forbidden(ServiceError):
    """The caller's role may not perform the operation, or it targets someone else's data."""
    kind = 'Forbidden'
    status_code = 403


class Unscoped(ServiceError):
    """The caller lacks the facility affiliation a scoped query needs."""
    kind = 'Unscoped'
    status_code = 403


class NotFound(ServiceError):
    """A referenced entity does not exist."""
    kind = 'NotFound'
    status_code = 404


class Conflict(ServiceError):
    """A unique field is already taken."""
    kind = 'Conflict'
    status_code = 409


class InvalidTransition(ServiceError):
    """The requested status change is not an allowed edge from the current state."""
    kind = 'InvalidTransition'
    status_code = 409
