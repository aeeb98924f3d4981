class DomainError(Exception):
    """Base exception for business rule violations."""


class ValidationError(DomainError):
    """Raised when input data is invalid or violates domain rules."""


class StaleDraftError(ValidationError):
    """Raised when a bill draft changed while its submission was in flight."""


class GatewayError(DomainError):
    """Raised when the persistence gateway answers with a non-success response."""

    def __init__(self, message: str, *, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class NotFoundError(GatewayError):
    """Raised when an update/delete/payment references a missing record."""

    def __init__(self, message: str = "Record not found"):
        super().__init__(message, status_code=404)
