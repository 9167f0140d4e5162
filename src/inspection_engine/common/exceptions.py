"""Inspection-Engine exception hierarchy."""


class InspectionEngineError(Exception):
    """Base exception for all Inspection-Engine errors."""

    status_code = 400

    def __init__(self, message: str = "", code: str = "INSPECTION_ERROR"):
        self.message = message
        self.code = code
        super().__init__(message)


class NotFoundError(InspectionEngineError):
    """Raised when a record cannot be found."""

    status_code = 404

    def __init__(self, message: str = "Record not found"):
        super().__init__(message, code="NOT_FOUND")


class ValidationError(InspectionEngineError):
    """Raised when input fails a domain rule before anything is persisted."""

    status_code = 422

    def __init__(self, message: str = "Invalid input"):
        super().__init__(message, code="VALIDATION_ERROR")


class PreconditionError(InspectionEngineError):
    """Raised when a lifecycle guard is not satisfied (e.g. missing signatures)."""

    status_code = 409

    def __init__(self, message: str = "Precondition not met"):
        super().__init__(message, code="PRECONDITION_FAILED")


class InvalidTransitionError(InspectionEngineError):
    """Raised when a status transition is not allowed from the current status."""

    status_code = 409

    def __init__(self, message: str = "Status transition not allowed"):
        super().__init__(message, code="INVALID_TRANSITION")


class InspectionLockedError(InspectionEngineError):
    """Raised when editing an inspection that is no longer in progress."""

    status_code = 409

    def __init__(self, message: str = "Inspection is no longer editable"):
        super().__init__(message, code="LOCKED")


class ConflictError(InspectionEngineError):
    """Raised when a unique value is already taken."""

    status_code = 409

    def __init__(self, message: str = "Record already exists"):
        super().__init__(message, code="CONFLICT")


class AuthenticationError(InspectionEngineError):
    """Raised when credentials or tokens are missing or invalid."""

    status_code = 401

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message, code="UNAUTHENTICATED")


class AuthorizationError(InspectionEngineError):
    """Raised when the caller's roles do not permit an action."""

    status_code = 403

    def __init__(self, message: str = "Permission denied"):
        super().__init__(message, code="FORBIDDEN")
