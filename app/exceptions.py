# app/exceptions.py
"""
Domain errors raised by the services layer.
Each carries a user-facing message and the HTTP status the API maps it to.
Messages never include driver errors or other internal detail.
"""


class PermitServiceError(Exception):
    """Base class for failures reported to the caller as {success: false}."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PermitValidationError(PermitServiceError):
    """Request rejected before any store interaction."""

    status_code = 400


class AuthenticationRequired(PermitServiceError):
    status_code = 401

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


class NotFoundError(PermitServiceError):
    """Missing resource, or one owned by another user (indistinguishable)."""

    status_code = 404


class PermitConflictError(PermitServiceError):
    """A uniqueness rule blocked the operation."""

    status_code = 409


class PermitIssuanceError(PermitServiceError):
    """Store failure mid-transaction. Everything was rolled back."""

    status_code = 500

    def __init__(self, message: str = "Could not complete purchase"):
        super().__init__(message)
