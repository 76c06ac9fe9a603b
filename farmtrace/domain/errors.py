# farmtrace/domain/errors.py
"""
Domain error taxonomy.
Each error carries the HTTP status and the stable `code` the API envelope exposes;
the routers never build HTTPException for business failures themselves.
"""


class DomainError(Exception):
    status_code: int = 500
    code: str = "error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(DomainError):
    status_code = 400
    code = "validation_error"


class UnauthorizedError(DomainError):
    status_code = 401
    code = "unauthorized"


class ForbiddenError(DomainError):
    status_code = 403
    code = "forbidden"


class NotFoundError(DomainError):
    status_code = 404
    code = "not_found"


class InvalidStateError(DomainError):
    status_code = 409
    code = "invalid_state"


class AlreadyVotedError(InvalidStateError):
    code = "already_voted"


class ConflictError(DomainError):
    """Storage uniqueness violation that survived the retries. Server-side fault."""
    status_code = 500
    code = "conflict"


class ConcurrentModificationError(ConflictError):
    """Compare-and-swap kept losing against concurrent writers; the caller may retry."""
    status_code = 409
    code = "concurrent_modification"
