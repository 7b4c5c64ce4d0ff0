from enum import Enum


class ErrorKind(str, Enum):
    INVALID_INPUT = "invalid_input"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    NOT_FOUND = "not_found"
    SLUG_EXHAUSTED = "slug_exhausted"
    INTERNAL = "internal"


class ContentError(Exception):
    """Base class for every error a content operation reports to its caller."""

    kind = ErrorKind.INTERNAL
    status = 500
    default_message = "An error occurred while processing your request"

    def __init__(self, message=None, details=None):
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)


class InvalidInput(ContentError):
    kind = ErrorKind.INVALID_INPUT
    status = 400
    default_message = "Invalid payload"


class AuthorizationError(ContentError):
    kind = ErrorKind.FORBIDDEN
    status = 403
    default_message = "Forbidden"


class Unauthenticated(AuthorizationError):
    kind = ErrorKind.UNAUTHENTICATED
    status = 401
    default_message = "Authentication required"


class Forbidden(AuthorizationError):
    pass


class NotFound(ContentError):
    kind = ErrorKind.NOT_FOUND
    status = 404
    default_message = "Not found"


class SlugExhausted(ContentError):
    kind = ErrorKind.SLUG_EXHAUSTED
    status = 409
    default_message = "Could not find a free slug"


class InternalError(ContentError):
    pass
