"""Business errors raised by the report lifecycle core.

Each error carries a stable ``code`` and the HTTP status the API boundary
answers with; ``main.py`` turns them into JSON responses in one place.
"""


class CivicError(Exception):
    code = "civic_error"
    status_code = 400

    def __init__(self, message: str = ""):
        super().__init__(message or self.__class__.__name__)
        self.message = message or self.__class__.__name__


class ValidationError(CivicError):
    code = "validation_error"
    status_code = 400


class NotFoundError(CivicError):
    code = "not_found"
    status_code = 404


class SelfVoteError(CivicError):
    code = "self_vote"
    status_code = 409


class DuplicateVoteError(CivicError):
    code = "duplicate_vote"
    status_code = 409


class InvalidStateError(CivicError):
    code = "invalid_state"
    status_code = 400


class ForbiddenError(CivicError):
    code = "forbidden"
    status_code = 403


class ConflictError(CivicError):
    """Another request changed the report's status first; refetch and retry once."""

    code = "conflict"
    status_code = 409
