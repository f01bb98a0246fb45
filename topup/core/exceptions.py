# topup/core/exceptions.py
from topup.utils.error_codes import ERROR_CODES


class TopupError(Exception):
    status_code = 500
    code = ERROR_CODES["SERVER_ERROR"]

    def __init__(self, message, details=None):
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(TopupError):
    status_code = 404
    code = ERROR_CODES["NOT_FOUND"]

    def __init__(self, entity, message=None):
        super().__init__(message or f"{entity} not found", details={"entity": entity})
        self.entity = entity


class ValidationError(TopupError):
    status_code = 400
    code = ERROR_CODES["VALIDATION_ERROR"]


class ConflictError(TopupError):
    status_code = 409
    code = ERROR_CODES["CONFLICT"]


class InvalidStateError(TopupError):
    status_code = 409
    code = ERROR_CODES["INVALID_STATE"]


class UpstreamError(TopupError):
    """The provider failed, timed out or returned something unreadable."""
    status_code = 502
    code = ERROR_CODES["UPSTREAM_ERROR"]

    def __init__(self, message, details=None, timed_out=False):
        super().__init__(message, details)
        self.timed_out = timed_out
        if timed_out:
            self.status_code = 504


class InternalError(TopupError):
    status_code = 500
    code = ERROR_CODES["SERVER_ERROR"]


class AuthenticationError(TopupError):
    status_code = 401
    code = ERROR_CODES["UNAUTHORIZED"]
