"""
Domain exceptions raised by services and routes.

Each carries the HTTP status and error code used by the centralized
exception handlers (core/exception_handlers.py).
"""


class UserServiceError(Exception):
    status_code = 500
    code = "internal_error"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class InvalidUserIdException(UserServiceError):
    status_code = 400
    code = "invalid_user_id"

    def __init__(self, message: str = "Invalid null or empty user id"):
        super().__init__(message)


class InvalidRequestDataException(UserServiceError):
    status_code = 400
    code = "invalid_request_data"


class UserNotFoundException(UserServiceError):
    status_code = 404
    code = "user_not_found"


class UserProfileNotFound(UserServiceError):
    status_code = 404
    code = "user_profile_not_found"


class UserAddressNotFound(UserServiceError):
    status_code = 404
    code = "user_address_not_found"


class UserConflictException(UserServiceError):
    status_code = 409
    code = "user_conflict"


class DataAccessException(UserServiceError):
    """A database call failed for reasons the caller cannot fix."""
    status_code = 500
    code = "data_access_error"


class DatabaseUnavailableException(UserServiceError):
    """No database is configured or it cannot be reached."""
    status_code = 503
    code = "db_unreachable"
