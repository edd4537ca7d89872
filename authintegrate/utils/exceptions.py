# =======================================================================================
# authintegrate/utils/exceptions.py - Custom Exceptions
# =======================================================================================
class AuthIntegrateError(Exception):
    """Base exception for the access control system."""
    status_code = 500

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message or self.__class__.__doc__


class InvalidEventError(AuthIntegrateError):
    """Malformed or unsupported hardware event."""
    status_code = 400


class RegistrationError(AuthIntegrateError):
    """Web registration rejected."""
    status_code = 400


class AuthenticationError(AuthIntegrateError):
    """Invalid credentials."""
    status_code = 401


class AuthorizationError(AuthIntegrateError):
    """Admin access required."""
    status_code = 403


class UserNotFoundError(AuthIntegrateError):
    """Raised when a user is not found."""
    status_code = 404


class UserConflictError(AuthIntegrateError):
    """Raised when a hardware user id or fingerprint slot is already taken."""
    status_code = 409
