# =======================================================================================
# authintegrate/utils/__init__.py - Utils Package
# =======================================================================================
from .exceptions import *
from .validators import *

__all__ = [
    "AuthIntegrateError", "InvalidEventError", "RegistrationError",
    "AuthenticationError", "AuthorizationError", "UserNotFoundError",
    "UserConflictError", "parse_serial_line", "normalize_outcome",
    "format_validation_errors",
    "truncate_note", "is_six_digit_pin",
]
