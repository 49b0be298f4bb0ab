"""Custom exception hierarchy for groupchat.

Token errors are raised by the ``groupchat.jose`` package; application
errors are raised by services and endpoints. Both share ``ChatException``
so a single FastAPI handler can render them.
"""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Standardized error codes for API responses and logs."""

    # Token errors
    MALFORMED_TOKEN = "MALFORMED_TOKEN"
    UNSUPPORTED_ALGORITHM = "UNSUPPORTED_ALGORITHM"
    ALGORITHM_KEY_MISMATCH = "ALGORITHM_KEY_MISMATCH"
    ALGORITHM_MISMATCH = "ALGORITHM_MISMATCH"
    INVALID_CLAIMS = "INVALID_CLAIMS"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    TOKEN_NOT_YET_VALID = "TOKEN_NOT_YET_VALID"
    SIGNATURE_MISMATCH = "SIGNATURE_MISMATCH"

    # Account errors
    USER_ALREADY_EXISTS = "USER_ALREADY_EXISTS"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Auth & rate limiting
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"
    RATE_LIMITED = "RATE_LIMITED"

    # Generic errors
    INTERNAL_ERROR = "INTERNAL_ERROR"


class ChatException(Exception):
    """
    Base exception for all groupchat errors.

    Provides structured error responses with:
    - Human-readable message
    - Machine-readable error code
    - HTTP status code
    - Optional additional details
    """

    def __init__(
        self,
        message: str,
        error_code: ErrorCode,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for JSON response."""
        return {
            "error": self.error_code.value,
            "message": self.message,
            "details": self.details
        }


# ---------------------------------------------------------------------------
# Token errors
# ---------------------------------------------------------------------------


class TokenError(ChatException):
    """Base class for token creation and verification failures.

    Subclasses set ``code``; verification failures default to 401.
    """

    code: ErrorCode = ErrorCode.UNAUTHORIZED
    status: int = 401

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, self.code, status_code=self.status, details=details)


class MalformedTokenError(TokenError):
    """Wrong segment count, bad base64url, bad JSON or non-object segment."""

    code = ErrorCode.MALFORMED_TOKEN


class UnsupportedAlgorithmError(TokenError):
    """Algorithm identifier is not in the registry (or is refused)."""

    code = ErrorCode.UNSUPPORTED_ALGORITHM
    status = 500


class AlgorithmKeyMismatchError(TokenError):
    """Key cannot be used to sign with the requested algorithm."""

    code = ErrorCode.ALGORITHM_KEY_MISMATCH
    status = 500


class AlgorithmMismatchError(TokenError):
    """Token declares an algorithm the verifier's key cannot honor."""

    code = ErrorCode.ALGORITHM_MISMATCH


class InvalidClaimsError(TokenError):
    """Time claims are present but not numeric."""

    code = ErrorCode.INVALID_CLAIMS


class TokenExpiredError(TokenError):
    code = ErrorCode.TOKEN_EXPIRED


class TokenNotYetValidError(TokenError):
    code = ErrorCode.TOKEN_NOT_YET_VALID


class SignatureMismatchError(TokenError):
    code = ErrorCode.SIGNATURE_MISMATCH


# ---------------------------------------------------------------------------
# Application errors
# ---------------------------------------------------------------------------


class ValidationError(ChatException):
    """Validation failed for user input."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=details
        )


class UserAlreadyExistsError(ChatException):
    """Signup attempted with a username that is already registered."""

    def __init__(self, username: str):
        super().__init__(
            "User already exists",
            ErrorCode.USER_ALREADY_EXISTS,
            status_code=409,
            details={"username": username}
        )


class AuthenticationError(ChatException):
    """Request lacks valid authentication credentials."""

    def __init__(self, message: str = "Invalid or missing token"):
        super().__init__(
            message,
            ErrorCode.UNAUTHORIZED,
            status_code=401,
        )


class ForbiddenError(ChatException):
    """The requested action is disabled or not permitted."""

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(
            message,
            ErrorCode.FORBIDDEN,
            status_code=403,
        )
