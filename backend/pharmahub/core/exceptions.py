"""
Domain errors and their safe HTTP translation.

SECURITY PRINCIPLE: Don't expose internal details to users.
Business-rule failures (validation, stock, booking transitions) carry a
specific message the user caused and can act on. Authorization and lookup
failures are generic; a row owned by another tenant looks exactly like a
row that does not exist.
"""
import logging

from fastapi import HTTPException, status

logger = logging.getLogger(__name__)


class PharmaHubError(Exception):
    """Base class for every failure the inventory engine reports."""

    default_message = "Request failed"

    def __init__(self, message: str = ""):
        self.message = message or self.default_message
        super().__init__(self.message)


class ValidationError(PharmaHubError):
    """Malformed or out-of-range input, raised before any storage call."""

    default_message = "Invalid input"


class Unauthorized(PharmaHubError):
    """Caller role or tenant does not permit the operation."""

    default_message = "Access denied"


class NotFound(PharmaHubError):
    """Entity absent, or owned by a different tenant."""

    default_message = "Resource not found"


class InsufficientStock(PharmaHubError):
    default_message = "Insufficient stock available"


class InvalidTransition(PharmaHubError):
    """Booking state machine violation."""

    default_message = "Invalid status transition"


class StorageError(PharmaHubError):
    """Transaction or connection failure. The transaction was rolled back."""

    default_message = "Storage failure"


class BusinessError:
    """HTTP responses with safe (non-leaky) messages."""

    @staticmethod
    def not_found(resource: str = "Resource", reason: str = "") -> HTTPException:
        """
        Generic 404 that doesn't confirm resource existence.

        Same response whether the row doesn't exist or belongs to
        another tenant. This prevents IDOR enumeration.
        """
        if reason:
            logger.warning(f"Access denied / not found: {resource} - {reason}")

        return HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Resource not found",
        )

    @staticmethod
    def unauthorized(reason: str = "") -> HTTPException:
        """Generic 401 for all authentication failures."""
        logger.warning(f"Unauthorized access attempt: {reason}")
        return HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication failed",
            headers={"WWW-Authenticate": "Bearer"},
        )

    @staticmethod
    def forbidden(reason: str = "") -> HTTPException:
        """Generic 403 for role/tenant mismatches."""
        logger.warning(f"Forbidden access: {reason}")
        return HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Access denied",
        )

    @staticmethod
    def bad_request(detail: str) -> HTTPException:
        """
        400 for input validation errors.

        OK to include specific details here since user caused the issue.
        """
        logger.info(f"Bad request: {detail}")
        return HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=detail,
        )

    @staticmethod
    def conflict(detail: str) -> HTTPException:
        """409 for stock and state conflicts, e.g. "Insufficient stock available"."""
        logger.info(f"Conflict: {detail}")
        return HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=detail,
        )

    @staticmethod
    def server_error(original_error: Exception = None) -> HTTPException:
        """
        Generic 500 - logs actual error internally, hides from user.

        Never expose stack traces, SQL errors, or internal paths to users.
        """
        if original_error:
            logger.error(
                f"Internal server error: {type(original_error).__name__}: {str(original_error)}",
                exc_info=original_error,
            )
        else:
            logger.error("Internal server error occurred")

        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An internal error occurred. Please try again later.",
        )

    @classmethod
    def from_domain(cls, exc: PharmaHubError) -> HTTPException:
        """Translate a domain error raised by a service into its HTTP form."""
        if isinstance(exc, ValidationError):
            return cls.bad_request(exc.message)
        if isinstance(exc, (InsufficientStock, InvalidTransition)):
            return cls.conflict(exc.message)
        if isinstance(exc, NotFound):
            return cls.not_found(reason=exc.message)
        if isinstance(exc, Unauthorized):
            return cls.forbidden(exc.message)
        return cls.server_error(exc)
