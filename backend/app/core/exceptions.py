# backend/app/core/exceptions.py
"""
Domain-specific exceptions for the Trim booking core.

These exceptions provide clear, business-focused error messages
that can be caught and handled appropriately at the API layer.
"""

from typing import Any, Dict, Optional

from fastapi import HTTPException, status

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class DomainException(Exception):
    """Base exception for all domain-specific errors."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or self.__class__.__name__
        self.details = details or {}
        super().__init__(self.message)

    def to_http_exception(self) -> HTTPException:
        """Convert to an HTTPException carrying the class status code."""
        return HTTPException(
            status_code=self.status_code,
            detail={
                "message": self.message,
                "code": self.code,
                "details": self.details,
            },
        )


class ValidationException(DomainException):
    """Raised when input is structurally invalid or a rule rejects it (BadRequest)."""

    status_code = status.HTTP_400_BAD_REQUEST


class NotFoundException(DomainException):
    """Raised when a requested resource is not found."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictException(DomainException):
    """Raised when there's a conflict with existing data."""

    status_code = status.HTTP_409_CONFLICT


class ForbiddenException(DomainException):
    """Raised when the caller is not allowed to perform an action."""

    status_code = status.HTTP_403_FORBIDDEN


class ServiceException(DomainException):
    """Raised when a service operation fails."""

    def to_http_exception(self) -> HTTPException:
        return HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail={
                "message": self.message or "An error occurred processing your request",
                "code": self.code,
                "details": self.details if self.details else {},
            },
        )


# Specific business exceptions


class BookingConflictException(ConflictException):
    """Raised when a booking overlaps another booking for the same barber."""

    def __init__(
        self,
        message: Optional[str] = None,
        *,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            message=message or "This time slot is no longer available",
            code="BOOKING_CONFLICT",
            details=details or {},
        )


class PastBookingException(ValidationException):
    """Raised when a booking targets a date/time that has already passed."""

    def __init__(self, booking_date: str, start_time: str):
        super().__init__(
            message="Cannot book in the past",
            code="BOOKING_IN_PAST",
            details={"booking_date": booking_date, "start_time": start_time},
        )


class InvalidTransitionException(ValidationException):
    """Raised when a lifecycle operation is not allowed from the current status."""

    def __init__(self, message: str, *, current_status: str, action: str):
        super().__init__(
            message=message,
            code="INVALID_BOOKING_TRANSITION",
            details={"current_status": current_status, "action": action},
        )


class CustomerBlacklistedException(ForbiddenException):
    """Raised when a blacklisted customer attempts to create a booking."""

    def __init__(self, customer_id: str, reason: Optional[str]):
        super().__init__(
            message=f"Customer is blacklisted: {reason or 'No reason provided'}",
            code="CUSTOMER_BLACKLISTED",
            details={"customer_id": customer_id},
        )


class PaymentProcessingException(DomainException):
    """
    Raised when a payment gateway callback cannot be applied.

    The gateway applies its own retry policy, so the HTTP layer reports
    this as a server-side failure rather than a client error.
    """

    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, *, details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="PAYMENT_PROCESSING_FAILED", details=details)


class RepositoryException(Exception):
    """
    Exception raised for repository layer errors.

    This exception is used when data access operations fail,
    such as database connection issues, query failures, or
    constraint violations.
    """
