"""
Domain error taxonomy and the messages clients rely on.

Every precondition failure in the booking and scheduling services is raised as one of the
DomainError subclasses below; the API layer renders them with the matching HTTP status.
"""
from enum import Enum
from typing import Any, Dict, Optional

import structlog
from fastapi import Request, status
from fastapi.responses import JSONResponse

logger = structlog.get_logger(__name__)

HTTP_422_UNPROCESSABLE: int = getattr(status, "HTTP_422_UNPROCESSABLE_CONTENT", 422)


class ErrorSeverity(Enum):
    """Severity levels used when logging errors."""
    LOW = "low"           # expected client errors (4xx)
    MEDIUM = "medium"     # failures worth a warning, e.g. bad credentials


class DomainError(Exception):
    """Base class for all domain errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    severity: ErrorSeverity = ErrorSeverity.LOW

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.message = message
        self.code = code or type(self).__name__
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "success": False,
            "code": self.code,
            "message": self.message,
            "details": self.details,
        }


class NotFound(DomainError):
    status_code = status.HTTP_404_NOT_FOUND


class Forbidden(DomainError):
    status_code = status.HTTP_403_FORBIDDEN


class Conflict(DomainError):
    status_code = status.HTTP_409_CONFLICT


class InvalidOperation(DomainError):
    """A state-machine transition that is not allowed from the current state."""
    status_code = HTTP_422_UNPROCESSABLE


class ValidationError(DomainError):
    status_code = status.HTTP_400_BAD_REQUEST


class Unauthorized(DomainError):
    status_code = status.HTTP_401_UNAUTHORIZED
    severity = ErrorSeverity.MEDIUM


class messages:
    """User-visible messages."""

    # lookups
    ATHLETE_NOT_FOUND = "Athlete not found"
    COACH_NOT_FOUND = "Coach not found"
    USER_NOT_FOUND = "User not found"
    SLOT_NOT_FOUND = "Time slot not found"
    NEW_SLOT_NOT_FOUND = "New time slot not found"
    BOOKING_NOT_FOUND = "Booking not found"
    ORIGINAL_BOOKING_NOT_FOUND = "Original booking not found"
    RESCHEDULE_NOT_FOUND = "Reschedule request not found"
    NOTIFICATION_NOT_FOUND = "Notification not found"

    # booking creation
    SLOT_WRONG_COACH = "Time slot does not belong to this coach"
    SLOT_NOT_ACTIVE = "Time slot is not active"
    DATE_MISMATCH = "Booking date does not match time slot availability date"
    DATE_IN_PAST = "Cannot book time slots in the past"
    SLOT_ALREADY_BOOKED = "This time slot is already booked for the selected date"

    # cancel
    NOT_ALLOWED_TO_CANCEL = "You are not authorized to cancel this booking"
    ALREADY_CANCELLED = "This booking is already cancelled"
    CANCEL_FINISHED = "Cannot cancel a finished booking"
    CANCEL_DECLINED = "This reschedule request has already been declined"

    # finish
    ONLY_COACH_FINISHES = "Only coaches can mark bookings as finished"
    NOT_ALLOWED_TO_FINISH = "You are not authorized to finish this booking"
    ALREADY_FINISHED = "This booking is already finished"
    FINISH_CANCELLED = "Cannot finish a cancelled booking"
    FINISH_NOT_CONFIRMED = "Only confirmed or rescheduled accepted bookings can be finished"
    FINISH_IN_FUTURE = "Cannot finish a booking that has not occurred yet"

    # reschedule
    NOT_ALLOWED_TO_RESCHEDULE = "You are not authorized to reschedule this booking"
    RESCHEDULE_PENDING = "This booking already has a pending reschedule request"
    RESCHEDULE_OF_PROPOSAL = "A pending reschedule request cannot itself be rescheduled"
    RESCHEDULE_CLOSED = "Cannot reschedule a cancelled or finished booking"
    RESCHEDULE_OTHER_COACH = "New time slot must be from the same coach"
    RESCHEDULE_DATE_MISMATCH = "Selected time slot does not belong to the requested date"
    RESCHEDULE_INTO_PAST = "Cannot reschedule to a past date"
    NOT_PENDING_RESCHEDULE = "This is not a pending reschedule request"
    NOT_ALLOWED_TO_RESPOND = "You are not authorized to respond to this reschedule request"
    ORIGINAL_NOT_ACTIVE = "The original booking is no longer active"
    RESPOND_OWN_REQUEST = "You cannot respond to your own reschedule request"

    # schedule
    END_BEFORE_START = "End time must be after start time"
    INVALID_INTERVAL = "Slot interval must be a positive number of minutes"
    AVAILABILITY_IN_PAST = "Cannot set availability for a past date"
    REGENERATE_BOOKED = "Cannot regenerate slots for a date that already has booked slots"
    SLOT_OVERLAP = "The new slot overlaps an existing slot"
    AVAILABILITY_RACE = "Availability for this date was changed by another request, please retry"
    NOT_ALLOWED_TO_MODIFY_SLOT = "You are not authorized to modify this slot"
    DEACTIVATE_BOOKED = "Cannot deactivate a booked time slot"

    # reviews / favorites
    NOT_ALLOWED_TO_REVIEW = "Unauthorized to review this booking"
    REVIEW_EXISTS = "Review already exists for this booking"
    REVIEW_NOT_FINISHED = "Booking must be finished to leave a review"
    INVALID_RATING = "Rating must be between 1 and 5"

    # identity
    ROLE_REQUIRED = "This action is not available for your role"
    TOKEN_MISSING = "Authentication credentials were not provided"
    TOKEN_INVALID = "Invalid or expired token"


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    """Render a DomainError as a JSON response."""
    log = logger.warning if exc.severity != ErrorSeverity.LOW else logger.info
    log(
        "domain_error",
        code=exc.code,
        error=exc.message,
        status_code=exc.status_code,
        path=request.url.path,
    )
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
