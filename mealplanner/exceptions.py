"""Custom exception hierarchy for the meal planner API."""

from enum import Enum
from typing import Optional, Dict, Any


class ErrorCode(str, Enum):
    """Standardized error codes for API responses."""

    # Meal order errors
    MEAL_ORDER_NOT_FOUND = "MEAL_ORDER_NOT_FOUND"
    MEAL_ORDER_EXISTS = "MEAL_ORDER_EXISTS"

    # Resident errors
    RESIDENT_NOT_FOUND = "RESIDENT_NOT_FOUND"

    # Alert errors
    ALERT_NOT_FOUND = "ALERT_NOT_FOUND"
    ALERT_ALREADY_ACKNOWLEDGED = "ALERT_ALREADY_ACKNOWLEDGED"

    # Archive errors
    ARCHIVED_RECORD_NOT_FOUND = "ARCHIVED_RECORD_NOT_FOUND"
    ARCHIVAL_IN_PROGRESS = "ARCHIVAL_IN_PROGRESS"

    # Validation errors
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # Database errors
    DATABASE_ERROR = "DATABASE_ERROR"

    # Auth
    UNAUTHORIZED = "UNAUTHORIZED"
    FORBIDDEN = "FORBIDDEN"

    # Concurrency errors
    CONFLICT = "CONFLICT"

    INTERNAL_ERROR = "INTERNAL_ERROR"


class MealPlannerError(Exception):
    """
    Base exception for all meal planner errors.

    Carries a human-readable message, a machine-readable error code,
    the HTTP status code to answer with, and optional details.
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


class MealOrderNotFoundError(MealPlannerError):
    """Meal order not found in database."""

    def __init__(self, order_id: str):
        super().__init__(
            f"Meal order not found: {order_id}",
            ErrorCode.MEAL_ORDER_NOT_FOUND,
            status_code=404,
            details={"order_id": order_id}
        )


class ResidentNotFoundError(MealPlannerError):
    """Resident not found in database."""

    def __init__(self, resident_id: str):
        super().__init__(
            f"Resident not found: {resident_id}",
            ErrorCode.RESIDENT_NOT_FOUND,
            status_code=404,
            details={"resident_id": resident_id}
        )


class AlertNotFoundError(MealPlannerError):
    """Alert not found in database."""

    def __init__(self, alert_id: str):
        super().__init__(
            f"Alert not found: {alert_id}",
            ErrorCode.ALERT_NOT_FOUND,
            status_code=404,
            details={"alert_id": alert_id}
        )


class AlertAlreadyAcknowledgedError(MealPlannerError):
    """Someone acknowledged the alert first."""

    def __init__(self, alert_id: str, acknowledged_by: Optional[str], acknowledged_at: Optional[str]):
        super().__init__(
            "Alert already acknowledged",
            ErrorCode.ALERT_ALREADY_ACKNOWLEDGED,
            status_code=409,
            details={
                "alert_id": alert_id,
                "acknowledged_by": acknowledged_by,
                "acknowledged_at": acknowledged_at,
            }
        )


class ArchivedRecordNotFoundError(MealPlannerError):
    """No archived entry exists for the requested collection and id."""

    def __init__(self, collection: str, document_id: str):
        super().__init__(
            f"No archived data found for {collection}/{document_id}",
            ErrorCode.ARCHIVED_RECORD_NOT_FOUND,
            status_code=404,
            details={"collection": collection, "document_id": document_id}
        )


class ValidationError(MealPlannerError):
    """Validation failed for user input."""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(
            message,
            ErrorCode.VALIDATION_ERROR,
            status_code=400,
            details=details
        )


class DuplicateMealOrderError(MealPlannerError):
    """An order already exists for the resident, date and meal type."""

    def __init__(self, resident_id: str, date: str, meal_type: str):
        super().__init__(
            "A meal order already exists for this resident, date, and meal type",
            ErrorCode.MEAL_ORDER_EXISTS,
            status_code=409,
            details={"resident_id": resident_id, "date": date, "meal_type": meal_type}
        )


class AuthenticationError(MealPlannerError):
    """Request lacks valid authentication credentials."""

    def __init__(self, message: str = "Invalid or missing authentication token"):
        super().__init__(
            message,
            ErrorCode.UNAUTHORIZED,
            status_code=401,
        )


class ForbiddenError(MealPlannerError):
    """Authenticated user lacks permission for the requested action."""

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(
            message,
            ErrorCode.FORBIDDEN,
            status_code=403,
        )


class ConflictError(MealPlannerError):
    """Write rejected because the submitted version is stale.

    Carries both document states so the client can build a merge:
    ``current`` is the server's document, ``submitted`` is what the
    caller sent.
    """

    def __init__(
        self,
        order_id: str,
        current: Dict[str, Any],
        submitted: Dict[str, Any],
        message: str = "This meal order has been modified by another user",
    ):
        super().__init__(
            message,
            ErrorCode.CONFLICT,
            status_code=409,
            details={
                "order_id": order_id,
                "current_version": current.get("version"),
                "submitted_version": submitted.get("version"),
            }
        )
        self.current = current
        self.submitted = submitted

    def to_dict(self) -> Dict[str, Any]:
        body = super().to_dict()
        body["currentVersion"] = self.current
        body["yourVersion"] = self.submitted
        return body


class ArchivalInProgressError(MealPlannerError):
    """A sweep is already running in this process."""

    def __init__(self, state: str):
        super().__init__(
            "An archival sweep is already in progress",
            ErrorCode.ARCHIVAL_IN_PROGRESS,
            status_code=409,
            details={"state": state}
        )


class DatabaseError(MealPlannerError):
    """Database operation failed."""

    def __init__(self, message: str = "Storage is currently unavailable", original_error: Optional[Exception] = None):
        details = {}
        if original_error:
            details["original_error"] = type(original_error).__name__

        super().__init__(
            message,
            ErrorCode.DATABASE_ERROR,
            status_code=500,
            details=details
        )
