# services/learning-service/src/apps/core/services/exceptions.py
"""
Learning Service Exceptions

Errors raised by the enrollment and progression engine. Each carries a
machine readable code, an HTTP status for the API layer and a `retryable`
flag telling the caller whether fixing the input can make the request
succeed.
"""

from typing import Optional, Dict, Any


class AccessReason:
    """Reason codes carried by AccessDeniedError and AccessDecision."""
    NOT_ENROLLED = 'not_enrolled'
    MODULE_NOT_PURCHASED = 'module_not_purchased'
    PREREQUISITES_NOT_MET = 'prerequisites_not_met'
    QUIZ_TIME_NOT_MET = 'quiz_time_not_met'
    PREVIOUS_QUIZ_NOT_PASSED = 'previous_quiz_not_passed'
    QUIZ_NOT_PASSED = 'quiz_not_passed'
    STAFF_ONLY = 'staff_only'
    NOT_ATTEMPT_OWNER = 'not_attempt_owner'
    REVIEW_NOT_ALLOWED = 'review_not_allowed'


class LearningServiceError(Exception):
    """Base exception for learning service errors."""

    http_status = 500
    retryable = False

    def __init__(
        self,
        message: str,
        code: str = "LEARNING_SERVICE_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for API responses."""
        return {
            "code": self.code,
            "message": self.message,
            "details": {**self.details, "retryable": self.retryable},
        }


class InvalidRequestError(LearningServiceError):
    """Raised when input is malformed or violates a content rule."""

    http_status = 400
    retryable = True

    def __init__(
        self,
        message: str,
        field: str = None,
        details: Optional[Dict[str, Any]] = None
    ):
        error_details = details or {}
        if field:
            error_details["field"] = field
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            details=error_details
        )


class CircularPrerequisiteError(LearningServiceError):
    """Raised when a prerequisite change would make a module require itself."""

    http_status = 400
    retryable = True

    def __init__(
        self,
        module_id: str = None,
        prerequisites: Optional[list] = None,
        message: str = None
    ):
        super().__init__(
            message=message or "Circular dependency detected in prerequisites",
            code="CIRCULAR_PREREQUISITE",
            details={
                "module_id": str(module_id) if module_id else None,
                "prerequisites": [str(p) for p in (prerequisites or [])],
            }
        )


class AccessDeniedError(LearningServiceError):
    """Raised when the caller may not see or act on a resource."""

    http_status = 403

    def __init__(
        self,
        reason: str,
        message: str = None,
        details: Optional[Dict[str, Any]] = None
    ):
        self.reason = reason
        error_details = dict(details or {})
        error_details["reason"] = reason
        super().__init__(
            message=message or f"Access denied: {reason}",
            code="ACCESS_DENIED",
            details=error_details
        )


class StateConflictError(LearningServiceError):
    """Raised when the current state does not allow the transition."""

    http_status = 409

    def __init__(
        self,
        message: str,
        code: str = "STATE_CONFLICT",
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message=message, code=code, details=details)


class TimeLimitExceededError(StateConflictError):
    """Raised when an attempt is submitted after its time window closed."""

    def __init__(self, attempt_id: str, details: Optional[Dict[str, Any]] = None):
        error_details = details or {}
        error_details["attempt_id"] = str(attempt_id)
        super().__init__(
            message="Quiz time limit exceeded",
            code="TIME_LIMIT_EXCEEDED",
            details=error_details
        )


class NotFoundError(LearningServiceError):
    """Raised when a resource is absent or soft-deleted."""

    http_status = 404

    def __init__(
        self,
        resource: str,
        resource_id: Any = None,
        message: str = None
    ):
        super().__init__(
            message=message or f"{resource.capitalize()} not found",
            code="NOT_FOUND",
            details={
                "resource": resource,
                "resource_id": str(resource_id) if resource_id is not None else None,
            }
        )
