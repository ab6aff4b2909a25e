"""
Enrollment Errors

Each error carries a fixed public label (``error``) and message that are
safe to return to clients, a machine-readable ``error_code`` and the
HTTP status the routers respond with. Underlying exception text is only
ever logged.
"""

from uuid import UUID


class EnrollmentServiceError(Exception):
    """Base exception for enrollment admission and approval errors."""

    def __init__(self, error: str, message: str, error_code: str, status_code: int = 400):
        self.error = error
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)

    def to_detail(self) -> dict[str, str]:
        """JSON error body for this error."""
        return {"error": self.error, "code": self.error_code, "message": self.message}


class CourseNotFoundError(EnrollmentServiceError):
    """Raised when a course does not exist or is soft-deleted."""

    def __init__(self, course_id: UUID | None = None):
        super().__init__(
            error="Course not found",
            message="The requested course does not exist.",
            error_code="COURSE_NOT_FOUND",
            status_code=404,
        )
        self.course_id = course_id


class EnrollmentNotFoundError(EnrollmentServiceError):
    """Raised when an enrollment ID does not exist."""

    def __init__(self, enrollment_id: UUID | None = None):
        super().__init__(
            error="Enrollment not found",
            message="The requested enrollment does not exist.",
            error_code="ENROLLMENT_NOT_FOUND",
            status_code=404,
        )
        self.enrollment_id = enrollment_id


class DuplicateApplicationError(EnrollmentServiceError):
    """Raised when the applicant already has a pending or approved enrollment."""

    def __init__(self):
        super().__init__(
            error="You have already applied for this course",
            message="You have already submitted an application for this course.",
            error_code="DUPLICATE_APPLICATION",
            status_code=409,
        )


class BatchFullError(EnrollmentServiceError):
    """Raised at admission when pending plus approved enrollments fill the course."""

    def __init__(self):
        super().__init__(
            error="Batch is full",
            message=(
                "The batch has reached its maximum capacity. "
                "Please try again for the next batch."
            ),
            error_code="BATCH_FULL",
            status_code=409,
        )


class AlreadyProcessedError(EnrollmentServiceError):
    """Raised when an enrollment is missing or no longer pending."""

    def __init__(self, enrollment_id: UUID | None = None):
        super().__init__(
            error="Enrollment not found or already processed",
            message="The enrollment does not exist or has already been approved or rejected.",
            error_code="ALREADY_PROCESSED",
            status_code=400,
        )
        self.enrollment_id = enrollment_id


class CapacityExceededError(EnrollmentServiceError):
    """Raised at approval when approved enrollments already fill the course."""

    def __init__(self):
        super().__init__(
            error="Course capacity exceeded",
            message="The course has no remaining seats for another approved student.",
            error_code="CAPACITY_EXCEEDED",
            status_code=400,
        )


class CapacityBelowSeatHoldersError(EnrollmentServiceError):
    """Raised when a course capacity update would drop below its seat holders."""

    def __init__(self, seat_holders: int):
        super().__init__(
            error="Capacity below current enrollments",
            message=(
                f"The course already has {seat_holders} pending or approved "
                "enrollment(s); capacity cannot be set lower."
            ),
            error_code="CAPACITY_BELOW_ENROLLED",
            status_code=400,
        )
        self.seat_holders = seat_holders


class UserCreationFailedError(EnrollmentServiceError):
    """Raised when provisioning the student account fails."""

    def __init__(self):
        super().__init__(
            error="Failed to create user account",
            message="The student account could not be created. No changes were made.",
            error_code="USER_CREATION_FAILED",
            status_code=500,
        )


class InternalServiceError(EnrollmentServiceError):
    """Raised for unexpected failures; hides the underlying error text."""

    def __init__(self, error: str = "Internal server error"):
        super().__init__(
            error=error,
            message="An unexpected error occurred. Please try again later.",
            error_code="INTERNAL_ERROR",
            status_code=500,
        )
