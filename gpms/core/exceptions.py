"""Custom application exceptions."""


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, status_code: int = 500):
        """Initialize exception with message and status code."""
        self.message = message
        self.status_code = status_code
        super().__init__(self.message)


class NotFoundException(AppException):
    """Resource not found exception."""

    def __init__(self, message: str = "Resource not found"):
        """Initialize with 404 status code."""
        super().__init__(message, status_code=404)


class BadRequestException(AppException):
    """Bad request exception."""

    def __init__(self, message: str = "Bad request"):
        """Initialize with 400 status code."""
        super().__init__(message, status_code=400)


class ConflictException(AppException):
    """Conflict exception."""

    def __init__(self, message: str = "Conflict"):
        """Initialize with 409 status code."""
        super().__init__(message, status_code=409)


class SlotUnavailableException(ConflictException):
    """Requested time overlaps an existing booking for the clinician."""

    def __init__(self, message: str = "Time slot is not available"):
        """Initialize with 409 status code."""
        super().__init__(message)


class InvalidStatusTransitionException(ConflictException):
    """Appointment cannot move from its current status to the requested one."""

    def __init__(self, current: str, requested: str):
        """Initialize with the attempted transition."""
        self.current = current
        self.requested = requested
        super().__init__(f"Cannot change appointment status from {current} to {requested}")
