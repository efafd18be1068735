"""
Service Errors

Business-rule failures raised by the services. Routers never let these
escape: `app.api.actions.run_action` turns them into the
`{success: false, error}` envelope with the matching HTTP status.
"""

from fastapi import status


class LMSServiceError(Exception):
    """Base class for every recoverable service failure."""

    code = "SERVICE_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str = "Request could not be completed"):
        super().__init__(message)
        self.message = message


class UnauthorizedError(LMSServiceError):
    """No session, or the resource belongs to someone else."""

    code = "UNAUTHORIZED"
    status_code = status.HTTP_403_FORBIDDEN

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message)


class PermissionDeniedError(UnauthorizedError):
    code = "PERMISSION_DENIED"

    def __init__(self, permission: str):
        super().__init__(f"Missing permission: {permission}")
        self.permission = permission


class NotFoundError(LMSServiceError):
    code = "NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND


class NotEligibleError(LMSServiceError):
    """Quiz not published, outside its window, caller not enrolled, etc."""

    code = "NOT_ELIGIBLE"
    status_code = status.HTTP_403_FORBIDDEN


class AlreadyCompletedError(LMSServiceError):
    code = "ALREADY_COMPLETED"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, message: str = "This attempt has already been submitted"):
        super().__init__(message)


class AttemptExpiredError(LMSServiceError):
    """The deadline passed; the attempt was force-submitted before raising."""

    code = "EXPIRED"
    status_code = status.HTTP_410_GONE

    def __init__(self, message: str = "Time is up for this quiz"):
        super().__init__(message)


class QuizValidationError(LMSServiceError):
    code = "VALIDATION_ERROR"
    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY


class InvalidStateError(LMSServiceError):
    """Operation not allowed in the quiz's current lifecycle state."""

    code = "INVALID_STATE"
    status_code = status.HTTP_409_CONFLICT
