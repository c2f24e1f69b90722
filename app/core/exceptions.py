from starlette import status


class AppError(Exception):
    """Base error raised by repositories and services.

    The HTTP layer turns it into ``{"detail": message}`` with ``status_code``.
    """

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str, *, status_code: int = None):
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class NotFoundError(AppError):
    """Entity absent, not owned, or in the wrong trash state."""

    status_code = status.HTTP_404_NOT_FOUND


class ConflictError(AppError):
    """Name collision among active siblings."""

    status_code = status.HTTP_409_CONFLICT


class InvalidInputError(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class UpstreamFailureError(AppError):
    """The object store rejected or failed a request."""

    status_code = status.HTTP_502_BAD_GATEWAY
