"""Application error taxonomy.

Handlers raise these; ``coursedesk.main`` turns them into
``{"success": false, "message": ...}`` responses with the matching status.
"""


class AppError(Exception):
    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(AppError):
    status_code = 400


class AuthenticationError(AppError):
    status_code = 401


class AuthorizationError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class DependencyError(AppError):
    """Delete refused because other rows still reference the entity."""

    status_code = 400


class InternalError(AppError):
    status_code = 500
