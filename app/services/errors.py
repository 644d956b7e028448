from __future__ import annotations


class ServiceError(RuntimeError):
    """Failure with a user-facing message and the HTTP status it maps to."""

    def __init__(self, message: str, status_code: int = 400):
        super().__init__(message)
        self.status_code = status_code
