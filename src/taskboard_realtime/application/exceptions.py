from __future__ import annotations


class AppError(Exception):
    """Base application error."""

    def __init__(self, detail: str = "") -> None:
        self.detail = detail
        super().__init__(detail)


class NotFoundError(AppError):
    pass


class ForbiddenError(AppError):
    pass


class ValidationError(AppError):
    pass


class UnauthenticatedError(AppError):
    """An event that needs an authenticated connection arrived before `authenticate`."""

    def __init__(self, detail: str = "User not authenticated") -> None:
        super().__init__(detail)
