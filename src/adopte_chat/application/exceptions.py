"""Application errors, translated to HTTP statuses in ``adopte_chat.app``.

Expected denials (not a participant, wrong broadcast audience) are not
errors: access checks return an ``AccessResult`` instead of raising.
"""
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
