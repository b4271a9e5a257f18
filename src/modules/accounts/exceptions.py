"""Account management errors.

Views translate these into HTTP responses the same way order errors are
translated: ``code`` and ``extra`` end up in the response body.
"""

from __future__ import annotations

from typing import Any


class AccountError(Exception):
    code = "account_error"

    def __init__(self, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self) -> dict[str, Any]:
        return {"detail": self.message, "code": self.code, **self.extra}


class BakerNotFound(AccountError):
    code = "not_found"

    def __init__(self, message: str = "Baker not found.") -> None:
        super().__init__(message)


class DuplicateAccount(AccountError):
    """Email or phone number already belongs to another user."""

    code = "duplicate_account"


class InvalidSearchQuery(AccountError):
    code = "invalid_query"


class InvalidCurrentPassword(AccountError):
    code = "invalid_password"

    def __init__(self) -> None:
        super().__init__("Current password is incorrect.")
