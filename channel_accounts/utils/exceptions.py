"""
Error taxonomy for the account backend.

Every error carries the HTTP status it should surface with, a public message and
an optional list of field-level details. The Flask error handler in
``channel_accounts.api.errors`` renders them into the failure envelope:

    {"statusCode": 401, "success": false, "message": "...", "errors": []}
"""
from __future__ import annotations


class ApiError(Exception):
    status_code = 500
    message = "Something went wrong"

    def __init__(self, message: str | None = None, errors: list | None = None,
                 status_code: int | None = None):
        super().__init__(message or self.message)
        self.message = message or self.message
        self.errors = list(errors or [])
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> dict:
        return {
            "statusCode": self.status_code,
            "success": False,
            "message": self.message,
            "errors": self.errors,
        }


class RequestValidationError(ApiError):
    status_code = 400
    message = "Invalid input"


class AccountExists(ApiError):
    status_code = 409
    message = "An account with this username or email already exists"


class InvalidCredentials(ApiError):
    status_code = 401
    message = "Invalid credentials"


class AccountNotFound(InvalidCredentials):
    """Identifier did not resolve. Rendered exactly like InvalidCredentials."""


class Unauthenticated(ApiError):
    status_code = 401
    message = "Unauthorized request"


class InvalidToken(ApiError):
    status_code = 401
    message = "Invalid token"


class TokenRevokedOrStale(ApiError):
    status_code = 401
    message = "Refresh token is expired or has been used"


class HashIntegrityError(ApiError):
    status_code = 500
    message = "Stored credential is corrupt"


class DependencyFailure(ApiError):
    status_code = 500
    message = "A backing service is unavailable"
