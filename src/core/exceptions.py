from __future__ import annotations
from typing import Any


class APIError(Exception):
    def __init__(self, *, message: str, code: str, status: int, errors: Any = None, extra: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status = status
        self.errors = errors
        self.extra = extra or {}


class DomainValidationError(APIError):
    def __init__(self, *, message: str, code: str = "VALIDATION_ERROR", errors: Any = None, extra: dict[str, Any] | None = None):
        super().__init__(message=message, code=code, status=422, errors=errors, extra=extra)


class IdentityRequiredError(APIError):
    """No signed-in public key in the identity store"""

    def __init__(self, *, message: str = "Sign in with a public key first", code: str = "IDENTITY_REQUIRED"):
        super().__init__(message=message, code=code, status=401)
