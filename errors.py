from __future__ import annotations

from enum import Enum
from typing import Iterable, List, Optional


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    TRANSACTION_FAILURE = "transaction_failure"
    INTERNAL = "internal"


class AppError(Exception):
    """
    Base for errors the API reports to callers.

    Carries an ErrorKind instead of an HTTP status; main.py owns the mapping.
    `message` is safe to show to the client.
    """

    kind: ErrorKind = ErrorKind.INTERNAL
    default_message = "Something went wrong"

    def __init__(self, message: Optional[str] = None, *, errors: Optional[List[str]] = None):
        self.message = message or self.default_message
        self.errors = list(errors or [])
        super().__init__(self.message)


class ValidationError(AppError):
    kind = ErrorKind.VALIDATION
    default_message = "Invalid request"

    def __init__(self, errors: List[str], message: Optional[str] = None):
        super().__init__(message or ", ".join(errors) or self.default_message, errors=errors)


class NotFoundError(AppError):
    kind = ErrorKind.NOT_FOUND
    default_message = "Not found"


class AuthenticationError(AppError):
    kind = ErrorKind.UNAUTHENTICATED
    default_message = "Unauthorized"


class AuthorizationError(AppError):
    kind = ErrorKind.FORBIDDEN
    default_message = "Not allowed to access this resource"


class TransactionFailure(AppError):
    kind = ErrorKind.TRANSACTION_FAILURE
    default_message = "Failed to save test submission"


def error_messages(errs: Iterable[dict]) -> List[str]:
    """Flatten pydantic/FastAPI error dicts into "field.path: message" strings."""
    msgs = []
    for err in errs:
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        msgs.append(f"{loc}: {err.get('msg')}" if loc else str(err.get("msg")))
    return msgs
