"""Result values returned at every WordPress call boundary.

WordPress reports failures as ``{"code": ..., "message": ..., "data": {"status": ...}}``
bodies rather than exceptions. The client folds those into ``Err`` values so
callers branch on ``result.ok`` instead of guessing which calls may raise.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar, Union

T = TypeVar("T")


class ErrorKind(str, Enum):
    """Normalized error categories."""

    INCORRECT_SECRET = "incorrect_secret"
    INVALID_USERNAME = "invalid_username"
    CONFLICT = "conflict"
    NOT_FOUND = "not_found"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    INVALID_PARAM = "invalid_param"
    ALREADY_TRASHED = "already_trashed"
    TRANSPORT = "transport"
    OTHER = "other"


_CODE_KINDS = {
    "incorrect_password": ErrorKind.INCORRECT_SECRET,
    "invalid_username": ErrorKind.INVALID_USERNAME,
    "invalid_email": ErrorKind.INVALID_USERNAME,
    "existing_user_login": ErrorKind.CONFLICT,
    "existing_user_email": ErrorKind.CONFLICT,
    "rest_invalid_param": ErrorKind.INVALID_PARAM,
    "rest_missing_callback_param": ErrorKind.INVALID_PARAM,
    "rest_already_trashed": ErrorKind.ALREADY_TRASHED,
}


def classify(code: str, status: Optional[int]) -> ErrorKind:
    """Map a WordPress error code and HTTP status to an ``ErrorKind``."""
    if code in _CODE_KINDS:
        return _CODE_KINDS[code]
    if code.endswith("_invalid_id") or status == 404:
        return ErrorKind.NOT_FOUND
    if status == 401:
        return ErrorKind.UNAUTHORIZED
    if status == 403:
        return ErrorKind.FORBIDDEN
    return ErrorKind.OTHER


@dataclass(frozen=True)
class WordPressError:
    """A failure reported by (or while talking to) the site."""

    kind: ErrorKind
    code: str
    message: str
    status: Optional[int] = None

    @classmethod
    def from_body(cls, status: int, body: Any) -> "WordPressError":
        """Build from a REST error body, tolerating non-JSON responses."""
        if isinstance(body, dict):
            code = str(body.get("code") or f"http_{status}")
            message = str(body.get("message") or "")
        else:
            code = f"http_{status}"
            message = str(body or "")[:200]
        return cls(kind=classify(code, status), code=code, message=message, status=status)

    @classmethod
    def transport(cls, exc: Exception) -> "WordPressError":
        return cls(kind=ErrorKind.TRANSPORT, code="transport_error", message=str(exc))

    def __str__(self) -> str:
        status = f" ({self.status})" if self.status is not None else ""
        return f"{self.code}{status}: {self.message}"


class WordPressAPIError(Exception):
    """Raised by ``Result.unwrap()`` on an ``Err``."""

    def __init__(self, error: WordPressError):
        super().__init__(str(error))
        self.error = error


@dataclass(frozen=True)
class Ok(Generic[T]):
    """Successful call."""

    value: T
    ok = True

    def unwrap(self) -> T:
        return self.value


@dataclass(frozen=True)
class Err:
    """Failed call."""

    error: WordPressError
    ok = False

    def unwrap(self):
        raise WordPressAPIError(self.error)

    @property
    def message(self) -> str:
        return self.error.message or self.error.code


Result = Union[Ok[T], Err]


def error_payload(error: WordPressError) -> Dict[str, Any]:
    """Serialize an error for structured events."""
    return {
        "kind": error.kind.value,
        "code": error.code,
        "message": error.message,
        "status": error.status,
    }
