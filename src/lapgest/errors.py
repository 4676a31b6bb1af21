"""Error codes and exception types shared across the client layer.

Every error raised by lapgest carries a machine-readable ``ErrorCode``, a
human-readable message and a ``recoverable`` flag. Nothing here is fatal to
the process: the UI shows the message and lets the user retry manually.
"""

from __future__ import annotations

from enum import StrEnum


class ErrorCode(StrEnum):
    REQUEST_FAILED = "REQUEST_FAILED"
    NOT_FOUND = "NOT_FOUND"
    UNAUTHORIZED = "UNAUTHORIZED"
    NETWORK_ERROR = "NETWORK_ERROR"
    INVALID_RESPONSE = "INVALID_RESPONSE"
    AUTH_CHECK_FAILED = "AUTH_CHECK_FAILED"
    INVALID_INPUT = "INVALID_INPUT"


class LapgestError(Exception):
    """Base error for all lapgest failures."""

    def __init__(self, code: ErrorCode, message: str, recoverable: bool = True) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.recoverable = recoverable

    def to_dict(self) -> dict[str, object]:
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "recoverable": self.recoverable,
            }
        }


def _code_for_status(status: int) -> ErrorCode:
    if status == 0:
        return ErrorCode.NETWORK_ERROR
    if status in (401, 403):
        return ErrorCode.UNAUTHORIZED
    if status == 404:
        return ErrorCode.NOT_FOUND
    return ErrorCode.REQUEST_FAILED


class RequestError(LapgestError):
    """Non-2xx API response, or a transport failure (``status == 0``)."""

    def __init__(self, status: int, message: str, code: ErrorCode | None = None) -> None:
        super().__init__(code or _code_for_status(status), message, recoverable=True)
        self.status = status

    def __str__(self) -> str:
        return f"{self.status}: {self.message}"


class AuthCheckFailure(LapgestError):
    """Session introspection failed.

    Mapped to the unauthenticated state by the auth provider; never raised
    to page code.
    """

    def __init__(self, cause: RequestError) -> None:
        super().__init__(ErrorCode.AUTH_CHECK_FAILED, cause.message, recoverable=True)
        self.status = cause.status
        self.__cause__ = cause
