# util/errors.py
from typing import Dict, Optional
from fastapi import HTTPException
from util.enums import ErrorMessage


class AppError(HTTPException):
    # Flow: raise AppError to short-circuit with a typed status & message.
    def __init__(
        self,
        message: str,
        http_status: int,
        headers: Optional[Dict[str, str]] = None,
    ) -> None:
        super().__init__(status_code=http_status, detail=message, headers=headers)

    @classmethod
    def of(
        cls, error: ErrorMessage, headers: Optional[Dict[str, str]] = None
    ) -> "AppError":
        return cls(error.value.message, error.value.http_status, headers=headers)


class ResolveError(ValueError):
    """A request named a blob type, blob or repository that cannot map to a key."""


class InvalidType(ResolveError):
    pass


class NameTooShort(ResolveError):
    pass


class InvalidName(ResolveError):
    pass


class InvalidRange(ValueError):
    pass
