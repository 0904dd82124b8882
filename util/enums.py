# util/enums.py
from enum import Enum
from typing import NamedTuple
from fastapi import status


class Color(str, Enum):
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    BLUE = "\033[34m"

    def __str__(self):
        return self.value


class Environment(str, Enum):
    DEV = "dev"
    PROD = "prod"


class BlobType(str, Enum):
    DATA = "data"
    INDEX = "index"
    KEYS = "keys"
    LOCKS = "locks"
    SNAPSHOTS = "snapshots"
    CONFIG = "config"

    def __str__(self):
        return self.value


class ErrorInfo(NamedTuple):
    message: str
    http_status: int


# Messages match the standard status text written by net/http-style servers.
class ErrorMessage(Enum):
    BAD_REQUEST = ErrorInfo("Bad Request", status.HTTP_400_BAD_REQUEST)
    UNAUTHORIZED = ErrorInfo("Unauthorized", status.HTTP_401_UNAUTHORIZED)
    FORBIDDEN = ErrorInfo("Forbidden", status.HTTP_403_FORBIDDEN)
    NOT_FOUND = ErrorInfo("Not Found", status.HTTP_404_NOT_FOUND)
    CONFLICT = ErrorInfo("Conflict", status.HTTP_409_CONFLICT)
    INTERNAL_ERROR = ErrorInfo(
        "Internal Server Error", status.HTTP_500_INTERNAL_SERVER_ERROR
    )
