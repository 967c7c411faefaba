"""Error taxonomy for footfall operations."""

from enum import Enum
from typing import Iterable


class ErrorCode(str, Enum):
    """Domain error codes."""

    VALIDATION_FAILED = "VALIDATION_FAILED"
    STORE_UNAVAILABLE = "STORE_UNAVAILABLE"


class FootfallError(Exception):
    """Base error with code and user-safe message."""

    code: ErrorCode

    def __init__(self, message: str, code: ErrorCode) -> None:
        super().__init__(message)
        self.message = message
        self.code = code

    def __str__(self) -> str:
        return f"{self.code.value}: {self.message}"


class ValidationError(FootfallError):
    """Raised when a booking or check-in request is malformed."""

    def __init__(self, reasons: Iterable[str]) -> None:
        self.reasons = tuple(reasons)
        super().__init__(
            "; ".join(self.reasons) or "Invalid request",
            code=ErrorCode.VALIDATION_FAILED,
        )


class StoreUnavailableError(FootfallError):
    """Raised when the persistence layer fails."""

    def __init__(self, message: str = "Store unavailable") -> None:
        super().__init__(message, code=ErrorCode.STORE_UNAVAILABLE)
