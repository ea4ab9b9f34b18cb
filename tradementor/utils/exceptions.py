from __future__ import annotations

from enum import Enum
from typing import Optional


class ErrorCategory(str, Enum):
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    DATA = "data"
    ANALYTICS = "analytics"
    SYSTEM = "system"


class TradeMentorError(Exception):
    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.SYSTEM,
        status_code: Optional[int] = None,
        field: Optional[str] = None,
    ) -> None:
        self.message = message
        self.category = category
        self.status_code = status_code
        self.field = field
        super().__init__(self.message)

    def __str__(self) -> str:
        parts = [f"[{self.category.value}] {self.message}"]
        if self.field:
            parts.append(f"Field: {self.field}")
        if self.status_code:
            parts.append(f"(HTTP {self.status_code})")
        return " | ".join(parts)


class ValidationError(TradeMentorError):
    def __init__(self, message: str, field: Optional[str] = None) -> None:
        super().__init__(message, ErrorCategory.VALIDATION, 400, field)


class NotFoundError(TradeMentorError):
    def __init__(self, message: str) -> None:
        super().__init__(message, ErrorCategory.NOT_FOUND, 404)


class DataError(TradeMentorError):
    def __init__(self, message: str) -> None:
        super().__init__(message, ErrorCategory.DATA, 500)


class AnalyticsError(TradeMentorError):
    def __init__(self, message: str) -> None:
        super().__init__(message, ErrorCategory.ANALYTICS, 500)
