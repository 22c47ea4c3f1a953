"""
Typed errors and results for core operations.

Core operations never raise for domain failures. Every operation returns a
`Result` that the caller must inspect:

- `error` set: the operation was rejected, nothing changed
- `warning` set: the operation was applied in memory, but a follow-up
  (persisting to disk) failed
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar

T = TypeVar("T")


class ErrorCode(str, Enum):
    DUPLICATE_ID = "duplicate_id"
    NOT_FOUND = "not_found"
    INVALID_REFERENCE = "invalid_reference"
    INVALID_STATUS = "invalid_status"
    INVALID_DATE_FORMAT = "invalid_date_format"
    MISSING_REQUIRED_FIELD = "missing_required_field"
    REFERENTIAL_INTEGRITY_VIOLATION = "referential_integrity_violation"
    INVALID_RECURRENCE_CONFIG = "invalid_recurrence_config"
    INVALID_FORMAT = "invalid_format"  # data file could not be decoded
    PERSISTENCE_FAILED = "persistence_failed"  # warning only: applied but not saved


@dataclass(frozen=True)
class NotaError:
    """A single failure, phrased to be shown verbatim to the end caller."""

    code: ErrorCode
    message: str
    nota_id: str | None = None
    referrer: str | None = None  # set for referential_integrity_violation

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict:
        data = {"code": self.code.value, "message": self.message}
        if self.nota_id is not None:
            data["id"] = self.nota_id
        if self.referrer is not None:
            data["referrer"] = self.referrer
        return data


@dataclass(frozen=True)
class Result(Generic[T]):
    """Outcome of a core operation."""

    value: T | None = None
    error: NotaError | None = None
    warning: NotaError | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> Result[T]:
        return cls(value=value)

    @classmethod
    def failure(cls, error: NotaError) -> Result[T]:
        return cls(error=error)

    def with_warning(self, warning: NotaError) -> Result[T]:
        return Result(value=self.value, error=self.error, warning=warning)


def fail(code: ErrorCode, message: str, nota_id: str | None = None, referrer: str | None = None) -> NotaError:
    """Shorthand constructor used across the core."""
    return NotaError(code=code, message=message, nota_id=nota_id, referrer=referrer)
