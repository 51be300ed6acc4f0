"""Error taxonomy and the uniform result envelope returned by services."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional


class CodeShareError(Exception):
    """Base class for every expected failure raised inside the core."""

    kind = "error"


class ValidationError(CodeShareError):
    """Input failed a shape or policy rule. Carries every violated rule."""

    kind = "validation"

    def __init__(self, reasons: Iterable[str] | str) -> None:
        if isinstance(reasons, str):
            reasons = [reasons]
        self.reasons: List[str] = [reason for reason in reasons if reason]
        super().__init__(". ".join(self.reasons))


class ConflictError(CodeShareError):
    kind = "conflict"


class NotFoundError(CodeShareError):
    kind = "not_found"


class AuthError(CodeShareError):
    kind = "auth"


class StorageError(CodeShareError):
    """The key-value substrate failed to read or write."""

    kind = "storage"


class MigrationError(CodeShareError):
    kind = "migration"


STORAGE_FAILURE_MESSAGE = "Storage operation failed. Please try again."


@dataclass(slots=True)
class OperationResult:
    """`{success, data, error}` shape handed to HTTP handlers and callers."""

    success: bool
    data: Any = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    details: List[str] = field(default_factory=list)

    @classmethod
    def ok(cls, data: Any = None) -> "OperationResult":
        return cls(success=True, data=data)

    @classmethod
    def fail(cls, error: str, error_type: str = "error", details: Optional[List[str]] = None) -> "OperationResult":
        return cls(success=False, error=error, error_type=error_type, details=list(details or []))

    @classmethod
    def from_exception(cls, exc: CodeShareError) -> "OperationResult":
        if isinstance(exc, StorageError):
            return cls.fail(STORAGE_FAILURE_MESSAGE, exc.kind)
        details = exc.reasons if isinstance(exc, ValidationError) else []
        return cls.fail(str(exc), exc.kind, details)

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"success": self.success}
        if self.data is not None:
            payload["data"] = self.data
        if self.error is not None:
            payload["error"] = self.error
        return payload
