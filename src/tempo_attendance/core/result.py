from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(frozen=True)
class OperationResult:
    """Outcome of a mutating operation that writes through the store.

    The in-memory change that preceded a failed write is not rolled back;
    callers decide whether to retry or reload.
    """

    ok: bool
    value: Any = None
    error: Optional[Exception] = None

    @classmethod
    def success(cls, value: Any = None) -> "OperationResult":
        return cls(ok=True, value=value)

    @classmethod
    def failure(cls, error: Exception, value: Any = None) -> "OperationResult":
        return cls(ok=False, value=value, error=error)

    @property
    def message(self) -> str:
        return str(self.error) if self.error else ""
