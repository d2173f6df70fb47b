from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""Result values passed between pipeline stages instead of control-flow exceptions."""

__all__ = [
    "Decision",
    "RuleOutcome",
    "OperationResult",
]


class Decision(Enum):
    PROCEED = "proceed"
    SKIP = "skip"        # not importable, not an error (amended PO)
    REJECT = "reject"    # not importable, error (overlapping PO)


@dataclass(frozen=True)
class RuleOutcome:
    """Decision of the business rule engine for a header row."""
    decision: Decision
    reason: str = ""

    @classmethod
    def proceed(cls) -> RuleOutcome:
        return cls(Decision.PROCEED)

    @classmethod
    def skip(cls, reason: str) -> RuleOutcome:
        return cls(Decision.SKIP, reason)

    @classmethod
    def reject(cls, reason: str) -> RuleOutcome:
        return cls(Decision.REJECT, reason)

    @property
    def proceeds(self) -> bool:
        return self.decision is Decision.PROCEED


@dataclass(frozen=True)
class OperationResult:
    success: bool = True
    error_message: str = ""

    @classmethod
    def failed(cls, message: str) -> OperationResult:
        return cls(success=False, error_message=message)
