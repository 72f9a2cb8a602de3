"""
stegforge/engine/models.py

Purpose:
    Result types produced by the executor.

Semantics:
    - ToolResult: the outcome of one dispatched tool. Exactly one of
      output / failure / skip is the primary outcome.
    - ScanResult: every ToolResult for one file, in filtered-list order,
      plus the wall-clock duration of the whole batch.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Optional, Tuple

from stegforge.errors import ErrorCode
from stegforge.toolkit.filetype import FileRecord


class ToolStatus(str, Enum):
    OUTPUT = "output"      # ran, produced output
    EMPTY = "empty"        # ran, nothing to show
    FAILED = "failed"      # timeout, or non-zero exit with no output
    SKIPPED = "skipped"    # not installed or not applicable


@dataclass(frozen=True)
class ToolResult:
    tool_name: str
    category: str
    output: str = ""
    error: Optional[str] = None
    error_code: Optional[ErrorCode] = None
    skipped: bool = False
    skip_reason: str = ""
    duration: float = 0.0
    command: Tuple[str, ...] = ()

    def __post_init__(self):
        if self.skipped and self.error is not None:
            raise ValueError("A result cannot be both skipped and failed")
        if (self.skipped or self.error is not None) and self.output:
            raise ValueError("Failed or skipped results carry no output")

    @classmethod
    def success(cls, tool_name: str, category: str, output: str, duration: float, command=()) -> "ToolResult":
        return cls(tool_name, category, output=output, duration=duration, command=tuple(command))

    @classmethod
    def failure(
        cls, tool_name: str, category: str, error: str, code: ErrorCode, duration: float, command=()
    ) -> "ToolResult":
        return cls(tool_name, category, error=error, error_code=code, duration=duration, command=tuple(command))

    @classmethod
    def skip(cls, tool_name: str, category: str, reason: str, code: Optional[ErrorCode] = None) -> "ToolResult":
        return cls(tool_name, category, skipped=True, skip_reason=reason, error_code=code)

    @property
    def failed(self) -> bool:
        return self.error is not None

    @property
    def status(self) -> ToolStatus:
        if self.skipped:
            return ToolStatus.SKIPPED
        if self.failed:
            return ToolStatus.FAILED
        if self.output.strip():
            return ToolStatus.OUTPUT
        return ToolStatus.EMPTY

    def to_dict(self) -> Dict[str, object]:
        return {
            "tool": self.tool_name,
            "category": self.category,
            "status": self.status.value,
            "output": self.output,
            "error": self.error,
            "error_code": self.error_code.value if self.error_code else None,
            "skip_reason": self.skip_reason or None,
            "duration": round(self.duration, 3),
            "command": list(self.command),
        }


@dataclass(frozen=True)
class ScanSummary:
    total: int
    succeeded: int
    with_output: int
    failed: int
    skipped: int
    duration: float


@dataclass
class ScanResult:
    file: FileRecord
    results: List[Optional[ToolResult]] = field(default_factory=list)
    duration: float = 0.0

    def completed(self) -> List[ToolResult]:
        """Populated slots, in filtered-list order."""
        return [r for r in self.results if r is not None]

    def by_category(self, category: str) -> List[ToolResult]:
        return [r for r in self.completed() if r.category == category]

    def summary(self) -> ScanSummary:
        done = self.completed()
        statuses = [r.status for r in done]
        return ScanSummary(
            total=len(self.results),
            succeeded=sum(1 for s in statuses if s in (ToolStatus.OUTPUT, ToolStatus.EMPTY)),
            with_output=statuses.count(ToolStatus.OUTPUT),
            failed=statuses.count(ToolStatus.FAILED),
            skipped=statuses.count(ToolStatus.SKIPPED),
            duration=self.duration,
        )
