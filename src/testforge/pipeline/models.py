"""
Pipeline domain models.

A PipelineReport is the aggregated outcome of one run: the files written,
every per-item failure attributed to its stage and input, and the inputs
never admitted because the run was cancelled.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


class PipelineStage(Enum):
    READ = "read"
    SYNTHESIZE = "synthesize"
    WRITE = "write"


@dataclass(frozen=True)
class StageFailure:
    """One failed item, attributed to the input file it came from."""

    stage: PipelineStage
    path: str
    error: BaseException
    unit_name: str | None = None

    @property
    def reason(self) -> str:
        return str(self.error)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "stage": self.stage.value,
            "path": self.path,
            "unit_name": self.unit_name,
            "error_type": type(self.error).__name__,
            "reason": self.reason,
        }


@dataclass
class PipelineReport:
    output_directory: Path
    written: list[Path] = field(default_factory=list)  # each output file once, first-write order
    failures: list[StageFailure] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    cancelled: bool = False

    @property
    def succeeded(self) -> bool:
        return not self.failures

    @property
    def failed_inputs(self) -> list[str]:
        """Distinct failing input paths, in order of first failure."""
        return list(dict.fromkeys(f.path for f in self.failures))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "output_directory": str(self.output_directory),
            "written": [str(p) for p in self.written],
            "failures": [f.to_dict() for f in self.failures],
            "skipped": self.skipped,
            "cancelled": self.cancelled,
            "succeeded": self.succeeded,
        }
