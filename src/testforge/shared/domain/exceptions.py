"""
Domain exceptions for testforge.

All application errors inherit from TestForgeError and carry a context dict
that is attached to the structured log event reporting them.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from testforge.pipeline.models import PipelineReport


class TestForgeError(Exception):
    """Base class for all testforge exceptions."""

    __test__ = False  # not a pytest test class

    def __init__(self, message: str, context: dict = None):
        super().__init__(message)
        self.context = context or {}


class ParseFailure(TestForgeError):
    """Raised when source text is not a syntactically valid compilation unit."""

    def __init__(
        self,
        message: str,
        source_path: Optional[str] = None,
        line: Optional[int] = None,
        column: Optional[int] = None,
    ):
        super().__init__(
            message,
            context={"source_path": source_path, "line": line, "column": column},
        )
        self.source_path = source_path
        self.line = line
        self.column = column

    def __str__(self) -> str:
        location = self.source_path or "<source>"
        if self.line is not None:
            location = f"{location}:{self.line}:{self.column}"
        return f"{location}: {self.args[0]}"


class UnsupportedConstruct(TestForgeError):
    """Raised when a class or member shape has no synthesis rule."""

    pass


class GenerationIOError(TestForgeError):
    """Raised when reading a source file or writing a test file fails."""

    def __init__(self, message: str, path: str, operation: str):
        super().__init__(message, context={"path": path, "operation": operation})
        self.path = path
        self.operation = operation


class NameCollisionError(TestForgeError):
    """Raised when two generated units target the same output file."""

    pass


class ConfigurationError(TestForgeError):
    """Raised when configuration is invalid or corrupt."""

    pass


class PipelineRunError(TestForgeError):
    """Raised when at least one pipeline item failed."""

    def __init__(self, report: "PipelineReport"):
        first = report.failures[0]
        super().__init__(
            f"{len(report.failures)} item(s) failed; first: {first.stage.value} "
            f"{first.path}: {first.error}",
            context={"failed": len(report.failures), "written": len(report.written)},
        )
        self.report = report
