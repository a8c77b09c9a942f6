"""
JulietScript Diagnostics
========================
Positions, ranges, and the diagnostic records produced by every stage
of the lint pipeline, plus the collector that merges and orders them.
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Optional


class Severity(str, Enum):
    """Severity of a diagnostic."""
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True, order=True)
class Position:
    """A zero-based (line, character) location in source text."""
    line: int
    character: int

    def to_dict(self) -> dict:
        return {"line": self.line, "character": self.character}


@dataclass(frozen=True)
class Range:
    """A start position and an optional end position."""
    start: Position
    end: Optional[Position] = None

    @classmethod
    def at(cls, position: Position) -> "Range":
        """A zero-width range at a single position."""
        return cls(position, position)

    def to_dict(self) -> dict:
        result = {"start": self.start.to_dict()}
        if self.end is not None:
            result["end"] = self.end.to_dict()
        return result


@dataclass
class Diagnostic:
    """A single lint finding."""
    severity: Severity
    message: str
    range: Range

    @property
    def start(self) -> Position:
        return self.range.start

    def to_dict(self) -> dict:
        return {
            "severity": self.severity.value,
            "message": self.message,
            "range": self.range.to_dict(),
        }

    def __str__(self) -> str:
        icon = "✘" if self.severity == Severity.ERROR else "⚠"
        return f"  {icon} L{self.start.line + 1}:{self.start.character + 1} {self.message}"


def error(message: str, range_: Range) -> Diagnostic:
    return Diagnostic(Severity.ERROR, message, range_)


def warning(message: str, range_: Range) -> Diagnostic:
    return Diagnostic(Severity.WARNING, message, range_)


@dataclass
class DiagnosticCollector:
    """
    Merges diagnostics from the lexer, parser, and resolver.

    Stages are added in pipeline order; `sorted()` orders by start
    position and keeps emission order for equal positions.
    """
    diagnostics: list[Diagnostic] = field(default_factory=list)

    def extend(self, diagnostics: Iterable[Diagnostic]):
        self.diagnostics.extend(diagnostics)

    def sorted(self) -> list[Diagnostic]:
        return sorted(self.diagnostics, key=lambda d: d.start)

    @property
    def error_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.severity == Severity.ERROR)

    @property
    def warning_count(self) -> int:
        return sum(1 for d in self.diagnostics if d.severity == Severity.WARNING)
