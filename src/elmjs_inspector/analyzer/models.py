"""Data models for bundle size attribution."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple


class Boundary(str, Enum):
    """Which end of a source range is being translated."""

    LEFT = "left"  # inclusive start
    RIGHT = "right"  # exclusive end


@dataclass(frozen=True)
class Definition:
    """A named top-level definition found in the unminified program."""

    name: str
    start: int  # character offset, inclusive
    end: int  # character offset, exclusive
    kind: str  # function or variable

    @property
    def source_range(self) -> Tuple[int, int]:
        return (self.start, self.end)


@dataclass(frozen=True)
class GeneratedPosition:
    """A position in the minified text (1-based line, 0-based column)."""

    line: int
    column: int


@dataclass(frozen=True)
class OriginalPosition:
    """A position in the unminified text (1-based line, 0-based column)."""

    line: int
    column: int
    source: Optional[str] = None
    name: Optional[str] = None


@dataclass(frozen=True)
class AttributedRange:
    """A definition together with the range it occupies in the minified text."""

    definition: Definition
    minified_start: int
    minified_end: int

    @property
    def size(self) -> int:
        return self.minified_end - self.minified_start


@dataclass(frozen=True)
class InconsistentRange:
    """Diagnostic for a definition whose translated range is negative across lines."""

    name: str
    source_range: Tuple[int, int]
    minified_range: Tuple[int, int]
    endpoints: List[Dict[str, Any]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "range": list(self.source_range),
            "compressed": list(self.minified_range),
            "mapped": self.endpoints,
        }


def format_percentage(value: int, of: int) -> str:
    """Render ``value / of`` as a percentage with three decimals.

    Args:
        value: Part size
        of: Whole size

    Returns:
        String such as ``"12.500%"``; ``"0.000%"`` when the whole is empty
    """
    if of <= 0:
        return "0.000%"
    return f"{value / of * 100:.3f}%"


@dataclass(frozen=True)
class ReportEntry:
    """One ranked line of the report."""

    name: str
    size: int
    percentage: str
    kind: str


@dataclass(frozen=True)
class Report:
    """Ranked size attribution for one minified program."""

    entries: Tuple[ReportEntry, ...]
    total_minified_size: int
    attributed_size: int
    anomalies: Tuple[InconsistentRange, ...] = ()

    @property
    def coverage_percentage(self) -> str:
        return format_percentage(self.attributed_size, self.total_minified_size)

    def to_dict(self, limit: Optional[int] = None) -> Dict[str, Any]:
        """Serialize the report to a JSON-compatible mapping.

        Args:
            limit: Maximum number of entries to include (None for all)

        Returns:
            Dictionary with ranked entries and totals
        """
        entries = self.entries if limit is None else self.entries[:limit]
        return {
            "entries": [
                {
                    "name": entry.name,
                    "kind": entry.kind,
                    "size": entry.size,
                    "percentage": entry.percentage,
                }
                for entry in entries
            ],
            "total_entries": len(self.entries),
            "total_minified_size": self.total_minified_size,
            "attributed_size": self.attributed_size,
            "coverage_percentage": self.coverage_percentage,
            "anomalies": [anomaly.to_dict() for anomaly in self.anomalies],
        }
