"""Rank attributed definitions and stream the resulting report."""

import logging
import sys
from abc import ABC, abstractmethod
from typing import Iterable, Optional, Sequence, TextIO

from .models import (
    AttributedRange,
    InconsistentRange,
    Report,
    ReportEntry,
    format_percentage,
)

logger = logging.getLogger(__name__)


def build_report(
    attributed: Iterable[AttributedRange],
    total_minified_size: int,
    anomalies: Sequence[InconsistentRange] = (),
) -> Report:
    """Rank attributed ranges by size and compute coverage.

    Args:
        attributed: Retained attributed ranges, in definition order
        total_minified_size: Character extent of the minified program
        anomalies: Definitions dropped for inconsistent ranges

    Returns:
        Report sorted by descending size; equal sizes keep definition order
    """
    ranked = sorted(attributed, key=lambda item: item.size, reverse=True)

    entries = tuple(
        ReportEntry(
            name=item.definition.name,
            size=item.size,
            percentage=format_percentage(item.size, total_minified_size),
            kind=item.definition.kind,
        )
        for item in ranked
    )
    attributed_size = sum(entry.size for entry in entries)

    logger.info(
        f"Attributed {attributed_size} of {total_minified_size} characters "
        f"to {len(entries)} definitions"
    )
    return Report(
        entries=entries,
        total_minified_size=total_minified_size,
        attributed_size=attributed_size,
        anomalies=tuple(anomalies),
    )


class ReportSink(ABC):
    """Receives report lines in rank order."""

    @abstractmethod
    def entry(self, name: str, percentage: str, size: int) -> None:
        """Receive one ranked definition."""
        pass

    @abstractmethod
    def summary(self, attributed_size: int, total_size: int, coverage: str) -> None:
        """Receive the coverage totals after the last entry."""
        pass


class ConsoleSink(ReportSink):
    """Write report lines to a text stream."""

    def __init__(self, stream: Optional[TextIO] = None):
        self.stream = stream if stream is not None else sys.stdout

    def entry(self, name: str, percentage: str, size: int) -> None:
        self.stream.write(f"{percentage}: {name}\n")

    def summary(self, attributed_size: int, total_size: int, coverage: str) -> None:
        self.stream.write(f"Range sum: {attributed_size} total: {total_size}, analyzed {coverage}\n")


class LoggingSink(ReportSink):
    """Write report lines through logging."""

    def __init__(self, log: Optional[logging.Logger] = None, level: int = logging.INFO):
        self.log = log or logger
        self.level = level

    def entry(self, name: str, percentage: str, size: int) -> None:
        self.log.log(self.level, f"{percentage}: {name} ({size})")

    def summary(self, attributed_size: int, total_size: int, coverage: str) -> None:
        self.log.log(self.level, f"Range sum: {attributed_size} total: {total_size}, analyzed {coverage}")


def emit_report(report: Report, sink: ReportSink, limit: Optional[int] = None) -> None:
    """Stream a report to a sink.

    Args:
        report: Report to emit
        sink: Destination for the lines
        limit: Maximum number of entries (the summary always covers all)
    """
    entries = report.entries if limit is None else report.entries[:limit]
    for entry in entries:
        sink.entry(entry.name, entry.percentage, entry.size)
    sink.summary(report.attributed_size, report.total_minified_size, report.coverage_percentage)
