"""Error kinds raised while producing a size report."""

from typing import Optional


class InspectorError(Exception):
    """Base class for all inspector failures."""


class SourceSyntaxError(InspectorError):
    """Program text could not be parsed."""

    def __init__(self, message: str, line: Optional[int] = None, column: Optional[int] = None):
        self.line = line
        self.column = column
        if line is not None:
            message = f"{message} (line {line}, column {column})"
        super().__init__(message)


class MinificationError(InspectorError):
    """The minifier could not produce code and a source map."""


class SourceMapError(MinificationError):
    """The source map produced by the minifier is malformed."""


class InconsistentRangeError(InspectorError):
    """A definition mapped to a negative range spanning generated lines.

    Only raised in strict mode; by default the definition is dropped and
    reported as a diagnostic instead.
    """

    def __init__(self, anomaly):
        self.anomaly = anomaly
        super().__init__(
            f"Invalid negative range for {anomaly.name}: "
            f"{anomaly.source_range} -> {anomaly.minified_range}"
        )
