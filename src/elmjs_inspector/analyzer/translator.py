"""Translate character offsets in unminified code to offsets in minified code."""

import logging
from bisect import bisect_right
from typing import Dict, List, Optional, Tuple

from .models import Boundary
from .sourcemap import LEAST_UPPER_BOUND, PositionMappingTable

logger = logging.getLogger(__name__)


def line_starts(text: str) -> List[int]:
    """Offsets at which each line of ``text`` begins."""
    starts = [0]
    index = text.find("\n")
    while index != -1:
        starts.append(index + 1)
        index = text.find("\n", index + 1)
    return starts


class PositionTranslator:
    """Memoized offset translation through a position mapping table.

    One translator serves a single report run. Without a mapping table the
    minified text is the unminified text and translation is the identity.
    """

    def __init__(
        self,
        code: str,
        minified: Optional[str] = None,
        mapping: Optional[PositionMappingTable] = None,
    ):
        """Initialize translator.

        Args:
            code: Unminified program text
            minified: Minified program text (defaults to ``code``)
            mapping: Table from unminified to minified positions (None for identity)
        """
        self.code = code
        self.minified = code if minified is None else minified
        self.mapping = mapping
        self._code_lines = line_starts(code)
        self._minified_lines = line_starts(self.minified)
        self._cache: Dict[Tuple[int, Boundary], Optional[int]] = {}

    @property
    def cache_size(self) -> int:
        return len(self._cache)

    def line_column(self, offset: int) -> Tuple[int, int]:
        """Convert an unminified offset to a 1-based line and 0-based column."""
        index = bisect_right(self._code_lines, offset) - 1
        return index + 1, offset - self._code_lines[index]

    def generated_line_column(self, offset: int) -> Tuple[int, int]:
        """Convert a minified offset to a 1-based line and 0-based column."""
        index = bisect_right(self._minified_lines, offset) - 1
        return index + 1, offset - self._minified_lines[index]

    def generated_offset(self, line: int, column: int) -> int:
        """Convert a generated line/column into an offset in the minified text."""
        if line - 1 < len(self._minified_lines):
            return min(self._minified_lines[line - 1] + column, len(self.minified))
        return len(self.minified)

    def translate(self, offset: int, boundary: Boundary) -> Optional[int]:
        """Translate one unminified offset.

        A LEFT boundary maps to the first generated character of the construct
        starting at ``offset``. A RIGHT boundary is exclusive: the last
        character of the construct (``offset - 1``) is looked up instead, so
        a construct ending right where the next one starts cannot map past it.

        Args:
            offset: Character offset into the unminified text
            boundary: Which end of a range ``offset`` is

        Returns:
            Character offset into the minified text, or None when the
            position was removed by the minifier
        """
        key = (offset, boundary)
        if key in self._cache:
            return self._cache[key]

        result = self._translate(offset, boundary)
        self._cache[key] = result
        return result

    def _translate(self, offset: int, boundary: Boundary) -> Optional[int]:
        if self.mapping is None:
            return offset

        last_character = boundary is Boundary.RIGHT and offset > 0
        target = offset - 1 if last_character else offset
        line, column = self.line_column(target)

        mapping = self.mapping.find_by_original(line, column, LEAST_UPPER_BOUND)
        if mapping is None:
            logger.debug(f"Offset {offset} ({line}:{column}) is unmapped")
            return None

        result = self.generated_offset(mapping.generated_line, mapping.generated_column)
        if last_character and (mapping.original_line, mapping.original_column) == (line, column):
            # The last character itself was found; make the end exclusive again
            result += 1
        return result
