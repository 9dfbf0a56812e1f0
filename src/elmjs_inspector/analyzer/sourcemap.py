"""Position mapping tables decoded from Source Map v3 documents.

Lines are 1-based and columns 0-based on the public interface, matching the
conventions of JavaScript source map consumers.
"""

import collections
import json
import logging
import re
from bisect import bisect_left, bisect_right
from typing import Any, Dict, Iterable, List, Optional, Union

from .errors import SourceMapError
from .models import GeneratedPosition, OriginalPosition

logger = logging.getLogger(__name__)

GREATEST_LOWER_BOUND = 1
LEAST_UPPER_BOUND = 2

Mapping = collections.namedtuple(
    "Mapping",
    ["generated_line", "generated_column", "source", "original_line", "original_column", "name"],
)

# Mapping of base64 letter -> integer value.
B64 = dict(
    (c, i)
    for i, c in enumerate("ABCDEFGHIJKLMNOPQRSTUVWXYZabcdefghijklmnopqrstuvwxyz0123456789+/")
)

_TOKEN = re.compile(r"\w+|\S")


def parse_vlq(segment: str) -> List[int]:
    """Parse a string of VLQ-encoded data.

    Args:
        segment: One comma-separated segment of a ``mappings`` string

    Returns:
        List of decoded integers

    Raises:
        SourceMapError: On characters outside the base64 alphabet or a
            truncated value
    """
    values = []

    cur, shift = 0, 0
    for c in segment:
        try:
            val = B64[c]
        except KeyError:
            raise SourceMapError(f"Invalid base64 character {c!r} in mapping {segment!r}")
        # Each character is 6 bits:
        # 5 of value and the high bit is the continuation.
        val, cont = val & 0b11111, val >> 5
        cur += val << shift
        shift += 5

        if not cont:
            # The low bit of the unpacked value is the sign.
            cur, sign = cur >> 1, cur & 1
            if sign:
                cur = -cur
            values.append(cur)
            cur, shift = 0, 0

    if cur or shift:
        raise SourceMapError(f"Truncated VLQ value in mapping {segment!r}")

    return values


def _decode_mappings(
    smap: Dict[str, Any], line_offset: int = 0, column_offset: int = 0
) -> Iterable[Mapping]:
    """Yield the mappings of one (non-indexed) source map."""
    sources = smap.get("sources") or []
    names = smap.get("names") or []
    mappings = smap.get("mappings")
    if not isinstance(mappings, str):
        raise SourceMapError("Source map has no 'mappings' string")

    src_id, src_line, src_col, name_id = 0, 0, 0, 0
    for dst_line, line in enumerate(mappings.split(";")):
        dst_col = 0
        for segment in line.split(","):
            if not segment:
                continue
            parse = parse_vlq(segment)
            if len(parse) not in (1, 4, 5):
                raise SourceMapError(f"Segment {segment!r} has {len(parse)} fields")
            dst_col += parse[0]

            source = None
            name = None
            original_line = None
            original_column = None
            if len(parse) > 1:
                src_id += parse[1]
                src_line += parse[2]
                src_col += parse[3]
                if not 0 <= src_id < len(sources):
                    raise SourceMapError(f"Source index {src_id} out of range")
                source = sources[src_id]
                original_line = src_line + 1
                original_column = src_col

                if len(parse) > 4:
                    name_id += parse[4]
                    if 0 <= name_id < len(names):
                        name = names[name_id]

            if dst_col < 0 or src_line < 0 or src_col < 0:
                raise SourceMapError(f"Negative position decoded from segment {segment!r}")

            column = dst_col + (column_offset if dst_line == 0 else 0)
            yield Mapping(dst_line + 1 + line_offset, column, source, original_line, original_column, name)


class PositionMappingTable:
    """Read-only lookup table between original and generated positions."""

    def __init__(self, mappings: Iterable[Mapping], source: Optional[str] = None):
        """Build lookup indexes.

        Args:
            mappings: Decoded mappings, in any order
            source: Original source whose positions are looked up; defaults
                to the first source seen
        """
        self.mappings: List[Mapping] = list(mappings)

        if source is None:
            source = next((m.source for m in self.mappings if m.source is not None), None)
        self.source = source

        self._by_generated = sorted(
            self.mappings, key=lambda m: (m.generated_line, m.generated_column)
        )
        self._generated_keys = [(m.generated_line, m.generated_column) for m in self._by_generated]

        self._by_original = sorted(
            (m for m in self.mappings if m.source is not None and m.source == source),
            key=lambda m: (m.original_line, m.original_column, m.generated_line, m.generated_column),
        )
        self._original_keys = [(m.original_line, m.original_column) for m in self._by_original]

        logger.debug(
            f"Built mapping table with {len(self.mappings)} mappings "
            f"({len(self._by_original)} for source {source!r})"
        )

    @classmethod
    def from_json(cls, raw: Union[str, bytes, Dict[str, Any]], source: Optional[str] = None):
        """Decode a Source Map v3 document.

        Args:
            raw: JSON text or an already decoded mapping
            source: Original source to look up (first source when None)

        Returns:
            Mapping table

        Raises:
            SourceMapError: If the document is not a valid v3 source map
        """
        if isinstance(raw, (str, bytes)):
            try:
                raw = json.loads(raw)
            except ValueError as e:
                raise SourceMapError(f"Source map is not valid JSON: {e}")

        if not isinstance(raw, dict) or raw.get("version") != 3:
            raise SourceMapError("Only version 3 source maps are supported")

        if "sections" in raw:
            mappings: List[Mapping] = []
            for section in raw["sections"]:
                offset = section.get("offset") or {}
                if "map" not in section:
                    raise SourceMapError("Indexed source map sections must embed a 'map'")
                mappings.extend(
                    _decode_mappings(
                        section["map"],
                        line_offset=offset.get("line", 0),
                        column_offset=offset.get("column", 0),
                    )
                )
            return cls(mappings, source=source)

        return cls(_decode_mappings(raw), source=source)

    @classmethod
    def identity(cls, text: str, source: str = "0"):
        """Build a table mapping every token of ``text`` onto itself."""
        mappings = []
        for line_number, line in enumerate(text.split("\n"), start=1):
            for token in _TOKEN.finditer(line):
                mappings.append(
                    Mapping(line_number, token.start(), source, line_number, token.start(), None)
                )
        return cls(mappings, source=source)

    def find_by_original(
        self, line: int, column: int, bias: int = LEAST_UPPER_BOUND
    ) -> Optional[Mapping]:
        """Find the mapping nearest an original position.

        Args:
            line: Original line (1-based)
            column: Original column (0-based)
            bias: LEAST_UPPER_BOUND for the nearest mapping at or after the
                position, GREATEST_LOWER_BOUND for the nearest at or before

        Returns:
            Mapping or None if nothing lies in that direction
        """
        needle = (line, column)
        if bias == LEAST_UPPER_BOUND:
            index = bisect_left(self._original_keys, needle)
            if index < len(self._by_original):
                return self._by_original[index]
            return None

        index = bisect_right(self._original_keys, needle) - 1
        if index >= 0:
            # Prefer the first generated occurrence of that original position
            key = self._original_keys[index]
            index = bisect_left(self._original_keys, key)
            return self._by_original[index]
        return None

    def lookup_generated_position(
        self, line: int, column: int, bias: int = LEAST_UPPER_BOUND
    ) -> Optional[GeneratedPosition]:
        """Translate an original position into a generated one.

        Args:
            line: Original line (1-based)
            column: Original column (0-based)
            bias: Search direction, see ``find_by_original``

        Returns:
            Generated position, or None when the position is unmapped
        """
        mapping = self.find_by_original(line, column, bias)
        if mapping is None:
            return None
        return GeneratedPosition(line=mapping.generated_line, column=mapping.generated_column)

    def lookup_original_position(self, line: int, column: int) -> Optional[OriginalPosition]:
        """Translate a generated position back to its original position.

        Uses the closest mapping at or before the position on the same
        generated line.

        Args:
            line: Generated line (1-based)
            column: Generated column (0-based)

        Returns:
            Original position or None
        """
        index = bisect_right(self._generated_keys, (line, column)) - 1
        if index < 0:
            return None
        mapping = self._by_generated[index]
        if mapping.generated_line != line or mapping.source is None:
            return None
        return OriginalPosition(
            line=mapping.original_line,
            column=mapping.original_column,
            source=mapping.source,
            name=mapping.name,
        )

    def __len__(self) -> int:
        return len(self.mappings)

