"""JavaScript parsing with tree-sitter, exposing character-offset ranges."""

import logging
import re
from bisect import bisect_right
from typing import Any, List, Optional, Tuple

import tree_sitter_javascript as tsjavascript
from tree_sitter import Language, Parser

from .errors import SourceSyntaxError

logger = logging.getLogger(__name__)

_NON_ASCII = re.compile(r"[^\x00-\x7f]")


class _OffsetIndex:
    """Converts UTF-8 byte offsets reported by tree-sitter into str offsets."""

    def __init__(self, text: str):
        self._byte_ends: List[int] = []
        self._extra: List[int] = [0]
        if text.isascii():
            return

        extra = 0
        for match in _NON_ASCII.finditer(text):
            width = len(match.group().encode("utf-8"))
            self._byte_ends.append(match.start() + extra + width)
            extra += width - 1
            self._extra.append(extra)

    def to_char(self, byte_offset: int) -> int:
        # Number of multi-byte characters that end at or before byte_offset
        passed = bisect_right(self._byte_ends, byte_offset)
        return byte_offset - self._extra[passed]


class ParsedProgram:
    """A parsed program text whose node ranges are expressed in characters."""

    def __init__(self, text: str, tree: Any):
        self.text = text
        self.tree = tree
        self.root = tree.root_node
        self._offsets = _OffsetIndex(text)

    def node_range(self, node: Any) -> Tuple[int, int]:
        """Get the half-open character range of a node.

        Args:
            node: Tree-sitter node belonging to this program

        Returns:
            (start, end) character offsets into ``text``
        """
        return (
            self._offsets.to_char(node.start_byte),
            self._offsets.to_char(node.end_byte),
        )

    def node_text(self, node: Any) -> str:
        start, end = self.node_range(node)
        return self.text[start:end]

    @property
    def extent(self) -> Tuple[int, int]:
        """Character range covered by the whole program."""
        return self.node_range(self.root)

    @property
    def size(self) -> int:
        start, end = self.extent
        return end - start


class JavaScriptParser:
    """Parse JavaScript source into tree-sitter syntax trees."""

    def __init__(self):
        """Initialize the tree-sitter JavaScript language and parser."""
        self.language = Language(tsjavascript.language())
        self.parser = Parser()
        self.parser.language = self.language
        logger.debug("Initialized parser for javascript")

    def parse(self, text: str) -> ParsedProgram:
        """Parse program text.

        Args:
            text: JavaScript source

        Returns:
            Parsed program

        Raises:
            SourceSyntaxError: If the text is not syntactically valid
        """
        tree = self.parser.parse(text.encode("utf-8"))
        program = ParsedProgram(text, tree)

        if program.root.has_error:
            error_node = self._find_error_node(program.root)
            if error_node is None:
                raise SourceSyntaxError("Invalid JavaScript")
            row, byte_column = error_node.start_point
            line_start = error_node.start_byte - byte_column
            column = program._offsets.to_char(error_node.start_byte) - program._offsets.to_char(line_start)
            kind = "Missing token" if error_node.is_missing else "Unexpected token"
            raise SourceSyntaxError(kind, line=row + 1, column=column)

        logger.debug(f"Parsed {len(text)} characters into {program.root.type}")
        return program

    def _find_error_node(self, node: Any) -> Optional[Any]:
        """Find the first ERROR or missing node in document order.

        Args:
            node: Root node to search from

        Returns:
            Offending node or None
        """
        if node.type == "ERROR" or node.is_missing:
            return node

        for child in node.children:
            if child.has_error or child.is_missing:
                found = self._find_error_node(child)
                if found is not None:
                    return found

        return None
