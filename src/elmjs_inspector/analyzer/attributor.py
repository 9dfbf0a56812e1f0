"""Attribute minified ranges to definitions."""

import json
import logging
from typing import Any, Dict, List, Optional

from .errors import InconsistentRangeError
from .models import AttributedRange, Boundary, Definition, InconsistentRange
from .translator import PositionTranslator

logger = logging.getLogger(__name__)


class RangeAttributor:
    """Map definition ranges into the minified text and discard degenerate ones."""

    def __init__(self, translator: PositionTranslator, strict: bool = False):
        """Initialize range attributor.

        Args:
            translator: Offset translator for this run
            strict: Raise InconsistentRangeError instead of dropping a
                definition whose range turns negative across lines
        """
        self.translator = translator
        self.strict = strict
        self.anomalies: List[InconsistentRange] = []
        self.unmapped = 0
        self.aliased = 0

    def attribute(self, definition: Definition) -> Optional[AttributedRange]:
        """Translate a definition's range into the minified text.

        Args:
            definition: Definition to attribute

        Returns:
            Attributed range, or None when the definition is unmapped, is a
            pure alias, or maps inconsistently
        """
        start = self.translator.translate(definition.start, Boundary.LEFT)
        end = self.translator.translate(definition.end, Boundary.RIGHT)

        if start is None or end is None:
            self.unmapped += 1
            logger.debug(f"Dropping {definition.name}: removed by minification")
            return None

        if end >= start:
            return AttributedRange(definition=definition, minified_start=start, minified_end=end)

        start_line, _ = self.translator.generated_line_column(start)
        end_line, _ = self.translator.generated_line_column(end)
        if start_line == end_line:
            self.aliased += 1
            logger.debug(f"Dropping {definition.name}: aliasing declaration with no own code")
            return None

        anomaly = self._diagnose(definition, start, end)
        if self.strict:
            raise InconsistentRangeError(anomaly)

        self.anomalies.append(anomaly)
        logger.warning(f"Invalid negative range, dropping definition: {json.dumps(anomaly.to_dict())}")
        return None

    def _diagnose(self, definition: Definition, start: int, end: int) -> InconsistentRange:
        endpoints = [
            self._describe_endpoint(definition.start, Boundary.LEFT),
            self._describe_endpoint(definition.end, Boundary.RIGHT),
        ]
        return InconsistentRange(
            name=definition.name,
            source_range=definition.source_range,
            minified_range=(start, end),
            endpoints=endpoints,
        )

    def _describe_endpoint(self, offset: int, boundary: Boundary) -> Dict[str, Any]:
        line, column = self.translator.line_column(offset)
        description: Dict[str, Any] = {"boundary": boundary.value, "line": line, "column": column}

        mapping = self.translator.mapping
        if mapping is None:
            return description

        lookup_offset = offset - 1 if boundary is Boundary.RIGHT and offset > 0 else offset
        lookup_line, lookup_column = self.translator.line_column(lookup_offset)
        generated = mapping.lookup_generated_position(lookup_line, lookup_column)
        description["mapped"] = None
        description["remapped"] = None
        if generated is not None:
            description["mapped"] = {"line": generated.line, "column": generated.column}
            original = mapping.lookup_original_position(generated.line, generated.column)
            if original is not None:
                description["remapped"] = {"line": original.line, "column": original.column}
        return description
