"""MCP tool for attributing bundle size to top-level definitions."""

import logging
import re
from pathlib import Path
from typing import Optional

from ..analyzer.errors import InspectorError
from ..analyzer.inspector import analyse
from ..analyzer.minifier import TerserMinifier
from ..analyzer.report import LoggingSink, emit_report
from ..config import build_relevance

logger = logging.getLogger(__name__)


class SizeTool:
    """Tool for ranking definitions by their share of the minified bundle."""

    def __init__(self, minifier: TerserMinifier, strict: bool = False):
        """Initialize size tool.

        Args:
            minifier: Minifier used when a report is requested with terser
            strict: Abort on inconsistent ranges instead of dropping them
        """
        self.minifier = minifier
        self.strict = strict

    async def analyze_bundle(
        self,
        file_path: str,
        terser: bool = False,
        name_marker: Optional[str] = None,
        name_pattern: Optional[str] = None,
        limit: Optional[int] = 50,
    ) -> dict:
        """Produce a size report for a compiled JavaScript file.

        Args:
            file_path: Path to the unminified program
            terser: Minify with terser before measuring
            name_marker: Only report names containing this substring
            name_pattern: Only report names matching this regular expression
            limit: Maximum number of entries to return (None for all)

        Returns:
            Dictionary with ranked entries and coverage totals
        """
        if not Path(file_path).is_file():
            return {"success": False, "error": f"File not found: {file_path}"}

        try:
            logger.info(f"Analyzing bundle size of: {file_path}")

            report = await analyse(
                file_path,
                terser=terser,
                minifier=self.minifier,
                relevance=build_relevance(name_marker, name_pattern),
                strict=self.strict,
            )

            emit_report(report, LoggingSink(level=logging.DEBUG), limit=limit)

            result = {"success": True, "file_path": file_path, "minified": terser}
            result.update(report.to_dict(limit=limit))
            return result

        except (InspectorError, re.error) as e:
            logger.error(f"Error analyzing {file_path}: {e}")
            return {"success": False, "error": str(e), "error_type": type(e).__name__}
        except Exception as e:
            logger.error(f"Unexpected error analyzing {file_path}: {e}")
            return {"success": False, "error": str(e), "error_type": type(e).__name__}
