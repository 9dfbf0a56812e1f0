"""Size attribution pipeline: extract, translate, attribute, rank."""

import asyncio
import logging
from pathlib import Path
from typing import Optional, Union

from .attributor import RangeAttributor
from .extractor import RelevancePredicate, extract_definitions
from .minifier import TerserMinifier
from .models import Report
from .parser import JavaScriptParser
from .report import build_report
from .sourcemap import PositionMappingTable
from .translator import PositionTranslator

logger = logging.getLogger(__name__)


def inspect_code(
    code: str,
    minified: Optional[str] = None,
    mapping: Optional[PositionMappingTable] = None,
    relevance: Optional[RelevancePredicate] = None,
    strict: bool = False,
    parser: Optional[JavaScriptParser] = None,
) -> Report:
    """Attribute the size of a (minified) program to its top-level definitions.

    Args:
        code: Unminified program text
        minified: Minified program text; None measures ``code`` itself
        mapping: Position mapping from ``code`` to ``minified``
        relevance: Predicate selecting which definition names to report
        strict: Abort on inconsistent ranges instead of dropping them
        parser: Parser to reuse (a new one is created when None)

    Returns:
        Ranked size report

    Raises:
        SourceSyntaxError: If either program text does not parse
        InconsistentRangeError: In strict mode, on the first inconsistent range
    """
    if minified is not None and mapping is None:
        raise ValueError("A mapping table is required to attribute minified code")

    parser = parser or JavaScriptParser()

    logger.info("Parsing code")
    program = parser.parse(code)
    measured = parser.parse(minified) if minified is not None else program

    translator = PositionTranslator(code, minified, mapping)
    attributor = RangeAttributor(translator, strict=strict)

    attributed = []
    definitions = 0
    for definition in extract_definitions(program, relevance):
        definitions += 1
        result = attributor.attribute(definition)
        if result is not None:
            attributed.append(result)

    logger.info(
        f"Attributed {len(attributed)} of {definitions} definitions "
        f"({attributor.unmapped} unmapped, {attributor.aliased} aliases, "
        f"{len(attributor.anomalies)} anomalies)"
    )

    logger.info("Sorting")
    return build_report(attributed, measured.size, attributor.anomalies)


async def analyse(
    path: Union[str, Path],
    terser: bool = False,
    minifier: Optional[TerserMinifier] = None,
    relevance: Optional[RelevancePredicate] = None,
    strict: bool = False,
) -> Report:
    """Analyse a compiled JavaScript file.

    Args:
        path: Path to the unminified program
        terser: Minify with terser before measuring
        minifier: Minifier to use when ``terser`` is set (default TerserMinifier())
        relevance: Predicate selecting which definition names to report
        strict: Abort on inconsistent ranges instead of dropping them

    Returns:
        Ranked size report
    """
    code = await asyncio.to_thread(Path(path).read_text, encoding="utf-8")
    logger.info(f"Read {len(code)} characters from {path}")

    if not terser:
        return await asyncio.to_thread(inspect_code, code, relevance=relevance, strict=strict)

    minifier = minifier or TerserMinifier()
    output = await minifier.minify(code)
    return await asyncio.to_thread(
        inspect_code,
        code,
        minified=output.code,
        mapping=output.mapping,
        relevance=relevance,
        strict=strict,
    )
