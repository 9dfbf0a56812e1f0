#!/usr/bin/env python3
"""Standalone analyzer script - prints the size report of an elm.js file and exits."""

import argparse
import asyncio
import logging
import os
import re
import sys

from elmjs_inspector.analyzer.errors import InspectorError
from elmjs_inspector.analyzer.inspector import analyse
from elmjs_inspector.analyzer.report import ConsoleSink, emit_report
from elmjs_inspector.config import build_minifier, build_relevance, get_env_config

# Setup logging
logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)
logger = logging.getLogger(__name__)


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="elmjs-inspector",
        description="Analyse your elm.js file size with this tool.",
    )
    parser.add_argument("filename", help="The file to analyze")
    parser.add_argument(
        "-t",
        "--terser",
        action="store_true",
        help="Run terser on the file before calculating the scores",
    )
    parser.add_argument("--limit", type=int, default=None, help="Only print the N largest definitions")
    return parser.parse_args(argv)


async def main(argv=None) -> int:
    """Main analyzer function."""
    args = parse_args(argv)

    try:
        config = get_env_config()
        logger.info(f"Analyzing: {args.filename}")
        logger.info(f"Terser: {args.terser}")

        report = await analyse(
            args.filename,
            terser=args.terser,
            minifier=build_minifier(config),
            relevance=build_relevance(config["name_marker"], config["name_pattern"]),
            strict=config["strict_ranges"],
        )
        emit_report(report, ConsoleSink(sys.stdout), limit=args.limit)

        if report.anomalies:
            logger.warning(f"{len(report.anomalies)} definitions had inconsistent ranges and were skipped")
        return 0

    except FileNotFoundError as e:
        logger.error(f"File not found: {e.filename}")
        return 1
    except (ValueError, re.error) as e:
        logger.error(f"Invalid input or configuration: {e}")
        return 1
    except InspectorError as e:
        logger.error(f"Analysis failed: {e}")
        return 1


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
