"""Configuration from environment variables."""

import os
from pathlib import Path
from typing import Any, Dict, Optional

from .analyzer.extractor import RelevancePredicate, marker_predicate, pattern_predicate
from .analyzer.minifier import MinifierConfig, TerserMinifier

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


def get_env_config() -> Dict[str, Any]:
    """Get configuration from environment variables."""
    output_path = os.getenv("MINIFIED_OUTPUT_PATH")
    return {
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
        "terser_bin": os.getenv("TERSER_BIN", "terser"),
        "terser_passes": int(os.getenv("TERSER_PASSES", "2")),
        "preserve_names": _flag("PRESERVE_NAMES"),
        "aggressiveness": os.getenv("AGGRESSIVENESS", "unsafe"),
        "minified_output_path": Path(output_path) if output_path else None,
        "name_marker": os.getenv("NAME_MARKER") or None,
        "name_pattern": os.getenv("NAME_PATTERN") or None,
        "strict_ranges": _flag("STRICT_RANGES"),
    }


def build_minifier(config: Dict[str, Any]) -> TerserMinifier:
    """Create a terser minifier from an env config dictionary."""
    return TerserMinifier(
        command=config["terser_bin"],
        config=MinifierConfig(
            passes=config["terser_passes"],
            preserve_names=config["preserve_names"],
            aggressiveness=config["aggressiveness"],
            output_path=config["minified_output_path"],
        ),
    )


def build_relevance(
    name_marker: Optional[str] = None, name_pattern: Optional[str] = None
) -> Optional[RelevancePredicate]:
    """Combine the configured name filters into one predicate (None keeps everything)."""
    predicates = []
    if name_marker:
        predicates.append(marker_predicate(name_marker))
    if name_pattern:
        predicates.append(pattern_predicate(name_pattern))

    if not predicates:
        return None
    return lambda name: all(predicate(name) for predicate in predicates)
