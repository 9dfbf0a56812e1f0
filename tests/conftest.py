from __future__ import annotations

import sys
import textwrap
from pathlib import Path

import pytest

from elmjs_inspector.analyzer.parser import JavaScriptParser
from elmjs_inspector.analyzer.sourcemap import Mapping, PositionMappingTable

# Copies a single-line input unchanged and writes a per-character identity map.
_IDENTITY_TERSER = textwrap.dedent(
    """
    import json
    import sys

    args = sys.argv[1:]
    with open(args[0], encoding="utf-8") as f:
        source = f.read()
    output = args[args.index("-o") + 1]
    with open(output, "w", encoding="utf-8") as f:
        f.write(source + "\\n//# sourceMappingURL=output.js.map")
    segments = ["AAAA"] + ["CAAC"] * (len(source) - 1)
    with open(output + ".map", "w", encoding="utf-8") as f:
        json.dump({"version": 3, "sources": ["0"], "names": [], "mappings": ",".join(segments)}, f)
    """
)

_FAILING_TERSER = "import sys; sys.stderr.write('Parse error: Unexpected token'); sys.exit(1)"


@pytest.fixture(scope="session")
def parser() -> JavaScriptParser:
    return JavaScriptParser()


@pytest.fixture
def identity_terser(tmp_path: Path) -> list[str]:
    script = tmp_path / "fake_terser.py"
    script.write_text(_IDENTITY_TERSER, encoding="utf-8")
    return [sys.executable, str(script)]


@pytest.fixture
def failing_terser() -> list[str]:
    return [sys.executable, "-c", _FAILING_TERSER]


def shifted_table(minified: str, shift: int) -> PositionMappingTable:
    """Table for single-line code whose minified form is ``code[shift:]`` truncated."""
    identity = PositionMappingTable.identity(minified)
    return PositionMappingTable(
        Mapping(m.generated_line, m.generated_column, "0", 1, m.original_column + shift, None)
        for m in identity.mappings
    )


@pytest.fixture
def make_shifted_table():
    return shifted_table
