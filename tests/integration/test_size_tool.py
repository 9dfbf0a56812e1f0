from __future__ import annotations

import asyncio
import logging
from pathlib import Path

import pytest

from elmjs_inspector.analyzer.minifier import TerserMinifier
from elmjs_inspector.tools.size_tool import SizeTool

CODE = "(function(){var $elm$core$Basics$identity=function(x){return x;};var _List_Nil={$:0};}());"


def _write_bundle(tmp_path: Path) -> Path:
    path = tmp_path / "elm.js"
    path.write_text(CODE, encoding="utf-8")
    return path


def test_analyze_bundle_returns_ranked_entries(tmp_path: Path, identity_terser: list[str]) -> None:
    tool = SizeTool(TerserMinifier(command=identity_terser))

    result = asyncio.run(tool.analyze_bundle(str(_write_bundle(tmp_path)), terser=True))

    assert result["success"] is True
    assert result["minified"] is True
    assert [entry["name"] for entry in result["entries"]] == ["$elm$core$Basics$identity", "_List_Nil"]
    assert result["total_minified_size"] == len(CODE)
    assert result["anomalies"] == []


def test_analyze_bundle_applies_name_filters_and_limit(tmp_path: Path, identity_terser: list[str]) -> None:
    tool = SizeTool(TerserMinifier(command=identity_terser))
    path = str(_write_bundle(tmp_path))

    marked = asyncio.run(tool.analyze_bundle(path, name_marker="$elm$"))
    assert [entry["name"] for entry in marked["entries"]] == ["$elm$core$Basics$identity"]

    limited = asyncio.run(tool.analyze_bundle(path, limit=1))
    assert len(limited["entries"]) == 1
    assert limited["total_entries"] == 2


def test_analyze_bundle_reports_failures(tmp_path: Path, failing_terser: list[str]) -> None:
    tool = SizeTool(TerserMinifier(command=failing_terser))

    missing = asyncio.run(tool.analyze_bundle(str(tmp_path / "missing.js")))
    assert missing["success"] is False
    assert "File not found" in missing["error"]

    failed = asyncio.run(tool.analyze_bundle(str(_write_bundle(tmp_path)), terser=True))
    assert failed["success"] is False
    assert failed["error_type"] == "MinificationError"

    bad_pattern = asyncio.run(tool.analyze_bundle(str(_write_bundle(tmp_path)), name_pattern="("))
    assert bad_pattern["success"] is False


def test_analyze_bundle_reports_undecodable_input(tmp_path: Path, identity_terser: list[str]) -> None:
    path = tmp_path / "elm.js"
    path.write_bytes(b"(function(){var a='\xe9';}());")
    tool = SizeTool(TerserMinifier(command=identity_terser))

    result = asyncio.run(tool.analyze_bundle(str(path)))

    assert result["success"] is False
    assert result["error_type"] == "UnicodeDecodeError"


def test_analyze_bundle_logs_ranked_entries(
    tmp_path: Path, identity_terser: list[str], caplog: pytest.LogCaptureFixture
) -> None:
    tool = SizeTool(TerserMinifier(command=identity_terser))

    with caplog.at_level(logging.DEBUG, logger="elmjs_inspector.analyzer.report"):
        asyncio.run(tool.analyze_bundle(str(_write_bundle(tmp_path)), limit=1))

    assert "$elm$core$Basics$identity (" in caplog.text
    assert "_List_Nil (" not in caplog.text
    assert "Range sum:" in caplog.text
