from __future__ import annotations

import asyncio
import io
import textwrap
import threading
from pathlib import Path

import pytest

from elmjs_inspector.analyzer import inspector
from elmjs_inspector.analyzer.errors import MinificationError, SourceSyntaxError
from elmjs_inspector.analyzer.extractor import marker_predicate
from elmjs_inspector.analyzer.inspector import analyse, inspect_code
from elmjs_inspector.analyzer.minifier import TerserMinifier
from elmjs_inspector.analyzer.report import ConsoleSink, emit_report
from elmjs_inspector.analyzer.sourcemap import Mapping, PositionMappingTable

ELM_OUTPUT = textwrap.dedent(
    """\
    (function(scope){
    'use strict';
    function F(arity, fun, wrapper) {
      wrapper.a = arity;
      wrapper.f = fun;
      return wrapper;
    }
    function F2(fun) {
      return F(2, fun, function(a) { return function(b) { return fun(a, b); }; });
    }
    var _List_Nil = { $: 0 };
    var _List_cons = F2(function(hd, tl) { return { $: 1, a: hd, b: tl }; });
    var $elm$core$Basics$identity = function (x) {
      return x;
    };
    var $elm$core$List$map = F2(function (f, xs) {
      return xs;
    });
    }(this));"""
)


def test_single_function_covers_whole_minified_program(make_shifted_table) -> None:
    code = "(function(){function greet(){}}());"
    minified = "function greet(){}"

    report = inspect_code(code, minified, make_shifted_table(minified, 12))

    assert [(entry.name, entry.size, entry.percentage) for entry in report.entries] == [
        ("greet", 18, "100.000%")
    ]
    assert report.total_minified_size == 18
    assert report.coverage_percentage == "100.000%"


def test_collapsed_variable_declarations_leave_separators_unattributed() -> None:
    code = "(function(){\nvar a=1;\nvar b=2;\n}());"
    minified = "var a=1,b=2;"
    table = PositionMappingTable(
        [
            Mapping(1, 0, "0", 2, 0, None),
            Mapping(1, 4, "0", 2, 4, None),
            Mapping(1, 5, "0", 2, 5, None),
            Mapping(1, 6, "0", 2, 6, None),
            Mapping(1, 7, "0", 2, 7, None),
            Mapping(1, 8, "0", 3, 4, None),
            Mapping(1, 9, "0", 3, 5, None),
            Mapping(1, 10, "0", 3, 6, None),
            Mapping(1, 11, "0", 3, 7, None),
        ]
    )

    report = inspect_code(code, minified, table)

    assert [(entry.name, entry.size) for entry in report.entries] == [("a", 3), ("b", 3)]
    assert report.attributed_size == 6
    assert report.total_minified_size == len(minified)
    assert report.coverage_percentage == "50.000%"


def test_aliasing_declaration_is_excluded() -> None:
    code = "(function(){\nvar y=1;\nvar x=y;\n}());"
    minified = "var y=1;"
    table = PositionMappingTable(
        [
            Mapping(1, 0, "0", 2, 0, None),
            Mapping(1, 4, "0", 2, 4, None),
            Mapping(1, 5, "0", 2, 5, None),
            Mapping(1, 6, "0", 2, 6, None),
            Mapping(1, 7, "0", 2, 7, None),
            # x is folded into y: its name maps past the reference it aliases
            Mapping(1, 6, "0", 3, 4, None),
            Mapping(1, 4, "0", 3, 6, None),
        ]
    )

    report = inspect_code(code, minified, table)

    assert [entry.name for entry in report.entries] == ["y"]
    assert report.attributed_size == 3
    assert report.anomalies == ()


def test_equal_sizes_keep_original_relative_order() -> None:
    code = "(function(){var first=1234;var tiny=1;var second=567;var big=1234567890123;}());"

    report = inspect_code(code)

    assert [(entry.name, entry.size) for entry in report.entries] == [
        ("big", 17),
        ("first", 10),
        ("second", 10),
        ("tiny", 6),
    ]


def test_minification_failure_aborts_the_run(tmp_path: Path, failing_terser: list[str]) -> None:
    source = tmp_path / "elm.js"
    source.write_text("(function(){var a = ;}());", encoding="utf-8")

    with pytest.raises(MinificationError):
        asyncio.run(analyse(source, terser=True, minifier=TerserMinifier(command=failing_terser)))


def test_invalid_unminified_program_aborts_the_run(tmp_path: Path) -> None:
    source = tmp_path / "elm.js"
    source.write_text("(function(){var a = ;}());", encoding="utf-8")

    with pytest.raises(SourceSyntaxError):
        asyncio.run(analyse(source))


def test_analyse_with_terser_measures_minified_output(tmp_path: Path, identity_terser: list[str]) -> None:
    source = tmp_path / "elm.js"
    source.write_text("(function(){function greet(){}var a=1;}());", encoding="utf-8")

    report = asyncio.run(analyse(source, terser=True, minifier=TerserMinifier(command=identity_terser)))

    assert [(entry.name, entry.size) for entry in report.entries] == [("greet", 18), ("a", 3)]
    assert report.total_minified_size == len("(function(){function greet(){}var a=1;}());")


def test_report_properties_hold_for_compiled_output() -> None:
    report = inspect_code(ELM_OUTPUT)

    sizes = [entry.size for entry in report.entries]
    assert all(size >= 0 for size in sizes)
    assert all(first >= second for first, second in zip(sizes, sizes[1:]))
    assert 0 <= report.attributed_size <= report.total_minified_size
    assert report.attributed_size == sum(sizes)
    assert {entry.name for entry in report.entries} == {
        "F",
        "F2",
        "_List_Nil",
        "_List_cons",
        "$elm$core$Basics$identity",
        "$elm$core$List$map",
    }


def test_relevance_predicate_limits_the_report() -> None:
    report = inspect_code(ELM_OUTPUT, relevance=marker_predicate("$"))

    assert [entry.name for entry in report.entries] == ["$elm$core$List$map", "$elm$core$Basics$identity"]


def test_pipeline_is_idempotent() -> None:
    outputs = []
    for _ in range(2):
        stream = io.StringIO()
        emit_report(inspect_code(ELM_OUTPUT), ConsoleSink(stream))
        outputs.append(stream.getvalue())

    assert outputs[0] == outputs[1]
    assert inspect_code(ELM_OUTPUT) == inspect_code(ELM_OUTPUT)


def test_minified_text_requires_a_mapping() -> None:
    with pytest.raises(ValueError):
        inspect_code("(function(){var a=1;}());", minified="var a=1;")


def test_analyse_attributes_off_the_event_loop_thread(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    source = tmp_path / "elm.js"
    source.write_text("(function(){var a=1;}());", encoding="utf-8")
    threads = []

    def recording_inspect_code(*args, **kwargs):
        threads.append(threading.get_ident())
        return inspect_code(*args, **kwargs)

    monkeypatch.setattr(inspector, "inspect_code", recording_inspect_code)

    async def run():
        return threading.get_ident(), await inspector.analyse(source)

    loop_thread, report = asyncio.run(run())

    assert [entry.name for entry in report.entries] == ["a"]
    assert threads and threads[0] != loop_thread
