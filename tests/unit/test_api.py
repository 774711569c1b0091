"""Tests for the composable API functions in floated_binding.api."""

import sys

import pytest

from floated_binding.api import (
    SourceTooLargeError,
    float_file,
    float_source,
    float_source_with_stats,
    float_tree,
    parse_source,
    read_source,
    recursion_headroom,
)
from floated_binding.nodes import Program
from floated_binding.parser import ParseError
from floated_binding.run_types import FloatConfig, FloatOutcome, TransformStats

CURRIED_SOURCE = """\
function main(x) {
  return function (y) {
    return function (z) {
      return add(x)(y) + z;
    };
  };
}
"""


class TestParseSource:
    def test_returns_program(self):
        assert isinstance(parse_source("f(a);"), Program)

    def test_syntax_error(self):
        with pytest.raises(ParseError):
            parse_source("function (")


class TestFloatTree:
    def test_mutates_program_in_place(self):
        program = parse_source(CURRIED_SOURCE)
        stats = float_tree(program)
        assert isinstance(stats, TransformStats)
        assert stats.floated == 1
        assert program.body[0].id.name == "floatedBinding"


class TestFloatSource:
    def test_returns_string_without_trailing_newline(self):
        result = float_source(CURRIED_SOURCE)
        assert isinstance(result, str)
        assert not result.endswith("\n")
        assert "add_y__fb" in result

    def test_helper_is_always_present(self):
        assert float_source("f(a);").startswith("function floatedBinding(init) {")

    def test_custom_accessor_suffix(self):
        config = FloatConfig(accessor_suffix="$memo")
        assert "add_y$memo()" in float_source(CURRIED_SOURCE, config)


class TestFloatSourceWithStats:
    def test_stats_are_filled(self):
        _, stats = float_source_with_stats(CURRIED_SOURCE)
        assert stats.source_lines == 7
        assert stats.source_bytes == len(CURRIED_SOURCE.encode("utf-8"))
        assert stats.helper_injected
        assert stats.outcomes[FloatOutcome.FLOATED] == 1
        assert stats.parse_time >= 0 and stats.print_time >= 0

    def test_report_lists_every_outcome(self):
        _, stats = float_source_with_stats(CURRIED_SOURCE)
        report = stats.report()
        assert "Floating Statistics" in report
        for outcome in FloatOutcome:
            assert outcome.value in report

    def test_records_serialise_to_json(self):
        _, stats = float_source_with_stats(CURRIED_SOURCE)
        dumped = stats.records[0].model_dump(mode="json")
        assert dumped["name"] == "add_y__fb"
        assert dumped["loc"]["start_line"] == 4

    def test_dynamic_unit_returned_verbatim(self):
        source = "function f(a) { with (a) { b; } }\n"
        code, stats = float_source_with_stats(source)
        assert code == source
        assert stats.skipped_reason.startswith("with statement")
        assert "Skipped" in stats.report()


class TestReadSource:
    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError, match="File not found"):
            read_source(tmp_path / "missing.js")

    def test_directory_is_not_a_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_source(tmp_path)

    def test_too_large(self, tmp_path):
        path = tmp_path / "big.js"
        path.write_text("f(a);\n" * 10, encoding="utf-8")
        with pytest.raises(SourceTooLargeError) as excinfo:
            read_source(path, max_bytes=10)
        assert excinfo.value.size == 60
        assert excinfo.value.limit == 10
        assert "File too large" in str(excinfo.value)

    def test_reads_text(self, tmp_path):
        path = tmp_path / "ok.js"
        path.write_text("f(a);\n", encoding="utf-8")
        assert read_source(path) == "f(a);\n"


class TestFloatFile:
    def test_does_not_touch_file_by_default(self, tmp_path):
        path = tmp_path / "in.js"
        path.write_text(CURRIED_SOURCE, encoding="utf-8")
        code, _ = float_file(path)
        assert "add_y__fb" in code
        assert path.read_text(encoding="utf-8") == CURRIED_SOURCE

    def test_in_place_rewrites_with_newline(self, tmp_path):
        path = tmp_path / "in.js"
        path.write_text(CURRIED_SOURCE, encoding="utf-8")
        code, _ = float_file(path, in_place=True)
        assert path.read_text(encoding="utf-8") == code + "\n"

    def test_in_place_skips_dynamic_unit(self, tmp_path):
        path = tmp_path / "in.js"
        source = "eval('x');\n"
        path.write_text(source, encoding="utf-8")
        _, stats = float_file(path, in_place=True)
        assert stats.skipped_reason
        assert path.read_text(encoding="utf-8") == source

    def test_size_limit_comes_from_config(self, tmp_path):
        path = tmp_path / "in.js"
        path.write_text(CURRIED_SOURCE, encoding="utf-8")
        with pytest.raises(SourceTooLargeError):
            float_file(path, config=FloatConfig(max_input_bytes=8))


class TestDeepNesting:
    def test_long_curried_chain_floats(self):
        chain = "f" + "(x)" * 300
        source = (
            "function main(x) {\n"
            "  return function (y) {\n"
            f"    return {chain}(y);\n"
            "  };\n"
            "}\n"
        )
        code, stats = float_source_with_stats(source)
        assert stats.floated == 1
        assert f"const fb_x__fb = floatedBinding(() => {chain});" in code
        assert "return fb_x__fb()(y);" in code

    def test_long_operator_run(self):
        expression = " + ".join(["x"] * 300)
        assert float_source(f"var a = {expression};").endswith(
            f"var a = {expression};"
        )

    def test_recursion_limit_is_restored(self):
        before = sys.getrecursionlimit()
        float_source(CURRIED_SOURCE)
        assert sys.getrecursionlimit() == before

    def test_headroom_never_lowers_the_limit(self):
        before = sys.getrecursionlimit()
        with recursion_headroom(limit=10):
            assert sys.getrecursionlimit() == before
        assert sys.getrecursionlimit() == before
