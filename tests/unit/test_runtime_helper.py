"""Tests for the runtime helper: construction, detection and injection."""

from __future__ import annotations

import shutil
import subprocess

import pytest

from floated_binding.api import float_source, parse_source
from floated_binding.nodes import FunctionDeclaration, Identifier, walk
from floated_binding.printer import print_code
from floated_binding.run_types import FloatConfig, RunState
from floated_binding.runtime_helper import (
    allocate_helper_name,
    build_accessor_call,
    build_floated_declaration,
    build_helper,
    ensure_helper,
    find_existing_helper,
    is_helper_call,
)
from floated_binding.scope import analyze_scopes

HELPER_TEXT = (
    "function floatedBinding(init) {\n"
    "  let get = () => {\n"
    "    const v = init();\n"
    "    get = () => v;\n"
    "    return v;\n"
    "  };\n"
    "  return () => get();\n"
    "}"
)


def _run_node(code: str) -> str:
    result = subprocess.run(
        ["node", "-e", code], capture_output=True, text=True, check=True
    )
    return result.stdout.strip()


def _state(source: str, config: FloatConfig | None = None):
    program = parse_source(source)
    state = RunState(config=config or FloatConfig(), table=analyze_scopes(program))
    return program, state


class TestBuilders:
    def test_helper_text(self):
        assert print_code(build_helper("floatedBinding")) == HELPER_TEXT

    def test_floated_declaration(self):
        decl = build_floated_declaration("xy__fb", "floatedBinding", Identifier("x"))
        assert print_code(decl) == "const xy__fb = floatedBinding(() => x);"

    def test_accessor_call(self):
        assert print_code(build_accessor_call("xy__fb")) == "xy__fb()"


class TestHelperRecognition:
    def test_existing_helper_is_found(self):
        program, state = _state(HELPER_TEXT + "\nf();")
        assert find_existing_helper(program, state) is program.body[0]

    def test_comments_do_not_prevent_recognition(self):
        program, state = _state("// memo\n" + HELPER_TEXT)
        assert find_existing_helper(program, state) is program.body[0]

    def test_numbered_helper_is_found(self):
        source = HELPER_TEXT.replace("floatedBinding", "floatedBinding_1")
        program, state = _state(source)
        assert find_existing_helper(program, state) is program.body[0]

    def test_same_name_different_body_is_not_the_helper(self):
        program, state = _state("function floatedBinding(init) { return init; }")
        assert find_existing_helper(program, state) is None

    def test_is_helper_call_requires_known_name(self):
        program, state = _state("floatedBinding(() => 1);")
        call = program.body[0].expression
        assert not is_helper_call(call, state)
        state.helper_name = "floatedBinding"
        assert is_helper_call(call, state)


class TestEnsureHelper:
    def test_injects_at_program_anchor(self):
        program, state = _state("'use strict';\nf(a);")
        name = ensure_helper(program, state)
        assert name == "floatedBinding"
        helper = program.body[1]
        assert isinstance(helper, FunctionDeclaration)
        assert all(state.is_generated(n) for n in walk(helper))
        assert state.stats.helper_injected
        assert not state.stats.helper_reused

    def test_reuses_existing_helper(self):
        program, state = _state(HELPER_TEXT + "\nf(a);")
        ensure_helper(program, state)
        assert len(program.body) == 2
        assert state.stats.helper_reused
        assert state.is_generated(program.body[0])

    def test_name_collision_picks_numbered_name(self):
        program, state = _state("var floatedBinding = 1;")
        assert ensure_helper(program, state) == "floatedBinding_1"
        assert program.body[0].id.name == "floatedBinding_1"

    def test_allocate_avoids_globals_and_reservations(self):
        program, state = _state("floatedBinding;")
        assert allocate_helper_name(state.table.program, state) == "floatedBinding_1"
        assert allocate_helper_name(state.table.program, state) == "floatedBinding_2"

    def test_nested_binding_takes_the_name(self):
        program, state = _state("function main(floatedBinding) { return floatedBinding; }")
        assert allocate_helper_name(state.table.program, state) == "floatedBinding_1"

    def test_shadowing_parameter_does_not_capture_hoists(self):
        source = (
            "function main(floatedBinding) {"
            " return function (y) {"
            " return function (z) { return add(floatedBinding)(y) + z; }; }; }"
        )
        code = float_source(source)
        assert code.startswith("function floatedBinding_1(init) {")
        assert (
            "const add_y__fb = floatedBinding_1(() => add(floatedBinding)(y));" in code
        )

    def test_configured_base_name(self):
        program, state = _state("f(a);", FloatConfig(helper_base_name="memo"))
        assert ensure_helper(program, state) == "memo"
        assert print_code(program).startswith("function memo(init) {")


@pytest.mark.skipif(shutil.which("node") is None, reason="node is not installed")
class TestHelperAtRuntime:
    def test_producer_runs_once(self):
        script = HELPER_TEXT + (
            "\nlet n = 0;"
            "\nconst read = floatedBinding(() => { n += 1; return { n }; });"
            "\nconsole.log(JSON.stringify([read() === read(), read().n, n]));"
        )
        assert _run_node(script) == "[true,1,1]"

    def test_transformed_closure_shares_one_evaluation(self):
        source = (
            "let calls = 0;\n"
            "function produce(a) {\n"
            "  calls += 1;\n"
            "  return a * 2;\n"
            "}\n"
            "function outer(a) {\n"
            "  return function (b) {\n"
            "    return produce(a) + b;\n"
            "  };\n"
            "}\n"
            "const inner = outer(3);\n"
            "console.log(JSON.stringify([inner(1), inner(2), inner(3), calls]));\n"
        )
        code = float_source(source)
        assert "produce_a__fb()" in code
        assert _run_node(code) == "[7,8,9,1]"
