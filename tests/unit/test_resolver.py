"""Tests for the scope resolver — how far a candidate may float."""

from __future__ import annotations

from floated_binding.api import parse_source
from floated_binding.nodes import FUNCTION_TYPES, Program, walk
from floated_binding.resolver import is_resolvable, next_function_scope, resolve
from floated_binding.scope import LexicalScope, ScopeKind, ScopeTable, analyze_scopes


def _analyze(source: str) -> tuple[Program, ScopeTable, list[LexicalScope]]:
    program = parse_source(source)
    table = analyze_scopes(program)
    functions = [table.scope_for(n) for n in walk(program) if isinstance(n, FUNCTION_TYPES)]
    return program, table, functions


CURRIED = (
    "function main(x) { return function (y) { return function (z) {"
    " return add(x)(y) + z; }; }; }"
)


class TestResolve:
    def test_widens_to_outermost_visible_function(self):
        _, _, (main, middle, inner) = _analyze(CURRIED)
        assert resolve(["add", "x", "y"], inner) is middle
        assert resolve(["add", "x"], inner) is main

    def test_globals_only_reach_program(self):
        _, table, (_, _, inner) = _analyze(CURRIED)
        assert resolve(["add"], inner) is table.program

    def test_no_free_variables_reach_program(self):
        _, table, (_, _, inner) = _analyze(CURRIED)
        assert resolve([], inner) is table.program

    def test_use_site_function_is_the_floor(self):
        _, _, (_, _, inner) = _analyze(CURRIED)
        assert resolve(["z"], inner) is inner

    def test_unknown_name_is_unresolved(self):
        _, _, (_, _, inner) = _analyze(CURRIED)
        assert resolve(["add", "nowhere"], inner) is None

    def test_use_scope_inside_block(self):
        source = "function f(a) { return function (b) { if (b) { let c = 1; g(a)(c); } }; }"
        _, table, (outer, inner) = _analyze(source)
        block = next(
            s
            for s in table.scopes.values()
            if s.kind == ScopeKind.BLOCK and s.parent is inner
        )
        assert resolve(["g", "a"], block) is outer
        assert resolve(["g", "c"], block) is inner

    def test_shadowing_declaration_blocks_widening(self):
        source = (
            "function f(x) { return function (y) { var x = y;"
            " return function (z) { return g(x)(z); }; }; }"
        )
        _, _, (outer, middle, inner) = _analyze(source)
        assert resolve(["g", "x"], inner) is middle

    def test_shadowing_a_global_blocks_widening(self):
        source = (
            "function f() { return function (y) { let g = y;"
            " return function (z) { return g(z); }; }; } g;"
        )
        _, _, (_, middle, inner) = _analyze(source)
        assert resolve(["g"], inner) is middle


    def test_shadowing_parameter_stops_at_its_function(self):
        source = (
            "function f(x) { return function (x) {"
            " return function (z) { return g(x)(z); }; }; }"
        )
        _, _, (_, middle, inner) = _analyze(source)
        assert resolve(["g", "x"], inner) is middle

class TestHelpers:
    def test_is_resolvable(self):
        _, _, (_, _, inner) = _analyze(CURRIED)
        assert is_resolvable("x", inner)
        assert is_resolvable("add", inner)
        assert not is_resolvable("nowhere", inner)

    def test_next_function_scope_skips_blocks(self):
        source = "function f() { { const g = () => 1; } }"
        _, table, (outer, arrow) = _analyze(source)
        assert next_function_scope(arrow) is outer
        assert next_function_scope(outer) is table.program
        assert next_function_scope(table.program) is None
