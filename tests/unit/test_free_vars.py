"""Tests for the free-variable collector."""

from __future__ import annotations

from floated_binding.api import parse_source
from floated_binding.free_vars import free_vars
from floated_binding.nodes import ReturnStatement, VariableDeclaration
from floated_binding.scope import analyze_scopes


def _returned(source: str) -> list[str]:
    """Free variables of the expression returned by the first function."""
    program = parse_source(source)
    table = analyze_scopes(program)
    ret = program.body[0].body.body[-1]
    assert isinstance(ret, ReturnStatement)
    return free_vars(ret.argument, table)


class TestFreeVars:
    def test_curried_call(self):
        assert _returned("function f(x, y) { return add(x)(y); }") == ["add", "x", "y"]

    def test_order_is_first_occurrence_without_duplicates(self):
        assert _returned("function f(a, b) { return g(b, a, b); }") == ["g", "b", "a"]

    def test_property_names_are_not_free(self):
        assert _returned("function f(o) { return o.p + { k: 1 }.k; }") == ["o"]

    def test_computed_member_is_free(self):
        assert _returned("function f(o, k) { return o[k]; }") == ["o", "k"]

    def test_names_bound_inside_are_excluded(self):
        source = "function f(y) { return (x) => { const z = x; return z + y; }; }"
        assert _returned(source) == ["y"]

    def test_nested_function_parameters_shadow(self):
        assert _returned("function f(x) { return function (x) { return x; }; }") == []

    def test_globals_are_free(self):
        assert _returned("function f() { return Math.max(n, 1); }") == ["Math", "n"]

    def test_opaque_references_are_included(self):
        source = "function f(base) { return g(class extends base {}); }"
        assert _returned(source) == ["g", "base"]

    def test_literal_has_no_free_variables(self):
        assert _returned("function f() { return 42; }") == []

    def test_declarator_name_is_not_excluded(self):
        program = parse_source("function f(y) { var x = x || y; }")
        table = analyze_scopes(program)
        decl = program.body[0].body.body[0]
        assert isinstance(decl, VariableDeclaration)
        assert free_vars(decl.declarations[0].init, table) == ["x", "y"]
