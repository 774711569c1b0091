"""Tests for the name allocator."""

from __future__ import annotations

from floated_binding.api import parse_source
from floated_binding.names import allocate, derive_base_from_call, is_taken, sanitize_base
from floated_binding.nodes import (
    FUNCTION_TYPES,
    CallExpression,
    ExpressionStatement,
    Identifier,
    walk,
)
from floated_binding.run_types import FloatConfig, RunState
from floated_binding.scope import analyze_scopes


def _call(source: str) -> CallExpression:
    stmt = parse_source(source).body[0]
    assert isinstance(stmt, ExpressionStatement)
    return stmt.expression


def _state_and_functions(source: str):
    program = parse_source(source)
    table = analyze_scopes(program)
    state = RunState(config=FloatConfig(), table=table)
    functions = [table.scope_for(n) for n in walk(program) if isinstance(n, FUNCTION_TYPES)]
    return state, functions


class TestDeriveBase:
    def test_curried_call_uses_inner_callee_and_outer_arguments(self):
        assert derive_base_from_call(_call("add(x)(y);")) == "add_y"

    def test_plain_call_joins_identifier_arguments(self):
        assert derive_base_from_call(_call("f(a, 1, b);")) == "f_a_b"

    def test_member_callee_falls_back_to_default(self):
        assert derive_base_from_call(_call("o.m(a);")) == "fb_a"
        assert derive_base_from_call(_call("o.m(1);"), "tmp") == "tmp"

    def test_unsafe_characters_are_replaced(self):
        call = CallExpression(callee=Identifier("a-b"), arguments=[Identifier("c")])
        assert derive_base_from_call(call) == "a_b_c"


class TestSanitize:
    def test_keeps_dollar_and_underscore(self):
        assert sanitize_base("$a_b") == "$a_b"

    def test_empty_falls_back(self):
        assert sanitize_base("", "fb") == "fb"


class TestAllocate:
    def test_first_choice_is_suffixed_base(self):
        state, (outer, inner) = _state_and_functions(
            "function f(a) { return function (b) { return g(a)(b); }; }"
        )
        assert allocate("xy", outer, inner, state) == "xy__fb"
        assert "xy__fb" in state.reserved_in(outer)

    def test_reserved_names_are_not_reused(self):
        state, (outer, inner) = _state_and_functions(
            "function f(a) { return function (b) { return g(a)(b); }; }"
        )
        first = allocate("xy", outer, inner, state)
        second = allocate("xy", outer, inner, state)
        third = allocate("xy", outer, inner, state)
        assert (first, second, third) == ("xy__fb", "xy__fb_1", "xy__fb_2")

    def test_binding_at_target_is_taken(self):
        state, (outer, inner) = _state_and_functions(
            "function f(a) { let xy__fb; return function (b) { return g(a)(b); }; }"
        )
        assert is_taken("xy__fb", outer, inner, state)
        assert allocate("xy", outer, inner, state) == "xy__fb_1"

    def test_implicit_global_is_taken(self):
        state, (outer, inner) = _state_and_functions(
            "function f(a) { return function (b) { return xy__fb; }; }"
        )
        assert is_taken("xy__fb", outer, inner, state)

    def test_binding_between_use_site_and_target_is_taken(self):
        state, (outer, middle, inner) = _state_and_functions(
            "function f(a) { return function (b) { let xy__fb;"
            " return function (c) { return g(a)(c); }; }; }"
        )
        assert is_taken("xy__fb", outer, inner, state)

    def test_binding_only_inside_a_sibling_is_free(self):
        state, (outer, first, second) = _state_and_functions(
            "function f(a) { const s = function () { let xy__fb; };"
            " return function (c) { return g(a)(c); }; }"
        )
        assert not is_taken("xy__fb", outer, second, state)
