"""Tests for scope analysis — scopes, bindings, references and globals."""

from __future__ import annotations

from floated_binding.api import parse_source
from floated_binding.nodes import FUNCTION_TYPES, Identifier, Program, walk
from floated_binding.scope import (
    BindingKind,
    LexicalScope,
    ScopeKind,
    ScopeTable,
    analyze_scopes,
)


def _analyze(source: str) -> tuple[Program, ScopeTable]:
    program = parse_source(source)
    return program, analyze_scopes(program)


def _function_scopes(program: Program, table: ScopeTable) -> list[LexicalScope]:
    return [table.scope_for(n) for n in walk(program) if isinstance(n, FUNCTION_TYPES)]


def _identifiers(program: Program, name: str) -> list[Identifier]:
    return [n for n in walk(program) if isinstance(n, Identifier) and n.name == name]


class TestScopeCreation:
    def test_program_scope(self):
        program, table = _analyze("a;")
        assert table.scope_for(program) is table.program
        assert table.program.is_program()
        assert table.program.label == "program"

    def test_function_scope_holds_params(self):
        program, table = _analyze("function f(a, b = 1, ...c) { return a; }")
        (scope,) = _function_scopes(program, table)
        assert scope.kind == ScopeKind.FUNCTION
        assert scope.bindings["a"].kind == BindingKind.PARAM
        assert {"a", "b", "c"} <= set(scope.bindings)
        assert scope.bindings["b"].kind == BindingKind.PARAM

    def test_function_label(self):
        program, table = _analyze("\nfunction f() {}\nconst g = () => 1;")
        labels = [s.label for s in _function_scopes(program, table)]
        assert labels == ["function f@2", "function <anonymous>@3"]

    def test_block_and_loop_scopes(self):
        program, table = _analyze(
            "function f() { { let a; } for (let i = 0; ; ) {} switch (x) {} }"
        )
        kinds = [s.kind for s in table.scopes.values()]
        assert ScopeKind.BLOCK in kinds
        assert ScopeKind.FOR in kinds
        assert ScopeKind.SWITCH in kinds


class TestDeclarations:
    def test_var_lands_in_function_scope(self):
        program, table = _analyze("function f() { if (a) { var v = 1; let l = 2; } }")
        (scope,) = _function_scopes(program, table)
        assert "v" in scope.bindings
        assert "l" not in scope.bindings
        assert scope.bindings["v"].kind == BindingKind.VAR

    def test_function_declaration_is_hoisted_binding(self):
        _, table = _analyze("function f() {}")
        assert table.program.bindings["f"].kind == BindingKind.FUNCTION
        assert BindingKind.FUNCTION.value == "hoisted"

    def test_named_function_expression_binds_its_own_name(self):
        program, table = _analyze("const g = function h() { return h; };")
        (scope,) = _function_scopes(program, table)
        assert scope.bindings["h"].kind == BindingKind.LOCAL
        assert "h" not in table.program.bindings

    def test_class_and_import_bindings(self):
        _, table = _analyze("import m from 'm';\nclass C {}")
        assert table.program.bindings["m"].kind == BindingKind.MODULE
        assert table.program.bindings["C"].kind == BindingKind.CLASS

    def test_catch_parameter(self):
        program, table = _analyze("try {} catch (e) { e; }")
        catch_scope = next(s for s in table.scopes.values() if s.kind == ScopeKind.CATCH)
        assert "e" in catch_scope.bindings

    def test_var_redeclaration_keeps_first_binding(self):
        program, table = _analyze("function f(a) { var a; return a; }")
        (scope,) = _function_scopes(program, table)
        assert scope.bindings["a"].kind == BindingKind.PARAM

    def test_destructured_names_are_declared(self):
        program, table = _analyze("function f(o) { const { a, b: [c] } = o; }")
        (scope,) = _function_scopes(program, table)
        assert {"a", "c"} <= set(scope.bindings)
        assert scope.bindings["a"].kind == BindingKind.CONST


class TestReferences:
    def test_reads_are_recorded(self):
        program, table = _analyze("function f(x) { return x + x; }")
        (scope,) = _function_scopes(program, table)
        assert len(scope.bindings["x"].references) == 2

    def test_writes_are_not_reads(self):
        program, table = _analyze("function f() { let x; x = 1; x += 2; x++; }")
        (scope,) = _function_scopes(program, table)
        binding = scope.bindings["x"]
        assert len(binding.references) == 2

    def test_declaration_order_does_not_matter(self):
        program, table = _analyze("function f() { g(); function g() {} }")
        call_id = _identifiers(program, "g")[0]
        binding = table.binding_of(call_id)
        assert binding is not None and binding.kind == BindingKind.FUNCTION

    def test_unresolved_names_become_globals(self):
        program, table = _analyze("function f() { return undeclared; }")
        ident = _identifiers(program, "undeclared")[0]
        assert table.is_reference(ident)
        assert table.binding_of(ident) is None
        assert table.program.has_global("undeclared")

    def test_property_names_are_not_references(self):
        program, table = _analyze("o.p; ({ k: 1 });")
        assert not table.program.has_global("p")
        assert not table.program.has_global("k")
        assert table.program.has_global("o")

    def test_declared_identifier_is_not_a_reference(self):
        program, table = _analyze("let a = 1;")
        ident = _identifiers(program, "a")[0]
        assert not table.is_reference(ident)

    def test_opaque_class_references_are_resolved(self):
        program, table = _analyze("function f(base) { class C extends base {} }")
        (scope,) = _function_scopes(program, table)
        assert scope.bindings["base"].references
        assert scope.bindings["C"].kind == BindingKind.CLASS


class TestScopeChain:
    def test_get_binding_walks_parents(self):
        program, table = _analyze("function f(x) { return function (y) { return x; }; }")
        outer, inner = _function_scopes(program, table)
        assert inner.get_binding("x") is outer.bindings["x"]
        assert not inner.has_own_binding("x")
        assert inner.has_binding("x")

    def test_builtins_are_visible_everywhere(self):
        program, table = _analyze("function f() {}")
        (scope,) = _function_scopes(program, table)
        assert scope.has_binding("Math")
        assert scope.get_binding("Math") is None

    def test_function_and_program_parents(self):
        program, table = _analyze("function f() { { let a; } }")
        block = next(s for s in table.scopes.values() if s.kind == ScopeKind.BLOCK)
        (fn,) = _function_scopes(program, table)
        assert block.function_parent() is fn
        assert block.program_parent() is table.program
        assert table.program.function_parent() is table.program
        assert fn.is_ancestor_or_self_of(block)
        assert not block.is_ancestor_or_self_of(fn)


class TestDynamicScoping:
    def test_direct_eval(self):
        _, table = _analyze("function f() {\n  eval('x');\n}")
        assert table.is_dynamic
        assert table.dynamic_reason == "direct eval at line 2"

    def test_with_statement(self):
        _, table = _analyze("with (o) { x; }")
        assert table.dynamic_reason == "with statement at line 1"

    def test_member_eval_is_not_dynamic(self):
        _, table = _analyze("window.eval('x');")
        assert not table.is_dynamic
