"""Scope Analysis — lexical scopes, bindings and reference resolution.

``Scope`` is the capability interface the floating algorithm is written
against: own-binding lookup, ambient/global lookup, parent traversal,
binding-for-name and function/program classification.  ``LexicalScope`` and
``ScopeBuilder`` implement it over the ``nodes`` AST.

Scopes are created for the program, every function (parameters and body share
one scope), every block that is not a function or catch body, ``for`` loops,
catch clauses and switch bodies.  ``var`` declarations land in the nearest
function or program scope; ``let``, ``const``, classes and function
declarations land in the innermost scope.

Analysis runs in two phases: the walk declares every binding and queues each
reference together with the scope it occurs in; resolution then binds every
queued reference, so declaration order inside a scope never matters.  Names
that resolve nowhere become implicit globals of the program scope.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum

from . import constants
from .nodes import (
    ArrowFunctionExpression,
    AssignmentExpression,
    BlockStatement,
    CallExpression,
    CatchClause,
    ExportDeclaration,
    ForInStatement,
    ForStatement,
    FunctionDeclaration,
    FunctionExpression,
    Identifier,
    ImportDeclaration,
    MemberExpression,
    Node,
    OpaqueExpression,
    OpaquePattern,
    OpaqueStatement,
    Program,
    SwitchStatement,
    UpdateExpression,
    VariableDeclaration,
    declared_names,
    iter_binding_target_children,
    iter_child_nodes,
)

logger = logging.getLogger(__name__)


class BindingKind(str, Enum):
    PARAM = "param"
    VAR = "var"
    LET = "let"
    CONST = "const"
    FUNCTION = "hoisted"
    LOCAL = "local"
    CLASS = "class"
    MODULE = "module"


VARIABLE_KINDS: frozenset[BindingKind] = frozenset(
    {BindingKind.VAR, BindingKind.LET, BindingKind.CONST}
)

_DECLARATION_KINDS: dict[str, BindingKind] = {
    "var": BindingKind.VAR,
    "let": BindingKind.LET,
    "const": BindingKind.CONST,
}


class ScopeKind(str, Enum):
    PROGRAM = "program"
    FUNCTION = "function"
    BLOCK = "block"
    FOR = "for"
    CATCH = "catch"
    SWITCH = "switch"


@dataclass(eq=False)
class Binding:
    """A declared name.  ``references`` are the reads that resolve to it."""

    name: str
    kind: BindingKind
    scope: Scope
    identifier: Identifier | None = None
    references: list[Node] = field(default_factory=list)


class Scope(ABC):
    """Capability interface over one lexical region."""

    parent: Scope | None
    node: Node

    @abstractmethod
    def get_own_binding(self, name: str) -> Binding | None: ...

    @abstractmethod
    def has_global(self, name: str) -> bool:
        """True when *name* is an implicit (undeclared) global of the unit."""

    @abstractmethod
    def is_function(self) -> bool: ...

    @abstractmethod
    def is_program(self) -> bool: ...

    @property
    def label(self) -> str:
        return type(self).__name__

    def has_own_binding(self, name: str) -> bool:
        return self.get_own_binding(name) is not None

    def get_binding(self, name: str) -> Binding | None:
        scope: Scope | None = self
        while scope is not None:
            binding = scope.get_own_binding(name)
            if binding is not None:
                return binding
            scope = scope.parent
        return None

    def has_binding(self, name: str) -> bool:
        """Declared anywhere up the chain, or a builtin global."""
        return (
            self.get_binding(name) is not None or name in constants.BUILTIN_GLOBALS
        )

    def ancestors(self):
        """This scope followed by every enclosing scope, innermost first."""
        scope: Scope | None = self
        while scope is not None:
            yield scope
            scope = scope.parent

    def function_parent(self) -> Scope:
        """Nearest function scope (self included), else the program scope."""
        return next(s for s in self.ancestors() if s.is_function() or s.is_program())

    def program_parent(self) -> Scope:
        return next(s for s in self.ancestors() if s.is_program())

    def is_ancestor_or_self_of(self, other: Scope) -> bool:
        return any(s is self for s in other.ancestors())


class LexicalScope(Scope):
    """Concrete scope produced by ``ScopeBuilder``."""

    def __init__(self, node: Node, parent: LexicalScope | None, kind: ScopeKind):
        self.node = node
        self.parent = parent
        self.kind = kind
        self.bindings: dict[str, Binding] = {}
        self.globals: set[str] = set()

    def __repr__(self) -> str:
        return f"LexicalScope({self.kind.value}, {self.label})"

    @property
    def label(self) -> str:
        if self.kind == ScopeKind.PROGRAM:
            return constants.PROGRAM_SCOPE_LABEL
        if self.kind == ScopeKind.FUNCTION:
            fn_id = getattr(self.node, "id", None)
            name = fn_id.name if fn_id is not None else constants.ANONYMOUS_FUNCTION_LABEL
            line = self.node.loc.start_line
            return f"function {name}@{line}" if line else f"function {name}"
        return self.kind.value

    def get_own_binding(self, name: str) -> Binding | None:
        return self.bindings.get(name)

    def has_global(self, name: str) -> bool:
        return name in self.program_parent().globals

    def is_function(self) -> bool:
        return self.kind == ScopeKind.FUNCTION

    def is_program(self) -> bool:
        return self.kind == ScopeKind.PROGRAM

    def declare(
        self, name: str, kind: BindingKind, identifier: Identifier | None = None
    ) -> Binding:
        existing = self.bindings.get(name)
        if existing is not None and kind == BindingKind.VAR:
            return existing
        binding = Binding(name=name, kind=kind, scope=self, identifier=identifier)
        self.bindings[name] = binding
        return binding


@dataclass
class ScopeTable:
    """Result of scope analysis for one program.

    ``resolutions`` maps each identifier in reference position to the binding
    it resolves to (``None`` for globals).  ``opaque_references`` holds the
    same for names mentioned by opaque nodes and patterns.
    """

    program: LexicalScope
    scopes: dict[Node, LexicalScope] = field(default_factory=dict)
    resolutions: dict[Identifier, Binding | None] = field(default_factory=dict)
    opaque_references: dict[Node, list[tuple[str, Binding | None]]] = field(
        default_factory=dict
    )
    dynamic_reason: str = ""

    @property
    def is_dynamic(self) -> bool:
        return bool(self.dynamic_reason)

    def scope_for(self, node: Node) -> LexicalScope | None:
        """The scope *node* creates, if any."""
        return self.scopes.get(node)

    def is_reference(self, node: Node) -> bool:
        return isinstance(node, Identifier) and node in self.resolutions

    def binding_of(self, identifier: Identifier) -> Binding | None:
        return self.resolutions.get(identifier)

    def references_in(self, node: Node) -> list[tuple[str, Binding | None]]:
        """Resolved names an opaque node mentions."""
        return self.opaque_references.get(node, [])


class ScopeBuilder:
    """Builds a ``ScopeTable`` by visiting the AST with ``_visit_<NodeType>``."""

    def __init__(self):
        self._table: ScopeTable | None = None
        self._pending: list[tuple[Identifier, LexicalScope, bool]] = []
        self._pending_opaque: list[tuple[Node, str, LexicalScope, bool]] = []

    def build(self, program: Program) -> ScopeTable:
        root = LexicalScope(program, None, ScopeKind.PROGRAM)
        self._table = ScopeTable(program=root)
        self._table.scopes[program] = root
        self._pending = []
        self._pending_opaque = []
        self._visit_list(program.body, root)
        self._resolve()
        logger.debug(
            "Scope analysis: %d scopes, %d references, %d implicit globals",
            len(self._table.scopes),
            len(self._table.resolutions),
            len(root.globals),
        )
        return self._table

    # ── helpers ──────────────────────────────────────────────────

    def _new_scope(self, node: Node, parent: LexicalScope, kind: ScopeKind) -> LexicalScope:
        scope = LexicalScope(node, parent, kind)
        self._table.scopes[node] = scope
        return scope

    def _mark_dynamic(self, reason: str, node: Node) -> None:
        if not self._table.dynamic_reason:
            self._table.dynamic_reason = f"{reason} at line {node.loc.start_line}"

    def _reference(
        self, identifier: Identifier, scope: LexicalScope, read: bool = True
    ) -> None:
        self._pending.append((identifier, scope, read))

    def _opaque_reference(
        self, owner: Node, names: list[str], scope: LexicalScope, read: bool = True
    ) -> None:
        for name in names:
            self._pending_opaque.append((owner, name, scope, read))

    def _visit_list(self, nodes: list[Node], scope: LexicalScope) -> None:
        for node in nodes:
            self._visit(node, scope)

    def _visit(self, node: Node | None, scope: LexicalScope) -> None:
        if node is None:
            return
        handler = getattr(self, f"_visit_{type(node).__name__}", None)
        if handler:
            handler(node, scope)
        else:
            self._generic_visit(node, scope)

    def _generic_visit(self, node: Node, scope: LexicalScope) -> None:
        for child in iter_child_nodes(node):
            self._visit(child, scope)

    def _declare_target(
        self, target: Node, kind: BindingKind, declaring_scope: LexicalScope, scope: LexicalScope
    ) -> None:
        """Declare the names of a binding target and visit its default values."""
        identifier = target if isinstance(target, Identifier) else None
        for name in declared_names(target):
            declaring_scope.declare(name, kind, identifier)
        for part in iter_binding_target_children(target):
            if isinstance(part, OpaquePattern):
                self._opaque_reference(part, part.referenced, scope)
            else:
                self._visit(part, scope)

    def _visit_function(self, node: Node, scope: LexicalScope) -> LexicalScope:
        fn_scope = self._new_scope(node, scope, ScopeKind.FUNCTION)
        for param in node.params:
            self._declare_target(param, BindingKind.PARAM, fn_scope, fn_scope)
        body = node.body
        if isinstance(body, BlockStatement):
            self._visit_list(body.body, fn_scope)
        else:
            self._visit(body, fn_scope)
        return fn_scope

    # ── visitors ─────────────────────────────────────────────────

    def _visit_Identifier(self, node: Identifier, scope: LexicalScope) -> None:
        self._reference(node, scope)

    def _visit_VariableDeclaration(self, node: VariableDeclaration, scope: LexicalScope) -> None:
        kind = _DECLARATION_KINDS.get(node.kind, BindingKind.LET)
        declaring_scope = scope.function_parent() if kind == BindingKind.VAR else scope
        for declarator in node.declarations:
            self._declare_target(declarator.id, kind, declaring_scope, scope)
            self._visit(declarator.init, scope)

    def _visit_FunctionDeclaration(self, node: FunctionDeclaration, scope: LexicalScope) -> None:
        if node.id is not None:
            scope.declare(node.id.name, BindingKind.FUNCTION, node.id)
        self._visit_function(node, scope)

    def _visit_FunctionExpression(self, node: FunctionExpression, scope: LexicalScope) -> None:
        fn_scope = self._visit_function(node, scope)
        if node.id is not None and not fn_scope.has_own_binding(node.id.name):
            fn_scope.declare(node.id.name, BindingKind.LOCAL, node.id)

    def _visit_ArrowFunctionExpression(
        self, node: ArrowFunctionExpression, scope: LexicalScope
    ) -> None:
        self._visit_function(node, scope)

    def _visit_BlockStatement(self, node: BlockStatement, scope: LexicalScope) -> None:
        self._visit_list(node.body, self._new_scope(node, scope, ScopeKind.BLOCK))

    def _visit_ForStatement(self, node: ForStatement, scope: LexicalScope) -> None:
        loop_scope = self._new_scope(node, scope, ScopeKind.FOR)
        for child in iter_child_nodes(node):
            self._visit(child, loop_scope)

    def _visit_ForInStatement(self, node: ForInStatement, scope: LexicalScope) -> None:
        loop_scope = self._new_scope(node, scope, ScopeKind.FOR)
        if isinstance(node.left, VariableDeclaration):
            self._visit(node.left, loop_scope)
        else:
            self._visit_assignment_target(node.left, loop_scope, read=False)
        self._visit(node.right, loop_scope)
        self._visit(node.body, loop_scope)

    def _visit_CatchClause(self, node: CatchClause, scope: LexicalScope) -> None:
        catch_scope = self._new_scope(node, scope, ScopeKind.CATCH)
        if node.param is not None:
            self._declare_target(node.param, BindingKind.LET, catch_scope, catch_scope)
        self._visit_list(node.body.body, catch_scope)

    def _visit_SwitchStatement(self, node: SwitchStatement, scope: LexicalScope) -> None:
        self._visit(node.discriminant, scope)
        switch_scope = self._new_scope(node, scope, ScopeKind.SWITCH)
        self._visit_list(node.cases, switch_scope)

    def _visit_assignment_target(self, target: Node, scope: LexicalScope, read: bool) -> None:
        if isinstance(target, Identifier):
            self._reference(target, scope, read=read)
        elif isinstance(target, OpaquePattern):
            self._opaque_reference(target, target.referenced, scope, read=False)
        else:
            self._visit(target, scope)

    def _visit_AssignmentExpression(self, node: AssignmentExpression, scope: LexicalScope) -> None:
        self._visit_assignment_target(node.left, scope, read=node.operator != "=")
        self._visit(node.right, scope)

    def _visit_UpdateExpression(self, node: UpdateExpression, scope: LexicalScope) -> None:
        self._visit_assignment_target(node.argument, scope, read=True)

    def _visit_MemberExpression(self, node: MemberExpression, scope: LexicalScope) -> None:
        self._visit(node.object, scope)
        if node.computed:
            self._visit(node.property, scope)

    def _visit_CallExpression(self, node: CallExpression, scope: LexicalScope) -> None:
        if isinstance(node.callee, Identifier) and node.callee.name == constants.DYNAMIC_EVAL_NAME:
            self._mark_dynamic("direct eval", node)
        self._generic_visit(node, scope)

    def _visit_ImportDeclaration(self, node: ImportDeclaration, scope: LexicalScope) -> None:
        program = scope.program_parent()
        for name in node.declared:
            program.declare(name, BindingKind.MODULE)

    def _visit_ExportDeclaration(self, node: ExportDeclaration, scope: LexicalScope) -> None:
        self._visit(node.declaration, scope)

    def _visit_OpaqueStatement(self, node: OpaqueStatement, scope: LexicalScope) -> None:
        if node.dynamic:
            self._mark_dynamic("with statement", node)
        for name in node.declared:
            scope.declare(name, BindingKind.CLASS)
        self._opaque_reference(node, node.referenced, scope)

    def _visit_OpaqueExpression(self, node: OpaqueExpression, scope: LexicalScope) -> None:
        self._opaque_reference(node, node.referenced, scope)

    def _visit_OpaquePattern(self, node: OpaquePattern, scope: LexicalScope) -> None:
        self._opaque_reference(node, node.declared + node.referenced, scope)

    # ── resolution ───────────────────────────────────────────────

    def _resolve(self) -> None:
        table = self._table
        program = table.program
        for identifier, scope, read in self._pending:
            binding = scope.get_binding(identifier.name)
            table.resolutions[identifier] = binding
            if binding is None:
                program.globals.add(identifier.name)
                continue
            if read:
                binding.references.append(identifier)
        for owner, name, scope, read in self._pending_opaque:
            binding = scope.get_binding(name)
            table.opaque_references.setdefault(owner, []).append((name, binding))
            if binding is None:
                program.globals.add(name)
            elif read:
                binding.references.append(owner)


def analyze_scopes(program: Program) -> ScopeTable:
    return ScopeBuilder().build(program)
