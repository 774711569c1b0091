"""Transform Driver — one pass that floats pure bindings and calls outward.

The pass walks the tree once, ancestors before descendants.  Each node is put
into exactly one category from its syntactic position alone:

* ``DECLARATION``: ``var/let/const x = <init>`` inside a function;
* ``BARE_CALL``: any other call inside a function, except calls to accessors
  or to the helper and calls that directly initialise a declarator;
* ``NONE``: everything else, which is only descended into.

An accepted candidate is copied into ``const <name> = helper(() => <copy>)``
at the outermost scope that still sees all of its free variables, and the
original site is rewritten to ``<name>()``.  Every node the pass creates is
marked generated and never analysed again; statement lists are walked over
snapshots and replaced subtrees are not entered, so one pass never revisits
its own output.
"""

from __future__ import annotations

import logging

from . import hoist
from .free_vars import free_vars
from .names import allocate, derive_base_from_call
from .nodes import (
    CallExpression,
    Identifier,
    Literal,
    Node,
    Program,
    VariableDeclarator,
    clone,
)
from .purity import is_eligible
from .resolver import resolve
from .run_types import (
    CandidateKind,
    FloatCandidate,
    FloatConfig,
    FloatOutcome,
    FloatRecord,
    RunState,
    TransformStats,
)
from .runtime_helper import (
    build_accessor_call,
    build_floated_declaration,
    ensure_helper,
    is_helper_call,
)
from .scope import VARIABLE_KINDS, Scope, ScopeTable, analyze_scopes

logger = logging.getLogger(__name__)


class FloatingTransform:
    """Runs the floating pass over one program with its scope table."""

    def __init__(self, program: Program, table: ScopeTable, config: FloatConfig):
        self._program = program
        self._state = RunState(config=config, table=table)
        self._scopes: list[Scope] = [table.program]
        self._accessor_pattern = config.accessor_pattern()

    @property
    def state(self) -> RunState:
        return self._state

    def run(self) -> TransformStats:
        state = self._state
        if state.table.is_dynamic:
            logger.warning(
                "Leaving unit untouched, dynamic scoping: %s", state.table.dynamic_reason
            )
            state.stats.skipped_reason = state.table.dynamic_reason
            return state.stats
        ensure_helper(self._program, state)
        self._visit_children(self._program)
        logger.info(
            "Floated %d of %d candidates", state.stats.floated, state.stats.candidates
        )
        return state.stats

    # ── traversal ────────────────────────────────────────────────

    def _visit(self, node: Node, parent: Node) -> Node:
        """Visit *node*; return what should stand in its place."""
        if self._state.is_generated(node) or is_helper_call(node, self._state):
            return node
        kind = self.classify(node, parent)
        if kind != CandidateKind.NONE:
            replacement = self._consider(node, kind)
            if replacement is not None:
                return replacement
        scope = self._state.table.scope_for(node)
        if scope is not None:
            self._scopes.append(scope)
        try:
            self._visit_children(node)
        finally:
            if scope is not None:
                self._scopes.pop()
        return node

    def _visit_children(self, node: Node) -> None:
        for name in node.CHILD_FIELDS:
            value = getattr(node, name)
            if isinstance(value, list):
                for child in list(value):
                    if child is None:
                        continue
                    replacement = self._visit(child, node)
                    if replacement is not child:
                        index = next(i for i, item in enumerate(value) if item is child)
                        value[index] = replacement
            elif value is not None:
                replacement = self._visit(value, node)
                if replacement is not value:
                    setattr(node, name, replacement)

    # ── classification ───────────────────────────────────────────

    def _in_function(self) -> bool:
        return self._scopes[-1].function_parent().is_function()

    def classify(self, node: Node, parent: Node) -> CandidateKind:
        if isinstance(node, VariableDeclarator):
            if (
                isinstance(node.id, Identifier)
                and node.init is not None
                and not is_helper_call(node.init, self._state)
                and self._in_function()
            ):
                return CandidateKind.DECLARATION
            return CandidateKind.NONE
        if isinstance(node, CallExpression):
            callee = node.callee
            if isinstance(callee, Identifier) and (
                self._accessor_pattern.search(callee.name)
                or callee.name == self._state.helper_name
            ):
                return CandidateKind.NONE
            if isinstance(parent, VariableDeclarator) and parent.init is node:
                return CandidateKind.NONE
            if self._in_function():
                return CandidateKind.BARE_CALL
        return CandidateKind.NONE

    # ── candidates ───────────────────────────────────────────────

    def _reject(self, candidate: FloatCandidate, outcome: FloatOutcome) -> None:
        self._state.stats.record(outcome)
        logger.debug(
            "%s at %s: %s", candidate.kind.value, candidate.node.loc, outcome.value
        )
        return None

    def _consider(self, node: Node, kind: CandidateKind) -> Node | None:
        """Float *node* if it qualifies; return its replacement, else None."""
        use_scope = self._scopes[-1]
        candidate = FloatCandidate(node=node, kind=kind, use_scope=use_scope)
        table = self._state.table
        expression = node.init if kind == CandidateKind.DECLARATION else node

        if not is_eligible(expression, table):
            return self._reject(candidate, FloatOutcome.REJECTED_IMPURE)

        if kind == CandidateKind.DECLARATION:
            binding = use_scope.get_binding(node.id.name)
            if binding is None or not binding.references:
                return self._reject(candidate, FloatOutcome.REJECTED_UNUSED)

        candidate.free_vars = free_vars(expression, table)
        if (
            kind == CandidateKind.DECLARATION
            and not candidate.free_vars
            and not isinstance(expression, Literal)
        ):
            return self._reject(candidate, FloatOutcome.REJECTED_NO_DEPENDENCIES)

        candidate.target = resolve(candidate.free_vars, use_scope)
        if candidate.target is None:
            return self._reject(candidate, FloatOutcome.REJECTED_UNRESOLVED)
        current = use_scope.function_parent()
        if candidate.target is current:
            return self._reject(candidate, FloatOutcome.REJECTED_NO_GAIN)

        if kind == CandidateKind.BARE_CALL and self._depends_on_local(candidate, current):
            return self._reject(candidate, FloatOutcome.REJECTED_LOCAL_DEPENDENCY)

        if kind == CandidateKind.DECLARATION:
            candidate.base_name = node.id.name
        else:
            candidate.base_name = derive_base_from_call(
                node, self._state.config.default_base_name
            )
        return self._float(candidate, expression)

    def _depends_on_local(self, candidate: FloatCandidate, current: Scope) -> bool:
        """A free variable is a var/let/const owned by the enclosing function."""
        for name in candidate.free_vars:
            binding = candidate.use_scope.get_binding(name)
            if (
                binding is not None
                and binding.kind in VARIABLE_KINDS
                and binding.scope.function_parent() is current
            ):
                return True
        return False

    def _float(self, candidate: FloatCandidate, expression: Node) -> Node:
        state = self._state
        name = allocate(candidate.base_name, candidate.target, candidate.use_scope, state)
        declaration = build_floated_declaration(name, state.helper_name, clone(expression))
        state.mark_generated(declaration)
        hoist.insert(candidate.target, declaration)

        accessor = state.mark_generated(build_accessor_call(name, expression.loc))
        state.stats.record(FloatOutcome.FLOATED)
        state.stats.records.append(
            FloatRecord(
                name=name,
                kind=candidate.kind.value,
                target=candidate.target.label,
                free_vars=candidate.free_vars,
                loc=expression.loc,
            )
        )
        logger.debug("Floated %s to %r", name, candidate.target)

        if candidate.kind == CandidateKind.DECLARATION:
            candidate.node.init = accessor
            return candidate.node
        return accessor


def float_program(
    program: Program, config: FloatConfig | None = None
) -> TransformStats:
    """Analyse scopes and run the floating pass over *program* in place."""
    table = analyze_scopes(program)
    return FloatingTransform(program, table, config or FloatConfig()).run()
