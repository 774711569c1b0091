"""Runtime Helper — the memoize-once thunk factory shared by every hoist.

The emitted helper is a self-rebinding accessor::

    function floatedBinding(init) {
      let get = () => {
        const v = init();
        get = () => v;
        return v;
      };
      return () => get();
    }

The first call evaluates ``init`` and rebinds ``get`` to return the cached
value; every later call returns that value without evaluating again.
"""

from __future__ import annotations

import dataclasses
import logging

from . import constants
from .hoist import insert_into
from .nodes import (
    ArrowFunctionExpression,
    AssignmentExpression,
    BlockStatement,
    CallExpression,
    ExpressionStatement,
    FunctionDeclaration,
    Identifier,
    NO_SOURCE_LOCATION,
    Node,
    Program,
    ReturnStatement,
    SourceLocation,
    VariableDeclaration,
    VariableDeclarator,
)
from .printer import print_code
from .run_types import RunState
from .scope import Scope

logger = logging.getLogger(__name__)


def build_helper(name: str) -> FunctionDeclaration:
    init = constants.HELPER_PARAM_NAME
    get = constants.HELPER_GETTER_NAME
    value = constants.HELPER_VALUE_NAME
    first_call = ArrowFunctionExpression(
        params=[],
        body=BlockStatement(
            body=[
                VariableDeclaration(
                    kind="const",
                    declarations=[
                        VariableDeclarator(
                            id=Identifier(value),
                            init=CallExpression(callee=Identifier(init)),
                        )
                    ],
                ),
                ExpressionStatement(
                    expression=AssignmentExpression(
                        operator="=",
                        left=Identifier(get),
                        right=ArrowFunctionExpression(params=[], body=Identifier(value)),
                    )
                ),
                ReturnStatement(argument=Identifier(value)),
            ]
        ),
    )
    return FunctionDeclaration(
        id=Identifier(name),
        params=[Identifier(init)],
        body=BlockStatement(
            body=[
                VariableDeclaration(
                    kind="let",
                    declarations=[
                        VariableDeclarator(id=Identifier(get), init=first_call)
                    ],
                ),
                ReturnStatement(
                    argument=ArrowFunctionExpression(
                        params=[], body=CallExpression(callee=Identifier(get))
                    )
                ),
            ]
        ),
    )


def build_floated_declaration(name: str, helper_name: str, init: Node) -> VariableDeclaration:
    """``const <name> = <helper>(() => <init>);``"""
    thunk = ArrowFunctionExpression(params=[], body=init, loc=init.loc)
    return VariableDeclaration(
        kind=constants.HOISTED_DECLARATION_KIND,
        declarations=[
            VariableDeclarator(
                id=Identifier(name),
                init=CallExpression(callee=Identifier(helper_name), arguments=[thunk]),
            )
        ],
        loc=init.loc,
    )


def build_accessor_call(
    name: str, loc: SourceLocation = NO_SOURCE_LOCATION
) -> CallExpression:
    """``<name>()``, the forced read that replaces the original expression."""
    return CallExpression(callee=Identifier(name, loc=loc), loc=loc)


def is_helper_call(node: Node, state: RunState) -> bool:
    return (
        isinstance(node, CallExpression)
        and isinstance(node.callee, Identifier)
        and bool(state.helper_name)
        and node.callee.name == state.helper_name
    )


def _canonical_text(function: FunctionDeclaration) -> str:
    bare = dataclasses.replace(function, leading_comments=[], trailing_comments=[])
    return print_code(bare)


def find_existing_helper(program: Program, state: RunState) -> FunctionDeclaration | None:
    """A top-level helper left by an earlier run, matched by name and shape."""
    pattern = state.config.helper_pattern()
    for stmt in program.body:
        if (
            isinstance(stmt, FunctionDeclaration)
            and stmt.id is not None
            and pattern.match(stmt.id.name)
            and _canonical_text(stmt) == _canonical_text(build_helper(stmt.id.name))
        ):
            return stmt
    return None


def allocate_helper_name(program_scope: Scope, state: RunState) -> str:
    """``floatedBinding`` unless taken, then ``floatedBinding_1``, ``_2``, …

    Every hoist site must see the helper, so a name bound or reserved in any
    scope of the unit is taken, not only at the top level.
    """
    base = state.config.helper_base_name
    scopes = list(state.table.scopes.values())

    def taken(name: str) -> bool:
        return (
            program_scope.has_binding(name)
            or program_scope.has_global(name)
            or any(
                scope.has_own_binding(name) or name in state.reserved_in(scope)
                for scope in scopes
            )
        )

    name = base
    index = 1
    while taken(name):
        name = f"{base}_{index}"
        index += 1
    state.reserve(program_scope, name)
    return name


def ensure_helper(program: Program, state: RunState) -> str:
    """Reuse an existing helper or inject a new one; returns its name."""
    existing = find_existing_helper(program, state)
    if existing is not None:
        state.helper_name = existing.id.name
        state.mark_generated(existing)
        state.stats.helper_reused = True
        logger.info("Reusing existing helper %s", state.helper_name)
    else:
        state.helper_name = allocate_helper_name(state.table.program, state)
        helper = state.mark_generated(build_helper(state.helper_name))
        insert_into(program.body, helper, is_program=True)
        state.stats.helper_injected = True
        logger.debug("Injected helper %s", state.helper_name)
    state.stats.helper_name = state.helper_name
    return state.helper_name
