"""Purity Analyzer — decides whether a subtree may be evaluated early.

Generated curried code is pure except for calls that take no arguments, which
commonly model effects; those are never moved.  Anything that depends on the
activation it runs in (``this``, ``arguments``, ``super``, ``new.target``) or
suspends it (``await``, ``yield``) cannot move into a different function, and
in-place mutation is left where it is.
"""

from __future__ import annotations

import logging

from . import constants
from .nodes import (
    ArrowFunctionExpression,
    AssignmentExpression,
    AwaitExpression,
    CallExpression,
    Identifier,
    MetaProperty,
    NewExpression,
    Node,
    OPAQUE_TYPES,
    ORDINARY_FUNCTION_TYPES,
    Super,
    ThisExpression,
    UnaryExpression,
    UpdateExpression,
    YieldExpression,
    iter_child_nodes,
)
from .scope import ScopeTable

logger = logging.getLogger(__name__)


def is_nullary_call(node: Node) -> bool:
    return isinstance(node, (CallExpression, NewExpression)) and not node.arguments


def _frame_sensitive(node: Node, table: ScopeTable) -> str | None:
    if isinstance(node, ThisExpression):
        return "this"
    if isinstance(node, Super):
        return "super"
    if isinstance(node, MetaProperty) and (node.meta, node.property) == ("new", "target"):
        return "new.target"
    if (
        isinstance(node, Identifier)
        and node.name == constants.ARGUMENTS_NAME
        and table.is_reference(node)
        and table.binding_of(node) is None
    ):
        return "arguments"
    return None


def _activation_bound(node: Node) -> str | None:
    if isinstance(node, AwaitExpression):
        return "await"
    if isinstance(node, YieldExpression):
        return "yield"
    if isinstance(node, (AssignmentExpression, UpdateExpression)):
        return "mutation"
    if isinstance(node, UnaryExpression) and node.operator == "delete":
        return "delete"
    return None


def find_violation(subtree: Node, table: ScopeTable) -> str | None:
    """Return why *subtree* must stay where it is, or None when it may float.

    Ordinary functions nested inside the subtree own their receiver and
    ``arguments``; arrow functions do not.  Any nested function owns its own
    suspension points and assignments.
    """
    stack: list[tuple[Node, bool, bool]] = [(subtree, False, False)]
    while stack:
        node, in_ordinary, in_function = stack.pop()
        if is_nullary_call(node):
            return "nullary call"
        if isinstance(node, OPAQUE_TYPES):
            return "opaque construct"
        if not in_ordinary:
            reason = _frame_sensitive(node, table)
            if reason:
                return reason
        if not in_function:
            reason = _activation_bound(node)
            if reason:
                return reason
        if isinstance(node, ORDINARY_FUNCTION_TYPES):
            in_ordinary = in_function = True
        elif isinstance(node, ArrowFunctionExpression):
            in_function = True
        stack.extend((child, in_ordinary, in_function) for child in iter_child_nodes(node))
    return None


def is_eligible(subtree: Node, table: ScopeTable) -> bool:
    reason = find_violation(subtree, table)
    if reason:
        logger.debug("Not eligible at %s: %s", subtree.loc, reason)
    return reason is None
