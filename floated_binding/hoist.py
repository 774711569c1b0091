"""Hoist-Site Inserter — where a hoisted declaration goes inside its target."""

from __future__ import annotations

import logging

from .nodes import (
    ArrowFunctionExpression,
    BlockStatement,
    ExpressionStatement,
    FUNCTION_TYPES,
    ImportDeclaration,
    Literal,
    Node,
    Program,
    ReturnStatement,
)
from .scope import Scope

logger = logging.getLogger(__name__)


def is_directive(stmt: Node) -> bool:
    """``"use strict";`` and other string-literal expression statements."""
    return (
        isinstance(stmt, ExpressionStatement)
        and isinstance(stmt.expression, Literal)
        and stmt.expression.kind == "string"
    )


def ensure_block_body(function: Node) -> BlockStatement:
    """Give a concise arrow a ``{ return <expr>; }`` body; return the body block."""
    if isinstance(function, ArrowFunctionExpression) and not isinstance(
        function.body, BlockStatement
    ):
        expression = function.body
        function.body = BlockStatement(
            body=[ReturnStatement(argument=expression, loc=expression.loc)],
            loc=expression.loc,
        )
        logger.debug("Expanded arrow body at %s", expression.loc)
    return function.body


def container_for(target: Scope) -> list[Node]:
    """The statement list hoisted declarations for *target* are inserted into."""
    node = target.node
    if isinstance(node, Program):
        return node.body
    if isinstance(node, FUNCTION_TYPES):
        return ensure_block_body(node).body
    raise TypeError(f"Cannot hoist into a {type(node).__name__} scope")


def anchor_index(body: list[Node], is_program: bool) -> int:
    """Index just past the leading run of imports (program only) and directives."""
    index = 0
    for position, stmt in enumerate(body):
        if (is_program and isinstance(stmt, ImportDeclaration)) or is_directive(stmt):
            index = position + 1
            continue
        break
    return index


def insert_into(body: list[Node], declaration: Node, is_program: bool) -> int:
    index = anchor_index(body, is_program)
    body.insert(index, declaration)
    return index


def insert(target: Scope, declaration: Node) -> None:
    """Insert *declaration* after the prologue and imports of *target*."""
    body = container_for(target)
    index = insert_into(body, declaration, target.is_program())
    logger.debug("Inserted hoisted declaration at %r[%d]", target, index)
