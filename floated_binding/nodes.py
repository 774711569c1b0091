"""AST Design — mutable ESTree-style JavaScript nodes.

Nodes are ``eq=False`` dataclasses so that every node hashes and compares by
identity; the transform relies on that to mark generated nodes and to map
scope-creating nodes to their scopes.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, fields
from typing import ClassVar, Iterator

from pydantic import BaseModel, ConfigDict


class SourceLocation(BaseModel):
    """Structured source span from tree-sitter CST nodes."""

    model_config = ConfigDict(frozen=True)

    start_line: int
    start_col: int
    end_line: int
    end_col: int

    def is_unknown(self) -> bool:
        return (
            self.start_line == 0
            and self.start_col == 0
            and self.end_line == 0
            and self.end_col == 0
        )

    def __str__(self) -> str:
        if self.is_unknown():
            return "<unknown>"
        return f"{self.start_line}:{self.start_col}-{self.end_line}:{self.end_col}"


NO_SOURCE_LOCATION = SourceLocation(start_line=0, start_col=0, end_line=0, end_col=0)


@dataclass(eq=False)
class Node:
    """Base class. ``CHILD_FIELDS`` lists child-holding fields in source order."""

    CHILD_FIELDS: ClassVar[tuple[str, ...]] = ()

    loc: SourceLocation = field(default=NO_SOURCE_LOCATION, kw_only=True)
    leading_comments: list[str] = field(default_factory=list, kw_only=True)
    trailing_comments: list[str] = field(default_factory=list, kw_only=True)


# ── program & statements ─────────────────────────────────────────


@dataclass(eq=False)
class Program(Node):
    CHILD_FIELDS = ("body",)

    body: list[Node] = field(default_factory=list)
    interpreter: str | None = None
    inner_comments: list[str] = field(default_factory=list)


@dataclass(eq=False)
class ExpressionStatement(Node):
    CHILD_FIELDS = ("expression",)

    expression: Node


@dataclass(eq=False)
class VariableDeclarator(Node):
    CHILD_FIELDS = ("id", "init")

    id: Node
    init: Node | None = None


@dataclass(eq=False)
class VariableDeclaration(Node):
    CHILD_FIELDS = ("declarations",)

    kind: str
    declarations: list[VariableDeclarator] = field(default_factory=list)


@dataclass(eq=False)
class FunctionDeclaration(Node):
    CHILD_FIELDS = ("id", "params", "body")

    id: Identifier | None
    params: list[Node]
    body: BlockStatement
    is_async: bool = False
    is_generator: bool = False


@dataclass(eq=False)
class ReturnStatement(Node):
    CHILD_FIELDS = ("argument",)

    argument: Node | None = None


@dataclass(eq=False)
class BlockStatement(Node):
    CHILD_FIELDS = ("body",)

    body: list[Node] = field(default_factory=list)
    inner_comments: list[str] = field(default_factory=list)


@dataclass(eq=False)
class IfStatement(Node):
    CHILD_FIELDS = ("test", "consequent", "alternate")

    test: Node
    consequent: Node
    alternate: Node | None = None


@dataclass(eq=False)
class ForStatement(Node):
    CHILD_FIELDS = ("init", "test", "update", "body")

    init: Node | None
    test: Node | None
    update: Node | None
    body: Node


@dataclass(eq=False)
class ForInStatement(Node):
    """``for (left in right)`` and ``for (left of right)``."""

    CHILD_FIELDS = ("left", "right", "body")

    left: Node
    operator: str
    right: Node
    body: Node
    is_await: bool = False


@dataclass(eq=False)
class WhileStatement(Node):
    CHILD_FIELDS = ("test", "body")

    test: Node
    body: Node


@dataclass(eq=False)
class DoWhileStatement(Node):
    CHILD_FIELDS = ("body", "test")

    body: Node
    test: Node


@dataclass(eq=False)
class SwitchCase(Node):
    CHILD_FIELDS = ("test", "consequent")

    test: Node | None
    consequent: list[Node] = field(default_factory=list)


@dataclass(eq=False)
class SwitchStatement(Node):
    CHILD_FIELDS = ("discriminant", "cases")

    discriminant: Node
    cases: list[SwitchCase] = field(default_factory=list)


@dataclass(eq=False)
class CatchClause(Node):
    CHILD_FIELDS = ("param", "body")

    param: Node | None
    body: BlockStatement


@dataclass(eq=False)
class TryStatement(Node):
    CHILD_FIELDS = ("block", "handler", "finalizer")

    block: BlockStatement
    handler: CatchClause | None = None
    finalizer: BlockStatement | None = None


@dataclass(eq=False)
class ThrowStatement(Node):
    CHILD_FIELDS = ("argument",)

    argument: Node


@dataclass(eq=False)
class BreakStatement(Node):
    label: str | None = None


@dataclass(eq=False)
class ContinueStatement(Node):
    label: str | None = None


@dataclass(eq=False)
class LabeledStatement(Node):
    CHILD_FIELDS = ("body",)

    label: str
    body: Node


@dataclass(eq=False)
class EmptyStatement(Node):
    pass


@dataclass(eq=False)
class ImportDeclaration(Node):
    """Kept verbatim; ``declared`` holds the local names it binds."""

    text: str
    declared: list[str] = field(default_factory=list)


@dataclass(eq=False)
class ExportDeclaration(Node):
    """``export <declaration>`` or ``export default <declaration | expression>``."""

    CHILD_FIELDS = ("declaration",)

    declaration: Node
    is_default: bool = False


# ── expressions ──────────────────────────────────────────────────


@dataclass(eq=False)
class Identifier(Node):
    name: str


@dataclass(eq=False)
class PropertyIdentifier(Node):
    """A name in property position (``a.name``, ``{name: v}``); never a reference."""

    name: str


@dataclass(eq=False)
class Literal(Node):
    raw: str
    kind: str


@dataclass(eq=False)
class TemplateLiteral(Node):
    """``quasis`` are the raw text runs; there is always one more quasi than expression."""

    CHILD_FIELDS = ("expressions",)

    quasis: list[str]
    expressions: list[Node] = field(default_factory=list)


@dataclass(eq=False)
class TaggedTemplateExpression(Node):
    CHILD_FIELDS = ("tag", "quasi")

    tag: Node
    quasi: TemplateLiteral


@dataclass(eq=False)
class ThisExpression(Node):
    pass


@dataclass(eq=False)
class Super(Node):
    pass


@dataclass(eq=False)
class MetaProperty(Node):
    meta: str
    property: str


@dataclass(eq=False)
class ArrayExpression(Node):
    CHILD_FIELDS = ("elements",)

    elements: list[Node | None] = field(default_factory=list)


@dataclass(eq=False)
class Property(Node):
    """Object literal member; ``kind`` is ``init``, ``get``, ``set`` or ``method``."""

    CHILD_FIELDS = ("key", "value")

    key: Node
    value: Node
    computed: bool = False
    shorthand: bool = False
    kind: str = "init"


@dataclass(eq=False)
class ObjectExpression(Node):
    CHILD_FIELDS = ("properties",)

    properties: list[Node] = field(default_factory=list)


@dataclass(eq=False)
class SpreadElement(Node):
    CHILD_FIELDS = ("argument",)

    argument: Node


@dataclass(eq=False)
class FunctionExpression(Node):
    CHILD_FIELDS = ("id", "params", "body")

    id: Identifier | None
    params: list[Node]
    body: BlockStatement
    is_async: bool = False
    is_generator: bool = False


@dataclass(eq=False)
class ArrowFunctionExpression(Node):
    """``body`` is a BlockStatement or, for concise arrows, an expression."""

    CHILD_FIELDS = ("params", "body")

    params: list[Node]
    body: Node
    is_async: bool = False


@dataclass(eq=False)
class UnaryExpression(Node):
    CHILD_FIELDS = ("argument",)

    operator: str
    argument: Node


@dataclass(eq=False)
class UpdateExpression(Node):
    CHILD_FIELDS = ("argument",)

    operator: str
    prefix: bool
    argument: Node


@dataclass(eq=False)
class BinaryExpression(Node):
    """Arithmetic, relational and logical (``&&``, ``||``, ``??``) operators."""

    CHILD_FIELDS = ("left", "right")

    operator: str
    left: Node
    right: Node


@dataclass(eq=False)
class AssignmentExpression(Node):
    CHILD_FIELDS = ("left", "right")

    operator: str
    left: Node
    right: Node


@dataclass(eq=False)
class ConditionalExpression(Node):
    CHILD_FIELDS = ("test", "consequent", "alternate")

    test: Node
    consequent: Node
    alternate: Node


@dataclass(eq=False)
class CallExpression(Node):
    CHILD_FIELDS = ("callee", "arguments")

    callee: Node
    arguments: list[Node] = field(default_factory=list)
    optional: bool = False


@dataclass(eq=False)
class NewExpression(Node):
    CHILD_FIELDS = ("callee", "arguments")

    callee: Node
    arguments: list[Node] = field(default_factory=list)


@dataclass(eq=False)
class MemberExpression(Node):
    """``property`` is a PropertyIdentifier unless ``computed``."""

    CHILD_FIELDS = ("object", "property")

    object: Node
    property: Node
    computed: bool = False
    optional: bool = False


@dataclass(eq=False)
class SequenceExpression(Node):
    CHILD_FIELDS = ("expressions",)

    expressions: list[Node] = field(default_factory=list)


@dataclass(eq=False)
class AwaitExpression(Node):
    CHILD_FIELDS = ("argument",)

    argument: Node


@dataclass(eq=False)
class YieldExpression(Node):
    CHILD_FIELDS = ("argument",)

    argument: Node | None = None
    delegate: bool = False


@dataclass(eq=False)
class ParenthesizedExpression(Node):
    """Only kept where dropping the parentheses would change an optional chain."""

    CHILD_FIELDS = ("expression",)

    expression: Node


# ── patterns ─────────────────────────────────────────────────────


@dataclass(eq=False)
class AssignmentPattern(Node):
    """Parameter with a default value."""

    CHILD_FIELDS = ("left", "right")

    left: Node
    right: Node


@dataclass(eq=False)
class RestElement(Node):
    CHILD_FIELDS = ("argument",)

    argument: Node


@dataclass(eq=False)
class OpaquePattern(Node):
    """Destructuring pattern kept verbatim.

    ``declared`` are the names it binds, ``referenced`` the names its default
    values and computed keys read.
    """

    text: str
    declared: list[str] = field(default_factory=list)
    referenced: list[str] = field(default_factory=list)


# ── opaque constructs ────────────────────────────────────────────


@dataclass(eq=False)
class OpaqueExpression(Node):
    """Expression the frontend does not model (class expressions, ``import(...)``)."""

    text: str
    referenced: list[str] = field(default_factory=list)


@dataclass(eq=False)
class OpaqueStatement(Node):
    """Statement the frontend does not model, kept verbatim.

    ``dynamic`` is set for constructs that resolve names at run time (``with``).
    """

    text: str
    declared: list[str] = field(default_factory=list)
    referenced: list[str] = field(default_factory=list)
    dynamic: bool = False


FUNCTION_TYPES: tuple[type[Node], ...] = (
    FunctionDeclaration,
    FunctionExpression,
    ArrowFunctionExpression,
)

ORDINARY_FUNCTION_TYPES: tuple[type[Node], ...] = (
    FunctionDeclaration,
    FunctionExpression,
)

OPAQUE_TYPES: tuple[type[Node], ...] = (OpaqueExpression, OpaqueStatement)


# ── traversal helpers ────────────────────────────────────────────


def iter_child_nodes(node: Node) -> Iterator[Node]:
    """Yield every direct child node in source order."""
    for name in node.CHILD_FIELDS:
        value = getattr(node, name)
        if isinstance(value, list):
            yield from (item for item in value if item is not None)
        elif value is not None:
            yield value


def iter_binding_target_children(target: Node) -> Iterator[Node]:
    """Yield the parts of a binding target that are evaluated as expressions.

    For ``a = f(x)`` in a parameter list that is ``f(x)``; opaque patterns are
    yielded themselves so callers can read their ``referenced`` names.
    """
    if isinstance(target, AssignmentPattern):
        yield from iter_binding_target_children(target.left)
        yield target.right
    elif isinstance(target, RestElement):
        yield from iter_binding_target_children(target.argument)
    elif isinstance(target, OpaquePattern):
        yield target


def walk(node: Node) -> Iterator[Node]:
    """Pre-order walk over *node* and all of its descendants."""
    stack = [node]
    while stack:
        current = stack.pop()
        yield current
        stack.extend(reversed(list(iter_child_nodes(current))))


def declared_names(target: Node) -> list[str]:
    """Names bound by a binding target (identifier, default, rest or pattern)."""
    if isinstance(target, Identifier):
        return [target.name]
    if isinstance(target, AssignmentPattern):
        return declared_names(target.left)
    if isinstance(target, RestElement):
        return declared_names(target.argument)
    if isinstance(target, OpaquePattern):
        return list(target.declared)
    return []


def _copied_child(value, copies: dict[int, Node]):
    if isinstance(value, list):
        return [None if item is None else copies[id(item)] for item in value]
    if value is None:
        return None
    return copies[id(value)]


def clone(node: Node) -> Node:
    """Deep copy a subtree; the copy shares no node with the original.

    Built bottom-up from a reversed pre-order walk, so nesting depth is not
    limited by the interpreter stack.
    """
    copies: dict[int, Node] = {}
    for original in reversed(list(walk(node))):
        duplicate = copy.copy(original)
        for f in fields(original):
            value = getattr(original, f.name)
            if f.name in original.CHILD_FIELDS:
                value = _copied_child(value, copies)
            elif isinstance(value, list):
                value = list(value)
            setattr(duplicate, f.name, value)
        copies[id(original)] = duplicate
    return copies[id(node)]
