"""CodePrinter — mutable AST → formatted JavaScript source.

Output follows the layout of Babel's generator: two-space indentation, one
statement per line, object literals broken over lines, no blank lines between
statements, and parentheses only where operator precedence or statement-start
ambiguity requires them.
"""

from __future__ import annotations

import logging
import re

from . import constants
from .nodes import (
    ArrayExpression,
    ArrowFunctionExpression,
    AssignmentExpression,
    AssignmentPattern,
    AwaitExpression,
    BinaryExpression,
    BlockStatement,
    BreakStatement,
    CallExpression,
    CatchClause,
    ConditionalExpression,
    ContinueStatement,
    DoWhileStatement,
    EmptyStatement,
    ExportDeclaration,
    ExpressionStatement,
    ForInStatement,
    ForStatement,
    FunctionDeclaration,
    FunctionExpression,
    Identifier,
    IfStatement,
    ImportDeclaration,
    LabeledStatement,
    Literal,
    MemberExpression,
    MetaProperty,
    NewExpression,
    Node,
    ObjectExpression,
    OpaqueExpression,
    OpaquePattern,
    OpaqueStatement,
    ParenthesizedExpression,
    Program,
    Property,
    PropertyIdentifier,
    RestElement,
    ReturnStatement,
    SequenceExpression,
    SpreadElement,
    Super,
    SwitchCase,
    SwitchStatement,
    TaggedTemplateExpression,
    TemplateLiteral,
    ThisExpression,
    ThrowStatement,
    TryStatement,
    UnaryExpression,
    UpdateExpression,
    VariableDeclaration,
    VariableDeclarator,
    WhileStatement,
    YieldExpression,
)

logger = logging.getLogger(__name__)

# ── precedence ranks ─────────────────────────────────────────────

RANK_SEQUENCE = 0
RANK_ASSIGN = 1
RANK_CONDITIONAL = 2
RANK_BINARY_BASE = 3
RANK_UNARY = 14
RANK_POSTFIX = 15
RANK_CALL = 16
RANK_PRIMARY = 18

BINARY_PRECEDENCE: dict[str, int] = {
    "||": 0,
    "??": 0,
    "&&": 1,
    "|": 2,
    "^": 3,
    "&": 4,
    "==": 5,
    "!=": 5,
    "===": 5,
    "!==": 5,
    "<": 6,
    ">": 6,
    "<=": 6,
    ">=": 6,
    "in": 6,
    "instanceof": 6,
    "<<": 7,
    ">>": 7,
    ">>>": 7,
    "+": 8,
    "-": 8,
    "*": 9,
    "/": 9,
    "%": 9,
    "**": 10,
}

WORD_UNARY_OPERATORS: frozenset[str] = frozenset({"typeof", "void", "delete"})
LOGICAL_OPERATORS: frozenset[str] = frozenset({"&&", "||"})

_BARE_INTEGER = re.compile(r"^\d+$")


def _rank(node: Node) -> int:
    if isinstance(node, SequenceExpression):
        return RANK_SEQUENCE
    if isinstance(
        node, (AssignmentExpression, ArrowFunctionExpression, YieldExpression)
    ):
        return RANK_ASSIGN
    if isinstance(node, ConditionalExpression):
        return RANK_CONDITIONAL
    if isinstance(node, BinaryExpression):
        return RANK_BINARY_BASE + BINARY_PRECEDENCE.get(node.operator, 0)
    if isinstance(node, (UnaryExpression, AwaitExpression)):
        return RANK_UNARY
    if isinstance(node, UpdateExpression):
        return RANK_UNARY if node.prefix else RANK_POSTFIX
    if isinstance(
        node,
        (
            CallExpression,
            NewExpression,
            MemberExpression,
            TaggedTemplateExpression,
            OpaqueExpression,
        ),
    ):
        return RANK_CALL
    return RANK_PRIMARY


def _leftmost(node: Node) -> Node:
    """The node whose text starts the printed form of *node*."""
    current = node
    while True:
        if isinstance(current, (BinaryExpression, AssignmentExpression)):
            nxt = current.left
        elif isinstance(current, ConditionalExpression):
            nxt = current.test
        elif isinstance(current, SequenceExpression) and current.expressions:
            nxt = current.expressions[0]
        elif isinstance(current, CallExpression):
            nxt = current.callee
        elif isinstance(current, MemberExpression):
            nxt = current.object
        elif isinstance(current, TaggedTemplateExpression):
            nxt = current.tag
        elif isinstance(current, UpdateExpression) and not current.prefix:
            nxt = current.argument
        else:
            return current
        if nxt is None:
            return current
        current = nxt


def _contains_call_in_chain(node: Node) -> bool:
    current = node
    while isinstance(current, (MemberExpression, CallExpression)):
        if isinstance(current, CallExpression):
            return True
        current = current.object
    return False


class CodePrinter:
    """Renders statements and expressions; one instance per output."""

    def __init__(self, indent: str = constants.INDENT):
        self._indent_unit = indent
        self._force_parens: set[int] = set()
        self._in_for_init = False
        self._STMT_DISPATCH = {
            ExpressionStatement: self._print_expression_statement,
            VariableDeclaration: self._print_var_declaration_stmt,
            FunctionDeclaration: self._print_function_stmt,
            ReturnStatement: self._print_return,
            BlockStatement: self._print_block_stmt,
            IfStatement: self._print_if,
            ForStatement: self._print_for,
            ForInStatement: self._print_for_in,
            WhileStatement: self._print_while,
            DoWhileStatement: self._print_do_while,
            SwitchStatement: self._print_switch,
            TryStatement: self._print_try,
            ThrowStatement: self._print_throw,
            BreakStatement: self._print_break,
            ContinueStatement: self._print_continue,
            LabeledStatement: self._print_labeled,
            EmptyStatement: self._print_empty,
            ImportDeclaration: self._print_import,
            ExportDeclaration: self._print_export,
            OpaqueStatement: self._print_opaque_stmt,
        }
        self._EXPR_DISPATCH = {
            Identifier: self._print_identifier,
            PropertyIdentifier: self._print_identifier,
            Literal: self._print_literal,
            TemplateLiteral: self._print_template,
            TaggedTemplateExpression: self._print_tagged_template,
            ThisExpression: lambda node, depth: "this",
            Super: lambda node, depth: "super",
            MetaProperty: self._print_meta_property,
            ArrayExpression: self._print_array,
            ObjectExpression: self._print_object,
            SpreadElement: self._print_spread,
            FunctionExpression: self._print_function,
            ArrowFunctionExpression: self._print_arrow,
            UnaryExpression: self._print_unary,
            UpdateExpression: self._print_update,
            BinaryExpression: self._print_binary,
            AssignmentExpression: self._print_assignment,
            ConditionalExpression: self._print_conditional,
            CallExpression: self._print_call,
            NewExpression: self._print_new,
            MemberExpression: self._print_member,
            SequenceExpression: self._print_sequence,
            AwaitExpression: self._print_await,
            YieldExpression: self._print_yield,
            ParenthesizedExpression: self._print_parenthesized,
            AssignmentPattern: self._print_assignment_pattern,
            RestElement: self._print_rest,
            OpaquePattern: self._print_opaque_text,
            OpaqueExpression: self._print_opaque_text,
        }

    # ── entry points ─────────────────────────────────────────────

    def print_program(self, program: Program) -> str:
        lines: list[str] = []
        if program.interpreter:
            lines.append(program.interpreter)
        lines.extend(self._stmt(stmt, 0) for stmt in program.body)
        lines.extend(program.inner_comments)
        return "\n".join(lines)

    def print_node(self, node: Node, depth: int = 0) -> str:
        """Print any node: programs, statements or expressions."""
        if isinstance(node, Program):
            return self.print_program(node)
        if type(node) in self._STMT_DISPATCH:
            return self._stmt(node, depth)
        return self._expr(node, depth)

    # ── layout helpers ───────────────────────────────────────────

    def _pad(self, depth: int) -> str:
        return self._indent_unit * depth

    def _stmt(self, node: Node, depth: int) -> str:
        handler = self._STMT_DISPATCH.get(type(node))
        if handler is None:
            raise TypeError(f"Cannot print statement {type(node).__name__}")
        pad = self._pad(depth)
        body = pad + handler(node, depth)
        leading = [pad + comment for comment in node.leading_comments]
        if node.trailing_comments:
            body = body + " " + " ".join(node.trailing_comments)
        return "\n".join(leading + [body])

    def _inline_stmt(self, node: Node, depth: int) -> str:
        """A statement printed after a header on the same line (``if (a) b;``)."""
        return self._stmt(node, depth)[len(self._pad(depth)) :]

    def _block(self, block: BlockStatement, depth: int) -> str:
        inner = [self._stmt(stmt, depth + 1) for stmt in block.body]
        inner.extend(self._pad(depth + 1) + c for c in block.inner_comments)
        if not inner:
            return "{}"
        return "{\n" + "\n".join(inner) + "\n" + self._pad(depth) + "}"

    def _body(self, node: Node, depth: int) -> str:
        if isinstance(node, BlockStatement) and not (
            node.leading_comments or node.trailing_comments
        ):
            return self._block(node, depth)
        return self._inline_stmt(node, depth)

    # ── statements ───────────────────────────────────────────────

    def _print_expression_statement(self, node: ExpressionStatement, depth: int) -> str:
        expression = node.expression
        if (
            isinstance(expression, AssignmentExpression)
            and isinstance(expression.left, OpaquePattern)
            and expression.left.text.startswith("{")
        ):
            return "(" + self._expr(expression, depth) + ");"
        start = _leftmost(expression)
        if isinstance(start, (ObjectExpression, FunctionExpression)) or (
            isinstance(start, OpaqueExpression) and start.text.startswith("class")
        ):
            self._force_parens.add(id(start))
        return self._expr(node.expression, depth) + ";"

    def _declarations(self, node: VariableDeclaration, depth: int, in_for: bool) -> str:
        parts = [self._declarator(d, depth) for d in node.declarations]
        if not in_for and len(parts) > 1 and any(d.init for d in node.declarations):
            # Later declarators line up under the first one's name.
            separator = ",\n" + self._pad(depth) + " " * (len(node.kind) + 1)
        else:
            separator = ", "
        return node.kind + " " + separator.join(parts)

    def _declarator(self, node: VariableDeclarator, depth: int) -> str:
        target = self._expr(node.id, depth)
        if node.init is None:
            return target
        return target + " = " + self._wrap(node.init, depth, RANK_ASSIGN)

    def _print_var_declaration_stmt(self, node: VariableDeclaration, depth: int) -> str:
        return self._declarations(node, depth, in_for=False) + ";"

    def _print_function_stmt(self, node: FunctionDeclaration, depth: int) -> str:
        return self._print_function(node, depth)

    def _print_return(self, node: ReturnStatement, depth: int) -> str:
        if node.argument is None:
            return "return;"
        return "return " + self._expr(node.argument, depth) + ";"

    def _print_block_stmt(self, node: BlockStatement, depth: int) -> str:
        return self._block(node, depth)

    def _print_if(self, node: IfStatement, depth: int) -> str:
        text = f"if ({self._expr(node.test, depth)}) " + self._body(
            node.consequent, depth
        )
        if node.alternate is None:
            return text
        if isinstance(node.consequent, BlockStatement):
            text += " else "
        else:
            text += "\n" + self._pad(depth) + "else "
        return text + self._body(node.alternate, depth)

    def _for_clause(self, node: Node | None, depth: int) -> str:
        if node is None:
            return ""
        if isinstance(node, VariableDeclaration):
            return self._declarations(node, depth, in_for=True)
        return self._expr(node, depth)

    def _for_init(self, node: Node | None, depth: int) -> str:
        saved = self._in_for_init
        self._in_for_init = True
        try:
            return self._for_clause(node, depth)
        finally:
            self._in_for_init = saved

    def _print_for(self, node: ForStatement, depth: int) -> str:
        init = self._for_init(node.init, depth)
        test = self._for_clause(node.test, depth)
        update = self._for_clause(node.update, depth)
        header = "for (" + init + ";"
        header += (" " + test if test else "") + ";"
        header += (" " + update if update else "") + ")"
        return header + " " + self._body(node.body, depth)

    def _print_for_in(self, node: ForInStatement, depth: int) -> str:
        keyword = "for await" if node.is_await else "for"
        left = self._for_clause(node.left, depth)
        right = self._expr(node.right, depth)
        return (
            f"{keyword} ({left} {node.operator} {right}) "
            + self._body(node.body, depth)
        )

    def _print_while(self, node: WhileStatement, depth: int) -> str:
        return f"while ({self._expr(node.test, depth)}) " + self._body(node.body, depth)

    def _print_do_while(self, node: DoWhileStatement, depth: int) -> str:
        return (
            "do "
            + self._body(node.body, depth)
            + f" while ({self._expr(node.test, depth)});"
        )

    def _print_case(self, node: SwitchCase, depth: int) -> str:
        pad = self._pad(depth)
        head = (
            "default:"
            if node.test is None
            else f"case {self._expr(node.test, depth)}:"
        )
        lines = [pad + head]
        lines.extend(self._stmt(stmt, depth + 1) for stmt in node.consequent)
        return "\n".join(lines)

    def _print_switch(self, node: SwitchStatement, depth: int) -> str:
        head = f"switch ({self._expr(node.discriminant, depth)}) {{"
        if not node.cases:
            return head + "}"
        cases = [self._print_case(case, depth + 1) for case in node.cases]
        return head + "\n" + "\n".join(cases) + "\n" + self._pad(depth) + "}"

    def _print_catch(self, node: CatchClause, depth: int) -> str:
        if node.param is None:
            return "catch " + self._block(node.body, depth)
        return f"catch ({self._expr(node.param, depth)}) " + self._block(
            node.body, depth
        )

    def _print_try(self, node: TryStatement, depth: int) -> str:
        text = "try " + self._block(node.block, depth)
        if node.handler is not None:
            text += " " + self._print_catch(node.handler, depth)
        if node.finalizer is not None:
            text += " finally " + self._block(node.finalizer, depth)
        return text

    def _print_throw(self, node: ThrowStatement, depth: int) -> str:
        return "throw " + self._expr(node.argument, depth) + ";"

    def _print_break(self, node: BreakStatement, depth: int) -> str:
        return f"break {node.label};" if node.label else "break;"

    def _print_continue(self, node: ContinueStatement, depth: int) -> str:
        return f"continue {node.label};" if node.label else "continue;"

    def _print_labeled(self, node: LabeledStatement, depth: int) -> str:
        return f"{node.label}: " + self._inline_stmt(node.body, depth)

    def _print_empty(self, node: EmptyStatement, depth: int) -> str:
        return ";"

    def _print_import(self, node: ImportDeclaration, depth: int) -> str:
        text = node.text.rstrip()
        return text if text.endswith(";") else text + ";"

    def _print_export(self, node: ExportDeclaration, depth: int) -> str:
        prefix = "export default " if node.is_default else "export "
        declaration = node.declaration
        if type(declaration) in self._STMT_DISPATCH:
            return prefix + self._inline_stmt(declaration, depth)
        return prefix + self._wrap(declaration, depth, RANK_ASSIGN) + ";"

    def _print_opaque_stmt(self, node: OpaqueStatement, depth: int) -> str:
        return node.text

    # ── expressions ──────────────────────────────────────────────

    def _expr(self, node: Node, depth: int) -> str:
        handler = self._EXPR_DISPATCH.get(type(node))
        if handler is None:
            raise TypeError(f"Cannot print expression {type(node).__name__}")
        text = handler(node, depth)
        if id(node) in self._force_parens:
            self._force_parens.discard(id(node))
            return "(" + text + ")"
        return text

    def _wrap(self, node: Node, depth: int, min_rank: int) -> str:
        text = self._expr(node, depth)
        return f"({text})" if _rank(node) < min_rank else text

    def _print_identifier(self, node: Identifier | PropertyIdentifier, depth: int) -> str:
        return node.name

    def _print_literal(self, node: Literal, depth: int) -> str:
        return node.raw

    def _print_template(self, node: TemplateLiteral, depth: int) -> str:
        parts = ["`"]
        for index, quasi in enumerate(node.quasis):
            parts.append(quasi)
            if index < len(node.expressions):
                parts.append("${" + self._expr(node.expressions[index], depth) + "}")
        parts.append("`")
        return "".join(parts)

    def _print_tagged_template(self, node: TaggedTemplateExpression, depth: int) -> str:
        return self._wrap(node.tag, depth, RANK_CALL) + self._print_template(
            node.quasi, depth
        )

    def _print_meta_property(self, node: MetaProperty, depth: int) -> str:
        return f"{node.meta}.{node.property}"

    def _print_array(self, node: ArrayExpression, depth: int) -> str:
        parts = [
            "" if element is None else self._wrap(element, depth, RANK_ASSIGN)
            for element in node.elements
        ]
        text = ", ".join(parts)
        if node.elements and node.elements[-1] is None:
            text += ","
        return "[" + text + "]"

    def _property_key(self, node: Property, depth: int) -> str:
        key = self._expr(node.key, depth)
        return f"[{key}]" if node.computed else key

    def _print_property(self, node: Node, depth: int) -> str:
        if not isinstance(node, Property):
            return self._wrap(node, depth, RANK_ASSIGN)
        if node.shorthand:
            return self._expr(node.value, depth)
        key = self._property_key(node, depth)
        if node.kind in ("method", "get", "set") and isinstance(
            node.value, FunctionExpression
        ):
            fn = node.value
            prefix = ""
            if node.kind in ("get", "set"):
                prefix = node.kind + " "
            if fn.is_async:
                prefix += "async "
            if fn.is_generator:
                prefix += "*"
            return (
                prefix
                + key
                + self._params(fn.params, depth)
                + " "
                + self._block(fn.body, depth)
            )
        return key + ": " + self._wrap(node.value, depth, RANK_ASSIGN)

    def _print_object(self, node: ObjectExpression, depth: int) -> str:
        if not node.properties:
            return "{}"
        pad = self._pad(depth + 1)
        members = [pad + self._print_property(p, depth + 1) for p in node.properties]
        return "{\n" + ",\n".join(members) + "\n" + self._pad(depth) + "}"

    def _print_spread(self, node: SpreadElement, depth: int) -> str:
        return "..." + self._wrap(node.argument, depth, RANK_ASSIGN)

    def _params(self, params: list[Node], depth: int) -> str:
        return "(" + ", ".join(self._expr(p, depth) for p in params) + ")"

    def _print_function(
        self, node: FunctionDeclaration | FunctionExpression, depth: int
    ) -> str:
        head = "async " if node.is_async else ""
        head += "function* " if node.is_generator else "function "
        if node.id is not None:
            head += node.id.name
        return head + self._params(node.params, depth) + " " + self._block(node.body, depth)

    def _print_arrow(self, node: ArrowFunctionExpression, depth: int) -> str:
        head = "async " if node.is_async else ""
        if len(node.params) == 1 and isinstance(node.params[0], Identifier):
            head += node.params[0].name
        else:
            head += self._params(node.params, depth)
        if isinstance(node.body, BlockStatement):
            return head + " => " + self._block(node.body, depth)
        start = _leftmost(node.body)
        if isinstance(start, ObjectExpression):
            self._force_parens.add(id(start))
        return head + " => " + self._wrap(node.body, depth, RANK_ASSIGN)

    def _print_unary(self, node: UnaryExpression, depth: int) -> str:
        argument = self._wrap(node.argument, depth, RANK_UNARY)
        if node.operator in WORD_UNARY_OPERATORS:
            return f"{node.operator} {argument}"
        if argument.startswith(node.operator[-1]) and node.operator in ("+", "-"):
            return f"{node.operator} {argument}"
        return node.operator + argument

    def _print_update(self, node: UpdateExpression, depth: int) -> str:
        if node.prefix:
            return node.operator + self._wrap(node.argument, depth, RANK_UNARY)
        return self._wrap(node.argument, depth, RANK_CALL) + node.operator

    def _needs_mixing_parens(self, parent: str, child: Node) -> bool:
        if not isinstance(child, BinaryExpression):
            return False
        return (parent == "??" and child.operator in LOGICAL_OPERATORS) or (
            parent in LOGICAL_OPERATORS and child.operator == "??"
        )

    def _print_binary(self, node: BinaryExpression, depth: int) -> str:
        if node.operator == "in" and self._in_for_init:
            # A bare `in` would end a for-init clause.
            self._in_for_init = False
            try:
                return "(" + self._print_binary(node, depth) + ")"
            finally:
                self._in_for_init = True
        own = _rank(node)
        is_power = node.operator == "**"
        left_min = own + 1 if is_power else own
        right_min = own if is_power else own + 1
        left = self._wrap(node.left, depth, left_min)
        if not left.startswith("(") and (
            self._needs_mixing_parens(node.operator, node.left)
            or (is_power and isinstance(node.left, (UnaryExpression, AwaitExpression)))
        ):
            left = f"({left})"
        right = self._wrap(node.right, depth, right_min)
        if not right.startswith("(") and self._needs_mixing_parens(
            node.operator, node.right
        ):
            right = f"({right})"
        return f"{left} {node.operator} {right}"

    def _print_assignment(self, node: AssignmentExpression, depth: int) -> str:
        left = self._expr(node.left, depth)
        return f"{left} {node.operator} " + self._wrap(node.right, depth, RANK_ASSIGN)

    def _print_conditional(self, node: ConditionalExpression, depth: int) -> str:
        return (
            self._wrap(node.test, depth, RANK_CONDITIONAL + 1)
            + " ? "
            + self._wrap(node.consequent, depth, RANK_ASSIGN)
            + " : "
            + self._wrap(node.alternate, depth, RANK_ASSIGN)
        )

    def _arguments(self, arguments: list[Node], depth: int) -> str:
        return (
            "(" + ", ".join(self._wrap(a, depth, RANK_ASSIGN) for a in arguments) + ")"
        )

    def _print_call(self, node: CallExpression, depth: int) -> str:
        callee = self._wrap(node.callee, depth, RANK_CALL)
        return callee + ("?." if node.optional else "") + self._arguments(
            node.arguments, depth
        )

    def _print_new(self, node: NewExpression, depth: int) -> str:
        callee = self._wrap(node.callee, depth, RANK_CALL)
        if not callee.startswith("(") and _contains_call_in_chain(node.callee):
            callee = f"({callee})"
        return "new " + callee + self._arguments(node.arguments, depth)

    def _print_member(self, node: MemberExpression, depth: int) -> str:
        obj = self._wrap(node.object, depth, RANK_CALL)
        if (
            isinstance(node.object, Literal)
            and node.object.kind == "number"
            and _BARE_INTEGER.match(node.object.raw)
        ):
            obj = f"({obj})"
        if node.computed:
            access = "?.[" if node.optional else "["
            return obj + access + self._expr(node.property, depth) + "]"
        return obj + ("?." if node.optional else ".") + self._expr(node.property, depth)

    def _print_sequence(self, node: SequenceExpression, depth: int) -> str:
        return ", ".join(self._wrap(e, depth, RANK_ASSIGN) for e in node.expressions)

    def _print_await(self, node: AwaitExpression, depth: int) -> str:
        return "await " + self._wrap(node.argument, depth, RANK_UNARY)

    def _print_yield(self, node: YieldExpression, depth: int) -> str:
        keyword = "yield*" if node.delegate else "yield"
        if node.argument is None:
            return keyword
        return keyword + " " + self._wrap(node.argument, depth, RANK_ASSIGN)

    def _print_parenthesized(self, node: ParenthesizedExpression, depth: int) -> str:
        return "(" + self._expr(node.expression, depth) + ")"

    def _print_assignment_pattern(self, node: AssignmentPattern, depth: int) -> str:
        return self._expr(node.left, depth) + " = " + self._wrap(
            node.right, depth, RANK_ASSIGN
        )

    def _print_rest(self, node: RestElement, depth: int) -> str:
        return "..." + self._expr(node.argument, depth)

    def _print_opaque_text(self, node: OpaquePattern | OpaqueExpression, depth: int) -> str:
        return node.text


def print_code(node: Node) -> str:
    """Render *node* (usually a Program) to source text without a trailing newline."""
    return CodePrinter().print_node(node)
