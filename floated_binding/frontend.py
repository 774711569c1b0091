"""JavaScriptFrontend — tree-sitter JavaScript CST → mutable AST lowering."""

from __future__ import annotations

import logging
from typing import Callable

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
    SourceLocation,
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


class JavaScriptFrontend:
    """Lowers a JavaScript tree-sitter CST into the mutable AST of ``nodes``.

    Statement and expression node types are handled through the
    ``_STMT_DISPATCH`` and ``_EXPR_DISPATCH`` tables.  Anything without a
    handler is kept verbatim as an opaque node that records the identifiers it
    mentions, so scope analysis stays sound around it.
    """

    COMMENT_TYPES: frozenset[str] = frozenset({"comment", "html_comment"})
    IDENTIFIER_TYPES: frozenset[str] = frozenset(
        {
            "identifier",
            "shorthand_property_identifier",
            "shorthand_property_identifier_pattern",
        }
    )
    PATTERN_TYPES: frozenset[str] = frozenset({"object_pattern", "array_pattern"})
    LITERAL_KINDS: dict[str, str] = {
        "number": "number",
        "string": "string",
        "regex": "regex",
        "true": "boolean",
        "false": "boolean",
        "null": "null",
    }

    def __init__(self):
        self._source: bytes = b""
        self._EXPR_DISPATCH: dict[str, Callable] = {
            "identifier": self._lower_identifier,
            "undefined": self._lower_identifier,
            "number": self._lower_literal,
            "string": self._lower_literal,
            "regex": self._lower_literal,
            "true": self._lower_literal,
            "false": self._lower_literal,
            "null": self._lower_literal,
            "template_string": self._lower_template_string,
            "this": self._lower_this,
            "super": self._lower_super,
            "meta_property": self._lower_meta_property,
            "parenthesized_expression": self._lower_paren,
            "binary_expression": self._lower_binop,
            "unary_expression": self._lower_unop,
            "update_expression": self._lower_update_expr,
            "assignment_expression": self._lower_assignment_expr,
            "augmented_assignment_expression": self._lower_assignment_expr,
            "call_expression": self._lower_call,
            "new_expression": self._lower_new_expression,
            "member_expression": self._lower_member,
            "subscript_expression": self._lower_subscript,
            "ternary_expression": self._lower_ternary,
            "array": self._lower_array,
            "object": self._lower_object,
            "arrow_function": self._lower_arrow_function,
            "function": self._lower_function_expression,
            "function_expression": self._lower_function_expression,
            "generator_function": self._lower_function_expression,
            "sequence_expression": self._lower_sequence_expression,
            "spread_element": self._lower_spread_element,
            "await_expression": self._lower_await_expression,
            "yield_expression": self._lower_yield_expression,
        }
        self._STMT_DISPATCH: dict[str, Callable] = {
            "expression_statement": self._lower_expression_statement,
            "lexical_declaration": self._lower_var_declaration,
            "variable_declaration": self._lower_var_declaration,
            "function_declaration": self._lower_function_def,
            "generator_function_declaration": self._lower_function_def,
            "return_statement": self._lower_return,
            "if_statement": self._lower_if,
            "for_statement": self._lower_c_style_for,
            "for_in_statement": self._lower_for_in,
            "while_statement": self._lower_while,
            "do_statement": self._lower_do_statement,
            "switch_statement": self._lower_switch_statement,
            "try_statement": self._lower_try,
            "throw_statement": self._lower_throw,
            "break_statement": self._lower_break,
            "continue_statement": self._lower_continue,
            "labeled_statement": self._lower_labeled_statement,
            "statement_block": self._lower_block,
            "empty_statement": self._lower_empty,
            "import_statement": self._lower_import_statement,
            "export_statement": self._lower_export_statement,
            "class_declaration": self._lower_class_declaration,
            "with_statement": self._lower_with_statement,
        }

    # ── helpers ──────────────────────────────────────────────────

    def _node_text(self, node) -> str:
        return self._source[node.start_byte : node.end_byte].decode("utf-8")

    def _source_loc(self, node) -> SourceLocation:
        s, e = node.start_point, node.end_point
        return SourceLocation(
            start_line=s[0] + 1,
            start_col=s[1],
            end_line=e[0] + 1,
            end_col=e[1],
        )

    def _named(self, node) -> list:
        """Named children with comments filtered out."""
        return [c for c in node.named_children if c.type not in self.COMMENT_TYPES]

    def _has_token(self, node, token: str) -> bool:
        return any(not c.is_named and c.type == token for c in node.children)

    def _collect_identifiers(self, node, skip=None) -> list[str]:
        names: list[str] = []
        stack = [node]
        while stack:
            current = stack.pop()
            if skip is not None and (
                current.start_byte,
                current.end_byte,
                current.type,
            ) == (skip.start_byte, skip.end_byte, skip.type):
                continue
            if current.type in self.IDENTIFIER_TYPES:
                names.append(self._node_text(current))
            stack.extend(reversed(current.children))
        return list(dict.fromkeys(names))

    # ── entry point ──────────────────────────────────────────────

    def lower(self, tree, source: bytes) -> Program:
        self._source = source
        root = tree.root_node
        body, leftover = self._lower_statement_list(root.children)
        interpreter = next(
            (self._node_text(c) for c in root.children if c.type == "hash_bang_line"),
            None,
        )
        logger.debug("Lowered %d top-level statements", len(body))
        return Program(
            body=body,
            interpreter=interpreter,
            inner_comments=leftover,
            loc=self._source_loc(root),
        )

    # ── dispatchers ──────────────────────────────────────────────

    def _lower_statement_list(self, children) -> tuple[list[Node], list[str]]:
        """Lower a run of statements, attaching comments to their neighbours.

        A comment on the same line as the end of the previous statement trails
        it; any other comment leads the next statement.  Comments after the last
        statement are returned separately.
        """
        body: list[Node] = []
        pending: list[str] = []
        for child in children:
            if child.type in self.COMMENT_TYPES:
                text = self._node_text(child)
                if (
                    body
                    and not pending
                    and body[-1].loc.end_line == child.start_point[0] + 1
                ):
                    body[-1].trailing_comments.append(text)
                else:
                    pending.append(text)
                continue
            if not child.is_named or child.type == "hash_bang_line":
                continue
            stmt = self._lower_stmt(child)
            stmt.leading_comments = pending + stmt.leading_comments
            pending = []
            body.append(stmt)
        return body, pending

    def _lower_stmt(self, node) -> Node:
        handler = self._STMT_DISPATCH.get(node.type)
        if handler:
            return handler(node)
        logger.debug("Keeping unsupported statement %s verbatim", node.type)
        return OpaqueStatement(
            text=self._node_text(node),
            referenced=self._collect_identifiers(node),
            loc=self._source_loc(node),
        )

    def _lower_expr(self, node) -> Node:
        handler = self._EXPR_DISPATCH.get(node.type)
        if handler:
            return handler(node)
        logger.debug("Keeping unsupported expression %s verbatim", node.type)
        return OpaqueExpression(
            text=self._node_text(node),
            referenced=self._collect_identifiers(node),
            loc=self._source_loc(node),
        )

    # ── statements ───────────────────────────────────────────────

    def _lower_expression_statement(self, node) -> Node:
        inner = self._named(node)[0]
        return ExpressionStatement(
            expression=self._lower_expr(inner), loc=self._source_loc(node)
        )

    def _declaration_kind(self, node) -> str:
        if node.type == "variable_declaration":
            return "var"
        kind_node = node.child_by_field_name("kind")
        if kind_node is not None:
            return self._node_text(kind_node)
        return self._node_text(node.children[0])

    def _lower_var_declaration(self, node) -> VariableDeclaration:
        declarators = [
            self._lower_declarator(child)
            for child in node.named_children
            if child.type == "variable_declarator"
        ]
        return VariableDeclaration(
            kind=self._declaration_kind(node),
            declarations=declarators,
            loc=self._source_loc(node),
        )

    def _lower_declarator(self, node) -> VariableDeclarator:
        name_node = node.child_by_field_name("name")
        value_node = node.child_by_field_name("value")
        return VariableDeclarator(
            id=self._lower_binding_target(name_node),
            init=self._lower_expr(value_node) if value_node is not None else None,
            loc=self._source_loc(node),
        )

    def _lower_function_parts(self, node) -> dict:
        name_node = node.child_by_field_name("name")
        params_node = node.child_by_field_name("parameters")
        body_node = node.child_by_field_name("body")
        return {
            "id": self._lower_identifier(name_node) if name_node is not None else None,
            "params": self._lower_params(params_node) if params_node else [],
            "body": self._lower_block(body_node),
            "is_async": self._has_token(node, "async"),
            "is_generator": self._has_token(node, "*"),
            "loc": self._source_loc(node),
        }

    def _lower_function_def(self, node) -> FunctionDeclaration:
        return FunctionDeclaration(**self._lower_function_parts(node))

    def _lower_return(self, node) -> ReturnStatement:
        named = self._named(node)
        return ReturnStatement(
            argument=self._lower_expr(named[0]) if named else None,
            loc=self._source_loc(node),
        )

    def _lower_if(self, node) -> IfStatement:
        alternative = node.child_by_field_name("alternative")
        alternate = None
        if alternative is not None:
            target = (
                self._named(alternative)[0]
                if alternative.type == "else_clause"
                else alternative
            )
            alternate = self._lower_stmt(target)
        return IfStatement(
            test=self._lower_expr(node.child_by_field_name("condition")),
            consequent=self._lower_stmt(node.child_by_field_name("consequence")),
            alternate=alternate,
            loc=self._source_loc(node),
        )

    def _lower_for_clause(self, node) -> Node | None:
        if node is None or node.type == "empty_statement":
            return None
        if node.type in ("lexical_declaration", "variable_declaration"):
            return self._lower_var_declaration(node)
        if node.type == "expression_statement":
            return self._lower_expr(self._named(node)[0])
        return self._lower_expr(node)

    def _lower_c_style_for(self, node) -> ForStatement:
        return ForStatement(
            init=self._lower_for_clause(node.child_by_field_name("initializer")),
            test=self._lower_for_clause(node.child_by_field_name("condition")),
            update=self._lower_for_clause(node.child_by_field_name("increment")),
            body=self._lower_stmt(node.child_by_field_name("body")),
            loc=self._source_loc(node),
        )

    def _lower_for_in(self, node) -> ForInStatement:
        kind_node = node.child_by_field_name("kind")
        left_node = node.child_by_field_name("left")
        if kind_node is not None:
            left = VariableDeclaration(
                kind=self._node_text(kind_node),
                declarations=[
                    VariableDeclarator(
                        id=self._lower_binding_target(left_node),
                        loc=self._source_loc(left_node),
                    )
                ],
                loc=self._source_loc(left_node),
            )
        else:
            left = self._lower_assignment_target(left_node)
        return ForInStatement(
            left=left,
            operator=self._node_text(node.child_by_field_name("operator")),
            right=self._lower_expr(node.child_by_field_name("right")),
            body=self._lower_stmt(node.child_by_field_name("body")),
            is_await=self._has_token(node, "await"),
            loc=self._source_loc(node),
        )

    def _lower_while(self, node) -> WhileStatement:
        return WhileStatement(
            test=self._lower_expr(node.child_by_field_name("condition")),
            body=self._lower_stmt(node.child_by_field_name("body")),
            loc=self._source_loc(node),
        )

    def _lower_do_statement(self, node) -> DoWhileStatement:
        return DoWhileStatement(
            body=self._lower_stmt(node.child_by_field_name("body")),
            test=self._lower_expr(node.child_by_field_name("condition")),
            loc=self._source_loc(node),
        )

    def _lower_switch_case(self, node) -> SwitchCase:
        value_node = node.child_by_field_name("value")
        after_colon = []
        seen_colon = False
        for child in node.children:
            if seen_colon:
                after_colon.append(child)
            elif not child.is_named and child.type == ":":
                seen_colon = True
        consequent, leftover = self._lower_statement_list(after_colon)
        if consequent and leftover:
            consequent[-1].trailing_comments.extend(leftover)
        return SwitchCase(
            test=self._lower_expr(value_node) if value_node is not None else None,
            consequent=consequent,
            loc=self._source_loc(node),
        )

    def _lower_switch_statement(self, node) -> SwitchStatement:
        body = node.child_by_field_name("body")
        cases = [
            self._lower_switch_case(child)
            for child in body.named_children
            if child.type in ("switch_case", "switch_default")
        ]
        return SwitchStatement(
            discriminant=self._lower_expr(node.child_by_field_name("value")),
            cases=cases,
            loc=self._source_loc(node),
        )

    def _lower_try(self, node) -> TryStatement:
        handler_node = node.child_by_field_name("handler")
        finalizer_node = node.child_by_field_name("finalizer")
        handler = None
        if handler_node is not None:
            param_node = handler_node.child_by_field_name("parameter")
            handler = CatchClause(
                param=(
                    self._lower_binding_target(param_node)
                    if param_node is not None
                    else None
                ),
                body=self._lower_block(handler_node.child_by_field_name("body")),
                loc=self._source_loc(handler_node),
            )
        finalizer = None
        if finalizer_node is not None:
            finalizer = self._lower_block(finalizer_node.child_by_field_name("body"))
        return TryStatement(
            block=self._lower_block(node.child_by_field_name("body")),
            handler=handler,
            finalizer=finalizer,
            loc=self._source_loc(node),
        )

    def _lower_throw(self, node) -> ThrowStatement:
        return ThrowStatement(
            argument=self._lower_expr(self._named(node)[0]),
            loc=self._source_loc(node),
        )

    def _label_of(self, node) -> str | None:
        label = node.child_by_field_name("label")
        return self._node_text(label) if label is not None else None

    def _lower_break(self, node) -> BreakStatement:
        return BreakStatement(label=self._label_of(node), loc=self._source_loc(node))

    def _lower_continue(self, node) -> ContinueStatement:
        return ContinueStatement(label=self._label_of(node), loc=self._source_loc(node))

    def _lower_labeled_statement(self, node) -> LabeledStatement:
        return LabeledStatement(
            label=self._label_of(node),
            body=self._lower_stmt(node.child_by_field_name("body")),
            loc=self._source_loc(node),
        )

    def _lower_block(self, node) -> BlockStatement:
        body, leftover = self._lower_statement_list(node.children)
        return BlockStatement(
            body=body, inner_comments=leftover, loc=self._source_loc(node)
        )

    def _lower_empty(self, node) -> EmptyStatement:
        return EmptyStatement(loc=self._source_loc(node))

    def _lower_import_statement(self, node) -> ImportDeclaration:
        clause = next((c for c in node.named_children if c.type == "import_clause"), None)
        return ImportDeclaration(
            text=self._node_text(node),
            declared=self._collect_identifiers(clause) if clause is not None else [],
            loc=self._source_loc(node),
        )

    def _lower_export_statement(self, node) -> Node:
        declaration = node.child_by_field_name("declaration")
        value = node.child_by_field_name("value")
        is_default = self._has_token(node, "default")
        if declaration is not None:
            return ExportDeclaration(
                declaration=self._lower_stmt(declaration),
                is_default=is_default,
                loc=self._source_loc(node),
            )
        if value is not None:
            return ExportDeclaration(
                declaration=self._lower_expr(value),
                is_default=True,
                loc=self._source_loc(node),
            )
        return OpaqueStatement(
            text=self._node_text(node),
            referenced=self._collect_identifiers(node),
            loc=self._source_loc(node),
        )

    def _lower_class_declaration(self, node) -> OpaqueStatement:
        name_node = node.child_by_field_name("name")
        return OpaqueStatement(
            text=self._node_text(node),
            declared=[self._node_text(name_node)] if name_node is not None else [],
            referenced=self._collect_identifiers(node, skip=name_node),
            loc=self._source_loc(node),
        )

    def _lower_with_statement(self, node) -> OpaqueStatement:
        logger.warning("`with` statement at line %d", node.start_point[0] + 1)
        return OpaqueStatement(
            text=self._node_text(node),
            referenced=self._collect_identifiers(node),
            dynamic=True,
            loc=self._source_loc(node),
        )

    # ── binding targets & patterns ───────────────────────────────

    def _lower_params(self, node) -> list[Node]:
        return [self._lower_binding_target(child) for child in self._named(node)]

    def _lower_binding_target(self, node) -> Node:
        ntype = node.type
        if ntype in ("identifier", "undefined"):
            return self._lower_identifier(node)
        if ntype == "assignment_pattern":
            return AssignmentPattern(
                left=self._lower_binding_target(node.child_by_field_name("left")),
                right=self._lower_expr(node.child_by_field_name("right")),
                loc=self._source_loc(node),
            )
        if ntype == "rest_pattern":
            return RestElement(
                argument=self._lower_binding_target(self._named(node)[0]),
                loc=self._source_loc(node),
            )
        return self._lower_pattern(node, declaring=True)

    def _lower_assignment_target(self, node) -> Node:
        if node.type == "parenthesized_expression":
            return self._lower_assignment_target(self._named(node)[0])
        if node.type in self.PATTERN_TYPES:
            return self._lower_pattern(node, declaring=False)
        return self._lower_expr(node)

    def _lower_pattern(self, node, declaring: bool) -> OpaquePattern:
        declared: list[str] = []
        referenced: list[str] = []
        self._pattern_names(node, declared, referenced)
        if not declaring:
            referenced = declared + referenced
            declared = []
        return OpaquePattern(
            text=self._node_text(node),
            declared=list(dict.fromkeys(declared)),
            referenced=list(dict.fromkeys(referenced)),
            loc=self._source_loc(node),
        )

    def _pattern_names(self, node, declared: list[str], referenced: list[str]):
        ntype = node.type
        if ntype in ("identifier", "shorthand_property_identifier_pattern"):
            declared.append(self._node_text(node))
        elif ntype in ("assignment_pattern", "object_assignment_pattern"):
            self._pattern_names(node.child_by_field_name("left"), declared, referenced)
            referenced.extend(
                self._collect_identifiers(node.child_by_field_name("right"))
            )
        elif ntype == "pair_pattern":
            key = node.child_by_field_name("key")
            if key is not None and key.type == "computed_property_name":
                referenced.extend(self._collect_identifiers(key))
            self._pattern_names(node.child_by_field_name("value"), declared, referenced)
        elif ntype in ("object_pattern", "array_pattern", "rest_pattern"):
            for child in self._named(node):
                self._pattern_names(child, declared, referenced)
        elif ntype in ("member_expression", "subscript_expression"):
            referenced.extend(self._collect_identifiers(node))

    # ── expressions ──────────────────────────────────────────────

    def _lower_identifier(self, node) -> Identifier:
        return Identifier(name=self._node_text(node), loc=self._source_loc(node))

    def _lower_literal(self, node) -> Literal:
        return Literal(
            raw=self._node_text(node),
            kind=self.LITERAL_KINDS[node.type],
            loc=self._source_loc(node),
        )

    def _lower_template(self, node) -> TemplateLiteral:
        quasis: list[str] = []
        expressions: list[Node] = []
        cursor = node.start_byte + 1
        for child in node.children:
            if child.type != "template_substitution":
                continue
            quasis.append(self._source[cursor : child.start_byte].decode("utf-8"))
            expressions.append(self._lower_expr(self._named(child)[0]))
            cursor = child.end_byte
        quasis.append(self._source[cursor : node.end_byte - 1].decode("utf-8"))
        return TemplateLiteral(
            quasis=quasis, expressions=expressions, loc=self._source_loc(node)
        )

    def _lower_template_string(self, node) -> TemplateLiteral:
        return self._lower_template(node)

    def _lower_this(self, node) -> ThisExpression:
        return ThisExpression(loc=self._source_loc(node))

    def _lower_super(self, node) -> Super:
        return Super(loc=self._source_loc(node))

    def _lower_meta_property(self, node) -> MetaProperty:
        meta, _, prop = self._node_text(node).replace(" ", "").partition(".")
        return MetaProperty(meta=meta, property=prop, loc=self._source_loc(node))

    def _lower_paren(self, node) -> Node:
        inner = self._lower_expr(self._named(node)[0])
        if _ends_optional_chain(inner):
            return ParenthesizedExpression(expression=inner, loc=self._source_loc(node))
        return inner

    def _lower_binop(self, node) -> BinaryExpression:
        return BinaryExpression(
            operator=self._node_text(node.child_by_field_name("operator")),
            left=self._lower_expr(node.child_by_field_name("left")),
            right=self._lower_expr(node.child_by_field_name("right")),
            loc=self._source_loc(node),
        )

    def _lower_unop(self, node) -> UnaryExpression:
        return UnaryExpression(
            operator=self._node_text(node.child_by_field_name("operator")),
            argument=self._lower_expr(node.child_by_field_name("argument")),
            loc=self._source_loc(node),
        )

    def _lower_update_expr(self, node) -> UpdateExpression:
        return UpdateExpression(
            operator=self._node_text(node.child_by_field_name("operator")),
            prefix=node.children[0].type in ("++", "--"),
            argument=self._lower_assignment_target(
                node.child_by_field_name("argument")
            ),
            loc=self._source_loc(node),
        )

    def _lower_assignment_expr(self, node) -> AssignmentExpression:
        operator_node = node.child_by_field_name("operator")
        return AssignmentExpression(
            operator=self._node_text(operator_node) if operator_node else "=",
            left=self._lower_assignment_target(node.child_by_field_name("left")),
            right=self._lower_expr(node.child_by_field_name("right")),
            loc=self._source_loc(node),
        )

    def _lower_arguments(self, node) -> list[Node]:
        if node is None:
            return []
        return [self._lower_expr(child) for child in self._named(node)]

    def _lower_call(self, node) -> Node:
        func_node = node.child_by_field_name("function")
        args_node = node.child_by_field_name("arguments")
        callee = self._lower_expr(func_node)
        if args_node is not None and args_node.type == "template_string":
            return TaggedTemplateExpression(
                tag=callee,
                quasi=self._lower_template(args_node),
                loc=self._source_loc(node),
            )
        return CallExpression(
            callee=callee,
            arguments=self._lower_arguments(args_node),
            optional=any(c.type == "optional_chain" for c in node.children),
            loc=self._source_loc(node),
        )

    def _lower_new_expression(self, node) -> NewExpression:
        return NewExpression(
            callee=self._lower_expr(node.child_by_field_name("constructor")),
            arguments=self._lower_arguments(node.child_by_field_name("arguments")),
            loc=self._source_loc(node),
        )

    def _lower_member(self, node) -> MemberExpression:
        prop_node = node.child_by_field_name("property")
        return MemberExpression(
            object=self._lower_expr(node.child_by_field_name("object")),
            property=PropertyIdentifier(
                name=self._node_text(prop_node), loc=self._source_loc(prop_node)
            ),
            optional=any(c.type == "optional_chain" for c in node.children),
            loc=self._source_loc(node),
        )

    def _lower_subscript(self, node) -> MemberExpression:
        return MemberExpression(
            object=self._lower_expr(node.child_by_field_name("object")),
            property=self._lower_expr(node.child_by_field_name("index")),
            computed=True,
            optional=any(c.type == "optional_chain" for c in node.children),
            loc=self._source_loc(node),
        )

    def _lower_ternary(self, node) -> ConditionalExpression:
        return ConditionalExpression(
            test=self._lower_expr(node.child_by_field_name("condition")),
            consequent=self._lower_expr(node.child_by_field_name("consequence")),
            alternate=self._lower_expr(node.child_by_field_name("alternative")),
            loc=self._source_loc(node),
        )

    def _lower_array(self, node) -> ArrayExpression:
        elements: list[Node | None] = []
        slot_filled = False
        for child in node.children:
            if child.type == ",":
                if not slot_filled:
                    elements.append(None)
                slot_filled = False
            elif child.is_named and child.type not in self.COMMENT_TYPES:
                elements.append(self._lower_expr(child))
                slot_filled = True
        return ArrayExpression(elements=elements, loc=self._source_loc(node))

    def _lower_property_key(self, node) -> tuple[Node, bool]:
        if node.type == "computed_property_name":
            return self._lower_expr(self._named(node)[0]), True
        if node.type in ("string", "number"):
            return self._lower_literal(node), False
        return (
            PropertyIdentifier(name=self._node_text(node), loc=self._source_loc(node)),
            False,
        )

    def _lower_method(self, node) -> Property:
        key, computed = self._lower_property_key(node.child_by_field_name("name"))
        kind = "method"
        if self._has_token(node, "get"):
            kind = "get"
        elif self._has_token(node, "set"):
            kind = "set"
        params_node = node.child_by_field_name("parameters")
        value = FunctionExpression(
            id=None,
            params=self._lower_params(params_node) if params_node else [],
            body=self._lower_block(node.child_by_field_name("body")),
            is_async=self._has_token(node, "async"),
            is_generator=self._has_token(node, "*"),
            loc=self._source_loc(node),
        )
        return Property(
            key=key,
            value=value,
            computed=computed,
            kind=kind,
            loc=self._source_loc(node),
        )

    def _lower_object(self, node) -> ObjectExpression:
        properties: list[Node] = []
        for child in self._named(node):
            ctype = child.type
            if ctype == "pair":
                key, computed = self._lower_property_key(
                    child.child_by_field_name("key")
                )
                properties.append(
                    Property(
                        key=key,
                        value=self._lower_expr(child.child_by_field_name("value")),
                        computed=computed,
                        loc=self._source_loc(child),
                    )
                )
            elif ctype == "shorthand_property_identifier":
                name = self._node_text(child)
                loc = self._source_loc(child)
                properties.append(
                    Property(
                        key=PropertyIdentifier(name=name, loc=loc),
                        value=Identifier(name=name, loc=loc),
                        shorthand=True,
                        loc=loc,
                    )
                )
            elif ctype == "spread_element":
                properties.append(self._lower_spread_element(child))
            elif ctype == "method_definition":
                properties.append(self._lower_method(child))
            else:
                properties.append(self._lower_expr(child))
        return ObjectExpression(properties=properties, loc=self._source_loc(node))

    def _lower_arrow_function(self, node) -> ArrowFunctionExpression:
        param = node.child_by_field_name("parameter")
        if param is not None:
            params = [self._lower_binding_target(param)]
        else:
            params = self._lower_params(node.child_by_field_name("parameters"))
        body_node = node.child_by_field_name("body")
        body = (
            self._lower_block(body_node)
            if body_node.type == "statement_block"
            else self._lower_expr(body_node)
        )
        return ArrowFunctionExpression(
            params=params,
            body=body,
            is_async=self._has_token(node, "async"),
            loc=self._source_loc(node),
        )

    def _lower_function_expression(self, node) -> FunctionExpression:
        return FunctionExpression(**self._lower_function_parts(node))

    def _lower_sequence_expression(self, node) -> SequenceExpression:
        expressions: list[Node] = []
        for child in self._named(node):
            lowered = self._lower_expr(child)
            if isinstance(lowered, SequenceExpression):
                expressions.extend(lowered.expressions)
            else:
                expressions.append(lowered)
        return SequenceExpression(expressions=expressions, loc=self._source_loc(node))

    def _lower_spread_element(self, node) -> SpreadElement:
        return SpreadElement(
            argument=self._lower_expr(self._named(node)[0]),
            loc=self._source_loc(node),
        )

    def _lower_await_expression(self, node) -> AwaitExpression:
        return AwaitExpression(
            argument=self._lower_expr(self._named(node)[0]),
            loc=self._source_loc(node),
        )

    def _lower_yield_expression(self, node) -> YieldExpression:
        named = self._named(node)
        return YieldExpression(
            argument=self._lower_expr(named[0]) if named else None,
            delegate=self._has_token(node, "*"),
            loc=self._source_loc(node),
        )


def _ends_optional_chain(node: Node) -> bool:
    """True when *node* is a member/call chain containing ``?.``."""
    current = node
    while isinstance(current, (MemberExpression, CallExpression)):
        if current.optional:
            return True
        current = (
            current.object if isinstance(current, MemberExpression) else current.callee
        )
    return False
