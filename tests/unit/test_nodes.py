"""Tests for AST nodes: source locations, traversal and cloning."""

from __future__ import annotations

import sys

import pytest
from pydantic import ValidationError

from floated_binding.nodes import (
    CallExpression,
    Identifier,
    NO_SOURCE_LOCATION,
    OpaqueStatement,
    SourceLocation,
    clone,
    walk,
)


def _curried_chain(depth: int) -> CallExpression:
    node = CallExpression(callee=Identifier("f"), arguments=[Identifier("x")])
    for _ in range(depth):
        node = CallExpression(callee=node, arguments=[Identifier("x")])
    return node


class TestSourceLocation:
    def test_is_immutable(self):
        loc = SourceLocation(start_line=1, start_col=0, end_line=1, end_col=4)
        with pytest.raises(ValidationError):
            loc.start_line = 2

    def test_is_hashable(self):
        a = SourceLocation(start_line=1, start_col=0, end_line=1, end_col=4)
        b = SourceLocation(start_line=1, start_col=0, end_line=1, end_col=4)
        assert hash(a) == hash(b)

    def test_default_location_is_shared(self):
        assert Identifier("a").loc is NO_SOURCE_LOCATION
        assert Identifier("b").loc is NO_SOURCE_LOCATION
        assert str(NO_SOURCE_LOCATION) == "<unknown>"


class TestWalk:
    def test_pre_order(self):
        call = CallExpression(callee=Identifier("f"), arguments=[Identifier("x")])
        names = [n.name for n in walk(call) if isinstance(n, Identifier)]
        assert names == ["f", "x"]

    def test_deep_chain(self):
        depth = sys.getrecursionlimit() * 2
        calls = [n for n in walk(_curried_chain(depth)) if isinstance(n, CallExpression)]
        assert len(calls) == depth + 1


class TestClone:
    def test_copy_shares_no_nodes(self):
        original = _curried_chain(3)
        copied = clone(original)
        originals = {id(n) for n in walk(original)}
        assert not any(id(n) in originals for n in walk(copied))
        assert len(list(walk(copied))) == len(list(walk(original)))

    def test_scalar_fields_and_locations_carry_over(self):
        loc = SourceLocation(start_line=2, start_col=1, end_line=2, end_col=5)
        original = CallExpression(
            callee=Identifier("f", loc=loc),
            arguments=[None, Identifier("x")],
            optional=True,
            loc=loc,
        )
        copied = clone(original)
        assert copied.optional
        assert copied.loc == loc
        assert copied.callee.name == "f"
        assert copied.arguments[0] is None
        assert copied.arguments[1].name == "x"

    def test_list_fields_are_not_shared(self):
        original = OpaqueStatement(text="class A {}", declared=["A"])
        original.leading_comments.append("// a")
        copied = clone(original)
        copied.declared.append("B")
        copied.leading_comments.append("// b")
        assert original.declared == ["A"]
        assert original.leading_comments == ["// a"]

    def test_deep_chain_does_not_recurse(self):
        depth = sys.getrecursionlimit() * 2
        copied = clone(_curried_chain(depth))
        levels = 0
        current = copied
        while isinstance(current, CallExpression):
            levels += 1
            current = current.callee
        assert levels == depth + 1
        assert current.name == "f"
