"""Tree-Sitter Parsing Layer."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from tree_sitter import Tree

from . import constants

logger = logging.getLogger(__name__)


class ParseError(Exception):
    """Raised when the source cannot be parsed into a well-formed tree."""

    def __init__(self, message: str, line: int = 0, column: int = 0):
        super().__init__(message)
        self.line = line
        self.column = column


class ParserFactory(ABC):
    """Abstract factory for obtaining a language parser."""

    @abstractmethod
    def get_parser(self, language: str): ...


class TreeSitterParserFactory(ParserFactory):
    """Concrete factory that delegates to tree-sitter-language-pack."""

    def get_parser(self, language: str):
        import tree_sitter_language_pack as tslp

        return tslp.get_parser(language)


def _first_error(node):
    """Depth-first search for the first ERROR or MISSING node."""
    if node.type == "ERROR" or node.is_missing:
        return node
    return next(
        (
            found
            for child in node.children
            if child.has_error and (found := _first_error(child)) is not None
        ),
        None,
    )


class Parser:
    """Thin wrapper around a parser factory that rejects malformed input."""

    def __init__(self, parser_factory: ParserFactory):
        self._factory = parser_factory

    def parse(self, source: str, language: str = constants.LANGUAGE_JAVASCRIPT) -> Tree:
        parser = self._factory.get_parser(language)
        tree = parser.parse(source.encode("utf-8"))
        if tree.root_node.has_error:
            bad = _first_error(tree.root_node) or tree.root_node
            line, column = bad.start_point[0] + 1, bad.start_point[1]
            logger.info("Parse failure at %d:%d", line, column)
            raise ParseError(
                f"Syntax error at line {line}, column {column}", line, column
            )
        return tree
