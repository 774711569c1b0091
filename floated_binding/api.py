"""Composable API functions for the floating pass.

Each function corresponds to a CLI workflow (stdout, --in-place, --stats)
but is callable programmatically without argparse.
"""

from __future__ import annotations

import logging
import sys
import time
from contextlib import contextmanager
from pathlib import Path

from . import constants
from .frontend import JavaScriptFrontend
from .nodes import Program
from .parser import Parser, TreeSitterParserFactory
from .printer import print_code
from .run_types import FloatConfig, TransformStats
from .transform import float_program

logger = logging.getLogger(__name__)


class SourceTooLargeError(Exception):
    """Raised when an input file exceeds the configured size limit."""

    def __init__(self, path: Path, size: int, limit: int):
        super().__init__(
            f"File too large: {size / 1024 / 1024:.2f}MB "
            f"(max: {limit / 1024 / 1024:.0f}MB): {path}"
        )
        self.path = path
        self.size = size
        self.limit = limit


@contextmanager
def recursion_headroom(limit: int = constants.RECURSION_LIMIT):
    """Raise the interpreter recursion limit to *limit* for the enclosed stages.

    Lowering, scope analysis, floating and printing recurse once per nesting
    level of the input; long curried chains and operator runs nest deeply.
    """
    previous = sys.getrecursionlimit()
    if limit > previous:
        sys.setrecursionlimit(limit)
    try:
        yield
    finally:
        sys.setrecursionlimit(previous)


def parse_source(source: str, language: str = constants.LANGUAGE_JAVASCRIPT) -> Program:
    """Parse source text into a mutable AST.

    Raises:
        ParseError: if the source has syntax errors.
    """
    with recursion_headroom():
        tree = Parser(TreeSitterParserFactory()).parse(source, language)
        return JavaScriptFrontend().lower(tree, source.encode("utf-8"))


def float_tree(program: Program, config: FloatConfig | None = None) -> TransformStats:
    """Run the floating pass over an already parsed program, in place."""
    with recursion_headroom():
        return float_program(program, config)


def float_source_with_stats(
    source: str, config: FloatConfig | None = None
) -> tuple[str, TransformStats]:
    """Parse, float and print; also return the run statistics.

    A unit that uses ``eval`` or ``with`` is returned exactly as given.

    Args:
        source: JavaScript source text.
        config: Naming and limit configuration; defaults to ``FloatConfig()``.

    Returns:
        The transformed code (without a trailing newline) and its statistics.
    """
    config = config or FloatConfig()
    t0 = time.perf_counter()
    program = parse_source(source, config.language)
    t1 = time.perf_counter()
    stats = float_tree(program, config)
    t2 = time.perf_counter()
    with recursion_headroom():
        code = source if stats.skipped_reason else print_code(program)
    t3 = time.perf_counter()

    stats.source_bytes = len(source.encode("utf-8"))
    stats.source_lines = source.count("\n") + (0 if source.endswith("\n") else 1)
    stats.parse_time = t1 - t0
    stats.transform_time = t2 - t1
    stats.print_time = t3 - t2
    logger.info(
        "Transformed %d bytes: %d floated in %.1fms",
        stats.source_bytes,
        stats.floated,
        (t3 - t0) * 1000,
    )
    return code, stats


def float_source(source: str, config: FloatConfig | None = None) -> str:
    """Parse, float and print JavaScript source."""
    code, _ = float_source_with_stats(source, config)
    return code


def read_source(path: str | Path, max_bytes: int = constants.MAX_INPUT_BYTES) -> str:
    """Read a source file, enforcing the input size limit.

    Raises:
        FileNotFoundError: if *path* is not an existing file.
        SourceTooLargeError: if the file is larger than *max_bytes*.
    """
    path = Path(path).resolve()
    if not path.is_file():
        raise FileNotFoundError(f"File not found: {path}")
    size = path.stat().st_size
    if size > max_bytes:
        raise SourceTooLargeError(path, size, max_bytes)
    return path.read_text(encoding="utf-8")


def float_file(
    path: str | Path, in_place: bool = False, config: FloatConfig | None = None
) -> tuple[str, TransformStats]:
    """Float a file; with *in_place* the result replaces the file's contents.

    A skipped unit (``eval`` or ``with``) is never rewritten.
    """
    config = config or FloatConfig()
    source = read_source(path, config.max_input_bytes)
    code, stats = float_source_with_stats(source, config)
    if in_place and not stats.skipped_reason:
        Path(path).write_text(code + "\n", encoding="utf-8")
        logger.info("Rewrote %s", path)
    return code, stats
