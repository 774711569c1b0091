"""Floated Binding — hoist pure bindings of curried JavaScript into memoized thunks."""

from .api import (  # noqa: F401
    SourceTooLargeError,
    float_file,
    float_source,
    float_source_with_stats,
    float_tree,
    parse_source,
    read_source,
)
from .parser import ParseError  # noqa: F401
from .run_types import FloatConfig, FloatOutcome, TransformStats  # noqa: F401
