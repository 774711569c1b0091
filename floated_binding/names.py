"""Name Allocator — readable, collision-free names for hoisted accessors."""

from __future__ import annotations

import logging
import re

from . import constants
from .nodes import CallExpression, Identifier
from .run_types import RunState
from .scope import Scope

logger = logging.getLogger(__name__)

_UNSAFE_NAME_CHARS = re.compile(constants.UNSAFE_NAME_CHARS_PATTERN)


def sanitize_base(base: str, default: str = constants.DEFAULT_BASE_NAME) -> str:
    return _UNSAFE_NAME_CHARS.sub("_", base) or default


def derive_base_from_call(
    call: CallExpression, default: str = constants.DEFAULT_BASE_NAME
) -> str:
    """``add(x)(y)`` → ``add_y``: the callee name (or the inner callee's when
    the callee is itself a call) followed by the identifier arguments."""
    base = default
    if isinstance(call.callee, Identifier):
        base = call.callee.name
    elif isinstance(call.callee, CallExpression) and isinstance(
        call.callee.callee, Identifier
    ):
        base = call.callee.callee.name
    arg_names = "_".join(a.name for a in call.arguments if isinstance(a, Identifier))
    if arg_names:
        base = f"{base}_{arg_names}"
    return sanitize_base(base, default)


def is_taken(name: str, target: Scope, use_scope: Scope, state: RunState) -> bool:
    """Whether *name* would clash at *target* or be shadowed on the way to it.

    Clashes are any binding, builtin, implicit global or reservation at the
    target or above it, and any own binding or reservation in the scopes from
    the use-site up to (not including) the target.
    """
    for scope in target.ancestors():
        if (
            name in state.reserved_in(scope)
            or scope.has_binding(name)
            or scope.has_global(name)
        ):
            return True
    for scope in use_scope.ancestors():
        if scope is target:
            break
        if name in state.reserved_in(scope) or scope.has_own_binding(name):
            return True
    return False


def allocate(base: str, target: Scope, use_scope: Scope, state: RunState) -> str:
    """Pick ``<base>__fb`` or the first free ``<base>__fb_N`` and reserve it."""
    config = state.config
    base = sanitize_base(base, config.default_base_name)
    name = f"{base}{config.accessor_suffix}"
    index = 1
    while is_taken(name, target, use_scope, state):
        name = f"{base}{config.accessor_suffix}_{index}"
        index += 1
    state.reserve(target, name)
    logger.debug("Allocated %s in %r", name, target)
    return name
