"""Scope Resolver — outermost scope a candidate can be evaluated in.

Starting at the function that contains the use-site, the target widens one
function (or the program) at a time.  Every widening step is judged from the
use-site: the binding a free variable refers to *there* must be owned by the
wider scope or one of its ancestors (parameters belong to their function's
scope), or the name must be an implicit global.  A binding visible to the
immediate enclosing function is not necessarily visible two levels out, so
no step is assumed from the previous one.
"""

from __future__ import annotations

import logging
from typing import Iterable

from .scope import Scope

logger = logging.getLogger(__name__)


def is_resolvable(name: str, use_scope: Scope) -> bool:
    """Found as an own binding or implicit global somewhere up the chain."""
    return any(
        scope.has_own_binding(name) or scope.has_global(name)
        for scope in use_scope.ancestors()
    )


def next_function_scope(scope: Scope) -> Scope | None:
    """The nearest strict ancestor that is a function or the program."""
    parent = scope.parent
    if parent is None:
        return None
    return parent.function_parent()


def _visible_from(name: str, use_scope: Scope, wider: Scope) -> bool:
    binding = use_scope.get_binding(name)
    if binding is None:
        return wider.has_global(name)
    return binding.scope.is_ancestor_or_self_of(wider)


def resolve(names: Iterable[str], use_scope: Scope) -> Scope | None:
    """Outermost legal target for a candidate with free variables *names*.

    Returns the program scope when there are no free variables and None when
    some name cannot be resolved from the use-site at all.
    """
    names = list(names)
    if not names:
        return use_scope.program_parent()
    unresolved = [n for n in names if not is_resolvable(n, use_scope)]
    if unresolved:
        logger.debug("Unresolvable names %s; not floating", unresolved)
        return None

    target = use_scope.function_parent()
    while True:
        wider = next_function_scope(target)
        if wider is None:
            break
        blocked = next((n for n in names if not _visible_from(n, use_scope, wider)), None)
        if blocked is not None:
            logger.debug("Widening past %r blocked by %r", target, blocked)
            break
        target = wider
    return target
