"""Free-Variable Collector — externally bound names an expression reads."""

from __future__ import annotations

from .nodes import Identifier, Node, walk
from .scope import ScopeTable


def free_vars(subtree: Node, table: ScopeTable) -> list[str]:
    """Names referenced in *subtree* that are not bound inside it.

    Only identifiers in reference position count: property names, object keys,
    declared names and labels never do.  Names that opaque nodes mention are
    included.  A declarator's own name is not excluded when its initializer is
    collected, so ``x = x || y`` reports ``x``.  Order follows first occurrence.
    """
    nodes = list(walk(subtree))
    local_scopes = {id(s) for s in (table.scope_for(n) for n in nodes) if s is not None}
    names: dict[str, None] = {}
    for node in nodes:
        if isinstance(node, Identifier):
            if not table.is_reference(node):
                continue
            resolved = [(node.name, table.binding_of(node))]
        else:
            resolved = table.references_in(node)
        for name, binding in resolved:
            if binding is None or id(binding.scope) not in local_scopes:
                names.setdefault(name)
    return list(names)
