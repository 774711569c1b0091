"""Transform run data types (pure data, no floating logic)."""

from __future__ import annotations

import re
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum

from pydantic import BaseModel

from . import constants
from .nodes import Node, SourceLocation, walk
from .scope import Scope, ScopeTable


class CandidateKind(Enum):
    """Syntactic category a node is classified into before any analysis."""

    DECLARATION = "declaration"
    BARE_CALL = "bare_call"
    NONE = "none"


class FloatOutcome(Enum):
    """What happened to one classified candidate."""

    FLOATED = "floated"
    REJECTED_IMPURE = "impure"
    REJECTED_UNUSED = "unused"
    REJECTED_NO_DEPENDENCIES = "no_dependencies"
    REJECTED_UNRESOLVED = "unresolved"
    REJECTED_NO_GAIN = "no_gain"
    REJECTED_LOCAL_DEPENDENCY = "local_dependency"


@dataclass(frozen=True)
class FloatConfig:
    """Groups naming and input-limit configuration for a run."""

    helper_base_name: str = constants.HELPER_BASE_NAME
    accessor_suffix: str = constants.ACCESSOR_SUFFIX
    default_base_name: str = constants.DEFAULT_BASE_NAME
    max_input_bytes: int = constants.MAX_INPUT_BYTES
    language: str = constants.LANGUAGE_JAVASCRIPT

    def accessor_pattern(self) -> re.Pattern:
        """Matches names this pass gives to hoisted accessors."""
        return re.compile(re.escape(self.accessor_suffix) + r"(_\d+)?$")

    def helper_pattern(self) -> re.Pattern:
        """Matches the helper name and its collision-free variants."""
        return re.compile("^" + re.escape(self.helper_base_name) + r"(_\d+)?$")


@dataclass
class FloatCandidate:
    """One node under consideration; computed and consumed per candidate."""

    node: Node
    kind: CandidateKind
    use_scope: Scope
    free_vars: list[str] = field(default_factory=list)
    target: Scope | None = None
    base_name: str = ""


class FloatRecord(BaseModel):
    """Report entry for a floated candidate."""

    name: str
    kind: str
    target: str
    free_vars: list[str]
    loc: SourceLocation


@dataclass
class TransformStats:
    """Counts and timings for one run of the pass."""

    source_bytes: int = 0
    source_lines: int = 0
    helper_name: str = ""
    helper_injected: bool = False
    helper_reused: bool = False
    skipped_reason: str = ""

    parse_time: float = 0.0
    transform_time: float = 0.0
    print_time: float = 0.0

    outcomes: Counter = field(default_factory=Counter)
    records: list[FloatRecord] = field(default_factory=list)

    def record(self, outcome: FloatOutcome) -> None:
        self.outcomes[outcome] += 1

    @property
    def candidates(self) -> int:
        return sum(self.outcomes.values())

    @property
    def floated(self) -> int:
        return self.outcomes[FloatOutcome.FLOATED]

    def report(self) -> str:
        lines = [
            "═══ Floating Statistics ═══",
            f"  Source: {self.source_lines} lines, {self.source_bytes} bytes",
        ]
        if self.skipped_reason:
            lines.append(f"  Skipped: {self.skipped_reason}")
        helper_state = (
            "reused" if self.helper_reused else "injected" if self.helper_injected else "absent"
        )
        lines.append(f"  Helper: {self.helper_name or '-'} ({helper_state})")
        lines.append("")
        lines.append(f"  {'Outcome':<24} {'Count':>8}")
        lines.append(f"  {'─' * 24} {'─' * 8}")
        for outcome in FloatOutcome:
            lines.append(f"  {outcome.value:<24} {self.outcomes[outcome]:>8}")
        lines.append(f"  {'─' * 24} {'─' * 8}")
        lines.append(f"  {'Candidates':<24} {self.candidates:>8}")
        lines.append("")
        stages = [
            ("Parse", self.parse_time),
            ("Transform", self.transform_time),
            ("Print", self.print_time),
        ]
        for name, t in stages:
            lines.append(f"  {name:<24} {t * 1000:>6.1f}ms")
        return "\n".join(lines)


@dataclass
class RunState:
    """Mutable state for exactly one transform invocation.

    ``generated`` holds every node this run created; they are never analysed
    again.  ``reserved`` records, per scope, the names this run has claimed.
    """

    config: FloatConfig
    table: ScopeTable
    helper_name: str = ""
    generated: set[Node] = field(default_factory=set)
    reserved: dict[Scope, set[str]] = field(default_factory=dict)
    stats: TransformStats = field(default_factory=TransformStats)

    def mark_generated(self, node: Node) -> Node:
        """Mark *node* and its whole subtree as generated; returns *node*."""
        self.generated.update(walk(node))
        return node

    def is_generated(self, node: Node) -> bool:
        return node in self.generated

    def reserved_in(self, scope: Scope) -> set[str]:
        return self.reserved.get(scope, set())

    def reserve(self, scope: Scope, name: str) -> None:
        self.reserved.setdefault(scope, set()).add(name)
