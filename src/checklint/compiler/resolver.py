# Copyright 2026 Checklint Contributors
# SPDX-License-Identifier: Apache-2.0

"""Referential resolution of `facts.*`, `values.*`, and `env.*` identifiers.

Name indexes are built once per Check, so every lookup is a dictionary hit
regardless of how many expressions reference the same name. Resolution only
considers expressions that parsed; unparseable sites are skipped.
"""

from __future__ import annotations

from collections.abc import Iterable

from checklint.compiler.index import ExpressionIndex, ExpressionSite
from checklint.model.check import Check, Fact, Value
from checklint.model.expression import FieldReference, Namespace, references

# ###############
# Public Interface
# ###############

DEFAULT_ENV_IDENTIFIERS: frozenset[str] = frozenset(
    {
        "provider",
        "target_type",
        "cluster_type",
        "architecture_type",
        "ensa_version",
        "filesystem_type",
    }
)


class Resolver:
    """Answers whether references in a Check's expressions resolve.

    Args:
        check: The Check whose facts and values form the lookup scope.
        index: The parsed expressions of *check*.
        env_identifiers: Names accepted after ``env.``.
    """

    def __init__(
        self,
        check: Check,
        index: ExpressionIndex,
        env_identifiers: Iterable[str] = DEFAULT_ENV_IDENTIFIERS,
    ) -> None:
        self._check = check
        self._index = index
        self._env = frozenset(env_identifiers)
        # The first declaration wins; duplicates are reported by their own rule.
        self._facts: dict[str, Fact] = {}
        for fact in check.facts:
            self._facts.setdefault(fact.name, fact)
        self._values: dict[str, Value] = {}
        for value in check.values:
            self._values.setdefault(value.name, value)

    @property
    def env_identifiers(self) -> frozenset[str]:
        return self._env

    def fact(self, name: str) -> Fact | None:
        return self._facts.get(name)

    def value(self, name: str) -> Value | None:
        return self._values.get(name)

    def resolves(self, ref: FieldReference) -> bool:
        """Return True if *ref* names a declared fact, value, or known env identifier."""
        if ref.namespace == Namespace.FACTS:
            return ref.identifier in self._facts
        if ref.namespace == Namespace.VALUES:
            return ref.identifier in self._values
        return ref.identifier in self._env

    def references(self, site: ExpressionSite) -> list[FieldReference]:
        """Return the references of a parsed site, or nothing if it did not parse."""
        if site.expression is None:
            return []
        return references(site.expression)

    def unresolved(self) -> list[tuple[ExpressionSite, FieldReference]]:
        """Return every unresolved reference, in document order."""
        result: list[tuple[ExpressionSite, FieldReference]] = []
        for site in self._index.valid():
            for ref in self.references(site):
                if not self.resolves(ref):
                    result.append((site, ref))
        return result

    def value_dependencies(self) -> dict[str, list[str]]:
        """Return the Value-to-Value dependency graph.

        An edge ``A -> B`` exists when a condition of Value ``A`` references
        ``values.B`` and ``B`` is declared. A Value referring to itself adds no
        edge.
        """
        graph: dict[str, list[str]] = {name: [] for name in self._values}
        for site in self._index.valid():
            if site.owner_kind != "value":
                continue
            targets = graph.setdefault(site.owner, [])
            for ref in self.references(site):
                if ref.namespace != Namespace.VALUES or ref.identifier == site.owner:
                    continue
                if ref.identifier in self._values and ref.identifier not in targets:
                    targets.append(ref.identifier)
        return graph

    def value_cycles(self) -> list[list[str]]:
        """Return each distinct dependency cycle among Values.

        Every cycle is reported with its start node repeated at the end, e.g.
        ``["a", "b", "a"]``. Cycles are listed in declaration order of the
        first Value on them.
        """
        return _find_cycles(self.value_dependencies())


# ################
# Implementation
# ################


def _find_cycles(graph: dict[str, list[str]]) -> list[list[str]]:
    """Detect cycles in a directed graph using an iterative DFS.

    Uses a three-colour marking scheme (white/grey/black) to distinguish
    unvisited, in-progress, and fully-explored nodes. A back edge to a grey
    node closes a cycle. Each cycle is recorded once, keyed by its node
    sequence rotated to start at the smallest name.
    """
    WHITE, GREY, BLACK = 0, 1, 2
    color: dict[str, int] = {}
    cycles: list[list[str]] = []
    seen: set[tuple[str, ...]] = set()

    for root in graph:
        if color.get(root, WHITE) != WHITE:
            continue
        color[root] = GREY
        path = [root]
        pending = [iter(graph.get(root, []))]
        while pending:
            neighbor = next(pending[-1], None)
            if neighbor is None:
                pending.pop()
                color[path.pop()] = BLACK
                continue
            state = color.get(neighbor, WHITE)
            if state == GREY:
                cycle = path[path.index(neighbor) :]
                key = _rotated(cycle)
                if key not in seen:
                    seen.add(key)
                    cycles.append(cycle + [neighbor])
            elif state == WHITE:
                color[neighbor] = GREY
                path.append(neighbor)
                pending.append(iter(graph.get(neighbor, [])))
    return cycles


def _rotated(cycle: list[str]) -> tuple[str, ...]:
    start = cycle.index(min(cycle))
    return tuple(cycle[start:] + cycle[:start])
