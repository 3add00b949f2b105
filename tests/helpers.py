"""Helpers shared by the cycle tests."""

from collections.abc import Iterable

from antares.core.types import Cycle


def canonical(nodes: Iterable[str]) -> tuple[str, ...]:
    """Rotate an open cycle path so its smallest node comes first."""
    nodes = list(nodes)
    i = nodes.index(min(nodes))
    return tuple(nodes[i:] + nodes[:i])


def cycle_keys(cycles: Iterable[Cycle]) -> set[tuple[str, ...]]:
    """Canonical open paths of a cycle list."""
    return {canonical(c.nodes[:-1]) for c in cycles}
