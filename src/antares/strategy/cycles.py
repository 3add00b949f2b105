"""
Bounded elementary cycle enumeration.

Two stages over a frozen GraphModel:

1. Tarjan's strongly connected components, iterative, so deep graphs do
   not hit the recursion limit.
2. Johnson's circuit search inside each component, bounded to cycles of
   ``min_len..max_len`` edges.

Both stages run over dense integer indices instead of currency strings.
Each cycle is emitted once, anchored at its lowest index, so the output
order is fixed for a given graph and insertion order.
"""

import logging
from collections.abc import Callable, Sequence

from antares.config.constants import DEFAULT_MAX_CYCLE_LEN, DEFAULT_MIN_CYCLE_LEN
from antares.core.errors import EnumerationOverflow
from antares.core.types import Cycle, VisitAction
from antares.strategy.graph import GraphModel


logger = logging.getLogger(__name__)

CycleVisitor = Callable[[Cycle], VisitAction]


def strongly_connected_components(adjacency: Sequence[Sequence[int]]) -> list[list[int]]:
    """
    Find strongly connected components with an iterative Tarjan pass.

    Args:
        adjacency: Successor indices for each index ``0..n-1``.

    Returns:
        Components as sorted index lists, ordered by their lowest index.
    """
    n = len(adjacency)
    index = [-1] * n
    low = [0] * n
    on_stack = [False] * n
    stack: list[int] = []
    components: list[list[int]] = []
    counter = 0

    for root in range(n):
        if index[root] != -1:
            continue

        index[root] = low[root] = counter
        counter += 1
        stack.append(root)
        on_stack[root] = True
        work: list[tuple[int, int]] = [(root, 0)]

        while work:
            v, i = work[-1]
            successors = adjacency[v]

            if i < len(successors):
                work[-1] = (v, i + 1)
                w = successors[i]
                if index[w] == -1:
                    index[w] = low[w] = counter
                    counter += 1
                    stack.append(w)
                    on_stack[w] = True
                    work.append((w, 0))
                elif on_stack[w] and index[w] < low[v]:
                    low[v] = index[w]
                continue

            work.pop()
            if work:
                parent = work[-1][0]
                if low[v] < low[parent]:
                    low[parent] = low[v]

            if low[v] == index[v]:
                component: list[int] = []
                while True:
                    w = stack.pop()
                    on_stack[w] = False
                    component.append(w)
                    if w == v:
                        break
                component.sort()
                components.append(component)

    components.sort(key=lambda c: c[0])
    return components


class CycleEnumerator:
    """
    Enumerates the elementary cycles of a graph within a length window.

    Self-loops and 2-cycles are never emitted. A component whose search
    examines more than ``budget`` neighbor steps is abandoned with a
    warning; the cycles it already produced are kept.
    """

    def __init__(
        self,
        graph: GraphModel,
        min_len: int = DEFAULT_MIN_CYCLE_LEN,
        max_len: int = DEFAULT_MAX_CYCLE_LEN,
        budget: int | None = None,
    ) -> None:
        """
        Initialize the enumerator.

        Args:
            graph: Graph to search. Should be frozen.
            min_len: Shortest cycle, in edges. At least 3.
            max_len: Longest cycle, in edges.
            budget: Neighbor steps allowed per component, or None.
        """
        if min_len < 3 or min_len > max_len:
            raise ValueError(f"invalid cycle length window [{min_len}, {max_len}]")
        if budget is not None and budget < 1:
            raise ValueError(f"budget must be positive, got {budget}")

        self._graph = graph
        self._min_len = min_len
        self._max_len = max_len
        self._budget = budget

        self.components_searched = 0
        self.overflowed_components = 0

    def cycles(self) -> list[Cycle]:
        """Collect every cycle, in discovery order."""
        found: list[Cycle] = []

        def collect(cycle: Cycle) -> VisitAction:
            found.append(cycle)
            return VisitAction.CONTINUE

        self.visit_cycles(collect)
        return found

    def visit_cycles(self, visitor: CycleVisitor) -> bool:
        """
        Feed each cycle to ``visitor`` until it returns ``VisitAction.STOP``.

        Args:
            visitor: Called once per cycle.

        Returns:
            True if the visitor stopped the search early.
        """
        self.components_searched = 0
        self.overflowed_components = 0

        nodes = self._graph.nodes()
        position = {node: i for i, node in enumerate(nodes)}
        adjacency = [[position[t] for t in self._graph.successors(node)] for node in nodes]

        for component in strongly_connected_components(adjacency):
            if len(component) < self._min_len:
                continue

            self.components_searched += 1
            try:
                if self._search_component(component, adjacency, nodes, visitor):
                    return True
            except EnumerationOverflow as e:
                self.overflowed_components += 1
                logger.warning(f"{e}; keeping cycles found so far")

        return False

    # =========================================================================
    # Circuit search
    # =========================================================================

    def _search_component(
        self,
        component: list[int],
        adjacency: list[list[int]],
        nodes: list[str],
        visitor: CycleVisitor,
    ) -> bool:
        """Run the bounded circuit search from every start in one component."""
        local = {g: i for i, g in enumerate(component)}
        adj = [[local[w] for w in adjacency[g] if w in local] for g in component]
        names = [nodes[g] for g in component]
        size = len(component)

        blocked = [False] * size
        waiting: list[set[int]] = [set() for _ in range(size)]
        on_path = [False] * size
        steps = 0

        min_len = self._min_len
        max_len = self._max_len
        budget = self._budget

        for s in range(size):
            for i in range(s, size):
                blocked[i] = False
            for i in range(s + 1, size):
                waiting[i].clear()

            path = [s]
            blocked[s] = True
            on_path[s] = True
            work: list[list[int]] = [[s, 0]]
            found = [False]

            while work:
                frame = work[-1]
                v, i = frame
                successors = adj[v]

                if i < len(successors):
                    frame[1] = i + 1
                    w = successors[i]

                    steps += 1
                    if budget is not None and steps > budget:
                        raise EnumerationOverflow(size, steps)

                    if w == s:
                        found[-1] = True
                        if min_len <= len(path) <= max_len:
                            cycle = Cycle.from_path([names[u] for u in path])
                            if visitor(cycle) is VisitAction.STOP:
                                return True
                        continue

                    if w < s or on_path[w] or blocked[w]:
                        continue

                    if len(path) >= max_len:
                        # Truncated by the depth bound
                        found[-1] = True
                        continue

                    path.append(w)
                    blocked[w] = True
                    on_path[w] = True
                    work.append([w, 0])
                    found.append(False)
                    continue

                work.pop()
                path.pop()
                on_path[v] = False
                v_found = found.pop()

                if v_found:
                    self._unblock(v, blocked, waiting)
                else:
                    for w in successors:
                        waiting[w].add(v)

                if found:
                    found[-1] = found[-1] or v_found

            blocked[s] = True

        return False

    @staticmethod
    def _unblock(start: int, blocked: list[bool], waiting: list[set[int]]) -> None:
        """Unblock a vertex and everything waiting on it."""
        pending = [start]
        while pending:
            u = pending.pop()
            blocked[u] = False
            dependents = waiting[u]
            waiting[u] = set()
            pending.extend(w for w in dependents if blocked[w])
