"""
Connected components and spanning walk order for bulk loading.

Each component is reported as a start node plus the ordered (parent, child)
edges of a breadth-first traversal. Feeding the edges in that order into a
ChainLedger means every child is new when it is appended, so construction
only ever takes the O(log n) append path.
"""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field
from typing import Deque, Dict, Generic, Hashable, List, Tuple, TypeVar

T = TypeVar("T", bound=Hashable)


@dataclass
class Component(Generic[T]):
    """One connected component: start node and BFS tree edges in visit order."""
    start: T
    seq: List[Tuple[T, T]] = field(default_factory=list)

    @property
    def nodes(self) -> List[T]:
        return [self.start] + [child for _, child in self.seq]


class TopologicalSort(Generic[T]):
    """
    Undirected graph accumulator that yields components in first-seen order.

    Node order and neighbour order both follow insertion order, so the walk
    is deterministic for a given edge sequence.
    """

    def __init__(self) -> None:
        self._nodes: Dict[T, None] = {}
        self._edges: Dict[T, Dict[T, None]] = {}

    def insert_edge(self, a: T, b: T) -> None:
        """Record an undirected edge; a self edge only registers the node."""
        self._nodes.setdefault(a, None)
        if a == b:
            return
        self._nodes.setdefault(b, None)
        self._edges.setdefault(a, {}).setdefault(b, None)
        self._edges.setdefault(b, {}).setdefault(a, None)

    def __len__(self) -> int:
        return len(self._nodes)

    def sort(self) -> List[Component[T]]:
        """Breadth-first walk of every component, explicit queue, no recursion."""
        visited: Dict[T, None] = {}
        components: List[Component[T]] = []

        for start in self._nodes:
            if start in visited:
                continue
            visited[start] = None

            component: Component[T] = Component(start=start)
            fronts: Deque[Tuple[T, T]] = deque(
                (start, nxt) for nxt in self._edges.get(start, {})
            )

            while fronts:
                prev, curr = fronts.popleft()
                if curr in visited:
                    continue
                visited[curr] = None
                fronts.extend((curr, nxt) for nxt in self._edges.get(curr, {}) if nxt not in visited)
                component.seq.append((prev, curr))

            components.append(component)

        return components
