"""Topological ordering of named nodes (Kahn's algorithm)."""

from collections import deque
from collections.abc import Iterable, Mapping


class CycleError(Exception):
    """Raised when no linear order exists.

    `nodes` lists, in input order, every node that could not be emitted.
    """

    def __init__(self, nodes: list[str]):
        self.nodes = nodes
        super().__init__(f"dependency cycle among: [{', '.join(nodes)}]")


def topological_sort(
    nodes: Iterable[str], edges: Mapping[str, Iterable[str]]
) -> list[str]:
    """Order `nodes` so that for every edge `a -> b`, a comes before b.

    Edges with an endpoint outside the node set are ignored. Ties are
    broken by input order: zero in-degree nodes are queued FIFO, and the
    neighbours released by one node are queued in input order.

    Raises:
        CycleError: If some nodes can never reach in-degree zero
    """
    order = list(dict.fromkeys(nodes))
    position = {name: i for i, name in enumerate(order)}

    adjacency: dict[str, list[str]] = {name: [] for name in order}
    in_degree = {name: 0 for name in order}
    for source, targets in edges.items():
        if source not in position:
            continue
        for target in dict.fromkeys(targets):
            if target not in position or target in adjacency[source]:
                continue
            adjacency[source].append(target)
            in_degree[target] += 1
    for targets in adjacency.values():
        targets.sort(key=position.__getitem__)

    queue = deque(name for name in order if in_degree[name] == 0)
    ordered: list[str] = []
    while queue:
        current = queue.popleft()
        ordered.append(current)
        for target in adjacency[current]:
            in_degree[target] -= 1
            if in_degree[target] == 0:
                queue.append(target)

    if len(ordered) < len(order):
        emitted = set(ordered)
        raise CycleError([name for name in order if name not in emitted])
    return ordered


__all__ = [
    "CycleError",
    "topological_sort",
]
