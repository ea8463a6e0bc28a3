"""Loop enumeration over the wiring of a flow graph.

Every node is used as a starting point.  Paths are extended one wire hop at
a time; a path that revisits a node is recorded as a loop and not extended
any further.  Because a non-looped path never repeats a node, each frontier
drains after at most ``len(nodes)`` rounds.

The expansion visits every simple path, so the cost grows exponentially with
branching.  That is fine for flows of tens to a few hundred nodes but is not
tractable for densely cross-wired graphs.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from flowlint.graph.idsets import has_repeats, is_proper_subset, same_members

if TYPE_CHECKING:
    from flowlint.graph.flowset import GraphAccessor

logger = logging.getLogger(__name__)

Path = tuple[str, ...]


def _walk_from(graph: GraphAccessor, start: str) -> list[Path]:
    """Return every looped path discovered by expanding outward from *start*."""
    loops: list[Path] = []
    frontier: list[Path] = [(start,)]

    while frontier:
        expanded: list[Path] = []
        for path in frontier:
            for hop in graph.next(path[-1]):
                extended = (*path, hop)
                if has_repeats(extended):
                    loops.append(extended)
                else:
                    expanded.append(extended)
        frontier = expanded

    return loops


def _dedupe(loops: list[Path]) -> list[Path]:
    """Keep the first loop of each group sharing the same member ids."""
    unique: list[Path] = []
    for loop in loops:
        if not any(same_members(kept, loop) for kept in unique):
            unique.append(loop)
    return unique


def enumerate_loops(graph: GraphAccessor) -> list[Path]:
    """Return the minimal loops reachable by following wires.

    Duplicates (same member ids in any order or rotation) are collapsed to
    the first one discovered.  A loop is then dropped when any discovered
    loop, including ones removed as duplicates, has a strictly smaller
    member set contained in it.
    """
    loops: list[Path] = []
    for node in graph.get_all_nodes():
        loops.extend(_walk_from(graph, node.id))

    minimal = [
        loop
        for loop in _dedupe(loops)
        if not any(is_proper_subset(other, loop) for other in loops)
    ]
    logger.debug("Discovered %d looped paths, %d minimal loops", len(loops), len(minimal))
    return minimal
