"""
Bounded-depth lineage traversal over the edge store.

Each direction pass walks the graph level by level with an explicit frontier:
every node at depth ``d`` is expanded with one batched store query, so the
number of round trips is bounded by ``max_depth`` rather than by the number of
edges. ``visited`` and the result map are local to one call.

Upstream and downstream passes run independently, each with its own
``visited`` set, and their edges are unioned into one map keyed by
``"{source}-{target}"``. An edge reachable through several paths is counted
once, and an edge already found by the other pass is still expanded through.
"""
import logging
import time
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterable, List, Optional, Any

import db_helpers
from database import LineageEdge
from errors import ValidationError
from schemas import AssetStub, LineageEntry

logger = logging.getLogger(__name__)

DIRECTIONS = ("upstream", "downstream", "both")

EdgeFetcher = Callable[[Iterable[str], str], List[LineageEdge]]


@dataclass
class TraversalResult:
    edges: Dict[str, LineageEdge] = field(default_factory=dict)
    truncated: bool = False

    def __len__(self):
        return len(self.edges)


class LineageTraversal:
    def __init__(self, fetch_edges: Optional[EdgeFetcher] = None, max_edges: Optional[int] = None,
                 timeout_seconds: Optional[float] = None, clock: Callable[[], float] = time.monotonic):
        self.fetch_edges = fetch_edges or db_helpers.find_active_edges
        self.max_edges = max_edges
        self.timeout_seconds = timeout_seconds
        self.clock = clock

    def traverse(self, start: str, direction: str = "both", max_depth: int = 3) -> TraversalResult:
        if direction not in DIRECTIONS:
            raise ValidationError(f"Invalid direction '{direction}', expected one of {', '.join(DIRECTIONS)}")
        if max_depth < 0:
            raise ValidationError("Lineage depth must be zero or positive")
        result = TraversalResult()
        deadline = self.clock() + self.timeout_seconds if self.timeout_seconds else None
        passes = ("upstream", "downstream") if direction == "both" else (direction,)
        for pass_direction in passes:
            if result.truncated:
                break
            self._walk(start, pass_direction, max_depth, result, deadline)
        logger.debug("Lineage traversal from %s (%s, depth %d) found %d edges%s",
                     start, direction, max_depth, len(result), " (truncated)" if result.truncated else "")
        return result

    def _walk(self, start: str, direction: str, max_depth: int, result: TraversalResult,
              deadline: Optional[float]) -> None:
        visited = {start}
        frontier = [start]
        depth = 0
        while frontier and depth < max_depth:
            if deadline is not None and self.clock() >= deadline:
                logger.warning("Lineage traversal from %s stopped at depth %d: time budget of %ss exhausted",
                               start, depth, self.timeout_seconds)
                result.truncated = True
                return
            next_frontier = []
            for edge in self.fetch_edges(frontier, direction):
                if edge.key not in result.edges:
                    if self.max_edges is not None and len(result.edges) >= self.max_edges:
                        logger.warning("Lineage traversal from %s stopped at %d edges", start, self.max_edges)
                        result.truncated = True
                        return
                    result.edges[edge.key] = edge
                far_end = edge.target_id if direction == "downstream" else edge.source_id
                if far_end not in visited:
                    visited.add(far_end)
                    next_frontier.append(far_end)
            frontier = next_frontier
            depth += 1


def build_entries(edges: Iterable[LineageEdge]) -> List[Dict[str, Any]]:
    """Attach catalog stubs to both endpoints with a single lookup after the walk."""
    edges = list(edges)
    asset_ids = {e.source_id for e in edges} | {e.target_id for e in edges}
    stubs = db_helpers.load_asset_stubs(asset_ids)
    return [
        LineageEntry(
            source=stubs.get(edge.source_id) or AssetStub(id=edge.source_id),
            target=stubs.get(edge.target_id) or AssetStub(id=edge.target_id),
            relationship=edge.to_dict(),
        ).model_dump()
        for edge in edges
    ]
