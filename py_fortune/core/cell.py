"""Voronoi cell: one site and the half-edges bounding its polygon."""

from dataclasses import dataclass, field
from typing import List, Optional, Tuple

from .geometry import HalfEdge, Point


@dataclass(eq=False)
class Cell:
    """Polygon of the plane closer to ``site`` than to any other site.

    After the diagram is finished, ``half_edges`` form a closed cycle
    ordered by descending angle.
    """
    site: Point
    half_edges: List[HalfEdge] = field(default_factory=list)
    close_me: bool = False  # touched by clipping, needs border edges

    def prepare(self) -> int:
        """
        Drop unresolved half-edges and sort the rest counterclockwise.

        Returns:
            Number of half-edges left
        """
        self.half_edges = [he for he in self.half_edges if he.edge.is_resolved]
        self.half_edges.sort(key=lambda he: he.angle, reverse=True)
        return len(self.half_edges)

    def neighbor_ids(self) -> List[int]:
        """Ids of the sites sharing an edge with this cell."""
        neighbors = []
        for half_edge in reversed(self.half_edges):
            edge = half_edge.edge
            if edge.left_site is not None and edge.left_site.id != self.site.id:
                neighbors.append(edge.left_site.id)
            elif edge.right_site is not None and edge.right_site.id != self.site.id:
                neighbors.append(edge.right_site.id)
        return neighbors

    def vertices(self) -> List[Point]:
        return [he.start_point for he in self.half_edges]

    def bounds(self) -> Optional[Tuple[float, float, float, float]]:
        """(xmin, ymin, xmax, ymax) of the cell polygon, None when empty."""
        if not self.half_edges:
            return None
        # every end point is the start point of the next half-edge
        xs = [v.x for v in self.vertices()]
        ys = [v.y for v in self.vertices()]
        return min(xs), min(ys), max(xs), max(ys)

    def point_intersection(self, x: float, y: float) -> int:
        """
        Locate a point relative to the cell.

        Voronoi cells are convex, so a point is inside when it lies on the
        same side of every boundary segment.

        Returns:
            1 inside, 0 on the perimeter, -1 outside
        """
        for half_edge in reversed(self.half_edges):
            p1 = half_edge.start_point
            p2 = half_edge.end_point
            r = (y - p1.y) * (p2.x - p1.x) - (x - p1.x) * (p2.y - p1.y)
            if r == 0:
                return 0
            if r > 0:
                return -1
        return 1

    def area(self) -> float:
        """Polygon area via the shoelace formula."""
        total = 0.0
        for half_edge in self.half_edges:
            p1 = half_edge.start_point
            p2 = half_edge.end_point
            total += p1.x * p2.y - p1.y * p2.x
        return abs(total) / 2

    def centroid(self) -> Optional[Tuple[float, float]]:
        cx = 0.0
        cy = 0.0
        signed = 0.0
        for half_edge in self.half_edges:
            p1 = half_edge.start_point
            p2 = half_edge.end_point
            v = p1.x * p2.y - p2.x * p1.y
            cx += (p1.x + p2.x) * v
            cy += (p1.y + p2.y) * v
            signed += v
        if abs(signed) < 1e-12:
            return None
        return cx / (3 * signed), cy / (3 * signed)

    def is_closed(self, epsilon: float) -> bool:
        """True when each half-edge ends where the next one starts."""
        n = len(self.half_edges)
        if n == 0:
            return False
        for i in range(n):
            end = self.half_edges[i].end_point
            start = self.half_edges[(i + 1) % n].start_point
            if abs(end.x - start.x) >= epsilon or abs(end.y - start.y) >= epsilon:
                return False
        return True
