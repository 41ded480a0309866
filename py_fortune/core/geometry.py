"""Geometric primitives shared by the sweep and the output graph."""

import math
from dataclasses import dataclass
from typing import NamedTuple, Optional


@dataclass(eq=False)
class Point:
    """A site or a computed vertex.

    Points compare by identity: two sites with the same coordinates are
    still two distinct sites until duplicate filtering drops one of them.
    """
    x: float
    y: float
    id: Optional[int] = None  # dense site identifier, unused for vertices

    def __iter__(self):
        yield self.x
        yield self.y


class BoundingBox(NamedTuple):
    """Rectangular clip region.

    ``yt`` is the top side (smallest y) and ``yb`` the bottom side
    (largest y); the sweep line moves from top to bottom.
    """
    xl: float
    xr: float
    yt: float
    yb: float

    @classmethod
    def from_extent(cls, width: float, height: float) -> "BoundingBox":
        return cls(0.0, float(width), 0.0, float(height))

    @classmethod
    def from_bounds(cls, min_x: float, min_y: float, max_x: float, max_y: float) -> "BoundingBox":
        return cls(float(min_x), float(max_x), float(min_y), float(max_y))

    @property
    def width(self) -> float:
        return self.xr - self.xl

    @property
    def height(self) -> float:
        return self.yb - self.yt

    def contains(self, x: float, y: float, tolerance: float = 0.0) -> bool:
        return (self.xl - tolerance <= x <= self.xr + tolerance and
                self.yt - tolerance <= y <= self.yb + tolerance)

    def validate(self) -> "BoundingBox":
        """Raise ValueError unless the box is finite with positive area."""
        if not all(math.isfinite(v) for v in self):
            raise ValueError(f"Bounding box sides must be finite: {tuple(self)}")
        if self.xl >= self.xr or self.yt >= self.yb:
            raise ValueError(f"Bounding box has no area: {tuple(self)}")
        return self


@dataclass(eq=False)
class Edge:
    """A Voronoi edge between two sites.

    Border edges, created while closing cells against the bounding box,
    have a left site only and both end points set from the start.
    """
    left_site: Optional[Point] = None
    right_site: Optional[Point] = None
    va: Optional[Point] = None
    vb: Optional[Point] = None

    @property
    def is_border(self) -> bool:
        return self.right_site is None

    @property
    def is_resolved(self) -> bool:
        return self.va is not None and self.vb is not None

    def set_start_point(self, left_site: Point, right_site: Point, vertex: Point) -> None:
        if self.va is None and self.vb is None:
            self.va = vertex
            self.left_site = left_site
            self.right_site = right_site
        elif self.left_site is right_site:
            self.vb = vertex
        else:
            self.va = vertex

    def set_end_point(self, left_site: Point, right_site: Point, vertex: Point) -> None:
        self.set_start_point(right_site, left_site, vertex)


class HalfEdge:
    """An edge as seen from one of its generating sites.

    ``angle`` orders the half-edges of a cell counterclockwise. It is the
    direction from ``site`` to the site across the edge or, for border
    edges, the direction perpendicular to the edge itself.
    """

    def __init__(self, edge: Edge, site: Point, other_site: Optional[Point] = None):
        self.edge = edge
        self.site = site
        if other_site is not None:
            self.angle = math.atan2(other_site.y - site.y, other_site.x - site.x)
        else:
            va, vb = edge.va, edge.vb
            if edge.left_site is site:
                self.angle = math.atan2(vb.x - va.x, va.y - vb.y)
            else:
                self.angle = math.atan2(va.x - vb.x, vb.y - va.y)

    @property
    def start_point(self) -> Optional[Point]:
        return self.edge.va if self.edge.left_site is self.site else self.edge.vb

    @property
    def end_point(self) -> Optional[Point]:
        return self.edge.vb if self.edge.left_site is self.site else self.edge.va

    def __repr__(self):
        return f"HalfEdge(site={self.site.id}, angle={self.angle:.4f})"
