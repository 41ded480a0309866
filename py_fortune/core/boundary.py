"""
Finishing a swept diagram against its bounding box.

Once the sweep is over, some edges still have a dangling end (or no end at
all) and some reach past the box. This module:
1. Connects dangling edges to the box along their bisector
2. Clips every edge to the box (Liang-Barsky)
3. Closes cells that lost part of their boundary by walking the box sides
"""

import math
from typing import List

import structlog

from .beachline import SweepContext
from .cell import Cell
from .geometry import BoundingBox, Edge, HalfEdge, Point

logger = structlog.get_logger()


def equal_with_epsilon(a: float, b: float, epsilon: float) -> bool:
    return abs(a - b) < epsilon


def greater_than_with_epsilon(a: float, b: float, epsilon: float) -> bool:
    return a - b > epsilon


def greater_than_or_equal_with_epsilon(a: float, b: float, epsilon: float) -> bool:
    return b - a < epsilon


def less_than_with_epsilon(a: float, b: float, epsilon: float) -> bool:
    return b - a > epsilon


def less_than_or_equal_with_epsilon(a: float, b: float, epsilon: float) -> bool:
    return a - b < epsilon


def create_border_edge(context: SweepContext, site: Point, va: Point, vb: Point) -> Edge:
    """Create an edge lying on the box, owned by ``site`` alone."""
    edge = Edge(left_site=site, right_site=None, va=va, vb=vb)
    context.edges.append(edge)
    return edge


def connect_edge(edge: Edge, bbox: BoundingBox, cells: List[Cell]) -> bool:
    """
    Give a dangling edge a far end point on the bounding box.

    The edge lies on the bisector of its two sites; which way it runs is
    given by the sites' relative position, so the end point is taken on
    the box side the ray actually heads to.

    Returns:
        False when the edge cannot be visible inside the box
    """
    vb = edge.vb
    if vb is not None:
        return True

    va = edge.va
    xl, xr, yt, yb = bbox
    left_site = edge.left_site
    right_site = edge.right_site
    lx, ly = left_site.x, left_site.y
    rx, ry = right_site.x, right_site.y
    fx = (lx + rx) / 2
    fy = (ly + ry) / 2

    # whether connected or dropped, both cells lose part of their boundary
    cells[left_site.id].close_me = True
    cells[right_site.id].close_me = True

    # Bisector line y = fm * x + fb, undefined when the bisector is vertical
    fm = None
    fb = 0.0
    if ry != ly:
        fm = (lx - rx) / (ry - ly)
        fb = fy - fm * fx

    if fm is None:
        # Vertical bisector
        if fx < xl or fx >= xr:
            return False
        if lx > rx:
            # downward
            if va is None or va.y < yt:
                va = Point(fx, yt)
            elif va.y >= yb:
                return False
            vb = Point(fx, yb)
        else:
            # upward
            if va is None or va.y > yb:
                va = Point(fx, yb)
            elif va.y < yt:
                return False
            vb = Point(fx, yt)
    elif fm < -1 or fm > 1:
        # Closer to vertical: connect to the top or bottom side
        if lx > rx:
            # downward
            if va is None or va.y < yt:
                va = Point((yt - fb) / fm, yt)
            elif va.y >= yb:
                return False
            vb = Point((yb - fb) / fm, yb)
        else:
            # upward
            if va is None or va.y > yb:
                va = Point((yb - fb) / fm, yb)
            elif va.y < yt:
                return False
            vb = Point((yt - fb) / fm, yt)
    else:
        # Closer to horizontal: connect to the left or right side
        if ly < ry:
            # rightward
            if va is None or va.x < xl:
                va = Point(xl, fm * xl + fb)
            elif va.x >= xr:
                return False
            vb = Point(xr, fm * xr + fb)
        else:
            # leftward
            if va is None or va.x > xr:
                va = Point(xr, fm * xr + fb)
            elif va.x < xl:
                return False
            vb = Point(xl, fm * xl + fb)

    edge.va = va
    edge.vb = vb
    return True


def clip_edge(edge: Edge, bbox: BoundingBox, cells: List[Cell]) -> bool:
    """
    Clip a fully connected edge to the box (Liang-Barsky).

    Clipped ends get new vertices: the replaced ones may be shared with
    other edges.

    Returns:
        False when the edge lies entirely outside the box
    """
    ax, ay = edge.va.x, edge.va.y
    bx, by = edge.vb.x, edge.vb.y
    dx = bx - ax
    dy = by - ay
    t0 = 0.0
    t1 = 1.0

    # (p, q) per side: left, right, top, bottom
    for p, q in ((-dx, ax - bbox.xl), (dx, bbox.xr - ax),
                 (-dy, ay - bbox.yt), (dy, bbox.yb - ay)):
        if p == 0:
            if q < 0:
                return False
            continue
        r = q / p
        if p < 0:
            # entering
            if r > t1:
                return False
            if r > t0:
                t0 = r
        else:
            # leaving
            if r < t0:
                return False
            if r < t1:
                t1 = r

    if t0 > 0:
        edge.va = Point(ax + t0 * dx, ay + t0 * dy)
    if t1 < 1:
        edge.vb = Point(ax + t1 * dx, ay + t1 * dy)

    if t0 > 0 or t1 < 1:
        cells[edge.left_site.id].close_me = True
        cells[edge.right_site.id].close_me = True

    return True


def clip_edges(context: SweepContext, bbox: BoundingBox, epsilon: float) -> None:
    """Connect dangling edges, clip all of them, drop the invisible ones."""
    kept = []
    dropped = 0
    for edge in reversed(context.edges):
        if (not connect_edge(edge, bbox, context.cells) or
                not clip_edge(edge, bbox, context.cells) or
                (abs(edge.va.x - edge.vb.x) < epsilon and abs(edge.va.y - edge.vb.y) < epsilon)):
            edge.va = edge.vb = None
            dropped += 1
        else:
            kept.append(edge)
    kept.reverse()
    context.edges = kept

    logger.debug("Edges clipped", kept=len(kept), dropped=dropped)


def _close_with_box(context: SweepContext, cell: Cell, bbox: BoundingBox) -> None:
    """The only cell of a diagram is the whole box."""
    xl, xr, yt, yb = bbox
    corners = [Point(xl, yt), Point(xl, yb), Point(xr, yb), Point(xr, yt)]
    for i, va in enumerate(corners):
        vb = corners[(i + 1) % 4]
        edge = create_border_edge(context, cell.site, va, vb)
        cell.half_edges.append(HalfEdge(edge, cell.site, None))
    cell.close_me = False


def close_cells(context: SweepContext, bbox: BoundingBox, epsilon: float) -> bool:
    """
    Close every cell that the clipping step left open.

    Gaps between consecutive half-edges are filled with border edges,
    walking the box counterclockwise from the gap's start to its end:
    down the left side, right along the bottom, up the right side, left
    along the top, then once more down, right and up.

    Returns:
        True when every gap could be closed
    """
    xl, xr, yt, yb = bbox
    cells = context.cells
    bad_iterations = 0

    if len(cells) == 1 and not cells[0].half_edges:
        _close_with_box(context, cells[0], bbox)

    for cell in reversed(cells):
        if cell.prepare() <= 0:
            continue
        if not cell.close_me:
            continue

        half_edges = cell.half_edges
        site = cell.site
        n_half_edges = len(half_edges)
        i_left = 0

        while i_left < n_half_edges:
            va = half_edges[i_left].end_point
            vz = half_edges[(i_left + 1) % n_half_edges].start_point

            if abs(va.x - vz.x) >= epsilon or abs(va.y - vz.y) >= epsilon:
                # Holes are not necessarily adjacent to each other
                last_border_segment = False

                def add_border(vb: Point) -> None:
                    nonlocal i_left, n_half_edges
                    edge = create_border_edge(context, site, va, vb)
                    i_left += 1
                    half_edges.insert(i_left, HalfEdge(edge, site, None))
                    n_half_edges += 1

                # walk downward along left side
                if (equal_with_epsilon(va.x, xl, epsilon) and
                        less_than_with_epsilon(va.y, yb, epsilon)):
                    last_border_segment = equal_with_epsilon(vz.x, xl, epsilon)
                    vb = Point(xl, vz.y if last_border_segment else yb)
                    add_border(vb)
                    if not last_border_segment:
                        va = vb

                # walk rightward along bottom side
                if (not last_border_segment and equal_with_epsilon(va.y, yb, epsilon) and
                        less_than_with_epsilon(va.x, xr, epsilon)):
                    last_border_segment = equal_with_epsilon(vz.y, yb, epsilon)
                    vb = Point(vz.x if last_border_segment else xr, yb)
                    add_border(vb)
                    if not last_border_segment:
                        va = vb

                # walk upward along right side
                if (not last_border_segment and equal_with_epsilon(va.x, xr, epsilon) and
                        greater_than_with_epsilon(va.y, yt, epsilon)):
                    last_border_segment = equal_with_epsilon(vz.x, xr, epsilon)
                    vb = Point(xr, vz.y if last_border_segment else yt)
                    add_border(vb)
                    if not last_border_segment:
                        va = vb

                # walk leftward along top side
                if (not last_border_segment and equal_with_epsilon(va.y, yt, epsilon) and
                        greater_than_with_epsilon(va.x, xl, epsilon)):
                    last_border_segment = equal_with_epsilon(vz.y, yt, epsilon)
                    vb = Point(vz.x if last_border_segment else xl, yt)
                    add_border(vb)
                    if not last_border_segment:
                        va = vb

                # walk downward along left side
                if not last_border_segment:
                    last_border_segment = equal_with_epsilon(vz.x, xl, epsilon)
                    vb = Point(xl, vz.y if last_border_segment else yb)
                    add_border(vb)
                    if not last_border_segment:
                        va = vb

                # walk rightward along bottom side
                if not last_border_segment:
                    last_border_segment = equal_with_epsilon(vz.y, yb, epsilon)
                    vb = Point(vz.x if last_border_segment else xr, yb)
                    add_border(vb)
                    if not last_border_segment:
                        va = vb

                # walk upward along right side
                if not last_border_segment:
                    last_border_segment = equal_with_epsilon(vz.x, xr, epsilon)
                    vb = Point(xr, vz.y if last_border_segment else yt)
                    add_border(vb)

                if not last_border_segment:
                    logger.warning("Cell could not be closed against the bounding box",
                                   cell=site.id, x=site.x, y=site.y)
                    bad_iterations += 1

            i_left += 1
        cell.close_me = False

    return bad_iterations == 0
