"""
Fortune's sweep-line algorithm.

The sweep moves from small y to large y. Two kinds of events drive it:
- Site events add an arc to the beachline for each input site
- Circle events remove an arc that has shrunk to nothing, producing a
  Voronoi vertex

The beachline and the pending circle events each live in an
:class:`~py_fortune.core.rbtree.RBTree`. Break points move with the sweep,
so the beachline cannot be keyed: insertion walks the tree comparing
against break points computed for the current sweep position.
"""

import math
from typing import Iterable, List, Optional, Sequence, Union

import numpy as np
import structlog

from ..config import Settings, settings
from .beachline import BeachSection, CircleEvent, SweepContext
from .boundary import clip_edges, close_cells
from .cell import Cell
from .geometry import BoundingBox, Edge, HalfEdge, Point
from .voronoi_graph import VoronoiGraph

logger = structlog.get_logger()

SiteInput = Union[Sequence[Sequence[float]], Sequence[Point], np.ndarray]


def to_points(sites: SiteInput) -> List[Point]:
    """
    Copy input sites into fresh points.

    Args:
        sites: Points, (x, y) pairs, or an (n, 2) array

    Returns:
        New Point objects, input order preserved
    """
    if isinstance(sites, np.ndarray):
        if sites.size == 0:
            return []
        if sites.ndim != 2 or sites.shape[1] != 2:
            raise ValueError(f"Site array must have shape (n, 2), got {sites.shape}")
        coords = sites.astype(float).tolist()
    else:
        coords = []
        for site in sites:
            if isinstance(site, Point):
                coords.append((float(site.x), float(site.y)))
            else:
                x, y = site
                coords.append((float(x), float(y)))

    points = []
    for x, y in coords:
        if not (math.isfinite(x) and math.isfinite(y)):
            raise ValueError(f"Site coordinates must be finite: ({x}, {y})")
        points.append(Point(x, y))
    return points


class FortuneVoronoi:
    """Computes bounded Voronoi diagrams.

    An instance only holds its tolerances and the validity of its last
    diagram; all sweep state lives in a :class:`SweepContext` created per
    call.
    """

    def __init__(self, epsilon: Optional[float] = None, circle_epsilon: Optional[float] = None):
        self.epsilon = settings.epsilon if epsilon is None else epsilon
        self.circle_epsilon = settings.circle_epsilon if circle_epsilon is None else circle_epsilon
        self.valid = False
        self._context: Optional[SweepContext] = None

    def compute(self, sites: SiteInput, bbox: Union[BoundingBox, Iterable[float]]) -> VoronoiGraph:
        """
        Compute the Voronoi diagram of ``sites`` clipped to ``bbox``.

        Sites with exactly the same coordinates as the previously swept
        site are skipped, so duplicates yield a single cell.

        Args:
            sites: Points, (x, y) pairs, or an (n, 2) array
            bbox: BoundingBox or (xl, xr, yt, yb)

        Returns:
            VoronoiGraph of accepted sites, their cells and the edges
        """
        bbox = BoundingBox(*bbox).validate()
        points = to_points(sites)

        logger.info("Computing Voronoi diagram", sites=len(points),
                    xl=bbox.xl, xr=bbox.xr, yt=bbox.yt, yb=bbox.yb)

        context = SweepContext()
        self._context = context
        try:
            accepted = self._sweep(context, points)
            logger.debug("Sweep complete", accepted=len(accepted), edges=len(context.edges))

            clip_edges(context, bbox, self.epsilon)
            self.valid = close_cells(context, bbox, self.epsilon)

            graph = VoronoiGraph(
                sites=accepted,
                cells=context.cells,
                edges=context.edges,
                bbox=bbox,
                valid=self.valid
            )
        finally:
            context.reset()
            self._context = None

        logger.info("Voronoi diagram computed",
                    cells=len(graph.cells), edges=len(graph.edges),
                    duplicates=len(points) - len(graph.sites), valid=graph.valid)
        return graph

    def _sweep(self, context: SweepContext, points: List[Point]) -> List[Point]:
        """Run the event loop and return the accepted sites in sweep order."""
        # popped from the end: smallest y first, then smallest x
        site_events = sorted(points, key=lambda p: (p.y, p.x), reverse=True)
        site = site_events.pop() if site_events else None
        accepted = []
        xsitex = -math.inf
        xsitey = -math.inf

        while True:
            circle = context.first_circle_event

            if site is not None and (circle is None or site.y < circle.y or
                                     (site.y == circle.y and site.x < circle.x)):
                if site.x != xsitex or site.y != xsitey:
                    site.id = len(accepted)
                    accepted.append(site)
                    context.cells.append(Cell(site))
                    self.add_beach_section(context, site)
                    xsitey = site.y
                    xsitex = site.x
                site = site_events.pop() if site_events else None
            elif circle is not None:
                self.remove_beach_section(context, circle.arc)
            else:
                break

        return accepted

    def create_edge(self, context: SweepContext, left_site: Point, right_site: Point,
                    va: Optional[Point] = None, vb: Optional[Point] = None) -> Edge:
        """Create an edge between two sites and register it with both cells."""
        edge = Edge(left_site, right_site)
        context.edges.append(edge)
        if va is not None:
            edge.set_start_point(left_site, right_site, va)
        if vb is not None:
            edge.set_end_point(left_site, right_site, vb)

        context.cells[left_site.id].half_edges.append(HalfEdge(edge, left_site, right_site))
        context.cells[right_site.id].half_edges.append(HalfEdge(edge, right_site, left_site))
        return edge

    # ------------------------------------------------------------------
    # Beachline

    def left_break_point(self, arc: BeachSection, directrix: float) -> float:
        """
        X coordinate where ``arc`` meets the arc on its left.

        The parabola intersection is solved with the origin moved to the
        arc's own focus, which keeps cancellation error down.
        """
        # the leftmost arc is unbounded on its left
        left_arc = arc.rb_prev
        if left_arc is None:
            return -math.inf

        site = arc.site
        rfocx = site.x
        rfocy = site.y
        pby2 = rfocy - directrix
        # focus on the directrix: degenerate parabola
        if pby2 == 0:
            return rfocx

        site = left_arc.site
        lfocx = site.x
        lfocy = site.y
        plby2 = lfocy - directrix
        if plby2 == 0:
            return lfocx

        hl = lfocx - rfocx
        aby2 = 1 / pby2 - 1 / plby2
        b = hl / plby2
        if aby2:
            disc = b * b - 2 * aby2 * (hl * hl / (-2 * plby2) - lfocy + plby2 / 2 + rfocy - pby2 / 2)
            return (-b + math.sqrt(max(disc, 0.0))) / aby2 + rfocx
        # both foci equally far from the directrix
        return (rfocx + lfocx) / 2

    def right_break_point(self, arc: BeachSection, directrix: float) -> float:
        right_arc = arc.rb_next
        if right_arc is not None:
            return self.left_break_point(right_arc, directrix)
        site = arc.site
        return site.x if site.y == directrix else math.inf

    def detach_beach_section(self, context: SweepContext, section: BeachSection) -> None:
        self.detach_circle_event(context, section)
        context.beachline.remove(section)
        context.recycle_beach_section(section)

    def add_beach_section(self, context: SweepContext, site: Point) -> None:
        """Insert the arc of a newly swept site into the beachline."""
        epsilon = self.epsilon
        x = site.x
        directrix = site.y

        # Find the arcs that will surround the new one
        node = context.beachline.root
        left_arc = None
        right_arc = None
        while node is not None:
            dxl = self.left_break_point(node, directrix) - x
            if dxl > epsilon:
                # left of the node's left break point
                node = node.rb_left
            else:
                dxr = x - self.right_break_point(node, directrix)
                if dxr > epsilon:
                    # right of the node's right break point
                    if node.rb_right is None:
                        left_arc = node
                        break
                    node = node.rb_right
                else:
                    if dxl > -epsilon:
                        # on the left break point
                        left_arc = node.rb_prev
                        right_arc = node
                    elif dxr > -epsilon:
                        # on the right break point
                        left_arc = node
                        right_arc = node.rb_next
                    else:
                        # inside the arc
                        left_arc = right_arc = node
                    break

        # An arc whose focus is on the sweep line has no width, so a site of
        # the same row snapped onto its left break point lies right of it.
        if (right_arc is not None and right_arc is not left_arc and
                right_arc.site.y == directrix and right_arc.site.x < x):
            left_arc = right_arc
            right_arc = right_arc.rb_next

        new_arc = context.create_beach_section(site)
        context.beachline.insert(left_arc, new_arc)

        # [None, None]: first arc on the beachline
        if left_arc is None and right_arc is None:
            return

        # [arc, arc]: the new arc splits an existing one
        if left_arc is right_arc:
            self.detach_circle_event(context, left_arc)

            right_arc = context.create_beach_section(left_arc.site)
            context.beachline.insert(new_arc, right_arc)

            new_arc.edge = right_arc.edge = self.create_edge(context, left_arc.site, new_arc.site)

            self.attach_circle_event(context, left_arc)
            self.attach_circle_event(context, right_arc)
            return

        # [arc, None]: the new arc is the last one, which only happens
        # while every arc so far lies on the same horizontal line
        if left_arc is not None and right_arc is None:
            new_arc.edge = self.create_edge(context, left_arc.site, new_arc.site)
            return

        if left_arc is None and right_arc is not None:
            raise RuntimeError("Beachline insertion found a right arc without a left arc")

        # [left, right]: the new arc lands exactly on a break point. The
        # transition between left and right disappears at the circumcenter
        # of the three sites and two new ones start there.
        self.detach_circle_event(context, left_arc)
        self.detach_circle_event(context, right_arc)

        left_site = left_arc.site
        ax = left_site.x
        ay = left_site.y
        bx = site.x - ax
        by = site.y - ay
        right_site = right_arc.site
        cx = right_site.x - ax
        cy = right_site.y - ay
        d = 2 * (bx * cy - by * cx)
        hb = bx * bx + by * by
        hc = cx * cx + cy * cy
        vertex = Point((cy * hb - by * hc) / d + ax, (bx * hc - cx * hb) / d + ay)

        right_arc.edge.set_start_point(left_site, right_site, vertex)

        new_arc.edge = self.create_edge(context, left_site, site, None, vertex)
        right_arc.edge = self.create_edge(context, site, right_site, None, vertex)

        self.attach_circle_event(context, left_arc)
        self.attach_circle_event(context, right_arc)

    def remove_beach_section(self, context: SweepContext, section: BeachSection) -> None:
        """
        Collapse the arc of a firing circle event into a vertex.

        More than three edges may meet at the vertex, in which case
        neighbouring arcs collapse at the same point; they are collected
        from both sides and removed together.
        """
        epsilon = self.epsilon
        circle = section.circle_event
        x = circle.x
        y = circle.y_center
        vertex = Point(x, y)
        previous = section.rb_prev
        following = section.rb_next
        disappearing = [section]

        self.detach_beach_section(context, section)

        # A collapsing arc always has neighbours: the outermost arcs are
        # unbounded and never converge.
        left_arc = previous
        while (left_arc.circle_event is not None and
               abs(x - left_arc.circle_event.x) < epsilon and
               abs(y - left_arc.circle_event.y_center) < epsilon):
            previous = left_arc.rb_prev
            disappearing.insert(0, left_arc)
            self.detach_beach_section(context, left_arc)
            left_arc = previous
        # the surviving left neighbour is the left site of the first edge
        disappearing.insert(0, left_arc)
        self.detach_circle_event(context, left_arc)

        right_arc = following
        while (right_arc.circle_event is not None and
               abs(x - right_arc.circle_event.x) < epsilon and
               abs(y - right_arc.circle_event.y_center) < epsilon):
            following = right_arc.rb_next
            disappearing.append(right_arc)
            self.detach_beach_section(context, right_arc)
            right_arc = following
        disappearing.append(right_arc)
        self.detach_circle_event(context, right_arc)

        # every transition between collapsed arcs starts at the vertex
        for left_arc, right_arc in zip(disappearing, disappearing[1:]):
            right_arc.edge.set_start_point(left_arc.site, right_arc.site, vertex)

        # the two survivors are now adjacent: a new edge ends at the vertex
        left_arc = disappearing[0]
        right_arc = disappearing[-1]
        right_arc.edge = self.create_edge(context, left_arc.site, right_arc.site, None, vertex)

        self.attach_circle_event(context, left_arc)
        self.attach_circle_event(context, right_arc)

    # ------------------------------------------------------------------
    # Circle events

    def attach_circle_event(self, context: SweepContext, arc: BeachSection) -> None:
        """Schedule the collapse of ``arc`` if its neighbours converge on it."""
        left_arc = arc.rb_prev
        right_arc = arc.rb_next
        if left_arc is None or right_arc is None:
            return

        left_site = left_arc.site
        center_site = arc.site
        right_site = right_arc.site

        # same site on both sides: no convergence
        if left_site.id == right_site.id:
            return

        # Circumcircle of the triplet, origin at the center site. Its
        # bottom is where the sweep fires the event, its center the vertex.
        bx = center_site.x
        by = center_site.y
        ax = left_site.x - bx
        ay = left_site.y - by
        cx = right_site.x - bx
        cy = right_site.y - by

        # d is negative for a clockwise triplet; anything else diverges
        d = 2 * (ax * cy - ay * cx)
        if d >= -self.circle_epsilon:
            return

        ha = ax * ax + ay * ay
        hc = cx * cx + cy * cy
        x = (cy * ha - ay * hc) / d
        y = (ax * hc - cx * ha) / d
        y_center = y + by

        circle_event = context.create_circle_event()
        circle_event.arc = arc
        circle_event.site = center_site
        circle_event.x = x + bx
        circle_event.y = y_center + math.sqrt(x * x + y * y)
        circle_event.y_center = y_center
        arc.circle_event = circle_event

        # Find the predecessor: events ordered by y, then x
        predecessor = None
        node = context.circle_events.root
        while node is not None:
            if circle_event.y < node.y or (circle_event.y == node.y and circle_event.x <= node.x):
                if node.rb_left is not None:
                    node = node.rb_left
                else:
                    predecessor = node.rb_prev
                    break
            else:
                if node.rb_right is not None:
                    node = node.rb_right
                else:
                    predecessor = node
                    break

        context.circle_events.insert(predecessor, circle_event)
        if predecessor is None:
            context.first_circle_event = circle_event

    def detach_circle_event(self, context: SweepContext, arc: BeachSection) -> None:
        circle_event = arc.circle_event
        if circle_event is None:
            return
        if circle_event.rb_prev is None:
            context.first_circle_event = circle_event.rb_next
        context.circle_events.remove(circle_event)
        context.recycle_circle_event(circle_event)
        arc.circle_event = None


def compute_voronoi_graph(sites: SiteInput, bbox: Union[BoundingBox, Iterable[float]],
                          settings: Optional[Settings] = None) -> VoronoiGraph:
    """
    Compute a bounded Voronoi diagram in one call.

    Args:
        sites: Points, (x, y) pairs, or an (n, 2) array
        bbox: BoundingBox or (xl, xr, yt, yb)
        settings: Optional Settings overriding the configured tolerances

    Returns:
        Complete Voronoi graph
    """
    if settings is not None:
        voronoi = FortuneVoronoi(epsilon=settings.epsilon, circle_epsilon=settings.circle_epsilon)
    else:
        voronoi = FortuneVoronoi()

    graph = voronoi.compute(sites, bbox)
    if not graph.valid:
        logger.warning("Voronoi diagram is not fully closed", cells=len(graph.cells))
    return graph
