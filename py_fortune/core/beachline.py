"""
Beachline and circle event nodes, plus the working state of one sweep.
"""

from typing import List, Optional

from .cell import Cell
from .geometry import Edge, Point
from .rbtree import RBNode, RBTree


class BeachSection(RBNode):
    """A parabolic arc on the beachline.

    ``edge`` is the edge traced by the break point between this arc and
    the arc on its left.
    """

    def __init__(self, site: Point):
        super().__init__()
        self.site = site
        self.circle_event: Optional["CircleEvent"] = None
        self.edge: Optional[Edge] = None

    def __repr__(self):
        return f"BeachSection(site={self.site.id})"


class CircleEvent(RBNode):
    """The predicted collapse of ``arc``.

    ``y`` is the sweep position at the bottom of the circumcircle, where
    the event fires; ``x``/``y_center`` locate the resulting vertex.
    """

    def __init__(self):
        super().__init__()
        self.arc: Optional[BeachSection] = None
        self.site: Optional[Point] = None
        self.x = 0.0
        self.y = 0.0
        self.y_center = 0.0

    def __repr__(self):
        return f"CircleEvent(x={self.x:.4f}, y={self.y:.4f}, y_center={self.y_center:.4f})"


class SweepContext:
    """Everything a single sweep mutates.

    A fresh context is built for each computation, so nothing leaks from
    one diagram into the next.
    """

    def __init__(self):
        self.beachline = RBTree()
        self.circle_events = RBTree()
        self.first_circle_event: Optional[CircleEvent] = None
        self.edges: List[Edge] = []
        self.cells: List[Cell] = []

        # Removed nodes are reused rather than reallocated
        self.beach_section_junkyard: List[BeachSection] = []
        self.circle_event_junkyard: List[CircleEvent] = []

    def create_beach_section(self, site: Point) -> BeachSection:
        if self.beach_section_junkyard:
            section = self.beach_section_junkyard.pop()
            section.site = site
            section.circle_event = None
            section.edge = None
            return section
        return BeachSection(site)

    def recycle_beach_section(self, section: BeachSection) -> None:
        self.beach_section_junkyard.append(section)

    def create_circle_event(self) -> CircleEvent:
        if self.circle_event_junkyard:
            return self.circle_event_junkyard.pop()
        return CircleEvent()

    def recycle_circle_event(self, event: CircleEvent) -> None:
        event.arc = None
        event.site = None
        self.circle_event_junkyard.append(event)

    def reset(self) -> None:
        """Drop every reference to the last diagram."""
        for section in self.beachline:
            self.recycle_beach_section(section)
        self.beachline.clear()
        self.circle_events.clear()
        self.first_circle_event = None
        self.edges = []
        self.cells = []
