"""Voronoi graph returned by the sweep, with numpy views for consumers."""

from dataclasses import dataclass
from typing import List, Optional

import numpy as np

from .cell import Cell
from .geometry import BoundingBox, Edge, Point


@dataclass(eq=False)
class VoronoiGraph:
    """Sites, cells and edges of a bounded Voronoi diagram.

    ``cells[i]`` belongs to ``sites[i]`` and ``sites[i].id == i``. Every
    edge has both end points set; border edges have no right site.
    """
    sites: List[Point]
    cells: List[Cell]
    edges: List[Edge]
    bbox: BoundingBox
    valid: bool  # every cell could be closed against the box

    @property
    def site_coordinates(self) -> np.ndarray:
        """Array of [x, y] site coordinates, indexed by site id."""
        return np.array([[s.x, s.y] for s in self.sites], dtype=float).reshape(-1, 2)

    @property
    def edge_segments(self) -> np.ndarray:
        """Array of [[xa, ya], [xb, yb]] per edge."""
        return np.array(
            [[[e.va.x, e.va.y], [e.vb.x, e.vb.y]] for e in self.edges], dtype=float
        ).reshape(-1, 2, 2)

    @property
    def vertex_coordinates(self) -> np.ndarray:
        """Distinct vertex coordinates in first-seen edge order.

        Cells closed against the box create their own corner points, so
        vertices are merged by coordinates rather than by identity.
        """
        seen = set()
        coords = []
        for edge in self.edges:
            for vertex in (edge.va, edge.vb):
                key = (vertex.x, vertex.y)
                if key not in seen:
                    seen.add(key)
                    coords.append([vertex.x, vertex.y])
        return np.array(coords, dtype=float).reshape(-1, 2)

    @property
    def cell_neighbors(self) -> List[List[int]]:
        """cell_neighbors[i] = sorted ids of the cells adjacent to cell i."""
        return [sorted(set(cell.neighbor_ids())) for cell in self.cells]

    @property
    def border_cell_flags(self) -> np.ndarray:
        """1 for cells that touch the bounding box, 0 otherwise."""
        flags = np.zeros(len(self.cells), dtype=np.uint8)
        for i, cell in enumerate(self.cells):
            if any(he.edge.is_border for he in cell.half_edges):
                flags[i] = 1
        return flags

    def cell_polygons(self) -> List[np.ndarray]:
        """Boundary vertices of each cell, in half-edge order."""
        return [
            np.array([[v.x, v.y] for v in cell.vertices()], dtype=float).reshape(-1, 2)
            for cell in self.cells
        ]

    def find_cell(self, x: float, y: float) -> Optional[int]:
        """Id of the cell containing (x, y), on its perimeter included."""
        for cell in self.cells:
            if cell.half_edges and cell.point_intersection(x, y) >= 0:
                return cell.site.id
        return None

