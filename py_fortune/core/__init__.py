"""
Bounded Voronoi diagrams with Fortune's sweep-line algorithm.
"""

from .geometry import Point, BoundingBox, Edge, HalfEdge
from .cell import Cell
from .rbtree import RBNode, RBTree
from .voronoi_graph import VoronoiGraph
from .fortune import FortuneVoronoi, compute_voronoi_graph

__all__ = ['Point', 'BoundingBox', 'Edge', 'HalfEdge', 'Cell',
           'RBNode', 'RBTree', 'VoronoiGraph', 'compute_voronoi_graph',
           'FortuneVoronoi']
