"""Tests for the sweep-line Voronoi computation."""

import math

import numpy as np
import pytest
from py_fortune.core import BoundingBox, FortuneVoronoi, Point
from py_fortune.core.beachline import SweepContext
from py_fortune.core.cell import Cell


BBOX = BoundingBox.from_extent(100, 100)


@pytest.fixture
def voronoi():
    return FortuneVoronoi(epsilon=0.1, circle_epsilon=2e-12)


@pytest.fixture
def random_sites():
    rng = np.random.default_rng(7)
    return rng.uniform(10, 990, size=(60, 2))


def build_beachline(context, sites):
    """Lay out one arc per site, left to right."""
    arcs = [context.create_beach_section(site) for site in sites]
    previous = None
    for arc in arcs:
        context.beachline.insert(previous, arc)
        previous = arc
    return arcs


def assert_consistent(graph, epsilon=0.1):
    """Check the structural properties every finished diagram must have."""
    assert len(graph.cells) == len(graph.sites)
    for i, (site, cell) in enumerate(zip(graph.sites, graph.cells)):
        assert site.id == i
        assert cell.site is site
        assert cell.is_closed(epsilon), f"cell {i} is open"

    for edge in graph.edges:
        assert edge.va is not None and edge.vb is not None
        for vertex in (edge.va, edge.vb):
            assert graph.bbox.contains(vertex.x, vertex.y, tolerance=epsilon)

    for edge in graph.edges:
        if edge.is_border:
            continue
        for site in (edge.left_site, edge.right_site):
            cell = graph.cells[site.id]
            assert any(he.edge is edge for he in cell.half_edges)


class TestDegenerateInputs:
    """Test trivial and degenerate site sets."""

    def test_empty(self, voronoi):
        graph = voronoi.compute([], BBOX)

        assert graph.sites == []
        assert graph.cells == []
        assert graph.edges == []
        assert graph.valid

    def test_single_site_is_whole_box(self, voronoi):
        """Test that one site owns the entire bounding box."""
        graph = voronoi.compute([(30, 60)], BBOX)

        assert len(graph.cells) == 1
        assert len(graph.edges) == 4
        assert all(edge.is_border for edge in graph.edges)
        assert graph.valid
        assert_consistent(graph)

        cell = graph.cells[0]
        assert cell.area() == pytest.approx(100 * 100)
        assert cell.point_intersection(30, 60) == 1

    def test_duplicate_sites_collapse(self, voronoi):
        graph = voronoi.compute([(30, 30), (30, 30)], BBOX)

        assert len(graph.sites) == 1
        assert len(graph.cells) == 1
        assert graph.valid

    def test_duplicates_among_others(self, voronoi):
        graph = voronoi.compute([(30, 30), (70, 60), (30, 30), (70, 60)], BBOX)

        assert len(graph.sites) == 2
        assert graph.valid
        assert_consistent(graph)

    def test_collinear_horizontal(self, voronoi):
        """Test sites on one horizontal line: parallel vertical edges."""
        graph = voronoi.compute([(20, 50), (50, 50), (80, 50)], BBOX)

        assert graph.valid
        assert_consistent(graph)
        internal = [e for e in graph.edges if not e.is_border]
        assert sorted(e.va.x for e in internal) == pytest.approx([35, 65])
        areas = [cell.area() for cell in graph.cells]
        assert areas == pytest.approx([3500, 3000, 3500])

    def test_collinear_vertical(self, voronoi):
        """Test sites on one vertical line: parallel horizontal edges."""
        graph = voronoi.compute([(50, 20), (50, 50), (50, 80)], BBOX)

        assert graph.valid
        assert_consistent(graph)
        internal = [e for e in graph.edges if not e.is_border]
        assert sorted(e.va.y for e in internal) == pytest.approx([35, 65])

    def test_two_sites(self, voronoi):
        graph = voronoi.compute([(25, 50), (75, 50)], BBOX)

        assert graph.valid
        assert_consistent(graph)
        assert [cell.area() for cell in graph.cells] == pytest.approx([5000, 5000])


class TestSquare:
    """Four sites on a square: four arcs collapse at the same vertex."""

    @pytest.fixture
    def graph(self, voronoi):
        return voronoi.compute([(25, 25), (75, 25), (25, 75), (75, 75)], BBOX)

    def test_cells(self, graph):
        assert len(graph.cells) == 4
        assert graph.valid
        assert_consistent(graph)
        for cell in graph.cells:
            assert cell.area() == pytest.approx(2500)

    def test_internal_edges_share_center(self, graph):
        internal = [e for e in graph.edges if not e.is_border]

        assert len(internal) == 4
        centers = {id(e.va) for e in internal}
        assert len(centers) == 1
        assert internal[0].va.x == pytest.approx(50)
        assert internal[0].va.y == pytest.approx(50)

    def test_adjacency(self, graph):
        """Test that each corner cell touches its two side neighbours only."""
        neighbors = [sorted(set(cell.neighbor_ids())) for cell in graph.cells]
        assert neighbors == [[1, 2], [0, 3], [0, 3], [1, 2]]


class TestRandomSites:
    """Test general position inputs."""

    def test_properties(self, voronoi, random_sites):
        bbox = BoundingBox.from_extent(1000, 1000)
        graph = voronoi.compute(random_sites, bbox)

        assert graph.valid
        assert len(graph.sites) == len(random_sites)
        assert_consistent(graph)

    def test_cells_cover_box(self, voronoi, random_sites):
        bbox = BoundingBox.from_extent(1000, 1000)
        graph = voronoi.compute(random_sites, bbox)

        total = sum(cell.area() for cell in graph.cells)
        assert total == pytest.approx(1000 * 1000, rel=1e-4)

    def test_point_intersection(self, voronoi, random_sites):
        """Test that every site is inside its own cell and far points are not."""
        graph = voronoi.compute(random_sites, BoundingBox.from_extent(1000, 1000))

        for cell in graph.cells:
            assert cell.point_intersection(cell.site.x, cell.site.y) == 1
            assert cell.point_intersection(1e6, 1e6) == -1
            assert cell.point_intersection(-1e6, -1e6) == -1

    def test_nearest_site_owns_point(self, voronoi, random_sites):
        """Test sample points against a brute force nearest site search."""
        graph = voronoi.compute(random_sites, BoundingBox.from_extent(1000, 1000))
        coords = graph.site_coordinates
        rng = np.random.default_rng(11)

        for x, y in rng.uniform(0, 1000, size=(200, 2)):
            distances = np.hypot(coords[:, 0] - x, coords[:, 1] - y)
            nearest = np.sort(distances)
            if nearest[1] - nearest[0] < 1.0:
                continue  # too close to an edge to tell
            owner = int(np.argmin(distances))
            assert graph.cells[owner].point_intersection(x, y) == 1

    def test_recompute_is_deterministic(self, voronoi, random_sites):
        bbox = BoundingBox.from_extent(1000, 1000)
        first = voronoi.compute(random_sites, bbox)
        second = voronoi.compute(random_sites, bbox)

        np.testing.assert_array_equal(first.site_coordinates, second.site_coordinates)
        np.testing.assert_array_equal(first.edge_segments, second.edge_segments)
        assert first.cell_neighbors == second.cell_neighbors

    def test_separate_instances_agree(self, random_sites):
        bbox = BoundingBox.from_extent(1000, 1000)
        first = FortuneVoronoi().compute(random_sites, bbox)
        second = FortuneVoronoi().compute(random_sites, bbox)

        np.testing.assert_array_equal(first.edge_segments, second.edge_segments)


class TestInputHandling:
    """Test input conversion and validation."""

    def test_sites_ordered_by_sweep(self, voronoi):
        """Test that ids follow sweep order: y first, then x."""
        graph = voronoi.compute([(80, 70), (20, 10), (60, 10), (40, 40)], BBOX)

        coords = [(s.x, s.y) for s in graph.sites]
        assert coords == [(20, 10), (60, 10), (40, 40), (80, 70)]
        assert [s.id for s in graph.sites] == [0, 1, 2, 3]

    def test_input_points_not_mutated(self, voronoi):
        points = [Point(20, 20), Point(70, 80)]
        graph = voronoi.compute(points, BBOX)

        assert all(p.id is None for p in points)
        assert all(s is not p for s in graph.sites for p in points)

    def test_accepts_tuple_bbox(self, voronoi):
        graph = voronoi.compute([(20, 20), (70, 80)], (0, 100, 0, 100))
        assert graph.bbox == BBOX

    def test_non_finite_site(self, voronoi):
        with pytest.raises(ValueError):
            voronoi.compute([(10, 10), (math.nan, 20)], BBOX)

    def test_bad_array_shape(self, voronoi):
        with pytest.raises(ValueError):
            voronoi.compute(np.zeros((4, 3)), BBOX)

    def test_bad_bbox(self, voronoi):
        with pytest.raises(ValueError):
            voronoi.compute([(10, 10)], (10, 0, 0, 10))


class TestEngineState:
    """Test the sweep building blocks directly."""

    def test_state_released_after_compute(self, voronoi):
        voronoi.compute([(20, 20), (70, 80)], BBOX)
        assert voronoi._context is None
        assert voronoi.valid

    def test_break_point_between_level_sites(self, voronoi):
        """Test that two foci at the same height meet halfway."""
        context = SweepContext()
        a, b = Point(20, 10, 0), Point(60, 10, 1)
        left = context.create_beach_section(a)
        right = context.create_beach_section(b)
        context.beachline.insert(None, left)
        context.beachline.insert(left, right)

        assert voronoi.left_break_point(right, 50) == pytest.approx(40)
        assert voronoi.right_break_point(left, 50) == pytest.approx(40)
        assert voronoi.left_break_point(left, 50) == -math.inf
        assert voronoi.right_break_point(right, 50) == math.inf

    def test_break_point_is_equidistant(self, voronoi):
        """Test that the break point is as far from both foci as from the sweep."""
        context = SweepContext()
        a, b = Point(20, 10, 0), Point(60, 30, 1)
        left = context.create_beach_section(a)
        right = context.create_beach_section(b)
        context.beachline.insert(None, left)
        context.beachline.insert(left, right)

        directrix = 50
        x = voronoi.left_break_point(right, directrix)
        # parabola of focus a: y = ((x - ax)^2 + ay^2 - d^2) / (2 (ay - d))
        y = ((x - a.x) ** 2 + a.y ** 2 - directrix ** 2) / (2 * (a.y - directrix))
        assert math.hypot(x - a.x, y - a.y) == pytest.approx(abs(directrix - y))
        assert math.hypot(x - b.x, y - b.y) == pytest.approx(abs(directrix - y))

    def test_circle_event_ordering(self, voronoi):
        """Test that the earliest circle event is cached as the first one."""
        context = SweepContext()
        arcs = build_beachline(context, [Point(25, 75, 0), Point(25, 25, 1), Point(75, 25, 2)])

        voronoi.attach_circle_event(context, arcs[1])

        event = context.first_circle_event
        assert event is arcs[1].circle_event
        assert event.x == pytest.approx(50)
        assert event.y_center == pytest.approx(50)
        assert event.y == pytest.approx(50 + math.hypot(25, 25))

        voronoi.detach_circle_event(context, arcs[1])
        assert context.first_circle_event is None
        assert arcs[1].circle_event is None

    def test_diverging_triplet_has_no_event(self, voronoi):
        context = SweepContext()
        arcs = build_beachline(context, [Point(75, 25, 0), Point(25, 25, 1), Point(25, 75, 2)])

        voronoi.attach_circle_event(context, arcs[1])
        assert arcs[1].circle_event is None
        assert context.first_circle_event is None

    def test_same_site_on_both_sides_has_no_event(self, voronoi):
        """Test that an arc splitting another one does not collapse it."""
        context = SweepContext()
        a, b = Point(50, 20, 0), Point(40, 60, 1)
        arcs = build_beachline(context, [a, b])
        arcs.append(context.create_beach_section(a))
        context.beachline.insert(arcs[1], arcs[2])

        voronoi.attach_circle_event(context, arcs[1])
        assert arcs[1].circle_event is None
        assert context.first_circle_event is None

    def test_right_neighbours_collapse_together(self, voronoi):
        """Test that arcs right of the firing one meeting at its vertex go with it."""
        context = SweepContext()
        sites = [Point(25, 75, 0), Point(25, 25, 1), Point(75, 25, 2), Point(75, 75, 3)]
        context.cells = [Cell(site) for site in sites]
        left, middle, right, last = build_beachline(context, sites)
        middle.edge = voronoi.create_edge(context, sites[0], sites[1])
        right.edge = voronoi.create_edge(context, sites[1], sites[2])
        last.edge = voronoi.create_edge(context, sites[2], sites[3])
        old_edges = list(context.edges)

        voronoi.attach_circle_event(context, middle)
        voronoi.attach_circle_event(context, right)
        assert right.circle_event.x == pytest.approx(middle.circle_event.x)
        assert right.circle_event.y_center == pytest.approx(middle.circle_event.y_center)

        voronoi.remove_beach_section(context, middle)

        assert list(context.beachline) == [left, last]
        assert context.first_circle_event is None
        new_edge = context.edges[-1]
        assert last.edge is new_edge
        assert {new_edge.left_site.id, new_edge.right_site.id} == {0, 3}

        vertex = new_edge.va
        assert (vertex.x, vertex.y) == pytest.approx((50, 50))
        for edge in old_edges:
            assert edge.va is vertex


class TestBreakPointInsertion:
    """Test sites whose arc lands on or next to existing break points."""

    def test_close_sites_on_first_row(self, voronoi):
        """Test two lowest sites closer than epsilon followed by another site."""
        graph = voronoi.compute([(10, 10), (10.05, 10), (50, 60)], BBOX)

        assert len(graph.cells) == 3
        assert graph.valid
        assert_consistent(graph)

    def test_close_sites_later_in_row(self, voronoi):
        """Test a site closer than epsilon to the previous site of its row."""
        graph = voronoi.compute([(0, 10), (50, 10), (50.05, 10), (30, 60)], BBOX)

        assert len(graph.cells) == 4
        assert graph.valid
        assert_consistent(graph)

    def test_site_on_left_break_point(self, voronoi):
        """Test a site exactly below the break point of two level arcs."""
        bbox = BoundingBox.from_bounds(-50, -50, 150, 150)
        graph = voronoi.compute([(0, 0), (50, 0), (100, 0), (25, 50)], bbox)

        assert graph.valid
        assert_consistent(graph)

        # circumcenter of (0, 0), (25, 50) and (50, 0)
        at_center = [
            e for e in graph.edges
            if any(v.x == pytest.approx(25) and v.y == pytest.approx(18.75) for v in (e.va, e.vb))
        ]
        assert len(at_center) == 3
        assert all(not e.is_border for e in at_center)
