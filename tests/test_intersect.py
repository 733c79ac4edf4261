"""Tests for clipping Voronoi diagrams built from sites to a box."""

import pytest
import numpy as np
from py_vorclip.core.geometry import Box, Vector2
from py_vorclip.core.voronoi_graph import (
    build_voronoi_diagram, generate_bounded_diagram, get_jittered_grid
)
from py_vorclip.core.voronoi_analysis import (
    face_half_edges, face_polygon, face_area, face_neighbors, validate_diagram
)

BOX = Box(left=0.0, bottom=0.0, right=10.0, top=10.0)
GRID_BOX = Box(left=0.0, bottom=0.0, right=100.0, top=100.0)


@pytest.fixture
def grid_diagram():
    """Clipped diagram of a jittered grid of ~100 sites."""
    points = get_jittered_grid(GRID_BOX, spacing=10, seed=42)
    return generate_bounded_diagram(points, GRID_BOX)


class TestSingleSite:
    """A lone site's face encloses the box and becomes the box itself."""

    def test_full_box(self):
        """Test that the face is the box rectangle with four corner vertices."""
        diagram = generate_bounded_diagram([(5, 5)], BOX)
        face = diagram.get_face(0)

        assert face.outer_component is not None
        assert len(face_half_edges(face)) == 4
        assert len(diagram.get_vertices()) == 4
        # 4 half-edges, not 8: edges on the perimeter border no other face,
        # so no twins are created for them
        assert len(diagram.get_half_edges()) == 4
        assert {v.point for v in diagram.get_vertices()} == {
            Vector2(0.0, 0.0), Vector2(10.0, 0.0), Vector2(10.0, 10.0), Vector2(0.0, 10.0)
        }
        assert face_area(face) == pytest.approx(100.0)
        assert validate_diagram(diagram, BOX) == []


class TestTwoSites:
    """Two sites split the box along their bisector."""

    @pytest.fixture
    def diagram(self):
        return generate_bounded_diagram([(3, 5), (7, 5)], BOX)

    def test_rectangles(self, diagram):
        """Test that each site keeps one half of the box."""
        for i in range(2):
            face = diagram.get_face(i)
            assert len(face_half_edges(face)) == 4
            assert face_area(face) == pytest.approx(50.0)

        left = face_polygon(diagram.get_face(0))
        right = face_polygon(diagram.get_face(1))
        assert left[:, 0].max() == pytest.approx(5.0)
        assert left[:, 0].min() == pytest.approx(0.0)
        assert right[:, 0].min() == pytest.approx(5.0)
        assert right[:, 0].max() == pytest.approx(10.0)

    def test_shared_bisector(self, diagram):
        """Exactly one twin pair survives, sharing its vertex objects."""
        twinned = [h for h in diagram.get_half_edges() if h.twin is not None]
        assert len(twinned) == 2

        edge, twin = twinned
        assert edge.twin is twin and twin.twin is edge
        assert edge.destination is twin.origin
        assert edge.origin is twin.destination
        assert {edge.incident_face.site.index, twin.incident_face.site.index} == {0, 1}

        endpoints = sorted([tuple(edge.origin.point), tuple(edge.destination.point)],
                           key=lambda p: p[1])
        assert endpoints[0] == pytest.approx((5.0, 0.0))
        assert endpoints[1] == pytest.approx((5.0, 10.0))

    def test_counts(self, diagram):
        """Test vertex, half-edge and neighbour counts."""
        assert len(diagram.get_vertices()) == 6
        assert len(diagram.get_half_edges()) == 8
        assert face_neighbors(diagram.get_face(0)) == [1]
        assert face_neighbors(diagram.get_face(1)) == [0]
        assert validate_diagram(diagram, BOX) == []

    def test_second_intersect_is_observed_noop(self, diagram):
        """Clipping again with the same box leaves this diagram unchanged.

        intersect() is a one-shot operation; this only records what happens
        for a diagram whose vertices all lie on or inside the box.
        """
        vertices = diagram.get_vertices()
        half_edges = diagram.get_half_edges()

        diagram.intersect(BOX)

        assert diagram.get_vertices() == vertices
        assert diagram.get_half_edges() == half_edges
        assert validate_diagram(diagram, BOX) == []


class TestFaceOutsideBox:
    """A site whose cell misses the box ends up without boundary."""

    @pytest.fixture
    def diagram(self):
        return generate_bounded_diagram([(5, 5), (50, 5)], BOX)

    def test_degenerate_face_detectable(self, diagram):
        """Test that validation reports the face without boundary."""
        assert diagram.get_face(1).outer_component is None
        assert validate_diagram(diagram, BOX) == ["face 1 has no boundary"]

    def test_other_face_covers_box(self, diagram):
        """Test that the remaining face becomes the whole box."""
        assert face_area(diagram.get_face(0)) == pytest.approx(100.0)
        for half_edge in diagram.get_half_edges():
            assert half_edge.incident_face is diagram.get_face(0)

    def test_second_intersect_skips_degenerate_face(self, diagram):
        """Test that clipping again does not touch a face without boundary."""
        diagram.intersect(BOX)
        assert diagram.get_face(1).outer_component is None
        assert face_area(diagram.get_face(0)) == pytest.approx(100.0)


class TestGridInvariants:
    """Invariants of a clipped diagram with many sites."""

    def test_diagram_is_valid(self, grid_diagram):
        """Test that validation finds no problem."""
        assert validate_diagram(grid_diagram, GRID_BOX) == []

    def test_endpoints_inside_box(self, grid_diagram):
        """Test that every half-edge lies within the box."""
        for half_edge in grid_diagram.get_half_edges():
            assert GRID_BOX.contains(half_edge.origin.point)
            assert GRID_BOX.contains(half_edge.destination.point)

    def test_twins_share_vertex_identity(self, grid_diagram):
        """Test that surviving twins use the same Vertex objects."""
        twinned = 0
        for half_edge in grid_diagram.get_half_edges():
            if half_edge.twin is None:
                continue
            twinned += 1
            assert half_edge.twin.twin is half_edge
            assert half_edge.destination is half_edge.twin.origin
            assert half_edge.origin is half_edge.twin.destination
        assert twinned > 0

    def test_cycles_match_face_sizes(self, grid_diagram):
        """Test that each face cycle visits all of its half-edges."""
        sizes = {}
        for half_edge in grid_diagram.get_half_edges():
            face = half_edge.incident_face
            sizes[face.site.index] = sizes.get(face.site.index, 0) + 1

        for i in range(grid_diagram.get_nb_sites()):
            face = grid_diagram.get_face(i)
            cycle = face_half_edges(face)
            assert cycle[-1].next is face.outer_component
            assert len(cycle) == sizes[i]

    def test_no_unreferenced_vertices(self, grid_diagram):
        """Test that vertices left outside the box are removed."""
        referenced = set()
        for half_edge in grid_diagram.get_half_edges():
            referenced.add(half_edge.origin)
            referenced.add(half_edge.destination)
        assert referenced == set(grid_diagram.get_vertices())

    def test_faces_tile_the_box(self, grid_diagram):
        """Test that face areas sum to the box area."""
        total = sum(face_area(grid_diagram.get_face(i))
                    for i in range(grid_diagram.get_nb_sites()))
        assert total == pytest.approx(GRID_BOX.width * GRID_BOX.height)

    def test_faces_contain_their_site(self, grid_diagram):
        """Test that each site lies within the bounds of its face."""
        for i in range(grid_diagram.get_nb_sites()):
            face = grid_diagram.get_face(i)
            polygon = face_polygon(face)
            site = face.site.point
            assert polygon[:, 0].min() <= site.x <= polygon[:, 0].max()
            assert polygon[:, 1].min() <= site.y <= polygon[:, 1].max()


class TestInteriorFaces:
    """Faces lying inside the box keep their shape."""

    def test_area_preserved(self):
        """Test that faces already inside the box are not modified."""
        points = get_jittered_grid(GRID_BOX, spacing=10, seed=7)
        diagram = build_voronoi_diagram(points, GRID_BOX)

        interior = {}
        for i in range(diagram.get_nb_sites()):
            polygon = face_polygon(diagram.get_face(i))
            if all(GRID_BOX.contains(p) for p in polygon):
                interior[i] = (face_area(diagram.get_face(i)), len(polygon))
        assert interior

        diagram.intersect(GRID_BOX)

        for i, (area, size) in interior.items():
            face = diagram.get_face(i)
            assert face_area(face) == pytest.approx(area)
            assert len(face_half_edges(face)) == size

    def test_box_smaller_than_sites(self):
        """Clipping to a box inside the point cloud still tiles it."""
        points = get_jittered_grid(GRID_BOX, spacing=10, seed=3)
        box = Box(left=25.0, bottom=30.0, right=65.0, top=80.0)
        diagram = build_voronoi_diagram(points, GRID_BOX)
        diagram.intersect(box)

        live = [i for i in range(diagram.get_nb_sites())
                if diagram.get_face(i).outer_component is not None]
        total = sum(face_area(diagram.get_face(i)) for i in live)

        assert total == pytest.approx(box.width * box.height)
        problems = validate_diagram(diagram, box)
        assert all(p.endswith("has no boundary") for p in problems)
        assert len(problems) == diagram.get_nb_sites() - len(live)
        np.testing.assert_array_less(0, [face_area(diagram.get_face(i)) for i in live])


class TestBoundaryDegenerateSites:
    """Sites whose Voronoi edges or vertices meet the box boundary exactly."""

    def test_bisector_through_corner(self):
        """The bisector of (1, 3) and (3, 1) leaves the box at its corner."""
        diagram = generate_bounded_diagram([(1, 3), (3, 1), (4, 4)], BOX)

        assert validate_diagram(diagram, BOX) == []
        total = sum(face_area(diagram.get_face(i)) for i in range(3))
        assert total == pytest.approx(100.0)

        corner = [v for v in diagram.get_vertices()
                  if np.allclose(v.point, (0.0, 0.0), atol=1e-9)]
        assert len(corner) == 1
        assert face_neighbors(diagram.get_face(0)) == [1, 2]

    def test_vertex_on_top_side(self):
        """The Voronoi vertex of these sites lies on the top side at (5, 10)."""
        diagram = generate_bounded_diagram([(2, 6), (8, 6), (5, 15)], BOX)

        # The third cell only touches the box at that vertex
        assert validate_diagram(diagram, BOX) == ["face 2 has no boundary"]
        assert face_area(diagram.get_face(0)) == pytest.approx(50.0)
        assert face_area(diagram.get_face(1)) == pytest.approx(50.0)

        on_top = [v for v in diagram.get_vertices()
                  if np.allclose(v.point, (5.0, 10.0), atol=1e-9)]
        assert len(on_top) == 1
        assert face_neighbors(diagram.get_face(0)) == [1]

    def test_edges_along_sides(self):
        """Bisectors lying on the box sides split the box into a 4 x 4 grid."""
        points = [(x, y) for x in range(1, 11, 2) for y in range(1, 11, 2)]
        box = Box(left=0.0, bottom=0.0, right=8.0, top=8.0)
        diagram = generate_bounded_diagram(points, box)

        problems = validate_diagram(diagram, box)
        assert len(problems) == 9
        assert all(p.endswith("has no boundary") for p in problems)
        for i, (x, y) in enumerate(points):
            if x < 8 and y < 8:
                assert face_area(diagram.get_face(i)) == pytest.approx(4.0)
                assert len(face_half_edges(diagram.get_face(i))) == 4
