"""
Read-side helpers for clipped Voronoi diagrams.

This module provides:
- Face boundary traversal, polygons, areas and centroids
- Neighbouring sites through surviving twin half-edges
- Structural validation of a DCEL (cycles, twins, dangling elements)

Clipping never raises: a face left outside the box simply has no boundary.
validate_diagram() is how callers find such faces before using the output.
"""

from typing import List, Optional

import numpy as np
import structlog

from .geometry import Box, signed_area
from .voronoi_diagram import Face, HalfEdge, VoronoiDiagram

logger = structlog.get_logger()


class DiagramValidationError(ValueError):
    """Raised when a diagram violates DCEL invariants."""

    def __init__(self, problems: List[str]):
        self.problems = problems
        super().__init__(f"{len(problems)} DCEL problem(s): " + "; ".join(problems[:5]))


def face_half_edges(face: Face) -> List[HalfEdge]:
    """Half-edges of the face boundary, starting at outer_component."""
    half_edges = []
    start = face.outer_component
    if start is None:
        return half_edges
    half_edge = start
    while True:
        half_edges.append(half_edge)
        half_edge = half_edge.next
        if half_edge is start or half_edge is None:
            break
    return half_edges


def face_polygon(face: Face) -> np.ndarray:
    """Face boundary as an (N, 2) array of origin coordinates."""
    points = [half_edge.origin.point for half_edge in face_half_edges(face)]
    return np.array(points, dtype=float).reshape(-1, 2)


def face_area(face: Face) -> float:
    """Area of the face polygon (0 for a face without boundary)."""
    return abs(signed_area(face_polygon(face)))


def compute_polygon_centroid(vertices: np.ndarray) -> np.ndarray:
    """Compute the centroid of a polygon.

    Args:
        vertices: Array of [x, y] vertex coordinates

    Returns:
        [x, y] centroid coordinates
    """
    if len(vertices) < 3:
        return np.mean(vertices, axis=0)

    x = vertices[:, 0]
    y = vertices[:, 1]
    x_next = np.roll(x, -1)
    y_next = np.roll(y, -1)
    cross = x * y_next - x_next * y
    area = cross.sum() / 2.0

    if abs(area) < 1e-10:
        return np.mean(vertices, axis=0)

    cx = ((x + x_next) * cross).sum() / (6.0 * area)
    cy = ((y + y_next) * cross).sum() / (6.0 * area)
    return np.array([cx, cy])


def face_centroid(face: Face) -> Optional[np.ndarray]:
    """Centroid of the face polygon, or None for a face without boundary."""
    polygon = face_polygon(face)
    if len(polygon) == 0:
        return None
    return compute_polygon_centroid(polygon)


def face_neighbors(face: Face) -> List[int]:
    """Sorted indices of the sites sharing a surviving edge with face."""
    neighbors = set()
    for half_edge in face_half_edges(face):
        if half_edge.twin is not None:
            neighbors.add(half_edge.twin.incident_face.site.index)
    return sorted(neighbors)


def validate_diagram(diagram: VoronoiDiagram, box: Optional[Box] = None) -> List[str]:
    """
    Check the DCEL invariants of a diagram.

    Args:
        diagram: Diagram to check (before or after clipping)
        box: If given, every vertex used by a half-edge must lie in it

    Returns:
        Human-readable problems, empty when the diagram is sound.
    """
    problems = []
    vertices = set(diagram.get_vertices())
    half_edges = diagram.get_half_edges()
    live_half_edges = set(half_edges)
    referenced = set()
    face_sizes = {}

    for half_edge in half_edges:
        name = f"half-edge {half_edge.handle}"
        face_index = half_edge.incident_face.site.index
        face_sizes[face_index] = face_sizes.get(face_index, 0) + 1

        for role in ("origin", "destination"):
            vertex = getattr(half_edge, role)
            if vertex is None:
                problems.append(f"{name} has no {role}")
                continue
            if vertex not in vertices:
                problems.append(f"{name} {role} references a removed vertex")
            referenced.add(vertex)
            if box is not None and not box.contains(vertex.point):
                problems.append(f"{name} {role} {tuple(vertex.point)} lies outside the box")

        if half_edge.next is None or half_edge.prev is None:
            problems.append(f"{name} is not linked into a cycle")
        else:
            if half_edge.next not in live_half_edges:
                problems.append(f"{name} next is a removed half-edge")
            if half_edge.next.prev is not half_edge:
                problems.append(f"{name} next.prev does not point back")
            if half_edge.next.incident_face is not half_edge.incident_face:
                problems.append(f"{name} next belongs to another face")
            if half_edge.destination is not half_edge.next.origin:
                problems.append(f"{name} destination is not next.origin")

        twin = half_edge.twin
        if twin is not None:
            if twin not in live_half_edges:
                problems.append(f"{name} twin is a removed half-edge")
            if twin.twin is not half_edge:
                problems.append(f"{name} twin is not symmetric")
            if twin.origin is not half_edge.destination or twin.destination is not half_edge.origin:
                problems.append(f"{name} does not share its vertices with its twin")

    for i in range(diagram.get_nb_sites()):
        face = diagram.get_face(i)
        if face.outer_component is None:
            problems.append(f"face {i} has no boundary")
            continue
        if face.outer_component not in live_half_edges:
            problems.append(f"face {i} outer component is a removed half-edge")
            continue
        expected = face_sizes.get(i, 0)
        steps = 0
        half_edge = face.outer_component
        while steps <= expected:
            if half_edge is None or half_edge.incident_face is not face:
                break
            steps += 1
            half_edge = half_edge.next
            if half_edge is face.outer_component:
                break
        if half_edge is not face.outer_component or steps != expected:
            problems.append(f"face {i} cycle has {steps} step(s) for {expected} half-edge(s)")

    unused = vertices - referenced
    if unused:
        problems.append(f"{len(unused)} vertex(es) not referenced by any half-edge")

    if problems:
        logger.debug("Diagram validation failed", problems=len(problems))
    return problems


def assert_valid_diagram(diagram: VoronoiDiagram, box: Optional[Box] = None,
                         allow_degenerate: bool = False) -> None:
    """
    Raise DiagramValidationError unless the diagram is sound.

    Args:
        diagram: Diagram to check
        box: Optional clipping box for the containment check
        allow_degenerate: Accept faces without boundary
    """
    problems = validate_diagram(diagram, box)
    if allow_degenerate:
        problems = [p for p in problems if not p.endswith("has no boundary")]
    if problems:
        raise DiagramValidationError(problems)
