"""Voronoi diagram construction on top of scipy.spatial.Voronoi."""

from typing import NamedTuple, Optional

import numpy as np
import structlog
from scipy.spatial import Voronoi

from ..config import settings
from .geometry import Box
from .voronoi_analysis import face_centroid
from .voronoi_diagram import VoronoiDiagram

logger = structlog.get_logger()


class DiagramConfig(NamedTuple):
    """Configuration for diagram construction."""
    far_field_scale: float = settings.far_field_scale


def _as_points(points) -> np.ndarray:
    points = np.asarray(points, dtype=float)
    if points.ndim != 2 or points.shape[1] != 2:
        raise ValueError(f"Expected an (N, 2) array of sites, got shape {points.shape}")
    if len(points) == 0:
        raise ValueError("At least one site is required")
    if not np.all(np.isfinite(points)):
        raise ValueError("Site coordinates must be finite")
    if len(np.unique(points, axis=0)) != len(points):
        raise ValueError("Sites must be distinct")
    return points


def get_far_field_points(points: np.ndarray, bounds: Optional[Box] = None,
                         scale: float = settings.far_field_scale) -> np.ndarray:
    """
    Generate far-field points that keep every real Voronoi cell bounded.

    Four points are placed on a diamond around the sites (and bounds, if
    given). Every site lies strictly inside the diamond, so each real cell is
    closed, and the cells along the border reach roughly scale / 2 extents
    away from the centre, far outside any clipping box inside bounds.

    Args:
        points: Site coordinates
        bounds: Region the diagram will later be clipped to
        scale: Diamond radius in multiples of the extent

    Returns:
        Array of 4 far-field point coordinates
    """
    lo = points.min(axis=0)
    hi = points.max(axis=0)
    if bounds is not None:
        lo = np.minimum(lo, [bounds.left, bounds.bottom])
        hi = np.maximum(hi, [bounds.right, bounds.top])

    center = (lo + hi) / 2
    extent = max(float(np.max(hi - lo)), 1.0)
    radius = extent * scale

    directions = np.array([[1.0, 0.0], [0.0, 1.0], [-1.0, 0.0], [0.0, -1.0]])
    return center + radius * directions


def build_voronoi_diagram(points, bounds: Optional[Box] = None,
                          config: Optional[DiagramConfig] = None) -> VoronoiDiagram:
    """
    Build the unbounded DCEL of the Voronoi diagram of points.

    scipy computes the diagram of the sites plus the far-field points. Each
    real cell becomes a counter-clockwise half-edge cycle; vertices are shared
    between the cells meeting at them, and half-edges between two real cells
    are twinned. Edges bordering a far-field cell have no twin, they lie far
    outside bounds and disappear when the diagram is clipped.

    Args:
        points: (N, 2) site coordinates
        bounds: Region the diagram will later be clipped to
        config: Construction configuration

    Returns:
        VoronoiDiagram ready for intersect()
    """
    config = config or DiagramConfig()
    points = _as_points(points)
    far_points = get_far_field_points(points, bounds, config.far_field_scale)
    n_sites = len(points)

    vor = Voronoi(np.vstack([points, far_points]))
    logger.info("Voronoi diagram calculated", sites=n_sites,
                vertices=len(vor.vertices), ridges=len(vor.ridge_points))

    diagram = VoronoiDiagram(points)
    vertices = {}
    half_edges = {}

    for i in range(n_sites):
        region = vor.regions[vor.point_region[i]]
        if -1 in region or len(region) < 3:
            raise ValueError(f"Cell of site {i} is unbounded; increase far_field_scale")

        # Order the cell vertices counter-clockwise around the site
        region = np.array(region)
        offsets = vor.vertices[region] - points[i]
        region = region[np.argsort(np.arctan2(offsets[:, 1], offsets[:, 0]))]

        face = diagram.get_face(i)
        previous = None
        for k, vertex_idx in enumerate(region):
            next_idx = region[(k + 1) % len(region)]
            for idx in (vertex_idx, next_idx):
                if idx not in vertices:
                    vertices[idx] = diagram.create_vertex(vor.vertices[idx])

            half_edge = diagram.create_half_edge(face)
            half_edge.origin = vertices[vertex_idx]
            half_edge.destination = vertices[next_idx]
            if previous is not None:
                previous.next = half_edge
                half_edge.prev = previous
            previous = half_edge

            twin = half_edges.get((next_idx, vertex_idx))
            if twin is not None:
                half_edge.twin = twin
                twin.twin = half_edge
            half_edges[(vertex_idx, next_idx)] = half_edge

        previous.next = face.outer_component
        face.outer_component.prev = previous

    logger.info("Diagram built", sites=n_sites,
                vertices=len(diagram.get_vertices()),
                half_edges=len(diagram.get_half_edges()))
    return diagram


def generate_bounded_diagram(points, box: Box,
                             config: Optional[DiagramConfig] = None) -> VoronoiDiagram:
    """Build the Voronoi diagram of points and clip it to box."""
    diagram = build_voronoi_diagram(points, box, config)
    diagram.intersect(box)
    return diagram


def get_jittered_grid(box: Box, spacing: float, seed: Optional[int] = None) -> np.ndarray:
    """
    Generate jittered square grid points inside box.

    Creates regular grid with randomized positions to prevent artificial patterns.

    Args:
        box: Region to fill
        spacing: Distance between grid points
        seed: Random seed for reproducibility

    Returns:
        Array of [x, y] point coordinates
    """
    if spacing <= 0:
        raise ValueError("spacing must be positive")
    rng = np.random.default_rng(seed)

    radius = spacing / 2  # square radius
    jittering = radius * 0.9  # max deviation
    double_jittering = jittering * 2

    def jitter():
        return rng.random() * double_jittering - jittering

    points = []
    y = box.bottom + radius
    while y < box.top:
        x = box.left + radius
        while x < box.right:
            xj = min(max(round(x + jitter(), 2), box.left), box.right)
            yj = min(max(round(y + jitter(), 2), box.bottom), box.top)
            points.append([xj, yj])
            x += spacing
        y += spacing

    return np.array(points).reshape(-1, 2)


def relax_points(points, box: Box, n_iterations: Optional[int] = None,
                 config: Optional[DiagramConfig] = None) -> np.ndarray:
    """Apply Lloyd's relaxation to improve point distribution.

    Moves each point to the centroid of its clipped Voronoi cell. Points whose
    cell has no boundary stay where they are.

    Args:
        points: Sites to relax
        box: Clipping box
        n_iterations: Number of relaxation iterations
        config: Construction configuration

    Returns:
        Relaxed point coordinates
    """
    if n_iterations is None:
        n_iterations = settings.lloyd_iterations
    logger.info("Starting Lloyd's relaxation", iterations=n_iterations)

    points = _as_points(points).copy()  # Don't modify original

    for iteration in range(n_iterations):
        diagram = generate_bounded_diagram(points, box, config)

        for i in range(diagram.get_nb_sites()):
            centroid = face_centroid(diagram.get_face(i))
            if centroid is None:
                continue
            points[i][0] = np.clip(centroid[0], box.left, box.right)
            points[i][1] = np.clip(centroid[1], box.bottom, box.top)

        logger.info(f"Relaxation iteration {iteration + 1} complete")

    return points
