"""
Core Voronoi DCEL functionality.
"""

from .geometry import Box, Side, Vector2, Intersection, SegmentClip
from .voronoi_diagram import VoronoiDiagram, Site, Face, Vertex, HalfEdge
from .voronoi_graph import DiagramConfig, build_voronoi_diagram, generate_bounded_diagram, get_jittered_grid, relax_points
from .voronoi_analysis import DiagramValidationError, validate_diagram, assert_valid_diagram

__all__ = ['Box', 'Side', 'Vector2', 'Intersection', 'SegmentClip',
           'VoronoiDiagram', 'Site', 'Face', 'Vertex', 'HalfEdge',
           'DiagramConfig', 'build_voronoi_diagram', 'generate_bounded_diagram',
           'get_jittered_grid', 'relax_points',
           'DiagramValidationError', 'validate_diagram', 'assert_valid_diagram']
