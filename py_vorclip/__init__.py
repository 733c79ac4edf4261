"""
Voronoi diagrams as doubly-connected edge lists, clipped to a bounding box.
"""

__version__ = "0.1.0"
