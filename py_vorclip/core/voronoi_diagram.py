"""
Voronoi diagram stored as a doubly-connected edge list (DCEL).

The diagram owns one Site and one Face per input point, plus every Vertex and
HalfEdge. Vertices and half-edges live in insertion-ordered arenas keyed by an
integer handle, so removing one element never moves or invalidates another.

Clipping with intersect() turns the unbounded diagram handed over by the
builder into one whose faces are closed polygons inside a Box:

1. Walk each face cycle and classify every half-edge against the box
2. Drop edges entirely outside, move endpoints onto the box boundary
3. Stitch the gap between the last exit and the next entry along the box
   perimeter, adding corner vertices where the walk turns
4. Remove the vertices left behind outside the box

Twin half-edges are visited from two faces. The crossing vertices created for
the first one are reused by the second, so surviving twins always share the
same Vertex objects.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence, Set

import structlog

from .geometry import Box, Side, Vector2, point_in_polygon

logger = structlog.get_logger()


@dataclass(eq=False, repr=False)
class Site:
    """Input point generating one Voronoi cell."""
    index: int
    point: Vector2
    face: Optional["Face"] = None

    def __repr__(self) -> str:
        return f"Site(index={self.index}, point={tuple(self.point)})"


@dataclass(eq=False, repr=False)
class Face:
    """Cell of a site; outer_component is any half-edge of its boundary."""
    site: Site
    outer_component: Optional["HalfEdge"] = None

    def __repr__(self) -> str:
        return f"Face(site={self.site.index})"


@dataclass(eq=False)
class Vertex:
    """DCEL vertex. Compared and hashed by identity."""
    point: Vector2
    handle: int = -1


@dataclass(eq=False)
class HalfEdge:
    """One oriented side of an edge, bounding incident_face on its left."""
    incident_face: Face = field(repr=False)
    handle: int = -1
    origin: Optional[Vertex] = None
    destination: Optional[Vertex] = None
    twin: Optional["HalfEdge"] = field(default=None, repr=False)
    next: Optional["HalfEdge"] = field(default=None, repr=False)
    prev: Optional["HalfEdge"] = field(default=None, repr=False)


class VoronoiDiagram:
    """
    DCEL of a planar Voronoi diagram.

    Sites and faces are fixed at construction. Half-edge cycles are filled in
    by a builder (see voronoi_graph.build_voronoi_diagram) and then clipped
    once with intersect().
    """

    def __init__(self, points: Sequence[Sequence[float]]):
        self._sites: List[Site] = []
        self._faces: List[Face] = []
        self._vertices: Dict[int, Vertex] = {}
        self._half_edges: Dict[int, HalfEdge] = {}
        self._next_handle = 0

        for i, point in enumerate(points):
            site = Site(i, Vector2(float(point[0]), float(point[1])))
            face = Face(site)
            site.face = face
            self._sites.append(site)
            self._faces.append(face)

    # Accessors

    def get_site(self, i: int) -> Site:
        return self._sites[i]

    def get_nb_sites(self) -> int:
        return len(self._sites)

    def get_face(self, i: int) -> Face:
        return self._faces[i]

    def get_vertices(self) -> List[Vertex]:
        """Live vertices in creation order."""
        return list(self._vertices.values())

    def get_half_edges(self) -> List[HalfEdge]:
        """Live half-edges in creation order."""
        return list(self._half_edges.values())

    # Mutation primitives

    def _new_handle(self) -> int:
        handle = self._next_handle
        self._next_handle += 1
        return handle

    def create_vertex(self, point: Sequence[float]) -> Vertex:
        vertex = Vertex(Vector2(float(point[0]), float(point[1])), self._new_handle())
        self._vertices[vertex.handle] = vertex
        return vertex

    def create_corner(self, box: Box, side: Side) -> Vertex:
        """Create the box corner where a counter-clockwise walk enters side."""
        return self.create_vertex(box.corner(side))

    def create_half_edge(self, face: Face) -> HalfEdge:
        """Create a half-edge on face, making it the face entry point if unset."""
        half_edge = HalfEdge(face, self._new_handle())
        self._half_edges[half_edge.handle] = half_edge
        if face.outer_component is None:
            face.outer_component = half_edge
        return half_edge

    def remove_vertex(self, vertex: Vertex) -> None:
        del self._vertices[vertex.handle]

    def remove_half_edge(self, half_edge: HalfEdge) -> None:
        del self._half_edges[half_edge.handle]

    def link(self, box: Box, start: HalfEdge, start_side: Side,
             end: HalfEdge, end_side: Side) -> None:
        """
        Connect start.destination to end.origin along the box perimeter.

        One half-edge is added per corner passed between start_side and
        end_side (counter-clockwise), then a last one reaching end.origin.
        """
        half_edge = start
        side = start_side
        while side != end_side:
            side = side.next()
            half_edge.next = self.create_half_edge(start.incident_face)
            half_edge.next.prev = half_edge
            half_edge.next.origin = half_edge.destination
            half_edge.next.destination = self.create_corner(box, side)
            half_edge = half_edge.next
        half_edge.next = self.create_half_edge(start.incident_face)
        half_edge.next.prev = half_edge
        end.prev = half_edge.next
        half_edge.next.next = end
        half_edge.next.origin = half_edge.destination
        half_edge.next.destination = end.origin

    def _close_with_box(self, box: Box, face: Face) -> HalfEdge:
        """Replace the boundary of a face enclosing the whole box by the box."""
        face.outer_component = None
        corners = [self.create_corner(box, side) for side in Side]
        half_edges = [self.create_half_edge(face) for _ in corners]
        for i, half_edge in enumerate(half_edges):
            half_edge.origin = corners[i]
            half_edge.destination = corners[(i + 1) % 4]
            half_edge.next = half_edges[(i + 1) % 4]
            half_edge.prev = half_edges[i - 1]
        return half_edges[0]

    # Clipping

    def intersect(self, box: Box) -> None:
        """
        Clip every face of the diagram to box, in place.

        Meant to run once per diagram. A face lying entirely outside the box
        ends up with outer_component set to None; a face enclosing the whole
        box becomes the box rectangle. Vertices lying on the boundary are
        kept, and a face touching the box at a single point counts as outside.
        """
        logger.info("Clipping diagram", sites=len(self._sites),
                    half_edges=len(self._half_edges),
                    box=(box.left, box.bottom, box.right, box.top))

        processed_half_edges: Set[HalfEdge] = set()
        vertices_to_remove: Set[Vertex] = set()
        degenerate_faces = 0

        for site in self._sites:
            face = site.face
            if face.outer_component is None:
                logger.warning("Skipping face without boundary", site=site.index)
                continue

            cycle = [face.outer_component]
            while cycle[-1].next is not face.outer_component:
                cycle.append(cycle[-1].next)
            clips = [box.clip_segment(h.origin.point, h.destination.point) for h in cycle]
            # Whether the part kept of a half-edge reaches its destination
            reaches_end = [clip is not None and clip.exit is None for clip in clips]

            if all(reaches_end):
                continue

            if all(clip is None for clip in clips):
                original_polygon = [h.origin.point for h in cycle]
                for half_edge in cycle:
                    vertices_to_remove.add(half_edge.origin)
                    self.remove_half_edge(half_edge)
                if point_in_polygon(box.center, original_polygon):
                    logger.debug("Face encloses the box", site=site.index)
                    face.outer_component = self._close_with_box(box, face)
                else:
                    logger.debug("Face lies outside the box", site=site.index)
                    face.outer_component = None
                    degenerate_faces += 1
                continue

            # Start where the boundary is broken, so the walk ends outside
            start = next(i for i in range(len(cycle)) if not reaches_end[i - 1])
            inside = False
            last_inside_half_edge = None
            incoming_half_edge = None  # First half-edge coming into the box
            outgoing_half_edge = None  # Last half-edge going out of the box
            incoming_side = outgoing_side = None

            for k in range(len(cycle)):
                half_edge = cycle[(start + k) % len(cycle)]
                clip = clips[(start + k) % len(cycle)]

                # Completely outside the box
                if clip is None:
                    if inside:
                        # Left the box through the shared vertex on the boundary
                        outgoing_half_edge = last_inside_half_edge
                        outgoing_side = box.side_of(last_inside_half_edge.destination.point,
                                                    entering=False)
                        inside = False
                    vertices_to_remove.add(half_edge.origin)
                    self.remove_half_edge(half_edge)
                    continue

                twin_processed = half_edge.twin in processed_half_edges

                # Coming into the box
                if not inside:
                    if clip.entry is not None:
                        vertices_to_remove.add(half_edge.origin)
                        if twin_processed:
                            half_edge.origin = half_edge.twin.destination
                        else:
                            half_edge.origin = self.create_vertex(clip.entry.point)
                        side = clip.entry.side
                    else:
                        side = box.side_of(half_edge.origin.point, entering=True)
                    if outgoing_half_edge is not None:
                        self.link(box, outgoing_half_edge, outgoing_side, half_edge, side)
                    if incoming_half_edge is None:
                        incoming_half_edge = half_edge
                        incoming_side = side

                # Going out of the box
                if clip.exit is not None:
                    vertices_to_remove.add(half_edge.destination)
                    if twin_processed:
                        half_edge.destination = half_edge.twin.origin
                    else:
                        half_edge.destination = self.create_vertex(clip.exit.point)
                    outgoing_half_edge = half_edge
                    outgoing_side = clip.exit.side
                    inside = False
                else:
                    inside = True
                    last_inside_half_edge = half_edge
                processed_half_edges.add(half_edge)

            # Link the last and the first half-edges inside the box
            self.link(box, outgoing_half_edge, outgoing_side,
                      incoming_half_edge, incoming_side)
            if self._half_edges.get(face.outer_component.handle) is not face.outer_component:
                face.outer_component = incoming_half_edge

        # Vertices on the boundary stay referenced by the half-edges kept
        referenced = set()
        for half_edge in self._half_edges.values():
            referenced.add(half_edge.origin)
            referenced.add(half_edge.destination)
        for vertex in vertices_to_remove - referenced:
            self.remove_vertex(vertex)

        if degenerate_faces:
            logger.warning("Faces left without boundary", count=degenerate_faces)
        logger.info("Clipping complete", vertices=len(self._vertices),
                    half_edges=len(self._half_edges))
