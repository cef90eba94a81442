"""
Half-Edge Mesh
==============

Topology-aware mesh representation built from an indexed polygon mesh.

The structure is stored as arenas of integer handles: every half-edge,
face and vertex is an index into parallel lists, and references between
them are handles into the other arenas (``NO_HANDLE`` for "none").
Removed items are tombstoned, so a handle never changes meaning.

Orientation conventions
-----------------------
The half-edge keyed ``(a, b)`` points to vertex ``a`` (``next_vertex``)
and runs from ``b``. A face-owned half-edge runs along its face in face
order, and ``next_edge(e)`` is the companion of the half-edge that follows
``e`` in its face. Consequently:

- ``face_loop_next(e) = companion(next_edge(e))`` walks around a face;
- ``vertex_loop_next(e) = next_edge(e)`` rotates around the vertex ``e``
  points to. Half-edges without a face have no ``next_edge``; reaching
  one means the vertex lies on a boundary.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Set, Tuple

import numpy as np

from .attributes import AttributeRecord, normalize_attributes, record_at
from .errors import (BoundaryCollapseError, ConversionError, EmptyMeshError,
                     NullTraversalError, TopologyError)
from .locking import WriterGuard
from .polygon_mesh import IndexedPolygonMesh

logger = logging.getLogger(__name__)

NO_HANDLE = -1


@dataclass
class CollapseRecord:
    """Outcome of a single edge collapse."""
    removed_vertex: int
    kept_vertex: int
    removed_faces: int


class HalfEdgeMesh:
    """
    Half-edge topology with traversal primitives and edge collapse.

    Build instances with :meth:`build`; convert back with
    :meth:`to_polygon_mesh`.
    """

    def __init__(self, positions, normals=None, texcoords=None):
        """
        Create a topology with vertices only.

        Args:
            positions: (N, 3) vertex positions
            normals: Optional (N, 3) normals, zero-filled if missing
            texcoords: Optional (N, 2) texture coordinates, zero-filled if missing
        """
        self.positions, self.normals, self.texcoords = normalize_attributes(
            positions, normals, texcoords
        )
        n_vertices = len(self.positions)

        # Vertex arena
        self.vertex_edge: List[int] = [NO_HANDLE] * n_vertices
        self.vertex_alive: List[bool] = [True] * n_vertices

        # Face arena
        self.face_edge: List[int] = []
        self.face_alive: List[bool] = []

        # Half-edge arena
        self.next_edge: List[int] = []
        self.companion_edge: List[int] = []
        self.edge_face: List[int] = []
        self.next_vertex: List[int] = []
        self.edge_alive: List[bool] = []

        self._edge_keys: Dict[Tuple[int, int], int] = {}
        self._num_vertices = n_vertices
        self._num_faces = 0
        self._num_half_edges = 0

        self.skipped_faces = 0
        self.removed_degenerate_faces = 0
        self._guard = WriterGuard("HalfEdgeMesh")

    # ------------------------------------------------------------------
    # Construction
    # ------------------------------------------------------------------

    @classmethod
    def build(cls, mesh: IndexedPolygonMesh) -> "HalfEdgeMesh":
        """
        Build the half-edge topology of an indexed polygon mesh.

        Faces with fewer than 3 vertex ids, or that repeat a vertex id,
        contribute no topology and are counted in ``skipped_faces``.

        Args:
            mesh: Source mesh

        Returns:
            New HalfEdgeMesh

        Raises:
            EmptyMeshError: If the mesh has no faces or no vertices
        """
        if mesh.num_faces == 0 or mesh.num_vertices == 0:
            logger.error("HalfEdgeMesh: constructed from a mesh that has no faces or no vertices")
            raise EmptyMeshError("HalfEdgeMesh: constructed from an empty mesh")

        topology = cls(mesh.positions, mesh.normals, mesh.texcoords)

        for face in mesh.faces:
            if len(face) < 3 or len(set(face)) != len(face):
                topology.skipped_faces += 1
                continue
            topology._add_face(face)

        topology._assign_representatives()

        if topology.skipped_faces:
            logger.info("HalfEdgeMesh: skipped %d degenerate faces", topology.skipped_faces)
        logger.info("HalfEdgeMesh: converted mesh into %d half edges, %d faces",
                    topology.num_half_edges, topology.num_faces)

        return topology

    def _new_edge(self, vertex: int) -> int:
        handle = len(self.next_vertex)
        self.next_edge.append(NO_HANDLE)
        self.companion_edge.append(NO_HANDLE)
        self.edge_face.append(NO_HANDLE)
        self.next_vertex.append(vertex)
        self.edge_alive.append(True)
        self._num_half_edges += 1
        return handle

    def _edge_pair(self, a: int, b: int) -> int:
        """Look up the half-edge keyed (a, b), creating it and its companion if needed."""
        handle = self._edge_keys.get((a, b))
        if handle is None:
            handle = self._new_edge(a)
            twin = self._new_edge(b)
            self.companion_edge[handle] = twin
            self.companion_edge[twin] = handle
            self._edge_keys[(a, b)] = handle
            self._edge_keys[(b, a)] = twin
        return handle

    def _add_face(self, face: List[int]):
        fi = len(self.face_edge)
        self.face_edge.append(NO_HANDLE)
        self.face_alive.append(True)
        self._num_faces += 1

        n = len(face)
        first = NO_HANDLE
        last = NO_HANDLE
        for i in range(n):
            cw_vertex = face[i]
            ccw_vertex = face[(i + 1) % n]

            cw_edge = self._edge_pair(cw_vertex, ccw_vertex)
            ccw_edge = self.companion_edge[cw_edge]

            if self.edge_face[ccw_edge] != NO_HANDLE:
                logger.warning("HalfEdgeMesh: edge %d->%d is claimed by faces %d and %d",
                               cw_vertex, ccw_vertex, self.edge_face[ccw_edge], fi)
            self.edge_face[ccw_edge] = fi

            if last == NO_HANDLE:
                first = cw_edge
            else:
                self.next_edge[last] = cw_edge
            last = ccw_edge

        # Close the loop
        self.next_edge[last] = first

    def _assign_representatives(self):
        for handle, vertex in enumerate(self.next_vertex):
            if self.vertex_edge[vertex] == NO_HANDLE:
                self.vertex_edge[vertex] = handle
            face = self.edge_face[handle]
            if face != NO_HANDLE and self.face_edge[face] == NO_HANDLE:
                self.face_edge[face] = handle

    # ------------------------------------------------------------------
    # Counters and lookups
    # ------------------------------------------------------------------

    @property
    def num_vertices(self) -> int:
        return self._num_vertices

    @property
    def num_faces(self) -> int:
        return self._num_faces

    @property
    def num_half_edges(self) -> int:
        return self._num_half_edges

    @property
    def num_edges(self) -> int:
        """Number of undirected edges."""
        return self._num_half_edges // 2

    def half_edges(self) -> Iterator[int]:
        """Iterate over the handles of all surviving half-edges."""
        return (h for h, alive in enumerate(self.edge_alive) if alive)

    def vertices(self) -> Iterator[int]:
        return (v for v, alive in enumerate(self.vertex_alive) if alive)

    def faces(self) -> Iterator[int]:
        return (f for f, alive in enumerate(self.face_alive) if alive)

    def vertex(self, handle: int) -> AttributeRecord:
        """Attribute record of a vertex."""
        return record_at(self.positions, self.normals, self.texcoords, handle)

    def find_half_edge(self, tail: int, head: int) -> Optional[int]:
        """
        Return the half-edge running from vertex ``tail`` to vertex ``head``.

        The returned half-edge points to ``head``; collapsing it removes
        ``head`` and merges it into ``tail``.
        """
        return self._edge_keys.get((head, tail))

    def edge_vertices(self, edge: int) -> Tuple[int, int]:
        """(tail, head) vertices of a half-edge."""
        self._require(edge)
        return self.next_vertex[self.companion_edge[edge]], self.next_vertex[edge]

    def edge_length(self, edge: int) -> float:
        """Euclidean distance between the endpoints of a half-edge."""
        tail, head = self.edge_vertices(edge)
        return float(np.linalg.norm(self.positions[head] - self.positions[tail]))

    # ------------------------------------------------------------------
    # Traversal
    # ------------------------------------------------------------------

    def _require(self, edge: Optional[int]):
        if edge is None or edge == NO_HANDLE:
            raise NullTraversalError("Traversal started without a half-edge")
        if not self.edge_alive[edge]:
            raise TopologyError(f"Half-edge {edge} has been removed")

    def face_loop_next(self, edge: Optional[int]) -> Optional[int]:
        """
        Advance to the next half-edge around the face of ``edge``.

        Returns None if ``edge`` has no successor (it lies on a boundary).

        Raises:
            NullTraversalError: If called without a half-edge
        """
        self._require(edge)
        following = self.next_edge[edge]
        if following == NO_HANDLE:
            return None
        return self.companion_edge[following]

    def vertex_loop_next(self, edge: Optional[int]) -> Optional[int]:
        """
        Advance to the next half-edge sharing the vertex ``edge`` points to.

        Returns None if a boundary is reached.

        Raises:
            NullTraversalError: If called without a half-edge
        """
        self._require(edge)
        following = self.next_edge[edge]
        if following == NO_HANDLE:
            return None
        return following

    def vertex_loop_prev(self, edge: Optional[int]) -> Optional[int]:
        """
        Inverse of :meth:`vertex_loop_next`.

        Walks forward around the vertex until the half-edge whose next step
        lands on ``edge``. Returns None if a boundary is reached first.
        """
        self._require(edge)
        current = edge
        for _ in range(self._loop_limit):
            following = self.next_edge[current]
            if following == NO_HANDLE:
                return None
            if following == edge:
                return current
            current = following
        raise TopologyError(f"Vertex loop starting at half-edge {edge} does not close")

    def face_loop_prev(self, edge: Optional[int]) -> Optional[int]:
        """
        Inverse of :meth:`face_loop_next`.

        The predecessor of ``edge`` in its face is the half-edge whose
        ``next_edge`` is the companion of ``edge``, found by walking around
        that companion's vertex. Returns None if a boundary is reached first.
        """
        self._require(edge)
        return self.vertex_loop_prev(self.companion_edge[edge])

    def vertex_count(self, face: Optional[int]) -> int:
        """
        Number of vertices (and half-edges) of a face.

        Raises:
            NullTraversalError: If called without a face or the face has no edge
            TopologyError: If the face loop does not close
        """
        if face is None or face == NO_HANDLE or self.face_edge[face] == NO_HANDLE:
            raise NullTraversalError("vertex_count called without a face")
        return len(self._face_loop(self.face_edge[face]))

    def face_vertices(self, face: int) -> List[int]:
        """Vertex handles of a face in loop order."""
        if face is None or face == NO_HANDLE or self.face_edge[face] == NO_HANDLE:
            raise NullTraversalError("face_vertices called without a face")
        return [self.next_vertex[h] for h in self._face_loop(self.face_edge[face])]

    @property
    def _loop_limit(self) -> int:
        return len(self.next_vertex) + 1

    def _face_loop(self, start: int) -> List[int]:
        """Half-edges of the face loop through ``start``, beginning with it."""
        loop = [start]
        current = self.face_loop_next(start)
        while current != start:
            if current is None:
                raise TopologyError(f"Face loop through half-edge {start} reached a boundary")
            loop.append(current)
            if len(loop) > self._loop_limit:
                raise TopologyError(f"Face loop through half-edge {start} does not close")
            current = self.face_loop_next(current)
        return loop

    def _vertex_loop(self, start: int) -> Optional[List[int]]:
        """Closed vertex loop through ``start``, or None if it hits a boundary."""
        loop = [start]
        current = self.vertex_loop_next(start)
        while current != start:
            if current is None:
                return None
            loop.append(current)
            if len(loop) > self._loop_limit:
                raise TopologyError(f"Vertex loop through half-edge {start} does not close")
            current = self.vertex_loop_next(current)
        return loop

    def vertex_fan(self, vertex: int) -> List[int]:
        """All half-edges pointing to ``vertex``, also across a boundary."""
        start = self.vertex_edge[vertex]
        if start == NO_HANDLE:
            return []

        fan = [start]
        current = self.vertex_loop_next(start)
        while current is not None and current != start:
            fan.append(current)
            if len(fan) > self._loop_limit:
                raise TopologyError(f"Vertex loop around vertex {vertex} does not close")
            current = self.vertex_loop_next(current)
        if current == start:
            return fan

        # Open fan: rotate backwards from the start through the faces on the other side
        current = start
        while True:
            twin = self.companion_edge[current]
            if self.edge_face[twin] == NO_HANDLE:
                break
            loop = self._face_loop(twin)
            current = loop[-1]
            fan.append(current)
            if len(fan) > self._loop_limit:
                raise TopologyError(f"Vertex fan around vertex {vertex} does not close")
        return fan

    def vertex_neighbors(self, vertex: int) -> Set[int]:
        """Vertices connected to ``vertex`` by an edge."""
        return {self.next_vertex[self.companion_edge[h]] for h in self.vertex_fan(vertex)}

    def is_boundary_vertex(self, vertex: int) -> bool:
        """True if the vertex loop around ``vertex`` does not close."""
        start = self.vertex_edge[vertex]
        if start == NO_HANDLE:
            return True
        return self._vertex_loop(start) is None

    def satisfies_link_condition(self, edge: int) -> bool:
        """
        Check that collapsing ``edge`` keeps the mesh a 2-manifold.

        The common neighbours of both endpoints must be exactly the apex
        vertices of the triangles adjacent to the edge.
        """
        self._require(edge)
        twin = self.companion_edge[edge]
        head = self.next_vertex[edge]
        tail = self.next_vertex[twin]

        common = self.vertex_neighbors(head) & self.vertex_neighbors(tail)

        apexes = set()
        for half in (edge, twin):
            face = self.edge_face[half]
            if face == NO_HANDLE:
                continue
            corners = self.face_vertices(face)
            if len(corners) == 3:
                apexes.update(v for v in corners if v != head and v != tail)

        return common == apexes

    def can_collapse(self, edge: int, check_link_condition: bool = True) -> bool:
        """True if :meth:`collapse` would succeed on ``edge``."""
        if edge is None or edge == NO_HANDLE or not self.edge_alive[edge]:
            return False
        if self._vertex_loop(edge) is None:
            return False
        if check_link_condition and not self.satisfies_link_condition(edge):
            return False
        return True

    # ------------------------------------------------------------------
    # Edge collapse
    # ------------------------------------------------------------------

    def _edge_key(self, edge: int) -> Tuple[int, int]:
        return self.next_vertex[edge], self.next_vertex[self.companion_edge[edge]]

    def collapse(self, edge: Optional[int]) -> CollapseRecord:
        """
        Collapse a half-edge towards the vertex of its companion.

        The vertex ``edge`` points to is removed and every half-edge that
        pointed to it now points to the companion's vertex. The faces on
        both sides are spliced to skip the edge; a face reduced to two
        edges is removed together with those edges, and the half-edges on
        either side of it become companions.

        Args:
            edge: Half-edge to collapse

        Returns:
            CollapseRecord describing the removal

        Raises:
            NullTraversalError: If called without a half-edge
            BoundaryCollapseError: If the vertex loop around ``edge`` does
                not close; the mesh is left unchanged
        """
        with self._guard.write("collapse"):
            self._require(edge)
            ring = self._vertex_loop(edge)
            if ring is None:
                raise BoundaryCollapseError(
                    f"Half-edge {edge} points to boundary vertex {self.next_vertex[edge]}"
                )

            twin = self.companion_edge[edge]
            removed_vertex = self.next_vertex[edge]
            kept_vertex = self.next_vertex[twin]
            spliced = [f for f in (self.edge_face[edge], self.edge_face[twin]) if f != NO_HANDLE]

            # Face loops that may need relinking: the two spliced faces and their neighbours
            loops: Dict[int, List[int]] = {}
            for face in spliced:
                loops[face] = self._face_loop(self.face_edge[face])
            for face in spliced:
                for half in list(loops[face]):
                    neighbour = self.edge_face[self.companion_edge[half]]
                    if neighbour != NO_HANDLE and neighbour not in loops:
                        loops[neighbour] = self._face_loop(self.face_edge[neighbour])

            affected = set(ring)
            for loop in loops.values():
                affected.update(loop)
            affected.update([self.companion_edge[h] for h in affected])

            for half in affected:
                key = self._edge_key(half)
                if self._edge_keys.get(key) == half:
                    del self._edge_keys[key]

            # Mutation starts here
            for half in ring[1:]:
                self.next_vertex[half] = kept_vertex

            dead_edges = {edge, twin}
            dead_faces = set()
            for face in spliced:
                if face in dead_faces:
                    continue
                loop = [h for h in loops[face] if h not in dead_edges]
                loops[face] = loop
                if len(loop) >= 3:
                    continue

                dead_faces.add(face)
                dead_edges.update(loop)
                if len(loop) == 2:
                    first, second = loop
                    outer_first = self.companion_edge[first]
                    outer_second = self.companion_edge[second]
                    if outer_first != second:
                        self.companion_edge[outer_first] = outer_second
                        self.companion_edge[outer_second] = outer_first

            for half in dead_edges:
                self._remove_edge(half)
            for face in dead_faces:
                self._remove_face(face)
                del loops[face]

            # Relink surviving loops: next_edge is the companion of the face successor
            for face, loop in loops.items():
                loop = [h for h in loop if h not in dead_edges]
                for i, half in enumerate(loop):
                    self.next_edge[half] = self.companion_edge[loop[(i + 1) % len(loop)]]
                if self.face_edge[face] in dead_edges:
                    self.face_edge[face] = loop[0]

            self._remove_vertex(removed_vertex)

            survivors = [h for h in affected if self.edge_alive[h]]
            for half in survivors:
                key = self._edge_key(half)
                if key in self._edge_keys and self._edge_keys[key] != half:
                    logger.warning("HalfEdgeMesh: collapse produced duplicate edge %s", key)
                self._edge_keys[key] = half

            touched = {self.next_vertex[h] for h in survivors}
            touched.update(self.next_vertex[h] for h in dead_edges)
            touched.add(kept_vertex)
            touched.discard(removed_vertex)
            for vertex in touched:
                representative = self.vertex_edge[vertex]
                if representative != NO_HANDLE and self.edge_alive[representative]:
                    continue
                self.vertex_edge[vertex] = next(
                    (h for h in survivors if self.next_vertex[h] == vertex), NO_HANDLE
                )

            self.removed_degenerate_faces += len(dead_faces)
            logger.debug("HalfEdgeMesh: collapsed vertex %d into %d, removed %d faces",
                         removed_vertex, kept_vertex, len(dead_faces))

            return CollapseRecord(removed_vertex, kept_vertex, len(dead_faces))

    def _remove_edge(self, edge: int):
        self.edge_alive[edge] = False
        self.next_edge[edge] = NO_HANDLE
        self.edge_face[edge] = NO_HANDLE
        self._num_half_edges -= 1

    def _remove_face(self, face: int):
        self.face_alive[face] = False
        self.face_edge[face] = NO_HANDLE
        self._num_faces -= 1

    def _remove_vertex(self, vertex: int):
        self.vertex_alive[vertex] = False
        self.vertex_edge[vertex] = NO_HANDLE
        self._num_vertices -= 1

    # ------------------------------------------------------------------
    # Export
    # ------------------------------------------------------------------

    def to_polygon_mesh(self) -> IndexedPolygonMesh:
        """
        Convert the surviving topology back into an indexed polygon mesh.

        Vertices keep their handle order; face vertex order follows each
        face loop starting at the face's representative half-edge.

        Raises:
            ConversionError: If a face loop does not close
        """
        self._guard.check_readable("to_polygon_mesh")

        alive_vertices = list(self.vertices())
        remap = {v: i for i, v in enumerate(alive_vertices)}

        faces = []
        for face in self.faces():
            start = self.face_edge[face]
            if start == NO_HANDLE:
                raise ConversionError(f"Face {face} has no half-edge")
            try:
                loop = self._face_loop(start)
            except TopologyError as exc:
                logger.error("HalfEdgeMesh: face %d does not form a closed loop", face)
                raise ConversionError(f"Face {face} does not form a closed loop") from exc

            indices = []
            for half in loop:
                vertex = self.next_vertex[half]
                if vertex not in remap:
                    raise ConversionError(f"Face {face} references removed vertex {vertex}")
                indices.append(remap[vertex])
            faces.append(indices)

        logger.info("HalfEdgeMesh: converted to polygon mesh with %d vertices, %d faces",
                    len(alive_vertices), len(faces))

        return IndexedPolygonMesh(self.positions[alive_vertices],
                                  self.normals[alive_vertices],
                                  self.texcoords[alive_vertices],
                                  faces)

    def __repr__(self) -> str:
        return (f"HalfEdgeMesh(vertices={self.num_vertices}, faces={self.num_faces}, "
                f"half_edges={self.num_half_edges})")
