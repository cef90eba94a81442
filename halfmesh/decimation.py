"""
Mesh Decimator
==============

Mesh simplification by iterative shortest-edge collapse on a half-edge
topology, driven by a priority queue.
"""

import heapq
import logging
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Set

from .half_edge import HalfEdgeMesh
from .polygon_mesh import IndexedPolygonMesh

logger = logging.getLogger(__name__)


@dataclass(order=True)
class EdgeCollapseCandidate:
    """Priority queue entry for edge collapse candidates."""
    length: float
    edge: int
    version: tuple = field(compare=False)  # For lazy deletion


class MeshDecimator:
    """
    Mesh simplification by shortest-edge-first edge collapse.

    Implements iterative edge collapse with:
    - Priority queue ordered by edge length
    - Lazy updates through per-vertex versions
    - Exact boundary preservation (boundary vertices are never removed)
    - Link condition validation to keep the mesh manifold
    """

    def __init__(self, preserve_boundaries: bool = True,
                 check_link_condition: bool = True,
                 max_edge_length: Optional[float] = None):
        """
        Initialize the mesh decimator.

        Args:
            preserve_boundaries: Exclude boundary vertices from the queue up front.
                Collapses next to a boundary are refused by the topology either
                way; this only avoids queueing them.
            check_link_condition: Skip collapses that would make the mesh non-manifold
            max_edge_length: Stop once the shortest candidate is longer (None = no limit)
        """
        self.preserve_boundaries = preserve_boundaries
        self.check_link_condition = check_link_condition
        self.max_edge_length = max_edge_length

        # State variables (initialized per decimation)
        self.topology: Optional[HalfEdgeMesh] = None
        self._vertex_versions: Optional[Dict[int, int]] = None
        self._priority_queue: Optional[List[EdgeCollapseCandidate]] = None
        self._boundary_vertices: Optional[Set[int]] = None
        self._collapse_history: Optional[List[dict]] = None
        self.removed_face_count = 0

    def decimate(self, mesh: IndexedPolygonMesh,
                 target_edges: Optional[int] = None,
                 target_ratio: Optional[float] = None,
                 progress_callback: Optional[Callable[[float], None]] = None) -> IndexedPolygonMesh:
        """
        Decimate the mesh to a target edge count or ratio.

        Args:
            mesh: Input polygon mesh
            target_edges: Target number of undirected edges (mutually exclusive with target_ratio)
            target_ratio: Target fraction of the original edges to keep (0.0 to 1.0)
            progress_callback: Optional callback for progress updates

        Returns:
            Simplified polygon mesh
        """
        if (target_edges is None) == (target_ratio is None):
            raise ValueError("Must specify exactly one of target_edges or target_ratio")
        if target_ratio is not None and not 0.0 <= target_ratio <= 1.0:
            raise ValueError(f"target_ratio must lie in [0, 1], got {target_ratio}")

        # Initialize data structures
        self._initialize(mesh)

        initial_edges = self.topology.num_edges
        if target_ratio is not None:
            target_edges = int(initial_edges * target_ratio)
        edges_to_remove = max(1, initial_edges - target_edges)

        logger.info("Starting decimation: %d -> %d edges", initial_edges, target_edges)
        logger.info("  Boundary vertices: %d", len(self._boundary_vertices))

        collapses_done = 0
        last_progress = 0.0

        while self.topology.num_edges > target_edges:
            # Get shortest edge to collapse
            candidate = self._pop_best_candidate()

            if candidate is None:
                logger.info("No more valid edges to collapse")
                break

            if self.max_edge_length is not None and candidate.length > self.max_edge_length:
                logger.info("Reached max edge length: %.6f > %s",
                            candidate.length, self.max_edge_length)
                break

            self._collapse_edge(candidate)
            collapses_done += 1

            if progress_callback is not None:
                removed = initial_edges - self.topology.num_edges
                progress = removed / edges_to_remove
                if progress - last_progress >= 0.05:  # Update every 5%
                    progress_callback(min(1.0, progress))
                    last_progress = progress

        logger.info("Decimation complete: %d edges, %d collapses, %d degenerate faces removed",
                    self.topology.num_edges, collapses_done, self.removed_face_count)

        return self.topology.to_polygon_mesh()

    def _initialize(self, mesh: IndexedPolygonMesh):
        """Initialize all data structures for decimation."""
        self.topology = HalfEdgeMesh.build(mesh)
        self.removed_face_count = 0

        # Vertex versioning for lazy updates
        self._vertex_versions = {v: 0 for v in self.topology.vertices()}

        # Boundary vertices never become interior through collapses
        self._boundary_vertices = {
            v for v in self.topology.vertices() if self.topology.is_boundary_vertex(v)
        }

        self._priority_queue = []
        self._collapse_history = []

        self._initialize_edge_queue()

    def _initialize_edge_queue(self):
        """Initialize the priority queue with all half-edges."""
        for edge in self.topology.half_edges():
            self._add_edge_candidate(edge)

    def _version(self, edge: int) -> tuple:
        tail, head = self.topology.edge_vertices(edge)
        return tail, head, self._vertex_versions[tail], self._vertex_versions[head]

    def _add_edge_candidate(self, edge: int):
        """Add or refresh the collapse candidate of a half-edge."""
        topology = self.topology
        if not topology.edge_alive[edge]:
            return

        head = topology.next_vertex[edge]
        if self.preserve_boundaries and head in self._boundary_vertices:
            return

        candidate = EdgeCollapseCandidate(
            length=topology.edge_length(edge),
            edge=edge,
            version=self._version(edge)
        )
        heapq.heappush(self._priority_queue, candidate)

    def _pop_best_candidate(self) -> Optional[EdgeCollapseCandidate]:
        """Get the shortest valid edge collapse candidate."""
        while self._priority_queue:
            candidate = heapq.heappop(self._priority_queue)
            edge = candidate.edge

            # Skip if the half-edge was removed
            if not self.topology.edge_alive[edge]:
                continue

            # Check if candidate is still valid (version matches)
            if candidate.version != self._version(edge):
                continue

            # Validate the collapse
            if not self._is_collapse_valid(edge):
                continue

            return candidate

        return None

    def _is_collapse_valid(self, edge: int) -> bool:
        """
        Check if an edge collapse is valid.

        The vertex being removed must have a closed vertex loop, and with
        link checking enabled the common neighbours of both endpoints must
        be exactly the apexes of the adjacent triangles.
        """
        return self.topology.can_collapse(edge, check_link_condition=self.check_link_condition)

    def _collapse_edge(self, candidate: EdgeCollapseCandidate):
        """
        Perform an edge collapse.

        The head vertex is removed and merged into the tail vertex, whose
        incident edges are then re-queued with their new lengths.
        """
        record = self.topology.collapse(candidate.edge)
        kept = record.kept_vertex

        # Increment version for the kept vertex
        self._vertex_versions[kept] += 1
        self.removed_face_count += record.removed_faces

        # Re-add affected edges to priority queue
        for half in self.topology.vertex_fan(kept):
            self._add_edge_candidate(half)
            self._add_edge_candidate(self.topology.companion_edge[half])

        # Record collapse history
        self._collapse_history.append({
            'edge': candidate.edge,
            'length': candidate.length,
            'removed_vertex': record.removed_vertex,
            'kept_vertex': kept,
            'removed_faces': record.removed_faces,
        })

    def get_collapse_history(self) -> List[dict]:
        """Get the history of edge collapses performed."""
        return self._collapse_history.copy() if self._collapse_history else []
