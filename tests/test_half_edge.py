"""
Tests for the half-edge topology: construction, traversal, collapse, export.
"""

import copy

import numpy as np
import pytest
from numpy.testing import assert_allclose

from halfmesh import (BoundaryCollapseError, ConcurrentMutationError, ConversionError,
                      EmptyMeshError, HalfEdgeMesh, IndexedPolygonMesh, NO_HANDLE,
                      NullTraversalError)

from conftest import canonical_faces


def _arena_state(topology):
    return copy.deepcopy({
        'vertex_edge': topology.vertex_edge,
        'vertex_alive': topology.vertex_alive,
        'face_edge': topology.face_edge,
        'face_alive': topology.face_alive,
        'next_edge': topology.next_edge,
        'companion_edge': topology.companion_edge,
        'edge_face': topology.edge_face,
        'next_vertex': topology.next_vertex,
        'edge_alive': topology.edge_alive,
        'counts': (topology.num_vertices, topology.num_faces, topology.num_half_edges),
    })


class TestConstruction:
    """Test building the topology from a polygon mesh."""

    def test_counts_closed(self, octahedron_mesh):
        topology = HalfEdgeMesh.build(octahedron_mesh)
        assert topology.num_vertices == 6
        assert topology.num_faces == 8
        assert topology.num_half_edges == 24
        assert topology.num_edges == 12

    def test_counts_open(self, triangle_mesh):
        topology = HalfEdgeMesh.build(triangle_mesh)
        assert topology.num_faces == 1
        # Boundary half-edges exist without a face
        assert topology.num_half_edges == 6
        faceless = [h for h in topology.half_edges() if topology.edge_face[h] == NO_HANDLE]
        assert len(faceless) == 3

    def test_empty_mesh_rejected(self):
        with pytest.raises(EmptyMeshError):
            HalfEdgeMesh.build(IndexedPolygonMesh(np.zeros((3, 3))))

    def test_degenerate_faces_skipped(self):
        positions = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
        mesh = IndexedPolygonMesh(positions, faces=[[0, 1, 2], [0, 1], [0, 0, 1]])
        topology = HalfEdgeMesh.build(mesh)
        assert topology.num_faces == 1
        assert topology.skipped_faces == 2

    def test_companion_involution(self, octahedron_mesh):
        topology = HalfEdgeMesh.build(octahedron_mesh)
        for h in topology.half_edges():
            twin = topology.companion_edge[h]
            assert twin != h
            assert topology.companion_edge[twin] == h

    def test_every_half_edge_owned_when_closed(self, cube_quad_mesh):
        topology = HalfEdgeMesh.build(cube_quad_mesh)
        assert all(topology.edge_face[h] != NO_HANDLE for h in topology.half_edges())

    def test_find_half_edge(self, octahedron_mesh):
        topology = HalfEdgeMesh.build(octahedron_mesh)
        edge = topology.find_half_edge(0, 4)
        assert edge is not None
        assert topology.edge_vertices(edge) == (0, 4)
        assert topology.next_vertex[edge] == 4
        assert topology.find_half_edge(0, 1) is None
        assert_allclose(topology.edge_length(edge), np.sqrt(2.0))

    def test_vertex_record(self, octahedron_mesh):
        topology = HalfEdgeMesh.build(octahedron_mesh)
        assert_allclose(topology.vertex(4).position, [0.0, 0.0, 1.0])


class TestTraversal:
    """Test face and vertex loops."""

    def test_face_loop_visits_face_vertices(self, cube_quad_mesh):
        topology = HalfEdgeMesh.build(cube_quad_mesh)
        for face in topology.faces():
            assert topology.vertex_count(face) == 4
            start = topology.face_edge[face]
            current = start
            for _ in range(4):
                assert topology.edge_face[current] == face
                current = topology.face_loop_next(current)
            assert current == start

    def test_vertex_loop_closed(self, octahedron_mesh):
        topology = HalfEdgeMesh.build(octahedron_mesh)
        for vertex in topology.vertices():
            start = topology.vertex_edge[vertex]
            current = start
            for _ in range(4):
                assert topology.next_vertex[current] == vertex
                current = topology.vertex_loop_next(current)
            assert current == start
            assert not topology.is_boundary_vertex(vertex)

    def test_prev_inverts_next(self, octahedron_mesh):
        topology = HalfEdgeMesh.build(octahedron_mesh)
        for h in topology.half_edges():
            assert topology.face_loop_prev(topology.face_loop_next(h)) == h
            assert topology.vertex_loop_prev(topology.vertex_loop_next(h)) == h

    def test_boundary_traversal_returns_none(self, triangle_mesh):
        topology = HalfEdgeMesh.build(triangle_mesh)
        for vertex in topology.vertices():
            assert topology.is_boundary_vertex(vertex)
        faceless = [h for h in topology.half_edges() if topology.edge_face[h] == NO_HANDLE]
        for h in faceless:
            assert topology.vertex_loop_next(h) is None
            assert topology.face_loop_next(h) is None

    def test_null_traversal(self, triangle_mesh):
        topology = HalfEdgeMesh.build(triangle_mesh)
        with pytest.raises(NullTraversalError):
            topology.face_loop_next(None)
        with pytest.raises(NullTraversalError):
            topology.vertex_loop_next(NO_HANDLE)
        with pytest.raises(NullTraversalError):
            topology.vertex_count(None)

    def test_vertex_neighbors(self, octahedron_mesh):
        topology = HalfEdgeMesh.build(octahedron_mesh)
        assert topology.vertex_neighbors(4) == {0, 1, 2, 3}

    def test_boundary_vertex_neighbors(self, open_grid_mesh):
        topology = HalfEdgeMesh.build(open_grid_mesh)
        # Corner of the grid connected right, down and along the diagonal
        assert topology.vertex_neighbors(0) == {1, 8}
        assert topology.vertex_neighbors(7) == {6, 14, 15}
        assert len(topology.vertex_neighbors(9)) == 6

    def test_vertex_fan_points_to_vertex(self, open_grid_mesh):
        topology = HalfEdgeMesh.build(open_grid_mesh)
        for vertex in (0, 3, 9, 63):
            fan = topology.vertex_fan(vertex)
            assert all(topology.next_vertex[h] == vertex for h in fan)
            assert len(fan) == len(set(fan)) == len(topology.vertex_neighbors(vertex))


class TestCollapse:
    """Test edge collapse."""

    def test_collapse_closed_mesh(self, octahedron_mesh):
        topology = HalfEdgeMesh.build(octahedron_mesh)
        edge = topology.find_half_edge(0, 4)
        assert topology.can_collapse(edge)

        record = topology.collapse(edge)

        assert record.removed_vertex == 4
        assert record.kept_vertex == 0
        assert record.removed_faces == 2
        assert topology.removed_degenerate_faces == 2
        assert topology.num_vertices == 5
        assert topology.num_faces == 6
        assert topology.num_half_edges == 18
        assert not topology.vertex_alive[4]

    def test_collapse_keeps_structure_consistent(self, octahedron_mesh):
        topology = HalfEdgeMesh.build(octahedron_mesh)
        topology.collapse(topology.find_half_edge(0, 4))

        for h in topology.half_edges():
            twin = topology.companion_edge[h]
            assert topology.edge_alive[twin]
            assert topology.companion_edge[twin] == h
            assert topology.vertex_alive[topology.next_vertex[h]]
            assert topology.vertex_loop_prev(topology.vertex_loop_next(h)) == h
        for face in topology.faces():
            assert topology.vertex_count(face) == 3
        for vertex in topology.vertices():
            assert topology.next_vertex[topology.vertex_edge[vertex]] == vertex
        assert topology.vertex_neighbors(0) == {1, 2, 3, 5}

    def test_collapse_quad_mesh_keeps_faces(self, cube_quad_mesh):
        topology = HalfEdgeMesh.build(cube_quad_mesh)
        record = topology.collapse(topology.find_half_edge(0, 1))
        assert record.removed_faces == 0
        assert topology.num_faces == 6
        counts = sorted(topology.vertex_count(face) for face in topology.faces())
        assert counts == [3, 3, 4, 4, 4, 4]

    def test_boundary_collapse_leaves_mesh_unchanged(self, triangle_mesh):
        topology = HalfEdgeMesh.build(triangle_mesh)
        before = _arena_state(topology)
        for edge in list(topology.half_edges()):
            assert not topology.can_collapse(edge)
            with pytest.raises(BoundaryCollapseError):
                topology.collapse(edge)
        assert _arena_state(topology) == before

    def test_collapse_without_edge(self, octahedron_mesh):
        topology = HalfEdgeMesh.build(octahedron_mesh)
        with pytest.raises(NullTraversalError):
            topology.collapse(None)

    def test_link_condition(self, octahedron_mesh):
        topology = HalfEdgeMesh.build(octahedron_mesh)
        assert topology.satisfies_link_condition(topology.find_half_edge(0, 4))

    def test_concurrent_mutation_rejected(self, octahedron_mesh):
        topology = HalfEdgeMesh.build(octahedron_mesh)
        edge = topology.find_half_edge(0, 4)
        with topology._guard.write("test"):
            with pytest.raises(ConcurrentMutationError):
                topology.collapse(edge)
            with pytest.raises(ConcurrentMutationError):
                topology.to_polygon_mesh()

    def test_guard_released_after_failure(self, triangle_mesh):
        topology = HalfEdgeMesh.build(triangle_mesh)
        edge = next(topology.half_edges())
        with pytest.raises(BoundaryCollapseError):
            topology.collapse(edge)
        assert not topology._guard.busy


class TestExport:
    """Test conversion back to a polygon mesh."""

    def test_round_trip_triangles(self, octahedron_mesh):
        result = HalfEdgeMesh.build(octahedron_mesh).to_polygon_mesh()
        assert canonical_faces(result.faces) == canonical_faces(octahedron_mesh.faces)
        assert_allclose(result.positions, octahedron_mesh.positions)
        assert_allclose(result.normals, octahedron_mesh.normals)
        assert_allclose(result.texcoords, octahedron_mesh.texcoords)

    def test_round_trip_quads(self, cube_quad_mesh):
        result = HalfEdgeMesh.build(cube_quad_mesh).to_polygon_mesh()
        assert canonical_faces(result.faces) == canonical_faces(cube_quad_mesh.faces)

    def test_round_trip_open(self, open_grid_mesh):
        result = HalfEdgeMesh.build(open_grid_mesh).to_polygon_mesh()
        assert canonical_faces(result.faces) == canonical_faces(open_grid_mesh.faces)

    def test_export_after_collapse_reindexes(self, octahedron_mesh):
        topology = HalfEdgeMesh.build(octahedron_mesh)
        topology.collapse(topology.find_half_edge(0, 4))
        result = topology.to_polygon_mesh()

        assert result.num_vertices == 5
        assert result.num_faces == 6
        assert all(0 <= v < 5 for face in result.faces for v in face)
        # Vertex 5 (bottom apex) moves down to index 4
        assert_allclose(result.positions[4], [0.0, 0.0, -1.0])

    def test_broken_loop_raises_conversion_error(self, octahedron_mesh):
        topology = HalfEdgeMesh.build(octahedron_mesh)
        face = next(topology.faces())
        topology.next_edge[topology.face_edge[face]] = NO_HANDLE
        with pytest.raises(ConversionError):
            topology.to_polygon_mesh()
