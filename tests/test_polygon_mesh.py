"""
Tests for the indexed polygon mesh, attributes and render buffers.
"""

import numpy as np
import pytest
from numpy.testing import assert_allclose

from halfmesh import DimensionMismatchError, FaceIndexError, IndexedPolygonMesh
from halfmesh.buffers import make_render_buffers


class TestIndexedPolygonMesh:
    """Test construction and queries."""

    def test_missing_channels_zero_filled(self, triangle_mesh):
        assert triangle_mesh.normals.shape == (3, 3)
        assert triangle_mesh.texcoords.shape == (3, 2)
        assert not triangle_mesh.normals.any()
        assert not triangle_mesh.texcoords.any()

    def test_counts(self, cube_quad_mesh):
        assert cube_quad_mesh.num_vertices == 8
        assert cube_quad_mesh.num_faces == 6

    def test_vertex_record(self, octahedron_mesh):
        record = octahedron_mesh.vertex(2)
        assert_allclose(record.position, [0.0, 1.0, 0.0])
        assert_allclose(record.normal, [0.0, 1.0, 0.0])
        assert_allclose(record.texcoord, [0.5, 1.0])

    def test_face_index_out_of_range(self):
        with pytest.raises(FaceIndexError):
            IndexedPolygonMesh(np.zeros((3, 3)), faces=[[0, 1, 3]])

    def test_attribute_length_mismatch(self):
        with pytest.raises(DimensionMismatchError):
            IndexedPolygonMesh(np.zeros((3, 3)), normals=np.zeros((2, 3)))

    def test_attribute_width_mismatch(self):
        with pytest.raises(DimensionMismatchError):
            IndexedPolygonMesh(np.zeros((3, 3)), texcoords=np.zeros((3, 3)))

    def test_remove_degenerate_faces(self):
        mesh = IndexedPolygonMesh(np.zeros((4, 3)),
                                  faces=[[0, 1, 2], [0, 0, 1], [1, 2, 3, 1]])
        assert mesh.remove_degenerate_faces() == 2
        assert mesh.faces == [[0, 1, 2]]

    def test_copy_is_independent(self, cube_quad_mesh):
        duplicate = cube_quad_mesh.copy()
        duplicate.faces[0][0] = 7
        duplicate.positions[0, 0] = 5.0
        assert cube_quad_mesh.faces[0][0] == 0
        assert cube_quad_mesh.positions[0, 0] == 0.0


class TestRenderBuffers:
    """Test renderer-ready output."""

    def test_quads_triangulated(self, cube_quad_mesh):
        buffers = cube_quad_mesh.to_render_buffers()
        assert buffers.num_triangles == 12
        assert buffers.num_vertices == 8
        assert buffers.indices.dtype == np.uint32
        assert buffers.positions.dtype == np.float32
        assert buffers.triangles().shape == (12, 3)

    def test_discarded_count(self):
        mesh = IndexedPolygonMesh(np.zeros((3, 3)), faces=[[0, 1, 2], [0, 1]])
        buffers = mesh.to_render_buffers()
        assert buffers.num_triangles == 1
        assert buffers.discarded == 1

    def test_attributes_parallel(self, octahedron_mesh):
        buffers = octahedron_mesh.to_render_buffers()
        assert len(buffers.positions) == len(buffers.normals) == len(buffers.texcoords)

    def test_out_of_range_index_rejected(self):
        with pytest.raises(FaceIndexError):
            make_render_buffers([0, 1, 5], np.zeros((3, 3)), np.zeros((3, 3)), np.zeros((3, 2)))

    def test_partial_triangle_rejected(self):
        with pytest.raises(DimensionMismatchError):
            make_render_buffers([0, 1], np.zeros((3, 3)), np.zeros((3, 3)), np.zeros((3, 2)))
