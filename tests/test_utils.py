"""
Tests for mesh utilities and logging setup.
"""

import logging

import numpy as np
import pytest
import trimesh
from numpy.testing import assert_allclose

from halfmesh import GridMesh, HalfEdgeMesh, IndexedPolygonMesh, setup_logging
from halfmesh.utils import (create_mesh_with_boundary, create_sample_grid, create_sample_mesh,
                            from_trimesh, get_mesh_info, load_mesh, save_mesh, to_trimesh)


class TestSampleMeshes:
    """Test sample mesh creation."""

    @pytest.mark.parametrize("mesh_type", ["sphere", "torus", "cube", "tetrahedron", "pyramid"])
    def test_samples_are_closed(self, mesh_type):
        mesh = create_sample_mesh(mesh_type)
        info = get_mesh_info(mesh)
        assert info['boundary_edges'] == 0
        assert info['is_closed']
        topology = HalfEdgeMesh.build(mesh)
        assert not any(topology.is_boundary_vertex(v) for v in topology.vertices())

    def test_cube_has_quads(self):
        mesh = create_sample_mesh("cube")
        assert mesh.num_faces == 6
        assert get_mesh_info(mesh)['max_face_size'] == 4
        assert get_mesh_info(mesh)['euler_number'] == 2

    def test_pyramid(self):
        mesh = create_sample_mesh("pyramid")
        assert mesh.num_vertices == 5
        assert sorted(len(face) for face in mesh.faces) == [3, 3, 3, 3, 4]

    def test_unknown_type(self):
        with pytest.raises(ValueError):
            create_sample_mesh("teapot")

    def test_mesh_with_boundary(self):
        mesh = create_mesh_with_boundary(rows=5, cols=6)
        info = get_mesh_info(mesh)
        assert mesh.num_vertices == 30
        assert mesh.num_faces == 2 * 4 * 5
        assert info['boundary_edges'] == 2 * (4 + 5)

    def test_mesh_with_boundary_noise_seeded(self):
        a = create_mesh_with_boundary(rows=4, cols=4, noise=0.01, seed=3)
        b = create_mesh_with_boundary(rows=4, cols=4, noise=0.01, seed=3)
        assert_allclose(a.positions, b.positions)


class TestSampleGrids:
    """Test sample grid creation."""

    def test_wave_grid(self):
        grid = create_sample_grid("wave", width=5)
        assert isinstance(grid, GridMesh)
        assert (grid.width, grid.height) == (5, 5)
        assert_allclose(np.linalg.norm(grid.normals, axis=1), 1.0)
        assert_allclose(grid.texcoords[-1], [1.0, 1.0])

    def test_profile_grid(self):
        grid = create_sample_grid("profile")
        assert grid.shape == (5, 5)
        assert_allclose(grid.positions[7], [-1.0, 0.0, 2.0])
        assert_allclose(grid.positions[:5, 2], 1.0)
        assert not grid.normals.any()

    def test_plane_grid(self):
        grid = create_sample_grid("plane", width=4, height=3)
        assert grid.num_vertices == 12
        assert not grid.positions[:, 2].any()
        assert_allclose(grid.normals, np.tile([0.0, 0.0, 1.0], (12, 1)))


class TestTrimeshConversion:
    """Test conversion to and from trimesh."""

    def test_round_trip(self):
        source = trimesh.creation.icosphere(subdivisions=1)
        mesh = from_trimesh(source)
        assert mesh.num_vertices == len(source.vertices)
        assert mesh.num_faces == len(source.faces)
        back = to_trimesh(mesh)
        assert_allclose(back.vertices, source.vertices)
        assert np.array_equal(back.faces, source.faces)

    def test_quads_triangulated(self, cube_quad_mesh):
        assert len(to_trimesh(cube_quad_mesh).faces) == 12

    def test_save_and_load(self, tmp_path, octahedron_mesh):
        path = tmp_path / "octahedron.ply"
        save_mesh(octahedron_mesh, str(path))
        loaded = load_mesh(str(path))
        assert isinstance(loaded, IndexedPolygonMesh)
        assert loaded.num_vertices == 6
        assert loaded.num_faces == 8


class TestLoggingSetup:
    """Test package logging configuration."""

    def test_handlers_not_duplicated(self, tmp_path):
        log_file = tmp_path / "halfmesh.log"
        setup_logging(logging.DEBUG)
        setup_logging(logging.INFO, log_file=str(log_file))

        logger = logging.getLogger("halfmesh")
        assert logger.level == logging.INFO
        assert len(logger.handlers) == 2

        logging.getLogger("halfmesh.test").info("hello")
        for handler in logger.handlers:
            handler.flush()
        assert "hello" in log_file.read_text(encoding="utf-8")

        for handler in list(logger.handlers):
            handler.close()
            logger.removeHandler(handler)
