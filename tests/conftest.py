"""
Shared fixtures for the halfmesh tests.
"""

import matplotlib
matplotlib.use("Agg")

import numpy as np
import pytest
import trimesh

from halfmesh import IndexedPolygonMesh
from halfmesh.utils import from_trimesh


@pytest.fixture
def triangle_mesh():
    """A single open triangle."""
    positions = np.array([[0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [0.0, 1.0, 0.0]])
    return IndexedPolygonMesh(positions, faces=[[0, 1, 2]])


@pytest.fixture
def octahedron_mesh():
    """Closed octahedron with outward-facing triangles."""
    positions = np.array([
        [1.0, 0.0, 0.0], [-1.0, 0.0, 0.0],
        [0.0, 1.0, 0.0], [0.0, -1.0, 0.0],
        [0.0, 0.0, 1.0], [0.0, 0.0, -1.0],
    ])
    texcoords = np.array([[1.0, 0.5], [0.0, 0.5], [0.5, 1.0], [0.5, 0.0], [0.5, 0.5], [0.5, 0.5]])
    faces = [
        [4, 0, 2], [4, 2, 1], [4, 1, 3], [4, 3, 0],
        [5, 2, 0], [5, 1, 2], [5, 3, 1], [5, 0, 3],
    ]
    return IndexedPolygonMesh(positions, normals=positions.copy(), texcoords=texcoords, faces=faces)


@pytest.fixture
def cube_quad_mesh():
    """Closed cube with one quad per side."""
    positions = np.array([
        [0.0, 0.0, 0.0], [1.0, 0.0, 0.0], [1.0, 1.0, 0.0], [0.0, 1.0, 0.0],
        [0.0, 0.0, 1.0], [1.0, 0.0, 1.0], [1.0, 1.0, 1.0], [0.0, 1.0, 1.0],
    ])
    faces = [
        [0, 3, 2, 1], [4, 5, 6, 7],
        [0, 1, 5, 4], [1, 2, 6, 5],
        [2, 3, 7, 6], [3, 0, 4, 7],
    ]
    return IndexedPolygonMesh(positions, faces=faces)


@pytest.fixture
def icosphere_mesh():
    """Closed triangulated sphere with 162 vertices and 480 edges."""
    return from_trimesh(trimesh.creation.icosphere(subdivisions=2, radius=1.0))


@pytest.fixture
def open_grid_mesh():
    """Flat triangulated 8x8 vertex grid with a boundary."""
    n = 8
    xs, ys = np.meshgrid(np.linspace(0.0, 1.0, n), np.linspace(0.0, 1.0, n))
    positions = np.column_stack([xs.ravel(), ys.ravel(), np.zeros(n * n)])
    faces = []
    for row in range(n - 1):
        for col in range(n - 1):
            idx = row * n + col
            faces.append([idx, idx + 1, idx + n])
            faces.append([idx + 1, idx + n + 1, idx + n])
    return IndexedPolygonMesh(positions, faces=faces)


def canonical_faces(faces):
    """Faces rotated to start at their smallest id, sorted."""
    result = []
    for face in faces:
        face = list(face)
        start = face.index(min(face))
        result.append(tuple(face[start:] + face[:start]))
    return sorted(result)
