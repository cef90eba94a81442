"""
Utility Functions
=================

Mesh loading, conversion to and from trimesh, and sample mesh creation.
"""

import logging
from typing import Optional

import numpy as np
import trimesh

from .errors import MeshError
from .grid_mesh import GridMesh
from .polygon_mesh import IndexedPolygonMesh

logger = logging.getLogger(__name__)


def from_trimesh(mesh: trimesh.Trimesh) -> IndexedPolygonMesh:
    """
    Convert a trimesh object into an indexed polygon mesh.

    Vertex normals are carried over; texture coordinates are taken from the
    mesh visuals when they are present.

    Args:
        mesh: Triangle mesh

    Returns:
        Polygon mesh with triangular faces
    """
    texcoords = None
    uv = getattr(mesh.visual, 'uv', None)
    if uv is not None and len(uv) == len(mesh.vertices):
        texcoords = np.asarray(uv, dtype=np.float64)

    normals = np.asarray(mesh.vertex_normals, dtype=np.float64) if len(mesh.faces) else None
    return IndexedPolygonMesh(
        positions=np.asarray(mesh.vertices, dtype=np.float64),
        normals=normals,
        texcoords=texcoords,
        faces=np.asarray(mesh.faces).tolist()
    )


def to_trimesh(mesh: IndexedPolygonMesh) -> trimesh.Trimesh:
    """
    Convert a polygon mesh into a trimesh object (fan-triangulating faces).

    Args:
        mesh: Polygon mesh

    Returns:
        Triangle mesh sharing the vertex positions
    """
    triangles = np.asarray(mesh.triangulate().indices, dtype=np.int64).reshape(-1, 3)
    return trimesh.Trimesh(vertices=mesh.positions.copy(), faces=triangles, process=False)


def load_mesh(path: str) -> IndexedPolygonMesh:
    """
    Load a mesh from file.

    Supports: OBJ, PLY, STL, OFF, and other formats supported by trimesh.

    Args:
        path: Path to mesh file

    Returns:
        Loaded polygon mesh
    """
    mesh = trimesh.load(path, force='mesh')

    if isinstance(mesh, trimesh.Scene):
        # Convert scene to single mesh
        meshes = [geom for geom in mesh.geometry.values() if isinstance(geom, trimesh.Trimesh)]
        if not meshes:
            raise MeshError(f"No valid meshes found in {path}")
        mesh = trimesh.util.concatenate(meshes)

    logger.info("Loaded %s: %d vertices, %d faces", path, len(mesh.vertices), len(mesh.faces))
    result = from_trimesh(mesh)
    result.remove_degenerate_faces()
    return result


def save_mesh(mesh: IndexedPolygonMesh, path: str):
    """
    Save a mesh to file (triangulated).

    Args:
        mesh: Mesh to save
        path: Output path
    """
    to_trimesh(mesh).export(path)
    logger.info("Saved mesh to: %s", path)


def create_sample_mesh(mesh_type: str = "sphere") -> IndexedPolygonMesh:
    """
    Create a sample mesh for testing.

    Args:
        mesh_type: Type of mesh to create:
            - "sphere": Icosphere
            - "torus": Torus
            - "cube": Cube with one quad per side
            - "tetrahedron": Regular tetrahedron
            - "pyramid": Square pyramid with a quad base

    Returns:
        Generated polygon mesh
    """
    if mesh_type == "sphere":
        mesh = from_trimesh(trimesh.creation.icosphere(subdivisions=3, radius=1.0))
    elif mesh_type == "torus":
        mesh = from_trimesh(trimesh.creation.torus(major_radius=1.0, minor_radius=0.3,
                                                   major_sections=32, minor_sections=16))
    elif mesh_type == "cube":
        positions = np.array([
            [-0.5, -0.5, -0.5], [0.5, -0.5, -0.5], [0.5, 0.5, -0.5], [-0.5, 0.5, -0.5],
            [-0.5, -0.5, 0.5], [0.5, -0.5, 0.5], [0.5, 0.5, 0.5], [-0.5, 0.5, 0.5],
        ])
        faces = [
            [0, 3, 2, 1], [4, 5, 6, 7],
            [0, 1, 5, 4], [1, 2, 6, 5],
            [2, 3, 7, 6], [3, 0, 4, 7],
        ]
        mesh = IndexedPolygonMesh(positions, normals=_radial_normals(positions), faces=faces)
    elif mesh_type == "tetrahedron":
        positions = np.array([
            [1.0, 1.0, 1.0], [-1.0, -1.0, 1.0], [-1.0, 1.0, -1.0], [1.0, -1.0, -1.0],
        ])
        faces = [[0, 1, 2], [0, 3, 1], [0, 2, 3], [1, 3, 2]]
        mesh = IndexedPolygonMesh(positions, normals=_radial_normals(positions), faces=faces)
    elif mesh_type == "pyramid":
        positions = np.array([
            [-1.0, -1.0, 0.0], [1.0, -1.0, 0.0], [1.0, 1.0, 0.0], [-1.0, 1.0, 0.0],
            [0.0, 0.0, 1.0],
        ])
        texcoords = np.array([[0.0, 0.0], [1.0, 0.0], [1.0, 1.0], [0.0, 1.0], [0.5, 0.5]])
        faces = [[0, 3, 2, 1], [0, 1, 4], [1, 2, 4], [2, 3, 4], [3, 0, 4]]
        mesh = IndexedPolygonMesh(positions, normals=_radial_normals(positions),
                                  texcoords=texcoords, faces=faces)
    else:
        raise ValueError(f"Unknown sample mesh type: {mesh_type}")

    logger.info("Created %s mesh: %d vertices, %d faces",
                mesh_type, mesh.num_vertices, mesh.num_faces)
    return mesh


def _radial_normals(positions: np.ndarray) -> np.ndarray:
    """Unit vectors from the centroid through each vertex."""
    directions = positions - positions.mean(axis=0)
    lengths = np.linalg.norm(directions, axis=1, keepdims=True)
    return directions / np.maximum(lengths, 1e-10)


def create_sample_grid(grid_type: str = "wave", width: int = 5,
                       height: Optional[int] = None) -> GridMesh:
    """
    Create a sample grid mesh for subdivision.

    Args:
        grid_type: "profile" (fixed 5x5 row-wise height profile),
            "wave" (sinusoidal height field) or "plane" (flat)
        width: Vertices per row
        height: Vertices per column (defaults to width)

    Returns:
        Grid mesh spanning [-1, 1] x [-1, 1] with texture coordinates in [0, 1],
        or [-2, 2] x [-2, 2] for the profile grid
    """
    if grid_type == "profile":
        return _profile_grid()

    height = width if height is None else height
    u = np.linspace(0.0, 1.0, width)
    v = np.linspace(0.0, 1.0, height)
    U, V = np.meshgrid(u, v)

    X = 2.0 * U - 1.0
    Y = 2.0 * V - 1.0
    if grid_type == "wave":
        Z = 0.3 * np.sin(np.pi * X) * np.cos(np.pi * Y)
    elif grid_type == "plane":
        Z = np.zeros_like(X)
    else:
        raise ValueError(f"Unknown sample grid type: {grid_type}")

    positions = np.column_stack([X.ravel(), Y.ravel(), Z.ravel()])

    # Normals of the height field from its gradient
    if width > 1 and height > 1:
        dz_dy, dz_dx = np.gradient(Z, Y[:, 0], X[0])
    else:
        dz_dy = dz_dx = np.zeros_like(Z)
    normals = np.column_stack([-dz_dx.ravel(), -dz_dy.ravel(), np.ones(Z.size)])
    normals /= np.linalg.norm(normals, axis=1, keepdims=True)

    texcoords = np.column_stack([U.ravel(), V.ravel()])
    return GridMesh(width, height, positions, normals, texcoords)


def _profile_grid() -> GridMesh:
    xys = np.array([-2.0, -1.0, 0.0, 1.0, 2.0])
    zs = np.array([1.0, 2.0, 5.0, 1.0, 3.0])

    rows, cols = np.meshgrid(np.arange(5), np.arange(5), indexing='ij')
    positions = np.column_stack([xys[rows.ravel()], xys[cols.ravel()], zs[rows.ravel()]])
    return GridMesh(5, 5, positions)


def create_mesh_with_boundary(rows: int = 20, cols: int = 20,
                              noise: float = 0.0, seed: Optional[int] = None) -> IndexedPolygonMesh:
    """
    Create a mesh with boundaries (open surface) for testing boundary preservation.

    Creates a wavy triangulated surface grid.

    Args:
        rows: Number of rows in the grid
        cols: Number of columns in the grid
        noise: Standard deviation of random jitter added to the positions
        seed: Seed for the jitter

    Returns:
        Open surface mesh
    """
    x = np.linspace(-1, 1, cols)
    y = np.linspace(-1, 1, rows)
    X, Y = np.meshgrid(x, y)

    # Create wavy surface
    Z = 0.2 * np.sin(3 * X) * np.cos(3 * Y)

    vertices = np.column_stack([X.flatten(), Y.flatten(), Z.flatten()])

    # Create faces (two triangles per grid cell)
    faces = []
    for i in range(rows - 1):
        for j in range(cols - 1):
            idx = i * cols + j
            faces.append([idx, idx + 1, idx + cols])
            faces.append([idx + 1, idx + cols + 1, idx + cols])

    if noise > 0:
        rng = np.random.default_rng(seed)
        vertices = vertices + rng.normal(scale=noise, size=vertices.shape)

    return IndexedPolygonMesh(vertices, faces=faces)


def get_mesh_info(mesh: IndexedPolygonMesh) -> dict:
    """
    Get comprehensive information about a mesh.

    Args:
        mesh: Input mesh

    Returns:
        Dictionary of mesh properties
    """
    edge_count = {}
    for face in mesh.faces:
        for i in range(len(face)):
            edge = tuple(sorted((face[i], face[(i + 1) % len(face)])))
            edge_count[edge] = edge_count.get(edge, 0) + 1

    boundary_edges = sum(1 for count in edge_count.values() if count == 1)
    face_sizes = [len(face) for face in mesh.faces]

    info = {
        'vertices': mesh.num_vertices,
        'faces': mesh.num_faces,
        'edges': len(edge_count),
        'boundary_edges': boundary_edges,
        'is_closed': boundary_edges == 0 and mesh.num_faces > 0,
        'euler_number': mesh.num_vertices - len(edge_count) + mesh.num_faces,
        'max_face_size': max(face_sizes) if face_sizes else 0,
    }

    if mesh.num_vertices:
        info['bounds'] = [mesh.positions.min(axis=0).tolist(), mesh.positions.max(axis=0).tolist()]
    else:
        info['bounds'] = None

    return info
