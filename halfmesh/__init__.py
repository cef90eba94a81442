"""
Half-Edge Mesh Decimation and Grid Subdivision
==============================================

A Python mesh processing core built around three representations:

- ``IndexedPolygonMesh``: vertex attribute arrays plus polygon index lists
- ``HalfEdgeMesh``: arena-backed half-edge topology supporting edge collapse
- ``GridMesh``: regular vertex grids refined with Loop and Catmull-Clark stencils

All of them export renderer-ready triangle index and attribute buffers.
"""

from .errors import (
    BoundaryCollapseError,
    ConcurrentMutationError,
    ConversionError,
    DimensionMismatchError,
    EmptyMeshError,
    FaceIndexError,
    MeshError,
    NullTraversalError,
    TooSmallGridError,
    TopologyError,
)
from .buffers import RenderBuffers
from .polygon_mesh import IndexedPolygonMesh
from .half_edge import HalfEdgeMesh, NO_HANDLE
from .grid_mesh import GridMesh, SubdivisionScheme
from .decimation import MeshDecimator
from .evaluation import MeshEvaluator
from .visualization import MeshVisualizer
from .logging_config import setup_logging

__version__ = "1.0.0"
__author__ = "Mesh Processing Project"
__all__ = [
    "IndexedPolygonMesh", "HalfEdgeMesh", "GridMesh", "SubdivisionScheme",
    "RenderBuffers", "MeshDecimator", "MeshEvaluator", "MeshVisualizer",
    "setup_logging", "NO_HANDLE",
    "MeshError", "EmptyMeshError", "DimensionMismatchError", "FaceIndexError",
    "NullTraversalError", "TopologyError", "ConversionError",
    "BoundaryCollapseError", "TooSmallGridError", "ConcurrentMutationError",
]
