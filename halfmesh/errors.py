"""
Mesh Errors
===========

Exception types raised by the topology, triangulation and subdivision code.

All of them derive from :class:`MeshError` so callers can decide at one
place whether a failed step (e.g. simplification) should abort the whole
pipeline or simply be skipped.
"""


class MeshError(Exception):
    """Base class for all halfmesh errors."""


class EmptyMeshError(MeshError, ValueError):
    """Raised when a topology is built from a mesh without faces or vertices."""


class DimensionMismatchError(MeshError, ValueError):
    """Raised when attribute arrays do not line up with each other or the grid size."""


class FaceIndexError(MeshError, IndexError):
    """Raised when a face references a vertex id outside the attribute arrays."""


class NullTraversalError(MeshError, ValueError):
    """Raised when a traversal primitive is called without a starting half-edge."""


class TopologyError(MeshError, RuntimeError):
    """Raised when the half-edge structure violates its invariants."""


class ConversionError(TopologyError):
    """Raised when a face loop does not close while exporting a topology."""


class BoundaryCollapseError(MeshError):
    """Raised when an edge collapse is requested next to a mesh boundary."""


class TooSmallGridError(MeshError, ValueError):
    """Raised when a grid is too small for the requested refinement stencil."""


class ConcurrentMutationError(MeshError, RuntimeError):
    """Raised when a mesh is mutated (or exported) while another mutation is running."""
