"""
Grid Mesh Subdivision
=====================

Refinement of meshes whose vertices form a logical ``width x height``
grid. Adjacency is implicit in row/column arithmetic, so no topology is
stored. Three stencils are available:

- Loop-style refinement with averaged boundaries
- Catmull-Clark with clamped boundary indexing (boundary pulled inward)
- Catmull-Clark with sharp boundaries (boundary kept straight)

Each step maps a ``W x H`` grid to ``(2W-1) x (2H-1)``: original
vertices land at even (row, col) positions, inserted vertices at positions
with at least one odd coordinate. Position, normal and texture-coordinate
channels are refined together as one stacked array, and the old arrays
are only replaced once the new ones are complete.
"""

import logging
from enum import Enum
from typing import Tuple

import numpy as np

from .attributes import (STACKED_WIDTH, normalize_attributes, split_attributes,
                         stack_attributes)
from .buffers import RenderBuffers, make_render_buffers
from .errors import DimensionMismatchError, TooSmallGridError
from .locking import WriterGuard
from .polygon_mesh import IndexedPolygonMesh
from .triangulation import grid_triangle_indices

logger = logging.getLogger(__name__)


class SubdivisionScheme(Enum):
    """Available grid refinement stencils."""
    LOOP = "loop"
    CATMULL_CLARK = "catmull_clark"
    CATMULL_CLARK_SHARP = "catmull_clark_sharp"


class GridMesh:
    """
    Regular grid of vertices stored row-major (``index = row * width + col``).
    """

    def __init__(self, width: int, height: int, positions,
                 normals=None, texcoords=None):
        """
        Args:
            width: Vertex count along a row
            height: Vertex count along a column
            positions: (width * height, 3) vertex positions
            normals: Optional (width * height, 3) normals, zero-filled if missing
            texcoords: Optional (width * height, 2) texture coordinates, zero-filled if missing

        Raises:
            DimensionMismatchError: If positions are missing, do not match the
                grid size, or the other channels differ in length
        """
        positions, normals, texcoords = normalize_attributes(positions, normals, texcoords)
        if len(positions) == 0 or len(positions) != width * height:
            logger.error("GridMesh: construction missing positions or wrong dimensions")
            raise DimensionMismatchError(
                f"GridMesh: {len(positions)} positions for a {width}x{height} grid"
            )

        self.width = width
        self.height = height
        self.positions = positions
        self.normals = normals
        self.texcoords = texcoords
        self._guard = WriterGuard("GridMesh")

    @property
    def num_vertices(self) -> int:
        return self.width * self.height

    @property
    def shape(self) -> Tuple[int, int]:
        """(height, width) of the grid."""
        return self.height, self.width

    def index(self, row: int, col: int) -> int:
        return row * self.width + col

    # ------------------------------------------------------------------
    # Output
    # ------------------------------------------------------------------

    def triangle_indices(self):
        """Flat triangle index list, two triangles per grid cell."""
        return grid_triangle_indices(self.width, self.height)

    def to_render_buffers(self) -> RenderBuffers:
        self._guard.check_readable("to_render_buffers")
        return make_render_buffers(self.triangle_indices(), self.positions,
                                   self.normals, self.texcoords)

    def to_polygon_mesh(self) -> IndexedPolygonMesh:
        """Quad-faced polygon mesh with one face per grid cell."""
        self._guard.check_readable("to_polygon_mesh")
        faces = []
        for row in range(self.height - 1):
            for col in range(self.width - 1):
                top_left = self.index(row, col)
                bottom_left = self.index(row + 1, col)
                faces.append([top_left, bottom_left, bottom_left + 1, top_left + 1])
        return IndexedPolygonMesh(self.positions, self.normals, self.texcoords, faces)

    def copy(self) -> "GridMesh":
        return GridMesh(self.width, self.height, self.positions,
                        self.normals, self.texcoords)

    # ------------------------------------------------------------------
    # Refinement
    # ------------------------------------------------------------------

    def _stacked(self) -> np.ndarray:
        """Attributes as a (height, width, 8) array."""
        stacked = stack_attributes(self.positions, self.normals, self.texcoords)
        return stacked.reshape(self.height, self.width, STACKED_WIDTH)

    def _replace(self, refined: np.ndarray):
        height, width = refined.shape[:2]
        self.positions, self.normals, self.texcoords = split_attributes(
            refined.reshape(height * width, STACKED_WIDTH)
        )
        self.width = width
        self.height = height

    def _check_size(self, minimum: int, scheme: str):
        if self.width < minimum or self.height < minimum:
            logger.error("GridMesh: %s subdivision does not work on meshes smaller than %dx%d",
                         scheme, minimum, minimum)
            raise TooSmallGridError(
                f"{scheme} subdivision needs at least {minimum}x{minimum} vertices, "
                f"grid is {self.width}x{self.height}"
            )

    def loop_subdivision(self):
        """
        Refine with Loop-style stencils.

        Raises:
            TooSmallGridError: If the grid is smaller than 2x2
        """
        with self._guard.write("loop_subdivision"):
            self._check_size(2, "Loop")
            self._replace(loop_refine(self._stacked()))
            logger.debug("GridMesh: Loop subdivision -> %dx%d", self.width, self.height)

    def catmull_clark_subdivision(self):
        """
        Refine with Catmull-Clark stencils, clamping boundary neighbours.

        Raises:
            TooSmallGridError: If the grid is smaller than 3x3
        """
        with self._guard.write("catmull_clark_subdivision"):
            self._check_size(3, "Catmull-Clark")
            self._replace(catmull_clark_refine(self._stacked()))
            logger.debug("GridMesh: Catmull-Clark subdivision -> %dx%d", self.width, self.height)

    def catmull_clark_subdivision_sharp(self):
        """
        Refine with Catmull-Clark stencils keeping the boundary sharp.

        Raises:
            TooSmallGridError: If the grid is smaller than 2x2
        """
        with self._guard.write("catmull_clark_subdivision_sharp"):
            self._check_size(2, "Catmull-Clark with sharp bounds")
            self._replace(catmull_clark_sharp_refine(self._stacked()))
            logger.debug("GridMesh: sharp Catmull-Clark subdivision -> %dx%d",
                         self.width, self.height)

    def subdivide(self, scheme: SubdivisionScheme = SubdivisionScheme.LOOP,
                  iterations: int = 1):
        """
        Apply a refinement scheme repeatedly.

        Args:
            scheme: Stencil to apply
            iterations: Number of refinement steps
        """
        scheme = SubdivisionScheme(scheme)
        operations = {
            SubdivisionScheme.LOOP: self.loop_subdivision,
            SubdivisionScheme.CATMULL_CLARK: self.catmull_clark_subdivision,
            SubdivisionScheme.CATMULL_CLARK_SHARP: self.catmull_clark_subdivision_sharp,
        }
        for _ in range(iterations):
            operations[scheme]()
        logger.info("GridMesh: %s x%d -> %dx%d (%d vertices)",
                    scheme.value, iterations, self.width, self.height, self.num_vertices)

    def __repr__(self) -> str:
        return f"GridMesh(width={self.width}, height={self.height})"


# ----------------------------------------------------------------------
# Stencils on (H, W, C) arrays
# ----------------------------------------------------------------------

def _interleave(even: np.ndarray, horizontal: np.ndarray,
                vertical: np.ndarray, centers: np.ndarray) -> np.ndarray:
    """Assemble the refined (2H-1, 2W-1, C) grid from its four point classes."""
    height, width, channels = even.shape
    refined = np.empty((2 * height - 1, 2 * width - 1, channels), dtype=even.dtype)
    refined[0::2, 0::2] = even
    refined[0::2, 1::2] = horizontal
    refined[1::2, 0::2] = vertical
    refined[1::2, 1::2] = centers
    return refined


def _face_points(grid: np.ndarray) -> np.ndarray:
    """Average of the four corners of every cell, shape (H-1, W-1, C)."""
    return (grid[:-1, :-1] + grid[:-1, 1:] + grid[1:, :-1] + grid[1:, 1:]) / 4.0


def _boundary_vertex_points(grid: np.ndarray, horizontal: np.ndarray,
                            vertical: np.ndarray) -> np.ndarray:
    """
    Even points for the boundary: corners copied, other boundary vertices
    ``(6 v + both neighbouring boundary edge points) / 8``. Interior entries
    are left as copies of the old vertices.
    """
    even = grid.copy()
    for row in {0, grid.shape[0] - 1}:
        even[row, 1:-1] = (6.0 * grid[row, 1:-1]
                           + horizontal[row, :-1] + horizontal[row, 1:]) / 8.0
    for col in {0, grid.shape[1] - 1}:
        even[1:-1, col] = (6.0 * grid[1:-1, col]
                           + vertical[:-1, col] + vertical[1:, col]) / 8.0
    return even


def loop_refine(grid: np.ndarray) -> np.ndarray:
    """
    One Loop-style refinement step.

    Edge points use ``(3a + 3b + c + d) / 8`` with the flanking vertices
    ``c, d``; on the outer boundary rows/columns they are plain midpoints.
    Cell centers use the same weights along the ``(r, c)-(r+1, c+1)``
    diagonal. Interior old vertices become ``5 v`` plus six neighbouring
    new points at half weight, all over 8.
    """
    # Horizontal edge points (H, W-1)
    horizontal = (grid[:, :-1] + grid[:, 1:]) / 2.0
    horizontal[1:-1] = (3.0 * grid[1:-1, :-1] + 3.0 * grid[1:-1, 1:]
                        + grid[:-2, :-1] + grid[2:, :-1]) / 8.0

    # Vertical edge points (H-1, W)
    vertical = (grid[:-1, :] + grid[1:, :]) / 2.0
    vertical[:, 1:-1] = (3.0 * grid[:-1, 1:-1] + 3.0 * grid[1:, 1:-1]
                         + grid[:-1, :-2] + grid[1:, 2:]) / 8.0

    # Diagonal points (H-1, W-1)
    centers = (3.0 * grid[:-1, :-1] + 3.0 * grid[1:, 1:]
               + grid[:-1, 1:] + grid[1:, :-1]) / 8.0

    even = _boundary_vertex_points(grid, horizontal, vertical)
    even[1:-1, 1:-1] = (5.0 * grid[1:-1, 1:-1]
                        + 0.5 * (vertical[:-1, 1:-1] + vertical[1:, 1:-1]
                                 + horizontal[1:-1, :-1] + horizontal[1:-1, 1:]
                                 + centers[:-1, :-1] + centers[1:, 1:])) / 8.0

    return _interleave(even, horizontal, vertical, centers)


def catmull_clark_refine(grid: np.ndarray) -> np.ndarray:
    """
    One Catmull-Clark refinement step with clamped boundary indexing.

    Neighbours that would fall outside the grid are replaced by the nearest
    interior row/column, which pulls the boundary slightly inward.
    """
    height, width = grid.shape[:2]
    rows = np.arange(height)
    cols = np.arange(width)
    # Cell row above/below and cell column left/right of each vertex, clamped
    up = np.maximum(rows - 1, 0)
    down = np.minimum(rows, height - 2)
    left = np.maximum(cols - 1, 0)
    right = np.minimum(cols, width - 2)

    faces = _face_points(grid)
    horizontal = (grid[:, :-1] + grid[:, 1:] + faces[up] + faces[down]) / 4.0
    vertical = (grid[:-1, :] + grid[1:, :] + faces[:, left] + faces[:, right]) / 4.0

    even = (8.0 * grid
            + horizontal[:, left] + horizontal[:, right]
            + vertical[up] + vertical[down]
            + faces[up][:, left] + faces[up][:, right]
            + faces[down][:, left] + faces[down][:, right]) / 16.0

    return _interleave(even, horizontal, vertical, faces)


def catmull_clark_sharp_refine(grid: np.ndarray) -> np.ndarray:
    """
    One Catmull-Clark refinement step with sharp boundaries.

    Boundary edge points are plain midpoints and boundary vertices only
    blend along the boundary, so the outline stays crisp.
    """
    faces = _face_points(grid)

    horizontal = (grid[:, :-1] + grid[:, 1:]) / 2.0
    horizontal[1:-1] = (grid[1:-1, :-1] + grid[1:-1, 1:] + faces[:-1] + faces[1:]) / 4.0

    vertical = (grid[:-1, :] + grid[1:, :]) / 2.0
    vertical[:, 1:-1] = (grid[:-1, 1:-1] + grid[1:, 1:-1]
                         + faces[:, :-1] + faces[:, 1:]) / 4.0

    even = _boundary_vertex_points(grid, horizontal, vertical)
    even[1:-1, 1:-1] = (8.0 * grid[1:-1, 1:-1]
                        + horizontal[1:-1, :-1] + horizontal[1:-1, 1:]
                        + vertical[:-1, 1:-1] + vertical[1:, 1:-1]
                        + faces[:-1, :-1] + faces[:-1, 1:]
                        + faces[1:, :-1] + faces[1:, 1:]) / 16.0

    return _interleave(even, horizontal, vertical, faces)
