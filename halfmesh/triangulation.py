"""
Triangulation
=============

Converts polygon lists and regular grids into flat triangle index lists
that can be handed to a renderer.

Polygons with more than three vertices are fan-triangulated from their
first vertex. No planarity or convexity check is made: non-convex or
non-planar polygons triangulate without error but may look wrong.
"""

import logging
from typing import List, NamedTuple, Sequence

logger = logging.getLogger(__name__)


class Triangulation(NamedTuple):
    """Result of triangulating a polygon list."""
    indices: List[int]
    discarded: int


def triangulate_faces(faces: Sequence[Sequence[int]]) -> Triangulation:
    """
    Fan-triangulate a list of polygonal faces.

    Faces with fewer than 3 ids are skipped and counted, faces with exactly
    3 ids are copied verbatim and larger faces emit
    ``(face[0], face[i], face[i + 1])`` for ``i`` in ``1..n-2``.

    Args:
        faces: Sequence of faces, each a sequence of vertex ids

    Returns:
        Triangulation with the flat index list and the number of discarded
        primitives
    """
    indices: List[int] = []
    discarded = 0

    for face in faces:
        n = len(face)
        # Lines and points
        if n < 3:
            discarded += 1
        elif n == 3:
            indices.extend(int(v) for v in face)
        else:
            first = int(face[0])
            for i in range(1, n - 1):
                indices.extend((first, int(face[i]), int(face[i + 1])))

    if discarded > 0:
        logger.info("Indices of %d primitives with less than 3 vertices were discarded",
                    discarded)

    return Triangulation(indices, discarded)


def fan_triangles(face: Sequence[int]) -> List[tuple]:
    """Return the fan triangles of a single face as tuples."""
    result = triangulate_faces([face]).indices
    return [tuple(result[i:i + 3]) for i in range(0, len(result), 3)]


def grid_triangle_indices(width: int, height: int) -> List[int]:
    """
    Triangulate a row-major grid of ``width x height`` vertices.

    Every cell ``(row, col)`` is split along its ``(row, col)`` -
    ``(row + 1, col + 1)`` diagonal into two triangles.
    """
    indices: List[int] = []

    for row in range(height - 1):
        for col in range(width - 1):
            top_left = row * width + col
            bottom_left = (row + 1) * width + col
            indices.extend((top_left, bottom_left, bottom_left + 1))
            indices.extend((top_left, bottom_left + 1, top_left + 1))

    return indices
