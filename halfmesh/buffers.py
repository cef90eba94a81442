"""
Render Buffers
==============

Flat index and attribute arrays in the layout a renderer consumes:
an unsigned 32-bit triangle index array plus parallel float32 position,
normal and texture-coordinate arrays.
"""

from dataclasses import dataclass
from typing import Sequence

import numpy as np

from .errors import DimensionMismatchError, FaceIndexError


@dataclass
class RenderBuffers:
    """Triangle index list plus parallel vertex attribute arrays."""
    indices: np.ndarray
    positions: np.ndarray
    normals: np.ndarray
    texcoords: np.ndarray
    discarded: int = 0

    @property
    def num_vertices(self) -> int:
        return len(self.positions)

    @property
    def num_triangles(self) -> int:
        return len(self.indices) // 3

    def triangles(self) -> np.ndarray:
        """Indices reshaped to (T, 3)."""
        return self.indices.reshape(-1, 3)

    def validate(self):
        """
        Check the renderer contract.

        Raises:
            DimensionMismatchError: If the attribute arrays differ in length
                or the index count is not a multiple of 3
            FaceIndexError: If an index is outside the attribute arrays
        """
        count = len(self.positions)
        if len(self.normals) != count or len(self.texcoords) != count:
            raise DimensionMismatchError(
                f"attribute arrays differ in length: {count} positions, "
                f"{len(self.normals)} normals, {len(self.texcoords)} texcoords"
            )
        if len(self.indices) % 3 != 0:
            raise DimensionMismatchError(
                f"index count {len(self.indices)} is not a multiple of 3"
            )
        if len(self.indices) and int(self.indices.max()) >= count:
            raise FaceIndexError(
                f"index {int(self.indices.max())} out of range for {count} vertices"
            )


def make_render_buffers(indices: Sequence[int], positions: np.ndarray,
                        normals: np.ndarray, texcoords: np.ndarray,
                        discarded: int = 0) -> RenderBuffers:
    """Pack triangle indices and attributes into renderer dtypes."""
    buffers = RenderBuffers(
        indices=np.asarray(indices, dtype=np.uint32).reshape(-1),
        positions=np.ascontiguousarray(positions, dtype=np.float32),
        normals=np.ascontiguousarray(normals, dtype=np.float32),
        texcoords=np.ascontiguousarray(texcoords, dtype=np.float32),
        discarded=discarded,
    )
    buffers.validate()
    return buffers
