"""
Vertex Attributes
=================

Shared attribute model used by every mesh representation in the package.

Each vertex carries a position (vec3), a normal (vec3) and a texture
coordinate (vec2). The three channels are stored as parallel numpy arrays
that always have the same number of rows; a missing channel is zero-filled
so indices into one array are valid for all of them.
"""

from typing import NamedTuple, Tuple

import numpy as np

from .errors import DimensionMismatchError

POSITION_WIDTH = 3
NORMAL_WIDTH = 3
TEXCOORD_WIDTH = 2
# Width of the stacked (position | normal | texcoord) layout
STACKED_WIDTH = POSITION_WIDTH + NORMAL_WIDTH + TEXCOORD_WIDTH


class AttributeRecord(NamedTuple):
    """Attributes of a single vertex."""
    position: np.ndarray
    normal: np.ndarray
    texcoord: np.ndarray


def _as_channel(values, width: int, name: str) -> np.ndarray:
    """Convert array-like data to a (N, width) float64 array."""
    array = np.asarray(values, dtype=np.float64)
    if array.size == 0:
        return np.zeros((0, width), dtype=np.float64)
    if array.ndim != 2 or array.shape[1] != width:
        raise DimensionMismatchError(
            f"{name} must have shape (N, {width}), got {array.shape}"
        )
    return array.copy()


def normalize_attributes(positions,
                         normals=None,
                         texcoords=None) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """
    Validate and align the three attribute channels.

    Args:
        positions: (N, 3) array-like of vertex positions
        normals: Optional (N, 3) array-like; empty or None is zero-filled
        texcoords: Optional (N, 2) array-like; empty or None is zero-filled

    Returns:
        Tuple of (positions, normals, texcoords) float64 arrays of equal length

    Raises:
        DimensionMismatchError: If a supplied channel has a different length
            or the wrong number of components
    """
    positions = _as_channel(positions, POSITION_WIDTH, "positions")
    count = len(positions)

    if normals is None or len(normals) == 0:
        normals = np.zeros((count, NORMAL_WIDTH), dtype=np.float64)
    else:
        normals = _as_channel(normals, NORMAL_WIDTH, "normals")
        if len(normals) != count:
            raise DimensionMismatchError(
                f"{len(normals)} normals supplied for {count} positions"
            )

    if texcoords is None or len(texcoords) == 0:
        texcoords = np.zeros((count, TEXCOORD_WIDTH), dtype=np.float64)
    else:
        texcoords = _as_channel(texcoords, TEXCOORD_WIDTH, "texcoords")
        if len(texcoords) != count:
            raise DimensionMismatchError(
                f"{len(texcoords)} texture coordinates supplied for {count} positions"
            )

    return positions, normals, texcoords


def stack_attributes(positions: np.ndarray, normals: np.ndarray,
                     texcoords: np.ndarray) -> np.ndarray:
    """Pack the three channels side by side into one (N, 8) array."""
    return np.hstack([positions, normals, texcoords])


def split_attributes(stacked: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Inverse of :func:`stack_attributes`."""
    normal_end = POSITION_WIDTH + NORMAL_WIDTH
    return (stacked[:, :POSITION_WIDTH].copy(),
            stacked[:, POSITION_WIDTH:normal_end].copy(),
            stacked[:, normal_end:].copy())


def record_at(positions: np.ndarray, normals: np.ndarray,
              texcoords: np.ndarray, index: int,
              copy: bool = True) -> AttributeRecord:
    """Build the attribute record of one vertex."""
    if copy:
        return AttributeRecord(positions[index].copy(), normals[index].copy(),
                               texcoords[index].copy())
    return AttributeRecord(positions[index], normals[index], texcoords[index])
