"""
Indexed Polygon Mesh
====================

The interchange form between this package and its collaborators: parallel
vertex attribute arrays plus a list of variable-length faces referencing
vertex ids.
"""

import logging
from typing import List, Optional, Sequence

import numpy as np

from .attributes import AttributeRecord, normalize_attributes, record_at
from .buffers import RenderBuffers, make_render_buffers
from .errors import FaceIndexError
from .triangulation import Triangulation, triangulate_faces

logger = logging.getLogger(__name__)


class IndexedPolygonMesh:
    """
    Vertex attribute arrays plus a list of polygonal faces.

    Faces may have any length; faces with fewer than 3 ids denote
    degenerate primitives and are kept until triangulation discards them.
    """

    def __init__(self, positions,
                 normals=None,
                 texcoords=None,
                 faces: Optional[Sequence[Sequence[int]]] = None):
        """
        Args:
            positions: (N, 3) vertex positions
            normals: Optional (N, 3) vertex normals, zero-filled if missing
            texcoords: Optional (N, 2) texture coordinates, zero-filled if missing
            faces: Sequence of faces, each an ordered sequence of vertex ids

        Raises:
            DimensionMismatchError: If the attribute channels differ in length
            FaceIndexError: If a face references a vertex that does not exist
        """
        self.positions, self.normals, self.texcoords = normalize_attributes(
            positions, normals, texcoords
        )
        self.faces: List[List[int]] = [[int(v) for v in face] for face in (faces or [])]

        count = len(self.positions)
        for fi, face in enumerate(self.faces):
            for vi in face:
                if vi < 0 or vi >= count:
                    raise FaceIndexError(
                        f"face {fi} references vertex {vi}, mesh has {count} vertices"
                    )

    @property
    def num_vertices(self) -> int:
        return len(self.positions)

    @property
    def num_faces(self) -> int:
        return len(self.faces)

    def vertex(self, index: int) -> AttributeRecord:
        """Attribute record of vertex ``index``."""
        return record_at(self.positions, self.normals, self.texcoords, index)

    def remove_degenerate_faces(self) -> int:
        """
        Drop faces that repeat a vertex id.

        Returns:
            Number of removed faces
        """
        old_size = len(self.faces)
        self.faces = [face for face in self.faces if len(set(face)) == len(face)]
        removed = old_size - len(self.faces)
        if removed:
            logger.info("Removed %d degenerate faces", removed)
        return removed

    def triangulate(self) -> Triangulation:
        """Fan-triangulate the faces of this mesh."""
        return triangulate_faces(self.faces)

    def to_render_buffers(self) -> RenderBuffers:
        """Triangulate and pack into renderer-ready buffers."""
        triangulation = self.triangulate()
        return make_render_buffers(triangulation.indices, self.positions,
                                   self.normals, self.texcoords,
                                   discarded=triangulation.discarded)

    def copy(self) -> "IndexedPolygonMesh":
        return IndexedPolygonMesh(self.positions, self.normals, self.texcoords,
                                  [list(face) for face in self.faces])

    def __repr__(self) -> str:
        return f"IndexedPolygonMesh(vertices={self.num_vertices}, faces={self.num_faces})"
