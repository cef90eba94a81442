"""
Mesh Evaluation Module
======================

Provides quantitative evaluation metrics for mesh simplification:
- Hausdorff distance
- Chamfer distance
- Vertex/Face/Edge count statistics
- Boundary preservation metrics
"""

import logging
from typing import Dict, Set, Tuple

import numpy as np
from scipy.spatial import cKDTree

from .polygon_mesh import IndexedPolygonMesh
from .utils import to_trimesh

logger = logging.getLogger(__name__)


class MeshEvaluator:
    """
    Evaluation tools for assessing mesh simplification quality.

    Provides both geometric distance metrics and topological statistics.
    """

    def __init__(self, sample_points: int = 10000):
        """
        Initialize evaluator.

        Args:
            sample_points: Number of surface points to sample for distance
                metrics. 0 compares the vertex positions directly.
        """
        self.sample_points = sample_points

    def compute_all_metrics(self, original: IndexedPolygonMesh,
                            simplified: IndexedPolygonMesh) -> Dict[str, float]:
        """
        Compute all available metrics.

        Args:
            original: Original high-resolution mesh
            simplified: Simplified mesh

        Returns:
            Dictionary of metric names to values
        """
        metrics = {}

        # Count statistics
        original_edges = self._get_edge_counts(original)
        simplified_edges = self._get_edge_counts(simplified)
        metrics['original_faces'] = original.num_faces
        metrics['simplified_faces'] = simplified.num_faces
        metrics['original_vertices'] = original.num_vertices
        metrics['simplified_vertices'] = simplified.num_vertices
        metrics['original_edges'] = len(original_edges)
        metrics['simplified_edges'] = len(simplified_edges)
        metrics['face_reduction_ratio'] = simplified.num_faces / max(original.num_faces, 1)
        metrics['edge_reduction_ratio'] = len(simplified_edges) / max(len(original_edges), 1)

        # Geometric metrics
        hausdorff, hausdorff_forward, hausdorff_backward = self.hausdorff_distance(
            original, simplified
        )
        metrics['hausdorff_distance'] = hausdorff
        metrics['hausdorff_forward'] = hausdorff_forward
        metrics['hausdorff_backward'] = hausdorff_backward
        metrics['chamfer_distance'] = self.chamfer_distance(original, simplified)

        # Boundary metrics
        metrics.update(self.boundary_preservation_metrics(original, simplified))

        return metrics

    def _sample(self, mesh: IndexedPolygonMesh) -> np.ndarray:
        """Points on the surface, or the vertices when sampling is disabled."""
        if self.sample_points <= 0 or mesh.num_faces == 0:
            return mesh.positions
        return np.asarray(to_trimesh(mesh).sample(self.sample_points))

    def _nearest_distances(self, mesh1: IndexedPolygonMesh,
                           mesh2: IndexedPolygonMesh) -> Tuple[np.ndarray, np.ndarray]:
        points1 = self._sample(mesh1)
        points2 = self._sample(mesh2)

        # Build KD-trees
        tree1 = cKDTree(points1)
        tree2 = cKDTree(points2)

        # Forward (mesh1 -> mesh2) and backward (mesh2 -> mesh1) distances
        distances_forward, _ = tree2.query(points1)
        distances_backward, _ = tree1.query(points2)
        return distances_forward, distances_backward

    def hausdorff_distance(self, mesh1: IndexedPolygonMesh,
                           mesh2: IndexedPolygonMesh) -> Tuple[float, float, float]:
        """
        Compute symmetric Hausdorff distance between two meshes.

        Args:
            mesh1: First mesh
            mesh2: Second mesh

        Returns:
            Tuple of (symmetric_hausdorff, forward, backward) distances
        """
        distances_forward, distances_backward = self._nearest_distances(mesh1, mesh2)
        hausdorff_forward = float(np.max(distances_forward))
        hausdorff_backward = float(np.max(distances_backward))
        return max(hausdorff_forward, hausdorff_backward), hausdorff_forward, hausdorff_backward

    def chamfer_distance(self, mesh1: IndexedPolygonMesh,
                         mesh2: IndexedPolygonMesh) -> float:
        """
        Compute symmetric Chamfer distance between two meshes.

        Sum of the mean squared nearest-neighbour distances in both directions.

        Args:
            mesh1: First mesh
            mesh2: Second mesh

        Returns:
            Chamfer distance value
        """
        distances_forward, distances_backward = self._nearest_distances(mesh1, mesh2)
        return float(np.mean(distances_forward ** 2)) + float(np.mean(distances_backward ** 2))

    def boundary_preservation_metrics(self, original: IndexedPolygonMesh,
                                      simplified: IndexedPolygonMesh) -> Dict[str, float]:
        """
        Compute metrics for boundary preservation.

        Args:
            original: Original mesh
            simplified: Simplified mesh

        Returns:
            Dictionary of boundary metrics
        """
        metrics = {}

        orig_boundaries = self._get_boundary_edges(original)
        simp_boundaries = self._get_boundary_edges(simplified)

        metrics['original_boundary_edges'] = len(orig_boundaries)
        metrics['simplified_boundary_edges'] = len(simp_boundaries)

        orig_length = self._compute_boundary_length(original, orig_boundaries)
        simp_length = self._compute_boundary_length(simplified, simp_boundaries)

        metrics['original_boundary_length'] = orig_length
        metrics['simplified_boundary_length'] = simp_length

        if orig_length > 0:
            metrics['boundary_length_change'] = abs(simp_length - orig_length) / orig_length
        else:
            metrics['boundary_length_change'] = 0.0

        metrics['original_is_closed'] = int(not orig_boundaries and original.num_faces > 0)
        metrics['simplified_is_closed'] = int(not simp_boundaries and simplified.num_faces > 0)

        return metrics

    @staticmethod
    def _get_edge_counts(mesh: IndexedPolygonMesh) -> Dict[Tuple[int, int], int]:
        """Number of faces using each undirected edge."""
        edge_count = {}
        for face in mesh.faces:
            if len(face) < 2:
                continue
            for i in range(len(face)):
                edge = tuple(sorted((face[i], face[(i + 1) % len(face)])))
                edge_count[edge] = edge_count.get(edge, 0) + 1
        return edge_count

    def _get_boundary_edges(self, mesh: IndexedPolygonMesh) -> Set[Tuple[int, int]]:
        """Find boundary edges of a mesh."""
        return {edge for edge, count in self._get_edge_counts(mesh).items() if count == 1}

    def _compute_boundary_length(self, mesh: IndexedPolygonMesh,
                                 boundary_edges: Set[Tuple[int, int]]) -> float:
        """Compute total length of boundary edges."""
        total_length = 0.0
        for a, b in boundary_edges:
            total_length += float(np.linalg.norm(mesh.positions[b] - mesh.positions[a]))
        return total_length

    def generate_report(self, metrics: Dict[str, float],
                        method_name: str = "Shortest-edge collapse") -> str:
        """
        Generate a human-readable evaluation report.

        Args:
            metrics: Dictionary of metric values
            method_name: Name of the simplification method

        Returns:
            Formatted report string
        """
        lines = [
            "=" * 60,
            f"Mesh Simplification Report - {method_name}",
            "=" * 60,
            "",
            "MESH STATISTICS",
            "-" * 40,
            f"  Original:    {metrics.get('original_faces', 'N/A'):>8} faces, "
            f"{metrics.get('original_edges', 'N/A'):>8} edges, "
            f"{metrics.get('original_vertices', 'N/A'):>8} vertices",
            f"  Simplified:  {metrics.get('simplified_faces', 'N/A'):>8} faces, "
            f"{metrics.get('simplified_edges', 'N/A'):>8} edges, "
            f"{metrics.get('simplified_vertices', 'N/A'):>8} vertices",
            f"  Reduction:   {metrics.get('edge_reduction_ratio', 0)*100:>7.2f}% of original edges",
            "",
            "GEOMETRIC ACCURACY",
            "-" * 40,
            f"  Hausdorff Distance:    {metrics.get('hausdorff_distance', np.nan):>12.6f}",
            f"    Forward:             {metrics.get('hausdorff_forward', np.nan):>12.6f}",
            f"    Backward:            {metrics.get('hausdorff_backward', np.nan):>12.6f}",
            f"  Chamfer Distance:      {metrics.get('chamfer_distance', np.nan):>12.6f}",
            "",
            "BOUNDARY PRESERVATION",
            "-" * 40,
            f"  Original Boundaries:   {metrics.get('original_boundary_edges', 0):>8} edges",
            f"  Simplified Boundaries: {metrics.get('simplified_boundary_edges', 0):>8} edges",
            f"  Length Change:         {metrics.get('boundary_length_change', 0)*100:>11.4f}%",
            "",
            "TOPOLOGY",
            "-" * 40,
            f"  Original Closed:       {'Yes' if metrics.get('original_is_closed') else 'No'}",
            f"  Simplified Closed:     {'Yes' if metrics.get('simplified_is_closed') else 'No'}",
            "",
            "=" * 60,
        ]

        if 'runtime' in metrics:
            lines.insert(-1, f"  Runtime:               {metrics['runtime']:>11.4f} seconds")

        return "\n".join(lines)

    def print_report(self, metrics: Dict[str, float],
                     method_name: str = "Shortest-edge collapse"):
        """Print the evaluation report to console."""
        print(self.generate_report(metrics, method_name))
