"""
Mesh Visualization Module
=========================

Provides visualization utilities for decimation comparisons, subdivision
sequences and decimation statistics. Everything is drawn from the
triangulated render buffers, so polygon meshes and grid meshes share the
same path.
"""

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np
import matplotlib.pyplot as plt
from matplotlib import cm
from mpl_toolkits.mplot3d.art3d import Poly3DCollection

from .buffers import RenderBuffers
from .polygon_mesh import IndexedPolygonMesh

logger = logging.getLogger(__name__)


class MeshVisualizer:
    """
    Visualization tools for mesh simplification and refinement results.

    Provides:
    - Side-by-side mesh comparison
    - Wireframe and shaded views
    - Refinement sequences
    - Decimation statistics
    """

    def __init__(self, figsize: Tuple[int, int] = (14, 7)):
        """
        Initialize visualizer.

        Args:
            figsize: Default figure size for plots
        """
        self.figsize = figsize
        self.colormap = cm.viridis

    def plot_mesh_comparison(self, original, simplified,
                             title: str = "Mesh Comparison",
                             show_wireframe: bool = True,
                             save_path: Optional[str] = None) -> plt.Figure:
        """
        Create side-by-side comparison of two meshes.

        Args:
            original: Original mesh (anything with ``to_render_buffers``)
            simplified: Simplified or refined mesh
            title: Plot title
            show_wireframe: Whether to show wireframe overlay
            save_path: Optional path to save the figure

        Returns:
            Matplotlib figure object
        """
        fig, axes = plt.subplots(1, 2, figsize=self.figsize,
                                 subplot_kw={'projection': '3d'})

        for ax, mesh, name in ((axes[0], original, "Original"),
                               (axes[1], simplified, "Result")):
            buffers = mesh.to_render_buffers()
            self._plot_buffers(ax, buffers,
                               f"{name}\n({buffers.num_triangles} triangles, "
                               f"{buffers.num_vertices} vertices)",
                               show_wireframe)

        fig.suptitle(title, fontsize=14, fontweight='bold')
        plt.tight_layout()
        self._save(fig, save_path, "comparison")
        return fig

    def plot_refinement_sequence(self, meshes: Sequence,
                                 labels: Optional[List[str]] = None,
                                 title: str = "Refinement Sequence",
                                 save_path: Optional[str] = None) -> plt.Figure:
        """
        Plot several meshes side by side, e.g. successive subdivision levels.

        Args:
            meshes: Meshes to plot (anything with ``to_render_buffers``)
            labels: Optional labels for each mesh
            title: Plot title
            save_path: Optional path to save the figure

        Returns:
            Matplotlib figure object
        """
        n = len(meshes)
        cols = max(1, min(4, n))
        rows = max(1, (n + cols - 1) // cols)

        fig = plt.figure(figsize=(5 * cols, 5 * rows))

        for i, mesh in enumerate(meshes):
            ax = fig.add_subplot(rows, cols, i + 1, projection='3d')
            buffers = mesh.to_render_buffers()

            if labels and i < len(labels):
                label = labels[i]
            else:
                label = f"{buffers.num_vertices} vertices, {buffers.num_triangles} triangles"

            self._plot_buffers(ax, buffers, label, show_wireframe=True)

        fig.suptitle(title, fontsize=14, fontweight='bold')
        plt.tight_layout()
        self._save(fig, save_path, "refinement sequence")
        return fig

    def plot_statistics(self, original: IndexedPolygonMesh,
                        simplified_meshes: List[IndexedPolygonMesh],
                        ratios: List[float],
                        hausdorff_distances: Optional[List[float]] = None,
                        save_path: Optional[str] = None) -> plt.Figure:
        """
        Plot decimation statistics.

        Args:
            original: Original mesh
            simplified_meshes: List of simplified meshes
            ratios: Target reduction ratios
            hausdorff_distances: Optional Hausdorff distances
            save_path: Optional path to save the figure

        Returns:
            Matplotlib figure object
        """
        n_plots = 2 + (1 if hausdorff_distances else 0)
        fig, axes = plt.subplots(1, n_plots, figsize=(5 * n_plots, 4))

        ticks = range(len(ratios))
        tick_labels = [f'{r*100:.0f}%' for r in ratios]

        # Face count
        face_counts = [m.num_faces for m in simplified_meshes]
        axes[0].bar(ticks, face_counts, color='steelblue')
        axes[0].axhline(y=original.num_faces, color='red', linestyle='--',
                        label=f'Original ({original.num_faces})')
        axes[0].set_xticks(list(ticks))
        axes[0].set_xticklabels(tick_labels)
        axes[0].set_xlabel('Target Ratio')
        axes[0].set_ylabel('Face Count')
        axes[0].set_title('Face Count vs Target')
        axes[0].legend()

        # Vertex count
        vertex_counts = [m.num_vertices for m in simplified_meshes]
        axes[1].bar(ticks, vertex_counts, color='forestgreen')
        axes[1].axhline(y=original.num_vertices, color='red', linestyle='--',
                        label=f'Original ({original.num_vertices})')
        axes[1].set_xticks(list(ticks))
        axes[1].set_xticklabels(tick_labels)
        axes[1].set_xlabel('Target Ratio')
        axes[1].set_ylabel('Vertex Count')
        axes[1].set_title('Vertex Count vs Target')
        axes[1].legend()

        # Hausdorff distance
        if hausdorff_distances:
            axes[2].plot(ratios, hausdorff_distances, 'o-', color='crimson')
            axes[2].set_xlabel('Target Ratio')
            axes[2].set_ylabel('Hausdorff Distance')
            axes[2].set_title('Geometric Error vs Reduction')

        plt.suptitle('Decimation Statistics', fontsize=14, fontweight='bold')
        plt.tight_layout()
        self._save(fig, save_path, "statistics")
        return fig

    def _save(self, fig: plt.Figure, save_path: Optional[str], what: str):
        if save_path:
            fig.savefig(save_path, dpi=150, bbox_inches='tight')
            logger.info("Saved %s to %s", what, save_path)

    def _plot_buffers(self, ax, buffers: RenderBuffers,
                      title: str, show_wireframe: bool):
        """Plot one set of render buffers on a 3D axis."""
        vertices = buffers.positions.astype(np.float64)

        # Normalize to unit cube centered at origin
        if len(vertices):
            center = vertices.mean(axis=0)
            scale = np.max(np.abs(vertices - center))
            vertices = (vertices - center) / (scale if scale > 0 else 1.0)

        triangles = vertices[buffers.triangles().astype(np.int64)]
        face_colors = self._compute_face_colors(triangles)

        poly = Poly3DCollection(triangles, facecolors=face_colors,
                                edgecolors='black' if show_wireframe else 'none',
                                linewidths=0.1 if show_wireframe else 0,
                                alpha=0.9)
        ax.add_collection3d(poly)

        ax.set_xlim(-1, 1)
        ax.set_ylim(-1, 1)
        ax.set_zlim(-1, 1)
        ax.set_box_aspect([1, 1, 1])

        ax.set_title(title, fontsize=10)
        ax.set_xlabel('X')
        ax.set_ylabel('Y')
        ax.set_zlabel('Z')

    def _compute_face_colors(self, triangles: np.ndarray) -> np.ndarray:
        """Compute face colors based on normals for shading."""
        light_dir = np.array([1.0, 1.0, 2.0])
        light_dir = light_dir / np.linalg.norm(light_dir)

        normals = np.cross(triangles[:, 1] - triangles[:, 0],
                           triangles[:, 2] - triangles[:, 0]).reshape(-1, 3)
        lengths = np.linalg.norm(normals, axis=1, keepdims=True)
        normals = np.divide(normals, lengths, out=np.zeros_like(normals), where=lengths > 1e-10)

        # Diffuse lighting
        intensity = np.clip(normals @ light_dir, 0.2, 1.0)

        # Grayscale with blue tint
        colors = np.zeros((len(triangles), 4))
        colors[:, 0] = 0.3 + 0.4 * intensity
        colors[:, 1] = 0.4 + 0.4 * intensity
        colors[:, 2] = 0.6 + 0.3 * intensity
        colors[:, 3] = 1.0

        return colors
