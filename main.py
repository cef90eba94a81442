"""
Half-Edge Mesh Processing - Main Demo
=====================================

Demonstrates the mesh processing core.

This script:
1. Loads a mesh file or builds sample meshes
2. Decimates it at several reduction levels by shortest-edge collapse
3. Refines sample grids with the Loop and Catmull-Clark stencils
4. Visualizes before/after comparisons
5. Computes quantitative metrics
"""

import argparse
import logging
import time
from pathlib import Path
from typing import Optional

import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

from halfmesh import (IndexedPolygonMesh, MeshDecimator, MeshEvaluator,
                      MeshVisualizer, SubdivisionScheme, setup_logging)
from halfmesh.utils import (create_mesh_with_boundary, create_sample_grid,
                            create_sample_mesh, get_mesh_info, load_mesh, save_mesh)


def run_single_decimation(mesh: IndexedPolygonMesh,
                          target_ratio: float,
                          preserve_boundaries: bool = True) -> tuple:
    """
    Run a single decimation and return simplified mesh with runtime.
    """
    decimator = MeshDecimator(preserve_boundaries=preserve_boundaries)

    start_time = time.time()
    simplified = decimator.decimate(mesh, target_ratio=target_ratio)
    runtime = time.time() - start_time

    return simplified, runtime


def print_mesh_info(mesh: IndexedPolygonMesh, name: str = "Mesh"):
    """Print mesh information to console."""
    info = get_mesh_info(mesh)

    print(f"\n{name} Information:")
    print("-" * 40)
    print(f"  Vertices:        {info['vertices']}")
    print(f"  Faces:           {info['faces']}")
    print(f"  Edges:           {info['edges']}")
    print(f"  Boundary Edges:  {info['boundary_edges']}")
    print(f"  Closed:          {info['is_closed']}")
    print(f"  Euler Number:    {info['euler_number']}")


def demo_basic_decimation(mesh: IndexedPolygonMesh,
                          output_dir: Path,
                          mesh_name: str = "mesh",
                          ratios=(0.5, 0.25, 0.1),
                          make_plots: bool = True):
    """
    Demonstrate basic mesh decimation with visualization.
    """
    print("\n" + "=" * 60)
    print("BASIC DECIMATION DEMO")
    print("=" * 60)

    visualizer = MeshVisualizer()
    evaluator = MeshEvaluator()

    simplified_meshes = []
    metrics_list = []

    for ratio in ratios:
        print(f"\n--- Decimating to {ratio*100:.0f}% of edges ---")

        simplified, runtime = run_single_decimation(mesh, target_ratio=ratio)
        simplified_meshes.append(simplified)

        metrics = evaluator.compute_all_metrics(mesh, simplified)
        metrics['runtime'] = runtime
        metrics_list.append(metrics)

        print(f"  Edges: {metrics['original_edges']} -> {metrics['simplified_edges']} "
              f"({metrics['edge_reduction_ratio']*100:.1f}%)")
        print(f"  Faces: {mesh.num_faces} -> {simplified.num_faces}")
        print(f"  Hausdorff: {metrics['hausdorff_distance']:.6f}")
        print(f"  Runtime: {runtime:.3f}s")

    if make_plots:
        print("\nGenerating visualizations...")

        fig = visualizer.plot_mesh_comparison(
            mesh, simplified_meshes[-1],
            title=f"{mesh_name} - Original vs {ratios[-1]*100:.0f}% Simplified",
            save_path=str(output_dir / f"{mesh_name}_comparison.png")
        )
        plt.close(fig)

        fig = visualizer.plot_refinement_sequence(
            [mesh] + simplified_meshes,
            ["Original (100%)"] + [f"{r*100:.0f}%" for r in ratios],
            title=f"{mesh_name} - Multi-Resolution",
            save_path=str(output_dir / f"{mesh_name}_multi_resolution.png")
        )
        plt.close(fig)

        fig = visualizer.plot_statistics(
            mesh, simplified_meshes, list(ratios),
            hausdorff_distances=[m['hausdorff_distance'] for m in metrics_list],
            save_path=str(output_dir / f"{mesh_name}_statistics.png")
        )
        plt.close(fig)

    print()
    evaluator.print_report(metrics_list[-1], f"Shortest-edge collapse ({ratios[-1]*100:.0f}% target)")

    for ratio, simplified in zip(ratios, simplified_meshes):
        output_path = output_dir / f"{mesh_name}_simplified_{int(ratio*100)}pct.ply"
        save_mesh(simplified, str(output_path))
        print(f"Saved: {output_path}")

    return simplified_meshes, metrics_list


def demo_boundary_preservation(output_dir: Path, make_plots: bool = True):
    """
    Demonstrate that decimating an open surface keeps its outline.
    """
    print("\n" + "=" * 60)
    print("BOUNDARY PRESERVATION")
    print("=" * 60)

    mesh = create_mesh_with_boundary(rows=20, cols=20, noise=0.01, seed=0)
    evaluator = MeshEvaluator()

    simplified, runtime = run_single_decimation(mesh, target_ratio=0.3)
    metrics = evaluator.compute_all_metrics(mesh, simplified)

    print(f"  Edges: {metrics['original_edges']} -> {metrics['simplified_edges']}")
    print(f"  Boundary edges: {metrics['original_boundary_edges']} -> "
          f"{metrics['simplified_boundary_edges']}")
    print(f"  Boundary change: {metrics['boundary_length_change']*100:.4f}%")
    print(f"  Runtime: {runtime:.3f}s")

    if make_plots:
        fig = MeshVisualizer().plot_mesh_comparison(
            mesh, simplified,
            title="Open surface - boundary kept",
            save_path=str(output_dir / "boundary_preservation.png")
        )
        plt.close(fig)

    return simplified, metrics


def demo_subdivision(output_dir: Path,
                     scheme: Optional[SubdivisionScheme] = None,
                     iterations: int = 2,
                     make_plots: bool = True):
    """
    Refine a sample grid with each subdivision scheme.
    """
    print("\n" + "=" * 60)
    print("GRID SUBDIVISION DEMO")
    print("=" * 60)

    schemes = [scheme] if scheme is not None else list(SubdivisionScheme)
    visualizer = MeshVisualizer()
    results = {}

    for current in schemes:
        print(f"\n--- {current.value} x{iterations} ---")
        grid = create_sample_grid("profile")
        levels = [grid.copy()]

        start_time = time.time()
        for _ in range(iterations):
            grid.subdivide(current)
            levels.append(grid.copy())
        runtime = time.time() - start_time

        buffers = grid.to_render_buffers()
        print(f"  Grid: 5x5 -> {grid.width}x{grid.height}")
        print(f"  Triangles: {buffers.num_triangles}")
        print(f"  Runtime: {runtime:.3f}s")
        results[current] = grid

        if make_plots:
            fig = visualizer.plot_refinement_sequence(
                levels,
                [f"{g.width}x{g.height}" for g in levels],
                title=f"Profile grid - {current.value}",
                save_path=str(output_dir / f"subdivision_{current.value}.png")
            )
            plt.close(fig)

    return results


def main():
    """Main demo entry point."""
    parser = argparse.ArgumentParser(
        description="Half-edge mesh decimation and grid subdivision demo"
    )
    parser.add_argument(
        "--mesh", "-m", type=str, default=None,
        help="Path to input mesh file. If not provided, uses a sample mesh."
    )
    parser.add_argument(
        "--output", "-o", type=str, default="output",
        help="Output directory for results"
    )
    parser.add_argument(
        "--ratio", "-r", type=float, default=None,
        help="Extra decimation at this fraction of the original edges"
    )
    parser.add_argument(
        "--scheme", "-s", type=str, default=None,
        choices=[s.value for s in SubdivisionScheme],
        help="Only run this subdivision scheme (default: all)"
    )
    parser.add_argument(
        "--iterations", "-n", type=int, default=2,
        help="Subdivision iterations (default: 2)"
    )
    parser.add_argument(
        "--quick", "-q", action="store_true",
        help="Quick mode - skip some demos for faster testing"
    )
    parser.add_argument(
        "--no-plots", action="store_true",
        help="Do not render figures"
    )
    parser.add_argument(
        "--log-level", type=str, default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level for the halfmesh package (default: WARNING)"
    )

    args = parser.parse_args()
    setup_logging(getattr(logging, args.log_level))
    make_plots = not args.no_plots

    output_dir = Path(args.output)
    output_dir.mkdir(parents=True, exist_ok=True)

    print("=" * 60)
    print("HALF-EDGE MESH PROCESSING")
    print("Shortest-edge decimation and grid subdivision")
    print("=" * 60)

    if args.mesh:
        print(f"\nLoading mesh from: {args.mesh}")
        mesh = load_mesh(args.mesh)
        mesh_name = Path(args.mesh).stem
    else:
        print("\nNo mesh specified, creating sample mesh...")
        mesh = create_sample_mesh("sphere")
        mesh_name = "sample_sphere"

    print_mesh_info(mesh, mesh_name)

    ratios = (0.5, 0.25) if args.quick else (0.5, 0.25, 0.1)
    demo_basic_decimation(mesh, output_dir, mesh_name, ratios, make_plots)

    if not args.quick:
        demo_boundary_preservation(output_dir, make_plots)

    scheme = SubdivisionScheme(args.scheme) if args.scheme else None
    demo_subdivision(output_dir, scheme, args.iterations, make_plots)

    if args.ratio is not None:
        print(f"\n--- Custom decimation at {args.ratio*100:.0f}% ---")
        simplified, runtime = run_single_decimation(mesh, target_ratio=args.ratio)
        output_path = output_dir / f"{mesh_name}_simplified_{int(args.ratio*100)}pct.ply"
        save_mesh(simplified, str(output_path))
        print(f"Saved: {output_path} ({runtime:.3f}s)")

    print("\n" + "=" * 60)
    print("DEMO COMPLETE")
    print(f"Results saved to: {output_dir.absolute()}")
    print("=" * 60)


if __name__ == "__main__":
    main()
