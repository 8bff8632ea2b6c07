"""
CLI entry point and pipeline orchestration for lines2graph.
"""

import os
import sys
from typing import Optional

import click

from .config import load_config, Config
from .errors import GraphError

TOTAL_STAGES = 4


def _stage(n: int, msg: str) -> None:
    """Print a stage label."""
    print(f"\n[{n}/{TOTAL_STAGES}] {msg}", flush=True)


def _run_pipeline(config: Config) -> None:
    """Run the full lines-to-graph pipeline."""
    from .graph import build_graph
    from .table_io import check_outputs, read_lines, write_graph
    from .workspace import Workspace

    print(f"Running pipeline for: {config.input_file}")
    if config.debug_enabled:
        print("Debug mode: enabled")
    paths = config.output_paths()

    # 1. Existing outputs
    _stage(1, "Checking existing outputs...")
    check_outputs(paths, config.overwrite)

    # 2. Read input
    _stage(2, "Reading input lines...")
    gdf_lines, lines = read_lines(
        config.input_path(), config.id_column, config.geometry_column
    )
    print(f"  Read {len(lines)} lines (crs: {gdf_lines.crs})")

    # 3. Build graph
    _stage(3, "Building graph...")
    workspace = Workspace(
        debug_output_dir=config.debug_output_directory if config.debug_enabled else None,
        debug_output_prefix=paths.debug_prefix,
        crs=gdf_lines.crs,
    )
    graph = build_graph(
        lines,
        tolerance=config.tolerance,
        orient_by_slope_enabled=config.orient_by_slope,
        clustering=config.clustering,
        tie_break=config.tie_break,
        index=config.spatial_index,
        workspace=workspace,
    )
    print(f"  Graph: {len(graph.nodes)} nodes, {len(graph.edges)} edges")

    # 4. Write
    _stage(4, "Writing nodes and edges...")
    write_graph(graph, gdf_lines, paths, config.id_column)

    print("\nComplete")


def _ensure_directories(config: Config) -> None:
    """Create output and debug directories if needed."""
    if not os.path.exists(config.output_directory):
        os.makedirs(config.output_directory)
    if config.debug_enabled and not os.path.exists(config.debug_output_directory):
        os.makedirs(config.debug_output_directory)
        print(f"Created debug output directory: {config.debug_output_directory}")


def _validate_input_exists(config: Config) -> None:
    """Verify the input file exists; exit with a helpful message if not."""
    input_path = config.input_path()
    if not os.path.exists(input_path):
        print("\nERROR: Input file not found!")
        print(f"  Expected file: {input_path}")
        print(f"  Profile setting: input_file = {config.input_file}")
        print(f"  Input directory: {config.input_directory}")
        print(f"  Current working directory: {os.getcwd()}")
        sys.exit(1)


@click.command(help="Build a node and edge graph from a table of lines.")
@click.option(
    "--profile",
    required=True,
    help="Path to the profile configuration file (required).",
    type=click.Path(exists=True),
)
@click.option(
    "--tolerance",
    type=float,
    default=None,
    help="Side length of the square used to snap endpoints together.",
)
@click.option(
    "--orient-by-slope",
    is_flag=True,
    help="Orient edges from higher to lower z.",
)
@click.option(
    "--overwrite",
    is_flag=True,
    help="Replace existing nodes and edges outputs.",
)
def main(
    profile: str,
    tolerance: Optional[float],
    orient_by_slope: bool,
    overwrite: bool,
) -> None:
    """Build a node and edge graph from a table of lines."""
    print(f"Running with profile: {profile}")
    try:
        config = load_config(profile)
        if tolerance is not None:
            from .graph import check_tolerance

            config.tolerance = check_tolerance(tolerance)
        if orient_by_slope:
            config.orient_by_slope = True
        if overwrite:
            config.overwrite = True
        _ensure_directories(config)
        _validate_input_exists(config)
        _run_pipeline(config)
    except GraphError as e:
        print(f"\nERROR: {e}")
        sys.exit(1)
