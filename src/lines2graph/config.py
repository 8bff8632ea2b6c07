"""
Configuration loading and path resolution for lines2graph.
"""

import configparser
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from .constants import (
    ClusteringPolicy,
    SpatialIndex,
    TieBreak,
    DEFAULT_ID_COLUMN,
    DEFAULT_TOLERANCE,
    EDGES_SUFFIX,
    NODES_SUFFIX,
)
from .errors import ConfigurationError
from .graph import check_tolerance


@dataclass
class OutputPaths:
    """Resolved output file paths."""

    input_name: str
    nodes_geojson: str
    edges_geojson: str
    debug_prefix: str


@dataclass
class Config:
    """Run configuration for lines2graph."""

    input_file: str
    id_column: str
    geometry_column: Optional[str]
    input_directory: str
    output_directory: str
    debug_output_directory: str
    tolerance: float
    orient_by_slope: bool
    overwrite: bool
    clustering: str
    tie_break: str
    spatial_index: str
    debug_enabled: bool = False

    def input_path(self) -> str:
        """Full path to the input line file."""
        if os.path.isabs(self.input_file):
            return self.input_file
        directory = os.path.join(os.getcwd(), self.input_directory)
        return os.path.join(directory, self.input_file)

    def output_paths(self) -> OutputPaths:
        """`<input>_nodes.geojson` and `<input>_edges.geojson` in the output directory."""
        stem = Path(self.input_file).stem
        out_dir = self.output_directory
        return OutputPaths(
            input_name=stem,
            nodes_geojson=os.path.join(out_dir, f"{stem}{NODES_SUFFIX}.geojson"),
            edges_geojson=os.path.join(out_dir, f"{stem}{EDGES_SUFFIX}.geojson"),
            debug_prefix=stem,
        )


def _case_preserving_config_parser() -> type[configparser.ConfigParser]:
    """Create a ConfigParser that preserves option case."""

    class CasePreservingConfigParser(configparser.ConfigParser):
        def optionxform(self, optionstr: str) -> str:
            return optionstr

    return CasePreservingConfigParser


def parse_bool(s: Optional[str], default: bool = False) -> bool:
    if s is None:
        return default
    return str(s).lower() in ("true", "1", "yes", "on")


def _parse_choice(parsed: dict, key: str, choices: tuple, default: str) -> str:
    value = (parsed.get(key) or default).strip().lower()
    if value not in choices:
        raise ConfigurationError(
            f"Invalid {key} value '{value}'. Expected one of: {', '.join(choices)}"
        )
    return value


def load_config(config_file: str) -> Config:
    """Load and validate configuration from an INI file."""

    parser_class = _case_preserving_config_parser()
    config = parser_class()
    config.read(config_file)

    parsed: dict[str, str] = {}
    for option, value in config.defaults().items():
        parsed[option] = value

    for section in config.sections():
        for option in config.options(section):
            parsed[option] = config.get(section, option)

    # Required
    input_file = parsed.get("input_file") or None
    if not input_file:
        raise ConfigurationError("Please set input_file in the profile")

    id_column = parsed.get("id_column") or DEFAULT_ID_COLUMN
    geometry_column = parsed.get("geometry_column") or None

    # Directories
    input_directory = parsed.get("input_directory", "input/")
    output_directory = parsed.get("output_directory", "output/")
    debug_output_directory = parsed.get("debug_output_directory", output_directory)

    # Tolerance
    tolerance = check_tolerance(parsed.get("tolerance") or DEFAULT_TOLERANCE)

    clustering = _parse_choice(
        parsed, "clustering", ClusteringPolicy.ALL, ClusteringPolicy.MIN_ID
    )
    tie_break = _parse_choice(parsed, "tie_break", TieBreak.ALL, TieBreak.NEAREST)
    spatial_index = _parse_choice(
        parsed, "spatial_index", SpatialIndex.ALL, SpatialIndex.STRTREE
    )

    return Config(
        input_file=input_file,
        id_column=id_column,
        geometry_column=geometry_column,
        input_directory=input_directory,
        output_directory=output_directory,
        debug_output_directory=debug_output_directory,
        tolerance=tolerance,
        orient_by_slope=parse_bool(parsed.get("orient_by_slope"), False),
        overwrite=parse_bool(parsed.get("overwrite"), False),
        clustering=clustering,
        tie_break=tie_break,
        spatial_index=spatial_index,
        debug_enabled=parse_bool(parsed.get("debug_enabled"), False),
    )
