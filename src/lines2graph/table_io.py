"""
Reading input lines and writing the nodes and edges outputs.
"""

import json
import os
from pathlib import Path
from typing import TYPE_CHECKING, Optional

import pandas as pd
import geopandas as gpd

from .constants import (
    ALREADY_RUN_ERROR,
    EDGE_ID_COLUMN,
    END_NODE_COLUMN,
    START_NODE_COLUMN,
)
from .errors import ConfigurationError, PreconditionError
from .geometry import InputLine

if TYPE_CHECKING:
    from .config import OutputPaths
    from .graph import Graph


def _geojson_crs(data: dict) -> Optional[str]:
    """Named CRS member of a GeoJSON document, if any."""
    crs = data.get("crs") or {}
    return (crs.get("properties") or {}).get("name")


def load_lines_table(path: str, geometry_column: Optional[str] = None) -> gpd.GeoDataFrame:
    """Load a line table. GeoJSON is parsed directly, other formats go through read_file."""
    if Path(path).suffix.lower() in (".geojson", ".json"):
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        features = data.get("features", []) if data.get("type") == "FeatureCollection" else [data]
        gdf = gpd.GeoDataFrame.from_features(features, crs=_geojson_crs(data))
    else:
        gdf = gpd.read_file(path)

    if geometry_column:
        if geometry_column not in gdf.columns:
            raise ConfigurationError(
                f"Geometry column '{geometry_column}' not found in {path}"
            )
        gdf = gdf.set_geometry(geometry_column)
    return gdf


def lines_from_geodataframe(gdf: gpd.GeoDataFrame, id_column: str) -> list[InputLine]:
    """Turn table rows into InputLines, checking the id column."""
    if id_column not in gdf.columns:
        raise ConfigurationError(
            f"Input must contain a unique integer id column '{id_column}'."
        )
    ids = gdf[id_column]
    if ids.isna().any():
        raise ConfigurationError(f"Id column '{id_column}' contains missing values.")
    if len(ids) and not pd.api.types.is_integer_dtype(ids):
        raise ConfigurationError(
            f"Id column '{id_column}' must be integer, found {ids.dtype}."
        )
    duplicated = ids[ids.duplicated()]
    if not duplicated.empty:
        raise ConfigurationError(
            f"Id column '{id_column}' is not unique: duplicate value {duplicated.iloc[0]}"
        )

    srid = gdf.crs.to_epsg() if gdf.crs is not None else None
    return [
        InputLine(id=int(line_id), geometry=geom, srid=srid)
        for line_id, geom in zip(ids, gdf.geometry)
    ]


def read_lines(
    path: str,
    id_column: str,
    geometry_column: Optional[str] = None,
) -> tuple[gpd.GeoDataFrame, list[InputLine]]:
    """Load the input table and its InputLines."""
    gdf = load_lines_table(path, geometry_column)
    return gdf, lines_from_geodataframe(gdf, id_column)


def check_outputs(paths: "OutputPaths", overwrite: bool) -> None:
    """Refuse to clobber existing outputs unless overwrite was asked for."""
    existing = [p for p in (paths.nodes_geojson, paths.edges_geojson) if os.path.exists(p)]
    if not existing:
        return
    if not overwrite:
        raise PreconditionError(ALREADY_RUN_ERROR + paths.input_name)
    for p in existing:
        os.remove(p)
        print(f"  Removed existing output: {p}")


def edges_table(
    graph: "Graph",
    gdf_lines: gpd.GeoDataFrame,
    id_column: str,
) -> gpd.GeoDataFrame:
    """Input attributes and geometry plus `edge_id`, `start_node`, `end_node`."""
    _, df_edges = graph.to_geodataframes()
    by_edge = df_edges.set_index(EDGE_ID_COLUMN)
    gdf_edges = gdf_lines.copy()
    line_ids = gdf_edges[id_column].astype(int)
    gdf_edges[EDGE_ID_COLUMN] = line_ids
    gdf_edges[START_NODE_COLUMN] = line_ids.map(by_edge[START_NODE_COLUMN]).astype(int)
    gdf_edges[END_NODE_COLUMN] = line_ids.map(by_edge[END_NODE_COLUMN]).astype(int)
    return gdf_edges


def write_graph(
    graph: "Graph",
    gdf_lines: gpd.GeoDataFrame,
    paths: "OutputPaths",
    id_column: str,
) -> None:
    """Write nodes and edges GeoJSON. Either both files exist afterwards or neither."""
    gdf_nodes, _ = graph.to_geodataframes(crs=gdf_lines.crs)
    gdf_edges = edges_table(graph, gdf_lines, id_column)
    try:
        with open(paths.nodes_geojson, "w", encoding="utf-8") as f:
            f.write(gdf_nodes.to_json())
        with open(paths.edges_geojson, "w", encoding="utf-8") as f:
            f.write(gdf_edges.to_json())
    except Exception:
        discard_outputs(paths)
        raise
    print(f"  Wrote {len(gdf_nodes)} nodes to {paths.nodes_geojson}")
    print(f"  Wrote {len(gdf_edges)} edges to {paths.edges_geojson}")


def discard_outputs(paths: "OutputPaths") -> None:
    """Remove any partially written outputs."""
    for p in (paths.nodes_geojson, paths.edges_geojson):
        if os.path.exists(p):
            os.remove(p)
