"""
Graph assembly: node table, edge resolution, connectivity check, slope orientation.
"""

import math
from dataclasses import dataclass, field
from typing import Optional, Sequence

import numpy as np
import pandas as pd
import geopandas as gpd

from .clustering import make_clusterer
from .constants import (
    ClusteringPolicy,
    SpatialIndex,
    TieBreak,
    NEGATIVE_TOLERANCE_ERROR,
    NODE_ID_COLUMN,
    EDGE_ID_COLUMN,
    START_NODE_COLUMN,
    END_NODE_COLUMN,
)
from .errors import ConfigurationError, ConnectivityError
from .geometry import (
    Coordinate,
    Endpoint,
    InputLine,
    check_line_geometries,
    detect_has_z,
    extract_endpoints,
    pair_endpoints,
)
from .spatial_index import make_lookup
from .workspace import Workspace


@dataclass(frozen=True)
class Node:
    node_id: int
    coordinate: Coordinate


@dataclass
class Edge:
    edge_id: int
    start_node_id: Optional[int]
    end_node_id: Optional[int]

    @property
    def resolved(self) -> bool:
        return self.start_node_id is not None and self.end_node_id is not None


@dataclass
class Graph:
    """Result of one run: nodes numbered 1..N and one edge per input line."""

    nodes: list[Node]
    edges: list[Edge]
    has_z: bool = False
    srid: Optional[int] = None
    _by_id: dict = field(default_factory=dict, init=False, repr=False, compare=False)

    def node(self, node_id: int) -> Node:
        if len(self._by_id) != len(self.nodes):
            self._by_id = {n.node_id: n for n in self.nodes}
        return self._by_id[node_id]

    def to_geodataframes(self, crs=None) -> tuple[gpd.GeoDataFrame, pd.DataFrame]:
        """Nodes as points with `node_id`; edges as `edge_id`, `start_node`, `end_node`.

        Without an explicit `crs` the nodes take the EPSG code of the input lines.
        """
        if crs is None and self.srid is not None:
            crs = f"EPSG:{self.srid}"
        gdf_nodes = gpd.GeoDataFrame(
            {
                NODE_ID_COLUMN: [n.node_id for n in self.nodes],
                "geometry": [n.coordinate.to_point() for n in self.nodes],
            },
            geometry="geometry",
            crs=crs,
        )
        df_edges = pd.DataFrame(
            {
                EDGE_ID_COLUMN: [e.edge_id for e in self.edges],
                START_NODE_COLUMN: [e.start_node_id for e in self.edges],
                END_NODE_COLUMN: [e.end_node_id for e in self.edges],
            }
        )
        return gdf_nodes, df_edges


def check_tolerance(tolerance) -> float:
    """Reject negative or non-numeric tolerances."""
    try:
        value = float(tolerance)
    except (TypeError, ValueError):
        raise ConfigurationError(f"Invalid tolerance value '{tolerance}'.")
    if math.isnan(value) or value < 0:
        raise ConfigurationError(NEGATIVE_TOLERANCE_ERROR)
    return value


def check_line_ids(lines: Sequence[InputLine]) -> None:
    """Every line needs a unique integer id."""
    seen = set()
    for line in lines:
        line_id = line.id
        if line_id is None or isinstance(line_id, bool) or not isinstance(
            line_id, (int, np.integer)
        ):
            raise ConfigurationError(
                f"Input lines must carry a unique integer id. Found: {line_id!r}"
            )
        if line_id in seen:
            raise ConfigurationError(f"Duplicate input line id: {line_id}")
        seen.add(line_id)


def build_nodes(representatives: Sequence[Endpoint]) -> list[Node]:
    """Number representatives 1..N in the order given."""
    return [
        Node(node_id=i, coordinate=rep.coordinate)
        for i, rep in enumerate(representatives, 1)
    ]


def _planar_distance(a: Coordinate, b: Coordinate) -> float:
    return math.hypot(a.x - b.x, a.y - b.y)


def resolve_edges(
    endpoints: Sequence[Endpoint],
    nodes: Sequence[Node],
    tolerance: float,
    tie_break: str = TieBreak.NEAREST,
    index: str = SpatialIndex.STRTREE,
) -> list[Edge]:
    """Look up the node for every start and end endpoint.

    `endpoints` come in extraction order (all STARTs, then all ENDs). Endpoints
    with no node within reach keep a `None` node id.
    """
    if tie_break not in TieBreak.ALL:
        raise ConfigurationError(
            f"Unknown tie break '{tie_break}'. Expected one of: {', '.join(TieBreak.ALL)}"
        )
    lookup = make_lookup([n.coordinate for n in nodes], tolerance, index)

    def find_node(endpoint: Endpoint) -> Optional[int]:
        hits = lookup.query(endpoint.search_region, ordered=tie_break != TieBreak.FIRST)
        if not hits:
            return None
        if tie_break == TieBreak.FIRST:
            return nodes[hits[0]].node_id
        best = min(
            hits,
            key=lambda i: (
                _planar_distance(endpoint.coordinate, nodes[i].coordinate),
                nodes[i].node_id,
            ),
        )
        return nodes[best].node_id

    edges = []
    for start, end in pair_endpoints(endpoints):
        edges.append(
            Edge(
                edge_id=start.edge_id,
                start_node_id=find_node(start),
                end_node_id=find_node(end),
            )
        )
    return edges


def resolve_edges_by_cluster(
    endpoints: Sequence[Endpoint],
    nodes: Sequence[Node],
    representatives: Sequence[Endpoint],
    assignments: dict[int, int],
) -> list[Edge]:
    """Resolve endpoints through their cluster membership instead of a spatial lookup."""
    node_by_rep = {
        rep.insertion_id: node.node_id for rep, node in zip(representatives, nodes)
    }
    edges = []
    for start, end in pair_endpoints(endpoints):
        edges.append(
            Edge(
                edge_id=start.edge_id,
                start_node_id=node_by_rep.get(assignments.get(start.insertion_id)),
                end_node_id=node_by_rep.get(assignments.get(end.insertion_id)),
            )
        )
    return edges


def check_connectivity(edges: Sequence[Edge]) -> None:
    """Fail if any edge has an unresolved endpoint."""
    count = sum(1 for e in edges if not e.resolved)
    if count > 0:
        raise ConnectivityError(count)


def orient_by_slope(edges: Sequence[Edge], nodes: Sequence[Node]) -> int:
    """Point every edge downhill. Returns the number of edges swapped."""
    z_by_id = {n.node_id: n.coordinate.z for n in nodes}
    swapped = 0
    for edge in edges:
        start_z = z_by_id[edge.start_node_id]
        end_z = z_by_id[edge.end_node_id]
        if start_z is None or end_z is None:
            continue
        if start_z < end_z:
            edge.start_node_id, edge.end_node_id = edge.end_node_id, edge.start_node_id
            swapped += 1
    return swapped


def build_graph(
    lines: Sequence[InputLine],
    tolerance: float = 0.0,
    orient_by_slope_enabled: bool = False,
    clustering: str = ClusteringPolicy.MIN_ID,
    tie_break: str = TieBreak.NEAREST,
    index: str = SpatialIndex.STRTREE,
    workspace: Optional[Workspace] = None,
) -> Graph:
    """Run extraction, clustering, numbering, resolution, validation and orientation."""
    workspace = workspace if workspace is not None else Workspace()

    with workspace:
        tolerance = check_tolerance(tolerance)
        clusterer = make_clusterer(tolerance, clustering, index)
        lines = list(lines)
        check_line_geometries(line.geometry for line in lines)
        check_line_ids(lines)

        has_z = detect_has_z(line.geometry for line in lines)
        srid = lines[0].srid if lines else None

        endpoints = extract_endpoints(lines, tolerance, has_z)
        workspace.store_endpoints(endpoints)
        print(f"  Extracted {len(endpoints)} endpoints from {len(lines)} lines")

        representatives = clusterer.cluster(endpoints)
        workspace.store_clusters(clusterer.assignments)
        print(
            f"  Clustered endpoints into {len(representatives)} nodes "
            f"(tolerance: {tolerance}, policy: {clustering if tolerance > 0 else 'exact'})"
        )

        nodes = build_nodes(representatives)
        if tolerance > 0 and clustering == ClusteringPolicy.UNION_FIND:
            edges = resolve_edges_by_cluster(
                endpoints, nodes, representatives, clusterer.assignments
            )
        else:
            edges = resolve_edges(endpoints, nodes, tolerance, tie_break, index)
        check_connectivity(edges)
        print(f"  Resolved {len(edges)} edges")

        if orient_by_slope_enabled:
            if has_z:
                swapped = orient_by_slope(edges, nodes)
                print(f"  Oriented edges by slope: {swapped} edges reversed")
            else:
                print("Warning: orient_by_slope requires z coordinates. Skipping.")

    return Graph(nodes=nodes, edges=edges, has_z=has_z, srid=srid)
