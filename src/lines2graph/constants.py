"""
Constants for lines2graph: output suffixes, option values and messages.
"""

# Output table suffixes
NODES_SUFFIX = "_nodes"
EDGES_SUFFIX = "_edges"

# Output column names
NODE_ID_COLUMN = "node_id"
EDGE_ID_COLUMN = "edge_id"
START_NODE_COLUMN = "start_node"
END_NODE_COLUMN = "end_node"

DEFAULT_ID_COLUMN = "id"
DEFAULT_TOLERANCE = 0.0

# Endpoint roles
ROLE_START = "start"
ROLE_END = "end"

LINE_GEOMETRY_TYPES = ("LineString", "MultiLineString")


class ClusteringPolicy:
    """Endpoint grouping rules for positive tolerances."""

    # Representative = endpoint with the minimum id among overlapping envelopes
    MIN_ID = "min_id"

    # Connected components of the overlap graph
    UNION_FIND = "union_find"

    ALL = (MIN_ID, UNION_FIND)


class TieBreak:
    """Node choice when several nodes overlap an endpoint."""

    NEAREST = "nearest"
    FIRST = "first"

    ALL = (NEAREST, FIRST)


class SpatialIndex:
    """Spatial index backing the overlap queries."""

    STRTREE = "strtree"
    KDTREE = "kdtree"

    ALL = (STRTREE, KDTREE)


NEGATIVE_TOLERANCE_ERROR = "Only positive tolerances are allowed."
TYPE_ERROR = "Only LINESTRINGs and MULTILINESTRINGs (with or without z) are accepted."
ALREADY_RUN_ERROR = "lines2graph has already been run on "
