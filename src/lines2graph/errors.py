"""
Exceptions raised by the graph construction pipeline.
"""


class GraphError(Exception):
    """Base class for all lines2graph failures."""


class ConfigurationError(GraphError, ValueError):
    """Invalid run configuration: negative tolerance, bad or missing ids."""


class GeometryTypeError(GraphError, TypeError):
    """An input geometry is not a LineString or MultiLineString."""


class PreconditionError(GraphError):
    """Output already exists and overwrite was not requested."""


class ConnectivityError(GraphError):
    """One or more edges have an unresolved start or end node."""

    def __init__(self, count: int):
        self.count = count
        msg = "There is one edge " if count == 1 else f"There are {count} edges "
        super().__init__(
            msg + "with a null start node or end node. "
            "Try using a slightly smaller tolerance."
        )
