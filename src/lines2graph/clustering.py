"""
Grouping of line endpoints into canonical node clusters.
"""

from abc import ABC, abstractmethod
from typing import Sequence

from .constants import ClusteringPolicy, SpatialIndex
from .errors import ConfigurationError
from .geometry import Endpoint
from .spatial_index import ExactLookup, make_lookup


class Clusterer(ABC):
    """Partition endpoints into clusters, one representative per cluster.

    After `cluster()`, `assignments` maps every endpoint's insertion id to the
    insertion id it was grouped under.
    """

    def __init__(self):
        self.assignments: dict[int, int] = {}

    @abstractmethod
    def cluster(self, endpoints: Sequence[Endpoint]) -> list[Endpoint]:
        """Representatives in ascending insertion id."""


class ExactClusterer(Clusterer):
    """Zero tolerance: endpoints merge iff their planar coordinates are equal."""

    def cluster(self, endpoints: Sequence[Endpoint]) -> list[Endpoint]:
        lookup = ExactLookup([e.coordinate for e in endpoints])
        representatives = []
        self.assignments = {}
        for endpoint in endpoints:
            first = min(lookup.query_coordinate(endpoint.coordinate))
            owner = endpoints[first].insertion_id
            self.assignments[endpoint.insertion_id] = owner
            if owner == endpoint.insertion_id:
                representatives.append(endpoint)
        return representatives


class MinIdEnvelopeClusterer(Clusterer):
    """An endpoint is a representative iff no overlapping envelope has a lower id.

    The rule is local: A overlapping B and B overlapping C does not put A and
    C together. An endpoint whose minimum overlapping id is itself absorbed
    elsewhere has no representative within reach, and may fail to resolve
    to a node later on.
    """

    def __init__(self, tolerance: float, index: str = SpatialIndex.STRTREE):
        super().__init__()
        self.tolerance = tolerance
        self.index = index

    def cluster(self, endpoints: Sequence[Endpoint]) -> list[Endpoint]:
        lookup = make_lookup([e.coordinate for e in endpoints], self.tolerance, self.index)
        representatives = []
        self.assignments = {}
        for endpoint in endpoints:
            hits = lookup.query(endpoint.search_region)
            owner = min(endpoints[i].insertion_id for i in hits)
            self.assignments[endpoint.insertion_id] = owner
            if owner == endpoint.insertion_id:
                representatives.append(endpoint)
        return representatives


class UnionFindClusterer(Clusterer):
    """Connected components of the envelope overlap graph.

    Chains of overlapping endpoints collapse into one cluster, represented by
    the lowest insertion id of the component.
    """

    def __init__(self, tolerance: float, index: str = SpatialIndex.STRTREE):
        super().__init__()
        self.tolerance = tolerance
        self.index = index

    def cluster(self, endpoints: Sequence[Endpoint]) -> list[Endpoint]:
        lookup = make_lookup([e.coordinate for e in endpoints], self.tolerance, self.index)
        parent = list(range(len(endpoints)))

        def find(i):
            root = i
            while parent[root] != root:
                root = parent[root]
            while parent[i] != root:
                parent[i], i = root, parent[i]
            return root

        for position, endpoint in enumerate(endpoints):
            for other in lookup.query(endpoint.search_region):
                a, b = find(position), find(other)
                if a != b:
                    # Lower position wins so the root is the component minimum
                    parent[max(a, b)] = min(a, b)

        representatives = []
        self.assignments = {}
        for position, endpoint in enumerate(endpoints):
            owner = endpoints[find(position)].insertion_id
            self.assignments[endpoint.insertion_id] = owner
            if owner == endpoint.insertion_id:
                representatives.append(endpoint)
        return representatives


def make_clusterer(
    tolerance: float,
    policy: str = ClusteringPolicy.MIN_ID,
    index: str = SpatialIndex.STRTREE,
) -> Clusterer:
    """Pick the clusterer for a tolerance and grouping policy."""
    if policy not in ClusteringPolicy.ALL:
        raise ConfigurationError(
            f"Unknown clustering policy '{policy}'. Expected one of: "
            f"{', '.join(ClusteringPolicy.ALL)}"
        )
    if tolerance == 0:
        return ExactClusterer()
    if policy == ClusteringPolicy.UNION_FIND:
        return UnionFindClusterer(tolerance, index)
    return MinIdEnvelopeClusterer(tolerance, index)
