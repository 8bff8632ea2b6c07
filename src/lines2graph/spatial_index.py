"""
Spatial candidate lookups over square envelopes.

All lookups answer the same question: which indexed entries have an envelope
intersecting the query envelope. Clustering and edge resolution only depend
on `CandidateLookup`, so the index structure can be swapped freely.
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from typing import Sequence

import numpy as np
from scipy.spatial import cKDTree
from shapely.strtree import STRtree

from .constants import SpatialIndex
from .errors import ConfigurationError
from .geometry import Coordinate, Envelope


class CandidateLookup(ABC):
    """Overlap query over a fixed list of envelopes."""

    @abstractmethod
    def query(self, envelope: Envelope, ordered: bool = True) -> list[int]:
        """Positions of entries intersecting `envelope`.

        With `ordered`, positions are ascending. Otherwise they come back in
        whatever order the underlying index produces.
        """


class STRtreeLookup(CandidateLookup):
    """Shapely STRtree over the envelope polygons."""

    def __init__(self, envelopes: Sequence[Envelope]):
        self.size = len(envelopes)
        self._tree = STRtree([e.to_polygon() for e in envelopes])

    def query(self, envelope: Envelope, ordered: bool = True) -> list[int]:
        if self.size == 0:
            return []
        hits = np.atleast_1d(self._tree.query(envelope.to_polygon())).tolist()
        return sorted(hits) if ordered else hits


class KDTreeLookup(CandidateLookup):
    """scipy cKDTree over envelope centres using the Chebyshev metric.

    Squares of side `tolerance` intersect iff their centres are within a
    Chebyshev distance of `tolerance`.
    """

    def __init__(self, coordinates: Sequence[Coordinate], tolerance: float):
        self.size = len(coordinates)
        self._half = tolerance / 2.0
        points = np.array([c.planar for c in coordinates], dtype=float)
        self._tree = cKDTree(points.reshape(-1, 2))

    def query(self, envelope: Envelope, ordered: bool = True) -> list[int]:
        if self.size == 0:
            return []
        cx = (envelope.minx + envelope.maxx) / 2.0
        cy = (envelope.miny + envelope.maxy) / 2.0
        reach = self._half + max(envelope.maxx - cx, envelope.maxy - cy)
        hits = self._tree.query_ball_point((cx, cy), r=reach, p=np.inf)
        return sorted(hits) if ordered else list(hits)


class ExactLookup(CandidateLookup):
    """Planar equality lookup for zero tolerance (degenerate envelopes)."""

    def __init__(self, coordinates: Sequence[Coordinate]):
        self.size = len(coordinates)
        self._positions = defaultdict(list)
        for position, coordinate in enumerate(coordinates):
            self._positions[coordinate.planar].append(position)

    def query(self, envelope: Envelope, ordered: bool = True) -> list[int]:
        return list(self._positions.get((envelope.minx, envelope.miny), []))

    def query_coordinate(self, coordinate: Coordinate) -> list[int]:
        return list(self._positions.get(coordinate.planar, []))


def make_lookup(
    coordinates: Sequence[Coordinate],
    tolerance: float,
    index: str = SpatialIndex.STRTREE,
) -> CandidateLookup:
    """Build the lookup for `coordinates` at the given tolerance."""
    if index not in SpatialIndex.ALL:
        raise ConfigurationError(
            f"Unknown spatial index '{index}'. Expected one of: "
            f"{', '.join(SpatialIndex.ALL)}"
        )
    if tolerance == 0:
        return ExactLookup(coordinates)
    if index == SpatialIndex.KDTREE:
        return KDTreeLookup(coordinates, tolerance)
    return STRtreeLookup([Envelope.around(c, tolerance) for c in coordinates])
