"""
Geometry primitives and endpoint extraction.
"""

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence, Union

import geopandas as gpd
from shapely.geometry import Point, box
from shapely.geometry.base import BaseGeometry

from .constants import LINE_GEOMETRY_TYPES, ROLE_END, ROLE_START, TYPE_ERROR
from .errors import GeometryTypeError


@dataclass(frozen=True)
class Coordinate2D:
    x: float
    y: float

    @property
    def z(self) -> None:
        return None

    @property
    def planar(self) -> tuple[float, float]:
        return (self.x, self.y)

    def to_point(self) -> Point:
        return Point(self.x, self.y)


@dataclass(frozen=True)
class Coordinate3D:
    x: float
    y: float
    z: float

    @property
    def planar(self) -> tuple[float, float]:
        return (self.x, self.y)

    def to_point(self) -> Point:
        return Point(self.x, self.y, self.z)


Coordinate = Union[Coordinate2D, Coordinate3D]


@dataclass(frozen=True)
class Envelope:
    """Axis-aligned box. Touching boxes intersect."""

    minx: float
    miny: float
    maxx: float
    maxy: float

    @classmethod
    def around(cls, coordinate: Coordinate, tolerance: float) -> "Envelope":
        """Square of side `tolerance` centred on the coordinate."""
        half = tolerance / 2.0
        x, y = coordinate.planar
        return cls(x - half, y - half, x + half, y + half)

    def intersects(self, other: "Envelope") -> bool:
        return not (
            other.minx > self.maxx
            or other.maxx < self.minx
            or other.miny > self.maxy
            or other.maxy < self.miny
        )

    def to_polygon(self) -> BaseGeometry:
        return box(self.minx, self.miny, self.maxx, self.maxy)


@dataclass(frozen=True)
class InputLine:
    """One caller-supplied line: unique integer id, line geometry, SRID."""

    id: int
    geometry: BaseGeometry
    srid: Optional[int] = None


@dataclass(frozen=True)
class Endpoint:
    """First or last coordinate of an input line, with its search region."""

    insertion_id: int
    edge_id: int
    role: str
    coordinate: Coordinate
    search_region: Envelope


def to_coordinate(coords: tuple, has_z: bool) -> Coordinate:
    """Build a Coordinate from a raw coordinate tuple."""
    if has_z:
        return Coordinate3D(float(coords[0]), float(coords[1]), float(coords[2]))
    return Coordinate2D(float(coords[0]), float(coords[1]))


def check_line_geometries(geometries: Iterable[Optional[BaseGeometry]]) -> None:
    """Fail once if any geometry is not a non-empty (multi)line."""
    for geom in geometries:
        if geom is None:
            raise GeometryTypeError(f"{TYPE_ERROR} Found a missing geometry.")
        if geom.geom_type not in LINE_GEOMETRY_TYPES:
            raise GeometryTypeError(f"{TYPE_ERROR} Found: {geom.geom_type}")
        if geom.is_empty:
            raise GeometryTypeError(f"{TYPE_ERROR} Found an empty {geom.geom_type}")


def detect_has_z(geometries: Iterable[BaseGeometry]) -> bool:
    """A run is 3D only when every geometry carries z."""
    found = False
    for geom in geometries:
        if not geom.has_z:
            return False
        found = True
    return found


def line_end_coords(geom: BaseGeometry) -> tuple[tuple, tuple]:
    """First coordinate of the first part and last coordinate of the last part."""
    if geom.geom_type == "MultiLineString":
        parts = [part for part in geom.geoms if not part.is_empty]
        return parts[0].coords[0], parts[-1].coords[-1]
    return geom.coords[0], geom.coords[-1]


def extract_endpoints(
    lines: Iterable[InputLine],
    tolerance: float,
    has_z: bool,
) -> list[Endpoint]:
    """Two endpoints per line, numbered from 1.

    All START endpoints come first, in line order, followed by all END
    endpoints in line order. The numbering decides cluster representatives.
    """
    ends = [(line.id, line_end_coords(line.geometry)) for line in lines]
    endpoints = []
    for role, which in ((ROLE_START, 0), (ROLE_END, 1)):
        for edge_id, coords in ends:
            coordinate = to_coordinate(coords[which], has_z)
            endpoints.append(
                Endpoint(
                    insertion_id=len(endpoints) + 1,
                    edge_id=edge_id,
                    role=role,
                    coordinate=coordinate,
                    search_region=Envelope.around(coordinate, tolerance),
                )
            )
    return endpoints


def pair_endpoints(endpoints: Sequence[Endpoint]) -> list[tuple[Endpoint, Endpoint]]:
    """(START, END) per line from the output of `extract_endpoints`."""
    half = len(endpoints) // 2
    return list(zip(endpoints[:half], endpoints[half:]))


def endpoints_to_geodataframe(
    endpoints: list[Endpoint],
    crs=None,
) -> gpd.GeoDataFrame:
    """Endpoints as a GeoDataFrame, for debug output."""
    return gpd.GeoDataFrame(
        {
            "insertion_id": [e.insertion_id for e in endpoints],
            "edge_id": [e.edge_id for e in endpoints],
            "role": [e.role for e in endpoints],
            "geometry": [e.coordinate.to_point() for e in endpoints],
        },
        geometry="geometry",
        crs=crs,
    )
