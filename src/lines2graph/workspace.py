"""
Caller-owned scratch space for one pipeline run.
"""

from pathlib import Path
from typing import Optional

import geopandas as gpd

from .geometry import Endpoint, endpoints_to_geodataframe


class Workspace:
    """Holds transient endpoints and clusters; cleared on every exit path.

    Use as a context manager. With `debug_output_dir` set, each phase snapshot
    is also written as GeoJSON, named `<prefix>_debug_<phase>_<kind>.geojson`.
    """

    def __init__(
        self,
        debug_output_dir: Optional[str] = None,
        debug_output_prefix: str = "",
        crs=None,
    ):
        self.debug_output_dir = debug_output_dir
        self.debug_output_prefix = debug_output_prefix
        self.crs = crs
        self.endpoints: list[Endpoint] = []
        self.assignments: dict[int, int] = {}
        self.closed = False

    def __enter__(self) -> "Workspace":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def store_endpoints(self, endpoints: list[Endpoint]) -> None:
        self.endpoints = endpoints
        self._write_debug("endpoints", "endpoints", endpoints)

    def store_clusters(self, assignments: dict[int, int]) -> None:
        self.assignments = assignments
        self._write_debug("clusters", "endpoints", self.endpoints)

    def close(self) -> None:
        """Drop all scratch state. Safe to call more than once."""
        self.endpoints = []
        self.assignments = {}
        self.closed = True

    def _write_debug(self, phase: str, kind: str, endpoints: list[Endpoint]) -> None:
        if not self.debug_output_dir:
            return
        out_file = (
            Path(self.debug_output_dir)
            / f"{self.debug_output_prefix}_debug_{phase}_{kind}.geojson"
        )
        gdf: gpd.GeoDataFrame = endpoints_to_geodataframe(endpoints, crs=self.crs)
        if phase == "clusters":
            gdf["cluster"] = [self.assignments.get(e.insertion_id) for e in endpoints]
        with open(out_file, "w", encoding="utf-8") as f:
            f.write(gdf.to_json())
        print(f"  [DEBUG] Wrote debug file: {out_file.name}")
