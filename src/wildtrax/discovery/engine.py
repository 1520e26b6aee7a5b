"""Data Discover species search.

For every requested species two queries are sent: the long/lat summary, which
aggregates detection counts per organization and project, and the
map-and-projects query, whose GeoJSON features give counts per location.
Results are accumulated in species input order into two tables.
"""

import copy
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

import pandas as pd

from ..api import WildTraxAPI
from ..exceptions import EmptyResultError, ValidationError
from ..reports.request import Sensor, parse_sensor
from ..species import SpeciesLookup, SpeciesRecord
from .boundary import Boundary, validate_boundary

logger = logging.getLogger(__name__)

SUMMARY_PATH = "/bis/get-data-discoverer-long-lat-summary"
MAP_PATH = "/bis/get-data-discoverer-map-and-projects"

# Search extent covering all of Canada
FULL_BOUNDS = {
    "_sw": {"lng": -140.0, "lat": 40.0},
    "_ne": {"lng": 0.0, "lat": 90.0},
}

DEFAULT_ZOOM = 20

PROJECT_COLUMNS = [
    "project_id",
    "project_name",
    "count",
    "species_common_name",
    "species_code",
    "species_scientific_name",
]

LOCATION_COLUMNS = [
    "species_code",
    "species_common_name",
    "count",
    "longitude",
    "latitude",
]


@dataclass(frozen=True)
class DiscoveryQuery:
    """Filters for one species; renders the payloads for both endpoints."""
    sensor: Sensor
    species_id: int
    zoom: int = DEFAULT_ZOOM
    bounds: Dict[str, Dict[str, float]] = field(default_factory=lambda: copy.deepcopy(FULL_BOUNDS))
    boundary: Optional[Boundary] = None

    def _polygon(self) -> Optional[List[List[float]]]:
        if self.boundary is None:
            return None
        return [[float(v) for v in pair] for pair in self.boundary]

    def summary_payload(self) -> Dict[str, Any]:
        return {
            "isSpeciesTab": False,
            "zoomLevel": self.zoom,
            "bounds": self.bounds,
            "sensorId": self.sensor.value,
            "polygonBoundary": self._polygon(),
            "organizationIds": None,
            "projectIds": None,
            "speciesIds": [self.species_id],
        }

    def map_payload(self) -> Dict[str, Any]:
        return {
            "isSpeciesTab": False,
            "zoomLevel": self.zoom,
            "bounds": self.bounds,
            "sensorId": self.sensor.value,
            "polygonBoundary": self._polygon(),
            "speciesIds": [self.species_id],
        }


def location_rows(species: SpeciesRecord, map_response: Dict[str, Any]) -> List[Dict[str, Any]]:
    """One row per GeoJSON feature in a map-and-projects response."""
    features = ((map_response or {}).get("map") or {}).get("features") or []
    rows = []
    for feature in features:
        coordinates = list((feature.get("geometry") or {}).get("coordinates") or [])
        # Pad short coordinate lists
        coordinates += [None] * (2 - len(coordinates))
        rows.append({
            "species_code": species.species_code,
            "species_common_name": species.species_common_name,
            "count": (feature.get("properties") or {}).get("count"),
            "longitude": coordinates[0],
            "latitude": coordinates[1],
        })
    return rows


def project_rows(species_id: int, summary_response: Dict[str, Any], species_table: pd.DataFrame) -> pd.DataFrame:
    """Per-project counts joined with the species table, exact duplicates removed."""
    projects = (summary_response or {}).get("projects") or []
    counts = pd.DataFrame(
        [
            {
                "project_id": p.get("projectId"),
                "project_name": p.get("projectName") or "",
                "species_id": species_id,
                "count": p.get("count"),
            }
            for p in projects
        ],
        columns=["project_id", "project_name", "species_id", "count"],
    )
    # Inner join on species_id; filtering first avoids key dtype mismatches
    meta = species_table.loc[species_table["species_id"] == species_id].drop(columns="species_id")
    joined = counts.drop(columns="species_id").merge(meta, how="cross")
    return joined.loc[:, PROJECT_COLUMNS].drop_duplicates().reset_index(drop=True)


class DiscoveryQueryEngine:
    """Runs Data Discover searches for a list of species.

    Attributes:
        api: Authenticated transport.
        species: Species table used to resolve codes and label results.
        workers: Number of species queried concurrently. With the default of
            1 species are queried one after another. Worker threads share
            the API session, so pass a session that tolerates concurrent use
            when raising this.
    """

    def __init__(self, api: WildTraxAPI, species: SpeciesLookup, workers: int = 1):
        self.api = api
        self.species = species
        self.workers = max(1, int(workers))

    def run(
        self,
        sensor: Union[str, Sensor],
        species: Union[str, Iterable[str]],
        zoom: int = DEFAULT_ZOOM,
        boundary: Optional[Boundary] = None,
    ) -> Tuple[pd.DataFrame, pd.DataFrame]:
        """Search Data Discover for each species code.

        Args:
            sensor: "ARU", "CAM" or "PC".
            species: One species code or several, e.g. ``["WTSP", "YEWA"]``.
            zoom: Map zoom level; lower values group nearby locations.
            boundary: Optional closed polygon of (longitude, latitude) pairs.

        Returns:
            ``(project_summary, location_counts)``, rows in species input order.

        Raises:
            ValidationError: Bad sensor, species list or boundary, or none of
                the codes exist in the species table.
            EmptyResultError: Either result table is empty.
        """
        sensor = parse_sensor(sensor)
        codes = [species] if isinstance(species, str) else list(species or [])
        if not codes:
            raise ValidationError("You must specify at least one species code.")
        if boundary is not None:
            validate_boundary(boundary)

        records = self.species.resolve(codes)
        if not records:
            raise ValidationError(f"None of the species codes {codes} are in the WildTrax species table.")
        species_table = self.species.to_frame()

        queries = [DiscoveryQuery(sensor=sensor, species_id=r.species_id, zoom=zoom, boundary=boundary)
                   for r in records]

        def run_one(item):
            record, query = item
            return self._query_species(record, query, species_table)

        if self.workers > 1 and len(queries) > 1:
            with ThreadPoolExecutor(max_workers=self.workers) as executor:
                # map() yields in submission order
                results = list(executor.map(run_one, zip(records, queries)))
        else:
            results = [run_one(item) for item in zip(records, queries)]

        project_frames = [projects for projects, _ in results]
        locations = [row for _, rows in results for row in rows]

        non_empty = [frame for frame in project_frames if not frame.empty]
        if non_empty:
            project_summary = pd.concat(non_empty, ignore_index=True)
        else:
            project_summary = pd.DataFrame(columns=PROJECT_COLUMNS)
        location_counts = pd.DataFrame(locations, columns=LOCATION_COLUMNS)

        if project_summary.empty or location_counts.empty:
            raise EmptyResultError("No results were found on any of the search layers. "
                                   "Broaden your search and try again.")

        logger.info(f"Data Discover: {len(project_summary)} project rows and "
                    f"{len(location_counts)} locations for {len(records)} species")
        return project_summary, location_counts

    def _query_species(
        self,
        record: SpeciesRecord,
        query: DiscoveryQuery,
        species_table: pd.DataFrame,
    ) -> Tuple[pd.DataFrame, List[Dict[str, Any]]]:
        headers = self.api.discover_headers()
        logger.debug(f"Querying Data Discover for {record.species_code} ({record.species_id})")
        summary = self.api.post_json(SUMMARY_PATH, query.summary_payload(), headers=headers)
        map_response = self.api.post_json(MAP_PATH, query.map_payload(), headers=headers)
        return project_rows(record.species_id, summary, species_table), location_rows(record, map_response)
