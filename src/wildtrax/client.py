"""High-level entry point tying authentication, reports and Data Discover together.

Example:
    >>> client = WildTraxClient.from_env()
    >>> client.authenticate()
    >>> tags = client.download_report(project_id=47, sensor="ARU", reports="tag")
    >>> projects, locations = client.dd_summary("ARU", ["WTSP", "YEWA"])
"""

import logging
from pathlib import Path
from typing import Iterable, List, Optional, Tuple, Union

import pandas as pd
import requests

from .api import WildTraxAPI
from .auth import AuthSession, AuthToken
from .config import WildTraxConfig
from .discovery.boundary import Boundary
from .discovery.engine import DEFAULT_ZOOM, DiscoveryQueryEngine
from .reports.archive import ArchiveRetriever, ArchiveUnpacker
from .reports.assemble import ReportAssembler, ReportResult
from .reports.request import Sensor, build_report_request, check_project_access
from .reports.summary import get_download_summary
from .species import SpeciesLookup, SpeciesRecord
from .tags import ClipType, download_tags

logger = logging.getLogger(__name__)


class WildTraxClient:
    """One authenticated WildTrax session and the operations that use it.

    Attributes:
        config: Credentials, endpoints and timeout.
        auth: Token cache; every call fails once the token expires.
        api: HTTP transport shared by all operations.
        species: Cached species table.
    """

    def __init__(
        self,
        config: Optional[WildTraxConfig] = None,
        auth: Optional[AuthSession] = None,
        session: Optional[requests.Session] = None,
        discovery_workers: int = 1,
    ):
        self.config = config or WildTraxConfig.from_env()
        self.auth = auth or AuthSession(self.config)
        self.api = WildTraxAPI(auth=self.auth, config=self.config, session=session or requests.Session())
        self.species = SpeciesLookup(self.api)
        self.retriever = ArchiveRetriever(self.api)
        self.unpacker = ArchiveUnpacker()
        self.assembler = ReportAssembler()
        self.discovery = DiscoveryQueryEngine(self.api, self.species, workers=discovery_workers)

    @classmethod
    def from_env(cls, **kwargs) -> "WildTraxClient":
        return cls(WildTraxConfig.from_env(), **kwargs)

    def authenticate(self, force: bool = False) -> AuthToken:
        return self.auth.authenticate(force=force)

    def get_download_summary(self, sensor: Union[str, Sensor]) -> pd.DataFrame:
        return get_download_summary(self.api, sensor)

    def get_species(self, overwrite: bool = False) -> pd.DataFrame:
        """Species table as a DataFrame; cached unless ``overwrite`` is set."""
        return self.species.to_frame(overwrite=overwrite)

    def get_species_records(self, overwrite: bool = False) -> List[SpeciesRecord]:
        return self.species.fetch(overwrite=overwrite)

    def download_report(
        self,
        project_id: int,
        sensor: Union[str, Sensor],
        reports: Union[str, Iterable[str]],
        weather_cols: bool = True,
    ) -> ReportResult:
        """Download one project's reports.

        Args:
            project_id: Project id from `get_download_summary`.
            sensor: "ARU", "CAM" or "PC".
            reports: One report name or several (see ``SENSOR_REPORTS``).
            weather_cols: Keep the daily/hourly weather columns.

        Returns:
            A DataFrame when one report was requested, otherwise a dict of
            DataFrames keyed by report name.

        Raises:
            AuthenticationError: No valid token.
            ValidationError: Bad sensor or report names (checked before any
                request), or a project the user cannot download.
            HTTPError: The export request failed.
            ParsingError: The archive or one of its tables was unreadable.
        """
        request = build_report_request(project_id, sensor, reports, weather_cols)
        self.auth.require_token()

        summary = self.get_download_summary(request.sensor)
        check_project_access(request, summary["project_id"].dropna())

        archive = self.retriever.retrieve(request)
        tables = self.unpacker.unpack(archive)
        return self.assembler.assemble(tables, request)

    def dd_summary(
        self,
        sensor: Union[str, Sensor],
        species: Union[str, Iterable[str]],
        zoom: int = DEFAULT_ZOOM,
        boundary: Optional[Boundary] = None,
    ) -> Tuple[pd.DataFrame, pd.DataFrame]:
        """Data Discover counts per project and per location for each species."""
        self.auth.require_token()
        return self.discovery.run(sensor, species, zoom=zoom, boundary=boundary)

    def download_tags(
        self,
        tags: pd.DataFrame,
        output: Union[str, Path],
        clip_type: Union[str, ClipType] = ClipType.SPECTROGRAM,
        workers: int = 4,
    ) -> pd.DataFrame:
        return download_tags(tags, output, clip_type, workers=workers, timeout=self.config.timeout)
