"""WildTrax species table lookup."""

import logging
from dataclasses import asdict, dataclass
from typing import Iterable, List, Optional

import pandas as pd

from .api import WildTraxAPI

logger = logging.getLogger(__name__)

SPECIES_PATH = "/bis/get-all-species"

SPECIES_COLUMNS = [
    "species_id",
    "species_code",
    "species_common_name",
    "species_class",
    "species_order",
    "species_scientific_name",
]


@dataclass(frozen=True)
class SpeciesRecord:
    """One row of the WildTrax species table."""
    species_id: Optional[int]
    species_code: Optional[str]
    species_common_name: Optional[str]
    species_class: Optional[str]
    species_order: Optional[str]
    species_scientific_name: Optional[str]

    @classmethod
    def from_api(cls, item: dict) -> "SpeciesRecord":
        return cls(
            species_id=item.get("id"),
            species_code=item.get("code"),
            species_common_name=item.get("commonName"),
            species_class=item.get("className"),
            species_order=item.get("order"),
            species_scientific_name=item.get("scientificName"),
        )


class SpeciesLookup:
    """Fetches the species table once and answers code lookups from the cache.

    The table is only downloaded again when ``fetch(overwrite=True)`` is called.
    """

    def __init__(self, api: WildTraxAPI):
        self.api = api
        self._records: Optional[List[SpeciesRecord]] = None

    @property
    def cached(self) -> bool:
        return self._records is not None

    def fetch(self, overwrite: bool = False) -> List[SpeciesRecord]:
        if self._records is not None and not overwrite:
            return self._records

        payload = self.api.post_json(SPECIES_PATH)
        self._records = [SpeciesRecord.from_api(item) for item in payload or []]
        logger.info(f"Successfully downloaded the species table ({len(self._records)} species)")
        return self._records

    def to_frame(self, overwrite: bool = False) -> pd.DataFrame:
        records = self.fetch(overwrite=overwrite)
        return pd.DataFrame([asdict(r) for r in records], columns=SPECIES_COLUMNS)

    def resolve(self, codes: Iterable[str]) -> List[SpeciesRecord]:
        """Return the records for ``codes`` in the order given.

        Unknown codes are skipped and repeated codes resolve once.
        """
        by_code = {}
        for record in self.fetch():
            by_code.setdefault(record.species_code, record)

        resolved = []
        for code in dict.fromkeys(codes):
            record = by_code.get(code)
            if record is None:
                logger.warning(f"Species code {code!r} is not in the WildTrax species table")
                continue
            resolved.append(record)
        return resolved
