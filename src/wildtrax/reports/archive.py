"""Export archive download and extraction.

A project export arrives as a zip holding one CSV per report plus an
``*_abstract.csv`` cover sheet. `ArchiveRetriever` streams the zip to a
temporary file; `ArchiveUnpacker` takes ownership of that file, extracts it
into a temporary directory, reads every table and deletes both before
returning or raising.
"""

import logging
import os
import re
import tempfile
import warnings
import zipfile
from pathlib import Path
from typing import Dict

import pandas as pd

from ..api import WildTraxAPI
from ..exceptions import ParsingError
from .request import ReportRequest, to_query_params

logger = logging.getLogger(__name__)

EXPORT_PATH = "/bis/download-report"

ABSTRACT_PATTERN = re.compile(r"_abstract\.csv$", re.IGNORECASE)
UNSAFE_FILENAME_CHARS = re.compile(r"[:()?!~;]")

# Columns whose type is fixed regardless of what the CSV looks like
TEXT_COLUMN = "abundance"
BOOLEAN_COLUMN = "image_fire"

_TRUE_VALUES = {"true", "t", "yes", "y", "1", "1.0"}
_FALSE_VALUES = {"false", "f", "no", "n", "0", "0.0"}


def _to_bool(value):
    if pd.isna(value):
        return pd.NA
    text = str(value).strip().lower()
    if text in _TRUE_VALUES:
        return True
    if text in _FALSE_VALUES:
        return False
    return pd.NA


def coerce_boolean(series: pd.Series) -> pd.Series:
    """Convert to the nullable boolean dtype; unrecognised values become NA."""
    return series.map(_to_bool).astype("boolean")


def read_report_csv(path: Path) -> pd.DataFrame:
    """Read one report table with the fixed, tolerant column contract.

    Fully empty rows are dropped, ``abundance`` is always text and
    ``image_fire`` always boolean. Type-inference warnings are suppressed.

    Raises:
        ParsingError: The file is not readable as CSV.
    """
    path = Path(path)
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore")
            table = pd.read_csv(
                path,
                dtype={TEXT_COLUMN: str},
                skip_blank_lines=True,
                low_memory=False,
            )
    except (ValueError, OSError) as e:
        raise ParsingError(f"Could not parse report file {path.name}: {e}", filename=path.name) from e

    table = table.dropna(how="all").reset_index(drop=True)
    if BOOLEAN_COLUMN in table.columns:
        table[BOOLEAN_COLUMN] = coerce_boolean(table[BOOLEAN_COLUMN])
    return table


def sanitize_filename(name: str) -> str:
    return UNSAFE_FILENAME_CHARS.sub("", name)


class ArchiveRetriever:
    """Streams a project export to a temporary zip file."""

    def __init__(self, api: WildTraxAPI):
        self.api = api

    def retrieve(self, request: ReportRequest) -> Path:
        """Download the export for ``request``.

        Returns:
            Path of the temporary zip. The caller owns it from here on.

        Raises:
            HTTPError: The export endpoint returned an error status. The
                temporary file is removed before the error propagates.
        """
        fd, name = tempfile.mkstemp(prefix="wildtrax-", suffix=".zip")
        os.close(fd)
        target = Path(name)

        logger.info(f"Downloading {request.sensor.value} project {request.project_id} "
                    f"({', '.join(k.report_name for k in request.reports)})")
        try:
            self.api.stream_to_file(
                EXPORT_PATH,
                target,
                params=to_query_params(request),
                accept="application/zip",
            )
        except Exception:
            target.unlink(missing_ok=True)
            raise

        logger.debug(f"Export saved to {target} ({target.stat().st_size} bytes)")
        return target


class ArchiveUnpacker:
    """Turns an export zip into a mapping of table name to DataFrame."""

    def unpack(self, archive: Path) -> Dict[str, pd.DataFrame]:
        """Extract and parse ``archive``, then delete it.

        Keys are the sanitized file names without their ``.csv`` extension.

        Raises:
            ParsingError: The archive is corrupt or any table fails to parse.
                Nothing is returned in that case.
        """
        archive = Path(archive)
        try:
            with tempfile.TemporaryDirectory(prefix="wildtrax-report-") as workdir:
                return self._extract_and_parse(archive, Path(workdir))
        finally:
            archive.unlink(missing_ok=True)

    def _extract_and_parse(self, archive: Path, workdir: Path) -> Dict[str, pd.DataFrame]:
        try:
            with zipfile.ZipFile(archive) as zf:
                zf.extractall(workdir)
        except (zipfile.BadZipFile, OSError) as e:
            raise ParsingError(f"Could not extract export archive {archive.name}: {e}",
                               filename=archive.name) from e

        for abstract in [p for p in workdir.rglob("*") if ABSTRACT_PATTERN.search(p.name)]:
            logger.debug(f"Discarding {abstract.name}")
            abstract.unlink()

        tables = {}
        for csv_path in sorted(workdir.rglob("*.csv")):
            clean_path = self._sanitize(csv_path)
            key = clean_path.stem
            if key in tables:
                raise ParsingError(f"Export contains two tables named {key}", filename=clean_path.name)
            tables[key] = read_report_csv(clean_path)
            logger.debug(f"Parsed {clean_path.name}: {len(tables[key])} rows")

        return tables

    @staticmethod
    def _sanitize(path: Path) -> Path:
        clean = sanitize_filename(path.name)
        if clean == path.name:
            return path
        target = path.with_name(clean)
        if target.exists():
            raise ParsingError(f"Export contains two files named {clean}", filename=path.name)
        return path.rename(target)
