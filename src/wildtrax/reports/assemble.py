"""Shape parsed export tables into what the caller asked for."""

import logging
from typing import Dict, Iterable, Optional, Union

import pandas as pd

from .request import ReportKind, ReportRequest

logger = logging.getLogger(__name__)

WEATHER_PREFIXES = ("daily", "hourly")

ReportResult = Union[pd.DataFrame, Dict[str, pd.DataFrame]]


def drop_weather_columns(table: pd.DataFrame) -> pd.DataFrame:
    keep = [c for c in table.columns if not str(c).startswith(WEATHER_PREFIXES)]
    return table.loc[:, keep]


def match_report(name: str, kinds: Iterable[ReportKind]) -> Optional[ReportKind]:
    """Find the report kind a table name belongs to.

    Export files are named ``<project>_<suffix>``; the suffix tokens must form
    the tail of the name, so ``image_report`` never claims
    ``..._image_set_report``. The longest matching suffix wins.
    """
    tokens = name.lower().split("_")
    best = None
    for kind in kinds:
        suffix = kind.suffix.split("_")
        if len(suffix) <= len(tokens) and tokens[-len(suffix):] == suffix:
            if best is None or len(suffix) > len(best.suffix.split("_")):
                best = kind
    return best


class ReportAssembler:
    """Applies weather pruning and report filtering to parsed tables."""

    def assemble(self, tables: Dict[str, pd.DataFrame], request: ReportRequest) -> ReportResult:
        """Filter ``tables`` down to the requested reports.

        Returns:
            The table itself when exactly one report remains, otherwise a
            dict keyed by report name.
        """
        if not request.weather_cols:
            tables = {name: drop_weather_columns(table) for name, table in tables.items()}

        matched = {}
        for name, table in tables.items():
            kind = match_report(name, ReportKind)
            if kind is None or kind not in request.reports:
                continue
            if kind.report_name in matched:
                logger.warning(f"More than one {kind.report_name} table in export; keeping the first")
                continue
            matched[kind.report_name] = table

        missing = [k.report_name for k in request.reports if k.report_name not in matched]
        if missing:
            logger.warning(f"Export for project {request.project_id} is missing: {', '.join(missing)}")

        # Keep the order the caller asked for
        ordered = {k.report_name: matched[k.report_name] for k in request.reports if k.report_name in matched}
        if len(ordered) == 1:
            return next(iter(ordered.values()))
        return ordered
