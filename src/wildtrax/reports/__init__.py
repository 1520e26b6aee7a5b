"""Project report export: request building, archive handling and assembly."""

from .archive import ArchiveRetriever, ArchiveUnpacker, read_report_csv
from .assemble import ReportAssembler, drop_weather_columns, match_report
from .request import (
    SENSOR_REPORTS,
    ReportKind,
    ReportRequest,
    Sensor,
    build_flag_map,
    build_report_request,
    check_project_access,
    parse_sensor,
    to_query_params,
)
from .summary import get_download_summary

__all__ = [
    "ArchiveRetriever",
    "ArchiveUnpacker",
    "read_report_csv",
    "ReportAssembler",
    "drop_weather_columns",
    "match_report",
    "SENSOR_REPORTS",
    "ReportKind",
    "ReportRequest",
    "Sensor",
    "build_flag_map",
    "build_report_request",
    "check_project_access",
    "parse_sensor",
    "to_query_params",
    "get_download_summary",
]
