"""Report kinds, per-sensor whitelists and export query construction.

The export endpoint takes one boolean flag per report kind. Rather than
matching strings against three hand-kept lists, each `ReportKind` carries its
own flag and file-name suffix, and `SENSOR_REPORTS` says which kinds each
sensor can export.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Dict, FrozenSet, Iterable, Optional, Tuple, Union

from ..exceptions import ValidationError


class Sensor(str, Enum):
    """WildTrax data source categories."""
    ARU = "ARU"
    CAM = "CAM"
    PC = "PC"


def parse_sensor(value: Union[str, Sensor]) -> Sensor:
    if isinstance(value, Sensor):
        return value
    try:
        return Sensor(value)
    except ValueError:
        valid = ", ".join(s.value for s in Sensor)
        raise ValidationError(f"Invalid sensor {value!r}; must be one of {valid}.") from None


class ReportKind(Enum):
    """A report WildTrax can bundle into a project export.

    Each value is ``(report name, export flag, file-name suffix)``. The
    definitions table has no flag of its own; it ships with the metadata.
    """
    MAIN = ("main", "mainReport", "main_report")
    PROJECT = ("project", "projectReport", "project_report")
    LOCATION = ("location", "locationReport", "location_report")
    RECORDING = ("recording", "recordingReport", "recording_report")
    POINT_COUNT = ("point_count", "pointCountReport", "point_count_report")
    TAG = ("tag", "tagReport", "tag_report")
    IMAGE_REPORT = ("image_report", "imageReport", "image_report")
    IMAGE_SET = ("image_set", "imageSetReport", "image_set_report")
    BIRDNET = ("birdnet", "birdnetReport", "birdnet_report")
    MEGADETECTOR = ("megadetector", "megaDetectorReport", "megadetector_report")
    MEGACLASSIFIER = ("megaclassifier", "megaClassifierReport", "megaclassifier_report")
    DEFINITIONS = ("definitions", None, "definitions")

    def __init__(self, report_name: str, flag: Optional[str], suffix: str):
        self.report_name = report_name
        self.flag = flag
        self.suffix = suffix

    @classmethod
    def from_name(cls, name: str) -> Optional["ReportKind"]:
        for kind in cls:
            if kind.report_name == name:
                return kind
        return None


SENSOR_REPORTS: Dict[Sensor, FrozenSet[ReportKind]] = {
    Sensor.ARU: frozenset({
        ReportKind.MAIN, ReportKind.PROJECT, ReportKind.LOCATION, ReportKind.RECORDING,
        ReportKind.TAG, ReportKind.BIRDNET, ReportKind.DEFINITIONS,
    }),
    Sensor.CAM: frozenset({
        ReportKind.MAIN, ReportKind.PROJECT, ReportKind.LOCATION, ReportKind.IMAGE_REPORT,
        ReportKind.IMAGE_SET, ReportKind.TAG, ReportKind.MEGADETECTOR,
        ReportKind.MEGACLASSIFIER, ReportKind.DEFINITIONS,
    }),
    Sensor.PC: frozenset({
        ReportKind.MAIN, ReportKind.PROJECT, ReportKind.LOCATION, ReportKind.POINT_COUNT,
        ReportKind.DEFINITIONS,
    }),
}

# Always sent as true
METADATA_FLAGS = ("includeMetaData", "splitLocation")


@dataclass(frozen=True)
class ReportRequest:
    """A validated export request. Build it with `build_report_request`."""
    project_id: int
    sensor: Sensor
    reports: Tuple[ReportKind, ...]
    weather_cols: bool = True


def build_report_request(
    project_id: int,
    sensor: Union[str, Sensor],
    reports: Union[str, Iterable[str]],
    weather_cols: bool = True,
) -> ReportRequest:
    """Validate report names against the sensor's whitelist.

    Args:
        project_id: Project to export.
        sensor: "ARU", "CAM" or "PC".
        reports: One report name or several, e.g. ``["tag", "location"]``.
        weather_cols: Keep the daily/hourly weather columns.

    Raises:
        ValidationError: Unknown sensor, no reports, or a report the sensor
            cannot export.
    """
    sensor = parse_sensor(sensor)
    if isinstance(reports, str):
        names = [reports] if reports else []
    else:
        names = list(reports or [])
    if not names:
        raise ValidationError("You must specify at least one report.")

    allowed = SENSOR_REPORTS[sensor]
    kinds = []
    invalid = []
    for name in names:
        kind = ReportKind.from_name(name)
        if kind is None or kind not in allowed:
            invalid.append(name)
        elif kind not in kinds:
            kinds.append(kind)

    if invalid:
        valid = ", ".join(sorted(k.report_name for k in allowed))
        raise ValidationError(
            f"Invalid report type(s) for sensor {sensor.value}: {', '.join(map(repr, invalid))}. "
            f"Valid reports are: {valid}."
        )

    return ReportRequest(
        project_id=int(project_id),
        sensor=sensor,
        reports=tuple(kinds),
        weather_cols=bool(weather_cols),
    )


def check_project_access(request: ReportRequest, available_project_ids: Iterable[int]) -> None:
    available = {int(pid) for pid in available_project_ids}
    if request.project_id not in available:
        raise ValidationError(
            f"Project {request.project_id} is not among the {request.sensor.value} projects "
            f"you are able to download."
        )


def build_flag_map(request: ReportRequest) -> Dict[str, bool]:
    flags = {kind.flag: False for kind in ReportKind if kind.flag}
    for kind in request.reports:
        if kind.flag:
            flags[kind.flag] = True
    for flag in METADATA_FLAGS:
        flags[flag] = True
    return flags


def to_query_params(request: ReportRequest) -> Dict[str, str]:
    params = {
        "projectIds": str(request.project_id),
        "sensorId": request.sensor.value,
    }
    for flag, value in build_flag_map(request).items():
        params[flag] = "true" if value else "false"
    return params
