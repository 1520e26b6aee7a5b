"""Projects the authenticated user may download."""

import logging
from typing import Union

import pandas as pd

from ..api import WildTraxAPI
from .request import Sensor, parse_sensor

logger = logging.getLogger(__name__)

DOWNLOAD_SUMMARY_PATH = "/bis/get-download-summary"

# API field -> output column
SUMMARY_COLUMNS = {
    "organizationId": "organization_id",
    "organizationName": "organization",
    "fullNm": "project",
    "id": "project_id",
    "sensorId": "sensor",
    "tasks": "tasks",
    "status": "status",
}


def get_download_summary(api: WildTraxAPI, sensor: Union[str, Sensor]) -> pd.DataFrame:
    """List the projects of one sensor type that can be downloaded.

    Returns:
        One row per project with organization, project name and id, sensor,
        task count and status, sorted by project name.
    """
    sensor = parse_sensor(sensor)
    payload = api.get_json(
        DOWNLOAD_SUMMARY_PATH,
        params={"sensorId": sensor.value, "sort": "fullNm", "order": "asc"},
    )
    results = (payload or {}).get("results", [])
    rows = [{column: item.get(field) for field, column in SUMMARY_COLUMNS.items()} for item in results]
    logger.info(f"{len(rows)} downloadable {sensor.value} projects")
    return pd.DataFrame(rows, columns=list(SUMMARY_COLUMNS.values()))
