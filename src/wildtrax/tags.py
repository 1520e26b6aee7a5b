"""Download the spectrogram images and audio clips behind a tag report.

Example:
    >>> tags = client.download_report(project_id=47, sensor="ARU", reports="tag")
    >>> download_tags(tags, Path("clips"), ClipType.BOTH)
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from enum import Enum
from pathlib import Path
from typing import List, Optional, Tuple, Union

import pandas as pd
import requests

from .api import CHUNK_SIZE, USER_AGENT
from .exceptions import ValidationError

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS = ("spectrogram_url", "clip_url")
NAME_COLUMNS = ("organization", "location", "recording_date_time", "species_code",
                "individual_order", "detection_time")


class ClipType(str, Enum):
    SPECTROGRAM = "spectrogram"
    AUDIO = "audio"
    BOTH = "both"


def _file_stem(row: pd.Series) -> str:
    recorded = pd.to_datetime(row["recording_date_time"], errors="coerce")
    stamp = recorded.strftime("%Y%m%d_%H%M%S") if not pd.isna(recorded) else "unknown"
    detection = str(row["detection_time"]).replace(".", "_")
    return (f"{row['organization']}_{row['location']}_{stamp}"
            f"__{row['species_code']}__{row['individual_order']}__{detection}")


def _extension(url: str) -> str:
    suffix = Path(str(url).split("?", 1)[0]).suffix.lstrip(".")
    return suffix or "mp3"


def build_clip_table(tags: pd.DataFrame, output: Path, clip_type: ClipType) -> pd.DataFrame:
    """Select the naming columns and add the local target path(s) per tag."""
    output = Path(output)
    wanted = list(NAME_COLUMNS)
    if clip_type in (ClipType.SPECTROGRAM, ClipType.BOTH):
        wanted.append("spectrogram_url")
    if clip_type in (ClipType.AUDIO, ClipType.BOTH):
        wanted.append("clip_url")

    missing = [c for c in wanted if c not in tags.columns]
    if missing:
        raise ValidationError(f"Tag table is missing columns: {', '.join(missing)}. "
                              f"Use download_report(reports='tag').")

    table = tags.loc[:, wanted].copy()
    stems = table.apply(_file_stem, axis=1) if len(table) else pd.Series(dtype=str)
    if clip_type in (ClipType.SPECTROGRAM, ClipType.BOTH):
        table["spectrogram_file_name"] = [str(output / f"{s}.jpeg") for s in stems]
    if clip_type in (ClipType.AUDIO, ClipType.BOTH):
        table["file_type"] = [_extension(u) for u in table["clip_url"]]
        table["clip_file_name"] = [str(output / f"{s}.{ext}") for s, ext in zip(stems, table["file_type"])]
    return table


class _ThreadSessions:
    """One ``requests.Session`` per worker thread."""

    def __init__(self):
        self._local = threading.local()
        self._lock = threading.Lock()
        self.sessions: List[requests.Session] = []

    def get(self) -> requests.Session:
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update({"User-Agent": USER_AGENT})
            self._local.session = session
            with self._lock:
                self.sessions.append(session)
        return session

    def close(self):
        for session in self.sessions:
            session.close()


def download_file(session: requests.Session, url: str, path: Path, timeout: Optional[float] = None) -> bool:
    """Stream ``url`` to ``path``. Partial files are removed on failure."""
    try:
        with session.get(url, stream=True, timeout=timeout) as r:
            r.raise_for_status()
            with open(path, 'wb') as f:
                for chunk in r.iter_content(chunk_size=CHUNK_SIZE):
                    f.write(chunk)
        return True
    except (requests.RequestException, OSError) as e:
        logger.error(f"Failed to download {url}: {e}")
        if path.exists():
            path.unlink()
        return False


def download_tags(
    tags: pd.DataFrame,
    output: Union[str, Path],
    clip_type: Union[str, ClipType] = ClipType.SPECTROGRAM,
    workers: int = 4,
    session: Optional[requests.Session] = None,
    timeout: Optional[float] = None,
) -> pd.DataFrame:
    """Download the media files referenced by a tag report.

    Args:
        tags: Tag report from ``download_report(reports="tag")``.
        output: Existing directory to write the files into.
        clip_type: Spectrogram images, audio clips, or both.
        workers: Parallel downloads.
        session: HTTP session for the media URLs, shared by every worker. By
            default each worker thread opens its own. No WildTrax token is
            sent.

    Returns:
        The tag rows used for naming, the target file name column(s) and a
        ``downloaded`` flag per row that is true only when every requested
        file for that tag was written.
    """
    try:
        clip_type = ClipType(clip_type)
    except ValueError:
        raise ValidationError(f"clip_type must be one of: {', '.join(c.value for c in ClipType)}") from None

    missing = [c for c in REQUIRED_COLUMNS if c not in tags.columns]
    if missing:
        raise ValidationError(f"Required columns {', '.join(missing)} are missing from the tag table. "
                              f"Use download_report(reports='tag').")

    output = Path(output)
    if not output.is_dir():
        raise ValidationError(f"Output directory {output} does not exist.")

    table = build_clip_table(tags, output, clip_type)

    jobs: List[Tuple[int, str, Path]] = []
    for position, (_, row) in enumerate(table.iterrows()):
        if clip_type in (ClipType.SPECTROGRAM, ClipType.BOTH):
            jobs.append((position, row["spectrogram_url"], Path(row["spectrogram_file_name"])))
        if clip_type in (ClipType.AUDIO, ClipType.BOTH):
            jobs.append((position, row["clip_url"], Path(row["clip_file_name"])))

    thread_sessions = _ThreadSessions() if session is None else None

    def fetch(job):
        worker_session = session if thread_sessions is None else thread_sessions.get()
        return download_file(worker_session, job[1], job[2], timeout)

    logger.info(f"Downloading {len(jobs)} {clip_type.value} files to {output} with {workers} workers")
    try:
        with ThreadPoolExecutor(max_workers=max(1, workers)) as executor:
            results = list(executor.map(fetch, jobs))
    finally:
        if thread_sessions is not None:
            thread_sessions.close()

    ok = [True] * len(table)
    for (position, _, _), success in zip(jobs, results):
        ok[position] = ok[position] and success
    table["downloaded"] = ok

    failed = len(results) - sum(results)
    if failed:
        logger.warning(f"{failed} of {len(results)} files could not be downloaded")
    return table
