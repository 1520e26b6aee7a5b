"""Tests for export archive retrieval and unpacking."""

import tempfile

import pandas as pd
import pytest

from wildtrax.exceptions import HTTPError, ParsingError
from wildtrax.reports.archive import (
    ArchiveRetriever,
    ArchiveUnpacker,
    coerce_boolean,
    read_report_csv,
    sanitize_filename,
)
from wildtrax.reports.request import build_report_request

from conftest import build_zip, make_response

MAIN_CSV = "location,abundance,image_fire\nL1,1,TRUE\nL2,TMTT,false\n"
TAG_CSV = "location,species_code\nL1,WTSP\n"


@pytest.fixture
def scratch(tmp_path, monkeypatch):
    """Point tempfile at an inspectable directory."""
    directory = tmp_path / "scratch"
    directory.mkdir()
    monkeypatch.setattr(tempfile, "tempdir", str(directory))
    return directory


@pytest.fixture
def archive_path(tmp_path):
    def _make(files):
        path = tmp_path / "export.zip"
        path.write_bytes(build_zip(files))
        return path
    return _make


class TestArchiveRetriever:
    """Tests for streaming the export to disk."""

    def test_streams_to_temp_zip(self, api, http_session, scratch):
        http_session.request.return_value = make_response(chunks=[b"PK", b"\x03\x04"])
        request = build_report_request(47, "ARU", ["main", "tag"])

        path = ArchiveRetriever(api).retrieve(request)

        assert path.parent == scratch
        assert path.suffix == ".zip"
        assert path.read_bytes() == b"PK\x03\x04"

        call = http_session.request.call_args
        assert call.args == ("GET", "https://api.test/bis/download-report")
        assert call.kwargs["headers"]["Accept"] == "application/zip"
        assert call.kwargs["headers"]["Authorization"] == "Bearer token-1"
        assert call.kwargs["params"]["mainReport"] == "true"
        assert call.kwargs["params"]["tagReport"] == "true"
        assert call.kwargs["stream"] is True

    def test_http_error_removes_temp_file(self, api, http_session, scratch):
        http_session.request.return_value = make_response(status=401, json_data={"message": "Token expired"})

        with pytest.raises(HTTPError) as exc_info:
            ArchiveRetriever(api).retrieve(build_report_request(47, "ARU", "main"))

        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Token expired"
        assert list(scratch.iterdir()) == []

    def test_transport_error_removes_temp_file(self, api, http_session, scratch):
        response = make_response()
        response.iter_content.side_effect = ConnectionError("reset by peer")
        http_session.request.return_value = response

        with pytest.raises(ConnectionError):
            ArchiveRetriever(api).retrieve(build_report_request(47, "ARU", "main"))

        assert list(scratch.iterdir()) == []


class TestArchiveUnpacker:
    """Tests for extraction, file handling and cleanup."""

    def test_unpack_success(self, archive_path, scratch):
        archive = archive_path({
            "Alpha_main_report.csv": MAIN_CSV,
            "Alpha (2021)_tag_report.csv": TAG_CSV,
            "Alpha_abstract.csv": "title\nAbout this export\n",
        })

        tables = ArchiveUnpacker().unpack(archive)

        assert set(tables) == {"Alpha_main_report", "Alpha 2021_tag_report"}
        assert tables["Alpha 2021_tag_report"].loc[0, "species_code"] == "WTSP"
        assert not archive.exists()
        assert list(scratch.iterdir()) == []

    def test_unpack_nested_directory(self, archive_path, scratch):
        archive = archive_path({
            "export/Alpha_location_report.csv": "location,latitude\nL1,54.1\n",
            "export/Alpha_abstract.csv": "x\n1\n",
        })

        tables = ArchiveUnpacker().unpack(archive)

        assert list(tables) == ["Alpha_location_report"]
        assert list(scratch.iterdir()) == []

    def test_corrupt_archive(self, tmp_path, scratch):
        archive = tmp_path / "broken.zip"
        archive.write_bytes(b"this is not a zip file")

        with pytest.raises(ParsingError) as exc_info:
            ArchiveUnpacker().unpack(archive)

        assert exc_info.value.filename == "broken.zip"
        assert not archive.exists()
        assert list(scratch.iterdir()) == []

    def test_bad_table_fails_whole_call(self, archive_path, scratch):
        archive = archive_path({
            "Alpha_main_report.csv": MAIN_CSV,
            "Alpha_tag_report.csv": "a,b\n1,2\n3,4,5,6\n",
        })

        with pytest.raises(ParsingError) as exc_info:
            ArchiveUnpacker().unpack(archive)

        assert exc_info.value.filename == "Alpha_tag_report.csv"
        assert not archive.exists()
        assert list(scratch.iterdir()) == []

    def test_empty_table_file(self, archive_path, scratch):
        archive = archive_path({"Alpha_main_report.csv": ""})

        with pytest.raises(ParsingError, match="Alpha_main_report.csv"):
            ArchiveUnpacker().unpack(archive)
        assert list(scratch.iterdir()) == []


class TestReadReportCsv:
    """Tests for the tolerant column contract."""

    def test_abundance_is_text(self, tmp_path):
        path = tmp_path / "t.csv"
        path.write_text("location,abundance\nL1,1\nL2,2\nL3,TMTT\n")

        table = read_report_csv(path)

        assert table["abundance"].tolist() == ["1", "2", "TMTT"]

    def test_numeric_only_abundance_still_text(self, tmp_path):
        path = tmp_path / "t.csv"
        path.write_text("location,abundance\nL1,1\nL2,2\n")

        table = read_report_csv(path)

        assert table["abundance"].tolist() == ["1", "2"]

    def test_image_fire_is_boolean(self, tmp_path):
        path = tmp_path / "t.csv"
        path.write_text("image_id,image_fire\n1,TRUE\n2,false\n3,\n4,maybe\n")

        table = read_report_csv(path)

        assert str(table["image_fire"].dtype) == "boolean"
        assert bool(table["image_fire"].iloc[0]) is True
        assert bool(table["image_fire"].iloc[1]) is False
        assert table["image_fire"].isna().tolist() == [False, False, True, True]

    def test_empty_rows_skipped(self, tmp_path):
        path = tmp_path / "t.csv"
        path.write_text("location,count\nL1,1\n\n,\nL2,2\n")

        table = read_report_csv(path)

        assert table["location"].tolist() == ["L1", "L2"]

    def test_columns_absent_is_fine(self, tmp_path):
        path = tmp_path / "t.csv"
        path.write_text("location,count\nL1,1\n")

        table = read_report_csv(path)

        assert list(table.columns) == ["location", "count"]


class TestHelpers:

    def test_sanitize_filename(self):
        assert sanitize_filename("A: (b)?!~;_tag_report.csv") == "A b_tag_report.csv"

    def test_coerce_boolean(self):
        result = coerce_boolean(pd.Series([True, "T", "0", None, 1]))

        assert result.isna().tolist() == [False, False, False, True, False]
        assert [bool(v) for v in result.dropna()] == [True, True, False, True]
