"""Shared fixtures for the WildTrax client tests."""

import io
import os
import sys
import zipfile
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock

import pytest

# Add src to sys.path to ensure we can import the package if it's not installed
sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '../src')))

from wildtrax.api import WildTraxAPI
from wildtrax.auth import AuthSession, AuthToken
from wildtrax.config import WildTraxConfig

NOW = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)


class FakeClock:
    """Controllable replacement for the UTC clock."""

    def __init__(self, now=NOW):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


def make_response(status=200, json_data=None, text="", chunks=None, url="https://api.test/x"):
    """Build a mocked ``requests.Response``."""
    response = MagicMock()
    response.status_code = status
    response.ok = status < 400
    response.url = url
    response.text = text
    if json_data is None:
        response.json.side_effect = ValueError("No JSON")
    else:
        response.json.return_value = json_data
    response.iter_content.return_value = iter(chunks or [])
    return response


def build_zip(files):
    """Return zip archive bytes holding ``{name: text}``."""
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, "w") as zf:
        for name, content in files.items():
            zf.writestr(name, content)
    return buffer.getvalue()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def config():
    return WildTraxConfig(username="tester", password="secret", api_base="https://api.test")


@pytest.fixture
def exchange(clock):
    """Credential exchange returning a fresh one-hour token on every call."""
    counter = {"n": 0}

    def _exchange():
        counter["n"] += 1
        return AuthToken(value=f"token-{counter['n']}", expiry=clock() + timedelta(hours=1))

    return MagicMock(side_effect=_exchange)


@pytest.fixture
def auth(config, exchange, clock):
    session = AuthSession(config, exchange=exchange, clock=clock)
    session.authenticate()
    return session


@pytest.fixture
def http_session():
    session = MagicMock()
    session.headers = {}
    return session


@pytest.fixture
def api(auth, config, http_session):
    return WildTraxAPI(auth=auth, config=config, session=http_session)


@pytest.fixture
def species_payload():
    """Raw /bis/get-all-species response."""
    return [
        {"id": 1, "code": "WTSP", "commonName": "White-throated Sparrow", "className": "AVES",
         "order": "PASSERIFORMES", "scientificName": "Zonotrichia albicollis"},
        {"id": 2, "code": "YEWA", "commonName": "Yellow Warbler", "className": "AVES",
         "order": "PASSERIFORMES", "scientificName": "Setophaga petechia"},
        {"id": 3, "code": "OVEN", "commonName": "Ovenbird", "className": "AVES",
         "order": "PASSERIFORMES", "scientificName": "Seiurus aurocapilla"},
    ]
