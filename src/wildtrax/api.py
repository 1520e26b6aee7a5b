"""HTTP transport shared by every WildTrax operation.

`WildTraxAPI` adds the bearer header, the client user agent and the configured
timeout to each request and turns error statuses into `HTTPError`. It does not
retry: a failed request is reported to the caller as-is.
"""

import logging
import platform
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import requests

from . import __version__
from .auth import AuthSession
from .config import WildTraxConfig
from .exceptions import HTTPError

logger = logging.getLogger(__name__)

USER_AGENT = (
    f"wildtrax-python {__version__}; python-requests/{requests.__version__}; "
    f"Python {platform.python_version()} ({platform.system()})"
)

CHUNK_SIZE = 8192


@dataclass
class WildTraxAPI:
    """Authenticated access to the WildTrax REST endpoints.

    Attributes:
        auth: Supplies the bearer token; an expired session blocks every call.
        config: API base URL, discover origin and timeout.
        session: Pooled HTTP session carrying the user agent.
    """

    auth: AuthSession
    config: WildTraxConfig = field(default_factory=WildTraxConfig)
    session: requests.Session = field(default_factory=requests.Session)

    def __post_init__(self):
        self.session.headers.update({"User-Agent": USER_AGENT})

    def url(self, path: str) -> str:
        return self.config.api_base.rstrip("/") + "/" + path.lstrip("/")

    def discover_headers(self) -> Dict[str, str]:
        """Browser-origin headers the Data Discover endpoints insist on."""
        origin = self.config.discover_origin.rstrip("/")
        return {
            "Origin": origin,
            "Referer": origin + "/",
            "Pragma": "no-cache",
        }

    def request(
        self,
        method: str,
        path: str,
        headers: Optional[Dict[str, str]] = None,
        **kwargs: Any,
    ) -> requests.Response:
        """Send an authenticated request and raise `HTTPError` on error statuses.

        Raises:
            AuthenticationError: The session holds no valid token.
            HTTPError: The endpoint answered with a 4xx or 5xx status.
        """
        merged = self.auth.auth_header()
        merged.update(headers or {})
        url = self.url(path)

        logger.debug(f"{method} {url}")
        response = self.session.request(method, url, headers=merged, timeout=self.config.timeout, **kwargs)
        if not response.ok:
            error = HTTPError.from_response(response)
            response.close()
            logger.error(str(error))
            raise error
        return response

    def get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        response = self.request("GET", path, headers={"Accept": "application/json"}, params=params)
        return response.json()

    def post_json(
        self,
        path: str,
        payload: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
    ) -> Any:
        merged = {"Accept": "application/json"}
        merged.update(headers or {})
        response = self.request("POST", path, headers=merged, json=payload)
        return response.json()

    def stream_to_file(
        self,
        path: str,
        target: Path,
        params: Optional[Dict[str, Any]] = None,
        accept: str = "application/octet-stream",
    ) -> Path:
        """Stream a response body to ``target`` without holding it in memory.

        The caller owns ``target`` and is responsible for removing it if this
        call raises.
        """
        response = self.request("GET", path, headers={"Accept": accept}, params=params, stream=True)
        with response:
            with open(target, "wb") as f:
                for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                    if chunk:
                        f.write(chunk)
        return target
