"""Bearer token handling for the WildTrax API.

WildTrax issues short-lived Auth0 access tokens in exchange for a username and
password. `AuthSession` caches the current token and answers whether it is
still usable; it never renews a token on its own. Once a token expires every
API call fails with `AuthenticationError` until the caller runs
``authenticate()`` again.

Example:
    >>> session = AuthSession(WildTraxConfig.from_env())
    >>> session.authenticate()
    >>> session.auth_header()
    {'Authorization': 'Bearer ...'}
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, Optional

import requests

from .config import WildTraxConfig
from .exceptions import AuthenticationError

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class AuthToken:
    """An access token and the moment it stops being accepted."""
    value: str
    expiry: datetime

    def expired(self, now: datetime) -> bool:
        return self.expiry <= now


def exchange_credentials(config: WildTraxConfig, session: Optional[requests.Session] = None) -> AuthToken:
    """Trade the configured username and password for a bearer token.

    Args:
        config: Supplies the credentials, token URL, client id and audience.
        session: Optional HTTP session; a bare ``requests.post`` is used otherwise.

    Returns:
        The new token with an absolute UTC expiry.

    Raises:
        AuthenticationError: Credentials are missing, the token endpoint
            rejected them, or the response carried no ``access_token``.
    """
    if not config.has_credentials:
        raise AuthenticationError(
            "Cannot find WildTrax credentials. Set WT_USERNAME and WT_PASSWORD."
        )

    post = session.post if session is not None else requests.post
    requested_at = utc_now()
    response = post(
        config.auth_url,
        data={
            "audience": config.audience,
            "grant_type": "password",
            "client_id": config.client_id,
            "username": config.username,
            "password": config.password,
        },
        headers={"Content-Type": "application/x-www-form-urlencoded"},
        timeout=config.timeout,
    )

    if response.status_code >= 400:
        detail = ""
        try:
            payload = response.json()
            if isinstance(payload, dict):
                detail = str(payload.get("error_description") or payload.get("error") or "")
        except ValueError:
            detail = ""
        if not detail:
            detail = (response.text or "").strip()
        raise AuthenticationError(f"Authentication failed [{response.status_code}]: {detail}")

    payload = response.json()
    token = payload.get("access_token")
    if not token:
        raise AuthenticationError("Authentication succeeded but no access_token was returned.")

    expires_in = float(payload.get("expires_in", 0))
    return AuthToken(value=token, expiry=requested_at + timedelta(seconds=expires_in))


class AuthSession:
    """Holds the current token and decides when re-authentication is needed.

    Attributes:
        config: Credentials and endpoints used by the default exchange.
        token: The cached `AuthToken`, or None before the first exchange.
    """

    def __init__(
        self,
        config: Optional[WildTraxConfig] = None,
        exchange: Optional[Callable[[], AuthToken]] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.config = config or WildTraxConfig.from_env()
        self._exchange = exchange or (lambda: exchange_credentials(self.config))
        self._clock = clock
        self.token: Optional[AuthToken] = None

    def is_expired(self) -> bool:
        """True when no token is held or its expiry is at or before now."""
        return self.token is None or self.token.expired(self._clock())

    def authenticate(self, force: bool = False) -> AuthToken:
        """Exchange credentials unless a valid token is already cached.

        Args:
            force: Re-authenticate even if the current token has not expired.
        """
        if force or self.is_expired():
            self.token = self._exchange()
            logger.info(f"Authenticated with WildTrax; token valid until {self.token.expiry.isoformat()}")
        return self.token

    def require_token(self) -> str:
        if self.is_expired():
            raise AuthenticationError("Please authenticate with authenticate() before calling the WildTrax API.")
        return self.token.value

    def auth_header(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.require_token()}"}
