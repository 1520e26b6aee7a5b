"""Exception hierarchy for the WildTrax client.

Every error raised on purpose by this package derives from `WildTraxError`,
so callers can catch the whole family in one place. Network failures below
the HTTP layer (DNS, refused connections) surface as the underlying
``requests.RequestException``.
"""

from typing import Optional


class WildTraxError(Exception):
    """Base class for all WildTrax client errors."""


class AuthenticationError(WildTraxError):
    """Missing or expired token, or a failed credential exchange."""


class ValidationError(WildTraxError, ValueError):
    """Invalid caller input, raised before any request is sent."""


class HTTPError(WildTraxError):
    """A WildTrax endpoint answered with an error status.

    Attributes:
        status_code: HTTP status returned by the server.
        message: Server-provided message, or the raw body when none was given.
        url: Requested URL, when known.
    """

    def __init__(self, status_code: int, message: str = "", url: Optional[str] = None):
        self.status_code = status_code
        self.message = message
        self.url = url
        text = f"Request failed [{status_code}]"
        if url:
            text += f" for {url}"
        if message:
            text += f": {message}"
        super().__init__(text)

    @classmethod
    def from_response(cls, response) -> "HTTPError":
        """Build the error from a ``requests.Response``, preferring its JSON ``message``."""
        message = ""
        try:
            payload = response.json()
            if isinstance(payload, dict):
                message = str(payload.get("message") or payload.get("error") or "")
        except ValueError:
            pass
        if not message:
            message = (response.text or "").strip()
        return cls(response.status_code, message, getattr(response, "url", None))


class ParsingError(WildTraxError):
    """An export archive or one of its tables could not be read."""

    def __init__(self, message: str, filename: Optional[str] = None):
        self.filename = filename
        super().__init__(message)


class EmptyResultError(WildTraxError):
    """A Data Discover search returned no rows for any requested species."""
