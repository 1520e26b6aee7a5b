"""wildtrax package

Client for WildTrax project reports and Data Discover summaries.
"""
# Keep version in one place (matches pyproject.toml)
__version__ = "0.1.0"

from .auth import AuthSession, AuthToken
from .client import WildTraxClient
from .config import WildTraxConfig, setup_logging
from .discovery import DiscoveryQueryEngine, validate_boundary
from .exceptions import (
    AuthenticationError,
    EmptyResultError,
    HTTPError,
    ParsingError,
    ValidationError,
    WildTraxError,
)
from .reports import ReportKind, Sensor
from .species import SpeciesRecord
from .tags import ClipType

__all__ = [
    "__version__",
    "AuthSession",
    "AuthToken",
    "WildTraxClient",
    "WildTraxConfig",
    "setup_logging",
    "DiscoveryQueryEngine",
    "validate_boundary",
    "AuthenticationError",
    "EmptyResultError",
    "HTTPError",
    "ParsingError",
    "ValidationError",
    "WildTraxError",
    "ReportKind",
    "Sensor",
    "SpeciesRecord",
    "ClipType",
]


def info() -> str:
    """Return a short informational string for quick manual checks.

    Example:
        >>> import wildtrax
        >>> wildtrax.info()
        'wildtrax 0.1.0'
    """
    return f"wildtrax {__version__}"
