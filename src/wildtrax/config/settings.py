"""
Configuration Management for the WildTrax client
================================================
Centralized configuration with environment variable support.
"""

import json
import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

DEFAULT_API_BASE = "https://www-api.wildtrax.ca"
DEFAULT_AUTH_URL = "https://abmi.auth0.com/oauth/token"
DEFAULT_CLIENT_ID = "qilBu8Mgtb12yOGyUeh6QTcS4ZiafgWc"
DEFAULT_AUDIENCE = "http://www.wildtrax.ca"
DEFAULT_DISCOVER_ORIGIN = "https://discover.wildtrax.ca"


@dataclass
class WildTraxConfig:
    """Connection settings and credentials for the WildTrax API."""
    username: str = ""
    password: str = ""
    api_base: str = DEFAULT_API_BASE
    auth_url: str = DEFAULT_AUTH_URL
    client_id: str = DEFAULT_CLIENT_ID
    audience: str = DEFAULT_AUDIENCE
    discover_origin: str = DEFAULT_DISCOVER_ORIGIN
    # None keeps the transport default (wait indefinitely)
    timeout: Optional[float] = None
    log_level: str = "INFO"

    @property
    def has_credentials(self) -> bool:
        return bool(self.username and self.password)

    @classmethod
    def from_env(cls) -> "WildTraxConfig":
        """Load configuration from environment variables."""
        timeout = os.environ.get("WT_TIMEOUT")
        return cls(
            username=os.environ.get("WT_USERNAME", ""),
            password=os.environ.get("WT_PASSWORD", ""),
            api_base=os.environ.get("WT_API_BASE", DEFAULT_API_BASE),
            auth_url=os.environ.get("WT_AUTH_URL", DEFAULT_AUTH_URL),
            client_id=os.environ.get("WT_CLIENT_ID", DEFAULT_CLIENT_ID),
            audience=os.environ.get("WT_AUDIENCE", DEFAULT_AUDIENCE),
            discover_origin=os.environ.get("WT_DISCOVER_ORIGIN", DEFAULT_DISCOVER_ORIGIN),
            timeout=float(timeout) if timeout else None,
            log_level=os.environ.get("WT_LOG_LEVEL", "INFO")
        )

    @classmethod
    def from_file(cls, config_path: Path) -> "WildTraxConfig":
        """Load configuration from YAML or JSON file."""
        config_path = Path(config_path)
        with open(config_path, 'r') as f:
            if config_path.suffix in ['.yaml', '.yml']:
                data = yaml.safe_load(f) or {}
            else:
                data = json.load(f)

        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: Dict[str, Any]) -> "WildTraxConfig":
        """Build configuration from dictionary."""
        timeout = data.get("timeout")
        return cls(
            username=data.get("username", ""),
            password=data.get("password", ""),
            api_base=data.get("api_base", DEFAULT_API_BASE),
            auth_url=data.get("auth_url", DEFAULT_AUTH_URL),
            client_id=data.get("client_id", DEFAULT_CLIENT_ID),
            audience=data.get("audience", DEFAULT_AUDIENCE),
            discover_origin=data.get("discover_origin", DEFAULT_DISCOVER_ORIGIN),
            timeout=float(timeout) if timeout is not None else None,
            log_level=data.get("log_level", "INFO")
        )

    def to_dict(self) -> Dict[str, Any]:
        """Export configuration to dictionary."""
        return {
            "username": self.username,
            "password": "***" if self.password else "",
            "api_base": self.api_base,
            "auth_url": self.auth_url,
            "client_id": self.client_id,
            "audience": self.audience,
            "discover_origin": self.discover_origin,
            "timeout": self.timeout,
            "log_level": self.log_level
        }

    def save(self, config_path: Path):
        """Save configuration to file. The password is never written."""
        config_path = Path(config_path)
        data = self.to_dict()
        data["password"] = ""

        with open(config_path, 'w') as f:
            if config_path.suffix in ['.yaml', '.yml']:
                yaml.dump(data, f, default_flow_style=False)
            else:
                json.dump(data, f, indent=2)


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None):
    """Configure logging for scripts that use the client."""
    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=handlers,
        force=True
    )
