"""Configuration for the WildTrax client."""

from .settings import WildTraxConfig, setup_logging

__all__ = ["WildTraxConfig", "setup_logging"]
