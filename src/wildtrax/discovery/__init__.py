"""Data Discover searches: boundary validation and species queries."""

from .boundary import validate_boundary
from .engine import FULL_BOUNDS, DiscoveryQuery, DiscoveryQueryEngine

__all__ = ["validate_boundary", "FULL_BOUNDS", "DiscoveryQuery", "DiscoveryQueryEngine"]
