"""
Core module for cross-cutting concerns.

This module provides:
- Structured logging configuration
- Coercion utilities for loosely-typed documents
"""

from core.logging import configure_from_settings, configure_logging, get_logger
from core.utils import as_list, parse_timestamp, safe_get, to_float

__all__ = [
    "configure_logging",
    "configure_from_settings",
    "get_logger",
    "as_list",
    "parse_timestamp",
    "safe_get",
    "to_float",
]
