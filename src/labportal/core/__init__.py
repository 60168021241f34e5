"""Core configuration and utilities for the lab portal."""

from labportal.core.config import settings
from labportal.core.logging import setup_logging

__all__ = ["settings", "setup_logging"]
