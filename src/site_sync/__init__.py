"""Sync Notion databases into a static site's data files."""

from .generator import Generator
from .settings import Settings
from .site import Site

__all__ = ["Generator", "Settings", "Site"]
