"""Notion API client and the property extraction / organization core."""

from .client import NotionClient
from .config import OrganizerConfig, PropertyInstruction
from .database import NotionDatabase
from .errors import (
    APIError,
    ConfigurationError,
    NotFoundError,
    NotionCMSError,
    RateLimitError,
    UnauthorizedError,
)
from .extractors import extract, extract_all, normalize_key
from .organizers import organize, sort_items
from .page import NotionPage
from .types import OrganizerType, PropertyType

__version__ = "0.1.0"

__all__ = [
    "APIError",
    "ConfigurationError",
    "NotFoundError",
    "NotionCMSError",
    "NotionClient",
    "NotionDatabase",
    "NotionPage",
    "OrganizerConfig",
    "OrganizerType",
    "PropertyInstruction",
    "PropertyType",
    "RateLimitError",
    "UnauthorizedError",
    "extract",
    "extract_all",
    "normalize_key",
    "organize",
    "sort_items",
]
