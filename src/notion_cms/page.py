"""Notion Page operations."""

from typing import Any, Dict, List, Optional

from .client import NotionClient
from .extractors import extract_plain_text
from .types import PropertyValue


class NotionPage:
    """A Notion page with its properties and content."""

    def __init__(self, client: NotionClient, page_id: str) -> None:
        """Initialize a page.

        Args:
            client: The NotionClient instance to use for API calls
            page_id: The ID of the page
        """
        self.client = client
        self.id = page_id
        self._data: Optional[Dict[str, Any]] = None

    def refresh(self) -> None:
        """Refresh the page data from Notion."""
        self._data = self.client.get_page(self.id)

    @property
    def data(self) -> Dict[str, Any]:
        """Get the page data, fetching it if not already loaded."""
        if self._data is None:
            self.refresh()
        return self._data or {}

    def get_title(self) -> str:
        """Extract the page title from properties."""
        props = self.data.get("properties", {})
        for prop in props.values():
            if prop.get("type") == "title":
                return extract_plain_text(prop)
        return ""

    def get_property(self, name: str) -> Optional[PropertyValue]:
        """Get a property by name."""
        return self.data.get("properties", {}).get(name)

    def blocks(self) -> List[Dict[str, Any]]:
        """Fetch the page body as a flat list of top-level blocks."""
        return self.client.get_page_content(self.id)["results"]
