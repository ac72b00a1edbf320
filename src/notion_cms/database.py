"""Notion Database operations."""

from typing import Any, Dict, List, Optional

from .client import NotionClient
from .types import Page


class NotionDatabase:
    """A Notion database bound to a client."""

    def __init__(self, client: NotionClient, database_id: str) -> None:
        """Initialize a database.

        Args:
            client: The NotionClient instance to use for API calls
            database_id: The ID of the database
        """
        self.client = client
        self.database_id = database_id

    def query(
        self,
        filter: Optional[Dict[str, Any]] = None,
        sorts: Optional[List[Dict[str, Any]]] = None,
        page_size: int = NotionClient.PAGE_SIZE,
    ) -> List[Page]:
        """Query the database, following the cursor until exhausted.

        Args:
            filter: Optional Notion filter object
            sorts: Optional list of Notion sort objects
            page_size: Number of results per request

        Returns:
            Every page matched by the query, in API order
        """
        data = self.client.query_database(self.database_id, filter, sorts, page_size)
        return data["results"]
