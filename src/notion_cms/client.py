"""Base client for Notion API interactions."""

from typing import Any, Callable, Dict, List, Optional

import httpx
from loguru import logger

from .errors import APIError, ConfigurationError, NotFoundError, RateLimitError, UnauthorizedError


def collect_results(fetch: Callable[[Optional[str]], Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Call ``fetch`` with each ``next_cursor`` until ``has_more`` is false."""
    results: List[Dict[str, Any]] = []
    cursor = None
    while True:
        data = fetch(cursor)
        results.extend(data.get("results", []))

        # Handle pagination
        cursor = data.get("next_cursor")
        if not data.get("has_more") or not cursor:
            return results


class NotionClient:
    """Base client for Notion API interactions."""

    API_BASE = "https://api.notion.com/v1"
    API_VERSION = "2022-06-28"  # stable version
    PAGE_SIZE = 100

    def __init__(
        self,
        token: Optional[str],
        timeout: float = 30,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        """Initialize the client.

        Args:
            token: Notion integration token
            timeout: Request timeout in seconds
            transport: Optional httpx transport (tests pass a MockTransport)

        Raises:
            ConfigurationError: If the token is missing or empty.
        """
        if not token:
            raise ConfigurationError("Notion token is required")
        self.token = token
        self.timeout = timeout
        self.transport = transport

    def _headers(self) -> Dict[str, str]:
        """Get the headers required for Notion API requests."""
        return {
            "Authorization": f"Bearer {self.token}",
            "Notion-Version": self.API_VERSION,
            "Content-Type": "application/json",
        }

    def _url(self, path: str) -> str:
        """Construct a full URL from a path."""
        return f"{self.API_BASE}/{path.lstrip('/')}"

    def _request(
        self,
        method: str,
        path: str,
        json: Optional[Dict[str, Any]] = None,
        params: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
            try:
                r = client.request(
                    method, self._url(path), headers=self._headers(), json=json, params=params
                )
            except httpx.RequestError as e:
                raise APIError(f"Failed to call Notion API: {e}") from e
        self._raise_for_status(r)
        return r.json()

    def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """Make a GET request to the Notion API."""
        return self._request("GET", path, params=params)

    def post(self, path: str, json: Dict[str, Any]) -> Dict[str, Any]:
        """Make a POST request to the Notion API."""
        return self._request("POST", path, json=json)

    def query_database(
        self,
        database_id: str,
        filter: Optional[Dict[str, Any]] = None,
        sorts: Optional[List[Dict[str, Any]]] = None,
        page_size: int = PAGE_SIZE,
    ) -> Dict[str, Any]:
        """Query a database and return every page across all result pages.

        Returns:
            ``{"results": [page, ...]}``
        """
        path = f"databases/{database_id}/query"
        payload: Dict[str, Any] = {"page_size": page_size}
        if filter:
            payload["filter"] = filter
        if sorts:
            payload["sorts"] = sorts

        def fetch(cursor: Optional[str]) -> Dict[str, Any]:
            body = dict(payload, start_cursor=cursor) if cursor else payload
            return self.post(path, body)

        pages = collect_results(fetch)
        logger.debug(f"[notion] database {database_id} returned {len(pages)} pages")
        return {"results": pages}

    def get_page(self, page_id: str) -> Dict[str, Any]:
        """Retrieve a single page."""
        return self.get(f"pages/{page_id}")

    def get_page_content(self, page_id: str) -> Dict[str, Any]:
        """Retrieve every child block of a page."""
        path = f"blocks/{page_id}/children"

        def fetch(cursor: Optional[str]) -> Dict[str, Any]:
            params: Dict[str, Any] = {"page_size": self.PAGE_SIZE}
            if cursor:
                params["start_cursor"] = cursor
            return self.get(path, params=params)

        blocks = collect_results(fetch)
        logger.debug(f"[notion] fetched {len(blocks)} blocks for {page_id}")
        return {"results": blocks}

    def _raise_for_status(self, response: httpx.Response) -> None:
        """Map an HTTP error response onto the error taxonomy."""
        code = response.status_code
        if code < 400:
            return
        if code in (401, 403):
            raise UnauthorizedError(f"Invalid Notion token ({code} {response.reason_phrase})", code)
        if code == 404:
            raise NotFoundError("Database or page not found (404 Not Found)", code)
        if code == 429:
            raise RateLimitError("Rate limit exceeded (429 Too Many Requests)", code)
        detail = self._extract_error_detail(response)
        raise APIError(f"Notion API error: {code} {detail}", code)

    @staticmethod
    def _extract_error_detail(response: httpx.Response) -> str:
        """Extract error detail from a Notion API response."""
        try:
            return response.json().get("message") or response.reason_phrase
        except ValueError:
            return response.reason_phrase
