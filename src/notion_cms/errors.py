"""Error taxonomy for the Notion CMS client and core."""

from typing import Optional


class NotionCMSError(Exception):
    """Base class for every error raised by this package."""


class ConfigurationError(NotionCMSError):
    """Missing or invalid configuration (e.g. no API token)."""


class APIError(NotionCMSError):
    """A Notion API call failed."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class UnauthorizedError(APIError):
    """The token was rejected or lacks access to the resource."""


class NotFoundError(APIError):
    """The database or page does not exist or is not shared."""


class RateLimitError(APIError):
    """Notion asked us to slow down."""
