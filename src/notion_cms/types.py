"""Type definitions and constants for Notion API."""

from enum import Enum
from typing import Any, Dict, List, Optional, TypedDict


class PropertyType(str, Enum):
    """Property types an extraction instruction may declare."""

    TITLE = "title"
    RICH_TEXT = "rich_text"
    NUMBER = "number"
    CHECKBOX = "checkbox"
    DATE = "date"
    SELECT = "select"
    MULTI_SELECT = "multi_select"
    URL = "url"
    EMAIL = "email"
    PHONE_NUMBER = "phone_number"
    ROLLUP = "rollup"
    FORMULA = "formula"
    FORMULA_ARRAY = "formula_array"
    RELATION = "relation"
    PEOPLE = "people"
    FILES = "files"
    CREATED_TIME = "created_time"
    LAST_EDITED_TIME = "last_edited_time"
    STATUS = "status"


class OrganizerType(str, Enum):
    """Output layouts produced by the organizers."""

    SIMPLE_LIST = "simple_list"
    ITEMS_BY_CATEGORY = "items_by_category"
    GROUPED_BY = "grouped_by"
    NESTED = "nested"


class RichText(TypedDict, total=False):
    """One text run of a title or rich_text value."""

    plain_text: str
    href: Optional[str]


class DateValue(TypedDict, total=False):
    """Payload of a date property (and of date rollups/formulas)."""

    start: str
    end: Optional[str]
    time_zone: Optional[str]


class PropertyValue(TypedDict, total=False):
    """A Notion property value.

    The ``type`` key names which of the other keys carries the payload.
    """

    id: str
    type: str
    title: List[RichText]
    rich_text: List[RichText]
    number: Optional[float]
    checkbox: bool
    date: Optional[DateValue]
    select: Optional[Dict[str, Any]]
    multi_select: List[Dict[str, Any]]
    status: Optional[Dict[str, Any]]
    url: Optional[str]
    email: Optional[str]
    phone_number: Optional[str]
    rollup: Dict[str, Any]
    formula: Dict[str, Any]
    relation: List[Dict[str, Any]]
    people: List[Dict[str, Any]]
    files: List[Dict[str, Any]]
    created_time: str
    last_edited_time: str


class Page(TypedDict, total=False):
    """A page object as returned by a database query."""

    id: str
    created_time: str
    last_edited_time: str
    properties: Dict[str, PropertyValue]
