"""Reshape a Notion page collection into list, category, group or tree data."""

from collections.abc import Hashable
from numbers import Number
from typing import Any, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

from loguru import logger

from .config import ConfigLike, PropertyInstruction, as_organizer_config
from .extractors import extract, extract_all
from .types import OrganizerType, Page

Item = Dict[str, Any]
Organized = Union[List[Item], Dict[Any, Any]]

OTHER = "Other"
DEFAULT_ORDER = 999

# Fixed (property, type) pairs read by the items_by_category organizer.
CATEGORY_FIELDS: Mapping[str, Tuple[str, str]] = {
    "name": ("Name", "title"),
    "level": ("Level", "number"),
    "years": ("Years", "number"),
    "featured": ("Featured", "checkbox"),
    "order": ("Order", "number"),
    "category": ("Category", "rollup"),
    "icon": ("Icon", "rollup"),
    "color": ("Color", "rollup"),
    "category_order": ("Category Order", "rollup"),
}


def organize(notion_data: Mapping[str, Any], config: Optional[ConfigLike] = None) -> Organized:
    """Organize a query result according to ``config``.

    Args:
        notion_data: ``{"results": [page, ...]}`` as returned by the client
        config: An OrganizerConfig or an equivalent mapping

    Returns:
        A list for ``simple_list`` and ``nested``, a dict keyed by category
        or group for ``items_by_category`` and ``grouped_by``

    Raises:
        pydantic.ValidationError: If the configuration is malformed.
    """
    cfg = as_organizer_config(config)
    pages: List[Page] = list(notion_data.get("results") or [])

    if cfg.organizer == OrganizerType.ITEMS_BY_CATEGORY.value:
        return organize_items_by_category(pages)
    if cfg.organizer == OrganizerType.GROUPED_BY.value:
        return organize_grouped_by(
            pages, cfg.properties, cfg.group_by, cfg.sort_by, cfg.sort_order
        )
    if cfg.organizer == OrganizerType.NESTED.value:
        return organize_nested(
            pages, cfg.properties, cfg.parent_field, cfg.sort_by, cfg.sort_order
        )
    if cfg.organizer != OrganizerType.SIMPLE_LIST.value:
        logger.warning(f"[organizer] unknown organizer {cfg.organizer!r}, using simple_list")
    return organize_simple_list(pages, cfg.properties, cfg.sort_by, cfg.sort_order)


def _project(page: Page, instructions: Sequence[PropertyInstruction]) -> Item:
    item = extract_all(page.get("properties") or {}, instructions)
    item["id"] = page.get("id")
    return item


def _has_title(item: Item) -> bool:
    return item.get("title") is not None and str(item["title"]) != ""


def organize_simple_list(
    pages: Iterable[Page],
    instructions: Sequence[PropertyInstruction],
    sort_by: Optional[str] = None,
    sort_order: str = "asc",
) -> List[Item]:
    """Project every page, drop untitled items and sort."""
    items = []
    for page in pages:
        item = _project(page, instructions)
        item["created_time"] = page.get("created_time")
        item["last_edited_time"] = page.get("last_edited_time")
        if _has_title(item):
            items.append(item)
    return sort_items(items, sort_by, sort_order)


def _as_int(value: Any) -> int:
    try:
        return int(float(value))
    except (TypeError, ValueError, OverflowError):
        return 0


def organize_items_by_category(pages: Iterable[Page]) -> Dict[Any, Item]:
    """Group skill-like pages under their rolled-up category.

    Reads the fixed CATEGORY_FIELDS instead of configured properties.
    Categories and their items are ordered by their numeric ``order``.
    """
    categories: Dict[Any, Item] = {}

    for page in pages:
        properties = page.get("properties") or {}
        values = {key: extract(properties, *source) for key, source in CATEGORY_FIELDS.items()}
        if not values["name"]:
            continue

        category = values["category"]
        if category is None:
            category = OTHER
        if category not in categories:
            order = values["category_order"]
            categories[category] = {
                "title": category,
                "category": category,
                "subcategory": None,
                "icon": values["icon"],
                "order": DEFAULT_ORDER if order is None else order,
                "items": [],
            }

        categories[category]["items"].append(
            {
                "name": values["name"],
                "level": values["level"],
                "years": values["years"],
                "description": None,
                "icon": None,
                "color": values["color"],
                "featured": values["featured"],
                "order": DEFAULT_ORDER if values["order"] is None else values["order"],
                "id": page.get("id"),
            }
        )

    ordered = sorted(categories.items(), key=lambda entry: _as_int(entry[1]["order"]))
    for _, data in ordered:
        data["items"].sort(key=lambda item: _as_int(item["order"]))
    return dict(ordered)


def _reference(value: Any, fields: Sequence[str]) -> Any:
    """Reduce a list or object field to a scalar usable as a dict key."""
    if isinstance(value, list):
        value = value[0] if value else None
    if isinstance(value, dict):
        # dates, people and files are not hashable; use one of their labels
        value = next((value[f] for f in fields if value.get(f)), None)
    return value if isinstance(value, Hashable) else None


def _group_key(value: Any) -> Any:
    key = _reference(value, ("start", "name", "id"))
    return OTHER if key is None else key


def organize_grouped_by(
    pages: Iterable[Page],
    instructions: Sequence[PropertyInstruction],
    group_by: str,
    sort_by: Optional[str] = None,
    sort_order: str = "asc",
) -> Dict[Any, List[Item]]:
    """Bucket titled items by ``group_by``; groups keep first-seen order."""
    grouped: Dict[Any, List[Item]] = {}
    for page in pages:
        item = _project(page, instructions)
        if not _has_title(item):
            continue
        grouped.setdefault(_group_key(item.get(group_by)), []).append(item)

    return {key: sort_items(items, sort_by, sort_order) for key, items in grouped.items()}


def _is_ancestor(candidate: str, node_id: str, parent_of: Mapping[str, str]) -> bool:
    current: Optional[str] = node_id
    while current is not None:
        if current == candidate:
            return True
        current = parent_of.get(current)
    return False


def organize_nested(
    pages: Iterable[Page],
    instructions: Sequence[PropertyInstruction],
    parent_field: str = "parent_id",
    sort_by: Optional[str] = None,
    sort_order: str = "asc",
) -> List[Item]:
    """Build a forest from a parent reference field.

    All items are indexed by id before any child is linked, so parents may
    appear after their children. Unresolved or non-scalar parents make
    roots, and so does any link that would close a cycle.
    """
    items: Dict[str, Item] = {}
    for page in pages:
        item = _project(page, instructions)
        item["children"] = []
        items[item["id"]] = item

    roots: List[Item] = []
    parent_of: Dict[str, str] = {}
    for item_id, item in items.items():
        parent_id = _reference(item.get(parent_field), ("id", "start"))
        if parent_id is None or parent_id not in items:
            roots.append(item)
        elif _is_ancestor(item_id, parent_id, parent_of):
            logger.debug(f"[organizer] {item_id} -> {parent_id} would form a cycle, kept as root")
            roots.append(item)
        else:
            parent_of[item_id] = parent_id
            items[parent_id]["children"].append(item)

    return sort_nested(roots, sort_by, sort_order)


def _sort_key(value: Any, descending: bool) -> Tuple[int, Any]:
    # Nulls rank past every value in the direction of travel, so once a
    # descending sort is reversed they still come last.
    if value is None:
        return (-1 if descending else 3, 0)
    if isinstance(value, Number) and not isinstance(value, bool):
        return (1, value)
    if isinstance(value, str):
        return (2, value.lower())
    if isinstance(value, dict):
        return (2, value.get("start") or "")
    return (2, str(value).lower())


def sort_items(items: List[Item], sort_by: Optional[str], sort_order: str = "asc") -> List[Item]:
    """Sort items by one field.

    Strings sort case-insensitively, date objects by their start and
    numbers numerically ahead of text. Items without the field always come
    last. A missing ``sort_by`` returns the items in their original order.
    """
    if not sort_by:
        return items
    descending = sort_order == "desc"
    ordered = sorted(items, key=lambda item: _sort_key(item.get(sort_by), descending))
    if descending:
        ordered.reverse()
    return ordered


def sort_nested(items: List[Item], sort_by: Optional[str], sort_order: str = "asc") -> List[Item]:
    """Sort a forest level by level."""
    ordered = sort_items(items, sort_by, sort_order)
    for item in ordered:
        if item.get("children"):
            item["children"] = sort_nested(item["children"], sort_by, sort_order)
    return ordered


def data_present(data: Any) -> bool:
    """True when organized data holds at least one entry."""
    return bool(data)
