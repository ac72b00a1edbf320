"""Map Notion property values onto plain Python values.

Every extractor is total: a missing property, a stored type that differs
from the declared one, or a null or malformed payload yields the declared
type's empty value (``None``, ``False`` for checkboxes, ``[]`` for list
types) instead of raising.
"""

import re
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from loguru import logger

from .config import InstructionLike, as_instruction
from .types import PropertyType, PropertyValue, RichText

Extractor = Callable[[PropertyValue], Any]

# Skill-level select labels understood by the number extractor.
SELECT_NUMBER_VALUES: Mapping[str, int] = {
    "Expert": 90,
    "Avancé": 90,
    "Advanced": 90,
    "Intermédiaire": 70,
    "Intermediate": 70,
    "Débutant": 50,
    "Beginner": 50,
}

FORMULA_STRING_DELIMITER = "- "

LIST_TYPES = {
    PropertyType.MULTI_SELECT,
    PropertyType.FORMULA_ARRAY,
    PropertyType.RELATION,
    PropertyType.PEOPLE,
    PropertyType.FILES,
}


def normalize_key(name: str) -> str:
    """Lowercase a property name and join its words with underscores."""
    return re.sub(r"\s+", "_", name.lower())


def extract_plain_text(prop: PropertyValue) -> str:
    """Extract plain text from a url, title or rich_text property."""
    ptype = prop.get("type")
    if ptype == "url":
        return prop.get("url") or ""
    if ptype in ("title", "rich_text"):
        return _join_text(prop.get(ptype)).strip()
    return ""


def _mappings(value: Any) -> List[Mapping[str, Any]]:
    """The mapping entries of a payload list; anything else is dropped."""
    if not isinstance(value, list):
        return []
    return [entry for entry in value if isinstance(entry, Mapping)]


def _field(value: Any, name: str) -> Any:
    return value.get(name) if isinstance(value, Mapping) else None


def _join_text(runs: Optional[Iterable[RichText]]) -> str:
    return "".join(str(run.get("plain_text") or "") for run in _mappings(runs))


def _name_of(option: Optional[Mapping[str, Any]]) -> Optional[str]:
    return _field(option, "name")


def _start_of(date: Optional[Mapping[str, Any]]) -> Optional[str]:
    return _field(date, "start")


def extract_title(prop: PropertyValue) -> Optional[str]:
    if prop.get("type") != "title":
        return None
    return _join_text(prop.get("title"))


def extract_rich_text(prop: PropertyValue) -> Optional[str]:
    runs = _mappings(prop.get("rich_text"))
    if prop.get("type") != "rich_text" or not runs:
        return None
    return _join_text(runs)


def convert_select_to_number(label: Optional[str]) -> Optional[int]:
    """Translate a skill-level label into a score; unknown labels give None."""
    if not isinstance(label, str):
        return None
    return SELECT_NUMBER_VALUES.get(label)


def extract_number(prop: PropertyValue) -> Optional[float]:
    ptype = prop.get("type")
    if ptype == "number":
        return prop.get("number")
    if ptype == "select":
        return convert_select_to_number(_name_of(prop.get("select")))
    return None


def extract_checkbox(prop: PropertyValue) -> bool:
    if prop.get("type") != "checkbox":
        return False
    return bool(prop.get("checkbox"))


def extract_date(prop: PropertyValue) -> Optional[Dict[str, str]]:
    date = prop.get("date")
    if prop.get("type") != "date" or not isinstance(date, Mapping) or not date:
        return None
    fields = ("start", "end", "time_zone")
    return {field: date[field] for field in fields if date.get(field) is not None}


def extract_select(prop: PropertyValue) -> Optional[str]:
    if prop.get("type") != "select":
        return None
    return _name_of(prop.get("select"))


def extract_multi_select(prop: PropertyValue) -> List[str]:
    if prop.get("type") != "multi_select":
        return []
    return [option.get("name") for option in _mappings(prop.get("multi_select"))]


def extract_url(prop: PropertyValue) -> Optional[str]:
    ptype = prop.get("type")
    if ptype == "url":
        return prop.get("url")
    # URL columns are sometimes typed as text in Notion
    if ptype == "rich_text":
        return extract_rich_text(prop)
    return None


def _exact(ptype: str) -> Extractor:
    """Build an extractor that passes a same-named payload field through."""

    def extractor(prop: PropertyValue) -> Any:
        if prop.get("type") != ptype:
            return None
        return prop.get(ptype)

    extractor.__name__ = f"extract_{ptype}"
    return extractor


extract_email = _exact("email")
extract_phone_number = _exact("phone_number")
extract_created_time = _exact("created_time")
extract_last_edited_time = _exact("last_edited_time")


def extract_status(prop: PropertyValue) -> Optional[str]:
    if prop.get("type") != "status":
        return None
    return _name_of(prop.get("status"))


def _rollup_item_value(item: Mapping[str, Any]) -> Any:
    itype = item.get("type")
    if itype in ("title", "rich_text"):
        return _join_text(item.get(itype))
    if itype == "select":
        return _name_of(item.get("select"))
    if itype == "number":
        return item.get("number")
    return None


def extract_rollup_array(items: Optional[List[Mapping[str, Any]]]) -> Any:
    """Return the first non-null value found in a rollup array."""
    for item in _mappings(items):
        value = _rollup_item_value(item)
        if value is not None:
            return value
    return None


def extract_rollup(prop: PropertyValue) -> Any:
    rollup = prop.get("rollup")
    if prop.get("type") != "rollup" or not isinstance(rollup, Mapping):
        return None
    rtype = rollup.get("type")
    if rtype == "array":
        return extract_rollup_array(rollup.get("array"))
    if rtype == "number":
        return rollup.get("number")
    if rtype == "date":
        return _start_of(rollup.get("date"))
    return None


def extract_formula(prop: PropertyValue) -> Any:
    formula = prop.get("formula")
    if prop.get("type") != "formula" or not isinstance(formula, Mapping):
        return None
    ftype = formula.get("type")
    if ftype in ("string", "number", "boolean"):
        return formula.get(ftype)
    if ftype == "date":
        return _start_of(formula.get("date"))
    return None


def parse_formula_string(value: Optional[str]) -> List[str]:
    """Split a ``"- a- b"`` style formula string into cleaned items."""
    if not isinstance(value, str):
        return []
    items = []
    for segment in value.split(FORMULA_STRING_DELIMITER):
        cleaned = segment.strip().strip(".")
        if cleaned:
            items.append(cleaned)
    return items


def _formula_item_value(item: Mapping[str, Any]) -> Optional[str]:
    itype = item.get("type")
    if itype == "string":
        return item.get("string")
    if itype == "rich_text":
        runs = item.get("rich_text")
        return None if runs is None else _join_text(runs)
    return None


def extract_formula_array(prop: PropertyValue) -> List[str]:
    formula = prop.get("formula")
    if prop.get("type") != "formula" or not isinstance(formula, Mapping):
        return []
    ftype = formula.get("type")
    if ftype == "array":
        values = (_formula_item_value(item) for item in _mappings(formula.get("array")))
        return [value for value in values if value is not None]
    if ftype == "string":
        return parse_formula_string(formula.get("string"))
    return []


def extract_relation(prop: PropertyValue) -> List[str]:
    if prop.get("type") != "relation":
        return []
    return [ref.get("id") for ref in _mappings(prop.get("relation"))]


def _compact(mapping: Dict[str, Any]) -> Dict[str, Any]:
    return {key: value for key, value in mapping.items() if value is not None}


def extract_people(prop: PropertyValue) -> List[Dict[str, Any]]:
    if prop.get("type") != "people":
        return []
    return [
        _compact(
            {
                "id": person.get("id"),
                "name": person.get("name"),
                "email": _field(person.get("person"), "email"),
                "avatar_url": person.get("avatar_url"),
            }
        )
        for person in _mappings(prop.get("people"))
    ]


def extract_files(prop: PropertyValue) -> List[Dict[str, Any]]:
    if prop.get("type") != "files":
        return []
    files = []
    for file in _mappings(prop.get("files")):
        url = _field(file.get("file"), "url") or _field(file.get("external"), "url")
        files.append(_compact({"name": file.get("name"), "url": url, "type": file.get("type")}))
    return files


EXTRACTORS: Mapping[PropertyType, Extractor] = {
    PropertyType.TITLE: extract_title,
    PropertyType.RICH_TEXT: extract_rich_text,
    PropertyType.NUMBER: extract_number,
    PropertyType.CHECKBOX: extract_checkbox,
    PropertyType.DATE: extract_date,
    PropertyType.SELECT: extract_select,
    PropertyType.MULTI_SELECT: extract_multi_select,
    PropertyType.URL: extract_url,
    PropertyType.EMAIL: extract_email,
    PropertyType.PHONE_NUMBER: extract_phone_number,
    PropertyType.ROLLUP: extract_rollup,
    PropertyType.FORMULA: extract_formula,
    PropertyType.FORMULA_ARRAY: extract_formula_array,
    PropertyType.RELATION: extract_relation,
    PropertyType.PEOPLE: extract_people,
    PropertyType.FILES: extract_files,
    PropertyType.CREATED_TIME: extract_created_time,
    PropertyType.LAST_EDITED_TIME: extract_last_edited_time,
    PropertyType.STATUS: extract_status,
}


def empty_value(ptype: PropertyType) -> Any:
    """The value an extractor yields for a mismatched or malformed payload."""
    if ptype == PropertyType.CHECKBOX:
        return False
    if ptype in LIST_TYPES:
        return []
    return None


def extract(properties: Mapping[str, PropertyValue], name: str, declared_type: str) -> Any:
    """Extract one property as its declared type.

    Args:
        properties: The ``properties`` mapping of a Notion page
        name: Property name to look up
        declared_type: How to read the value (a PropertyType value)

    Returns:
        The extracted value, or None when the property is absent or the
        declared type is unknown
    """
    prop = properties.get(name) if isinstance(properties, Mapping) else None
    if not isinstance(prop, Mapping):
        return None
    try:
        ptype = PropertyType(declared_type)
    except ValueError:
        logger.debug(f"[notion] unknown property type {declared_type!r} for {name!r}")
        return None
    try:
        return EXTRACTORS[ptype](prop)
    except (AttributeError, TypeError, ValueError) as e:
        logger.debug(f"[notion] malformed {ptype.value} payload for {name!r}: {e}")
        return empty_value(ptype)


def extract_all(
    properties: Mapping[str, PropertyValue], instructions: Iterable[InstructionLike]
) -> Dict[str, Any]:
    """Project a page's properties through a list of instructions.

    Each value is stored under the instruction's ``key`` or, by default,
    the normalized property name. A ``name`` value stands in for a missing
    ``title``.
    """
    item: Dict[str, Any] = {}
    for instruction in map(as_instruction, instructions):
        key = instruction.key or normalize_key(instruction.name)
        item[key] = extract(properties, instruction.name, instruction.type)

    if item.get("title") is None and "name" in item:
        item["title"] = item["name"]
    return item
