"""Fetch configured Notion collections and write them as site data files."""

import datetime as dt
import os
import pathlib
from typing import Any, Callable, Dict, List, Mapping, Optional

import yaml
from loguru import logger
from pydantic import ConfigDict

from notion_cms import NotionClient, OrganizerConfig, organize
from notion_cms.config import as_instruction
from notion_cms.extractors import normalize_key
from notion_cms.organizers import data_present

from .settings import Settings
from .site import Document, Site

TOOL_NAME = "notion-site-data"
PLACEHOLDER_PREFIX = "example_"
FALSE_STRINGS = {"", "false", "no", "0"}


class CollectionConfig(OrganizerConfig):
    """One entry of ``notion.collections`` in the site config."""

    model_config = ConfigDict(extra="ignore")

    database_env: Optional[str] = None
    data_file: Optional[str] = None


def count_items(data: Any) -> int:
    if isinstance(data, dict):
        return sum(
            len(value["items"]) if isinstance(value, dict) else len(value)
            for value in data.values()
        )
    return len(data)


def _iso(value: Any) -> Any:
    if isinstance(value, (dt.date, dt.datetime)):
        return value.isoformat()
    return value


def _text(value: Any) -> List[Dict[str, str]]:
    return [{"plain_text": str(value)}]


def _number(value: Any) -> Any:
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return value
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return int(number) if number.is_integer() else number


def _checkbox(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() not in FALSE_STRINGS
    return bool(value)


def convert_value_to_notion_property(value: Any, prop_type: str) -> Dict[str, Any]:
    """Encode a local value the way Notion would return it for ``prop_type``."""
    if prop_type == "title":
        return {"type": "title", "title": _text(value)}
    if prop_type == "number":
        return {"type": "number", "number": _number(value)}
    if prop_type == "checkbox":
        return {"type": "checkbox", "checkbox": _checkbox(value)}
    if prop_type == "date":
        return {"type": "date", "date": {"start": str(_iso(value))}}
    if prop_type == "select":
        return {"type": "select", "select": {"name": str(value)}}
    if prop_type == "multi_select":
        values = value if isinstance(value, list) else [value]
        return {"type": "multi_select", "multi_select": [{"name": str(v)} for v in values]}
    if prop_type in ("url", "email", "phone_number"):
        return {"type": prop_type, prop_type: str(value)}
    return {"type": "rich_text", "rich_text": _text(value)}


def convert_doc_to_properties(
    data: Mapping[str, Any], instructions: List[Any]
) -> Dict[str, Dict[str, Any]]:
    """Rebuild a Notion ``properties`` mapping from front matter."""
    properties = {}
    for instruction in map(as_instruction, instructions):
        key = instruction.key or normalize_key(instruction.name)
        value = data.get(key)
        if value is None:
            value = data.get(instruction.name.lower())
        if value is None:
            value = data.get(instruction.name)
        if value is None:
            continue
        properties[instruction.name] = convert_value_to_notion_property(value, instruction.type)
    return properties


def _strip_header(content: str) -> str:
    lines = content.splitlines(keepends=True)
    while lines and lines[0].startswith("#"):
        lines.pop(0)
    if lines and not lines[0].strip():
        lines.pop(0)
    return "".join(lines)


class Generator:
    """Populate ``site.data`` from Notion, falling back to local content."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client_factory: Callable[[str], NotionClient] = NotionClient,
    ) -> None:
        self.settings = settings or Settings()
        self.client_factory = client_factory
        self.site: Optional[Site] = None
        self.client: Optional[NotionClient] = None

    @property
    def data_dir(self) -> pathlib.Path:
        return self.site.source / self.settings.data_dir

    def _collections(self) -> Dict[str, Any]:
        return (self.site.config.get("notion") or {}).get("collections") or {}

    def generate(self, site: Site) -> None:
        self.site = site
        notion_config = site.config.get("notion") or {}
        if notion_config.get("enabled") is False:
            logger.info("[generator] Plugin disabled in configuration")
            return

        if not self.settings.notion_token:
            logger.info("[generator] No NOTION_TOKEN found, using collections fallback")
            self.use_all_collections_fallback()
            return

        try:
            self.client = self.client_factory(self.settings.notion_token)
            for name, config in self._collections().items():
                self.fetch_collection_data(name, config)
            logger.info("[generator] All data fetched successfully")
        except Exception as e:
            logger.error(f"[generator] Error fetching data: {e}")
            logger.warning("[generator] Falling back to collections")
            self.use_all_collections_fallback()

    def _collection_config(self, name: str, config: Mapping[str, Any]) -> CollectionConfig:
        cfg = CollectionConfig.model_validate(dict(config or {}))
        if not cfg.data_file:
            cfg.data_file = f"{name}.yml"
        return cfg

    def fetch_collection_data(self, name: str, config: Mapping[str, Any]) -> None:
        env = (config or {}).get("database_env") or ""
        database_id = os.getenv(env, "") if env else ""
        if not database_id or database_id.startswith(PLACEHOLDER_PREFIX):
            logger.info(f"[generator] No {env} found, using fallback for {name}")
            self.apply_fallback(name, config)
            return

        try:
            cfg = self._collection_config(name, config)
            notion_data = self.client.query_database(database_id)
            if not data_present(notion_data.get("results")):
                logger.warning(f"[generator] No data found for {name}, using fallback")
                self.apply_fallback(name, config)
                return

            organized = organize(notion_data, cfg)
            self.site.data[pathlib.Path(cfg.data_file).stem] = organized
            logger.info(f"[generator] {name} fetched ({count_items(organized)} items)")
            self.create_data_file(organized, cfg.data_file, name)
        except Exception as e:
            logger.error(f"[generator] Error fetching {name}: {e}")
            self.apply_fallback(name, config)

    def use_all_collections_fallback(self) -> None:
        for name, config in self._collections().items():
            self.apply_fallback(name, config)

    def apply_fallback(self, name: str, config: Mapping[str, Any]) -> None:
        """Run the local fallback for one collection, logging any failure."""
        try:
            self.use_collection_fallback(name, config)
        except Exception as e:
            logger.error(f"[generator] Fallback failed for {name}: {e}")

    def _doc_to_page(self, doc: Document, instructions: List[Any]) -> Dict[str, Any]:
        return {
            "id": doc.id,
            "created_time": _iso(doc.data.get("date")),
            "last_edited_time": _iso(doc.data.get("last_modified")),
            "properties": convert_doc_to_properties(doc.data, instructions),
        }

    def use_collection_fallback(self, name: str, config: Mapping[str, Any]) -> None:
        """Build the collection's data from the local site content."""
        try:
            cfg = self._collection_config(name, config)
        except ValueError as e:
            logger.error(f"[generator] Invalid configuration for {name}: {e}")
            return

        docs = self.site.collection(name)
        organized: Any = []
        if docs:
            pages = [self._doc_to_page(doc, cfg.properties) for doc in docs]
            organized = organize({"results": pages}, cfg)

        self.site.data[pathlib.Path(cfg.data_file).stem] = organized
        logger.info(f"[generator] {name} fallback applied ({count_items(organized)} items)")
        self.create_data_file(organized, cfg.data_file, name)

    def create_data_file(self, data: Any, file_name: str, collection_name: str) -> None:
        """Write organized data as a commented YAML file, unless unchanged."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        path = self.data_dir / file_name

        body = yaml.safe_dump(
            data, allow_unicode=True, default_flow_style=False, sort_keys=False
        )
        if path.exists() and _strip_header(path.read_text(encoding="utf-8")) == body:
            logger.info(f"[generator] {collection_name} data unchanged, skipping")
            return

        timestamp = dt.datetime.now(dt.timezone.utc).isoformat(timespec="seconds")
        header = (
            f"# {collection_name.capitalize()} data imported from Notion\n"
            f"# Auto-generated by {TOOL_NAME}\n"
            f"# Last updated: {timestamp}\n"
            "\n"
        )
        path.write_text(header + body, encoding="utf-8")
        logger.info(f"[generator] {collection_name} written to {self.settings.data_dir}/{file_name}")
