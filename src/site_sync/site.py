"""Local view of a static site: its config, data and content collections."""

import pathlib
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

import yaml
from loguru import logger

CONFIG_FILE = "_config.yml"
DOCUMENT_SUFFIXES = (".md", ".markdown", ".html")
FRONT_MATTER_FENCE = "---"


@dataclass
class Document:
    """One content file of a collection."""

    id: str
    path: pathlib.Path
    data: Dict[str, Any] = field(default_factory=dict)


def read_front_matter(path: pathlib.Path) -> Dict[str, Any]:
    """Parse the YAML front matter block at the top of a content file."""
    lines = path.read_text(encoding="utf-8").splitlines()
    if not lines or lines[0].strip() != FRONT_MATTER_FENCE:
        return {}
    for end, line in enumerate(lines[1:], start=1):
        if line.strip() == FRONT_MATTER_FENCE:
            break
    else:
        return {}
    try:
        data = yaml.safe_load("\n".join(lines[1:end]))
    except yaml.YAMLError as e:
        logger.warning(f"[site] invalid front matter in {path}: {e}")
        return {}
    return data if isinstance(data, dict) else {}


class Site:
    """A site source directory.

    ``data`` is what the renderer receives; the generator fills one key per
    collection. Local collections live in ``_<name>/`` directories.
    """

    def __init__(
        self,
        source: Union[str, pathlib.Path],
        config: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.source = pathlib.Path(source)
        self.config = config if config is not None else self._load_config()
        self.data: Dict[str, Any] = {}
        self._collections: Dict[str, Optional[List[Document]]] = {}

    def _load_config(self) -> Dict[str, Any]:
        path = self.source / CONFIG_FILE
        if not path.exists():
            return {}
        return yaml.safe_load(path.read_text(encoding="utf-8")) or {}

    def collection(self, name: str) -> Optional[List[Document]]:
        """Documents of a local collection, or None when it does not exist."""
        if name not in self._collections:
            self._collections[name] = self._read_collection(name)
        return self._collections[name]

    def _read_collection(self, name: str) -> Optional[List[Document]]:
        directory = self.source / f"_{name}"
        if not directory.is_dir():
            return None
        return [
            Document(id=f"/{name}/{path.stem}", path=path, data=read_front_matter(path))
            for path in sorted(directory.iterdir())
            if path.suffix in DOCUMENT_SUFFIXES
        ]
