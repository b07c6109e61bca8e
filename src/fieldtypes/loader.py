from __future__ import annotations
from typing import Any, Dict, Iterator, List, Optional
from pathlib import Path
import logging

import yaml

logger = logging.getLogger(__name__)

PLUGIN_SUFFIXES = (".yaml", ".yml")


def load_type_specs(path: Optional[str | Path]) -> Dict[str, Dict[str, Any]]:
    """
    Read field type definitions from every YAML file in a directory.

    A file holds either one definition or a `types:` list of them; each
    definition needs a `field_type`. Files are read in name order and a
    later definition of the same type replaces an earlier one.
    """
    if not path:
        return {}
    root = Path(path)
    if not root.is_dir():
        logger.warning("Field type plugin directory not found: %s", root)
        return {}

    specs: Dict[str, Dict[str, Any]] = {}
    for source in _plugin_files(root):
        doc = yaml.safe_load(source.read_text(encoding="utf-8"))
        for spec in _definitions(doc, source):
            ftype = str(spec["field_type"])
            if ftype in specs:
                logger.info("%s redefines field type '%s'", source.name, ftype)
            specs[ftype] = spec
    logger.debug("Loaded %d field type definitions from %s", len(specs), root)
    return specs


def _plugin_files(root: Path) -> List[Path]:
    return sorted(p for p in root.iterdir() if p.is_file() and p.suffix.lower() in PLUGIN_SUFFIXES)


def _definitions(doc: Any, source: Path) -> Iterator[Dict[str, Any]]:
    if doc is None:
        return
    if not isinstance(doc, dict):
        raise ValueError(f"{source}: expected a mapping at top level")
    entries = doc["types"] if "types" in doc else [doc]
    if not isinstance(entries, list):
        raise ValueError(f"{source}: 'types' must be a list")
    for i, entry in enumerate(entries):
        if not isinstance(entry, dict):
            raise ValueError(f"{source}: definition #{i + 1} is not a mapping")
        if not entry.get("field_type"):
            raise ValueError(f"{source}: definition #{i + 1} has no 'field_type'")
        yield entry
