# src/module_store.py
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, List, Optional

from formschema import Module
from formstate.protocol import ModuleRepository
from schema_export import ModuleCodec, SchemaFormatError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SaveResult:
    success: bool
    saved_id: Optional[int] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, module_id: int) -> "SaveResult":
        return cls(True, module_id, None)

    @classmethod
    def fail(cls, error: str) -> "SaveResult":
        return cls(False, None, error)


@dataclass(frozen=True)
class ModuleSummary:
    id: int
    title_en: str
    version: float
    total_fields: int
    date_updated: Optional[datetime] = None


def _summary(module: Module) -> ModuleSummary:
    return ModuleSummary(module.id, module.title_en, module.version, len(module.fields), module.date_updated)


def _stamp(module: Module, module_id: int) -> Module:
    now = datetime.now(timezone.utc)
    return replace(module, id=module_id, date_created=module.date_created or now, date_updated=now)


class InMemoryModuleRepository(ModuleRepository):
    """Dict-backed store for tests and scripted sessions."""

    def __init__(self, modules: Optional[List[Module]] = None):
        self._modules: Dict[int, Module] = {m.id: m for m in (modules or [])}

    def load(self, module_id: int) -> Optional[Module]:
        module = self._modules.get(module_id)
        if module is None:
            logger.warning("Module %s not found", module_id)
        return module

    def save(self, module: Module) -> SaveResult:
        module_id = module.id if module.id > 0 else self.next_id()
        self._modules[module_id] = _stamp(module, module_id)
        logger.info("Module %s saved (%d fields)", module_id, len(module.fields))
        return SaveResult.ok(module_id)

    def list_summaries(self) -> List[ModuleSummary]:
        return [_summary(m) for _, m in sorted(self._modules.items())]

    def next_id(self) -> int:
        return max(self._modules, default=0) + 1

    def delete(self, module_id: int) -> bool:
        return self._modules.pop(module_id, None) is not None


class JsonDirectoryRepository(ModuleRepository):
    """One '<id>.json' document per module in a directory."""

    def __init__(self, root: str | Path, codec: Optional[ModuleCodec] = None, pretty: bool = True):
        self.root = Path(root)
        self.codec = codec or ModuleCodec()
        self.pretty = pretty

    def _path(self, module_id: int) -> Path:
        return self.root / f"{module_id}.json"

    def load(self, module_id: int) -> Optional[Module]:
        path = self._path(module_id)
        if not path.exists():
            logger.warning("Module %s not found in %s", module_id, self.root)
            return None
        module = self.codec.loads(path.read_text(encoding="utf-8"))
        logger.info("Module %s loaded with %d fields", module_id, len(module.fields))
        return module

    def save(self, module: Module) -> SaveResult:
        module_id = module.id if module.id > 0 else self.next_id()
        try:
            self.root.mkdir(parents=True, exist_ok=True)
            text = self.codec.dumps(_stamp(module, module_id), pretty=self.pretty)
            self._path(module_id).write_text(text, encoding="utf-8")
        except OSError as exc:
            logger.error("Error saving module %s: %s", module_id, exc)
            return SaveResult.fail(f"Error: {exc}")
        logger.info("Module %s saved to %s", module_id, self.root)
        return SaveResult.ok(module_id)

    def list_summaries(self) -> List[ModuleSummary]:
        out: List[ModuleSummary] = []
        for path in sorted(self._documents()):
            try:
                out.append(_summary(self.codec.loads(path.read_text(encoding="utf-8"))))
            except SchemaFormatError as exc:
                logger.warning("Skipping unreadable module document %s: %s", path, exc)
        return sorted(out, key=lambda s: s.id)

    def next_id(self) -> int:
        ids = [int(p.stem) for p in self._documents()]
        return max(ids, default=0) + 1

    def delete(self, module_id: int) -> bool:
        path = self._path(module_id)
        if not path.exists():
            return False
        path.unlink()
        logger.info("Module %s deleted", module_id)
        return True

    def _documents(self) -> List[Path]:
        if not self.root.is_dir():
            return []
        return [p for p in self.root.glob("*.json") if p.stem.isdigit()]
