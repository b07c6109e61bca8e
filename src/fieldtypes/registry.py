from __future__ import annotations
from typing import Dict, Any, List, Optional, Iterable
from pathlib import Path
import logging

from formstate.protocol import TypeRegistryProtocol
from .specs import BUILTIN_TYPES
from .loader import load_type_specs

logger = logging.getLogger(__name__)


def _lc(x: Any) -> str:
    return str(x).strip().lower()


class FieldTypeRegistry(TypeRegistryProtocol):
    """
    Concrete registry with:
      - Built-in palette types
      - Optional YAML plugin overrides/extensions
      - Optional extra_specs dict injection (for tests)
    """

    def __init__(self, plugins_dir: Optional[str | Path] = None, extra_specs: Optional[Dict[str, Dict[str, Any]]] = None):
        self._specs: Dict[str, Dict[str, Any]] = {}
        self._aliases: Dict[str, str] = {}

        # 1) built-ins
        for ftype, spec in BUILTIN_TYPES.items():
            self._register_spec(ftype, spec)

        # 2) caller-provided extra specs (override/extend)
        if extra_specs:
            for ftype, spec in extra_specs.items():
                self._register_spec(ftype, spec)

        # 3) YAML plugins (override/extend)
        for ftype, spec in load_type_specs(plugins_dir).items():
            self._register_spec(ftype, spec)

        self._rebuild_alias_index()

    # ----- Protocol methods -----

    def default_label(self, field_type: str) -> str:
        canonical = self.resolve(field_type)
        if canonical is None:
            return f"New {field_type}"
        return self._specs[canonical]["label"]

    def get_spec(self, field_type: str) -> Dict[str, Any]:
        canonical = self.resolve(field_type)
        return self._specs.get(canonical, {}) if canonical else {}

    def is_known(self, field_type: str) -> bool:
        return self.resolve(field_type) is not None

    # ----- lookups -----

    def resolve(self, token: str) -> Optional[str]:
        """Case-insensitive type tag / alias / label -> canonical field_type."""
        if not token:
            return None
        return self._aliases.get(_lc(token))

    def requires_options(self, field_type: str) -> bool:
        return bool(self.get_spec(field_type).get("requires_options"))

    def has_label(self, field_type: str) -> bool:
        return bool(self.get_spec(field_type).get("has_label", True))

    def is_container(self, field_type: str) -> bool:
        return bool(self.get_spec(field_type).get("container"))

    def icon(self, field_type: str) -> str:
        return self.get_spec(field_type).get("icon") or "bi-question-circle"

    def field_types(self) -> List[str]:
        return list(self._specs.keys())

    def by_category(self) -> Dict[str, List[str]]:
        """Palette grouping, categories in first-seen order."""
        groups: Dict[str, List[str]] = {}
        for ftype, spec in self._specs.items():
            groups.setdefault(spec["category"], []).append(ftype)
        return groups

    # ----- internal plumbing -----

    def _register_spec(self, field_type: str, spec: Dict[str, Any]) -> None:
        spec = dict(spec)
        spec.pop("field_type", None)
        spec.setdefault("label", field_type)
        spec.setdefault("icon", "bi-question-circle")
        spec.setdefault("category", "Other")
        spec.setdefault("requires_type_config", False)
        spec.setdefault("requires_options", False)
        spec.setdefault("has_label", True)
        spec.setdefault("container", False)
        spec.setdefault("aliases", [])

        if not isinstance(spec["aliases"], list):
            raise ValueError(f"Spec for {field_type}: 'aliases' must be a list")
        if not str(spec["label"]).strip():
            raise ValueError(f"Spec for {field_type}: 'label' must not be empty")

        if field_type in self._specs:
            logger.debug("Overriding field type spec '%s'", field_type)
        self._specs[field_type] = spec

    def _rebuild_alias_index(self) -> None:
        self._aliases.clear()
        # exact type tags always win over aliases/labels of other types
        for ftype in self._specs:
            self._aliases[_lc(ftype)] = ftype
        for ftype, spec in self._specs.items():
            tokens: Iterable[str] = list(spec.get("aliases", [])) + [spec.get("label", "")]
            for t in tokens:
                if not t:
                    continue
                self._aliases.setdefault(_lc(t), ftype)  # first writer wins
