from __future__ import annotations
from typing import Protocol, Optional, Any, Dict, List

from formschema import Field, Module


class TypeRegistryProtocol(Protocol):
    """
    Minimal contract used by the editor and validator to stay decoupled from the palette.

    Implementations must provide:
      - default_label(field_type) -> label for newly created fields
      - get_spec(field_type) -> dict (empty when unknown) with keys:
            label: str
            category: str
            requires_options: bool
            requires_type_config: bool
            has_label: bool
      - is_known(field_type) -> bool
    """
    def default_label(self, field_type: str) -> str: ...
    def get_spec(self, field_type: str) -> Dict[str, Any]: ...
    def is_known(self, field_type: str) -> bool: ...


class ValidatorProtocol(Protocol):
    """Produces issues for a module; called after every structural change."""
    def validate(self, module: Module) -> List[Any]: ...
    def validate_field(self, field: Field, module: Module) -> List[Any]: ...


class ModuleRepository(Protocol):
    """
    Where modules live between sessions. The editor never calls this itself;
    callers load a Module, hand it to the store, and save what comes out.
    """
    def load(self, module_id: int) -> Optional[Module]: ...
    def save(self, module: Module) -> Any: ...
    def list_summaries(self) -> List[Any]: ...
    def next_id(self) -> int: ...
    def delete(self, module_id: int) -> bool: ...
