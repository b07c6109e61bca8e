from __future__ import annotations
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional, Tuple


class RelationshipKind(Enum):
    """Why a field sits under its parent."""
    GROUP_CONTAINER = "GroupContainer"
    CONDITIONAL_SHOW = "ConditionalShow"
    CONDITIONAL_HIDE = "ConditionalHide"
    CASCADE = "Cascade"
    VALIDATION_LINK = "Validation"
    REPEATER = "Repeater"
    NONE = "None"

    @property
    def is_conditional(self) -> bool:
        return self in (RelationshipKind.CONDITIONAL_SHOW, RelationshipKind.CONDITIONAL_HIDE)


@dataclass(frozen=True)
class ValidationRule:
    is_required: bool = False
    required_message_en: Optional[str] = None
    required_message_fr: Optional[str] = None
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    min_value: Optional[float] = None
    max_value: Optional[float] = None
    pattern: Optional[str] = None
    pattern_message_en: Optional[str] = None
    pattern_message_fr: Optional[str] = None


@dataclass(frozen=True)
class FieldOption:
    value: str
    label_en: str
    label_fr: Optional[str] = None
    is_default: bool = False
    order: int = 0


@dataclass(frozen=True)
class Field:
    """
    One form element. Hierarchy is expressed only through parent_id;
    nothing here points at another Field object.
    """
    id: str
    field_type: str
    parent_id: Optional[str] = None
    order: int = 1
    relationship: RelationshipKind = RelationshipKind.NONE

    label_en: Optional[str] = None
    label_fr: Optional[str] = None
    description_en: Optional[str] = None
    description_fr: Optional[str] = None
    help_en: Optional[str] = None
    help_fr: Optional[str] = None
    placeholder_en: Optional[str] = None
    placeholder_fr: Optional[str] = None

    validation: Optional[ValidationRule] = None
    options: Tuple[FieldOption, ...] = ()
    code_set_id: Optional[int] = None
    type_config: Dict[str, Any] = field(default_factory=dict, hash=False)

    is_visible: bool = True
    is_read_only: bool = False
    width_class: Optional[int] = None

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def sort_key(self) -> Tuple[int, str]:
        # order first, id breaks ties so duplicate orders stay deterministic
        return (self.order, self.id)


@dataclass(frozen=True)
class Module:
    id: int
    title_en: str
    title_fr: Optional[str] = None
    description_en: Optional[str] = None
    description_fr: Optional[str] = None
    instructions_en: Optional[str] = None
    instructions_fr: Optional[str] = None
    fields: Tuple[Field, ...] = ()
    version: float = 1.0
    date_created: Optional[datetime] = None
    date_updated: Optional[datetime] = None
    created_by: Optional[str] = None

    def get_field(self, field_id: Optional[str]) -> Optional[Field]:
        """Linear lookup; use a Hierarchy when doing many lookups."""
        if field_id is None:
            return None
        for f in self.fields:
            if f.id == field_id:
                return f
        return None

    def has_field(self, field_id: Optional[str]) -> bool:
        return self.get_field(field_id) is not None

    def field_ids(self) -> set:
        return {f.id for f in self.fields}

    def children_of(self, parent_id: Optional[str]) -> Tuple[Field, ...]:
        """Direct children of parent_id (None = roots), sorted by (order, id)."""
        return tuple(sorted((f for f in self.fields if f.parent_id == parent_id), key=Field.sort_key))

    def max_child_order(self, parent_id: Optional[str]) -> int:
        """Largest order among parent_id's children, 0 when there are none."""
        orders = [f.order for f in self.fields if f.parent_id == parent_id]
        return max(orders) if orders else 0
