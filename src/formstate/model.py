from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, List, Optional

from formschema import Field, Hierarchy, HierarchyNode, Module


class EditorView(Enum):
    DESIGN = auto()
    PREVIEW = auto()
    JSON = auto()


class MoveDirection(Enum):
    UP = auto()
    DOWN = auto()


class Channel(Enum):
    STATE_CHANGED = auto()    # callback()
    MODULE_CHANGED = auto()   # callback()
    FIELD_SELECTED = auto()   # callback(field_id | None)
    VIEW_CHANGED = auto()     # callback(EditorView)


@dataclass(frozen=True)
class EditResult:
    """What an editor operation did. Rejections leave the state untouched."""
    applied: bool
    reason: Optional[str] = None
    field_id: Optional[str] = None

    def __bool__(self) -> bool:
        return self.applied

    @classmethod
    def ok(cls, field_id: Optional[str] = None) -> "EditResult":
        return cls(True, None, field_id)

    @classmethod
    def rejected(cls, reason: str, field_id: Optional[str] = None) -> "EditResult":
        return cls(False, reason, field_id)


@dataclass
class EditorState:
    module: Optional[Module] = None
    hierarchy: Optional[Hierarchy] = None
    selected_field_id: Optional[str] = None
    clipboard: Optional[Field] = None   # detached copy, never a live reference
    issues: List[Any] = field(default_factory=list)
    view: EditorView = EditorView.DESIGN

    @property
    def selected_field(self) -> Optional[Field]:
        node = self.selected_node
        return node.field if node else None

    @property
    def selected_node(self) -> Optional[HierarchyNode]:
        if self.hierarchy is None:
            return None
        return self.hierarchy.get(self.selected_field_id)
