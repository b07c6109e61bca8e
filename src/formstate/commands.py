from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from formschema import Field
from .model import MoveDirection


class Command:
    """Marker base class for structural edits on a module."""
    pass


@dataclass
class AddField(Command):
    field_type: str
    parent_id: Optional[str] = None
    insert_order: Optional[int] = None  # None -> after the last sibling


@dataclass
class UpdateField(Command):
    field: Field


@dataclass
class DeleteField(Command):
    """Removes the field and its whole subtree."""
    field_id: str


@dataclass
class DuplicateField(Command):
    field_id: str


@dataclass
class MoveField(Command):
    field_id: str
    direction: MoveDirection


@dataclass
class ChangeFieldParent(Command):
    field_id: str
    new_parent_id: Optional[str] = None  # None -> root


@dataclass
class PasteField(Command):
    """Insert a copy of `field` (the clipboard content) under parent_id."""
    field: Field
    parent_id: Optional[str] = None
