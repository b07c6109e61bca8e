from __future__ import annotations
from dataclasses import dataclass, field, replace
from typing import FrozenSet, Iterable, Optional
import copy

from formschema import Field, Module, descendant_ids
from .commands import (
    Command, AddField, UpdateField, DeleteField, DuplicateField,
    MoveField, ChangeFieldParent, PasteField,
)
from .model import MoveDirection
from .protocol import TypeRegistryProtocol


class EditRejected(ValueError):
    """The command cannot be applied to this module; nothing was changed."""


@dataclass(frozen=True)
class Outcome:
    module: Module
    created_id: Optional[str] = None               # field to select afterwards
    removed_ids: FrozenSet[str] = field(default_factory=frozenset)


def reduce(module: Module, cmd: Command, registry: Optional[TypeRegistryProtocol] = None) -> Outcome:
    """
    Pure module transformer. Never mutates the input module.
    Raises EditRejected when the command references unknown fields or
    would break a tree invariant; the store turns that into a no-op.
    """
    # --- Add ---
    if isinstance(cmd, AddField):
        _require_parent(module, cmd.parent_id)
        new_id = new_field_id(module, cmd.field_type)
        order = cmd.insert_order if cmd.insert_order is not None else module.max_child_order(cmd.parent_id) + 1
        new_field = Field(
            id=new_id,
            field_type=cmd.field_type,
            parent_id=cmd.parent_id,
            order=order,
            label_en=_default_label(registry, cmd.field_type),
        )
        return Outcome(replace(module, fields=module.fields + (new_field,)), created_id=new_id)

    # --- Update ---
    if isinstance(cmd, UpdateField):
        current = _require_field(module, cmd.field.id)
        if cmd.field.parent_id != current.parent_id:
            _require_reparent_allowed(module, current.id, cmd.field.parent_id)
        updated = _detached(cmd.field)
        fields = tuple(updated if f.id == current.id else f for f in module.fields)
        return Outcome(replace(module, fields=fields))

    # --- Delete (field + subtree) ---
    if isinstance(cmd, DeleteField):
        _require_field(module, cmd.field_id)
        doomed = descendant_ids(module.fields, cmd.field_id)
        fields = tuple(f for f in module.fields if f.id not in doomed)
        return Outcome(replace(module, fields=fields), removed_ids=frozenset(doomed))

    # --- Duplicate (next to the original) ---
    if isinstance(cmd, DuplicateField):
        original = _require_field(module, cmd.field_id)
        new_id = new_field_id(module, original.field_type)
        label = original.label_en or _default_label(registry, original.field_type)
        dup = replace(
            _detached(original),
            id=new_id,
            order=original.order + 1,
            label_en=f"{label} (copy)",
        )
        shifted = tuple(
            replace(f, order=f.order + 1)
            if f.parent_id == original.parent_id and f.order > original.order
            else f
            for f in module.fields
        )
        return Outcome(replace(module, fields=shifted + (dup,)), created_id=new_id)

    # --- Move among siblings ---
    if isinstance(cmd, MoveField):
        target = _require_field(module, cmd.field_id)
        siblings = list(module.children_of(target.parent_id))
        index = next(i for i, f in enumerate(siblings) if f.id == target.id)
        new_index = index - 1 if cmd.direction is MoveDirection.UP else index + 1
        if new_index < 0 or new_index >= len(siblings):
            raise EditRejected(f"Field '{target.id}' is already at the {cmd.direction.name.lower()} boundary.")

        orders = {f.id: f.order for f in siblings}
        if len(set(orders.values())) != len(orders):
            # tied orders would make the swap a no-op; number the group 1..n in display order first
            orders = {f.id: i for i, f in enumerate(siblings, start=1)}
        other = siblings[new_index]
        orders[target.id], orders[other.id] = orders[other.id], orders[target.id]

        fields = tuple(
            replace(f, order=orders[f.id]) if f.id in orders and f.order != orders[f.id] else f
            for f in module.fields
        )
        return Outcome(replace(module, fields=fields))

    # --- Reparent ---
    if isinstance(cmd, ChangeFieldParent):
        target = _require_field(module, cmd.field_id)
        _require_reparent_allowed(module, target.id, cmd.new_parent_id)
        order = module.max_child_order(cmd.new_parent_id) + 1
        fields = tuple(
            replace(f, parent_id=cmd.new_parent_id, order=order) if f.id == target.id else f
            for f in module.fields
        )
        return Outcome(replace(module, fields=fields))

    # --- Paste clipboard content ---
    if isinstance(cmd, PasteField):
        _require_parent(module, cmd.parent_id)
        new_id = new_field_id(module, cmd.field.field_type)
        label = cmd.field.label_en or _default_label(registry, cmd.field.field_type)
        pasted = replace(
            _detached(cmd.field),
            id=new_id,
            parent_id=cmd.parent_id,
            order=module.max_child_order(cmd.parent_id) + 1,
            label_en=f"{label} (pasted)",
        )
        return Outcome(replace(module, fields=module.fields + (pasted,)), created_id=new_id)

    raise EditRejected(f"Unsupported command: {type(cmd).__name__}")


# ----- helpers -----

def new_field_id(module: Module, field_type: str, taken: Optional[Iterable[str]] = None) -> str:
    """'<type>_<n>' with the smallest n >= 1 not already used in the module."""
    base = field_type.strip().lower()
    used = set(taken) if taken is not None else module.field_ids()
    n = 1
    while f"{base}_{n}" in used:
        n += 1
    return f"{base}_{n}"


def _default_label(registry: Optional[TypeRegistryProtocol], field_type: str) -> str:
    if registry is None:
        return f"New {field_type}"
    return registry.default_label(field_type)


def _require_field(module: Module, field_id: Optional[str]) -> Field:
    f = module.get_field(field_id)
    if f is None:
        raise EditRejected(f"Unknown field '{field_id}'.")
    return f


def _require_parent(module: Module, parent_id: Optional[str]) -> None:
    if parent_id is not None and not module.has_field(parent_id):
        raise EditRejected(f"Unknown parent field '{parent_id}'.")


def _require_reparent_allowed(module: Module, field_id: str, new_parent_id: Optional[str]) -> None:
    if new_parent_id is None:
        return
    _require_parent(module, new_parent_id)
    if new_parent_id in descendant_ids(module.fields, field_id):
        raise EditRejected(f"Cannot move '{field_id}' under '{new_parent_id}': it would create a cycle.")


def _detached(f: Field) -> Field:
    # type_config is the only mutable member
    return replace(f, type_config=copy.deepcopy(f.type_config))
