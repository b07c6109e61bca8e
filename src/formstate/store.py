from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional
import copy
import logging
import random

from formschema import Field, Hierarchy, HierarchyNode, Module, build_hierarchy
from .commands import (
    Command, AddField, UpdateField, DeleteField, DuplicateField,
    MoveField, ChangeFieldParent, PasteField,
)
from .history import UndoRedoManager
from .model import Channel, EditorState, EditorView, EditResult, MoveDirection
from .protocol import TypeRegistryProtocol, ValidatorProtocol
from .reducer import EditRejected, reduce

logger = logging.getLogger(__name__)

Callback = Callable[..., None]


@dataclass
class EditorStore:
    """
    One editing session: the current module plus everything derived from it.

    Every structural edit goes through the pure reducer, snapshots the
    previous module for undo, then rebuilds the hierarchy, revalidates and
    notifies subscribers. Rejected edits return EditResult(applied=False)
    and leave the state exactly as it was.

    History only ever holds private deep copies, so changing a handed-out
    field in place cannot rewrite past snapshots; commit such a change
    with update_field.

    Usage:
        store = EditorStore(registry=my_registry, validator=my_validator)
        store.load_module(module)
        store.add_field("TextBox")
        store.undo(); store.redo()
    """
    registry: Optional[TypeRegistryProtocol] = None  # inject at construction
    validator: Optional[ValidatorProtocol] = None
    history: UndoRedoManager = field(default_factory=UndoRedoManager)
    state: EditorState = field(default_factory=EditorState)
    _subscribers: Dict[Channel, List[Callback]] = field(default_factory=dict, repr=False)
    # deep copy of the last installed module; the only thing history ever stores
    _committed: Optional[Module] = field(default=None, repr=False)

    # ----- accessors -----

    @property
    def module(self) -> Optional[Module]:
        return self.state.module

    @property
    def hierarchy(self) -> Optional[Hierarchy]:
        return self.state.hierarchy

    @property
    def selected_field_id(self) -> Optional[str]:
        return self.state.selected_field_id

    @property
    def selected_field(self) -> Optional[Field]:
        return self.state.selected_field

    @property
    def selected_node(self) -> Optional[HierarchyNode]:
        return self.state.selected_node

    @property
    def issues(self) -> List[Any]:
        return list(self.state.issues)

    @property
    def clipboard(self) -> Optional[Field]:
        return self.state.clipboard

    @property
    def has_clipboard(self) -> bool:
        return self.state.clipboard is not None

    @property
    def view(self) -> EditorView:
        return self.state.view

    @property
    def can_undo(self) -> bool:
        return self.history.can_undo

    @property
    def can_redo(self) -> bool:
        return self.history.can_redo

    # ----- notifications -----

    def subscribe(self, channel: Channel, callback: Callback) -> Callable[[], None]:
        """Register callback on channel; returns a function that unregisters it."""
        self._subscribers.setdefault(channel, []).append(callback)

        def unsubscribe() -> None:
            callbacks = self._subscribers.get(channel, [])
            if callback in callbacks:
                callbacks.remove(callback)
        return unsubscribe

    def _emit(self, channel: Channel, *args: Any) -> None:
        for callback in list(self._subscribers.get(channel, ())):
            try:
                callback(*args)
            except Exception:
                logger.exception("Subscriber %r failed on %s", callback, channel.name)

    # ----- module operations -----

    def load_module(self, module: Module) -> EditResult:
        """Replace the current module. Not undoable; clears the selection."""
        logger.info("Loading module %s '%s' (%d fields)", module.id, module.title_en, len(module.fields))
        self._install(copy.deepcopy(module), selected=None)
        return EditResult.ok()

    def update_module(self, module: Module) -> EditResult:
        """Like load_module, but the current module (if any) goes on the undo stack."""
        if self._committed is not None:
            self.history.save_state(self._committed)
        self._install(copy.deepcopy(module), selected=None)
        return EditResult.ok()

    def create_new_module(self, title_en: str, title_fr: Optional[str] = None, module_id: Optional[int] = None) -> Module:
        module = Module(
            id=module_id if module_id is not None else random.randint(1, 2**31 - 1),
            title_en=title_en,
            title_fr=title_fr,
        )
        self.load_module(module)
        return module

    def clear_module(self) -> EditResult:
        previous_selection = self.state.selected_field_id
        self.state.module = None
        self._committed = None
        self.state.hierarchy = None
        self.state.selected_field_id = None
        self.state.issues = []
        self._emit(Channel.MODULE_CHANGED)
        if previous_selection is not None:
            self._emit(Channel.FIELD_SELECTED, None)
        self._emit(Channel.STATE_CHANGED)
        return EditResult.ok()

    # ----- field operations -----

    def add_field(self, field_type: str, parent_id: Optional[str] = None, insert_order: Optional[int] = None) -> EditResult:
        return self.apply(AddField(field_type, parent_id, insert_order))

    def update_field(self, field: Field) -> EditResult:
        return self.apply(UpdateField(field))

    def delete_field(self, field_id: str) -> EditResult:
        return self.apply(DeleteField(field_id))

    def duplicate_field(self, field_id: str) -> EditResult:
        return self.apply(DuplicateField(field_id))

    def move_field(self, field_id: str, direction: MoveDirection) -> EditResult:
        return self.apply(MoveField(field_id, direction))

    def change_field_parent(self, field_id: str, new_parent_id: Optional[str] = None) -> EditResult:
        return self.apply(ChangeFieldParent(field_id, new_parent_id))

    def apply(self, cmd: Command) -> EditResult:
        """Run a structural command through the reducer and commit it."""
        module = self.state.module
        if module is None:
            return self._reject("No module loaded.")
        try:
            outcome = reduce(module, cmd, self.registry)
        except EditRejected as exc:
            return self._reject(str(exc))
        if outcome.module == self._committed:
            return self._reject("Command produced no change.")

        selected = self.state.selected_field_id
        if outcome.created_id is not None:
            selected = outcome.created_id
        elif selected in outcome.removed_ids:
            selected = None

        self.history.save_state(self._committed)
        self._install(outcome.module, selected=selected)
        logger.debug("Applied %s", cmd)
        return EditResult.ok(outcome.created_id)

    # ----- selection / view (no rebuild) -----

    def select_field(self, field_id: Optional[str]) -> EditResult:
        if field_id == self.state.selected_field_id:
            return self._reject("Selection unchanged.")
        if field_id is not None and (self.state.hierarchy is None or self.state.hierarchy.get(field_id) is None):
            return self._reject(f"Unknown field '{field_id}'.")
        self.state.selected_field_id = field_id
        self._emit(Channel.FIELD_SELECTED, field_id)
        self._emit(Channel.STATE_CHANGED)
        return EditResult.ok(field_id)

    def set_view(self, view: EditorView) -> EditResult:
        if view is self.state.view:
            return self._reject("View unchanged.")
        self.state.view = view
        self._emit(Channel.VIEW_CHANGED, view)
        self._emit(Channel.STATE_CHANGED)
        return EditResult.ok()

    # ----- clipboard -----

    def copy_field(self, field_id: str) -> EditResult:
        f = self.state.module.get_field(field_id) if self.state.module else None
        if f is None:
            return self._reject(f"Unknown field '{field_id}'.")
        self.state.clipboard = copy.deepcopy(f)
        self._emit(Channel.STATE_CHANGED)
        return EditResult.ok(field_id)

    def paste_field(self, parent_id: Optional[str] = None) -> EditResult:
        if self.state.clipboard is None:
            return self._reject("Clipboard is empty.")
        return self.apply(PasteField(self.state.clipboard, parent_id))

    # ----- validation -----

    def refresh_validation(self) -> EditResult:
        if self.state.module is None:
            return self._reject("No module loaded.")
        self.state.issues = self._validate(self.state.module)
        self._emit(Channel.STATE_CHANGED)
        return EditResult.ok()

    # ----- undo / redo -----

    def undo(self) -> EditResult:
        if self.state.module is None or not self.history.can_undo:
            return self._reject("Nothing to undo.")
        previous = self.history.undo(self._committed)
        self._install(previous, selected=self._keep_selection(previous))
        return EditResult.ok()

    def redo(self) -> EditResult:
        if self.state.module is None or not self.history.can_redo:
            return self._reject("Nothing to redo.")
        following = self.history.redo(self._committed)
        self._install(following, selected=self._keep_selection(following))
        return EditResult.ok()

    def clear_history(self) -> None:
        self.history.clear()
        self._emit(Channel.STATE_CHANGED)

    # ----- internal plumbing -----

    def _install(self, module: Module, selected: Optional[str]) -> None:
        """Swap in module, rebuild derived state, then notify."""
        previous_selection = self.state.selected_field_id
        self.state.module = module
        self._committed = copy.deepcopy(module)
        self.state.hierarchy = build_hierarchy(module)
        self.state.issues = self._validate(module)
        self.state.selected_field_id = selected
        self._emit(Channel.MODULE_CHANGED)
        if selected != previous_selection:
            self._emit(Channel.FIELD_SELECTED, selected)
        self._emit(Channel.STATE_CHANGED)

    def _validate(self, module: Module) -> List[Any]:
        if self.validator is None:
            return []
        return list(self.validator.validate(module))

    def _keep_selection(self, module: Module) -> Optional[str]:
        selected = self.state.selected_field_id
        return selected if module.has_field(selected) else None

    def _reject(self, reason: str) -> EditResult:
        logger.debug("Edit rejected: %s", reason)
        return EditResult.rejected(reason)
