"""
Public API for the editor state package.

Import from here everywhere else, so you can refactor internals freely:
    from formstate import (
        EditorStore, EditorState, EditResult, EditorView, MoveDirection, Channel,
        AddField, DeleteField, MoveField, ChangeFieldParent,
        UndoRedoManager, HistoryEmptyError, reduce,
    )
"""
from .model import (
    EditorState, EditResult, EditorView, MoveDirection, Channel,
)
from .commands import (
    Command,
    AddField, UpdateField, DeleteField, DuplicateField,
    MoveField, ChangeFieldParent, PasteField,
)
from .protocol import TypeRegistryProtocol, ValidatorProtocol, ModuleRepository
from .reducer import reduce, Outcome, EditRejected, new_field_id
from .history import UndoRedoManager, HistoryEmptyError, DEFAULT_HISTORY_LIMIT
from .store import EditorStore

__all__ = [
    # model
    "EditorState", "EditResult", "EditorView", "MoveDirection", "Channel",
    # commands
    "Command",
    "AddField", "UpdateField", "DeleteField", "DuplicateField",
    "MoveField", "ChangeFieldParent", "PasteField",
    # protocols
    "TypeRegistryProtocol", "ValidatorProtocol", "ModuleRepository",
    # reducer & history & store
    "reduce", "Outcome", "EditRejected", "new_field_id",
    "UndoRedoManager", "HistoryEmptyError", "DEFAULT_HISTORY_LIMIT",
    "EditorStore",
]
