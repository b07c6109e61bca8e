from __future__ import annotations
from collections import deque
from typing import Deque, List

from formschema import Module

DEFAULT_HISTORY_LIMIT = 50


class HistoryEmptyError(LookupError):
    """undo()/redo() called with nothing on the respective stack."""


class UndoRedoManager:
    """
    Two bounded stacks of whole-module snapshots.

    Knows nothing about hierarchy or validation; whoever swaps the module
    in is responsible for rebuilding derived state.
    """

    def __init__(self, limit: int = DEFAULT_HISTORY_LIMIT):
        if limit < 1:
            raise ValueError(f"History limit must be at least 1, got {limit}")
        self.limit = limit
        # right end is the top of each stack; maxlen drops the oldest undo entry
        self._undo: Deque[Module] = deque(maxlen=limit)
        self._redo: List[Module] = []

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_depth(self) -> int:
        return len(self._undo)

    @property
    def redo_depth(self) -> int:
        return len(self._redo)

    def save_state(self, module: Module) -> None:
        self._undo.append(module)
        self._redo.clear()

    def undo(self, current: Module) -> Module:
        if not self._undo:
            raise HistoryEmptyError("Nothing to undo")
        self._redo.append(current)
        return self._undo.pop()

    def redo(self, current: Module) -> Module:
        if not self._redo:
            raise HistoryEmptyError("Nothing to redo")
        self._undo.append(current)
        return self._redo.pop()

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()
