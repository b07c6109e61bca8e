from dataclasses import replace

import pytest

from formschema import Module
from formstate import EditorStore, UndoRedoManager, HistoryEmptyError


def _m(n):
    return Module(id=n, title_en=f"v{n}")


def test_manager_undo_redo_roundtrip():
    h = UndoRedoManager()
    h.save_state(_m(1))
    h.save_state(_m(2))

    assert h.undo(_m(3)).id == 2
    assert h.undo(_m(2)).id == 1
    assert not h.can_undo
    assert h.redo_depth == 2

    assert h.redo(_m(1)).id == 2
    assert h.redo(_m(2)).id == 3
    assert not h.can_redo


def test_manager_save_clears_redo():
    h = UndoRedoManager()
    h.save_state(_m(1))
    h.undo(_m(2))
    assert h.can_redo
    h.save_state(_m(5))
    assert not h.can_redo


def test_manager_evicts_oldest_beyond_limit():
    h = UndoRedoManager()
    for n in range(1, 61):
        h.save_state(_m(n))
    assert h.undo_depth == 50

    seen = []
    current = _m(61)
    while h.can_undo:
        current = h.undo(current)
        seen.append(current.id)
    assert seen == list(range(60, 10, -1))


def test_manager_empty_stacks_raise():
    h = UndoRedoManager(limit=3)
    with pytest.raises(HistoryEmptyError):
        h.undo(_m(1))
    with pytest.raises(HistoryEmptyError):
        h.redo(_m(1))
    with pytest.raises(ValueError):
        UndoRedoManager(limit=0)


def test_store_undo_restores_module_and_selection(store):
    original = store.module
    store.select_field("email")
    store.add_field("TextBox", "section_1")
    assert store.selected_field_id == "textbox_1"

    assert store.undo()
    assert store.module == original
    assert store.hierarchy.get("textbox_1") is None
    # the created field is gone, so its selection is too
    assert store.selected_field_id is None

    assert store.redo()
    assert store.module.has_field("textbox_1")
    assert not store.can_redo


def test_store_undo_keeps_selection_when_field_survives(store):
    store.select_field("email")
    store.delete_field("name")
    assert store.selected_field_id == "email"
    store.undo()
    assert store.selected_field_id == "email"
    assert store.module.has_field("name")


def test_store_reports_empty_history(registry):
    st = EditorStore(registry=registry)
    assert not st.undo()
    st.load_module(Module(id=1, title_en="T"))
    result = st.undo()
    assert not result.applied
    assert result.reason == "Nothing to undo."
    assert not st.redo()


def test_store_history_limit_from_manager(registry, sample_module):
    st = EditorStore(registry=registry, history=UndoRedoManager(limit=2))
    st.load_module(sample_module)
    for _ in range(3):
        st.add_field("TextBox")
    assert st.undo() and st.undo()
    assert not st.undo()
    assert {f.id for f in st.module.fields} >= {"textbox_1"}
    assert not st.module.has_field("textbox_2")


def test_update_module_is_undoable(store):
    before = store.module
    store.update_module(Module(id=99, title_en="Replaced"))
    assert store.module.id == 99
    store.undo()
    assert store.module == before


def test_in_place_change_is_committed_by_update_field(store):
    f = store.module.get_field("name")
    f.type_config["maxLength"] = 5

    result = store.update_field(f)
    assert result.applied
    assert store.can_undo

    store.undo()
    assert store.module.get_field("name").type_config == {}
    store.redo()
    assert store.module.get_field("name").type_config == {"maxLength": 5}


def test_snapshots_do_not_share_type_config(store):
    store.update_field(replace(store.module.get_field("name"), label_en="Full name"))
    # scribbling on the live field must not reach the snapshot under it
    store.module.get_field("name").type_config["maxLength"] = 5

    store.undo()
    restored = store.module.get_field("name")
    assert restored.label_en == "Name"
    assert restored.type_config == {}


def test_update_field_keeps_its_own_copy(store):
    mine = replace(store.module.get_field("name"), type_config={"rows": 3})
    store.update_field(mine)
    mine.type_config["rows"] = 9
    assert store.module.get_field("name").type_config == {"rows": 3}
