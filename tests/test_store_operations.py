import random
from dataclasses import replace

import pytest

from formschema import Field, Module, build_hierarchy, descendant_ids
from formstate import Channel, EditorStore, EditorView, MoveDirection


def _ids(store):
    return {f.id for f in store.module.fields}


def _orders(store):
    return {f.id: f.order for f in store.module.fields}


def _abc_store(registry, *fields):
    st = EditorStore(registry=registry)
    st.load_module(Module(id=1, title_en="T", fields=tuple(fields)))
    return st


# ---------------------------
# Worked examples
# ---------------------------

def test_delete_removes_subtree(registry):
    st = _abc_store(
        registry,
        Field(id="A", field_type="Panel", order=1),
        Field(id="B", field_type="TextBox", order=2),
        Field(id="C", field_type="TextBox", parent_id="A", order=1),
    )
    assert st.delete_field("A")
    assert _ids(st) == {"B"}


def test_add_to_empty_module_numbers_ids(registry):
    st = _abc_store(registry)
    first = st.add_field("textbox")
    second = st.add_field("textbox")
    assert first.field_id == "textbox_1"
    assert second.field_id == "textbox_2"
    assert st.selected_field_id == "textbox_2"


def test_move_up_swaps_orders(registry):
    st = _abc_store(
        registry,
        Field(id="A", field_type="TextBox", order=1),
        Field(id="B", field_type="TextBox", order=2),
    )
    assert st.move_field("B", MoveDirection.UP)
    assert _orders(st) == {"A": 2, "B": 1}


def test_update_module_undo_redo_chain(registry):
    m0, m1, m2 = (Module(id=n, title_en=f"M{n}") for n in range(3))
    st = _abc_store(registry)
    st.load_module(m0)
    st.update_module(m1)
    st.update_module(m2)

    st.undo()
    assert st.module == m1
    st.undo()
    assert st.module == m0
    st.redo()
    assert st.module == m1
    st.redo()
    assert st.module == m2


def test_reparent_under_descendant_is_rejected(registry):
    st = _abc_store(
        registry,
        Field(id="A", field_type="Panel", order=1),
        Field(id="B", field_type="Panel", parent_id="A", order=1),
    )
    before = st.module
    result = st.change_field_parent("A", "B")
    assert not result.applied
    assert "cycle" in result.reason
    assert st.module is before
    assert not st.can_undo


# ---------------------------
# Rejections leave state untouched
# ---------------------------

def test_unknown_ids_are_rejected_without_history(store):
    before = store.module
    calls = []
    store.subscribe(Channel.STATE_CHANGED, lambda: calls.append(1))

    for result in (
        store.delete_field("ghost"),
        store.duplicate_field("ghost"),
        store.move_field("ghost", MoveDirection.UP),
        store.change_field_parent("ghost", None),
        store.add_field("TextBox", "ghost"),
        store.update_field(Field(id="ghost", field_type="TextBox")),
        store.copy_field("ghost"),
        store.select_field("ghost"),
    ):
        assert not result.applied
        assert result.reason

    assert store.module is before
    assert not store.can_undo
    assert calls == []


def test_operations_without_module_are_rejected(registry):
    st = EditorStore(registry=registry)
    assert not st.add_field("TextBox")
    assert not st.delete_field("x")
    assert not st.refresh_validation()
    assert st.module is None


def test_move_at_boundary_is_rejected(store):
    assert not store.move_field("section_1", MoveDirection.UP)
    assert not store.move_field("email", MoveDirection.DOWN)
    assert not store.can_undo


def test_update_with_identical_field_is_rejected(store):
    result = store.update_field(store.module.get_field("name"))
    assert not result.applied
    assert not store.can_undo


# ---------------------------
# Selection, view, clipboard
# ---------------------------

def test_delete_clears_selection_inside_removed_subtree(store):
    store.select_field("notes")
    store.delete_field("details")
    assert store.selected_field_id is None
    assert store.selected_field is None


def test_delete_elsewhere_keeps_selection(store):
    store.select_field("email")
    store.delete_field("details")
    assert store.selected_field.id == "email"
    assert store.selected_node.depth == 0


def test_duplicate_selects_copy(store):
    result = store.duplicate_field("name")
    assert store.selected_field_id == result.field_id
    copy = store.selected_field
    assert copy.label_en == "Name (copy)"
    assert copy.parent_id == "section_1"
    assert [n.id for n in store.hierarchy.get("section_1").children] == ["name", result.field_id, "details"]


def test_copy_then_paste_creates_detached_field(store):
    store.copy_field("name")
    assert store.has_clipboard
    assert store.paste_field("details")
    pasted = store.selected_field
    assert pasted.id == "textbox_1"
    assert pasted.parent_id == "details"
    assert store.module.get_field("name").parent_id == "section_1"
    # clipboard survives for a second paste
    assert store.paste_field().field_id == "textbox_2"


def test_paste_with_empty_clipboard_is_rejected(store):
    assert not store.has_clipboard
    assert not store.paste_field()


def test_set_view_notifies_once(store):
    seen = []
    store.subscribe(Channel.VIEW_CHANGED, seen.append)
    assert store.set_view(EditorView.JSON)
    assert not store.set_view(EditorView.JSON)
    assert seen == [EditorView.JSON]
    assert store.view is EditorView.JSON


def test_clear_module(store):
    store.select_field("name")
    store.clear_module()
    assert store.module is None
    assert store.hierarchy is None
    assert store.selected_field_id is None
    assert store.issues == []


def test_create_new_module_is_empty(registry):
    st = EditorStore(registry=registry)
    module = st.create_new_module("Intake", "Accueil", module_id=12)
    assert st.module == module
    assert module.title_fr == "Accueil"
    assert st.hierarchy.roots == []


# ---------------------------
# Notifications
# ---------------------------

def test_notification_order_for_structural_edit(store):
    events = []
    store.subscribe(Channel.MODULE_CHANGED, lambda: events.append("module"))
    store.subscribe(Channel.FIELD_SELECTED, lambda fid: events.append(("selected", fid)))
    store.subscribe(Channel.STATE_CHANGED, lambda: events.append("state"))

    store.add_field("TextBox")
    assert events == ["module", ("selected", "textbox_1"), "state"]

    events.clear()
    store.move_field("textbox_1", MoveDirection.UP)
    assert events == ["module", "state"]


def test_unsubscribe_and_failing_subscriber(store):
    seen = []

    def broken():
        raise RuntimeError("boom")

    store.subscribe(Channel.STATE_CHANGED, broken)
    unsubscribe = store.subscribe(Channel.STATE_CHANGED, lambda: seen.append(1))
    store.add_field("TextBox")
    assert seen == [1]

    unsubscribe()
    store.add_field("TextBox")
    assert seen == [1]


def test_hierarchy_and_issues_follow_every_edit(store):
    store.add_field("DropDown", "details")
    node = store.hierarchy.get("dropdown_1")
    assert node.depth == 2
    assert [i.title for i in store.issues if i.field_id == "dropdown_1"] == ["Missing Options"]

    store.delete_field("dropdown_1")
    assert store.hierarchy.get("dropdown_1") is None
    assert all(i.field_id != "dropdown_1" for i in store.issues)


# ---------------------------
# Randomized edit sequences
# ---------------------------

def test_random_edits_keep_tree_sound(registry, sample_module):
    rng = random.Random(20240501)
    st = EditorStore(registry=registry)
    st.load_module(sample_module)
    types = ["TextBox", "Panel", "Section", "Number"]

    for _ in range(400):
        ids = sorted(_ids(st))
        pick = rng.choice(ids) if ids else None
        op = rng.choice(["add", "delete", "duplicate", "move", "parent", "undo", "redo"])
        if op == "add":
            st.add_field(rng.choice(types), rng.choice([None] + ids))
        elif op == "delete" and pick:
            doomed = descendant_ids(st.module.fields, pick)
            st.delete_field(pick)
            assert not (_ids(st) & doomed)
        elif op == "duplicate" and pick:
            st.duplicate_field(pick)
        elif op == "move" and pick:
            st.move_field(pick, rng.choice(list(MoveDirection)))
        elif op == "parent" and pick:
            st.change_field_parent(pick, rng.choice([None] + ids))
        elif op == "undo":
            st.undo()
        elif op == "redo":
            st.redo()

        fields = st.module.fields
        assert len({f.id for f in fields}) == len(fields)
        h = build_hierarchy(st.module)
        assert h.cycle_breaks == []
        assert h.orphans == []
        assert sum(1 for _ in h.walk()) == len(fields)


# ---------------------------
# Undo/redo across every kind of edit
# ---------------------------

EDITS = {
    "add": lambda st: st.add_field("Number", "details"),
    "delete": lambda st: st.delete_field("details"),
    "duplicate": lambda st: st.duplicate_field("name"),
    "move": lambda st: st.move_field("details", MoveDirection.UP),
    "reparent": lambda st: st.change_field_parent("email", "details"),
    "paste": lambda st: st.copy_field("notes") and st.paste_field("section_1"),
    "update": lambda st: st.update_field(
        replace(st.module.get_field("email"), label_en="E-mail", type_config={"domain": "example.org"})
    ),
}


@pytest.mark.parametrize("edit", list(EDITS.values()), ids=list(EDITS))
def test_undo_then_redo_is_exact(store, edit):
    before = store.module
    assert edit(store)
    after = store.module

    assert store.undo()
    assert store.module == before
    assert store.redo()
    assert store.module == after


def test_new_edit_after_undo_drops_redo(store):
    store.delete_field("email")
    store.undo()
    assert store.can_redo

    store.add_field("TextBox")
    assert not store.can_redo
    assert not store.redo()
    assert store.module.has_field("email")


def test_move_up_then_down_restores_orders(store):
    before = _orders(store)
    assert store.move_field("details", MoveDirection.UP)
    assert _orders(store) != before
    assert store.move_field("details", MoveDirection.DOWN)
    assert _orders(store) == before


def test_store_without_registry_uses_generic_labels(sample_module):
    st = EditorStore()
    st.load_module(sample_module)
    assert st.add_field("Signature")
    assert st.selected_field.label_en == "New Signature"
    assert st.duplicate_field("signature_1").field_id == "signature_2"
    assert st.selected_field.label_en == "New Signature (copy)"
