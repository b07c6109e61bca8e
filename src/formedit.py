# src/formedit.py
from __future__ import annotations

import argparse
import copy
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

# local imports
from fieldtypes import FieldTypeRegistry
from formschema import Hierarchy, HierarchyNode
from formstate import EditorStore, EditResult, MoveDirection, UndoRedoManager
from schema_export import ModuleCodec
from schema_validation import SchemaValidator, Severity

logger = logging.getLogger("formedit")


class ConfigError(ValueError):
    """Config file is unreadable or holds values of the wrong type."""


# ---------------------------
# Config loading
# ---------------------------

DEFAULT_CONFIG: Dict[str, Any] = {
    "history": {
        "limit": 50,
    },
    "registry": {
        "plugins_dir": None,   # directory of *.yaml field type specs
    },
    "export": {
        "filename_template": "{title}_v{version}.json",
        "pretty": True,
    },
    "logging": {
        "level": "WARNING",
    },
}


def load_config(path: Optional[str]) -> Dict[str, Any]:
    cfg = copy.deepcopy(DEFAULT_CONFIG)
    if path:
        p = Path(path)
        if not p.exists():
            logger.warning("config not found: %s (using defaults)", p)
            return cfg
        try:
            with p.open("r", encoding="utf-8") as f:
                user = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"{p}: {exc}") from exc
        if not isinstance(user, dict):
            raise ConfigError(f"{p}: top level must be a mapping")
        # shallow merge per section
        for k, v in user.items():
            if isinstance(v, dict) and k in cfg and isinstance(cfg[k], dict):
                cfg[k].update(v)
            else:
                cfg[k] = v
    _check_config(cfg)
    return cfg


def _check_config(cfg: Dict[str, Any]) -> None:
    limit = cfg["history"].get("limit")
    if not isinstance(limit, int) or isinstance(limit, bool) or limit < 1:
        raise ConfigError(f"history.limit must be a positive integer, got {limit!r}")
    level = str(cfg["logging"].get("level", "WARNING")).upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ConfigError(f"logging.level is not a logging level: {level!r}")
    if not isinstance(cfg["export"].get("filename_template", ""), str):
        raise ConfigError("export.filename_template must be a string")


# ---------------------------
# Wiring
# ---------------------------

def build_store(config: Dict[str, Any]) -> EditorStore:
    registry = FieldTypeRegistry(plugins_dir=config["registry"].get("plugins_dir"))
    return EditorStore(
        registry=registry,
        validator=SchemaValidator(registry),
        history=UndoRedoManager(limit=int(config["history"]["limit"])),
    )


def apply_op(store: EditorStore, op: str) -> EditResult:
    """
    One scripted edit:
      add:TYPE[@PARENT]   delete:ID   duplicate:ID   move:ID:up|down
      parent:ID[:NEW_PARENT]   copy:ID   paste[:PARENT]   select:ID   undo   redo
    """
    name, _, rest = op.partition(":")
    args = rest.split(":") if rest else []
    if name == "add" and args:
        field_type, _, parent = args[0].partition("@")
        return store.add_field(field_type, parent or None)
    if name == "delete" and len(args) == 1:
        return store.delete_field(args[0])
    if name == "duplicate" and len(args) == 1:
        return store.duplicate_field(args[0])
    if name == "move" and len(args) == 2 and args[1].upper() in MoveDirection.__members__:
        return store.move_field(args[0], MoveDirection[args[1].upper()])
    if name == "parent" and len(args) in (1, 2):
        return store.change_field_parent(args[0], args[1] if len(args) == 2 and args[1] else None)
    if name == "copy" and len(args) == 1:
        return store.copy_field(args[0])
    if name == "paste":
        return store.paste_field(args[0] if args else None)
    if name == "select" and len(args) == 1:
        return store.select_field(args[0])
    if name == "undo" and not args:
        return store.undo()
    if name == "redo" and not args:
        return store.redo()
    raise ValueError(f"Unrecognised edit operation: {op!r}")


# ---------------------------
# Output
# ---------------------------

def render_tree(hierarchy: Hierarchy) -> List[str]:
    lines: List[str] = []

    def _line(node: HierarchyNode) -> str:
        label = node.field.label_en or ""
        return f"{'  ' * node.depth}- {node.id} ({node.field.field_type}) {label}".rstrip()

    for node in hierarchy.walk():
        lines.append(_line(node))
    for fid in hierarchy.orphans:
        lines.append(f"! {fid}: parent missing, shown as root")
    for fid in hierarchy.cycle_breaks:
        lines.append(f"! {fid}: circular parent chain broken here")
    return lines


def _print_issues(issues) -> int:
    for issue in issues:
        print(str(issue))
    return 1 if any(i.severity is Severity.ERROR for i in issues) else 0


# ---------------------------
# App bootstrap
# ---------------------------

def main(argv: Optional[list[str]] = None) -> int:
    parser = argparse.ArgumentParser(prog="formedit", description="Inspect and edit form module documents")
    parser.add_argument("--config", "-c", help="Path to config.yaml", default=None)
    sub = parser.add_subparsers(dest="command", required=True)

    for name, help_text in (("tree", "Print the field hierarchy"),
                            ("validate", "List validation issues"),
                            ("metrics", "Print hierarchy metrics")):
        p = sub.add_parser(name, help=help_text)
        p.add_argument("document", help="Module JSON document")

    p_edit = sub.add_parser("edit", help="Apply scripted edits and write the result")
    p_edit.add_argument("document", help="Module JSON document")
    p_edit.add_argument("--op", action="append", default=[], help="Edit step, repeatable (e.g. add:TextBox@section_1)")
    p_edit.add_argument("--out", "-o", help="Output path (default: filename template next to the input)")
    p_edit.add_argument("--strict", action="store_true", help="Fail when any step is rejected")

    args = parser.parse_args(argv)

    try:
        config = load_config(args.config)
        logging.basicConfig(
            level=str(config["logging"]["level"]).upper(),
            format="%(levelname)s %(name)s: %(message)s",
        )
        codec = ModuleCodec()
        store = build_store(config)
        module = codec.loads(Path(args.document).read_text(encoding="utf-8"))
        store.load_module(module)

        if args.command == "tree":
            print("\n".join(render_tree(store.hierarchy)))
            return 0

        if args.command == "validate":
            return _print_issues(store.issues)

        if args.command == "metrics":
            for key, value in vars(store.hierarchy.metrics()).items():
                print(f"{key}: {value}")
            return 0

        # edit
        for op in args.op:
            result = apply_op(store, op)
            if not result.applied:
                logger.warning("step %r rejected: %s", op, result.reason)
                if args.strict:
                    return 1
        out = args.out or codec.filename(
            store.module, config["export"]["filename_template"], directory=Path(args.document).parent,
        )
        Path(out).write_text(codec.dumps(store.module, pretty=bool(config["export"]["pretty"])), encoding="utf-8")
        print(out)
        return 0

    except (ValueError, OSError) as exc:  # ConfigError, SchemaFormatError, bad --op
        logger.error("%s", exc)
        return 2


if __name__ == "__main__":
    sys.exit(main())
