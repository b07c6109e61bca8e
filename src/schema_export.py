# src/schema_export.py
from __future__ import annotations

import json
import os
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional

from formschema import Field, FieldOption, Module, RelationshipKind, ValidationRule


class SchemaFormatError(ValueError):
    """The document is not a valid module/field JSON shape."""


# ---------------------------
# Public Facade
# ---------------------------

class ModuleCodec:
    """
    Module <-> JSON document with the camelCase keys the form runtime reads.

    Typical usage:
        codec = ModuleCodec()
        text = codec.dumps(module, pretty=True)
        module = codec.loads(text)
        out_path = codec.filename(module, "{title}_v{version}.json")
    """

    # ---- Build JSON (dict) ----
    def to_dict(self, module: Module) -> Dict[str, Any]:
        return _module_to_dict(module)

    # ---- Parse JSON (dict) ----
    def from_dict(self, data: Dict[str, Any]) -> Module:
        return _module_from_dict(data)

    # ---- JSON text ----
    def dumps(self, module: Module, pretty: bool = True) -> str:
        data = self.to_dict(module)
        return json.dumps(data, indent=2, ensure_ascii=False) if pretty else json.dumps(data, separators=(",", ":"))

    def loads(self, text: str) -> Module:
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise SchemaFormatError(f"Invalid JSON: {exc}") from exc
        return self.from_dict(data)

    # ---- Filename from template ----
    def filename(self, module: Module, template: str = "{title}_v{version}.json", directory: Optional[str | Path] = None) -> str:
        tokens = {
            "title": _sanitize_filename(module.title_en or "Module"),
            "id": module.id,
            "version": _format_version(module.version),
        }
        name = template.format(**tokens)
        # if no directory in the template, place it in `directory` (or cwd)
        if os.path.dirname(name):
            return name
        return str(Path(directory) / name if directory else Path.cwd() / name)


# ---------------------------
# Key mapping
# ---------------------------

_MODULE_TEXT_KEYS = [
    ("title_fr", "titleFr"),
    ("description_en", "descriptionEn"), ("description_fr", "descriptionFr"),
    ("instructions_en", "instructionsEn"), ("instructions_fr", "instructionsFr"),
    ("created_by", "createdBy"),
]

_FIELD_TEXT_KEYS = [
    ("label_en", "labelEn"), ("label_fr", "labelFr"),
    ("description_en", "descriptionEn"), ("description_fr", "descriptionFr"),
    ("help_en", "helpEn"), ("help_fr", "helpFr"),
    ("placeholder_en", "placeholderEn"), ("placeholder_fr", "placeholderFr"),
]

_RULE_KEYS = [
    ("required_message_en", "requiredMessageEn"), ("required_message_fr", "requiredMessageFr"),
    ("min_length", "minLength"), ("max_length", "maxLength"),
    ("min_value", "minValue"), ("max_value", "maxValue"),
    ("pattern", "pattern"),
    ("pattern_message_en", "patternMessageEn"), ("pattern_message_fr", "patternMessageFr"),
]


# ---------------------------
# Export construction
# ---------------------------

def _module_to_dict(module: Module) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "id": module.id,
        "titleEn": module.title_en,
        "version": module.version,
    }
    _put_optional(out, module, _MODULE_TEXT_KEYS)
    if module.date_created is not None:
        out["dateCreated"] = module.date_created.isoformat()
    if module.date_updated is not None:
        out["dateUpdated"] = module.date_updated.isoformat()
    out["fields"] = [_field_to_dict(f) for f in module.fields]
    return out


def _field_to_dict(f: Field) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "id": f.id,
        "fieldType": f.field_type,
        "order": f.order,
    }
    if f.parent_id is not None:
        out["parentId"] = f.parent_id
    if f.relationship is not RelationshipKind.NONE:
        out["relationship"] = f.relationship.value
    _put_optional(out, f, _FIELD_TEXT_KEYS)
    if f.validation is not None:
        rule: Dict[str, Any] = {"isRequired": f.validation.is_required}
        _put_optional(rule, f.validation, _RULE_KEYS)
        out["validation"] = rule
    if f.options:
        out["options"] = [_option_to_dict(o) for o in f.options]
    if f.code_set_id is not None:
        out["codeSetId"] = f.code_set_id
    if f.type_config:
        out["typeConfig"] = dict(f.type_config)
    if not f.is_visible:
        out["isVisible"] = False
    if f.is_read_only:
        out["isReadOnly"] = True
    if f.width_class is not None:
        out["widthClass"] = f.width_class
    return out


def _option_to_dict(o: FieldOption) -> Dict[str, Any]:
    out: Dict[str, Any] = {"value": o.value, "labelEn": o.label_en}
    if o.label_fr is not None:
        out["labelFr"] = o.label_fr
    if o.is_default:
        out["isDefault"] = True
    if o.order:
        out["order"] = o.order
    return out


def _put_optional(out: Dict[str, Any], obj: Any, keys: List[tuple]) -> None:
    for attr, key in keys:
        value = getattr(obj, attr)
        if value is not None:
            out[key] = value


# ---------------------------
# Import (strict on shape)
# ---------------------------

def _module_from_dict(data: Any) -> Module:
    if not isinstance(data, dict):
        raise SchemaFormatError("Module document must be an object")
    module_id = data.get("id")
    if not isinstance(module_id, int) or isinstance(module_id, bool):
        raise SchemaFormatError(f"Module 'id' must be an integer, got {module_id!r}")
    title = data.get("titleEn")
    if not isinstance(title, str):
        raise SchemaFormatError("Module 'titleEn' must be a string")
    raw_fields = data.get("fields", [])
    if not isinstance(raw_fields, list):
        raise SchemaFormatError("Module 'fields' must be a list")

    kwargs: Dict[str, Any] = {attr: data.get(key) for attr, key in _MODULE_TEXT_KEYS}
    return Module(
        id=module_id,
        title_en=title,
        fields=tuple(_field_from_dict(raw, i) for i, raw in enumerate(raw_fields)),
        version=float(data.get("version", 1.0)),
        date_created=_parse_datetime(data.get("dateCreated"), "dateCreated"),
        date_updated=_parse_datetime(data.get("dateUpdated"), "dateUpdated"),
        **kwargs,
    )


def _field_from_dict(raw: Any, index: int) -> Field:
    where = f"fields[{index}]"
    if not isinstance(raw, dict):
        raise SchemaFormatError(f"{where}: field must be an object")
    fid = raw.get("id")
    ftype = raw.get("fieldType")
    if not isinstance(fid, str) or not fid:
        raise SchemaFormatError(f"{where}: 'id' must be a non-empty string")
    if not isinstance(ftype, str) or not ftype:
        raise SchemaFormatError(f"{where} ({fid}): 'fieldType' must be a non-empty string")
    order = raw.get("order", 1)
    if not isinstance(order, int) or isinstance(order, bool):
        raise SchemaFormatError(f"{where} ({fid}): 'order' must be an integer")

    try:
        relationship = RelationshipKind(raw.get("relationship", RelationshipKind.NONE.value))
    except ValueError as exc:
        raise SchemaFormatError(f"{where} ({fid}): unknown relationship {raw.get('relationship')!r}") from exc

    validation = None
    if raw.get("validation") is not None:
        rule = raw["validation"]
        if not isinstance(rule, dict):
            raise SchemaFormatError(f"{where} ({fid}): 'validation' must be an object")
        validation = ValidationRule(
            is_required=bool(rule.get("isRequired", False)),
            **{attr: rule.get(key) for attr, key in _RULE_KEYS},
        )

    raw_options = raw.get("options") or []
    if not isinstance(raw_options, list):
        raise SchemaFormatError(f"{where} ({fid}): 'options' must be a list")
    options = tuple(_option_from_dict(o, f"{where}.options[{i}]") for i, o in enumerate(raw_options))

    type_config = raw.get("typeConfig") or {}
    if not isinstance(type_config, dict):
        raise SchemaFormatError(f"{where} ({fid}): 'typeConfig' must be an object")

    return Field(
        id=fid,
        field_type=ftype,
        parent_id=raw.get("parentId"),
        order=order,
        relationship=relationship,
        validation=validation,
        options=options,
        code_set_id=raw.get("codeSetId"),
        type_config=dict(type_config),
        is_visible=bool(raw.get("isVisible", True)),
        is_read_only=bool(raw.get("isReadOnly", False)),
        width_class=raw.get("widthClass"),
        **{attr: raw.get(key) for attr, key in _FIELD_TEXT_KEYS},
    )


def _option_from_dict(raw: Any, where: str) -> FieldOption:
    if not isinstance(raw, dict) or "value" not in raw:
        raise SchemaFormatError(f"{where}: option must be an object with a 'value'")
    return FieldOption(
        value=str(raw["value"]),
        label_en=str(raw.get("labelEn", raw["value"])),
        label_fr=raw.get("labelFr"),
        is_default=bool(raw.get("isDefault", False)),
        order=int(raw.get("order", 0)),
    )


def _parse_datetime(value: Any, key: str) -> Optional[datetime]:
    if value is None:
        return None
    try:
        return datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError as exc:
        raise SchemaFormatError(f"Module '{key}' is not an ISO 8601 timestamp: {value!r}") from exc


def _format_version(version: float) -> str:
    return str(int(version)) if float(version).is_integer() else str(version)


def _sanitize_filename(s: str) -> str:
    return "".join(c for c in s if c not in r'\/:*?"<>|').strip() or "Module"
