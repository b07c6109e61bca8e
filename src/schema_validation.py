# src/schema_validation.py
from __future__ import annotations

import logging
import re
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Dict, List, Optional

from formschema import Field, Module
from formschema.hierarchy import has_circular_reference
from formstate.protocol import TypeRegistryProtocol

logger = logging.getLogger(__name__)


class Severity(Enum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


@dataclass(frozen=True)
class ValidationIssue:
    field_id: Optional[str]   # None for module-wide issues
    severity: Severity
    title: str
    message: str

    def __str__(self) -> str:
        where = f"[{self.field_id}] " if self.field_id else ""
        return f"{self.severity.value.upper()}: {where}{self.title}: {self.message}"


# ---------------------------
# Public Facade
# ---------------------------

class SchemaValidator:
    """
    Rule-based checks over a module, driven by the field type registry.

    Typical usage:
        v = SchemaValidator(registry)
        issues = v.validate(module)
        errors = [i for i in issues if i.severity is Severity.ERROR]
    """

    def __init__(self, registry: Optional[TypeRegistryProtocol] = None):
        self.registry = registry

    def validate(self, module: Module) -> List[ValidationIssue]:
        issues: List[ValidationIssue] = []
        issues.extend(_structural_issues(module))
        for f in module.fields:
            issues.extend(self.validate_field(f, module))
        logger.debug("Validated module %s: %d issues", module.id, len(issues))
        return issues

    def validate_field(self, field: Field, module: Module) -> List[ValidationIssue]:
        issues: List[ValidationIssue] = []
        spec = self.registry.get_spec(field.field_type) if self.registry else {}

        if self.registry is not None and not self.registry.is_known(field.field_type):
            issues.append(ValidationIssue(
                field.id, Severity.INFO, "Unknown Field Type",
                f"Field type '{field.field_type}' is not in the palette",
            ))

        rule = field.validation
        if rule is not None and rule.is_required and not (rule.required_message_en or "").strip():
            issues.append(ValidationIssue(
                field.id, Severity.WARNING, "Missing Error Message",
                "Required field should have an error message",
            ))

        has_label = spec.get("has_label", field.field_type != "Divider")
        if has_label and not (field.label_en or "").strip():
            issues.append(ValidationIssue(
                field.id, Severity.WARNING, "Missing Label", "Field has no English label",
            ))

        if spec.get("requires_options") and field.code_set_id is None and not field.options:
            issues.append(ValidationIssue(
                field.id, Severity.ERROR, "Missing Options", "Choice field has no options or CodeSet",
            ))

        if field.field_type == "AutoComplete" and not str(field.type_config.get("data_source_url") or "").strip():
            issues.append(ValidationIssue(
                field.id, Severity.ERROR, "Missing Data Source", "AutoComplete requires a data source URL",
            ))

        if rule is not None:
            issues.extend(_rule_bounds_issues(field.id, rule))
        return issues


# ---------------------------
# Module-wide checks
# ---------------------------

def _structural_issues(module: Module) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []

    counts = Counter(f.id for f in module.fields)
    for fid, n in counts.items():
        if n > 1:
            issues.append(ValidationIssue(
                fid, Severity.ERROR, "Duplicate Field ID", f"Multiple fields have the ID '{fid}'",
            ))

    by_id: Dict[str, Field] = {}
    for f in module.fields:
        by_id.setdefault(f.id, f)

    for f in module.fields:
        if f.parent_id is not None and f.parent_id not in by_id:
            issues.append(ValidationIssue(
                f.id, Severity.ERROR, "Orphaned Field", f"Parent '{f.parent_id}' does not exist",
            ))

    for f in by_id.values():
        if has_circular_reference(f, by_id):
            issues.append(ValidationIssue(
                f.id, Severity.ERROR, "Circular Reference", "Field has a circular parent reference",
            ))
    return issues


def _rule_bounds_issues(field_id: str, rule) -> List[ValidationIssue]:
    issues: List[ValidationIssue] = []
    if rule.min_length is not None and rule.max_length is not None and rule.min_length > rule.max_length:
        issues.append(ValidationIssue(
            field_id, Severity.ERROR, "Invalid Length Bounds",
            f"Minimum length {rule.min_length} exceeds maximum length {rule.max_length}",
        ))
    if rule.min_value is not None and rule.max_value is not None and rule.min_value > rule.max_value:
        issues.append(ValidationIssue(
            field_id, Severity.ERROR, "Invalid Value Bounds",
            f"Minimum value {rule.min_value} exceeds maximum value {rule.max_value}",
        ))
    if rule.pattern:
        try:
            re.compile(rule.pattern)
        except re.error as exc:
            issues.append(ValidationIssue(
                field_id, Severity.ERROR, "Invalid Pattern", f"Pattern does not compile: {exc}",
            ))
    return issues
