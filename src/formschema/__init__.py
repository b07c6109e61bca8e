"""
Public API for the form schema model and its derived hierarchy.

    from formschema import Module, Field, build_hierarchy
"""
from .model import (
    Module, Field, FieldOption, ValidationRule, RelationshipKind,
)
from .hierarchy import (
    Hierarchy, HierarchyNode, HierarchyMetrics, HierarchyReport,
    build_hierarchy, build_hierarchy_async, flatten,
    descendant_ids, check_hierarchy, repair_hierarchy,
)

__all__ = [
    # model
    "Module", "Field", "FieldOption", "ValidationRule", "RelationshipKind",
    # hierarchy
    "Hierarchy", "HierarchyNode", "HierarchyMetrics", "HierarchyReport",
    "build_hierarchy", "build_hierarchy_async", "flatten",
    "descendant_ids", "check_hierarchy", "repair_hierarchy",
]
