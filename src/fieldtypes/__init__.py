"""
Public API for the field type registry.
Usage:
    from fieldtypes import FieldTypeRegistry
"""
from .registry import FieldTypeRegistry

__all__ = ["FieldTypeRegistry"]
