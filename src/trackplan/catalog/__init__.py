"""Property & value consistency engine.

Every mutating operation takes the caller's Session and only flushes; the caller owns the
transaction (see `trackplan.infrastructure.db.session_scope`).
"""
from trackplan.catalog.codec import decode_properties, encode_properties
from trackplan.catalog.discovery import discover
from trackplan.catalog.rename import rename_property, rename_suggested_value, RenameResult, ValueConflict
from trackplan.catalog.merge import merge_suggested_values, MergeResult
from trackplan.catalog.impact import (
    property_impact, suggested_value_impact, delete_property, delete_suggested_value,
)
from trackplan.catalog.conflicts import detect_conflicts, missing_common_properties

__all__ = [
    "decode_properties", "encode_properties", "discover",
    "rename_property", "rename_suggested_value", "RenameResult", "ValueConflict",
    "merge_suggested_values", "MergeResult",
    "property_impact", "suggested_value_impact", "delete_property", "delete_suggested_value",
    "detect_conflicts", "missing_common_properties",
]
