"""Graph model and identifiers for the assembled type graph."""

from .model import Graph, ModuleBundle, TypeRecord, InjectionRecord, BindingRecord
from .ids import type_id, field_id, method_id, normalize_type_name

__all__ = [
    "Graph",
    "ModuleBundle",
    "TypeRecord",
    "InjectionRecord",
    "BindingRecord",
    "type_id",
    "field_id",
    "method_id",
    "normalize_type_name",
]
