"""Scanner module for module discovery, type extraction and graph building."""

from .modules import ModuleLayout
from .discovery import find_source_roots, iter_java_files
from .parser import parse_file, parse_source
from .extractor import TypeScanner, ScannedType, ScannedInjection
from .resolver import SymbolTable, SymbolTableBuilder
from .builder import build_graph, assemble_graph

__all__ = [
    "ModuleLayout",
    "find_source_roots",
    "iter_java_files",
    "parse_file",
    "parse_source",
    "TypeScanner",
    "ScannedType",
    "ScannedInjection",
    "SymbolTable",
    "SymbolTableBuilder",
    "build_graph",
    "assemble_graph",
]
