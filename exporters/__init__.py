"""Exporters for writing the assembled graph to disk."""

from .jsonl_exporter import SCHEMA_VERSION, to_jsonl, build_master_index, write_graph

__all__ = ["SCHEMA_VERSION", "to_jsonl", "build_master_index", "write_graph"]
