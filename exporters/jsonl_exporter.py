"""JSONL exporter writing the per-module graph layout to an output directory."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional

from graph.model import Graph

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "ai-graph/v2"
TYPE_INDEX_FILE = "types.index.json"
EJB_INDEX_FILE = "ejb.index.json"
MASTER_INDEX_FILE = "index.json"


def module_file_names(module_id: str) -> Dict[str, str]:
    """Return the types/inject/ejb file names of a module."""
    return {
        "types": f"types.{module_id}.jsonl",
        "inject": f"inject.{module_id}.jsonl",
        "ejb": f"ejb.{module_id}.jsonl",
    }


def utc_timestamp() -> str:
    """Current UTC time as ISO-8601 with a ``Z`` suffix."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def to_jsonl(records: Iterable[Any]) -> str:
    """
    Convert records to newline-delimited JSON.

    Args:
        records: Objects with a ``to_dict()`` method.

    Returns:
        One compact JSON object per line, each line newline-terminated.
    """
    return "".join(
        json.dumps(r.to_dict(), separators=(",", ":"), ensure_ascii=False) + "\n"
        for r in records
    )


def build_master_index(graph: Graph, generated_at: str) -> Dict[str, Any]:
    """
    Build the content of ``index.json``.

    Args:
        graph: The assembled graph.
        generated_at: Generation timestamp.

    Returns:
        Master index with module file names and aggregate counts.
    """
    modules: List[Dict[str, str]] = []
    summaries: List[Dict[str, Any]] = []
    for module_id, bundle in graph.iter_modules():
        modules.append({"id": module_id, **module_file_names(module_id)})
        summaries.append({
            "id": module_id,
            "types": len(bundle.types),
            "injects": len(bundle.inject),
            "ejb": len(bundle.ejb),
        })

    return {
        "schema": SCHEMA_VERSION,
        "generatedAt": generated_at,
        "modules": modules,
        "typeIndex": TYPE_INDEX_FILE,
        "ejbIndex": EJB_INDEX_FILE,
        "summary": {
            "totalTypes": graph.total_types(),
            "totalInjects": graph.total_injections(),
            "totalEjb": graph.total_bindings(),
            "parseWarnings": graph.parse_warnings,
            "modules": summaries,
        },
    }


def write_graph(
    graph: Graph,
    out_dir: Path,
    generated_at: Optional[str] = None,
    indent: int = 2,
) -> Path:
    """
    Write the graph to ``out_dir``.

    Per module ``m``: ``types.m.jsonl``, ``inject.m.jsonl``, ``ejb.m.jsonl``.
    Globally: ``types.index.json``, ``ejb.index.json`` and ``index.json``.
    Existing files are overwritten.

    Args:
        graph: The assembled graph.
        out_dir: Output directory, created if missing.
        generated_at: Timestamp for the master index (default: now, UTC).
        indent: JSON indentation of the index files.

    Returns:
        Path of the master index.

    Raises:
        OSError: If the directory or a file cannot be written.
    """
    if generated_at is None:
        generated_at = utc_timestamp()
    out_dir.mkdir(parents=True, exist_ok=True)

    for module_id, bundle in graph.iter_modules():
        names = module_file_names(module_id)
        _write_text(out_dir / names["types"], to_jsonl(bundle.types))
        _write_text(out_dir / names["inject"], to_jsonl(bundle.inject))
        _write_text(out_dir / names["ejb"], to_jsonl(bundle.ejb))

    _write_json(out_dir / TYPE_INDEX_FILE, graph.type_index, indent, sort_keys=True)
    _write_json(out_dir / EJB_INDEX_FILE, graph.ejb_index, indent, sort_keys=True)

    index_path = out_dir / MASTER_INDEX_FILE
    _write_json(index_path, build_master_index(graph, generated_at), indent)
    logger.info("Graph written to %s (%d modules)", out_dir, len(graph))
    return index_path


def _write_json(path: Path, data: Any, indent: int, sort_keys: bool = False) -> None:
    _write_text(path, json.dumps(data, indent=indent, sort_keys=sort_keys, ensure_ascii=False) + "\n")


def _write_text(path: Path, text: str) -> None:
    path.write_text(text, encoding="utf-8")
