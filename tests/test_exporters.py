"""Tests for exporters."""

import json
import pytest
from pathlib import Path
import tempfile

from graph.model import BindingRecord, Graph, InjectionRecord, ModuleBundle, TypeRecord
from exporters.jsonl_exporter import (
    SCHEMA_VERSION,
    build_master_index,
    to_jsonl,
    utc_timestamp,
    write_graph,
)


def _graph() -> Graph:
    graph = Graph(parse_warnings=1)
    graph.add_module("core", ModuleBundle(
        types=[
            TypeRecord(id="t:p.Api", kind="interface", file="core/src/main/java/p/Api.java"),
            TypeRecord(
                id="t:p.Bean",
                kind="class",
                file="core/src/main/java/p/Bean.java",
                implements_ids=["t:p.Api"],
                ejb="stateless",
                ejb_local=["t:p.Api"],
                injects=["f:p.Bean#repo"],
                inject_members=["f:p.Bean#repo"],
            ),
        ],
        inject=[InjectionRecord("t:p.Bean", "field", "repo", "t:p.Repo", "EJB")],
        ejb=[BindingRecord("t:p.Api", True, False, ["t:p.Bean"])],
    ))
    graph.add_module("empty", ModuleBundle())
    graph.index_type("t:p.Bean", "core")
    graph.index_type("t:p.Api", "core")
    graph.index_binding("t:p.Api", "core")
    return graph


class TestJsonlExporter:
    """Tests for the JSONL graph writer."""

    def test_to_jsonl(self):
        """Test one compact object per line."""
        output = to_jsonl([BindingRecord("t:a.I", False, True, ["t:a.B"])])

        assert output == '{"iface":"t:a.I","local":false,"remote":true,"impls":["t:a.B"]}\n'

    def test_to_jsonl_empty(self):
        """Test that no records give an empty file."""
        assert to_jsonl([]) == ""

    def test_null_lifecycle(self):
        """Test that a missing lifecycle is written as null."""
        line = to_jsonl([TypeRecord(id="t:a.B", kind="class", file="B.java")])

        assert json.loads(line)["ejb"] is None

    def test_master_index(self):
        """Test module entries and aggregate counts."""
        index = build_master_index(_graph(), "2024-01-01T00:00:00Z")

        assert index["schema"] == SCHEMA_VERSION
        assert index["generatedAt"] == "2024-01-01T00:00:00Z"
        assert index["modules"] == [
            {"id": "core", "types": "types.core.jsonl", "inject": "inject.core.jsonl", "ejb": "ejb.core.jsonl"},
            {"id": "empty", "types": "types.empty.jsonl", "inject": "inject.empty.jsonl", "ejb": "ejb.empty.jsonl"},
        ]
        assert index["typeIndex"] == "types.index.json"
        assert index["ejbIndex"] == "ejb.index.json"
        summary = index["summary"]
        assert summary["totalTypes"] == 2
        assert summary["totalInjects"] == 1
        assert summary["totalEjb"] == 1
        assert summary["parseWarnings"] == 1
        assert summary["modules"][0] == {"id": "core", "types": 2, "injects": 1, "ejb": 1}
        assert summary["modules"][1] == {"id": "empty", "types": 0, "injects": 0, "ejb": 0}

    def test_write_graph(self):
        """Test the on-disk layout."""
        with tempfile.TemporaryDirectory() as tmpdir:
            out_dir = Path(tmpdir) / "out" / ".repo-ai"

            index_path = write_graph(_graph(), out_dir, generated_at="2024-01-01T00:00:00Z")

            assert index_path == out_dir / "index.json"
            names = sorted(p.name for p in out_dir.iterdir())
            assert names == [
                "ejb.core.jsonl", "ejb.empty.jsonl", "ejb.index.json",
                "index.json",
                "inject.core.jsonl", "inject.empty.jsonl",
                "types.core.jsonl", "types.empty.jsonl", "types.index.json",
            ]

            type_lines = (out_dir / "types.core.jsonl").read_text(encoding="utf-8").splitlines()
            assert [json.loads(line)["id"] for line in type_lines] == ["t:p.Api", "t:p.Bean"]
            assert (out_dir / "types.empty.jsonl").read_text(encoding="utf-8") == ""

            type_index = json.loads((out_dir / "types.index.json").read_text(encoding="utf-8"))
            assert list(type_index) == ["t:p.Api", "t:p.Bean"]
            ejb_index = json.loads((out_dir / "ejb.index.json").read_text(encoding="utf-8"))
            assert ejb_index == {"t:p.Api": "core"}

    def test_write_graph_is_repeatable(self):
        """Test that rewriting an unchanged graph gives byte-identical module files."""
        with tempfile.TemporaryDirectory() as tmpdir:
            out_dir = Path(tmpdir)

            write_graph(_graph(), out_dir)
            first = (out_dir / "inject.core.jsonl").read_bytes()
            write_graph(_graph(), out_dir)
            second = (out_dir / "inject.core.jsonl").read_bytes()

            assert first == second

    def test_utc_timestamp(self):
        """Test the timestamp format."""
        assert utc_timestamp().endswith("Z")
