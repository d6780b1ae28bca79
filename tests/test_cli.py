"""Tests for the command line entry point."""

import json
import pytest
from pathlib import Path
import tempfile

from cli import build_config, main, parse_args


def _write(root: Path, rel: str, content: str) -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


def _repo(root: Path) -> None:
    _write(root, "settings.gradle", "include ':core', ':web', ':ai-indexer'\n")
    _write(root, "core/src/main/java/p/Api.java", """
package p;

@Local
public interface Api {}
""")
    _write(root, "core/src/main/java/p/Bean.java", """
package p;

@Stateless
public class Bean implements Api {}
""")
    _write(root, "core/src/test/java/p/BeanTest.java", """
package p;

class BeanTest {}
""")
    _write(root, "web/src/main/java/w/Page.java", """
package w;

public class Page {
    @Inject
    private Api api;
}
""")
    _write(root, "ai-indexer/src/main/java/x/Tool.java", """
package x;

class Tool {}
""")


class TestArguments:
    """Tests for argument parsing and config merging."""

    def test_defaults(self):
        """Test default option values."""
        parsed = parse_args([])

        assert parsed.root == "."
        assert parsed.out_dir is None
        assert parsed.exclude_tests is False
        assert parsed.modules is None

    def test_command_line_overrides_config(self):
        """Test that command line options win over the config file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = _write(Path(tmpdir), "indexer.yaml", "out_dir: from-file\nmodules: [a]\n")

            config = build_config(parse_args([
                "--config", str(path), "-o", "from-cli", "--modules", "b,c", "--modules", "d", "--exclude-tests",
            ]))

            assert config.out_dir == Path("from-cli")
            assert config.modules == ["b", "c", "d"]
            assert config.include_tests is False

    def test_modules_before_root(self):
        """Test that --modules does not consume the positional root."""
        parsed = parse_args(["--modules", "core,web", "/repo"])

        assert parsed.root == "/repo"
        assert build_config(parsed).modules == ["core", "web"]

    def test_config_file_values_kept(self):
        """Test that unset options leave config file values alone."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = _write(Path(tmpdir), "indexer.yaml", "out_dir: from-file\ninclude_tests: false\n")

            config = build_config(parse_args(["--config", str(path)]))

            assert config.out_dir == Path("from-file")
            assert config.include_tests is False


class TestMain:
    """End-to-end runs of the CLI."""

    def test_writes_graph(self, capsys):
        """Test a full run into the default output directory."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            _repo(root)

            assert main([str(root), "-q"]) == 0

            out_dir = root.resolve() / ".repo-ai"
            index = json.loads((out_dir / "index.json").read_text(encoding="utf-8"))
            assert [m["id"] for m in index["modules"]] == ["core", "web"]
            assert index["summary"]["totalTypes"] == 4
            assert index["summary"]["totalEjb"] == 1
            assert index["summary"]["totalInjects"] == 1

            binding = json.loads((out_dir / "ejb.core.jsonl").read_text(encoding="utf-8"))
            assert binding == {"iface": "t:p.Api", "local": True, "remote": False, "impls": ["t:p.Bean"]}
            inject = json.loads((out_dir / "inject.web.jsonl").read_text(encoding="utf-8"))
            assert inject["type"] == "t:p.Api"
            assert inject["via"] == "CDI"

            captured = capsys.readouterr()
            assert "AI graph written to:" in captured.out
            assert "Schema: ai-graph/v2" in captured.out
            assert "Modules: 2, types: 4, EJB-ifaces: 1" in captured.out

    def test_module_filter_and_exclude_tests(self):
        """Test restricting modules and skipping test sources."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            _repo(root)
            out_dir = root / "graph"

            assert main([str(root), "-q", "-o", str(out_dir), "--modules", "core", "--exclude-tests"]) == 0

            index = json.loads((out_dir / "index.json").read_text(encoding="utf-8"))
            assert [m["id"] for m in index["modules"]] == ["core"]
            type_index = json.loads((out_dir / "types.index.json").read_text(encoding="utf-8"))
            assert sorted(type_index) == ["t:p.Api", "t:p.Bean"]

    def test_module_file(self):
        """Test module ids taken from a module file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            _repo(root)
            _write(root, "mods.txt", "# only the web layer\nweb\n")

            assert main([str(root), "-q", "--module-file", "mods.txt"]) == 0

            index = json.loads((root / ".repo-ai" / "index.json").read_text(encoding="utf-8"))
            assert [m["id"] for m in index["modules"]] == ["web"]

    def test_parse_warnings_are_counted(self):
        """Test that a broken source file does not fail the run."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            _repo(root)
            _write(root, "core/src/main/java/p/Broken.java", "}}}} ((( @@@ {{{")

            assert main([str(root), "-q"]) == 0

            index = json.loads((root / ".repo-ai" / "index.json").read_text(encoding="utf-8"))
            assert index["summary"]["parseWarnings"] == 1

    def test_root_not_a_directory(self, capsys):
        """Test exit code 1 for a missing root."""
        assert main(["/nonexistent/repo", "-q"]) == 1
        assert "is not a directory" in capsys.readouterr().err

    def test_missing_config_file(self, capsys):
        """Test exit code 2 for a missing config file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            assert main([tmpdir, "-q", "--config", str(Path(tmpdir) / "none.yaml")]) == 2
            assert "Error:" in capsys.readouterr().err

    def test_undecodable_settings(self, capsys):
        """Test exit code 2 when settings.gradle is not valid UTF-8."""
        with tempfile.TemporaryDirectory() as tmpdir:
            (Path(tmpdir) / "settings.gradle").write_bytes(b"include ':a' \xff\xfe\n")

            assert main([tmpdir, "-q"]) == 2

        assert "Cannot decode settings.gradle" in capsys.readouterr().err

    def test_invalid_config_value(self, capsys):
        """Test exit code 2 for a config value of the wrong type."""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = _write(Path(tmpdir), "indexer.yaml", "include_tests: sometimes\n")

            assert main([tmpdir, "-q", "--config", str(path)]) == 2

        assert "include_tests" in capsys.readouterr().err

    def test_missing_module_file(self):
        """Test exit code 2 for a missing module file."""
        with tempfile.TemporaryDirectory() as tmpdir:
            assert main([tmpdir, "-q", "--module-file", "missing.txt"]) == 2

    def test_build_failure(self, monkeypatch, capsys):
        """Test exit code 1 when graph assembly fails."""
        def explode(*args, **kwargs):
            raise RuntimeError("boom")

        monkeypatch.setattr("cli.build_graph", explode)
        with tempfile.TemporaryDirectory() as tmpdir:
            assert main([tmpdir, "-q"]) == 1

        assert "failed to build graph: RuntimeError: boom" in capsys.readouterr().err

    def test_empty_repository(self):
        """Test that a repository without settings still gets an index."""
        with tempfile.TemporaryDirectory() as tmpdir:
            assert main([tmpdir, "-q"]) == 0

            index = json.loads((Path(tmpdir) / ".repo-ai" / "index.json").read_text(encoding="utf-8"))
            assert index["modules"] == []
            assert index["summary"]["totalTypes"] == 0
