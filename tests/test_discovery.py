"""Tests for module layout and source root discovery."""

import pytest
from pathlib import Path
import tempfile

from scanner.discovery import find_source_roots, is_source_root, iter_java_files
from scanner.errors import ConfigError
from scanner.modules import ModuleLayout


def _touch(root: Path, rel: str, content: str = "") -> Path:
    path = root / rel
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return path


class TestModuleLayout:
    """Tests for reading settings.gradle."""

    def test_include_tokens(self):
        """Test module ids from single- and multi-line include blocks."""
        text = """
rootProject.name = 'shop'
include ':core', ':web'
include(
    ':batch',
    ':reports'
)
"""
        layout = ModuleLayout.parse(Path("/repo"), text)

        assert layout.module_ids() == ["batch", "core", "reports", "web"]
        assert layout.module_dirs["core"] == Path("/repo/core").resolve()

    def test_project_dir_override(self):
        """Test explicit projectDir assignments."""
        text = """
include ':legacy', ':kts'
project(':legacy').projectDir = new File(settingsDir, 'old/legacy-module')
project(":kts").projectDir = file("modules/kts")
"""
        layout = ModuleLayout.parse(Path("/repo"), text)

        assert layout.module_dirs["legacy"] == Path("/repo/old/legacy-module").resolve()
        assert layout.module_dirs["kts"] == Path("/repo/modules/kts").resolve()

    def test_kotlin_dsl_quotes(self):
        """Test double-quoted module ids."""
        layout = ModuleLayout.parse(Path("/repo"), 'include(":app", ":lib")\n')

        assert layout.module_ids() == ["app", "lib"]

    def test_indexer_module_is_skipped(self):
        """Test that the indexer's own module is never indexed."""
        layout = ModuleLayout.parse(Path("/repo"), "include ':core', ':ai-indexer'\n")

        assert layout.module_ids() == ["core"]

    def test_missing_settings(self):
        """Test that a repository without settings has no modules."""
        with tempfile.TemporaryDirectory() as tmpdir:
            layout = ModuleLayout.load(Path(tmpdir))

            assert len(layout) == 0

    def test_load_from_disk(self):
        """Test loading settings.gradle from the repository root."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            _touch(root, "settings.gradle", "include ':core'\n")

            layout = ModuleLayout.load(root)

            assert "core" in layout

    def test_undecodable_settings(self):
        """Test that a settings file that is not UTF-8 is a config error."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / "settings.gradle").write_bytes(b"include ':a' \xff\xfe\n")

            with pytest.raises(ConfigError):
                ModuleLayout.load(root)

    def test_filter_modules(self):
        """Test the module allow-list."""
        layout = ModuleLayout.parse(Path("/repo"), "include ':a', ':b', ':c'\n")

        assert layout.filter_modules(["c", "a", "zzz"]).module_ids() == ["a", "c"]
        assert layout.filter_modules([]).module_ids() == ["a", "b", "c"]
        assert layout.filter_modules(None).module_ids() == ["a", "b", "c"]


class TestSourceRoots:
    """Tests for finding src/<set>/java directories."""

    def test_is_source_root(self):
        """Test the src/<set>/java pattern."""
        assert is_source_root(Path("/repo/core/src/main/java"))
        assert is_source_root(Path("/repo/core/src/integrationTest/java"))
        assert not is_source_root(Path("/repo/core/src/main/kotlin"))
        assert not is_source_root(Path("/repo/core/main/java"))

    def test_find_source_roots(self):
        """Test discovery of main and test roots, skipping build output."""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            core = root / "core"
            _touch(core, "src/main/java/p/A.java")
            _touch(core, "src/test/java/p/ATest.java")
            _touch(core, "build/generated/src/main/java/p/Gen.java")
            _touch(core, "nested/src/main/java/q/B.java")

            roots = find_source_roots({"core": core, "gone": root / "gone"})

            assert list(roots) == ["core"]
            assert roots["core"] == [
                core / "nested" / "src" / "main" / "java",
                core / "src" / "main" / "java",
                core / "src" / "test" / "java",
            ]

    def test_exclude_tests(self):
        """Test that only src/main/java is kept without tests."""
        with tempfile.TemporaryDirectory() as tmpdir:
            core = Path(tmpdir) / "core"
            _touch(core, "src/main/java/p/A.java")
            _touch(core, "src/test/java/p/ATest.java")

            roots = find_source_roots({"core": core}, include_tests=False)

            assert roots["core"] == [core / "src" / "main" / "java"]

    def test_iter_java_files(self):
        """Test that only .java files are yielded, in sorted order."""
        with tempfile.TemporaryDirectory() as tmpdir:
            src = Path(tmpdir)
            _touch(src, "p/B.java")
            _touch(src, "p/A.java")
            _touch(src, "p/notes.txt")
            _touch(src, "a/Z.java")

            files = [f.relative_to(src).as_posix() for f in iter_java_files(src)]

            assert files == ["a/Z.java", "p/A.java", "p/B.java"]
