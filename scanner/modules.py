"""Gradle module layout loaded from the settings file."""

import logging
import re
from pathlib import Path
from typing import Dict, Iterable, List, Optional

from .errors import ConfigError

logger = logging.getLogger(__name__)

SETTINGS_FILES = ("settings.gradle", "settings.gradle.kts")

# The indexer's own module is never indexed
INDEXER_MODULE_ID = "ai-indexer"

# ':moduleName' (or ":moduleName") anywhere on a line, so multi-line include blocks work
MODULE_TOKEN = re.compile(r"""(['"]):([^'"]+)\1""")

PROJECT_DIR = re.compile(
    r"""project\(\s*(['"]):([^'"]+)\1\s*\)\.projectDir\s*=\s*"""
    r"""(?:new\s+File\(\s*settingsDir\s*,\s*|file\(\s*)(['"])([^'"]+)\3"""
)


class ModuleLayout:
    """
    Module id -> module directory, as declared by ``settings.gradle``.

    A module's directory is ``<repo>/<id>`` unless the settings file assigns
    an explicit ``projectDir``.
    """

    def __init__(self, repo_root: Path, module_dirs: Optional[Dict[str, Path]] = None):
        self.repo_root = repo_root
        self._module_dirs: Dict[str, Path] = dict(module_dirs or {})

    @classmethod
    def load(cls, repo_root: Path) -> "ModuleLayout":
        """
        Load the layout from the repository's settings file.

        Args:
            repo_root: Repository root directory.

        Returns:
            The layout; empty if there is no settings file.

        Raises:
            OSError: If the settings file exists but cannot be read.
            ConfigError: If the settings file is not valid UTF-8.
        """
        settings = next(
            (repo_root / name for name in SETTINGS_FILES if (repo_root / name).is_file()),
            None,
        )
        if settings is None:
            logger.info("No Gradle settings file in %s; no modules to index", repo_root)
            return cls(repo_root)
        try:
            text = settings.read_text(encoding="utf-8")
        except UnicodeDecodeError as e:
            raise ConfigError(f"Cannot decode {settings.name}: {e}") from e
        return cls.parse(repo_root, text)

    @classmethod
    def parse(cls, repo_root: Path, text: str) -> "ModuleLayout":
        """Build a layout from settings file text."""
        # dict keeps encounter order
        module_ids: Dict[str, None] = {}
        project_dirs: Dict[str, str] = {}

        for line in text.splitlines():
            for match in MODULE_TOKEN.finditer(line):
                module_ids[match.group(2)] = None
            pd = PROJECT_DIR.search(line)
            if pd:
                project_dirs[pd.group(2)] = pd.group(4)

        module_dirs: Dict[str, Path] = {}
        for module_id in module_ids:
            directory = project_dirs.get(module_id, module_id)
            module_dirs[module_id] = (repo_root / directory).resolve()

        module_dirs.pop(INDEXER_MODULE_ID, None)
        logger.debug("Loaded %d modules from settings", len(module_dirs))
        return cls(repo_root, module_dirs)

    @property
    def module_dirs(self) -> Dict[str, Path]:
        """Return module id -> module directory."""
        return dict(self._module_dirs)

    def module_ids(self) -> List[str]:
        """Return module ids in sorted order."""
        return sorted(self._module_dirs)

    def filter_modules(self, module_ids: Optional[Iterable[str]]) -> "ModuleLayout":
        """
        Keep only the listed modules.

        Args:
            module_ids: Allowed module ids. None or empty keeps every module.
                Ids that are not part of the layout are ignored.

        Returns:
            A new, filtered layout.
        """
        wanted = list(module_ids or [])
        if not wanted:
            return self
        unknown = [m for m in wanted if m not in self._module_dirs]
        if unknown:
            logger.warning("Ignoring unknown modules: %s", ", ".join(unknown))
        return ModuleLayout(
            self.repo_root,
            {m: self._module_dirs[m] for m in wanted if m in self._module_dirs},
        )

    def __len__(self) -> int:
        return len(self._module_dirs)

    def __contains__(self, module_id: str) -> bool:
        return module_id in self._module_dirs

    def __repr__(self) -> str:
        return f"ModuleLayout(root={self.repo_root}, modules={self.module_ids()})"
