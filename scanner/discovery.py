"""Source root and file discovery for module directories."""

import logging
from pathlib import Path
from typing import Dict, Iterator, List, Mapping, Optional, Set

logger = logging.getLogger(__name__)

JAVA_EXTENSION = ".java"
MAIN_SOURCE_SET = "main"
DEFAULT_EXCLUDE_DIRS = {
    ".git", ".idea", "build", "out", "node_modules",
}


def find_source_roots(
    module_dirs: Mapping[str, Path],
    include_tests: bool = True,
    exclude_dirs: Optional[Set[str]] = None,
) -> Dict[str, List[Path]]:
    """
    Find the Java source roots of each module.

    A source root is any ``src/<set>/java`` directory below the module
    directory. With ``include_tests`` False only ``src/main/java`` counts.
    Modules whose directory does not exist are left out.

    Args:
        module_dirs: Module id -> module directory.
        include_tests: Whether non-main source sets are included.
        exclude_dirs: Directory names never descended into.

    Returns:
        Module id -> sorted list of source root directories.
    """
    if exclude_dirs is None:
        exclude_dirs = DEFAULT_EXCLUDE_DIRS

    roots_by_module: Dict[str, List[Path]] = {}
    for module_id, module_dir in module_dirs.items():
        if not module_dir.is_dir():
            logger.debug("Module %s has no directory at %s", module_id, module_dir)
            continue
        roots = sorted(_walk_roots(module_dir, include_tests, exclude_dirs))
        logger.debug("Module %s: %d source roots", module_id, len(roots))
        roots_by_module[module_id] = roots
    return roots_by_module


def _walk_roots(current: Path, include_tests: bool, exclude_dirs: Set[str]) -> Iterator[Path]:
    try:
        entries = sorted(current.iterdir())
    except PermissionError:
        return

    for entry in entries:
        if not entry.is_dir() or entry.name in exclude_dirs:
            continue
        if is_source_root(entry):
            if include_tests or entry.parent.name == MAIN_SOURCE_SET:
                yield entry
            # no need to look below a source root
            continue
        yield from _walk_roots(entry, include_tests, exclude_dirs)


def is_source_root(directory: Path) -> bool:
    """Check if a directory looks like ``.../src/<set>/java``."""
    parts = directory.parts
    if len(parts) < 3:
        return False
    return parts[-1] == "java" and parts[-3] == "src" and bool(parts[-2].strip())


def iter_java_files(source_root: Path) -> Iterator[Path]:
    """
    Iterate over ``.java`` files below a source root.

    Args:
        source_root: Directory to scan.

    Yields:
        File paths in sorted order.
    """
    if not source_root.is_dir():
        return
    for path in sorted(source_root.rglob("*" + JAVA_EXTENSION)):
        if path.is_file():
            yield path


def get_relative_path(file_path: Path, root: Path) -> Path:
    """Get the path relative to root, handling edge cases."""
    try:
        return file_path.resolve().relative_to(root.resolve())
    except ValueError:
        return file_path
