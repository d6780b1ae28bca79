"""Indexer configuration: config files, module files and defaults."""

import logging
import re
import tomllib
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from scanner.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_OUT_DIR = ".repo-ai"
TOOL_TABLE = "ai-indexer"

MODULE_SEPARATORS = re.compile(r"[,\s]+")


def split_modules(value: str) -> List[str]:
    """Split a comma or whitespace separated list of module ids."""
    return [token for token in MODULE_SEPARATORS.split(value.strip()) if token]


class IndexerConfig(BaseModel):
    """Settings of one indexer run. Unset paths are resolved against the repo root."""

    model_config = ConfigDict(extra="ignore", validate_assignment=True)

    out_dir: Optional[Path] = Field(default=None, description="Output directory.")
    include_tests: bool = Field(default=True, description="Scan test source sets too.")
    modules: List[str] = Field(default_factory=list, description="Module allow-list.")
    module_file: Optional[Path] = Field(default=None, description="File listing module ids.")

    @field_validator("modules", mode="before")
    @classmethod
    def modules_from_string(cls, v: Any) -> Any:
        if v is None:
            return []
        if isinstance(v, str):
            return split_modules(v)
        if isinstance(v, list):
            stripped = [m.strip() if isinstance(m, str) else m for m in v]
            return [m for m in stripped if m != ""]
        return v

    def resolved_out_dir(self, repo_root: Path) -> Path:
        """Return the output directory, defaulting to ``<repo>/.repo-ai``."""
        if self.out_dir is None:
            return repo_root / DEFAULT_OUT_DIR
        return _resolve_against(repo_root, self.out_dir)

    def module_filter(self, repo_root: Path) -> List[str]:
        """
        Return the module allow-list: ``modules`` plus the module file's ids.

        Raises:
            ConfigError: If the module file does not exist or cannot be read.
        """
        wanted = dict.fromkeys(self.modules)
        if self.module_file is not None:
            wanted.update(dict.fromkeys(load_module_file(_resolve_against(repo_root, self.module_file))))
        return list(wanted)


def _resolve_against(repo_root: Path, path: Path) -> Path:
    if path.is_absolute():
        return path
    return (repo_root / path).resolve()


def load_module_file(path: Path) -> List[str]:
    """
    Read module ids from a module file.

    Ids may be one per line or separated by commas or spaces; ``#`` starts
    a comment that runs to the end of the line.

    Args:
        path: Module file path.

    Returns:
        Module ids in file order.

    Raises:
        ConfigError: If the file does not exist or cannot be read.
    """
    if not path.is_file():
        raise ConfigError(f"Module file not found: {path}")
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read module file {path}: {e}") from e

    modules: List[str] = []
    for line in content.splitlines():
        line = line.split("#", 1)[0]
        modules.extend(split_modules(line))
    return modules


def _toml_settings(data: Dict[str, Any], path: Path) -> Dict[str, Any]:
    """Pick the ``[tool.ai-indexer]`` table if present, else the top-level keys."""
    tool = data.get("tool")
    if not isinstance(tool, dict):
        return data
    section = tool.get(TOOL_TABLE)
    if section is None:
        return {k: v for k, v in data.items() if k != "tool"}
    if not isinstance(section, dict):
        raise ConfigError(f"[tool.{TOOL_TABLE}] in {path} must be a table")
    return section


def parse_config_file(path: Path) -> Dict[str, Any]:
    """
    Parse a YAML or TOML config file into a dictionary.

    TOML settings may sit at the top level or under ``[tool.ai-indexer]``.

    Raises:
        ConfigError: If the file is missing, unreadable or malformed.
    """
    suffix = path.suffix.lower()
    try:
        content = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e

    try:
        if suffix in {".yaml", ".yml"}:
            data = yaml.safe_load(content)
        elif suffix == ".toml":
            data = _toml_settings(tomllib.loads(content), path)
        else:
            raise ConfigError(f"Unsupported config file type: {path}")
    except (yaml.YAMLError, tomllib.TOMLDecodeError) as e:
        raise ConfigError(f"Malformed config file {path}: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")
    return data


def load_config(path: Path) -> IndexerConfig:
    """
    Load an IndexerConfig from a YAML or TOML file.

    Args:
        path: Config file path.

    Returns:
        The configuration; keys absent (or null) in the file keep their defaults.

    Raises:
        ConfigError: If the file cannot be read or a value does not validate.
    """
    data = parse_config_file(path)
    unknown = sorted(str(k) for k in data if k not in IndexerConfig.model_fields)
    if unknown:
        logger.warning("Ignoring unknown config keys in %s: %s", path, ", ".join(unknown))

    try:
        return IndexerConfig.model_validate({k: v for k, v in data.items() if v is not None})
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError(f"Invalid config file {path}: {problems}") from e
