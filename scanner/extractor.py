"""Structural extraction of types and injection points from parsed Java sources."""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

from graph.ids import method_signature, normalize_type_name, short_name
from .discovery import get_relative_path, iter_java_files
from .parser import ImportDecl, SourceTree, TypeDecl, parse_file
from .resolver import SymbolTableBuilder

logger = logging.getLogger(__name__)

MAX_MESSAGE_LENGTH = 200

PRIMITIVE_TYPES = {
    "boolean", "byte", "short", "int", "long", "char", "float", "double", "void",
}


class Lifecycle(str, Enum):
    """Component lifecycle kind of a bean class."""

    STATELESS = "stateless"
    STATEFUL = "stateful"
    SINGLETON = "singleton"


class InjectionVia(str, Enum):
    """Injection mechanism of an injection point."""

    EJB = "EJB"
    CDI = "CDI"
    JPA = "JPA"


# Checked in order; the first match wins
LIFECYCLE_ANNOTATIONS = (
    ("Stateless", Lifecycle.STATELESS),
    ("Stateful", Lifecycle.STATEFUL),
    ("Singleton", Lifecycle.SINGLETON),
)

INJECTION_ANNOTATIONS = (
    ("EJB", InjectionVia.EJB),
    ("Inject", InjectionVia.CDI),
    ("PersistenceContext", InjectionVia.JPA),
)


@dataclass(frozen=True)
class InjectedField:
    field_name: str
    type_raw: str
    via: InjectionVia


@dataclass(frozen=True)
class ScannedInjection:
    """A field or method-parameter injection edge, with its type still unresolved."""

    owner_fqcn: str
    owner_package: str
    member_kind: str  # "field" | "method"
    member: str  # field name or method signature
    type_raw: str
    via: InjectionVia


@dataclass(frozen=True)
class ScannedType:
    """A declared class or interface, with its supertypes still unresolved."""

    fqcn: str
    package: str
    file: str
    is_interface: bool
    local: bool = False
    remote: bool = False
    lifecycle: Optional[Lifecycle] = None
    implements_raw: Tuple[str, ...] = ()
    extends_raw: Tuple[str, ...] = ()
    injected_fields: Tuple[InjectedField, ...] = ()

    @property
    def is_bean(self) -> bool:
        return self.lifecycle is not None


@dataclass
class FileScan:
    """Types and injections contributed by one or more files."""

    types: List[ScannedType] = field(default_factory=list)
    injections: List[ScannedInjection] = field(default_factory=list)

    def extend(self, other: "FileScan") -> None:
        self.types.extend(other.types)
        self.injections.extend(other.injections)


def annotation_short_name(name: str) -> str:
    """Return the simple name of an annotation, e.g. ``javax.ejb.EJB`` -> ``EJB``."""
    return short_name(name)


def has_annotation(annotations: Iterable[str], simple_name: str) -> bool:
    """Check if any annotation matches by simple name, ignoring its qualification."""
    return any(annotation_short_name(a) == simple_name for a in annotations)


def lifecycle_of(annotations: Iterable[str]) -> Optional[Lifecycle]:
    annotations = tuple(annotations)
    for simple_name, lifecycle in LIFECYCLE_ANNOTATIONS:
        if has_annotation(annotations, simple_name):
            return lifecycle
    return None


def injection_via(annotations: Iterable[str]) -> Optional[InjectionVia]:
    """Return the injection mechanism of a member; EJB wins over CDI over JPA."""
    annotations = tuple(annotations)
    for simple_name, via in INJECTION_ANNOTATIONS:
        if has_annotation(annotations, simple_name):
            return via
    return None


def resolve_imported_type(type_name: str, imports: Iterable[ImportDecl]) -> str:
    """
    Rewrite a bare type name to the fqcn of a matching single-type import.

    Qualified names, primitives and names without a matching import are
    returned unchanged. Static and wildcard imports are never expanded.

    Args:
        type_name: Normalized type name.
        imports: Imports of the file.

    Returns:
        The imported fqcn, or ``type_name``.
    """
    if not type_name or "." in type_name or type_name in PRIMITIVE_TYPES:
        return type_name
    for imp in imports:
        if imp.is_static or imp.is_wildcard:
            continue
        if short_name(imp.name) == type_name:
            return imp.name
    return type_name


def type_fqcn(decl: TypeDecl, package: str) -> str:
    """Return the declared qualified name, or synthesize it from enclosing types."""
    if decl.qualified_name:
        return decl.qualified_name
    return ".".join(p for p in (package, *decl.enclosing, decl.name) if p)


def _safe_message(message: object) -> str:
    text = str(message) if message is not None else ""
    if len(text) > MAX_MESSAGE_LENGTH:
        return text[:MAX_MESSAGE_LENGTH] + "..."
    return text


class TypeScanner:
    """
    Scans Java files into ScannedType / ScannedInjection records.

    Every type found is registered with the symbol table builder. Files
    that fail to parse or extract are skipped and counted as warnings.
    """

    def __init__(self, repo_root: Path, symbols: SymbolTableBuilder):
        self.repo_root = repo_root.resolve()
        self.symbols = symbols
        self._warnings = 0

    @property
    def warnings(self) -> int:
        """Number of files with parse problems or extraction failures."""
        return self._warnings

    def scan_root(self, source_root: Path) -> FileScan:
        """Scan every ``.java`` file under a source root, in sorted order."""
        scan = FileScan()
        count = 0
        for file_path in iter_java_files(source_root):
            scan.extend(self.scan_file(file_path))
            count += 1
        logger.debug("Scanned %d files under %s", count, source_root)
        return scan

    def scan_file(self, file_path: Path) -> FileScan:
        """
        Scan a single file.

        Args:
            file_path: Path to the ``.java`` file.

        Returns:
            The file's types and injections; empty if the file is unusable.
        """
        result = parse_file(file_path)
        if result.diagnostics:
            self._warn(file_path, "parse problems", result.diagnostics[0])
        if result.tree is None:
            return FileScan()

        file_rel = get_relative_path(file_path, self.repo_root).as_posix()
        try:
            scan = self.extract(result.tree, file_rel)
        except Exception as e:
            self._warn(file_path, "failed to extract", f"{type(e).__name__}: {e}")
            return FileScan()

        for scanned in scan.types:
            self.symbols.register(scanned.fqcn)
        return scan

    def extract(self, tree: SourceTree, file_rel: str) -> FileScan:
        """
        Extract types and injection points from a parsed file.

        Nothing is registered here; ``scan_file`` registers the types once
        the whole file has been extracted.
        """
        scan = FileScan()
        package = tree.package
        for decl in tree.types:
            fqcn = type_fqcn(decl, package)
            is_interface = decl.is_interface

            injected_fields: List[InjectedField] = []
            for fd in decl.fields:
                via = injection_via(fd.annotations)
                if via is None:
                    continue
                type_raw = resolve_imported_type(normalize_type_name(fd.type_text), tree.imports)
                for name in fd.names:
                    injected_fields.append(InjectedField(name, type_raw, via))
                    scan.injections.append(
                        ScannedInjection(fqcn, package, "field", name, type_raw, via)
                    )

            for md in decl.methods:
                via = injection_via(md.annotations)
                if via is None or not md.param_types:
                    continue
                signature = method_signature(md.name, list(md.param_types))
                for param_type in md.param_types:
                    type_raw = resolve_imported_type(normalize_type_name(param_type), tree.imports)
                    scan.injections.append(
                        ScannedInjection(fqcn, package, "method", signature, type_raw, via)
                    )

            scan.types.append(ScannedType(
                fqcn=fqcn,
                package=package,
                file=file_rel,
                is_interface=is_interface,
                local=is_interface and has_annotation(decl.annotations, "Local"),
                remote=is_interface and has_annotation(decl.annotations, "Remote"),
                lifecycle=None if is_interface else lifecycle_of(decl.annotations),
                implements_raw=tuple(normalize_type_name(n) for n in decl.implements),
                extends_raw=tuple(normalize_type_name(n) for n in decl.extends),
                injected_fields=tuple(injected_fields),
            ))
        return scan

    def _warn(self, file_path: Path, what: str, message: object) -> None:
        self._warnings += 1
        logger.warning("%s in %s -> %s", what, file_path, _safe_message(message))
