"""Graph builder that orchestrates scanning, resolution and graph assembly."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Set, Tuple

from graph.ids import field_id, member_id, type_id
from graph.model import BindingRecord, Graph, InjectionRecord, ModuleBundle, TypeRecord
from .discovery import find_source_roots
from .extractor import FileScan, ScannedType, TypeScanner
from .modules import ModuleLayout
from .resolver import SymbolTable, SymbolTableBuilder

logger = logging.getLogger(__name__)


@dataclass
class BindingAccumulator:
    """A marked interface and the beans seen implementing it."""

    local: bool
    remote: bool
    impls: Set[str] = field(default_factory=set)


class BindingContext:
    """
    Interface bindings collected during assembly, keyed by interface fqcn.

    Only interfaces known to the scan and carrying a ``@Local`` or
    ``@Remote`` marker are accepted.
    """

    def __init__(self, symbols: SymbolTable, types_by_fqcn: Mapping[str, ScannedType]):
        self.symbols = symbols
        self.types_by_fqcn = types_by_fqcn
        self._bindings: Dict[str, BindingAccumulator] = {}

    def marked_interface(self, raw_name: str, context_package: str) -> Optional[ScannedType]:
        """Resolve a raw implements name to a known, marked interface, or None."""
        fqcn = self.symbols.resolve(raw_name, context_package)
        if fqcn is None:
            return None
        iface = self.types_by_fqcn.get(fqcn)
        if iface is None or not iface.is_interface:
            return None
        if not iface.local and not iface.remote:
            return None
        return iface

    def add_bean(self, bean: ScannedType) -> None:
        """Record a bean under every marked interface it implements."""
        for raw_name in bean.implements_raw:
            iface = self.marked_interface(raw_name, bean.package)
            if iface is None:
                continue
            acc = self._bindings.get(iface.fqcn)
            if acc is None:
                acc = BindingAccumulator(iface.local, iface.remote)
                self._bindings[iface.fqcn] = acc
            acc.impls.add(bean.fqcn)

    def records_for(self, module_id: str, graph: Graph) -> List[BindingRecord]:
        """Binding records of the interfaces owned by ``module_id``."""
        records = []
        for iface_fqcn, acc in self._bindings.items():
            iface_id = type_id(iface_fqcn)
            if graph.module_of(iface_id) != module_id:
                continue
            records.append(BindingRecord(
                iface=iface_id,
                local=acc.local,
                remote=acc.remote,
                impls=[type_id(f) for f in sorted(acc.impls)],
            ))
        return records

    def __len__(self) -> int:
        return len(self._bindings)


def scan_modules(
    repo_root: Path,
    source_roots: Mapping[str, List[Path]],
    symbols: SymbolTableBuilder,
) -> Tuple[Dict[str, FileScan], int]:
    """
    Run the type scanner over every source root of every module.

    Args:
        repo_root: Repository root, for repo-relative file paths.
        source_roots: Module id -> source root directories.
        symbols: Builder receiving every scanned type.

    Returns:
        (module id -> scan results, number of warnings).
    """
    scanner = TypeScanner(repo_root, symbols)
    scans: Dict[str, FileScan] = {}
    for module_id in sorted(source_roots):
        scan = scans.setdefault(module_id, FileScan())
        for root in source_roots[module_id]:
            scan.extend(scanner.scan_root(root))
        logger.debug(
            "Module %s: %d types, %d injections",
            module_id, len(scan.types), len(scan.injections),
        )
    return scans, scanner.warnings


def build_graph(
    repo_root: Path,
    layout: ModuleLayout,
    include_tests: bool = True,
) -> Graph:
    """
    Scan a repository and build the type graph.

    Args:
        repo_root: Repository root directory.
        layout: Modules to index.
        include_tests: Whether test source sets are scanned.

    Returns:
        Graph with one bundle per module of the layout (empty bundles for
        modules without sources).
    """
    repo_root = repo_root.resolve()

    source_roots = find_source_roots(layout.module_dirs, include_tests)
    builder = SymbolTableBuilder()
    scans, warnings = scan_modules(repo_root, source_roots, builder)
    symbols = builder.freeze()

    return assemble_graph(scans, symbols, warnings, layout.module_ids())


def assemble_graph(
    scans: Mapping[str, FileScan],
    symbols: SymbolTable,
    warnings: int = 0,
    declared_modules: Iterable[str] = (),
) -> Graph:
    """
    Resolve scanned types and assemble the per-module records.

    Args:
        scans: Module id -> scan results.
        symbols: Frozen symbol table covering every scanned type.
        warnings: Scan warnings to carry into the graph.
        declared_modules: Modules that must appear even without records.

    Returns:
        The assembled Graph.
    """
    graph = Graph(parse_warnings=warnings)
    module_ids = sorted(scans)

    types_by_fqcn: Dict[str, ScannedType] = {}
    for module_id in module_ids:
        for st in scans[module_id].types:
            # later declarations win
            types_by_fqcn[st.fqcn] = st
            graph.index_type(type_id(st.fqcn), module_id)

    members_by_type: Dict[str, List[str]] = {}
    for module_id in module_ids:
        for si in scans[module_id].injections:
            members_by_type.setdefault(si.owner_fqcn, []).append(
                member_id(si.owner_fqcn, si.member_kind, si.member)
            )

    bindings = BindingContext(symbols, types_by_fqcn)
    for module_id in module_ids:
        for st in scans[module_id].types:
            if st.is_bean:
                bindings.add_bean(st)
    logger.debug("Inferred %d interface bindings", len(bindings))

    for module_id in module_ids:
        scan = scans[module_id]
        types = [
            _type_record(st, symbols, bindings, members_by_type)
            for st in scan.types
        ]
        inject = [
            InjectionRecord(
                source=type_id(si.owner_fqcn),
                member_kind=si.member_kind,
                member=si.member,
                type=symbols.to_identifier(si.type_raw, si.owner_package),
                via=si.via.value,
            )
            for si in scan.injections
        ]
        ejb = bindings.records_for(module_id, graph)
        for record in ejb:
            graph.index_binding(record.iface, module_id)

        types.sort(key=lambda r: r.id)
        inject.sort(key=InjectionRecord.sort_key)
        ejb.sort(key=lambda r: r.iface)
        graph.add_module(module_id, ModuleBundle(types, inject, ejb))

    for module_id in declared_modules:
        graph.ensure_module(module_id)

    return graph


def _type_record(
    st: ScannedType,
    symbols: SymbolTable,
    bindings: BindingContext,
    members_by_type: Mapping[str, List[str]],
) -> TypeRecord:
    ejb_local: List[str] = []
    ejb_remote: List[str] = []
    if st.is_bean:
        for raw_name in st.implements_raw:
            iface = bindings.marked_interface(raw_name, st.package)
            if iface is None:
                continue
            if iface.local:
                ejb_local.append(type_id(iface.fqcn))
            if iface.remote:
                ejb_remote.append(type_id(iface.fqcn))

    return TypeRecord(
        id=type_id(st.fqcn),
        kind="interface" if st.is_interface else "class",
        file=st.file,
        implements_ids=sorted(symbols.to_identifier(n, st.package) for n in st.implements_raw),
        extends_ids=sorted(symbols.to_identifier(n, st.package) for n in st.extends_raw),
        ejb=st.lifecycle.value if st.lifecycle else None,
        ejb_local=sorted(ejb_local),
        ejb_remote=sorted(ejb_remote),
        injects=sorted(field_id(st.fqcn, f.field_name) for f in st.injected_fields),
        inject_members=sorted(members_by_type.get(st.fqcn, [])),
    )
