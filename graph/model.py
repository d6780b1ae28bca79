"""Graph data model for the assembled per-module type graph."""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterator, List, Optional, Tuple


@dataclass(frozen=True)
class TypeRecord:
    """One line of ``types.<module>.jsonl``."""

    id: str
    kind: str  # "class" | "interface"
    file: str
    implements_ids: List[str] = field(default_factory=list)
    extends_ids: List[str] = field(default_factory=list)
    ejb: Optional[str] = None  # stateless | stateful | singleton
    ejb_local: List[str] = field(default_factory=list)
    ejb_remote: List[str] = field(default_factory=list)
    injects: List[str] = field(default_factory=list)
    inject_members: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "kind": self.kind,
            "file": self.file,
            "implementsIds": list(self.implements_ids),
            "extendsIds": list(self.extends_ids),
            "ejb": self.ejb,
            "ejbLocal": list(self.ejb_local),
            "ejbRemote": list(self.ejb_remote),
            "injects": list(self.injects),
            "injectMembers": list(self.inject_members),
        }


@dataclass(frozen=True)
class InjectionRecord:
    """One line of ``inject.<module>.jsonl``."""

    source: str
    member_kind: str  # "field" | "method"
    member: str
    type: str
    via: str  # "EJB" | "CDI" | "JPA"

    def sort_key(self) -> Tuple[str, str, str, str, str]:
        return (self.source, self.member_kind, self.member, self.type, self.via)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "from": self.source,
            "memberKind": self.member_kind,
            "member": self.member,
            "type": self.type,
            "via": self.via,
        }


@dataclass(frozen=True)
class BindingRecord:
    """One line of ``ejb.<module>.jsonl``: a marked interface and its beans."""

    iface: str
    local: bool
    remote: bool
    impls: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "iface": self.iface,
            "local": self.local,
            "remote": self.remote,
            "impls": list(self.impls),
        }


@dataclass(frozen=True)
class ModuleBundle:
    """All records emitted for a single module."""

    types: List[TypeRecord] = field(default_factory=list)
    inject: List[InjectionRecord] = field(default_factory=list)
    ejb: List[BindingRecord] = field(default_factory=list)


class Graph:
    """
    The fully assembled graph, ready for writing.

    Holds one ModuleBundle per module id plus two global indices:
    type id -> module id, and bound interface id -> module id.
    """

    def __init__(self, parse_warnings: int = 0):
        self._modules: Dict[str, ModuleBundle] = {}
        self._type_index: Dict[str, str] = {}
        self._ejb_index: Dict[str, str] = {}
        self.parse_warnings = parse_warnings

    @property
    def modules(self) -> Dict[str, ModuleBundle]:
        """Return module id -> bundle."""
        return dict(self._modules)

    @property
    def type_index(self) -> Dict[str, str]:
        """Return type id -> owning module id."""
        return dict(self._type_index)

    @property
    def ejb_index(self) -> Dict[str, str]:
        """Return bound interface id -> owning module id."""
        return dict(self._ejb_index)

    def add_module(self, module_id: str, bundle: ModuleBundle) -> None:
        """Add or replace the bundle of a module."""
        self._modules[module_id] = bundle

    def ensure_module(self, module_id: str) -> None:
        """Add an empty bundle for a module unless it already has one."""
        self._modules.setdefault(module_id, ModuleBundle())

    def get_module(self, module_id: str) -> ModuleBundle:
        """Get the bundle of a module (empty if unknown)."""
        return self._modules.get(module_id, ModuleBundle())

    def index_type(self, type_id: str, module_id: str) -> None:
        """Record which module owns a type id."""
        self._type_index[type_id] = module_id

    def index_binding(self, iface_id: str, module_id: str) -> None:
        """Record which module owns a bound interface id."""
        self._ejb_index[iface_id] = module_id

    def module_of(self, type_id: str) -> Optional[str]:
        """Get the module owning a type id, if known."""
        return self._type_index.get(type_id)

    def iter_modules(self) -> Iterator[Tuple[str, ModuleBundle]]:
        """Iterate over (module id, bundle) in module id order."""
        for module_id in sorted(self._modules):
            yield module_id, self._modules[module_id]

    def total_types(self) -> int:
        return sum(len(b.types) for b in self._modules.values())

    def total_injections(self) -> int:
        return sum(len(b.inject) for b in self._modules.values())

    def total_bindings(self) -> int:
        return sum(len(b.ejb) for b in self._modules.values())

    def __len__(self) -> int:
        """Return the number of modules in the graph."""
        return len(self._modules)

    def __contains__(self, module_id: str) -> bool:
        """Check if a module is in the graph."""
        return module_id in self._modules

    def __repr__(self) -> str:
        return (
            f"Graph(modules={len(self._modules)}, types={self.total_types()}, "
            f"injections={self.total_injections()}, bindings={self.total_bindings()}, "
            f"warnings={self.parse_warnings})"
        )
