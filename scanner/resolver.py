"""Repository-wide symbol table for resolving type references to fqcns."""

import logging
from collections import Counter
from typing import Dict, FrozenSet, Optional, Set

from graph.ids import normalize_type_name, short_name, type_id
from .errors import SymbolTableFrozenError

logger = logging.getLogger(__name__)


class SymbolTableBuilder:
    """
    Registration phase of the symbol table.

    Every scanned type is registered once per declaration. ``freeze()`` ends
    registration and returns the query-only SymbolTable.
    """

    def __init__(self):
        self._fqcns: Set[str] = set()
        self._short_counts: Counter = Counter()
        self._frozen = False

    def register(self, fqcn: str) -> None:
        """
        Register a declared type.

        Args:
            fqcn: Fully-qualified name of the type.

        Raises:
            SymbolTableFrozenError: If called after ``freeze()``.
        """
        if self._frozen:
            raise SymbolTableFrozenError(fqcn)
        if fqcn in self._fqcns:
            logger.warning("Duplicate declaration of %s; later declaration wins", fqcn)
        self._fqcns.add(fqcn)
        self._short_counts[short_name(fqcn)] += 1

    def freeze(self) -> "SymbolTable":
        """Compute the unique short-name map and return the frozen table."""
        self._frozen = True
        unique: Dict[str, str] = {}
        for fqcn in self._fqcns:
            name = short_name(fqcn)
            if self._short_counts[name] == 1:
                unique[name] = fqcn
        logger.debug(
            "Symbol table frozen: %d types, %d unique short names",
            len(self._fqcns), len(unique),
        )
        return SymbolTable(frozenset(self._fqcns), unique)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __len__(self) -> int:
        return len(self._fqcns)


class SymbolTable:
    """Frozen, query-only symbol table."""

    def __init__(self, fqcns: FrozenSet[str], unique_short_names: Dict[str, str]):
        self._fqcns = fqcns
        self._unique = dict(unique_short_names)

    def resolve(self, raw_name: Optional[str], context_package: Optional[str]) -> Optional[str]:
        """
        Resolve a raw type name to a fqcn.

        Tries, in order:
        1. A dotted name is returned unchanged (not checked against known types).
        2. ``context_package + "." + name`` if that type is registered.
        3. The fqcn of a short name that is unique across the repository.

        Args:
            raw_name: Type name as written in source (normalized here).
            context_package: Package of the referencing type.

        Returns:
            The fqcn, or None if unresolved.
        """
        name = normalize_type_name(raw_name)
        if not name:
            return None

        if "." in name:
            return name

        if context_package:
            candidate = f"{context_package}.{name}"
            if candidate in self._fqcns:
                return candidate

        return self._unique.get(name)

    def to_identifier(self, raw_name: Optional[str], context_package: Optional[str]) -> str:
        """Return ``t:<fqcn>`` if resolvable, else the ``t:<raw name>`` placeholder."""
        fqcn = self.resolve(raw_name, context_package)
        if fqcn is not None:
            return type_id(fqcn)
        return type_id(normalize_type_name(raw_name))

    def is_known(self, fqcn: str) -> bool:
        """Check if a fqcn was registered during scanning."""
        return fqcn in self._fqcns

    def __len__(self) -> int:
        return len(self._fqcns)

    def __contains__(self, fqcn: str) -> bool:
        return fqcn in self._fqcns
