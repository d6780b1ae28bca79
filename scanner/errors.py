"""Exceptions raised by the indexer."""


class IndexerError(Exception):
    """Base exception for all indexer errors."""


class ConfigError(IndexerError):
    """Raised when configuration or a module file cannot be read or is invalid."""


class SymbolTableFrozenError(IndexerError):
    """Raised when a type is registered after the symbol table was frozen."""

    def __init__(self, fqcn: str):
        self.fqcn = fqcn
        super().__init__(f"Symbol table is frozen; cannot register '{fqcn}'")
