"""Core data model for parsed code: symbols, edges, parse results and their hashes."""

from __future__ import annotations

import hashlib
from dataclasses import dataclass, field
from enum import Enum

__all__ = [
    "SymbolKind",
    "EdgeKind",
    "Symbol",
    "Edge",
    "ParseResult",
    "sha256_hex",
    "make_symbol_id",
    "make_canonical_id",
    "make_full_hash",
]


class SymbolKind(str, Enum):
    """The kind of a code symbol, valued by its storage name."""

    FUNCTION = "function"
    METHOD = "method"
    CLASS = "class"
    STRUCT = "struct"
    ENUM = "enum"
    TRAIT = "trait"
    INTERFACE = "interface"
    MODULE = "module"
    IMPORT = "import"
    TYPE_ALIAS = "type_alias"
    CONSTANT = "constant"
    VARIABLE = "variable"

    def __str__(self) -> str:
        return self.value


class EdgeKind(str, Enum):
    """The kind of a relationship between two symbols."""

    CALLS = "CALLS"
    IMPORTS = "IMPORTS"
    INHERITS = "INHERITS"
    IMPLEMENTS = "IMPLEMENTS"
    USES = "USES"

    def __str__(self) -> str:
        return self.value


@dataclass
class Symbol:
    """A named definition extracted from a source file."""

    id: str
    canonical_id: str
    name: str
    kind: SymbolKind
    file: str
    line_start: int
    line_end: int
    signature: str
    docstring: str | None
    body: str
    body_hash: str
    full_hash: str
    language: str
    scope_chain: list[str] = field(default_factory=list)
    parent_id: str | None = None


@dataclass
class Edge:
    """A directed relationship from one symbol to another."""

    from_id: str
    to_id: str
    kind: EdgeKind
    file: str
    line: int | None = None
    confidence: float = 1.0


@dataclass
class ParseResult:
    """Symbols and edges found in one file."""

    symbols: list[Symbol] = field(default_factory=list)
    edges: list[Edge] = field(default_factory=list)
    language: str = ""


def sha256_hex(data: str) -> str:
    """Return the lowercase hex SHA-256 digest of the UTF-8 encoding of ``data``."""
    return hashlib.sha256(data.encode("utf-8")).hexdigest()


def make_symbol_id(file: str, name: str, kind: SymbolKind | str) -> str:
    """Location-dependent identity: the same name and kind in another file differs."""
    return sha256_hex(f"{file}:{name}:{SymbolKind(kind).value}")


def make_canonical_id(name: str, kind: SymbolKind | str, body_hash: str) -> str:
    """Location-independent identity: identical code anywhere shares it."""
    return sha256_hex(f"{name}:{SymbolKind(kind).value}:{body_hash}")


def make_full_hash(signature: str, body: str, docstring: str | None) -> str:
    """Hash covering signature, body and docstring; a missing docstring counts as empty."""
    return sha256_hex(f"{signature}:{body}:{docstring or ''}")