"""Scope nesting between symbols of one file, and signature extraction."""

from __future__ import annotations

from collections.abc import MutableSequence

from engram.symbols import Symbol

__all__ = ["compute_scope_hierarchy", "build_signature"]


def _innermost_parent(symbol: Symbol, candidates: list[tuple[str, int, int]]) -> str | None:
    """Return the id of the smallest range that fully contains ``symbol``."""
    best: tuple[str, int] | None = None
    for parent_id, start, end in candidates:
        if parent_id == symbol.id:
            continue
        if start <= symbol.line_start and end >= symbol.line_end:
            size = end - start
            if best is None or size < best[1]:
                best = (parent_id, size)
    return best[0] if best is not None else None


def compute_scope_hierarchy(symbols: MutableSequence[Symbol]) -> None:
    """Set ``parent_id`` and ``scope_chain`` on every symbol, in place.

    A symbol's parent is the other symbol with the smallest line range that
    fully contains it; the scope chain lists names from the outermost
    ancestor down to the symbol itself.
    """
    candidates = [(s.id, s.line_start, s.line_end) for s in symbols]
    for symbol in symbols:
        symbol.parent_id = _innermost_parent(symbol, candidates)

    parents = {s.id: (s.parent_id, s.name) for s in symbols}
    for symbol in symbols:
        chain = [symbol.name]
        current = symbol.parent_id
        visited: set[str] = set()
        while current is not None:
            if current in visited:
                break
            visited.add(current)
            entry = parents.get(current)
            if entry is None:
                break
            current, name = entry
            chain.append(name)
        chain.reverse()
        symbol.scope_chain = chain


def build_signature(full_text: str, body: str) -> str:
    """Return a definition's text up to its body, or its first line as a fallback."""
    if body:
        index = full_text.find(body)
        if index != -1:
            signature = full_text[:index].rstrip()
            if signature:
                return signature
    first_line = full_text.split("\n", 1)[0]
    return first_line.removesuffix("\r")