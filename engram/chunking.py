"""Splitting large symbol bodies into smaller, separately indexable chunks."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from engram.symbols import Symbol, sha256_hex

__all__ = [
    "MAX_NWS_CHARS",
    "CHARS_PER_TOKEN",
    "Chunk",
    "count_nws",
    "estimate_tokens",
    "is_boundary",
    "chunk_symbol",
]

MAX_NWS_CHARS = 500
"""Non-whitespace characters a body may hold before it is split."""

CHARS_PER_TOKEN = 4.0
"""Rough average of characters per token for code."""


@dataclass
class Chunk:
    """A contiguous slice of a symbol's body."""

    id: str
    symbol_id: str
    chunk_index: int
    content: str
    line_start: int
    line_end: int
    token_count: int
    nws_count: int
    body_hash: str
    scope_chain: list[str] = field(default_factory=list)


def count_nws(s: str) -> int:
    """Count the non-whitespace characters in ``s``."""
    return sum(1 for ch in s if not ch.isspace())


def estimate_tokens(char_count: int) -> int:
    """Estimate a token count from a character count."""
    return math.ceil(char_count / CHARS_PER_TOKEN)


def is_boundary(line: str) -> bool:
    """Whether a chunk may end after this line.

    Statement ends (``;``, braces, ``:``), blank lines and lines that are not
    indented all count as boundaries.
    """
    trimmed = line.strip()
    return (
        trimmed.endswith((";", "{", "}", ":"))
        or not trimmed
        or (bool(line) and not line.startswith("    ") and not line.startswith("\t"))
    )


def _lines(text: str) -> list[str]:
    pieces = text.split("\n")
    if pieces and pieces[-1] == "":
        pieces.pop()
    return [piece.removesuffix("\r") for piece in pieces]


def _make_chunk(symbol: Symbol, index: int, content: str, line_start: int, line_end: int) -> Chunk:
    return Chunk(
        id=sha256_hex(f"{symbol.id}:chunk:{index}"),
        symbol_id=symbol.id,
        chunk_index=index,
        content=content,
        line_start=line_start,
        line_end=line_end,
        token_count=estimate_tokens(len(content.encode("utf-8"))),
        nws_count=count_nws(content),
        body_hash=sha256_hex(content),
        scope_chain=list(symbol.scope_chain),
    )


def chunk_symbol(symbol: Symbol) -> list[Chunk]:
    """Split a symbol's body into chunks at statement boundaries.

    Returns an empty list when the body is small enough, or when splitting
    would yield a single chunk.
    """
    if count_nws(symbol.body) <= MAX_NWS_CHARS:
        return []

    lines = _lines(symbol.body)
    if not lines:
        return []

    chunks: list[Chunk] = []
    current: list[str] = []
    current_nws = 0
    start_offset = 0

    for offset, line in enumerate(lines):
        current.append(line)
        current_nws += count_nws(line)
        if current_nws >= MAX_NWS_CHARS and is_boundary(line):
            chunks.append(
                _make_chunk(
                    symbol,
                    len(chunks),
                    "\n".join(current),
                    symbol.line_start + start_offset,
                    symbol.line_start + offset,
                )
            )
            current = []
            current_nws = 0
            start_offset = offset + 1

    if current:
        chunks.append(
            _make_chunk(
                symbol,
                len(chunks),
                "\n".join(current),
                symbol.line_start + start_offset,
                symbol.line_end,
            )
        )

    return chunks if len(chunks) > 1 else []