"""Markdown documents as searchable symbols: each ATX heading opens a section."""

from __future__ import annotations

from pathlib import PurePath

from engram.symbols import ParseResult, Symbol, SymbolKind, sha256_hex

__all__ = ["parse_markdown", "parse_heading"]

_DOCSTRING_CHARS = 500


def _lines(content: str) -> list[str]:
    """Split on newlines, dropping a trailing empty piece and carriage returns."""
    pieces = content.split("\n")
    if pieces and pieces[-1] == "":
        pieces.pop()
    return [piece.removesuffix("\r") for piece in pieces]


def parse_heading(line: str) -> tuple[int, str] | None:
    """Parse an ATX heading into ``(level, title)``, or return None."""
    if not line.startswith("#"):
        return None
    level = len(line) - len(line.lstrip("#"))
    if level > 6:
        return None
    title = line[level:].strip()
    if not title:
        return None
    return level, title


def _doc_symbol(name: str, file: str, line_start: int, line_end: int, body: str) -> Symbol:
    body_hash = sha256_hex(body)
    return Symbol(
        id=sha256_hex(f"{file}:{name}:doc"),
        canonical_id=sha256_hex(f"{name}:doc:{body_hash}"),
        name=name,
        kind=SymbolKind.MODULE,
        file=file,
        line_start=line_start,
        line_end=line_end,
        signature=f"# {name}",
        docstring=body[:_DOCSTRING_CHARS],
        body=body,
        body_hash=body_hash,
        full_hash=sha256_hex(f"{name}:{body}"),
        language="markdown",
        scope_chain=[name],
        parent_id=None,
    )


def parse_markdown(content: str, file_path: str) -> ParseResult:
    """Turn each heading and the lines up to the next heading into a symbol.

    A document without headings but with text becomes one symbol named after
    the file's stem.
    """
    lines = _lines(content)
    symbols: list[Symbol] = []
    current: tuple[str, int] | None = None

    for index, line in enumerate(lines):
        heading = parse_heading(line.strip())
        if heading is None:
            continue
        if current is not None:
            name, start = current
            body = "\n".join(lines[start:index])
            symbols.append(_doc_symbol(name, file_path, start + 1, index, body))
        current = (heading[1], index)

    if current is not None:
        name, start = current
        body = "\n".join(lines[start:])
        symbols.append(_doc_symbol(name, file_path, start + 1, len(lines), body))

    if not symbols and content.strip():
        name = PurePath(file_path).stem or "document"
        symbols.append(_doc_symbol(name, file_path, 1, len(lines), content))

    return ParseResult(symbols=symbols, edges=[], language="markdown")