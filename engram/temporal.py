"""Tracking how symbols change between syncs, and detecting file renames."""

from __future__ import annotations

import os
from collections.abc import Callable, Iterable, Sequence
from pathlib import Path
from typing import Protocol

from engram.symbols import ParseResult

__all__ = ["StoredSymbol", "EvolutionStore", "track_evolution", "detect_renames"]


class StoredSymbol(Protocol):
    """The fields of a stored symbol that evolution tracking reads."""

    id: str
    name: str
    body_hash: str
    full_hash: str


class EvolutionStore(Protocol):
    """Storage that holds indexed symbols and an evolution log."""

    def get_file_symbols(self, file: str) -> Sequence[StoredSymbol]:
        """Return the symbols currently stored for ``file``."""
        ...

    def log_symbol_evolution(
        self,
        symbol_id: str,
        change_type: str,
        old_hash: str | None,
        new_hash: str | None,
        old_file: str | None,
        new_file: str | None,
        description: str | None,
    ) -> None:
        """Record one change to a symbol."""
        ...


def track_evolution(store: EvolutionStore, file: str, new_result: ParseResult) -> None:
    """Log created, modified and deleted symbols of ``file``.

    Compares what the store holds for the file with a fresh parse, matching
    symbols by name; call it before the new parse is synced.
    """
    old_by_name = {s.name: s for s in store.get_file_symbols(file)}
    new_by_name = {s.name: s for s in new_result.symbols}

    for name, new_sym in new_by_name.items():
        old_sym = old_by_name.get(name)
        if old_sym is None:
            store.log_symbol_evolution(
                new_sym.id,
                "created",
                None,
                new_sym.full_hash,
                None,
                file,
                f"added to {file}",
            )
        elif old_sym.full_hash != new_sym.full_hash:
            store.log_symbol_evolution(
                new_sym.id,
                "modified",
                old_sym.full_hash,
                new_sym.full_hash,
                file,
                file,
                f"body changed in {file}",
            )

    for name, old_sym in old_by_name.items():
        if name not in new_by_name:
            store.log_symbol_evolution(
                old_sym.id,
                "deleted",
                old_sym.full_hash,
                None,
                file,
                None,
                f"removed from {file}",
            )


def detect_renames(
    store: EvolutionStore,
    deleted_files: Iterable[str],
    created_files: Sequence[str],
    parse_file: Callable[[Path], ParseResult],
    root: str | os.PathLike[str],
) -> list[tuple[str, str]]:
    """Pair deleted files with created files that hold mostly the same code.

    A created file is taken as the new name of a deleted one when at least
    half of the deleted file's symbols have a body hash found in it. Each
    matching symbol is logged as moved; a deleted file is paired at most once.
    Created files that are missing or fail to parse are passed over.
    """
    root = Path(root)
    renames: list[tuple[str, str]] = []

    for deleted_file in deleted_files:
        old_symbols = store.get_file_symbols(deleted_file)
        if not old_symbols:
            continue
        old_by_hash = {s.body_hash: s for s in old_symbols}

        for created_file in created_files:
            new_path = root / created_file
            if not new_path.exists():
                continue
            try:
                new_result = parse_file(new_path)
            except (OSError, ValueError):
                continue

            matches = sum(1 for s in new_result.symbols if s.body_hash in old_by_hash)
            if matches == 0 or matches * 2 < len(old_symbols):
                continue

            renames.append((deleted_file, created_file))
            for new_sym in new_result.symbols:
                old_sym = old_by_hash.get(new_sym.body_hash)
                if old_sym is not None:
                    store.log_symbol_evolution(
                        new_sym.id,
                        "moved",
                        old_sym.full_hash,
                        new_sym.full_hash,
                        deleted_file,
                        created_file,
                        f"moved from {deleted_file} to {created_file}",
                    )
            break

    return renames