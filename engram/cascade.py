"""Self-healing annotation memory.

When a symbol changes, its annotations go stale and the loss of confidence
spreads through the reverse call graph, halving with each hop. When the code
returns to the hash an annotation was written against, the annotation is
reactivated.
"""

from __future__ import annotations

import time
from collections import deque
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Protocol

__all__ = [
    "BASE_REDUCTION",
    "DECAY",
    "MIN_CONFIDENCE",
    "MAX_CONFIDENCE",
    "CascadeEntry",
    "CascadeResult",
    "AnnotationStore",
    "run_cascade",
    "cascade_file",
]

BASE_REDUCTION = 0.3
"""Confidence taken from annotations of direct callers of a changed symbol."""

DECAY = 0.5
"""Factor applied to the reduction for every further hop."""

MIN_CONFIDENCE = 0.0
MAX_CONFIDENCE = 1.0

_NEGLIGIBLE_REDUCTION = 0.01
_NEGLIGIBLE_CHANGE = 0.001


class _StoredSymbol(Protocol):
    id: str
    full_hash: str


@dataclass(frozen=True)
class CascadeEntry:
    """One change made to an annotation during a cascade."""

    trigger_symbol: str
    affected_symbol: str
    annotation_id: int
    old_confidence: float
    new_confidence: float
    reason: str


@dataclass
class CascadeResult:
    """What a cascade started by one changed symbol did."""

    trigger_symbol: str
    direct_stale_count: int = 0
    transitive_affected_count: int = 0
    reactivated_count: int = 0
    log: list[CascadeEntry] = field(default_factory=list)

    @property
    def changed_anything(self) -> bool:
        return bool(
            self.direct_stale_count or self.transitive_affected_count or self.reactivated_count
        )


class AnnotationStore(Protocol):
    """Storage of symbols, call edges and annotations that a cascade works on.

    ``get_annotations`` yields tuples of
    ``(annotation_id, annotation_type, content, confidence, status)``.
    """

    def get_symbol(self, symbol_id: str) -> _StoredSymbol | None: ...

    def get_file_symbols(self, file: str) -> Sequence[_StoredSymbol]: ...

    def get_direct_callers(self, symbol_id: str) -> Sequence[str]: ...

    def get_annotations(
        self, symbol_id: str
    ) -> Sequence[tuple[int, str, str, float, str]]: ...

    def get_annotation_hash(self, annotation_id: int) -> str | None: ...

    def update_annotation_status(
        self, annotation_id: int, status: str, confidence: float
    ) -> None: ...

    def reduce_annotation_confidence(self, annotation_id: int, confidence: float) -> None: ...

    def write_cascade_log(self, entry: CascadeEntry, timestamp: int) -> None: ...


def _refresh_own_annotations(
    store: AnnotationStore, symbol_id: str, current_hash: str, result: CascadeResult
) -> None:
    for ann_id, _type, _content, confidence, status in store.get_annotations(symbol_id):
        if store.get_annotation_hash(ann_id) == current_hash:
            if status == "stale":
                store.update_annotation_status(ann_id, "active", MAX_CONFIDENCE)
                result.log.append(
                    CascadeEntry(
                        trigger_symbol=symbol_id,
                        affected_symbol=symbol_id,
                        annotation_id=ann_id,
                        old_confidence=confidence,
                        new_confidence=MAX_CONFIDENCE,
                        reason="revert_reactivation: full_hash matches full_hash_at",
                    )
                )
                result.reactivated_count += 1
        elif status == "active":
            store.update_annotation_status(ann_id, "stale", confidence)
            result.log.append(
                CascadeEntry(
                    trigger_symbol=symbol_id,
                    affected_symbol=symbol_id,
                    annotation_id=ann_id,
                    old_confidence=confidence,
                    new_confidence=confidence,
                    reason="direct_staleness: symbol body changed",
                )
            )
            result.direct_stale_count += 1


def _propagate_to_callers(store: AnnotationStore, symbol_id: str, result: CascadeResult) -> None:
    visited = {symbol_id}
    queue: deque[tuple[str, int]] = deque()
    for caller in store.get_direct_callers(symbol_id):
        if caller not in visited:
            visited.add(caller)
            queue.append((caller, 1))

    while queue:
        current, distance = queue.popleft()
        reduction = BASE_REDUCTION * DECAY ** (distance - 1)
        if reduction < _NEGLIGIBLE_REDUCTION:
            continue

        for ann_id, _type, _content, confidence, status in store.get_annotations(current):
            if status not in ("active", "stale"):
                continue
            new_confidence = max(confidence - reduction, MIN_CONFIDENCE)
            if abs(new_confidence - confidence) > _NEGLIGIBLE_CHANGE:
                store.reduce_annotation_confidence(ann_id, new_confidence)
                result.log.append(
                    CascadeEntry(
                        trigger_symbol=symbol_id,
                        affected_symbol=current,
                        annotation_id=ann_id,
                        old_confidence=confidence,
                        new_confidence=new_confidence,
                        reason=(
                            f"transitive_cascade: distance={distance}, "
                            f"reduction={reduction:.3f}"
                        ),
                    )
                )
                result.transitive_affected_count += 1

        for caller in store.get_direct_callers(current):
            if caller not in visited:
                visited.add(caller)
                queue.append((caller, distance + 1))


def run_cascade(store: AnnotationStore, changed_symbol_id: str) -> CascadeResult:
    """Run the staleness cascade for one changed symbol and log every change.

    Raises LookupError if the symbol is not in the store.
    """
    symbol = store.get_symbol(changed_symbol_id)
    if symbol is None:
        raise LookupError(f"symbol not found: {changed_symbol_id}")
    now = int(time.time())

    result = CascadeResult(trigger_symbol=changed_symbol_id)
    _refresh_own_annotations(store, changed_symbol_id, symbol.full_hash, result)
    _propagate_to_callers(store, changed_symbol_id, result)

    for entry in result.log:
        store.write_cascade_log(entry, now)
    return result


def cascade_file(store: AnnotationStore, file: str) -> list[CascadeResult]:
    """Run cascades for the symbols of a freshly synced file.

    Symbols with no annotations of their own and none on their direct callers
    are passed over; only cascades that changed something are returned.
    """
    results: list[CascadeResult] = []
    for symbol in store.get_file_symbols(file):
        if not store.get_annotations(symbol.id) and not any(
            store.get_annotations(caller) for caller in store.get_direct_callers(symbol.id)
        ):
            continue
        result = run_cascade(store, symbol.id)
        if result.changed_anything:
            results.append(result)
    return results