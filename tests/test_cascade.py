from __future__ import annotations

from dataclasses import dataclass, field

import pytest

from engram.cascade import CascadeEntry, cascade_file, run_cascade


@dataclass
class _Sym:
    id: str
    name: str
    file: str
    full_hash: str


@dataclass
class _Ann:
    symbol_id: str
    type: str
    content: str
    confidence: float
    status: str
    full_hash_at: str


@dataclass
class FakeStore:
    symbols: dict[str, _Sym] = field(default_factory=dict)
    callers: dict[str, list[str]] = field(default_factory=dict)
    annotations: dict[int, _Ann] = field(default_factory=dict)
    cascade_log: list[tuple[CascadeEntry, int]] = field(default_factory=list)

    def add_symbol(self, name, full_hash="h0", file="test.rs"):
        sym = _Sym(id=f"{file}:{name}", name=name, file=file, full_hash=full_hash)
        self.symbols[sym.id] = sym
        return sym

    def add_call(self, caller, callee):
        self.callers.setdefault(callee.id, []).append(caller.id)

    def annotate(self, sym, content="note", confidence=1.0, status="active"):
        ann_id = len(self.annotations) + 1
        self.annotations[ann_id] = _Ann(
            sym.id, "explanation", content, confidence, status, sym.full_hash
        )
        return ann_id

    def get_symbol(self, symbol_id):
        return self.symbols.get(symbol_id)

    def get_file_symbols(self, file):
        return [s for s in self.symbols.values() if s.file == file]

    def get_direct_callers(self, symbol_id):
        return list(self.callers.get(symbol_id, []))

    def get_annotations(self, symbol_id):
        return [
            (i, a.type, a.content, a.confidence, a.status)
            for i, a in self.annotations.items()
            if a.symbol_id == symbol_id
        ]

    def get_annotation_hash(self, annotation_id):
        ann = self.annotations.get(annotation_id)
        return ann.full_hash_at if ann else None

    def update_annotation_status(self, annotation_id, status, confidence):
        self.annotations[annotation_id].status = status
        self.annotations[annotation_id].confidence = confidence

    def reduce_annotation_confidence(self, annotation_id, confidence):
        self.annotations[annotation_id].confidence = confidence

    def write_cascade_log(self, entry, timestamp):
        self.cascade_log.append((entry, timestamp))


def _names(store, result):
    return [store.symbols[e.affected_symbol].name for e in result.log]


def test_single_hop_cascade():
    store = FakeStore()
    callee = store.add_symbol("callee")
    caller = store.add_symbol("caller")
    store.add_call(caller, callee)
    callee_ann = store.annotate(callee)
    caller_ann = store.annotate(caller)

    callee.full_hash = "h1"
    result = run_cascade(store, callee.id)

    assert result.direct_stale_count == 1
    assert result.transitive_affected_count == 1
    assert len(result.log) == 2
    assert store.annotations[callee_ann].status == "stale"
    assert store.annotations[caller_ann].confidence == pytest.approx(0.7)


def test_multi_hop_cascade_decays():
    store = FakeStore()
    leaf = store.add_symbol("leaf")
    middle = store.add_symbol("middle")
    top = store.add_symbol("top")
    store.add_call(middle, leaf)
    store.add_call(top, middle)
    for sym in (leaf, middle, top):
        store.annotate(sym)

    leaf.full_hash = "h1"
    result = run_cascade(store, leaf.id)

    assert result.direct_stale_count == 1
    assert result.transitive_affected_count == 2
    by_name = {store.symbols[e.affected_symbol].name: e for e in result.log}
    middle_loss = by_name["middle"].old_confidence - by_name["middle"].new_confidence
    top_loss = by_name["top"].old_confidence - by_name["top"].new_confidence
    assert middle_loss == pytest.approx(0.3)
    assert top_loss == pytest.approx(0.15)
    assert middle_loss > top_loss


def test_diamond_cascade_no_double_count():
    store = FakeStore()
    leaf = store.add_symbol("leaf")
    route_b = store.add_symbol("route_b")
    route_c = store.add_symbol("route_c")
    top = store.add_symbol("top")
    store.add_call(route_b, leaf)
    store.add_call(route_c, leaf)
    store.add_call(top, route_b)
    store.add_call(top, route_c)
    top_ann = store.annotate(top)

    leaf.full_hash = "h1"
    result = run_cascade(store, leaf.id)

    assert _names(store, result).count("top") == 1
    assert store.annotations[top_ann].confidence == pytest.approx(0.85)


def test_revert_reactivates():
    store = FakeStore()
    greet = store.add_symbol("greet", full_hash="original")
    ann = store.annotate(greet)

    greet.full_hash = "changed"
    first = run_cascade(store, greet.id)
    assert first.direct_stale_count == 1
    assert store.annotations[ann].status == "stale"

    greet.full_hash = "original"
    second = run_cascade(store, greet.id)
    assert second.reactivated_count == 1
    assert store.annotations[ann].status == "active"
    assert store.annotations[ann].confidence == 1.0
    assert second.log[0].reason == "revert_reactivation: full_hash matches full_hash_at"


def test_cascade_log_audit_trail():
    store = FakeStore()
    helper = store.add_symbol("helper")
    main_fn = store.add_symbol("main_fn")
    store.add_call(main_fn, helper)
    store.annotate(helper, "returns 1")
    store.annotate(main_fn, "uses helper")

    helper.full_hash = "h1"
    result = run_cascade(store, helper.id)

    assert result.log
    for entry in result.log:
        assert entry.trigger_symbol == helper.id
        assert entry.affected_symbol
        assert entry.annotation_id > 0
        assert entry.reason
    assert [e for e, _ in store.cascade_log] == result.log
    assert all(ts > 0 for _, ts in store.cascade_log)


def test_transitive_reason_text():
    store = FakeStore()
    leaf = store.add_symbol("leaf")
    caller = store.add_symbol("caller")
    store.add_call(caller, leaf)
    store.annotate(caller)

    leaf.full_hash = "h1"
    result = run_cascade(store, leaf.id)

    assert [e.reason for e in result.log] == ["transitive_cascade: distance=1, reduction=0.300"]


def test_no_annotations_no_cascade():
    store = FakeStore()
    lonely = store.add_symbol("lonely")
    result = run_cascade(store, lonely.id)

    assert result.direct_stale_count == 0
    assert result.transitive_affected_count == 0
    assert result.reactivated_count == 0
    assert result.log == []
    assert store.cascade_log == []


def test_confidence_never_negative():
    store = FakeStore()
    leaf = store.add_symbol("leaf")
    caller = store.add_symbol("caller")
    store.add_call(caller, leaf)
    ann = store.annotate(caller, confidence=0.1)

    leaf.full_hash = "h1"
    result = run_cascade(store, leaf.id)

    assert [e.new_confidence for e in result.log] == [0.0]
    assert store.annotations[ann].confidence == 0.0


def test_zero_confidence_not_logged_again():
    store = FakeStore()
    leaf = store.add_symbol("leaf")
    caller = store.add_symbol("caller")
    store.add_call(caller, leaf)
    store.annotate(caller, confidence=0.0)

    leaf.full_hash = "h1"
    result = run_cascade(store, leaf.id)

    assert result.transitive_affected_count == 0
    assert result.log == []


def test_other_statuses_untouched():
    store = FakeStore()
    leaf = store.add_symbol("leaf")
    caller = store.add_symbol("caller")
    store.add_call(caller, leaf)
    ann = store.annotate(caller, status="rejected")

    leaf.full_hash = "h1"
    result = run_cascade(store, leaf.id)

    assert result.transitive_affected_count == 0
    assert store.annotations[ann].confidence == 1.0


def test_stale_stays_stale_without_double_count():
    store = FakeStore()
    sym = store.add_symbol("greet")
    store.annotate(sym)
    sym.full_hash = "h1"

    assert run_cascade(store, sym.id).direct_stale_count == 1
    again = run_cascade(store, sym.id)
    assert again.direct_stale_count == 0
    assert again.log == []


def test_cascade_stops_when_reduction_negligible():
    store = FakeStore()
    chain = [store.add_symbol(f"s{i}") for i in range(8)]
    for callee, caller in zip(chain, chain[1:]):
        store.add_call(caller, callee)
    for sym in chain[1:]:
        store.annotate(sym)

    chain[0].full_hash = "h1"
    result = run_cascade(store, chain[0].id)

    assert _names(store, result) == ["s1", "s2", "s3", "s4", "s5"]
    assert result.transitive_affected_count == 5


def test_cascade_does_not_cross_unchanged():
    store = FakeStore()
    leaf = store.add_symbol("leaf")
    middle = store.add_symbol("middle")
    caller_of_middle = store.add_symbol("caller_of_middle")
    unrelated = store.add_symbol("unrelated")
    store.add_call(middle, leaf)
    store.add_call(caller_of_middle, middle)
    ann = store.annotate(unrelated, "this is totally independent")

    leaf.full_hash = "h1"
    result = run_cascade(store, leaf.id)

    assert "unrelated" not in _names(store, result)
    assert store.annotations[ann].confidence == 1.0
    assert store.annotations[ann].status == "active"


def test_unknown_symbol_raises():
    with pytest.raises(LookupError, match="symbol not found: missing"):
        run_cascade(FakeStore(), "missing")


def test_cascade_file_reports_only_changes():
    store = FakeStore()
    leaf = store.add_symbol("leaf")
    caller = store.add_symbol("caller")
    steady = store.add_symbol("steady")
    bare = store.add_symbol("bare")
    store.add_symbol("elsewhere", file="other.rs")
    store.add_call(caller, leaf)
    store.annotate(caller)
    store.annotate(steady)
    _ = bare

    leaf.full_hash = "h1"
    results = cascade_file(store, "test.rs")

    assert [r.trigger_symbol for r in results] == [leaf.id]
    assert results[0].transitive_affected_count == 1


def test_cascade_file_without_annotations_is_empty():
    store = FakeStore()
    a = store.add_symbol("a")
    b = store.add_symbol("b")
    store.add_call(b, a)
    a.full_hash = "h1"

    assert cascade_file(store, "test.rs") == []
    assert store.cascade_log == []