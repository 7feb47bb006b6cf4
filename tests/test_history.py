from __future__ import annotations

import pytest

from core.errors import InvalidArgument
from core.history import BatchSession, HistoryPartition, HistoryStore
from core.models import ChatType, HistoryEntry


def _entry(text: str) -> HistoryEntry:
    return HistoryEntry(
        classifier_version=None,
        channel=ChatType.SAY,
        sender_id=1,
        sender="Someone",
        text=text,
        suppressed=False,
        reason=None,
    )


def test_snapshot_is_insertion_ordered() -> None:
    store = HistoryStore()
    store.append(HistoryPartition.CHAT, _entry("a"))
    store.append(HistoryPartition.CHAT, _entry("b"))

    assert [e.text for e in store.snapshot(HistoryPartition.CHAT)] == ["a", "b"]
    assert store.snapshot(HistoryPartition.LISTINGS) == ()


def test_oldest_entry_is_evicted() -> None:
    store = HistoryStore(capacity=2)
    for text in ("a", "b", "c"):
        store.append(HistoryPartition.LISTINGS, _entry(text))

    assert [e.text for e in store.snapshot(HistoryPartition.LISTINGS)] == ["b", "c"]


def test_clear_only_touches_one_partition() -> None:
    store = HistoryStore()
    store.append(HistoryPartition.CHAT, _entry("chat"))
    store.append(HistoryPartition.LISTINGS, _entry("listing"))

    store.clear(HistoryPartition.LISTINGS)

    assert store.snapshot(HistoryPartition.LISTINGS) == ()
    assert len(store.snapshot(HistoryPartition.CHAT)) == 1


def test_capacity_must_be_positive() -> None:
    with pytest.raises(InvalidArgument):
        HistoryStore(capacity=0)


def test_session_clears_on_batch_change_only() -> None:
    cleared: list[int] = []
    session = BatchSession(on_new_batch=lambda: cleared.append(1))

    assert not session.begin(1)
    assert not session.begin(1)
    assert session.begin(2)
    assert not session.begin(2)
    assert len(cleared) == 1
    assert session.last_batch == 2


def test_session_clears_after_summary() -> None:
    cleared: list[int] = []
    session = BatchSession(on_new_batch=lambda: cleared.append(1))

    session.begin(5)
    session.summary_received()

    assert session.begin(5)
    assert not session.begin(5)
    assert len(cleared) == 1


def test_session_without_batch_numbers_relies_on_summary() -> None:
    cleared: list[int] = []
    session = BatchSession(on_new_batch=lambda: cleared.append(1))

    assert not session.begin(None)
    assert not session.begin(None)
    session.summary_received()
    assert session.begin(None)
    assert len(cleared) == 1


def test_history_entries_get_unique_ids() -> None:
    assert _entry("a").id != _entry("a").id
