from __future__ import annotations

import logging

import pytest

from core.config import FilterConfig
from core.custom_filters import build_custom_rules
from core.engine import FilterEngine
from core.errors import InvalidArgument, MalformedBatch
from core.history import HistoryPartition
from core.listings import BATCH_SIZE, HEADER_SIZE, LISTING_SIZE, ListingBatch, ListingRecord, SearchArea, decode_batch, encode_batch
from core.models import PASS, ChatMessage, ChatType, MessageCategory

from fakes import FakeClassifier


def _config(**overrides) -> FilterConfig:
    fields = dict(
        chat_rules=build_custom_rules({"substrings": ["gil for sale"]}),
        listing_rules=build_custom_rules({"substrings": ["gil for sale"]}),
        categories={MessageCategory.RMT_GIL: frozenset({ChatType.SAY, ChatType.NONE})},
        custom_chat_filter=True,
        custom_listing_filter=True,
        filter_item_level=True,
        max_item_level=600,
    )
    fields.update(overrides)
    return FilterConfig(**fields)


def _listing(listing_id: int, description: str = "LF2M savage prog tonight", **overrides) -> ListingRecord:
    return ListingRecord.build(
        listing_id=listing_id,
        slots=[1, 2],
        name=f"Lister {listing_id}",
        description=description,
        **overrides,
    )


def _texts(engine: FilterEngine, partition: HistoryPartition) -> list[str]:
    return [entry.text for entry in engine.history.snapshot(partition)]


def test_plain_chat_is_recorded_without_reason() -> None:
    engine = FilterEngine(FilterConfig())

    suppress = engine.filter_chat(int(ChatType.SAY), 5, "Friend", "hello friend how are you")

    assert suppress is False
    (entry,) = engine.history.snapshot(HistoryPartition.CHAT)
    assert entry.reason is None
    assert not entry.suppressed
    assert entry.classifier_version is None
    assert entry.channel is ChatType.SAY
    assert entry.sender == "Friend"


def test_suppressed_chat_is_recorded_and_logged(caplog) -> None:
    engine = FilterEngine(_config())

    with caplog.at_level(logging.INFO, logger="core.engine"):
        assert engine.filter_chat(int(ChatType.SAY), 5, "Seller", "\ue055\ue056 gil for sale")

    (entry,) = engine.history.snapshot(HistoryPartition.CHAT)
    assert entry.suppressed
    assert entry.reason == "custom"
    assert entry.text == "\ue055\ue056 gil for sale"
    assert "Filtered chat message (custom)" in caplog.text


def test_logging_suppressed_chat_can_be_disabled(caplog) -> None:
    engine = FilterEngine(_config(log_filtered_chat=False))

    with caplog.at_level(logging.INFO, logger="core.engine"):
        assert engine.filter_chat(int(ChatType.SAY), 5, "Seller", "gil for sale")

    assert "Filtered chat message" not in caplog.text


def test_battle_chat_is_not_recorded() -> None:
    engine = FilterEngine(_config())

    assert engine.filter_chat(int(ChatType.DAMAGE), 5, "Seller", "gil for sale") is False
    assert engine.history.snapshot(HistoryPartition.CHAT) == ()


def test_classifier_version_is_recorded() -> None:
    engine = FilterEngine(_config(), classifier=FakeClassifier(MessageCategory.RMT_GIL, version="v9"))

    message = ChatMessage(channel=ChatType.SAY, sender_id=1, sender="x", text="cheap gil right here")
    verdict = engine.handle_chat(message)

    assert verdict.reason == "RMT_GIL"
    (entry,) = engine.history.snapshot(HistoryPartition.CHAT)
    assert entry.classifier_version == "v9"
    assert entry.timestamp == message.timestamp


def test_missing_text_is_rejected() -> None:
    engine = FilterEngine(FilterConfig())
    with pytest.raises(InvalidArgument):
        engine.filter_chat(int(ChatType.SAY), 1, "x", None)  # type: ignore[arg-type]


def test_batch_transition_clears_listing_history() -> None:
    engine = FilterEngine(_config())

    for listing_id, batch in ((1, 1), (2, 1), (3, 1)):
        engine.handle_listing(_listing(listing_id), batch_number=batch)
    assert len(engine.history.snapshot(HistoryPartition.LISTINGS)) == 3

    engine.handle_listing(_listing(4), batch_number=2)

    entries = engine.history.snapshot(HistoryPartition.LISTINGS)
    assert [entry.sender_id for entry in entries] == [4]


def test_chat_history_survives_batch_transition() -> None:
    engine = FilterEngine(_config())
    engine.filter_chat(int(ChatType.SAY), 1, "x", "hello there")

    engine.handle_listing(_listing(1), batch_number=1)
    engine.handle_listing(_listing(2), batch_number=2)

    assert _texts(engine, HistoryPartition.CHAT) == ["hello there"]


def test_null_listing_has_no_verdict_or_history() -> None:
    engine = FilterEngine(_config())

    assert engine.handle_listing(ListingRecord.empty(), batch_number=1) is None
    assert engine.history.snapshot(HistoryPartition.LISTINGS) == ()


def test_ignored_private_listing_is_not_recorded() -> None:
    engine = FilterEngine(_config(ignore_private_listings=True))
    listing = _listing(1, "gil for sale", search_area=SearchArea.PRIVATE)

    verdict = engine.handle_listing(listing, batch_number=1)

    assert not verdict.suppress
    assert engine.history.snapshot(HistoryPartition.LISTINGS) == ()
    assert verdict is PASS


def test_filter_batch_zeroes_suppressed_listings(caplog) -> None:
    engine = FilterEngine(_config())
    header = b"\x07" * HEADER_SIZE
    keep = _listing(1)
    custom = _listing(2, "\ue055\ue056 gil for sale")
    ilvl = _listing(3, "gil for sale", minimum_item_level=700)
    data = encode_batch(ListingBatch.of([keep, custom, ilvl], header=header))

    with caplog.at_level(logging.INFO, logger="core.engine"):
        result = engine.filter_batch(data, batch_number=1)

    assert len(result) == BATCH_SIZE
    batch = decode_batch(result)
    assert batch.header == header
    assert batch.listings[0] == keep
    assert batch.listings[1].raw == bytes(LISTING_SIZE)
    assert batch.listings[2].raw == bytes(LISTING_SIZE)
    assert batch.listings[3].is_null

    reasons = [entry.reason for entry in engine.history.snapshot(HistoryPartition.LISTINGS)]
    assert reasons == [None, "custom", "ilvl"]
    assert "Filtered listing from Lister 2 (custom)" in caplog.text


def test_unfiltered_batch_is_returned_unchanged() -> None:
    engine = FilterEngine(_config())
    data = encode_batch(ListingBatch.of([_listing(1), _listing(2)], header=bytes(range(HEADER_SIZE))))

    assert engine.filter_batch(data, batch_number=1) == data


def test_malformed_batch_leaves_state_alone() -> None:
    engine = FilterEngine(_config())
    engine.handle_listing(_listing(1), batch_number=1)

    with pytest.raises(MalformedBatch):
        engine.filter_batch(b"\x00" * 10, batch_number=2)

    assert len(engine.history.snapshot(HistoryPartition.LISTINGS)) == 1
    assert engine.session.last_batch == 1


def test_summary_starts_a_new_batch() -> None:
    engine = FilterEngine(_config())
    data = encode_batch(ListingBatch.of([_listing(1)]))

    engine.filter_batch(data)
    engine.filter_batch(data)
    assert len(engine.history.snapshot(HistoryPartition.LISTINGS)) == 2

    engine.summary_received()
    engine.filter_batch(data)
    assert len(engine.history.snapshot(HistoryPartition.LISTINGS)) == 1


def test_update_config_applies_to_next_event() -> None:
    engine = FilterEngine(FilterConfig())
    assert not engine.filter_chat(int(ChatType.SAY), 1, "x", "gil for sale")

    engine.update_config(_config())

    assert engine.filter_chat(int(ChatType.SAY), 1, "x", "gil for sale")


def test_history_capacity_comes_from_config() -> None:
    engine = FilterEngine(_config(history_capacity=2))
    for index in range(3):
        engine.filter_chat(int(ChatType.SAY), index, "x", f"message {index}")

    assert _texts(engine, HistoryPartition.CHAT) == ["message 1", "message 2"]


def test_heuristic_fallback_filters_without_classifier(caplog) -> None:
    engine = FilterEngine(_config(heuristic_fallback=True))
    spam = _listing(1, "cheap gil fast delivery here")
    data = encode_batch(ListingBatch.of([spam, _listing(2)]))

    with caplog.at_level(logging.INFO, logger="core.engine"):
        suppress = engine.filter_chat(int(ChatType.SHOUT), 3, "Seller", "Selling cheap gil, fast delivery!")
        result = engine.filter_batch(data, batch_number=1)

    assert suppress is True
    (chat,) = engine.history.snapshot(HistoryPartition.CHAT)
    assert chat.reason == "solicitation-heuristic"
    assert decode_batch(result).listings[0].raw == bytes(LISTING_SIZE)
    reasons = [entry.reason for entry in engine.history.snapshot(HistoryPartition.LISTINGS)]
    assert reasons == ["solicitation-heuristic", None]
    assert "Filtered listing from Lister 1 (solicitation-heuristic)" in caplog.text
