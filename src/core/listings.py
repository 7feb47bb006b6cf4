"""Binary codec for party finder listing batches.

A batch is a fixed 1420-byte buffer: a 12-byte header followed by four
352-byte listing records. Records are kept as immutable views over their raw
bytes and fields are unpacked on access, so re-encoding is a plain
concatenation and always reproduces the input byte-for-byte.

Record layout (little-endian, offsets in bytes):

    0x00  4   header
    0x04  u32 listing id
    0x19  u8  category
    0x1C  u16 duty
    0x1E  u8  duty type
    0x2A  u16 world
    0x34  u8  objective, beginners welcome, conditions,
              duty finder settings, loot rules (5 x u8)
    0x3C  u32 last server restart
    0x40  u16 seconds remaining
    0x48  u16 minimum item level
    0x4A  u16 home world
    0x4C  u16 current world
    0x52  u8  search area flags
    0x58  u32 x 8 job slots
    0x78  u32 job
    0x80  32  name (UTF-8, NUL padded)
    0xA0  192 description (UTF-8, NUL padded)
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntFlag
import struct
from typing import Iterable, List, Optional, Sequence

from core.errors import InvalidArgument, MalformedBatch

LISTINGS_PER_BATCH = 4
HEADER_SIZE = 12
LISTING_SIZE = 352
BATCH_SIZE = HEADER_SIZE + LISTINGS_PER_BATCH * LISTING_SIZE

SLOT_COUNT = 8
NAME_SIZE = 32
DESCRIPTION_SIZE = 192

OFFSET_ID = 0x04
OFFSET_CATEGORY = 0x19
OFFSET_DUTY = 0x1C
OFFSET_DUTY_TYPE = 0x1E
OFFSET_WORLD = 0x2A
OFFSET_OBJECTIVE = 0x34
OFFSET_BEGINNERS_WELCOME = 0x35
OFFSET_CONDITIONS = 0x36
OFFSET_DUTY_FINDER_SETTINGS = 0x37
OFFSET_LOOT_RULES = 0x38
OFFSET_LAST_SERVER_RESTART = 0x3C
OFFSET_SECONDS_REMAINING = 0x40
OFFSET_MINIMUM_ITEM_LEVEL = 0x48
OFFSET_HOME_WORLD = 0x4A
OFFSET_CURRENT_WORLD = 0x4C
OFFSET_SEARCH_AREA = 0x52
OFFSET_SLOTS = 0x58
OFFSET_JOB = 0x78
OFFSET_NAME = 0x80
OFFSET_DESCRIPTION = 0xA0

_U8 = struct.Struct("<B")
_U16 = struct.Struct("<H")
_U32 = struct.Struct("<I")
_SLOTS = struct.Struct(f"<{SLOT_COUNT}I")

_EMPTY_RECORD = bytes(LISTING_SIZE)


class SearchArea(IntFlag):
    """Search area bits of a listing."""

    NONE = 0
    DATA_CENTRE = 1 << 0
    PRIVATE = 1 << 1
    ALLIANCE_RAID = 1 << 2
    WORLD = 1 << 3
    ONE_PLAYER_PER_JOB = 1 << 5


def _decode_string(raw: bytes) -> str:
    end = raw.find(b"\x00")
    if end != -1:
        raw = raw[:end]
    return raw.decode("utf-8", errors="replace")


def _encode_string(value: str, size: int) -> bytes:
    encoded = value.encode("utf-8")
    if len(encoded) > size:
        raise InvalidArgument(f"String is {len(encoded)} bytes, at most {size} fit")
    return encoded.ljust(size, b"\x00")


@dataclass(frozen=True)
class ListingRecord:
    """Read-only view over one raw listing record."""

    raw: bytes

    def __post_init__(self) -> None:
        if len(self.raw) != LISTING_SIZE:
            raise InvalidArgument(f"Listing record must be {LISTING_SIZE} bytes, got {len(self.raw)}")

    @classmethod
    def empty(cls) -> "ListingRecord":
        return cls(_EMPTY_RECORD)

    @classmethod
    def build(
        cls,
        *,
        listing_id: int = 0,
        category: int = 0,
        duty: int = 0,
        duty_type: int = 0,
        world: int = 0,
        objective: int = 0,
        beginners_welcome: int = 0,
        conditions: int = 0,
        duty_finder_settings: int = 0,
        loot_rules: int = 0,
        last_server_restart: int = 0,
        seconds_remaining: int = 0,
        minimum_item_level: int = 0,
        home_world: int = 0,
        current_world: int = 0,
        search_area: int = 0,
        slots: Sequence[int] = (),
        job: int = 0,
        name: str = "",
        description: str = "",
    ) -> "ListingRecord":
        """Pack a record from field values. Unlisted bytes stay zero."""

        if len(slots) > SLOT_COUNT:
            raise InvalidArgument(f"A listing has at most {SLOT_COUNT} slots")

        buffer = bytearray(LISTING_SIZE)
        _U32.pack_into(buffer, OFFSET_ID, listing_id)
        _U8.pack_into(buffer, OFFSET_CATEGORY, category)
        _U16.pack_into(buffer, OFFSET_DUTY, duty)
        _U8.pack_into(buffer, OFFSET_DUTY_TYPE, duty_type)
        _U16.pack_into(buffer, OFFSET_WORLD, world)
        _U8.pack_into(buffer, OFFSET_OBJECTIVE, objective)
        _U8.pack_into(buffer, OFFSET_BEGINNERS_WELCOME, beginners_welcome)
        _U8.pack_into(buffer, OFFSET_CONDITIONS, conditions)
        _U8.pack_into(buffer, OFFSET_DUTY_FINDER_SETTINGS, duty_finder_settings)
        _U8.pack_into(buffer, OFFSET_LOOT_RULES, loot_rules)
        _U32.pack_into(buffer, OFFSET_LAST_SERVER_RESTART, last_server_restart)
        _U16.pack_into(buffer, OFFSET_SECONDS_REMAINING, seconds_remaining)
        _U16.pack_into(buffer, OFFSET_MINIMUM_ITEM_LEVEL, minimum_item_level)
        _U16.pack_into(buffer, OFFSET_HOME_WORLD, home_world)
        _U16.pack_into(buffer, OFFSET_CURRENT_WORLD, current_world)
        _U8.pack_into(buffer, OFFSET_SEARCH_AREA, search_area)
        padded_slots = list(slots) + [0] * (SLOT_COUNT - len(slots))
        _SLOTS.pack_into(buffer, OFFSET_SLOTS, *padded_slots)
        _U32.pack_into(buffer, OFFSET_JOB, job)
        buffer[OFFSET_NAME : OFFSET_NAME + NAME_SIZE] = _encode_string(name, NAME_SIZE)
        buffer[OFFSET_DESCRIPTION : OFFSET_DESCRIPTION + DESCRIPTION_SIZE] = _encode_string(
            description, DESCRIPTION_SIZE
        )
        return cls(bytes(buffer))

    def _u8(self, offset: int) -> int:
        return _U8.unpack_from(self.raw, offset)[0]

    def _u16(self, offset: int) -> int:
        return _U16.unpack_from(self.raw, offset)[0]

    def _u32(self, offset: int) -> int:
        return _U32.unpack_from(self.raw, offset)[0]

    @property
    def listing_id(self) -> int:
        return self._u32(OFFSET_ID)

    @property
    def category(self) -> int:
        return self._u8(OFFSET_CATEGORY)

    @property
    def duty(self) -> int:
        return self._u16(OFFSET_DUTY)

    @property
    def duty_type(self) -> int:
        return self._u8(OFFSET_DUTY_TYPE)

    @property
    def world(self) -> int:
        return self._u16(OFFSET_WORLD)

    @property
    def objective(self) -> int:
        return self._u8(OFFSET_OBJECTIVE)

    @property
    def beginners_welcome(self) -> int:
        return self._u8(OFFSET_BEGINNERS_WELCOME)

    @property
    def conditions(self) -> int:
        return self._u8(OFFSET_CONDITIONS)

    @property
    def duty_finder_settings(self) -> int:
        return self._u8(OFFSET_DUTY_FINDER_SETTINGS)

    @property
    def loot_rules(self) -> int:
        return self._u8(OFFSET_LOOT_RULES)

    @property
    def last_server_restart(self) -> int:
        return self._u32(OFFSET_LAST_SERVER_RESTART)

    @property
    def seconds_remaining(self) -> int:
        return self._u16(OFFSET_SECONDS_REMAINING)

    @property
    def minimum_item_level(self) -> int:
        return self._u16(OFFSET_MINIMUM_ITEM_LEVEL)

    @property
    def home_world(self) -> int:
        return self._u16(OFFSET_HOME_WORLD)

    @property
    def current_world(self) -> int:
        return self._u16(OFFSET_CURRENT_WORLD)

    @property
    def search_area(self) -> SearchArea:
        return SearchArea(self._u8(OFFSET_SEARCH_AREA))

    @property
    def slots(self) -> tuple[int, ...]:
        return _SLOTS.unpack_from(self.raw, OFFSET_SLOTS)

    @property
    def job(self) -> int:
        return self._u32(OFFSET_JOB)

    @property
    def name_bytes(self) -> bytes:
        return self.raw[OFFSET_NAME : OFFSET_NAME + NAME_SIZE]

    @property
    def description_bytes(self) -> bytes:
        return self.raw[OFFSET_DESCRIPTION : OFFSET_DESCRIPTION + DESCRIPTION_SIZE]

    @property
    def name(self) -> str:
        return _decode_string(self.name_bytes)

    @property
    def description(self) -> str:
        return _decode_string(self.description_bytes)

    @property
    def is_null(self) -> bool:
        # a real listing always has at least one slot set
        return not any(self.slots)

    @property
    def is_private(self) -> bool:
        return SearchArea.PRIVATE in self.search_area


@dataclass
class ListingBatch:
    """Header bytes plus exactly four listing slots."""

    header: bytes
    listings: List[ListingRecord] = field(default_factory=lambda: [ListingRecord.empty()] * LISTINGS_PER_BATCH)

    def __post_init__(self) -> None:
        if len(self.header) != HEADER_SIZE:
            raise InvalidArgument(f"Batch header must be {HEADER_SIZE} bytes, got {len(self.header)}")
        self.listings = list(self.listings)
        if len(self.listings) != LISTINGS_PER_BATCH:
            raise InvalidArgument(f"A batch holds exactly {LISTINGS_PER_BATCH} listings")

    @classmethod
    def of(cls, listings: Iterable[ListingRecord], header: Optional[bytes] = None) -> "ListingBatch":
        """Build a batch, padding with empty records up to four slots."""

        records = list(listings)
        records.extend(ListingRecord.empty() for _ in range(LISTINGS_PER_BATCH - len(records)))
        return cls(header=header if header is not None else bytes(HEADER_SIZE), listings=records)

    def suppress(self, index: int) -> None:
        """Replace a listing with the all-zero record, keeping the slot."""

        self.listings[index] = ListingRecord.empty()


def decode_batch(data: bytes) -> ListingBatch:
    """Split a raw batch buffer into header and listing records."""

    if len(data) != BATCH_SIZE:
        raise MalformedBatch(len(data), BATCH_SIZE)

    data = bytes(data)
    listings = [
        ListingRecord(data[start : start + LISTING_SIZE])
        for start in range(HEADER_SIZE, BATCH_SIZE, LISTING_SIZE)
    ]
    return ListingBatch(header=data[:HEADER_SIZE], listings=listings)


def encode_batch(batch: ListingBatch) -> bytes:
    """Serialize a batch back to its exact wire layout."""

    return batch.header + b"".join(listing.raw for listing in batch.listings)
