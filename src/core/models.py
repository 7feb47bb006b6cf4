"""Core domain models.

These types are shared across the core and adapters to avoid tight coupling
to any host- or transport-specific types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum, IntEnum
from typing import Optional
import uuid

from core.errors import InvalidArgument


class ChatType(IntEnum):
    """Chat channel codes as delivered by the game client."""

    NONE = 0
    DEBUG = 1
    URGENT = 2
    NOTICE = 3
    SAY = 10
    SHOUT = 11
    TELL_OUTGOING = 12
    TELL_INCOMING = 13
    PARTY = 14
    ALLIANCE = 15
    LINKSHELL_1 = 16
    LINKSHELL_2 = 17
    LINKSHELL_3 = 18
    LINKSHELL_4 = 19
    LINKSHELL_5 = 20
    LINKSHELL_6 = 21
    LINKSHELL_7 = 22
    LINKSHELL_8 = 23
    FREE_COMPANY = 24
    NOVICE_NETWORK = 27
    CUSTOM_EMOTE = 28
    STANDARD_EMOTE = 29
    YELL = 30
    CROSS_PARTY = 32
    PVP_TEAM = 36
    CROSS_LINKSHELL_1 = 37
    DAMAGE = 41
    MISS = 42
    ACTION = 43
    ITEM = 44
    HEALING = 45
    GAIN_BUFF = 46
    GAIN_DEBUFF = 47
    LOSE_BUFF = 48
    LOSE_DEBUFF = 49
    ALARM = 55
    ECHO = 56
    SYSTEM = 57
    BATTLE_SYSTEM = 58
    GATHERING_SYSTEM = 59
    ERROR = 60
    NPC_DIALOGUE = 61
    LOOT_NOTICE = 62
    PROGRESS = 64
    LOOT_ROLL = 65
    CRAFTING = 66
    GATHERING = 67
    NPC_ANNOUNCEMENT = 68
    FREE_COMPANY_ANNOUNCEMENT = 69
    FREE_COMPANY_LOGIN_LOGOUT = 70
    RETAINER_SALE = 71
    PERIODIC_RECRUITMENT_NOTIFICATION = 72
    SIGN = 73
    RANDOM_NUMBER = 74
    NOVICE_NETWORK_SYSTEM = 75
    ORCHESTRION = 76
    PVP_TEAM_ANNOUNCEMENT = 77
    PVP_TEAM_LOGIN_LOGOUT = 78
    MESSAGE_BOOK = 79
    CROSS_LINKSHELL_2 = 101
    CROSS_LINKSHELL_3 = 102
    CROSS_LINKSHELL_4 = 103
    CROSS_LINKSHELL_5 = 104
    CROSS_LINKSHELL_6 = 105
    CROSS_LINKSHELL_7 = 106
    CROSS_LINKSHELL_8 = 107

    @classmethod
    def from_code(cls, code: int) -> "ChatType":
        """Map a raw channel code to a ChatType, ignoring relation bits."""

        try:
            return cls(code & 0x7F)
        except ValueError:
            return cls.NONE

    @classmethod
    def from_name(cls, name: str) -> "ChatType":
        """Parse a configuration name such as ``say`` or ``linkshell-1``."""

        key = name.strip().upper().replace("-", "_").replace(" ", "_")
        try:
            return cls[key]
        except KeyError:
            raise InvalidArgument(f"Unknown chat channel: {name}") from None

    def is_battle(self) -> bool:
        return self in _BATTLE_CHANNELS


_BATTLE_CHANNELS = frozenset(
    {
        ChatType.DAMAGE,
        ChatType.MISS,
        ChatType.ACTION,
        ChatType.ITEM,
        ChatType.HEALING,
        ChatType.GAIN_BUFF,
        ChatType.LOSE_BUFF,
        ChatType.GAIN_DEBUFF,
        ChatType.LOSE_DEBUFF,
        ChatType.BATTLE_SYSTEM,
    }
)


class MessageCategory(str, Enum):
    """Classifier labels. Everything except NORMAL counts as solicitation."""

    NORMAL = "NORMAL"
    TRADE = "TRADE"
    FREE_COMPANY = "FREE_COMPANY"
    PHISHING = "PHISHING"
    RMT_CONTENT = "RMT_CONTENT"
    RMT_GIL = "RMT_GIL"
    ROLEPLAYING = "ROLEPLAYING"
    ROLEPLAYING_SERVICES = "ROLEPLAYING_SERVICES"
    STATIC = "STATIC"
    STATIC_SUB = "STATIC_SUB"
    COMMUNITY = "COMMUNITY"
    FLUFF = "FLUFF"

    @classmethod
    def from_label(cls, label: str) -> "MessageCategory":
        key = label.strip().upper().replace("-", "_").replace(" ", "_")
        try:
            return cls(key)
        except ValueError:
            raise InvalidArgument(f"Unknown message category: {label}") from None


# Reason tags that are not classifier categories.
REASON_ITEM_LEVEL = "ilvl"
REASON_CUSTOM = "custom"
REASON_HEURISTIC = "solicitation-heuristic"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ChatMessage:
    """One chat line as seen by the filter."""

    channel: ChatType
    sender_id: int
    sender: str
    text: str
    timestamp: datetime = field(default_factory=_utcnow)


@dataclass(frozen=True)
class Classification:
    """Result of a classifier call."""

    category: MessageCategory
    version: str


@dataclass(frozen=True)
class FilterVerdict:
    """Suppression decision with the single reason that caused it."""

    suppress: bool
    reason: Optional[str] = None
    classifier_version: Optional[str] = None


PASS = FilterVerdict(suppress=False)


@dataclass(frozen=True)
class HistoryEntry:
    """Record of one evaluated chat message or listing."""

    classifier_version: Optional[str]
    channel: ChatType
    sender_id: int
    sender: str
    text: str
    suppressed: bool
    reason: Optional[str]
    timestamp: datetime = field(default_factory=_utcnow)
    id: str = field(default_factory=lambda: uuid.uuid4().hex)
