"""Core configuration dataclasses.

Config parsing from disk stays outside the core, but these dataclasses define
the shape the core expects so adapters and the app layer can build it safely.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional

from core.custom_filters import CustomRules, build_custom_rules
from core.item_level import equipment_from_config, max_item_level_attainable
from core.models import ChatType, MessageCategory

DEFAULT_HISTORY_CAPACITY = 250


@dataclass(frozen=True)
class FilterConfig:
    """Read-only filter settings consumed by the decision engine."""

    chat_rules: CustomRules = field(default_factory=CustomRules)
    listing_rules: CustomRules = field(default_factory=CustomRules)
    # category -> channels on which that category is suppressed
    categories: Mapping[MessageCategory, frozenset[ChatType]] = field(default_factory=dict)
    custom_chat_filter: bool = False
    custom_listing_filter: bool = False
    filter_item_level: bool = False
    ignore_private_listings: bool = False
    log_filtered_chat: bool = True
    log_filtered_listings: bool = True
    # run the built-in heuristics when the classifier gives no answer
    heuristic_fallback: bool = False
    max_item_level: int = 0
    history_capacity: int = DEFAULT_HISTORY_CAPACITY

    def category_enabled(self, category: MessageCategory, channel: ChatType) -> bool:
        """Whether a classifier category suppresses messages on a channel."""

        if category is MessageCategory.NORMAL:
            return False
        return channel in self.categories.get(category, frozenset())


def _build_categories(raw: Mapping[str, Any]) -> dict[MessageCategory, frozenset[ChatType]]:
    categories: dict[MessageCategory, frozenset[ChatType]] = {}
    for label, channels in raw.items():
        category = MessageCategory.from_label(label)
        categories[category] = frozenset(ChatType.from_name(name) for name in channels or [])
    return categories


def build_filter_config(raw: Mapping[str, Any], max_item_level: Optional[int] = None) -> FilterConfig:
    """Build a FilterConfig from the flat JSON config schema.

    ``max_item_level`` overrides whatever the config says; otherwise
    ``item_level.max`` is used and, when it is missing or zero, the figure is
    computed once from ``item_level.equipment``.
    """

    filters = raw.get("filters", {})
    custom = raw.get("custom_rules", {})
    item_level_cfg = raw.get("item_level", {})
    history_cfg = raw.get("history", {})
    classifier_cfg = raw.get("classifier", {})

    if max_item_level is None:
        max_item_level = int(item_level_cfg.get("max", 0) or 0)
        if not max_item_level:
            equipment = equipment_from_config(item_level_cfg.get("equipment", []))
            max_item_level = max_item_level_attainable(equipment)

    return FilterConfig(
        chat_rules=build_custom_rules(custom.get("chat", {})),
        listing_rules=build_custom_rules(custom.get("listings", {})),
        categories=_build_categories(raw.get("categories", {})),
        custom_chat_filter=bool(filters.get("custom_chat", False)),
        custom_listing_filter=bool(filters.get("custom_listings", False)),
        filter_item_level=bool(filters.get("item_level", False)),
        ignore_private_listings=bool(filters.get("ignore_private_listings", False)),
        log_filtered_chat=bool(filters.get("log_filtered_chat", True)),
        log_filtered_listings=bool(filters.get("log_filtered_listings", True)),
        heuristic_fallback=classifier_cfg.get("fallback") == "heuristic",
        max_item_level=max_item_level,
        history_capacity=int(history_cfg.get("capacity", DEFAULT_HISTORY_CAPACITY)),
    )
