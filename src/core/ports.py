"""Ports (interfaces) used by the core engine.

Ports define the minimal contracts for external capabilities so the engine
can run against a real classifier or a deterministic fake.
"""

from __future__ import annotations

from typing import Optional, Protocol

from core.models import Classification


class ClassifierPort(Protocol):
    """Text classifier consulted after the rule checks.

    ``classify`` returns None, or raises ClassifierUnavailable, when no
    classification can be made; the engine then decides on rules alone.
    """

    def classify(self, channel_code: int, text: str) -> Optional[Classification]:
        ...
