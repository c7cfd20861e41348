from __future__ import annotations

from dataclasses import dataclass

from ..core.enums import EventType
from .strategies.base import AdmissionStrategy
from .strategies.check_in_strategy import CheckInStrategy
from .strategies.check_out_strategy import CheckOutStrategy


@dataclass
class AdmissionStrategyFactory:
    """Factory Pattern: choose the admission rule for an event type."""

    def for_event(self, event_type: EventType) -> AdmissionStrategy:
        if event_type == EventType.IN:
            return CheckInStrategy()
        if event_type == EventType.OUT:
            return CheckOutStrategy()
        raise ValueError(f"Unsupported event type: {event_type!r}")
