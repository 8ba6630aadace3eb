from __future__ import annotations

from dataclasses import dataclass
from typing import Union

from solotrack.core.models import CurrencyKind

CATEGORY_CURRENCY_CLIFF = "currency_cliff"
CATEGORY_MILESTONE_CROSSED = "milestone_crossed"
CATEGORY_CHECKRIDE_READY = "checkride_ready"
CATEGORY_MOMENTUM_STALL = "momentum_stall"


@dataclass(frozen=True)
class CurrencyCliff:
    """Day or night currency entered the caution zone."""
    kind: CurrencyKind
    days_remaining: int

    @property
    def category(self) -> str:
        return CATEGORY_CURRENCY_CLIFF


@dataclass(frozen=True)
class MilestoneCrossed:
    """A PPL requirement is met and has not been acknowledged yet."""
    requirement_title: str
    requirement_key: str

    @property
    def category(self) -> str:
        return CATEGORY_MILESTONE_CROSSED


@dataclass(frozen=True)
class CheckrideReady:
    """Every PPL requirement is met. Fires once ever."""

    @property
    def category(self) -> str:
        return CATEGORY_CHECKRIDE_READY


@dataclass(frozen=True)
class MomentumStall:
    """No flying for a while with requirements still open."""
    days_since_last_flight: int
    next_requirement_title: str
    remaining_hours: float

    @property
    def category(self) -> str:
        return CATEGORY_MOMENTUM_STALL


NotificationEvent = Union[CurrencyCliff, MilestoneCrossed, CheckrideReady, MomentumStall]


@dataclass(frozen=True)
class ScoredEvent:
    event: NotificationEvent
    score: float
    title: str
    body: str

    @property
    def category(self) -> str:
        return self.event.category


def event_payload(event: NotificationEvent) -> dict[str, object]:
    """Flat dict view for reports/logs."""
    match event:
        case CurrencyCliff(kind=kind, days_remaining=days):
            return {"kind": kind.value, "days_remaining": days}
        case MilestoneCrossed(requirement_title=title, requirement_key=key):
            return {"requirement_title": title, "requirement_key": key}
        case CheckrideReady():
            return {}
        case MomentumStall(days_since_last_flight=days, next_requirement_title=title, remaining_hours=hours):
            return {"days_since_last_flight": days, "next_requirement_title": title, "remaining_hours": hours}
    return {}
