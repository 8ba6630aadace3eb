from __future__ import annotations

import logging

from solotrack.core.contract import (
    CLIFF_CRITICAL_DAYS,
    CLIFF_URGENT_DAYS,
    SCORE_CHECKRIDE_READY,
    SCORE_CLIFF_CRITICAL,
    SCORE_CLIFF_HEADS_UP,
    SCORE_CLIFF_URGENT,
    SCORE_MILESTONE,
    SCORE_MILESTONE_CHECKRIDE_BOOST,
    SCORE_STALL_BASE,
    SCORE_STALL_CHECKRIDE_PREP,
    SCORE_STALL_LONG_GAP_BOOST,
    SEND_THRESHOLD,
    STALL_LONG_GAP_DAYS,
)
from solotrack.core.events import (
    CheckrideReady,
    CurrencyCliff,
    MilestoneCrossed,
    MomentumStall,
    NotificationEvent,
    ScoredEvent,
)
from solotrack.core.models import CurrencyKind, TrainingStage
from solotrack.core.preferences import NotificationPreferences

logger = logging.getLogger(__name__)


def _clamp_score(x: float) -> float:
    return round(max(0.0, min(x, 1.0)), 2)


def _currency_cliff_copy(kind: CurrencyKind, days: int) -> tuple[float, str, str]:
    name = kind.value
    lower = name.lower()

    if days <= CLIFF_CRITICAL_DAYS:
        # critical: legal compliance at immediate risk
        title = f"{name} Currency Expires in {days}d"
        if days == 1:
            landings = "3 landings" if kind is CurrencyKind.DAY else "3 night full-stops"
            body = (
                "After tomorrow you won't be legal to carry passengers. "
                f"One flight with {landings} resets the clock."
            )
        else:
            body = (
                f"You have {days} days before your {lower} currency lapses under FAR 61.57. "
                "A quick pattern session keeps you current."
            )
        return SCORE_CLIFF_CRITICAL, title, body

    if days <= CLIFF_URGENT_DAYS:
        title = f"{name} Currency: {days} Days Left"
        body = f"Your {lower} currency expires in {days} days. Plan a flight this week to stay legal."
        return SCORE_CLIFF_URGENT, title, body

    title = f"{name} Currency Heads-Up"
    body = f"Your {lower} currency expires in {days} days. No rush, but keep it on your radar."
    return SCORE_CLIFF_HEADS_UP, title, body


def score_and_format(event: NotificationEvent, training_stage: TrainingStage) -> tuple[float, str, str]:
    """
    Raw (score, title, body) for an event, before opt-in and threshold checks.
    """
    checkride_prep = TrainingStage.parse(training_stage) is TrainingStage.CHECKRIDE_PREP

    match event:
        case CurrencyCliff(kind=kind, days_remaining=days):
            return _currency_cliff_copy(kind, days)

        case MilestoneCrossed(requirement_title=req):
            title = f"{req} — Complete"
            body = f"You just met the {req} requirement. That's real progress toward your PPL."
            boost = SCORE_MILESTONE_CHECKRIDE_BOOST if checkride_prep else 0.0
            return _clamp_score(SCORE_MILESTONE + boost), title, body

        case CheckrideReady():
            title = "All PPL Requirements Met"
            body = "Every FAR 61.109 box is checked. Talk to your CFI about scheduling that checkride."
            return SCORE_CHECKRIDE_READY, title, body

        case MomentumStall(days_since_last_flight=days, next_requirement_title=req, remaining_hours=hours):
            title = f"{days} Days Since Your Last Flight"
            body = (
                f"You're {hours:.1f} hrs from completing {req}. "
                "Skills stay sharp when the gaps stay short."
            )
            score = SCORE_STALL_CHECKRIDE_PREP if checkride_prep else SCORE_STALL_BASE
            if days >= STALL_LONG_GAP_DAYS:
                score += SCORE_STALL_LONG_GAP_BOOST
            return _clamp_score(score), title, body

    raise TypeError(f"Unknown notification event: {event!r}")


class NotificationScorer:
    """
    Maps an event + training stage to a value score and user-facing copy.
    Disabled categories and below-threshold scores yield None.
    """

    def __init__(
        self,
        preferences: NotificationPreferences | None = None,
        send_threshold: float = SEND_THRESHOLD,
    ) -> None:
        self.preferences = preferences or NotificationPreferences()
        self.send_threshold = send_threshold

    def is_enabled(self, event: NotificationEvent) -> bool:
        match event:
            case CurrencyCliff():
                return self.preferences.currency_alerts_enabled
            case MilestoneCrossed() | CheckrideReady():
                return self.preferences.milestone_alerts_enabled
            case MomentumStall():
                return self.preferences.momentum_alerts_enabled
        return False

    def score(self, event: NotificationEvent, training_stage: TrainingStage) -> ScoredEvent | None:
        if not self.is_enabled(event):
            logger.debug("Dropped %s: category disabled by user", event.category)
            return None

        value, title, body = score_and_format(event, training_stage)
        if value < self.send_threshold:
            logger.debug("Dropped %s: score %.2f below threshold %.2f", event.category, value, self.send_threshold)
            return None

        return ScoredEvent(event=event, score=value, title=title, body=body)
