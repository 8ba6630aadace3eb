from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Sequence

from solotrack.core.clock import as_date, days_between
from solotrack.core.contract import STALL_MIN_DAYS
from solotrack.core.currency import Caution, CurrencyState, day_currency, night_currency
from solotrack.core.events import (
    CheckrideReady,
    CurrencyCliff,
    MilestoneCrossed,
    MomentumStall,
    NotificationEvent,
)
from solotrack.core.models import CurrencyKind, FlightRecord, TrainingStage
from solotrack.core.preferences import NotificationPreferences
from solotrack.core.requirements import Requirement, all_met, compute_requirements

logger = logging.getLogger(__name__)


class NotificationEvaluator:
    """
    Runs the four heuristics against the current logbook and returns
    candidate events. Rate limits are not applied here.

    Reads (never writes) the acknowledgement state in preferences so
    one-time events that already fired are not re-detected.
    """

    def __init__(self, preferences: NotificationPreferences | None = None) -> None:
        self.preferences = preferences or NotificationPreferences()

    def detect(
        self,
        flights: Sequence[FlightRecord],
        training_stage: TrainingStage,
        now: date | datetime,
    ) -> list[NotificationEvent]:
        flights = [f for f in (flights or []) if f is not None]
        requirements = compute_requirements(flights)

        events: list[NotificationEvent] = []
        events.extend(self.detect_currency_cliffs(flights, now))
        events.extend(self.detect_milestones(requirements))

        ready = self.detect_checkride_ready(requirements)
        if ready is not None:
            events.append(ready)

        stall = self.detect_momentum_stall(flights, requirements, now)
        if stall is not None:
            events.append(stall)

        logger.debug(
            "Detected %d candidate event(s) for stage=%s: %s",
            len(events),
            TrainingStage.parse(training_stage).value,
            [e.category for e in events],
        )
        return events

    # --- heuristic 1: currency cliff ---

    def detect_currency_cliffs(self, flights: Sequence[FlightRecord], now: date | datetime) -> list[NotificationEvent]:
        out: list[NotificationEvent] = []
        for kind, state in (
            (CurrencyKind.DAY, day_currency(flights, now)),
            (CurrencyKind.NIGHT, night_currency(flights, now)),
        ):
            event = _cliff_event(state, kind)
            if event is not None:
                out.append(event)
        return out

    # --- heuristic 2: milestone crossed ---

    def detect_milestones(self, requirements: list[Requirement]) -> list[NotificationEvent]:
        acknowledged = self.preferences.acknowledged_milestones
        return [
            MilestoneCrossed(requirement_title=r.title, requirement_key=r.key)
            for r in requirements
            if r.is_met and r.key not in acknowledged
        ]

    # --- heuristic 3: checkride ready ---

    def detect_checkride_ready(self, requirements: list[Requirement]) -> CheckrideReady | None:
        if self.preferences.checkride_ready_notified:
            return None
        return CheckrideReady() if all_met(requirements) else None

    # --- heuristic 4: momentum stall ---

    def detect_momentum_stall(
        self,
        flights: Sequence[FlightRecord],
        requirements: list[Requirement],
        now: date | datetime,
    ) -> MomentumStall | None:
        today = as_date(now)
        flown = [f for f in flights if f.date <= today]
        if not flown:
            return None

        most_recent = max(f.date for f in flown)
        days_since = days_between(most_recent, today)
        if days_since < STALL_MIN_DAYS:
            return None

        unmet = [r for r in requirements if not r.is_met]
        if not unmet:
            return None

        # smallest gap first; min() keeps catalog order on ties
        nearest = min(unmet, key=lambda r: r.remaining_hours)
        return MomentumStall(
            days_since_last_flight=days_since,
            next_requirement_title=nearest.title,
            remaining_hours=nearest.remaining_hours,
        )


def _cliff_event(state: CurrencyState, kind: CurrencyKind) -> CurrencyCliff | None:
    # Valid: nothing to say. Expired: too late for a nudge, the dashboard shows it.
    match state:
        case Caution(days_remaining=days):
            return CurrencyCliff(kind=kind, days_remaining=days)
        case _:
            return None
