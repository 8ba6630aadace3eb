from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime
from typing import Sequence

from solotrack.core.clock import as_date
from solotrack.core.currency import Caution, CurrencyState, Expired, Valid, day_currency, night_currency
from solotrack.core.models import FlightRecord
from solotrack.core.requirements import (
    Requirement,
    compute_requirements,
    overall_progress,
    requirements_met,
)


@dataclass(frozen=True)
class LogbookStatus:
    as_of: date
    flight_count: int
    total_hours: float
    last_flight: date | None
    day: CurrencyState
    night: CurrencyState
    requirements: list[Requirement]
    overall_progress: float
    requirements_met: int


def logbook_status(flights: Sequence[FlightRecord], as_of: date | datetime) -> LogbookStatus:
    ref = as_date(as_of)
    flights = [f for f in (flights or []) if f is not None]
    reqs = compute_requirements(flights)
    flown = [f.date for f in flights if f.date <= ref]

    return LogbookStatus(
        as_of=ref,
        flight_count=len(flights),
        total_hours=round(sum(max(float(f.duration_hours or 0.0), 0.0) for f in flights), 1),
        last_flight=max(flown) if flown else None,
        day=day_currency(flights, ref),
        night=night_currency(flights, ref),
        requirements=reqs,
        overall_progress=round(overall_progress(reqs), 3),
        requirements_met=requirements_met(reqs),
    )


def _currency_phrase(name: str, state: CurrencyState) -> str | None:
    match state:
        case Valid():
            return None
        case Caution(days_remaining=d):
            return f"{name} currency expiring in {d} days"
        case Expired(days_since=d) if d > 0:
            return f"{name} currency lapsed {d} days ago"
        case Expired():
            return f"{name} currency not established"
    return None


def status_verdict(status: LogbookStatus) -> str:
    """
    One-line summary in the spirit of the dashboard cards.
    """
    if status.flight_count == 0:
        return "No flights logged yet."

    if isinstance(status.day, Valid) and isinstance(status.night, Valid):
        return "Day and night current."

    parts = [p for p in (_currency_phrase("Day", status.day), _currency_phrase("Night", status.night)) if p]
    text = ". ".join(parts) + "."

    if not status.day.is_legal:
        text += " Not current to carry passengers."
    elif not status.night.is_legal:
        text += " Not current to carry passengers at night."
    return text
