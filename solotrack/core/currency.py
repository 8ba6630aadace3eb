from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta
from typing import Callable, Iterable, Union

from solotrack.core.clock import as_date, days_between
from solotrack.core.contract import (
    CURRENCY_CAUTION_DAYS,
    CURRENCY_LOOKBACK_DAYS,
    CURRENCY_REQUIRED_LANDINGS,
)
from solotrack.core.models import CurrencyKind, FlightRecord

LandingExtractor = Callable[[FlightRecord], int]


# ----------------------------
# Currency states
# ----------------------------

@dataclass(frozen=True)
class Valid:
    days_remaining: int

    @property
    def is_legal(self) -> bool:
        return True

    @property
    def label(self) -> str:
        return f"Current — {self.days_remaining} days remaining"

    @property
    def short_label(self) -> str:
        return f"Expires in {self.days_remaining}d"


@dataclass(frozen=True)
class Caution:
    days_remaining: int

    @property
    def is_legal(self) -> bool:
        return True

    @property
    def label(self) -> str:
        return f"Expiring in {self.days_remaining} days"

    @property
    def short_label(self) -> str:
        return f"Expires in {self.days_remaining}d"


@dataclass(frozen=True)
class Expired:
    days_since: int

    @property
    def is_legal(self) -> bool:
        return False

    @property
    def label(self) -> str:
        return f"Expired {self.days_since} days ago"

    @property
    def short_label(self) -> str:
        return f"Expired {self.days_since}d ago"


CurrencyState = Union[Valid, Caution, Expired]


def state_name(state: CurrencyState) -> str:
    match state:
        case Valid():
            return "valid"
        case Caution():
            return "caution"
        case Expired():
            return "expired"


def expires_on(state: CurrencyState, as_of: date | datetime) -> date | None:
    """Absolute expiration date for a held currency, None once expired."""
    match state:
        case Valid(days_remaining=d) | Caution(days_remaining=d):
            return as_date(as_of) + timedelta(days=d)
        case Expired():
            return None


# ----------------------------
# Landing extractors
# ----------------------------

def _day_landings(f: FlightRecord) -> int:
    return max(int(f.day_landings or 0), 0)


def _night_landings(f: FlightRecord) -> int:
    return max(int(f.night_full_stop_landings or 0), 0)


EXTRACTORS: dict[CurrencyKind, LandingExtractor] = {
    CurrencyKind.DAY: _day_landings,
    CurrencyKind.NIGHT: _night_landings,
}


# ----------------------------
# Engine
# ----------------------------

def _expiration_for_rolling_window(recent: list[FlightRecord], extract: LandingExtractor) -> date:
    """
    Right-anchored window: walk newest -> oldest and stop at the flight that
    completes the required landings. That flight's date anchors expiration.
    Same-date ties keep input order.
    """
    newest_first = sorted(recent, key=lambda f: f.date, reverse=True)
    accumulated = 0
    anchor = newest_first[0].date
    for f in newest_first:
        accumulated += extract(f)
        anchor = f.date
        if accumulated >= CURRENCY_REQUIRED_LANDINGS:
            break
    return anchor + timedelta(days=CURRENCY_LOOKBACK_DAYS)


def _expired_state(flights: list[FlightRecord], as_of: date, extract: LandingExtractor) -> Expired:
    """
    Currency not held. Report how long ago it lapsed, or 0 if it was never
    established (or the last qualifying flight is still inside the window).
    """
    with_landings = [f for f in flights if extract(f) > 0]
    if not with_landings:
        return Expired(days_since=0)

    last = max(with_landings, key=lambda f: f.date)
    last_possible_expiry = last.date + timedelta(days=CURRENCY_LOOKBACK_DAYS)
    if last_possible_expiry < as_of:
        return Expired(days_since=days_between(last_possible_expiry, as_of))
    return Expired(days_since=0)


def _state_from_expiration(expiration: date, as_of: date) -> CurrencyState:
    days_remaining = days_between(as_of, expiration)
    if days_remaining < 0:
        return Expired(days_since=-days_remaining)
    if days_remaining <= CURRENCY_CAUTION_DAYS:
        return Caution(days_remaining=days_remaining)
    return Valid(days_remaining=days_remaining)


def currency(flights: Iterable[FlightRecord], as_of: date | datetime, kind: CurrencyKind) -> CurrencyState:
    """
    FAR 61.57 passenger-carrying currency for one kind (day or night):
    3 relevant landings in the preceding 90 days.

    Flights dated after as_of are ignored everywhere.
    """
    ref = as_date(as_of)
    extract = EXTRACTORS[kind]

    history = [f for f in (flights or []) if f is not None and f.date <= ref]
    window_start = ref - timedelta(days=CURRENCY_LOOKBACK_DAYS)

    recent = sorted((f for f in history if f.date >= window_start), key=lambda f: f.date)
    total = sum(extract(f) for f in recent)

    if total < CURRENCY_REQUIRED_LANDINGS:
        return _expired_state(history, ref, extract)

    expiration = _expiration_for_rolling_window(recent, extract)
    return _state_from_expiration(expiration, ref)


def day_currency(flights: Iterable[FlightRecord], as_of: date | datetime) -> CurrencyState:
    """Day currency: 3 takeoffs & landings in the preceding 90 days."""
    return currency(flights, as_of, CurrencyKind.DAY)


def night_currency(flights: Iterable[FlightRecord], as_of: date | datetime) -> CurrencyState:
    """Night currency: 3 full-stop night landings in the preceding 90 days."""
    return currency(flights, as_of, CurrencyKind.NIGHT)
