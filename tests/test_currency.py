from __future__ import annotations

from datetime import date, datetime, timedelta

from solotrack.core.clock import days_between, elapsed_at_least, is_same_calendar_day
from solotrack.core.currency import (
    Caution,
    Expired,
    Valid,
    currency,
    day_currency,
    expires_on,
    night_currency,
    state_name,
)
from solotrack.core.models import CurrencyKind


def test_three_landings_today_is_valid_for_full_window(flight, as_of) -> None:
    state = day_currency([flight(0, day=3)], as_of)
    assert state == Valid(days_remaining=90)
    assert state.is_legal
    assert expires_on(state, as_of) == as_of + timedelta(days=90)


def test_landings_91_days_ago_are_expired(flight, as_of) -> None:
    state = day_currency([flight(91, day=3)], as_of)
    assert isinstance(state, Expired)
    assert state.days_since == 1
    assert not state.is_legal
    assert expires_on(state, as_of) is None


def test_landings_exactly_90_days_ago_expire_today(flight, as_of) -> None:
    state = day_currency([flight(90, day=3)], as_of)
    assert state == Caution(days_remaining=0)
    assert state.is_legal


def test_75_days_ago_is_caution_with_15_days(flight, as_of) -> None:
    state = day_currency([flight(75, day=3)], as_of)
    assert state == Caution(days_remaining=15)
    assert state.label == "Expiring in 15 days"


def test_caution_boundary_is_inclusive_at_30_days(flight, as_of) -> None:
    assert day_currency([flight(60, day=3)], as_of) == Caution(days_remaining=30)
    assert day_currency([flight(59, day=3)], as_of) == Valid(days_remaining=31)


def test_landings_accumulate_across_flights_and_oldest_needed_anchors(flight, as_of) -> None:
    flights = [flight(10, day=1), flight(40, day=1), flight(80, day=1)]
    # the third landing (80 days ago) is what completes the requirement
    assert day_currency(flights, as_of) == Caution(days_remaining=10)


def test_recent_flight_with_enough_landings_anchors_alone(flight, as_of) -> None:
    flights = [flight(80, day=3), flight(10, day=5)]
    assert day_currency(flights, as_of) == Valid(days_remaining=80)


def test_input_order_does_not_matter(flight, as_of) -> None:
    flights = [flight(40, day=1), flight(80, day=1), flight(10, day=1)]
    assert day_currency(flights, as_of) == day_currency(list(reversed(flights)), as_of)


def test_night_and_day_are_independent(flight, as_of) -> None:
    flights = [flight(5, night=3)]
    assert night_currency(flights, as_of) == Valid(days_remaining=85)
    assert day_currency(flights, as_of) == Expired(days_since=0)

    flights = [flight(5, day=10)]
    assert night_currency(flights, as_of) == Expired(days_since=0)


def test_no_flights_is_expired_zero(as_of) -> None:
    assert day_currency([], as_of) == Expired(days_since=0)
    assert night_currency(None, as_of) == Expired(days_since=0)


def test_too_few_landings_inside_window_reports_zero_days_since(flight, as_of) -> None:
    state = day_currency([flight(20, day=2)], as_of)
    assert state == Expired(days_since=0)


def test_lapsed_currency_reports_days_since_window_closed(flight, as_of) -> None:
    state = day_currency([flight(120, day=3)], as_of)
    assert state == Expired(days_since=30)
    assert state.label == "Expired 30 days ago"


def test_future_dated_flights_are_ignored(flight, as_of) -> None:
    state = day_currency([flight(-5, day=3)], as_of)
    assert state == Expired(days_since=0)


def test_currency_is_pure_and_accepts_datetimes(flight, as_of) -> None:
    flights = [flight(30, day=1), flight(20, day=2)]
    snapshot = list(flights)

    a = currency(flights, as_of, CurrencyKind.DAY)
    b = currency(flights, datetime.combine(as_of, datetime.min.time()).replace(hour=23), CurrencyKind.DAY)

    assert a == b
    assert flights == snapshot
    assert state_name(a) == "valid"


def test_calendar_primitives() -> None:
    assert is_same_calendar_day(datetime(2026, 3, 1, 0, 1), date(2026, 3, 1))
    assert not is_same_calendar_day(datetime(2026, 3, 1, 23, 59), datetime(2026, 3, 2, 0, 0))
    assert days_between(date(2026, 3, 1), datetime(2026, 3, 11, 8)) == 10

    t0 = datetime(2026, 3, 1, 12)
    assert elapsed_at_least(t0, t0 + timedelta(hours=4), timedelta(hours=4))
    assert not elapsed_at_least(t0, t0 + timedelta(hours=3, minutes=59), timedelta(hours=4))
    assert not elapsed_at_least(t0, t0 + timedelta(days=3650), None)
