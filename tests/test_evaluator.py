from __future__ import annotations

from solotrack.core.evaluator import NotificationEvaluator
from solotrack.core.events import CheckrideReady, CurrencyCliff, MilestoneCrossed, MomentumStall
from solotrack.core.models import CurrencyKind, TrainingStage
from solotrack.core.requirements import compute_requirements


def test_no_flights_detects_nothing(prefs, now) -> None:
    assert NotificationEvaluator(prefs).detect([], TrainingStage.PRE_SOLO, now) == []


def test_currency_cliff_only_in_caution_zone(prefs, flight, now) -> None:
    ev = NotificationEvaluator(prefs)

    # caution -> cliff
    events = ev.detect_currency_cliffs([flight(75, day=3)], now)
    assert events == [CurrencyCliff(kind=CurrencyKind.DAY, days_remaining=15)]

    # valid -> nothing
    assert ev.detect_currency_cliffs([flight(10, day=3)], now) == []

    # expired -> nothing
    assert ev.detect_currency_cliffs([flight(100, day=3)], now) == []


def test_night_cliff_is_reported_separately(prefs, flight, now) -> None:
    events = NotificationEvaluator(prefs).detect_currency_cliffs([flight(10, day=3), flight(85, night=3)], now)
    assert events == [CurrencyCliff(kind=CurrencyKind.NIGHT, days_remaining=5)]


def test_milestone_detected_until_acknowledged(prefs, flight, now) -> None:
    flights = [flight(1, day=3, hours=21.0, is_dual_received=True)]
    ev = NotificationEvaluator(prefs)

    events = ev.detect(flights, TrainingStage.POST_SOLO, now)
    assert MilestoneCrossed(requirement_title="Dual Instruction", requirement_key="61.109(a)(1)") in events

    prefs.acknowledge_milestone("61.109(a)(1)")
    events = ev.detect(flights, TrainingStage.POST_SOLO, now)
    assert not any(isinstance(e, MilestoneCrossed) for e in events)


def test_checkride_ready_once(prefs, complete_logbook, now) -> None:
    ev = NotificationEvaluator(prefs)

    events = ev.detect(complete_logbook, TrainingStage.CHECKRIDE_PREP, now)
    assert CheckrideReady() in events
    assert sum(isinstance(e, MilestoneCrossed) for e in events) == 6
    assert not any(isinstance(e, (MomentumStall, CurrencyCliff)) for e in events)

    prefs.checkride_ready_notified = True
    events = ev.detect(complete_logbook, TrainingStage.CHECKRIDE_PREP, now)
    assert CheckrideReady() not in events


def test_momentum_stall_names_smallest_gap(prefs, flight, now) -> None:
    flights = [flight(20, day=3, hours=18.0, is_dual_received=True)]

    events = NotificationEvaluator(prefs).detect(flights, TrainingStage.POST_SOLO, now)

    assert events == [
        MomentumStall(days_since_last_flight=20, next_requirement_title="Dual Instruction", remaining_hours=2.0)
    ]


def test_momentum_stall_needs_14_days(prefs, flight, now) -> None:
    ev = NotificationEvaluator(prefs)
    assert ev.detect([flight(13, day=3)], TrainingStage.PRE_SOLO, now) == []

    stall = ev.detect_momentum_stall([flight(14, day=3)], [], now)
    # nothing left to fly toward
    assert stall is None

    events = ev.detect([flight(14, day=3)], TrainingStage.PRE_SOLO, now)
    assert [type(e) for e in events] == [MomentumStall]
    assert events[0].days_since_last_flight == 14


def test_momentum_stall_ties_keep_catalog_order(prefs, flight, now) -> None:
    # night (3h) and instrument (3h) both untouched: night comes first in the catalog
    flights = [
        flight(30, day=3, hours=40.0, is_dual_received=True),
        flight(31, hours=10.0, is_solo=True, is_cross_country=True),
    ]
    stall = NotificationEvaluator(prefs).detect_momentum_stall(flights, compute_requirements(flights), now)
    assert stall is not None
    assert stall.next_requirement_title == "Night Training"
    assert stall.remaining_hours == 3.0


def test_future_flights_do_not_reset_stall(prefs, flight, now) -> None:
    flights = [flight(20, day=3, hours=1.0), flight(-3, day=3, hours=1.0)]
    events = NotificationEvaluator(prefs).detect(flights, TrainingStage.PRE_SOLO, now)
    stalls = [e for e in events if isinstance(e, MomentumStall)]
    assert stalls and stalls[0].days_since_last_flight == 20
