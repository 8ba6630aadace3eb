from __future__ import annotations

from datetime import datetime, timedelta, timezone

from solotrack.core.events import CheckrideReady, CurrencyCliff, MilestoneCrossed, MomentumStall
from solotrack.core.models import CurrencyKind
from solotrack.core.preferences import KEY_GLOBAL_LAST_SENT, InMemoryPreferenceStore, NotificationPreferences
from solotrack.core.rate_limiter import (
    GATE_CATEGORY_COOLDOWN,
    GATE_DAILY_CAP,
    GATE_GLOBAL_COOLDOWN,
    GATE_ONE_TIME,
    RateLimiter,
)

CLIFF = CurrencyCliff(CurrencyKind.DAY, 5)
STALL = MomentumStall(days_since_last_flight=20, next_requirement_title="Solo Flight", remaining_hours=3.0)
MILESTONE = MilestoneCrossed(requirement_title="Solo Flight", requirement_key="61.109(a)(2)")


def test_fresh_state_passes_everything(prefs, now) -> None:
    limiter = RateLimiter(prefs)
    for event in (CLIFF, STALL, MILESTONE, CheckrideReady()):
        assert limiter.passes(event, now)
        assert limiter.blocking_gate(event, now) is None


def test_daily_cap_blocks_third_notification(prefs, now) -> None:
    prefs.increment_daily_count(now)
    prefs.increment_daily_count(now)

    assert RateLimiter(prefs).blocking_gate(STALL, now) == GATE_DAILY_CAP


def test_daily_cap_resets_on_calendar_day(prefs) -> None:
    late = datetime(2026, 3, 1, 23, 0)
    prefs.increment_daily_count(late)
    prefs.increment_daily_count(late)

    after_midnight = datetime(2026, 3, 2, 0, 30)
    assert prefs.notifications_sent_today(late) == 2
    assert prefs.notifications_sent_today(after_midnight) == 0
    assert RateLimiter(prefs).blocking_gate(STALL, after_midnight) is None


def test_global_cooldown(prefs, now) -> None:
    limiter = RateLimiter(prefs)

    prefs.global_last_sent = now - timedelta(hours=3, minutes=59)
    assert limiter.blocking_gate(CLIFF, now) == GATE_GLOBAL_COOLDOWN

    prefs.global_last_sent = now - timedelta(hours=4)
    assert limiter.blocking_gate(CLIFF, now) is None


def test_category_cooldown_8_days_passes_3_days_blocks(prefs, now) -> None:
    limiter = RateLimiter(prefs)

    prefs.record_sent(CLIFF.category, now - timedelta(days=3))
    assert limiter.blocking_gate(CLIFF, now) == GATE_CATEGORY_COOLDOWN
    # other categories are unaffected
    assert limiter.blocking_gate(STALL, now) is None

    prefs.record_sent(CLIFF.category, now - timedelta(days=8))
    assert limiter.blocking_gate(CLIFF, now) is None


def test_checkride_ready_never_cools_down(prefs, now) -> None:
    prefs.record_sent(CheckrideReady().category, now - timedelta(days=3650))
    assert RateLimiter(prefs).blocking_gate(CheckrideReady(), now) == GATE_CATEGORY_COOLDOWN


def test_one_time_dedup(prefs, now) -> None:
    limiter = RateLimiter(prefs)

    prefs.checkride_ready_notified = True
    assert limiter.blocking_gate(CheckrideReady(), now) == GATE_ONE_TIME

    prefs.acknowledge_milestone(MILESTONE.requirement_key)
    assert limiter.blocking_gate(MILESTONE, now) == GATE_ONE_TIME

    other = MilestoneCrossed(requirement_title="Night Training", requirement_key="61.109(a)(2)(ii)")
    assert limiter.blocking_gate(other, now) is None


def test_record_updates_all_state(prefs, now) -> None:
    limiter = RateLimiter(prefs)

    limiter.record(MILESTONE, now)

    assert prefs.last_sent(MILESTONE.category) == now
    assert prefs.global_last_sent == now
    assert prefs.notifications_sent_today(now) == 1
    assert MILESTONE.requirement_key in prefs.acknowledged_milestones
    assert not prefs.checkride_ready_notified

    later = now + timedelta(hours=5)
    limiter.record(CheckrideReady(), later)
    assert prefs.checkride_ready_notified
    assert prefs.notifications_sent_today(later) == 2


def test_custom_limits(prefs, now) -> None:
    limiter = RateLimiter(prefs, daily_cap=1, global_cooldown=timedelta(0), category_cooldowns={})
    limiter.record(STALL, now)

    assert limiter.blocking_gate(STALL, now + timedelta(days=1)) is None
    assert limiter.blocking_gate(STALL, now) == GATE_DAILY_CAP


def test_offset_timestamps_compare_with_naive_now() -> None:
    prefs = NotificationPreferences(InMemoryPreferenceStore({KEY_GLOBAL_LAST_SENT: "2026-03-01T09:00:00+00:00"}))
    limiter = RateLimiter(prefs)

    assert limiter.passes(CLIFF, datetime(2026, 3, 2, 12))
    assert prefs.global_last_sent is not None and prefs.global_last_sent.tzinfo is None


def test_naive_timestamps_compare_with_offset_now(prefs) -> None:
    prefs.record_sent(CLIFF.category, datetime(2026, 3, 1, 9))
    limiter = RateLimiter(prefs)

    aware_now = datetime(2026, 3, 20, 12, tzinfo=timezone.utc)
    assert limiter.blocking_gate(CLIFF, aware_now) is None

    limiter.record(CLIFF, aware_now)
    assert prefs.last_sent(CLIFF.category).tzinfo is None
    assert limiter.blocking_gate(CLIFF, aware_now + timedelta(days=1)) == GATE_CATEGORY_COOLDOWN
