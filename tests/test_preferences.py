from __future__ import annotations

import json
from datetime import date, timedelta
from pathlib import Path

from solotrack.core.preferences import (
    KEY_ACKNOWLEDGED_MILESTONES,
    KEY_CURRENCY_ALERTS,
    KEY_DAILY_COUNT,
    KEY_DAILY_COUNT_DATE,
    KEY_GLOBAL_LAST_SENT,
    InMemoryPreferenceStore,
    JsonPreferenceStore,
    NotificationPreferences,
)


def test_defaults(prefs, now) -> None:
    assert prefs.currency_alerts_enabled
    assert prefs.milestone_alerts_enabled
    assert prefs.momentum_alerts_enabled
    assert prefs.global_last_sent is None
    assert prefs.last_sent("currency_cliff") is None
    assert prefs.notifications_sent_today(now) == 0
    assert prefs.acknowledged_milestones == set()
    assert not prefs.checkride_ready_notified


def test_malformed_values_read_as_defaults(now) -> None:
    store = InMemoryPreferenceStore(
        {
            KEY_CURRENCY_ALERTS: "garbage",
            KEY_DAILY_COUNT: "abc",
            KEY_DAILY_COUNT_DATE: now.date().isoformat(),
            KEY_GLOBAL_LAST_SENT: "not a timestamp",
            KEY_ACKNOWLEDGED_MILESTONES: "61.109(a)",
        }
    )
    prefs = NotificationPreferences(store)

    assert prefs.currency_alerts_enabled
    assert prefs.notifications_sent_today(now) == 0
    assert prefs.global_last_sent is None
    assert prefs.acknowledged_milestones == set()


def test_json_store_round_trip(tmp_path: Path, now) -> None:
    path = tmp_path / "prefs" / "notification_prefs.json"

    prefs = NotificationPreferences(JsonPreferenceStore(path))
    prefs.momentum_alerts_enabled = False
    prefs.record_sent("momentum_stall", now)
    prefs.global_last_sent = now
    prefs.increment_daily_count(now)
    prefs.acknowledge_milestone("61.109(a)(2)")
    prefs.checkride_ready_notified = True

    assert path.exists()
    # writes land atomically; no temp files left behind
    assert [p.name for p in path.parent.iterdir()] == [path.name]

    reloaded = NotificationPreferences(JsonPreferenceStore(path))
    assert not reloaded.momentum_alerts_enabled
    assert reloaded.last_sent("momentum_stall") == now
    assert reloaded.global_last_sent == now
    assert reloaded.notifications_sent_today(now) == 1
    assert reloaded.acknowledged_milestones == {"61.109(a)(2)"}
    assert reloaded.checkride_ready_notified

    raw = json.loads(path.read_text(encoding="utf-8"))
    assert raw[KEY_DAILY_COUNT_DATE] == now.date().isoformat()


def test_corrupt_json_file_reads_as_empty(tmp_path: Path, caplog, now) -> None:
    path = tmp_path / "prefs.json"
    path.write_text("{not json", encoding="utf-8")

    with caplog.at_level("WARNING"):
        prefs = NotificationPreferences(JsonPreferenceStore(path))

    assert prefs.notifications_sent_today(now) == 0
    assert "Ignoring unreadable preferences file" in caplog.text

    # the next write replaces the corrupt file
    prefs.increment_daily_count(now)
    assert json.loads(path.read_text(encoding="utf-8"))[KEY_DAILY_COUNT] == 1


def test_non_object_json_reads_as_empty(tmp_path: Path) -> None:
    path = tmp_path / "prefs.json"
    path.write_text("[1, 2, 3]", encoding="utf-8")
    assert JsonPreferenceStore(path).snapshot() == {}


def test_daily_count_restarts_on_new_day(prefs) -> None:
    d = date(2026, 3, 1)
    assert prefs.increment_daily_count(d) == 1
    assert prefs.increment_daily_count(d) == 2
    assert prefs.increment_daily_count(d + timedelta(days=1)) == 1


def test_reset_clears_notification_state_only(now) -> None:
    store = InMemoryPreferenceStore({"unrelated_host_key": 42})
    prefs = NotificationPreferences(store)
    prefs.currency_alerts_enabled = False
    prefs.record_sent("currency_cliff", now)
    prefs.global_last_sent = now
    prefs.increment_daily_count(now)
    prefs.acknowledge_milestone("61.109(a)")
    prefs.checkride_ready_notified = True

    prefs.reset()

    assert store.snapshot() == {"unrelated_host_key": 42}
    assert prefs.currency_alerts_enabled
    assert prefs.last_sent("currency_cliff") is None
    assert not prefs.checkride_ready_notified
