from __future__ import annotations

from datetime import date, datetime, timedelta
from typing import Callable

import pytest

from solotrack.core.models import FlightRecord
from solotrack.core.preferences import InMemoryPreferenceStore, NotificationPreferences

AS_OF = date(2026, 3, 1)
NOW = datetime(2026, 3, 1, 12, 0)


@pytest.fixture
def as_of() -> date:
    return AS_OF


@pytest.fixture
def now() -> datetime:
    return NOW


@pytest.fixture
def flight() -> Callable[..., FlightRecord]:
    """
    Factory: flight(days_ago, day=..., night=..., hours=..., **flags)

    Dates are relative to AS_OF so currency math in tests reads as offsets.
    """

    def _make(
        days_ago: int,
        day: int = 0,
        night: int = 0,
        hours: float = 1.0,
        **flags: bool,
    ) -> FlightRecord:
        return FlightRecord(
            date=AS_OF - timedelta(days=days_ago),
            duration_hours=hours,
            day_landings=day,
            night_full_stop_landings=night,
            **flags,
        )

    return _make


@pytest.fixture
def prefs() -> NotificationPreferences:
    return NotificationPreferences(InMemoryPreferenceStore())


@pytest.fixture
def complete_logbook(flight) -> list[FlightRecord]:
    """
    Meets every PPL requirement two days before AS_OF:
    dual 30h (20h of it instrument with 3 night full-stops), solo 10h all cross-country.
    """
    return [
        flight(2, day=3, night=3, hours=20.0, is_dual_received=True, is_simulated_instrument=True),
        flight(3, day=2, hours=10.0, is_dual_received=True),
        flight(4, day=4, hours=10.0, is_solo=True, is_cross_country=True),
    ]
