from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

import numpy as np
import pandas as pd

from solotrack.core.models import FlightRecord


# (key, title, goal_hours) in FAR 61.109 order
REQUIREMENT_CATALOG = [
    ("61.109(a)", "Total Flight Time", 40.0),
    ("61.109(a)(1)", "Dual Instruction", 20.0),
    ("61.109(a)(2)", "Solo Flight", 10.0),
    ("61.109(a)(2)(i)", "Solo Cross-Country", 5.0),
    ("61.109(a)(2)(ii)", "Night Training", 3.0),
    ("61.109(a)(3)", "Instrument Training", 3.0),
]

TOTAL_REQUIREMENTS = len(REQUIREMENT_CATALOG)

FLIGHT_COLUMNS = ["duration", "solo", "dual", "xc", "instrument", "night_landings"]


@dataclass(frozen=True)
class Requirement:
    key: str
    title: str
    goal_hours: float
    logged_hours: float

    @property
    def progress(self) -> float:
        if self.goal_hours <= 0:
            return 1.0
        return float(np.clip(self.logged_hours / self.goal_hours, 0.0, 1.0))

    @property
    def percent_complete(self) -> int:
        return int(self.progress * 100)

    @property
    def is_met(self) -> bool:
        return self.logged_hours >= self.goal_hours

    @property
    def remaining_hours(self) -> float:
        return max(self.goal_hours - self.logged_hours, 0.0)

    @property
    def formatted_progress(self) -> str:
        return f"{self.logged_hours:.1f} / {self.goal_hours:.1f} hours"

    @property
    def formatted_remaining(self) -> str:
        if self.is_met:
            return "Complete"
        return f"{self.remaining_hours:.1f} hrs to go"


def flights_frame(flights: Iterable[FlightRecord]) -> pd.DataFrame:
    rows = [
        {
            "duration": max(float(f.duration_hours or 0.0), 0.0),
            "solo": bool(f.is_solo),
            "dual": bool(f.is_dual_received),
            "xc": bool(f.is_cross_country),
            "instrument": bool(f.is_simulated_instrument),
            "night_landings": int(f.night_full_stop_landings or 0),
        }
        for f in (flights or [])
        if f is not None
    ]
    if not rows:
        return pd.DataFrame(columns=FLIGHT_COLUMNS)
    return pd.DataFrame(rows, columns=FLIGHT_COLUMNS)


def _hours(d: pd.DataFrame, mask: pd.Series | None = None) -> float:
    if d.empty:
        return 0.0
    s = d["duration"] if mask is None else d.loc[mask, "duration"]
    return float(s.sum())


def compute_requirements(flights: Iterable[FlightRecord]) -> list[Requirement]:
    """
    Hours logged against each FAR 61.109 PPL requirement.
    """
    d = flights_frame(flights)

    if d.empty:
        logged = dict.fromkeys((k for k, _, _ in REQUIREMENT_CATALOG), 0.0)
    else:
        solo = d["solo"].astype(bool)
        logged = {
            "61.109(a)": _hours(d),
            "61.109(a)(1)": _hours(d, d["dual"].astype(bool)),
            "61.109(a)(2)": _hours(d, solo),
            "61.109(a)(2)(i)": _hours(d, solo & d["xc"].astype(bool)),
            "61.109(a)(2)(ii)": _hours(d, d["night_landings"] > 0),
            "61.109(a)(3)": _hours(d, d["instrument"].astype(bool)),
        }

    return [
        Requirement(key=key, title=title, goal_hours=goal, logged_hours=round(logged[key], 2))
        for key, title, goal in REQUIREMENT_CATALOG
    ]


def overall_progress(requirements: list[Requirement]) -> float:
    if not requirements:
        return 0.0
    return float(np.mean([r.progress for r in requirements]))


def requirements_met(requirements: list[Requirement]) -> int:
    return sum(1 for r in requirements if r.is_met)


def all_met(requirements: list[Requirement]) -> bool:
    return bool(requirements) and requirements_met(requirements) >= TOTAL_REQUIREMENTS
