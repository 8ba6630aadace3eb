from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from enum import Enum


class TrainingStage(str, Enum):
    PRE_SOLO = "pre_solo"
    POST_SOLO = "post_solo"
    CHECKRIDE_PREP = "checkride_prep"

    @classmethod
    def parse(cls, value: object) -> "TrainingStage":
        """
        Lenient parse used for config/CLI/onboarding state.
        Unknown or missing values fall back to pre-solo.
        """
        if isinstance(value, cls):
            return value
        s = str(value or "").strip().lower().replace("-", "_")
        for stage in cls:
            if stage.value == s:
                return stage
        return cls.PRE_SOLO

    @property
    def display_title(self) -> str:
        return {
            TrainingStage.PRE_SOLO: "Pre-Solo",
            TrainingStage.POST_SOLO: "Post-Solo",
            TrainingStage.CHECKRIDE_PREP: "Checkride Prep",
        }[self]


class CurrencyKind(str, Enum):
    DAY = "Day"
    NIGHT = "Night"


@dataclass(frozen=True)
class FlightRecord:
    """
    One logbook entry. Owned by the host store; the engine only reads it.

    Flags are not cross-checked (solo + dual on the same row is tolerated).
    """
    date: date
    duration_hours: float = 0.0
    day_landings: int = 0
    night_full_stop_landings: int = 0
    is_solo: bool = False
    is_dual_received: bool = False
    is_cross_country: bool = False
    is_simulated_instrument: bool = False

    # host metadata, not used by the engine
    route_from: str = ""
    route_to: str = ""
    remarks: str = ""

    @property
    def total_landings(self) -> int:
        return self.day_landings + self.night_full_stop_landings

    @property
    def formatted_route(self) -> str:
        src = self.route_from.strip().upper()
        dst = self.route_to.strip().upper()
        if not src and not dst:
            return "Local"
        if not src:
            return dst
        if not dst:
            return src
        return f"{src} → {dst}"

    @property
    def category_tags(self) -> list[str]:
        tags: list[str] = []
        if self.is_solo:
            tags.append("Solo")
        if self.is_dual_received:
            tags.append("Dual")
        if self.is_cross_country:
            tags.append("XC")
        if self.is_simulated_instrument:
            tags.append("Inst")
        return tags
