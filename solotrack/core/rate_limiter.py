from __future__ import annotations

import logging
from datetime import datetime, timedelta

from solotrack.core.clock import elapsed_at_least
from solotrack.core.contract import CATEGORY_COOLDOWNS, DAILY_CAP, GLOBAL_COOLDOWN
from solotrack.core.events import CheckrideReady, MilestoneCrossed, NotificationEvent
from solotrack.core.preferences import NotificationPreferences

logger = logging.getLogger(__name__)

GATE_DAILY_CAP = "daily_cap"
GATE_GLOBAL_COOLDOWN = "global_cooldown"
GATE_CATEGORY_COOLDOWN = "category_cooldown"
GATE_ONE_TIME = "one_time"


class RateLimiter:
    """
    Stateful gate over the persisted preferences. All four gates must pass:

    1. daily cap (calendar day, not rolling 24h)
    2. global cooldown since any delivery
    3. per-category cooldown
    4. one-time dedup (checkride ready, acknowledged milestones)
    """

    def __init__(
        self,
        preferences: NotificationPreferences,
        daily_cap: int = DAILY_CAP,
        global_cooldown: timedelta = GLOBAL_COOLDOWN,
        category_cooldowns: dict[str, timedelta | None] | None = None,
    ) -> None:
        self.preferences = preferences
        self.daily_cap = daily_cap
        self.global_cooldown = global_cooldown
        self.category_cooldowns = dict(CATEGORY_COOLDOWNS if category_cooldowns is None else category_cooldowns)

    def blocking_gate(self, event: NotificationEvent, now: datetime) -> str | None:
        """Name of the first gate that rejects the event, or None if it passes."""
        prefs = self.preferences

        if prefs.notifications_sent_today(now) >= self.daily_cap:
            return GATE_DAILY_CAP

        last_global = prefs.global_last_sent
        if last_global is not None and not elapsed_at_least(last_global, now, self.global_cooldown):
            return GATE_GLOBAL_COOLDOWN

        category = event.category
        last_sent = prefs.last_sent(category)
        if category in self.category_cooldowns and last_sent is not None:
            if not elapsed_at_least(last_sent, now, self.category_cooldowns[category]):
                return GATE_CATEGORY_COOLDOWN

        match event:
            case CheckrideReady():
                if prefs.checkride_ready_notified:
                    return GATE_ONE_TIME
            case MilestoneCrossed(requirement_key=key):
                if key in prefs.acknowledged_milestones:
                    return GATE_ONE_TIME

        return None

    def passes(self, event: NotificationEvent, now: datetime) -> bool:
        gate = self.blocking_gate(event, now)
        if gate is not None:
            logger.debug("Rate limited %s at gate %s", event.category, gate)
        return gate is None

    def record(self, event: NotificationEvent, now: datetime) -> None:
        """Mark a delivery. Call only for events that passed and were dispatched."""
        prefs = self.preferences
        prefs.record_sent(event.category, now)
        prefs.global_last_sent = now
        prefs.increment_daily_count(now)

        match event:
            case CheckrideReady():
                prefs.checkride_ready_notified = True
            case MilestoneCrossed(requirement_key=key):
                prefs.acknowledge_milestone(key)
