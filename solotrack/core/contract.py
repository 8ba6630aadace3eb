# solotrack/core/contract.py
"""
SoloTrack Decision Contract

This module defines the locked decision thresholds and versioning for
how SoloTrack maps a logbook -> currency states -> notifications.

If you change any constants in here, bump SOLOTRACK_DECISION_VERSION.
"""

from datetime import timedelta

SOLOTRACK_DECISION_VERSION = "0.1.0"

# Currency (FAR 61.57)
CURRENCY_LOOKBACK_DAYS = 90
CURRENCY_REQUIRED_LANDINGS = 3
CURRENCY_CAUTION_DAYS = 30

# Momentum stall
STALL_MIN_DAYS = 14
STALL_LONG_GAP_DAYS = 30

# Scoring bands
SEND_THRESHOLD = 0.5

CLIFF_CRITICAL_DAYS = 3
CLIFF_URGENT_DAYS = 7
SCORE_CLIFF_CRITICAL = 0.95
SCORE_CLIFF_URGENT = 0.85
SCORE_CLIFF_HEADS_UP = 0.60

SCORE_MILESTONE = 0.75
SCORE_MILESTONE_CHECKRIDE_BOOST = 0.10

SCORE_CHECKRIDE_READY = 1.0

SCORE_STALL_BASE = 0.55
SCORE_STALL_CHECKRIDE_PREP = 0.75
SCORE_STALL_LONG_GAP_BOOST = 0.10

# Rate limiting
DAILY_CAP = 2
GLOBAL_COOLDOWN = timedelta(hours=4)

# None = never elapses (one-time category)
CATEGORY_COOLDOWNS: dict[str, timedelta | None] = {
    "currency_cliff": timedelta(days=7),
    "milestone_crossed": timedelta(hours=24),
    "checkride_ready": None,
    "momentum_stall": timedelta(days=14),
}
