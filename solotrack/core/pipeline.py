from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Protocol, Sequence

from solotrack.core.evaluator import NotificationEvaluator
from solotrack.core.events import NotificationEvent, ScoredEvent
from solotrack.core.models import FlightRecord, TrainingStage
from solotrack.core.preferences import NotificationPreferences
from solotrack.core.rate_limiter import RateLimiter
from solotrack.core.scorer import NotificationScorer

logger = logging.getLogger(__name__)


class DispatchError(RuntimeError):
    """Raised by a Dispatcher when the platform refused or failed a delivery."""


class Dispatcher(Protocol):
    def dispatch(self, title: str, body: str, category: str) -> None: ...


@dataclass(frozen=True)
class Delivery:
    title: str
    body: str
    category: str


class CollectingDispatcher:
    """Keeps deliveries in memory instead of handing them to a platform service."""

    def __init__(self) -> None:
        self.deliveries: list[Delivery] = []

    def dispatch(self, title: str, body: str, category: str) -> None:
        self.deliveries.append(Delivery(title=title, body=body, category=category))


@dataclass(frozen=True)
class BlockedEvent:
    scored: ScoredEvent
    gate: str


@dataclass
class PipelineResult:
    detected: list[NotificationEvent] = field(default_factory=list)
    scored: list[ScoredEvent] = field(default_factory=list)
    delivered: list[ScoredEvent] = field(default_factory=list)
    blocked: list[BlockedEvent] = field(default_factory=list)


def rank(scored: Sequence[ScoredEvent]) -> list[ScoredEvent]:
    """Highest value first. Equal scores keep detection order."""
    return sorted(scored, key=lambda s: s.score, reverse=True)


class NotificationPipeline:
    """
    detect -> score -> rank -> rate-limit -> dispatch -> record

    Ranking before gating means that when the daily cap runs out mid-batch
    the most valuable events take the remaining slots.
    """

    def __init__(
        self,
        preferences: NotificationPreferences,
        dispatcher: Dispatcher,
        evaluator: NotificationEvaluator | None = None,
        scorer: NotificationScorer | None = None,
        rate_limiter: RateLimiter | None = None,
    ) -> None:
        self.preferences = preferences
        self.dispatcher = dispatcher
        self.evaluator = evaluator or NotificationEvaluator(preferences)
        self.scorer = scorer or NotificationScorer(preferences)
        self.rate_limiter = rate_limiter or RateLimiter(preferences)

    def deliver(
        self,
        events: Sequence[NotificationEvent],
        training_stage: TrainingStage,
        now: datetime,
    ) -> PipelineResult:
        result = PipelineResult(detected=list(events))

        for event in events:
            s = self.scorer.score(event, training_stage)
            if s is not None:
                result.scored.append(s)

        for candidate in rank(result.scored):
            gate = self.rate_limiter.blocking_gate(candidate.event, now)
            if gate is not None:
                logger.debug("Blocked %s (score %.2f) at %s", candidate.category, candidate.score, gate)
                result.blocked.append(BlockedEvent(scored=candidate, gate=gate))
                continue

            try:
                self.dispatcher.dispatch(candidate.title, candidate.body, candidate.category)
            except DispatchError as e:
                # handed over; delivery is not retried
                logger.warning("Dispatcher failed for %s: %s", candidate.category, e)

            self.rate_limiter.record(candidate.event, now)
            result.delivered.append(candidate)
            logger.info("Delivered %s (score %.2f): %s", candidate.category, candidate.score, candidate.title)

        return result

    def run(
        self,
        flights: Sequence[FlightRecord],
        training_stage: TrainingStage,
        now: datetime,
    ) -> PipelineResult:
        events = self.evaluator.detect(flights, training_stage, now)
        return self.deliver(events, training_stage, now)
