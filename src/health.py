"""Health scoring and dropped-ball detection for work items.

Every function here is pure: items in, numbers and lists out. Scores
start at 100 and only lose points:

- content shorter than 10 characters: -20
- no owner: -15
- staleness outside ``done``: >=14 days -40, >=7 days -20, >=3 days -5
- a decision sitting in ``decided`` for 3+ days with no open sibling
  action from the same capture: -25

``assess`` runs the scorer once per active item and detects dropped
balls once, so a brief build never repeats the work.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import StrEnum

from driftwatch.models import Category, Stage, WorkItem

MAX_SCORE = 100

STRONG_THRESHOLD = 70
AT_RISK_THRESHOLD = 40

# Days in a stage before an item counts as stuck. ``done`` is never stuck.
STUCK_THRESHOLDS: dict[Stage, int | None] = {
    Stage.THINKING: 7,
    Stage.DECIDED: 5,
    Stage.DOING: 10,
    Stage.WAITING: 5,
    Stage.DONE: None,
}
DEFAULT_STUCK_THRESHOLD = 7

DECISION_FOLLOW_UP_DAYS = 3
OPEN_COMMITMENT_DAYS = 7

SELF_OWNERS = frozenset({"me", "i"})


class HealthStatus(StrEnum):
    STRONG = "strong"
    AT_RISK = "at_risk"
    STALLED = "stalled"


class DroppedBallReason(StrEnum):
    DECISION_WITHOUT_ACTION = "decision_without_action"
    STUCK_IN_STAGE = "stuck_in_stage"
    OPEN_COMMITMENT = "open_commitment"


class Urgency(StrEnum):
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"


@dataclass(frozen=True)
class DroppedBall:
    """A work item that has silently stalled."""

    item: WorkItem
    reason: DroppedBallReason
    days_since_issue: int
    threshold: int | None = None

    @property
    def description(self) -> str:
        if self.reason == DroppedBallReason.DECISION_WITHOUT_ACTION:
            return f"Decision made {self.days_since_issue}d ago with no follow-up actions"
        if self.reason == DroppedBallReason.STUCK_IN_STAGE:
            return (
                f"In {self.item.stage.value} for {self.days_since_issue}d "
                f"(threshold: {self.threshold}d)"
            )
        return f"Open commitment for {self.days_since_issue}d"


@dataclass
class HealthReport:
    """One pass of scoring and detection over an item set."""

    scores: dict[str, int] = field(default_factory=dict)
    dropped_balls: list[DroppedBall] = field(default_factory=list)
    strong: int = 0
    at_risk: int = 0
    stalled: int = 0

    def status_of(self, item_id: str) -> HealthStatus | None:
        score = self.scores.get(item_id)
        return None if score is None else status(score)

    @property
    def attention(self) -> int:
        return self.at_risk + self.stalled


def _now(now: datetime | None) -> datetime:
    return now or datetime.now(UTC)


def _open_action_sources(items: Iterable[WorkItem]) -> set[str | None]:
    """Source ids that have at least one action not yet done.

    ``None`` is a valid key: items with no originating capture are
    siblings of each other.
    """
    return {
        item.source_id
        for item in items
        if item.category == Category.ACTION and item.stage != Stage.DONE
    }


def _is_unfollowed_decision(
    item: WorkItem, open_sources: set[str | None], days: int
) -> bool:
    return (
        item.category == Category.DECISION
        and item.stage == Stage.DECIDED
        and days >= DECISION_FOLLOW_UP_DAYS
        and item.source_id not in open_sources
    )


def _score(item: WorkItem, open_sources: set[str | None], now: datetime) -> int:
    value = MAX_SCORE
    if len(item.content) < 10:
        value -= 20
    if not item.has_owner:
        value -= 15

    days = item.days_since_update(now)
    if item.stage != Stage.DONE:
        if days >= 14:
            value -= 40
        elif days >= 7:
            value -= 20
        elif days >= 3:
            value -= 5

    if _is_unfollowed_decision(item, open_sources, days):
        value -= 25

    return max(0, value)


def score(item: WorkItem, all_items: Sequence[WorkItem], *, now: datetime | None = None) -> int:
    """Health score for ``item`` in the context of ``all_items`` (0-100)."""
    return _score(item, _open_action_sources(all_items), _now(now))


def status(value: int) -> HealthStatus:
    if value >= STRONG_THRESHOLD:
        return HealthStatus.STRONG
    if value >= AT_RISK_THRESHOLD:
        return HealthStatus.AT_RISK
    return HealthStatus.STALLED


def item_status(
    item: WorkItem, all_items: Sequence[WorkItem], *, now: datetime | None = None
) -> HealthStatus:
    return status(score(item, all_items, now=now))


def is_self_owner(owner: str | None) -> bool:
    """Whether an owner string refers to the user.

    A missing owner counts as the user: the capture step defaults
    unattributed commitments to "me".
    """
    normalized = (owner or "").strip().lower() or "me"
    return normalized in SELF_OWNERS or "myself" in normalized


def stuck_threshold(stage: Stage) -> int | None:
    return STUCK_THRESHOLDS.get(stage, DEFAULT_STUCK_THRESHOLD)


def _dropped_ball(
    item: WorkItem, open_sources: set[str | None], now: datetime
) -> DroppedBall | None:
    """First matching reason for one active item, in evaluation order."""
    days = item.days_since_update(now)

    if _is_unfollowed_decision(item, open_sources, days):
        return DroppedBall(item, DroppedBallReason.DECISION_WITHOUT_ACTION, days)

    threshold = stuck_threshold(item.stage)
    if threshold is not None and days >= threshold:
        return DroppedBall(item, DroppedBallReason.STUCK_IN_STAGE, days, threshold)

    if (
        item.category == Category.COMMITMENT
        and days >= OPEN_COMMITMENT_DAYS
        and is_self_owner(item.owner)
    ):
        return DroppedBall(item, DroppedBallReason.OPEN_COMMITMENT, days)

    return None


def _detect(
    items: Sequence[WorkItem], open_sources: set[str | None], now: datetime
) -> list[DroppedBall]:
    balls: list[DroppedBall] = []
    seen: set[str] = set()
    for item in items:
        if item.stage == Stage.DONE or item.id in seen:
            continue
        ball = _dropped_ball(item, open_sources, now)
        if ball is not None:
            seen.add(item.id)
            balls.append(ball)
    return balls


def detect_dropped_balls(
    all_items: Sequence[WorkItem], *, now: datetime | None = None
) -> list[DroppedBall]:
    """Active items that are silently stalled, at most once per item id."""
    return _detect(all_items, _open_action_sources(all_items), _now(now))


def health_counts(
    all_items: Sequence[WorkItem], *, now: datetime | None = None
) -> tuple[int, int, int]:
    """(strong, at_risk, stalled) over items not in ``done``."""
    report = assess(all_items, now=now)
    return report.strong, report.at_risk, report.stalled


def assess(all_items: Sequence[WorkItem], *, now: datetime | None = None) -> HealthReport:
    """Score every active item and detect dropped balls in a single pass."""
    moment = _now(now)
    open_sources = _open_action_sources(all_items)
    report = HealthReport()

    for item in all_items:
        if item.stage == Stage.DONE:
            continue
        value = _score(item, open_sources, moment)
        report.scores[item.id] = value
        item_health = status(value)
        if item_health == HealthStatus.STRONG:
            report.strong += 1
        elif item_health == HealthStatus.AT_RISK:
            report.at_risk += 1
        else:
            report.stalled += 1

    report.dropped_balls = _detect(all_items, open_sources, moment)
    return report


def urgency(days: int) -> Urgency:
    if days >= 14:
        return Urgency.CRITICAL
    if days >= 7:
        return Urgency.HIGH
    return Urgency.MEDIUM
