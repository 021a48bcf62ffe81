"""Week-over-week momentum from stage movements."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import StrEnum

from driftwatch.dates import start_of_previous_week, start_of_week
from driftwatch.models import Movement, WorkItem

UP_RATIO = 1.2
DOWN_RATIO = 0.8


class MomentumDirection(StrEnum):
    UP = "up"
    DOWN = "down"
    FLAT = "flat"

    @property
    def arrow(self) -> str:
        return {"up": "↑", "down": "↓", "flat": "→"}[self.value]


@dataclass(frozen=True)
class MomentumStats:
    direction: MomentumDirection
    movements_this_week: int
    movements_last_week: int
    completed_this_week: int
    created_this_week: int

    @property
    def ratio(self) -> float:
        if self.movements_last_week == 0:
            return 2.0 if self.movements_this_week > 0 else 1.0
        return self.movements_this_week / self.movements_last_week


@dataclass(frozen=True)
class WeeklySummary:
    forward: int
    backward: int
    lateral: int
    completed: int
    created: int


def classify(this_week: int, last_week: int) -> MomentumDirection:
    """Direction from two weekly movement counts."""
    if last_week == 0:
        return MomentumDirection.UP if this_week > 0 else MomentumDirection.FLAT
    ratio = this_week / last_week
    if ratio >= UP_RATIO:
        return MomentumDirection.UP
    if ratio <= DOWN_RATIO:
        return MomentumDirection.DOWN
    return MomentumDirection.FLAT


def calculate_momentum(
    movements: Sequence[Movement],
    items: Sequence[WorkItem],
    *,
    now: datetime | None = None,
) -> MomentumStats:
    """Compare this ISO week's movement volume with last week's."""
    moment = now or datetime.now(UTC)
    this_week_start = start_of_week(moment)
    last_week_start = start_of_previous_week(moment)

    this_week = [m for m in movements if m.moved_at >= this_week_start]
    last_week = [m for m in movements if last_week_start <= m.moved_at < this_week_start]

    return MomentumStats(
        direction=classify(len(this_week), len(last_week)),
        movements_this_week=len(this_week),
        movements_last_week=len(last_week),
        completed_this_week=sum(1 for m in this_week if m.is_completion),
        created_this_week=sum(1 for item in items if item.created_at >= this_week_start),
    )


def movements_in_week(week_start: datetime, movements: Sequence[Movement]) -> list[Movement]:
    week_end = week_start + timedelta(days=7)
    return [m for m in movements if week_start <= m.moved_at < week_end]


def weekly_summary(
    movements: Sequence[Movement],
    items: Sequence[WorkItem],
    week_start: datetime,
) -> WeeklySummary:
    """Forward/backward/lateral transitions, completions and creations in one week."""
    week_end = week_start + timedelta(days=7)
    week_movements = movements_in_week(week_start, movements)
    forward = sum(1 for m in week_movements if m.is_forward)
    backward = sum(1 for m in week_movements if m.is_backward)
    return WeeklySummary(
        forward=forward,
        backward=backward,
        lateral=len(week_movements) - forward - backward,
        completed=sum(1 for m in week_movements if m.is_completion),
        created=sum(1 for item in items if week_start <= item.created_at < week_end),
    )
