"""Tier 1 status counters: cheap bumps, calendar rollover, full recompute."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import datetime

from driftwatch.dates import same_day, same_iso_week, start_of_day, start_of_week
from driftwatch.health import HealthReport
from driftwatch.intelligence.models import Counters
from driftwatch.models import Category, Note, Project, WorkItem


def rollover(counters: Counters, now: datetime) -> Counters:
    """Reset date-scoped counters when the snapshot is from an earlier day or week.

    Only ``notes_today`` and ``notes_this_week`` are date-scoped; the
    others keep their values until the next recompute.
    """
    last = counters.last_computed_at
    if last is None:
        return counters
    updates: dict[str, int] = {}
    if not same_day(now, last):
        updates["notes_today"] = 0
    if not same_iso_week(now, last):
        updates["notes_this_week"] = 0
    if not updates:
        return counters
    return counters.model_copy(update=updates)


def bump_notes(counters: Counters, now: datetime) -> Counters:
    """Count one new note without recomputing anything else."""
    current = rollover(counters, now)
    return current.model_copy(
        update={
            "notes_today": current.notes_today + 1,
            "notes_this_week": current.notes_this_week + 1,
            "last_computed_at": now,
        }
    )


def open_items(items: Sequence[WorkItem], category: Category) -> list[WorkItem]:
    return [item for item in items if item.category == category and not item.is_done]


def recompute(
    notes: Sequence[Note],
    items: Sequence[WorkItem],
    projects: Sequence[Project],
    report: HealthReport,
    now: datetime,
) -> Counters:
    """All counters from the store contents and an existing health report."""
    today = start_of_day(now)
    week = start_of_week(now)
    open_commitments = len(open_items(items, Category.COMMITMENT))
    return Counters(
        open_todo_count=len(open_items(items, Category.ACTION)),
        attention_count=report.attention + open_commitments,
        notes_today=sum(1 for n in notes if n.created_at >= today),
        notes_this_week=sum(1 for n in notes if n.created_at >= week),
        active_project_count=sum(1 for p in projects if not p.archived),
        stalled_item_count=report.stalled,
        last_computed_at=now,
    )
