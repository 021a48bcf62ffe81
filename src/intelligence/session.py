"""Tier 2: session brief built from local computation only.

``build_session_brief`` assesses item health exactly once and hands the
resulting report to every sub-builder (stalled items, warnings, quick
stats). Given unchanged inputs and the same ``now`` it produces an
identical brief.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from driftwatch.config import SessionSectionConfig
from driftwatch.dates import days_between, start_of_day, start_of_week
from driftwatch.health import DroppedBall, DroppedBallReason, HealthReport, urgency
from driftwatch.intelligence.counters import open_items
from driftwatch.intelligence.models import (
    AttentionWarning,
    CacheState,
    ProjectSummary,
    QuickStats,
    SessionBrief,
    StalledItemSummary,
    WarningType,
)
from driftwatch.models import Category, Note, Project, WorkItem
from driftwatch.momentum import MomentumStats

WARNING_TITLE_LENGTH = 50

_WARNING_FOR_REASON: dict[DroppedBallReason, WarningType] = {
    DroppedBallReason.DECISION_WITHOUT_ACTION: WarningType.DECISION_WITHOUT_ACTION,
    DroppedBallReason.STUCK_IN_STAGE: WarningType.STALLED,
    DroppedBallReason.OPEN_COMMITMENT: WarningType.COMMITMENT,
}


def session_cache_state(
    brief: SessionBrief | None,
    now: datetime,
    policy: SessionSectionConfig,
) -> CacheState:
    """Where a cached brief sits on the absent → fresh → soft → hard path."""
    if brief is None:
        return CacheState.ABSENT
    age = brief.age_minutes(now)
    if age > policy.hard_ttl_minutes:
        return CacheState.HARD_STALE
    if age > policy.soft_ttl_minutes:
        return CacheState.SOFT_EXPIRED
    return CacheState.FRESH


@dataclass(frozen=True)
class SessionInputs:
    """Snapshot of the work store handed to the builder."""

    notes: Sequence[Note]
    items: Sequence[WorkItem]
    projects: Sequence[Project]


def build_project_summaries(
    projects: Sequence[Project],
    notes: Sequence[Note],
    items: Sequence[WorkItem],
    now: datetime,
) -> list[ProjectSummary]:
    summaries: list[ProjectSummary] = []
    for project in projects:
        project_notes = [n for n in notes if n.project_id == project.id]
        open_actions = sum(
            1
            for item in items
            if item.project_id == project.id
            and item.category == Category.ACTION
            and not item.is_done
        )
        moments = [n.updated_at for n in project_notes]
        if project.last_activity_at is not None:
            moments.append(project.last_activity_at)
        last_activity = max(moments) if moments else None
        summaries.append(
            ProjectSummary(
                id=project.id,
                name=project.name,
                note_count=max(len(project_notes), project.note_count),
                open_action_count=open_actions,
                last_activity_at=last_activity,
                days_since_activity=(
                    days_between(last_activity, now) if last_activity is not None else None
                ),
            )
        )
    return summaries


def top_active_projects(summaries: list[ProjectSummary], limit: int) -> list[ProjectSummary]:
    """Most recently active first; never-active projects last, in input order."""
    active = [s for s in summaries if s.last_activity_at is not None]
    inactive = [s for s in summaries if s.last_activity_at is None]
    active.sort(key=lambda s: s.last_activity_at, reverse=True)  # type: ignore[arg-type,return-value]
    return (active + inactive)[:limit]


def build_stalled_items(
    dropped_balls: Sequence[DroppedBall],
    projects: Sequence[Project],
) -> list[StalledItemSummary]:
    names = {p.id: p.name for p in projects}
    return [
        StalledItemSummary(
            id=ball.item.id,
            content=ball.item.content,
            stage=ball.item.stage.value,
            category=ball.item.category.value,
            days_since_update=ball.days_since_issue,
            project_name=names.get(ball.item.project_id) if ball.item.project_id else None,
            reason=ball.reason,
            description=ball.description,
            urgency=urgency(ball.days_since_issue),
        )
        for ball in dropped_balls
    ]


def build_attention_warnings(
    dropped_balls: Sequence[DroppedBall],
    items: Sequence[WorkItem],
    now: datetime,
    policy: SessionSectionConfig,
) -> list[AttentionWarning]:
    warnings: list[AttentionWarning] = []
    for ball in dropped_balls[: policy.max_dropped_ball_warnings]:
        warning_type = _WARNING_FOR_REASON[ball.reason]
        warnings.append(
            AttentionWarning(
                id=f"{warning_type.value}:{ball.item.id}",
                type=warning_type,
                title=ball.item.content[:WARNING_TITLE_LENGTH],
                description=ball.description,
                days_since_issue=ball.days_since_issue,
                related_item_id=ball.item.id,
            )
        )

    warned = {w.related_item_id for w in warnings}
    commitments = [c for c in open_items(items, Category.COMMITMENT) if c.id not in warned]
    for commitment in commitments[: policy.max_commitment_warnings]:
        days = days_between(commitment.created_at, now)
        if days >= policy.commitment_warning_days:
            warnings.append(
                AttentionWarning(
                    id=f"{WarningType.COMMITMENT.value}:{commitment.id}",
                    type=WarningType.COMMITMENT,
                    title=commitment.content[:WARNING_TITLE_LENGTH],
                    description=f"Open commitment for {days} days",
                    days_since_issue=days,
                    related_item_id=commitment.id,
                )
            )
    return warnings


def build_quick_stats(
    inputs: SessionInputs,
    report: HealthReport,
    now: datetime,
) -> QuickStats:
    today = start_of_day(now)
    week = start_of_week(now)
    return QuickStats(
        total_notes=len(inputs.notes),
        notes_today=sum(1 for n in inputs.notes if n.created_at >= today),
        notes_this_week=sum(1 for n in inputs.notes if n.created_at >= week),
        open_actions=len(open_items(inputs.items, Category.ACTION)),
        open_commitments=len(open_items(inputs.items, Category.COMMITMENT)),
        active_project_count=sum(1 for p in inputs.projects if not p.archived),
        stalled_item_count=report.stalled,
        at_risk_count=report.at_risk,
    )


def build_session_brief(
    inputs: SessionInputs,
    report: HealthReport,
    momentum: MomentumStats,
    now: datetime,
    policy: SessionSectionConfig,
) -> SessionBrief:
    """Assemble a SessionBrief from a store snapshot, one health report and momentum."""
    active_projects = [p for p in inputs.projects if not p.archived]
    summaries = build_project_summaries(active_projects, inputs.notes, inputs.items, now)
    return SessionBrief(
        generated_at=now,
        top_active_projects=top_active_projects(summaries, policy.top_projects),
        stalled_items=build_stalled_items(report.dropped_balls, inputs.projects),
        attention_warnings=build_attention_warnings(
            report.dropped_balls, inputs.items, now, policy
        ),
        quick_stats=build_quick_stats(inputs, report, now),
        momentum_direction=momentum.direction.value,
    )
