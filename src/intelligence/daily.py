"""Tier 3: the once-daily AI brief.

Builds a plain-text context from the work store, sends it to the
summarization service, validates the JSON it returns and assembles a
DailyBrief with snapshot metrics. Nothing here touches the cache; the
orchestrator decides when to call it and what to persist.
"""

from __future__ import annotations

import logging
from datetime import datetime

from pydantic import ValidationError

from driftwatch.config import DailySectionConfig
from driftwatch.dates import start_of_day, start_of_week, start_of_yesterday
from driftwatch.errors import MalformedResponseError
from driftwatch.health import HealthReport
from driftwatch.intelligence.counters import open_items
from driftwatch.intelligence.models import (
    ActionPriority,
    DailyBrief,
    DailyBriefResponse,
    DailyWarning,
    SuggestedAction,
)
from driftwatch.intelligence.prompts import DAILY_BRIEF_SYSTEM_PROMPT, build_daily_brief_user_prompt
from driftwatch.intelligence.session import SessionInputs
from driftwatch.llm import SummaryClient, parse_json_object
from driftwatch.models import ACTIVE_STAGES, Category
from driftwatch.momentum import MomentumStats

logger = logging.getLogger(__name__)

NOTE_PREVIEW_LENGTH = 100
INBOX_LABEL = "Inbox"


def build_brief_context(
    inputs: SessionInputs,
    report: HealthReport,
    momentum: MomentumStats,
    now: datetime,
    limits: DailySectionConfig,
) -> str:
    """Render the store snapshot as the text the model reads."""
    project_names = {p.id: p.name for p in inputs.projects}
    lines: list[str] = []

    recent = sorted(inputs.notes, key=lambda n: n.created_at, reverse=True)[: limits.recent_notes]
    if recent:
        lines.append("RECENT NOTES:")
        for note in recent:
            project = project_names.get(note.project_id or "", INBOX_LABEL)
            preview = note.content[:NOTE_PREVIEW_LENGTH].replace("\n", " ")
            lines.append(f"- [{project}] {note.display_title}: {preview}")
        lines.append("")

    active = [item for item in inputs.items if not item.is_done]
    for stage in ACTIVE_STAGES:
        stage_items = [item for item in active if item.stage == stage]
        if not stage_items:
            continue
        lines.append(f"{stage.value.upper()} ({len(stage_items)} items):")
        for item in stage_items[: limits.items_per_stage]:
            lines.append(f"- {item.content} ({item.days_since_update(now)}d old)")
        lines.append("")

    balls = report.dropped_balls
    if balls:
        lines.append(f"NEEDS ATTENTION ({len(balls)} items):")
        for ball in balls[: limits.dropped_balls]:
            lines.append(f"- {ball.item.content}: {ball.description}")
        lines.append("")

    commitments = open_items(inputs.items, Category.COMMITMENT)
    if commitments:
        lines.append(f"OPEN COMMITMENTS ({len(commitments)}):")
        for commitment in commitments[: limits.open_commitments]:
            lines.append(f"- {commitment.owner or 'me'}: {commitment.content}")
        lines.append("")

    lines.append(
        f"MOMENTUM: {momentum.direction.value} (this week: {momentum.movements_this_week}, "
        f"last week: {momentum.movements_last_week})"
    )
    lines.append(f"Completed this week: {momentum.completed_this_week}")
    return "\n".join(lines) + "\n"


def parse_daily_brief_response(text: str) -> DailyBriefResponse:
    """Validate model output, tolerating code fences and leading prose.

    Raises:
        MalformedResponseError: Not JSON, or JSON of the wrong shape.
    """
    data = parse_json_object(text, label="daily-brief")
    try:
        return DailyBriefResponse.model_validate(data)
    except ValidationError as exc:
        raise MalformedResponseError(
            f"Daily brief response has the wrong shape: {exc.error_count()} errors", raw=text
        ) from exc


def assemble_daily_brief(
    response: DailyBriefResponse,
    inputs: SessionInputs,
    report: HealthReport,
    momentum: MomentumStats,
    now: datetime,
) -> DailyBrief:
    today = start_of_day(now)
    yesterday = start_of_yesterday(now)
    week = start_of_week(now)
    return DailyBrief(
        brief_date=today.date(),
        generated_at=now,
        what_matters_today=response.summary,
        highlights=list(response.highlights),
        suggested_actions=[
            SuggestedAction(
                content=p.content,
                reason=p.reason,
                project_name=p.project_name,
                priority=ActionPriority.HIGH,
            )
            for p in response.priorities
        ],
        warnings=[
            DailyWarning(type=w.type, content=w.content, days_since_issue=w.days_since_issue)
            for w in response.warnings
        ],
        open_item_count=sum(1 for item in inputs.items if not item.is_done),
        stalled_item_count=len(report.dropped_balls),
        momentum_direction=momentum.direction.value,
        active_project_count=sum(1 for p in inputs.projects if not p.archived),
        notes_yesterday=sum(1 for n in inputs.notes if yesterday <= n.created_at < today),
        notes_this_week=sum(1 for n in inputs.notes if n.created_at >= week),
    )


def generate_daily_brief(
    client: SummaryClient,
    inputs: SessionInputs,
    report: HealthReport,
    momentum: MomentumStats,
    now: datetime,
    limits: DailySectionConfig,
) -> DailyBrief:
    """One AI call → one DailyBrief. Errors from the client propagate."""
    context = build_brief_context(inputs, report, momentum, now, limits)
    logger.debug("Daily brief context is %d characters", len(context))
    text = client.complete(
        DAILY_BRIEF_SYSTEM_PROMPT,
        build_daily_brief_user_prompt(context),
        label="daily-brief",
    )
    response = parse_daily_brief_response(text)
    return assemble_daily_brief(response, inputs, report, momentum, now)


__all__ = [
    "assemble_daily_brief",
    "build_brief_context",
    "generate_daily_brief",
    "parse_daily_brief_response",
]

