"""Cache artifacts of the three refresh tiers: pure data, no I/O.

SessionBrief and DailyBrief are frozen: a rebuild replaces them
wholesale. Counters is the flat snapshot Tier 1 bumps and Tier 2
recomputes.
"""

from __future__ import annotations

from datetime import UTC, date, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field, field_validator

from driftwatch.dates import start_of_day
from driftwatch.health import DroppedBallReason, Urgency
from driftwatch.models import Timestamp, new_id


def _minutes_label(prefix: str, minutes: int) -> str:
    if minutes < 1:
        return f"{prefix} just now"
    if minutes < 60:
        return f"{prefix} {minutes}m ago"
    return f"{prefix} {minutes // 60}h ago"


# ── Tier 1 ───────────────────────────────────────────────────────


class Counters(BaseModel):
    """Instant status counters, persisted so cold start has values."""

    open_todo_count: int = 0
    attention_count: int = 0
    notes_today: int = 0
    notes_this_week: int = 0
    active_project_count: int = 0
    stalled_item_count: int = 0
    last_computed_at: Timestamp | None = None

    def derived(self) -> dict[str, int]:
        """The counter values without the timestamp."""
        return self.model_dump(exclude={"last_computed_at"})


# ── Tier 2 ───────────────────────────────────────────────────────


class CacheState(StrEnum):
    ABSENT = "absent"
    FRESH = "fresh"
    SOFT_EXPIRED = "soft_expired"
    HARD_STALE = "hard_stale"


class WarningType(StrEnum):
    STALLED = "stalled"
    COMMITMENT = "commitment"
    DECISION_WITHOUT_ACTION = "decision_without_action"
    OVERDUE = "overdue"


class ProjectSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    note_count: int
    open_action_count: int
    last_activity_at: Timestamp | None = None
    days_since_activity: int | None = None

    @property
    def activity_label(self) -> str:
        days = self.days_since_activity
        if days is None:
            return "No activity yet"
        if days == 0:
            return "Active today"
        if days == 1:
            return "Active yesterday"
        if days < 7:
            return f"Active {days}d ago"
        return f"No activity in {days}d"


class StalledItemSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    content: str
    stage: str
    category: str
    days_since_update: int
    project_name: str | None = None
    reason: DroppedBallReason
    description: str
    urgency: Urgency


class AttentionWarning(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    type: WarningType
    title: str
    description: str
    days_since_issue: int
    related_item_id: str | None = None


class QuickStats(BaseModel):
    model_config = ConfigDict(frozen=True)

    total_notes: int = 0
    notes_today: int = 0
    notes_this_week: int = 0
    open_actions: int = 0
    open_commitments: int = 0
    active_project_count: int = 0
    stalled_item_count: int = 0
    at_risk_count: int = 0

    @property
    def has_attention_items(self) -> bool:
        return self.stalled_item_count > 0 or self.at_risk_count > 0 or self.open_commitments > 0

    @property
    def attention_summary(self) -> str:
        parts: list[str] = []
        if self.stalled_item_count:
            parts.append(f"{self.stalled_item_count} stalled")
        if self.at_risk_count:
            parts.append(f"{self.at_risk_count} at risk")
        if self.open_commitments:
            plural = "" if self.open_commitments == 1 else "s"
            parts.append(f"{self.open_commitments} open commitment{plural}")
        return ", ".join(parts)


class SessionBrief(BaseModel):
    """Session-level picture built locally, no AI involved."""

    model_config = ConfigDict(frozen=True)

    generated_at: Timestamp
    top_active_projects: list[ProjectSummary] = Field(default_factory=list)
    stalled_items: list[StalledItemSummary] = Field(default_factory=list)
    attention_warnings: list[AttentionWarning] = Field(default_factory=list)
    quick_stats: QuickStats = Field(default_factory=QuickStats)
    momentum_direction: str = "flat"

    def age_minutes(self, now: datetime) -> float:
        return (now - self.generated_at).total_seconds() / 60

    def freshness_label(self, now: datetime) -> str:
        return _minutes_label("Updated", int(self.age_minutes(now)))


# ── Tier 3 ───────────────────────────────────────────────────────


class ActionPriority(StrEnum):
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class DailyWarningType(StrEnum):
    STALLED = "stalled"
    OVERDUE = "overdue"
    COMMITMENT = "commitment"


class SuggestedAction(BaseModel):
    model_config = ConfigDict(frozen=True)

    content: str
    reason: str = ""
    project_name: str | None = None
    priority: ActionPriority = ActionPriority.HIGH


class DailyWarning(BaseModel):
    model_config = ConfigDict(frozen=True)

    type: DailyWarningType = DailyWarningType.STALLED
    content: str
    days_since_issue: int = 0


class DailyBrief(BaseModel):
    """AI-authored brief, one per calendar day, plus snapshot metrics."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=new_id)
    brief_date: date
    generated_at: Timestamp = Field(default_factory=lambda: datetime.now(UTC))

    what_matters_today: str = ""
    highlights: list[str] = Field(default_factory=list)
    suggested_actions: list[SuggestedAction] = Field(default_factory=list)
    warnings: list[DailyWarning] = Field(default_factory=list)

    open_item_count: int = 0
    stalled_item_count: int = 0
    momentum_direction: str = "flat"
    active_project_count: int = 0
    notes_yesterday: int = 0
    notes_this_week: int = 0

    def is_from(self, now: datetime) -> bool:
        return self.brief_date == start_of_day(now).date()

    def freshness_label(self, now: datetime) -> str:
        hours = int((now - self.generated_at).total_seconds() // 3600)
        if hours < 1:
            return "Generated just now"
        if hours < 2:
            return "Generated 1 hour ago"
        if hours < 24:
            return f"Generated {hours} hours ago"
        return "Generated yesterday"


# ── AI response shape ────────────────────────────────────────────


class PriorityItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    content: str
    reason: str = ""
    project_name: str | None = Field(default=None, alias="projectName")


class WarningItem(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    type: DailyWarningType = DailyWarningType.STALLED
    content: str
    days_since_issue: int = Field(default=0, alias="daysSinceIssue")

    @field_validator("type", mode="before")
    @classmethod
    def _known_type(cls, value: object) -> DailyWarningType:
        if isinstance(value, str):
            try:
                return DailyWarningType(value.strip().lower())
            except ValueError:
                pass
        return DailyWarningType.STALLED

    @field_validator("days_since_issue", mode="before")
    @classmethod
    def _whole_days(cls, value: object) -> object:
        if value is None:
            return 0
        if isinstance(value, float):
            return int(value)
        return value


class DailyBriefResponse(BaseModel):
    """Structured output expected from the summarization service."""

    summary: str
    highlights: list[str] = Field(default_factory=list)
    priorities: list[PriorityItem] = Field(default_factory=list)
    warnings: list[WarningItem] = Field(default_factory=list)


# ── Capture input ────────────────────────────────────────────────


class ExtractedItemInput(BaseModel):
    """One work item pulled out of a capture by the extraction step."""

    content: str
    category: str = "note"
    stage: str = "thinking"
    owner: str | None = None
    deadline: str | None = None


class CaptureInput(BaseModel):
    """What the capture collaborator hands to Tier 1."""

    content: str
    title: str = ""
    source_id: str | None = None
    inferred_project: str | None = None
    items: list[ExtractedItemInput] = Field(default_factory=list)

    @property
    def match_text(self) -> str:
        if self.inferred_project:
            return f"{self.inferred_project} {self.content}"
        return self.content
