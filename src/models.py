"""Work domain models: pure Pydantic v2 data, no I/O.

Stages and categories are closed enums. Raw strings from storage or
from the capture step go through ``normalize_stage`` and
``normalize_category`` so unknown or legacy values collapse to a
documented default instead of raising.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated
from enum import StrEnum
from uuid import uuid4

from pydantic import AfterValidator, BaseModel, Field, field_validator, model_validator

from driftwatch.dates import assume_utc, days_between
from driftwatch.text import normalize, normalize_alias


def new_id() -> str:
    return uuid4().hex


def _utcnow() -> datetime:
    return datetime.now(UTC)


# Stored timestamps without a zone are read as UTC.
Timestamp = Annotated[datetime, AfterValidator(assume_utc)]


class Stage(StrEnum):
    """Workflow stage of a work item."""

    THINKING = "thinking"
    DECIDED = "decided"
    DOING = "doing"
    WAITING = "waiting"
    DONE = "done"


class Category(StrEnum):
    """What kind of signal a work item is."""

    IDEA = "idea"
    DECISION = "decision"
    ACTION = "action"
    COMMITMENT = "commitment"
    NOTE = "note"


DEFAULT_STAGE = Stage.THINKING
DEFAULT_CATEGORY = Category.NOTE

# doing and waiting share a rank: moving between them is lateral.
STAGE_RANK: dict[Stage, int] = {
    Stage.THINKING: 0,
    Stage.DECIDED: 1,
    Stage.DOING: 2,
    Stage.WAITING: 2,
    Stage.DONE: 3,
}

# Display order for grouping active work.
ACTIVE_STAGES: tuple[Stage, ...] = (Stage.THINKING, Stage.DECIDED, Stage.DOING, Stage.WAITING)


def normalize_stage(raw: object) -> Stage:
    """Map any stored stage value to a ``Stage``, defaulting to ``thinking``."""
    if isinstance(raw, Stage):
        return raw
    if isinstance(raw, str):
        try:
            return Stage(raw.strip().lower())
        except ValueError:
            pass
    return DEFAULT_STAGE


def normalize_category(raw: object) -> Category:
    """Map any stored category value to a ``Category``, defaulting to ``note``."""
    if isinstance(raw, Category):
        return raw
    if isinstance(raw, str):
        try:
            return Category(raw.strip().lower())
        except ValueError:
            pass
    return DEFAULT_CATEGORY


class Note(BaseModel):
    """A captured note that work items are extracted from."""

    id: str = Field(default_factory=new_id)
    title: str = ""
    content: str = ""
    created_at: Timestamp = Field(default_factory=_utcnow)
    updated_at: Timestamp = Field(default_factory=_utcnow)
    project_id: str | None = None

    @property
    def display_title(self) -> str:
        if self.title.strip():
            return self.title.strip()
        first_line = self.content.strip().splitlines()[0] if self.content.strip() else ""
        return first_line[:50] or "Untitled"


class WorkItem(BaseModel):
    """A single idea, decision, action, commitment or note on the board."""

    id: str = Field(default_factory=new_id)
    content: str = ""
    category: Category = DEFAULT_CATEGORY
    stage: Stage = DEFAULT_STAGE
    reason: str = ""
    owner: str | None = None
    deadline: str | None = None
    created_at: Timestamp = Field(default_factory=_utcnow)
    updated_at: Timestamp = Field(default_factory=_utcnow)
    source_id: str | None = None
    project_id: str | None = None

    @field_validator("stage", mode="before")
    @classmethod
    def _parse_stage(cls, value: object) -> Stage:
        return normalize_stage(value)

    @field_validator("category", mode="before")
    @classmethod
    def _parse_category(cls, value: object) -> Category:
        return normalize_category(value)

    @property
    def is_done(self) -> bool:
        return self.stage == Stage.DONE

    @property
    def has_owner(self) -> bool:
        return bool(self.owner and self.owner.strip())

    def days_since_update(self, now: datetime) -> int:
        return days_between(self.updated_at, now)

    def is_stale(self, now: datetime) -> bool:
        return not self.is_done and self.days_since_update(now) >= 7

    def touch(self, moment: datetime) -> None:
        """Advance ``updated_at``; it never moves backwards."""
        if moment > self.updated_at:
            self.updated_at = moment


class Movement(BaseModel):
    """Immutable record of an item changing stage."""

    model_config = {"frozen": True}

    id: str = Field(default_factory=new_id)
    item_id: str
    from_stage: Stage
    to_stage: Stage
    moved_at: Timestamp = Field(default_factory=_utcnow)

    @field_validator("from_stage", "to_stage", mode="before")
    @classmethod
    def _parse_stage(cls, value: object) -> Stage:
        return normalize_stage(value)

    @property
    def is_completion(self) -> bool:
        return self.to_stage == Stage.DONE

    @property
    def is_forward(self) -> bool:
        return STAGE_RANK[self.to_stage] > STAGE_RANK[self.from_stage]

    @property
    def is_backward(self) -> bool:
        return STAGE_RANK[self.to_stage] < STAGE_RANK[self.from_stage]


def seed_aliases(name: str) -> list[str]:
    """Initial aliases: the name, the name without spaces, and initials."""
    base = normalize_alias(name)
    if not base:
        return []
    candidates = [base, base.replace(" ", "")]
    words = base.split()
    if len(words) > 1:
        candidates.append("".join(word[0] for word in words))
    seeded: list[str] = []
    for alias in candidates:
        if alias and alias not in seeded:
            seeded.append(alias)
    return seeded


class Project(BaseModel):
    """A venture, product or initiative that work is grouped under.

    Aliases are normalized strings found in captured text. They are
    seeded from the name, grow through ``add_alias`` and never shrink.
    """

    id: str = Field(default_factory=new_id)
    name: str
    aliases: list[str] = Field(default_factory=list)
    archived: bool = False
    created_at: Timestamp = Field(default_factory=_utcnow)
    updated_at: Timestamp = Field(default_factory=_utcnow)
    last_activity_at: Timestamp | None = None
    note_count: int = 0

    @model_validator(mode="after")
    def _seed_aliases(self) -> Project:
        if not self.aliases:
            self.aliases = seed_aliases(self.name)
        return self

    def add_alias(self, alias: str, *, now: datetime | None = None) -> bool:
        """Append a normalized alias. Returns False for empties and duplicates."""
        normalized = normalize_alias(alias)
        if not normalized:
            return False
        if normalized in {a.lower() for a in self.aliases}:
            return False
        self.aliases.append(normalized)
        self.updated_at = now or _utcnow()
        return True

    def matches(self, text: str) -> bool:
        normalized = normalize(text)
        return any(alias and alias in normalized for alias in self.aliases)

    def record_activity(self, moment: datetime) -> None:
        if self.last_activity_at is None or moment > self.last_activity_at:
            self.last_activity_at = moment
        self.note_count += 1
