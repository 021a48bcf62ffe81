"""JSON-backed work item store.

Holds notes, work items, movements and projects. With a directory the
whole store is one JSON file, loaded on init and saved after every
mutation; without one it lives in memory only. The intelligence layer
reads from it and writes back project activity and learned aliases.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, Field

from driftwatch.models import Movement, Note, Project, Stage, WorkItem, normalize_stage

logger = logging.getLogger(__name__)

STORE_FILENAME = ".driftwatch-store.json"

# Alias to avoid shadowing by WorkStore methods
_list = list


class _StoreData(BaseModel):
    """Internal wrapper for JSON serialization."""

    notes: list[Note] = Field(default_factory=list)
    items: list[WorkItem] = Field(default_factory=list)
    movements: list[Movement] = Field(default_factory=list)
    projects: list[Project] = Field(default_factory=list)


class WorkStore:
    """CRUD store for the work domain."""

    def __init__(self, directory: Path | None = None) -> None:
        self._path = directory / STORE_FILENAME if directory is not None else None
        self._data = self._load()

    # ── Private helpers ──────────────────────────────────────────

    def _load(self) -> _StoreData:
        if self._path is None or not self._path.exists():
            return _StoreData()
        try:
            raw = json.loads(self._path.read_text(encoding="utf-8"))
            return _StoreData.model_validate(raw)
        except (json.JSONDecodeError, ValueError, KeyError):
            logger.warning("Corrupt work store at %s, starting fresh", self._path)
            return _StoreData()

    def _save(self) -> None:
        if self._path is None:
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        self._path.write_text(self._data.model_dump_json(indent=2), encoding="utf-8")

    def _require_item(self, item_id: str) -> WorkItem:
        item = self.get_item(item_id)
        if item is None:
            raise KeyError(item_id)
        return item

    # ── Notes ────────────────────────────────────────────────────

    def add_note(self, note: Note) -> Note:
        self._data.notes = [n for n in self._data.notes if n.id != note.id]
        self._data.notes.append(note)
        self._save()
        return note

    def notes(self) -> _list[Note]:
        return _list(self._data.notes)

    def note_count(self) -> int:
        return len(self._data.notes)

    # ── Items ────────────────────────────────────────────────────

    def add_item(self, item: WorkItem) -> WorkItem:
        self._data.items = [i for i in self._data.items if i.id != item.id]
        self._data.items.append(item)
        self._save()
        return item

    def get_item(self, item_id: str) -> WorkItem | None:
        for item in self._data.items:
            if item.id == item_id:
                return item
        return None

    def items(self) -> _list[WorkItem]:
        return _list(self._data.items)

    def update_item(
        self,
        item_id: str,
        *,
        content: str | None = None,
        owner: str | None = None,
        deadline: str | None = None,
        project_id: str | None = None,
        at: datetime | None = None,
    ) -> WorkItem:
        """Edit item fields in place. Raises KeyError if the id is unknown."""
        item = self._require_item(item_id)
        if content is not None:
            item.content = content
        if owner is not None:
            item.owner = owner
        if deadline is not None:
            item.deadline = deadline
        if project_id is not None:
            item.project_id = project_id
        item.touch(at or datetime.now(UTC))
        self._save()
        return item

    def move_item(self, item_id: str, stage: Stage | str, *, at: datetime | None = None) -> Movement | None:
        """Move an item to ``stage`` and record the Movement.

        Returns None when the item is already in that stage.
        Raises KeyError if the id is unknown.
        """
        item = self._require_item(item_id)
        target = normalize_stage(stage)
        if item.stage == target:
            return None
        moment = at or datetime.now(UTC)
        movement = Movement(item_id=item.id, from_stage=item.stage, to_stage=target, moved_at=moment)
        item.stage = target
        item.touch(moment)
        self._data.movements.append(movement)
        self._save()
        return movement

    def movements(self) -> _list[Movement]:
        return _list(self._data.movements)

    # ── Projects ─────────────────────────────────────────────────

    def save_project(self, project: Project) -> Project:
        """Insert or replace a project by id."""
        for index, existing in enumerate(self._data.projects):
            if existing.id == project.id:
                self._data.projects[index] = project
                break
        else:
            self._data.projects.append(project)
        self._save()
        return project

    def get_project(self, project_id: str) -> Project | None:
        for project in self._data.projects:
            if project.id == project_id:
                return project
        return None

    def projects(self, *, include_archived: bool = True) -> _list[Project]:
        if include_archived:
            return _list(self._data.projects)
        return [p for p in self._data.projects if not p.archived]
