"""Tiered intelligence orchestrator.

``IntelligenceService`` is the single owner of cached state: Tier 1
counters, the Tier 2 session brief and the Tier 3 daily brief records.
It is constructed explicitly and injected where needed; nothing here is
a process-wide singleton.

Tier 1 (``process_capture``) only bumps counters and raises the session
refresh flag. Tier 2 (``refresh_session_brief``) rebuilds locally when
the cache policy says so. Tier 3 (``generate_daily_brief``) calls the
summarization service at most once per calendar day; a failure leaves
the cache untouched and is retried only through
``regenerate_daily_brief``.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime

from driftwatch.config import DriftwatchConfig, load_config
from driftwatch.dates import same_day, start_of_day
from driftwatch.errors import IntelligenceError, NoCredentialError
from driftwatch.health import assess
from driftwatch.intelligence import counters as counter_ops
from driftwatch.intelligence.cache import BriefCache
from driftwatch.intelligence.daily import generate_daily_brief as build_daily_brief
from driftwatch.intelligence.models import (
    CacheState,
    CaptureInput,
    Counters,
    DailyBrief,
    SessionBrief,
)
from driftwatch.intelligence.session import SessionInputs, build_session_brief, session_cache_state
from driftwatch.kv import JsonFileKeyValueStore
from driftwatch.llm import AnthropicClient, SummaryClient
from driftwatch.matching import ProjectMatch, find_match, learn_from_correction, resolve_project
from driftwatch.models import Movement, Note, Project, Stage, WorkItem
from driftwatch.momentum import calculate_momentum
from driftwatch.store import WorkStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CaptureResult:
    """What Tier 1 stored for one capture."""

    note: Note
    items: list[WorkItem]
    match: ProjectMatch | None

    @property
    def project(self) -> Project | None:
        if self.match is None or not self.match.auto_assign:
            return None
        return self.match.project


class IntelligenceService:
    """Owns counters, the session brief and daily briefs for one work store."""

    def __init__(
        self,
        store: WorkStore,
        cache: BriefCache,
        *,
        client: SummaryClient | None = None,
        match_client: SummaryClient | None = None,
        config: DriftwatchConfig | None = None,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        self._store = store
        self._cache = cache
        self._client = client
        self._match_client = match_client if match_client is not None else client
        self._config = config or DriftwatchConfig()
        self._clock = clock or self._config.calendar.now

        self._session_lock = threading.Lock()
        self._daily_lock = threading.Lock()

        self._session_brief = cache.load_session_brief()
        self._counters = counter_ops.rollover(cache.load_counters() or Counters(), self._now())
        self.last_daily_error: str | None = None

    @classmethod
    def from_config(cls, config: DriftwatchConfig | None = None) -> IntelligenceService:
        """Wire a service to the JSON store and Anthropic clients from config."""
        cfg = config or load_config()
        directory = cfg.store.path
        client = AnthropicClient(
            model=cfg.ai.model, timeout=cfg.ai.timeout, max_tokens=cfg.daily.max_tokens
        )
        match_client = AnthropicClient(
            model=cfg.ai.model, timeout=cfg.ai.timeout, max_tokens=cfg.matching.max_tokens
        )
        return cls(
            WorkStore(directory),
            BriefCache(JsonFileKeyValueStore(directory)),
            client=client,
            match_client=match_client,
            config=cfg,
        )

    def _now(self) -> datetime:
        return self._clock()

    def _snapshot(self) -> SessionInputs:
        return SessionInputs(
            notes=self._store.notes(),
            items=self._store.items(),
            projects=self._store.projects(),
        )

    # ── Tier 1 ───────────────────────────────────────────────────

    @property
    def counters(self) -> Counters:
        """Current counters, reset for a new day or week if needed."""
        self._counters = counter_ops.rollover(self._counters, self._now())
        return self._counters

    def process_capture(self, capture: CaptureInput) -> CaptureResult:
        """Store a capture and its extracted items; no recomputation, no AI."""
        now = self._now()
        match = find_match(capture.match_text, self._store.projects(include_archived=False))
        project = match.project if match is not None and match.auto_assign else None
        project_id = project.id if project is not None else None

        note = self._store.add_note(
            Note(
                title=capture.title,
                content=capture.content,
                created_at=now,
                updated_at=now,
                project_id=project_id,
            )
        )
        source_id = capture.source_id or note.id
        items = [
            self._store.add_item(
                WorkItem(
                    content=extracted.content,
                    category=extracted.category,
                    stage=extracted.stage,
                    owner=extracted.owner,
                    deadline=extracted.deadline,
                    created_at=now,
                    updated_at=now,
                    source_id=source_id,
                    project_id=project_id,
                )
            )
            for extracted in capture.items
        ]

        if project is not None:
            project.record_activity(now)
            self._store.save_project(project)

        self._counters = counter_ops.bump_notes(self._counters, now)
        self._cache.save_counters(self._counters)
        self._cache.set_needs_refresh(True)
        logger.debug(
            "Captured note %s with %d items (project=%s)",
            note.id,
            len(items),
            project.name if project else None,
        )
        return CaptureResult(note=note, items=items, match=match)

    def move_item(self, item_id: str, stage: Stage | str) -> Movement | None:
        """Move an item between stages and mark the session brief stale."""
        movement = self._store.move_item(item_id, stage, at=self._now())
        if movement is not None:
            self._cache.set_needs_refresh(True)
        return movement

    def mark_session_stale(self) -> None:
        self._cache.set_needs_refresh(True)

    # ── Tier 2 ───────────────────────────────────────────────────

    @property
    def session_brief(self) -> SessionBrief | None:
        return self._session_brief

    def session_cache_state(self) -> CacheState:
        return session_cache_state(self._session_brief, self._now(), self._config.session)

    def _session_needs_rebuild(self, now: datetime) -> bool:
        state = session_cache_state(self._session_brief, now, self._config.session)
        if state is not CacheState.FRESH:
            logger.debug("Session brief %s, rebuilding", state.value)
            return True
        if self._cache.needs_refresh:
            logger.debug("Session refresh flag set, rebuilding")
            return True
        if self._cache.note_watermark != self._store.note_count():
            logger.debug("Note count changed since last build, rebuilding")
            return True
        return False

    def refresh_session_brief(self, *, force: bool = False) -> SessionBrief | None:
        """Rebuild the session brief if the cache policy calls for it.

        A call that arrives while a rebuild is running gets the previous
        brief back instead of starting a second one.
        """
        if not self._session_lock.acquire(blocking=False):
            logger.debug("Session rebuild already in progress, serving cached brief")
            return self._session_brief
        try:
            now = self._now()
            if not force and not self._session_needs_rebuild(now):
                return self._session_brief

            # Cleared before the snapshot so changes made during the build
            # flag the next refresh.
            self._cache.set_needs_refresh(False)
            try:
                inputs = self._snapshot()
                report = assess(inputs.items, now=now)
                momentum = calculate_momentum(self._store.movements(), inputs.items, now=now)
                brief = build_session_brief(inputs, report, momentum, now, self._config.session)
                counters = counter_ops.recompute(
                    inputs.notes, inputs.items, inputs.projects, report, now
                )
            except Exception:
                self._cache.set_needs_refresh(True)
                raise

            self._cache.save_session_brief(brief)
            self._cache.set_note_watermark(len(inputs.notes))
            self._cache.save_counters(counters)
            self._session_brief = brief
            self._counters = counters
            logger.info(
                "Session brief rebuilt: %d stalled, %d warnings",
                len(brief.stalled_items),
                len(brief.attention_warnings),
            )
            return brief
        finally:
            self._session_lock.release()

    # ── Tier 3 ───────────────────────────────────────────────────

    def todays_daily_brief(self) -> DailyBrief | None:
        return self._cache.daily_brief_for(start_of_day(self._now()).date())

    def _existing_daily_brief(self, now: datetime) -> DailyBrief | None:
        marker = self._cache.daily_marker
        record = self._cache.daily_brief_for(start_of_day(now).date())
        if record is None:
            if marker is not None and same_day(now, marker):
                logger.warning("Daily marker is set for today but no brief is stored")
            return None
        if marker is None or not same_day(now, marker):
            self._cache.set_daily_marker(record.generated_at)
        return record

    def generate_daily_brief(self) -> DailyBrief | None:
        """Return today's brief, generating it if no record exists yet.

        Raises:
            IntelligenceError: Generation failed; nothing was stored.
        """
        now = self._now()
        existing = self._existing_daily_brief(now)
        if existing is not None:
            logger.debug("Daily brief for %s already exists", existing.brief_date)
            return existing
        return self._run_daily(now, force=False)

    def regenerate_daily_brief(self) -> DailyBrief | None:
        """Clear the daily marker and generate a new brief unconditionally."""
        self._cache.clear_daily_marker()
        return self._run_daily(self._now(), force=True)

    def _run_daily(self, now: datetime, *, force: bool) -> DailyBrief | None:
        if not self._daily_lock.acquire(blocking=False):
            logger.debug("Daily brief generation already in progress")
            return self._cache.latest_daily_brief()
        try:
            if not force:
                # Another caller may have finished while this one waited.
                existing = self._existing_daily_brief(now)
                if existing is not None:
                    return existing
            self.last_daily_error = None
            try:
                brief = self._build_daily(now)
            except IntelligenceError as exc:
                self.last_daily_error = str(exc)
                logger.warning("Daily brief generation failed: %s", exc)
                raise
            self._cache.append_daily_brief(brief)
            self._cache.set_daily_marker(now)
            logger.info("Daily brief generated for %s", brief.brief_date)
            return brief
        finally:
            self._daily_lock.release()

    def _build_daily(self, now: datetime) -> DailyBrief:
        if self._client is None:
            raise NoCredentialError("No summarization client configured")
        inputs = self._snapshot()
        report = assess(inputs.items, now=now)
        momentum = calculate_momentum(self._store.movements(), inputs.items, now=now)
        return build_daily_brief(self._client, inputs, report, momentum, now, self._config.daily)

    # ── Matching ─────────────────────────────────────────────────

    def resolve_project_for(self, text: str) -> ProjectMatch | None:
        """Layers 1-2, then the AI layer when enabled and not confident."""
        client = self._match_client if self._config.matching.use_ai else None
        return resolve_project(text, self._store.projects(include_archived=False), client=client)

    def learn_alias(self, text: str, project_id: str) -> list[str]:
        """Learn aliases from a user correction. Raises KeyError for unknown projects."""
        project = self._store.get_project(project_id)
        if project is None:
            raise KeyError(project_id)
        added = learn_from_correction(text, project, now=self._now())
        if added:
            self._store.save_project(project)
        return added
