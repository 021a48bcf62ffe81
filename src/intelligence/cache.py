"""Persistence of cache artifacts and refresh markers.

Everything is stored as JSON text in a ``KeyValueStore`` and decoded
into typed models as soon as it is read back; undecodable blobs are
logged and treated as absent.

Keys:

- ``session_brief``: the single SessionBrief, overwritten wholesale
- ``session_needs_refresh`` / ``session_note_watermark``: Tier 2 triggers
- ``counters``: the Tier 1 counter snapshot
- ``daily_briefs``: append-only list of DailyBrief records
- ``daily_generated_at``: fast local marker for Tier 3
"""

from __future__ import annotations

import json
import logging
from datetime import date, datetime

from pydantic import TypeAdapter, ValidationError

from driftwatch.intelligence.models import Counters, DailyBrief, SessionBrief
from driftwatch.kv import KeyValueStore

logger = logging.getLogger(__name__)

SESSION_BRIEF_KEY = "session_brief"
SESSION_NEEDS_REFRESH_KEY = "session_needs_refresh"
SESSION_NOTE_WATERMARK_KEY = "session_note_watermark"
COUNTERS_KEY = "counters"
DAILY_BRIEFS_KEY = "daily_briefs"
DAILY_MARKER_KEY = "daily_generated_at"

_DAILY_LIST = TypeAdapter(list[DailyBrief])


class BriefCache:
    """Typed view over the key/value store used by the orchestrator."""

    def __init__(self, kv: KeyValueStore) -> None:
        self._kv = kv

    # ── Session brief ────────────────────────────────────────────

    def load_session_brief(self) -> SessionBrief | None:
        raw = self._kv.get(SESSION_BRIEF_KEY)
        if raw is None:
            return None
        try:
            return SessionBrief.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding unreadable cached session brief")
            return None

    def save_session_brief(self, brief: SessionBrief) -> None:
        self._kv.set(SESSION_BRIEF_KEY, brief.model_dump_json())

    def clear_session_brief(self) -> None:
        self._kv.delete(SESSION_BRIEF_KEY)

    @property
    def needs_refresh(self) -> bool:
        return self._kv.get(SESSION_NEEDS_REFRESH_KEY) == "true"

    def set_needs_refresh(self, value: bool) -> None:
        self._kv.set(SESSION_NEEDS_REFRESH_KEY, "true" if value else "false")

    @property
    def note_watermark(self) -> int | None:
        raw = self._kv.get(SESSION_NOTE_WATERMARK_KEY)
        if raw is None:
            return None
        try:
            return int(raw)
        except ValueError:
            logger.warning("Discarding unreadable note watermark %r", raw)
            return None

    def set_note_watermark(self, count: int) -> None:
        self._kv.set(SESSION_NOTE_WATERMARK_KEY, str(count))

    # ── Counters ─────────────────────────────────────────────────

    def load_counters(self) -> Counters | None:
        raw = self._kv.get(COUNTERS_KEY)
        if raw is None:
            return None
        try:
            return Counters.model_validate_json(raw)
        except ValidationError:
            logger.warning("Discarding unreadable counter snapshot")
            return None

    def save_counters(self, counters: Counters) -> None:
        self._kv.set(COUNTERS_KEY, counters.model_dump_json())

    # ── Daily briefs ─────────────────────────────────────────────

    def daily_briefs(self) -> list[DailyBrief]:
        raw = self._kv.get(DAILY_BRIEFS_KEY)
        if raw is None:
            return []
        try:
            return _DAILY_LIST.validate_json(raw)
        except ValidationError:
            logger.warning("Discarding unreadable daily brief records")
            return []

    def append_daily_brief(self, brief: DailyBrief) -> None:
        records = self.daily_briefs()
        records.append(brief)
        self._kv.set(DAILY_BRIEFS_KEY, _DAILY_LIST.dump_json(records).decode("utf-8"))

    def daily_brief_for(self, day: date) -> DailyBrief | None:
        """The newest brief generated for ``day``, if any."""
        matching = [b for b in self.daily_briefs() if b.brief_date == day]
        if not matching:
            return None
        return max(matching, key=lambda b: b.generated_at)

    def latest_daily_brief(self) -> DailyBrief | None:
        records = self.daily_briefs()
        if not records:
            return None
        return max(records, key=lambda b: (b.brief_date, b.generated_at))

    @property
    def daily_marker(self) -> datetime | None:
        raw = self._kv.get(DAILY_MARKER_KEY)
        if raw is None:
            return None
        try:
            return datetime.fromisoformat(json.loads(raw))
        except (json.JSONDecodeError, TypeError, ValueError):
            logger.warning("Discarding unreadable daily marker %r", raw)
            return None

    def set_daily_marker(self, moment: datetime) -> None:
        self._kv.set(DAILY_MARKER_KEY, json.dumps(moment.isoformat()))

    def clear_daily_marker(self) -> None:
        self._kv.delete(DAILY_MARKER_KEY)
