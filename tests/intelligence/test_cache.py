"""Tests for BriefCache: typed persistence over a key/value store."""

from datetime import UTC, date, datetime, timedelta
from pathlib import Path

from driftwatch.intelligence.cache import (
    COUNTERS_KEY,
    DAILY_BRIEFS_KEY,
    SESSION_BRIEF_KEY,
    BriefCache,
)
from driftwatch.intelligence.models import Counters, DailyBrief, SessionBrief
from driftwatch.kv import JsonFileKeyValueStore, MemoryKeyValueStore

NOW = datetime(2026, 1, 21, 12, 0, tzinfo=UTC)


class TestSessionBrief:
    def test_round_trip(self):
        cache = BriefCache(MemoryKeyValueStore())
        brief = SessionBrief(generated_at=NOW)
        cache.save_session_brief(brief)
        assert cache.load_session_brief() == brief

    def test_absent(self):
        assert BriefCache(MemoryKeyValueStore()).load_session_brief() is None

    def test_unreadable_blob_treated_as_absent(self):
        cache = BriefCache(MemoryKeyValueStore({SESSION_BRIEF_KEY: "{oops"}))
        assert cache.load_session_brief() is None

    def test_clear(self):
        cache = BriefCache(MemoryKeyValueStore())
        cache.save_session_brief(SessionBrief(generated_at=NOW))
        cache.clear_session_brief()
        assert cache.load_session_brief() is None


class TestFlags:
    def test_refresh_flag_defaults_false(self):
        cache = BriefCache(MemoryKeyValueStore())
        assert cache.needs_refresh is False
        cache.set_needs_refresh(True)
        assert cache.needs_refresh is True
        cache.set_needs_refresh(False)
        assert cache.needs_refresh is False

    def test_note_watermark(self):
        cache = BriefCache(MemoryKeyValueStore())
        assert cache.note_watermark is None
        cache.set_note_watermark(12)
        assert cache.note_watermark == 12

    def test_bad_watermark(self):
        cache = BriefCache(MemoryKeyValueStore({"session_note_watermark": "many"}))
        assert cache.note_watermark is None


class TestCounters:
    def test_round_trip(self):
        cache = BriefCache(MemoryKeyValueStore())
        counters = Counters(notes_today=3, last_computed_at=NOW)
        cache.save_counters(counters)
        assert cache.load_counters() == counters

    def test_unreadable(self):
        cache = BriefCache(MemoryKeyValueStore({COUNTERS_KEY: "[]"}))
        assert cache.load_counters() is None


class TestDailyBriefs:
    def test_append_only(self):
        cache = BriefCache(MemoryKeyValueStore())
        cache.append_daily_brief(DailyBrief(brief_date=date(2026, 1, 20), generated_at=NOW))
        cache.append_daily_brief(DailyBrief(brief_date=date(2026, 1, 21), generated_at=NOW))
        assert [b.brief_date for b in cache.daily_briefs()] == [date(2026, 1, 20), date(2026, 1, 21)]

    def test_newest_record_for_date_wins(self):
        cache = BriefCache(MemoryKeyValueStore())
        day = date(2026, 1, 21)
        first = DailyBrief(brief_date=day, generated_at=NOW, what_matters_today="first")
        second = DailyBrief(
            brief_date=day, generated_at=NOW + timedelta(hours=1), what_matters_today="second"
        )
        cache.append_daily_brief(first)
        cache.append_daily_brief(second)
        assert cache.daily_brief_for(day).what_matters_today == "second"
        assert len(cache.daily_briefs()) == 2

    def test_missing_date(self):
        assert BriefCache(MemoryKeyValueStore()).daily_brief_for(date(2026, 1, 21)) is None

    def test_latest(self):
        cache = BriefCache(MemoryKeyValueStore())
        cache.append_daily_brief(DailyBrief(brief_date=date(2026, 1, 21), generated_at=NOW))
        cache.append_daily_brief(DailyBrief(brief_date=date(2026, 1, 19), generated_at=NOW))
        assert cache.latest_daily_brief().brief_date == date(2026, 1, 21)

    def test_unreadable_records(self):
        cache = BriefCache(MemoryKeyValueStore({DAILY_BRIEFS_KEY: '{"not": "a list"}'}))
        assert cache.daily_briefs() == []

    def test_marker(self):
        cache = BriefCache(MemoryKeyValueStore())
        assert cache.daily_marker is None
        cache.set_daily_marker(NOW)
        assert cache.daily_marker == NOW
        cache.clear_daily_marker()
        assert cache.daily_marker is None

    def test_survives_reload(self, tmp_path: Path):
        BriefCache(JsonFileKeyValueStore(tmp_path)).append_daily_brief(
            DailyBrief(brief_date=date(2026, 1, 21), generated_at=NOW, highlights=["a"])
        )
        reloaded = BriefCache(JsonFileKeyValueStore(tmp_path))
        assert reloaded.daily_brief_for(date(2026, 1, 21)).highlights == ["a"]
