"""Tiered intelligence: instant counters, session brief, daily AI brief."""

from driftwatch.intelligence.cache import BriefCache
from driftwatch.intelligence.models import (
    CacheState,
    CaptureInput,
    Counters,
    DailyBrief,
    ExtractedItemInput,
    SessionBrief,
)
from driftwatch.intelligence.service import CaptureResult, IntelligenceService

__all__ = [
    "BriefCache",
    "CacheState",
    "CaptureInput",
    "CaptureResult",
    "Counters",
    "DailyBrief",
    "ExtractedItemInput",
    "IntelligenceService",
    "SessionBrief",
]
