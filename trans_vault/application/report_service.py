# trans_vault/application/report_service.py
"""翻译报告：按 (locale, unit) 提供派生统计数据，优先读取缓存。"""

from __future__ import annotations

import time
from collections.abc import Callable
from typing import TYPE_CHECKING, Optional

import structlog

from trans_vault.core.types import HistoryEntry, PersistedFile, TranslationStats

if TYPE_CHECKING:
    from trans_vault.core.interfaces import PersistentStore, StatsDeriver

    from .stats_cache import DerivedStatsCache

logger = structlog.get_logger(__name__)


def now_ms() -> int:
    return time.time_ns() // 1_000_000


def _timestamp_value(entry: HistoryEntry) -> Optional[int]:
    try:
        return int(entry.timestamp) if entry.timestamp is not None else None
    except (TypeError, ValueError):
        return None


def compute_stats(file: PersistedFile) -> TranslationStats:
    """从单个翻译文件计算统计数据。"""
    num_translated = 0
    latest: Optional[HistoryEntry] = None
    latest_ts: Optional[int] = None
    for record in file.records.values():
        if record.value:
            num_translated += 1
        for entry in record.history:
            ts = _timestamp_value(entry)
            if ts is not None and (latest_ts is None or ts > latest_ts):
                latest, latest_ts = entry, ts

    return TranslationStats(
        num_records=len(file),
        num_translated=num_translated,
        num_erased=len(file) - num_translated,
        last_edit_timestamp=latest.timestamp if latest else None,
        last_submitter_id=latest.submitter_id if latest else None,
    )


class StoreStatsDeriver:
    """缓存未命中时，从持久化存储读取文件并重算统计数据。"""

    def __init__(self, store: PersistentStore):
        self._store = store

    async def derive(self, locale: str, unit: str) -> TranslationStats:
        return compute_stats(await self._store.get(unit, locale))


class ReportService:
    def __init__(
        self,
        cache: DerivedStatsCache,
        deriver: StatsDeriver,
        clock: Callable[[], int] = now_ms,
    ):
        self._cache = cache
        self._deriver = deriver
        self._clock = clock

    async def get_stats(self, locale: str, unit: str) -> TranslationStats:
        now = self._clock()
        cached = self._cache.get(locale, unit, now)
        if cached is not None:
            return cached

        logger.debug("统计缓存未命中，从存储重算", locale=locale, unit=unit)
        stats = await self._deriver.derive(locale, unit)
        self._cache.set(locale, unit, stats, self._clock())
        return stats

    def is_pending_update(self, locale: str, unit: str) -> bool:
        """条目为脏时，报告中应显示“待更新”。"""
        entry = self._cache.entry(locale, unit)
        return entry is not None and entry.is_dirty

    def flush(self, locale: str, unit: str) -> bool:
        flushed = self._cache.flush(locale, unit)
        logger.info("已清除统计缓存条目", locale=locale, unit=unit, existed=flushed)
        return flushed
