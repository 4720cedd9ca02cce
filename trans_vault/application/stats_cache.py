# trans_vault/application/stats_cache.py
"""本模块提供按 (locale, unit) 缓存派生统计数据的内存缓存。"""

from __future__ import annotations

from typing import Any, Optional

import structlog
from cachetools import LRUCache

from trans_vault.core.types import DerivedStatsEntry

logger = structlog.get_logger(__name__)

DEFAULT_DIRTY_GRACE_MS = 10 * 60 * 1000


class DerivedStatsCache:
    """
    派生统计数据缓存。每个条目的状态：不存在 → 干净 → 脏 → 不存在。

    脏条目在 ``dirty_grace_ms`` 内仍会被返回，超过后 ``get`` 返回 None，
    调用方需从持久化存储重算并重新 ``set``。所有方法都是同步的，
    在单个事件循环内对单个条目的操作是原子的，因此不需要锁。
    """

    def __init__(
        self, *, dirty_grace_ms: int = DEFAULT_DIRTY_GRACE_MS, maxsize: int = 4096
    ):
        self.dirty_grace_ms = dirty_grace_ms
        self._entries: LRUCache[tuple[str, str], DerivedStatsEntry] = LRUCache(
            maxsize=maxsize
        )

    def set(self, locale: str, unit: str, stats: Any, now: int) -> None:
        self._entries[(locale, unit)] = DerivedStatsEntry(
            locale=locale, unit=unit, stats=stats, is_dirty=False, cached_at=now
        )

    def mark_dirty(self, locale: str, unit: str) -> None:
        entry = self._entries.get((locale, unit))
        if entry is None:
            return
        entry.is_dirty = True
        logger.debug("统计缓存条目已标记为脏", locale=locale, unit=unit)

    def get(self, locale: str, unit: str, now: int) -> Optional[Any]:
        entry = self._entries.get((locale, unit))
        if entry is None:
            return None
        if not entry.is_dirty:
            return entry.stats
        if now - entry.cached_at < self.dirty_grace_ms:
            return entry.stats
        logger.debug(
            "脏条目已超过宽限期，需要重算",
            locale=locale,
            unit=unit,
            age_ms=now - entry.cached_at,
        )
        return None

    def flush(self, locale: str, unit: str) -> bool:
        """移除条目；条目存在时返回 True。"""
        return self._entries.pop((locale, unit), None) is not None

    def entry(self, locale: str, unit: str) -> Optional[DerivedStatsEntry]:
        return self._entries.get((locale, unit))

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)
