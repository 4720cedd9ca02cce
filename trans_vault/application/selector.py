# trans_vault/application/selector.py
"""WriteSetSelector：找出合并结果与当前持久化内容确实不同、需要写入的单元。"""

from __future__ import annotations

from collections.abc import Mapping

import structlog

from trans_vault.core.interfaces import PersistentStore
from trans_vault.core.types import PersistedFile

logger = structlog.get_logger(__name__)


class WriteSetSelector:
    """
    对每个候选单元重新读取一次持久化文件再比较。

    合并时读到的旧文件可能已经过时（期间可能有其他提交写入），这里只是
    尽力而为的过时检查；真正的正确性由按 (unit, locale) 串行写入保证。
    """

    def __init__(self, store: PersistentStore):
        self._store = store

    async def select_units_to_write(
        self, candidates: Mapping[str, PersistedFile], locale: str
    ) -> set[str]:
        units_to_write: set[str] = set()
        for unit, merged in candidates.items():
            if merged.is_noop or merged.is_empty:
                logger.debug("合并结果为空，无需写入", unit=unit, locale=locale)
                continue

            current = await self._store.get(unit, locale)
            if len(current) < len(merged):
                units_to_write.add(unit)
            elif len(current) > len(merged):
                # 模拟在开始翻译与提交之间删除了字符串时会出现这种情况
                logger.warning(
                    "持久化文件中的键多于新生成的文件内容",
                    unit=unit,
                    locale=locale,
                    persisted_keys=len(current),
                    merged_keys=len(merged),
                )
                units_to_write.add(unit)
            elif self._contents_differ(current, merged):
                units_to_write.add(unit)
            else:
                logger.info("持久化内容已与合并结果一致，跳过写入", unit=unit, locale=locale)

        logger.info(
            "已确定需要写入的单元",
            locale=locale,
            units=sorted(units_to_write),
        )
        return units_to_write

    @staticmethod
    def _contents_differ(current: PersistedFile, merged: PersistedFile) -> bool:
        for key, record in current.records.items():
            other = merged.get(key)
            if other is None or record.to_payload() != other.to_payload():
                return True
        return False
