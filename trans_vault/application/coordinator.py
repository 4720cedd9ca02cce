# trans_vault/application/coordinator.py
"""
SubmissionCoordinator：一次翻译提交的编排者。

每个单元在各自的 (unit, locale) 锁内依次完成：读取 → 合并 → 选择是否
需要写入 → 以读取时的版本令牌条件写入。不同单元并发处理，最后标记派生
统计缓存为脏。
"""

from __future__ import annotations

import asyncio
from typing import TYPE_CHECKING, Optional

import structlog

from trans_vault.core.exceptions import ContractViolationError
from trans_vault.core.types import (
    A11Y_KEY_PREFIX,
    PersistedFile,
    SubmissionResult,
    SubmittedTranslation,
)

if TYPE_CHECKING:
    from trans_vault.config import TransVaultConfig
    from trans_vault.core.interfaces import PersistentStore

    from .merger import RecordMerger
    from .selector import WriteSetSelector
    from .stats_cache import DerivedStatsCache
    from .write_serializer import KeyedWriteSerializer

logger = structlog.get_logger(__name__)


class SubmissionCoordinator:
    def __init__(
        self,
        store: PersistentStore,
        merger: RecordMerger,
        selector: WriteSetSelector,
        serializer: KeyedWriteSerializer,
        stats_cache: DerivedStatsCache,
        config: TransVaultConfig,
    ):
        self._store = store
        self._merger = merger
        self._selector = selector
        self._serializer = serializer
        self._stats_cache = stats_cache
        self._config = config

    async def submit(self, translation: SubmittedTranslation) -> SubmissionResult:
        """
        处理一次提交。

        Raises:
            ContractViolationError: 提交数据格式错误，或目标语言为源语言。
        """
        locale = translation.locale
        if locale == self._config.source_locale:
            raise ContractViolationError(
                f"不能提交源语言 {locale!r} 的翻译"
            )
        log = logger.bind(locale=locale, primary_unit=translation.primary_unit)
        log.info("开始处理翻译提交", units=translation.units)

        values_by_unit = {
            unit: self._filter_keys(translation.values_for(unit))
            for unit in translation.units
        }
        # 格式错误的提交必须在任何单元写入之前被拒绝
        for unit, values in values_by_unit.items():
            self._merger.validate(unit, values)

        outcomes = await asyncio.gather(
            *(
                self._store_unit(unit, locale, values, translation)
                for unit, values in values_by_unit.items()
            )
        )
        units_to_write = frozenset(
            unit for unit, (to_write, _) in zip(values_by_unit, outcomes) if to_write
        )
        units_written = frozenset(
            unit for unit, (_, written) in zip(values_by_unit, outcomes) if written
        )

        if self._config.perform_string_commits:
            all_written = units_written == units_to_write
            dirty_units = set(units_written)
        else:
            log.warning("字符串提交已被禁用，跳过写入", units=sorted(units_to_write))
            all_written = not units_to_write
            dirty_units = set(units_to_write)

        if all_written or not self._config.perform_string_commits:
            # 即使只翻译了共享字符串，主单元的报告也应显示“待更新”
            dirty_units.add(translation.primary_unit)
        for unit in dirty_units:
            self._stats_cache.mark_dirty(locale, unit)

        result = SubmissionResult(
            units_to_write=units_to_write,
            units_written=units_written,
            all_requested_units_written=all_written,
        )
        log.info(
            "翻译提交处理完成",
            units_written=sorted(result.units_written),
            all_requested_units_written=result.all_requested_units_written,
        )
        return result

    def _filter_keys(self, values: dict[str, str]) -> dict[str, str]:
        if self._config.include_a11y_keys:
            return values
        return {k: v for k, v in values.items() if not k.startswith(A11Y_KEY_PREFIX)}

    async def _store_unit(
        self,
        unit: str,
        locale: str,
        values: dict[str, str],
        translation: SubmittedTranslation,
    ) -> tuple[bool, bool]:
        """
        在 (unit, locale) 锁内完成读取、合并、选择与写入。

        返回 (是否需要写入, 是否已写入)。写入以本次读取到的版本令牌为条件；
        若失败后重新读取发现文件已被其他写入者更新，则基于新文件重新合并并
        重试一次。
        """
        log = logger.bind(unit=unit, locale=locale)
        async with self._serializer.hold(unit, locale):
            to_write = False
            based_on: Optional[PersistedFile] = None
            for attempt in (1, 2):
                old_file = await self._store.get(unit, locale)
                if based_on is not None:
                    if old_file.version_token == based_on.version_token:
                        return to_write, False
                    log.warning("文件已被其他写入者更新，重新合并后重试", attempt=attempt)

                merged = self._merger.merge(
                    unit,
                    old_file,
                    values,
                    translation.submitter_id,
                    translation.timestamp,
                )
                selected = await self._selector.select_units_to_write(
                    {unit: merged}, locale
                )
                if unit not in selected:
                    # 重试时走到这里，说明其他写入者已存入了相同的内容
                    return to_write, to_write
                to_write = True
                if not self._config.perform_string_commits:
                    return True, False

                if await self._put(unit, locale, merged, old_file):
                    return True, True
                based_on = old_file
                if attempt == 1:
                    await asyncio.sleep(self._config.store.conflict_retry_delay)
            return True, False

    async def _put(
        self, unit: str, locale: str, content: PersistedFile, based_on: PersistedFile
    ) -> bool:
        try:
            return await self._store.put(unit, locale, content, based_on=based_on)
        except Exception:
            # 单个单元的意外失败不能中断同一提交中其他单元的写入
            logger.exception("写入单元时发生意外错误", unit=unit, locale=locale)
            return False
