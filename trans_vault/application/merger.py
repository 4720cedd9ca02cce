# trans_vault/application/merger.py
"""
RecordMerger：把译者提交的值与当前持久化的文件合并，生成新的文件内容。

每个键只分类一次（MergeOutcome），再按分类结果分派处理。
历史只追加：任何分支都不会修改或删除已有的 HistoryEntry。
"""

from __future__ import annotations

import enum
from collections.abc import Mapping
from typing import Any, NoReturn, Optional

import structlog

from trans_vault.core.exceptions import ContractViolationError
from trans_vault.core.types import (
    HistoryEntry,
    PersistedFile,
    StringRecord,
    SubmitterId,
    Timestamp,
)

logger = structlog.get_logger(__name__)

# 只去掉 ASCII 空白。不间断空格 (U+00A0) 是用户保留字面空格的方式，必须保留。
_TRIMMABLE = " \t\r\n\x0b\x0c"


class MergeOutcome(str, enum.Enum):
    """单个字符串键的合并分类。"""

    ABSENT = "absent"
    CREATED = "created"
    LEFT_BLANK = "left_blank"
    UNTOUCHED = "untouched"
    ERASED = "erased"
    MODIFIED = "modified"
    PRESERVED = "preserved"


def _unreachable(outcome: NoReturn) -> NoReturn:
    raise AssertionError(f"未处理的合并分类: {outcome!r}")


def normalize_submitted_value(value: str) -> str:
    """去掉提交值首尾的空白。"""
    return value.strip(_TRIMMABLE)


def classify(old: Optional[StringRecord], submitted: Optional[str]) -> MergeOutcome:
    """
    根据旧记录与（已规范化的）提交值，确定该键的合并分类。

    值为空但记录存在的情况（之前被擦除过）不会被丢弃：
    缺席或空提交保留原记录，非空提交视为重新创建并追加到已有历史。
    """
    if old is None:
        if submitted is None:
            return MergeOutcome.ABSENT
        if submitted == "":
            return MergeOutcome.LEFT_BLANK
        return MergeOutcome.CREATED

    if submitted is None:
        return MergeOutcome.PRESERVED
    if submitted == old.value:
        return MergeOutcome.UNTOUCHED
    if old.value == "":
        return MergeOutcome.CREATED
    if submitted == "":
        return MergeOutcome.ERASED
    return MergeOutcome.MODIFIED


class RecordMerger:
    """无 I/O 的合并器。实例无状态，可以安全复用。"""

    def merge(
        self,
        unit: str,
        old_file: Optional[PersistedFile],
        submitted_values: Mapping[str, Any],
        submitter_id: SubmitterId,
        timestamp: Timestamp,
    ) -> PersistedFile:
        """
        生成 ``unit`` 的新文件内容。

        Returns:
            新的 PersistedFile；若结果与 ``old_file`` 深度相等，则返回
            ``PersistedFile.noop()``，以便调用方区分“未变化”与“文件本就为空”。

        Raises:
            ContractViolationError: 输入格式错误（例如非字符串的值）。
        """
        submitted = self.validate(unit, submitted_values)
        old_records = old_file.records if old_file is not None else {}

        # 键的并集：先旧文件中的键（保持存储顺序），再追加新键
        keys = list(old_records)
        keys.extend(k for k in submitted if k not in old_records)

        merged: dict[str, StringRecord] = {}
        for key in keys:
            old = old_records.get(key)
            value = submitted.get(key)
            outcome = classify(old, value)
            log = logger.bind(unit=unit, key=key, outcome=outcome.value)

            if outcome is MergeOutcome.ABSENT or outcome is MergeOutcome.LEFT_BLANK:
                log.debug("字符串未翻译，不写入翻译文件")
            elif outcome is MergeOutcome.UNTOUCHED or outcome is MergeOutcome.PRESERVED:
                assert old is not None
                merged[key] = old
            elif outcome is MergeOutcome.CREATED:
                assert value is not None
                entry = self._entry(submitter_id, timestamp, "", value)
                if old is None:
                    merged[key] = StringRecord(value=value, history=(entry,))
                else:
                    merged[key] = old.with_change(value, entry)
                log.debug("新增翻译")
            elif outcome is MergeOutcome.ERASED or outcome is MergeOutcome.MODIFIED:
                assert old is not None and value is not None
                entry = self._entry(submitter_id, timestamp, old.value, value)
                merged[key] = old.with_change(value, entry)
                log.debug("翻译已修改")
            else:
                _unreachable(outcome)

        result = PersistedFile(records=merged)
        if result.same_content(old_file):
            logger.info("翻译文件内容未变化，返回空结果", unit=unit)
            return PersistedFile.noop()

        logger.info("已生成翻译文件内容", unit=unit, num_records=len(result))
        return result

    @staticmethod
    def _entry(
        submitter_id: SubmitterId, timestamp: Timestamp, old_value: str, new_value: str
    ) -> HistoryEntry:
        return HistoryEntry(
            submitter_id=submitter_id,
            timestamp=timestamp,
            old_value=old_value,
            new_value=new_value,
        )

    @staticmethod
    def validate(unit: Any, submitted_values: Any) -> dict[str, str]:
        """检查并规范化一个单元的提交值；格式错误时抛出 ContractViolationError。"""
        if not isinstance(unit, str) or not unit:
            raise ContractViolationError(f"存储单元名称必须是非空字符串，实际为 {unit!r}")
        if not isinstance(submitted_values, Mapping):
            raise ContractViolationError(
                f"{unit} 的提交值必须是映射，实际为 {type(submitted_values).__name__}"
            )
        normalized: dict[str, str] = {}
        for key, value in submitted_values.items():
            if not isinstance(key, str):
                raise ContractViolationError(f"{unit} 中的字符串键必须是 str，实际为 {key!r}")
            if not isinstance(value, str):
                raise ContractViolationError(
                    f"{unit} 中键 {key!r} 的值必须是 str，实际为 {type(value).__name__}"
                )
            normalized[key] = normalize_submitted_value(value)
        return normalized
