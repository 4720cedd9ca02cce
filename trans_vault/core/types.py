# trans_vault/core/types.py
"""
本模块定义了 Trans-Vault 系统的核心数据类型。

存储文件的线上格式（JSON）沿用内容仓库中已有文件的字段名
（``userId`` / ``oldValue`` / ``newValue``），Python 侧统一使用 snake_case。
历史条目中出现的未知字段（旧版的 ``explanation``、AI 相关字段等）会被原样保留。
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    ConfigDict,
    Field,
    ValidationError,
    field_validator,
)

from .exceptions import ContractViolationError

SubmitterId = Union[int, str]
Timestamp = Union[int, str]

A11Y_KEY_PREFIX = "a11y."
"""无障碍（accessibility）专用字符串键的前缀。"""


class HistoryEntry(BaseModel):
    """单条字符串的一次变更记录。创建后不可变，历史只追加不修改。"""

    model_config = ConfigDict(frozen=True, extra="allow", populate_by_name=True)

    submitter_id: Optional[SubmitterId] = Field(
        default=None,
        validation_alias=AliasChoices("userId", "submitterId", "submitter_id"),
        serialization_alias="userId",
    )
    timestamp: Optional[Timestamp] = None
    old_value: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("oldValue", "old_value"),
        serialization_alias="oldValue",
    )
    new_value: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("newValue", "new_value"),
        serialization_alias="newValue",
    )


class StringRecord(BaseModel):
    """某个字符串键的当前值及其追加式历史。"""

    model_config = ConfigDict(frozen=True, extra="allow")

    value: str = ""
    # 由旧版 Java/Flash 模拟手工迁移而来的文件可能没有 history 数组
    history: tuple[HistoryEntry, ...] = ()

    def with_change(self, value: str, entry: HistoryEntry) -> "StringRecord":
        """返回一个新记录：值被替换，并在历史末尾追加一条条目。"""
        return self.model_copy(update={"value": value, "history": (*self.history, entry)})

    def to_payload(self) -> dict[str, Any]:
        payload = self.model_dump(mode="json", by_alias=True, exclude_unset=True)
        payload["value"] = self.value
        payload["history"] = [
            h.model_dump(mode="json", by_alias=True, exclude_unset=True)
            for h in self.history
        ]
        return payload


class PersistedFile(BaseModel):
    """
    一个 (StorageUnit, Locale) 的完整翻译文件内容。

    ``version_token`` 是远端对象的内容哈希（GitHub 中即 blob SHA），
    为 ``None`` 表示远端尚不存在该对象。内容比较时忽略版本令牌。
    ``is_noop`` 为 True 表示这是 RecordMerger 返回的“无变化”标记。
    """

    model_config = ConfigDict(frozen=True)

    records: dict[str, StringRecord] = Field(default_factory=dict)
    version_token: Optional[str] = None
    is_noop: bool = False

    @classmethod
    def empty(cls) -> "PersistedFile":
        return cls()

    @classmethod
    def noop(cls) -> "PersistedFile":
        return cls(is_noop=True)

    @classmethod
    def from_payload(
        cls, payload: Mapping[str, Any], version_token: Optional[str] = None
    ) -> "PersistedFile":
        """从线上 JSON 结构构建对象；结构不合法时抛出 pydantic.ValidationError。"""
        return cls(
            records={
                key: StringRecord.model_validate(record)
                for key, record in payload.items()
            },
            version_token=version_token,
        )

    def to_payload(self) -> dict[str, Any]:
        """转换为写入内容仓库的 JSON 结构。"""
        return {key: record.to_payload() for key, record in self.records.items()}

    def same_content(self, other: Optional["PersistedFile"]) -> bool:
        """深度比较两个文件的记录内容（忽略版本令牌与键顺序）。"""
        other_payload = other.to_payload() if other is not None else {}
        return self.to_payload() == other_payload

    @property
    def is_empty(self) -> bool:
        return not self.records

    def get(self, key: str) -> Optional[StringRecord]:
        return self.records.get(key)

    def keys(self) -> list[str]:
        return list(self.records)

    def __len__(self) -> int:
        return len(self.records)

    def __contains__(self, key: object) -> bool:
        return key in self.records


class SubmittedTranslation(BaseModel):
    """
    一次翻译提交（瞬态输入，只被 SubmissionCoordinator 消费一次）。

    ``per_unit_values`` 已由上游按 “本模拟自有键 / 与其他模拟共享的键 /
    公共库键” 分好类，键为 StorageUnit 名称。
    """

    model_config = ConfigDict(frozen=True, strict=True, populate_by_name=True)

    locale: str = Field(min_length=1)
    primary_unit: str = Field(min_length=1, validation_alias=AliasChoices("primary_unit", "primaryUnit"))
    submitter_id: SubmitterId = Field(validation_alias=AliasChoices("submitter_id", "submitterId", "userId"))
    timestamp: int
    per_unit_values: dict[str, dict[str, str]] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("per_unit_values", "perUnitValues"),
    )

    @field_validator("per_unit_values")
    @classmethod
    def _reject_blank_unit_names(
        cls, v: dict[str, dict[str, str]]
    ) -> dict[str, dict[str, str]]:
        for unit in v:
            if not unit.strip():
                raise ValueError("存储单元名称不能为空")
        return v

    @classmethod
    def from_payload(cls, payload: Any) -> "SubmittedTranslation":
        """校验外部传入的提交数据，格式错误时抛出 ContractViolationError。"""
        try:
            return cls.model_validate(payload)
        except ValidationError as e:
            raise ContractViolationError(f"提交的翻译数据格式无效: {e}") from e

    @property
    def units(self) -> list[str]:
        """本次提交涉及的全部存储单元：主单元在前，其余按出现顺序。"""
        units = [self.primary_unit]
        for unit in self.per_unit_values:
            if unit not in units:
                units.append(unit)
        return units

    def values_for(self, unit: str) -> dict[str, str]:
        return dict(self.per_unit_values.get(unit, {}))


class SubmissionResult(BaseModel):
    """SubmissionCoordinator.submit 的聚合结果。"""

    model_config = ConfigDict(frozen=True)

    units_to_write: frozenset[str] = frozenset()
    units_written: frozenset[str] = frozenset()
    all_requested_units_written: bool = True


class SubmissionStatus(BaseModel):
    """
    面向 API 层的提交状态。两个布尔值组合出四种用户可见结果：
    已存储并已请求构建 / 已存储未请求构建 / 未存储但已请求构建（禁写调试模式）/ 都没有。
    """

    all_units_stored: bool = False
    build_requested: bool = False


class TranslationStats(BaseModel):
    """由 StatsDeriver 从某个单元的持久化文件计算出的统计数据。"""

    model_config = ConfigDict(frozen=True)

    num_records: int = 0
    num_translated: int = 0
    num_erased: int = 0
    last_edit_timestamp: Optional[Timestamp] = None
    last_submitter_id: Optional[SubmitterId] = None

    @property
    def percent_translated(self) -> int:
        if self.num_records == 0:
            return 0
        return (self.num_translated * 100) // self.num_records


class DerivedStatsEntry(BaseModel):
    """DerivedStatsCache 中的一个条目。只有缓存本身会修改它。"""

    locale: str
    unit: str
    stats: Any
    is_dirty: bool = False
    cached_at: int = 0
