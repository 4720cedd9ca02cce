"""
本核心包定义了 Trans-Vault 系统中最基础、最稳定的构建块。

这里包含了系统的核心数据类型、接口协议和自定义异常，它们共同构成了
整个应用的“契约”。所有其他模块都依赖于此核心包，但本包不依赖于
项目中的任何其他模块。
"""

from .exceptions import (
    BuildRequestError,
    ConfigurationError,
    ContractViolationError,
    NotFoundError,
    StoreError,
    TransientStoreError,
    TransVaultError,
    VersionConflictError,
)
from .interfaces import BuildRequester, PersistentStore, StatsDeriver
from .types import (
    A11Y_KEY_PREFIX,
    DerivedStatsEntry,
    HistoryEntry,
    PersistedFile,
    StringRecord,
    SubmissionResult,
    SubmissionStatus,
    SubmittedTranslation,
    SubmitterId,
    TranslationStats,
)

__all__ = [
    # from exceptions.py
    "TransVaultError",
    "ConfigurationError",
    "ContractViolationError",
    "StoreError",
    "NotFoundError",
    "TransientStoreError",
    "VersionConflictError",
    "BuildRequestError",
    # from interfaces.py
    "PersistentStore",
    "BuildRequester",
    "StatsDeriver",
    # from types.py
    "A11Y_KEY_PREFIX",
    "HistoryEntry",
    "StringRecord",
    "PersistedFile",
    "SubmittedTranslation",
    "SubmitterId",
    "SubmissionResult",
    "SubmissionStatus",
    "TranslationStats",
    "DerivedStatsEntry",
]
