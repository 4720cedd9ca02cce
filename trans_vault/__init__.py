# trans_vault/__init__.py
"""
Trans-Vault：翻译持久化与一致性引擎。

把译者提交的字符串与外部内容仓库中已存储的翻译合并，保留追加式的
编辑历史，并保证同一 (单元, 语言) 上的写入串行进行。
"""

from trans_vault.application import (
    DerivedStatsCache,
    RecordMerger,
    SubmissionCoordinator,
    TranslationSubmissionService,
)
from trans_vault.config import TransVaultConfig
from trans_vault.core.types import (
    PersistedFile,
    SubmissionResult,
    SubmissionStatus,
    SubmittedTranslation,
)

__version__ = "1.0.0"

__all__ = [
    "DerivedStatsCache",
    "PersistedFile",
    "RecordMerger",
    "SubmissionCoordinator",
    "SubmissionResult",
    "SubmissionStatus",
    "SubmittedTranslation",
    "TransVaultConfig",
    "TranslationSubmissionService",
    "__version__",
]
