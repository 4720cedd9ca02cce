# trans_vault/application/__init__.py
"""应用层：合并、写入选择、提交编排与统计缓存。"""

from .coordinator import SubmissionCoordinator
from .merger import MergeOutcome, RecordMerger, classify, normalize_submitted_value
from .report_service import ReportService, StoreStatsDeriver, compute_stats, now_ms
from .selector import WriteSetSelector
from .stats_cache import DEFAULT_DIRTY_GRACE_MS, DerivedStatsCache
from .submission_service import TranslationSubmissionService
from .write_serializer import KeyedWriteSerializer

__all__ = [
    "DEFAULT_DIRTY_GRACE_MS",
    "DerivedStatsCache",
    "KeyedWriteSerializer",
    "MergeOutcome",
    "RecordMerger",
    "ReportService",
    "StoreStatsDeriver",
    "SubmissionCoordinator",
    "TranslationSubmissionService",
    "WriteSetSelector",
    "classify",
    "compute_stats",
    "normalize_submitted_value",
    "now_ms",
]
