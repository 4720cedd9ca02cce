# trans_vault/application/submission_service.py
"""面向 API 层的提交用例：存储翻译，然后按需请求构建。"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog

from trans_vault.core.exceptions import ContractViolationError
from trans_vault.core.types import SubmissionStatus, SubmittedTranslation

if TYPE_CHECKING:
    from trans_vault.config import TransVaultConfig
    from trans_vault.core.interfaces import BuildRequester

    from .coordinator import SubmissionCoordinator

logger = structlog.get_logger(__name__)


class TranslationSubmissionService:
    def __init__(
        self,
        coordinator: SubmissionCoordinator,
        build_requester: BuildRequester,
        config: TransVaultConfig,
    ):
        self._coordinator = coordinator
        self._build_requester = build_requester
        self._config = config

    async def submit(self, translation: SubmittedTranslation | Any) -> SubmissionStatus:
        """
        存储一次提交并在合适时请求构建。

        禁写（调试）模式下即使没有存储任何内容也会请求构建。
        契约错误向上传播；其他意外错误被记录并报告为“都没有”。
        """
        if not isinstance(translation, SubmittedTranslation):
            translation = SubmittedTranslation.from_payload(translation)

        status = SubmissionStatus()
        try:
            result = await self._coordinator.submit(translation)
            status.all_units_stored = (
                result.all_requested_units_written
                and self._config.perform_string_commits
            )
            if status.all_units_stored or not self._config.perform_string_commits:
                status.build_requested = await self._build_requester.request_build(
                    translation.primary_unit,
                    translation.locale,
                    translation.submitter_id,
                )
        except ContractViolationError:
            raise
        except Exception:
            logger.exception(
                "处理翻译提交时发生意外错误",
                locale=translation.locale,
                primary_unit=translation.primary_unit,
            )

        logger.info(
            "翻译提交状态",
            locale=translation.locale,
            primary_unit=translation.primary_unit,
            all_units_stored=status.all_units_stored,
            build_requested=status.build_requested,
        )
        return status
