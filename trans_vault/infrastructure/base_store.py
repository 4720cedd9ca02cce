# trans_vault/infrastructure/base_store.py
"""
持久化存储的基类，实现 get/put 的公共边界逻辑。

子类只需实现三个原语（读取对象、读取版本令牌、条件写入），并在失败时
抛出 StoreError 的子类。基类负责在边界处把异常转换为空文件或 ``False``，
以及版本冲突后的重试。
"""

from __future__ import annotations

import asyncio
from abc import ABC, abstractmethod
from typing import Any, Optional

import structlog

from trans_vault.core.exceptions import (
    NotFoundError,
    StoreError,
    VersionConflictError,
)
from trans_vault.core.types import PersistedFile

logger = structlog.get_logger(__name__)


def file_path_for(unit: str, locale: str) -> str:
    """内容仓库中某个 (unit, locale) 翻译文件的路径。"""
    return f"{unit}/{unit}-strings_{locale}.json"


def commit_message_for(unit: str, locale: str) -> str:
    return f"automated commit from trans-vault for {unit}, locale {locale}"


class BaseContentStore(ABC):
    """PersistentStore 实现的共享蓝图。"""

    def __init__(
        self,
        *,
        default_ref: str,
        perform_string_commits: bool = True,
        conflict_retry_delay: float = 0.5,
    ):
        self.default_ref = default_ref
        self.perform_string_commits = perform_string_commits
        self.conflict_retry_delay = conflict_retry_delay

    # ---------- 子类原语 ----------

    @abstractmethod
    async def _read(
        self, unit: str, locale: str, ref: str
    ) -> tuple[dict[str, Any], Optional[str]]:
        """[子类实现] 返回 (载荷, 版本令牌)。对象不存在时抛出 NotFoundError。"""
        ...

    @abstractmethod
    async def _get_version_token(
        self, unit: str, locale: str, ref: str
    ) -> Optional[str]:
        """[子类实现] 返回当前版本令牌；对象不存在时返回 None。"""
        ...

    @abstractmethod
    async def _write(
        self,
        unit: str,
        locale: str,
        payload: dict[str, Any],
        version_token: Optional[str],
        ref: str,
    ) -> None:
        """
        [子类实现] 条件写入。``version_token`` 为 None 表示创建。

        令牌不匹配时抛出 VersionConflictError，其他失败抛出 StoreError。
        """
        ...

    # ---------- 公共接口 ----------

    async def get(
        self, unit: str, locale: str, ref: Optional[str] = None
    ) -> PersistedFile:
        ref = ref or self.default_ref
        log = logger.bind(unit=unit, locale=locale, ref=ref)
        try:
            payload, token = await self._read(unit, locale, ref)
            return PersistedFile.from_payload(payload, version_token=token)
        except NotFoundError:
            log.warning("存储中没有该单元此语言的翻译文件，返回空文件")
        except StoreError as e:
            log.error("读取翻译文件失败，返回空文件", error=str(e))
        except ValueError as e:
            # pydantic.ValidationError 也是 ValueError
            log.error("翻译文件内容无法解析，返回空文件", error=str(e))
        return PersistedFile.empty()

    async def put(
        self,
        unit: str,
        locale: str,
        content: PersistedFile,
        ref: Optional[str] = None,
        *,
        based_on: Optional[PersistedFile] = None,
    ) -> bool:
        """
        条件写入 ``content``。

        ``based_on`` 是合并所依据的那次读取结果。给出时只以它的版本令牌尝试
        一次，版本冲突即返回 False，由调用方重新读取、合并后再决定是否重试；
        未给出时在写入前读取当前令牌，冲突后重新获取令牌重试一次。
        """
        ref = ref or self.default_ref
        log = logger.bind(unit=unit, locale=locale, ref=ref)

        if content.is_noop or content.is_empty:
            log.warning("翻译文件内容为空，跳过写入")
            return False
        if not self.perform_string_commits:
            log.warning("字符串提交已被禁用，未写入长期存储")
            return False

        payload = content.to_payload()
        attempts = 1 if based_on is not None else 2
        for attempt in range(1, attempts + 1):
            try:
                if based_on is not None:
                    token = based_on.version_token
                else:
                    token = await self._get_version_token(unit, locale, ref)
                await self._write(unit, locale, payload, token, ref)
            except VersionConflictError as e:
                if attempt < attempts:
                    log.warning(
                        "写入时发生版本冲突，将重新获取版本令牌后重试",
                        retry_in=self.conflict_retry_delay,
                        error=str(e),
                    )
                    await asyncio.sleep(self.conflict_retry_delay)
                    continue
                log.error("写入时发生版本冲突，放弃写入", error=str(e))
                return False
            except StoreError as e:
                log.error("写入翻译文件失败", error=str(e))
                return False
            log.info("翻译文件已写入长期存储", created=token is None)
            return True
        return False
