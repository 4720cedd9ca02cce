# trans_vault/core/interfaces.py
"""
本模块使用 typing.Protocol 定义了核心组件的接口协议。
"""

from __future__ import annotations

from typing import Optional, Protocol

from .types import PersistedFile, SubmitterId, TranslationStats


class PersistentStore(Protocol):
    """
    外部内容仓库的持久化接口。

    实现必须在边界处吞下存储异常：读取失败返回空文件，写入失败返回 False。
    """

    async def get(
        self, unit: str, locale: str, ref: Optional[str] = None
    ) -> PersistedFile: ...

    async def put(
        self,
        unit: str,
        locale: str,
        content: PersistedFile,
        ref: Optional[str] = None,
        *,
        based_on: Optional[PersistedFile] = None,
    ) -> bool:
        """``based_on`` 给出时，写入以其版本令牌为条件，冲突时不自行重试。"""
        ...


class BuildRequester(Protocol):
    """构建触发器：通知构建服务器重新构建某个模拟的某个语言版本。"""

    async def request_build(
        self, unit: str, locale: str, submitter_id: SubmitterId
    ) -> bool: ...


class StatsDeriver(Protocol):
    """在缓存未命中时，从持久化存储重新计算某个 (locale, unit) 的统计数据。"""

    async def derive(self, locale: str, unit: str) -> TranslationStats: ...
