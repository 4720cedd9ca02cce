# trans_vault/presentation/cli/_utils.py
"""
CLI 内部共享的辅助工具，例如管理容器资源生命周期的上下文管理器。
"""

from __future__ import annotations

import inspect
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from trans_vault.containers import ApplicationContainer


async def _maybe_await(result: object) -> None:
    if inspect.isawaitable(result):
        await result


@asynccontextmanager
async def running_container(
    container: ApplicationContainer,
) -> AsyncGenerator[ApplicationContainer, None]:
    """初始化容器资源（HTTP 客户端、日志），退出时确保关闭。"""
    await _maybe_await(container.init_resources())
    try:
        yield container
    finally:
        await _maybe_await(container.shutdown_resources())
