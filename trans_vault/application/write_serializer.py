# trans_vault/application/write_serializer.py
"""按 (unit, locale) 串行化写入的锁表。"""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager


class KeyedWriteSerializer:
    """
    为每个 (unit, locale) 维护一把 asyncio.Lock，保证同一对上同一时刻
    最多只有一个写入在进行。asyncio.Lock 按等待顺序唤醒，因此等价于
    并发度为 1 的 FIFO 队列。不同键之间互不阻塞。

    没有持有者也没有等待者的锁会被回收，锁表不会无限增长。
    """

    def __init__(self) -> None:
        self._locks: dict[tuple[str, str], asyncio.Lock] = {}
        self._users: dict[tuple[str, str], int] = {}

    @asynccontextmanager
    async def hold(self, unit: str, locale: str) -> AsyncIterator[None]:
        key = (unit, locale)
        lock = self._locks.setdefault(key, asyncio.Lock())
        self._users[key] = self._users.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._users[key] -= 1
            if self._users[key] == 0:
                del self._users[key]
                del self._locks[key]

    def is_locked(self, unit: str, locale: str) -> bool:
        lock = self._locks.get((unit, locale))
        return lock is not None and lock.locked()

    def __len__(self) -> int:
        return len(self._locks)
