# trans_vault/infrastructure/memory_store.py
"""进程内的 PersistentStore 实现，用于本地演练与测试。"""

from __future__ import annotations

import asyncio
import hashlib
import json
from typing import Any, Optional

from trans_vault.core.exceptions import NotFoundError, VersionConflictError

from .base_store import BaseContentStore, commit_message_for

_Key = tuple[str, str, str]


def _content_hash(text: str) -> str:
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


class InMemoryStore(BaseContentStore):
    """
    以 (ref, unit, locale) 为键保存序列化后的 JSON 文本。

    版本令牌是文本的 SHA-256，写入语义与远端存储一致：
    创建时对象必须不存在，更新时令牌必须与当前令牌一致。
    """

    def __init__(
        self,
        *,
        default_ref: str = "main",
        perform_string_commits: bool = True,
        conflict_retry_delay: float = 0.0,
    ):
        super().__init__(
            default_ref=default_ref,
            perform_string_commits=perform_string_commits,
            conflict_retry_delay=conflict_retry_delay,
        )
        self._objects: dict[_Key, tuple[str, str]] = {}
        self.commits: list[tuple[str, str, str]] = []
        """已成功的写入：(unit, locale, commit message)。"""

    def _key(self, unit: str, locale: str, ref: Optional[str]) -> _Key:
        return (ref or self.default_ref, unit, locale)

    def seed(
        self,
        unit: str,
        locale: str,
        payload: dict[str, Any],
        ref: Optional[str] = None,
    ) -> str:
        """直接放入一个文件（不经过条件写入），返回其版本令牌。"""
        text = json.dumps(payload, indent=2, ensure_ascii=False)
        token = _content_hash(text)
        self._objects[self._key(unit, locale, ref)] = (text, token)
        return token

    def snapshot(
        self, unit: str, locale: str, ref: Optional[str] = None
    ) -> Optional[dict[str, Any]]:
        stored = self._objects.get(self._key(unit, locale, ref))
        return json.loads(stored[0]) if stored else None

    async def _read(
        self, unit: str, locale: str, ref: str
    ) -> tuple[dict[str, Any], Optional[str]]:
        await asyncio.sleep(0)
        stored = self._objects.get(self._key(unit, locale, ref))
        if stored is None:
            raise NotFoundError(f"{unit}/{locale} 不存在", unit=unit, locale=locale)
        text, token = stored
        return json.loads(text), token

    async def _get_version_token(
        self, unit: str, locale: str, ref: str
    ) -> Optional[str]:
        await asyncio.sleep(0)
        stored = self._objects.get(self._key(unit, locale, ref))
        return stored[1] if stored else None

    async def _write(
        self,
        unit: str,
        locale: str,
        payload: dict[str, Any],
        version_token: Optional[str],
        ref: str,
    ) -> None:
        await asyncio.sleep(0)
        key = self._key(unit, locale, ref)
        current = self._objects.get(key)
        current_token = current[1] if current else None
        if current_token != version_token:
            raise VersionConflictError(
                f"期望版本 {version_token!r}，实际为 {current_token!r}",
                unit=unit,
                locale=locale,
            )
        text = json.dumps(payload, indent=2, ensure_ascii=False)
        self._objects[key] = (text, _content_hash(text))
        self.commits.append((unit, locale, commit_message_for(unit, locale)))
