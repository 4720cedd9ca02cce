# trans_vault/infrastructure/github_store.py
"""基于 GitHub contents API 的 PersistentStore 实现。"""

from __future__ import annotations

import base64
import binascii
import json
from typing import Any, Optional

import httpx
import structlog

from trans_vault.config import StoreSettings
from trans_vault.core.exceptions import (
    NotFoundError,
    TransientStoreError,
    VersionConflictError,
)

from .base_store import BaseContentStore, commit_message_for, file_path_for

logger = structlog.get_logger(__name__)

GITHUB_ACCEPT = "application/vnd.github+json"
GITHUB_RAW_ACCEPT = "application/vnd.github.raw+json"
GITHUB_API_VERSION = "2022-11-28"


def create_github_client(settings: StoreSettings) -> httpx.AsyncClient:
    """创建访问 GitHub API 的 httpx 异步客户端。"""
    headers = {
        "Accept": GITHUB_ACCEPT,
        "X-GitHub-Api-Version": GITHUB_API_VERSION,
        "User-Agent": "trans-vault",
    }
    if settings.token is not None:
        headers["Authorization"] = f"Bearer {settings.token.get_secret_value()}"
    return httpx.AsyncClient(
        base_url=settings.api_url, headers=headers, timeout=settings.timeout
    )


class GitHubContentStore(BaseContentStore):
    """
    把每个 (unit, locale) 的翻译文件存放在 GitHub 仓库中。

    版本令牌即 blob SHA：更新时必须携带当前 SHA，创建时省略。
    """

    def __init__(
        self,
        client: httpx.AsyncClient,
        settings: StoreSettings,
        *,
        perform_string_commits: bool = True,
    ):
        super().__init__(
            default_ref=settings.branch,
            perform_string_commits=perform_string_commits,
            conflict_retry_delay=settings.conflict_retry_delay,
        )
        if not settings.owner or not settings.repo:
            raise ValueError("GitHubContentStore 需要配置 owner 与 repo")
        self._client = client
        self._contents_url = f"/repos/{settings.owner}/{settings.repo}/contents"

    def _url(self, unit: str, locale: str) -> str:
        return f"{self._contents_url}/{file_path_for(unit, locale)}"

    async def _get_contents(
        self, unit: str, locale: str, ref: str, *, accept: Optional[str] = None
    ) -> httpx.Response:
        headers = {"Accept": accept} if accept else None
        try:
            response = await self._client.get(
                self._url(unit, locale), params={"ref": ref}, headers=headers
            )
        except httpx.HTTPError as e:
            raise TransientStoreError(
                f"请求 GitHub 失败: {e}", unit=unit, locale=locale
            ) from e
        if response.status_code == 404:
            raise NotFoundError(
                f"{file_path_for(unit, locale)} 不存在", unit=unit, locale=locale
            )
        if response.is_error:
            raise TransientStoreError(
                f"GitHub 返回 HTTP {response.status_code}", unit=unit, locale=locale
            )
        return response

    async def _read(
        self, unit: str, locale: str, ref: str
    ) -> tuple[dict[str, Any], Optional[str]]:
        response = await self._get_contents(unit, locale, ref)
        try:
            meta = response.json()
            sha = meta.get("sha")
            if meta.get("encoding") == "base64":
                raw = base64.b64decode(meta.get("content", ""))
            else:
                # 超过 1MB 的文件不会内联返回内容，需要以原始格式再取一次
                logger.debug("文件内容未内联返回，改用原始格式读取", unit=unit, locale=locale)
                raw = (
                    await self._get_contents(unit, locale, ref, accept=GITHUB_RAW_ACCEPT)
                ).content
            payload = json.loads(raw.decode("utf-8"))
        except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError, AttributeError) as e:
            raise TransientStoreError(
                f"无法解析 GitHub 返回的内容: {e}", unit=unit, locale=locale
            ) from e
        if not isinstance(payload, dict):
            raise TransientStoreError(
                "翻译文件的顶层结构必须是 JSON 对象", unit=unit, locale=locale
            )
        return payload, sha

    async def _get_version_token(
        self, unit: str, locale: str, ref: str
    ) -> Optional[str]:
        try:
            response = await self._get_contents(unit, locale, ref)
        except NotFoundError:
            return None
        try:
            return response.json()["sha"]
        except (ValueError, KeyError, TypeError) as e:
            raise TransientStoreError(
                f"GitHub 响应中缺少 sha: {e}", unit=unit, locale=locale
            ) from e

    async def _write(
        self,
        unit: str,
        locale: str,
        payload: dict[str, Any],
        version_token: Optional[str],
        ref: str,
    ) -> None:
        text = json.dumps(payload, indent=2, ensure_ascii=False)
        body: dict[str, Any] = {
            "message": commit_message_for(unit, locale),
            "content": base64.b64encode(text.encode("utf-8")).decode("ascii"),
            "branch": ref,
        }
        if version_token is not None:
            body["sha"] = version_token

        try:
            response = await self._client.put(self._url(unit, locale), json=body)
        except httpx.HTTPError as e:
            raise TransientStoreError(
                f"请求 GitHub 失败: {e}", unit=unit, locale=locale
            ) from e

        if response.status_code == 409 or (
            response.status_code == 422 and "sha" in response.text
        ):
            raise VersionConflictError(
                f"版本令牌 {version_token!r} 已过期 (HTTP {response.status_code})",
                unit=unit,
                locale=locale,
            )
        if response.is_error:
            raise TransientStoreError(
                f"GitHub 返回 HTTP {response.status_code}: {response.text[:200]}",
                unit=unit,
                locale=locale,
            )
