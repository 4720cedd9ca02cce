# trans_vault/infrastructure/build_requester.py
"""通过 HTTP 向构建服务器请求重新构建某个模拟的某个语言版本。"""

from __future__ import annotations

from typing import Any

import httpx
import structlog

from trans_vault.config import BuildSettings
from trans_vault.core.exceptions import BuildRequestError
from trans_vault.core.types import SubmitterId

logger = structlog.get_logger(__name__)

BUILD_API_VERSION = "2.0"


def create_build_client(settings: BuildSettings) -> httpx.AsyncClient:
    return httpx.AsyncClient(timeout=settings.timeout)


class HttpBuildRequester:
    """把构建请求 POST 到 ``{server_url}/deploy-html-simulation``。"""

    def __init__(self, client: httpx.AsyncClient, settings: BuildSettings):
        self._client = client
        self._settings = settings

    def build_request_body(
        self, unit: str, locale: str, submitter_id: SubmitterId
    ) -> dict[str, Any]:
        auth = self._settings.auth_code
        return {
            "api": BUILD_API_VERSION,
            "simName": unit,
            "locales": [locale],
            "servers": ["production"],
            "brands": ["phet"],
            "translatorId": submitter_id,
            "authorizationCode": auth.get_secret_value() if auth else "",
        }

    async def request_build(
        self, unit: str, locale: str, submitter_id: SubmitterId
    ) -> bool:
        log = logger.bind(unit=unit, locale=locale, submitter_id=submitter_id)
        if not self._settings.send_requests:
            log.warning("build.send_requests 为 False，跳过发送构建请求")
            return False

        try:
            await self._send(self.build_request_body(unit, locale, submitter_id))
        except BuildRequestError as e:
            log.error("构建请求失败", error=str(e))
            return False
        log.info("构建请求已发送")
        return True

    async def _send(self, body: dict[str, Any]) -> None:
        url = f"{str(self._settings.server_url).rstrip('/')}/deploy-html-simulation"
        try:
            response = await self._client.post(url, json=body)
        except httpx.HTTPError as e:
            raise BuildRequestError(f"无法连接构建服务器 {url}: {e}") from e
        if response.is_error:
            raise BuildRequestError(f"构建服务器返回 HTTP {response.status_code}")
