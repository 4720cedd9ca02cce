# tests/unit/infrastructure/test_build_requester.py
"""针对 `HttpBuildRequester` 的单元测试。"""

import json
from typing import Any

import httpx
import pytest
from pydantic import SecretStr

from trans_vault.config import BuildSettings
from trans_vault.infrastructure import HttpBuildRequester


def _requester(
    handler: Any, **overrides: Any
) -> tuple[HttpBuildRequester, list[httpx.Request]]:
    seen: list[httpx.Request] = []

    def _record(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return handler(request)

    values: dict[str, Any] = {
        "server_url": "https://build.example.org/",
        "auth_code": SecretStr("let-me-in"),
        "send_requests": True,
    }
    values.update(overrides)
    client = httpx.AsyncClient(transport=httpx.MockTransport(_record))
    return HttpBuildRequester(client, BuildSettings(**values)), seen


@pytest.mark.asyncio
async def test_build_request_is_posted() -> None:
    requester, seen = _requester(lambda _r: httpx.Response(202))

    assert await requester.request_build("sim1", "es", 42)

    request = seen[0]
    assert request.method == "POST"
    assert str(request.url) == "https://build.example.org/deploy-html-simulation"
    assert json.loads(request.content) == {
        "api": "2.0",
        "simName": "sim1",
        "locales": ["es"],
        "servers": ["production"],
        "brands": ["phet"],
        "translatorId": 42,
        "authorizationCode": "let-me-in",
    }


@pytest.mark.asyncio
async def test_disabled_requests_are_not_sent() -> None:
    requester, seen = _requester(lambda _r: httpx.Response(200), send_requests=False)
    assert not await requester.request_build("sim1", "es", 42)
    assert seen == []


@pytest.mark.asyncio
async def test_server_error_reports_failure() -> None:
    requester, _ = _requester(lambda _r: httpx.Response(500))
    assert not await requester.request_build("sim1", "es", 42)


@pytest.mark.asyncio
async def test_transport_error_reports_failure() -> None:
    def _raise(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectTimeout("timeout", request=request)

    requester, _ = _requester(_raise)
    assert not await requester.request_build("sim1", "es", 42)
