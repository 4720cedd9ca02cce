# tests/conftest.py
"""项目全局共享的测试 Fixtures。"""

import os
from collections.abc import Generator
from typing import Any

import pytest
from pytest_mock import MockerFixture
from rich.console import Console

from tests.helpers.factories import hola_payload, make_coordinator
from trans_vault.application import DerivedStatsCache, SubmissionCoordinator
from trans_vault.config import StoreSettings, TransVaultConfig
from trans_vault.core.types import PersistedFile
from trans_vault.infrastructure import InMemoryStore


@pytest.fixture(scope="session", autouse=True)
def disable_rich_colors_for_tests(
    session_mocker: MockerFixture,
) -> Generator[None, None, None]:
    """全局禁用 rich 库的颜色输出，以确保测试结果的确定性。"""
    original_init = Console.__init__

    def new_init(self: Console, *args: Any, **kwargs: Any) -> None:
        kwargs["force_terminal"] = False
        kwargs["color_system"] = None
        original_init(self, *args, **kwargs)

    session_mocker.patch("rich.console.Console.__init__", new=new_init)
    yield


@pytest.fixture(autouse=True)
def clean_transvault_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """确保宿主机上的 TRANSVAULT_* 环境变量不会影响测试。"""
    for key in list(os.environ):
        if key.startswith("TRANSVAULT_"):
            monkeypatch.delenv(key, raising=False)


@pytest.fixture
def config() -> TransVaultConfig:
    return TransVaultConfig(store=StoreSettings(conflict_retry_delay=0))


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def stats_cache() -> DerivedStatsCache:
    return DerivedStatsCache()


@pytest.fixture
def coordinator(
    store: InMemoryStore, stats_cache: DerivedStatsCache, config: TransVaultConfig
) -> SubmissionCoordinator:
    return make_coordinator(store, stats_cache, config)


@pytest.fixture
def hola_file() -> PersistedFile:
    return PersistedFile.from_payload(hola_payload())
