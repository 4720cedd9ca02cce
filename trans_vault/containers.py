# trans_vault/containers.py
"""
应用的组合根 (Composition Root)。

`ApplicationContainer` 负责装配所有组件，并管理 HTTP 客户端等
需要显式关闭的资源的生命周期。DerivedStatsCache 与写入串行器是
进程级单例，由容器持有并注入，而不是模块级全局变量。
"""

from __future__ import annotations

from collections.abc import AsyncIterator

import httpx
from dependency_injector import containers, providers

from trans_vault.application import (
    DerivedStatsCache,
    KeyedWriteSerializer,
    RecordMerger,
    ReportService,
    StoreStatsDeriver,
    SubmissionCoordinator,
    TranslationSubmissionService,
    WriteSetSelector,
)
from trans_vault.config import BuildSettings, StoreSettings, TransVaultConfig
from trans_vault.infrastructure import (
    GitHubContentStore,
    HttpBuildRequester,
    InMemoryStore,
    create_build_client,
    create_github_client,
)
from trans_vault.observability.logging_config import setup_logging


async def github_client_resource(
    settings: StoreSettings,
) -> AsyncIterator[httpx.AsyncClient]:
    async with create_github_client(settings) as client:
        yield client


async def build_client_resource(
    settings: BuildSettings,
) -> AsyncIterator[httpx.AsyncClient]:
    async with create_build_client(settings) as client:
        yield client


class ApplicationContainer(containers.DeclarativeContainer):
    """应用的顶层 DI 容器。"""

    # 整块配置对象，作为唯一事实来源向下传递
    pydantic_config = providers.Dependency(instance_of=TransVaultConfig)
    service_name = providers.Object("trans-vault")

    logging = providers.Resource(
        setup_logging,
        log_level=pydantic_config.provided.logging.level,
        log_format=pydantic_config.provided.logging.format,
        service=service_name,
    )

    # --- 外部资源 ---
    github_client: providers.Resource[httpx.AsyncClient] = providers.Resource(
        github_client_resource,
        settings=pydantic_config.provided.store,
    )
    build_client: providers.Resource[httpx.AsyncClient] = providers.Resource(
        build_client_resource,
        settings=pydantic_config.provided.build,
    )

    # --- 持久化存储：按 store.kind 选择实现 ---
    store = providers.Selector(
        pydantic_config.provided.store.kind,
        github=providers.Singleton(
            GitHubContentStore,
            client=github_client,
            settings=pydantic_config.provided.store,
            perform_string_commits=pydantic_config.provided.perform_string_commits,
        ),
        memory=providers.Singleton(
            InMemoryStore,
            default_ref=pydantic_config.provided.store.branch,
            perform_string_commits=pydantic_config.provided.perform_string_commits,
            conflict_retry_delay=pydantic_config.provided.store.conflict_retry_delay,
        ),
    )

    build_requester = providers.Singleton(
        HttpBuildRequester,
        client=build_client,
        settings=pydantic_config.provided.build,
    )

    # --- 进程级共享状态 ---
    stats_cache = providers.Singleton(
        DerivedStatsCache,
        dirty_grace_ms=pydantic_config.provided.stats_cache.dirty_grace_ms,
        maxsize=pydantic_config.provided.stats_cache.maxsize,
    )
    write_serializer = providers.Singleton(KeyedWriteSerializer)

    # --- 应用服务 ---
    merger = providers.Singleton(RecordMerger)
    selector = providers.Factory(WriteSetSelector, store=store)
    coordinator = providers.Factory(
        SubmissionCoordinator,
        store=store,
        merger=merger,
        selector=selector,
        serializer=write_serializer,
        stats_cache=stats_cache,
        config=pydantic_config,
    )
    submission_service = providers.Factory(
        TranslationSubmissionService,
        coordinator=coordinator,
        build_requester=build_requester,
        config=pydantic_config,
    )
    stats_deriver = providers.Factory(StoreStatsDeriver, store=store)
    report_service = providers.Factory(
        ReportService,
        cache=stats_cache,
        deriver=stats_deriver,
    )
