# tests/unit/application/test_coordinator.py
"""
针对 `trans_vault.application.coordinator.SubmissionCoordinator` 的单元测试。

使用进程内存储；串行化与并发写入测试使用记录调用时序或模拟抢先提交的存储替身。
"""

import asyncio
from collections import defaultdict
from typing import Optional

import pytest

from tests.helpers.factories import (
    TEST_LOCALE,
    TEST_SHARED_UNIT,
    TEST_SIM,
    create_submission,
    hola_payload,
    make_coordinator,
)
from trans_vault.application import DerivedStatsCache, SubmissionCoordinator
from trans_vault.config import StoreSettings, TransVaultConfig
from trans_vault.core.exceptions import ContractViolationError
from trans_vault.core.types import PersistedFile
from trans_vault.infrastructure import InMemoryStore


class RecordingStore(InMemoryStore):
    """记录每个 (unit, locale) 上同时进行中的写入数量以及写入顺序。"""

    def __init__(self, failing_units: frozenset[str] = frozenset()) -> None:
        super().__init__()
        self.failing_units = failing_units
        self.in_flight: defaultdict[tuple[str, str], int] = defaultdict(int)
        self.max_in_flight = 0
        self.put_order: list[tuple[str, str, str]] = []

    async def put(
        self,
        unit: str,
        locale: str,
        content: PersistedFile,
        ref: Optional[str] = None,
        *,
        based_on: Optional[PersistedFile] = None,
    ) -> bool:
        key = (unit, locale)
        self.in_flight[key] += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight[key])
        try:
            await asyncio.sleep(0.01)
            if unit in self.failing_units:
                return False
            record = next(iter(content.records.values()))
            self.put_order.append((unit, locale, record.value))
            return await super().put(unit, locale, content, ref, based_on=based_on)
        finally:
            self.in_flight[key] -= 1


class InterferingStore(InMemoryStore):
    """第一次写入前，模拟另一个进程抢先提交了同一文件。"""

    def __init__(self, competing_payload: dict) -> None:
        super().__init__()
        self.competing_payload = competing_payload
        self.put_calls = 0

    async def put(
        self,
        unit: str,
        locale: str,
        content: PersistedFile,
        ref: Optional[str] = None,
        *,
        based_on: Optional[PersistedFile] = None,
    ) -> bool:
        self.put_calls += 1
        if self.put_calls == 1:
            self.seed(unit, locale, self.competing_payload, ref)
        return await super().put(unit, locale, content, ref, based_on=based_on)


def _seed_clean_stats(cache: DerivedStatsCache, *units: str) -> None:
    for unit in units:
        cache.set(TEST_LOCALE, unit, "stats", now=0)


def _is_dirty(cache: DerivedStatsCache, unit: str) -> bool:
    entry = cache.entry(TEST_LOCALE, unit)
    return entry is not None and entry.is_dirty


@pytest.mark.asyncio
async def test_submit_writes_every_changed_unit(
    coordinator: SubmissionCoordinator,
    store: InMemoryStore,
    stats_cache: DerivedStatsCache,
) -> None:
    store.seed(TEST_SIM, TEST_LOCALE, hola_payload())
    _seed_clean_stats(stats_cache, TEST_SIM, TEST_SHARED_UNIT)

    result = await coordinator.submit(
        create_submission(
            per_unit_values={
                TEST_SIM: {"greeting": "Hola amigo"},
                TEST_SHARED_UNIT: {"ok": "Vale"},
            }
        )
    )

    assert result.units_to_write == {TEST_SIM, TEST_SHARED_UNIT}
    assert result.units_written == {TEST_SIM, TEST_SHARED_UNIT}
    assert result.all_requested_units_written
    stored = store.snapshot(TEST_SIM, TEST_LOCALE)
    assert stored is not None and stored["greeting"]["value"] == "Hola amigo"
    assert _is_dirty(stats_cache, TEST_SIM)
    assert _is_dirty(stats_cache, TEST_SHARED_UNIT)


@pytest.mark.asyncio
async def test_unchanged_submission_writes_nothing(
    coordinator: SubmissionCoordinator,
    store: InMemoryStore,
    stats_cache: DerivedStatsCache,
) -> None:
    store.seed(TEST_SIM, TEST_LOCALE, hola_payload())
    _seed_clean_stats(stats_cache, TEST_SIM)

    result = await coordinator.submit(
        create_submission(per_unit_values={TEST_SIM: {"greeting": "Hola"}})
    )

    assert result.units_to_write == frozenset()
    assert result.all_requested_units_written
    assert store.commits == []
    # 主单元总会被标记，报告中显示“待更新”
    assert _is_dirty(stats_cache, TEST_SIM)


@pytest.mark.asyncio
async def test_only_shared_strings_still_marks_primary_unit(
    coordinator: SubmissionCoordinator, stats_cache: DerivedStatsCache
) -> None:
    _seed_clean_stats(stats_cache, TEST_SIM, TEST_SHARED_UNIT)

    result = await coordinator.submit(
        create_submission(per_unit_values={TEST_SHARED_UNIT: {"ok": "Vale"}})
    )

    assert result.units_written == {TEST_SHARED_UNIT}
    assert _is_dirty(stats_cache, TEST_SIM)


@pytest.mark.asyncio
async def test_source_locale_is_rejected(coordinator: SubmissionCoordinator) -> None:
    with pytest.raises(ContractViolationError):
        await coordinator.submit(
            create_submission(locale="en", per_unit_values={TEST_SIM: {"a": "b"}})
        )


@pytest.mark.asyncio
async def test_a11y_keys_are_ignored_by_default(
    coordinator: SubmissionCoordinator, store: InMemoryStore
) -> None:
    payload = hola_payload()
    payload["a11y.label"] = {"value": "Etiqueta", "history": []}
    store.seed(TEST_SIM, TEST_LOCALE, payload)

    await coordinator.submit(
        create_submission(
            per_unit_values={
                TEST_SIM: {
                    "greeting": "Hola amigo",
                    "a11y.label": "Cambiado",
                    "a11y.hint": "Nuevo",
                }
            }
        )
    )

    stored = store.snapshot(TEST_SIM, TEST_LOCALE)
    assert stored is not None
    assert stored["a11y.label"]["value"] == "Etiqueta"
    assert "a11y.hint" not in stored
    assert stored["greeting"]["value"] == "Hola amigo"


@pytest.mark.asyncio
async def test_a11y_keys_are_merged_when_enabled(
    store: InMemoryStore, stats_cache: DerivedStatsCache
) -> None:
    config = TransVaultConfig(
        include_a11y_keys=True, store=StoreSettings(conflict_retry_delay=0)
    )
    coordinator = make_coordinator(store, stats_cache, config)

    await coordinator.submit(
        create_submission(per_unit_values={TEST_SIM: {"a11y.hint": "Nuevo"}})
    )

    stored = store.snapshot(TEST_SIM, TEST_LOCALE)
    assert stored is not None and stored["a11y.hint"]["value"] == "Nuevo"


@pytest.mark.asyncio
async def test_disabled_commits_mark_would_be_written_units(
    stats_cache: DerivedStatsCache,
) -> None:
    config = TransVaultConfig(
        perform_string_commits=False, store=StoreSettings(conflict_retry_delay=0)
    )
    store = InMemoryStore(perform_string_commits=False)
    coordinator = make_coordinator(store, stats_cache, config)
    _seed_clean_stats(stats_cache, TEST_SIM, TEST_SHARED_UNIT)

    result = await coordinator.submit(
        create_submission(per_unit_values={TEST_SHARED_UNIT: {"ok": "Vale"}})
    )

    assert result.units_to_write == {TEST_SHARED_UNIT}
    assert result.units_written == frozenset()
    assert not result.all_requested_units_written
    assert store.commits == []
    assert _is_dirty(stats_cache, TEST_SHARED_UNIT)
    assert _is_dirty(stats_cache, TEST_SIM)


@pytest.mark.asyncio
async def test_failed_unit_does_not_abort_others(
    config: TransVaultConfig, stats_cache: DerivedStatsCache
) -> None:
    store = RecordingStore(failing_units=frozenset({TEST_SHARED_UNIT}))
    coordinator = make_coordinator(store, stats_cache, config)
    _seed_clean_stats(stats_cache, TEST_SIM, TEST_SHARED_UNIT)

    result = await coordinator.submit(
        create_submission(
            per_unit_values={
                TEST_SIM: {"greeting": "Hola"},
                TEST_SHARED_UNIT: {"ok": "Vale"},
            }
        )
    )

    assert result.units_written == {TEST_SIM}
    assert not result.all_requested_units_written
    assert _is_dirty(stats_cache, TEST_SIM)
    assert not _is_dirty(stats_cache, TEST_SHARED_UNIT)


@pytest.mark.asyncio
async def test_unexpected_store_error_is_contained(
    config: TransVaultConfig, stats_cache: DerivedStatsCache, mocker
) -> None:
    store = InMemoryStore()
    mocker.patch.object(store, "put", side_effect=RuntimeError("boom"))
    coordinator = make_coordinator(store, stats_cache, config)

    result = await coordinator.submit(
        create_submission(per_unit_values={TEST_SIM: {"greeting": "Hola"}})
    )

    assert result.units_written == frozenset()
    assert not result.all_requested_units_written


@pytest.mark.asyncio
async def test_concurrent_submissions_serialize_writes_per_unit(
    config: TransVaultConfig, stats_cache: DerivedStatsCache
) -> None:
    store = RecordingStore()
    store.seed(TEST_SIM, TEST_LOCALE, hola_payload())
    coordinator = make_coordinator(store, stats_cache, config)

    results = await asyncio.gather(
        *(
            coordinator.submit(
                create_submission(
                    per_unit_values={TEST_SIM: {"greeting": f"Hola {n}"}},
                    timestamp=200 + n,
                )
            )
            for n in range(4)
        )
    )

    assert store.max_in_flight == 1
    assert all(r.all_requested_units_written for r in results)
    assert [value for _, _, value in store.put_order] == [f"Hola {n}" for n in range(4)]
    assert len(store.commits) == 4
    stored = store.snapshot(TEST_SIM, TEST_LOCALE)
    assert stored is not None
    history = stored["greeting"]["history"]
    assert len(history) == 5
    # 每次编辑都基于前一次已提交的值
    assert [(h["oldValue"], h["newValue"]) for h in history] == [
        ("", "Hola"),
        ("Hola", "Hola 0"),
        ("Hola 0", "Hola 1"),
        ("Hola 1", "Hola 2"),
        ("Hola 2", "Hola 3"),
    ]
    assert stored["greeting"]["value"] == "Hola 3"


@pytest.mark.asyncio
async def test_concurrent_submissions_keep_each_others_shared_keys(
    coordinator: SubmissionCoordinator, store: InMemoryStore
) -> None:
    results = await asyncio.gather(
        coordinator.submit(
            create_submission(
                primary_unit="sim-a",
                per_unit_values={TEST_SHARED_UNIT: {"a.key": "uno"}},
            )
        ),
        coordinator.submit(
            create_submission(
                primary_unit="sim-b",
                per_unit_values={TEST_SHARED_UNIT: {"b.key": "dos"}},
            )
        ),
    )

    assert all(r.units_written == {TEST_SHARED_UNIT} for r in results)
    stored = store.snapshot(TEST_SHARED_UNIT, TEST_LOCALE)
    assert stored is not None
    assert sorted(stored) == ["a.key", "b.key"]
    assert len(store.commits) == 2


@pytest.mark.asyncio
async def test_write_based_on_stale_read_is_remerged(
    config: TransVaultConfig, stats_cache: DerivedStatsCache
) -> None:
    store = InterferingStore(
        competing_payload={
            "title": {
                "value": "Título",
                "history": [
                    {"userId": 9, "timestamp": 150, "oldValue": "", "newValue": "Título"}
                ],
            }
        }
    )
    coordinator = make_coordinator(store, stats_cache, config)

    result = await coordinator.submit(
        create_submission(per_unit_values={TEST_SIM: {"greeting": "Hola"}})
    )

    assert result.units_written == {TEST_SIM}
    assert store.put_calls == 2
    stored = store.snapshot(TEST_SIM, TEST_LOCALE)
    assert stored is not None
    assert stored["title"]["value"] == "Título"
    assert stored["greeting"]["value"] == "Hola"


@pytest.mark.asyncio
async def test_failed_write_without_conflict_is_not_retried(
    config: TransVaultConfig, stats_cache: DerivedStatsCache
) -> None:
    store = RecordingStore(failing_units=frozenset({TEST_SIM}))
    coordinator = make_coordinator(store, stats_cache, config)

    result = await coordinator.submit(
        create_submission(per_unit_values={TEST_SIM: {"greeting": "Hola"}})
    )

    assert result.units_to_write == {TEST_SIM}
    assert result.units_written == frozenset()
    assert store.put_order == []
    assert store.commits == []


@pytest.mark.asyncio
async def test_malformed_submission_propagates(
    coordinator: SubmissionCoordinator, mocker
) -> None:
    translation = create_submission(per_unit_values={TEST_SIM: {"greeting": "Hola"}})
    mocker.patch.object(
        translation.__class__, "values_for", return_value={"greeting": 42}
    )
    with pytest.raises(ContractViolationError):
        await coordinator.submit(translation)
