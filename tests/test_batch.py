import asyncio

from shelf_planner.models.fixture import FixtureType, Store
from shelf_planner.models.planogram import PlanogramStatus, StandardPlanogram, StorePlanogram
from shelf_planner.reconciliation.batch import BatchOrchestrator, pairs_for
from shelf_planner.utils.error_handler import CapacityError


STANDARD = StandardPlanogram(id="std-1", fmt="SMART", fixture_type=FixtureType.MULTI_TIER,
                             width=100, height=150, shelf_count=3)
STORES = [Store("S1", "First", "SMART"), Store("S2", "Broken", "SMART"), Store("S3", "Third", "SMART")]


async def fake_generate(standard, store):
    if store.store_id == "S2":
        raise CapacityError(f"Store {store.store_id} has no multi-tier fixtures")
    status = PlanogramStatus.WARNING if store.store_id == "S3" else PlanogramStatus.GENERATED
    warnings = ["removed B due to insufficient space"] if status == PlanogramStatus.WARNING else []
    return StorePlanogram(id=f"sp-{store.store_id}", store_id=store.store_id,
                          standard_planogram_id=standard.id, width=90, height=150, shelf_count=3,
                          status=status, warnings=warnings)


def test_failures_are_isolated_and_order_kept():
    progress = []
    results = asyncio.run(BatchOrchestrator(fake_generate).run(
        STANDARD, STORES, lambda i, total, result: progress.append((i, total, result.store_id))
    ))

    assert [r.store_id for r in results] == ["S1", "S2", "S3"]
    assert [r.status for r in results] == [PlanogramStatus.GENERATED, PlanogramStatus.ERROR, PlanogramStatus.WARNING]
    assert "no multi-tier fixtures" in results[1].message
    assert results[1].planogram_id is None
    assert results[2].message == "1 warnings: removed B due to insufficient space"
    assert results[0].planogram_id == "sp-S1"
    assert progress == [(1, 3, "S1"), (2, 3, "S2"), (3, 3, "S3")]


def test_consumer_can_stop_early():
    calls = []

    async def counting_generate(standard, store):
        calls.append(store.store_id)
        return await fake_generate(standard, store)

    async def first_only():
        async for result in BatchOrchestrator(counting_generate).stream(STANDARD, STORES):
            return result

    result = asyncio.run(first_only())
    assert result.store_id == "S1"
    assert calls == ["S1"]


def test_pairs_cover_cross_product():
    other = StandardPlanogram(id="std-2", fmt="SMART", fixture_type=FixtureType.FLAT_FROZEN,
                              width=90, height=100, shelf_count=2)
    pairs = pairs_for([STANDARD, other], STORES[:2])

    assert [(s.id, store.store_id) for s, store in pairs] == [
        ("std-1", "S1"), ("std-1", "S2"), ("std-2", "S1"), ("std-2", "S2"),
    ]
