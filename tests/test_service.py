import asyncio

import pytest

from shelf_planner.models.fixture import FixtureType
from shelf_planner.models.planogram import PlanogramStatus
from shelf_planner.reconciliation.service import PlanogramService
from shelf_planner.utils.error_handler import (
    CapacityError,
    ConfigurationError,
    DuplicatePlanogramError,
    NoSpaceError,
    ValidationError,
)


def run(coro):
    return asyncio.run(coro)


def signature(planogram):
    return sorted((p.product_id, p.shelf_index, p.position_x, p.face_count) for p in planogram.placements)


@pytest.fixture
def service(repositories):
    return PlanogramService(repositories)


@pytest.fixture
def standard(service):
    """120cm SMART standard with the drinks and snacks blocks side by side"""
    async def build():
        created = await service.create_standard("SMART", FixtureType.MULTI_TIER, "S001")
        await service.insert_block(created.id, "blk-drinks")
        return await service.insert_block(created.id, "blk-snacks")
    return run(build())


def test_create_standard_sized_from_base_store(service, standard):
    assert standard.width == 120
    assert standard.height == 150
    assert standard.shelf_count == 3
    assert standard.base_store_id == "S001"
    assert [(r.block_id, r.position_x) for r in standard.blocks] == [("blk-drinks", 0.0), ("blk-snacks", 60.0)]

    stored = run(service.repos.standards.get_by_id(standard.id))
    assert stored == standard


def test_second_standard_for_same_format_rejected(service, standard):
    with pytest.raises(ValidationError):
        run(service.create_standard("SMART", FixtureType.MULTI_TIER, "S002"))


def test_insert_without_space_leaves_standard_untouched(service, standard):
    with pytest.raises(NoSpaceError):
        run(service.insert_block(standard.id, "blk-wide"))

    stored = run(service.repos.standards.get_by_id(standard.id))
    assert len(stored.blocks) == 2
    assert len(stored.placements) == 5



def test_clear_standard_empties_blocks_and_placements(service, standard):
    cleared = run(service.clear_standard(standard.id))

    assert cleared.blocks == () and cleared.placements == ()
    assert cleared.width == standard.width
    assert run(service.repos.standards.get_by_id(standard.id)) == cleared

    reinserted = run(service.insert_block(standard.id, "blk-snacks"))
    assert [(r.block_id, r.position_x) for r in reinserted.blocks] == [("blk-snacks", 0.0)]

def test_generate_matching_width(service, standard):
    planogram = run(service.generate("S001", standard.id))

    assert planogram.status == PlanogramStatus.GENERATED
    assert planogram.width == 120
    assert signature(planogram) == sorted(
        (p.product_id, p.shelf_index, p.position_x, p.face_count) for p in standard.placements
    )
    assert run(service.repos.store_planograms.get_by_id(planogram.id)) == planogram


def test_generate_narrow_store_cuts(service, standard):
    planogram = run(service.generate("S002", standard.id))

    assert planogram.status == PlanogramStatus.WARNING
    assert planogram.width == 40
    assert planogram.warnings == (
        "removed B due to insufficient space",
        "removed A due to insufficient space",
        "removed D due to insufficient space",
    )
    assert signature(planogram) == [("C", 0, 0.0, 1), ("F", 1, 0.0, 2)]


def test_generate_twice_is_refused(service, standard):
    run(service.generate("S001", standard.id))
    with pytest.raises(DuplicatePlanogramError):
        run(service.generate("S001", standard.id))


def test_store_without_matching_fixtures(service, standard):
    with pytest.raises(CapacityError):
        run(service.generate("S003", standard.id))
    assert run(service.repos.store_planograms.get_all()) == []


def test_no_standard_for_format(service, standard):
    with pytest.raises(ConfigurationError):
        run(service.generate_for_store("S100"))


def test_sync_discards_manual_edits(service, standard):
    fresh = run(service.generate("S001", standard.id))
    target = next(p for p in fresh.placements if p.product_id == "C")
    edited = run(service.change_face_count(fresh.id, target.id, 3))
    assert any(not p.is_auto_generated for p in edited.placements)

    synced = run(service.sync(fresh.id))

    assert synced.id == fresh.id
    assert synced.created_at == fresh.created_at
    assert synced.status == PlanogramStatus.SYNCED
    assert synced.synced_at is not None
    assert signature(synced) == signature(fresh)
    assert all(p.is_auto_generated for p in synced.placements)
    assert run(service.repos.store_planograms.get_by_id(fresh.id)) == synced


def test_sync_picks_up_standard_changes(service, standard):
    fresh = run(service.generate("S001", standard.id))
    snacks = next(r for r in standard.blocks if r.block_id == "blk-snacks")
    run(service.remove_block(standard.id, snacks.id))

    synced = run(service.sync(fresh.id))

    assert {p.product_id for p in synced.placements} == {"C", "D", "F"}


def test_remove_placement_persists(service, standard):
    fresh = run(service.generate("S001", standard.id))
    target = next(p for p in fresh.placements if p.product_id == "C")

    run(service.remove_placement(fresh.id, target.id))

    stored = run(service.repos.store_planograms.get_by_id(fresh.id))
    assert "C" not in {p.product_id for p in stored.placements}
    assert next(p for p in stored.placements if p.product_id == "D").position_x == 0


def test_batch_generate_isolates_failures(service, standard):
    progress = []
    results = run(service.batch_generate("SMART", lambda i, total, r: progress.append((i, total))))

    assert [(r.store_id, r.status) for r in results] == [
        ("S001", PlanogramStatus.GENERATED),
        ("S002", PlanogramStatus.WARNING),
        ("S003", PlanogramStatus.ERROR),
    ]
    assert progress == [(1, 3), (2, 3), (3, 3)]
    assert len(run(service.repos.store_planograms.get_all())) == 2

    # A second run leaves existing layouts to sync
    again = run(service.batch_generate("SMART"))
    assert all(r.status == PlanogramStatus.ERROR for r in again)


def test_batch_without_standard(service):
    with pytest.raises(ConfigurationError):
        run(service.batch_generate("GO"))
