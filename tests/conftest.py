import matplotlib

matplotlib.use("Agg")

import pytest

from shelf_planner.data_processing.repository import InMemoryRepository, Repositories
from shelf_planner.models.fixture import Fixture, FixtureSlot, FixtureType, Store, StoreCapacity, StoreFixturePlacement
from shelf_planner.models.planogram import Block, Placement, StandardPlanogram
from shelf_planner.models.product import Product, ProductCatalog


@pytest.fixture
def products():
    return [
        Product("A", "A", width=20, sales_rank=5, category="snacks"),
        Product("B", "B", width=20, sales_rank=80, category="snacks"),
        Product("C", "C", width=20, sales_rank=1, category="drinks"),
        Product("D", "D", width=40, sales_rank=2, category="drinks"),
        Product("E", "E", width=40, sales_rank=3, category="drinks"),
        Product("F", "F", width=20, sales_rank=4, category="dairy"),
        Product("G", "G", width=80, sales_rank=9, category="dairy"),
        Product("H", "H", width=79, sales_rank=6, category="dairy"),
        Product("S", "S", width=10, sales_rank=50, category="snacks"),
    ]


@pytest.fixture
def catalog(products):
    return ProductCatalog(products)


@pytest.fixture
def make_standard():
    def _make(placements, width=100.0, shelf_count=3, height=150.0, blocks=()):
        return StandardPlanogram(
            id="std-1",
            fmt="SMART",
            fixture_type=FixtureType.MULTI_TIER,
            width=width,
            height=height,
            shelf_count=shelf_count,
            name="SMART standard",
            blocks=blocks,
            placements=placements,
        )
    return _make


@pytest.fixture
def make_capacity():
    def _make(width, shelf_count=3, height=150.0, store_id="S001"):
        slots = (FixtureSlot(slot_id=f"{store_id}-1", fixture_id="FX1", width=width,
                             height=height, shelf_count=shelf_count),) if width > 0 else ()
        return StoreCapacity(
            store_id=store_id,
            fixture_type=FixtureType.MULTI_TIER,
            width=width,
            height=height,
            shelf_count=shelf_count,
            slots=slots,
        )
    return _make


@pytest.fixture
def blocks():
    return [
        Block("blk-drinks", "Drinks", width=60, height=150, shelf_count=2, placements=[
            Placement("C", 0, position_x=0, face_count=1),
            Placement("D", 0, position_x=20, face_count=1),
            Placement("F", 1, position_x=0, face_count=2),
        ]),
        Block("blk-snacks", "Snacks", width=40, height=150, shelf_count=2, placements=[
            Placement("A", 0, position_x=0, face_count=1),
            Placement("B", 1, position_x=0, face_count=1),
        ]),
        Block("blk-wide", "Wide", width=200, height=150, shelf_count=1, placements=[
            Placement("G", 0, position_x=0, face_count=2),
        ]),
    ]


@pytest.fixture
def repositories(products, blocks):
    """SMART stores with 120cm and 40cm of multi-tier, one with only a chiller, one MEGA store"""
    fixtures = [
        Fixture("FX60", "Gondola 60", width=60, height=150, shelf_count=3),
        Fixture("FX40", "Gondola 40", width=40, height=150, shelf_count=3),
        Fixture("FR90", "Open chiller", width=90, height=100, shelf_count=2,
                fixture_type=FixtureType.FLAT_REFRIGERATED),
    ]
    stores = [
        Store("S001", "Base store", "SMART"),
        Store("S002", "Small store", "SMART"),
        Store("S003", "Chiller only", "SMART"),
        Store("S100", "Mega store", "MEGA"),
    ]
    store_fixtures = [
        StoreFixturePlacement("sf-1", "S001", "FX60", order=0),
        StoreFixturePlacement("sf-2", "S001", "FX60", position_x=60, order=1),
        StoreFixturePlacement("sf-3", "S002", "FX40", order=0),
        StoreFixturePlacement("sf-5", "S003", "FR90", order=0),
        StoreFixturePlacement("sf-6", "S100", "FX60", order=0),
    ]
    return Repositories(
        products=InMemoryRepository('product_id', products),
        stores=InMemoryRepository('store_id', stores),
        fixtures=InMemoryRepository('fixture_id', fixtures),
        store_fixtures=InMemoryRepository('id', store_fixtures),
        blocks=InMemoryRepository('block_id', blocks),
        standards=InMemoryRepository('id'),
        store_planograms=InMemoryRepository('id'),
    )
