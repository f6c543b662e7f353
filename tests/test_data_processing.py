import json

import pytest

from shelf_planner.data_processing.data_loader import DataLoader
from shelf_planner.data_processing.data_transformer import DataTransformer
from shelf_planner.data_processing.data_validator import DataValidator
from shelf_planner.models.fixture import Fixture, FixtureType, Store, StoreFixturePlacement
from shelf_planner.models.planogram import Block, Placement, StorePlacement, StorePlanogram
from shelf_planner.models.product import Product
from shelf_planner.utils.error_handler import CapacityError, ConfigurationError, DataLoadError


def write_catalog(path):
    (path / "products.csv").write_text(
        "product_id,name,width,sales_rank,category,jan\n"
        "001,Green tea,7.5,1,drinks,4901234567894\n"
        "002,Rice crackers,12,2,snacks,\n"
        "003,Broken,abc,3,snacks,\n",
        encoding="utf-8",
    )
    (path / "fixtures.csv").write_text(
        "fixture_id,name,width,height,shelf_count,fixture_type\n"
        "FX90,Gondola 90,90,180,5,multi-tier\n"
        "FR120,Open chiller,120,90,2,flat-refrigerated\n"
        "FX60,Gondola 60,60,180,4,\n",
        encoding="utf-8",
    )
    (path / "stores.csv").write_text(
        "store_id,name,fmt,code,region\n"
        "S001,Shibuya,SMART,0101,Kanto\n",
        encoding="utf-8",
    )
    (path / "store_fixtures.csv").write_text(
        "id,store_id,fixture_id,position_x,position_y,order\n"
        "sf-1,S001,FX90,0,0,0\n"
        "sf-2,S001,FR120,90,0,1\n",
        encoding="utf-8",
    )
    (path / "blocks.json").write_text(json.dumps([
        {"block_id": "blk-1", "name": "Tea", "width": 30, "height": 180, "shelf_count": 1,
         "placements": [{"product_id": "001", "shelf_index": 0, "position_x": 0, "face_count": 2}]},
    ]), encoding="utf-8")


def test_loader_reads_catalog(tmp_path):
    write_catalog(tmp_path)
    loader = DataLoader(tmp_path)

    products = loader.load_products()
    assert [p.product_id for p in products] == ["001", "002"]
    assert products[0].width == 7.5
    assert products[0].jan == "4901234567894"

    fixtures = loader.load_fixtures()
    assert [f.fixture_type for f in fixtures] == [
        FixtureType.MULTI_TIER, FixtureType.FLAT_REFRIGERATED, FixtureType.MULTI_TIER,
    ]
    assert fixtures[0].shelf_count == 5

    blocks = loader.load_blocks()
    assert blocks[0].placements[0].face_count == 2
    assert loader.load_standard_planograms() == []
    assert loader.get_available_formats() == ["SMART"]


def test_loader_builds_repositories(tmp_path):
    write_catalog(tmp_path)
    repos = DataLoader(tmp_path).load_repositories()

    assert len(repos.products) == 2
    assert len(repos.store_fixtures) == 2
    assert len(repos.store_planograms) == 0


def test_store_layouts_survive_save_and_load(tmp_path):
    write_catalog(tmp_path)
    loader = DataLoader(tmp_path)
    planogram = StorePlanogram(
        id="sp-1", store_id="S001", standard_planogram_id="std-1", width=90, height=180, shelf_count=5,
        placements=[StorePlacement("001", 0, face_count=2, is_auto_generated=False)],
        warnings=["removed 002 due to insufficient space"],
    )

    loader.save_store_planograms([planogram])

    assert loader.load_store_planograms() == [planogram]



def test_standard_layouts_survive_save_and_load(tmp_path, make_standard):
    write_catalog(tmp_path)
    loader = DataLoader(tmp_path)
    standard = make_standard([Placement("001", 0, face_count=2), Placement("002", 1, position_x=5)])

    path = loader.save_standard_planograms([standard])

    assert path.name == "standard_planograms.json"
    assert loader.load_standard_planograms() == [standard]

def test_missing_required_file(tmp_path):
    write_catalog(tmp_path)
    (tmp_path / "stores.csv").unlink()
    with pytest.raises(DataLoadError):
        DataLoader(tmp_path)


def test_missing_columns(tmp_path):
    write_catalog(tmp_path)
    (tmp_path / "products.csv").write_text("product_id,name\n001,Tea\n", encoding="utf-8")
    with pytest.raises(DataLoadError):
        DataLoader(tmp_path).load_products()


def test_store_capacity_filters_type_and_orders_slots():
    fixtures = [
        Fixture("FX90", "Gondola 90", 90, 180, 5),
        Fixture("FX60", "Gondola 60", 60, 150, 4),
        Fixture("FR120", "Chiller", 120, 90, 2, FixtureType.FLAT_REFRIGERATED),
    ]
    placements = [
        StoreFixturePlacement("sf-2", "S001", "FX60", order=2),
        StoreFixturePlacement("sf-1", "S001", "FX90", order=1),
        StoreFixturePlacement("sf-3", "S001", "FR120", order=0),
        StoreFixturePlacement("sf-4", "S001", "FX90", order=3),
        StoreFixturePlacement("sf-9", "S999", "FX90", order=0),
    ]
    capacity = DataTransformer().store_capacity("S001", FixtureType.MULTI_TIER, placements, fixtures)

    assert [s.slot_id for s in capacity.slots] == ["sf-1", "sf-2", "sf-4"]
    assert capacity.width == 240
    assert capacity.height == 180
    assert capacity.shelf_count == 5


def test_build_standard_planogram_defaults():
    transformer = DataTransformer()
    capacity = transformer.store_capacity(
        "S001", FixtureType.MULTI_TIER,
        [StoreFixturePlacement("sf-1", "S001", "FX", order=0)],
        [Fixture("FX", "Bare", 90, 0, 0)],
    )
    standard = transformer.build_standard_planogram("SMART", FixtureType.MULTI_TIER, capacity)

    assert standard.width == 90
    assert standard.height == 180
    assert standard.shelf_count == 5
    assert standard.name == "SMART standard"

    empty = transformer.store_capacity("S002", FixtureType.MULTI_TIER, [], [])
    with pytest.raises(CapacityError):
        transformer.build_standard_planogram("SMART", FixtureType.MULTI_TIER, empty)


def test_find_standard(make_standard):
    standard = make_standard([])
    assert DataTransformer.find_standard([standard], "SMART", FixtureType.MULTI_TIER) is standard
    with pytest.raises(ConfigurationError):
        DataTransformer.find_standard([standard], "SMART", FixtureType.FLAT_FROZEN)


def test_shelf_summary(catalog):
    planogram = StorePlanogram(
        id="sp-1", store_id="S001", standard_planogram_id="std-1", width=100, height=150, shelf_count=3,
        placements=[StorePlacement("A", 0), StorePlacement("D", 0, position_x=20, face_count=2)],
    )
    summary = DataTransformer.shelf_summary(planogram, catalog)

    assert summary['shelf'].tolist() == [1, 2, 3]
    assert summary['used_width'].tolist() == [100, 0, 0]
    assert summary['empty_width'].tolist() == [0, 100, 100]


def test_validator_flags_bad_products():
    validator = DataValidator()
    is_valid, issues = validator.validate_products([
        Product("1", "Tea", width=7, sales_rank=1),
        Product("1", "Tea again", width=7, sales_rank=2),
        Product("2", "Flat", width=0, sales_rank=0),
    ])

    assert not is_valid
    assert any("Duplicate product IDs" in i for i in issues)
    assert any("Invalid width" in i for i in issues)
    assert any("Sales rank" in i for i in issues)
    assert "ERRORS" in validator.generate_validation_report()


def test_validator_checks_blocks_against_catalog(catalog):
    block = Block("blk", "Crowded", width=30, height=150, shelf_count=1, placements=[
        Placement("A", 0, face_count=2),
        Placement("ghost", 0, position_x=40),
    ])
    is_valid, issues = DataValidator().validate_blocks([block], catalog)

    assert is_valid
    assert any("unknown product ghost" in i for i in issues)
    assert any("shelf 1 uses 40cm of 30cm" in i for i in issues)


def test_validator_checks_references():
    validator = DataValidator()
    is_valid, issues = validator.validate_store_fixtures(
        [StoreFixturePlacement("sf-1", "S404", "FX404")],
        [Store("S001", "Shibuya", "SMART")],
        [Fixture("FX90", "Gondola", 90, 180, 5)],
    )
    assert not is_valid
    assert len(issues) == 2

    is_valid, issues = validator.validate_stores([Store("S001", "Shibuya", "TINY")])
    assert is_valid
    assert issues == ["Store Shibuya: unknown format TINY"]
    assert "All validations passed" not in validator.generate_validation_report()


def test_validator_checks_standard_rows(catalog, make_standard):
    validator = DataValidator()
    is_valid, issues = validator.validate_standard(make_standard([
        Placement("A", 0, face_count=2),
        Placement("G", 0, position_x=40),
        Placement("ghost", 1),
    ]), catalog)

    assert not is_valid
    assert "SMART standard: shelf 1 overflows by 20cm" in issues
    assert "SMART standard: unknown product ghost" in issues

    is_valid, issues = validator.validate_standard(make_standard([Placement("A", 0)]), catalog)
    assert is_valid and issues == []
