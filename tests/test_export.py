import json

import matplotlib.pyplot as plt
import pandas as pd

from shelf_planner.layout.block_allocator import BlockAllocator
from shelf_planner.models.fixture import FixtureSlot
from shelf_planner.models.planogram import (
    GenerationResult,
    PlanogramStatus,
    StorePlacement,
    StorePlanogram,
)
from shelf_planner.reconciliation.engine import ReconciliationEngine
from shelf_planner.visualization.export_handler import ExportHandler
from shelf_planner.visualization.planogram_visualizer import PlanogramVisualizer


def _store_planogram():
    return StorePlanogram(
        id="sp-1", store_id="S001", standard_planogram_id="std-1", width=60, height=150, shelf_count=2,
        placements=[
            StorePlacement("A", 0, position_x=0),
            StorePlacement("D", 0, position_x=20, face_count=2),
            StorePlacement("C", 1, position_x=0, is_auto_generated=False),
        ],
        status=PlanogramStatus.WARNING,
        warnings=["removed B due to insufficient space", "reduced facing for D (3 -> 2)"],
    )


def test_json_export_includes_names_and_usage(tmp_path, catalog):
    path = ExportHandler(tmp_path).export_to_json(_store_planogram(), catalog, "layout.json")

    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    assert data["metadata"]["status"] == "warning"
    assert data["metadata"]["fixture_type"] == "multi-tier"
    first, second = data["shelves"]
    assert first["used_width"] == 100
    assert first["empty_width"] == -40
    assert first["overflowing"] is True
    assert [p["product_name"] for p in first["products"]] == ["A", "D"]
    assert second["products"][0]["is_auto_generated"] is False
    assert data["warning_summary"]["removed"] == 1
    assert data["warning_summary"]["reduced"] == 1


def test_csv_export(tmp_path, catalog):
    positions, shelves = ExportHandler(tmp_path).export_to_csv(_store_planogram(), catalog, "sp")

    frame = pd.read_csv(positions)
    assert frame["product_id"].tolist() == ["A", "D", "C"]
    assert pd.read_csv(shelves)["shelf"].tolist() == [1, 2]


def test_batch_results_export(tmp_path):
    results = [
        GenerationResult("S1", "First", PlanogramStatus.GENERATED, "3 placements generated", "sp-1", "std-1"),
        GenerationResult("S2", "Second", PlanogramStatus.ERROR, "No standard layout", None, "std-1"),
        GenerationResult("S3", "Third", PlanogramStatus.GENERATED, "2 placements generated", "sp-3", "std-1"),
    ]
    csv_path, json_path = ExportHandler(tmp_path / "out").export_batch_results(results, "smart")

    assert pd.read_csv(csv_path)["status"].tolist() == ["generated", "error", "generated"]
    with open(json_path, encoding="utf-8") as f:
        summary = json.load(f)
    assert summary["total"] == 3
    assert summary["by_status"] == {"generated": 2, "error": 1}


def test_render_store_layout(tmp_path, catalog):
    slots = [FixtureSlot("sf-1", "FX30", 30), FixtureSlot("sf-2", "FX30", 30)]
    path = tmp_path / "store.png"

    fig = PlanogramVisualizer().visualize_store_planogram(_store_planogram(), catalog, slots, save_path=str(path))
    plt.close(fig)

    assert path.exists()


def test_render_standard_and_comparison(tmp_path, catalog, blocks, make_standard, make_capacity):
    allocator = BlockAllocator(blocks, catalog)
    standard = allocator.insert_block(make_standard([], width=120), "blk-drinks")
    standard = allocator.insert_block(standard, "blk-snacks")
    planogram = ReconciliationEngine(catalog).generate(standard, make_capacity(90))
    lookup = {b.block_id: b for b in blocks}
    slots = [FixtureSlot("sf-1", "FX90", 90), FixtureSlot("sf-2", "FX30", 30)]

    visualizer = PlanogramVisualizer(figsize=(10, 6))
    fig = visualizer.visualize_standard_planogram(standard, catalog, lookup, slots,
                                                  save_path=str(tmp_path / "standard.png"))
    plt.close(fig)
    fig = visualizer.create_comparison_view(standard, planogram, catalog, save_path=str(tmp_path / "compare.png"))
    plt.close(fig)

    assert (tmp_path / "standard.png").exists()
    assert (tmp_path / "compare.png").exists()
