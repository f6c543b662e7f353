import json
import pandas as pd
from pathlib import Path
from typing import Any, Dict, List, Sequence, Union
from datetime import datetime
from enum import Enum

from shelf_planner.data_processing.data_transformer import DataTransformer
from shelf_planner.layout.packing import row_usage
from shelf_planner.models.planogram import GenerationResult, StorePlanogram
from shelf_planner.models.product import ProductCatalog
from shelf_planner.reconciliation.engine import summarize_warnings
from shelf_planner.utils.logger import get_logger


def _recursive_convert(obj: Any) -> Any:
    """
    Recursively convert:
    - Dict keys that are Enums to their .value
    - Enum values to .value
    - Tuples to lists
    """
    if isinstance(obj, dict):
        new_dict = {}
        for k, v in obj.items():
            new_key = k.value if isinstance(k, Enum) else k
            new_dict[new_key] = _recursive_convert(v)
        return new_dict
    elif isinstance(obj, (list, tuple)):
        return [_recursive_convert(item) for item in obj]
    elif isinstance(obj, Enum):
        return obj.value
    else:
        return obj


class ExportHandler:
    """Write store layouts and batch reports to disk"""

    def __init__(self, output_dir: Union[str, Path] = "output"):
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.logger = get_logger()

    def planogram_to_dict(self, planogram: StorePlanogram, catalog: ProductCatalog) -> Dict:
        """Store layout with product names and per-shelf usage"""
        export_data = {
            'metadata': {
                'exported_at': datetime.now().isoformat(),
                'planogram_id': planogram.id,
                'store_id': planogram.store_id,
                'standard_planogram_id': planogram.standard_planogram_id,
                'fixture_type': planogram.fixture_type,
                'status': planogram.status,
                'updated_at': planogram.updated_at,
                'synced_at': planogram.synced_at,
            },
            'dimensions': {
                'width': planogram.width,
                'height': planogram.height,
                'shelf_count': planogram.shelf_count,
            },
            'shelves': [],
            'warnings': planogram.warnings,
            'warning_summary': summarize_warnings(planogram),
        }

        for usage in row_usage(planogram.placements, catalog, planogram.width, planogram.shelf_count):
            shelf_data = {
                'shelf': usage.shelf_index + 1,
                'used_width': round(usage.used_width, 2),
                'empty_width': round(usage.empty_width, 2),
                'utilization': round(usage.utilization, 1),
                'overflowing': usage.is_overflowing,
                'products': [],
            }
            for placement in sorted(planogram.placements_on(usage.shelf_index), key=lambda p: p.position_x):
                shelf_data['products'].append({
                    'placement_id': placement.id,
                    'product_id': placement.product_id,
                    'product_name': catalog.name_of(placement.product_id),
                    'x_start': placement.position_x,
                    'x_end': placement.position_x + catalog.occupied_width(placement),
                    'facings': placement.face_count,
                    'is_auto_generated': placement.is_auto_generated,
                })
            export_data['shelves'].append(shelf_data)

        return _recursive_convert(export_data)

    def export_to_json(self,
                       planogram: StorePlanogram,
                       catalog: ProductCatalog,
                       filename: str = "planogram.json") -> str:
        """Export a store layout to JSON"""
        filepath = self.output_dir / filename
        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(self.planogram_to_dict(planogram, catalog), f, indent=2, ensure_ascii=False)

        self.logger.info(f"Exported store layout to {filepath}")
        return str(filepath)

    def export_to_csv(self,
                      planogram: StorePlanogram,
                      catalog: ProductCatalog,
                      filename_prefix: str = "planogram") -> List[str]:
        """Export placements and shelf summary to CSV files"""
        files_created = []

        positions_file = self.output_dir / f"{filename_prefix}_positions.csv"
        DataTransformer.placements_frame(planogram, catalog).to_csv(positions_file, index=False)
        files_created.append(str(positions_file))

        shelves_file = self.output_dir / f"{filename_prefix}_shelves.csv"
        DataTransformer.shelf_summary(planogram, catalog).to_csv(shelves_file, index=False)
        files_created.append(str(shelves_file))

        self.logger.info(f"Exported {len(files_created)} CSV files")
        return files_created

    @staticmethod
    def results_frame(results: Sequence[GenerationResult]) -> pd.DataFrame:
        columns = ['store_id', 'store_name', 'status', 'message', 'planogram_id', 'standard_planogram_id']
        return pd.DataFrame([r.to_dict() for r in results], columns=columns)

    def export_batch_results(self,
                             results: Sequence[GenerationResult],
                             filename_prefix: str = "batch") -> List[str]:
        """Batch report as CSV plus a JSON summary with per-status counts"""
        frame = self.results_frame(results)

        csv_file = self.output_dir / f"{filename_prefix}_results.csv"
        frame.to_csv(csv_file, index=False)

        counts = frame['status'].value_counts().to_dict() if not frame.empty else {}
        summary = {
            'exported_at': datetime.now().isoformat(),
            'total': len(results),
            'by_status': {status: int(count) for status, count in counts.items()},
            'results': [r.to_dict() for r in results],
        }
        json_file = self.output_dir / f"{filename_prefix}_results.json"
        with open(json_file, 'w', encoding='utf-8') as f:
            json.dump(summary, f, indent=2, ensure_ascii=False)

        self.logger.info(f"Exported batch report for {len(results)} stores to {self.output_dir}")
        return [str(csv_file), str(json_file)]
