from typing import Iterable, Optional

import pandas as pd

from shelf_planner.models.fixture import Fixture, FixtureSlot, FixtureType, StoreCapacity, StoreFixturePlacement
from shelf_planner.models.planogram import StandardPlanogram, StorePlanogram, new_id
from shelf_planner.models.product import ProductCatalog
from shelf_planner.utils.constants import DEFAULT_CANVAS_HEIGHT, DEFAULT_SHELF_COUNT
from shelf_planner.utils.error_handler import CapacityError, ConfigurationError
from shelf_planner.utils.logger import get_logger


class DataTransformer:
    """Turn catalog records into the shapes the engine consumes"""

    def __init__(self):
        self.logger = get_logger()

    def store_capacity(self,
                       store_id: str,
                       fixture_type: FixtureType,
                       placements: Iterable[StoreFixturePlacement],
                       fixtures: Iterable[Fixture]) -> StoreCapacity:
        """Sum a store's fixtures of one type into a single shelf run"""
        fixture_lookup = {f.fixture_id: f for f in fixtures}
        store_placements = sorted(
            (p for p in placements if p.store_id == store_id),
            key=lambda p: (p.order, p.position_x),
        )

        slots = []
        for placement in store_placements:
            fixture = fixture_lookup.get(placement.fixture_id)
            # Only fixtures of the requested type count
            if fixture is None or fixture.fixture_type != fixture_type:
                continue
            slots.append(FixtureSlot(
                slot_id=placement.id,
                fixture_id=fixture.fixture_id,
                width=fixture.width,
                height=fixture.height,
                shelf_count=fixture.shelf_count,
            ))

        capacity = StoreCapacity(
            store_id=store_id,
            fixture_type=fixture_type,
            width=sum(s.width for s in slots),
            height=max((s.height for s in slots), default=0.0),
            shelf_count=max((s.shelf_count for s in slots), default=0),
            slots=tuple(slots),
        )
        self.logger.debug(
            f"Capacity {store_id}/{fixture_type.value}: {len(slots)} fixtures, {capacity.width:g}cm"
        )
        return capacity

    def build_standard_planogram(self,
                                 fmt: str,
                                 fixture_type: FixtureType,
                                 capacity: StoreCapacity,
                                 name: Optional[str] = None,
                                 planogram_id: Optional[str] = None) -> StandardPlanogram:
        """Empty standard canvas sized from a base store's fixtures"""
        if capacity.is_empty:
            raise CapacityError(f"Base store {capacity.store_id} has no {fixture_type.value} fixtures")

        standard = StandardPlanogram(
            id=planogram_id or new_id(),
            fmt=fmt,
            fixture_type=fixture_type,
            name=name or f"{fmt} standard",
            base_store_id=capacity.store_id,
            width=capacity.width,
            height=capacity.height or DEFAULT_CANVAS_HEIGHT,
            shelf_count=capacity.shelf_count or DEFAULT_SHELF_COUNT,
        )
        self.logger.debug(f"Standard canvas for {fmt}/{fixture_type.value}: {standard.width:g}cm")
        return standard

    @staticmethod
    def find_standard(standards: Iterable[StandardPlanogram], fmt: str, fixture_type: FixtureType) -> StandardPlanogram:
        for standard in standards:
            if standard.fmt == fmt and standard.fixture_type == fixture_type:
                return standard
        raise ConfigurationError(f"No standard layout for format {fmt} and fixture type {fixture_type.value}")

    @staticmethod
    def placements_frame(planogram: StorePlanogram, catalog: ProductCatalog) -> pd.DataFrame:
        """Tabular view of a store layout, one row per placement"""
        rows = []
        for placement in planogram.placements:
            product = catalog.get(placement.product_id)
            width = product.width * placement.face_count if product else 0.0
            rows.append({
                'shelf': placement.shelf_index + 1,
                'product_id': placement.product_id,
                'product_name': product.name if product else placement.product_id,
                'sales_rank': product.sales_rank if product else None,
                'position_x': placement.position_x,
                'face_count': placement.face_count,
                'occupied_width': width,
                'is_auto_generated': placement.is_auto_generated,
            })
        columns = ['shelf', 'product_id', 'product_name', 'sales_rank', 'position_x',
                   'face_count', 'occupied_width', 'is_auto_generated']
        return pd.DataFrame(rows, columns=columns)

    @staticmethod
    def shelf_summary(planogram: StorePlanogram, catalog: ProductCatalog) -> pd.DataFrame:
        """Used and empty width per shelf row"""
        frame = DataTransformer.placements_frame(planogram, catalog)
        shelves = pd.DataFrame({'shelf': range(1, planogram.shelf_count + 1)})
        used = frame.groupby('shelf', as_index=False).agg(
            used_width=('occupied_width', 'sum'),
            products=('product_id', 'count'),
            facings=('face_count', 'sum'),
        )
        summary = shelves.merge(used, on='shelf', how='outer').fillna(0)
        summary['empty_width'] = planogram.width - summary['used_width']
        return summary.sort_values('shelf').reset_index(drop=True)
