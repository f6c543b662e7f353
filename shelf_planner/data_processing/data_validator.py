from datetime import datetime
from typing import Iterable, List, Sequence, Tuple

from shelf_planner.layout.packing import used_width_by_row
from shelf_planner.models.fixture import Fixture, Store, StoreFixturePlacement
from shelf_planner.models.planogram import Block, StandardPlanogram
from shelf_planner.models.product import Product, ProductCatalog
from shelf_planner.utils.constants import STORE_FORMATS


class DataValidator:
    """Validate catalog quality before running the engine"""

    def __init__(self):
        self.warnings = []
        self.errors = []

    def _reset(self):
        self.warnings = []
        self.errors = []

    def _result(self) -> Tuple[bool, List[str]]:
        return len(self.errors) == 0, self.errors + self.warnings

    @staticmethod
    def _duplicates(ids: Sequence[str]) -> set:
        seen, dupes = set(), set()
        for item in ids:
            if item in seen:
                dupes.add(item)
            seen.add(item)
        return dupes

    def validate_products(self, products: Sequence[Product]) -> Tuple[bool, List[str]]:
        """Validate product data and return (is_valid, issues)"""
        self._reset()

        if not products:
            self.errors.append("No products provided for validation")
            return self._result()

        duplicates = self._duplicates([p.product_id for p in products])
        if duplicates:
            self.errors.append(f"Duplicate product IDs found: {sorted(duplicates)}")

        for product in products:
            if product.width <= 0:
                self.errors.append(f"{product.name}: Invalid width ({product.width}cm)")
            elif product.width > 100:
                self.warnings.append(f"{product.name}: Unusually wide ({product.width}cm)")
            if product.sales_rank < 1:
                self.errors.append(f"{product.name}: Sales rank must be 1 or higher ({product.sales_rank})")

        # Shared ranks make cut order depend on position only
        rank_duplicates = self._duplicates([str(p.sales_rank) for p in products])
        if rank_duplicates:
            self.warnings.append(f"{len(rank_duplicates)} sales ranks are shared by several products")

        return self._result()

    def validate_fixtures(self, fixtures: Sequence[Fixture]) -> Tuple[bool, List[str]]:
        self._reset()

        duplicates = self._duplicates([f.fixture_id for f in fixtures])
        if duplicates:
            self.errors.append(f"Duplicate fixture IDs found: {sorted(duplicates)}")

        for fixture in fixtures:
            if fixture.width <= 0 or fixture.height <= 0:
                self.errors.append(f"Fixture {fixture.name} has invalid dimensions")
            if fixture.shelf_count < 1:
                self.errors.append(f"Fixture {fixture.name} has no shelves")

        return self._result()

    def validate_blocks(self, blocks: Iterable[Block], catalog: ProductCatalog) -> Tuple[bool, List[str]]:
        """Blocks must reference known products and fit their own width"""
        self._reset()

        for block in blocks:
            if block.width <= 0:
                self.errors.append(f"Block {block.name} has invalid width ({block.width}cm)")
            for placement in block.placements:
                if placement.product_id not in catalog:
                    self.warnings.append(f"Block {block.name}: unknown product {placement.product_id}")
                if placement.face_count < 1:
                    self.errors.append(f"Block {block.name}: face count below 1 for {placement.product_id}")
                if placement.shelf_index < 0 or placement.shelf_index >= block.shelf_count:
                    self.errors.append(f"Block {block.name}: shelf {placement.shelf_index + 1} outside block")

            known = [p for p in block.placements if p.product_id in catalog]
            for shelf_index, used in sorted(used_width_by_row(known, catalog).items()):
                if used > block.width:
                    self.warnings.append(
                        f"Block {block.name}: shelf {shelf_index + 1} uses {used:g}cm of {block.width:g}cm"
                    )

        return self._result()

    def validate_stores(self, stores: Sequence[Store]) -> Tuple[bool, List[str]]:
        self._reset()

        duplicates = self._duplicates([s.store_id for s in stores])
        if duplicates:
            self.errors.append(f"Duplicate store IDs found: {sorted(duplicates)}")

        for store in stores:
            if store.fmt not in STORE_FORMATS:
                self.warnings.append(f"Store {store.name}: unknown format {store.fmt}")

        return self._result()

    def validate_store_fixtures(self,
                                placements: Iterable[StoreFixturePlacement],
                                stores: Iterable[Store],
                                fixtures: Iterable[Fixture]) -> Tuple[bool, List[str]]:
        self._reset()
        store_ids = {s.store_id for s in stores}
        fixture_ids = {f.fixture_id for f in fixtures}

        for placement in placements:
            if placement.store_id not in store_ids:
                self.errors.append(f"Fixture placement {placement.id}: unknown store {placement.store_id}")
            if placement.fixture_id not in fixture_ids:
                self.errors.append(f"Fixture placement {placement.id}: unknown fixture {placement.fixture_id}")

        return self._result()

    def validate_standard(self, standard: StandardPlanogram, catalog: ProductCatalog) -> Tuple[bool, List[str]]:
        """Flag overflowing rows and dangling product references"""
        self._reset()

        for placement in standard.placements:
            if placement.product_id not in catalog:
                self.warnings.append(f"{standard.name or standard.id}: unknown product {placement.product_id}")

        known = [p for p in standard.placements if p.product_id in catalog]
        for shelf_index, used in sorted(used_width_by_row(known, catalog).items()):
            if used > standard.width:
                self.errors.append(
                    f"{standard.name or standard.id}: shelf {shelf_index + 1} overflows by {used - standard.width:g}cm"
                )

        return self._result()

    def generate_validation_report(self) -> str:
        """Plain-text report of the last validation run"""
        report = []
        report.append("DATA VALIDATION REPORT")
        report.append("=" * 50)
        report.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
        report.append("")

        errors = self.errors
        warnings = self.warnings

        if errors:
            report.append(f"ERRORS ({len(errors)}):")
            report.append("-" * 30)
            for error in errors:
                report.append(f"  x {error}")
            report.append("")

        if warnings:
            report.append(f"WARNINGS ({len(warnings)}):")
            report.append("-" * 30)
            for warning in warnings:
                report.append(f"  ! {warning}")
            report.append("")

        if not errors and not warnings:
            report.append("All validations passed")

        return "\n".join(report)
