"""Derive a store layout from its standard layout.

Width is accounted per row: store row *i* mirrors standard row *i* and may
hold at most the store's total fixture width. A narrower store runs the cut
rule, a wider one the expand rule; every change lands in the layout's
warnings in the order it was made.
"""
import math
import warnings
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional, Sequence

from shelf_planner.layout.packing import group_by_row, repack_rows, row_extent, used_width_by_row
from shelf_planner.models.fixture import StoreCapacity
from shelf_planner.models.planogram import (
    PlanogramStatus,
    StandardPlanogram,
    StorePlacement,
    StorePlanogram,
    new_id,
    now_iso,
)
from shelf_planner.models.product import ProductCatalog
from shelf_planner.utils.constants import FLOAT_EPSILON
from shelf_planner.utils.error_handler import CapacityError, ConfigurationError, DataIntegrityWarning
from shelf_planner.utils.logger import get_logger
from shelf_planner.utils.monitor import monitor
from .rules import ReconciliationRules


@dataclass
class AdjustmentLog:
    """Ordered audit trail of one generation"""
    warnings: List[str] = field(default_factory=list)
    removed: bool = False

    def cut(self, message: str):
        self.warnings.append(message)
        self.removed = True

    def note(self, message: str):
        self.warnings.append(message)


class ReconciliationEngine:
    """Cut/expand reconciliation of a standard layout onto a store's fixtures"""

    def __init__(self, catalog: ProductCatalog, rules: Optional[ReconciliationRules] = None):
        self.catalog = catalog
        self.rules = rules or ReconciliationRules()
        self.logger = get_logger()

    @monitor.time_it
    def generate(self,
                 standard: Optional[StandardPlanogram],
                 capacity: StoreCapacity,
                 planogram_id: Optional[str] = None,
                 synced: bool = False,
                 created_at: Optional[str] = None) -> StorePlanogram:
        """Build a fresh store layout; raises a GenerationError subclass on failure"""
        if standard is None:
            raise ConfigurationError(
                f"No standard layout for store {capacity.store_id} ({capacity.fixture_type.value})"
            )
        if capacity.width <= 0:
            raise CapacityError(
                f"Store {capacity.store_id} has no {capacity.fixture_type.value} fixtures"
            )

        target = capacity.width
        shelf_count = capacity.shelf_count or standard.shelf_count
        log = AdjustmentLog()

        working = self._copy_standard(standard, shelf_count, log)

        if target < standard.width - FLOAT_EPSILON and self.rules.enable_cut:
            self.logger.debug(f"Store {capacity.store_id}: deficit {standard.width - target:.1f}cm, cutting")
            working = self._apply_cut(working, target, log)
        elif target > standard.width + FLOAT_EPSILON and self.rules.enable_expand:
            self.logger.debug(f"Store {capacity.store_id}: surplus {target - standard.width:.1f}cm, expanding")
            working = self._apply_expand(working, target, shelf_count, log)

        self._report_overflow(working, target, log)

        if log.removed:
            status = PlanogramStatus.WARNING
        elif synced:
            status = PlanogramStatus.SYNCED
        else:
            status = PlanogramStatus.GENERATED

        timestamp = now_iso()
        planogram = StorePlanogram(
            id=planogram_id or new_id(),
            store_id=capacity.store_id,
            standard_planogram_id=standard.id,
            width=target,
            height=capacity.height or standard.height,
            shelf_count=shelf_count,
            fixture_type=standard.fixture_type,
            placements=working,
            status=status,
            warnings=log.warnings,
            created_at=created_at or timestamp,
            updated_at=timestamp,
            synced_at=timestamp if synced else None,
        )

        self.logger.info(
            f"Store {capacity.store_id}: {status.value} layout, {len(working)} placements, "
            f"{len(log.warnings)} warnings"
        )
        return planogram

    def _copy_standard(self, standard: StandardPlanogram, shelf_count: int, log: AdjustmentLog) -> List[StorePlacement]:
        """Copy standard placements row by row, left to right"""
        ordered = sorted(standard.placements, key=lambda p: (p.shelf_index, p.position_x))
        working = []
        for placement in ordered:
            product = self.catalog.get(placement.product_id)
            if product is None:
                warnings.warn(
                    f"Standard layout {standard.id} references unknown product {placement.product_id!r}",
                    DataIntegrityWarning,
                    stacklevel=3,
                )
                self.logger.warning(f"Skipping unknown product {placement.product_id}")
                log.cut(f"skipped unknown product {placement.product_id}")
                continue

            if placement.shelf_index >= shelf_count:
                log.cut(f"removed {product.name}: shelf {placement.shelf_index + 1} not available in store")
                continue

            working.append(StorePlacement(
                product_id=placement.product_id,
                shelf_index=placement.shelf_index,
                position_x=placement.position_x,
                face_count=placement.face_count,
                is_auto_generated=True,
            ))
        return working

    def _rank(self, placement: StorePlacement) -> int:
        return self.catalog.get(placement.product_id).sales_rank

    def _overflowing_rows(self, placements: Sequence[StorePlacement], target: float) -> set:
        used = used_width_by_row(placements, self.catalog)
        return {i for i, width in used.items() if width > target + FLOAT_EPSILON}

    def _apply_cut(self, working: List[StorePlacement], target: float, log: AdjustmentLog) -> List[StorePlacement]:
        """Rule A: shave the worst seller one facing at a time until every row fits"""
        over = self._overflowing_rows(working, target)
        while over:
            candidates = [p for p in working if p.shelf_index in over]
            # Worst rank first, left-most on ties
            victim = min(candidates, key=lambda p: (-self._rank(p), p.position_x, p.shelf_index))
            name = self.catalog.name_of(victim.product_id)

            if victim.face_count > 1:
                reduced = replace(victim, face_count=victim.face_count - 1)
                working = [reduced if p.id == victim.id else p for p in working]
                log.cut(f"reduced facing for {name} ({victim.face_count} -> {reduced.face_count})")
                self.logger.debug(f"  reduced {name} to {reduced.face_count} facings on shelf {victim.shelf_index + 1}")
            else:
                working = [p for p in working if p.id != victim.id]
                log.cut(f"removed {name} due to insufficient space")
                self.logger.debug(f"  removed {name} from shelf {victim.shelf_index + 1}")

            working = repack_rows(working, self.catalog, [victim.shelf_index])
            over = self._overflowing_rows(working, target)

        # Rows that were never cut may still reach past the store edge through gaps
        overhanging = [
            i for i, row in group_by_row(working).items()
            if row_extent(row, self.catalog) > target + FLOAT_EPSILON
        ]
        return repack_rows(working, self.catalog, overhanging)

    def _report_overflow(self, working: Sequence[StorePlacement], target: float, log: AdjustmentLog):
        """Flag every row still reaching past the store edge"""
        for shelf_index, row in sorted(group_by_row(working).items()):
            used = sum(self.catalog.occupied_width(p) for p in row)
            over = max(used, row_extent(row, self.catalog)) - target
            if over > self.rules.tolerance:
                self.logger.warning(f"Shelf {shelf_index + 1} overflows the store by {over:.1f}cm")
                log.cut(f"shelf {shelf_index + 1}: {round(over, 1):g}cm over capacity")

    def _scale(self, face_count: int, multiplier: float) -> int:
        return max(face_count, int(math.ceil(face_count * multiplier - FLOAT_EPSILON)))

    def _with_multiplier(self, working: List[StorePlacement], top_ids: set, multiplier: float) -> List[StorePlacement]:
        scaled = [
            replace(p, face_count=self._scale(p.face_count, multiplier)) if p.id in top_ids else p
            for p in working
        ]
        touched = {p.shelf_index for p in working if p.id in top_ids}
        return repack_rows(scaled, self.catalog, touched)

    def _fits(self, placements: Sequence[StorePlacement], target: float) -> bool:
        used = used_width_by_row(placements, self.catalog)
        return all(width <= target + self.rules.tolerance for width in used.values())

    def _fills(self, placements: Sequence[StorePlacement], target: float) -> bool:
        used = used_width_by_row(placements, self.catalog)
        return max(used.values(), default=0.0) >= target - self.rules.tolerance

    def _apply_expand(self, working: List[StorePlacement], target: float, shelf_count: int,
                      log: AdjustmentLog) -> List[StorePlacement]:
        """Rule B: widen the best sellers x2, falling back to x1.5, else leave space"""
        top = sorted(working, key=lambda p: (self._rank(p), p.position_x, p.shelf_index))[:self.rules.expand_top_n]
        top_ids = {p.id for p in top}

        chosen = working
        if top_ids:
            doubled = self._with_multiplier(working, top_ids, self.rules.primary_multiplier)
            if self._fits(doubled, target) and self._fills(doubled, target):
                chosen = doubled
                self.logger.debug(f"  x{self.rules.primary_multiplier:g} fills {target:g}cm")
            else:
                fallback = self._with_multiplier(working, top_ids, self.rules.fallback_multiplier)
                if self._fits(fallback, target):
                    chosen = fallback
                    self.logger.debug(f"  x{self.rules.fallback_multiplier:g} applied")
                else:
                    self.logger.debug("  expansion would overflow, keeping standard facings")

        before = {p.id: p.face_count for p in working}
        for placement in chosen:
            old = before.get(placement.id)
            if old is not None and placement.face_count != old:
                name = self.catalog.name_of(placement.product_id)
                log.note(f"increased facing for {name} ({old} -> {placement.face_count})")

        used = used_width_by_row(chosen, self.catalog)
        for shelf_index in range(shelf_count):
            remaining = target - used.get(shelf_index, 0.0)
            if remaining > self.rules.tolerance:
                log.note(f"shelf {shelf_index + 1}: {round(remaining, 1):g}cm left unused")

        return chosen


def summarize_warnings(planogram: StorePlanogram) -> Dict[str, int]:
    """Count audit entries by kind"""
    counts = {'removed': 0, 'reduced': 0, 'increased': 0, 'unused': 0, 'skipped': 0, 'overflow': 0}
    for message in planogram.warnings:
        if message.startswith('removed'):
            counts['removed'] += 1
        elif message.startswith('reduced'):
            counts['reduced'] += 1
        elif message.startswith('increased'):
            counts['increased'] += 1
        elif message.startswith('skipped'):
            counts['skipped'] += 1
        elif message.endswith('left unused'):
            counts['unused'] += 1
        elif message.endswith('over capacity'):
            counts['overflow'] += 1
    return counts
