"""Left-packing of placements within shelf rows.

Positions are recomputed from scratch: within a row every placement starts
where the previous one ends, in the order the caller supplies. Nothing here
checks capacity; an overflowing row is a valid result and is reported through
:func:`row_usage` instead.
"""
from collections import OrderedDict
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Sequence, TypeVar

import numpy as np

from shelf_planner.models.planogram import Placement
from shelf_planner.models.product import ProductCatalog
from shelf_planner.utils.constants import FLOAT_EPSILON

P = TypeVar('P', bound=Placement)


@dataclass(frozen=True)
class RowUsage:
    """Occupied vs. available width of one shelf row"""
    shelf_index: int
    used_width: float
    shelf_width: float
    placement_count: int = 0

    @property
    def empty_width(self) -> float:
        # Negative when the row overflows
        return self.shelf_width - self.used_width

    @property
    def is_overflowing(self) -> bool:
        return self.empty_width < -FLOAT_EPSILON

    @property
    def utilization(self) -> float:
        return (self.used_width / self.shelf_width) * 100 if self.shelf_width > 0 else 0.0


def group_by_row(placements: Iterable[P]) -> Dict[int, List[P]]:
    """Group placements by shelf index, keeping caller order inside each row"""
    rows: Dict[int, List[P]] = OrderedDict()
    for placement in placements:
        rows.setdefault(placement.shelf_index, []).append(placement)
    return rows


def pack_row(row: Sequence[P], catalog: ProductCatalog) -> List[P]:
    """Assign running-sum positions to one row, starting at 0"""
    if not row:
        return []
    widths = np.array([catalog.occupied_width(p) for p in row], dtype=float)
    offsets = np.concatenate(([0.0], np.cumsum(widths)[:-1]))
    return [replace(p, position_x=float(x)) for p, x in zip(row, offsets)]


def repack(placements: Iterable[P], catalog: ProductCatalog) -> List[P]:
    """Left-pack every row; returns new placements ordered by shelf index"""
    rows = group_by_row(placements)
    packed: List[P] = []
    for shelf_index in sorted(rows):
        packed.extend(pack_row(rows[shelf_index], catalog))
    return packed


def repack_rows(placements: Iterable[P], catalog: ProductCatalog, shelf_indices: Iterable[int]) -> List[P]:
    """Left-pack only the listed rows, leaving the others where they are"""
    targets = set(shelf_indices)
    rows = group_by_row(placements)
    result: List[P] = []
    for shelf_index in sorted(rows):
        row = rows[shelf_index]
        result.extend(pack_row(row, catalog) if shelf_index in targets else row)
    return result


def used_width_by_row(placements: Iterable[Placement], catalog: ProductCatalog) -> Dict[int, float]:
    used: Dict[int, float] = {}
    for placement in placements:
        used[placement.shelf_index] = used.get(placement.shelf_index, 0.0) + catalog.occupied_width(placement)
    return used


def row_extent(row: Iterable[Placement], catalog: ProductCatalog) -> float:
    """Right-most occupied edge of a row"""
    return max((p.position_x + catalog.occupied_width(p) for p in row), default=0.0)


def row_usage(placements: Sequence[Placement],
              catalog: ProductCatalog,
              shelf_width: float,
              shelf_count: Optional[int] = None) -> List[RowUsage]:
    """Usage for rows 0..shelf_count-1 plus any row holding placements"""
    used = used_width_by_row(placements, catalog)
    counts: Dict[int, int] = {}
    for placement in placements:
        counts[placement.shelf_index] = counts.get(placement.shelf_index, 0) + 1

    indices = set(used)
    if shelf_count:
        indices.update(range(shelf_count))

    return [
        RowUsage(
            shelf_index=i,
            used_width=used.get(i, 0.0),
            shelf_width=shelf_width,
            placement_count=counts.get(i, 0),
        )
        for i in sorted(indices)
    ]


def occupied_intervals(row: Iterable[Placement], catalog: ProductCatalog) -> List[tuple]:
    """[start, end) of each placement in a row, sorted by start"""
    return sorted(
        (p.position_x, p.position_x + catalog.occupied_width(p)) for p in row
    )
