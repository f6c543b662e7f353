from dataclasses import replace

from shelf_planner.layout.packing import repack
from shelf_planner.models.planogram import StorePlanogram, now_iso
from shelf_planner.models.product import ProductCatalog
from shelf_planner.utils.error_handler import ValidationError


def _require_placement(planogram: StorePlanogram, placement_id: str):
    if not any(p.id == placement_id for p in planogram.placements):
        raise ValidationError(f"Placement {placement_id} not found in store layout {planogram.id}")


def change_face_count(planogram: StorePlanogram,
                      placement_id: str,
                      new_count: int,
                      catalog: ProductCatalog) -> StorePlanogram:
    """Manual facing edit; marks the placement as hand-edited and left-packs"""
    if new_count < 1:
        raise ValidationError(f"Face count must be at least 1, got {new_count}")
    _require_placement(planogram, placement_id)

    updated = [
        replace(p, face_count=new_count, is_auto_generated=False) if p.id == placement_id else p
        for p in planogram.placements
    ]
    return replace(planogram, placements=repack(updated, catalog), updated_at=now_iso())


def remove_placement(planogram: StorePlanogram, placement_id: str, catalog: ProductCatalog) -> StorePlanogram:
    """Manual removal; the rest of the row closes up"""
    _require_placement(planogram, placement_id)
    remaining = [p for p in planogram.placements if p.id != placement_id]
    return replace(planogram, placements=repack(remaining, catalog), updated_at=now_iso())


def manual_edit_count(planogram: StorePlanogram) -> int:
    """Placements a sync would overwrite"""
    return sum(1 for p in planogram.placements if not p.is_auto_generated)
