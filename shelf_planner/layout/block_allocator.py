from dataclasses import replace
from typing import Dict, Iterable, List, Mapping, Optional, Sequence
import warnings

from shelf_planner.models.planogram import (
    Block,
    BlockRef,
    BlockSpan,
    Placement,
    StandardPlanogram,
    new_id,
    now_iso,
)
from shelf_planner.models.product import ProductCatalog
from shelf_planner.utils.constants import WIDTH_TOLERANCE
from shelf_planner.utils.error_handler import DataIntegrityWarning, NoSpaceError, ValidationError
from shelf_planner.utils.logger import get_logger


def find_gap(canvas_width: float,
             existing: Sequence[BlockSpan],
             width: float,
             tolerance: float = WIDTH_TOLERANCE) -> Optional[float]:
    """First-fit scan for a free interval of the given width.

    Gaps are tried strictly left to right; the first one wide enough wins,
    even if a later gap would fit more snugly. Returns None when nothing fits.
    """
    cursor = 0.0
    for span in sorted(existing, key=lambda s: s.position_x):
        if span.position_x - cursor >= width - tolerance:
            return cursor
        cursor = max(cursor, span.end_x)

    if canvas_width - cursor >= width - tolerance:
        return cursor
    return None


def place_block(canvas_width: float, existing: Sequence[BlockSpan], width: float) -> float:
    """Offset for a new block, or NoSpaceError"""
    offset = find_gap(canvas_width, existing, width)
    if offset is None:
        raise NoSpaceError(width, canvas_width)
    return offset


def expand_block(block: Block, offset: float) -> List[Placement]:
    """Copy a block's placements into canvas coordinates"""
    return [
        replace(p, position_x=p.position_x + offset, id=new_id())
        for p in block.placements
    ]


def expand_block_refs(refs: Iterable[BlockRef], blocks: Mapping[str, Block]) -> List[Placement]:
    """Rebuild a standard layout's placements from its block references"""
    placements: List[Placement] = []
    for ref in refs:
        block = blocks.get(ref.block_id)
        if block is None:
            warnings.warn(f"Unknown block {ref.block_id!r} skipped", DataIntegrityWarning, stacklevel=2)
            continue
        placements.extend(expand_block(block, ref.position_x))
    return placements


def block_spans(refs: Iterable[BlockRef], blocks: Mapping[str, Block]) -> List[BlockSpan]:
    spans = []
    for ref in refs:
        block = blocks.get(ref.block_id)
        if block is None:
            warnings.warn(f"Unknown block {ref.block_id!r} skipped", DataIntegrityWarning, stacklevel=2)
            continue
        spans.append(BlockSpan(block_id=ref.block_id, position_x=ref.position_x,
                               width=block.width, ref_id=ref.id))
    return spans


def clear_blocks(standard: StandardPlanogram) -> StandardPlanogram:
    return replace(standard, blocks=(), placements=(), updated_at=now_iso())


class BlockAllocator:
    """Insert and remove blocks on a standard layout canvas"""

    def __init__(self, blocks: Iterable[Block], catalog: ProductCatalog, tolerance: float = WIDTH_TOLERANCE):
        self.blocks: Dict[str, Block] = {b.block_id: b for b in blocks}
        self.catalog = catalog
        self.tolerance = tolerance
        self.logger = get_logger()

    def _get_block(self, block_id: str) -> Block:
        block = self.blocks.get(block_id)
        if block is None:
            raise ValidationError(f"Unknown block: {block_id}")
        return block

    def spans(self, standard: StandardPlanogram) -> List[BlockSpan]:
        return block_spans(standard.blocks, self.blocks)

    def insert_block(self, standard: StandardPlanogram, block_id: str) -> StandardPlanogram:
        """Place a block in the first free gap and expand its placements.

        Raises NoSpaceError and leaves the layout untouched when no gap fits.
        """
        block = self._get_block(block_id)
        if block.width <= 0:
            raise ValidationError(f"Block {block.name} has no width")

        offset = find_gap(standard.width, self.spans(standard), block.width, self.tolerance)
        if offset is None:
            self.logger.info(f"No space for block {block.name} ({block.width:g}cm) on {standard.name or standard.id}")
            raise NoSpaceError(block.width, standard.width)

        ref = BlockRef(block_id=block.block_id, position_x=offset)
        placements = expand_block(block, offset)

        self.logger.debug(f"Placed block {block.name} at {offset:.1f}cm with {len(placements)} placements")
        return replace(
            standard,
            blocks=standard.blocks + (ref,),
            placements=standard.placements + tuple(placements),
            updated_at=now_iso(),
        )

    def remove_block(self, standard: StandardPlanogram, ref_id: str) -> StandardPlanogram:
        """Drop a block reference and every placement centred inside it.

        Remaining placements keep their positions; the freed interval stays empty.
        """
        ref = next((r for r in standard.blocks if r.id == ref_id), None)
        if ref is None:
            raise ValidationError(f"Block reference {ref_id} is not in this layout")

        block = self._get_block(ref.block_id)
        start = ref.position_x - self.tolerance
        end = ref.position_x + block.width + self.tolerance

        def inside(placement: Placement) -> bool:
            center = placement.position_x + self.catalog.occupied_width(placement) / 2
            return start <= center <= end

        remaining = tuple(p for p in standard.placements if not inside(p))
        removed = len(standard.placements) - len(remaining)
        self.logger.debug(f"Removed block {block.name} at {ref.position_x:.1f}cm ({removed} placements)")

        return replace(
            standard,
            blocks=tuple(r for r in standard.blocks if r.id != ref_id),
            placements=remaining,
            updated_at=now_iso(),
        )

    def is_consistent(self, standard: StandardPlanogram) -> bool:
        """True when placements equal the re-expansion of the block references"""
        def signature(placements):
            return sorted((p.product_id, p.shelf_index, round(p.position_x, 6), p.face_count) for p in placements)

        return signature(standard.placements) == signature(expand_block_refs(standard.blocks, self.blocks))
