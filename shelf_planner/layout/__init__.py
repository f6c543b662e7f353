from .packing import RowUsage, group_by_row, pack_row, repack, repack_rows, row_usage, used_width_by_row
from .block_allocator import (
    BlockAllocator,
    find_gap,
    place_block,
    expand_block,
    expand_block_refs,
    block_spans,
    clear_blocks,
)
from .interval_mapper import fixture_ranges, map_blocks_to_fixtures, fixture_at

__all__ = [
    'RowUsage', 'group_by_row', 'pack_row', 'repack', 'repack_rows', 'row_usage', 'used_width_by_row',
    'BlockAllocator', 'find_gap', 'place_block', 'expand_block', 'expand_block_refs', 'block_spans',
    'clear_blocks', 'fixture_ranges', 'map_blocks_to_fixtures', 'fixture_at',
]
