from typing import Dict, List, Sequence, Tuple

import numpy as np

from shelf_planner.models.planogram import BlockSpan, FixtureSegment


def fixture_ranges(fixtures: Sequence) -> List[Tuple[str, float, float]]:
    """Absolute [start, end) of each fixture laid end to end, in order.

    Fixtures are any objects with ``id`` and ``width``.
    """
    if not fixtures:
        return []
    widths = np.array([float(f.width) for f in fixtures], dtype=float)
    ends = np.cumsum(widths)
    starts = ends - widths
    return [(f.id, float(s), float(e)) for f, s, e in zip(fixtures, starts, ends)]


def map_blocks_to_fixtures(fixtures: Sequence, blocks: Sequence[BlockSpan]) -> Dict[str, List[FixtureSegment]]:
    """Split each block over the fixtures it overlaps.

    Every fixture id is present in the result; a block straddling a boundary
    yields one segment per fixture, in fixture-local coordinates.
    """
    ranges = fixture_ranges(fixtures)
    mapping: Dict[str, List[FixtureSegment]] = {fixture_id: [] for fixture_id, _, _ in ranges}

    for block in blocks:
        block_start = block.position_x
        block_end = block.position_x + block.width
        for fixture_id, fix_start, fix_end in ranges:
            overlap_start = max(block_start, fix_start)
            overlap_end = min(block_end, fix_end)
            if overlap_start < overlap_end:
                mapping[fixture_id].append(FixtureSegment(
                    block_id=block.block_id,
                    rel_start=overlap_start - fix_start,
                    rel_end=overlap_end - fix_start,
                    ref_id=block.ref_id,
                ))

    return mapping


def fixture_at(fixtures: Sequence, position_x: float):
    """Fixture id covering an absolute position, or None past the end"""
    for fixture_id, start, end in fixture_ranges(fixtures):
        if start <= position_x < end:
            return fixture_id
    return None
