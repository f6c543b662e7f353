from itertools import product as cross_product
from typing import AsyncIterator, Awaitable, Callable, List, Optional, Sequence, Tuple

from shelf_planner.models.fixture import Store
from shelf_planner.models.planogram import GenerationResult, PlanogramStatus, StandardPlanogram, StorePlanogram
from shelf_planner.utils.error_handler import ShelfPlannerError
from shelf_planner.utils.logger import get_logger

GenerateFn = Callable[[StandardPlanogram, Store], Awaitable[StorePlanogram]]
ProgressFn = Callable[[int, int, GenerationResult], None]


def pairs_for(standards: Sequence[StandardPlanogram], stores: Sequence[Store]) -> List[Tuple[StandardPlanogram, Store]]:
    """Every (standard, store) combination, standards outermost"""
    return list(cross_product(standards, stores))


def _success_message(planogram: StorePlanogram) -> str:
    if planogram.status == PlanogramStatus.WARNING:
        return f"{len(planogram.warnings)} warnings: {planogram.warnings[0]}"
    return f"{len(planogram.placements)} placements generated"


class BatchOrchestrator:
    """Sequential per-store generation with failure isolation.

    Stores are processed one at a time in input order. A store that fails
    becomes an ``error`` result and the run moves on.
    """

    def __init__(self, generate: GenerateFn):
        self._generate = generate
        self.logger = get_logger()

    async def stream_pairs(self,
                           pairs: Sequence[Tuple[StandardPlanogram, Store]],
                           on_progress: Optional[ProgressFn] = None) -> AsyncIterator[GenerationResult]:
        total = len(pairs)
        for index, (standard, store) in enumerate(pairs, start=1):
            try:
                planogram = await self._generate(standard, store)
                result = GenerationResult(
                    store_id=store.store_id,
                    store_name=store.name,
                    status=planogram.status,
                    message=_success_message(planogram),
                    planogram_id=planogram.id,
                    standard_planogram_id=standard.id,
                )
            except ShelfPlannerError as e:
                self.logger.warning(f"[{index}/{total}] {store.name}: {e}")
                result = GenerationResult(
                    store_id=store.store_id,
                    store_name=store.name,
                    status=PlanogramStatus.ERROR,
                    message=str(e),
                    standard_planogram_id=standard.id,
                )

            if on_progress is not None:
                on_progress(index, total, result)
            yield result

    def stream(self,
               standard: StandardPlanogram,
               stores: Sequence[Store],
               on_progress: Optional[ProgressFn] = None) -> AsyncIterator[GenerationResult]:
        return self.stream_pairs(pairs_for([standard], stores), on_progress)

    async def run_pairs(self,
                        pairs: Sequence[Tuple[StandardPlanogram, Store]],
                        on_progress: Optional[ProgressFn] = None) -> List[GenerationResult]:
        results = [result async for result in self.stream_pairs(pairs, on_progress)]

        counts = {status: 0 for status in (PlanogramStatus.GENERATED, PlanogramStatus.WARNING, PlanogramStatus.ERROR)}
        for result in results:
            counts[result.status] = counts.get(result.status, 0) + 1
        self.logger.info(
            f"Batch finished: {counts[PlanogramStatus.GENERATED]} generated, "
            f"{counts[PlanogramStatus.WARNING]} with warnings, {counts[PlanogramStatus.ERROR]} failed"
        )
        return results

    async def run(self,
                  standard: StandardPlanogram,
                  stores: Sequence[Store],
                  on_progress: Optional[ProgressFn] = None) -> List[GenerationResult]:
        return await self.run_pairs(pairs_for([standard], stores), on_progress)
