"""Repository-backed planogram workflows.

The service is the only place that talks to persistence: it loads catalogs,
hands plain data to the pure layout/reconciliation functions and writes the
result back. Repository calls are awaited one at a time.
"""
from dataclasses import fields
from typing import List, Optional

from shelf_planner.data_processing.data_transformer import DataTransformer
from shelf_planner.data_processing.repository import Repositories
from shelf_planner.layout.block_allocator import BlockAllocator, clear_blocks
from shelf_planner.models.fixture import FixtureType, Store, StoreCapacity
from shelf_planner.models.planogram import GenerationResult, StandardPlanogram, StorePlanogram
from shelf_planner.models.product import ProductCatalog
from shelf_planner.utils.error_handler import (
    ConfigurationError,
    DuplicatePlanogramError,
    ValidationError,
)
from shelf_planner.utils.logger import get_logger
from . import editor
from .batch import BatchOrchestrator, ProgressFn, pairs_for
from .engine import ReconciliationEngine
from .rules import ReconciliationRules


class PlanogramService:
    """Generate, sync and edit layouts stored in a set of repositories"""

    def __init__(self, repositories: Repositories, rules: Optional[ReconciliationRules] = None):
        self.repos = repositories
        self.rules = rules or ReconciliationRules()
        self.transformer = DataTransformer()
        self.logger = get_logger()

    async def _catalog(self) -> ProductCatalog:
        return ProductCatalog(await self.repos.products.get_all())

    async def _allocator(self, catalog: Optional[ProductCatalog] = None) -> BlockAllocator:
        if catalog is None:
            catalog = await self._catalog()
        return BlockAllocator(await self.repos.blocks.get_all(), catalog, self.rules.tolerance)

    async def _get_standard(self, standard_id: str) -> StandardPlanogram:
        standard = await self.repos.standards.get_by_id(standard_id)
        if standard is None:
            raise ConfigurationError(f"Standard layout {standard_id} not found")
        return standard

    async def _get_store(self, store_id: str) -> Store:
        store = await self.repos.stores.get_by_id(store_id)
        if store is None:
            raise ValidationError(f"Store {store_id} not found")
        return store

    async def _get_store_planogram(self, store_planogram_id: str) -> StorePlanogram:
        planogram = await self.repos.store_planograms.get_by_id(store_planogram_id)
        if planogram is None:
            raise ValidationError(f"Store layout {store_planogram_id} not found")
        return planogram

    async def store_capacity(self, store_id: str, fixture_type: FixtureType) -> StoreCapacity:
        """Total width, height and shelf count of a store's fixtures of one type"""
        return self.transformer.store_capacity(
            store_id,
            fixture_type,
            await self.repos.store_fixtures.get_all(),
            await self.repos.fixtures.get_all(),
        )

    async def find_store_planogram(self, store_id: str, standard_id: str) -> Optional[StorePlanogram]:
        matches = await self.repos.store_planograms.query(
            lambda p: p.store_id == store_id and p.standard_planogram_id == standard_id
        )
        return matches[0] if matches else None

    # Store layouts

    async def _generate_for(self,
                            standard: StandardPlanogram,
                            store: Store,
                            catalog: Optional[ProductCatalog] = None) -> StorePlanogram:
        existing = await self.find_store_planogram(store.store_id, standard.id)
        if existing is not None:
            raise DuplicatePlanogramError(
                f"Store {store.name} already has a layout for {standard.name or standard.id}; sync it instead"
            )

        if catalog is None:
            catalog = await self._catalog()
        capacity = await self.store_capacity(store.store_id, standard.fixture_type)
        planogram = ReconciliationEngine(catalog, self.rules).generate(standard, capacity)
        return await self.repos.store_planograms.create(planogram)

    async def generate(self, store_id: str, standard_id: str) -> StorePlanogram:
        """First-time generation of a store's layout from a standard layout"""
        store = await self._get_store(store_id)
        standard = await self._get_standard(standard_id)
        return await self._generate_for(standard, store)

    async def generate_for_store(self, store_id: str,
                                 fixture_type: FixtureType = FixtureType.MULTI_TIER) -> StorePlanogram:
        """Generate from whichever standard layout matches the store's format"""
        store = await self._get_store(store_id)
        standard = DataTransformer.find_standard(await self.repos.standards.get_all(), store.fmt, fixture_type)
        return await self._generate_for(standard, store)

    async def sync(self, store_planogram_id: str) -> StorePlanogram:
        """Discard every store placement, manual edits included, and regenerate.

        The layout keeps its id and creation time.
        """
        current = await self._get_store_planogram(store_planogram_id)
        standard = await self._get_standard(current.standard_planogram_id)
        capacity = await self.store_capacity(current.store_id, standard.fixture_type)

        edits = editor.manual_edit_count(current)
        if edits:
            self.logger.info(f"Sync of {store_planogram_id} discards {edits} manual edits")

        fresh = ReconciliationEngine(await self._catalog(), self.rules).generate(
            standard,
            capacity,
            planogram_id=current.id,
            synced=True,
            created_at=current.created_at,
        )
        changes = {f.name: getattr(fresh, f.name) for f in fields(fresh) if f.name != 'id'}
        return await self.repos.store_planograms.update(current.id, changes)

    async def batch_generate(self,
                             fmt: str,
                             on_progress: Optional[ProgressFn] = None,
                             fixture_type: Optional[FixtureType] = None) -> List[GenerationResult]:
        """Generate every (standard, store) pair of a format, one store at a time"""
        standards = await self.repos.standards.query(
            lambda s: s.fmt == fmt and (fixture_type is None or s.fixture_type == fixture_type)
        )
        if not standards:
            raise ConfigurationError(f"No standard layout for format {fmt}")
        stores = await self.repos.stores.query(lambda s: s.fmt == fmt)

        catalog = await self._catalog()

        async def generate_pair(standard: StandardPlanogram, store: Store) -> StorePlanogram:
            return await self._generate_for(standard, store, catalog)

        self.logger.info(f"Batch {fmt}: {len(standards)} standard layouts x {len(stores)} stores")
        return await BatchOrchestrator(generate_pair).run_pairs(pairs_for(standards, stores), on_progress)

    async def change_face_count(self, store_planogram_id: str, placement_id: str, new_count: int) -> StorePlanogram:
        planogram = await self._get_store_planogram(store_planogram_id)
        edited = editor.change_face_count(planogram, placement_id, new_count, await self._catalog())
        return await self.repos.store_planograms.update(
            planogram.id, {'placements': edited.placements, 'updated_at': edited.updated_at}
        )

    async def remove_placement(self, store_planogram_id: str, placement_id: str) -> StorePlanogram:
        planogram = await self._get_store_planogram(store_planogram_id)
        edited = editor.remove_placement(planogram, placement_id, await self._catalog())
        return await self.repos.store_planograms.update(
            planogram.id, {'placements': edited.placements, 'updated_at': edited.updated_at}
        )

    # Standard layouts

    async def create_standard(self,
                              fmt: str,
                              fixture_type: FixtureType,
                              base_store_id: str,
                              name: Optional[str] = None) -> StandardPlanogram:
        """Empty standard canvas sized from a base store; one per format and fixture type"""
        duplicates = await self.repos.standards.query(
            lambda s: s.fmt == fmt and s.fixture_type == fixture_type
        )
        if duplicates:
            raise ValidationError(f"A standard layout for {fmt}/{fixture_type.value} already exists")

        await self._get_store(base_store_id)
        capacity = await self.store_capacity(base_store_id, fixture_type)
        standard = self.transformer.build_standard_planogram(fmt, fixture_type, capacity, name=name)
        self.logger.info(f"Created standard layout {standard.name} ({standard.width:g}cm)")
        return await self.repos.standards.create(standard)

    async def insert_block(self, standard_id: str, block_id: str) -> StandardPlanogram:
        """Place a block in the first free gap; NoSpaceError leaves the layout untouched"""
        standard = await self._get_standard(standard_id)
        allocator = await self._allocator()
        updated = allocator.insert_block(standard, block_id)
        return await self.repos.standards.update(
            standard.id,
            {'blocks': updated.blocks, 'placements': updated.placements, 'updated_at': updated.updated_at},
        )

    async def remove_block(self, standard_id: str, ref_id: str) -> StandardPlanogram:
        standard = await self._get_standard(standard_id)
        allocator = await self._allocator()
        updated = allocator.remove_block(standard, ref_id)
        return await self.repos.standards.update(
            standard.id,
            {'blocks': updated.blocks, 'placements': updated.placements, 'updated_at': updated.updated_at},
        )

    async def clear_standard(self, standard_id: str) -> StandardPlanogram:
        standard = await self._get_standard(standard_id)
        cleared = clear_blocks(standard)
        return await self.repos.standards.update(
            standard.id, {'blocks': (), 'placements': (), 'updated_at': cleared.updated_at}
        )

