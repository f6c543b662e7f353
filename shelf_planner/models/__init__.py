from .product import Product, ProductCatalog
from .fixture import Fixture, FixtureType, Store, StoreFixturePlacement, FixtureSlot, StoreCapacity
from .planogram import (
    Placement,
    StorePlacement,
    Block,
    BlockRef,
    BlockSpan,
    FixtureSegment,
    StandardPlanogram,
    StorePlanogram,
    PlanogramStatus,
    GenerationResult,
    new_id,
    now_iso,
)

__all__ = [
    'Product', 'ProductCatalog',
    'Fixture', 'FixtureType', 'Store', 'StoreFixturePlacement', 'FixtureSlot', 'StoreCapacity',
    'Placement', 'StorePlacement', 'Block', 'BlockRef', 'BlockSpan', 'FixtureSegment',
    'StandardPlanogram', 'StorePlanogram', 'PlanogramStatus', 'GenerationResult',
    'new_id', 'now_iso',
]
