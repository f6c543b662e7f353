"""Repository contract consumed by the planogram service.

Every call is a coroutine so a remote store can stand behind the same
interface; :class:`InMemoryRepository` is the reference implementation used
by the command line and the tests.
"""
from abc import ABC, abstractmethod
from dataclasses import dataclass, field, replace
from typing import Callable, Dict, Generic, Iterable, List, Optional, TypeVar

from shelf_planner.models.planogram import new_id

T = TypeVar('T')


class BaseRepository(ABC, Generic[T]):
    """CRUD + query over one entity type keyed by opaque string id"""

    @abstractmethod
    async def get_all(self) -> List[T]:
        pass

    @abstractmethod
    async def get_by_id(self, entity_id: str) -> Optional[T]:
        pass

    @abstractmethod
    async def create(self, entity: T) -> T:
        pass

    @abstractmethod
    async def update(self, entity_id: str, changes: Dict) -> Optional[T]:
        pass

    @abstractmethod
    async def delete(self, entity_id: str) -> bool:
        pass

    @abstractmethod
    async def query(self, predicate: Callable[[T], bool]) -> List[T]:
        pass


class InMemoryRepository(BaseRepository[T]):
    """Dict-backed repository over frozen dataclasses"""

    def __init__(self, id_field: str = 'id', items: Iterable[T] = ()):
        self.id_field = id_field
        self._items: Dict[str, T] = {}
        for item in items:
            self._items[getattr(item, id_field)] = item

    def __len__(self) -> int:
        return len(self._items)

    async def get_all(self) -> List[T]:
        return list(self._items.values())

    async def get_by_id(self, entity_id: str) -> Optional[T]:
        return self._items.get(entity_id)

    async def create(self, entity: T) -> T:
        # Entities without an id get a fresh one
        if not getattr(entity, self.id_field):
            entity = replace(entity, **{self.id_field: new_id()})
        self._items[getattr(entity, self.id_field)] = entity
        return entity

    async def update(self, entity_id: str, changes: Dict) -> Optional[T]:
        current = self._items.get(entity_id)
        if current is None:
            return None
        changes = {k: v for k, v in changes.items() if k != self.id_field}
        updated = replace(current, **changes)
        self._items[entity_id] = updated
        return updated

    async def delete(self, entity_id: str) -> bool:
        return self._items.pop(entity_id, None) is not None

    async def query(self, predicate: Callable[[T], bool]) -> List[T]:
        return [item for item in self._items.values() if predicate(item)]


@dataclass
class Repositories:
    """One repository per entity type"""
    products: BaseRepository = field(default_factory=lambda: InMemoryRepository('product_id'))
    stores: BaseRepository = field(default_factory=lambda: InMemoryRepository('store_id'))
    fixtures: BaseRepository = field(default_factory=lambda: InMemoryRepository('fixture_id'))
    store_fixtures: BaseRepository = field(default_factory=lambda: InMemoryRepository('id'))
    blocks: BaseRepository = field(default_factory=lambda: InMemoryRepository('block_id'))
    standards: BaseRepository = field(default_factory=lambda: InMemoryRepository('id'))
    store_planograms: BaseRepository = field(default_factory=lambda: InMemoryRepository('id'))
