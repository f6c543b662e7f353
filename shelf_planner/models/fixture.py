from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Tuple

from shelf_planner.utils.constants import DEFAULT_FIXTURE_TYPE, FIXTURE_TYPES


class FixtureType(Enum):
    MULTI_TIER = "multi-tier"
    FLAT_REFRIGERATED = "flat-refrigerated"
    END_CAP_REFRIGERATED = "end-cap-refrigerated"
    FLAT_FROZEN = "flat-frozen"
    END_CAP_FROZEN = "end-cap-frozen"

    @classmethod
    def parse(cls, value) -> "FixtureType":
        """Map a raw value to the enum; missing values mean multi-tier"""
        if isinstance(value, cls):
            return value
        if value is None or str(value).strip() == "":
            return cls(DEFAULT_FIXTURE_TYPE)
        return cls(str(value).strip())

    @property
    def label(self) -> str:
        return FIXTURE_TYPES.get(self.value, self.value)


@dataclass(frozen=True)
class Fixture:
    """Physical shelving unit model"""
    fixture_id: str
    name: str
    width: float  # cm
    height: float  # cm
    shelf_count: int
    fixture_type: FixtureType = FixtureType.MULTI_TIER

    def to_dict(self) -> Dict:
        return {
            'fixture_id': self.fixture_id,
            'name': self.name,
            'width': self.width,
            'height': self.height,
            'shelf_count': self.shelf_count,
            'fixture_type': self.fixture_type.value,
        }


@dataclass(frozen=True)
class Store:
    store_id: str
    name: str
    fmt: str
    code: str = ""
    region: str = ""


@dataclass(frozen=True)
class StoreFixturePlacement:
    """A fixture installed in a store, ordered along the run"""
    id: str
    store_id: str
    fixture_id: str
    position_x: float = 0.0
    position_y: float = 0.0
    order: int = 0


@dataclass(frozen=True)
class FixtureSlot:
    """One installed unit on a store's logical shelf axis"""
    slot_id: str
    fixture_id: str
    width: float
    height: float = 0.0
    shelf_count: int = 0

    @property
    def id(self) -> str:
        return self.slot_id


@dataclass(frozen=True)
class StoreCapacity:
    """Effective shelf space of one store for one fixture type"""
    store_id: str
    fixture_type: FixtureType
    width: float
    height: float
    shelf_count: int
    slots: Tuple[FixtureSlot, ...] = field(default_factory=tuple)

    @property
    def is_empty(self) -> bool:
        return self.width <= 0
