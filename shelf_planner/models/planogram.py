import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional, Tuple

from .fixture import FixtureType


def new_id() -> str:
    return str(uuid.uuid4())


def now_iso() -> str:
    return datetime.now().isoformat(timespec='seconds')


class PlanogramStatus(Enum):
    GENERATED = "generated"
    WARNING = "warning"
    SYNCED = "synced"
    ERROR = "error"


@dataclass(frozen=True)
class Placement:
    """A product on a shelf row; position_x is the left edge in cm"""
    product_id: str
    shelf_index: int
    position_x: float = 0.0
    face_count: int = 1
    id: str = field(default_factory=new_id)

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'product_id': self.product_id,
            'shelf_index': self.shelf_index,
            'position_x': self.position_x,
            'face_count': self.face_count,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "Placement":
        return cls(
            product_id=str(data['product_id']),
            shelf_index=int(data['shelf_index']),
            position_x=float(data.get('position_x', 0.0)),
            face_count=int(data.get('face_count', 1)),
            id=str(data.get('id') or new_id()),
        )


@dataclass(frozen=True)
class StorePlacement(Placement):
    """Store-level placement; False once a person has edited it"""
    is_auto_generated: bool = True

    def to_dict(self) -> Dict:
        data = super().to_dict()
        data['is_auto_generated'] = self.is_auto_generated
        return data

    @classmethod
    def from_dict(cls, data: Dict) -> "StorePlacement":
        base = Placement.from_dict(data)
        return cls(
            product_id=base.product_id,
            shelf_index=base.shelf_index,
            position_x=base.position_x,
            face_count=base.face_count,
            id=base.id,
            is_auto_generated=bool(data.get('is_auto_generated', True)),
        )


@dataclass(frozen=True)
class Block:
    """Reusable template of placements, positions relative to its own left edge"""
    block_id: str
    name: str
    width: float
    height: float
    shelf_count: int
    placements: Tuple[Placement, ...] = ()

    def __post_init__(self):
        object.__setattr__(self, 'placements', tuple(self.placements))

    @classmethod
    def from_dict(cls, data: Dict) -> "Block":
        return cls(
            block_id=str(data['block_id']),
            name=str(data.get('name', data['block_id'])),
            width=float(data['width']),
            height=float(data.get('height', 0.0)),
            shelf_count=int(data.get('shelf_count', 1)),
            placements=[Placement.from_dict(p) for p in data.get('placements', [])],
        )


@dataclass(frozen=True)
class BlockRef:
    """A block inserted into a standard layout at position_x"""
    block_id: str
    position_x: float
    id: str = field(default_factory=new_id)

    def to_dict(self) -> Dict:
        return {'id': self.id, 'block_id': self.block_id, 'position_x': self.position_x}


@dataclass(frozen=True)
class BlockSpan:
    """Horizontal extent of a block on a layout's axis"""
    block_id: str
    position_x: float
    width: float
    ref_id: Optional[str] = None

    @property
    def end_x(self) -> float:
        return self.position_x + self.width


@dataclass(frozen=True)
class FixtureSegment:
    """Part of a block falling on one fixture, in fixture-local cm"""
    block_id: str
    rel_start: float
    rel_end: float
    ref_id: Optional[str] = None

    @property
    def width(self) -> float:
        return self.rel_end - self.rel_start


@dataclass(frozen=True)
class StandardPlanogram:
    """Canonical layout for a store format and fixture type"""
    id: str
    fmt: str
    fixture_type: FixtureType
    width: float
    height: float
    shelf_count: int
    name: str = ""
    base_store_id: Optional[str] = None
    blocks: Tuple[BlockRef, ...] = ()
    placements: Tuple[Placement, ...] = ()
    created_at: str = field(default_factory=now_iso)
    updated_at: str = field(default_factory=now_iso)

    def __post_init__(self):
        object.__setattr__(self, 'blocks', tuple(self.blocks))
        object.__setattr__(self, 'placements', tuple(self.placements))

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'fmt': self.fmt,
            'fixture_type': self.fixture_type.value,
            'name': self.name,
            'base_store_id': self.base_store_id,
            'width': self.width,
            'height': self.height,
            'shelf_count': self.shelf_count,
            'blocks': [b.to_dict() for b in self.blocks],
            'placements': [p.to_dict() for p in self.placements],
            'created_at': self.created_at,
            'updated_at': self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "StandardPlanogram":
        return cls(
            id=str(data['id']),
            fmt=str(data['fmt']),
            fixture_type=FixtureType.parse(data.get('fixture_type')),
            width=float(data['width']),
            height=float(data.get('height', 0.0)),
            shelf_count=int(data['shelf_count']),
            name=str(data.get('name', '')),
            base_store_id=data.get('base_store_id'),
            blocks=[
                BlockRef(block_id=str(b['block_id']), position_x=float(b['position_x']),
                         id=str(b.get('id') or new_id()))
                for b in data.get('blocks', [])
            ],
            placements=[Placement.from_dict(p) for p in data.get('placements', [])],
            created_at=data.get('created_at') or now_iso(),
            updated_at=data.get('updated_at') or now_iso(),
        )


@dataclass(frozen=True)
class StorePlanogram:
    """Store-specific layout derived from a standard layout"""
    id: str
    store_id: str
    standard_planogram_id: str
    width: float
    height: float
    shelf_count: int
    fixture_type: FixtureType = FixtureType.MULTI_TIER
    placements: Tuple[StorePlacement, ...] = ()
    status: PlanogramStatus = PlanogramStatus.GENERATED
    warnings: Tuple[str, ...] = ()
    created_at: str = field(default_factory=now_iso)
    updated_at: str = field(default_factory=now_iso)
    synced_at: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, 'placements', tuple(self.placements))
        object.__setattr__(self, 'warnings', tuple(self.warnings))

    def placements_on(self, shelf_index: int) -> List[StorePlacement]:
        return [p for p in self.placements if p.shelf_index == shelf_index]

    def to_dict(self) -> Dict:
        return {
            'id': self.id,
            'store_id': self.store_id,
            'standard_planogram_id': self.standard_planogram_id,
            'fixture_type': self.fixture_type.value,
            'width': self.width,
            'height': self.height,
            'shelf_count': self.shelf_count,
            'status': self.status.value,
            'warnings': list(self.warnings),
            'placements': [p.to_dict() for p in self.placements],
            'created_at': self.created_at,
            'updated_at': self.updated_at,
            'synced_at': self.synced_at,
        }

    @classmethod
    def from_dict(cls, data: Dict) -> "StorePlanogram":
        return cls(
            id=str(data['id']),
            store_id=str(data['store_id']),
            standard_planogram_id=str(data['standard_planogram_id']),
            width=float(data['width']),
            height=float(data.get('height', 0.0)),
            shelf_count=int(data['shelf_count']),
            fixture_type=FixtureType.parse(data.get('fixture_type')),
            placements=[StorePlacement.from_dict(p) for p in data.get('placements', [])],
            status=PlanogramStatus(data.get('status', PlanogramStatus.GENERATED.value)),
            warnings=data.get('warnings', []),
            created_at=data.get('created_at') or now_iso(),
            updated_at=data.get('updated_at') or now_iso(),
            synced_at=data.get('synced_at'),
        )


@dataclass(frozen=True)
class GenerationResult:
    """Per-store outcome of a batch run; reported, never persisted"""
    store_id: str
    store_name: str
    status: PlanogramStatus
    message: str
    planogram_id: Optional[str] = None
    standard_planogram_id: Optional[str] = None

    def to_dict(self) -> Dict:
        return {
            'store_id': self.store_id,
            'store_name': self.store_name,
            'status': self.status.value,
            'message': self.message,
            'planogram_id': self.planogram_id,
            'standard_planogram_id': self.standard_planogram_id,
        }
