from .repository import BaseRepository, InMemoryRepository, Repositories
from .data_loader import DataLoader
from .data_validator import DataValidator
from .data_transformer import DataTransformer

__all__ = [
    'BaseRepository', 'InMemoryRepository', 'Repositories',
    'DataLoader', 'DataValidator', 'DataTransformer',
]
