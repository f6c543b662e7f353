from .error_handler import (
    ShelfPlannerError,
    DataLoadError,
    ValidationError,
    GenerationError,
    ConfigurationError,
    CapacityError,
    DuplicatePlanogramError,
    NoSpaceError,
    DataIntegrityWarning,
    handle_errors,
)
from .logger import get_logger, configure_logging
from .monitor import monitor

__all__ = [
    'ShelfPlannerError', 'DataLoadError', 'ValidationError', 'GenerationError',
    'ConfigurationError', 'CapacityError', 'DuplicatePlanogramError', 'NoSpaceError',
    'DataIntegrityWarning', 'handle_errors', 'get_logger', 'configure_logging', 'monitor',
]
