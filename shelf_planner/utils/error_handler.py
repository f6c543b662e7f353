from functools import wraps
from typing import Callable, Any


class ShelfPlannerError(Exception):
    """Base exception for the shelf planner"""
    pass


class DataLoadError(ShelfPlannerError):
    """Error loading catalog data"""
    pass


class ValidationError(ShelfPlannerError):
    """Invalid input or edit request"""
    pass


class GenerationError(ShelfPlannerError):
    """A store layout could not be generated"""
    pass


class ConfigurationError(GenerationError):
    """No standard layout matches the store's format and fixture type"""
    pass


class CapacityError(GenerationError):
    """Store has no usable fixture width"""
    pass


class DuplicatePlanogramError(GenerationError):
    """Store already has a layout for this standard; only sync may replace it"""
    pass


class NoSpaceError(ShelfPlannerError):
    """Block allocator found no gap wide enough"""

    def __init__(self, block_width: float, canvas_width: float, message: str = ""):
        self.block_width = block_width
        self.canvas_width = canvas_width
        super().__init__(
            message or f"No free gap of {block_width:g}cm on a {canvas_width:g}cm canvas"
        )


class DataIntegrityWarning(UserWarning):
    """A placement references an id missing from the catalog"""
    pass


def handle_errors(default_return=None, raise_on_error=True):
    """Decorator for error handling"""
    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            try:
                return func(*args, **kwargs)
            except ShelfPlannerError:
                if raise_on_error:
                    raise
                return default_return
            except Exception as e:
                if raise_on_error:
                    raise ShelfPlannerError(f"Unexpected error in {func.__name__}: {str(e)}") from e
                return default_return
        return wrapper
    return decorator
