import time
from collections import deque
from functools import wraps

from .logger import get_logger

METRICS_HISTORY = 1000


class PerformanceMonitor:
    """Monitor engine performance; keeps only the most recent samples"""

    def __init__(self, history: int = METRICS_HISTORY):
        self.metrics = deque(maxlen=history)

    def time_it(self, func):
        """Decorator to time function execution"""
        @wraps(func)
        def wrapper(*args, **kwargs):
            start = time.perf_counter()
            result = func(*args, **kwargs)
            duration = time.perf_counter() - start
            self.metrics.append((func.__name__, duration))
            get_logger().debug(f"{func.__name__} took {duration * 1000:.1f}ms")
            return result
        return wrapper


monitor = PerformanceMonitor()
