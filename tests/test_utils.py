import logging

import pytest

from shelf_planner.models.fixture import FixtureType
from shelf_planner.utils.error_handler import ShelfPlannerError, handle_errors
from shelf_planner.utils.logger import configure_logging, get_logger
from shelf_planner.utils.monitor import PerformanceMonitor


def test_handle_errors_wraps_unexpected_exceptions():
    @handle_errors()
    def broken():
        raise KeyError("width")

    with pytest.raises(ShelfPlannerError, match="Unexpected error in broken"):
        broken()


def test_handle_errors_default_return():
    @handle_errors(default_return=[], raise_on_error=False)
    def broken():
        raise ValueError("bad row")

    assert broken() == []


def test_file_logging(tmp_path):
    logger = configure_logging(str(tmp_path), "WARNING")
    logger.debug("written to file only")
    for handler in logger.handlers:
        handler.flush()

    assert logger is get_logger()
    assert logger.name == "shelf_planner"
    log_files = list(tmp_path.glob("shelf_planner_*.log"))
    assert len(log_files) == 1
    assert "written to file only" in log_files[0].read_text()
    assert any(h.level == logging.WARNING for h in logger.handlers)
    configure_logging()


def test_monitor_records_duration():
    monitor = PerformanceMonitor()

    @monitor.time_it
    def work():
        return 42

    assert work() == 42
    assert monitor.metrics[0][0] == "work"


def test_monitor_keeps_recent_samples_only():
    monitor = PerformanceMonitor(history=3)

    @monitor.time_it
    def work():
        return None

    for _ in range(10):
        work()

    assert len(monitor.metrics) == 3


def test_fixture_type_parse():
    assert FixtureType.parse(None) == FixtureType.MULTI_TIER
    assert FixtureType.parse(" flat-frozen ") == FixtureType.FLAT_FROZEN
    assert FixtureType.MULTI_TIER.label == "多段"
    with pytest.raises(ValueError):
        FixtureType.parse("pallet")
