import logging
import os
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

LOG_DIR_ENV = "SHELF_PLANNER_LOG_DIR"
LOG_LEVEL_ENV = "SHELF_PLANNER_LOG_LEVEL"


class PlanogramLogger:
    """Centralized logging system for the shelf planner"""

    def __init__(self, log_dir: Optional[str] = None, console_level: str = "INFO", file_level: str = "DEBUG"):
        # Create logger
        self.logger = logging.getLogger('shelf_planner')
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False

        # Remove existing handlers
        self.logger.handlers = []

        # Console handler
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(getattr(logging, console_level.upper(), logging.INFO))
        console_format = logging.Formatter(
            '%(asctime)s | %(levelname)-8s | %(message)s',
            datefmt='%H:%M:%S'
        )
        console_handler.setFormatter(console_format)
        self.logger.addHandler(console_handler)

        # File handler only when a log directory is configured
        self.log_file = None
        if log_dir:
            log_path = Path(log_dir)
            log_path.mkdir(parents=True, exist_ok=True)
            self.log_file = log_path / f"shelf_planner_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(self.log_file)
            file_handler.setLevel(getattr(logging, file_level.upper(), logging.DEBUG))
            file_format = logging.Formatter(
                '%(asctime)s | %(levelname)-8s | %(module)-15s | %(funcName)-20s | %(message)s'
            )
            file_handler.setFormatter(file_format)
            self.logger.addHandler(file_handler)
            self.logger.debug(f"Logging initialized. Log file: {self.log_file}")

    def get_logger(self):
        return self.logger


# Global logger instance
_logger_instance = None


def get_logger():
    """Get or create logger instance"""
    global _logger_instance
    if _logger_instance is None:
        _logger_instance = PlanogramLogger(
            log_dir=os.environ.get(LOG_DIR_ENV),
            console_level=os.environ.get(LOG_LEVEL_ENV, "INFO"),
        )
    return _logger_instance.get_logger()


def configure_logging(log_dir: Optional[str] = None, console_level: str = "INFO"):
    """Rebuild the global logger, e.g. from command line options"""
    global _logger_instance
    _logger_instance = PlanogramLogger(log_dir=log_dir, console_level=console_level)
    return _logger_instance.get_logger()
