"""
Centralized logging configuration for Label Station.

Every log line carries the name of the thread that produced it. Scans and
prints run on Flask request threads while the optional catalog refresh runs
on its own background thread, so the thread name tells them apart.

Features:
    - Automatic thread name in all log messages
    - Console output (always enabled)
    - Rotating file logs (optional, for production)
    - Separate error log for ERROR/CRITICAL messages

Log Format:
    2026-10-18 10:15:30 [INFO    ] [MainThread] label_station.app - Starting application
    2026-10-18 10:15:31 [INFO    ] [Catalog] label_station.services.catalog_service - Catalog reloaded
    2026-10-18 10:15:32 [INFO    ] [Thread-3] label_station.services.label_service - Scan 4791234567890: found

Usage:
    # At application startup
    from logging_config import setup_logging, get_logger

    setup_logging(log_level=logging.INFO, enable_file_logging=True)

    # In modules
    logger = get_logger(__name__)
    logger.info("This message includes thread context automatically")
"""

import logging
import sys
import threading
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional


APP_LOGGER_NAME = "label_station"


# =============================================================================
# THREAD CONTEXT FILTER
# =============================================================================

class ThreadContextFilter(logging.Filter):
    """
    Logging filter that adds thread context to all log records.

    Adds ``thread_name`` and ``thread_id`` to each record so the format
    string can show which thread generated the message.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """
        Add thread context to the log record.

        Args:
            record: The log record to modify

        Returns:
            Always True (records are annotated, never filtered out)
        """
        # Get current thread info
        current_thread = threading.current_thread()
        record.thread_name = current_thread.name
        record.thread_id = threading.get_ident()

        # Always let the record through
        return True


# =============================================================================
# LOGGING SETUP
# =============================================================================

def setup_logging(
    app_name: str = APP_LOGGER_NAME,
    log_level: int = logging.INFO,
    log_dir: Optional[Path] = None,
    enable_file_logging: bool = True,
) -> logging.Logger:
    """
    Configure application logging with thread context.

    This sets up:
    1. Console handler (always enabled) - for immediate feedback
    2. Rotating file handler (optional) - for persistent logs
    3. Error file handler (optional) - for ERROR/CRITICAL only
    4. Thread context filter - adds thread name to all messages

    Args:
        app_name: Name of the root logger (default: "label_station")
        log_level: Minimum log level (default: INFO)
        log_dir: Directory for log files (default: ./logs relative to this file)
        enable_file_logging: Whether to write to log files (default: True)

    Returns:
        Configured root logger instance

    Example:
        # Development
        logger = setup_logging(log_level=logging.DEBUG, enable_file_logging=False)

        # Production
        logger = setup_logging(log_level=logging.INFO, enable_file_logging=True)
    """
    # Create or get the root logger for Label Station
    logger = logging.getLogger(app_name)
    logger.setLevel(log_level)
    logger.propagate = False  # Prevent duplicate logs to root logger

    # Remove any existing handlers (allows re-configuration)
    logger.handlers.clear()

    # Thread-aware formatter
    # Format: timestamp [level] [thread_name] logger_name - message
    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)-8s] [%(thread_name)s] %(name)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    # One filter shared by every handler
    thread_filter = ThreadContextFilter()

    # ---------------------------------------------------------------------
    # Console Handler (always enabled)
    # ---------------------------------------------------------------------
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    console_handler.setFormatter(formatter)
    console_handler.addFilter(thread_filter)
    logger.addHandler(console_handler)

    # ---------------------------------------------------------------------
    # File Handlers (optional)
    # ---------------------------------------------------------------------
    if enable_file_logging:
        # Default log directory sits next to this file
        if log_dir is None:
            log_dir = Path(__file__).parent / "logs"

        # Create directory if needed
        log_dir.mkdir(parents=True, exist_ok=True)

        # Main application log (all levels)
        app_log_file = log_dir / f"{app_name}.log"
        file_handler = RotatingFileHandler(
            filename=app_log_file,
            maxBytes=10 * 1024 * 1024,  # 10 MB per file
            backupCount=5,               # Keep 5 backup files
            encoding="utf-8"
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(formatter)
        file_handler.addFilter(thread_filter)
        logger.addHandler(file_handler)

        # Error log (ERROR and CRITICAL only)
        error_log_file = log_dir / f"{app_name}_error.log"
        error_handler = RotatingFileHandler(
            filename=error_log_file,
            maxBytes=10 * 1024 * 1024,  # 10 MB per file
            backupCount=5,               # Keep 5 backup files
            encoding="utf-8"
        )
        error_handler.setLevel(logging.ERROR)
        error_handler.setFormatter(formatter)
        error_handler.addFilter(thread_filter)
        logger.addHandler(error_handler)

        logger.info(f"File logging enabled: {app_log_file}")

    logger.info(f"Logging configured at level {logging.getLevelName(log_level)}")
    return logger


# =============================================================================
# LOGGER FACTORY FUNCTIONS
# =============================================================================

def get_logger(name: str) -> logging.Logger:
    """
    Get a child logger with the application namespace.

    This creates a logger under the "label_station" namespace,
    which inherits the configuration from setup_logging().

    Args:
        name: Module name (typically __name__)

    Returns:
        Logger instance with thread context support

    Example:
        # In services/catalog_service.py
        logger = get_logger(__name__)
        # Logger name: "label_station.services.catalog_service"
    """
    # Ensure name is under our namespace
    if not name.startswith(APP_LOGGER_NAME):
        # e.g., "services.catalog_service" -> "label_station.services.catalog_service"
        name = f"{APP_LOGGER_NAME}.{name}"

    return logging.getLogger(name)


def set_thread_name(name: str) -> None:
    """
    Set the name of the current thread.

    This name appears in log messages in the [thread_name] field.
    Use this when starting worker threads to give them meaningful names.

    Args:
        name: Thread name to display in logs

    Example:
        # In the catalog refresh thread
        set_thread_name("Catalog")
    """
    threading.current_thread().name = name
