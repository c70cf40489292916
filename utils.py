#!/usr/bin/env python3
"""
===========================
= COGNITO POOL SWEEPER =
===========================

Title: PoolSweep Utilities Module
Version: v0.1.0
Date: OCT-18-2026

Description:
Shared utility functions for PoolSweep. Provides logging setup (console and
rotating-by-run log files), standardized log helpers, and the AWS error
handling context manager the CLI wraps around each command. Client creation
lives in the pslib package and is re-exported here for scripts that only
import utils.
"""

import datetime
import logging
import sys
from contextlib import contextmanager
from pathlib import Path
from typing import List, Optional

from pslib.aws_client import (  # noqa: F401  (client helpers re-exported for the CLI)
    aws_error_code,
    aws_error_message,
    get_identity_pool_client,
    get_user_pool_client,
    validate_aws_region,
)

LOGGER_NAME = "poolsweep"
# Library modules log under pslib.*; they share the same handlers
LIBRARY_LOGGER_NAME = "pslib"

# Global logger instance
logger = None
# Tracks whether setup_logging() has been explicitly called
_logging_configured = False


def _cleanup_old_logs(logs_dir: Path, log_retention_days: int = 14) -> None:
    """
    Remove log files older than log_retention_days from the logs directory.

    Args:
        logs_dir: Path to the logs directory
        log_retention_days: Number of days to retain log files (default: 14)
    """
    cutoff = datetime.datetime.now() - datetime.timedelta(days=log_retention_days)
    cutoff_timestamp = cutoff.timestamp()
    removed = 0
    for log_file in logs_dir.glob("*.log"):
        try:
            if log_file.stat().st_mtime < cutoff_timestamp:
                log_file.unlink()
                removed += 1
        except OSError:
            continue
    if removed:
        logging.getLogger(LOGGER_NAME).debug(
            f"Cleaned up {removed} log file(s) older than {log_retention_days} days"
        )


def setup_logging(
    script_name: str = "poolsweep",
    log_to_file: bool = True,
    logs_dir: Optional[Path] = None,
) -> logging.Logger:
    """
    Setup logging for PoolSweep with both console and file output.

    Args:
        script_name (str): Name of the script for log file naming
        log_to_file (bool): Whether to log to file in addition to console
        logs_dir (Path): Directory for log files (default: logs/ next to this module)

    Returns:
        logging.Logger: Configured logger instance
    """
    global logger, _logging_configured

    logger = logging.getLogger(LOGGER_NAME)
    library_logger = logging.getLogger(LIBRARY_LOGGER_NAME)

    handlers: List[logging.Handler] = []

    console_formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    file_formatter = logging.Formatter(
        '%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    # Console handler (always enabled)
    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(console_formatter)
    handlers.append(console_handler)

    log_filepath = None
    file_error = None
    if log_to_file:
        try:
            logs_dir = Path(logs_dir) if logs_dir else Path(__file__).parent / "logs"
            logs_dir.mkdir(parents=True, exist_ok=True)
            _cleanup_old_logs(logs_dir)

            # Timestamp for log filename: MM.DD.YYYY-HHMM
            timestamp = datetime.datetime.now().strftime("%m.%d.%Y-%H%M")
            log_filepath = logs_dir / f"logs-{script_name}-{timestamp}.log"

            file_handler = logging.FileHandler(log_filepath, mode='w', encoding='utf-8')
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(file_formatter)
            handlers.append(file_handler)
        except OSError as e:
            log_filepath = None
            file_error = e

    for target in (logger, library_logger):
        target.setLevel(logging.DEBUG)
        target.handlers = list(handlers)

    if log_filepath:
        logger.info(f"PoolSweep logging initialized - Log file: {log_filepath}")
        logger.info(f"Script: {script_name}")
        logger.info("=" * 80)
    elif file_error:
        logger.error(f"Failed to setup file logging: {file_error}")
        logger.warning("Continuing with console logging only")

    _logging_configured = True
    return logger


def get_logger() -> logging.Logger:
    """
    Get the current logger instance.
    If setup_logging() has not yet been called, returns a logger with a
    NullHandler so that library usage does not emit spurious output.

    Returns:
        logging.Logger: Logger instance
    """
    if logger is None:
        _null_logger = logging.getLogger(LOGGER_NAME)
        if not _null_logger.handlers:
            _null_logger.addHandler(logging.NullHandler())
        return _null_logger
    return logger

# Do NOT call setup_logging() at module import time.
# Entry points must call utils.setup_logging() explicitly to activate logging.


def log_error(error_message: str, error_obj: Optional[BaseException] = None) -> None:
    """
    Log an error message to both console and file.

    Args:
        error_message: The error message to display
        error_obj: Optional exception object
    """
    current_logger = get_logger()
    if error_obj:
        current_logger.error(f"{error_message}: {str(error_obj)}")
        # Stack trace goes to the file handler only
        current_logger.debug(f"Exception details: {error_obj}", exc_info=error_obj)
    else:
        current_logger.error(error_message)


def log_warning(warning_message: str) -> None:
    get_logger().warning(warning_message)


def log_info(info_message: str) -> None:
    get_logger().info(info_message)


def log_debug(debug_message: str) -> None:
    """Log a debug message (file only, not console)."""
    get_logger().debug(debug_message)


def log_success(success_message: str) -> None:
    get_logger().info(f"SUCCESS: {success_message}")


def log_script_start(script_name: str, description: str = "") -> None:
    """
    Log the start of a script execution with standardized format.

    Args:
        script_name: Name of the script being executed
        description: Optional description of the script's purpose
    """
    current_logger = get_logger()
    current_logger.info("=" * 80)
    current_logger.info(f"SCRIPT START: {script_name}")
    if description:
        current_logger.info(f"DESCRIPTION: {description}")
    current_logger.info(f"START TIME: {datetime.datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    current_logger.info("=" * 80)


def log_script_end(script_name: str, start_time: Optional[datetime.datetime] = None) -> None:
    """
    Log the end of a script execution with standardized format.

    Args:
        script_name: Name of the script that was executed
        start_time: Optional start time to calculate duration
    """
    current_logger = get_logger()
    end_time = datetime.datetime.now()

    current_logger.info("=" * 80)
    current_logger.info(f"SCRIPT END: {script_name}")
    current_logger.info(f"END TIME: {end_time.strftime('%Y-%m-%d %H:%M:%S')}")

    if start_time:
        current_logger.info(f"DURATION: {end_time - start_time}")

    current_logger.info("=" * 80)


def log_section(section_name: str) -> None:
    current_logger = get_logger()
    current_logger.info("-" * 50)
    current_logger.info(f"SECTION: {section_name}")
    current_logger.info("-" * 50)


def log_export_summary(resource_type: str, count: int, output_file: str) -> None:
    """
    Log export operation summary.

    Args:
        resource_type: Type of resource exported
        count: Number of resources exported
        output_file: Path to output file
    """
    current_logger = get_logger()
    current_logger.info(f"EXPORT SUMMARY: {resource_type}")
    current_logger.info(f"  Resources exported: {count}")
    current_logger.info(f"  Output file: {output_file}")


# =============================================================================
# STANDARDIZED ERROR HANDLING
# =============================================================================


def _log_aws_exception(operation_name: str, e: BaseException) -> None:
    from botocore.exceptions import ClientError, NoCredentialsError

    if isinstance(e, NoCredentialsError):
        log_error(
            f"{operation_name}: No AWS credentials found. "
            "Set AWS_ACCESS_ID/AWS_SECRET_KEY or configure credentials with 'aws configure'."
        )
    elif isinstance(e, ClientError):
        error_code = aws_error_code(e) or 'Unknown'
        log_error(f"{operation_name}: AWS error [{error_code}]: {aws_error_message(e)}")
    else:
        log_error(f"{operation_name}: Unexpected error", e)


@contextmanager
def handle_aws_operation(operation_name: str, suppress_errors: bool = False):
    """
    Context manager for AWS operations with standardized error handling.

    NoCredentialsError and ClientError (with code extraction) get specific
    log lines; anything else is logged as unexpected.

    Args:
        operation_name: Human-readable operation description for logging
        suppress_errors: Whether to suppress exceptions (False = reraise)

    Example:
        with handle_aws_operation("poolsweep export"):
            run_sweep(idp_client, identity_client, region, data_dir)
    """
    try:
        yield
    except Exception as e:
        _log_aws_exception(operation_name, e)
        if not suppress_errors:
            raise
