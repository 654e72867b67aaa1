import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

from couchkit.config.settings import Settings


def setup_logging(
    logger_name: str = Settings.LOGGER_NAME,
    log_level: int = logging.INFO,
    log_dir: Optional[Path] = None,
    log_file_max_bytes: int = Settings.LOG_FILE_MAX_BYTES,
    log_file_backup_count: int = Settings.LOG_FILE_BACKUP_COUNT,
    console_output: bool = True,
    file_output: bool = True,
) -> logging.Logger:
    """
    Configures and returns a logger instance.

    Library modules only call ``logging.getLogger(__name__)``; applications
    embedding couchkit call this once to attach handlers to the package logger.

    Args:
        logger_name: The name for the logger, ``couchkit`` by default.
        log_level: The minimum log level to capture (e.g., logging.INFO, logging.DEBUG).
        log_dir: The directory to store log files, ``Settings.LOGS_DIR`` by default.
        log_file_max_bytes: Maximum size of a log file before rotation.
        log_file_backup_count: Number of backup log files to keep.
        console_output: Whether to output logs to the console.
        file_output: Whether to write a rotating log file.

    Returns:
        A configured logger instance.
    """
    logger = logging.getLogger(logger_name)

    # Handlers are attached once per logger name
    if logger.handlers:
        logger.setLevel(log_level)
        return logger

    logger.setLevel(log_level)

    formatter = logging.Formatter(
        "%(asctime)s - %(name)s - %(levelname)s - [%(module)s.%(funcName)s:%(lineno)d] - %(message)s"
    )

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    if file_output:
        log_dir = Settings.get_logs_dir(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        sanitized_logger_name = "".join(c if c.isalnum() or c in ['_', '-'] else '_' for c in logger_name)
        log_file_path = log_dir / f"{sanitized_logger_name}.log"

        file_handler = RotatingFileHandler(
            log_file_path,
            maxBytes=log_file_max_bytes,
            backupCount=log_file_backup_count,
            encoding='utf-8'
        )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
