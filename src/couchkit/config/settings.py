"""Application-wide settings and configuration."""

from pathlib import Path
from typing import Optional


class Settings:
    """Centralized couchkit settings."""

    # Project paths
    PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
    LOGS_DIR = PROJECT_ROOT / "logs"

    # Logging
    LOGGER_NAME = "couchkit"
    LOG_FILE_MAX_BYTES = 10 * 1024 * 1024  # 10 MB
    LOG_FILE_BACKUP_COUNT = 5

    @classmethod
    def get_logs_dir(cls, custom_path: Optional[Path] = None) -> Path:
        """Get the logs directory, with optional override."""
        return custom_path or cls.LOGS_DIR
