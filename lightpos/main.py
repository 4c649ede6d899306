"""
Application startup.

Configures logging, reads the configuration and opens the store. The UI
receives the initialized DataManager from build_data_manager().
"""
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

from lightpos.config.app_config import AppConfig, load_config
from lightpos.constants import LogDefaults, StoreDefaults
from lightpos.exceptions import ConfigurationError
from lightpos.services.data_manager import DataManager

logger = logging.getLogger(__name__)


def configure_logging(log_dir: Path, level: int = logging.INFO) -> Path:
    """
    Send log records to a rotating file and to stdout.

    Args:
        log_dir: Directory of the log file (created if missing)
        level: Root logger level

    Returns:
        Path of the log file
    """
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / StoreDefaults.LOG_FILENAME

    log_formatter = logging.Formatter(LogDefaults.FORMAT)

    # File handler with rotation (10MB per file, keep 5 backups)
    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=LogDefaults.MAX_BYTES,
        backupCount=LogDefaults.BACKUP_COUNT,
        encoding='utf-8'
    )
    file_handler.setFormatter(log_formatter)
    file_handler.setLevel(level)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(log_formatter)
    console_handler.setLevel(level)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.addHandler(file_handler)
    root_logger.addHandler(console_handler)

    logger.info(f"Logging initialized: {log_file}")
    return log_file


def build_data_manager(config: AppConfig) -> DataManager:
    """Create and initialize the data manager for ``config``."""
    manager = DataManager.from_config(config)
    manager.initialize()
    return manager


def main() -> int:
    config = load_config()
    configure_logging(config.resolved_log_dir)

    try:
        manager = build_data_manager(config)
    except ConfigurationError as e:
        # Nothing works without the store
        logger.critical(f"❌ {e.message}", exc_info=True)
        return 1

    try:
        logger.info(
            f"Store ready: {manager.count_users()} user(s), "
            f"{len(manager.get_products())} product(s), "
            f"{len(manager.get_categories())} categories"
        )
    finally:
        manager.close()
    return 0


if __name__ == "__main__":
    sys.exit(main())
