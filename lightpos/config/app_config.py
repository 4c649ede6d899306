"""
Application Configuration

Where the store lives and how it is opened. Values come from LIGHTPOS_*
environment variables, with defaults under the user's home directory.
"""
import os
import logging
from pathlib import Path
from typing import Mapping, Optional

from pydantic import BaseModel

from lightpos.constants import EnvVars, StoreDefaults

logger = logging.getLogger(__name__)


def _is_truthy(value: Optional[str]) -> bool:
    return (value or '').strip().lower() in ('true', '1', 'yes')


class AppConfig(BaseModel):
    """Validated application settings"""
    data_dir: Path
    db_filename: str = StoreDefaults.DB_FILENAME
    log_dir: Optional[Path] = None
    sql_echo: bool = False
    overwrite_db: bool = False

    @property
    def db_path(self) -> Path:
        """Full path of the SQLite database file"""
        return self.data_dir / self.db_filename

    @property
    def cache_path(self) -> Path:
        """Mapping configuration cache, stored beside the database"""
        return self.data_dir / StoreDefaults.CONFIG_CACHE_FILENAME

    @property
    def resolved_log_dir(self) -> Path:
        return self.log_dir or self.data_dir / StoreDefaults.LOG_DIR_NAME


def load_config(environ: Optional[Mapping[str, str]] = None) -> AppConfig:
    """
    Build the configuration from environment variables.

    Args:
        environ: Mapping to read from (defaults to os.environ)

    Returns:
        AppConfig instance
    """
    env = os.environ if environ is None else environ

    data_dir = env.get(EnvVars.DATA_DIR) or str(Path.home() / StoreDefaults.DATA_DIR_NAME)
    log_dir = env.get(EnvVars.LOG_DIR)

    config = AppConfig(
        data_dir=Path(data_dir).expanduser(),
        db_filename=env.get(EnvVars.DB_FILENAME) or StoreDefaults.DB_FILENAME,
        log_dir=Path(log_dir).expanduser() if log_dir else None,
        sql_echo=_is_truthy(env.get(EnvVars.SQL_ECHO)),
        overwrite_db=_is_truthy(env.get(EnvVars.OVERWRITE_DB)),
    )

    if config.overwrite_db:
        logger.warning(f"⚠️  {EnvVars.OVERWRITE_DB} is set: {config.db_path} will be recreated")

    return config
