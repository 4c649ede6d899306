"""
Mapping Configuration Cache

A snapshot of the mapping configuration (database URL, mapped tables and a
fingerprint of the schema) is written beside the database after a fresh
build. On the next start a snapshot that still matches lets the factory skip
verifying the store's schema.
"""
import logging
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

import sqlalchemy
from pydantic import BaseModel
from sqlalchemy import MetaData

from lightpos.utils.caching import make_signature

logger = logging.getLogger(__name__)


def schema_fingerprint(metadata: MetaData) -> str:
    """
    Fingerprint of the mapped schema.

    Changes whenever a table, column, column type, nullability, key or
    foreign key of the mapping changes.
    """
    parts = []
    for table in sorted(metadata.tables.values(), key=lambda t: t.name):
        parts.append(table.name)
        for column in table.columns:
            targets = sorted(fk.target_fullname for fk in column.foreign_keys)
            parts.append(
                f"{column.name}:{column.type}:{column.nullable}:{column.primary_key}:{','.join(targets)}"
            )
    return make_signature(*parts)


class StoreConfiguration(BaseModel):
    """Serializable snapshot of a built mapping configuration"""
    database_url: str
    schema_fingerprint: str
    tables: Dict[str, List[str]]
    sqlalchemy_version: str
    built_at: datetime

    @classmethod
    def from_metadata(cls, database_url: str, metadata: MetaData) -> "StoreConfiguration":
        """Build the snapshot for ``metadata`` bound to ``database_url``."""
        return cls(
            database_url=database_url,
            schema_fingerprint=schema_fingerprint(metadata),
            tables={
                table.name: [column.name for column in table.columns]
                for table in metadata.sorted_tables
            },
            sqlalchemy_version=sqlalchemy.__version__,
            built_at=datetime.now(),
        )

    def matches(self, database_url: str, fingerprint: str) -> bool:
        """True if the snapshot describes this store and this mapping."""
        return (
            self.database_url == database_url
            and self.schema_fingerprint == fingerprint
            and self.sqlalchemy_version == sqlalchemy.__version__
        )


def load_configuration(path: Path) -> Optional[StoreConfiguration]:
    """
    Read a cached snapshot.

    A file that cannot be read or parsed is deleted so the next build
    replaces it.

    Returns:
        The snapshot, or None if there is no usable cache
    """
    if not path.exists():
        return None
    try:
        return StoreConfiguration.model_validate_json(path.read_bytes())
    except (ValueError, OSError) as e:
        logger.warning(f"Discarding unreadable configuration cache {path}: {e}")
        path.unlink(missing_ok=True)
        return None


def save_configuration(configuration: StoreConfiguration, path: Path) -> bool:
    """
    Write the snapshot to ``path``.

    Returns:
        True if written; failures are logged and only cost a slower next start
    """
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(configuration.model_dump_json(indent=2), encoding='utf-8')
        logger.debug(f"Configuration cache written: {path}")
        return True
    except OSError as e:
        logger.warning(f"Could not write configuration cache {path}: {e}")
        return False
