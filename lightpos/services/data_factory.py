"""
Session Factory Builder

Builds the session factory of the embedded store. The mapping configuration
is read from the cache file beside the database when it is still valid and
rebuilt from the declarative models otherwise. With ``overwrite_existing`` the
database file is deleted and the schema recreated before first use.
"""
import logging
from pathlib import Path
from typing import Optional

from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from lightpos.constants import StoreDefaults
from lightpos.database import create_store_engine, sqlite_url
from lightpos.exceptions import StoreInitializationError
from lightpos.models import Base
from lightpos.services.configuration_cache import (
    StoreConfiguration,
    load_configuration,
    save_configuration,
    schema_fingerprint,
)
from lightpos.services.schema_validator import SchemaValidator

logger = logging.getLogger(__name__)


class DataFactory:
    """Creates the store, its schema and the session factory bound to it"""

    def __init__(
        self,
        db_path: Path,
        overwrite_existing: bool = False,
        cache_path: Optional[Path] = None,
        echo: bool = False,
    ):
        """
        Args:
            db_path: SQLite database file
            overwrite_existing: Delete the file and recreate the schema
            cache_path: Configuration cache (defaults to a file beside the database)
            echo: Log every SQL statement
        """
        self.db_path = Path(db_path)
        self.overwrite_existing = overwrite_existing
        self.cache_path = Path(cache_path) if cache_path else self.db_path.with_name(
            StoreDefaults.CONFIG_CACHE_FILENAME
        )
        self.echo = echo
        self.engine = None
        self.loaded_from_cache = False

    @property
    def database_url(self) -> str:
        return sqlite_url(self.db_path)

    def create(self) -> None:
        """
        Create the database file and its schema if the file does not exist yet.
        """
        if self.db_path.exists():
            return

        logger.info(f"Creating new store at {self.db_path}")
        factory = DataFactory(self.db_path, True, self.cache_path, self.echo)
        factory.create_session_factory()
        factory.dispose()

    def create_session_factory(self) -> sessionmaker:
        """
        Build the engine and return a session factory bound to it.

        Raises:
            StoreInitializationError: If the store cannot be opened or built
        """
        configuration = self.get_configuration()

        engine = None
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            if self.overwrite_existing:
                self._delete_database_file()

            engine = create_store_engine(self.db_path, echo=self.echo)
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))

            if self.overwrite_existing:
                self._build_schema(engine)
            elif not self.loaded_from_cache:
                SchemaValidator.check(engine, Base.metadata)
        except (SQLAlchemyError, OSError) as e:
            logger.error(f"❌ Failed to open store {self.db_path}: {e}", exc_info=True)
            if engine is not None:
                engine.dispose()
            raise StoreInitializationError(
                str(self.db_path), f"Failed to open store {self.db_path}: {e}"
            ) from e

        self.engine = engine
        logger.info(
            f"Session factory ready for {self.db_path} "
            f"({len(configuration.tables)} tables, cached={self.loaded_from_cache})"
        )
        return sessionmaker(bind=engine, expire_on_commit=False)

    def get_configuration(self) -> StoreConfiguration:
        """
        Return the mapping configuration, from the cache when possible.

        The cache is only used for an existing database that is not being
        overwritten, and only while it describes this database and the
        current mapping. Otherwise the configuration is rebuilt and the cache
        rewritten.
        """
        fingerprint = schema_fingerprint(Base.metadata)

        if not self.overwrite_existing and self.db_path.exists():
            cached = load_configuration(self.cache_path)
            if cached is not None and cached.matches(self.database_url, fingerprint):
                logger.info(f"Loaded mapping configuration from {self.cache_path}")
                self.loaded_from_cache = True
                return cached
            if cached is not None:
                logger.info("Configuration cache is stale, rebuilding")

        self.loaded_from_cache = False
        configuration = StoreConfiguration.from_metadata(self.database_url, Base.metadata)
        save_configuration(configuration, self.cache_path)
        return configuration

    def dispose(self) -> None:
        """Close every pooled connection of the engine."""
        if self.engine is not None:
            self.engine.dispose()
            self.engine = None

    def _delete_database_file(self) -> None:
        if self.db_path.exists():
            logger.warning(f"Overwriting existing store {self.db_path}")
            self.db_path.unlink()

    def _build_schema(self, engine) -> None:
        Base.metadata.drop_all(bind=engine)
        Base.metadata.create_all(bind=engine)
        logger.info(f"✅ Schema created ({len(Base.metadata.tables)} tables)")
