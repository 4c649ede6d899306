"""
Base repository providing common CRUD operations.
"""

from typing import Generic, TypeVar, List, Optional, Type, Any, Iterable
from sqlalchemy import delete, inspect
from sqlalchemy.orm import Session

T = TypeVar('T')


def _write_back(source: Any, merged: Any, seen: set) -> None:
    """
    Copy generated column values from ``merged`` onto the unsaved ``source``.

    Follows the associations loaded on ``source``; merge keeps collection
    order, so collection members are paired by position.
    """
    if source is merged or id(source) in seen:
        return
    seen.add(id(source))

    state = inspect(source)
    if not state.has_identity:
        for attr in state.mapper.column_attrs:
            if getattr(source, attr.key) is None:
                setattr(source, attr.key, getattr(merged, attr.key))

    for rel in state.mapper.relationships:
        # merge() skips these, so there is nothing to pair
        if rel.key not in state.dict or not rel.cascade.merge:
            continue
        value = state.dict[rel.key]
        target = getattr(merged, rel.key)
        if value is None or target is None:
            continue
        if rel.uselist:
            for child, merged_child in zip(list(value), list(target)):
                _write_back(child, merged_child, seen)
        else:
            _write_back(value, target, seen)


class BaseRepository(Generic[T]):
    """
    Generic base repository providing common CRUD operations.
    All specific repositories should inherit from this class.

    Repositories never commit: the caller's unit of work owns the transaction.
    """

    def __init__(self, db: Session, model: Type[T]):
        """
        Initialize the repository.

        Args:
            db: SQLAlchemy database session
            model: SQLAlchemy model class
        """
        self.db = db
        self.model = model

    def save_or_update(self, obj: T) -> T:
        """
        Insert or update a record depending on the identity of ``obj``.

        New objects are inserted, objects that already carry a primary key
        have their state merged onto the stored row. Objects loaded by another
        (closed) session are handled the same way, so duplicates of the same
        row coming from different sessions never clash.

        The caller's instances (``obj`` and the new objects reachable from it)
        receive their generated primary keys and column defaults, so saving
        them again updates instead of inserting twice.

        Args:
            obj: Model instance to save

        Returns:
            The session-bound instance holding the saved state
        """
        state = inspect(obj)
        if state.persistent and state.session is self.db:
            self.db.flush()
            return obj

        merged = self.db.merge(obj)
        self.db.flush()
        _write_back(obj, merged, set())
        return merged

    def get_by_id(self, id: int) -> Optional[T]:
        """
        Retrieve a record by its ID.

        Args:
            id: Primary key value

        Returns:
            Model instance or None if not found
        """
        return self.db.query(self.model).filter(self.model.id == id).first()

    def get_all(self) -> List[T]:
        """
        Retrieve all records, ordered by ID.

        Returns:
            List of model instances
        """
        return self.db.query(self.model).order_by(self.model.id).all()

    def delete(self, obj: T) -> None:
        """
        Delete a record from the database.

        Args:
            obj: Model instance to delete
        """
        self.db.delete(obj)
        self.db.flush()

    def delete_by_id(self, id: int) -> bool:
        """
        Delete a record by its ID.

        Args:
            id: Primary key value

        Returns:
            True if deleted, False if not found
        """
        obj = self.get_by_id(id)
        if obj:
            self.delete(obj)
            return True
        return False

    def delete_many(self, ids: Iterable[int]) -> int:
        """
        Delete the records with the given IDs in one statement.

        Args:
            ids: Primary key values

        Returns:
            Number of deleted rows
        """
        ids = list(ids)
        if not ids:
            return 0
        result = self.db.execute(
            delete(self.model)
            .where(self.model.id.in_(ids))
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    def count(self) -> int:
        """
        Count total records.

        Returns:
            Total number of records
        """
        return self.db.query(self.model).count()
