"""
Base store interface for autorest.

Defines the abstract interface that every store adapter must implement. The
generated endpoints only ever read and write records through these calls.
"""

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any, Dict, Iterable, List, Mapping, Optional

if TYPE_CHECKING:
    from autorest.descriptors import ModelDescriptor
    from autorest.query import QueryDescriptor

Record = Dict[str, Any]


class Store(ABC):
    """
    Abstract base class for storage adapters.

    All adapters (in-memory, SQL, document stores, ...) implement this
    interface to provide consistent asynchronous CRUD operations. Records are
    plain dicts keyed by field name and always carry an ``id``.
    """

    def register(self, models: Iterable["ModelDescriptor"]) -> None:
        """
        Make the store aware of the models it will serve.

        Optional method for adapters that need setup (tables, indexes, ...).
        """

    @abstractmethod
    async def find_all(self, model: "ModelDescriptor", query: "QueryDescriptor") -> List[Record]:
        """
        Find records matching a query.

        Args:
            model: The model being queried
            query: Filters, projection, limit and offset

        Returns:
            Matching records in store order, after offset, at most ``limit``
        """

    @abstractmethod
    async def find_by_id(
        self,
        model: "ModelDescriptor",
        id: Any,
        fields: Optional[Iterable[str]] = None,
    ) -> Record:
        """
        Get a single record by primary key.

        Args:
            model: The model to query
            id: Primary key value
            fields: Optional projection; None returns every field

        Raises:
            NotFoundError: If no record has this id
        """

    @abstractmethod
    async def find_one(self, model: "ModelDescriptor", where: Mapping[str, Any]) -> Record:
        """
        Get the first record whose fields equal ``where``.

        Raises:
            NotFoundError: If nothing matches
        """

    @abstractmethod
    async def create(self, model: "ModelDescriptor", fields: Mapping[str, Any]) -> Record:
        """
        Create a new record.

        Returns:
            The stored record, including its generated ``id``

        Raises:
            ValidationError: If data validation fails
            DuplicateKeyError: If the id is already taken
        """

    @abstractmethod
    async def update(self, model: "ModelDescriptor", fields: Mapping[str, Any], id: Any) -> None:
        """
        Update the given fields of an existing record.

        Raises:
            NotFoundError: If the record doesn't exist
            ValidationError: If update data is invalid
        """

    @abstractmethod
    async def upsert(self, model: "ModelDescriptor", fields: Mapping[str, Any]) -> None:
        """
        Create or replace a record keyed by ``fields['id']``.

        Raises:
            ValidationError: If data validation fails
        """

    @abstractmethod
    async def destroy(self, model: "ModelDescriptor", id: Any = None, cascade: bool = False) -> None:
        """
        Delete one record, or every record of the model when ``id`` is None.

        Args:
            model: The model to delete from
            id: Primary key of the record to delete, None to truncate
            cascade: Also delete records of other models referencing the deleted ones

        Raises:
            NotFoundError: If ``id`` is given and doesn't exist
            ConstraintError: If other records still reference the deleted ones and
                ``cascade`` is False
        """

    @abstractmethod
    async def count(self, model: "ModelDescriptor") -> int:
        """Number of records of the model."""

    async def close(self) -> None:
        """
        Close connections and cleanup resources.

        Optional method for adapters with persistent connections.
        """


class StoreError(Exception):
    """Base exception for store errors."""
    pass


class NotFoundError(StoreError):
    """Record not found in store."""
    pass


class DuplicateKeyError(StoreError):
    """Unique constraint violation."""
    pass


class ValidationError(StoreError):
    """Data validation failed."""
    pass


class ConstraintError(StoreError):
    """Operation would leave records referencing missing records."""
    pass
