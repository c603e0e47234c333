"""
In-memory store for autorest.

Simple dict-based storage for testing and examples without requiring
external services.
"""

import logging
from copy import deepcopy
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Tuple

from anyio.lowlevel import checkpoint
from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from autorest.descriptors import ModelDescriptor
from autorest.query import QueryDescriptor
from autorest.store.base import (
    ConstraintError,
    DuplicateKeyError,
    NotFoundError,
    Record,
    Store,
    ValidationError,
)

logger = logging.getLogger(__name__)


class InMemoryStore(Store):
    """
    In-memory storage using Python dicts.

    Stores all data in memory. Data is lost when the process ends.
    Records keep insertion order, integer ids are generated from a
    per-model sequence like an auto-increment column, and the
    ``created_at``/``updated_at`` bookkeeping fields are maintained on
    every write.

    Example:
        >>> store = InMemoryStore()
        >>> store.register([users])
        >>> record = await store.create(users, {"givenname": "Dominik"})
        >>> record["id"]
        1
    """

    def __init__(self, timestamps: Tuple[str, str] = ("created_at", "updated_at")):
        """
        Initialize in-memory store.

        Args:
            timestamps: Names of the (created, updated) bookkeeping fields
        """
        self.created_field, self.updated_field = timestamps
        self._models: Dict[str, ModelDescriptor] = {}
        # Storage: {collection: {id: record}}
        self._storage: Dict[str, Dict[Any, Record]] = {}
        self._sequences: Dict[str, int] = {}
        self._validators: Dict[Tuple[str, str], TypeAdapter] = {}

    def register(self, models: Iterable[ModelDescriptor]) -> None:
        for model in models:
            self._models[model.collection] = model
            self._storage.setdefault(model.collection, {})
            self._sequences.setdefault(model.collection, 0)
            for name, spec in model.fields.items():
                self._validators[(model.collection, name)] = TypeAdapter(Optional[spec.python_type])

    def _get_storage(self, model: ModelDescriptor) -> Dict[Any, Record]:
        """Get storage dict for a model, registering it on first use."""
        if model.collection not in self._models:
            self.register([model])
        return self._storage[model.collection]

    def _validate(self, model: ModelDescriptor, fields: Mapping[str, Any]) -> Record:
        """Check field names and coerce values to the declared types."""
        clean: Record = {}
        for name, value in fields.items():
            if name in (self.created_field, self.updated_field) and not model.has_field(name):
                continue
            if not model.has_field(name):
                raise ValidationError(f"{model.collection} has no field '{name}'")
            try:
                clean[name] = self._validators[(model.collection, name)].validate_python(value)
            except PydanticValidationError as e:
                raise ValidationError(f"invalid value for {model.collection}.{name}: {value!r}") from e
        return clean

    def _next_id(self, model: ModelDescriptor) -> int:
        self._sequences[model.collection] += 1
        return self._sequences[model.collection]

    def _claim_id(self, model: ModelDescriptor, id: Any) -> None:
        """Keep the sequence ahead of explicitly supplied integer ids."""
        if isinstance(id, int) and id > self._sequences[model.collection]:
            self._sequences[model.collection] = id

    def _now(self) -> datetime:
        return datetime.now(timezone.utc)

    @staticmethod
    def _project(record: Record, fields: Optional[Iterable[str]]) -> Record:
        if fields is None:
            return deepcopy(record)
        wanted = set(fields)
        return {name: deepcopy(value) for name, value in record.items() if name in wanted}

    async def find_all(self, model: ModelDescriptor, query: QueryDescriptor) -> List[Record]:
        await checkpoint()
        storage = self._get_storage(model)

        matches = [record for record in storage.values() if query.matches(record)]
        page = matches[query.offset:query.offset + query.limit]
        return [self._project(record, query.fields) for record in page]

    async def find_by_id(
        self,
        model: ModelDescriptor,
        id: Any,
        fields: Optional[Iterable[str]] = None,
    ) -> Record:
        await checkpoint()
        storage = self._get_storage(model)

        if id not in storage:
            raise NotFoundError(f"{model.collection} with id {id!r} not found")
        return self._project(storage[id], fields)

    async def find_one(self, model: ModelDescriptor, where: Mapping[str, Any]) -> Record:
        await checkpoint()
        storage = self._get_storage(model)

        for record in storage.values():
            if all(record.get(name) == value for name, value in where.items()):
                return deepcopy(record)

        conditions = ", ".join(f"{name}={value!r}" for name, value in where.items())
        raise NotFoundError(f"no {model.collection} with {conditions}")

    async def create(self, model: ModelDescriptor, fields: Mapping[str, Any]) -> Record:
        await checkpoint()
        storage = self._get_storage(model)

        data = self._validate(model, fields)
        if data.get("id") is None:
            data["id"] = self._next_id(model)
        elif data["id"] in storage:
            raise DuplicateKeyError(f"{model.collection} with id {data['id']!r} already exists")
        else:
            self._claim_id(model, data["id"])

        now = self._now()
        record = {name: data.get(name) for name in model.fields}
        record[self.created_field] = now
        record[self.updated_field] = now

        storage[record["id"]] = deepcopy(record)
        logger.debug(f"Created {model.collection}/{record['id']}")
        return record

    async def update(self, model: ModelDescriptor, fields: Mapping[str, Any], id: Any) -> None:
        await checkpoint()
        storage = self._get_storage(model)

        if id not in storage:
            raise NotFoundError(f"{model.collection} with id {id!r} not found")

        data = self._validate(model, fields)
        data.pop("id", None)
        storage[id].update(data)
        storage[id][self.updated_field] = self._now()

    async def upsert(self, model: ModelDescriptor, fields: Mapping[str, Any]) -> None:
        await checkpoint()
        storage = self._get_storage(model)

        data = self._validate(model, fields)
        if data.get("id") is None:
            raise ValidationError(f"upsert into {model.collection} requires an id")

        id = data["id"]
        now = self._now()
        if id in storage:
            storage[id].update(data)
        else:
            self._claim_id(model, id)
            record = {name: data.get(name) for name in model.fields}
            record[self.created_field] = now
            storage[id] = record
        storage[id][self.updated_field] = now

    async def destroy(self, model: ModelDescriptor, id: Any = None, cascade: bool = False) -> None:
        await checkpoint()
        storage = self._get_storage(model)

        if id is None:
            ids = list(storage)
        elif id in storage:
            ids = [id]
        else:
            raise NotFoundError(f"{model.collection} with id {id!r} not found")

        doomed: Set[Tuple[str, Any]] = set()
        self._collect(model, ids, cascade, doomed)
        for collection, record_id in doomed:
            self._storage[collection].pop(record_id, None)
        logger.debug(f"Deleted {len(doomed)} record(s) starting at {model.collection}")

    def _collect(self, model: ModelDescriptor, ids: List[Any], cascade: bool, doomed: Set[Tuple[str, Any]]) -> None:
        """Gather the records to delete, following references when cascading."""
        storage = self._storage[model.collection]
        fresh = [record_id for record_id in ids if (model.collection, record_id) not in doomed]
        doomed.update((model.collection, record_id) for record_id in fresh)

        for dependent in self._models.values():
            for field_name, reference in dependent.foreign_keys:
                if reference.model != model.collection:
                    continue
                referenced = {storage[record_id].get(reference.key) for record_id in fresh}
                dependents = [
                    record_id
                    for record_id, record in self._storage[dependent.collection].items()
                    if record.get(field_name) in referenced
                    and (dependent.collection, record_id) not in doomed
                ]
                if not dependents:
                    continue
                if not cascade:
                    raise ConstraintError(
                        f"{dependent.collection}.{field_name} still references {model.collection}"
                    )
                self._collect(dependent, dependents, cascade, doomed)

    async def count(self, model: ModelDescriptor) -> int:
        await checkpoint()
        return len(self._get_storage(model))

    def clear(self, model: Optional[ModelDescriptor] = None) -> None:
        """
        Clear storage.

        Args:
            model: Optional model to clear. If None, clears all and resets sequences.
        """
        if model:
            self._get_storage(model).clear()
        else:
            for collection in self._storage:
                self._storage[collection].clear()
                self._sequences[collection] = 0
