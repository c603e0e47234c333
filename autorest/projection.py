"""
Projection of stored records into their public representation.

Stored records carry bookkeeping fields and raw foreign key values. Before a
record leaves the API the bookkeeping fields are removed and every foreign key
is replaced by the URL of the referenced resource or, on request, by the
referenced resource itself.
"""

import logging
from functools import partial
from typing import Any, List, Mapping, Sequence

from .concurrency import gather
from .config import RestConfig
from .descriptors import ModelDescriptor
from .store.base import Record, Store

logger = logging.getLogger(__name__)


def resource_url(base_url: str, collection: str, id: Any) -> str:
    """Canonical location of a resource, e.g. ``/api/users/1``."""
    return f"{base_url}/{collection}/{id}"


def collection_url(base_url: str, collection: str) -> str:
    return f"{base_url}/{collection}"


class ResourceProjector:
    """Turns stored records into public records.

    Foreign key expansion performs one ``find_one`` per foreign key, looking
    the target up by the referenced column. The lookups of one record run
    concurrently; if any of them fails the others are cancelled and the
    error propagates, so a record is either fully expanded or not returned.
    """

    def __init__(self, store: Store, models: Mapping[str, ModelDescriptor], config: RestConfig):
        self.store = store
        self.models = models
        self.config = config

    def strip(self, record: Mapping[str, Any]) -> Record:
        """Copy of ``record`` without bookkeeping fields."""
        return {name: value for name, value in record.items() if name not in self.config.bookkeeping_fields}

    def link(self, record: Mapping[str, Any], model: ModelDescriptor, base_url: str) -> Record:
        """Public record with foreign keys replaced by resource URLs."""
        public = self.strip(record)
        for field_name, reference in model.foreign_keys:
            value = public.get(field_name)
            if value is not None:
                public[field_name] = resource_url(base_url, reference.model, value)
        return public

    async def project(
        self,
        record: Mapping[str, Any],
        model: ModelDescriptor,
        base_url: str,
        expand: bool = False,
    ) -> Record:
        """Public representation of ``record``.

        Args:
            record: Record as returned by the store
            model: The record's model
            base_url: Prefix for generated URLs
            expand: Inline referenced records instead of linking them.
                Inlined records link their own foreign keys.
        """
        if not expand:
            return self.link(record, model, base_url)

        public = self.strip(record)
        expandable = [
            (field_name, reference)
            for field_name, reference in model.foreign_keys
            if public.get(field_name) is not None
        ]
        found = await gather([
            partial(self.store.find_one, self.models[reference.model], {reference.key: public[field_name]})
            for field_name, reference in expandable
        ])

        for (field_name, reference), target in zip(expandable, found):
            public[field_name] = self.link(target, self.models[reference.model], base_url)
        logger.debug(f"Expanded {len(expandable)} foreign key(s) of {model.collection}/{public.get('id')}")
        return public

    async def project_many(
        self,
        records: Sequence[Mapping[str, Any]],
        model: ModelDescriptor,
        base_url: str,
        expand: bool = False,
    ) -> List[Record]:
        """Project several records concurrently, keeping their order."""
        return await gather([partial(self.project, record, model, base_url, expand) for record in records])
