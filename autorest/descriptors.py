"""
Model descriptors: the static description of the data models an API serves.

Descriptors are supplied by the host application when the API is built and
are immutable afterwards.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional, Tuple, Type

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from .naming import pluralize

FieldType = Literal["string", "integer", "number", "boolean", "datetime"]

PYTHON_TYPES: Dict[str, Type] = {
    "string": str,
    "integer": int,
    "number": float,
    "boolean": bool,
    "datetime": datetime,
}


class ForeignKey(BaseModel):
    """Reference from a field to a column of another model.

    Attributes:
        model: Collection segment of the referenced model (e.g. ``users``)
        key: Referenced column, usually but not necessarily ``id``
    """

    model_config = ConfigDict(frozen=True)

    model: str
    key: str = "id"

    @classmethod
    def parse(cls, reference: str) -> "ForeignKey":
        """Parse the ``collection.key`` shorthand, e.g. ``users.id``."""
        model, _, key = reference.partition(".")
        return cls(model=model, key=key or "id")


class FieldSpec(BaseModel):
    """Metadata of one model field."""

    model_config = ConfigDict(frozen=True)

    type: FieldType = "string"
    references: Optional[ForeignKey] = None

    @field_validator("references", mode="before")
    @classmethod
    def _parse_reference_shorthand(cls, value: Any) -> Any:
        if isinstance(value, str):
            return ForeignKey.parse(value)
        return value

    @property
    def python_type(self) -> Type:
        return PYTHON_TYPES[self.type]

    @property
    def is_foreign_key(self) -> bool:
        return self.references is not None


class ModelDescriptor(BaseModel):
    """Description of one model served by the API.

    ``fields`` keeps declaration order. An integer ``id`` field is added in
    front when not declared. ``collection`` defaults to the plural of ``name``.

    Example:
        >>> users = ModelDescriptor(name="user", fields={"givenname": "string", "lastname": "string"})
        >>> users.collection
        'users'
        >>> couples = ModelDescriptor(
        ...     name="couple",
        ...     fields={
        ...         "one": FieldSpec(type="integer", references="users.id"),
        ...         "another": FieldSpec(type="integer", references="users.id"),
        ...     },
        ... )
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    collection: str = ""
    fields: Dict[str, FieldSpec] = Field(default_factory=dict)

    @field_validator("fields", mode="before")
    @classmethod
    def _expand_field_shorthand(cls, value: Any) -> Any:
        """Allow ``{"name": "string"}`` as shorthand for ``{"name": FieldSpec(type="string")}``."""
        if isinstance(value, dict):
            return {
                name: {"type": spec} if isinstance(spec, str) else spec
                for name, spec in value.items()
            }
        return value

    @model_validator(mode="before")
    @classmethod
    def _complete(cls, data: Any) -> Any:
        if isinstance(data, dict):
            data = dict(data)
            if not data.get("collection") and data.get("name"):
                data["collection"] = pluralize(data["name"])
            fields = data.get("fields") or {}
            if "id" not in fields:
                data["fields"] = {"id": {"type": "integer"}, **fields}
        return data

    @property
    def foreign_keys(self) -> List[Tuple[str, ForeignKey]]:
        """(field name, reference) pairs in declaration order."""
        return [(name, spec.references) for name, spec in self.fields.items() if spec.references is not None]

    def has_field(self, name: str) -> bool:
        return name in self.fields

    def public_fields(self, bookkeeping: Tuple[str, ...]) -> List[str]:
        """Declared fields without the store's bookkeeping fields."""
        return [name for name in self.fields if name not in bookkeeping]

    def coerce(self, name: str, raw: str) -> Any:
        """Convert a string (from a URL or query string) to the field's storage type.

        Values that cannot be converted are returned unchanged.
        """
        spec = self.fields.get(name)
        if spec is None:
            return raw
        try:
            if spec.type == "integer":
                return int(raw)
            if spec.type == "number":
                return float(raw)
            if spec.type == "boolean":
                lowered = raw.lower()
                if lowered in ("true", "1", "yes"):
                    return True
                if lowered in ("false", "0", "no"):
                    return False
                return raw
        except ValueError:
            return raw
        return raw


def resolve_references(models: List[ModelDescriptor]) -> Dict[str, ModelDescriptor]:
    """Index models by collection and check that every foreign key target exists.

    Raises:
        ValueError: On duplicate collections or references to unknown models/fields
    """
    by_collection: Dict[str, ModelDescriptor] = {}
    for model in models:
        if model.collection in by_collection:
            raise ValueError(f"Duplicate collection '{model.collection}'")
        by_collection[model.collection] = model

    for model in models:
        for field_name, reference in model.foreign_keys:
            target = by_collection.get(reference.model)
            if target is None:
                raise ValueError(
                    f"{model.collection}.{field_name} references unknown model '{reference.model}'"
                )
            if not target.has_field(reference.key):
                raise ValueError(
                    f"{model.collection}.{field_name} references unknown field '{reference.model}.{reference.key}'"
                )
    return by_collection
