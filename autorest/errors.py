"""
Error catalog and exception taxonomy for autorest.

Every client-facing error the generated endpoints can produce is described by
an :class:`ErrorDescriptor` in :data:`CATALOG`. The catalog is closed: it is
built once at import time and never mutated. Each entry is documented at
``/_errors/<slug>`` relative to the mount point of the API.
"""

from http import HTTPStatus
from types import MappingProxyType
from typing import Any, Dict, List, Mapping

from pydantic import BaseModel, ConfigDict, Field

ERRORS_PATH_ELEMENT = "_errors"


class ErrorDescriptor(BaseModel):
    """Static description of one kind of client error."""

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "slug": "unknown-field",
                "reason": "the :field of /:model/:id/:field is unknown.",
                "remediation": "use OPTIONS /:model to get a list of (among others) all available :fields",
            }
        },
    )

    slug: str = Field(..., description="Machine readable identifier, also the last path segment of the docs URL")
    reason: str = Field(..., description="Human readable summary of what went wrong")
    remediation: str = Field(..., description="What the client can do about it")


BULK_UPDATE = ErrorDescriptor(
    slug="bulk-update",
    reason="bulk update failed. did all resources exist?",
    remediation="pass a list of resources in the request body, and make sure all resources to update do exist",
)

POST_RESOURCE_NOT_ALLOWED = ErrorDescriptor(
    slug="post-resource-not-allowed",
    reason="POST /:model/:id is not allowed.",
    remediation="a) use PUT /:model/:id instead of POST to update or b) use POST /:model to create a new resource",
)

UNKNOWN_FIELD = ErrorDescriptor(
    slug="unknown-field",
    reason="the :field of /:model/:id/:field is unknown.",
    remediation="use OPTIONS /:model to get a list of (among others) all available :fields",
)

UNKNOWN_TYPE = ErrorDescriptor(
    slug="unknown-type",
    reason="path extension none of (json|xml|yml)",
    remediation="a) specify Accept: header instead, b) request the url with one of (json|xml|yml) as extension",
)

CATALOG: Mapping[str, ErrorDescriptor] = MappingProxyType({
    descriptor.slug: descriptor
    for descriptor in (BULK_UPDATE, POST_RESOURCE_NOT_ALLOWED, UNKNOWN_FIELD, UNKNOWN_TYPE)
})


class UnknownErrorSlug(LookupError):
    """Raised when a slug is not part of the catalog."""


def lookup(slug: str) -> ErrorDescriptor:
    """Return the catalog entry for ``slug``.

    Raises:
        UnknownErrorSlug: If the slug is not in the catalog
    """
    try:
        return CATALOG[slug]
    except KeyError:
        raise UnknownErrorSlug(slug) from None


def all_errors() -> List[ErrorDescriptor]:
    """Catalog entries in declaration order."""
    return list(CATALOG.values())


def error_url(base_url: str, descriptor: ErrorDescriptor) -> str:
    """Documentation URL for an error, relative to the API mount point."""
    return f"{base_url}/{ERRORS_PATH_ELEMENT}/{descriptor.slug}"


def error_body(descriptor: ErrorDescriptor, base_url: str) -> Dict[str, Any]:
    """Build the body sent to clients for a catalog error."""
    return {"reason": descriptor.reason, "url": error_url(base_url, descriptor)}


class RestError(Exception):
    """Base exception for catalog errors raised by generated endpoints.

    Carries the catalog entry and the HTTP status the response should have.
    """

    descriptor: ErrorDescriptor = UNKNOWN_TYPE
    status: int = HTTPStatus.BAD_REQUEST

    def __init__(self, message: str = ""):
        self.message = message or self.descriptor.reason
        super().__init__(self.message)

    def body(self, base_url: str) -> Dict[str, Any]:
        return error_body(self.descriptor, base_url)


class UnknownTypeError(RestError):
    """Raised when a path extension names no supported representation."""

    descriptor = UNKNOWN_TYPE


class UnknownFieldError(RestError):
    """Raised when /:model/:id/:field names an undeclared field."""

    descriptor = UNKNOWN_FIELD


class PostNotAllowedError(RestError):
    """Raised for POST against a single resource."""

    descriptor = POST_RESOURCE_NOT_ALLOWED


class BulkUpdateError(RestError):
    """Raised when any member of a bulk PUT fails."""

    descriptor = BULK_UPDATE


class MalformedBodyError(Exception):
    """Raised when a request body cannot be parsed."""

    def __init__(self, message="Failed to parse request body", original_exception=None):
        self.message = message
        self.original_exception = original_exception
        super().__init__(self.message)
