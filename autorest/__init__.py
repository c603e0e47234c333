"""
REST interfaces generated from model descriptors.

Given a list of models and a store, autorest serves listing, filtering,
partial responses, foreign key links and bulk updates for every model,
in JSON, XML or YAML.
"""

from .application import RestApplication, create_app
from .config import RestConfig, XMLOptions
from .content_renderers import ContentRenderer, JSONRenderer, XMLRenderer, YAMLRenderer
from .descriptors import FieldSpec, ForeignKey, ModelDescriptor
from .errors import (
    BulkUpdateError,
    ErrorDescriptor,
    PostNotAllowedError,
    RestError,
    UnknownFieldError,
    UnknownTypeError,
    lookup,
)
from .models import HTTPMethod, Request, Response
from .negotiation import ContentNegotiator
from .projection import ResourceProjector, resource_url
from .query import QueryDescriptor, QueryTranslator
from .router import Router
from .routes import build_api, build_routes
from .store import InMemoryStore, Store

__version__ = "0.1.0"

__all__ = [
    "RestApplication",
    "create_app",
    "RestConfig",
    "XMLOptions",
    "ContentRenderer",
    "JSONRenderer",
    "XMLRenderer",
    "YAMLRenderer",
    "FieldSpec",
    "ForeignKey",
    "ModelDescriptor",
    "ErrorDescriptor",
    "RestError",
    "UnknownTypeError",
    "UnknownFieldError",
    "PostNotAllowedError",
    "BulkUpdateError",
    "lookup",
    "HTTPMethod",
    "Request",
    "Response",
    "ContentNegotiator",
    "ResourceProjector",
    "resource_url",
    "QueryDescriptor",
    "QueryTranslator",
    "Router",
    "build_api",
    "build_routes",
    "InMemoryStore",
    "Store",
]
