"""
Generation of REST endpoints from model descriptors.

For every model the same endpoint set is synthesized (``{c}`` is the
collection segment, e.g. ``users``):

====== ============================ ==========================================
GET    /{c}, /{c}.{ext}             URLs of matching resources, or documents
OPTIONS /{c}                        Field and method description
POST   /{c}                         Create, returns the new resource URL
PUT    /{c}                         Bulk update (all-or-nothing)
DELETE /{c}                         Delete all resources
GET    /{c}/{id}, /{c}/{id}.{ext}   One resource
POST   /{c}/{id}                    Always rejected
PUT    /{c}/{id}                    Update, returns the resource URL
DELETE /{c}/{id}                    Delete, returns the collection URL
GET    /{c}/{id}/{field}[.{ext}]    One field; foreign keys redirect
====== ============================ ==========================================

Plain ``{id}`` and ``{field}`` segments do not match values containing a dot,
so ``/users/1.xml`` is always routed to the extension route.
"""

import json
import logging
from dataclasses import dataclass
from functools import partial
from http import HTTPStatus
from typing import Any, Dict, List, Mapping, Optional, Sequence

import yaml

from .concurrency import gather
from .config import RestConfig
from .descriptors import ModelDescriptor, resolve_references
from .errors import (
    ERRORS_PATH_ELEMENT,
    BulkUpdateError,
    MalformedBodyError,
    PostNotAllowedError,
    UnknownErrorSlug,
    UnknownFieldError,
    lookup,
)
from .models import HTTPMethod, Request, Response
from .negotiation import ContentNegotiator
from .projection import ResourceProjector, collection_url, resource_url
from .query import QueryTranslator
from .router import Router
from .store.base import NotFoundError, Record, Store, StoreError

logger = logging.getLogger(__name__)

YAML_MEDIA_TYPES = ("text/x-yaml", "application/x-yaml", "application/yaml", "text/yaml")

EXTENSION = "{ext:[^.]+}"
PLAIN = "[^.]+"

COLLECTION_METHODS = (HTTPMethod.GET, HTTPMethod.POST, HTTPMethod.PUT, HTTPMethod.DELETE, HTTPMethod.OPTIONS)


@dataclass
class RouteContext:
    """Collaborators shared by the routes of all models."""

    models: Mapping[str, ModelDescriptor]
    store: Store
    config: RestConfig
    negotiator: ContentNegotiator
    translator: QueryTranslator
    projector: ResourceProjector

    @classmethod
    def create(cls, models: Sequence[ModelDescriptor], store: Store, config: RestConfig) -> "RouteContext":
        by_collection = resolve_references(list(models))
        return cls(
            models=by_collection,
            store=store,
            config=config,
            negotiator=ContentNegotiator(config),
            translator=QueryTranslator(config),
            projector=ResourceProjector(store, by_collection, config),
        )

    def base_url(self, request: Request) -> str:
        return self.config.base_url_for(request)


def parse_body(request: Request) -> Any:
    """Decode a JSON (default) or YAML request body.

    Raises:
        MalformedBodyError: If the body is missing or cannot be decoded
    """
    if not request.body:
        raise MalformedBodyError("Request body is empty")

    content_type = (request.get_content_type() or "application/json").split(";")[0].strip().lower()
    try:
        if content_type in YAML_MEDIA_TYPES:
            return yaml.safe_load(request.body)
        return json.loads(request.body)
    except (ValueError, yaml.YAMLError) as e:
        raise MalformedBodyError(f"Invalid {content_type} request body: {e}", e) from e


def parse_object(request: Request) -> Dict[str, Any]:
    body = parse_body(request)
    if not isinstance(body, dict):
        raise MalformedBodyError("Request body must be an object")
    return body


def _extension(request: Request) -> Optional[str]:
    return request.path_params.get("ext")


def _resource_id(request: Request, model: ModelDescriptor) -> Any:
    return model.coerce("id", request.path_params["id"])


async def bulk_update(store: Store, model: ModelDescriptor, items: Any) -> List[Any]:
    """Update existing resources from full records, all or none of them.

    Every item must carry the ``id`` of an existing resource. The current
    records are read first; when any write fails they are written back
    before the error is reported.

    Returns:
        The ids of the updated resources, in request order

    Raises:
        BulkUpdateError: If the body is not a list of records with ids, a
            resource does not exist or any write fails
    """
    if not isinstance(items, list) or not all(isinstance(item, dict) and "id" in item for item in items):
        raise BulkUpdateError("bulk update expects a list of resources with ids")

    records = [
        {**item, "id": model.coerce("id", item["id"]) if isinstance(item["id"], str) else item["id"]}
        for item in items
    ]

    try:
        previous = await gather([partial(store.find_by_id, model, record["id"]) for record in records])
    except NotFoundError as e:
        raise BulkUpdateError(str(e)) from e

    try:
        await gather([partial(store.upsert, model, record) for record in records])
    except StoreError as e:
        logger.warning(f"Bulk update of {model.collection} failed, restoring {len(previous)} record(s): {e}")
        await gather([partial(store.upsert, model, record) for record in previous])
        raise BulkUpdateError(str(e)) from e

    return [record["id"] for record in records]


def build_routes(model: ModelDescriptor, context: RouteContext) -> Router:
    """Synthesize the endpoint set of one model."""
    router = Router()
    store = context.store
    config = context.config
    negotiator = context.negotiator
    collection = f"/{model.collection}"
    resource = f"{collection}/{{id:{PLAIN}}}"
    resource_ext = f"{collection}/{{id}}.{EXTENSION}"

    async def list_resources(request: Request) -> Response:
        base_url = context.base_url(request)
        query = context.translator.parse(request.query_params, model)
        negotiator.select(request, _extension(request))

        if query.include_docs:
            records = await store.find_all(model, query)
            payload: List[Any] = await context.projector.project_many(records, model, base_url)
        else:
            records = await store.find_all(model, query.ids_only())
            payload = [resource_url(base_url, model.collection, record["id"]) for record in records]

        total = await store.count(model)
        return negotiator.negotiate(
            request,
            model.collection,
            payload,
            extension=_extension(request),
            headers={"X-Total-Count": str(total)},
        )

    router.get(collection)(list_resources)
    router.get(f"{collection}.{EXTENSION}")(list_resources)

    @router.options(collection)
    async def describe_collection(request: Request) -> Response:
        public = model.public_fields(config.bookkeeping_fields)
        fields = {}
        for name in public:
            spec = model.fields[name]
            description: Dict[str, Any] = {"type": spec.type}
            if spec.references is not None:
                description["references"] = f"{spec.references.model}.{spec.references.key}"
            fields[name] = description

        methods = [method.value for method in COLLECTION_METHODS]
        payload = {
            "name": model.name,
            "url": collection_url(context.base_url(request), model.collection),
            "fields": fields,
            "methods": methods,
        }
        return negotiator.negotiate(request, model.name, payload, headers={"Allow": ", ".join(methods)})

    @router.post(collection)
    async def create_resource(request: Request) -> Response:
        record = await store.create(model, parse_object(request))
        logger.info(f"Created {model.collection}/{record['id']}")
        url = resource_url(context.base_url(request), model.collection, record["id"])
        return negotiator.negotiate(request, model.name, url)

    @router.put(collection)
    async def update_resources(request: Request) -> Response:
        ids = await bulk_update(store, model, parse_body(request))
        logger.info(f"Bulk updated {len(ids)} {model.collection}")
        base_url = context.base_url(request)
        return negotiator.negotiate(
            request,
            model.collection,
            [resource_url(base_url, model.collection, id) for id in ids],
        )

    @router.delete(collection)
    async def delete_resources(request: Request) -> Response:
        await store.destroy(model, cascade=config.cascade_delete)
        logger.info(f"Deleted all {model.collection} (cascade={config.cascade_delete})")
        return negotiator.negotiate(request, model.name, collection_url(context.base_url(request), model.collection))

    async def get_resource(request: Request) -> Response:
        query = context.translator.parse(request.query_params, model)
        negotiator.select(request, _extension(request))

        record = await store.find_by_id(model, _resource_id(request, model), query.fields)
        public = await context.projector.project(
            record, model, context.base_url(request), expand=query.include_docs
        )
        return negotiator.negotiate(request, model.name, public, extension=_extension(request))

    router.get(resource)(get_resource)
    router.get(resource_ext)(get_resource)

    @router.post(resource)
    async def post_resource(request: Request) -> Response:
        raise PostNotAllowedError()

    @router.put(resource)
    async def update_resource(request: Request) -> Response:
        id = _resource_id(request, model)
        await store.update(model, parse_object(request), id)
        logger.info(f"Updated {model.collection}/{id}")
        return negotiator.negotiate(request, model.name, resource_url(context.base_url(request), model.collection, id))

    @router.delete(resource)
    async def delete_resource(request: Request) -> Response:
        id = _resource_id(request, model)
        await store.destroy(model, id, cascade=config.cascade_delete)
        logger.info(f"Deleted {model.collection}/{id}")
        return negotiator.negotiate(request, model.name, collection_url(context.base_url(request), model.collection))

    async def get_field(request: Request) -> Response:
        negotiator.select(request, _extension(request))
        name = request.path_params["field"]
        if not model.has_field(name) or name in config.bookkeeping_fields:
            raise UnknownFieldError(f"{model.collection} has no field '{name}'")

        record: Record = await store.find_by_id(model, _resource_id(request, model), ["id", name])
        value = record.get(name)
        reference = model.fields[name].references
        if reference is not None and value is not None:
            return negotiator.redirect(request, resource_url(context.base_url(request), reference.model, value))
        return negotiator.negotiate(request, name, value, extension=_extension(request))

    router.get(f"{resource}/{{field:{PLAIN}}}")(get_field)
    router.get(f"{resource}/{{field}}.{EXTENSION}")(get_field)

    logger.info(f"Generated routes for {model.collection}")
    return router


def build_meta_routes(context: RouteContext) -> Router:
    """Endpoint listing and the error documentation endpoint."""
    router = Router()

    @router.get("/")
    async def list_endpoints(request: Request) -> Response:
        base_url = context.base_url(request)
        payload = [collection_url(base_url, collection) for collection in context.models]
        return context.negotiator.negotiate(request, "endpoints", payload)

    @router.get(f"/{ERRORS_PATH_ELEMENT}/{{slug}}")
    async def describe_error(request: Request) -> Response:
        slug = request.path_params["slug"]
        try:
            descriptor = lookup(slug)
        except UnknownErrorSlug:
            return context.negotiator.negotiate(
                request, "error", {"reason": f"unknown error '{slug}'"}, status=HTTPStatus.NOT_FOUND
            )
        return context.negotiator.negotiate(request, "error", {"remediation": descriptor.remediation})

    return router


def build_api(models: Sequence[ModelDescriptor], store: Store, config: Optional[RestConfig] = None) -> Router:
    """Build a router serving the REST interface of all models.

    Args:
        models: Model descriptors, in the order ``GET /`` lists them
        store: Store holding the records of every model
        config: Endpoint configuration

    Raises:
        ValueError: If the models reference unknown models or collections collide
    """
    config = config or RestConfig()
    config.validate()
    store.register(models)
    context = RouteContext.create(models, store, config)

    api = Router()
    api.mount("/", build_meta_routes(context))
    for model in context.models.values():
        api.mount("/", build_routes(model, context))
    logger.info(f"Built REST interface for {len(context.models)} model(s)")
    return api
