"""
Main application class serving generated REST interfaces.
"""

import inspect
import logging
from dataclasses import replace
from http import HTTPStatus
from typing import Any, Callable, Dict, List, Optional, Sequence

from .config import RestConfig
from .descriptors import ModelDescriptor
from .errors import MalformedBodyError, RestError
from .models import HTTPMethod, Request, Response
from .negotiation import ContentNegotiator
from .router import Router
from .routes import build_api
from .store.base import ConstraintError, DuplicateKeyError, NotFoundError, Store, StoreError, ValidationError

logger = logging.getLogger(__name__)

# Methods a client may ask for with ?method=
OVERRIDE_METHODS = (HTTPMethod.POST, HTTPMethod.PUT, HTTPMethod.DELETE)

STORE_ERROR_STATUS = (
    (NotFoundError, HTTPStatus.NOT_FOUND),
    (ValidationError, HTTPStatus.BAD_REQUEST),
    (DuplicateKeyError, HTTPStatus.CONFLICT),
    (ConstraintError, HTTPStatus.CONFLICT),
)


def apply_method_override(request: Request) -> Request:
    """Substitute the ``method`` query parameter for the request method.

    Only POST, PUT and DELETE, spelled in upper case, can be requested; the
    parameter is removed from the query parameters when it is applied.
    """
    requested = request.query_params.get("method")
    if not requested:
        return request
    try:
        method = HTTPMethod(requested)
    except ValueError:
        return request
    if method not in OVERRIDE_METHODS:
        return request

    query_params = {name: value for name, value in request.query_params.items() if name != "method"}
    logger.debug(f"Method override {request.method.value} -> {method.value} for {request.path}")
    return replace(request, method=method, query_params=query_params)


def store_error_status(error: StoreError) -> int:
    for error_class, status in STORE_ERROR_STATUS:
        if isinstance(error, error_class):
            return status
    return HTTPStatus.INTERNAL_SERVER_ERROR


class RestApplication:
    """Dispatches requests to mounted routers and maps errors to responses.

    Every error leaving a route handler is turned into a negotiated error
    response here:

    - catalog errors (:class:`RestError`) become ``{"reason", "url"}`` with their status
    - store errors become ``{"reason"}`` with a status derived from their class
    - unparseable bodies become 400
    - anything else is logged and becomes 500
    """

    def __init__(self, config: Optional[RestConfig] = None):
        self.config = config or RestConfig()
        self.negotiator = ContentNegotiator(self.config)
        self._root_router = Router()
        self._startup_handlers: List[Callable] = []
        self._shutdown_handlers: List[Callable] = []

    def mount(self, prefix: str, router: Router):
        """Mount a router with a given prefix.

        Example:
            app = RestApplication()
            app.mount("/api", build_api([users], InMemoryStore()))
            # GET /api/users, GET /api/users/{id}, ...
        """
        self._root_router.mount(prefix, router)

    def on_startup(self, func: Callable) -> Callable:
        """Register a (sync or async) function to run when the server starts."""
        self._startup_handlers.append(func)
        return func

    def on_shutdown(self, func: Callable) -> Callable:
        """Register a (sync or async) function to run when the server stops."""
        self._shutdown_handlers.append(func)
        return func

    async def startup(self):
        for handler in self._startup_handlers:
            result = handler()
            if inspect.isawaitable(result):
                await result

    async def shutdown(self):
        """Run shutdown handlers; failures are logged, not raised."""
        for handler in self._shutdown_handlers:
            try:
                result = handler()
                if inspect.isawaitable(result):
                    await result
            except Exception as e:
                logger.error(f"Error in shutdown handler {handler.__name__}: {e}", exc_info=True)

    async def execute(self, request: Request) -> Response:
        """Execute a request and return the response."""
        request = apply_method_override(request)
        logger.debug(f"{request.method.value} {request.path}")

        match = self._root_router.match_route(request.path, request.method)
        if match is None:
            return self._route_not_found(request)

        route, path_params = match
        request.path_params = path_params
        request.mount_path = route.mount_prefix

        try:
            return await route.handler(request)
        except RestError as e:
            logger.debug(f"{request.method.value} {request.path}: {e.descriptor.slug}: {e.message}")
            return self._error_response(request, e.status, e.body(self.config.base_url_for(request)))
        except StoreError as e:
            status = store_error_status(e)
            if status >= HTTPStatus.INTERNAL_SERVER_ERROR:
                logger.error(f"Store failure on {request.method.value} {request.path}: {e}", exc_info=True)
            else:
                logger.warning(f"{request.method.value} {request.path}: {e}")
            return self._error_response(request, status, {"reason": str(e)})
        except MalformedBodyError as e:
            logger.warning(f"{request.method.value} {request.path}: {e.message}")
            return self._error_response(request, HTTPStatus.BAD_REQUEST, {"reason": e.message})
        except Exception as e:
            logger.error(f"Unhandled exception processing {request.method.value} {request.path}: {e}", exc_info=True)
            return self._error_response(
                request, HTTPStatus.INTERNAL_SERVER_ERROR, {"reason": "Internal server error"}
            )

    def _route_not_found(self, request: Request) -> Response:
        methods = self._root_router.get_methods_for_path(request.path)
        if not methods:
            return self._error_response(request, HTTPStatus.NOT_FOUND, {"reason": "Not Found"})
        return self._error_response(
            request,
            HTTPStatus.METHOD_NOT_ALLOWED,
            {"reason": "Method Not Allowed"},
            headers={"Allow": ", ".join(method.value for method in methods)},
        )

    def _error_response(
        self, request: Request, status: int, payload: Any, headers: Optional[Dict[str, str]] = None
    ) -> Response:
        """Negotiated error body; an unknown path extension falls back to Accept."""
        extension = request.path_params.get("ext")
        if extension not in self.negotiator.extensions:
            extension = None
        return self.negotiator.negotiate(request, "error", payload, status=status, extension=extension, headers=headers)


def create_app(
    models: Sequence[ModelDescriptor],
    store: Store,
    config: Optional[RestConfig] = None,
    prefix: str = "/",
) -> RestApplication:
    """Application serving the REST interface of ``models`` at ``prefix``.

    The store is closed when the application shuts down.
    """
    app = RestApplication(config)
    app.mount(prefix, build_api(models, store, app.config))
    app.on_shutdown(store.close)
    return app
